"""
Typed errors raised by the ledger, the store and the drafting helpers.

Every error carries a machine-readable ``code`` so callers can branch on type
or code instead of parsing messages:

    LedgerError (base)
    +-- InsufficientStockError   sale cannot be satisfied from current stock
    +-- UnknownProductError      purchase references a product not in the catalog
    +-- DuplicateTransactionError  transaction id already in the ledger
    +-- StoreUnavailableError    persisted payload unreadable or unsupported
    +-- DraftError               draft cannot be turned into a transaction
    +-- AdvisorUnavailableError  audit advisor could not produce findings
"""

from __future__ import annotations


class LedgerError(Exception):
    code: str = "LEDGER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InsufficientStockError(LedgerError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: str, product_name: str, requested: int, available: int):
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product_name}: requested {requested}, available {available}"
        )


class UnknownProductError(LedgerError):
    code = "UNKNOWN_PRODUCT"

    def __init__(self, product_id: str, product_name: str):
        self.product_id = product_id
        self.product_name = product_name
        super().__init__(f"Product {product_name} ({product_id}) is not in the catalog")


class DuplicateTransactionError(LedgerError):
    code = "DUPLICATE_TRANSACTION"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} is already in the ledger")


class StoreUnavailableError(LedgerError):
    code = "STORE_UNAVAILABLE"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Stored collection '{key}' is unreadable: {reason}")


class DraftError(LedgerError):
    code = "INVALID_DRAFT"


class AdvisorUnavailableError(LedgerError):
    """Raised inside advisors; never escapes HealthAdvisor.analyze_business_health."""

    code = "ADVISOR_UNAVAILABLE"

    def __init__(self, message: str, recommendation: str, severity: str = "MEDIUM"):
        super().__init__(message)
        self.recommendation = recommendation
        self.severity = severity
