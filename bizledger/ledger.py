import asyncio
import logging
from typing import Iterable, Optional

from . import settings
from .exceptions import DuplicateTransactionError, InsufficientStockError, UnknownProductError
from .schemas import FinancialSummary, PaymentMethod, Product, Transaction, TransactionType
from .storage import Store

logger = logging.getLogger(__name__)


def summarize(transactions: Iterable[Transaction]) -> FinancialSummary:
    """Folds a ledger into revenue, expenses, receivables and payables."""
    revenue = expenses = receivables = payables = 0.0
    for tx in transactions:
        on_credit = tx.payment_method == PaymentMethod.CREDIT
        if tx.type == TransactionType.SALE:
            revenue += tx.total_amount
            if on_credit:
                receivables += tx.total_amount
        else:
            expenses += tx.total_amount
            if on_credit:
                payables += tx.total_amount
    return FinancialSummary(
        revenue=revenue, expenses=expenses, receivables=receivables, payables=payables
    )


def _quantities_by_product(transaction: Transaction) -> dict[str, int]:
    # A product may appear on several lines; stock checks use the combined quantity.
    quantities: dict[str, int] = {}
    for item in transaction.items:
        quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
    return quantities


class LedgerEngine:
    """
    The single gateway for committing sales and purchases.

    A commit validates every line against the current catalog before anything
    is written, then persists the updated products followed by the ledger with
    the new transaction prepended. Commits are serialized by a lock, so two
    callers can never interleave their read-modify-write cycles.
    """

    def __init__(self, store: Store, latency: Optional[float] = None):
        self.store = store
        self.latency = latency if latency is not None else settings.COMMIT_LATENCY_MS / 1000
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    def _commit_lock(self) -> asyncio.Lock:
        # An asyncio.Lock is tied to one loop; successive asyncio.run calls each get their own.
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def create_transaction(self, transaction: Transaction) -> Transaction:
        async with self._commit_lock():
            if self.latency > 0:
                await asyncio.sleep(self.latency)
            # No suspension points past here: a commit either completes or raises before writing.
            return self._commit(transaction)

    def _commit(self, transaction: Transaction) -> Transaction:
        products = self.store.get_products()
        transactions = self.store.get_transactions()

        if any(tx.id == transaction.id for tx in transactions):
            raise DuplicateTransactionError(transaction.id)

        catalog = {product.id: product for product in products}
        quantities = _quantities_by_product(transaction)
        names = {}
        for item in transaction.items:
            names.setdefault(item.product_id, item.product_name)

        # --- 1. VALIDATE ---
        if transaction.type == TransactionType.SALE:
            for product_id, quantity in quantities.items():
                product = catalog.get(product_id)
                available = product.stock if product is not None else 0
                if available < quantity:
                    logger.warning(
                        f"❌ Rejected sale {transaction.reference_number}: "
                        f"{names[product_id]} needs {quantity}, {available} on hand"
                    )
                    raise InsufficientStockError(
                        product_id, names[product_id], quantity, available
                    )
        else:
            for product_id in quantities:
                if product_id not in catalog:
                    logger.warning(
                        f"❌ Rejected purchase {transaction.reference_number}: "
                        f"unknown product {product_id}"
                    )
                    raise UnknownProductError(product_id, names[product_id])

        # --- 2. APPLY ---
        direction = -1 if transaction.type == TransactionType.SALE else 1
        updated_products = [
            product.model_copy(
                update={"stock": product.stock + direction * quantities[product.id]}
            )
            if product.id in quantities
            else product
            for product in products
        ]

        # --- 3. PERSIST ---
        self.store.set_products(updated_products)
        self.store.set_transactions([transaction, *transactions])

        logger.info(
            f"✅ Committed {transaction.type.value} {transaction.reference_number} "
            f"({len(transaction.items)} lines, total {transaction.total_amount:,.0f})"
        )
        return transaction

    # --- Queries ---

    def get_financial_summary(self) -> FinancialSummary:
        return summarize(self.store.get_transactions())

    def get_products(self) -> list[Product]:
        return self.store.get_products()

    def save_product(self, product: Product) -> None:
        self.store.save_product(product)

    def get_transactions(self) -> list[Transaction]:
        return self.store.get_transactions()

    def get_transactions_by_type(self, transaction_type: TransactionType) -> list[Transaction]:
        return [tx for tx in self.store.get_transactions() if tx.type == transaction_type]

    def get_recent_transactions(self, limit: int = 10) -> list[Transaction]:
        return self.store.get_transactions()[:limit]

    def get_reorder_suggestions(self) -> list[Product]:
        """Products at or below their reorder point."""
        return [product for product in self.store.get_products() if product.is_low_stock]
