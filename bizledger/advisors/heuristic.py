import logging
from datetime import timedelta

import pandas as pd

from bizledger import settings
from bizledger.advisor import HealthAdvisor
from bizledger.schemas import (
    AuditFinding,
    PaymentMethod,
    Product,
    Severity,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)


class HeuristicAdvisor(HealthAdvisor):
    """
    Offline rule-based auditor. Covers the same checks the remote auditor is
    asked for: reorder needs, overstocking, abnormal purchase prices, credit
    concentration and split transactions.
    """

    name = "heuristic"

    async def analyze(
        self, transactions: list[Transaction], products: list[Product]
    ) -> list[AuditFinding]:
        catalog = {product.id: product for product in products}
        purchases = [tx for tx in transactions if tx.type == TransactionType.PURCHASE]

        findings = []
        findings.extend(self._low_stock(products))
        findings.extend(self._overstock_purchases(purchases, catalog))
        findings.extend(self._abnormal_purchase_prices(purchases, catalog))
        findings.extend(self._credit_concentration(transactions))
        findings.extend(self._split_transactions(transactions))
        logger.debug(f"Heuristic checks produced {len(findings)} findings")
        return findings

    def _low_stock(self, products: list[Product]) -> list[AuditFinding]:
        return [
            AuditFinding(
                severity=Severity.LOW,
                message=(
                    f"{product.name} has {product.stock} {product.unit} on hand, "
                    f"at or below its reorder point of {product.min_stock_level}."
                ),
                recommendation=f"Raise a purchase order for {product.name} ({product.sku}).",
            )
            for product in products
            if product.is_low_stock
        ]

    def _overstock_purchases(
        self, purchases: list[Transaction], catalog: dict[str, Product]
    ) -> list[AuditFinding]:
        findings = []
        flagged = set()
        for tx in purchases:
            for item in tx.items:
                product = catalog.get(item.product_id)
                if product is None or product.id in flagged or product.min_stock_level <= 0:
                    continue
                if product.stock > settings.OVERSTOCK_FACTOR * product.min_stock_level:
                    flagged.add(product.id)
                    findings.append(
                        AuditFinding(
                            severity=Severity.MEDIUM,
                            message=(
                                f"{product.name} keeps being purchased ({tx.reference_number}) while "
                                f"stock is {product.stock}, far above the minimum of {product.min_stock_level}."
                            ),
                            recommendation=(
                                f"Pause purchasing {product.name} until stock nears its reorder point "
                                "to free up working capital."
                            ),
                        )
                    )
        return findings

    def _abnormal_purchase_prices(
        self, purchases: list[Transaction], catalog: dict[str, Product]
    ) -> list[AuditFinding]:
        findings = []
        for tx in purchases:
            for item in tx.items:
                product = catalog.get(item.product_id)
                if product is None or product.cost <= 0:
                    continue
                deviation = (item.price_at_moment - product.cost) / product.cost
                if abs(deviation) > settings.PRICE_DEVIATION_RATIO:
                    findings.append(
                        AuditFinding(
                            severity=Severity.HIGH,
                            message=(
                                f"{tx.reference_number} bought {item.product_name} at "
                                f"{item.price_at_moment:,.0f} against a usual cost of "
                                f"{product.cost:,.0f} ({deviation:+.0%})."
                            ),
                            recommendation=(
                                f"Verify the supplier invoice from {tx.counterparty} and "
                                "require approval for off-price purchases."
                            ),
                        )
                    )
        return findings

    def _credit_concentration(self, transactions: list[Transaction]) -> list[AuditFinding]:
        credit_sales = pd.DataFrame(
            [
                {"counterparty": tx.counterparty, "amount": tx.total_amount}
                for tx in transactions
                if tx.type == TransactionType.SALE and tx.payment_method == PaymentMethod.CREDIT
            ],
            columns=["counterparty", "amount"],
        )
        if credit_sales.empty:
            return []

        by_customer = credit_sales.groupby("counterparty")["amount"].sum()
        total_credit = float(by_customer.sum())
        if total_credit <= 0:
            return []

        shares = by_customer / total_credit
        concentrated = shares[shares > settings.CREDIT_CONCENTRATION_RATIO]
        return [
            AuditFinding(
                severity=Severity.HIGH,
                message=(
                    f"{customer} accounts for {float(share):.0%} of outstanding credit sales "
                    f"({float(by_customer[customer]):,.0f})."
                ),
                recommendation=(
                    f"Set a credit limit for {customer} and collect before extending further credit."
                ),
            )
            for customer, share in concentrated.items()
        ]

    def _split_transactions(self, transactions: list[Transaction]) -> list[AuditFinding]:
        window = timedelta(minutes=settings.SPLIT_WINDOW_MINUTES)
        groups: dict[tuple, list[Transaction]] = {}
        for tx in transactions:
            key = (tx.type, tx.counterparty.casefold())
            groups.setdefault(key, []).append(tx)

        findings = []
        for (tx_type, _), group in groups.items():
            group.sort(key=lambda tx: tx.date)
            start = 0
            for end in range(len(group)):
                while group[end].date - group[start].date > window:
                    start += 1
                burst = group[start : end + 1]
                if len(burst) >= settings.SPLIT_TRANSACTION_COUNT:
                    references = ", ".join(tx.reference_number for tx in burst)
                    findings.append(
                        AuditFinding(
                            severity=Severity.HIGH,
                            message=(
                                f"{len(burst)} {tx_type.value.lower()} transactions with "
                                f"{group[0].counterparty} within {settings.SPLIT_WINDOW_MINUTES} "
                                f"minutes ({references})."
                            ),
                            recommendation=(
                                "Check whether one order was split to stay under an approval limit."
                            ),
                        )
                    )
                    break
        return findings
