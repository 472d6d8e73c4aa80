from typing import Optional, Sequence

import pandas as pd

from .schemas import Product, Transaction, TransactionType

TRANSACTION_COLUMNS = [
    "reference_number",
    "date",
    "type",
    "counterparty",
    "payment_method",
    "status",
    "items",
    "total_amount",
]

INVENTORY_COLUMNS = [
    "id",
    "sku",
    "name",
    "unit",
    "price",
    "cost",
    "stock",
    "min_stock_level",
    "stock_value",
    "low_stock",
]

CHART_LABELS = {
    TransactionType.SALE: "Revenue",
    TransactionType.PURCHASE: "Expense",
}


def transactions_frame(transactions: Sequence[Transaction]) -> pd.DataFrame:
    """One row per transaction, in ledger order (newest first)."""
    rows = [
        {
            "reference_number": tx.reference_number,
            "date": tx.date,
            "type": tx.type.value,
            "counterparty": tx.counterparty,
            "payment_method": tx.payment_method.value,
            "status": tx.status.value,
            "items": len(tx.items),
            "total_amount": tx.total_amount,
        }
        for tx in transactions
    ]
    return pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)


def inventory_frame(products: Sequence[Product], search: Optional[str] = None) -> pd.DataFrame:
    """
    Current stock per product, valued at cost, with the reorder flag.

    ``search`` keeps only products whose name contains it, ignoring case.
    """
    needle = (search or "").strip().casefold()
    rows = [
        {
            "id": product.id,
            "sku": product.sku,
            "name": product.name,
            "unit": product.unit,
            "price": product.price,
            "cost": product.cost,
            "stock": product.stock,
            "min_stock_level": product.min_stock_level,
            "stock_value": product.stock * product.cost,
            "low_stock": product.is_low_stock,
        }
        for product in products
        if needle in product.name.casefold()
    ]
    return pd.DataFrame(rows, columns=INVENTORY_COLUMNS)


def daily_totals(transactions: Sequence[Transaction]) -> pd.DataFrame:
    """Sales and purchase totals per calendar day (UTC), oldest day first."""
    columns = ["day", TransactionType.SALE.value, TransactionType.PURCHASE.value]
    df = transactions_frame(transactions)
    if df.empty:
        return pd.DataFrame(columns=columns)

    df["day"] = pd.to_datetime(df["date"], utc=True).dt.date
    pivot = df.pivot_table(
        index="day", columns="type", values="total_amount", aggfunc="sum", fill_value=0
    )
    pivot = pivot.reindex(columns=columns[1:], fill_value=0).sort_index()
    return pivot.reset_index()[columns]


def chart_series(transactions: Sequence[Transaction], limit: int = 10) -> list[dict]:
    """
    Points for the dashboard chart: the latest `limit` transactions,
    oldest first, labelled as revenue or expense.
    """
    return [
        {
            "name": tx.date.date().isoformat(),
            "amount": tx.total_amount,
            "type": CHART_LABELS[tx.type],
        }
        for tx in reversed(list(transactions[:limit]))
    ]
