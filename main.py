import sys

from bizledger import data_handler, reports
from bizledger.exceptions import StoreUnavailableError
from bizledger.ledger import LedgerEngine
from bizledger.logger import setup_logger
from bizledger.storage import Store

logger = setup_logger()


def run_dashboard() -> int:
    """Logs the financial summary and reorder list, then exports ledger and inventory reports."""
    logger.info("--- Business Dashboard ---")
    engine = LedgerEngine(Store())

    try:
        products = engine.get_products()
        transactions = engine.get_transactions()
    except StoreUnavailableError as e:
        logger.error(f"❌ {e}")
        logger.error("Fix or remove the stored file before continuing.")
        return 1

    summary = engine.get_financial_summary()
    logger.info(f"Revenue:      {summary.revenue:>15,.0f}")
    logger.info(f"Expenses:     {summary.expenses:>15,.0f}")
    logger.info(f"Net profit:   {summary.profit:>15,.0f}")
    logger.info(f"Cash balance: {summary.cash_balance:>15,.0f}")
    logger.info(f"Receivables:  {summary.receivables:>15,.0f}")
    logger.info(f"Payables:     {summary.payables:>15,.0f}")

    suggestions = [product for product in products if product.is_low_stock]
    if suggestions:
        logger.info("\n--- Reorder Suggestions ---")
        for product in suggestions:
            logger.warning(
                f"⚠️ {product.sku} {product.name}: {product.stock} {product.unit} "
                f"(min {product.min_stock_level})"
            )
    else:
        logger.info("\n✅ All products are above their reorder point.")

    logger.info(f"\n--- Recent Activity ({min(len(transactions), 10)} of {len(transactions)}) ---")
    for tx in transactions[:10]:
        logger.info(
            f"{tx.date:%Y-%m-%d} {tx.reference_number:<10} {tx.type.value:<8} "
            f"{tx.counterparty:<20} {tx.total_amount:>12,.0f}"
        )

    data_handler.save_outputs(reports.transactions_frame(transactions), "ledger_report", transactions)
    data_handler.save_outputs(reports.inventory_frame(products), "inventory_report", products)
    data_handler.save_outputs(reports.daily_totals(transactions), "daily_totals")

    logger.info("\n--- Dashboard Finished ---")
    return 0


if __name__ == "__main__":
    sys.exit(run_dashboard())
