import asyncio
import sys
from typing import Optional

from bizledger.advisors import get_advisor
from bizledger.exceptions import StoreUnavailableError
from bizledger.ledger import LedgerEngine
from bizledger.logger import setup_logger
from bizledger.schemas import AuditLog
from bizledger.storage import Store

logger = setup_logger()


async def run_audit(backend: Optional[str] = None) -> list[AuditLog]:
    """Runs the configured advisor over a snapshot of the ledger and catalog."""
    logger.info("--- Starting Internal Control Audit ---")
    engine = LedgerEngine(Store())
    advisor = get_advisor(backend)

    logs = await advisor.analyze_business_health(
        engine.get_transactions(), engine.get_products()
    )

    if not logs:
        logger.info("✅ No findings.")
    for log in logs:
        logger.info(f"[{log.severity.value}] {log.message}")
        logger.info(f"    -> {log.recommendation}")

    logger.info("--- Audit Finished ---")
    return logs


if __name__ == "__main__":
    try:
        asyncio.run(run_audit(sys.argv[1] if len(sys.argv) > 1 else None))
    except StoreUnavailableError as e:
        logger.error(f"❌ {e}")
        sys.exit(1)
