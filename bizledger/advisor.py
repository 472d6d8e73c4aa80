import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from . import settings, utils
from .exceptions import AdvisorUnavailableError
from .schemas import AuditFinding, AuditLog, Product, Severity, Transaction

logger = logging.getLogger(__name__)


def degraded_log(severity: Severity, message: str, recommendation: str) -> AuditLog:
    """The single entry returned in place of findings when an advisor cannot answer."""
    return AuditLog(
        id=f"audit-{utils.epoch_millis()}-unavailable",
        timestamp=utils.utc_now(),
        severity=severity,
        message=message,
        recommendation=recommendation,
    )


class HealthAdvisor(ABC):
    """
    Abstract base class for audit advisors.

    Subclasses implement `analyze`, which may raise freely. Callers only use
    `analyze_business_health`, which bounds the call with a timeout and turns
    every failure into a single degraded AuditLog so the audit view never
    has to handle an exception.
    """

    name = "advisor"

    def __init__(self, timeout: Optional[float] = None, recent_limit: Optional[int] = None):
        self.timeout = timeout if timeout is not None else settings.ADVISOR_TIMEOUT
        self.recent_limit = (
            recent_limit if recent_limit is not None else settings.AUDIT_RECENT_LIMIT
        )

    async def analyze_business_health(
        self, transactions: Sequence[Transaction], products: Sequence[Product]
    ) -> list[AuditLog]:
        # The ledger is newest-first, so the head is the recent subset.
        recent = list(transactions[: self.recent_limit])
        logger.info(
            f"🔎 Running {self.name} audit on {len(recent)} transactions "
            f"and {len(products)} products"
        )

        try:
            findings = await asyncio.wait_for(
                self.analyze(recent, list(products)), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"❌ {self.name} audit timed out after {self.timeout}s")
            return [
                degraded_log(
                    Severity.MEDIUM,
                    "Audit service unavailable: no response in time.",
                    "Try running the audit again later.",
                )
            ]
        except AdvisorUnavailableError as e:
            logger.warning(f"⚠️ {self.name} audit unavailable: {e.message}")
            return [degraded_log(Severity(e.severity), e.message, e.recommendation)]
        except Exception as e:
            logger.exception(f"❌ {self.name} audit failed: {e}")
            return [
                degraded_log(
                    Severity.MEDIUM,
                    "Failed to analyze the current transaction patterns.",
                    "Make sure the connection is stable and the API key is valid.",
                )
            ]

        logger.info(f"✅ {self.name} audit returned {len(findings)} findings")
        return self._stamp(findings)

    @abstractmethod
    async def analyze(
        self, transactions: list[Transaction], products: list[Product]
    ) -> list[AuditFinding]:
        """
        Produces findings for the given snapshot. Raise AdvisorUnavailableError
        to choose the degraded message shown to the user.
        """
        pass

    @staticmethod
    def _stamp(findings: list[AuditFinding]) -> list[AuditLog]:
        millis = utils.epoch_millis()
        timestamp = utils.utc_now()
        return [
            AuditLog(
                id=f"audit-{millis}-{index}",
                timestamp=timestamp,
                severity=finding.severity,
                message=finding.message,
                recommendation=finding.recommendation,
            )
            for index, finding in enumerate(findings)
        ]
