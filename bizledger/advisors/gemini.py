import asyncio
import json
import logging
from typing import Any, Optional

import requests
from pydantic import TypeAdapter, ValidationError

from bizledger import settings
from bizledger.advisor import HealthAdvisor
from bizledger.exceptions import AdvisorUnavailableError
from bizledger.schemas import AuditFinding, Product, Severity, Transaction

logger = logging.getLogger(__name__)

FINDING_LIST = TypeAdapter(list[AuditFinding])

# Constrains the model output to the AuditFinding shape.
RESPONSE_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "severity": {"type": "STRING", "enum": ["LOW", "MEDIUM", "HIGH"]},
            "message": {
                "type": "STRING",
                "description": "Summary of the finding for management",
            },
            "recommendation": {
                "type": "STRING",
                "description": "Specific corrective action",
            },
        },
        "required": ["severity", "message", "recommendation"],
    },
}

PROMPT_TEMPLATE = """
Role: you are the digital internal auditor and business analyst for a small retail business.
Goal: analyze the transaction data for information quality (management) and compliance (internal control).

Anomaly and efficiency checks:
1. EXPENDITURE CYCLE (purchasing):
   - Overstocking: purchases of items whose stock is still far above the minimum level (idle capital).
   - Abnormal prices: purchases at prices that look suspicious compared to the usual unit cost.
2. REVENUE CYCLE (sales):
   - Credit risk: large credit sales to a single party without a settlement history (bad debt risk).
   - Unusual patterns: repeated transactions in a short time (split transactions) to avoid authorization.
3. INTERNAL CONTROL (fraud detection):
   - Any sign of stock manipulation?
   - Is cash flow consistent with sales activity?

Input data (JSON):
{context}

Required output: a JSON array of audit findings.
Severity levels:
- 'HIGH' (fraud indication or major financial risk),
- 'MEDIUM' (operational inefficiency),
- 'LOW' (improvement suggestion).
"""


def build_context(transactions: list[Transaction], products: list[Product]) -> dict[str, Any]:
    """Condenses the snapshot to the fields the auditor needs."""
    return {
        "recent_transactions": [
            {
                "date": tx.date.isoformat(),
                "type": tx.type.value,
                "total": tx.total_amount,
                "method": tx.payment_method.value,
                "ref": tx.reference_number,
                "counterparty": tx.counterparty,
                "items": [
                    {"name": item.product_name, "qty": item.quantity, "price": item.price_at_moment}
                    for item in tx.items
                ],
            }
            for tx in transactions
        ],
        "inventory_status": [
            {
                "name": product.name,
                "current_stock": product.stock,
                "min_level": product.min_stock_level,
                "cost": product.cost,
            }
            for product in products
        ],
    }


def build_prompt(transactions: list[Transaction], products: list[Product]) -> str:
    context = json.dumps(build_context(transactions, products), ensure_ascii=False)
    return PROMPT_TEMPLATE.format(context=context)


class GeminiAdvisor(HealthAdvisor):
    """Asks the Gemini generateContent endpoint for findings over the snapshot."""

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        endpoint: Optional[str] = None,
        session: Optional[requests.Session] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.endpoint = endpoint or settings.GEMINI_ENDPOINT
        self.session = session if session is not None else requests.Session()

    async def analyze(
        self, transactions: list[Transaction], products: list[Product]
    ) -> list[AuditFinding]:
        if not self.api_key:
            raise AdvisorUnavailableError(
                "Gemini API key is not configured.",
                "Running in offline demo mode. Set GEMINI_API_KEY to enable automated audits.",
                severity=Severity.LOW,
            )

        prompt = build_prompt(transactions, products)
        raw_text = await asyncio.to_thread(self._generate, prompt)
        if not raw_text:
            return []

        try:
            return FINDING_LIST.validate_json(raw_text)
        except ValidationError as e:
            raise AdvisorUnavailableError(
                "The audit service returned findings in an unexpected format.",
                "Run the audit again; if it keeps failing, check the configured model.",
            ) from e

    def _generate(self, prompt: str) -> str:
        """Blocking HTTP call; runs in a worker thread."""
        url = self.endpoint.format(model=self.model)
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }
        logger.info(f"🚀 Requesting audit from {self.model}")

        try:
            response = self.session.post(
                url,
                json=body,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            raise AdvisorUnavailableError(
                f"Could not reach the audit service: {e}",
                "Make sure the internet connection is stable and the API key is valid.",
            ) from e

        candidates = payload.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)
