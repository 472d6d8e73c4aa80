import asyncio
import json

import pytest
import requests

from bizledger.advisor import HealthAdvisor
from bizledger.advisors import GeminiAdvisor, HeuristicAdvisor, get_advisor
from bizledger.advisors.gemini import build_context
from bizledger.exceptions import AdvisorUnavailableError
from bizledger.schemas import AuditFinding, Severity, TransactionType


class FixtureAdvisor(HealthAdvisor):
    name = "fixture"

    def __init__(self, findings=None, error=None, delay=0, **kwargs):
        super().__init__(**kwargs)
        self.findings = findings or []
        self.error = error
        self.delay = delay
        self.received = None

    async def analyze(self, transactions, products):
        self.received = (transactions, products)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.findings


def run(advisor, transactions=(), products=()):
    return asyncio.run(advisor.analyze_business_health(list(transactions), list(products)))


@pytest.fixture
def ledger(make_transaction):
    return [
        make_transaction(TransactionType.SALE, [("1", n, 75000)]) for n in range(1, 6)
    ]


class TestHealthAdvisor:
    def test_findings_are_stamped(self, products):
        advisor = FixtureAdvisor(
            findings=[
                AuditFinding(severity=Severity.HIGH, message="Credit risk", recommendation="Collect"),
                AuditFinding(severity=Severity.LOW, message="Reorder milk", recommendation="Order"),
            ]
        )

        logs = run(advisor, products=products)

        assert [log.severity for log in logs] == [Severity.HIGH, Severity.LOW]
        assert logs[0].id.startswith("audit-") and logs[0].id.endswith("-0")
        assert logs[1].id.endswith("-1")
        assert logs[0].timestamp.tzinfo is not None

    def test_only_recent_transactions_are_sent(self, ledger, products):
        advisor = FixtureAdvisor(recent_limit=2)

        run(advisor, ledger, products)

        transactions, received_products = advisor.received
        assert transactions == ledger[:2]
        assert received_products == products

    def test_empty_result_is_valid(self):
        assert run(FixtureAdvisor()) == []

    def test_unexpected_error_becomes_single_degraded_entry(self):
        logs = run(FixtureAdvisor(error=RuntimeError("boom")))

        assert len(logs) == 1
        assert logs[0].severity is Severity.MEDIUM

    def test_unavailable_error_keeps_its_message_and_severity(self):
        error = AdvisorUnavailableError("Offline", "Configure a key", severity=Severity.LOW)

        [log] = run(FixtureAdvisor(error=error))

        assert log.severity is Severity.LOW
        assert log.message == "Offline"
        assert log.recommendation == "Configure a key"

    def test_timeout_becomes_service_unavailable(self):
        [log] = run(FixtureAdvisor(delay=1, timeout=0.01))

        assert log.severity is Severity.MEDIUM
        assert "unavailable" in log.message.lower()


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def gemini_reply(text):
    return FakeResponse({"candidates": [{"content": {"parts": [{"text": text}]}}]})


class TestGeminiAdvisor:
    def test_missing_api_key_is_a_low_severity_notice(self):
        session = FakeSession()

        [log] = run(GeminiAdvisor(api_key="", session=session))

        assert log.severity is Severity.LOW
        assert session.calls == []

    def test_findings_are_parsed(self, ledger, products):
        findings = [
            {"severity": "HIGH", "message": "Split sales to one customer", "recommendation": "Review approvals"},
            {"severity": "MEDIUM", "message": "Paper cups overstocked", "recommendation": "Pause orders"},
        ]
        session = FakeSession(gemini_reply(json.dumps(findings)))
        advisor = GeminiAdvisor(api_key="test-key", model="gemini-test", session=session, recent_limit=3)

        logs = run(advisor, ledger, products)

        assert [log.message for log in logs] == [f["message"] for f in findings]
        assert logs[0].severity is Severity.HIGH

        [(url, kwargs)] = session.calls
        assert "gemini-test:generateContent" in url
        assert kwargs["headers"]["x-goog-api-key"] == "test-key"
        config = kwargs["json"]["generationConfig"]
        assert config["responseMimeType"] == "application/json"
        assert config["responseSchema"]["type"] == "ARRAY"
        prompt = kwargs["json"]["contents"][0]["parts"][0]["text"]
        assert ledger[2].reference_number in prompt
        assert ledger[3].reference_number not in prompt

    def test_empty_reply_means_no_findings(self):
        session = FakeSession(FakeResponse({"candidates": []}))

        assert run(GeminiAdvisor(api_key="k", session=session)) == []

    def test_http_failure_is_degraded(self):
        session = FakeSession(FakeResponse({}, status_code=503))

        [log] = run(GeminiAdvisor(api_key="k", session=session))

        assert log.severity is Severity.MEDIUM

    def test_connection_failure_is_degraded(self):
        session = FakeSession(error=requests.exceptions.ConnectionError("offline"))

        [log] = run(GeminiAdvisor(api_key="k", session=session))

        assert log.severity is Severity.MEDIUM

    def test_malformed_reply_is_degraded(self):
        session = FakeSession(gemini_reply('[{"severity": "CRITICAL"}]'))

        [log] = run(GeminiAdvisor(api_key="k", session=session))

        assert log.severity is Severity.MEDIUM


def test_build_context_condenses_snapshot(ledger, products):
    context = build_context(ledger[:1], products)

    [tx] = context["recent_transactions"]
    assert tx["type"] == "SALE"
    assert tx["items"] == [{"name": "Kopi Arabika Premium", "qty": 1, "price": 75000}]
    assert context["inventory_status"][3] == {
        "name": "Susu UHT Full Cream",
        "current_stock": 5,
        "min_level": 12,
        "cost": 14000,
    }


class TestRegistry:
    def test_backends_by_name(self):
        assert isinstance(get_advisor("heuristic"), HeuristicAdvisor)
        assert isinstance(get_advisor("GEMINI", api_key="k"), GeminiAdvisor)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            get_advisor("oracle")
