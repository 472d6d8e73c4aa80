import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from bizledger.advisors.heuristic import HeuristicAdvisor
from bizledger.schemas import PaymentMethod, Severity, TransactionType

SALE = TransactionType.SALE
PURCHASE = TransactionType.PURCHASE


def analyze(transactions, products):
    return asyncio.run(HeuristicAdvisor().analyze(transactions, products))


@pytest.fixture
def healthy_products(products):
    # Every product comfortably above its reorder point but not overstocked.
    return [p.model_copy(update={"stock": p.min_stock_level * 2}) for p in products]


def test_clean_snapshot_has_no_findings(healthy_products):
    assert analyze([], healthy_products) == []


def test_low_stock_is_suggested_for_reorder(products):
    findings = analyze([], products)

    [finding] = findings
    assert finding.severity is Severity.LOW
    assert "Susu UHT Full Cream" in finding.message
    assert "MLK-004" in finding.recommendation


def test_purchasing_an_overstocked_product(make_transaction, healthy_products):
    cups = next(p for p in healthy_products if p.id == "3")
    overstocked = [p if p.id != "3" else cups.model_copy(update={"stock": 500}) for p in healthy_products]
    purchases = [
        make_transaction(PURCHASE, [("3", 200, 500)]),
        make_transaction(PURCHASE, [("3", 100, 500)]),
    ]

    findings = analyze(purchases, overstocked)

    [finding] = findings
    assert finding.severity is Severity.MEDIUM
    assert "Paper Cup 12oz" in finding.message


def test_abnormal_purchase_price(make_transaction, healthy_products):
    purchase = make_transaction(PURCHASE, [("1", 5, 60000), ("2", 5, 15500)], counterparty="CV Kopi Jaya")

    findings = analyze([purchase], healthy_products)

    [finding] = findings
    assert finding.severity is Severity.HIGH
    assert purchase.reference_number in finding.message
    assert "+33%" in finding.message
    assert "CV Kopi Jaya" in finding.recommendation


def test_credit_concentration(make_transaction, healthy_products):
    transactions = [
        make_transaction(SALE, [("1", 12, 75000)], PaymentMethod.CREDIT, "Hotel Melati"),
        make_transaction(SALE, [("2", 4, 25000)], PaymentMethod.CREDIT, "Warung Bu Sri"),
        make_transaction(SALE, [("1", 20, 75000)], PaymentMethod.CASH, "Warung Bu Sri"),
    ]

    findings = analyze(transactions, healthy_products)

    [finding] = findings
    assert finding.severity is Severity.HIGH
    assert finding.message.startswith("Hotel Melati accounts for 90%")


def test_split_transactions_in_a_short_window(make_transaction, healthy_products):
    start = datetime(2026, 10, 5, 14, 0, tzinfo=timezone.utc)
    burst = [
        make_transaction(SALE, [("3", 50, 1000)], counterparty="Kafe Senja", date=start + timedelta(minutes=m))
        for m in (0, 3, 7)
    ]

    findings = analyze(burst, healthy_products)

    [finding] = findings
    assert finding.severity is Severity.HIGH
    assert "3 sale transactions with Kafe Senja" in finding.message


def test_spread_out_transactions_are_not_split(make_transaction, healthy_products):
    start = datetime(2026, 10, 5, 14, 0, tzinfo=timezone.utc)
    spread = [
        make_transaction(SALE, [("3", 50, 1000)], counterparty="Kafe Senja", date=start + timedelta(hours=h))
        for h in (0, 1, 2)
    ]

    assert analyze(spread, healthy_products) == []


def test_full_audit_wraps_findings(make_transaction, products):
    logs = asyncio.run(HeuristicAdvisor().analyze_business_health([], products))

    assert len(logs) == 1
    assert logs[0].severity is Severity.LOW
