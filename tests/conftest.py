"""
Pytest fixtures for the ledger tests.

Every test gets a fresh in-memory store seeded with the default catalog on
first read, and a ledger engine with the simulated latency disabled.
"""

import asyncio
import itertools
from datetime import datetime, timedelta, timezone

import pytest

from bizledger import settings
from bizledger.ledger import LedgerEngine
from bizledger.schemas import (
    PaymentMethod,
    Product,
    Transaction,
    TransactionItem,
    TransactionType,
)
from bizledger.storage import InMemoryBackend, Store

BASE_DATE = datetime(2026, 10, 1, 8, 0, tzinfo=timezone.utc)

SEED_NAMES = {product["id"]: product["name"] for product in settings.SEED_PRODUCTS}


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend):
    return Store(backend)


@pytest.fixture
def engine(store):
    return LedgerEngine(store, latency=0)


@pytest.fixture
def products():
    return [Product.model_validate(data) for data in settings.SEED_PRODUCTS]


@pytest.fixture
def commit(engine):
    """Runs a commit to completion, the way an awaiting caller would."""

    def _commit(transaction):
        return asyncio.run(engine.create_transaction(transaction))

    return _commit


@pytest.fixture
def make_transaction():
    """
    Builds transactions from (product_id, quantity, unit_price) lines.
    Transactions are spaced an hour apart unless a date is given.
    """
    counter = itertools.count(1)

    def _make(
        tx_type,
        lines,
        payment_method=PaymentMethod.CASH,
        counterparty="Toko Sinar Jaya",
        date=None,
    ):
        n = next(counter)
        prefix = "INV" if tx_type == TransactionType.SALE else "PO"
        return Transaction(
            id=f"tx-{n}",
            date=date or BASE_DATE + timedelta(hours=n),
            type=tx_type,
            items=[
                TransactionItem(
                    product_id=product_id,
                    product_name=SEED_NAMES.get(product_id, f"Item {product_id}"),
                    quantity=quantity,
                    price_at_moment=price,
                )
                for product_id, quantity, price in lines
            ],
            payment_method=payment_method,
            counterparty=counterparty,
            reference_number=f"{prefix}-{n:06d}",
        )

    return _make


@pytest.fixture
def stock_of(store):
    def _stock_of(product_id):
        return next(p.stock for p in store.get_products() if p.id == product_id)

    return _stock_of
