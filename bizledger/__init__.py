from bizledger.exceptions import (
    DraftError,
    DuplicateTransactionError,
    InsufficientStockError,
    LedgerError,
    StoreUnavailableError,
    UnknownProductError,
)
from bizledger.ledger import LedgerEngine, summarize
from bizledger.storage import InMemoryBackend, JsonFileBackend, Store

__all__ = [
    "DraftError",
    "DuplicateTransactionError",
    "InMemoryBackend",
    "InsufficientStockError",
    "JsonFileBackend",
    "LedgerEngine",
    "LedgerError",
    "Store",
    "StoreUnavailableError",
    "UnknownProductError",
    "summarize",
]
