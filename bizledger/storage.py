import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from . import settings
from .exceptions import StoreUnavailableError
from .schemas import Product, Transaction

logger = logging.getLogger(__name__)

PRODUCT_LIST = TypeAdapter(list[Product])
TRANSACTION_LIST = TypeAdapter(list[Transaction])


class StorageBackend(ABC):
    """
    The durable medium behind the store: a flat key -> serialized payload map.
    Swapping the backend is how tests replace the disk with memory.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Returns the raw payload stored under key, or None if nothing was ever written."""
        pass

    @abstractmethod
    def write(self, key: str, payload: str) -> None:
        """Overwrites the payload stored under key."""
        pass


class InMemoryBackend(StorageBackend):
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, payload: str) -> None:
        self._data[key] = payload


class JsonFileBackend(StorageBackend):
    """One <key>.json file per collection under a data directory."""

    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory) if directory is not None else settings.DATA_DIR

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StoreUnavailableError(key, str(e)) from e

    def write(self, key: str, payload: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        # Write next to the target and swap it in, so readers never see half a file.
        tmp_path = path.with_name(f"{path.name}.tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, path)


class Store:
    """
    Products and transactions persisted as two whole collections.

    Every mutation is a full read-modify-write of the affected collection.
    Payloads are written as {"schemaVersion": N, "data": [...]}; a bare list is
    the legacy unversioned layout and is upgraded on the next write.
    """

    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        seed_products: Optional[list[dict[str, Any]]] = None,
    ):
        self.backend = backend if backend is not None else JsonFileBackend()
        self.seed_products = (
            seed_products if seed_products is not None else settings.SEED_PRODUCTS
        )
        self.products_key = settings.PRODUCTS_KEY
        self.transactions_key = settings.TRANSACTIONS_KEY

    # --- Products ---

    def get_products(self) -> list[Product]:
        products = self._load(self.products_key, PRODUCT_LIST)
        if products is None:
            logger.info(f"No stored products under '{self.products_key}'. Seeding catalog.")
            products = PRODUCT_LIST.validate_python(self.seed_products)
            self.set_products(products)
        return products

    def save_product(self, product: Product) -> None:
        products = self.get_products()
        for index, existing in enumerate(products):
            if existing.id == product.id:
                products[index] = product
                break
        else:
            products.append(product)
        self.set_products(products)

    def set_products(self, products: list[Product]) -> None:
        self._dump(self.products_key, PRODUCT_LIST, products)

    # --- Transactions ---

    def get_transactions(self) -> list[Transaction]:
        transactions = self._load(self.transactions_key, TRANSACTION_LIST)
        return transactions if transactions is not None else []

    def set_transactions(self, transactions: list[Transaction]) -> None:
        self._dump(self.transactions_key, TRANSACTION_LIST, transactions)

    # --- Serialization ---

    def _load(self, key: str, adapter: TypeAdapter) -> Optional[list]:
        raw = self.backend.read(key)
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreUnavailableError(key, f"invalid JSON ({e.msg})") from e

        data = self._unwrap(key, payload)
        try:
            return adapter.validate_python(data)
        except ValidationError as e:
            raise StoreUnavailableError(
                key, f"payload does not match schema ({e.error_count()} errors)"
            ) from e

    def _unwrap(self, key: str, payload: Any) -> Any:
        if isinstance(payload, list):
            return payload
        if not isinstance(payload, dict) or "data" not in payload:
            raise StoreUnavailableError(key, "unrecognized payload layout")
        version = payload.get("schemaVersion")
        # bool is an int subclass; a versioned envelope always starts at 1.
        if (
            isinstance(version, bool)
            or not isinstance(version, int)
            or not 1 <= version <= settings.SCHEMA_VERSION
        ):
            raise StoreUnavailableError(key, f"unsupported schema version {version!r}")
        return payload["data"]

    def _dump(self, key: str, adapter: TypeAdapter, items: list) -> None:
        envelope = {
            "schemaVersion": settings.SCHEMA_VERSION,
            "data": adapter.dump_python(items, mode="json", by_alias=True),
        }
        self.backend.write(key, json.dumps(envelope, ensure_ascii=False))
