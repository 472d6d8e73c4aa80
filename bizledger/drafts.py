import logging
import uuid
from typing import Optional

from . import settings, utils
from .exceptions import DraftError
from .schemas import (
    PaymentMethod,
    Product,
    Transaction,
    TransactionItem,
    TransactionStatus,
    TransactionType,
)

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHODS = {
    TransactionType.SALE: PaymentMethod.CASH,
    # Purchase orders are usually settled on credit first.
    TransactionType.PURCHASE: PaymentMethod.CREDIT,
}


class TransactionDraft:
    """
    A cart of lines being assembled into a sale or a purchase order.

    Sale lines snapshot the selling price and are capped at the stock on hand
    when added; purchase lines snapshot the unit cost. Line totals are always
    derived from quantity and price.
    """

    def __init__(self, transaction_type: TransactionType):
        self.type = transaction_type
        self._lines: dict[str, TransactionItem] = {}

    @property
    def items(self) -> list[TransactionItem]:
        return list(self._lines.values())

    @property
    def total(self) -> float:
        return sum(item.total for item in self._lines.values())

    def is_empty(self) -> bool:
        return not self._lines

    def add_product(self, product: Product, quantity: int = 1) -> bool:
        """Adds quantity of product to the draft. Returns False if nothing changed."""
        if quantity < 1:
            return False

        existing = self._lines.get(product.id)
        current = existing.quantity if existing is not None else 0
        new_quantity = current + quantity

        if self.type == TransactionType.SALE:
            if product.stock <= 0:
                return False
            new_quantity = min(new_quantity, product.stock)
            if new_quantity == current:
                return False

        if existing is not None:
            self._lines[product.id] = existing.model_copy(update={"quantity": new_quantity})
        else:
            price = product.price if self.type == TransactionType.SALE else product.cost
            self._lines[product.id] = TransactionItem(
                product_id=product.id,
                product_name=product.name,
                quantity=new_quantity,
                price_at_moment=price,
            )
        return True

    def update_quantity(self, product_id: str, quantity: int) -> bool:
        existing = self._lines.get(product_id)
        if existing is None or quantity < 1:
            return False
        self._lines[product_id] = existing.model_copy(update={"quantity": quantity})
        return True

    def remove(self, product_id: str) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def build(
        self, counterparty: str, payment_method: Optional[PaymentMethod] = None
    ) -> Transaction:
        if not self._lines:
            raise DraftError(f"Cannot build a {self.type.value.lower()} without items")
        if not counterparty or not counterparty.strip():
            raise DraftError("A customer or supplier name is required")

        prefix = settings.REFERENCE_PREFIXES[self.type.value]
        transaction = Transaction(
            id=str(uuid.uuid4()),
            date=utils.utc_now(),
            type=self.type,
            items=self.items,
            payment_method=payment_method or DEFAULT_PAYMENT_METHODS[self.type],
            counterparty=counterparty,
            status=TransactionStatus.COMPLETED,
            reference_number=utils.generate_reference_number(prefix),
        )
        logger.debug(f"Built {transaction.reference_number} for {transaction.counterparty}")
        return transaction
