from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class TransactionType(str, Enum):
    SALE = "SALE"
    PURCHASE = "PURCHASE"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CREDIT = "CREDIT"  # Accounts receivable (sales) or payable (purchases)


class TransactionStatus(str, Enum):
    COMPLETED = "COMPLETED"
    PENDING = "PENDING"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Product(BaseModel):
    """
    A catalog entry and its on-hand quantity. Persisted with camelCase keys,
    the same shape the stored collection has always used.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    sku: str
    price: float = Field(..., ge=0)  # Selling price
    cost: float = Field(..., ge=0)  # Unit acquisition cost
    stock: int = Field(default=0, ge=0)
    min_stock_level: int = Field(default=0, ge=0, alias="minStockLevel")
    unit: str = "pcs"

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock_level


class TransactionItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    product_id: str = Field(..., alias="productId")
    # Snapshot of the product name when the transaction was created.
    product_name: str = Field(..., alias="productName")
    quantity: int = Field(..., gt=0)
    price_at_moment: float = Field(..., ge=0, alias="priceAtMoment")

    @computed_field
    @property
    def total(self) -> float:
        return self.quantity * self.price_at_moment


class Transaction(BaseModel):
    """
    A committed (or about to be committed) sale or purchase.

    ``totalAmount`` is derived from the items; a value supplied on input is
    ignored, so the stored figure can never drift from its lines.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    date: datetime
    type: TransactionType
    items: list[TransactionItem] = Field(..., min_length=1)
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")
    counterparty: str  # Customer name or supplier name
    status: TransactionStatus = TransactionStatus.COMPLETED
    reference_number: str = Field(..., alias="referenceNumber")  # Invoice no. or PO no.

    @field_validator("counterparty")
    @classmethod
    def counterparty_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("counterparty must not be blank")
        return value

    @computed_field(alias="totalAmount")
    @property
    def total_amount(self) -> float:
        return sum(item.total for item in self.items)


class FinancialSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    revenue: float = 0
    expenses: float = 0
    receivables: float = 0
    payables: float = 0

    @computed_field
    @property
    def profit(self) -> float:
        return self.revenue - self.expenses

    @computed_field(alias="cashBalance")
    @property
    def cash_balance(self) -> float:
        # Money actually moved: cash sales in, cash purchases out.
        return (self.revenue - self.receivables) - (self.expenses - self.payables)


class AuditFinding(BaseModel):
    """Shape an advisor returns for each finding, before it is stamped."""

    severity: Severity
    message: str
    recommendation: str


class AuditLog(BaseModel):
    id: str
    timestamp: datetime
    severity: Severity
    message: str
    recommendation: str
