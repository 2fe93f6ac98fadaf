"""
Payment and PayPal order models.

``Payment`` is the host framework's record; the plugin borrows it for the
duration of an operation. ``PayPalOrder`` and its purchase units mirror the
PayPal Orders v2 payload; fields this plugin does not use are kept as extras
so the original representation survives a round trip.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    VOIDED = "VOIDED"


class OrderStatus(str, Enum):
    CREATED = "CREATED"
    SAVED = "SAVED"
    APPROVED = "APPROVED"
    VOIDED = "VOIDED"
    COMPLETED = "COMPLETED"
    PAYER_ACTION_REQUIRED = "PAYER_ACTION_REQUIRED"


def new_payment_id() -> str:
    return f"urn:uuid:{uuid4()}"


class Payment(BaseModel):
    """A host payment record."""

    id: str = Field(default_factory=new_payment_id)
    currency: str = "USD"
    amount: Optional[str] = None
    order_service: Optional[str] = None
    order_id: Optional[str] = None
    service: Optional[str] = None  # e.g. "paypal"
    service_id: Optional[str] = None  # the gateway's order id
    status: PaymentStatus = PaymentStatus.PENDING
    error: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_as_string(cls, value: Any) -> Any:
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return str(value)
        return value


class Amount(BaseModel):
    """A currency code and an exact decimal value."""

    currency_code: str
    value: Decimal

    model_config = ConfigDict(frozen=True)

    def to_api(self) -> dict[str, str]:
        return {"currency_code": self.currency_code, "value": format(self.value, "f")}


class PurchaseUnit(BaseModel):
    reference_id: Optional[str] = None
    amount: Amount

    model_config = ConfigDict(extra="allow")


class PayPalOrder(BaseModel):
    """A PayPal Orders v2 order as returned by the API."""

    id: str
    status: str
    intent: Optional[str] = None
    purchase_units: list[PurchaseUnit] = Field(default_factory=list)
    links: list[dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PayPalOrder":
        return cls.model_validate(data)

    def link(self, rel: str) -> Optional[str]:
        for link in self.links:
            if link.get("rel") == rel:
                return link.get("href")
        return None

    @property
    def approve_link(self) -> Optional[str]:
        return self.link("approve")

    def total_cost(self) -> Decimal:
        """Sum of every purchase unit amount."""
        return sum((unit.amount.value for unit in self.purchase_units), Decimal(0))

    def currencies(self) -> set[str]:
        return {unit.amount.currency_code for unit in self.purchase_units}


class VerifiedPurchase(BaseModel):
    """The purchase unit of a completed order, with the order's total cost."""

    reference_id: Optional[str] = None
    amount: Amount
    total_cost: Decimal


class AuthToken(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 0

    model_config = ConfigDict(frozen=True, extra="ignore")

    @property
    def authorization(self) -> str:
        return f"{self.token_type} {self.access_token}"


class CreatedPayment(BaseModel):
    order: PayPalOrder
    payment: Payment


class AmountUpdate(BaseModel):
    updated_order: PayPalOrder
    payment: Payment
