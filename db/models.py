"""
Database Models Module

SQLAlchemy ORM model backing the reference payment store.
"""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Enum, Index, String, Text
from sqlalchemy.orm import declarative_base

from payments.models import Payment, PaymentStatus

Base = declarative_base()


class PaymentRecord(Base):
    """A host payment and the gateway order it is tied to."""

    __tablename__ = "payments"
    __table_args__ = (Index("ix_payments_service_order", "service", "service_id"),)

    id = Column(String(255), primary_key=True)
    currency = Column(String(3), nullable=False, default="USD")
    # kept as text so the exact decimal string round-trips
    amount = Column(String(64))
    order_service = Column(String(255))
    order_id = Column(String(255))
    service = Column(String(50))
    service_id = Column(String(255))
    status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    error = Column(Text)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    FIELDS = (
        "currency",
        "amount",
        "order_service",
        "order_id",
        "service",
        "service_id",
        "status",
        "error",
    )

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentRecord":
        record = cls(id=payment.id)
        record.update_from(payment)
        return record

    def update_from(self, payment: Payment) -> None:
        for field in self.FIELDS:
            setattr(self, field, getattr(payment, field))

    def to_payment(self) -> Payment:
        return Payment(id=self.id, **{field: getattr(self, field) for field in self.FIELDS})

    def __repr__(self):
        return f"<PaymentRecord(id={self.id}, service_id={self.service_id}, status={self.status})>"
