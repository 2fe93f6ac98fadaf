from typing import Any, Optional

from sqlalchemy import select

from db.models import PaymentRecord
from db.session import SessionLocal, manual_session
from payments.models import Payment

QUERY_FIELDS = {"service", "service_id", "status", "order_service", "order_id"}


class SqlPaymentStore:
    """``PaymentStore`` backed by the ``payments`` table."""

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def save(self, payment: Payment) -> Payment:
        with manual_session(self.session_factory) as session:
            record = session.get(PaymentRecord, payment.id)
            if record is None:
                session.add(PaymentRecord.from_payment(payment))
            else:
                record.update_from(payment)
        return payment

    def get(self, payment_id: str) -> Optional[Payment]:
        with manual_session(self.session_factory) as session:
            record = session.get(PaymentRecord, payment_id)
            return record.to_payment() if record else None

    def find_all(self, query: dict[str, Any]) -> list[Payment]:
        unknown = set(query) - QUERY_FIELDS
        if unknown:
            raise ValueError(f"Unsupported payment query fields: {sorted(unknown)}")
        statement = select(PaymentRecord).filter_by(**query)
        with manual_session(self.session_factory) as session:
            return [record.to_payment() for record in session.scalars(statement)]
