from typing import Any, Protocol

from payments.models import Payment


class PaymentStore(Protocol):
    """The host framework's payment record store."""

    def save(self, payment: Payment) -> Payment:
        ...

    def find_all(self, query: dict[str, Any]) -> list[Payment]:
        """Payments matching every key in ``query`` (e.g. service, service_id)."""
        ...
