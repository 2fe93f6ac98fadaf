"""
PayPal payment plugin.

The four operations the host payment framework calls. Each one delegates to
the formatter, client, reconciliation and verification modules and re-raises
their errors under an operation-specific message, keeping the original as
``cause``.
"""

from functools import wraps
from typing import Optional

from core.errors import GatewayError
from payments.config import PayPalConfig
from payments.currencies import format_amount
from payments.models import AmountUpdate, CreatedPayment, Payment, VerifiedPurchase
from payments.paypal_client import PayPalClient
from payments.reconciliation import update_amount
from payments.store import PaymentStore
from payments.verification import SERVICE_NAME, process


def wrap_errors(message: str):
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except GatewayError as exc:
                raise GatewayError(
                    message,
                    exc.kind,
                    exc.details,
                    public=exc.public,
                    cause=exc,
                ) from exc

        return wrapper

    return decorator


class PayPalPlugin:
    """Adapter plugging PayPal into the host payment framework."""

    service = SERVICE_NAME

    def __init__(
        self,
        config: PayPalConfig,
        store: PaymentStore,
        *,
        client: Optional[PayPalClient] = None,
    ):
        self.config = config
        self.store = store
        self.client = client or PayPalClient(config)

    @classmethod
    def from_settings(cls, settings, store: PaymentStore, **kwargs) -> "PayPalPlugin":
        return cls(PayPalConfig.from_settings(settings), store, **kwargs)

    def get_gateway_credentials(self) -> dict[str, str]:
        """Credentials the checkout front end needs to open a PayPal order."""
        return {"service": self.service, "clientId": self.config.client_id}

    @wrap_errors("Could not create PayPal payment.")
    def create_gateway_payment(self, payment: Payment, intent: str = "CAPTURE") -> CreatedPayment:
        amount = format_amount(payment.currency, payment.amount)
        order = self.client.create_order(payment, amount, intent=intent)
        payment.service = self.service
        payment.service_id = order.id
        return CreatedPayment(order=order, payment=payment)

    @wrap_errors("Could not update PayPal payment amount.")
    def update_gateway_payment_amount(
        self, pending_payment: Payment, updated_payment: Payment
    ) -> AmountUpdate:
        return update_amount(self.client, self.store, pending_payment, updated_payment)

    @wrap_errors("Could not process PayPal payment.")
    def process_gateway_payment(self, payment: Payment) -> VerifiedPurchase:
        return process(self.client, self.store, payment)

    @wrap_errors("Could not void PayPal authorization.")
    def void_gateway_payment(self, authorization_id: str) -> None:
        """Release the funds held by an authorization that will not be captured."""
        self.client.void_authorization(authorization_id)
