"""
Order verification.

A payment is only accepted once its PayPal order is COMPLETED, carries a
purchase unit, and no other local payment already claims the same order.
Failures that end the payment's life are written back to the store before
the error is raised.
"""

import structlog

from core.errors import ErrorKind, GatewayError
from core.logging import GatewayEvents
from core.metrics import verifications
from payments.models import (
    OrderStatus,
    Payment,
    PaymentStatus,
    PayPalOrder,
    PurchaseUnit,
    VerifiedPurchase,
)
from payments.paypal_client import PayPalClient
from payments.store import PaymentStore

log = structlog.get_logger(__name__)

SERVICE_NAME = "paypal"


def _fail(store: PaymentStore, payment: Payment, status: PaymentStatus, message: str) -> None:
    payment.status = status
    payment.error = message
    store.save(payment)


def get_order_from_payment(
    client: PayPalClient, store: PaymentStore, payment: Payment
) -> PayPalOrder:
    """
    Fetch the PayPal order recorded on ``payment``.

    If it cannot be fetched the payment is marked FAILED and saved, then the
    error is raised.
    """
    if not payment.service_id:
        message = "PayPal order not found."
        _fail(store, payment, PaymentStatus.FAILED, message)
        raise GatewayError(
            message, ErrorKind.NOT_FOUND, {"paymentId": payment.id}, public=True
        )
    try:
        return client.get_order(payment.service_id)
    except GatewayError as exc:
        _fail(store, payment, PaymentStatus.FAILED, exc.message)
        raise


def verify_purchase(order: PayPalOrder) -> PurchaseUnit:
    # PayPal supports one purchase unit per order, so only the first is used.
    if not order.purchase_units:
        raise GatewayError(
            "Missing PayPal purchase(s).", ErrorKind.DATA, {"orderId": order.id}
        )
    return order.purchase_units[0]


def verify_order(
    client: PayPalClient, store: PaymentStore, payment: Payment, order: PayPalOrder
) -> VerifiedPurchase:
    if order.status == OrderStatus.CREATED.value:
        # nobody approved it; it can never complete now
        client.delete_order(order)
        message = "PayPal order canceled."
        _fail(store, payment, PaymentStatus.VOIDED, message)
        verifications.labels(result="canceled").inc()
        log.info(GatewayEvents.ORDER_CANCELED, order_id=order.id, payment_id=payment.id)
        raise GatewayError(
            message, ErrorKind.DATA, {"orderId": order.id, "status": order.status}, public=True
        )

    if order.status != OrderStatus.COMPLETED.value:
        message = f"Expected PayPal Status COMPLETED got {order.status}"
        _fail(store, payment, PaymentStatus.FAILED, message)
        verifications.labels(result="failed").inc()
        log.warning(
            GatewayEvents.VERIFICATION_FAILED,
            order_id=order.id,
            payment_id=payment.id,
            status=order.status,
        )
        raise GatewayError(
            message, ErrorKind.DATA, {"orderId": order.id, "status": order.status}
        )

    purchase = verify_purchase(order)

    # Guards against a previous PayPal order being reused for a new payment.
    existing = store.find_all({"service": SERVICE_NAME, "service_id": order.id})
    if len(existing) > 1:
        verifications.labels(result="duplicate").inc()
        log.error(
            GatewayEvents.DUPLICATE_ORDER,
            order_id=order.id,
            payment_ids=[p.id for p in existing],
        )
        raise GatewayError(
            f"More than one Payment found for PayPal order {order.id}",
            ErrorKind.DUPLICATE,
            {"orderId": order.id, "count": len(existing)},
        )

    verified = VerifiedPurchase(
        reference_id=purchase.reference_id,
        amount=purchase.amount,
        total_cost=order.total_cost(),
    )
    verifications.labels(result="completed").inc()
    log.info(
        GatewayEvents.VERIFICATION_SUCCEEDED,
        order_id=order.id,
        payment_id=payment.id,
        total_cost=str(verified.total_cost),
    )
    return verified


def process(client: PayPalClient, store: PaymentStore, payment: Payment) -> VerifiedPurchase:
    order = get_order_from_payment(client, store, payment)
    return verify_order(client, store, payment, order)
