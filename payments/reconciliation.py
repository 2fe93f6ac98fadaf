"""
Amount reconciliation between a local payment and its PayPal order.

Amounts are compared as exact decimals. An amount change is applied as a
single JSON-Patch ``replace`` on the purchase unit whose reference id is the
payment id, and the order is checked again after the patch.
"""

from decimal import Decimal
from typing import Any

import structlog

from core.errors import ErrorKind, GatewayError
from core.logging import GatewayEvents
from payments.currencies import format_amount
from payments.models import Amount, AmountUpdate, Payment, PayPalOrder
from payments.paypal_client import PayPalClient
from payments.store import PaymentStore
from payments.verification import get_order_from_payment

log = structlog.get_logger(__name__)


def get_total_cost(order: PayPalOrder) -> Decimal:
    return order.total_cost()


def compare_amount(order: PayPalOrder, expected: Amount) -> None:
    """Raise a Data error unless ``order`` totals exactly ``expected``."""
    total = get_total_cost(order)
    currencies = order.currencies()
    if total == expected.value and expected.currency_code in currencies:
        return
    log.warning(
        GatewayEvents.AMOUNT_MISMATCH,
        order_id=order.id,
        expected=expected.to_api(),
        total=str(total),
        currencies=sorted(currencies),
    )
    raise GatewayError(
        f"Expected {expected.value} {expected.currency_code} amount got {total} "
        f"{'/'.join(sorted(currencies)) or 'no currency'}",
        ErrorKind.DATA,
        {
            "orderId": order.id,
            "expected": expected.to_api(),
            "actual": {"value": str(total), "currencies": sorted(currencies)},
        },
    )


def build_amount_patch(order_id: str, reference_id: str, amount: Amount) -> list[dict[str, Any]]:
    """
    JSON-Patch replacing the amount of one purchase unit.

    PayPal addresses purchase units by reference id with its own filter
    syntax: ``/purchase_units/@reference_id=='<id>'/amount``. ``order_id`` is
    the order the patch is meant for; it is not part of the document.
    """
    if not order_id or not reference_id:
        raise GatewayError(
            "An order id and a reference id are required to patch an amount.",
            ErrorKind.DATA,
            {"orderId": order_id, "referenceId": reference_id},
        )
    return [
        {
            "op": "replace",
            "path": f"/purchase_units/@reference_id=='{reference_id}'/amount",
            "value": amount.to_api(),
        }
    ]


def update_amount(
    client: PayPalClient,
    store: PaymentStore,
    pending_payment: Payment,
    updated_payment: Payment,
) -> AmountUpdate:
    """
    Change the amount of ``pending_payment``'s order to ``updated_payment``'s.

    A patch that was applied is not rolled back if the re-fetched order does
    not match the new amount; the mismatch is raised for the caller.
    """
    # fields left unset on updated_payment keep the pending values
    changes = updated_payment.model_dump(exclude_unset=True)
    payment = pending_payment.model_copy(update=changes)

    # validated before any remote call
    amount = format_amount(payment.currency, payment.amount)
    expected = format_amount(pending_payment.currency, pending_payment.amount)

    order = get_order_from_payment(client, store, pending_payment)
    compare_amount(order, expected)

    patch = build_amount_patch(order.id, pending_payment.id, amount)
    updated_order = client.update_order(order, patch)
    compare_amount(updated_order, amount)

    log.info(
        GatewayEvents.AMOUNT_UPDATED,
        order_id=order.id,
        payment_id=payment.id,
        previous=expected.to_api(),
        amount=amount.to_api(),
    )
    return AmountUpdate(updated_order=updated_order, payment=payment)
