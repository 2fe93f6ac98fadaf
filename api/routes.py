"""
API Routes Module

HTTP surface for the PayPal plugin contract:
- Gateway credentials for the checkout front end
- Payment creation, amount updates and processing
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from core.dependencies import get_plugin, get_store
from core.errors import ErrorKind, GatewayError
from payments.models import AmountUpdate, Payment, PaymentStatus, VerifiedPurchase
from payments.plugin import PayPalPlugin

from . import schemas

router = APIRouter()

HTTP_STATUS_BY_KIND = {
    ErrorKind.DATA: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DUPLICATE: 409,
    ErrorKind.NOT_ALLOWED: 403,
    ErrorKind.NETWORK: 502,
    ErrorKind.CONSTRAINT: 422,
    ErrorKind.PAYMENT_INCOMPLETE: 402,
    ErrorKind.ENDPOINT_MISSING: 410,
}


def public_message(exc: GatewayError) -> str:
    """The message shown to API clients; internal diagnostics stay in the logs."""
    if not exc.public:
        return "PayPal gateway error."
    if isinstance(exc.cause, GatewayError) and exc.cause.public:
        return f"{exc.message} {exc.cause.message}"
    return exc.message


async def gateway_error_handler(request: Request, exc: GatewayError):
    return JSONResponse(
        status_code=HTTP_STATUS_BY_KIND.get(exc.kind, 500),
        content={"detail": public_message(exc), "type": exc.kind.value},
    )


def _load_payment(store, payment_id: str) -> Payment:
    payment = store.get(payment_id)
    if payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


@router.get("/paypal/credentials")
def gateway_credentials(plugin: PayPalPlugin = Depends(get_plugin)):
    return plugin.get_gateway_credentials()


@router.post("/payments", response_model=schemas.CreatedPaymentOut)
def create_payment(
    body: schemas.CreatePaymentRequest,
    plugin: PayPalPlugin = Depends(get_plugin),
    store=Depends(get_store),
):
    payment = Payment(**body.payment.model_dump(exclude_none=True))
    created = plugin.create_gateway_payment(payment, intent=body.intent)
    store.save(created.payment)
    return schemas.CreatedPaymentOut(
        order=created.order,
        payment=created.payment,
        approve_link=created.order.approve_link,
    )


@router.get("/payments/{payment_id}", response_model=schemas.PaymentOut)
def read_payment(payment_id: str, store=Depends(get_store)):
    return _load_payment(store, payment_id).model_dump()


@router.patch("/payments/{payment_id}/amount", response_model=AmountUpdate)
def update_payment_amount(
    payment_id: str,
    body: schemas.UpdateAmountRequest,
    plugin: PayPalPlugin = Depends(get_plugin),
    store=Depends(get_store),
):
    pending = _load_payment(store, payment_id)
    updated = Payment(id=pending.id, currency=body.currency, amount=body.amount)
    result = plugin.update_gateway_payment_amount(pending, updated)
    store.save(result.payment)
    return result


@router.post("/payments/{payment_id}/process", response_model=VerifiedPurchase)
def process_payment(
    payment_id: str,
    plugin: PayPalPlugin = Depends(get_plugin),
    store=Depends(get_store),
):
    payment = _load_payment(store, payment_id)
    verified = plugin.process_gateway_payment(payment)
    payment.status = PaymentStatus.COMPLETED
    payment.error = None
    store.save(payment)
    return verified
