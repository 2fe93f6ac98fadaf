"""
PayPal Orders v2 client.

Thin wrapper over ``requests`` that issues the remote calls the plugin needs
and turns transport and protocol failures into ``GatewayError``. Nothing is
retried: the first failure is what the caller sees.
"""

from datetime import UTC, date, datetime
from typing import Any, Optional
from urllib.parse import quote

import requests
import structlog

from core.errors import ErrorKind, GatewayError, kind_for_status, upstream_details
from core.logging import GatewayEvents
from core.metrics import gateway_requests
from core.tracing import get_tracer
from payments.config import PayPalConfig
from payments.models import Amount, Payment, PayPalOrder
from payments.token_cache import AuthTokenProvider

log = structlog.get_logger(__name__)
tracer = get_tracer(__name__)

ORDERS_PATH = "/v2/checkout/orders"
LEGACY_ORDERS_PATH = "/v1/checkout/orders"
TRANSACTIONS_PATH = "/v1/reporting/transactions"
AUTHORIZATIONS_PATH = "/v2/payments/authorizations"


def _rfc3339(value: Any) -> str:
    """Normalize a date for the reporting API; missing values mean now."""
    if not value:
        value = datetime.now(UTC)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


class PayPalClient:
    def __init__(
        self,
        config: PayPalConfig,
        *,
        session: Optional[requests.Session] = None,
        token_provider: Optional[AuthTokenProvider] = None,
    ):
        self.config = config
        self.session = session or requests.Session()
        self.token_provider = token_provider or AuthTokenProvider(session=self.session)

    def _headers(self, json_body: bool = False) -> dict[str, str]:
        token = self.token_provider.get_token(
            self.config.client_id,
            self.config.secret.get_secret_value(),
            self.config.api,
        )
        headers = {"Authorization": token.authorization, "Accept": "application/json"}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _request(self, operation: str, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.config.api}{path}"
        with tracer.start_as_current_span(f"paypal.{operation}") as span:
            span.set_attribute("http.method", method)
            span.set_attribute("paypal.path", path)
            headers = self._headers(json_body="json" in kwargs)
            try:
                response = self.session.request(method, url, headers=headers, **kwargs)
                response.raise_for_status()
            except requests.HTTPError as exc:
                gateway_requests.labels(operation=operation, outcome="error").inc()
                status = exc.response.status_code if exc.response is not None else None
                try:
                    body = exc.response.json()
                except (AttributeError, ValueError):
                    body = None
                details = upstream_details(status, body, "PAYPAL_ERROR")
                span.set_attribute("http.status_code", status or 0)
                log.error(GatewayEvents.REQUEST_FAILED, operation=operation, **details)
                raise GatewayError(
                    f"PayPal {operation} request failed.",
                    kind_for_status(status),
                    details,
                    cause=exc,
                ) from exc
            except requests.RequestException as exc:
                gateway_requests.labels(operation=operation, outcome="error").inc()
                details = {"httpStatusCode": None, "name": type(exc).__name__, "message": str(exc)}
                log.error(GatewayEvents.REQUEST_FAILED, operation=operation, **details)
                raise GatewayError(
                    f"PayPal {operation} request failed.",
                    ErrorKind.NETWORK,
                    details,
                    cause=exc,
                ) from exc
            span.set_attribute("http.status_code", response.status_code)
            gateway_requests.labels(operation=operation, outcome="ok").inc()
            return response

    @staticmethod
    def _order_from(response: requests.Response, operation: str) -> PayPalOrder:
        try:
            return PayPalOrder.from_api(response.json())
        except ValueError as exc:
            raise GatewayError(
                f"PayPal {operation} returned an invalid order.",
                ErrorKind.DATA,
                {"httpStatusCode": response.status_code, "name": "INVALID_ORDER", "message": str(exc)},
                cause=exc,
            ) from exc

    def create_order(
        self, payment: Payment, amount: Amount, intent: str = "CAPTURE"
    ) -> PayPalOrder:
        """
        Create an order with a single purchase unit for ``payment``.

        The caller is responsible for recording the returned order id on the
        payment.
        """
        body = {
            "intent": intent,
            "purchase_units": [{"reference_id": payment.id, "amount": amount.to_api()}],
            "application_context": {
                "brand_name": self.config.brand_name,
                "shipping_preference": self.config.shipping_preference,
            },
        }
        response = self._request("create_order", "POST", ORDERS_PATH, json=body)
        order = self._order_from(response, "create_order")
        log.info(
            GatewayEvents.ORDER_CREATED,
            order_id=order.id,
            payment_id=payment.id,
            amount=body["purchase_units"][0]["amount"],
        )
        return order

    def get_order(self, order_id: str) -> PayPalOrder:
        try:
            response = self._request(
                "get_order", "GET", f"{ORDERS_PATH}/{quote(order_id, safe='')}"
            )
        except GatewayError as exc:
            if exc.kind is ErrorKind.NOT_FOUND:
                log.warning(GatewayEvents.ORDER_NOT_FOUND, order_id=order_id)
                raise GatewayError(
                    "PayPal order not found.",
                    ErrorKind.NOT_FOUND,
                    {**exc.details, "id": order_id},
                    public=True,
                    cause=exc,
                ) from exc
            raise
        order = self._order_from(response, "get_order")
        log.debug(GatewayEvents.ORDER_FETCHED, order_id=order.id, status=order.status)
        return order

    def update_order(self, order: PayPalOrder, patch: list[dict[str, Any]]) -> PayPalOrder:
        """
        Apply a JSON-Patch to ``order`` and return the re-fetched order.

        PayPal answers a successful PATCH with an empty body, so the response
        is ignored. Only CREATED or APPROVED orders can be patched.
        """
        self._request(
            "update_order", "PATCH", f"{ORDERS_PATH}/{quote(order.id, safe='')}", json=patch
        )
        updated = self.get_order(order.id)
        log.info(GatewayEvents.ORDER_PATCHED, order_id=order.id, patch=patch)
        return updated

    def delete_order(self, order: PayPalOrder) -> None:
        """Cancel an order. PayPal only allows this while it is CREATED or APPROVED."""
        self._request(
            "delete_order", "DELETE", f"{LEGACY_ORDERS_PATH}/{quote(order.id, safe='')}"
        )
        log.info(GatewayEvents.ORDER_DELETED, order_id=order.id)

    def capture_order(self, order: PayPalOrder) -> PayPalOrder:
        """Capture the payment of an order the payer has approved."""
        response = self._request(
            "capture_order",
            "POST",
            f"{ORDERS_PATH}/{quote(order.id, safe='')}/capture",
            json={},
        )
        captured = self._order_from(response, "capture_order")
        log.info(GatewayEvents.ORDER_CAPTURED, order_id=captured.id, status=captured.status)
        return captured

    def void_authorization(self, authorization_id: str) -> Optional[dict[str, Any]]:
        """
        Void an authorized payment so the held funds are released.

        Only authorizations that were not captured can be voided. PayPal may
        answer with an empty body, in which case None is returned.
        """
        response = self._request(
            "void_authorization",
            "POST",
            f"{AUTHORIZATIONS_PATH}/{quote(authorization_id, safe='')}/void",
        )
        log.info(GatewayEvents.AUTHORIZATION_VOIDED, authorization_id=authorization_id)
        try:
            return response.json()
        except ValueError:
            return None

    def get_transactions(
        self,
        start_date: Any = None,
        end_date: Any = None,
        page: int = 1,
    ) -> list[dict[str, Any]]:
        """
        Fetch the transactions reported between two dates.

        Follows pagination until PayPal's ``total_items`` have been collected.
        Each transaction's ``custom_field`` holds the local payment id.
        """
        try:
            params = {
                "start_date": _rfc3339(start_date),
                "end_date": _rfc3339(end_date),
                "page": page,
            }
        except (AttributeError, TypeError, ValueError) as exc:
            raise GatewayError(
                "Invalid PayPal transactions date range.",
                ErrorKind.DATA,
                {"startDate": str(start_date), "endDate": str(end_date)},
                public=True,
                cause=exc,
            ) from exc
        transactions: list[dict[str, Any]] = []
        while True:
            response = self._request(
                "get_transactions", "GET", TRANSACTIONS_PATH, params=dict(params)
            )
            data = response.json()
            batch = data.get("transaction_details") or []
            transactions.extend(batch)
            total = data.get("total_items", len(transactions))
            total_pages = data.get("total_pages")
            if not batch or len(transactions) >= total:
                break
            if total_pages is not None and params["page"] >= total_pages:
                break
            params["page"] += 1
        log.info(GatewayEvents.TRANSACTIONS_FETCHED, count=len(transactions))
        return transactions
