"""
Error taxonomy for the PayPal gateway plugin.

Every failure raised by this package is a ``GatewayError`` carrying one
``ErrorKind``, a detail map and a ``public`` flag telling callers whether the
message is safe to show to end users.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    DATA = "Data"
    NOT_FOUND = "NotFound"
    DUPLICATE = "Duplicate"
    NOT_ALLOWED = "NotAllowed"
    NETWORK = "Network"
    CONSTRAINT = "Constraint"
    PAYMENT_INCOMPLETE = "PaymentIncomplete"
    ENDPOINT_MISSING = "EndpointMissing"


class GatewayError(Exception):
    """Base error for every failure surfaced by the plugin."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.DATA,
        details: dict[str, Any] | None = None,
        *,
        public: bool = False,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.details = dict(details or {})
        self.public = public
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        data = {
            "message": self.message,
            "type": self.kind.value,
            "details": self.details,
            "public": self.public,
        }
        if isinstance(self.cause, GatewayError):
            data["cause"] = self.cause.to_dict()
        return data

    def __repr__(self):
        return f"<{type(self).__name__}(kind={self.kind.value}, message={self.message!r})>"


class AuthenticationError(GatewayError):
    """Raised when an access token cannot be obtained from PayPal."""


def kind_for_status(status: int | None) -> ErrorKind:
    """Map an upstream HTTP status code to an ``ErrorKind``."""
    if status is None:
        return ErrorKind.NETWORK
    if status in (401, 403):
        return ErrorKind.NOT_ALLOWED
    if status == 405 or 411 <= status <= 415:
        return ErrorKind.CONSTRAINT
    if status == 402:
        return ErrorKind.PAYMENT_INCOMPLETE
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status == 408:
        return ErrorKind.NETWORK
    if status == 409:
        return ErrorKind.DUPLICATE
    if status == 410:
        return ErrorKind.ENDPOINT_MISSING
    if status >= 500:
        return ErrorKind.NETWORK
    return ErrorKind.DATA


def upstream_details(status: int | None, body: Any, fallback: str) -> dict[str, Any]:
    """
    Extract the structured detail PayPal sends back with an error.

    Orders API errors use ``name``/``message``/``debug_id`` while the OAuth
    endpoint uses ``error``/``error_description``. Request headers and
    credentials are never copied into the result.
    """
    body = body if isinstance(body, dict) else {}
    details = {
        "httpStatusCode": status,
        "name": body.get("name") or body.get("error") or fallback,
        "message": body.get("message") or body.get("error_description") or fallback,
    }
    if body.get("debug_id"):
        details["debugId"] = body["debug_id"]
    if body.get("details"):
        details["issues"] = body["details"]
    return details
