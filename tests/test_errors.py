"""Tests for the error taxonomy and PayPal configuration."""

import pytest
from pydantic import SecretStr

from core.errors import (
    AuthenticationError,
    ErrorKind,
    GatewayError,
    kind_for_status,
    upstream_details,
)
from core.settings import Settings
from payments.config import PayPalConfig


@pytest.mark.parametrize(
    "status,kind",
    [
        (None, ErrorKind.NETWORK),
        (400, ErrorKind.DATA),
        (401, ErrorKind.NOT_ALLOWED),
        (402, ErrorKind.PAYMENT_INCOMPLETE),
        (403, ErrorKind.NOT_ALLOWED),
        (404, ErrorKind.NOT_FOUND),
        (405, ErrorKind.CONSTRAINT),
        (408, ErrorKind.NETWORK),
        (409, ErrorKind.DUPLICATE),
        (410, ErrorKind.ENDPOINT_MISSING),
        (411, ErrorKind.CONSTRAINT),
        (413, ErrorKind.CONSTRAINT),
        (415, ErrorKind.CONSTRAINT),
        (422, ErrorKind.DATA),
        (500, ErrorKind.NETWORK),
        (504, ErrorKind.NETWORK),
    ],
)
def test_kind_for_status(status, kind):
    assert kind_for_status(status) is kind


def test_error_kinds_are_closed():
    assert [kind.value for kind in ErrorKind] == [
        "Data",
        "NotFound",
        "Duplicate",
        "NotAllowed",
        "Network",
        "Constraint",
        "PaymentIncomplete",
        "EndpointMissing",
    ]


def test_gateway_error_defaults():
    err = GatewayError("Something failed.")
    assert str(err) == "Something failed."
    assert err.kind is ErrorKind.DATA
    assert err.details == {}
    assert err.public is False
    assert err.cause is None


def test_gateway_error_to_dict_includes_cause():
    cause = GatewayError("Inner.", ErrorKind.NOT_FOUND, {"id": "X"}, public=True)
    err = GatewayError("Outer.", cause.kind, cause.details, public=True, cause=cause)

    assert err.to_dict() == {
        "message": "Outer.",
        "type": "NotFound",
        "details": {"id": "X"},
        "public": True,
        "cause": {
            "message": "Inner.",
            "type": "NotFound",
            "details": {"id": "X"},
            "public": True,
        },
    }
    # details are copied, not shared
    err.details["extra"] = 1
    assert "extra" not in cause.details


def test_authentication_error_is_gateway_error():
    assert issubclass(AuthenticationError, GatewayError)


def test_upstream_details_orders_api():
    body = {
        "name": "UNPROCESSABLE_ENTITY",
        "message": "The requested action could not be performed.",
        "debug_id": "abc123",
        "details": [{"issue": "ORDER_ALREADY_CAPTURED"}],
    }
    assert upstream_details(422, body, "PAYPAL_ERROR") == {
        "httpStatusCode": 422,
        "name": "UNPROCESSABLE_ENTITY",
        "message": "The requested action could not be performed.",
        "debugId": "abc123",
        "issues": [{"issue": "ORDER_ALREADY_CAPTURED"}],
    }


def test_upstream_details_oauth_and_empty_bodies():
    oauth = upstream_details(401, {"error": "invalid_client", "error_description": "Bad"}, "X")
    assert oauth == {"httpStatusCode": 401, "name": "invalid_client", "message": "Bad"}
    assert upstream_details(None, "not json", "X") == {
        "httpStatusCode": None,
        "name": "X",
        "message": "X",
    }


def test_config_from_settings():
    settings = Settings(
        PAYPAL_API="https://api.sandbox.paypal.com/",
        PAYPAL_CLIENT_ID="id",
        PAYPAL_SECRET=SecretStr("shh"),
        PAYPAL_BRAND_NAME="my-shop",
    )
    config = PayPalConfig.from_settings(settings)

    assert config.api == "https://api.sandbox.paypal.com"
    assert config.secret.get_secret_value() == "shh"
    assert config.brand_name == "my-shop"
    assert config.shipping_preference == "NO_SHIPPING"
    assert "shh" not in repr(config)


def test_config_from_environment():
    config = PayPalConfig.from_settings()
    assert config.client_id == "test_client_id"
    assert config.brand_name == "test-project"


def test_config_missing_values():
    settings = Settings(PAYPAL_API="", PAYPAL_CLIENT_ID="id", PAYPAL_SECRET=SecretStr(""))

    with pytest.raises(GatewayError) as exc_info:
        PayPalConfig.from_settings(settings)

    assert exc_info.value.details == {"missing": ["PAYPAL_API", "PAYPAL_SECRET"]}


def test_config_is_frozen(paypal_config):
    with pytest.raises(ValueError):
        paypal_config.client_id = "other"
