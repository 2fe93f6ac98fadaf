"""Test configuration and fixtures."""

import os

os.environ.update(
    {
        "ENVIRONMENT": "test",
        "DISABLE_TRACING": "1",
        "DATABASE_URL": "sqlite:///:memory:",
        "PAYPAL_API": "https://api.sandbox.paypal.com",
        "PAYPAL_CLIENT_ID": "test_client_id",
        "PAYPAL_SECRET": "test_secret",
        "PAYPAL_BRAND_NAME": "test-project",
    }
)

import copy
import itertools
import re
from urllib.parse import unquote

import pytest
import requests
from pydantic import SecretStr
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db.models import Base
from payments.config import PayPalConfig
from payments.paypal_client import PayPalClient
from payments.plugin import PayPalPlugin
from payments.token_cache import AuthTokenProvider, TokenCache

API = "https://api.sandbox.paypal.com"

DEFAULT_AMOUNT = {"currency_code": "USD", "value": "10.00"}

_PATCH_PATH = re.compile(r"^/purchase_units/@reference_id=='(?P<ref>.+)'/amount$")


class MockResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code, json_data=None, text=""):
        self.status_code = status_code
        self._json_data = json_data
        self.text = text

    def json(self):
        if self._json_data is None:
            raise ValueError("No JSON body")
        return self._json_data

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


def mock_order(order_id, reference_id, status, amount=None):
    """A PayPal order shaped like the Orders v2 API returns it."""
    return {
        "id": order_id,
        "intent": "CAPTURE",
        "status": status,
        "purchase_units": [
            {
                "reference_id": reference_id,
                "amount": dict(amount or DEFAULT_AMOUNT),
                "payee": {
                    "email_address": "test-user@business.example.com",
                    "merchant_id": "4GT7TC6JUVBN4",
                },
            }
        ],
        "links": [
            {
                "href": f"{API}/v2/checkout/orders/{order_id}",
                "rel": "self",
                "method": "GET",
            },
            {
                "href": f"https://www.sandbox.paypal.com/checkoutnow?token={order_id}",
                "rel": "approve",
                "method": "GET",
            },
        ],
    }


def error_body(name, message):
    return {"name": name, "message": message, "debug_id": "f1e2d3c4b5a69"}


class FakePayPal:
    """
    In-memory PayPal API behind a ``requests.Session``-like ``request`` method.

    ``failures`` maps ``(method, path)`` to a response (or exception) returned
    once instead of the normal behavior.
    """

    def __init__(self, api=API):
        self.api = api
        self.orders = {}
        self.requests = []
        self.failures = {}
        self.token = {
            "access_token": "A21AAFakeAccessToken",
            "token_type": "Bearer",
            "expires_in": 32400,
        }
        self.patch_override = None
        self.transactions = []
        self.authorizations = {}
        self.page_size = 100
        self._ids = itertools.count(1)

    # helpers used by tests
    def add_order(self, reference_id, status="CREATED", amount=None, order_id=None):
        order_id = order_id or f"5O190127TN{next(self._ids):06d}"
        self.orders[order_id] = mock_order(order_id, reference_id, status, amount)
        return order_id

    def set_status(self, order_id, status):
        self.orders[order_id]["status"] = status

    def calls(self, method=None):
        return [
            (r["method"], r["path"])
            for r in self.requests
            if method is None or r["method"] == method
        ]

    def order_calls(self):
        return [c for c in self.calls() if c[1] != "/v1/oauth2/token"]

    # requests.Session interface
    def request(self, method, url, headers=None, json=None, data=None, params=None, auth=None, **kwargs):
        assert url.startswith(self.api), url
        path = url[len(self.api):]
        self.requests.append(
            {
                "method": method,
                "path": path,
                "headers": dict(headers or {}),
                "json": copy.deepcopy(json),
                "data": data,
                "params": dict(params or {}),
                "auth": auth,
            }
        )
        failure = self.failures.pop((method, path), None)
        if isinstance(failure, Exception):
            raise failure
        if failure is not None:
            return failure

        if path == "/v1/oauth2/token":
            return MockResponse(200, dict(self.token))

        if not (headers or {}).get("Authorization", "").startswith("Bearer "):
            return MockResponse(401, {"error": "invalid_token", "error_description": "No token"})

        if method == "POST" and path == "/v2/checkout/orders":
            unit = json["purchase_units"][0]
            order_id = self.add_order(unit["reference_id"], "CREATED", unit["amount"])
            self.orders[order_id]["intent"] = json["intent"]
            return MockResponse(201, copy.deepcopy(self.orders[order_id]))

        if method == "GET" and path == "/v1/reporting/transactions":
            page = int(params["page"])
            start = (page - 1) * self.page_size
            total_pages = max(1, -(-len(self.transactions) // self.page_size))
            return MockResponse(
                200,
                {
                    "transaction_details": self.transactions[start:start + self.page_size],
                    "total_items": len(self.transactions),
                    "total_pages": total_pages,
                    "page": page,
                },
            )

        void = re.match(r"^/v2/payments/authorizations/(?P<id>[^/]+)/void$", path)
        if void and method == "POST":
            authorization_id = unquote(void.group("id"))
            if authorization_id not in self.authorizations:
                return MockResponse(
                    404, error_body("RESOURCE_NOT_FOUND", "The specified resource does not exist.")
                )
            if self.authorizations[authorization_id] != "CREATED":
                return MockResponse(
                    422, error_body("UNPROCESSABLE_ENTITY", "PREVIOUSLY_VOIDED")
                )
            self.authorizations[authorization_id] = "VOIDED"
            return MockResponse(204)

        match = re.match(r"^/v[12]/checkout/orders/(?P<id>[^/]+)(?P<rest>/capture)?$", path)
        if not match:
            return MockResponse(404, error_body("NOT_FOUND", "Unknown endpoint"))
        order_id = unquote(match.group("id"))
        order = self.orders.get(order_id)
        if order is None:
            return MockResponse(
                404,
                error_body("RESOURCE_NOT_FOUND", "The specified resource does not exist."),
            )

        if match.group("rest"):
            if order["status"] != "APPROVED":
                return MockResponse(422, error_body("UNPROCESSABLE_ENTITY", "ORDER_NOT_APPROVED"))
            order["status"] = "COMPLETED"
            return MockResponse(201, copy.deepcopy(order))

        if method == "GET":
            return MockResponse(200, copy.deepcopy(order))

        if order["status"] not in ("CREATED", "APPROVED"):
            return MockResponse(
                422, error_body("UNPROCESSABLE_ENTITY", "ORDER_ALREADY_COMPLETED")
            )

        if method == "PATCH":
            for op in json:
                ref = _PATCH_PATH.match(op["path"]).group("ref")
                unit = next(u for u in order["purchase_units"] if u["reference_id"] == ref)
                value = dict(op["value"])
                if self.patch_override:
                    value = self.patch_override(value)
                unit["amount"] = value
            return MockResponse(204)

        if method == "DELETE":
            del self.orders[order_id]
            return MockResponse(204)

        return MockResponse(405, error_body("METHOD_NOT_SUPPORTED", method))


class InMemoryPaymentStore:
    """Host payment store double that keeps copies like a database would."""

    def __init__(self):
        self.payments = {}
        self.saved = []

    def save(self, payment):
        self.payments[payment.id] = payment.model_copy()
        self.saved.append(payment.model_copy())
        return payment

    def get(self, payment_id):
        payment = self.payments.get(payment_id)
        return payment.model_copy() if payment else None

    def find_all(self, query):
        return [
            payment.model_copy()
            for payment in self.payments.values()
            if all(getattr(payment, key) == value for key, value in query.items())
        ]


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def paypal_config():
    return PayPalConfig(
        api=API,
        client_id="test_client_id",
        secret=SecretStr("test_secret"),
        brand_name="test-project",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token_cache(clock):
    return TokenCache(clock=clock)


@pytest.fixture
def fake_paypal():
    return FakePayPal()


@pytest.fixture
def token_provider(token_cache, fake_paypal):
    return AuthTokenProvider(cache=token_cache, session=fake_paypal)


@pytest.fixture
def paypal_client(paypal_config, fake_paypal, token_provider):
    return PayPalClient(paypal_config, session=fake_paypal, token_provider=token_provider)


@pytest.fixture
def store():
    return InMemoryPaymentStore()


@pytest.fixture
def plugin(paypal_config, store, paypal_client):
    return PayPalPlugin(paypal_config, store, client=paypal_client)


@pytest.fixture
def test_db_engine():
    """In-memory SQLite engine with the payments table."""
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_db_engine):
    return sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=test_db_engine
    )


@pytest.fixture
def client(plugin, store):
    """Test client wired to the fake PayPal API and the in-memory store."""
    from fastapi.testclient import TestClient

    from core.dependencies import get_plugin, get_store
    from db.session import reset_engines
    from main import app

    reset_engines()
    app.dependency_overrides[get_plugin] = lambda: plugin
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    reset_engines()
