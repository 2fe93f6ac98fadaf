"""
Currencies accepted by PayPal and amount normalization.

See https://developer.paypal.com/docs/api/reference/currency-codes/
"""

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Any

from core.errors import ErrorKind, GatewayError
from payments.models import Amount

SUPPORTED_CURRENCIES = frozenset(
    {
        "AUD",
        "BRL",
        "CAD",
        "CZK",
        "DKK",
        "EUR",
        "HKD",
        "HUF",
        "INR",
        "ILS",
        "JPY",
        "MYR",
        "MXN",
        "TWD",
        "NZD",
        "NOK",
        "PHP",
        "PLN",
        "GBP",
        "RUB",
        "SGD",
        "SEK",
        "CHF",
        "THB",
        "USD",
    }
)

# these currencies do not support decimal places
NO_DECIMAL_CURRENCIES = frozenset({"HUF", "JPY", "TWD"})

def decimal_places(currency: str) -> int:
    return 0 if currency in NO_DECIMAL_CURRENCIES else 2


def _invalid_amount(value: Any, currency: Any) -> GatewayError:
    return GatewayError(
        f"Invalid amount {value} {currency}.",
        ErrorKind.DATA,
        {"amount": {"currency_code": currency, "value": value}},
        public=True,
    )


def to_decimal(value: Any) -> Decimal:
    """Parse ``value`` into a finite Decimal, raising ``ValueError`` otherwise."""
    if value is None or isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, float):
        # go through repr so 0.1 stays 0.1
        value = str(value)
    if isinstance(value, str):
        value = value.strip()
    try:
        number = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(value) from exc
    if not number.is_finite():
        raise ValueError(value)
    return number


def format_amount(currency: Any, value: Any) -> Amount:
    """
    Validate and normalize an amount for PayPal.

    Raises a public ``GatewayError`` of kind Data for an unsupported currency
    or for a value that is not a finite, non-negative number.
    """
    if currency not in SUPPORTED_CURRENCIES:
        raise GatewayError(
            f"Unsupported PayPal currency {currency}.",
            ErrorKind.DATA,
            {"currency": currency},
            public=True,
        )
    try:
        number = to_decimal(value)
    except ValueError:
        raise _invalid_amount(value, currency) from None
    if number < 0:
        raise _invalid_amount(value, currency)

    exponent = Decimal(1).scaleb(-decimal_places(currency))
    try:
        # unary plus drops the sign of a negative zero
        normalized = (+number).quantize(exponent, rounding=ROUND_HALF_EVEN)
    except InvalidOperation:
        # more digits than the decimal context can hold
        raise _invalid_amount(value, currency) from None
    return Amount(currency_code=currency, value=normalized)
