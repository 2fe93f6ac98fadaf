"""
PayPal configuration consumed by the plugin.

``PayPalConfig`` is built once from ``Settings`` and is read-only afterwards.
Required: ``api``, ``client_id``, ``secret``. Defaulted: ``brand_name``,
``shipping_preference``.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, SecretStr

from core.errors import ErrorKind, GatewayError
from core.settings import Settings

DEFAULT_BRAND_NAME = "bedrock-order"
DEFAULT_SHIPPING_PREFERENCE = "NO_SHIPPING"


class PayPalConfig(BaseModel):
    api: str
    client_id: str
    secret: SecretStr
    brand_name: str = DEFAULT_BRAND_NAME
    shipping_preference: str = DEFAULT_SHIPPING_PREFERENCE

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PayPalConfig":
        """Validate the PayPal settings eagerly and freeze them."""
        if settings is None:
            settings = Settings()
        secret = settings.PAYPAL_SECRET.get_secret_value() if settings.PAYPAL_SECRET else ""
        missing = [
            name
            for name, value in (
                ("PAYPAL_API", settings.PAYPAL_API),
                ("PAYPAL_CLIENT_ID", settings.PAYPAL_CLIENT_ID),
                ("PAYPAL_SECRET", secret),
            )
            if not value
        ]
        if missing:
            raise GatewayError(
                "Missing PayPal configuration.",
                ErrorKind.DATA,
                {"missing": missing},
            )
        return cls(
            api=settings.PAYPAL_API.rstrip("/"),
            client_id=settings.PAYPAL_CLIENT_ID,
            secret=settings.PAYPAL_SECRET,
            brand_name=settings.PAYPAL_BRAND_NAME or DEFAULT_BRAND_NAME,
            shipping_preference=settings.PAYPAL_SHIPPING_PREFERENCE
            or DEFAULT_SHIPPING_PREFERENCE,
        )
