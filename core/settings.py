from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import ConfigDict, SecretStr
from pydantic_settings import BaseSettings

# Load .env file automatically
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # PayPal gateway (required, validated by PayPalConfig.from_settings)
    PAYPAL_API: Optional[str] = None
    PAYPAL_CLIENT_ID: Optional[str] = None
    PAYPAL_SECRET: Optional[SecretStr] = None

    # PayPal gateway (defaulted)
    PAYPAL_BRAND_NAME: str = "bedrock-order"
    PAYPAL_SHIPPING_PREFERENCE: str = "NO_SHIPPING"

    # Host payment store
    DATABASE_URL: str = "sqlite:///./payments.db"

    # App settings
    APP_NAME: str = "PayPal Gateway Plugin"
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "test", "production"] = "development"
    LOG_LEVEL: str = "INFO"

    # Metrics (Optional)
    METRICS_ENABLED: bool = True

    model_config = ConfigDict(env_file=".env", case_sensitive=True, extra="ignore")
