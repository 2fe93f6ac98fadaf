import logging
import sys
import structlog
import os
from opentelemetry.instrumentation.logging import LoggingInstrumentor

# Global variable to store test output
test_output = []


def get_log_level():
    """Get log level from environment or default to INFO"""
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_log_renderer():
    """Get log renderer based on environment"""
    env = os.getenv("ENVIRONMENT", "development")
    # Use JSON format for tests and production
    if env in ["test", "production"]:
        return structlog.processors.JSONRenderer()
    # Pretty printing for local development
    return structlog.dev.ConsoleRenderer(colors=True, sort_keys=False)


def test_output_processor(logger, method_name, event_dict):
    """Custom processor that stores output for test assertions"""
    env = os.getenv("ENVIRONMENT", "development")
    if env == "test":
        test_output.append(event_dict.copy())
    return event_dict


def configure_logging():
    """Set up structlog + OTEL context injection."""
    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.ExceptionPrettyPrinter(),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            test_output_processor,
            get_log_renderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    env = os.getenv("ENVIRONMENT", "development")
    if env == "test":
        # In test mode, write to stdout for easier capture
        handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(get_log_level())

    # urllib3 logs full request lines, which may include order ids we already log
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").handlers.clear()
    logging.getLogger("uvicorn.access").handlers.clear()

    # Initialize OpenTelemetry logging instrumentation AFTER configuring logging
    LoggingInstrumentor().instrument(set_logging_format=False)


# Gateway Event Log Names
class GatewayEvents:
    """Standard names for gateway event logs"""

    API_ENTRY = "api.request"
    TOKEN_CACHE_HIT = "paypal.token.cache_hit"
    TOKEN_FETCHED = "paypal.token.fetched"
    TOKEN_FAILED = "paypal.token.failed"
    REQUEST_FAILED = "paypal.request.failed"
    ORDER_CREATED = "paypal.order.created"
    ORDER_FETCHED = "paypal.order.fetched"
    ORDER_PATCHED = "paypal.order.patched"
    ORDER_DELETED = "paypal.order.deleted"
    ORDER_CAPTURED = "paypal.order.captured"
    AUTHORIZATION_VOIDED = "paypal.authorization.voided"
    ORDER_NOT_FOUND = "paypal.order.not_found"
    AMOUNT_MISMATCH = "paypal.amount.mismatch"
    AMOUNT_UPDATED = "paypal.amount.updated"
    ORDER_CANCELED = "paypal.order.canceled"
    VERIFICATION_FAILED = "paypal.verification.failed"
    VERIFICATION_SUCCEEDED = "paypal.verification.succeeded"
    DUPLICATE_ORDER = "paypal.duplicate_order"
    TRANSACTIONS_FETCHED = "paypal.transactions.fetched"


# Configure logging when module is imported
configure_logging()
