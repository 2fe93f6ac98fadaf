"""
Prometheus metrics instrumentation for the PayPal gateway plugin.

Gateway calls and verification outcomes are counted here; the FastAPI app
exposes them at /metrics together with the default HTTP metrics.
"""

from prometheus_fastapi_instrumentator import Instrumentator
from prometheus_client import Counter

gateway_requests = Counter(
    "paypal_gateway_requests_total",
    "Total number of requests issued to the PayPal API",
    ["operation", "outcome"],
)

token_fetches = Counter(
    "paypal_token_fetches_total",
    "Total number of OAuth token requests sent to PayPal",
)

verifications = Counter(
    "paypal_verifications_total",
    "Outcomes of order verification",
    ["result"],  # completed, canceled, failed, duplicate
)


def init_metrics(app, settings=None):
    """
    Initialize Prometheus metrics instrumentation for the FastAPI app.

    Args:
        app: FastAPI application instance
        settings: when given and METRICS_ENABLED is off, nothing is exposed

    Returns:
        Instrumentator instance, or None when metrics are disabled
    """
    if settings is not None and not settings.METRICS_ENABLED:
        return None
    inst = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
    )
    inst.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
    return inst
