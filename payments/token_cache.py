"""
OAuth token cache for the PayPal API.

PayPal access tokens are shared by every request the process makes, so a
single cache slot is used regardless of which client asks for it. Entries
expire ``TOKEN_SAFETY_MARGIN`` seconds before PayPal says they do so a token
never runs out in the middle of a request.
"""

import threading
import time
from typing import Any, Callable, Optional

import requests
import structlog
from pydantic import ValidationError

from core.errors import AuthenticationError, ErrorKind, GatewayError, kind_for_status, upstream_details
from core.logging import GatewayEvents
from core.metrics import token_fetches
from payments.models import AuthToken

log = structlog.get_logger(__name__)

TOKEN_CACHE_KEY = "paypal"
TOKEN_SAFETY_MARGIN = 5  # seconds


class TokenCache:
    """In-process TTL cache. ``clock`` must be monotonic and return seconds."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        # held while a token is fetched so concurrent misses share one request
        self.fetch_lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: float) -> bool:
        """Store ``value`` for ``ttl`` seconds. Returns False if it was not cached."""
        with self._lock:
            if ttl <= 0:
                self._entries.pop(key, None)
                return False
            self._entries[key] = (value, self._clock() + ttl)
            return True

    def invalidate(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)


# Process-wide default cache
token_cache = TokenCache()


def _json_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class AuthTokenProvider:
    """Obtains client-credentials tokens from PayPal through a ``TokenCache``."""

    def __init__(
        self,
        cache: Optional[TokenCache] = None,
        session: Optional[requests.Session] = None,
    ):
        self.cache = cache if cache is not None else token_cache
        self.session = session or requests.Session()

    def get_token(self, client_id: str, secret: str, api: str) -> AuthToken:
        if not client_id or not secret:
            raise GatewayError("Missing PayPal clientId and/or secret", ErrorKind.DATA)

        token = self.cache.get(TOKEN_CACHE_KEY)
        if token is not None:
            log.debug(GatewayEvents.TOKEN_CACHE_HIT)
            return token

        with self.cache.fetch_lock:
            # another thread may have filled the slot while we waited
            token = self.cache.get(TOKEN_CACHE_KEY)
            if token is not None:
                return token
            token = self._fetch(client_id, secret, api)
            self.cache.set(TOKEN_CACHE_KEY, token, token.expires_in - TOKEN_SAFETY_MARGIN)
            return token

    def _fetch(self, client_id: str, secret: str, api: str) -> AuthToken:
        url = f"{api}/v1/oauth2/token"
        token_fetches.inc()
        try:
            response = self.session.request(
                "POST",
                url,
                data={"grant_type": "client_credentials"},
                auth=(client_id, secret),
                headers={
                    "Accept": "application/json",
                    "Accept-Language": "en_US",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            body = _json_body(exc.response) if exc.response is not None else None
            details = upstream_details(status, body, "AUTHENTICATION_FAILURE")
            log.error(GatewayEvents.TOKEN_FAILED, **details)
            # the original request carries the Basic credentials, so it is not chained
            raise AuthenticationError(
                "PayPal authentication failed.", kind_for_status(status), details
            ) from None
        except requests.RequestException as exc:
            details = {"httpStatusCode": None, "name": type(exc).__name__, "message": str(exc)}
            log.error(GatewayEvents.TOKEN_FAILED, **details)
            raise AuthenticationError(
                "PayPal authentication failed.", ErrorKind.NETWORK, details
            ) from None

        try:
            token = AuthToken.model_validate(response.json())
        except (ValueError, ValidationError):
            details = {
                "httpStatusCode": response.status_code,
                "name": "INVALID_TOKEN_RESPONSE",
                "message": "PayPal returned an unreadable token response.",
            }
            log.error(GatewayEvents.TOKEN_FAILED, **details)
            raise AuthenticationError("PayPal authentication failed.", ErrorKind.DATA, details) from None

        log.info(GatewayEvents.TOKEN_FETCHED, token_type=token.token_type, expires_in=token.expires_in)
        return token
