"""
Shared HTTP plumbing for provider clients.

A client knows one provider's URLs, auth and envelope. It raises
ProviderError subclasses only; raw `requests` exceptions never escape.
"""
import logging
import threading
from typing import Any, Dict, Optional

import requests
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config.settings import settings

logger = logging.getLogger("clients.base")


class ProviderError(Exception):
    """Base class for provider client failures."""

    def __init__(self, message: str, provider: str = "unknown"):
        super().__init__(message)
        self.provider = provider


class ProviderHTTPError(ProviderError):
    """Provider answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int, provider: str = "unknown"):
        super().__init__(message, provider)
        self.status_code = status_code


class ProviderTimeoutError(ProviderError):
    pass


class ProviderRateLimitError(ProviderError):
    """HTTP 429 or a provider-level rate limit message. Retried before surfacing."""


class ProviderPayloadError(ProviderError):
    """Body was not JSON, carried provider errors, or had an unexpected shape."""


class ProviderNotConfiguredError(ProviderError):
    """Required credential missing."""


class ProviderClient:
    """
    Base provider client.

    - `session` is any object with a requests-compatible `get`
    - a per-client semaphore bounds concurrent calls to the provider
    - HTTP 429 is retried with exponential backoff via tenacity
    """

    name = "provider"
    requires_key = True

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        session: Optional[Any] = None,
        timeout: Optional[float] = None,
        max_concurrent: Optional[int] = None,
        rate_limit_retries: Optional[int] = None,
        retry_backoff: float = 1.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._semaphore = threading.Semaphore(
            max_concurrent if max_concurrent is not None else settings.max_concurrent_requests
        )
        self.rate_limit_retries = (
            rate_limit_retries if rate_limit_retries is not None else settings.rate_limit_retries
        )
        self.retry_backoff = retry_backoff
        self.request_count = 0
        self._count_lock = threading.Lock()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) or not self.requires_key

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    def _auth_params(self) -> Dict[str, Any]:
        return {}

    def _unwrap(self, payload: Any) -> Any:
        """Strip the provider envelope. Override per provider."""
        return payload

    def _on_response(self, response: Any) -> None:
        """Hook for reading quota headers and the like."""

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET `path` and return the unwrapped payload.

        Raises:
            ProviderNotConfiguredError: credential missing, no request made
            ProviderError: any transport, HTTP or payload failure
        """
        if not self.is_configured:
            raise ProviderNotConfiguredError(f"{self.name} API key not configured", self.name)

        clean = {k: v for k, v in (params or {}).items() if v is not None and v != ""}
        retryer = Retrying(
            stop=stop_after_attempt(self.rate_limit_retries + 1),
            wait=wait_exponential(multiplier=self.retry_backoff, min=self.retry_backoff, max=10),
            retry=retry_if_exception_type(ProviderRateLimitError),
            reraise=True,
        )
        return retryer(self._request_once, path, clean)

    def _request_once(self, path: str, params: Dict[str, Any]) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug(f"[{self.name}] GET {path} {params}")

        with self._semaphore:
            with self._count_lock:
                self.request_count += 1
            try:
                response = self.session.get(
                    url,
                    headers=self._headers(),
                    params={**params, **self._auth_params()},
                    timeout=self.timeout,
                )
            except requests.Timeout as e:
                logger.error(f"[{self.name}] Timeout after {self.timeout}s on {path}")
                raise ProviderTimeoutError(f"{self.name} timed out on {path}: {e}", self.name) from e
            except requests.RequestException as e:
                logger.error(f"[{self.name}] Request failed on {path}: {e}")
                raise ProviderError(f"{self.name} request failed on {path}: {e}", self.name) from e

        status = response.status_code
        if status == 429:
            logger.warning(f"[{self.name}] Rate limited on {path}")
            raise ProviderRateLimitError(f"{self.name} rate limited on {path}", self.name)
        if not 200 <= status < 300:
            logger.error(f"[{self.name}] HTTP {status} on {path}")
            raise ProviderHTTPError(f"{self.name} returned HTTP {status} for {path}", status, self.name)

        self._on_response(response)

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderPayloadError(f"{self.name} returned a non-JSON body for {path}", self.name) from e

        return self._unwrap(payload)
