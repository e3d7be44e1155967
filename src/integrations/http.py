"""
Shared Async HTTP Client

Base class for the provider clients:
- One pooled httpx.AsyncClient per provider
- Automatic retry with exponential backoff on 429/5xx and timeouts
- Non-2xx responses raised as the provider's ProviderAPIError subclass
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Type

import httpx

from .base import ProviderAPIError, ProviderErrorCode

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    exponential_base: float = 2.0
    retryable_status_codes: tuple = (429, 500, 502, 503, 504)


class BaseAPIClient:
    """
    Async client base for one third-party API.

    Subclasses set BASE_URL, provider_name and error_class, then call
    ``self._request_with_retry("GET", "/path", params=...)``.
    """

    BASE_URL = ""
    provider_name = "provider"
    error_class: Type[ProviderAPIError] = ProviderAPIError

    def __init__(
        self,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        max_connections: int = 20,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the HTTP client.

        Args:
            retry_config: Retry configuration (optional)
            timeout: Request timeout in seconds
            headers: Default headers sent with every request
            max_connections: Maximum concurrent connections
            transport: Custom transport (tests pass httpx.MockTransport)
        """
        self.retry_config = retry_config or RetryConfig()

        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers=headers or {},
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            timeout=httpx.Timeout(timeout),
            transport=transport,
            follow_redirects=True,
        )
        self._closed = False

    def _error(self, message: str, **kwargs) -> ProviderAPIError:
        return self.error_class(message, **kwargs)

    async def _make_request(
        self,
        method: str,
        url: str,
        allow_status: Tuple[int, ...] = (),
        **kwargs,
    ) -> httpx.Response:
        """Make a single HTTP request."""
        if self._closed:
            raise self._error("Client is closed")

        logger.debug(f"{self.provider_name}: {method} {url}")
        response = await self._client.request(method, url, **kwargs)

        if response.status_code >= 400 and response.status_code not in allow_status:
            raise self._error(
                f"API request failed: {response.status_code}",
                status_code=response.status_code,
                response=_safe_json(response),
            )
        return response

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        allow_status: Tuple[int, ...] = (),
        **kwargs,
    ) -> httpx.Response:
        """Make request with automatic retry on failure."""
        last_exception: Optional[ProviderAPIError] = None
        delay = self.retry_config.initial_delay

        for attempt in range(self.retry_config.max_retries + 1):
            try:
                return await self._make_request(method, url, allow_status=allow_status, **kwargs)

            except ProviderAPIError as e:
                last_exception = e

                # Don't retry client errors (4xx except 429)
                if e.status_code and e.status_code not in self.retry_config.retryable_status_codes:
                    raise

            except httpx.TimeoutException as e:
                last_exception = self._error(
                    f"Request timed out: {e}",
                    code=ProviderErrorCode.NETWORK_TIMEOUT,
                )

            except httpx.HTTPError as e:
                last_exception = self._error(
                    f"HTTP error: {e}",
                    code=ProviderErrorCode.UNAVAILABLE,
                )

            if attempt < self.retry_config.max_retries:
                logger.warning(
                    f"{self.provider_name} request failed "
                    f"(attempt {attempt + 1}/{self.retry_config.max_retries + 1}): {last_exception}. "
                    f"Retrying in {delay}s..."
                )
                await asyncio.sleep(delay)
                delay = min(
                    delay * self.retry_config.exponential_base,
                    self.retry_config.max_delay,
                )

        raise last_exception

    def _json(self, response: httpx.Response) -> Any:
        """Decode a JSON body, raising a malformed-response error on failure."""
        try:
            return response.json()
        except ValueError as e:
            raise self._error(
                f"Malformed JSON response: {e}",
                status_code=response.status_code,
                code=ProviderErrorCode.MALFORMED_RESPONSE,
            )

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def _safe_json(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text[:500]
