"""
Provider Adapter Contract

Every data provider the aggregator can call is wrapped in an adapter that
reports whether it is configured and returns a tagged result instead of
raising:

    result = await adapter.get_backlink_metrics(target)
    if result.ok:
        metrics = result.value
    else:
        logger.warning(str(result.error))

Concrete HTTP clients raise ProviderAPIError subclasses; adapters translate
those into ProviderError values with ``error_from_exception``.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

import httpx

from src.models import BacklinkMetrics, KeywordMetrics, ScanTarget

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# ERROR TAXONOMY
# =============================================================================

class ProviderErrorCode(Enum):
    """Why a provider produced no usable data."""
    NOT_CONFIGURED = "not_configured"
    AUTH_FAILED = "auth_failed"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXHAUSTED = "quota_exhausted"
    EMPTY_RESULT = "empty_result"
    NETWORK_TIMEOUT = "network_timeout"
    MALFORMED_RESPONSE = "malformed_response"
    UNAVAILABLE = "unavailable"             # 5xx, connection refused, DNS


@dataclass(frozen=True)
class ProviderError:
    """Provider failure as data."""
    provider: str
    code: ProviderErrorCode
    message: str = ""

    def __str__(self) -> str:
        if self.message:
            return f"{self.provider}: {self.code.value}: {self.message}"
        return f"{self.provider}: {self.code.value}"


class ProviderAPIError(Exception):
    """Base exception raised by the concrete HTTP clients."""

    def __init__(
        self,
        message: str,
        status_code: int = None,
        response: Any = None,
        code: Optional[ProviderErrorCode] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self.code = code or error_code_for_status(status_code)


# DataForSEO reports these inside a 200 response
_DATAFORSEO_CODES = {
    40200: ProviderErrorCode.QUOTA_EXHAUSTED,   # Payment required
    40202: ProviderErrorCode.RATE_LIMITED,      # Rate limit per minute exceeded
    40210: ProviderErrorCode.QUOTA_EXHAUSTED,   # Insufficient funds
}


def error_code_for_status(status_code: Optional[int]) -> ProviderErrorCode:
    """
    Map an HTTP status (or a DataForSEO five-digit code) to the taxonomy.

    Args:
        status_code: 401, 429, 40100, ... or None

    Returns:
        Matching ProviderErrorCode (UNAVAILABLE when nothing more specific fits)
    """
    if status_code is None:
        return ProviderErrorCode.UNAVAILABLE

    if status_code in _DATAFORSEO_CODES:
        return _DATAFORSEO_CODES[status_code]
    if status_code >= 10000:
        status_code //= 100

    if status_code in (401, 403):
        return ProviderErrorCode.AUTH_FAILED
    if status_code == 402:
        return ProviderErrorCode.QUOTA_EXHAUSTED
    if status_code == 429:
        return ProviderErrorCode.RATE_LIMITED
    if status_code in (408, 504):
        return ProviderErrorCode.NETWORK_TIMEOUT
    if status_code == 404:
        return ProviderErrorCode.EMPTY_RESULT
    if 400 <= status_code < 500:
        return ProviderErrorCode.MALFORMED_RESPONSE
    return ProviderErrorCode.UNAVAILABLE


def error_from_exception(provider: str, exc: BaseException) -> ProviderError:
    """Translate anything a client call raised into a ProviderError."""
    if isinstance(exc, ProviderAPIError):
        return ProviderError(provider, exc.code, str(exc))
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return ProviderError(provider, ProviderErrorCode.NETWORK_TIMEOUT, "request timed out")
    if isinstance(exc, httpx.HTTPError):
        return ProviderError(provider, ProviderErrorCode.UNAVAILABLE, str(exc))
    if isinstance(exc, (ValueError, KeyError, TypeError, IndexError)):
        return ProviderError(provider, ProviderErrorCode.MALFORMED_RESPONSE, str(exc))
    return ProviderError(provider, ProviderErrorCode.UNAVAILABLE, f"{type(exc).__name__}: {exc}")


# =============================================================================
# TAGGED RESULT
# =============================================================================

@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: ProviderError

    @property
    def ok(self) -> bool:
        return False


ProviderResult = Union[Ok[T], Err]


def not_configured(provider: str) -> Err:
    return Err(ProviderError(provider, ProviderErrorCode.NOT_CONFIGURED, "credentials not set"))


def empty_result(provider: str, message: str = "no data returned") -> Err:
    return Err(ProviderError(provider, ProviderErrorCode.EMPTY_RESULT, message))


# =============================================================================
# ADAPTER INTERFACES
# =============================================================================

class ProviderAdapter(ABC):
    """Common surface of every adapter."""

    name: str = "provider"
    # Per-call bound in seconds; None uses the aggregator default
    timeout: Optional[float] = None

    @abstractmethod
    def is_configured(self) -> bool:
        """True when the adapter has what it needs to make a call."""


class KeywordAdapter(ProviderAdapter):
    """Provider of the organic keyword family."""

    @abstractmethod
    async def get_keyword_metrics(self, target: ScanTarget) -> ProviderResult[KeywordMetrics]:
        ...


class BacklinkAdapter(ProviderAdapter):
    """Provider of the backlink/authority family."""

    @abstractmethod
    async def get_backlink_metrics(self, target: ScanTarget) -> ProviderResult[BacklinkMetrics]:
        ...


class AuthorityAdapter(ProviderAdapter):
    """Provider of domain authority figures used for enrichment."""

    @abstractmethod
    async def get_authority(self, target: ScanTarget) -> ProviderResult[BacklinkMetrics]:
        ...
