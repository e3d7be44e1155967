"""
Moz Links API Client

Domain Authority, Page Authority, Spam Score and root-domain link counts
from the URL Metrics endpoint.

API: https://moz.com/help/links-api
Auth: x-moz-token header
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .base import ProviderAPIError
from .http import BaseAPIClient, RetryConfig

logger = logging.getLogger(__name__)


class MozError(ProviderAPIError):
    """Custom exception for Moz API errors."""


@dataclass(frozen=True)
class MozMetrics:
    """Subset of URL Metrics used for scoring."""
    domain_authority: int = 0
    page_authority: int = 0
    spam_score: int = 0
    linking_domains: int = 0        # root_domains_to_root_domain
    inbound_links: int = 0          # external_pages_to_root_domain

    def to_dict(self) -> Dict[str, int]:
        return {
            "domain_authority": self.domain_authority,
            "page_authority": self.page_authority,
            "spam_score": self.spam_score,
            "linking_domains": self.linking_domains,
            "inbound_links": self.inbound_links,
        }


def map_url_metrics(payload: Any) -> Optional[MozMetrics]:
    """
    Convert a url_metrics response into MozMetrics.

    Moz returns either ``{"results": [...]}``, a bare list, or a single object
    depending on API version. Returns None when the payload holds no result.

    Raises:
        ValueError: payload is not JSON object/array shaped
    """
    if isinstance(payload, dict) and "results" in payload:
        payload = payload.get("results")

    if isinstance(payload, list):
        payload = payload[0] if payload else None

    if payload is None:
        return None
    if not isinstance(payload, dict):
        raise ValueError(f"Unexpected Moz payload type: {type(payload).__name__}")

    def _int(key: str) -> int:
        return int(round(float(payload.get(key) or 0)))

    return MozMetrics(
        domain_authority=_int("domain_authority"),
        page_authority=_int("page_authority"),
        spam_score=_int("spam_score"),
        linking_domains=_int("root_domains_to_root_domain"),
        inbound_links=_int("external_pages_to_root_domain"),
    )


class MozClient(BaseAPIClient):
    """
    Async client for the Moz Links API v2.

    Usage:
        client = MozClient(api_token="...")
        metrics = await client.get_url_metrics("https://example.co.th")
        await client.close()
    """

    BASE_URL = "https://lsapi.seomoz.com/v2"
    provider_name = "moz"
    error_class = MozError

    def __init__(
        self,
        api_token: str,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_token = api_token
        super().__init__(
            retry_config=retry_config,
            timeout=timeout,
            headers={
                "x-moz-token": api_token,
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    @staticmethod
    def token_looks_valid(token: Optional[str]) -> bool:
        """Moz tokens are long opaque strings; anything short is a placeholder."""
        return bool(token) and len(token) > 10

    async def get_url_metrics(self, url: str) -> Optional[MozMetrics]:
        """
        Fetch URL metrics for one target.

        Args:
            url: Page or domain URL (scheme added when missing)

        Returns:
            MozMetrics, or None when Moz has no record for the target

        Raises:
            MozError: On HTTP failure (401 invalid token, 429 rate limit, ...)
        """
        target = url if url.startswith("http") else f"https://{url}"

        response = await self._request_with_retry(
            "POST",
            "/url_metrics",
            json={"targets": [target]},
        )
        metrics = map_url_metrics(self._json(response))

        if metrics:
            logger.info(
                f"Moz metrics for {target}: DA={metrics.domain_authority}, "
                f"PA={metrics.page_authority}, linking domains={metrics.linking_domains}"
            )
        else:
            logger.warning(f"No Moz data returned for {target}")

        return metrics
