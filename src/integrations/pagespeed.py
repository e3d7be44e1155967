"""
Google PageSpeed Insights Client

Mobile Lighthouse run for one URL. Core Web Vitals are read from the lab
audits; Total Blocking Time stands in for the interactivity metric.

API: https://developers.google.com/speed/docs/insights/v5/get-started
"""

import logging
from typing import Any, Dict, Optional

import httpx

from src.models import PerformanceFacts

from .base import ProviderAPIError, ProviderErrorCode
from .http import BaseAPIClient, RetryConfig

logger = logging.getLogger(__name__)


CATEGORIES = ("performance", "accessibility", "best-practices", "seo")


class PageSpeedError(ProviderAPIError):
    """Custom exception for PageSpeed Insights errors."""


def map_lighthouse_result(payload: Dict[str, Any]) -> PerformanceFacts:
    """
    Convert a runPagespeed response into PerformanceFacts.

    Raises:
        ValueError: lighthouseResult missing
    """
    lighthouse = payload.get("lighthouseResult") if isinstance(payload, dict) else None
    if not isinstance(lighthouse, dict):
        raise ValueError("Response has no lighthouseResult")

    audits = lighthouse.get("audits") or {}
    categories = lighthouse.get("categories") or {}

    def _audit(name: str, scale: float = 1.0) -> Optional[float]:
        value = (audits.get(name) or {}).get("numericValue")
        if value is None:
            return None
        return float(value) / scale

    def _category(name: str) -> int:
        return int(round(float((categories.get(name) or {}).get("score") or 0) * 100))

    return PerformanceFacts(
        lcp_seconds=_audit("largest-contentful-paint", scale=1000),
        interactivity_ms=_audit("total-blocking-time"),
        cls=_audit("cumulative-layout-shift"),
        performance_score=_category("performance"),
        accessibility_score=_category("accessibility"),
        seo_score=_category("seo"),
        best_practices_score=_category("best-practices"),
    )


class PageSpeedClient(BaseAPIClient):
    """
    Async client for PageSpeed Insights v5.

    Usage:
        client = PageSpeedClient(api_key=None)
        facts = await client.analyze("https://shop.co.th")
        await client.close()
    """

    BASE_URL = "https://www.googleapis.com/pagespeedonline/v5"
    provider_name = "pagespeed"
    error_class = PageSpeedError

    def __init__(
        self,
        api_key: Optional[str] = None,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            retry_config=retry_config or RetryConfig(max_retries=1),
            timeout=timeout,
            transport=transport,
        )
        self.api_key = api_key

    async def analyze(self, url: str, strategy: str = "mobile") -> PerformanceFacts:
        """
        Run Lighthouse for ``url``.

        Raises:
            PageSpeedError: On API failure or a response without Lighthouse data
        """
        params = [("url", url), ("strategy", strategy)]
        params.extend(("category", category) for category in CATEGORIES)
        if self.api_key:
            params.append(("key", self.api_key))

        response = await self._request_with_retry("GET", "/runPagespeed", params=params)

        try:
            facts = map_lighthouse_result(self._json(response))
        except ValueError as e:
            raise PageSpeedError(str(e), code=ProviderErrorCode.MALFORMED_RESPONSE)

        logger.info(
            f"PageSpeed {url}: performance={facts.performance_score}, "
            f"LCP={facts.lcp_seconds}s, TBT={facts.interactivity_ms}ms, CLS={facts.cls}"
        )
        return facts
