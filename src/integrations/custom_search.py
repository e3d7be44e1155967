"""
Google Custom Search Client

SERP lookups through the Programmable Search JSON API:
- Rank of a domain for a keyword, paging up to 100 results deep
- Brand search position (first page only)

Every HTTP request passes through an optional FixedIntervalGate so paging
never bursts the provider.

API: https://developers.google.com/custom-search/v1/overview
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from src.utils.domain import normalize_domain
from src.utils.rate_limit import FixedIntervalGate

from .base import ProviderAPIError, ProviderErrorCode
from .http import BaseAPIClient, RetryConfig

logger = logging.getLogger(__name__)


PAGE_SIZE = 10
MAX_DEPTH = 100     # The API refuses start + num > 100


class CustomSearchError(ProviderAPIError):
    """Custom exception for Google Custom Search errors."""


@dataclass(frozen=True)
class SearchResult:
    """One organic result."""
    title: str
    link: str
    snippet: str
    display_link: str
    position: int       # 1-based


def domains_match(result_host: str, domain: str) -> bool:
    """Exact host match, or one host contained in the other (subdomains)."""
    a = normalize_domain(result_host)
    b = normalize_domain(domain)
    if not a or not b:
        return False
    return a == b or a in b or b in a


def parse_search_items(payload: dict, start: int) -> List[SearchResult]:
    items = payload.get("items") or []
    results = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        results.append(SearchResult(
            title=item.get("title", ""),
            link=item.get("link", ""),
            snippet=item.get("snippet", ""),
            display_link=item.get("displayLink", ""),
            position=start + index,
        ))
    return results


class CustomSearchClient(BaseAPIClient):
    """
    Async client for Google Custom Search.

    Usage:
        client = CustomSearchClient(api_key="...", engine_id="...")
        position = await client.find_position("car insurance", "shop.co.th")
        await client.close()
    """

    BASE_URL = "https://www.googleapis.com/customsearch"
    SEARCH_PATH = "/v1"
    provider_name = "custom_search"
    error_class = CustomSearchError

    def __init__(
        self,
        api_key: str,
        engine_id: str,
        country: Optional[str] = None,
        language: Optional[str] = None,
        gate: Optional[FixedIntervalGate] = None,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(retry_config=retry_config, timeout=timeout, transport=transport)
        self.api_key = api_key
        self.engine_id = engine_id
        self.country = country
        self.language = language
        self.gate = gate

    async def search(self, query: str, start: int = 1, num: int = PAGE_SIZE) -> List[SearchResult]:
        """
        One page of results.

        Raises:
            CustomSearchError: On API failure (invalid key is reported as auth failure)
        """
        params = {
            "key": self.api_key,
            "cx": self.engine_id,
            "q": query,
            "num": min(num, PAGE_SIZE),
        }
        if start > 1:
            params["start"] = start
        if self.country:
            params["gl"] = self.country
        if self.language:
            params["hl"] = self.language

        if self.gate is not None:
            await self.gate.acquire()

        try:
            response = await self._request_with_retry("GET", self.SEARCH_PATH, params=params)
        except CustomSearchError as e:
            # Google answers a bad key with 400 rather than 401
            if e.status_code == 400 and "key" in str(e.response).lower():
                raise CustomSearchError(
                    "Google Custom Search authentication failed. Check API key and engine id.",
                    status_code=e.status_code,
                    response=e.response,
                    code=ProviderErrorCode.AUTH_FAILED,
                )
            raise

        payload = self._json(response)
        if not isinstance(payload, dict):
            raise CustomSearchError(
                "Unexpected search payload",
                response=payload,
                code=ProviderErrorCode.MALFORMED_RESPONSE,
            )
        return parse_search_items(payload, start)

    async def find_position(self, keyword: str, domain: str, depth: int = MAX_DEPTH) -> Optional[int]:
        """
        1-based SERP position of ``domain`` for ``keyword``.

        Pages through results ten at a time until the domain is found, a page
        comes back short, or ``depth`` is exhausted.

        Returns:
            Position, or None when not ranked within depth
        """
        depth = min(depth, MAX_DEPTH)
        start = 1
        while start <= depth:
            results = await self.search(keyword, start=start)
            for result in results:
                if domains_match(result.display_link or result.link, domain):
                    logger.debug(f"'{keyword}': {domain} at position {result.position}")
                    return result.position
            if len(results) < PAGE_SIZE:
                break
            start += PAGE_SIZE
        return None

    async def get_brand_position(self, brand_name: str, domain: str) -> Optional[int]:
        """Position of ``domain`` on the first results page for the brand name."""
        position = await self.find_position(brand_name, domain, depth=PAGE_SIZE)
        logger.info(f"Brand position for '{brand_name}': {position if position else 'not in top 10'}")
        return position
