"""
Common Crawl Index Client

Free, credential-less lookups against the Common Crawl URL index:
- Latest crawl id (collinfo.json), cached for 30 days
- Page counts for a URL pattern (keyword slug validation)
- Keyword-like URL path segments from same-TLD pages (related keywords)

The index only answers "which URLs were captured"; it cannot do reverse
link lookups, so it never yields backlink data on its own.

API: https://index.commoncrawl.org/
"""

import json
import logging
import re
from typing import List, Optional
from urllib.parse import urlparse

import httpx

from src.persistence.cache import ResponseCache
from src.utils.domain import normalize_domain

from .base import ProviderAPIError
from .http import BaseAPIClient, RetryConfig

logger = logging.getLogger(__name__)


CRAWL_ID_TTL_SECONDS = 30 * 24 * 3600

# Path segments that never make useful keywords
_STOP_SEGMENTS = {"page", "index", "home", "about", "contact"}

BACKLINK_LIMITATION = "Index API does not support reverse lookups"


class CommonCrawlError(ProviderAPIError):
    """Custom exception for Common Crawl index errors."""


def keyword_slug(keyword: str) -> str:
    """'Car Insurance Price' -> 'car-insurance-price'."""
    slug = re.sub(r"\s+", "-", keyword.strip().lower())
    return re.sub(r"[^\w\-]", "", slug)


def parse_index_lines(text: str) -> List[str]:
    """Extract captured URLs from a JSON-lines index response."""
    urls = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except ValueError:
            continue
        if isinstance(record, dict) and record.get("url"):
            urls.append(record["url"])
    return urls


def keywords_from_path(url: str, per_url: int = 3) -> List[str]:
    """Keyword-like segments of a URL path (3-19 chars, not numeric, not stop words)."""
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return []

    parts = [
        part for part in re.split(r"[/\-_]", path)
        if 2 < len(part) < 20
        and not part.isdigit()
        and part not in _STOP_SEGMENTS
    ]
    return parts[:per_url]


class CommonCrawlClient(BaseAPIClient):
    """
    Async client for the Common Crawl URL index.

    Usage:
        client = CommonCrawlClient(cache=ResponseCache())
        pages = await client.count_pages("shop.co.th", "car insurance")
        await client.close()
    """

    BASE_URL = "https://index.commoncrawl.org"
    COLLINFO_PATH = "/collinfo.json"
    provider_name = "commoncrawl"
    error_class = CommonCrawlError

    def __init__(
        self,
        cache: Optional[ResponseCache] = None,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            retry_config=retry_config or RetryConfig(max_retries=1),
            timeout=timeout,
            headers={"User-Agent": "Mozilla/5.0 (compatible; SAO-Auditor/1.0)"},
            transport=transport,
        )
        self.cache = cache

    async def get_latest_crawl_id(self) -> str:
        """
        Most recent crawl id, e.g. "CC-MAIN-2024-33".

        Raises:
            CommonCrawlError: collinfo.json unreachable or empty
        """
        if self.cache is not None:
            cached = self.cache.get("commoncrawl", "collinfo")
            if cached:
                return cached

        response = await self._request_with_retry("GET", self.COLLINFO_PATH)
        collections = self._json(response)

        if not isinstance(collections, list) or not collections or not collections[0].get("id"):
            raise CommonCrawlError("collinfo.json returned no crawls", response=collections)

        crawl_id = collections[0]["id"]
        if self.cache is not None:
            self.cache.set("commoncrawl", "collinfo", crawl_id, ttl=CRAWL_ID_TTL_SECONDS)

        logger.info(f"Common Crawl latest crawl: {crawl_id}")
        return crawl_id

    async def query_index(self, pattern: str, limit: int = 10) -> List[str]:
        """
        URLs captured for a pattern. A 404 from the index means no captures.
        """
        crawl_id = await self.get_latest_crawl_id()
        response = await self._request_with_retry(
            "GET",
            f"/{crawl_id}-index",
            allow_status=(404,),
            params={"url": pattern, "output": "json", "limit": limit},
        )
        if response.status_code == 404:
            return []
        return parse_index_lines(response.text)[:limit]

    async def count_pages(self, domain: str, keyword: str, limit: int = 10) -> int:
        """
        Number of captured pages on ``domain`` whose URL contains the keyword slug.
        """
        slug = keyword_slug(keyword)
        if not slug:
            return 0

        host = normalize_domain(domain)
        urls = await self.query_index(f"{host}/*{slug}*", limit=limit)
        logger.debug(f"Common Crawl: '{keyword}' -> {len(urls)} pages on {host}")
        return len(urls)

    async def find_related_keywords(
        self,
        domain: str,
        max_pages: int = 50,
        max_keywords: int = 15,
    ) -> List[str]:
        """
        Keyword-like path segments from pages sharing the domain's TLD.
        """
        host = normalize_domain(domain)
        if "." not in host:
            return []

        tld = host.split(".", 1)[1]
        urls = await self.query_index(f"*.{tld}/*", limit=max_pages)

        related: List[str] = []
        for url in urls:
            for keyword in keywords_from_path(url):
                if keyword not in related:
                    related.append(keyword)

        return related[:max_keywords]
