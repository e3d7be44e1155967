"""
External API Integrations

Clients for the third-party providers a scan draws on:
- Moz: URL metrics / domain authority
- Common Crawl: index lookups for keyword validation
- Google Custom Search: SERP rank lookups
- Gemini: content keyword extraction, brand sentiment
- PageSpeed Insights: Core Web Vitals
- Scraper: page facts from HTML

ProviderClients (src.integrations.config) builds all of them from Settings.
"""

from .base import (
    ProviderErrorCode,
    ProviderError,
    ProviderAPIError,
    ProviderResult,
    Ok,
    Err,
    ProviderAdapter,
    KeywordAdapter,
    BacklinkAdapter,
    AuthorityAdapter,
    error_code_for_status,
    error_from_exception,
)
from .http import BaseAPIClient, RetryConfig
from .moz import MozClient, MozError, MozMetrics
from .commoncrawl import CommonCrawlClient, CommonCrawlError
from .custom_search import CustomSearchClient, CustomSearchError, SearchResult
from .gemini import GeminiClient, GeminiError, ContentCandidate
from .pagespeed import PageSpeedClient, PageSpeedError
from .scraper import PageScraper, ScrapeError

__all__ = [
    # Adapter contract
    "ProviderErrorCode",
    "ProviderError",
    "ProviderAPIError",
    "ProviderResult",
    "Ok",
    "Err",
    "ProviderAdapter",
    "KeywordAdapter",
    "BacklinkAdapter",
    "AuthorityAdapter",
    "error_code_for_status",
    "error_from_exception",
    # HTTP
    "BaseAPIClient",
    "RetryConfig",
    # Clients
    "MozClient",
    "MozError",
    "MozMetrics",
    "CommonCrawlClient",
    "CommonCrawlError",
    "CustomSearchClient",
    "CustomSearchError",
    "SearchResult",
    "GeminiClient",
    "GeminiError",
    "ContentCandidate",
    "PageSpeedClient",
    "PageSpeedError",
    "PageScraper",
    "ScrapeError",
]
