"""
Provider Client Configuration

Factory and lifecycle manager for every provider client, built from
Settings (environment / .env):

- DATAFORSEO_LOGIN / DATAFORSEO_PASSWORD: DataForSEO keywords and backlinks
- MOZ_API_TOKEN: Moz URL metrics
- GOOGLE_CUSTOM_SEARCH_API_KEY / GOOGLE_CUSTOM_SEARCH_ENGINE_ID: rank lookups
- GOOGLE_PAGESPEED_API_KEY: PageSpeed Insights (optional)
- GEMINI_API_KEY: keyword extraction and brand sentiment
- COMMONCRAWL_ENABLED: Common Crawl index (no credentials)

Clients are created lazily on first access; a client whose credentials are
missing is None.
"""

import logging
from typing import Dict, Optional

from src.collector.client import DataForSEOClient
from src.persistence.cache import ResponseCache
from src.utils.config import Settings, get_settings
from src.utils.rate_limit import FixedIntervalGate

from .commoncrawl import CommonCrawlClient
from .custom_search import CustomSearchClient
from .gemini import GeminiClient
from .moz import MozClient
from .pagespeed import PageSpeedClient
from .scraper import PageScraper

logger = logging.getLogger(__name__)


class ProviderClients:
    """
    Factory and manager for provider clients.

    Usage:
        clients = ProviderClients(get_settings())

        if clients.moz:
            metrics = await clients.moz.get_url_metrics("shop.co.th")

        # Cleanup
        await clients.close()
    """

    def __init__(self, settings: Optional[Settings] = None, cache: Optional[ResponseCache] = None):
        """
        Initialize provider clients.

        Args:
            settings: Application settings (defaults to env-based settings)
            cache: Shared response cache (defaults to a new one when caching is enabled)
        """
        self.settings = settings or get_settings()
        if cache is None and self.settings.CACHE_ENABLED:
            cache = ResponseCache(ttl=self.settings.CACHE_TTL_SECONDS)
        self.cache = cache

        self._dataforseo: Optional[DataForSEOClient] = None
        self._moz: Optional[MozClient] = None
        self._custom_search: Optional[CustomSearchClient] = None
        self._gemini: Optional[GeminiClient] = None
        self._pagespeed: Optional[PageSpeedClient] = None
        self._commoncrawl: Optional[CommonCrawlClient] = None
        self._scraper: Optional[PageScraper] = None

    # ------------------------------------------------------------------
    # Configuration checks
    # ------------------------------------------------------------------

    @property
    def has_dataforseo(self) -> bool:
        return bool(self.settings.DATAFORSEO_LOGIN and self.settings.DATAFORSEO_PASSWORD)

    @property
    def has_moz(self) -> bool:
        return MozClient.token_looks_valid(self.settings.MOZ_API_TOKEN)

    @property
    def has_custom_search(self) -> bool:
        return bool(self.settings.GOOGLE_CUSTOM_SEARCH_API_KEY and self.settings.GOOGLE_CUSTOM_SEARCH_ENGINE_ID)

    @property
    def has_gemini(self) -> bool:
        return bool(self.settings.GEMINI_API_KEY)

    def status(self) -> Dict[str, bool]:
        """Which providers have credentials."""
        return {
            "dataforseo": self.has_dataforseo,
            "moz": self.has_moz,
            "google_custom_search": self.has_custom_search,
            "gemini": self.has_gemini,
            "pagespeed": True,
            "commoncrawl": self.settings.COMMONCRAWL_ENABLED,
        }

    def log_status(self):
        """Log configuration status."""
        logger.info(
            "Provider status: " + ", ".join(
                f"{name}={'enabled' if enabled else 'disabled'}"
                for name, enabled in self.status().items()
            )
        )

    # ------------------------------------------------------------------
    # Lazy clients
    # ------------------------------------------------------------------

    @property
    def dataforseo(self) -> Optional[DataForSEOClient]:
        """Get or create DataForSEO client."""
        if not self.has_dataforseo:
            return None
        if self._dataforseo is None:
            self._dataforseo = DataForSEOClient(
                login=self.settings.DATAFORSEO_LOGIN,
                password=self.settings.DATAFORSEO_PASSWORD,
                timeout=self.settings.PROVIDER_TIMEOUT,
            )
            logger.info("Initialized DataForSEO client")
        return self._dataforseo

    @property
    def moz(self) -> Optional[MozClient]:
        """Get or create Moz client."""
        if not self.has_moz:
            return None
        if self._moz is None:
            self._moz = MozClient(api_token=self.settings.MOZ_API_TOKEN, timeout=self.settings.PROVIDER_TIMEOUT)
            logger.info("Initialized Moz client")
        return self._moz

    @property
    def custom_search(self) -> Optional[CustomSearchClient]:
        """Get or create Google Custom Search client (requests paced by a gate)."""
        if not self.has_custom_search:
            return None
        if self._custom_search is None:
            self._custom_search = CustomSearchClient(
                api_key=self.settings.GOOGLE_CUSTOM_SEARCH_API_KEY,
                engine_id=self.settings.GOOGLE_CUSTOM_SEARCH_ENGINE_ID,
                country=self.settings.SEARCH_COUNTRY,
                language=self.settings.SEARCH_LANGUAGE,
                gate=FixedIntervalGate(self.settings.RANK_PAGE_INTERVAL, name="custom-search-page"),
                timeout=self.settings.PROVIDER_TIMEOUT,
            )
            logger.info("Initialized Google Custom Search client")
        return self._custom_search

    @property
    def gemini(self) -> Optional[GeminiClient]:
        """Get or create Gemini client."""
        if not self.has_gemini:
            return None
        if self._gemini is None:
            self._gemini = GeminiClient(
                api_key=self.settings.GEMINI_API_KEY,
                model=self.settings.GEMINI_MODEL,
                timeout=self.settings.PROVIDER_TIMEOUT,
            )
            logger.info("Initialized Gemini client")
        return self._gemini

    @property
    def pagespeed(self) -> PageSpeedClient:
        """Get or create PageSpeed client (works without a key)."""
        if self._pagespeed is None:
            self._pagespeed = PageSpeedClient(
                api_key=self.settings.GOOGLE_PAGESPEED_API_KEY,
                timeout=self.settings.PAGESPEED_TIMEOUT,
            )
        return self._pagespeed

    @property
    def commoncrawl(self) -> Optional[CommonCrawlClient]:
        """Get or create Common Crawl client."""
        if not self.settings.COMMONCRAWL_ENABLED:
            return None
        if self._commoncrawl is None:
            self._commoncrawl = CommonCrawlClient(cache=self.cache)
        return self._commoncrawl

    @property
    def scraper(self) -> PageScraper:
        """Get or create the page scraper."""
        if self._scraper is None:
            self._scraper = PageScraper(timeout=self.settings.SCRAPE_TIMEOUT)
        return self._scraper

    async def close(self):
        """Close all clients."""
        for attr in ("_dataforseo", "_moz", "_custom_search", "_gemini", "_pagespeed", "_commoncrawl", "_scraper"):
            client = getattr(self, attr)
            if client is not None:
                await client.close()
                setattr(self, attr, None)

        logger.info("Closed provider clients")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
