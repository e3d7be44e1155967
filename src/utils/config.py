"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.

Every provider credential is optional: an unset credential simply makes
that provider report itself as not configured, and the aggregator moves on.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # DataForSEO (keywords fallback, tertiary backlinks)
    DATAFORSEO_LOGIN: Optional[str] = None
    DATAFORSEO_PASSWORD: Optional[str] = None

    # Moz Links API (backlinks, domain authority enrichment)
    MOZ_API_TOKEN: Optional[str] = None

    # Google Custom Search (SERP rank lookups, brand position)
    GOOGLE_CUSTOM_SEARCH_API_KEY: Optional[str] = None
    GOOGLE_CUSTOM_SEARCH_ENGINE_ID: Optional[str] = None

    # Google PageSpeed Insights (key optional, unauthenticated quota is tiny)
    GOOGLE_PAGESPEED_API_KEY: Optional[str] = None

    # Gemini (content keyword extraction, brand sentiment)
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # Common Crawl index needs no credentials
    COMMONCRAWL_ENABLED: bool = True

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Default search settings
    SEARCH_COUNTRY: str = "th"
    SEARCH_LANGUAGE: str = "th"
    DATAFORSEO_LOCATION_CODE: int = 2840
    DATAFORSEO_LANGUAGE_CODE: str = "en"

    # Limits
    MAX_RANK_CHECKS: int = 30
    MAX_VALIDATION_CANDIDATES: int = 20
    MAX_RELATED_KEYWORDS: int = 5
    RANK_LOOKUP_DEPTH: int = 100
    MAX_COMPETITORS: int = 4
    MAX_SCAN_URLS: int = 30

    # Rate limiting (seconds between requests)
    RANK_LOOKUP_INTERVAL: float = 0.2
    RANK_PAGE_INTERVAL: float = 0.1
    VALIDATION_INTERVAL: float = 0.2

    # Timeouts (seconds)
    PROVIDER_TIMEOUT: float = 30.0
    DISCOVERY_TIMEOUT: float = 120.0
    SCRAPE_TIMEOUT: float = 30.0
    PAGESPEED_TIMEOUT: float = 60.0
    SCAN_SOFT_DEADLINE: float = 90.0

    # Response cache
    CACHE_ENABLED: bool = True
    CACHE_TTL_SECONDS: int = 86400

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
