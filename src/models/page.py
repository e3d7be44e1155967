"""
Page Facts

Measurable facts about a single page, produced by the scraper and the
PageSpeed client. The scoring engine only ever reads these.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from src.utils.domain import ensure_url, normalize_domain


@dataclass(frozen=True)
class PageFacts:
    """Structural facts scraped from one URL."""
    url: str
    title: str = ""
    meta_description: str = ""

    # Visible headings only (nav/header/footer/hidden excluded)
    h1: Tuple[str, ...] = ()
    h2: Tuple[str, ...] = ()
    h3: Tuple[str, ...] = ()

    # JSON-LD structured data
    has_schema: bool = False
    schema_types: Tuple[str, ...] = ()

    # Content elements
    table_count: int = 0
    list_count: int = 0
    image_count: int = 0
    images_with_alt: int = 0
    video_count: int = 0
    internal_links: int = 0
    external_links: int = 0
    word_count: int = 0

    # Site-level files
    has_ssl: bool = False
    has_robots_txt: bool = False
    has_llms_txt: bool = False
    sitemap_valid: bool = False

    @property
    def alt_coverage(self) -> float:
        """Share of images carrying alt text, 0-100."""
        if self.image_count <= 0:
            return 0.0
        return min(100.0, self.images_with_alt / self.image_count * 100)

    def has_schema_type(self, *names: str) -> bool:
        """Case-insensitive substring match against the page's schema types."""
        lowered = [t.lower() for t in self.schema_types]
        return any(name.lower() in t for name in names for t in lowered)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "metaDescription": self.meta_description,
            "h1": list(self.h1),
            "h2": list(self.h2),
            "h3": list(self.h3),
            "hasSchema": self.has_schema,
            "schemaTypes": list(self.schema_types),
            "tableCount": self.table_count,
            "listCount": self.list_count,
            "imageCount": self.image_count,
            "imagesWithAlt": self.images_with_alt,
            "videoCount": self.video_count,
            "internalLinks": self.internal_links,
            "externalLinks": self.external_links,
            "wordCount": self.word_count,
            "hasSSL": self.has_ssl,
            "hasRobotsTxt": self.has_robots_txt,
            "hasLlmsTxt": self.has_llms_txt,
            "sitemapValid": self.sitemap_valid,
        }


@dataclass(frozen=True)
class PerformanceFacts:
    """Lab performance data for the mobile strategy."""
    lcp_seconds: Optional[float] = None         # None = audit missing, scored as poor
    interactivity_ms: Optional[float] = None    # Total Blocking Time, used as the FID/INP proxy
    cls: Optional[float] = None
    performance_score: int = 0          # 0-100
    accessibility_score: int = 0
    seo_score: int = 0
    best_practices_score: int = 0

    @property
    def mobile_score(self) -> int:
        return self.performance_score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lcp": round(self.lcp_seconds, 2) if self.lcp_seconds is not None else None,
            "interactivityMs": round(self.interactivity_ms) if self.interactivity_ms is not None else None,
            "cls": round(self.cls, 3) if self.cls is not None else None,
            "performanceScore": self.performance_score,
            "accessibilityScore": self.accessibility_score,
            "seoScore": self.seo_score,
            "bestPracticesScore": self.best_practices_score,
            "mobileScore": self.mobile_score,
        }


@dataclass(frozen=True)
class SentimentFacts:
    """Brand mention counts returned by the generative sentiment call."""
    sentiment: str = "neutral"          # positive | neutral | negative | mixed
    community_positive: int = 0
    community_neutral: int = 0
    community_negative: int = 0
    pr_mentions: int = 0
    review_mentions: int = 0
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": self.sentiment,
            "communityPositive": self.community_positive,
            "communityNeutral": self.community_neutral,
            "communityNegative": self.community_negative,
            "prMentions": self.pr_mentions,
            "reviewMentions": self.review_mentions,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class ScanTarget:
    """What the aggregator resolves metrics for."""
    url: str
    domain: str
    page_facts: Optional[PageFacts] = None

    @classmethod
    def from_url(cls, url: str, page_facts: Optional[PageFacts] = None) -> "ScanTarget":
        full_url = ensure_url(url)
        return cls(url=full_url, domain=normalize_domain(full_url), page_facts=page_facts)


@dataclass(frozen=True)
class BrandSignals:
    """Non-critical brand enrichment. Either part may be missing."""
    brand_name: str = ""
    brand_position: Optional[int] = None
    sentiment: Optional[SentimentFacts] = None
