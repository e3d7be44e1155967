"""
Aggregated Metric Models

UnifiedMetrics is the output of the cascading aggregator: one resolved value
per metric family, tagged with where it came from.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .keywords import IntentBreakdown


class SourceTag(Enum):
    """Provenance of a resolved metric family."""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    TERTIARY = "tertiary"
    ESTIMATE = "estimate"

    @classmethod
    def for_position(cls, index: int) -> "SourceTag":
        """Tag for the adapter at ``index`` in a family's priority list."""
        if index <= 0:
            return cls.PRIMARY
        if index == 1:
            return cls.SECONDARY
        return cls.TERTIARY


class MetricFamily(Enum):
    KEYWORDS = "keywords"
    BACKLINKS = "backlinks"


@dataclass(frozen=True)
class KeywordMetrics:
    """Organic keyword footprint of a domain."""
    total: int = 0
    top10: int = 0
    top100: int = 0
    avg_position: float = 0.0
    estimated_traffic: int = 0
    intent_breakdown: Optional[IntentBreakdown] = None
    brand_position: Optional[int] = None  # from keyword discovery; not serialized

    @property
    def is_empty(self) -> bool:
        return self.total <= 0

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "total": self.total,
            "top10": self.top10,
            "top100": self.top100,
            "avgPosition": self.avg_position,
            "estimatedTraffic": self.estimated_traffic,
        }
        if self.intent_breakdown is not None:
            data["intentBreakdown"] = self.intent_breakdown.to_dict()
        return data


@dataclass(frozen=True)
class BacklinkMetrics:
    """Link-graph and authority figures of a domain."""
    total: int = 0
    referring_domains: int = 0
    domain_rating: int = 0
    domain_authority: int = 0

    @property
    def is_empty(self) -> bool:
        return self.referring_domains <= 0 and self.domain_authority <= 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "referringDomains": self.referring_domains,
            "domainRating": self.domain_rating,
            "domainAuthority": self.domain_authority,
        }


@dataclass(frozen=True)
class MetricSources:
    """Source tag and accepting provider per family."""
    keywords: SourceTag = SourceTag.ESTIMATE
    backlinks: SourceTag = SourceTag.ESTIMATE
    keywords_provider: str = "estimate"
    backlinks_provider: str = "estimate"
    authority_provider: Optional[str] = None    # set when enrichment filled DA

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "keywords": self.keywords.value,
            "backlinks": self.backlinks.value,
            "keywordsProvider": self.keywords_provider,
            "backlinksProvider": self.backlinks_provider,
        }
        if self.authority_provider:
            data["authorityProvider"] = self.authority_provider
        return data


@dataclass(frozen=True)
class UnifiedMetrics:
    """Resolved keyword and backlink metrics for one aggregation run."""
    keywords: KeywordMetrics = field(default_factory=KeywordMetrics)
    backlinks: BacklinkMetrics = field(default_factory=BacklinkMetrics)
    source: MetricSources = field(default_factory=MetricSources)
    errors: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keywords": self.keywords.to_dict(),
            "backlinks": self.backlinks.to_dict(),
            "source": self.source.to_dict(),
            "errors": list(self.errors),
        }
