"""
AI/SEO Readiness Auditor - Data Collection Package

Turns provider responses into the metrics a scan is scored on:
- Keyword discovery: brand + content keywords, validated and rank-checked
- Adapters: every provider behind one keyword/backlink/authority contract
- Aggregator: fixed-priority cascade per metric family with estimate fallback
- DataForSEO client: domain overview and backlink summary
"""

from .client import DataForSEOClient, DataForSEOError
from .keyword_discovery import (
    KeywordDiscoveryEngine,
    ValidationSignal,
    ScoredCandidate,
    generate_brand_keywords,
    validation_confidence,
    filter_candidates,
    build_intent_breakdown,
    summarize_keywords,
)
from .adapters import (
    KeywordDiscoveryAdapter,
    DataForSEOKeywordAdapter,
    CommonCrawlBacklinkAdapter,
    MozBacklinkAdapter,
    DataForSEOBacklinkAdapter,
    map_discovery_result,
    map_moz_metrics,
)
from .aggregator import (
    CascadingAggregator,
    FamilyResolution,
    estimate_keywords,
    estimate_backlinks,
)

__all__ = [
    # Client
    "DataForSEOClient",
    "DataForSEOError",

    # Keyword discovery
    "KeywordDiscoveryEngine",
    "ValidationSignal",
    "ScoredCandidate",
    "generate_brand_keywords",
    "validation_confidence",
    "filter_candidates",
    "build_intent_breakdown",
    "summarize_keywords",

    # Adapters
    "KeywordDiscoveryAdapter",
    "DataForSEOKeywordAdapter",
    "CommonCrawlBacklinkAdapter",
    "MozBacklinkAdapter",
    "DataForSEOBacklinkAdapter",
    "map_discovery_result",
    "map_moz_metrics",

    # Aggregation
    "CascadingAggregator",
    "FamilyResolution",
    "estimate_keywords",
    "estimate_backlinks",
]
