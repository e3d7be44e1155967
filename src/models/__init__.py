"""
AI/SEO Readiness Auditor - Data Models

Value objects shared by the collector, scoring and API layers. Everything here
is an immutable dataclass: a new scan always builds new values.
"""

from .page import PageFacts, PerformanceFacts, SentimentFacts, ScanTarget, BrandSignals
from .keywords import (
    SearchIntent,
    KeywordType,
    DiscoveredKeyword,
    IntentBreakdown,
    KeywordDiscoveryResult,
)
from .metrics import (
    SourceTag,
    MetricFamily,
    KeywordMetrics,
    BacklinkMetrics,
    MetricSources,
    UnifiedMetrics,
)
from .scores import (
    Pillar,
    Priority,
    MetricValue,
    PillarResult,
    DetailedScores,
    Recommendation,
    ComparisonGap,
    ComparisonResult,
)

__all__ = [
    # Page facts
    "PageFacts",
    "PerformanceFacts",
    "SentimentFacts",
    "ScanTarget",
    "BrandSignals",
    # Keywords
    "SearchIntent",
    "KeywordType",
    "DiscoveredKeyword",
    "IntentBreakdown",
    "KeywordDiscoveryResult",
    # Aggregated metrics
    "SourceTag",
    "MetricFamily",
    "KeywordMetrics",
    "BacklinkMetrics",
    "MetricSources",
    "UnifiedMetrics",
    # Scores
    "Pillar",
    "Priority",
    "MetricValue",
    "PillarResult",
    "DetailedScores",
    "Recommendation",
    "ComparisonGap",
    "ComparisonResult",
]
