"""
Keyword Visibility Pillar (25 points)

1. Keywords (10) - ranking keyword count against a 20-keyword benchmark
2. Positions (7.5) - average SERP position
3. Intent Match (7.5) - share of the dominant search intent

Without aggregated keyword metrics only a rough estimate from the page's
H2 count is possible; positions and intent then score 0.
"""

import logging
from typing import Dict, Optional

from src.models import IntentBreakdown, KeywordMetrics, MetricValue, PageFacts, Pillar, PillarResult

from .helpers import band, ceiling_band, metric, pillar_total, round_half_up

logger = logging.getLogger(__name__)

PILLAR = Pillar.KEYWORD_VISIBILITY

# Keyword count a competitive SERP leader is expected to hold
KEYWORD_BENCHMARK = 20

KEYWORD_BANDS = ((100, 10), (80, 8), (60, 6), (40, 4), (20, 2))
POSITION_BANDS = ((3, 7.5), (10, 5), (20, 2.5))
INTENT_BANDS = ((80, 7.5), (60, 6), (40, 4), (20, 2))


def score_keywords(page: PageFacts, keywords: Optional[KeywordMetrics], estimated: bool = False) -> MetricValue:
    insight = None
    if keywords is None:
        h2 = len(page.h2)
        score = band(h2, ((5, 4), (3, 2)))
        value = "Est. Low"
        insight = "No keyword data; estimated from page structure."
    else:
        percent = keywords.total / KEYWORD_BENCHMARK * 100
        score = band(percent, KEYWORD_BANDS)
        value = f"{keywords.total} keywords ({int(round_half_up(percent))}% of benchmark)"
        if estimated:
            value = f"Est. {value}"
            insight = "Keyword providers returned no data; value is an estimate."

    return metric(
        PILLAR, "keywords", score,
        value=value,
        insight=insight or "Ranks for fewer keywords than SERP leaders.",
        recommendation="Target more keywords to compete with SERP leaders",
        good=6,
    )


def score_positions(keywords: Optional[KeywordMetrics]) -> MetricValue:
    avg = keywords.avg_position if keywords is not None and keywords.avg_position > 0 else None
    score = ceiling_band(avg, POSITION_BANDS)

    return metric(
        PILLAR, "positions", score,
        value=f"Avg. #{avg:g}" if avg is not None else "Unknown",
        insight="Low average position",
        recommendation="Improve on-page SEO for higher rankings",
        good=5,
    )


def format_intent_breakdown(breakdown: IntentBreakdown) -> str:
    total = breakdown.total or 1
    parts = []
    for label, count in (
        ("Info", breakdown.informational),
        ("Comm", breakdown.commercial),
        ("Trans", breakdown.transactional),
        ("Nav", breakdown.navigational),
    ):
        parts.append(f"{label}: {count} ({round_half_up(count / total * 100, 1):g}%)")
    return " | ".join(parts)


def score_intent_match(keywords: Optional[KeywordMetrics]) -> MetricValue:
    breakdown = keywords.intent_breakdown if keywords is not None else None
    if breakdown is None or breakdown.total == 0:
        return metric(
            PILLAR, "intentMatch", 0,
            value="Unknown",
            insight="No intent breakdown available.",
            recommendation="Focus content on a single primary intent for better ranking",
        )

    score = band(breakdown.dominant_percent, INTENT_BANDS)
    return metric(
        PILLAR, "intentMatch", score,
        value=f"{breakdown.dominant.value.capitalize()} {breakdown.dominant_percent:g}%",
        insight=format_intent_breakdown(breakdown),
        recommendation="Focus content on a single primary intent for better ranking",
        good=6,
    )


def calculate_keyword_visibility_score(
    page: Optional[PageFacts],
    keywords: Optional[KeywordMetrics] = None,
    estimated: bool = False,
) -> PillarResult:
    """
    Score the Keyword Visibility pillar.

    Args:
        page: Scraped page facts (used only when ``keywords`` is None)
        keywords: Aggregated keyword metrics
        estimated: True when ``keywords`` came from the estimate fallback
    """
    page = page or PageFacts(url="")

    breakdown: Dict[str, MetricValue] = {
        "keywords": score_keywords(page, keywords, estimated),
        "positions": score_positions(keywords),
        "intentMatch": score_intent_match(keywords),
    }

    return PillarResult(
        pillar=PILLAR,
        score=pillar_total(breakdown, PILLAR),
        max_score=25,
        breakdown=breakdown,
    )
