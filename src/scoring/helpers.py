"""
Scoring Helper Functions and Constants

Contains point budgets, band lookups, rounding and capping utilities
used across all pillar calculations.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from src.models import MetricValue, Pillar


Number = Union[int, float]


# ============================================================================
# POINT BUDGETS
# ============================================================================

TOTAL_MAX = 100

PILLAR_MAX: Dict[Pillar, int] = {
    Pillar.CONTENT_STRUCTURE: 30,
    Pillar.BRAND_RANKING: 20,
    Pillar.KEYWORD_VISIBILITY: 25,
    Pillar.AI_TRUST: 25,
}

# Sub-metric maxima per pillar. Each pillar's maxima sum to at least the
# pillar budget; the pillar cap absorbs any excess.
METRIC_MAX: Dict[Pillar, Dict[str, float]] = {
    Pillar.CONTENT_STRUCTURE: {
        "schema": 8,
        "headings": 6,
        "multimodal": 3,
        "imageAlt": 3,
        "tableLists": 2,
        "directAnswer": 5,
        "contentGap": 3,
    },
    Pillar.BRAND_RANKING: {
        "brandSearch": 5,
        "brandSentiment": 5,
        "lcp": 2,
        "inp": 2,
        "cls": 2,
        "mobile": 2,
        "ssl": 2,
    },
    Pillar.KEYWORD_VISIBILITY: {
        "keywords": 10,
        "positions": 7.5,
        "intentMatch": 7.5,
    },
    Pillar.AI_TRUST: {
        "backlinks": 6,
        "referringDomains": 4,
        "contentSentiment": 3,
        "eeat": 4,
        "local": 2,
        "llmsTxt": 3,
        "sitemap": 3,
    },
}


# ============================================================================
# ROUNDING AND CAPPING
# ============================================================================

def round_half_up(value: Number, ndigits: int = 0) -> float:
    """
    Round with halves away from zero (2.5 -> 3, 0.25 -> 0.3 at one digit).

    Python's round() is banker's rounding, which would make pillar totals
    depend on parity.
    """
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def cap(score: Number, max_score: Number) -> float:
    """Clamp a score into [0, max_score]."""
    if score is None:
        return 0.0
    return float(min(max_score, max(0, score)))


def pillar_total(breakdown: Mapping[str, MetricValue], pillar: Pillar) -> int:
    """Sum of (already capped) sub-metrics, rounded half-up, capped at the pillar max."""
    raw = sum(mv.score for mv in breakdown.values())
    return int(min(PILLAR_MAX[pillar], round_half_up(raw)))


def cap_total(pillar_scores: Union[Mapping[Pillar, Number], Iterable[Number]]) -> int:
    """Sum of pillar scores capped at TOTAL_MAX."""
    values = pillar_scores.values() if isinstance(pillar_scores, Mapping) else pillar_scores
    return int(min(TOTAL_MAX, max(0, sum(values))))


def band(value: Optional[Number], bands: Sequence[Tuple[Number, float]], default: float = 0.0) -> float:
    """
    Points for the first band whose threshold ``value`` reaches.

    Args:
        value: Measured value (None scores ``default``)
        bands: (threshold, points) pairs, highest threshold first

    Returns:
        Points for the matching band
    """
    if value is None:
        return default
    for threshold, points in bands:
        if value >= threshold:
            return points
    return default


def ceiling_band(value: Optional[Number], bands: Sequence[Tuple[Number, float]], default: float = 0.0) -> float:
    """Like band() for lower-is-better measurements (LCP, CLS, positions)."""
    if value is None:
        return default
    for threshold, points in bands:
        if value <= threshold:
            return points
    return default


def metric(
    pillar: Pillar,
    name: str,
    score: Number,
    value=None,
    insight: Optional[str] = None,
    recommendation: Optional[str] = None,
    good: Optional[Number] = None,
) -> MetricValue:
    """
    Build a capped MetricValue.

    Insight and recommendation text is attached only while the score is
    below ``good`` (defaults to the sub-metric max).
    """
    max_score = METRIC_MAX[pillar][name]
    capped = cap(score, max_score)
    threshold = max_score if good is None else good
    if capped >= threshold:
        insight = None
        recommendation = None
    return MetricValue(
        score=capped,
        max_score=max_score,
        value=value,
        insight=insight,
        recommendation=recommendation,
        good=good,
    )


# ============================================================================
# LABELS
# ============================================================================

SCORE_LABELS = (
    (90, "Excellent", "green", "Well-optimized for AI"),
    (70, "Good", "blue", "Performing well"),
    (50, "Needs Improvement", "yellow", "Needs attention"),
)


def get_score_label(score: Number) -> Dict[str, str]:
    """
    Human label for a total score.

    Returns:
        Dict with label, color and description
    """
    for threshold, label, color, description in SCORE_LABELS:
        if score >= threshold:
            return {"label": label, "color": color, "description": description}
    return {"label": "Poor", "color": "red", "description": "Significant optimization needed"}
