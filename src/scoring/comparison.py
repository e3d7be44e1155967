"""
Comparison Engine

Ranks a target against competitor scores and reports per-pillar gaps, and
averages several scored URLs of one domain into a single DetailedScores.
"""

import logging
from typing import Dict, List, Optional, Sequence

from src.models import (
    ComparisonGap,
    ComparisonResult,
    DetailedScores,
    MetricValue,
    PageFacts,
    Pillar,
    PillarResult,
)

from .engine import calculate_total_score, compose_scores
from .helpers import PILLAR_MAX, cap, pillar_total, round_half_up

logger = logging.getLogger(__name__)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compare_scores(target: DetailedScores, competitors: Sequence[DetailedScores]) -> ComparisonResult:
    """
    Rank ``target`` among its competitors.

    Rank is the 1-based position of the target in a stable descending sort of
    [target, *competitors]; the target is first in the input, so it wins ties.
    Gap = competitor average - target score, one decimal. Positive means
    competitors lead.

    Args:
        target: Scores of the audited site
        competitors: Scores of each competitor

    Returns:
        ComparisonResult (rank 1, average 0, no gaps when there are no competitors)
    """
    competitors = list(competitors)
    if not competitors:
        return ComparisonResult(rank=1, total_entries=1, avg_competitor_score=0, gaps=())

    entries = [target] + competitors
    rank = rank_entries(entries).index(0) + 1

    gaps = []
    for pillar in Pillar:
        competitor_average = _mean([c.pillar_score(pillar) for c in competitors])
        target_score = target.pillar_score(pillar)
        gaps.append(ComparisonGap(
            pillar=pillar,
            target_score=target_score,
            competitor_average=round_half_up(competitor_average, 1),
            gap=round_half_up(competitor_average - target_score, 1),
        ))

    avg_total = int(round_half_up(_mean([c.total for c in competitors])))

    logger.info(
        f"Comparison: rank {rank}/{len(entries)}, target={target.total}, "
        f"competitor average={avg_total}"
    )

    return ComparisonResult(
        rank=rank,
        total_entries=len(entries),
        avg_competitor_score=avg_total,
        gaps=tuple(gaps),
    )


def calculate_average_scores(scores: Sequence[DetailedScores]) -> DetailedScores:
    """
    Average several scored URLs of one domain.

    Sub-metric scores are averaged first (one decimal, re-capped at their
    max); each pillar is then the rounded, capped sum of its averaged
    sub-metrics and the total the capped sum of those pillars. Data source
    flags are OR-ed. An empty input returns the scores of an empty page
    without performance data.
    """
    scores = list(scores)
    if not scores:
        return calculate_total_score(PageFacts(url=""))
    if len(scores) == 1:
        return scores[0]

    pillars: Dict[Pillar, PillarResult] = {}
    for pillar in Pillar:
        names: List[str] = []
        for s in scores:
            for name in s.breakdown.get(pillar.value, {}):
                if name not in names:
                    names.append(name)

        breakdown = {
            name: average_metric([s.metric(pillar, name) for s in scores])
            for name in names
        }
        pillars[pillar] = PillarResult(
            pillar=pillar,
            score=pillar_total(breakdown, pillar),
            max_score=PILLAR_MAX[pillar],
            breakdown=breakdown,
        )

    data_source: Dict[str, bool] = {}
    for s in scores:
        for key, used in s.data_source.items():
            data_source[key] = data_source.get(key, False) or used

    return compose_scores(pillars, data_source)


def average_metric(metrics: Sequence[Optional[MetricValue]]) -> MetricValue:
    """
    Average one sub-metric across URLs. A URL without the metric counts as 0.

    The first URL's measurement is kept as the value. Insight and
    recommendation come from the first URL that carried them, and only while
    the averaged score stays below the metric's good threshold.
    """
    present = [mv for mv in metrics if mv is not None]
    base = present[0]
    score = cap(round_half_up(_mean([mv.score if mv is not None else 0.0 for mv in metrics]), 1), base.max_score)

    insight = recommendation = None
    if score < base.good_threshold:
        explained = next((mv for mv in present if mv.insight or mv.recommendation), None)
        if explained is not None:
            insight = explained.insight
            recommendation = explained.recommendation

    return MetricValue(
        score=score,
        max_score=base.max_score,
        value=base.value,
        insight=insight,
        recommendation=recommendation,
        good=base.good,
    )


def rank_entries(entries: Sequence[DetailedScores]) -> List[int]:
    """Indices of ``entries`` ordered by total, highest first (stable)."""
    return sorted(range(len(entries)), key=lambda i: entries[i].total, reverse=True)
