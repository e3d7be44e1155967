"""
Score Models

Output of the scoring and comparison engines.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


class Pillar(Enum):
    """Top-level scoring categories. Values are the wire keys."""
    CONTENT_STRUCTURE = "contentStructure"
    BRAND_RANKING = "brandRanking"
    KEYWORD_VISIBILITY = "keywordVisibility"
    AI_TRUST = "aiTrust"


class Priority(Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return {"HIGH": 0, "MEDIUM": 1, "LOW": 2}[self.value]


@dataclass(frozen=True)
class MetricValue:
    """Score of one sub-metric plus its explanation."""
    score: float
    max_score: float
    value: Optional[Union[str, int, float]] = None
    insight: Optional[str] = None
    recommendation: Optional[str] = None
    good: Optional[float] = None        # score at which the insight is dropped (None = max)

    @property
    def good_threshold(self) -> float:
        return self.max_score if self.good is None else self.good

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"score": self.score, "max": self.max_score}
        if self.value is not None:
            data["value"] = self.value
        if self.insight:
            data["insight"] = self.insight
        if self.recommendation:
            data["recommendation"] = self.recommendation
        return data


@dataclass(frozen=True)
class PillarResult:
    """Score of one pillar with its sub-metric breakdown."""
    pillar: Pillar
    score: int
    max_score: int
    breakdown: Dict[str, MetricValue] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "max": self.max_score,
            "breakdown": {name: mv.to_dict() for name, mv in self.breakdown.items()},
        }


@dataclass(frozen=True)
class DetailedScores:
    """Four pillar scores, their breakdowns and the capped total."""
    total: int
    content_structure: int
    brand_ranking: int
    keyword_visibility: int
    ai_trust: int
    breakdown: Dict[str, Dict[str, MetricValue]] = field(default_factory=dict)
    data_source: Dict[str, bool] = field(default_factory=dict)

    def pillar_score(self, pillar: Pillar) -> int:
        return {
            Pillar.CONTENT_STRUCTURE: self.content_structure,
            Pillar.BRAND_RANKING: self.brand_ranking,
            Pillar.KEYWORD_VISIBILITY: self.keyword_visibility,
            Pillar.AI_TRUST: self.ai_trust,
        }[pillar]

    def pillar_scores(self) -> Dict[Pillar, int]:
        return {pillar: self.pillar_score(pillar) for pillar in Pillar}

    def metric(self, pillar: Pillar, name: str) -> Optional[MetricValue]:
        return self.breakdown.get(pillar.value, {}).get(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "contentStructure": self.content_structure,
            "brandRanking": self.brand_ranking,
            "keywordVisibility": self.keyword_visibility,
            "aiTrust": self.ai_trust,
            "breakdown": {
                pillar: {name: mv.to_dict() for name, mv in metrics.items()}
                for pillar, metrics in self.breakdown.items()
            },
            "dataSource": dict(self.data_source),
        }


@dataclass(frozen=True)
class Recommendation:
    """Actionable fix derived from a low-scoring sub-metric."""
    pillar: Pillar
    priority: Priority
    title: str
    description: str
    impact: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "pillar": self.pillar.value,
            "priority": self.priority.value,
            "title": self.title,
            "description": self.description,
        }
        if self.impact:
            data["impact"] = self.impact
        return data


@dataclass(frozen=True)
class ComparisonGap:
    """Per-pillar gap. Positive means competitors are ahead."""
    pillar: Pillar
    target_score: int
    competitor_average: float
    gap: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pillar": self.pillar.value,
            "targetScore": self.target_score,
            "competitorAverage": self.competitor_average,
            "gap": self.gap,
        }


@dataclass(frozen=True)
class ComparisonResult:
    rank: int
    total_entries: int
    avg_competitor_score: int
    gaps: Tuple[ComparisonGap, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "totalEntries": self.total_entries,
            "avgCompetitorScore": self.avg_competitor_score,
            "gaps": [g.to_dict() for g in self.gaps],
        }
