"""
Keyword Discovery Models
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class SearchIntent(Enum):
    """
    Search intent classification.

    Declaration order is the tie-break order for the dominant intent.
    """
    INFORMATIONAL = "informational"
    COMMERCIAL = "commercial"
    TRANSACTIONAL = "transactional"
    NAVIGATIONAL = "navigational"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SearchIntent":
        """Map a free-form intent label to an enum member (unknown -> informational)."""
        if not value:
            return cls.INFORMATIONAL
        normalized = value.strip().lower()
        if normalized.startswith("commercial"):
            # "commercial investigation" is what the extractor often returns
            return cls.COMMERCIAL
        for member in cls:
            if member.value == normalized:
                return member
        return cls.INFORMATIONAL


class KeywordType(Enum):
    BRANDED = "branded"
    NON_BRANDED = "non-branded"


@dataclass(frozen=True)
class DiscoveredKeyword:
    """A keyword candidate, optionally enriched with its SERP position."""
    keyword: str
    type: KeywordType
    intent: SearchIntent
    confidence: float
    position: Optional[int] = None      # None = not ranked within lookup depth
    in_top10: bool = False
    in_top100: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "type": self.type.value,
            "intent": self.intent.value,
            "confidence": round(self.confidence, 2),
            "position": self.position,
            "inTop10": self.in_top10,
            "inTop100": self.in_top100,
        }


@dataclass(frozen=True)
class IntentBreakdown:
    """Intent counts plus the single dominant intent."""
    informational: int = 0
    commercial: int = 0
    transactional: int = 0
    navigational: int = 0
    dominant: SearchIntent = SearchIntent.INFORMATIONAL
    dominant_percent: float = 0.0

    @property
    def total(self) -> int:
        return self.informational + self.commercial + self.transactional + self.navigational

    def count(self, intent: SearchIntent) -> int:
        return getattr(self, intent.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "informational": self.informational,
            "commercial": self.commercial,
            "transactional": self.transactional,
            "navigational": self.navigational,
            "dominant": self.dominant.value,
            "dominantPercent": self.dominant_percent,
        }


@dataclass(frozen=True)
class KeywordDiscoveryResult:
    """Summary of one keyword discovery run."""
    total_keywords_found: int = 0
    keywords_in_top10: int = 0
    keywords_in_top100: int = 0
    average_position: Optional[float] = None
    brand_keywords: Tuple[DiscoveredKeyword, ...] = ()
    brand_position: Optional[int] = None
    content_keywords: Tuple[DiscoveredKeyword, ...] = ()
    intent_breakdown: IntentBreakdown = field(default_factory=IntentBreakdown)
    all_keywords: Tuple[DiscoveredKeyword, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalKeywordsFound": self.total_keywords_found,
            "keywordsInTop10": self.keywords_in_top10,
            "keywordsInTop100": self.keywords_in_top100,
            "averagePosition": self.average_position,
            "brandPosition": self.brand_position,
            "brandKeywords": [k.to_dict() for k in self.brand_keywords],
            "contentKeywords": [k.to_dict() for k in self.content_keywords],
            "intentBreakdown": self.intent_breakdown.to_dict(),
        }
