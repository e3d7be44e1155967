"""
Scoring Engine

Composes the four pillar calculators into DetailedScores.

Capping happens three times:
1. Each sub-metric is clamped to its own max before summation
2. Each pillar is rounded half-up and clamped to its budget
3. The total is clamped to 100

Pure and deterministic: the same facts always produce the same scores, and
missing or malformed facts score conservatively instead of raising.
"""

import logging
from typing import Dict, Mapping, Optional

from src.models import (
    BrandSignals,
    DetailedScores,
    PageFacts,
    PerformanceFacts,
    Pillar,
    PillarResult,
    SourceTag,
    UnifiedMetrics,
)

from .brand import calculate_brand_ranking_score
from .content import calculate_content_structure_score
from .helpers import cap_total
from .keywords import calculate_keyword_visibility_score
from .trust import calculate_ai_trust_score

logger = logging.getLogger(__name__)


def build_data_source(
    page: Optional[PageFacts],
    performance: Optional[PerformanceFacts],
    unified: Optional[UnifiedMetrics],
    brand: Optional[BrandSignals],
) -> Dict[str, bool]:
    """Which inputs contributed real (non-estimated) data."""
    flags = {
        "scraping": page is not None,
        "pagespeed": performance is not None,
        "keywordProvider": False,
        "backlinkProvider": False,
        "customSearch": brand is not None and brand.brand_position is not None,
        "gemini": brand is not None and brand.sentiment is not None,
    }
    if unified is not None:
        source = unified.source
        if source.keywords != SourceTag.ESTIMATE:
            flags["keywordProvider"] = True
            flags[source.keywords_provider] = True
        if source.backlinks != SourceTag.ESTIMATE:
            flags["backlinkProvider"] = True
            flags[source.backlinks_provider] = True
        if source.authority_provider:
            flags[source.authority_provider] = True
    return flags


def compose_scores(
    pillars: Mapping[Pillar, PillarResult],
    data_source: Optional[Dict[str, bool]] = None,
) -> DetailedScores:
    """Build DetailedScores from already-scored pillars, capping the total."""
    return DetailedScores(
        total=cap_total({pillar: result.score for pillar, result in pillars.items()}),
        content_structure=pillars[Pillar.CONTENT_STRUCTURE].score,
        brand_ranking=pillars[Pillar.BRAND_RANKING].score,
        keyword_visibility=pillars[Pillar.KEYWORD_VISIBILITY].score,
        ai_trust=pillars[Pillar.AI_TRUST].score,
        breakdown={pillar.value: dict(result.breakdown) for pillar, result in pillars.items()},
        data_source=dict(data_source or {}),
    )


def calculate_total_score(
    page: Optional[PageFacts],
    performance: Optional[PerformanceFacts] = None,
    unified: Optional[UnifiedMetrics] = None,
    brand: Optional[BrandSignals] = None,
) -> DetailedScores:
    """
    Score one page across all four pillars.

    Args:
        page: Scraped page facts
        performance: PageSpeed facts (None = unavailable)
        unified: Aggregated keyword/backlink metrics (None = page-only estimates)
        brand: Brand position and sentiment

    Returns:
        DetailedScores with the capped total and per-metric breakdown
    """
    keywords = backlinks = None
    keywords_estimated = backlinks_estimated = False
    if unified is not None:
        keywords = unified.keywords
        backlinks = unified.backlinks
        keywords_estimated = unified.source.keywords == SourceTag.ESTIMATE
        backlinks_estimated = unified.source.backlinks == SourceTag.ESTIMATE

    pillars = {
        Pillar.CONTENT_STRUCTURE: calculate_content_structure_score(page),
        Pillar.BRAND_RANKING: calculate_brand_ranking_score(page, performance, brand),
        Pillar.KEYWORD_VISIBILITY: calculate_keyword_visibility_score(page, keywords, keywords_estimated),
        Pillar.AI_TRUST: calculate_ai_trust_score(page, backlinks, backlinks_estimated),
    }

    scores = compose_scores(pillars, build_data_source(page, performance, unified, brand))

    logger.debug(
        f"Scored {page.url if page else '<no page>'}: total={scores.total} "
        f"(content={scores.content_structure}, brand={scores.brand_ranking}, "
        f"keywords={scores.keyword_visibility}, trust={scores.ai_trust})"
    )
    return scores
