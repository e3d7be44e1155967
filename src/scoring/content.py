"""
Content Structure Pillar (30 points)

How readable the page is for AI answer engines:

1. Schema (8) - JSON-LD present (3), rich type present (+5)
2. Headings (6) - single H1, H1 > H2 > H3 hierarchy
3. Multimodal (3) - videos and image density
4. Image ALT (3) - alt text coverage
5. Tables/Lists (2) - structured formats
6. Direct Answer (5) - enough copy under an H1 to answer a query
7. Content Gap (3) - depth of coverage
"""

import logging
from typing import Dict, Optional

from src.models import MetricValue, PageFacts, Pillar, PillarResult

from .helpers import band, metric, pillar_total, round_half_up

logger = logging.getLogger(__name__)

PILLAR = Pillar.CONTENT_STRUCTURE

RICH_SCHEMA_TYPES = ("FAQ", "HowTo", "Product", "Recipe", "Article")


def score_schema(page: PageFacts) -> MetricValue:
    score = 0.0
    insight = "No schema markup detected."
    recommendation = "Add JSON-LD schema to help AI understand your content."
    rich = []

    if page.has_schema or page.schema_types:
        score += 3
        insight = "Basic schema detected."
        recommendation = "Consider adding more specific schema types."
        rich = [t for t in page.schema_types if any(r.lower() in t.lower() for r in RICH_SCHEMA_TYPES)]
        if rich:
            score += 5

    return metric(
        PILLAR, "schema", score,
        value=", ".join(page.schema_types) or "None",
        insight=insight,
        recommendation=recommendation,
    )


def score_headings(page: PageFacts) -> MetricValue:
    h1, h2, h3 = len(page.h1), len(page.h2), len(page.h3)
    single_h1 = h1 == 1

    score = 0.0
    if single_h1:
        score += 3.5
    if h1 and h2:
        score += 2 if single_h1 else 1
    if h1 and h2 and h3:
        score += 0.5

    if h1 == 0:
        insight = "Missing H1 tag - critical for SEO."
        recommendation = "Add exactly one H1 tag that describes the main topic."
    elif h1 > 1:
        insight = f"Multiple H1 tags found ({h1}). Should be exactly 1."
        recommendation = "Keep only one H1 and convert others to H2."
    elif h2 and not h3:
        insight = "Good structure, but missing H3 for subsections."
        recommendation = "Add H3 tags to break up longer sections."
    else:
        insight = "Has H1, but missing H2/H3 hierarchy."
        recommendation = "Add H2 sections to structure your content."

    return metric(
        PILLAR, "headings", score,
        value=f"H1: {h1}, H2: {h2}, H3: {h3}",
        insight=insight,
        recommendation=recommendation,
    )


def score_multimodal(page: PageFacts) -> MetricValue:
    score = band(page.video_count, ((2, 2), (1, 1)))
    if page.image_count >= 5 or page.video_count >= 1:
        score += 1

    return metric(
        PILLAR, "multimodal", score,
        value=f"{page.image_count} Images, {page.video_count} Videos",
        insight="Few images or videos support the text.",
        recommendation="Add explanatory images or an embedded video.",
    )


def score_image_alt(page: PageFacts) -> MetricValue:
    if page.image_count <= 0:
        return metric(PILLAR, "imageAlt", 0, value="No images")

    coverage = page.alt_coverage
    score = band(coverage, ((80, 3), (60, 2), (40, 1)))
    label = {3: "Excellent", 2: "Good", 1: "Needs improvement"}.get(score, "Poor")

    return metric(
        PILLAR, "imageAlt", score,
        value=f"{int(round_half_up(coverage))}% coverage ({label})",
        insight=f"{page.image_count - page.images_with_alt} of {page.image_count} images have no alt text.",
        recommendation="Describe every content image with alt text.",
    )


def score_table_lists(page: PageFacts) -> MetricValue:
    score = 0.0
    if page.table_count >= 1:
        score += 1
    score += band(page.list_count, ((3, 1), (1, 0.5)))

    if score >= 1:
        insight = "Some structured content, but could improve."
        recommendation = "Add more tables or lists for better AI parsing."
    else:
        insight = "Content lacks structured data formats."
        recommendation = "Add comparison tables and bulleted lists to improve AI readability."

    return metric(
        PILLAR, "tableLists", score,
        value=f"{page.table_count} Tables, {page.list_count} Lists",
        insight=insight,
        recommendation=recommendation,
    )


def score_direct_answer(page: PageFacts) -> MetricValue:
    if page.word_count >= 50 and page.h1:
        score = 5
    else:
        score = band(page.word_count, ((30, 3), (15, 1)))

    return metric(
        PILLAR, "directAnswer", score,
        value="Present" if score == 5 else "Missing",
        insight="No concise answer under a clear H1.",
        recommendation="Open with a short paragraph that directly answers the page's main question.",
    )


def score_content_gap(page: PageFacts) -> MetricValue:
    if page.word_count >= 1000 and len(page.h2) >= 3:
        score = 3
    else:
        score = band(page.word_count, ((500, 2), (200, 1)))

    return metric(
        PILLAR, "contentGap", score,
        value=f"{page.word_count} words",
        insight="Topic coverage is thin.",
        recommendation="Expand the page to 1,000+ words across at least three H2 sections.",
    )


def calculate_content_structure_score(page: Optional[PageFacts]) -> PillarResult:
    """
    Score the Content Structure pillar.

    Args:
        page: Scraped page facts (None scores as an empty page)

    Returns:
        PillarResult with the seven sub-metrics
    """
    page = page or PageFacts(url="")

    breakdown: Dict[str, MetricValue] = {
        "schema": score_schema(page),
        "headings": score_headings(page),
        "multimodal": score_multimodal(page),
        "imageAlt": score_image_alt(page),
        "tableLists": score_table_lists(page),
        "directAnswer": score_direct_answer(page),
        "contentGap": score_content_gap(page),
    }

    return PillarResult(
        pillar=PILLAR,
        score=pillar_total(breakdown, PILLAR),
        max_score=30,
        breakdown=breakdown,
    )
