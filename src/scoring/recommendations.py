"""
Recommendation Generator

Turns low-scoring sub-metrics into prioritized, actionable fixes.
Recommendations depend on DetailedScores alone, so averaged domain scores
produce recommendations the same way a single page does.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from src.models import DetailedScores, MetricValue, Pillar, Priority, Recommendation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecommendationRule:
    """Fires when the sub-metric's score is below ``below``."""
    pillar: Pillar
    metric: str
    below: float
    priority: Priority
    title: str
    description: str
    impact: Optional[str] = None
    # Titles may embed the measured value, e.g. "LCP: {value}"
    include_value: bool = False


RULES = (
    # Content Structure
    RecommendationRule(
        Pillar.CONTENT_STRUCTURE, "schema", 3, Priority.HIGH,
        "Add Schema.org structured data",
        "Implement JSON-LD schema markup (FAQ, HowTo, or Article) to help AI understand your content better.",
        "High - Improves AI readability",
    ),
    RecommendationRule(
        Pillar.CONTENT_STRUCTURE, "schema", 8, Priority.MEDIUM,
        "Add a rich schema type",
        "Basic schema is present. Add FAQ, HowTo, Product or Article schema so answer engines can quote the page.",
        "Medium - Rich result eligibility",
    ),
    RecommendationRule(
        Pillar.CONTENT_STRUCTURE, "headings", 3.5, Priority.HIGH,
        "Use exactly one H1 heading",
        "Every page should have exactly one H1 tag that describes the main topic.",
        "High - Critical for SEO and accessibility",
    ),
    RecommendationRule(
        Pillar.CONTENT_STRUCTURE, "directAnswer", 5, Priority.MEDIUM,
        "Answer the main question up front",
        "Open the page with a short paragraph under the H1 that directly answers the query it targets.",
        "Medium - Featured snippet and AI answer eligibility",
    ),
    RecommendationRule(
        Pillar.CONTENT_STRUCTURE, "tableLists", 1, Priority.MEDIUM,
        "Add structured data tables",
        "Include comparison tables or data tables to present information in an AI-friendly format.",
        "Medium - Better featured snippet opportunities",
    ),
    RecommendationRule(
        Pillar.CONTENT_STRUCTURE, "imageAlt", 2, Priority.LOW,
        "Add alt text to images",
        "Describe content images with alt text so they can be understood without rendering.",
        "Low - Accessibility and image search",
    ),
    RecommendationRule(
        Pillar.CONTENT_STRUCTURE, "multimodal", 2, Priority.LOW,
        "Add video content",
        "Include relevant video content with transcripts to improve multimodal signals.",
        "Low - Enhances user engagement",
    ),
    # Brand Ranking
    RecommendationRule(
        Pillar.BRAND_RANKING, "ssl", 2, Priority.HIGH,
        "Enable HTTPS/SSL",
        "Install SSL certificate to secure your website and improve trust signals.",
        "High - Security and ranking factor",
    ),
    RecommendationRule(
        Pillar.BRAND_RANKING, "lcp", 2, Priority.HIGH,
        "Optimize Largest Contentful Paint",
        "Improve LCP by optimizing images, using CDN, and reducing server response time. Target: < 2.5s",
        "High - Critical Core Web Vital",
        include_value=True,
    ),
    RecommendationRule(
        Pillar.BRAND_RANKING, "cls", 2, Priority.HIGH,
        "Fix Cumulative Layout Shift",
        "Reserve space for images, ads, and dynamic content to prevent layout shifts. Target: < 0.1",
        "High - Critical Core Web Vital",
        include_value=True,
    ),
    RecommendationRule(
        Pillar.BRAND_RANKING, "inp", 2, Priority.MEDIUM,
        "Reduce main-thread blocking",
        "Split long JavaScript tasks and defer non-critical scripts. Target: < 100ms total blocking time",
        "Medium - Interaction responsiveness",
        include_value=True,
    ),
    RecommendationRule(
        Pillar.BRAND_RANKING, "mobile", 2, Priority.MEDIUM,
        "Improve mobile performance",
        "Optimize for mobile devices with responsive design and fast loading times.",
        "Medium - Mobile-first indexing",
    ),
    RecommendationRule(
        Pillar.BRAND_RANKING, "brandSearch", 3, Priority.MEDIUM,
        "Rank first for your brand name",
        "Make the homepage title, Organization schema and profiles consistent so brand searches land on your site.",
        "Medium - Brand trust signal",
    ),
    # Keyword Visibility
    RecommendationRule(
        Pillar.KEYWORD_VISIBILITY, "keywords", 6, Priority.MEDIUM,
        "Target more keywords",
        "Build pages around the commercial and informational queries your competitors rank for.",
        "Medium - Organic reach",
    ),
    RecommendationRule(
        Pillar.KEYWORD_VISIBILITY, "positions", 5, Priority.MEDIUM,
        "Move rankings onto page one",
        "Improve on-page SEO and internal linking for keywords ranking beyond position 10.",
        "Medium - Most clicks go to the top 10",
    ),
    # AI Trust
    RecommendationRule(
        Pillar.AI_TRUST, "eeat", 2, Priority.MEDIUM,
        "Add author information",
        "Include author bio and credentials using schema markup to demonstrate expertise.",
        "Medium - Enhances E-E-A-T",
    ),
    RecommendationRule(
        Pillar.AI_TRUST, "backlinks", 2, Priority.MEDIUM,
        "Build domain authority",
        "Earn links from reputable sites in your industry through PR, partnerships and original research.",
        "Medium - AI engines prefer authoritative sources",
    ),
    RecommendationRule(
        Pillar.AI_TRUST, "llmsTxt", 3, Priority.LOW,
        "Publish an llms.txt file",
        "Add /llms.txt summarizing the site's key pages for AI crawlers.",
        "Low - Emerging AI crawler standard",
    ),
    RecommendationRule(
        Pillar.AI_TRUST, "sitemap", 3, Priority.LOW,
        "Publish a valid XML sitemap",
        "Add /sitemap.xml listing every indexable URL and reference it from robots.txt.",
        "Low - Crawl coverage",
    ),
)


def _title(rule: RecommendationRule, mv: MetricValue) -> str:
    if rule.include_value and mv.value not in (None, "N/A"):
        return f"{rule.title} ({rule.metric.upper()}: {mv.value})"
    return rule.title


def generate_recommendations(
    scores: DetailedScores,
    rules=RULES,
    limit: Optional[int] = None,
) -> List[Recommendation]:
    """
    Build recommendations for every rule whose sub-metric scores below its bar.

    Only the first matching rule per sub-metric fires. The result is
    stable-sorted HIGH -> MEDIUM -> LOW, keeping rule order within a priority.

    Args:
        scores: Scores to inspect
        rules: Rule table (defaults to RULES)
        limit: Optional maximum number of recommendations

    Returns:
        List of Recommendation
    """
    recommendations: List[Recommendation] = []
    fired = set()

    for rule in rules:
        key = (rule.pillar, rule.metric)
        if key in fired:
            continue
        mv = scores.metric(rule.pillar, rule.metric)
        if mv is None or mv.score >= rule.below:
            continue
        fired.add(key)
        recommendations.append(Recommendation(
            pillar=rule.pillar,
            priority=rule.priority,
            title=_title(rule, mv),
            description=rule.description,
            impact=rule.impact,
        ))

    recommendations.sort(key=lambda r: r.priority.rank)
    if limit is not None:
        recommendations = recommendations[:limit]

    logger.debug(f"Generated {len(recommendations)} recommendations")
    return recommendations
