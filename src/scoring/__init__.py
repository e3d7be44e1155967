"""
Scoring Module for the AI/SEO Readiness Auditor

Four pillars, 100 points:

1. **Content Structure** (30)
   Schema, headings, multimodal, image alt, tables/lists, direct answer, depth.

2. **Brand Ranking** (20)
   Brand SERP position, brand sentiment, Core Web Vitals, mobile, SSL.

3. **Keyword Visibility** (25)
   Ranking keyword count, average position, dominant intent share.

4. **AI Trust** (25)
   Authority, referring domains, content depth, E-E-A-T, local, llms.txt, sitemap.

Example Usage:
    from src.scoring import calculate_total_score, generate_recommendations, get_score_label

    scores = calculate_total_score(page_facts, performance, unified_metrics, brand_signals)
    print(f"Total: {scores.total} ({get_score_label(scores.total)['label']})")
    for rec in generate_recommendations(scores):
        print(rec.priority.value, rec.title)
"""

from .helpers import (
    PILLAR_MAX,
    METRIC_MAX,
    TOTAL_MAX,
    round_half_up,
    cap,
    cap_total,
    pillar_total,
    get_score_label,
)

from .content import calculate_content_structure_score
from .brand import calculate_brand_ranking_score, sentiment_points
from .keywords import calculate_keyword_visibility_score
from .trust import calculate_ai_trust_score

from .engine import calculate_total_score, compose_scores
from .recommendations import generate_recommendations, RecommendationRule, RULES
from .comparison import compare_scores, calculate_average_scores

__all__ = [
    # Budgets and helpers
    "PILLAR_MAX",
    "METRIC_MAX",
    "TOTAL_MAX",
    "round_half_up",
    "cap",
    "cap_total",
    "pillar_total",
    "get_score_label",
    # Pillars
    "calculate_content_structure_score",
    "calculate_brand_ranking_score",
    "sentiment_points",
    "calculate_keyword_visibility_score",
    "calculate_ai_trust_score",
    # Composition
    "calculate_total_score",
    "compose_scores",
    # Recommendations
    "generate_recommendations",
    "RecommendationRule",
    "RULES",
    # Comparison
    "compare_scores",
    "calculate_average_scores",
]
