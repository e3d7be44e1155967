"""
Brand Ranking Pillar (20 points)

Brand strength plus the technical experience a brand visitor gets:

1. Brand Search (5) - SERP position for the brand name
2. Brand Sentiment (5) - community, review and PR mentions
3. Core Web Vitals (2 each) - LCP, interactivity (TBT proxy), CLS
4. Mobile (2) - Lighthouse mobile performance score
5. SSL (2) - served over HTTPS

Missing performance data scores every vital as poor.
"""

import logging
from typing import Dict, Optional

from src.models import (
    BrandSignals,
    MetricValue,
    PageFacts,
    PerformanceFacts,
    Pillar,
    PillarResult,
    SentimentFacts,
)

from .helpers import band, ceiling_band, metric, pillar_total

logger = logging.getLogger(__name__)

PILLAR = Pillar.BRAND_RANKING

# (good, needs improvement) ceilings; good = 2 points, needs improvement = 1
LCP_BANDS = ((2.5, 2), (4.0, 1))
INTERACTIVITY_BANDS = ((100, 2), (300, 1))
CLS_BANDS = ((0.1, 2), (0.25, 1))


def score_brand_search(position: Optional[int]) -> MetricValue:
    if position is None or position <= 0:
        score = 0
        value = "Not in top 10"
    else:
        score = ceiling_band(position, ((1, 5), (3, 3), (10, 1.5)))
        value = f"#{position}"

    return metric(
        PILLAR, "brandSearch", score,
        value=value,
        insight="Brand name searches do not lead with this site.",
        recommendation="Strengthen the homepage title, Organization schema and brand mentions so the site ranks #1 for its own name.",
        good=3,
    )


def sentiment_points(sentiment: SentimentFacts) -> float:
    """Brand sentiment points. Two or more negative community mentions override everything."""
    positive = sentiment.community_positive
    negative = sentiment.community_negative
    pr = sentiment.pr_mentions

    if negative >= 2:
        return 0
    if positive >= 2:
        return 5
    if positive >= 1 and pr >= 1:
        return 4
    if pr >= 1 and positive == 0 and negative == 0:
        return 2
    if negative == 1:
        return 1
    return 2.5


def score_brand_sentiment(sentiment: Optional[SentimentFacts]) -> MetricValue:
    if sentiment is None:
        return metric(
            PILLAR, "brandSentiment", 0,
            value="Unavailable",
            insight="Brand sentiment could not be analyzed.",
            recommendation="Build reviews and community discussion around the brand.",
        )

    score = sentiment_points(sentiment)
    if score == 0:
        insight = f"{sentiment.community_negative} negative community mentions found."
        recommendation = "Respond to complaints publicly and resolve recurring issues."
    elif score <= 2:
        insight = "Few positive community mentions."
        recommendation = "Encourage satisfied customers to share reviews in forums and review sites."
    else:
        insight = "Sentiment is mostly neutral."
        recommendation = "Earn PR coverage and community recommendations."

    return metric(
        PILLAR, "brandSentiment", score,
        value=sentiment.sentiment.capitalize(),
        insight=insight,
        recommendation=recommendation,
        good=4,
    )


def score_core_web_vitals(performance: Optional[PerformanceFacts]) -> Dict[str, MetricValue]:
    if performance is None:
        return {
            "lcp": metric(PILLAR, "lcp", 0, value="N/A",
                          insight="Performance data unavailable.",
                          recommendation="Run PageSpeed Insights to measure Core Web Vitals."),
            "inp": metric(PILLAR, "inp", 0, value="N/A"),
            "cls": metric(PILLAR, "cls", 0, value="N/A"),
        }

    # A missing audit scores as poor (ceiling_band returns 0 for None)
    return {
        "lcp": metric(
            PILLAR, "lcp", ceiling_band(performance.lcp_seconds, LCP_BANDS),
            value=_vital(performance.lcp_seconds, "{:.1f}s"),
            insight="Largest Contentful Paint is slower than 2.5s.",
            recommendation="Compress hero images and defer render-blocking resources.",
        ),
        "inp": metric(
            PILLAR, "inp", ceiling_band(performance.interactivity_ms, INTERACTIVITY_BANDS),
            value=_vital(performance.interactivity_ms, "{:.0f}ms"),
            insight="Main thread is blocked for more than 100ms.",
            recommendation="Split long JavaScript tasks and remove unused scripts.",
        ),
        "cls": metric(
            PILLAR, "cls", ceiling_band(performance.cls, CLS_BANDS),
            value=_vital(performance.cls, "{:.3f}"),
            insight="Layout shifts while the page loads.",
            recommendation="Reserve space for images, ads and embeds.",
        ),
    }


def _vital(measurement: Optional[float], template: str) -> str:
    return template.format(measurement) if measurement is not None else "N/A"


def score_mobile(performance: Optional[PerformanceFacts]) -> MetricValue:
    mobile = performance.mobile_score if performance is not None else None
    return metric(
        PILLAR, "mobile", band(mobile, ((90, 2), (50, 1))),
        value=f"{mobile}/100" if mobile is not None else "N/A",
        insight="Mobile performance score is below 90.",
        recommendation="Optimize the mobile experience: smaller bundles, responsive images.",
    )


def score_ssl(page: PageFacts) -> MetricValue:
    return metric(
        PILLAR, "ssl", 2 if page.has_ssl else 0,
        value="HTTPS" if page.has_ssl else "HTTP",
        insight="Site is not served over HTTPS.",
        recommendation="Install a TLS certificate and redirect HTTP to HTTPS.",
    )


def calculate_brand_ranking_score(
    page: Optional[PageFacts],
    performance: Optional[PerformanceFacts] = None,
    brand: Optional[BrandSignals] = None,
) -> PillarResult:
    """
    Score the Brand Ranking pillar.

    Args:
        page: Scraped page facts
        performance: PageSpeed facts (None = unavailable, scored as poor)
        brand: Brand position and sentiment (either part may be missing)
    """
    page = page or PageFacts(url="")
    brand = brand or BrandSignals()

    breakdown: Dict[str, MetricValue] = {
        "brandSearch": score_brand_search(brand.brand_position),
        "brandSentiment": score_brand_sentiment(brand.sentiment),
    }
    breakdown.update(score_core_web_vitals(performance))
    breakdown["mobile"] = score_mobile(performance)
    breakdown["ssl"] = score_ssl(page)

    return PillarResult(
        pillar=PILLAR,
        score=pillar_total(breakdown, PILLAR),
        max_score=20,
        breakdown=breakdown,
    )
