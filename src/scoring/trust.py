"""
AI Trust Pillar (25 points)

Signals an answer engine uses to decide whether to cite a site:

1. Backlinks (6) - domain authority
2. Referring Domains (4)
3. Content Sentiment (3) - depth of copy available for citation
4. E-E-A-T (4) - author, organization and outbound citation signals
5. Local (2) - LocalBusiness schema
6. llms.txt (3)
7. Sitemap (3)

Without aggregated backlink metrics, link signals are estimated from the
page's outbound links.
"""

import logging
from typing import Dict, Optional

from src.models import BacklinkMetrics, MetricValue, PageFacts, Pillar, PillarResult

from .helpers import band, metric, pillar_total

logger = logging.getLogger(__name__)

PILLAR = Pillar.AI_TRUST

AUTHORITY_BANDS = ((60, 6), (40, 4), (20, 2))
REFERRING_DOMAIN_BANDS = ((100, 4), (50, 3), (20, 2))


def _authority(backlinks: BacklinkMetrics) -> int:
    # Providers without Domain Authority report a 0-100 domain rating instead
    return backlinks.domain_authority or backlinks.domain_rating


def score_backlinks(page: PageFacts, backlinks: Optional[BacklinkMetrics], estimated: bool = False) -> MetricValue:
    if backlinks is None:
        score = band(page.external_links, ((10, 4), (5, 3)))
        value = f"Est. {page.external_links} ext links"
    else:
        authority = _authority(backlinks)
        score = band(authority, AUTHORITY_BANDS, default=1 if authority > 0 else 0)
        value = f"DA {authority}, {backlinks.total} backlinks"
        if estimated:
            value = f"Est. {value}"

    return metric(
        PILLAR, "backlinks", score,
        value=value,
        insight="Domain authority is low.",
        recommendation="Earn links from authoritative sites in your industry.",
        good=4,
    )


def score_referring_domains(page: PageFacts, backlinks: Optional[BacklinkMetrics], estimated: bool = False) -> MetricValue:
    if backlinks is None:
        score = band(page.external_links, ((10, 3), (5, 2)))
        value = "N/A"
    else:
        domains = backlinks.referring_domains
        score = band(domains, REFERRING_DOMAIN_BANDS, default=1 if domains > 0 else 0)
        value = f"Est. {domains}" if estimated else str(domains)

    return metric(
        PILLAR, "referringDomains", score,
        value=value,
        insight="Few unique domains link to the site.",
        recommendation="Diversify link sources: partners, directories, press.",
        good=3,
    )


def score_content_sentiment(page: PageFacts) -> MetricValue:
    return metric(
        PILLAR, "contentSentiment", band(page.word_count, ((500, 3), (200, 1.5))),
        value=f"{page.word_count} words",
        insight="Not enough copy for AI engines to quote.",
        recommendation="Add substantive, fact-based content of 500+ words.",
    )


def score_eeat(page: PageFacts) -> MetricValue:
    has_author = page.has_schema_type("Person", "Author")
    has_org = page.has_schema_type("Organization")
    score = 0.0
    if has_author:
        score += 2
    if page.external_links >= 3:
        score += 1
    if has_org:
        score += 1

    signals = [name for name, present in (("Author", has_author), ("Organization", has_org)) if present]
    return metric(
        PILLAR, "eeat", score,
        value=", ".join(signals) or "No Author",
        insight="Missing author or organization credentials.",
        recommendation="Add Person schema for authors, Organization schema, and cite external sources.",
        good=3,
    )


def score_local(page: PageFacts) -> MetricValue:
    has_local = page.has_schema_type("LocalBusiness")
    return metric(
        PILLAR, "local", 2 if has_local else 0,
        value="Yes" if has_local else "No",
        insight="No LocalBusiness schema.",
        recommendation="Add LocalBusiness schema with address and opening hours.",
    )


def score_llms_txt(page: PageFacts) -> MetricValue:
    return metric(
        PILLAR, "llmsTxt", 3 if page.has_llms_txt else 0,
        value="Found" if page.has_llms_txt else "Missing",
        insight="No llms.txt file.",
        recommendation="Publish /llms.txt describing the site's key pages for AI crawlers.",
    )


def score_sitemap(page: PageFacts) -> MetricValue:
    return metric(
        PILLAR, "sitemap", 3 if page.sitemap_valid else 0,
        value="Valid" if page.sitemap_valid else "Missing",
        insight="No valid XML sitemap.",
        recommendation="Publish /sitemap.xml listing every indexable URL.",
    )


def calculate_ai_trust_score(
    page: Optional[PageFacts],
    backlinks: Optional[BacklinkMetrics] = None,
    estimated: bool = False,
) -> PillarResult:
    """
    Score the AI Trust pillar.

    Args:
        page: Scraped page facts
        backlinks: Aggregated backlink metrics (None = estimate from the page)
        estimated: True when ``backlinks`` came from the estimate fallback
    """
    page = page or PageFacts(url="")

    breakdown: Dict[str, MetricValue] = {
        "backlinks": score_backlinks(page, backlinks, estimated),
        "referringDomains": score_referring_domains(page, backlinks, estimated),
        "contentSentiment": score_content_sentiment(page),
        "eeat": score_eeat(page),
        "local": score_local(page),
        "llmsTxt": score_llms_txt(page),
        "sitemap": score_sitemap(page),
    }

    return PillarResult(
        pillar=PILLAR,
        score=pillar_total(breakdown, PILLAR),
        max_score=25,
        breakdown=breakdown,
    )
