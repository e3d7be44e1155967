"""
Tests for Keyword Discovery

Tests cover:
- Brand keyword generation
- Validation confidence and candidate filtering
- Related keywords
- Gated, capped rank checks and error handling
- Summary figures (counts, average position, intent breakdown)
- The discovery adapter on top of the engine
"""

import pytest
from typing import Dict, List, Optional

from src.collector.adapters import KeywordDiscoveryAdapter, map_discovery_result
from src.collector.keyword_discovery import (
    BRAND_QUALIFIERS,
    KeywordDiscoveryEngine,
    ScoredCandidate,
    ValidationSignal,
    build_intent_breakdown,
    filter_candidates,
    generate_brand_keywords,
    summarize_keywords,
    validation_confidence,
)
from src.integrations.base import ProviderAPIError, ProviderErrorCode
from src.integrations.gemini import ContentCandidate
from src.models import (
    DiscoveredKeyword,
    KeywordType,
    PageFacts,
    ScanTarget,
    SearchIntent,
)


# ============================================================================
# Fakes
# ============================================================================

class FakeRankChecker:
    def __init__(self, positions: Optional[Dict[str, int]] = None, errors: Optional[Dict[str, Exception]] = None):
        self.positions = positions or {}
        self.errors = errors or {}
        self.calls: List[str] = []

    async def find_position(self, keyword: str, domain: str, depth: int = 100) -> Optional[int]:
        self.calls.append(keyword)
        if keyword in self.errors:
            raise self.errors[keyword]
        return self.positions.get(keyword)


class FakeExtractor:
    def __init__(self, candidates=None, error: Optional[Exception] = None):
        self.candidates = candidates or []
        self.error = error

    async def extract_keywords(self, page_facts, brand_name):
        if self.error:
            raise self.error
        return self.candidates


class FakeValidator:
    def __init__(self, pages: Optional[Dict[str, int]] = None, related: Optional[List[str]] = None,
                 error: Optional[Exception] = None):
        self.pages = pages or {}
        self.related = related or []
        self.error = error
        self.calls: List[str] = []

    async def count_pages(self, domain: str, keyword: str) -> int:
        self.calls.append(keyword)
        if self.error:
            raise self.error
        return self.pages.get(keyword, 0)

    async def find_related_keywords(self, domain: str) -> List[str]:
        return self.related


def make_engine(fake_clock, **kwargs) -> KeywordDiscoveryEngine:
    return KeywordDiscoveryEngine(clock=fake_clock, sleep=fake_clock.sleep, **kwargs)


def keyword(text: str, intent: SearchIntent = SearchIntent.INFORMATIONAL, position: Optional[int] = None,
            kw_type: KeywordType = KeywordType.NON_BRANDED) -> DiscoveredKeyword:
    return DiscoveredKeyword(
        keyword=text,
        type=kw_type,
        intent=intent,
        confidence=1.0,
        position=position,
        in_top10=position is not None and position <= 10,
        in_top100=position is not None and position <= 100,
    )


PAGE = PageFacts(url="https://msig.co.th", title="MSIG Thailand", h1=("Car insurance",))


# ============================================================================
# Pure steps
# ============================================================================

class TestBrandKeywords:
    """Brand variants from the domain."""

    def test_brand_plus_qualifiers(self):
        keywords = generate_brand_keywords("msig", "msig.co.th")

        assert keywords[0] == "msig"
        assert len(keywords) == 1 + len(BRAND_QUALIFIERS)
        assert "msig insurance" in keywords
        assert "msig ราคา" in keywords

    def test_bare_domain_token_appended_when_different(self):
        keywords = generate_brand_keywords("foo", "foo.bar.com")

        assert keywords[-1] == "foo.bar"

    def test_empty_brand(self):
        assert generate_brand_keywords("", "") == []


class TestValidationConfidence:
    """Confidence merge for content candidates."""

    def test_unavailable_signal(self):
        assert validation_confidence(None) == 0.3

    def test_silent_signal(self):
        assert validation_confidence(ValidationSignal(pages=0)) == 0.3

    def test_corroborated(self):
        assert validation_confidence(ValidationSignal(pages=4)) == pytest.approx(0.7)

    def test_corroboration_capped_at_one(self):
        assert validation_confidence(ValidationSignal(pages=30)) == 1.0

    def test_contradicted(self):
        assert validation_confidence(ValidationSignal(pages=5, contradicted=True)) == 0.0


class TestConfidenceFilter:
    """Minimum-confidence filter for content candidates."""

    def candidate(self, keyword: str, confidence: float) -> ScoredCandidate:
        return ScoredCandidate(keyword, SearchIntent.INFORMATIONAL, confidence)

    def test_boundary(self):
        kept = filter_candidates([
            self.candidate("below", 0.29),
            self.candidate("at", 0.30),
            self.candidate("above", 0.55),
        ])

        assert [c.keyword for c in kept] == ["at", "above"]

    def test_contradicted_and_silent_candidates(self):
        kept = filter_candidates([
            self.candidate("contradicted", validation_confidence(ValidationSignal(contradicted=True))),
            self.candidate("silent", validation_confidence(None)),
        ])

        assert [c.keyword for c in kept] == ["silent"]

    def test_custom_threshold(self):
        kept = filter_candidates([self.candidate("silent", 0.3)], min_confidence=0.5)

        assert kept == []


class TestIntentBreakdown:
    """Dominant intent and percentages."""

    def test_empty(self):
        breakdown = build_intent_breakdown([])

        assert breakdown.total == 0
        assert breakdown.dominant == SearchIntent.INFORMATIONAL
        assert breakdown.dominant_percent == 0.0

    def test_tie_resolves_in_declaration_order(self):
        breakdown = build_intent_breakdown([
            keyword("a", SearchIntent.COMMERCIAL),
            keyword("b", SearchIntent.INFORMATIONAL),
        ])

        assert breakdown.dominant == SearchIntent.INFORMATIONAL
        assert breakdown.dominant_percent == 50.0

    def test_dominant_percent_one_decimal(self):
        breakdown = build_intent_breakdown([
            keyword("a", SearchIntent.TRANSACTIONAL),
            keyword("b", SearchIntent.TRANSACTIONAL),
            keyword("c", SearchIntent.NAVIGATIONAL),
        ])

        assert breakdown.dominant == SearchIntent.TRANSACTIONAL
        assert breakdown.dominant_percent == 66.7
        assert breakdown.transactional == 2


class TestSummary:
    """Roll-up of ranked keywords."""

    def test_average_over_ranked_only(self):
        result = summarize_keywords([
            keyword("msig", SearchIntent.NAVIGATIONAL, 1, KeywordType.BRANDED),
            keyword("b", position=2),
            keyword("c", position=4),
            keyword("d"),
        ], "msig")

        assert result.total_keywords_found == 4
        assert result.keywords_in_top10 == 3
        assert result.keywords_in_top100 == 3
        assert result.average_position == 2.3
        assert result.brand_position == 1

    def test_nothing_ranked(self):
        result = summarize_keywords([keyword("a"), keyword("b")], "msig")

        assert result.average_position is None
        assert result.keywords_in_top100 == 0
        assert result.brand_position is None

    def test_keyword_metrics_without_average(self):
        metrics = map_discovery_result(summarize_keywords([keyword("a")], "msig"))

        assert metrics.total == 0
        assert metrics.avg_position == 0.0
        assert metrics.is_empty

    def test_keyword_metrics_carry_brand_position(self):
        metrics = map_discovery_result(summarize_keywords([
            keyword("msig", SearchIntent.NAVIGATIONAL, 3, KeywordType.BRANDED),
            keyword("b", position=40),
            keyword("c"),
        ], "msig"))

        assert metrics.total == 2
        assert metrics.brand_position == 3
        assert "brandPosition" not in metrics.to_dict()


# ============================================================================
# Engine
# ============================================================================

@pytest.mark.asyncio
class TestDiscoveryEngine:
    """End-to-end discovery with fake collaborators."""

    async def test_brand_keywords_ranked(self, fake_clock):
        checker = FakeRankChecker({"msig": 1, "msig insurance": 5})
        engine = make_engine(fake_clock, rank_checker=checker)

        result = await engine.discover("https://msig.co.th", "msig.co.th")

        assert result.total_keywords_found == 1 + len(BRAND_QUALIFIERS)
        assert result.brand_position == 1
        assert result.keywords_in_top10 == 2
        assert result.average_position == 3.0
        assert result.intent_breakdown.dominant == SearchIntent.NAVIGATIONAL

    async def test_rank_checks_capped_and_spaced(self, fake_clock):
        checker = FakeRankChecker({"msig": 1})
        engine = make_engine(fake_clock, rank_checker=checker, max_rank_checks=3, rank_interval=0.2)

        result = await engine.discover("https://msig.co.th", "msig.co.th")

        assert len(checker.calls) == 3
        assert fake_clock.sleeps == pytest.approx([0.2, 0.2])
        # Unchecked keywords stay in the result, unranked
        assert result.total_keywords_found == 1 + len(BRAND_QUALIFIERS)
        assert result.keywords_in_top100 == 1

    async def test_content_candidates_validated(self, fake_clock):
        extractor = FakeExtractor([
            ContentCandidate("car insurance", "commercial"),
            ContentCandidate("MSIG", "navigational", branded=True),
            ContentCandidate("claims guide", "informational"),
        ])
        validator = FakeValidator(pages={"car insurance": 4})
        engine = make_engine(fake_clock, rank_checker=FakeRankChecker(), extractor=extractor,
                             validator=validator, max_related=0)

        result = await engine.discover("https://msig.co.th", "msig.co.th", PAGE)

        content = {k.keyword: k for k in result.content_keywords}
        assert set(content) == {"car insurance", "claims guide"}
        assert content["car insurance"].confidence == pytest.approx(0.7)
        assert content["car insurance"].intent == SearchIntent.COMMERCIAL
        assert content["claims guide"].confidence == pytest.approx(0.3)
        # Brand duplicate never reaches the validator
        assert validator.calls == ["car insurance", "claims guide"]

    async def test_validation_cap(self, fake_clock):
        extractor = FakeExtractor([ContentCandidate(f"topic {i}", "informational") for i in range(5)])
        validator = FakeValidator(pages={f"topic {i}": 10 for i in range(5)})
        engine = make_engine(fake_clock, extractor=extractor, validator=validator,
                             max_validation=2, max_related=0)

        result = await engine.discover("https://msig.co.th", "msig.co.th", PAGE)

        assert len(validator.calls) == 2
        confidences = [k.confidence for k in result.content_keywords]
        assert confidences == [1.0, 1.0, 0.3, 0.3, 0.3]

    async def test_validator_failure_keeps_candidates_at_silent_confidence(self, fake_clock):
        extractor = FakeExtractor([ContentCandidate("a topic", "informational"), ContentCandidate("b topic", "commercial")])
        validator = FakeValidator(error=ConnectionError("index down"))
        engine = make_engine(fake_clock, extractor=extractor, validator=validator, max_related=0)

        result = await engine.discover("https://msig.co.th", "msig.co.th", PAGE)

        assert [k.confidence for k in result.content_keywords] == [0.3, 0.3]
        assert validator.calls == ["a topic"]

    async def test_extractor_failure_falls_back_to_brand_keywords(self, fake_clock):
        engine = make_engine(fake_clock, rank_checker=FakeRankChecker(),
                             extractor=FakeExtractor(error=ValueError("bad json")))

        result = await engine.discover("https://msig.co.th", "msig.co.th", PAGE)

        assert result.content_keywords == ()
        assert len(result.brand_keywords) == 1 + len(BRAND_QUALIFIERS)

    async def test_related_keywords(self, fake_clock):
        extractor = FakeExtractor([ContentCandidate("car insurance", "commercial")])
        validator = FakeValidator(
            pages={"car insurance": 2},
            related=["msig", "travel", "car insurance", "health", "home", "motor", "fire", "life"],
        )
        engine = make_engine(fake_clock, extractor=extractor, validator=validator, max_related=5)

        result = await engine.discover("https://msig.co.th", "msig.co.th", PAGE)

        related = [k for k in result.content_keywords if k.keyword != "car insurance"]
        assert [k.keyword for k in related] == ["travel", "health", "home", "motor", "fire"]
        assert all(k.confidence == pytest.approx(0.4) for k in related)
        assert all(k.intent == SearchIntent.INFORMATIONAL for k in related)

    async def test_auth_failure_propagates(self, fake_clock):
        checker = FakeRankChecker(errors={"msig": ProviderAPIError("bad key", status_code=401)})
        engine = make_engine(fake_clock, rank_checker=checker)

        with pytest.raises(ProviderAPIError) as exc_info:
            await engine.discover("https://msig.co.th", "msig.co.th")

        assert exc_info.value.code == ProviderErrorCode.AUTH_FAILED

    async def test_rate_limit_stops_rank_checks(self, fake_clock):
        checker = FakeRankChecker(errors={"msig": ProviderAPIError("slow down", status_code=429)})
        engine = make_engine(fake_clock, rank_checker=checker)

        result = await engine.discover("https://msig.co.th", "msig.co.th")

        assert checker.calls == ["msig"]
        assert result.keywords_in_top100 == 0

    async def test_transient_error_leaves_keyword_unranked(self, fake_clock):
        checker = FakeRankChecker(
            positions={"msig insurance": 3},
            errors={"msig": ProviderAPIError("server error", status_code=500)},
        )
        engine = make_engine(fake_clock, rank_checker=checker)

        result = await engine.discover("https://msig.co.th", "msig.co.th")

        assert len(checker.calls) == 1 + len(BRAND_QUALIFIERS)
        assert result.brand_position is None
        assert result.keywords_in_top10 == 1


# ============================================================================
# Adapter
# ============================================================================

@pytest.mark.asyncio
class TestDiscoveryAdapter:
    """Keyword family view of discovery."""

    async def test_not_configured_without_rank_checker(self, fake_clock):
        adapter = KeywordDiscoveryAdapter(make_engine(fake_clock), configured=True)

        result = await adapter.get_keyword_metrics(ScanTarget.from_url("msig.co.th"))

        assert not adapter.is_configured()
        assert result.error.code == ProviderErrorCode.NOT_CONFIGURED

    async def test_ranked_keywords_mapped(self, fake_clock):
        engine = make_engine(fake_clock, rank_checker=FakeRankChecker({"msig": 1, "msig review": 14}))
        adapter = KeywordDiscoveryAdapter(engine, configured=True)

        result = await adapter.get_keyword_metrics(ScanTarget.from_url("msig.co.th"))

        assert result.ok
        assert result.value.total == 2
        assert result.value.top10 == 1
        assert result.value.avg_position == 7.5
        assert result.value.estimated_traffic == 0
        assert result.value.brand_position == 1

    async def test_nothing_ranked_is_empty(self, fake_clock):
        adapter = KeywordDiscoveryAdapter(make_engine(fake_clock, rank_checker=FakeRankChecker()), configured=True)

        result = await adapter.get_keyword_metrics(ScanTarget.from_url("msig.co.th"))

        assert not result.ok
        assert result.error.code == ProviderErrorCode.EMPTY_RESULT

    async def test_fatal_rank_error_becomes_err(self, fake_clock):
        checker = FakeRankChecker(errors={"msig": ProviderAPIError("quota", status_code=402)})
        adapter = KeywordDiscoveryAdapter(make_engine(fake_clock, rank_checker=checker), configured=True)

        result = await adapter.get_keyword_metrics(ScanTarget.from_url("msig.co.th"))

        assert result.error.code == ProviderErrorCode.QUOTA_EXHAUSTED
