"""Tests for keyword scoring, recommendation and analytics."""
import random

import pytest

from listing_optimizer.errors import ValidationError
from listing_optimizer.keyword_scoring import (
    EMPTY_GROUP_STATS, KeywordRecommender, KeywordScorer,
    analyze_distribution, calculate_tag_weight, find_keyword_gaps,
    find_opportunity_keywords, normalize_volume, recommendation_reason,
)
from listing_optimizer.models import AlgorithmWeights, Keyword, KeywordTag


class FixedRandom:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    def random(self):
        self.calls += 1
        return self.value


@pytest.fixture
def scorer():
    return KeywordScorer(AlgorithmWeights(volume=0.7, competition=0.3, tag=0.1))


@pytest.fixture
def catalog():
    return [
        Keyword("스마트폰", 10000, 85, tags={"trending", "category"}),
        Keyword("갤럭시", 8500, 90, tags={"brand"}),
        Keyword("무선이어폰", 6000, 70, tags={"feature"}),
        Keyword("게이밍마우스", 3000, 60, tags={"feature", "custom"}),
        Keyword("폰케이스 투명", 400, 15, tags={"longtail"}),
        Keyword("충전기", 0, 0),
    ]


# ── Scorer ──────────────────────────────────────────────────

class TestKeywordScorer:
    def test_two_keyword_snapshot(self, scorer):
        scored = scorer.calculate_scores([
            Keyword("스마트폰", 10000, 85),
            Keyword("케이스", 500, 20),
        ])
        assert scored[0].score == 55.78
        assert scored[1].score == 0.0
        assert scored[0].score > scored[1].score

    def test_score_bounds(self, scorer, catalog):
        for kw in scorer.calculate_scores(catalog):
            assert 0 <= kw.score <= 100

    def test_bounds_with_large_weights(self, catalog):
        scorer = KeywordScorer(AlgorithmWeights(volume=5, competition=0, tag=5, ctr=5))
        for kw in scorer.calculate_scores(catalog):
            assert 0 <= kw.score <= 100

    def test_single_keyword_normalizes_to_half(self, scorer):
        kw = Keyword("스마트폰", 10000, 0)
        stats = scorer.calculate_group_stats([kw])
        result = scorer.calculate_score(kw, stats)
        assert result.normalized_volume == 0.5
        assert result.score == 35.0

    def test_idempotent(self, scorer, catalog):
        first = [k.score for k in scorer.calculate_scores(catalog)]
        second = [k.score for k in scorer.calculate_scores(catalog)]
        assert first == second

    def test_inputs_not_mutated(self, scorer, catalog):
        scorer.calculate_scores(catalog)
        assert all(k.score is None for k in catalog)

    def test_empty_batch(self, scorer):
        assert scorer.calculate_scores([]) == []
        assert scorer.calculate_group_stats([]) == EMPTY_GROUP_STATS

    def test_zero_competition_no_penalty(self, scorer):
        result = scorer.calculate_score(
            Keyword("a", 100, 0), scorer.calculate_group_stats([Keyword("a", 100, 0), Keyword("b", 0, 0)])
        )
        assert result.breakdown.competition_penalty == 0
        assert result.score == 70.0

    def test_ctr_bonus_applied_when_configured(self):
        scorer = KeywordScorer(AlgorithmWeights(ctr=0.5))
        result = scorer.calculate_score(Keyword("a", 100, 0, weight=0.8))
        assert result.breakdown.ctr_bonus == pytest.approx(0.4)
        assert "CTR" in result.explanation

    def test_ctr_bonus_ignored_without_weight(self, scorer):
        result = scorer.calculate_score(Keyword("a", 100, 0, weight=0.8))
        assert result.breakdown.ctr_bonus is None

    def test_weights_property_is_copy(self, scorer):
        w = scorer.weights
        w.volume = 99
        assert scorer.weights.volume == 0.7

    def test_update_weights(self, scorer):
        scorer.update_weights(AlgorithmWeights(volume=1.0, competition=0, tag=0))
        result = scorer.calculate_score(Keyword("a", 10, 50), scorer.calculate_group_stats(
            [Keyword("a", 10, 50), Keyword("b", 0, 0)]))
        assert result.score == 100.0

    def test_explanation_mentions_tags(self, scorer):
        result = scorer.calculate_score(Keyword("a", 100, 10, tags={"longtail"}))
        assert "롱테일 키워드" in result.explanation
        assert "낮은 경쟁도" in result.explanation

    def test_negative_competition_rejected_before_scoring(self):
        scorer = KeywordScorer(AlgorithmWeights(competition=1.0))
        with pytest.raises(ValidationError) as exc:
            scorer.calculate_scores([Keyword("a", 10, -100), Keyword("b", 5, 10)])
        assert exc.value.fields == ["keywords[0].competition"]

    def test_negative_volume_rejected(self, scorer):
        with pytest.raises(ValidationError):
            scorer.calculate_scores([Keyword("a", -5, 10)])
        with pytest.raises(ValidationError):
            scorer.calculate_score(Keyword("a", -5, 10))

    def test_competition_over_100_rejected(self, scorer):
        with pytest.raises(ValidationError):
            scorer.calculate_score(Keyword("a", 10, 500))

    def test_batch_reports_every_invalid_keyword(self, scorer):
        with pytest.raises(ValidationError) as exc:
            scorer.calculate_scores([
                Keyword("a", -5, 10),
                Keyword("ok", 10, 10),
                Keyword("c", 10, 500, weight=2.0),
            ])
        assert exc.value.fields == [
            "keywords[0].volume", "keywords[2].competition", "keywords[2].weight",
        ]
        assert "c: 경쟁도는 0-100 사이여야 합니다" in str(exc.value)

    def test_recommender_and_opportunities_validate(self):
        bad = [Keyword("a", 10, 500), Keyword("b", 5, 10)]
        with pytest.raises(ValidationError):
            KeywordRecommender(rng=FixedRandom(0.0)).recommend(bad)
        with pytest.raises(ValidationError):
            find_opportunity_keywords(bad)


class TestNormalizeVolume:
    def test_monotonic(self, scorer, catalog):
        stats = scorer.calculate_group_stats(catalog)
        values = [normalize_volume(v, stats) for v in range(0, 10001, 250)]
        assert values == sorted(values)

    def test_range(self, scorer, catalog):
        stats = scorer.calculate_group_stats(catalog)
        assert normalize_volume(stats.min_volume, stats) == 0.0
        assert normalize_volume(stats.max_volume, stats) == 1.0
        assert normalize_volume(10 ** 9, stats) == 1.0


class TestTagWeight:
    def test_no_tags(self):
        assert calculate_tag_weight(frozenset()) == 0.0

    def test_single_tag(self):
        assert calculate_tag_weight({KeywordTag.TRENDING}) == pytest.approx(0.8 + 0.2 / 3)

    def test_saturates_at_three(self):
        tags = {KeywordTag.TRENDING, KeywordTag.BRAND, KeywordTag.LONGTAIL}
        assert calculate_tag_weight(tags) == pytest.approx(0.7 + 0.2)

    def test_never_above_one(self):
        assert calculate_tag_weight(set(KeywordTag)) <= 1.0


# ── Recommender ─────────────────────────────────────────────

class TestKeywordRecommender:
    @pytest.fixture
    def same_tag(self):
        # every score stays well below the always-admit threshold
        return [
            Keyword("a", 10000, 90, tags={"trending"}),
            Keyword("b", 5000, 90, tags={"trending"}),
            Keyword("c", 100, 90, tags={"trending"}),
        ]

    def test_duplicate_tags_rejected_when_rng_low(self, same_tag):
        rec = KeywordRecommender(rng=FixedRandom(0.0))
        result = rec.recommend(same_tag, count=3, diversity_factor=0.3)
        assert [r.keyword.term for r in result] == ["a"]

    def test_duplicate_tags_admitted_when_rng_high(self, same_tag):
        rec = KeywordRecommender(rng=FixedRandom(0.99))
        result = rec.recommend(same_tag, count=3, diversity_factor=0.3)
        assert [r.keyword.term for r in result] == ["a", "b", "c"]

    def test_new_tag_always_admitted(self):
        rng = FixedRandom(0.0)
        kws = [
            Keyword("a", 10000, 90, tags={"trending"}),
            Keyword("b", 5000, 90, tags={"brand"}),
        ]
        result = KeywordRecommender(rng=rng).recommend(kws)
        assert len(result) == 2
        assert rng.calls == 0

    def test_count_limit(self, catalog):
        result = KeywordRecommender(rng=random.Random(1)).recommend(catalog, count=2)
        assert len(result) == 2

    def test_seeded_rng_reproducible(self, catalog):
        a = KeywordRecommender(rng=random.Random(7)).recommend(catalog, count=4, diversity_factor=0.5)
        b = KeywordRecommender(rng=random.Random(7)).recommend(catalog, count=4, diversity_factor=0.5)
        assert [r.keyword.term for r in a] == [r.keyword.term for r in b]

    def test_sorted_by_score(self, catalog):
        result = KeywordRecommender(rng=FixedRandom(0.99)).recommend(catalog)
        scores = [r.score for r in result]
        assert scores == sorted(scores, reverse=True)

    def test_reasons(self):
        assert "최우선" in recommendation_reason(95)
        assert "적극" in recommendation_reason(75)
        assert "고려" in recommendation_reason(55)
        assert "틈새" not in recommendation_reason(10)
        assert recommendation_reason(10).startswith("낮은 경쟁도")


# ── Analytics ───────────────────────────────────────────────

class TestAnalytics:
    def test_distribution(self):
        dist = analyze_distribution([
            Keyword("a", 100, 10, tags={"brand"}),
            Keyword("b", 1000, 50, tags={"brand", "trending"}),
            Keyword("c", 10000, 90),
        ])
        assert dist.volume == {"low": 2, "medium": 0, "high": 1}
        assert dist.competition == {"low": 1, "medium": 1, "high": 1}
        assert dist.tags == {"brand": 2, "trending": 1}
        assert "Keyword Distribution" in dist.summary()

    def test_distribution_empty(self):
        dist = analyze_distribution([])
        assert dist.volume == {"low": 0, "medium": 0, "high": 0}

    def test_opportunity_threshold(self, catalog):
        found = find_opportunity_keywords(catalog, threshold=50)
        assert found
        assert all(k.score >= 50 for k in found)
        assert find_opportunity_keywords(catalog, threshold=101) == []

    def test_keyword_gaps(self):
        ours = [Keyword("스마트폰", 100, 50)]
        gaps = find_keyword_gaps(
            ours,
            ["스마트폰", "케이스", "충전기", "Case", "케이스"],
            competitor_competition={"케이스": 20, "충전기": 50},
        )
        assert gaps.missing == ["케이스", "충전기", "case"]
        assert gaps.opportunities == ["케이스"]

    def test_keyword_gaps_custom_threshold(self):
        gaps = find_keyword_gaps([], ["충전기"], {"충전기": 50}, max_competition=60)
        assert gaps.opportunities == ["충전기"]
