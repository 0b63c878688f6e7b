"""Tests for rule-based category recommendation."""
import threading

import pytest

from listing_optimizer.category_recommender import (
    CategoryRecommender, analyze_category_distribution, analyze_recommendation_quality,
)
from listing_optimizer.category_rules import CATEGORY_RULES, build_rule, default_rules
from listing_optimizer.errors import ValidationError
from listing_optimizer.models import (
    AttributeType, CategoryRule, Keyword, ProductTitleComponents,
)


def _mens_rule():
    return build_rule(next(r for r in CATEGORY_RULES if r["category_name"] == "남성의류"))


@pytest.fixture
def recommender():
    return CategoryRecommender()


@pytest.fixture
def mens_only():
    return CategoryRecommender([_mens_rule()])


# ── Recommendation ──────────────────────────────────────────

class TestRecommendCategories:
    def test_single_rule_match(self, mens_only):
        recs = mens_only.recommend_categories([Keyword("셔츠", 1000, 50)])
        assert len(recs) == 1
        rec = recs[0]
        assert rec.suggestion.name == "남성의류"
        assert rec.suggestion.confidence > 0
        assert "셔츠" in rec.keyword_matches
        assert rec.pattern_matches == ["셔츠"]
        assert rec.score_breakdown.keyword_score == pytest.approx(1 / 7)
        assert rec.score_breakdown.pattern_score == pytest.approx(0.25)
        assert rec.suggestion.confidence == 11

    def test_zero_score_rules_omitted(self, mens_only):
        assert mens_only.recommend_categories([Keyword("노트북", 1000, 50)]) == []

    def test_empty_keywords(self, recommender):
        assert recommender.recommend_categories([]) == []

    def test_frequency_from_high_score_keywords(self, mens_only):
        recs = mens_only.recommend_categories([Keyword("남성 셔츠", 1000, 50, score=90)])
        assert recs[0].score_breakdown.frequency_score == pytest.approx(0.9)

    def test_low_score_keywords_ignored_for_frequency(self, mens_only):
        recs = mens_only.recommend_categories([Keyword("남성 셔츠", 1000, 50, score=60)])
        assert recs[0].score_breakdown.frequency_score == 0

    def test_components_text_matched(self, mens_only):
        recs = mens_only.recommend_categories(
            [Keyword("면 100%", 100, 10)],
            ProductTitleComponents(keywords=["면 100%"], demographic="남성"),
        )
        assert recs and recs[0].suggestion.name == "남성의류"

    def test_confidence_bounds(self, recommender):
        kws = [Keyword(t, 100, 50, score=100) for t in
               ["남성 셔츠", "맨즈 정장", "남자 바지", "캐주얼", "스마트폰", "갤럭시 태블릿"]]
        for rec in recommender.recommend_categories(kws, max_suggestions=10):
            assert 0 <= rec.suggestion.confidence <= 100

    def test_sorted_and_limited(self, recommender):
        kws = [Keyword(t, 100, 50) for t in ["남성 셔츠 정장", "스마트폰", "요가 매트", "강아지"]]
        recs = recommender.recommend_categories(kws, max_suggestions=2)
        assert len(recs) == 2
        finals = [r.score_breakdown.final_score for r in recs]
        assert finals == sorted(finals, reverse=True)
        assert recs[0].suggestion.name == "남성의류"

    def test_reasons(self, mens_only):
        rec = mens_only.recommend_categories([Keyword("셔츠", 1000, 50)])[0]
        assert rec.suggestion.reasons == [
            "남성 의류 관련 키워드가 포함됨",
            "'셔츠' 키워드가 매칭됨",
            "상품 특성 패턴이 일치함",
        ]

    def test_case_insensitive_match(self):
        rec = CategoryRecommender([build_rule(CATEGORY_RULES[3])])
        recs = rec.recommend_categories([Keyword("gaming pc", 100, 50)])
        assert recs and recs[0].suggestion.name == "컴퓨터/노트북"


# ── Rule management ─────────────────────────────────────────

class TestRuleManagement:
    def test_checklist(self, recommender):
        attrs = recommender.get_category_checklist("남성의류")
        assert [a.name for a in attrs] == ["사이즈", "소재", "색상", "시즌"]
        assert attrs[0].type == AttributeType.SELECT
        assert attrs[0].options == ["S", "M", "L", "XL", "XXL"]

    def test_checklist_unknown(self, recommender):
        assert recommender.get_category_checklist("없는카테고리") == []

    def test_add_rule_replaces(self, recommender):
        count = len(recommender.rules)
        recommender.add_rule(CategoryRule("남성의류", keywords=["수트"], patterns=["수트"]))
        assert len(recommender.rules) == count
        assert recommender.search_categories("수트")[0].category_name == "남성의류"

    def test_add_new_rule(self, mens_only):
        mens_only.add_rule(CategoryRule("캠핑용품", keywords=["텐트"], patterns=["텐트"], confidence=90))
        recs = mens_only.recommend_categories([Keyword("텐트", 100, 10)])
        assert recs[0].suggestion.name == "캠핑용품"

    def test_remove_rule(self, recommender):
        assert recommender.remove_rule("남성의류") is True
        assert recommender.remove_rule("남성의류") is False
        assert recommender.get_category_checklist("남성의류") == []

    def test_search(self, recommender):
        names = [r.category_name for r in recommender.search_categories("셔츠")]
        assert names == ["남성의류"]

    def test_rules_snapshot(self, recommender):
        snapshot = recommender.rules
        snapshot.clear()
        assert recommender.rules

    def test_default_rules_are_fresh(self):
        a, b = default_rules(), default_rules()
        assert a[0] is not b[0]
        assert len(a) == len(CATEGORY_RULES)

    def test_build_rule_from_dict_attributes(self):
        rule = build_rule({
            "category_name": "테스트",
            "keywords": ["a"],
            "attributes": [{"name": "색상", "required": True}],
        })
        assert rule.attributes[0].type == AttributeType.TEXT
        assert rule.attributes[0].required

    def test_invalid_rule(self, recommender):
        with pytest.raises(ValidationError):
            recommender.add_rule(CategoryRule("잘못된", patterns=["[unclosed"]))

    def test_concurrent_mutation(self, recommender):
        def worker(i):
            recommender.add_rule(CategoryRule(f"카테고리{i}", keywords=[f"k{i}"]))
            recommender.recommend_categories([Keyword("셔츠", 1, 1)])

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(recommender.rules) == len(CATEGORY_RULES) + 20


# ── Analytics ───────────────────────────────────────────────

class TestCategoryAnalytics:
    def test_distribution(self, recommender):
        dist = analyze_category_distribution(
            [Keyword("셔츠", 1, 1), Keyword("원피스", 1, 1), Keyword("정장", 1, 1), Keyword("xyz", 1, 1)],
            recommender,
        )
        assert dist == {"남성의류": 2, "여성의류": 1}

    def test_quality_empty(self):
        q = analyze_recommendation_quality([])
        assert q.average_confidence == 0
        assert q.quality_score == 0

    def test_quality(self, mens_only):
        recs = mens_only.recommend_categories([Keyword("셔츠", 1, 1)])
        q = analyze_recommendation_quality(recs)
        assert q.average_confidence == 11
        assert q.low_confidence_count == 1
        assert q.high_confidence_count == 0
