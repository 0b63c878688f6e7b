"""Tests for data models and errors."""
import pytest

from listing_optimizer.errors import (
    FieldError, ListingOptimizerError, NotFoundError, ValidationError,
)
from listing_optimizer.models import (
    CategoryRule, Keyword, KeywordTag, ProductTitle, ProductTitleComponents,
)


class TestKeywordTag:
    def test_parse_case_insensitive(self):
        assert KeywordTag.parse(" Trending ") == KeywordTag.TRENDING

    def test_parse_unknown(self):
        assert KeywordTag.parse("viral") is None

    def test_parse_passthrough(self):
        assert KeywordTag.parse(KeywordTag.BRAND) is KeywordTag.BRAND


class TestKeyword:
    def test_tags_parsed_from_strings(self):
        kw = Keyword("스마트폰", 100, 50, tags={"brand", "TRENDING"})
        assert kw.tags == frozenset({KeywordTag.BRAND, KeywordTag.TRENDING})

    def test_unknown_tag_rejected(self):
        with pytest.raises(ValidationError) as exc:
            Keyword("스마트폰", 100, 50, tags={"viral"})
        assert "viral" in str(exc.value)

    def test_key_is_case_insensitive(self):
        assert Keyword("  iPhone ", 1, 1).key == "iphone"

    def test_sorted_tags_in_declaration_order(self):
        kw = Keyword("a", 1, 1, tags={"custom", "trending", "brand"})
        assert kw.sorted_tags == [KeywordTag.TRENDING, KeywordTag.BRAND, KeywordTag.CUSTOM]

    def test_with_score_returns_copy(self):
        kw = Keyword("a", 1, 1)
        scored = kw.with_score(42.0)
        assert scored.score == 42.0
        assert kw.score is None
        assert scored.id == kw.id

    def test_validate_collects_every_error(self):
        kw = Keyword("", -1, 150, weight=2.0)
        with pytest.raises(ValidationError) as exc:
            kw.validate()
        assert exc.value.fields == ["term", "volume", "competition", "weight"]

    def test_validate_term_length(self):
        with pytest.raises(ValidationError) as exc:
            Keyword("가" * 101, 1, 1).validate()
        assert exc.value.fields == ["term"]

    def test_validate_ok_returns_self(self):
        kw = Keyword("a", 10, 10, weight=0.5)
        assert kw.validate() is kw

    def test_dict_roundtrip(self):
        kw = Keyword("스마트폰", 10000, 85, tags={"brand"}, weight=0.8, notes="memo", score=55.5)
        back = Keyword.from_dict(kw.to_dict())
        assert back == kw


class TestTitleModels:
    def test_component_texts_order(self):
        c = ProductTitleComponents(
            keywords=["a"], category="cat", demographic="demo",
            features=["f1", "", "f2"], usage="use",
        )
        assert c.texts() == ["cat", "demo", "f1", "f2", "use"]

    def test_title_length(self):
        t = ProductTitle(title_text="스마트폰 케이스", components=ProductTitleComponents())
        assert t.length == 8


class TestCategoryRule:
    def test_patterns_compiled(self):
        rule = CategoryRule("테스트", keywords=["a"], patterns=["ab+c"])
        assert rule.compiled_patterns[0].search("xABBC")

    def test_invalid_rule_lists_all_errors(self):
        with pytest.raises(ValidationError) as exc:
            CategoryRule("", patterns=["("], weight=1.5, confidence=120)
        assert exc.value.fields == ["category_name", "weight", "confidence", "patterns"]


class TestErrors:
    def test_validation_error_message(self):
        e = ValidationError([FieldError("a", "first"), FieldError("b", "second")])
        assert str(e) == "입력 검증 실패: first, second"
        assert isinstance(e, ValueError)
        assert isinstance(e, ListingOptimizerError)

    def test_field_error_str(self):
        assert str(FieldError("term", "required")) == "term: required"

    def test_not_found_is_key_error(self):
        e = NotFoundError("keyword", "abc")
        assert isinstance(e, KeyError)
        assert str(e) == "keyword not found: abc"
        assert e.record_id == "abc"
