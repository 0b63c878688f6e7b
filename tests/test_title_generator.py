"""Tests for product title generation."""
import pytest

from listing_optimizer.errors import ValidationError
from listing_optimizer.models import Keyword, ProductTitleComponents
from listing_optimizer.title_generator import (
    TitleGenerationConfig, TitleGenerator, evaluate_length, evaluate_readability,
    evaluate_uniqueness, keyword_combinations, normalize_spacing,
    remove_duplicate_words, remove_spacing,
)


@pytest.fixture
def catalog():
    return [
        Keyword("스마트폰", 10000, 85, score=80.0),
        Keyword("케이스", 5000, 40, score=60.0),
        Keyword("텀블러", 3000, 30, score=50.0),
    ]


@pytest.fixture
def generator():
    return TitleGenerator()


# ── Generation ──────────────────────────────────────────────

class TestGenerateTitles:
    def test_missing_keyword_reported(self, generator):
        components = ProductTitleComponents(keywords=["스마트폰", "케이스"])
        with pytest.raises(ValidationError) as exc:
            generator.generate_titles(components, [Keyword("스마트폰", 10000, 85)])
        assert len(exc.value.errors) == 1
        assert exc.value.errors[0].message == "존재하지 않는 키워드: 케이스"

    def test_empty_keywords_rejected(self, generator, catalog):
        with pytest.raises(ValidationError):
            generator.generate_titles(ProductTitleComponents(), catalog)

    def test_too_many_keywords_rejected(self, catalog):
        gen = TitleGenerator(TitleGenerationConfig(max_keywords=2))
        components = ProductTitleComponents(keywords=["스마트폰", "케이스", "텀블러"])
        with pytest.raises(ValidationError) as exc:
            gen.generate_titles(components, catalog)
        assert "최대 2개" in str(exc.value)

    def test_all_violations_reported_together(self, catalog):
        gen = TitleGenerator(TitleGenerationConfig(max_keywords=2))
        components = ProductTitleComponents(keywords=["스마트폰", "케이스", "노트북"])
        with pytest.raises(ValidationError) as exc:
            gen.generate_titles(components, catalog)
        messages = [e.message for e in exc.value.errors]
        assert messages == [
            "키워드는 최대 2개까지 선택 가능합니다",
            "존재하지 않는 키워드: 노트북",
        ]
        assert exc.value.fields == ["keywords", "keywords"]

    def test_candidates_ranked(self, generator, catalog):
        components = ProductTitleComponents(keywords=["케이스", "스마트폰"], category="휴대폰 액세서리")
        titles = generator.generate_titles(components, catalog)
        texts = [t.title_text for t in titles]
        assert "스마트폰 케이스 휴대폰 액세서리" in texts
        assert "휴대폰 액세서리 스마트폰 케이스" in texts
        assert "케이스 스마트폰 휴대폰 액세서리" in texts
        scores = [t.score for t in titles]
        assert scores == sorted(scores, reverse=True)
        assert all(0 <= s <= 100 for s in scores)

    def test_higher_scored_keyword_leads(self, generator, catalog):
        components = ProductTitleComponents(keywords=["케이스", "스마트폰"])
        titles = generator.generate_titles(components, catalog)
        assert any(t.title_text.startswith("스마트폰 케이스") for t in titles)

    def test_keyword_ids_from_catalog(self, generator, catalog):
        ids = {k.id for k in catalog}
        components = ProductTitleComponents(keywords=["스마트폰", "케이스"])
        for title in generator.generate_titles(components, catalog):
            assert title.keyword_ids
            assert set(title.keyword_ids) <= ids

    def test_at_most_ten_results(self, generator, catalog):
        components = ProductTitleComponents(
            keywords=["스마트폰", "케이스", "텀블러"], category="생활",
            demographic="직장인", features=["보온", "휴대"], usage="출퇴근",
        )
        titles = generator.generate_titles(components, catalog)
        assert 0 < len(titles) <= 10

    def test_over_length_flagged_not_truncated(self, catalog):
        gen = TitleGenerator(TitleGenerationConfig(max_length=10))
        components = ProductTitleComponents(
            keywords=["스마트폰", "케이스"], category="휴대폰 액세서리", features=["투명", "슬림"],
        )
        titles = gen.generate_titles(components, catalog)
        long_titles = [t for t in titles if t.length > 10]
        assert long_titles
        for t in long_titles:
            assert any(i.startswith("길이 초과") for i in t.issues)

    def test_spacing_variants(self, generator, catalog):
        components = ProductTitleComponents(keywords=["스마트폰"], features=["갤럭시S24울트라"])
        for title in generator.generate_titles(components, catalog):
            v = title.spacing_variants
            assert v is not None
            assert not any(ch.isspace() for ch in v.unspaced)
            assert "  " not in v.spaced

    def test_spacing_variants_disabled(self, catalog):
        gen = TitleGenerator(TitleGenerationConfig(generate_spacing_variants=False))
        titles = gen.generate_titles(ProductTitleComponents(keywords=["텀블러"]), catalog)
        assert all(t.spacing_variants is None for t in titles)

    def test_stopwords_removed(self, generator, catalog):
        components = ProductTitleComponents(keywords=["텀블러"], features=["보온", "할인"])
        titles = generator.generate_titles(components, catalog)
        for t in titles:
            assert "할인" not in t.title_text
        assert any("금칙어 제거됨: 할인" in i for t in titles for i in t.issues)

    def test_duplicate_words_removed(self, generator, catalog):
        components = ProductTitleComponents(keywords=["텀블러"], category="텀블러")
        titles = generator.generate_titles(components, catalog)
        assert titles[0].title_text == "텀블러"
        assert "중복 단어 제거됨: 텀블러" in titles[0].issues

    def test_breakdown_attached(self, generator, catalog):
        titles = generator.generate_titles(ProductTitleComponents(keywords=["텀블러"]), catalog)
        assert set(titles[0].breakdown) == {"keyword_placement", "readability", "length", "uniqueness"}

    def test_config_copy(self, generator):
        cfg = generator.config
        cfg.max_length = 5
        assert generator.config.max_length == 60
        generator.update_config(max_length=30)
        assert generator.config.max_length == 30


# ── Text helpers ────────────────────────────────────────────

class TestSpacing:
    def test_normalize_boundaries(self):
        assert normalize_spacing("갤럭시S24울트라") == "갤럭시 S24 울트라"

    def test_collapse_whitespace(self):
        assert normalize_spacing("  a   b \t c ") == "a b c"

    def test_remove_spacing(self):
        assert remove_spacing("갤럭시 S24 울트라") == "갤럭시S24울트라"


class TestHelpers:
    def test_combinations(self):
        combos = keyword_combinations(["a", "b", "c"])
        assert combos[:2] == [["a", "b"], ["b", "a"]]
        assert len(combos) == 7
        assert combos[-1] == ["a", "b", "c"]

    def test_combinations_single(self):
        assert keyword_combinations(["a"]) == []

    def test_remove_duplicate_words(self):
        text, removed = remove_duplicate_words("Case 케이스 case 케이스")
        assert text == "Case 케이스"
        assert removed == ["case", "케이스"]


# ── Evaluation ──────────────────────────────────────────────

class TestEvaluation:
    def test_length_in_band(self):
        assert evaluate_length("가" * 40, 60) == 1.0

    def test_length_short(self):
        assert evaluate_length("가" * 18, 60) == pytest.approx(0.5)

    def test_length_near_limit(self):
        assert evaluate_length("가" * 57, 60) == pytest.approx(0.85)

    def test_length_over(self):
        assert evaluate_length("가" * 61, 60) == 0.0

    def test_readability_penalties(self):
        assert evaluate_readability("ABC") == pytest.approx(0.4)
        assert evaluate_readability("스마트폰 투명 케이스 슬림형") == 1.0

    def test_uniqueness(self):
        assert evaluate_uniqueness("최저가 특가 상품") == pytest.approx(0.8)
        assert evaluate_uniqueness("스마트폰 케이스") == 1.0

    def test_evaluate_title(self, generator):
        q = generator.evaluate_title("스마트폰 투명 케이스 슬림형 젤리 범퍼 충격방지 카메라보호")
        assert 0 <= q.overall <= 100
        assert q.overall == round((q.keyword_placement + q.readability + q.length + q.uniqueness) / 4 * 100, 2)
        assert "Title Quality" in q.summary()

    def test_short_title_issue(self, generator):
        q = generator.evaluate_title("케이스")
        assert "제목이 너무 짧습니다" in q.issues

    def test_long_title_issue(self):
        gen = TitleGenerator(TitleGenerationConfig(max_length=10))
        q = gen.evaluate_title("스마트폰 투명 케이스 슬림형")
        assert "제목이 너무 깁니다" in q.issues

    def test_empty_title(self, generator):
        assert generator.evaluate_title("").keyword_placement == 0.0
