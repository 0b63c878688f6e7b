"""Pre-listing quality checklist.

Builds the checklist a seller walks through before registering a product:
keyword mix, title, category, images, content and SEO. Items the data can
answer are checked automatically; the rest are left for manual review.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from listing_optimizer.models import (
    CategorySuggestion, Keyword, KeywordTag, ProductTitle, new_id,
)

logger = logging.getLogger(__name__)


class CheckCategory(str, Enum):
    KEYWORD = "keyword"
    CATEGORY = "category"
    CONTENT = "content"
    IMAGE = "image"
    SEO = "seo"


DEFAULT_WEIGHTS = {
    CheckCategory.KEYWORD: 0.3,
    CheckCategory.CATEGORY: 0.2,
    CheckCategory.CONTENT: 0.25,
    CheckCategory.IMAGE: 0.15,
    CheckCategory.SEO: 0.1,
}

MIN_KEYWORDS = 3
TITLE_MIN_LENGTH = 20
TITLE_MAX_LENGTH = 60
MIN_TITLE_SCORE = 70
MIN_CATEGORY_CONFIDENCE = 80


@dataclass
class QualityCheckItem:
    id: str
    title: str
    description: str
    category: CheckCategory
    required: bool
    checked: bool = False
    issues: list[str] = field(default_factory=list)


@dataclass
class ChecklistStats:
    total_items: int
    checked_items: int
    required_items: int
    optional_items: int
    critical_issues: int
    warnings: int


@dataclass
class ChecklistResult:
    project_id: str
    items: list[QualityCheckItem]
    overall_score: int  # 0-100
    completion_rate: float  # 0-100
    critical_issues: list[str] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    @property
    def stats(self) -> ChecklistStats:
        return ChecklistStats(
            total_items=len(self.items),
            checked_items=sum(1 for i in self.items if i.checked),
            required_items=sum(1 for i in self.items if i.required),
            optional_items=sum(1 for i in self.items if not i.required),
            critical_issues=sum(1 for i in self.items if i.required and not i.checked),
            warnings=sum(1 for i in self.items if not i.required and not i.checked),
        )

    def summary(self) -> str:
        lines = [
            f"✅ Checklist: {self.overall_score}/100 (completion {self.completion_rate:.0f}%)",
            "",
        ]
        for item in self.items:
            mark = "☑" if item.checked else "☐"
            req = "*" if item.required else " "
            lines.append(f"  {mark}{req} [{item.category.value}] {item.title}")
            for issue in item.issues:
                lines.append(f"      → {issue}")
        return "\n".join(lines)


def _item(id, title, description, category, required, checked=False, issues=None):
    return QualityCheckItem(
        id=id, title=title, description=description, category=category,
        required=required, checked=checked, issues=list(issues or []),
    )


class ChecklistGenerator:
    """Builds and scores a listing checklist."""

    def __init__(self, weights: Optional[dict] = None, auto_check: bool = True):
        self.weights = dict(DEFAULT_WEIGHTS)
        if weights:
            self.weights.update({CheckCategory(k): v for k, v in weights.items()})
        self.auto_check = auto_check

    def generate(self, keywords: Sequence[Keyword],
                 titles: Sequence[ProductTitle] = (),
                 categories: Sequence[CategorySuggestion] = (),
                 project_id: str = "") -> ChecklistResult:
        """Build the checklist for a project's keywords, best title and best category."""
        items = keyword_items(keywords)
        if titles:
            items += title_items(titles[0])
        if categories:
            items += category_items(categories[0])
        items += image_items() + content_items() + seo_items()

        if self.auto_check:
            self._auto_check(items, keywords, titles)

        checked = sum(1 for i in items if i.checked)
        result = ChecklistResult(
            project_id=project_id,
            items=items,
            overall_score=self.overall_score(items),
            completion_rate=round(checked / len(items) * 100, 2) if items else 0.0,
            critical_issues=[
                f"{i.title}: {i.description}" for i in items if i.required and not i.checked
            ],
        )
        logger.debug("Checklist for %r: %d/%d checked, score %d",
                     project_id, checked, len(items), result.overall_score)
        return result

    def _auto_check(self, items: list[QualityCheckItem], keywords: Sequence[Keyword],
                    titles: Sequence[ProductTitle]):
        for item in items:
            if item.id == "keyword-volume":
                check_volume_distribution(item, keywords)
            elif item.id == "keyword-competition":
                check_competition_balance(item, keywords)
            elif item.id == "title-keyword-placement" and titles:
                check_title_keyword_placement(item, titles[0], keywords)

    def overall_score(self, items: Sequence[QualityCheckItem]) -> int:
        """Weighted average of per-category completion; optional items count half."""
        earned = {c: 0.0 for c in CheckCategory}
        possible = {c: 0.0 for c in CheckCategory}
        for item in items:
            w = 1.0 if item.required else 0.5
            possible[item.category] += w
            if item.checked:
                earned[item.category] += w

        total = 0.0
        max_total = 0.0
        for cat in CheckCategory:
            if possible[cat] > 0:
                total += earned[cat] / possible[cat] * self.weights[cat]
                max_total += self.weights[cat]
        return round(total / max_total * 100) if max_total > 0 else 0

    def improvement_suggestions(self, result: ChecklistResult) -> list[str]:
        suggestions = []
        if result.overall_score < 60:
            suggestions.append("전체적인 품질 개선이 필요합니다. 필수 항목부터 차례로 완료하세요.")
        elif result.overall_score < 80:
            suggestions.append("기본적인 품질은 갖추었지만, 추가 개선을 통해 더 나은 결과를 얻을 수 있습니다.")

        unchecked = {c: 0 for c in CheckCategory}
        for item in result.items:
            if not item.checked:
                unchecked[item.category] += 1
        if unchecked[CheckCategory.KEYWORD] > 2:
            suggestions.append("키워드 전략을 재검토하고 더 관련성 높은 키워드를 선택하세요.")
        if unchecked[CheckCategory.CONTENT] > 2:
            suggestions.append("상품 설명과 콘텐츠를 더 상세하고 매력적으로 작성하세요.")
        if unchecked[CheckCategory.IMAGE] > 1:
            suggestions.append("고화질의 다양한 상품 이미지를 추가하여 구매 전환율을 높이세요.")
        if result.completion_rate < 50:
            suggestions.append("체크리스트의 50% 이상을 완료한 후 상품을 등록하는 것을 권장합니다.")
        return suggestions


# ── Item Builders ──────────────────────────────────────────

def keyword_items(keywords: Sequence[Keyword]) -> list[QualityCheckItem]:
    cat = CheckCategory.KEYWORD
    enough = len(keywords) >= MIN_KEYWORDS
    return [
        _item("keyword-count", "키워드 개수 적정성",
              f"최소 {MIN_KEYWORDS}개 이상의 키워드가 등록되어 있는지 확인", cat, True,
              checked=enough,
              issues=None if enough else [f"현재 {len(keywords)}개, 최소 {MIN_KEYWORDS}개 필요"]),
        _item("keyword-volume", "키워드 검색량 분포",
              "높은 검색량과 낮은 검색량 키워드가 적절히 분포되어 있는지 확인", cat, True),
        _item("keyword-competition", "키워드 경쟁도 분석",
              "높은 경쟁도 키워드와 낮은 경쟁도 키워드가 균형있게 구성되어 있는지 확인", cat, True),
        _item("keyword-relevance", "키워드 관련성",
              "선택한 키워드가 실제 상품과 관련성이 높은지 확인", cat, True),
        _item("longtail-keywords", "롱테일 키워드 포함",
              "롱테일 키워드가 포함되어 있어 틈새 시장 공략이 가능한지 확인", cat, False,
              checked=any(KeywordTag.LONGTAIL in k.tags for k in keywords)),
    ]


def title_items(title: ProductTitle) -> list[QualityCheckItem]:
    cat = CheckCategory.CONTENT
    n = len(title.title_text)
    length_issues = []
    if n < TITLE_MIN_LENGTH:
        length_issues.append("상품명이 너무 짧습니다")
    elif n > TITLE_MAX_LENGTH:
        length_issues.append("상품명이 너무 깁니다")
    return [
        _item("title-length", "상품명 길이 적정성",
              f"상품명이 적절한 길이({TITLE_MIN_LENGTH}-{TITLE_MAX_LENGTH}자)로 구성되어 있는지 확인",
              cat, True, checked=not length_issues, issues=length_issues),
        _item("title-keyword-placement", "키워드 배치",
              "중요한 키워드가 상품명 앞부분에 배치되어 있는지 확인",
              CheckCategory.KEYWORD, True),
        _item("title-readability", "상품명 가독성", "상품명이 자연스럽고 읽기 쉬운지 확인",
              cat, True, checked=title.score >= MIN_TITLE_SCORE, issues=title.issues),
        _item("title-uniqueness", "상품명 독창성",
              "상품명이 경쟁 상품과 차별화되고 독창적인지 확인", cat, False),
    ]


def category_items(suggestion: CategorySuggestion) -> list[QualityCheckItem]:
    cat = CheckCategory.CATEGORY
    confident = suggestion.confidence >= MIN_CATEGORY_CONFIDENCE
    return [
        _item("category-accuracy", "카테고리 정확성",
              "상품에 가장 적합한 카테고리가 선택되었는지 확인", cat, True,
              checked=confident,
              issues=None if confident else
              [f"신뢰도 {suggestion.confidence}%, {MIN_CATEGORY_CONFIDENCE}% 이상 권장"]),
        _item("category-attributes", "필수 속성 입력",
              "선택한 카테고리의 필수 속성이 모두 입력되었는지 확인", cat, True,
              issues=[f"필수 속성: {a.name}" for a in suggestion.attributes if a.required]),
        _item("category-tags", "카테고리 태그",
              "상품과 관련된 적절한 태그가 설정되었는지 확인", cat, False),
    ]


def image_items() -> list[QualityCheckItem]:
    cat = CheckCategory.IMAGE
    return [
        _item("main-image", "대표 이미지",
              "고화질의 대표 이미지가 등록되었는지 확인 (최소 800x800px)", cat, True),
        _item("image-count", "이미지 개수",
              "다양한 각도의 상품 이미지가 충분히 등록되었는지 확인 (최소 3장)", cat, True),
        _item("image-quality", "이미지 품질", "이미지가 선명하고 조명이 적절한지 확인", cat, True),
        _item("image-background", "배경 처리",
              "대표 이미지의 배경이 깔끔하게 처리되었는지 확인", cat, False),
        _item("image-alt-text", "이미지 대체 텍스트",
              "이미지에 적절한 대체 텍스트(alt)가 설정되었는지 확인", CheckCategory.SEO, False),
    ]


def content_items() -> list[QualityCheckItem]:
    cat = CheckCategory.CONTENT
    return [
        _item("product-description", "상품 설명", "상세하고 정확한 상품 설명이 작성되었는지 확인", cat, True),
        _item("key-features", "주요 특징 강조", "상품의 주요 특징과 장점이 명확히 설명되었는지 확인", cat, True),
        _item("specifications", "상품 스펙",
              "상품의 상세 스펙(크기, 재질, 무게 등)이 정확히 기재되었는지 확인", cat, True),
        _item("usage-instructions", "사용법 안내", "상품 사용법이나 주의사항이 명시되었는지 확인", cat, False),
        _item("content-formatting", "콘텐츠 포맷팅",
              "텍스트가 읽기 쉽게 구조화되고 포맷팅되었는지 확인", cat, False),
    ]


def seo_items() -> list[QualityCheckItem]:
    cat = CheckCategory.SEO
    return [
        _item("meta-title", "메타 제목", "검색 엔진 최적화를 위한 메타 제목이 설정되었는지 확인", cat, False),
        _item("meta-description", "메타 설명", "상품을 잘 설명하는 메타 설명이 작성되었는지 확인", cat, False),
        _item("url-optimization", "URL 최적화", "상품 URL이 SEO 친화적으로 구성되었는지 확인", cat, False),
        _item("structured-data", "구조화된 데이터",
              "상품 정보가 검색 엔진이 이해하기 쉽게 구조화되었는지 확인", cat, False),
    ]


def basic_template() -> list[QualityCheckItem]:
    """Minimal four-item checklist for a first listing."""
    return [
        _item("basic-keyword", "키워드 설정", "상품과 관련된 키워드가 설정되었는지 확인",
              CheckCategory.KEYWORD, True),
        _item("basic-title", "상품명 작성", "적절한 길이의 상품명이 작성되었는지 확인",
              CheckCategory.CONTENT, True),
        _item("basic-category", "카테고리 선택", "적절한 카테고리가 선택되었는지 확인",
              CheckCategory.CATEGORY, True),
        _item("basic-image", "상품 이미지", "대표 이미지가 등록되었는지 확인",
              CheckCategory.IMAGE, True),
    ]


# ── Auto Checks ────────────────────────────────────────────

def check_volume_distribution(item: QualityCheckItem, keywords: Sequence[Keyword]):
    if not keywords:
        item.checked = False
        item.issues = ["키워드가 없습니다"]
        return
    avg = sum(k.volume for k in keywords) / len(keywords)
    high = sum(1 for k in keywords if k.volume > avg * 1.5)
    low = sum(1 for k in keywords if k.volume < avg * 0.5)
    item.checked = high > 0 and low > 0
    if not item.checked:
        item.issues = ["검색량 분포가 고르지 않습니다. 다양한 검색량의 키워드를 포함하세요."]


def check_competition_balance(item: QualityCheckItem, keywords: Sequence[Keyword]):
    if not keywords:
        item.checked = False
        item.issues = ["키워드가 없습니다"]
        return
    high = sum(1 for k in keywords if k.competition > 70)
    low = sum(1 for k in keywords if k.competition < 30)
    item.checked = high > 0 and low > 0
    if not item.checked:
        item.issues = ["경쟁도가 편중되어 있습니다. 높은 경쟁도와 낮은 경쟁도 키워드를 적절히 조합하세요."]


def check_title_keyword_placement(item: QualityCheckItem, title: ProductTitle,
                                  keywords: Sequence[Keyword]):
    first_three = " ".join(title.title_text.lower().split()[:3])
    item.checked = any(k.key in first_three for k in keywords)
    if not item.checked:
        item.issues = ["중요한 키워드를 상품명 앞부분에 배치하세요."]
