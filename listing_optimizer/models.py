"""Core data models shared by the scoring, title and category engines.

Keywords are treated as immutable snapshots: engines never mutate the
objects they receive, they return copies (see ``Keyword.with_score``).
"""
import re
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from listing_optimizer.errors import FieldError, ValidationError

TERM_MAX_LENGTH = 100


def new_id() -> str:
    """Opaque identifier for generated records."""
    return uuid.uuid4().hex[:12]


class KeywordTag(str, Enum):
    TRENDING = "trending"
    LONGTAIL = "longtail"
    BRAND = "brand"
    CATEGORY = "category"
    FEATURE = "feature"
    SEASONAL = "seasonal"
    EVENT = "event"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value) -> Optional["KeywordTag"]:
        """Return the tag for ``value`` (case-insensitive) or None if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class AttributeType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    BOOLEAN = "boolean"


# ── Keywords ───────────────────────────────────────────────

@dataclass
class AlgorithmWeights:
    volume: float = 0.7
    competition: float = 0.3
    tag: float = 0.1
    ctr: Optional[float] = None


@dataclass
class Keyword:
    term: str
    volume: int
    competition: float
    tags: frozenset = field(default_factory=frozenset)
    weight: Optional[float] = None  # click-through proxy, 0-1
    notes: Optional[str] = None
    score: Optional[float] = None  # computed, 0-100
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        parsed = set()
        for tag in self.tags or ():
            t = KeywordTag.parse(tag)
            if t is None:
                raise ValidationError(
                    [FieldError("tags", f"알 수 없는 태그: {tag}")]
                )
            parsed.add(t)
        self.tags = frozenset(parsed)

    @property
    def key(self) -> str:
        """Case-insensitive identity of the term."""
        return self.term.strip().lower()

    @property
    def sorted_tags(self) -> list[KeywordTag]:
        order = list(KeywordTag)
        return sorted(self.tags, key=order.index)

    def with_score(self, score: Optional[float]) -> "Keyword":
        return replace(self, score=score)

    def validate(self) -> "Keyword":
        """Raise ValidationError listing every out-of-range field."""
        errors = []
        if not self.term or not self.term.strip():
            errors.append(FieldError("term", "키워드(term)는 필수입니다"))
        elif len(self.term) > TERM_MAX_LENGTH:
            errors.append(FieldError("term", f"키워드는 {TERM_MAX_LENGTH}자 이하여야 합니다"))
        if isinstance(self.volume, bool) or not isinstance(self.volume, int) or self.volume < 0:
            errors.append(FieldError("volume", "검색량은 0 이상의 정수여야 합니다"))
        if not 0 <= self.competition <= 100:
            errors.append(FieldError("competition", "경쟁도는 0-100 사이여야 합니다"))
        if self.weight is not None and not 0 <= self.weight <= 1:
            errors.append(FieldError("weight", "가중치는 0-1 사이여야 합니다"))
        if self.score is not None and not 0 <= self.score <= 100:
            errors.append(FieldError("score", "점수는 0-100 사이여야 합니다"))
        if errors:
            raise ValidationError(errors)
        return self

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "term": self.term,
            "volume": self.volume,
            "competition": self.competition,
            "weight": self.weight,
            "notes": self.notes,
            "tags": [t.value for t in self.sorted_tags],
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Keyword":
        kwargs = {
            "term": data["term"],
            "volume": int(data.get("volume", 0)),
            "competition": float(data.get("competition", 0)),
            "tags": frozenset(data.get("tags") or ()),
            "weight": data.get("weight"),
            "notes": data.get("notes"),
            "score": data.get("score"),
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)


# ── Titles ─────────────────────────────────────────────────

@dataclass
class ProductTitleComponents:
    keywords: list[str] = field(default_factory=list)
    category: Optional[str] = None
    demographic: Optional[str] = None
    features: list[str] = field(default_factory=list)
    usage: Optional[str] = None

    def texts(self) -> list[str]:
        """Non-keyword attribute texts, in category/demographic/features/usage order."""
        out = []
        if self.category:
            out.append(self.category)
        if self.demographic:
            out.append(self.demographic)
        out.extend(f for f in self.features if f)
        if self.usage:
            out.append(self.usage)
        return out


@dataclass
class SpacingVariants:
    spaced: str
    unspaced: str


@dataclass
class ProductTitle:
    title_text: str
    components: ProductTitleComponents
    keyword_ids: list[str] = field(default_factory=list)
    score: float = 0.0  # 0-100
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    spacing_variants: Optional[SpacingVariants] = None
    breakdown: dict[str, float] = field(default_factory=dict)
    id: str = field(default_factory=new_id)

    @property
    def length(self) -> int:
        return len(self.title_text)


# ── Categories ─────────────────────────────────────────────

@dataclass
class CategoryAttribute:
    name: str
    type: AttributeType = AttributeType.TEXT
    required: bool = False
    options: Optional[list[str]] = None
    placeholder: Optional[str] = None


@dataclass
class CategoryRule:
    category_name: str
    keywords: list[str] = field(default_factory=list)
    patterns: list[str] = field(default_factory=list)
    weight: float = 1.0  # 0-1
    confidence: float = 80.0  # base confidence, 0-100
    reason: str = ""
    attributes: list[CategoryAttribute] = field(default_factory=list)
    compiled_patterns: list[re.Pattern] = field(
        default_factory=list, init=False, repr=False, compare=False,
    )

    def __post_init__(self):
        errors = []
        if not self.category_name or not self.category_name.strip():
            errors.append(FieldError("category_name", "카테고리명은 필수입니다"))
        if not 0 <= self.weight <= 1:
            errors.append(FieldError("weight", "규칙 가중치는 0-1 사이여야 합니다"))
        if not 0 <= self.confidence <= 100:
            errors.append(FieldError("confidence", "기본 신뢰도는 0-100 사이여야 합니다"))
        compiled = []
        for pattern in self.patterns:
            try:
                compiled.append(re.compile(pattern, re.IGNORECASE))
            except re.error as e:
                errors.append(FieldError("patterns", f"잘못된 정규식 '{pattern}': {e}"))
        if errors:
            raise ValidationError(errors)
        self.compiled_patterns = compiled


@dataclass
class CategorySuggestion:
    name: str
    reasons: list[str] = field(default_factory=list)
    attributes: list[CategoryAttribute] = field(default_factory=list)
    confidence: int = 0  # 0-100
    id: str = field(default_factory=new_id)
