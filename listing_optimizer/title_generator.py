"""Product title generator.

Builds listing-title candidates from selected keywords and product
attributes, cleans them up (stopwords, duplicate tokens, length) and ranks
them by a four-part quality score:
- Keyword placement (keywords near the front)
- Readability (length, word count, special characters, shouting)
- Length (fit against the marketplace limit)
- Uniqueness (generic marketing phrases, digit spam)

Spacing variants (spaced/unspaced) are produced for A/B testing how the
marketplace indexes Hangul titles.
"""
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from listing_optimizer.errors import FieldError, ValidationError
from listing_optimizer.models import (
    Keyword, ProductTitle, ProductTitleComponents, SpacingVariants,
)

logger = logging.getLogger(__name__)

DEFAULT_STOPWORDS = (
    "무료", "할인", "이벤트", "증정", "당첨", "공짜", "최저가", "특가",
    "free", "sale", "discount", "win", "prize", "cheap",
)

# Generic marketing phrases that make a title blend in
COMMON_PHRASES = ("최고", "최저가", "특가", "할인", "이벤트", "무료배송")

MAX_RESULTS = 10
MAX_COMBINATION_CANDIDATES = 5

# Ideal title length as a fraction of the limit
IDEAL_MIN_RATIO = 0.6
IDEAL_MAX_RATIO = 0.9
OVER_IDEAL_PENALTY = 0.3

_HANGUL_LATIN = re.compile(r"([가-힣])([A-Za-z])")
_LATIN_HANGUL = re.compile(r"([A-Za-z])([가-힣])")
_DIGIT_HANGUL = re.compile(r"([0-9])([가-힣])")
_SPECIAL_CHAR = re.compile(r"[^A-Za-z0-9_\s가-힣]")
_UPPER_RUN = re.compile(r"[A-Z]{3,}")
_DIGIT = re.compile(r"[0-9]")


@dataclass
class TitleGenerationConfig:
    stopwords: tuple = DEFAULT_STOPWORDS
    max_length: int = 60
    min_keywords: int = 1
    max_keywords: int = 3
    prioritize_keywords: bool = True
    remove_duplicates: bool = True
    generate_spacing_variants: bool = True
    required_components: tuple = ("keywords",)


@dataclass
class TitleQualityScore:
    overall: float  # 0-100
    keyword_placement: float  # 0-1
    readability: float  # 0-1
    length: float  # 0-1
    uniqueness: float  # 0-1
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def breakdown(self) -> dict[str, float]:
        return {
            "keyword_placement": self.keyword_placement,
            "readability": self.readability,
            "length": self.length,
            "uniqueness": self.uniqueness,
        }

    def summary(self) -> str:
        lines = [f"🏷️ Title Quality: {self.overall:.0f}/100"]
        for name, value in self.breakdown.items():
            bar = "█" * int(value * 10) + "░" * (10 - int(value * 10))
            lines.append(f"  {name:18s} [{bar}] {value:.2f}")
        for issue in self.issues:
            lines.append(f"  ⚠️ {issue}")
        for s in self.suggestions:
            lines.append(f"  💡 {s}")
        return "\n".join(lines)


# ── Text helpers ───────────────────────────────────────────

def _join(*parts) -> str:
    """Join non-empty parts with single spaces."""
    return " ".join(p for p in parts if p).strip()


def _tokens(text: str) -> list[str]:
    return text.split()


def normalize_spacing(text: str) -> str:
    """Insert spaces at Hangul/Latin/digit boundaries and collapse whitespace."""
    text = re.sub(r"\s+", " ", text)
    text = _HANGUL_LATIN.sub(r"\1 \2", text)
    text = _LATIN_HANGUL.sub(r"\1 \2", text)
    text = _DIGIT_HANGUL.sub(r"\1 \2", text)
    return re.sub(r"\s+", " ", text).strip()


def remove_spacing(text: str) -> str:
    return re.sub(r"\s", "", text)


def keyword_combinations(keywords: Sequence[str]) -> list[list[str]]:
    """Ordered pairs (both orders) followed by triples, in index order."""
    combos = []
    n = len(keywords)
    for i in range(n - 1):
        for j in range(i + 1, n):
            combos.append([keywords[i], keywords[j]])
            combos.append([keywords[j], keywords[i]])
    if n >= 3:
        for i in range(n - 2):
            for j in range(i + 1, n - 1):
                for k in range(j + 1, n):
                    combos.append([keywords[i], keywords[j], keywords[k]])
    return combos


# ── Generator ──────────────────────────────────────────────

class TitleGenerator:
    """Generates and ranks product title candidates."""

    def __init__(self, config: Optional[TitleGenerationConfig] = None):
        self._config = config or TitleGenerationConfig()

    @property
    def config(self) -> TitleGenerationConfig:
        return replace(self._config)

    def update_config(self, **changes):
        self._config = replace(self._config, **changes)

    def generate_titles(self, components: ProductTitleComponents,
                        keywords: Sequence[Keyword]) -> list[ProductTitle]:
        """Generate up to 10 ranked title candidates.

        Args:
            components: Requested keyword terms plus optional attributes.
            keywords: Keyword catalog the requested terms must come from.

        Returns:
            Titles sorted by quality score, best first.

        Raises:
            ValidationError: Requested keywords are empty, too many, or
                missing from the catalog.
        """
        self.validate_input(components, keywords)

        catalog = {k.key: k for k in keywords}
        selected = self._select_keywords(components.keywords, catalog)
        candidates = self._build_candidates(components, selected, catalog)

        titles = []
        for cand in candidates:
            title = self._post_process(cand)
            quality = self.evaluate_title(title.title_text)
            title.score = quality.overall
            title.issues.extend(quality.issues)
            title.suggestions = list(quality.suggestions)
            title.breakdown = quality.breakdown
            titles.append(title)

        # sorted() is stable: equal scores keep candidate order
        ranked = sorted(titles, key=lambda t: t.score, reverse=True)[:MAX_RESULTS]
        logger.debug("Generated %d title candidates, returning %d",
                     len(titles), len(ranked))
        return ranked

    def validate_input(self, components: ProductTitleComponents,
                       keywords: Sequence[Keyword]):
        cfg = self._config
        errors = []
        requested = components.keywords or []

        if not requested:
            errors.append(FieldError("keywords", "최소 1개의 키워드가 필요합니다"))
        elif len(requested) < cfg.min_keywords:
            errors.append(FieldError(
                "keywords", f"키워드는 최소 {cfg.min_keywords}개 이상 선택해야 합니다",
            ))
        if len(requested) > cfg.max_keywords:
            errors.append(FieldError(
                "keywords", f"키워드는 최대 {cfg.max_keywords}개까지 선택 가능합니다",
            ))

        available = {k.key for k in keywords}
        missing = [t for t in requested if t.strip().lower() not in available]
        if missing:
            errors.append(FieldError(
                "keywords", f"존재하지 않는 키워드: {', '.join(missing)}",
            ))

        if errors:
            raise ValidationError(errors)

    def _select_keywords(self, requested: Sequence[str],
                         catalog: dict[str, Keyword]) -> list[str]:
        """Requested terms ordered by catalog score, highest first."""
        scored = []
        for term in requested:
            kw = catalog.get(term.strip().lower())
            scored.append((term, (kw.score if kw else None) or 0))
        if self._config.prioritize_keywords:
            scored.sort(key=lambda pair: pair[1], reverse=True)
        return [term for term, _ in scored[:self._config.max_keywords]]

    def _build_candidates(self, components: ProductTitleComponents,
                          keywords: list[str],
                          catalog: dict[str, Keyword]) -> list[ProductTitle]:
        c = components
        features = " ".join(c.features)
        phrase = " ".join(keywords)

        texts = [(_join(phrase, c.category, features, c.usage), keywords)]
        if c.category:
            texts.append((_join(c.category, phrase, features, c.usage), keywords))
        if c.features:
            texts.append((_join(phrase, c.features[0], c.category, c.usage), keywords))
        if c.demographic:
            texts.append((_join(c.demographic, phrase, c.category, features), keywords))
        if c.usage:
            texts.append((_join(c.usage, phrase, c.category, features), keywords))

        if len(keywords) >= 2:
            for combo in keyword_combinations(keywords)[:MAX_COMBINATION_CANDIDATES]:
                texts.append((_join(" ".join(combo), c.category, features, c.usage), combo))

        candidates = []
        for text, used in texts:
            if not text:
                continue
            ids = [catalog[t.strip().lower()].id for t in used if t.strip().lower() in catalog]
            candidates.append(ProductTitle(
                title_text=text, components=components, keyword_ids=ids,
            ))
        return candidates

    def _post_process(self, title: ProductTitle) -> ProductTitle:
        cfg = self._config
        text = title.title_text
        issues = list(title.issues)

        text, removed = self._remove_stopwords(text)
        if removed:
            issues.append(f"금칙어 제거됨: {', '.join(removed)}")

        if cfg.remove_duplicates:
            text, dupes = remove_duplicate_words(text)
            if dupes:
                issues.append(f"중복 단어 제거됨: {', '.join(dupes)}")

        # Over-length titles are flagged, never truncated
        if len(text) > cfg.max_length:
            issues.append(f"길이 초과 ({len(text)}/{cfg.max_length}자)")

        variants = self.generate_spacing_variants(text) if cfg.generate_spacing_variants else None
        return replace(title, title_text=text, issues=issues, spacing_variants=variants)

    def _remove_stopwords(self, text: str) -> tuple[str, list[str]]:
        banned = [s.lower() for s in self._config.stopwords if s]
        kept, removed = [], []
        for word in _tokens(text):
            lower = word.lower()
            if any(s in lower for s in banned):
                removed.append(word)
            else:
                kept.append(word)
        return " ".join(kept), removed

    def generate_spacing_variants(self, text: str) -> SpacingVariants:
        spaced = normalize_spacing(text)
        return SpacingVariants(spaced=spaced, unspaced=remove_spacing(spaced))

    # ── Evaluation ─────────────────────────────────────────

    def evaluate_title(self, text: str) -> TitleQualityScore:
        placement = self._keyword_placement(text)
        readability = evaluate_readability(text)
        length = evaluate_length(text, self._config.max_length)
        uniqueness = evaluate_uniqueness(text)

        overall = (placement + readability + length + uniqueness) / 4
        issues, suggestions = self._analyze_issues(text, placement, readability,
                                                   length, uniqueness)
        return TitleQualityScore(
            overall=round(overall * 100, 2),
            keyword_placement=placement,
            readability=readability,
            length=length,
            uniqueness=uniqueness,
            issues=issues,
            suggestions=suggestions,
        )

    def _keyword_placement(self, text: str) -> float:
        words = _tokens(text)
        if not words:
            return 0.0
        # Without a catalog in scope the leading tokens stand in for keywords
        terms = words[:3] if "keywords" in self._config.required_components else []
        if not terms:
            return 0.5

        total = 0.0
        for term in terms:
            needle = term.lower()
            pos = next((i for i, w in enumerate(words) if needle in w.lower()), -1)
            if pos != -1:
                total += max(0.0, 1 - pos / len(words))
        return total / len(terms)

    def _analyze_issues(self, text: str, placement: float, readability: float,
                        length: float, uniqueness: float) -> tuple[list[str], list[str]]:
        issues, suggestions = [], []
        if placement < 0.7:
            issues.append("키워드가 뒤쪽에 배치되어 있습니다")
            suggestions.append("중요한 키워드를 제목 앞부분에 배치하세요")
        if readability < 0.7:
            issues.append("가독성이 낮습니다")
            suggestions.append("적절한 띄어쓰기와 단어 배치를 확인하세요")
        if length < 0.8:
            if len(text) > self._config.max_length:
                issues.append("제목이 너무 깁니다")
                suggestions.append("불필요한 단어를 제거하여 길이를 줄이세요")
            else:
                issues.append("제목이 너무 짧습니다")
                suggestions.append("제품의 특징이나 용도를 추가하세요")
        if uniqueness < 0.8:
            issues.append("일반적인 표현이 많이 사용되었습니다")
            suggestions.append("제품만의 고유한 특징을 강조하세요")
        return issues, suggestions


def remove_duplicate_words(text: str) -> tuple[str, list[str]]:
    """Drop repeated tokens (case-insensitive); the first occurrence wins."""
    seen = set()
    kept, removed = [], []
    for word in _tokens(text):
        lower = word.lower()
        if lower in seen:
            removed.append(word)
            continue
        seen.add(lower)
        kept.append(word)
    return " ".join(kept), removed


def evaluate_readability(text: str) -> float:
    score = 1.0
    if len(text) < 10 or len(text) > 80:
        score -= 0.3
    word_count = len(_tokens(text))
    if word_count < 2 or word_count > 12:
        score -= 0.2
    if len(_SPECIAL_CHAR.findall(text)) > 3:
        score -= 0.2
    if _UPPER_RUN.search(text):
        score -= 0.1
    return max(0.0, round(score, 10))


def evaluate_length(text: str, max_length: int) -> float:
    """1.0 inside 60-90% of the limit, 0 over it.

    Below the band the score is proportional to length; above it the score
    falls linearly to 0.7 at the limit.
    """
    length = len(text)
    if length > max_length:
        return 0.0
    ideal_min = max_length * IDEAL_MIN_RATIO
    ideal_max = max_length * IDEAL_MAX_RATIO
    if ideal_min <= length <= ideal_max:
        return 1.0
    if length < ideal_min:
        return length / ideal_min
    return 1.0 - ((length - ideal_max) / (max_length - ideal_max)) * OVER_IDEAL_PENALTY


def evaluate_uniqueness(text: str) -> float:
    score = 1.0
    for phrase in COMMON_PHRASES:
        if phrase in text:
            score -= 0.1
    if len(_DIGIT.findall(text)) > 5:
        score -= 0.1
    return max(0.0, round(score, 10))
