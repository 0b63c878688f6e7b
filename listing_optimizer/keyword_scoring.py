"""Keyword opportunity scoring.

Scores keywords 0-100 from three signals:
- Search volume, log-normalized against the batch being scored
- Competition (0-100), applied as a multiplicative penalty
- Tag weighting (trending, brand, longtail, ...)

Also provides a diversity-aware top-N recommender and batch analytics
(distribution, opportunity filter, gap analysis).
"""
import logging
import math
import random
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from listing_optimizer.errors import FieldError, ValidationError
from listing_optimizer.models import AlgorithmWeights, Keyword, KeywordTag

logger = logging.getLogger(__name__)

TAG_WEIGHTS = {
    KeywordTag.TRENDING: 0.8,
    KeywordTag.BRAND: 0.7,
    KeywordTag.LONGTAIL: 0.6,
    KeywordTag.CATEGORY: 0.5,
    KeywordTag.SEASONAL: 0.4,
    KeywordTag.FEATURE: 0.4,
    KeywordTag.EVENT: 0.3,
    KeywordTag.CUSTOM: 0.2,
}

TAG_DESCRIPTIONS = {
    KeywordTag.TRENDING: "트렌딩 키워드",
    KeywordTag.LONGTAIL: "롱테일 키워드",
    KeywordTag.SEASONAL: "계절성 키워드",
    KeywordTag.EVENT: "이벤트성 키워드",
    KeywordTag.BRAND: "브랜드 키워드",
    KeywordTag.CATEGORY: "카테고리 키워드",
    KeywordTag.FEATURE: "특징 키워드",
    KeywordTag.CUSTOM: "커스텀 키워드",
}

# Bonus for carrying several tags, saturating at this many
TAG_COUNT_SATURATION = 3
TAG_COUNT_BONUS = 0.2


@dataclass
class KeywordGroupStats:
    min_volume: float
    max_volume: float
    avg_volume: float
    min_competition: float
    max_competition: float
    avg_competition: float
    total_keywords: int


# Empty batch; max stays above min
EMPTY_GROUP_STATS = KeywordGroupStats(
    min_volume=0, max_volume=1, avg_volume=0,
    min_competition=0, max_competition=1, avg_competition=0,
    total_keywords=0,
)

# Used when a single keyword is scored without any group context
FALLBACK_GROUP_STATS = KeywordGroupStats(
    min_volume=0, max_volume=10000, avg_volume=1000,
    min_competition=0, max_competition=100, avg_competition=50,
    total_keywords=1,
)


@dataclass
class ScoreBreakdown:
    volume_score: float
    competition_penalty: float
    tag_bonus: float
    ctr_bonus: Optional[float] = None


@dataclass
class KeywordScoreResult:
    score: float  # 0-100
    normalized_volume: float  # 0-1
    normalized_competition: float  # 0-1
    tag_weight: float  # 0-1
    breakdown: ScoreBreakdown
    explanation: str = ""


class RandomSource(Protocol):
    """Anything with ``random() -> float in [0, 1)``; ``random.Random`` qualifies."""

    def random(self) -> float: ...


# ── Scorer ─────────────────────────────────────────────────

class KeywordScorer:
    """Opportunity score calculator configured with caller-supplied weights."""

    def __init__(self, weights: Optional[AlgorithmWeights] = None):
        self._weights = weights or AlgorithmWeights()
        self._group_stats: Optional[KeywordGroupStats] = None

    @property
    def weights(self) -> AlgorithmWeights:
        return AlgorithmWeights(
            volume=self._weights.volume,
            competition=self._weights.competition,
            tag=self._weights.tag,
            ctr=self._weights.ctr,
        )

    def update_weights(self, weights: AlgorithmWeights):
        self._weights = weights

    def calculate_group_stats(self, keywords: Sequence[Keyword]) -> KeywordGroupStats:
        """Min/max/avg of volume and competition over the batch."""
        if not keywords:
            self._group_stats = EMPTY_GROUP_STATS
            return EMPTY_GROUP_STATS

        volumes = [k.volume for k in keywords]
        competitions = [k.competition for k in keywords]
        stats = KeywordGroupStats(
            min_volume=min(volumes),
            max_volume=max(volumes),
            avg_volume=sum(volumes) / len(volumes),
            min_competition=min(competitions),
            max_competition=max(competitions),
            avg_competition=sum(competitions) / len(competitions),
            total_keywords=len(keywords),
        )
        self._group_stats = stats
        return stats

    def calculate_score(self, keyword: Keyword,
                        stats: Optional[KeywordGroupStats] = None) -> KeywordScoreResult:
        """Score a single keyword against group statistics.

        Args:
            keyword: Keyword to score.
            stats: Group statistics. Defaults to the last computed group,
                then to a fixed 0-10000 volume range.

        Returns:
            KeywordScoreResult with the 0-100 score and its components.

        Raises:
            ValidationError: the keyword has an out-of-range field.
        """
        keyword.validate()
        stats = stats or self._group_stats or FALLBACK_GROUP_STATS
        w = self._weights

        normalized_volume = normalize_volume(keyword.volume, stats)
        normalized_competition = keyword.competition / 100
        tag_weight = calculate_tag_weight(keyword.tags)

        volume_score = normalized_volume * w.volume
        competition_penalty = normalized_competition * w.competition
        tag_bonus = tag_weight * w.tag

        ctr_bonus = 0.0
        if keyword.weight and w.ctr:
            ctr_bonus = keyword.weight * w.ctr

        # Denominator is always >= 1
        raw = (volume_score + tag_bonus + ctr_bonus) / (competition_penalty + 1)
        final = min(100.0, max(0.0, raw * 100))

        return KeywordScoreResult(
            score=round(final, 2),
            normalized_volume=normalized_volume,
            normalized_competition=normalized_competition,
            tag_weight=tag_weight,
            breakdown=ScoreBreakdown(
                volume_score=volume_score,
                competition_penalty=competition_penalty,
                tag_bonus=tag_bonus,
                ctr_bonus=ctr_bonus if ctr_bonus > 0 else None,
            ),
            explanation=explain_score(keyword, normalized_volume,
                                      normalized_competition, ctr_bonus),
        )

    def calculate_scores(self, keywords: Sequence[Keyword]) -> list[Keyword]:
        """Score a batch. Returns copies with ``score`` set; inputs are untouched.

        Every keyword is validated first; one ValidationError lists the
        violations of all invalid keywords and nothing is scored.
        """
        validate_keywords(keywords)
        stats = self.calculate_group_stats(keywords)
        scored = [k.with_score(self.calculate_score(k, stats).score) for k in keywords]
        logger.debug("Scored %d keywords (volume %s-%s)",
                     len(scored), stats.min_volume, stats.max_volume)
        return scored


def validate_keywords(keywords: Sequence[Keyword]):
    """Raise one ValidationError covering every invalid keyword in the batch."""
    errors = []
    for i, kw in enumerate(keywords):
        try:
            kw.validate()
        except ValidationError as e:
            errors.extend(
                FieldError(f"keywords[{i}].{err.field}", f"{kw.term}: {err.message}")
                for err in e.errors
            )
    if errors:
        raise ValidationError(errors)


def normalize_volume(volume: float, stats: KeywordGroupStats) -> float:
    """Log-scale normalization into 0-1, relative to the batch."""
    if stats.max_volume == stats.min_volume:
        return 0.5
    log_v = math.log(volume + 1)
    log_min = math.log(stats.min_volume + 1)
    log_max = math.log(stats.max_volume + 1)
    return max(0.0, min(1.0, (log_v - log_min) / (log_max - log_min)))


def calculate_tag_weight(tags) -> float:
    """Mean base weight of the tags plus a bonus for carrying several, capped at 1."""
    if not tags:
        return 0.0
    avg = sum(TAG_WEIGHTS[t] for t in tags) / len(tags)
    count_bonus = min(len(tags) / TAG_COUNT_SATURATION, 1) * TAG_COUNT_BONUS
    return min(1.0, avg + count_bonus)


def explain_score(keyword: Keyword, normalized_volume: float,
                  normalized_competition: float, ctr_bonus: float = 0.0) -> str:
    parts = []
    if normalized_volume > 0.8:
        parts.append("높은 검색량으로 노출 기회가 많습니다")
    elif normalized_volume > 0.5:
        parts.append("적당한 검색량으로 안정적인 노출이 가능합니다")
    else:
        parts.append("낮은 검색량이지만 틈새 시장 공략이 가능합니다")

    if normalized_competition < 0.3:
        parts.append("낮은 경쟁도로 상위 노출이 유리합니다")
    elif normalized_competition < 0.7:
        parts.append("중간 경쟁도로 적절한 노력이 필요합니다")
    else:
        parts.append("높은 경쟁도로 치열한 경쟁이 예상됩니다")

    if keyword.tags:
        names = ", ".join(TAG_DESCRIPTIONS[t] for t in keyword.sorted_tags)
        parts.append(f"{names} 특성을 가집니다")

    if ctr_bonus > 0:
        parts.append("높은 CTR 가중치가 적용되었습니다")

    return ". ".join(parts) + "."


# ── Recommender ────────────────────────────────────────────

@dataclass
class KeywordRecommendation:
    keyword: Keyword
    score: float
    reason: str


class KeywordRecommender:
    """Top-N keyword picker that avoids homogeneous (same-tag) lists.

    The duplicate-tag tie-break is randomized; pass a seeded
    ``random.Random`` for reproducible results.
    """

    # Always admitted regardless of tag overlap
    HIGH_SCORE = 80

    def __init__(self, weights: Optional[AlgorithmWeights] = None,
                 rng: Optional[RandomSource] = None):
        self.scorer = KeywordScorer(weights)
        self.rng = rng if rng is not None else random.Random()

    def recommend(self, keywords: Sequence[Keyword], count: int = 10,
                  diversity_factor: float = 0.3) -> list[KeywordRecommendation]:
        """Pick up to ``count`` keywords.

        A candidate is admitted if its score is above 80, if it brings a tag
        not yet represented, or with probability ``1 - diversity_factor``.
        """
        scored = self.scorer.calculate_scores(keywords)
        ranked = sorted(scored, key=lambda k: k.score or 0, reverse=True)

        results = []
        used_tags = set()
        for kw in ranked:
            if len(results) >= count:
                break
            score = kw.score or 0
            overlap = any(t in used_tags for t in kw.tags)
            admit = (
                score > self.HIGH_SCORE
                or not overlap
                or self.rng.random() > diversity_factor
            )
            if admit:
                results.append(KeywordRecommendation(
                    keyword=kw, score=score, reason=recommendation_reason(score),
                ))
                used_tags.update(kw.tags)
        return results


def recommendation_reason(score: float) -> str:
    if score >= 90:
        return "매우 높은 기회지수로 최우선 추천 키워드입니다"
    if score >= 70:
        return "높은 기회지수로 적극 추천하는 키워드입니다"
    if score >= 50:
        return "적당한 기회지수로 고려해볼만한 키워드입니다"
    return "낮은 경쟁도나 특별한 태그 특성으로 추천된 키워드입니다"


# ── Analytics ──────────────────────────────────────────────

@dataclass
class KeywordDistribution:
    volume: dict[str, int] = field(default_factory=lambda: {"low": 0, "medium": 0, "high": 0})
    competition: dict[str, int] = field(default_factory=lambda: {"low": 0, "medium": 0, "high": 0})
    tags: dict[str, int] = field(default_factory=dict)

    def summary(self) -> str:
        lines = [
            "📊 Keyword Distribution",
            f"  Volume:      low {self.volume['low']} / medium {self.volume['medium']} / high {self.volume['high']}",
            f"  Competition: low {self.competition['low']} / medium {self.competition['medium']} / high {self.competition['high']}",
        ]
        if self.tags:
            tag_str = ", ".join(f"{t} {n}" for t, n in sorted(self.tags.items()))
            lines.append(f"  Tags:        {tag_str}")
        return "\n".join(lines)


@dataclass
class KeywordGapResult:
    missing: list[str] = field(default_factory=list)
    opportunities: list[str] = field(default_factory=list)


def _band(value: float, low: float, high: float) -> str:
    if value < low:
        return "low"
    if value < high:
        return "medium"
    return "high"


def analyze_distribution(keywords: Sequence[Keyword]) -> KeywordDistribution:
    """Bucket keywords by volume (relative to the batch max), competition and tag."""
    dist = KeywordDistribution()
    if not keywords:
        return dist
    max_volume = max(k.volume for k in keywords) or 1
    for kw in keywords:
        dist.volume[_band(kw.volume / max_volume, 0.33, 0.67)] += 1
        dist.competition[_band(kw.competition, 33, 67)] += 1
        for tag in kw.sorted_tags:
            dist.tags[tag.value] = dist.tags.get(tag.value, 0) + 1
    return dist


def find_opportunity_keywords(keywords: Sequence[Keyword], threshold: float = 70,
                              weights: Optional[AlgorithmWeights] = None) -> list[Keyword]:
    """Scored copies of the keywords whose score reaches ``threshold``."""
    scored = KeywordScorer(weights).calculate_scores(keywords)
    return [k for k in scored if (k.score or 0) >= threshold]


def find_keyword_gaps(our_keywords: Sequence[Keyword], competitor_terms: Sequence[str],
                      competitor_competition: Optional[dict[str, float]] = None,
                      max_competition: float = 30) -> KeywordGapResult:
    """Competitor terms we do not target yet.

    ``opportunities`` is the subset of missing terms whose known competition
    is at most ``max_competition``; terms with no competition data are never
    opportunities.
    """
    ours = {k.key for k in our_keywords}
    competition = {t.strip().lower(): c for t, c in (competitor_competition or {}).items()}

    result = KeywordGapResult()
    seen = set()
    for term in competitor_terms:
        key = term.strip().lower()
        if not key or key in ours or key in seen:
            continue
        seen.add(key)
        result.missing.append(key)
        comp = competition.get(key)
        if comp is not None and comp <= max_competition:
            result.opportunities.append(key)
    return result
