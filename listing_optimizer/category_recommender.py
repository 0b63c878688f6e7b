"""Rule-based category recommender.

Matches keyword terms and product attributes against a table of category
rules and proposes marketplace categories with:
- Confidence (0-100) from keyword, pattern and high-score-keyword matches
- Reasons that can be rendered one per line
- The required-attribute checklist for each category
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Optional, Sequence

from listing_optimizer.category_rules import default_rules
from listing_optimizer.models import (
    CategoryAttribute, CategoryRule, CategorySuggestion, Keyword,
    ProductTitleComponents,
)

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 0.4
PATTERN_WEIGHT = 0.3
FREQUENCY_WEIGHT = 0.3

# Only keywords scoring above this count toward the frequency signal
HIGH_SCORE_THRESHOLD = 70


@dataclass
class RuleScore:
    keyword_score: float
    pattern_score: float
    frequency_score: float
    final_score: float


@dataclass
class CategoryRecommendation:
    suggestion: CategorySuggestion
    matched_rules: list[CategoryRule]
    keyword_matches: list[str] = field(default_factory=list)
    pattern_matches: list[str] = field(default_factory=list)
    score_breakdown: Optional[RuleScore] = None


class CategoryRecommender:
    """Proposes categories from a mutable, lock-protected rule table."""

    def __init__(self, rules: Optional[Sequence[CategoryRule]] = None):
        self._lock = threading.Lock()
        self._rules: list[CategoryRule] = list(rules) if rules is not None else default_rules()

    @property
    def rules(self) -> list[CategoryRule]:
        with self._lock:
            return list(self._rules)

    def recommend_categories(self, keywords: Sequence[Keyword],
                             components: Optional[ProductTitleComponents] = None,
                             max_suggestions: int = 3) -> list[CategoryRecommendation]:
        """Rank the rules matching the keywords and product attributes.

        Args:
            keywords: Keywords describing the product (scores are optional).
            components: Optional product attributes whose text is matched too.
            max_suggestions: Maximum number of categories returned.

        Returns:
            Recommendations sorted by score. Rules that score 0 are omitted.
        """
        texts = [k.term.lower() for k in keywords]
        if components is not None:
            texts.extend(t.lower() for t in components.texts())
        text = " ".join(texts)

        rules = self.rules
        results = []
        for rule in rules:
            rec = self._evaluate_rule(rule, text, keywords)
            if rec.score_breakdown.final_score > 0:
                results.append(rec)

        results.sort(key=lambda r: r.score_breakdown.final_score, reverse=True)
        logger.debug("Category match: %d of %d rules scored above zero",
                     len(results), len(rules))
        return results[:max_suggestions]

    def _evaluate_rule(self, rule: CategoryRule, text: str,
                       keywords: Sequence[Keyword]) -> CategoryRecommendation:
        keyword_matches = [kw for kw in rule.keywords if kw.lower() in text]
        keyword_score = len(keyword_matches) / len(rule.keywords) if rule.keywords else 0.0

        pattern_matches = [
            pattern for pattern, regex in zip(rule.patterns, rule.compiled_patterns)
            if regex.search(text)
        ]
        pattern_score = len(pattern_matches) / len(rule.patterns) if rule.patterns else 0.0

        matched_lower = [m.lower() for m in keyword_matches]
        frequency = 0.0
        for kw in keywords:
            score = kw.score or 0
            if score > HIGH_SCORE_THRESHOLD and any(m in kw.key for m in matched_lower):
                frequency += score / 100
        frequency_score = min(1.0, frequency / max(1, len(keywords)))

        final_score = (
            keyword_score * KEYWORD_WEIGHT
            + pattern_score * PATTERN_WEIGHT
            + frequency_score * FREQUENCY_WEIGHT
        ) * rule.weight * (rule.confidence / 100)

        suggestion = CategorySuggestion(
            name=rule.category_name,
            reasons=build_reasons(rule, keyword_matches, pattern_matches),
            attributes=list(rule.attributes),
            confidence=min(100, max(0, round(final_score * 100))),
        )
        return CategoryRecommendation(
            suggestion=suggestion,
            matched_rules=[rule],
            keyword_matches=keyword_matches,
            pattern_matches=pattern_matches,
            score_breakdown=RuleScore(
                keyword_score=keyword_score,
                pattern_score=pattern_score,
                frequency_score=frequency_score,
                final_score=final_score,
            ),
        )

    def get_category_checklist(self, category_name: str) -> list[CategoryAttribute]:
        """Attributes required by a category (case-insensitive), [] if unknown."""
        name = category_name.lower()
        for rule in self.rules:
            if rule.category_name.lower() == name:
                return list(rule.attributes)
        return []

    def add_rule(self, rule: CategoryRule):
        """Add a rule, replacing any existing rule with the same category name."""
        with self._lock:
            for i, existing in enumerate(self._rules):
                if existing.category_name == rule.category_name:
                    self._rules[i] = rule
                    return
            self._rules.append(rule)

    def remove_rule(self, category_name: str) -> bool:
        with self._lock:
            for i, existing in enumerate(self._rules):
                if existing.category_name == category_name:
                    del self._rules[i]
                    return True
        return False

    def search_categories(self, query: str) -> list[CategoryRule]:
        q = query.lower()
        return [
            rule for rule in self.rules
            if q in rule.category_name.lower()
            or any(q in kw.lower() for kw in rule.keywords)
        ]


def build_reasons(rule: CategoryRule, keyword_matches: list[str],
                  pattern_matches: list[str]) -> list[str]:
    reasons = [rule.reason] if rule.reason else []
    if keyword_matches:
        reasons.append(f"'{', '.join(keyword_matches)}' 키워드가 매칭됨")
    if pattern_matches:
        reasons.append("상품 특성 패턴이 일치함")
    return reasons


# ── Analytics ──────────────────────────────────────────────

@dataclass
class RecommendationQuality:
    average_confidence: float = 0.0
    high_confidence_count: int = 0
    low_confidence_count: int = 0
    quality_score: float = 0.0


def analyze_category_distribution(keywords: Sequence[Keyword],
                                  recommender: CategoryRecommender) -> dict[str, int]:
    """Top category per individual keyword, counted."""
    counts: dict[str, int] = {}
    for kw in keywords:
        recs = recommender.recommend_categories([kw], max_suggestions=1)
        if recs:
            name = recs[0].suggestion.name
            counts[name] = counts.get(name, 0) + 1
    return counts


def analyze_recommendation_quality(
        recommendations: Sequence[CategoryRecommendation]) -> RecommendationQuality:
    if not recommendations:
        return RecommendationQuality()
    confidences = [r.suggestion.confidence for r in recommendations]
    high = sum(1 for c in confidences if c >= 80)
    low = sum(1 for c in confidences if c < 50)
    return RecommendationQuality(
        average_confidence=round(sum(confidences) / len(confidences), 2),
        high_confidence_count=high,
        low_confidence_count=low,
        quality_score=round(high / len(recommendations) * 100, 2),
    )
