"""Configuration management.

Settings come from environment variables. ``Config`` is built and owned by
the caller (CLI, service) and handed to the engines; there is no
process-wide instance.
"""
import logging
import os
from typing import Optional

from listing_optimizer.errors import FieldError, ValidationError
from listing_optimizer.models import AlgorithmWeights
from listing_optimizer.title_generator import DEFAULT_STOPWORDS, TitleGenerationConfig

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Config:
    def __init__(self, env: Optional[dict] = None):
        self._env = os.environ if env is None else env
        self._errors: list[FieldError] = []
        self.REDIS_URL: str = self._env.get("LISTING_REDIS_URL", "redis://localhost:6379/0")
        self.WEIGHT_VOLUME: float = self._number("WEIGHT_VOLUME", 0.7, float)
        self.WEIGHT_COMPETITION: float = self._number("WEIGHT_COMPETITION", 0.3, float)
        self.WEIGHT_TAG: float = self._number("WEIGHT_TAG", 0.1, float)
        self.WEIGHT_CTR: Optional[float] = self._number("WEIGHT_CTR", None, float)
        self.TITLE_MAX_LENGTH: int = self._number("TITLE_MAX_LENGTH", 60, int)
        self.MAX_KEYWORDS: int = self._number("MAX_KEYWORDS", 3, int)
        self.REMOVE_DUPLICATES: bool = (
            self._env.get("LISTING_REMOVE_DUPLICATES", "1").lower() not in ("0", "false", "no")
        )
        stopwords = self._env.get("LISTING_STOPWORDS")
        self.STOPWORDS: tuple = (
            tuple(s.strip() for s in stopwords.split(",") if s.strip())
            if stopwords else DEFAULT_STOPWORDS
        )
        self.LOG_LEVEL: str = self._env.get("LISTING_LOG_LEVEL", "WARNING").upper()

    def _number(self, name, default, cast):
        raw = self._env.get(f"LISTING_{name}")
        if raw is None or raw.strip() == "":
            return default
        try:
            return cast(raw)
        except ValueError:
            self._errors.append(FieldError(name, f"LISTING_{name} is not a number: {raw!r}"))
            return default

    @property
    def log_level(self) -> int:
        return getattr(logging, self.LOG_LEVEL, logging.WARNING)

    def validate(self) -> "Config":
        """Raise ValidationError listing every bad setting; returns self when valid."""
        errors = list(self._errors)
        for name in ("WEIGHT_VOLUME", "WEIGHT_COMPETITION", "WEIGHT_TAG"):
            if getattr(self, name) < 0:
                errors.append(FieldError(name, f"{name} must be >= 0"))
        if self.WEIGHT_CTR is not None and self.WEIGHT_CTR < 0:
            errors.append(FieldError("WEIGHT_CTR", "WEIGHT_CTR must be >= 0"))
        if self.TITLE_MAX_LENGTH <= 0:
            errors.append(FieldError("TITLE_MAX_LENGTH", "TITLE_MAX_LENGTH must be > 0"))
        if self.MAX_KEYWORDS < 1:
            errors.append(FieldError("MAX_KEYWORDS", "MAX_KEYWORDS must be >= 1"))
        if self.LOG_LEVEL not in LOG_LEVELS:
            errors.append(FieldError("LOG_LEVEL", f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}"))
        if errors:
            raise ValidationError(errors, prefix="설정 오류")
        return self

    def algorithm_weights(self) -> AlgorithmWeights:
        return AlgorithmWeights(
            volume=self.WEIGHT_VOLUME,
            competition=self.WEIGHT_COMPETITION,
            tag=self.WEIGHT_TAG,
            ctr=self.WEIGHT_CTR,
        )

    def title_config(self) -> TitleGenerationConfig:
        return TitleGenerationConfig(
            stopwords=self.STOPWORDS,
            max_length=self.TITLE_MAX_LENGTH,
            max_keywords=self.MAX_KEYWORDS,
            remove_duplicates=self.REMOVE_DUPLICATES,
        )

    def configure_logging(self):
        logging.basicConfig(
            level=self.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
