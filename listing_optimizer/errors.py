"""Exceptions raised by the listing optimizer."""
from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ListingOptimizerError(Exception):
    """Base class for all listing optimizer errors."""


class ValidationError(ListingOptimizerError, ValueError):
    """Input failed validation. Carries every violation, not just the first."""

    def __init__(self, errors: list[FieldError], prefix: str = "입력 검증 실패"):
        self.errors = list(errors)
        super().__init__(f"{prefix}: " + ", ".join(e.message for e in self.errors))

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


class NotFoundError(ListingOptimizerError, KeyError):
    """A record required by the operation does not exist."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")

    def __str__(self) -> str:
        return self.args[0]
