from dataclasses import dataclass
from typing import Generic, TypeVar

from finance_enricher.errors import EnrichmentError

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of one model call: either a parsed value or the error that stopped it."""

    value: T | None = None
    error: EnrichmentError | None = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: EnrichmentError) -> "Outcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
