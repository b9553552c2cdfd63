from collections.abc import Mapping
from typing import Any, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finance_enricher.domain.tags import normalize_tags

# Caller-owned records, forwarded to the model as-is.
Transaction = Mapping[str, Any]
QueryResult = dict[str, Any]
Insight = dict[str, Any]
InsightSet = list[Insight]

Category = Literal[
    "food",
    "transportation",
    "entertainment",
    "utilities",
    "healthcare",
    "shopping",
    "income",
    "other",
]
CATEGORIES: tuple[str, ...] = get_args(Category)

FALLBACK_CONFIDENCE = 0.1
MIN_MODEL_CONFIDENCE = 0.11


class CategorizationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category: Category
    subcategory: str = ""
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""
    merchant: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    is_recurring: bool = Field(default=False, alias="isRecurring")

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def _reject_bool_confidence(cls, value: Any) -> Any:
        # Lax float parsing would read JSON true as 1.0.
        if isinstance(value, bool):
            raise ValueError("confidence must be a number, not a boolean")
        return value

    @field_validator("subcategory", "reasoning", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("merchant", mode="before")
    @classmethod
    def _blank_merchant(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Any) -> list[str]:
        return normalize_tags(value)

    @classmethod
    def fallback(cls) -> "CategorizationResult":
        return cls(
            category="other",
            subcategory="unknown",
            confidence=FALLBACK_CONFIDENCE,
            reasoning="AI categorization failed",
            merchant=None,
            tags=[],
            is_recurring=False,
        )

    @property
    def is_fallback(self) -> bool:
        return self.confidence <= FALLBACK_CONFIDENCE

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
