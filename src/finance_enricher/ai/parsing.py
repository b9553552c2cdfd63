import json
from typing import Any

from pydantic import ValidationError

from finance_enricher.errors import MalformedResponseError
from finance_enricher.logger import get_logger
from finance_enricher.models import (
    FALLBACK_CONFIDENCE,
    MIN_MODEL_CONFIDENCE,
    CategorizationResult,
    InsightSet,
)

logger = get_logger(__name__)


def load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError(f"Response is not valid JSON: {exc}", raw=text) from exc


def parse_json_object(text: str) -> dict[str, Any]:
    data = load_json(text)
    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Expected a JSON object, got {type(data).__name__}.", raw=text
        )
    return data


def parse_categorization(text: str) -> CategorizationResult:
    data = parse_json_object(text)
    try:
        result = CategorizationResult.model_validate(data)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in exc.errors())
        raise MalformedResponseError(f"Categorization schema violation ({fields}).", raw=text) from exc

    # confidence <= FALLBACK_CONFIDENCE is reserved for the fallback value.
    if result.confidence <= FALLBACK_CONFIDENCE:
        logger.debug(
            "[CATEGORIZE] Raising model confidence %.2f to %.2f.",
            result.confidence,
            MIN_MODEL_CONFIDENCE,
        )
        result = result.model_copy(update={"confidence": MIN_MODEL_CONFIDENCE})
    return result


def parse_insights(text: str) -> InsightSet:
    """Pull the insight list out of a response.

    Accepts a bare JSON array, an object with an ``insights`` key, or an object
    with exactly one list-valued member. Entries that are not objects are dropped.
    """
    data = load_json(text)

    if isinstance(data, list):
        items = data
    elif isinstance(data, dict):
        if "insights" in data:
            items = data["insights"]
        else:
            candidates = [value for value in data.values() if isinstance(value, list)]
            if len(candidates) != 1:
                raise MalformedResponseError("Response has no insight list.", raw=text)
            items = candidates[0]
    else:
        raise MalformedResponseError(
            f"Expected a JSON object or array, got {type(data).__name__}.", raw=text
        )

    if not isinstance(items, list):
        raise MalformedResponseError(
            f"Insights must be a list, got {type(items).__name__}.", raw=text
        )

    insights = [item for item in items if isinstance(item, dict)]
    dropped = len(items) - len(insights)
    if dropped:
        logger.warning("[INSIGHTS] Dropped %d insight entries that were not objects.", dropped)
    return insights
