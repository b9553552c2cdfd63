"""Task descriptions sent to the language model.

Every builder embeds caller data as JSON. Values JSON cannot represent
directly (``datetime``, ``Decimal``, ...) are rendered with ``str``.
"""

import json
from collections.abc import Mapping, Sequence
from typing import Any

from finance_enricher.models import CATEGORIES


def to_json(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False, sort_keys=False)


CATEGORIZATION_SCHEMA = """{
  "category": "primary category",
  "subcategory": "specific subcategory",
  "confidence": 0.95,
  "reasoning": "explanation",
  "merchant": "merchant name if identifiable, otherwise null",
  "tags": ["relevant", "tags"],
  "isRecurring": false
}"""


def build_categorization_prompt(transaction: Mapping[str, Any]) -> str:
    categories = ", ".join(CATEGORIES)
    return f"""Categorize this financial transaction and provide insights.

Transaction: {to_json(transaction)}

Return a single JSON object with exactly these fields:
{CATEGORIZATION_SCHEMA}

"category" must be one of: {categories}
"confidence" is a number between 0 and 1.
"isRecurring" is true when the transaction looks like a subscription, bill or salary."""


QUERY_ROLE = "You are an AI financial analyst. Convert natural language queries into actionable insights."


def build_query_instructions(context: Mapping[str, Any]) -> str:
    return f"""{QUERY_ROLE}

Available data context: {to_json(context)}

For the user query, return a JSON object with these fields:
- "query": a SQL query that fetches the data needed to answer, or null if the context is enough
- "analysis": a narrative analysis answering the question
- "recommendations": a list of actionable recommendations
- "visualizations": a list of suggested charts, each describing its type and the data it shows"""


INSIGHT_TYPES = (
    "spending_pattern",
    "savings_opportunity",
    "budget_recommendation",
    "anomaly_alert",
)


def build_insights_prompt(transactions: Sequence[Mapping[str, Any]]) -> str:
    types = ", ".join(INSIGHT_TYPES)
    return f"""Analyze this financial data and generate personalized insights.

Data: {to_json(list(transactions))}

Provide actionable insights about:
- Spending patterns
- Potential savings
- Budget recommendations
- Unusual activity alerts

Return a JSON object of the form {{"insights": [...]}}.
Each insight is an object with "type" (one of: {types}), "title", "description" and "impact"."""
