from typing import Any

from pydantic import BaseModel, Field


class CategorizeRequest(BaseModel):
    transaction: dict[str, Any]


class BatchCategorizeRequest(BaseModel):
    transactions: list[dict[str, Any]]


class QueryRequest(BaseModel):
    query: str = Field(min_length=1)
    context: dict[str, Any] = Field(default_factory=dict)


class InsightsRequest(BaseModel):
    transactions: list[dict[str, Any]] = Field(default_factory=list)


class InsightsResponse(BaseModel):
    insights: list[dict[str, Any]]
