from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException

from finance_enricher.api.dependencies import get_client
from finance_enricher.api.schemas import (
    BatchCategorizeRequest,
    CategorizeRequest,
    InsightsRequest,
    InsightsResponse,
    QueryRequest,
)
from finance_enricher.client import EnrichmentClient
from finance_enricher.errors import EnrichmentError
from finance_enricher.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/ai")


@router.post("/categorize")
async def categorize_transaction(
    req: CategorizeRequest,
    client: Annotated[EnrichmentClient, Depends(get_client)],
) -> dict[str, Any]:
    result = await client.categorize(req.transaction)
    return result.to_payload()


@router.post("/categorize/batch")
async def categorize_transactions(
    req: BatchCategorizeRequest,
    client: Annotated[EnrichmentClient, Depends(get_client)],
) -> list[dict[str, Any]]:
    results = await client.categorize_batch(req.transactions)
    return [result.to_payload() for result in results]


@router.post("/query")
async def answer_query(
    req: QueryRequest,
    client: Annotated[EnrichmentClient, Depends(get_client)],
) -> dict[str, Any]:
    try:
        return await client.answer_query(req.query, req.context)
    except EnrichmentError as exc:
        logger.warning("[QUERY] Returning 502 for failed query (%s).", exc.kind.value)
        raise HTTPException(status_code=502, detail=exc.to_dict()) from exc


@router.post("/insights", response_model=InsightsResponse)
async def generate_insights(
    req: InsightsRequest,
    client: Annotated[EnrichmentClient, Depends(get_client)],
) -> InsightsResponse:
    insights = await client.generate_insights(req.transactions)
    return InsightsResponse(insights=insights)
