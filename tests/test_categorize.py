import json
from datetime import datetime
from decimal import Decimal

import pytest
from conftest import FakeInvoker, categorization_json

from finance_enricher.client import EnrichmentClient
from finance_enricher.errors import MalformedResponseError, TransportError
from finance_enricher.models import CATEGORIES, CategorizationResult

FALLBACK_PAYLOAD = {
    "category": "other",
    "subcategory": "unknown",
    "confidence": 0.1,
    "reasoning": "AI categorization failed",
    "merchant": None,
    "tags": [],
    "isRecurring": False,
}


@pytest.mark.anyio
async def test_categorize_parses_model_answer(client: EnrichmentClient, invoker: FakeInvoker) -> None:
    invoker.reply = categorization_json()
    tx = {"description": "WHOLE FOODS #123", "amount": -54.2, "date": "2024-03-01"}

    result = await client.categorize(tx)

    assert result.category == "food"
    assert result.subcategory == "groceries"
    assert result.confidence == pytest.approx(0.92)
    assert result.merchant == "Whole Foods"
    assert result.tags == ["groceries", "weekly"]
    assert result.is_recurring is False
    assert not result.is_fallback


@pytest.mark.anyio
async def test_categorize_request_shape(client: EnrichmentClient, invoker: FakeInvoker) -> None:
    invoker.reply = categorization_json()
    tx = {"description": "Netflix", "amount": Decimal("15.99"), "date": datetime(2024, 3, 1)}

    await client.categorize(tx)

    assert len(invoker.calls) == 1
    messages, options = invoker.calls[0]
    assert [m["role"] for m in messages] == ["user"]
    prompt = messages[0]["content"]
    assert "Netflix" in prompt
    assert "15.99" in prompt
    assert "isRecurring" in prompt
    for category in CATEGORIES:
        assert category in prompt
    assert options.temperature == 0.3
    assert options.json_response is True
    assert options.model == "gpt-4"


@pytest.mark.anyio
async def test_categorize_does_not_mutate_transaction(client: EnrichmentClient, invoker: FakeInvoker) -> None:
    invoker.reply = categorization_json()
    tx = {"description": "Uber", "amount": 12.0, "tags": ["ride"]}
    snapshot = json.loads(json.dumps(tx))

    await client.categorize(tx)

    assert tx == snapshot


@pytest.mark.anyio
async def test_categorize_transport_error_returns_fallback(client: EnrichmentClient, invoker: FakeInvoker) -> None:
    invoker.reply = TransportError("rate limited", reason="rate_limit", status_code=429)

    result = await client.categorize({"description": "Shell Station"})

    assert result.to_payload() == FALLBACK_PAYLOAD
    assert result.is_fallback


@pytest.mark.anyio
async def test_categorize_unexpected_invoker_error_returns_fallback(
    client: EnrichmentClient, invoker: FakeInvoker
) -> None:
    invoker.reply = RuntimeError("socket closed")

    result = await client.categorize({"description": "Shell Station"})

    assert result.to_payload() == FALLBACK_PAYLOAD


@pytest.mark.anyio
@pytest.mark.parametrize(
    "reply",
    [
        "not json at all",
        '{"category": "food", "confidence": ',
        "[1, 2, 3]",
        categorization_json(category="groceries"),
        categorization_json(confidence=1.7),
        json.dumps({"category": "food"}),
        categorization_json(isRecurring={"weekly": True}),
    ],
)
async def test_categorize_malformed_answer_returns_fallback(
    client: EnrichmentClient, invoker: FakeInvoker, reply: str
) -> None:
    invoker.reply = reply

    result = await client.categorize({"description": "anything"})

    assert result == CategorizationResult.fallback()


@pytest.mark.anyio
async def test_categorize_normalizes_model_output(client: EnrichmentClient, invoker: FakeInvoker) -> None:
    invoker.reply = json.dumps(
        {
            "category": " Utilities ",
            "confidence": 0.8,
            "merchant": "   ",
            "tags": "Bills, monthly, bills",
            "isRecurring": True,
        }
    )

    result = await client.categorize({"description": "City Power"})

    assert result.to_payload() == {
        "category": "utilities",
        "subcategory": "",
        "confidence": 0.8,
        "reasoning": "",
        "merchant": None,
        "tags": ["bills", "monthly"],
        "isRecurring": True,
    }


@pytest.mark.anyio
async def test_categorize_low_model_confidence_stays_above_fallback(
    client: EnrichmentClient, invoker: FakeInvoker
) -> None:
    invoker.reply = categorization_json(confidence=0.05)

    result = await client.categorize({"description": "???"})

    assert result.category == "food"
    assert result.confidence > 0.1
    assert not result.is_fallback


@pytest.mark.anyio
async def test_categorize_batch_preserves_order(config, invoker: FakeInvoker) -> None:
    def reply(messages, options) -> str:
        prompt = messages[0]["content"]
        if "Salary" in prompt:
            return categorization_json(category="income", merchant=None)
        if "Broken" in prompt:
            raise MalformedResponseError("bad", raw="{")
        return categorization_json(category="transportation")

    invoker.reply = reply
    client = EnrichmentClient(config, invoker=invoker)
    transactions = [{"description": "Salary"}, {"description": "Broken"}, {"description": "Metro"}]

    results = await client.categorize_batch(transactions)

    assert [r.category for r in results] == ["income", "other", "transportation"]
    assert results[1].is_fallback
    assert len(invoker.calls) == 3


@pytest.mark.anyio
async def test_categorize_batch_empty(client: EnrichmentClient, invoker: FakeInvoker) -> None:
    assert await client.categorize_batch([]) == []
    assert invoker.calls == []


@pytest.mark.anyio
async def test_categorize_boolean_confidence_returns_fallback(client: EnrichmentClient, invoker: FakeInvoker) -> None:
    invoker.reply = categorization_json(confidence=True)

    result = await client.categorize({"description": "Coffee"})

    assert result == CategorizationResult.fallback()


@pytest.mark.anyio
async def test_categorize_self_referencing_record_returns_fallback(
    client: EnrichmentClient, invoker: FakeInvoker
) -> None:
    tx: dict = {"description": "Loop"}
    tx["self"] = tx

    result = await client.categorize(tx)

    assert result == CategorizationResult.fallback()
    assert invoker.calls == []
