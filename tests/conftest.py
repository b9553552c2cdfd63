import json
from collections.abc import Callable, Sequence
from typing import Any, Union

import pytest

from finance_enricher.ai.invoker import ChatMessage, CompletionOptions
from finance_enricher.client import EnrichmentClient
from finance_enricher.core.configuration import EnrichmentConfig

Reply = Union[str, BaseException, Callable[[Sequence[ChatMessage], CompletionOptions], str]]


class FakeInvoker:
    """In-memory ModelInvoker that records every call."""

    def __init__(self, reply: Reply = "{}"):
        self.reply = reply
        self.calls: list[tuple[list[ChatMessage], CompletionOptions]] = []

    async def complete(self, messages: Sequence[ChatMessage], options: CompletionOptions) -> str:
        self.calls.append((list(messages), options))
        if isinstance(self.reply, BaseException):
            raise self.reply
        if callable(self.reply):
            return self.reply(messages, options)
        return self.reply


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def config() -> EnrichmentConfig:
    return EnrichmentConfig(api_key="sk-test", model="gpt-4")


@pytest.fixture
def invoker() -> FakeInvoker:
    return FakeInvoker()


@pytest.fixture
def client(config: EnrichmentConfig, invoker: FakeInvoker) -> EnrichmentClient:
    return EnrichmentClient(config, invoker=invoker)


def categorization_json(**overrides: Any) -> str:
    payload = {
        "category": "food",
        "subcategory": "groceries",
        "confidence": 0.92,
        "reasoning": "Supermarket purchase",
        "merchant": "Whole Foods",
        "tags": ["groceries", "weekly"],
        "isRecurring": False,
    }
    payload.update(overrides)
    return json.dumps(payload)
