import asyncio
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeVar

from finance_enricher.ai.invoker import (
    ChatMessage,
    CompletionOptions,
    ModelInvoker,
    OpenAIInvoker,
    system_message,
    user_message,
)
from finance_enricher.ai.parsing import parse_categorization, parse_insights, parse_json_object
from finance_enricher.ai.prompts import (
    build_categorization_prompt,
    build_insights_prompt,
    build_query_instructions,
)
from finance_enricher.core.configuration import EnrichmentConfig
from finance_enricher.domain.outcome import Outcome
from finance_enricher.errors import (
    ConfigurationError,
    EnrichmentError,
    InvalidRequestError,
    TransportError,
)
from finance_enricher.logger import get_logger
from finance_enricher.models import CategorizationResult, InsightSet, QueryResult, Transaction

logger = get_logger(__name__)

T = TypeVar("T")


class EnrichmentClient:
    """
    Categorizes transactions, answers questions and generates insights through
    one language-model call per operation.

    ``categorize`` and ``generate_insights`` never raise: failures are logged and
    replaced by ``CategorizationResult.fallback()`` and ``[]``. ``answer_query``
    has no safe default, so its failures are raised as ``EnrichmentError``.
    The client keeps no state between calls and can be shared across tasks.
    """

    def __init__(
        self,
        config: EnrichmentConfig | None = None,
        invoker: ModelInvoker | None = None,
    ):
        self.config = config or EnrichmentConfig.from_env()
        self.config.validate()
        self.invoker = invoker or OpenAIInvoker(self.config)
        logger.info("[LLM] Enrichment client ready: model=%s", self.config.model)

    async def categorize(self, transaction: Transaction) -> CategorizationResult:
        options = self._options(temperature=self.config.categorize_temperature)

        outcome = await self._complete(
            lambda: [user_message(build_categorization_prompt(transaction))],
            options,
            parse_categorization,
            operation="categorize",
        )
        if outcome.ok:
            result = outcome.value
            logger.debug(
                "[CATEGORIZE] '%s/%s' (confidence: %.2f)",
                result.category,
                result.subcategory,
                result.confidence,
            )
            return result

        logger.warning("[CATEGORIZE] Falling back to 'other': %s", outcome.error)
        return CategorizationResult.fallback()

    async def categorize_batch(self, transactions: Sequence[Transaction]) -> list[CategorizationResult]:
        if not transactions:
            return []

        semaphore = asyncio.Semaphore(self.config.batch_concurrency)

        async def bounded(transaction: Transaction) -> CategorizationResult:
            async with semaphore:
                return await self.categorize(transaction)

        results = await asyncio.gather(*(bounded(tx) for tx in transactions))
        fallbacks = sum(1 for result in results if result.is_fallback)
        logger.info(
            "[CATEGORIZE] Batch of %d done (%d fell back).",
            len(results),
            fallbacks,
        )
        return list(results)

    async def answer_query(self, query: str, context: Mapping[str, Any] | None = None) -> QueryResult:
        options = self._options(temperature=self.config.query_temperature)

        outcome = await self._complete(
            lambda: [
                system_message(build_query_instructions(context or {})),
                user_message(query),
            ],
            options,
            parse_json_object,
            operation="query",
        )
        if not outcome.ok:
            logger.error("[QUERY] Query processing failed: %s", outcome.error)
        return outcome.unwrap()

    async def generate_insights(self, transactions: Sequence[Transaction]) -> InsightSet:
        options = self._options(temperature=self.config.insights_temperature)

        outcome = await self._complete(
            lambda: [user_message(build_insights_prompt(transactions))],
            options,
            parse_insights,
            operation="insights",
        )
        if outcome.ok:
            logger.debug(
                "[INSIGHTS] Generated %d insights from %d transactions.",
                len(outcome.value),
                len(transactions),
            )
            return outcome.value

        logger.warning("[INSIGHTS] Returning no insights: %s", outcome.error)
        return []

    def _options(self, *, temperature: float | None) -> CompletionOptions:
        return CompletionOptions(model=self.config.model, json_response=True, temperature=temperature)

    async def _complete(
        self,
        build_messages: Callable[[], list[ChatMessage]],
        options: CompletionOptions,
        parse: Callable[[str], T],
        *,
        operation: str,
    ) -> Outcome[T]:
        """Build the prompt, issue one call and parse it.

        Any failure along the way is captured in the returned ``Outcome``;
        only ``ConfigurationError`` escapes.
        """
        try:
            messages = build_messages()
        except (TypeError, ValueError) as exc:
            error = InvalidRequestError(f"Could not serialize request data: {exc}", operation=operation)
            error.__cause__ = exc
            return Outcome.failure(error)

        try:
            text = await self.invoker.complete(messages, options)
            return Outcome.success(parse(text))
        except ConfigurationError:
            raise
        except EnrichmentError as exc:
            return Outcome.failure(exc.for_operation(operation))
        except Exception as exc:
            # Invokers other than OpenAIInvoker may raise anything.
            error = TransportError(f"{type(exc).__name__}: {exc}", reason="provider", operation=operation)
            error.__cause__ = exc
            return Outcome.failure(error)
