from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal, Protocol, TypedDict

import openai
from openai import AsyncOpenAI

from finance_enricher.core.configuration import EnrichmentConfig
from finance_enricher.errors import TransportError
from finance_enricher.logger import get_logger

logger = get_logger(__name__)


class ChatMessage(TypedDict):
    role: Literal["system", "user"]
    content: str


def system_message(content: str) -> ChatMessage:
    return {"role": "system", "content": content}


def user_message(content: str) -> ChatMessage:
    return {"role": "user", "content": content}


@dataclass(frozen=True)
class CompletionOptions:
    model: str
    json_response: bool = True
    temperature: float | None = None


class ModelInvoker(Protocol):
    async def complete(self, messages: Sequence[ChatMessage], options: CompletionOptions) -> str:
        """Return the text of the first completion or raise ``TransportError``."""
        ...


class OpenAIInvoker:
    def __init__(self, config: EnrichmentConfig, client: AsyncOpenAI | None = None):
        if client is None:
            client_kwargs: dict[str, Any] = {
                "api_key": config.api_key,
                "max_retries": config.max_retries,
            }
            if config.base_url:
                client_kwargs["base_url"] = config.base_url
            if config.timeout is not None:
                client_kwargs["timeout"] = config.timeout
            client = AsyncOpenAI(**client_kwargs)
        self.client = client

    async def complete(self, messages: Sequence[ChatMessage], options: CompletionOptions) -> str:
        request: dict[str, Any] = {
            "model": options.model,
            "messages": list(messages),
        }
        if options.json_response:
            request["response_format"] = {"type": "json_object"}
        if options.temperature is not None:
            request["temperature"] = options.temperature

        try:
            response = await self.client.chat.completions.create(**request)
        except openai.AuthenticationError as exc:
            raise TransportError(str(exc), reason="authentication", status_code=exc.status_code) from exc
        except openai.RateLimitError as exc:
            raise TransportError(str(exc), reason="rate_limit", status_code=exc.status_code) from exc
        except openai.APITimeoutError as exc:
            raise TransportError(str(exc), reason="timeout") from exc
        except openai.APIConnectionError as exc:
            raise TransportError(str(exc), reason="connection") from exc
        except openai.APIStatusError as exc:
            raise TransportError(str(exc), reason="provider", status_code=exc.status_code) from exc
        except openai.OpenAIError as exc:
            raise TransportError(str(exc), reason="provider") from exc

        content = self._extract_content(response)
        if content is None:
            raise TransportError("Provider returned no completion content.", reason="provider")
        return content

    @staticmethod
    def _extract_content(response: object) -> str | None:
        choices = getattr(response, "choices", None)
        if not choices:
            return None
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str) or not content.strip():
            return None
        return content
