from dataclasses import dataclass
from urllib.parse import urlparse

from finance_enricher.core import settings
from finance_enricher.errors import ConfigurationError
from finance_enricher.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MODEL = "gpt-4"
DEFAULT_CATEGORIZE_TEMPERATURE = 0.3
DEFAULT_QUERY_TEMPERATURE = 0.7
DEFAULT_BATCH_CONCURRENCY = 5


@dataclass(frozen=True)
class EnrichmentConfig:
    """Read-only settings shared by every call the client makes.

    ``insights_temperature`` of ``None`` leaves sampling at the provider
    default. ``max_retries`` is handed to the SDK; it stays at 0 so one
    operation is exactly one outbound call.
    """

    api_key: str | None = None
    model: str = DEFAULT_MODEL
    base_url: str | None = None
    timeout: float | None = None
    max_retries: int = 0
    categorize_temperature: float = DEFAULT_CATEGORIZE_TEMPERATURE
    query_temperature: float = DEFAULT_QUERY_TEMPERATURE
    insights_temperature: float | None = None
    batch_concurrency: int = DEFAULT_BATCH_CONCURRENCY

    @classmethod
    def from_env(cls) -> "EnrichmentConfig":
        try:
            return cls(
                api_key=settings.get_env_str("OPENAI_API_KEY"),
                model=settings.get_env_str("OPENAI_MODEL", DEFAULT_MODEL) or DEFAULT_MODEL,
                base_url=settings.get_env_str("OPENAI_BASE_URL"),
                timeout=settings.get_env_float("OPENAI_TIMEOUT"),
                max_retries=settings.get_env_int("OPENAI_MAX_RETRIES", 0),
                categorize_temperature=settings.get_env_float(
                    "CATEGORIZE_TEMPERATURE", DEFAULT_CATEGORIZE_TEMPERATURE
                ),
                query_temperature=settings.get_env_float(
                    "QUERY_TEMPERATURE", DEFAULT_QUERY_TEMPERATURE
                ),
                insights_temperature=settings.get_env_float("INSIGHTS_TEMPERATURE"),
                batch_concurrency=settings.get_env_int(
                    "BATCH_CONCURRENCY", DEFAULT_BATCH_CONCURRENCY
                ),
            )
        except ValueError as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc

    def validate(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError("OPENAI_API_KEY is not set.")
        if not self.model or not self.model.strip():
            raise ConfigurationError("OPENAI_MODEL must not be empty.")
        if self.base_url:
            parsed = urlparse(self.base_url)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise ConfigurationError(f"OPENAI_BASE_URL is not a valid http(s) URL: {self.base_url!r}")

        temperatures = {
            "CATEGORIZE_TEMPERATURE": self.categorize_temperature,
            "QUERY_TEMPERATURE": self.query_temperature,
            "INSIGHTS_TEMPERATURE": self.insights_temperature,
        }
        for name, value in temperatures.items():
            if value is not None and not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be between 0 and 1, got {value}.")

        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"OPENAI_TIMEOUT must be positive, got {self.timeout}.")
        if self.max_retries < 0:
            raise ConfigurationError(f"OPENAI_MAX_RETRIES must not be negative, got {self.max_retries}.")
        if self.batch_concurrency < 1:
            raise ConfigurationError(f"BATCH_CONCURRENCY must be at least 1, got {self.batch_concurrency}.")

        logger.debug(
            "[CONFIG] model=%s base_url=%s max_retries=%s",
            self.model,
            self.base_url or "default",
            self.max_retries,
        )
