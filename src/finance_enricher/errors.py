import copy
from enum import Enum


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    MALFORMED_RESPONSE = "malformed_response"
    INVALID_REQUEST = "invalid_request"


class EnrichmentError(Exception):
    """Base class for every failure raised by the enrichment client."""

    kind: ErrorKind = ErrorKind.TRANSPORT
    user_summary = "something went wrong"

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation

    @property
    def user_message(self) -> str:
        return f"Couldn't process that question: {self.user_summary}."

    def for_operation(self, operation: str) -> "EnrichmentError":
        """Return a copy tagged with ``operation``; invokers may re-raise shared instances."""
        tagged = copy.copy(self)
        tagged.operation = operation
        tagged.__cause__ = self.__cause__
        return tagged

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind.value, "message": self.user_message}

    def __str__(self) -> str:
        prefix = f"[{self.operation}] " if self.operation else ""
        return f"{prefix}{self.kind.value}: {self.message}"


class ConfigurationError(EnrichmentError):
    kind = ErrorKind.CONFIGURATION

    @property
    def user_message(self) -> str:
        return "AI enrichment is not configured."


class TransportError(EnrichmentError):
    kind = ErrorKind.TRANSPORT
    user_summary = "the model service is unavailable"

    def __init__(
        self,
        message: str,
        *,
        reason: str = "provider",
        status_code: int | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, operation=operation)
        self.reason = reason
        self.status_code = status_code


class MalformedResponseError(EnrichmentError):
    kind = ErrorKind.MALFORMED_RESPONSE
    user_summary = "the model's answer was not valid JSON"

    EXCERPT_LENGTH = 200

    def __init__(self, message: str, *, raw: str | None = None, operation: str | None = None) -> None:
        super().__init__(message, operation=operation)
        self.excerpt = raw[: self.EXCERPT_LENGTH] if raw else None


class InvalidRequestError(EnrichmentError):
    kind = ErrorKind.INVALID_REQUEST
    user_summary = "the request data could not be sent to the model"
