"""Error taxonomy for calls into the embedding, chat, and vector store services.

Refusals are not errors; everything here means a call could not be completed
or its inputs were unusable. Callers match on the class, never on message text.
"""

from typing import Any, Optional

import openai


class RagServiceError(Exception):
    """Base class for all service and validation failures."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class TransportError(RagServiceError):
    """A service was unreachable, timed out, or answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        call: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        details["call"] = call
        if status_code is not None:
            details["status_code"] = status_code
        self.call = call
        self.status_code = status_code
        super().__init__(message, details)


class MalformedResponseError(RagServiceError):
    """A service answered 2xx but the body did not have the expected shape."""

    def __init__(self, message: str, call: str, details: Optional[dict[str, Any]] = None):
        details = details or {}
        details["call"] = call
        self.call = call
        super().__init__(message, details)


class ValidationError(RagServiceError):
    """Caller-supplied input or configuration is invalid."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        if field:
            details["field"] = field
        self.field = field
        super().__init__(message, details)


def _service_message(body: Any) -> Optional[str]:
    """Pull the human-readable error text out of an error body.

    Local OpenAI-compatible servers send ``{"error": "text"}``; OpenAI itself
    sends ``{"error": {"message": "text"}}``. The SDK may already have
    unwrapped the outer ``error`` key.
    """
    if isinstance(body, dict):
        if "error" in body:
            return _service_message(body["error"])
        if "message" in body:
            return _service_message(body["message"])
        return None
    if isinstance(body, str) and body.strip():
        return body.strip()
    return None


def wrap_service_error(exc: Exception, call: str) -> RagServiceError:
    """Translate an OpenAI SDK exception into a ``TransportError``.

    Anything that is already a ``RagServiceError`` passes through unchanged.
    """
    if isinstance(exc, RagServiceError):
        return exc
    if isinstance(exc, openai.APIStatusError):
        reason = _service_message(exc.body) or exc.response.reason_phrase or "Bad Request"
        return TransportError(f"{call} failed: {reason}", call=call, status_code=exc.status_code)
    if isinstance(exc, openai.APITimeoutError):
        return TransportError(f"{call} failed: request timed out", call=call)
    if isinstance(exc, openai.APIConnectionError):
        return TransportError(f"{call} failed: could not reach the service", call=call)
    return TransportError(f"{call} failed: {exc}", call=call)
