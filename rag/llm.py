"""Chat completion client for an OpenAI-compatible ``/chat/completions`` endpoint."""

import logging
from typing import Optional, Protocol

import openai
from openai import OpenAI

from vectorstore.errors import wrap_service_error

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:1234/v1"
DEFAULT_MODEL = "Qwen2.5-7B-Instruct-GGUF"
DEFAULT_API_KEY = "lm-studio"
DEFAULT_TIMEOUT = 60.0

CHAT_CALL = "Chat completion request"


class ChatClient(Protocol):
    """Capability the query engine needs from a chat model."""

    def chat(self, system: str, user: str, temperature: float, max_tokens: int) -> Optional[str]: ...


class LLMClient:
    """Send single-turn chat completions (system + user message)."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        api_key: str = DEFAULT_API_KEY,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        self.client = client or OpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )

    def chat(
        self,
        system: str,
        user: str,
        temperature: float = 0.2,
        max_tokens: int = 500,
    ) -> Optional[str]:
        """Return the model's text, or None when the response carries no string content.

        Transport failures raise ``TransportError``.
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
            )
        except openai.OpenAIError as e:
            raise wrap_service_error(e, CHAT_CALL) from e

        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None)
        if not isinstance(content, str):
            logger.warning("Chat response had no text content (model=%s)", self.model)
            return None
        return content
