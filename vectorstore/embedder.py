"""Embedding client for an OpenAI-compatible ``/embeddings`` endpoint.

Defaults target a local LM Studio server, but any server speaking the OpenAI
embeddings API works. Input text has newlines collapsed to spaces and is
trimmed before it is sent.

Single embeddings (questions) are one-shot. Batch embeddings (ingestion) retry
transient transport failures with exponential backoff; a bad request or a
malformed body is never retried. A batch either yields one vector per input,
in input order, or raises.
"""

import logging
import time
from typing import Optional, Protocol

import openai
from openai import OpenAI
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from vectorstore.errors import MalformedResponseError, wrap_service_error

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:1234/v1"
DEFAULT_MODEL = "nomic-ai/nomic-embed-text-v1.5"
DEFAULT_API_KEY = "lm-studio"
DEFAULT_TIMEOUT = 60.0

EMBED_CALL = "Embeddings request"

RETRYABLE_ERRORS = (
    openai.APIConnectionError,  # includes APITimeoutError
    openai.RateLimitError,
    openai.InternalServerError,
)

Vector = list[float]


class EmbeddingClient(Protocol):
    """Capability the rest of the system needs from an embedding service."""

    def embed(self, text: str) -> Vector: ...

    def embed_batch(self, texts: list[str]) -> list[Vector]: ...


def normalize_text(text: str) -> str:
    return text.replace("\n", " ").strip()


class Embedder:
    """Generate embeddings through an OpenAI-compatible API."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        api_key: str = DEFAULT_API_KEY,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        # SDK retries are off; batch retries are handled below with tenacity.
        self.client = client or OpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )

    def _request(self, inputs: list[str]) -> list[Vector]:
        response = self.client.embeddings.create(
            model=self.model,
            input=inputs,
            encoding_format="float",
        )
        return self._parse(response, expected=len(inputs))

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        reraise=True,
        before_sleep=lambda retry_state: logger.warning(
            "Embedding batch retry %d after error: %s",
            retry_state.attempt_number,
            retry_state.outcome.exception() if retry_state.outcome else "unknown",
        ),
    )
    def _request_with_retry(self, inputs: list[str]) -> list[Vector]:
        return self._request(inputs)

    @staticmethod
    def _parse(response, expected: int) -> list[Vector]:
        """Extract vectors from the response, rejecting anything partial or ragged."""
        data = getattr(response, "data", None)
        if not isinstance(data, list) or len(data) != expected:
            got = len(data) if isinstance(data, list) else type(data).__name__
            raise MalformedResponseError(
                f"Invalid embeddings response: expected {expected} vectors, got {got}",
                call=EMBED_CALL,
            )

        indexes = [getattr(item, "index", None) for item in data]
        if all(isinstance(i, int) for i in indexes):
            # Response data is sorted by index
            data = sorted(data, key=lambda item: item.index)

        vectors: list[Vector] = []
        for position, item in enumerate(data):
            embedding = getattr(item, "embedding", None)
            if not isinstance(embedding, list) or not embedding:
                raise MalformedResponseError(
                    f"Invalid embeddings response: item {position} has no embedding",
                    call=EMBED_CALL,
                )
            if not all(isinstance(x, (int, float)) and not isinstance(x, bool) for x in embedding):
                raise MalformedResponseError(
                    f"Invalid embeddings response: item {position} has non-numeric values",
                    call=EMBED_CALL,
                )
            vectors.append([float(x) for x in embedding])

        dims = {len(v) for v in vectors}
        if len(dims) > 1:
            raise MalformedResponseError(
                f"Invalid embeddings response: mixed dimensions {sorted(dims)}",
                call=EMBED_CALL,
            )
        return vectors

    def embed(self, text: str) -> Vector:
        """Embed a single text (used for questions)."""
        try:
            return self._request([normalize_text(text)])[0]
        except openai.OpenAIError as e:
            raise wrap_service_error(e, EMBED_CALL) from e

    def embed_batch(self, texts: list[str]) -> list[Vector]:
        """Embed many texts in one request, preserving input order.

        An empty list returns an empty list without touching the network.
        """
        if not texts:
            return []

        inputs = [normalize_text(t) for t in texts]
        start = time.perf_counter()
        try:
            vectors = self._request_with_retry(inputs)
        except openai.OpenAIError as e:
            raise wrap_service_error(e, EMBED_CALL) from e

        logger.info(
            "Embedded %d texts (%d dimensions each) in %.1fs",
            len(vectors), len(vectors[0]), time.perf_counter() - start,
        )
        return vectors
