"""Application configuration settings.

``Settings.from_env()`` reads every tunable from environment variables (a
``.env`` file is loaded by the CLI entry points before this runs). Nothing
else in the project reads the environment; components receive these values
through their constructors.
"""

import os
from dataclasses import dataclass
from typing import Optional

from vectorstore.errors import ValidationError


@dataclass(frozen=True)
class Settings:
    """Configuration for the embedding/chat server, the vector store and retrieval.

    Attributes:
        llm_base_url: OpenAI-compatible base URL for embeddings and chat.
        llm_api_key: Bearer key sent to that server.
        chat_model: Chat completion model name.
        embedding_model: Embedding model name.
        chroma_host: Chroma server host.
        chroma_port: Chroma server port.
        chroma_persist_dir: Use an embedded on-disk Chroma at this path instead of the server.
        collection_name: Chroma collection holding the chunks.
        similarity_threshold: Minimum score (0-1) required to answer from context.
        top_k: Number of chunks retrieved per question (fixed at 5; not read from the environment).
        min_chunk_chars: Lower chunk size bound (all but the last chunk).
        max_chunk_chars: Upper chunk size bound.
        request_timeout: Seconds allowed for each network call.
        chat_max_tokens: Output bound for the chat completion.
        chat_temperature: Sampling temperature for the chat completion.
        corpus_path: Default document to ingest.
        log_level: Root log level for CLI runs.
    """

    llm_base_url: str = "http://localhost:1234/v1"
    llm_api_key: str = "lm-studio"
    chat_model: str = "Qwen2.5-7B-Instruct-GGUF"
    embedding_model: str = "nomic-ai/nomic-embed-text-v1.5"

    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_persist_dir: Optional[str] = None
    collection_name: str = "rag_docs"

    similarity_threshold: float = 0.3
    top_k: int = 5
    min_chunk_chars: int = 300
    max_chunk_chars: int = 500

    request_timeout: float = 60.0
    chat_max_tokens: int = 500
    chat_temperature: float = 0.2

    corpus_path: str = "text.txt"
    log_level: str = "INFO"

    def __post_init__(self):
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ValidationError(
                f"SIMILARITY_THRESHOLD must be within [0, 1], got {self.similarity_threshold}",
                field="similarity_threshold",
            )
        if self.top_k < 1:
            raise ValidationError(f"top_k must be at least 1, got {self.top_k}", field="top_k")
        if self.min_chunk_chars < 0 or self.max_chunk_chars <= self.min_chunk_chars:
            raise ValidationError(
                f"Chunk bounds must satisfy 0 <= MIN_CHUNK_CHARS < MAX_CHUNK_CHARS "
                f"(got {self.min_chunk_chars}, {self.max_chunk_chars})",
                field="chunk_bounds",
            )
        if self.request_timeout <= 0:
            raise ValidationError(
                f"REQUEST_TIMEOUT must be positive, got {self.request_timeout}",
                field="request_timeout",
            )

    @staticmethod
    def _get_number(name: str, default: str, cast):
        raw = os.getenv(name, default)
        try:
            return cast(raw)
        except ValueError as e:
            raise ValidationError(f"{name} must be a number, got {raw!r}", field=name) from e

    @classmethod
    def from_env(cls) -> "Settings":
        """Create a Settings instance from environment variables."""
        return cls(
            llm_base_url=os.getenv("LM_STUDIO_BASE_URL", "http://localhost:1234/v1"),
            llm_api_key=os.getenv("LM_STUDIO_API_KEY", "lm-studio"),
            chat_model=os.getenv("LM_STUDIO_CHAT_MODEL", "Qwen2.5-7B-Instruct-GGUF"),
            embedding_model=os.getenv(
                "LM_STUDIO_EMBEDDING_MODEL", "nomic-ai/nomic-embed-text-v1.5"
            ),
            chroma_host=os.getenv("CHROMA_HOST", "localhost"),
            chroma_port=cls._get_number("CHROMA_PORT", "8000", int),
            chroma_persist_dir=os.getenv("CHROMA_PERSIST_DIR") or None,
            collection_name=os.getenv("CHROMA_COLLECTION", "rag_docs"),
            similarity_threshold=cls._get_number("SIMILARITY_THRESHOLD", "0.3", float),
            min_chunk_chars=cls._get_number("MIN_CHUNK_CHARS", "300", int),
            max_chunk_chars=cls._get_number("MAX_CHUNK_CHARS", "500", int),
            request_timeout=cls._get_number("REQUEST_TIMEOUT", "60", float),
            chat_max_tokens=cls._get_number("CHAT_MAX_TOKENS", "500", int),
            chat_temperature=cls._get_number("CHAT_TEMPERATURE", "0.2", float),
            corpus_path=os.getenv("CORPUS_PATH", "text.txt"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
