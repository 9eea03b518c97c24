"""Tests for environment-driven configuration."""

import pytest

from settings import Settings
from vectorstore.errors import ValidationError

ENV_VARS = [
    "LM_STUDIO_BASE_URL", "LM_STUDIO_API_KEY", "LM_STUDIO_CHAT_MODEL", "LM_STUDIO_EMBEDDING_MODEL",
    "CHROMA_HOST", "CHROMA_PORT", "CHROMA_PERSIST_DIR", "CHROMA_COLLECTION",
    "SIMILARITY_THRESHOLD", "TOP_K", "MIN_CHUNK_CHARS", "MAX_CHUNK_CHARS",
    "REQUEST_TIMEOUT", "CHAT_MAX_TOKENS", "CHAT_TEMPERATURE", "CORPUS_PATH", "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_match_service_behaviour():
    settings = Settings.from_env()

    assert settings.llm_base_url == "http://localhost:1234/v1"
    assert settings.embedding_model == "nomic-ai/nomic-embed-text-v1.5"
    assert settings.chroma_host == "localhost"
    assert settings.chroma_port == 8000
    assert settings.chroma_persist_dir is None
    assert settings.similarity_threshold == 0.3
    assert settings.top_k == 5
    assert (settings.min_chunk_chars, settings.max_chunk_chars) == (300, 500)
    assert settings.chat_max_tokens == 500
    assert settings.chat_temperature == 0.2
    assert settings.corpus_path == "text.txt"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CHROMA_HOST", "chroma.internal")
    monkeypatch.setenv("CHROMA_PORT", "9000")
    monkeypatch.setenv("CHROMA_COLLECTION", "handbook")
    monkeypatch.setenv("SIMILARITY_THRESHOLD", "0.45")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.chroma_host == "chroma.internal"
    assert settings.chroma_port == 9000
    assert settings.collection_name == "handbook"
    assert settings.similarity_threshold == 0.45
    assert settings.log_level == "DEBUG"


def test_empty_persist_dir_means_server_mode(monkeypatch):
    monkeypatch.setenv("CHROMA_PERSIST_DIR", "")
    assert Settings.from_env().chroma_persist_dir is None


def test_non_numeric_value_is_rejected(monkeypatch):
    monkeypatch.setenv("CHROMA_PORT", "eight thousand")

    with pytest.raises(ValidationError) as exc_info:
        Settings.from_env()
    assert exc_info.value.field == "CHROMA_PORT"


@pytest.mark.parametrize(
    "overrides",
    [
        {"similarity_threshold": 1.5},
        {"similarity_threshold": -0.1},
        {"top_k": 0},
        {"min_chunk_chars": 500, "max_chunk_chars": 300},
        {"request_timeout": 0},
    ],
)
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_result_count_is_not_configurable_from_env(monkeypatch):
    monkeypatch.setenv("TOP_K", "3")
    assert Settings.from_env().top_k == 5
