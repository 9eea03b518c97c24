"""
Shared test fixtures: in-memory stand-ins for the embedding, chat and vector store services.

The fakes implement the same methods as Embedder, LLMClient and VectorStore so the
ingestion pipeline and query engine run end to end without any network.
"""

import math
import uuid

import pytest

from vectorstore.errors import TransportError
from vectorstore.store import QueryMatch, validate_records


class FakeEmbedder:
    """Maps known texts to fixed vectors; unknown texts get a far-away default."""

    def __init__(self, vectors=None, default=None, dimension=3):
        self.vectors = dict(vectors or {})
        self.default = default or [100.0] * dimension
        self.calls = []
        self.fail_with = None

    def _lookup(self, text):
        return list(self.vectors.get(text.replace("\n", " ").strip(), self.default))

    def embed(self, text):
        self.calls.append(("embed", text))
        if self.fail_with:
            raise self.fail_with
        return self._lookup(text)

    def embed_batch(self, texts):
        self.calls.append(("embed_batch", list(texts)))
        if self.fail_with:
            raise self.fail_with
        return [self._lookup(t) for t in texts]


class InMemoryStore:
    """Brute-force store with the VectorStore contract.

    Distances are squared L2, matching what Chroma reports for an ``l2`` collection.
    """

    def __init__(self):
        self.records = []
        self.reset_calls = 0
        self.fail_on_add = None

    def add_records(self, ids, texts, embeddings):
        validate_records(ids, texts, embeddings)
        if self.fail_on_add:
            raise self.fail_on_add
        self.records.extend(zip(ids, texts, embeddings))

    def query(self, embedding, k=5):
        matches = [
            QueryMatch(id=rid, text=text, distance=math.dist(embedding, vec) ** 2)
            for rid, text, vec in self.records
        ]
        matches.sort(key=lambda m: m.distance)
        return matches[:k]

    def count(self):
        return len(self.records)

    def reset(self):
        self.reset_calls += 1
        self.records = []


class RecordingLLM:
    """Returns a canned reply and remembers every prompt it was sent."""

    def __init__(self, reply="The sky is blue."):
        self.reply = reply
        self.calls = []
        self.fail_with = None

    def chat(self, system, user, temperature=0.2, max_tokens=500):
        self.calls.append(
            {"system": system, "user": user, "temperature": temperature, "max_tokens": max_tokens}
        )
        if self.fail_with:
            raise self.fail_with
        return self.reply


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def recording_llm():
    return RecordingLLM()


@pytest.fixture
def transport_error():
    return TransportError("Embeddings request failed: could not reach the service", call="Embeddings request")


@pytest.fixture
def chroma_client():
    """In-process ChromaDB client; tests use unique collection names to stay isolated."""
    chromadb = pytest.importorskip("chromadb")
    return chromadb.EphemeralClient()


@pytest.fixture
def collection_name():
    return f"test_{uuid.uuid4().hex[:12]}"
