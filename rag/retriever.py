"""Retrieval layer: embed a question and fetch its nearest stored chunks.

Distances come back from the store as L2 and are mapped to a similarity score
with ``1 / (1 + distance)``: distance 0 scores 1, and the score falls toward
0 as the distance grows, so ordering by distance and by score agree.
"""

import logging
from dataclasses import dataclass

from vectorstore.embedder import EmbeddingClient
from vectorstore.store import QueryMatch, VectorStoreClient

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5


def distance_to_score(distance: float) -> float:
    """Convert an L2 distance to a similarity score in (0, 1]."""
    if distance < 0:
        # Approximate indexes can report tiny negative distances.
        distance = 0.0
    return 1.0 / (1.0 + distance)


@dataclass
class RetrievedChunk:
    """A single retrieved chunk with its distance and derived score."""
    chunk_id: str
    text: str
    distance: float
    score: float  # 0-1, higher = more relevant

    @classmethod
    def from_match(cls, match: QueryMatch) -> "RetrievedChunk":
        return cls(
            chunk_id=match.id,
            text=match.text,
            distance=match.distance,
            score=distance_to_score(match.distance),
        )


class Retriever:
    """Retrieval engine wrapping a vector store and an embedder."""

    def __init__(self, store: VectorStoreClient, embedder: EmbeddingClient):
        self.store = store
        self.embedder = embedder

    def retrieve(self, question: str, k: int = DEFAULT_TOP_K) -> list[RetrievedChunk]:
        """Embed ``question`` and return up to ``k`` chunks, nearest first.

        Embedding and store failures propagate; an empty store returns [].
        """
        query_embedding = self.embedder.embed(question.strip())
        matches = self.store.query(query_embedding, k)
        chunks = sorted((RetrievedChunk.from_match(m) for m in matches), key=lambda c: c.distance)

        if chunks:
            logger.debug(
                "Retrieved %d chunks (nearest %s at distance %.4f)",
                len(chunks), chunks[0].chunk_id, chunks[0].distance,
            )
        else:
            logger.info("No chunks retrieved for question: %.80s", question)
        return chunks[:k]
