"""ChromaDB storage for chunk texts and their embeddings.

One named collection holds (id, document, embedding) records compared by
Euclidean (L2) distance. Chroma's ``l2`` space reports the squared distance;
it is passed through as-is (same ordering, and the similarity threshold is
calibrated against it). The collection is only ever replaced wholesale:
``reset()`` drops and recreates it, ``add_records()`` appends.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import chromadb
from chromadb.errors import NotFoundError

from vectorstore.errors import TransportError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8000
DEFAULT_COLLECTION = "rag_docs"
DISTANCE_SPACE = "l2"


@dataclass(frozen=True)
class QueryMatch:
    """One nearest-neighbour hit; smaller distance = more similar."""
    id: str
    text: str
    distance: float


class VectorStoreClient(Protocol):
    """Capability the rest of the system needs from a vector database."""

    def add_records(self, ids: list[str], texts: list[str], embeddings: list[list[float]]) -> None: ...

    def query(self, embedding: list[float], k: int) -> list[QueryMatch]: ...

    def count(self) -> int: ...

    def reset(self) -> None: ...


def validate_records(ids: list[str], texts: list[str], embeddings: list[list[float]]) -> None:
    """Check that parallel arrays line up, ids are unique and dimensions agree."""
    if not (len(ids) == len(texts) == len(embeddings)):
        raise ValidationError(
            "ids, texts and embeddings must have equal length",
            field="records",
            details={"ids": len(ids), "texts": len(texts), "embeddings": len(embeddings)},
        )
    if len(set(ids)) != len(ids):
        raise ValidationError("Record ids must be unique", field="ids")
    dims = {len(e) for e in embeddings}
    if len(dims) > 1:
        raise ValidationError(
            f"All embeddings must share one dimension, got {sorted(dims)}",
            field="embeddings",
        )


class VectorStore:
    """Vector store backed by a single ChromaDB collection."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        collection_name: str = DEFAULT_COLLECTION,
        persist_dir: Optional[str] = None,
        client=None,
    ):
        if client is None:
            try:
                if persist_dir:
                    client = chromadb.PersistentClient(path=persist_dir)
                else:
                    client = chromadb.HttpClient(host=host, port=port)
            except Exception as e:
                raise TransportError(
                    f"Vector store connect failed: {e}",
                    call="vector store connect",
                    details={"host": host, "port": port, "persist_dir": persist_dir},
                ) from e
        self.client = client
        self.collection_name = collection_name
        self._collection = None

    def _get_collection(self):
        if self._collection is None:
            try:
                self._collection = self.client.get_or_create_collection(
                    name=self.collection_name,
                    metadata={"hnsw:space": DISTANCE_SPACE},
                )
            except Exception as e:
                raise TransportError(
                    f"Vector store get-or-create failed: {e}",
                    call="vector store get_or_create",
                    details={"collection": self.collection_name},
                ) from e
        return self._collection

    def add_records(self, ids: list[str], texts: list[str], embeddings: list[list[float]]) -> None:
        """Append records in one call. Existing records are not deduplicated."""
        validate_records(ids, texts, embeddings)
        if not ids:
            return
        collection = self._get_collection()
        try:
            collection.add(ids=ids, documents=texts, embeddings=embeddings)
        except Exception as e:
            raise TransportError(
                f"Vector store add failed: {e}",
                call="vector store add",
                details={"collection": self.collection_name, "records": len(ids)},
            ) from e
        logger.info("Added %d records to collection '%s'", len(ids), self.collection_name)

    def query(self, embedding: list[float], k: int = 5) -> list[QueryMatch]:
        """Return up to ``k`` nearest records, nearest first.

        An empty collection yields an empty list.
        """
        if k < 1:
            raise ValidationError("k must be at least 1", field="k")
        available = self.count()
        if available == 0:
            return []

        collection = self._get_collection()
        try:
            results = collection.query(
                query_embeddings=[embedding],
                n_results=min(k, available),
                include=["documents", "distances"],
            )
        except Exception as e:
            raise TransportError(
                f"Vector store query failed: {e}",
                call="vector store query",
                details={"collection": self.collection_name},
            ) from e

        ids = (results.get("ids") or [[]])[0]
        documents = (results.get("documents") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        matches = [
            QueryMatch(id=doc_id, text=doc or "", distance=float(dist))
            for doc_id, doc, dist in zip(ids, documents, distances)
        ]
        matches.sort(key=lambda m: m.distance)
        return matches[:k]

    def count(self) -> int:
        collection = self._get_collection()
        try:
            return collection.count()
        except Exception as e:
            raise TransportError(
                f"Vector store count failed: {e}",
                call="vector store count",
                details={"collection": self.collection_name},
            ) from e

    def reset(self) -> None:
        """Delete and recreate the collection. Safe when it does not exist yet.

        Raises ``TransportError`` if the recreated collection still holds
        records, so a failed delete never leads to appending onto old data.
        """
        try:
            self.client.delete_collection(self.collection_name)
            logger.info("Deleted collection '%s'", self.collection_name)
        except NotFoundError:
            # Expected on first ingestion.
            logger.debug("Collection '%s' did not exist", self.collection_name)
        except Exception as e:
            logger.warning("Deleting collection '%s' failed: %s", self.collection_name, e)
        self._collection = None
        remaining = self.count()
        if remaining:
            raise TransportError(
                f"Vector store reset failed: collection still holds {remaining} records",
                call="vector store reset",
                details={"collection": self.collection_name},
            )
        logger.info("Created fresh collection '%s'", self.collection_name)

    def get_stats(self) -> dict:
        """Collection name and record count (used by the CLI)."""
        return {"collection": self.collection_name, "count": self.count()}
