"""Ingestion pipeline: load corpus → chunk → embed → replace store contents.

Usage (standalone):
  python -m vectorstore.ingest                     # ingest CORPUS_PATH (default: text.txt)
  python -m vectorstore.ingest --source notes.txt  # ingest another document

Or via the main pipeline:
  python pipeline.py ingest --source notes.txt

The store is reset only after every chunk has been embedded, so a failed
embedding call leaves the previous corpus in place. A failure after the
reset leaves the store empty and requires a full re-run.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import TypedDict

from vectorstore.chunker import Chunker
from vectorstore.embedder import EmbeddingClient
from vectorstore.store import VectorStoreClient

logger = logging.getLogger(__name__)


class IngestStats(TypedDict):
    chunks_created: int
    chunks_stored: int
    timings: dict[str, float]


def load_corpus(path: str | Path) -> str:
    """Read the whole source document as UTF-8."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Corpus file not found: {path}")
    text = path.read_text(encoding="utf-8")
    logger.info("Loaded %d chars from %s", len(text), path)
    return text


def ingest_document(
    text: str,
    chunker: Chunker,
    embedder: EmbeddingClient,
    store: VectorStoreClient,
) -> IngestStats:
    """Replace the store's contents with the chunks of one document.

    Returns a stats dict: {chunks_created, chunks_stored, timings}.
    """
    pipeline_start = time.perf_counter()

    # 1. Chunk
    logger.info("STEP 1/4: Chunking %d chars...", len(text))
    t0 = time.perf_counter()
    chunks = chunker.chunk_document(text)
    chunk_elapsed = time.perf_counter() - t0

    if not chunks:
        logger.warning("No text to ingest; existing store contents left untouched")
        return {"chunks_created": 0, "chunks_stored": 0, "timings": {"chunk_s": round(chunk_elapsed, 1)}}
    logger.info("STEP 1/4 done: %d chunks in %.1fs", len(chunks), chunk_elapsed)

    # 2. Embed (before touching the store)
    logger.info("STEP 2/4: Generating embeddings for %d chunks...", len(chunks))
    t0 = time.perf_counter()
    texts = [chunk.text for chunk in chunks]
    embeddings = embedder.embed_batch(texts)
    embed_elapsed = time.perf_counter() - t0
    logger.info("STEP 2/4 done: %d embeddings in %.1fs", len(embeddings), embed_elapsed)

    # 3. Reset
    logger.info("STEP 3/4: Resetting vector store...")
    t0 = time.perf_counter()
    store.reset()

    # 4. Store
    logger.info("STEP 4/4: Storing %d chunks...", len(chunks))
    ids = [chunk.id for chunk in chunks]
    try:
        store.add_records(ids, texts, embeddings)
        stored = store.count()
    except Exception:
        logger.error("Store was reset but not repopulated; re-run ingestion")
        raise
    store_elapsed = time.perf_counter() - t0
    logger.info("STEP 4/4 done: %d chunks stored in %.1fs", stored, store_elapsed)

    total_elapsed = time.perf_counter() - pipeline_start
    stats: IngestStats = {
        "chunks_created": len(chunks),
        "chunks_stored": stored,
        "timings": {
            "chunk_s": round(chunk_elapsed, 1),
            "embed_s": round(embed_elapsed, 1),
            "store_s": round(store_elapsed, 1),
            "total_s": round(total_elapsed, 1),
        },
    }
    logger.info("Ingestion complete in %.1fs: %s", total_elapsed, stats)
    return stats


def ingest_file(
    path: str | Path,
    chunker: Chunker,
    embedder: EmbeddingClient,
    store: VectorStoreClient,
) -> IngestStats:
    return ingest_document(load_corpus(path), chunker, embedder, store)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main():
    from dotenv import load_dotenv

    from pipeline import build_chunker, build_embedder, build_store
    from settings import Settings

    load_dotenv()
    settings = Settings.from_env()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    parser = argparse.ArgumentParser(description="Ingest a document into the vector store")
    parser.add_argument("--source", default=settings.corpus_path, help="Path to the corpus text file")
    args = parser.parse_args()

    stats = ingest_file(
        args.source,
        chunker=build_chunker(settings),
        embedder=build_embedder(settings),
        store=build_store(settings),
    )
    print(f"Ingestion complete. Stored {stats['chunks_stored']} chunks.")


if __name__ == "__main__":
    main()
