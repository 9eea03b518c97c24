#!/usr/bin/env python3
"""Command-line entry point for the grounded question-answering pipeline.

Usage:
  python pipeline.py ingest                        # Chunk + embed + store CORPUS_PATH
  python pipeline.py ingest --source notes.txt     # Ingest another document

  python pipeline.py ask "What colour is the sky?" # Answer from stored context (JSON)

  python pipeline.py vector-status                 # Collection name and record count
  python pipeline.py vector-query "sky colour"     # Ranked matches, no chat call

This module is also the one place where concrete clients are built from
``Settings``; everything downstream receives its collaborators explicitly.
"""

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

from rag.llm import LLMClient
from rag.prompts import REFUSAL_ANSWER
from rag.query_engine import QueryEngine
from rag.retriever import Retriever
from settings import Settings
from vectorstore.chunker import Chunker
from vectorstore.embedder import Embedder
from vectorstore.errors import RagServiceError, ValidationError
from vectorstore.store import VectorStore

logger = logging.getLogger(__name__)

FAILURE_PAYLOAD = {
    "error": "Internal server error",
    "answer": REFUSAL_ANSWER,
    "contextUsed": None,
    "score": 0,
}


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

def build_chunker(settings: Settings) -> Chunker:
    return Chunker(min_chars=settings.min_chunk_chars, max_chars=settings.max_chunk_chars)


def build_embedder(settings: Settings) -> Embedder:
    return Embedder(
        base_url=settings.llm_base_url,
        model=settings.embedding_model,
        api_key=settings.llm_api_key,
        timeout=settings.request_timeout,
    )


def build_store(settings: Settings) -> VectorStore:
    return VectorStore(
        host=settings.chroma_host,
        port=settings.chroma_port,
        collection_name=settings.collection_name,
        persist_dir=settings.chroma_persist_dir,
    )


def build_llm(settings: Settings) -> LLMClient:
    return LLMClient(
        base_url=settings.llm_base_url,
        model=settings.chat_model,
        api_key=settings.llm_api_key,
        timeout=settings.request_timeout,
    )


def build_query_engine(settings: Settings, store=None, embedder=None, llm=None) -> QueryEngine:
    retriever = Retriever(
        store=store or build_store(settings),
        embedder=embedder or build_embedder(settings),
    )
    return QueryEngine(
        retriever=retriever,
        llm=llm or build_llm(settings),
        similarity_threshold=settings.similarity_threshold,
        top_k=settings.top_k,
        max_tokens=settings.chat_max_tokens,
        temperature=settings.chat_temperature,
    )


# ---------------------------------------------------------------------------
# Boundary
# ---------------------------------------------------------------------------

def validate_question(question) -> str:
    if not isinstance(question, str) or not question.strip():
        raise ValidationError('Missing or invalid "question".', field="question")
    return question.strip()


def ask_payload(engine: QueryEngine, question) -> tuple[dict, bool]:
    """Answer a question for an untrusted caller.

    Returns (payload, ok). Service failures are logged in full but only the
    generic failure payload is returned.
    """
    question = validate_question(question)
    try:
        result = engine.ask(question)
    except RagServiceError as e:
        logger.error("Ask error: %s", e)
        return dict(FAILURE_PAYLOAD), False
    return result.to_payload(), True


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_ingest(args, settings: Settings):
    """Run the ingestion pipeline (chunk → embed → reset → store)."""
    from vectorstore.ingest import ingest_file

    source = args.source or settings.corpus_path
    stats = ingest_file(
        source,
        chunker=build_chunker(settings),
        embedder=build_embedder(settings),
        store=build_store(settings),
    )
    if stats["chunks_created"] == 0:
        print("No text to ingest.")
    else:
        print(f"Ingestion complete. Stored {stats['chunks_stored']} chunks in '{settings.collection_name}'.")


def cmd_ask(args, settings: Settings):
    """Answer a question from the stored context and print the JSON payload."""
    try:
        question = validate_question(args.question)
    except ValidationError as e:
        print(json.dumps({"error": e.message}))
        sys.exit(2)

    payload, ok = ask_payload(build_query_engine(settings), question)
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    if not ok:
        sys.exit(1)


def cmd_vector_status(args, settings: Settings):
    """Show vector store statistics."""
    stats = build_store(settings).get_stats()

    print("\n" + "=" * 70)
    print("VECTOR STORE STATUS")
    print("=" * 70)
    print(f"\n  Collection: {stats['collection']}")
    print(f"    Vectors stored: {stats['count']}")
    print("\n" + "=" * 70)


def cmd_vector_query(args, settings: Settings):
    """Run a test query against the vector store (no chat call)."""
    retriever = Retriever(store=build_store(settings), embedder=build_embedder(settings))
    chunks = retriever.retrieve(args.query, args.top_k or settings.top_k)

    print(f"\nQuery: \"{args.query}\"")
    print(f"Results: {len(chunks)} (threshold {settings.similarity_threshold})")
    print("-" * 50)

    for i, chunk in enumerate(chunks):
        print(f"\n[{i+1}] Score: {chunk.score:.4f} | Distance: {chunk.distance:.4f} | {chunk.chunk_id}")
        preview = chunk.text[:200].replace("\n", " ")
        print(f"    Text: {preview}...")
    print()


# ---------------------------------------------------------------------------
# MAIN
# ---------------------------------------------------------------------------

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Grounded question-answering pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="Pipeline command")

    # Ingest
    ingest_parser = subparsers.add_parser(
        "ingest", help="Chunk, embed, and store a document (replaces existing records)"
    )
    ingest_parser.add_argument(
        "--source",
        default=None,
        help="Path to the corpus text file (default: CORPUS_PATH or text.txt)",
    )

    # Ask
    ask_parser = subparsers.add_parser("ask", help="Answer a question from stored context")
    ask_parser.add_argument("question", help="Question text")

    # Vector status
    subparsers.add_parser("vector-status", help="Show vector store statistics")

    # Vector query (test)
    vq_parser = subparsers.add_parser("vector-query", help="Test query against vector store")
    vq_parser.add_argument("query", help="Query text")
    vq_parser.add_argument("--top-k", type=int, default=None, help="Number of results (default: 5)")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    load_dotenv()
    settings = Settings.from_env()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    commands = {
        "ingest": cmd_ingest,
        "ask": cmd_ask,
        "vector-status": cmd_vector_status,
        "vector-query": cmd_vector_query,
    }

    try:
        commands[args.command](args, settings)
    except (RagServiceError, FileNotFoundError) as e:
        logger.exception("Pipeline error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
