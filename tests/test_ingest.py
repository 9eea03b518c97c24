"""Tests for the ingestion pipeline (fakes for embedding and storage)."""

import pytest

from vectorstore.chunker import Chunker
from vectorstore.errors import TransportError
from vectorstore.ingest import ingest_document, ingest_file, load_corpus

SKY = "The sky is blue. Water is wet."


@pytest.fixture
def chunker():
    return Chunker()


def long_document(n=40):
    return " ".join(f"Sentence number {i} describes one more fact about the corpus." for i in range(n))


def test_single_short_document_stores_one_chunk(chunker, fake_embedder, memory_store):
    stats = ingest_document(SKY, chunker, fake_embedder, memory_store)

    assert stats["chunks_created"] == 1
    assert stats["chunks_stored"] == 1
    assert memory_store.count() == 1
    assert memory_store.records[0][:2] == ("chunk_0", SKY)


def test_chunks_are_embedded_in_one_batch(chunker, fake_embedder, memory_store):
    ingest_document(long_document(), chunker, fake_embedder, memory_store)

    batch_calls = [c for c in fake_embedder.calls if c[0] == "embed_batch"]
    assert len(batch_calls) == 1
    assert batch_calls[0][1] == [text for _, text, _ in memory_store.records]


def test_records_use_positional_ids(chunker, fake_embedder, memory_store):
    stats = ingest_document(long_document(), chunker, fake_embedder, memory_store)

    ids = [rid for rid, _, _ in memory_store.records]
    assert stats["chunks_created"] > 1
    assert ids == [f"chunk_{i}" for i in range(stats["chunks_created"])]


@pytest.mark.parametrize("text", ["", "  \n\t  "])
def test_empty_document_leaves_store_untouched(chunker, fake_embedder, memory_store, text):
    memory_store.add_records(["chunk_0"], ["Previous corpus."], [[1.0, 1.0, 1.0]])

    stats = ingest_document(text, chunker, fake_embedder, memory_store)

    assert stats["chunks_created"] == 0
    assert stats["chunks_stored"] == 0
    assert memory_store.reset_calls == 0
    assert memory_store.count() == 1
    assert fake_embedder.calls == []


def test_embedding_failure_keeps_previous_corpus(chunker, fake_embedder, memory_store, transport_error):
    memory_store.add_records(["chunk_0"], ["Previous corpus."], [[1.0, 1.0, 1.0]])
    fake_embedder.fail_with = transport_error

    with pytest.raises(TransportError):
        ingest_document(SKY, chunker, fake_embedder, memory_store)

    assert memory_store.reset_calls == 0
    assert [text for _, text, _ in memory_store.records] == ["Previous corpus."]


def test_store_failure_after_reset_propagates(chunker, fake_embedder, memory_store):
    memory_store.fail_on_add = TransportError("Vector store add failed: down", call="vector store add")

    with pytest.raises(TransportError):
        ingest_document(SKY, chunker, fake_embedder, memory_store)

    assert memory_store.reset_calls == 1
    assert memory_store.count() == 0


def test_reingestion_replaces_previous_records(chunker, fake_embedder, memory_store):
    ingest_document(long_document(), chunker, fake_embedder, memory_store)
    assert memory_store.count() > 1

    stats = ingest_document("Grass is green.", chunker, fake_embedder, memory_store)

    assert stats["chunks_stored"] == 1
    assert [text for _, text, _ in memory_store.records] == ["Grass is green."]
    assert memory_store.reset_calls == 2


def test_stats_include_timings(chunker, fake_embedder, memory_store):
    stats = ingest_document(SKY, chunker, fake_embedder, memory_store)
    assert set(stats["timings"]) == {"chunk_s", "embed_s", "store_s", "total_s"}


def test_load_corpus_reads_utf8(tmp_path):
    path = tmp_path / "corpus.txt"
    path.write_text("Café au lait. Crème brûlée.", encoding="utf-8")

    assert load_corpus(path) == "Café au lait. Crème brûlée."


def test_load_corpus_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_corpus(tmp_path / "missing.txt")


def test_ingest_file_end_to_end(tmp_path, chunker, fake_embedder, memory_store):
    path = tmp_path / "text.txt"
    path.write_text(SKY + "\n", encoding="utf-8")

    stats = ingest_file(path, chunker, fake_embedder, memory_store)

    assert stats["chunks_stored"] == 1
    assert memory_store.records[0][1] == SKY
