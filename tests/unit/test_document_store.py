from ai_gateway.ingest.embedder import CharSumEmbedder
from ai_gateway.retrieval.document_store import InMemoryDocumentStore
from ai_gateway.types import DocumentChunk


def _chunks(embedder: CharSumEmbedder, source: str, texts: list[str]) -> list[DocumentChunk]:
    vectors = embedder.embed_documents(texts)
    return [
        DocumentChunk(
            chunk_id=f"{source}-chunk-{index:04d}",
            source_id=source,
            text=text,
            vector=tuple(vector),
        )
        for index, (text, vector) in enumerate(zip(texts, vectors))
    ]


def test_top_k_ranks_chunks_sharing_query_words_first() -> None:
    embedder = CharSumEmbedder()
    store = InMemoryDocumentStore(embedder)
    store.add(
        _chunks(
            embedder,
            "policy.txt",
            [
                "The cafeteria opens at noon on weekdays.",
                "Employees must encrypt customer data at rest.",
                "Parking permits renew every January.",
            ],
        ),
        source_id="policy.txt",
    )

    hits = store.search("encrypt customer data", k=2)

    assert hits[0].chunk.text == "Employees must encrypt customer data at rest."
    assert [hit.rank for hit in hits] == [1, 2]
    assert hits[0].score >= hits[1].score


def test_top_k_returns_all_chunks_when_k_exceeds_size() -> None:
    embedder = CharSumEmbedder()
    store = InMemoryDocumentStore(embedder)
    store.add(_chunks(embedder, "a.txt", ["alpha", "beta"]), source_id="a.txt")

    assert len(store.top_k("alpha", 10)) == 2
    assert store.top_k("alpha", 0) == []


def test_identical_scores_keep_upload_order() -> None:
    embedder = CharSumEmbedder()
    store = InMemoryDocumentStore(embedder)
    store.add(_chunks(embedder, "a.txt", ["same words", "same words"]), source_id="a.txt")

    hits = store.top_k("same words", 2)

    assert [chunk.chunk_id for chunk in hits] == ["a.txt-chunk-0000", "a.txt-chunk-0001"]


def test_document_count_tracks_uploads_and_clear_empties_store() -> None:
    embedder = CharSumEmbedder()
    store = InMemoryDocumentStore(embedder)
    store.add(_chunks(embedder, "a.txt", ["one", "two"]), source_id="a.txt")
    store.add(_chunks(embedder, "b.txt", ["three"]), source_id="b.txt")

    assert store.document_count == 2
    assert store.chunk_count == 3

    store.clear()

    assert store.is_empty
    assert store.document_count == 0
    assert store.top_k("one", 4) == []


def test_char_sum_embedding_is_deterministic_and_normalized() -> None:
    embedder = CharSumEmbedder(dimension=16)

    first = embedder.embed_query("Hello world")
    second = embedder.embed_query("hello   WORLD")

    assert first == second
    assert len(first) == 16
    assert abs(sum(value * value for value in first) - 1.0) < 1e-9
    assert embedder.embed_query("") == [0.0] * 16
