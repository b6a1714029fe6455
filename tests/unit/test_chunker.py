"""Unit tests for the chunker module."""

from __future__ import annotations

import math

import pytest
from langchain_core.documents import Document

from pdf_qa.ingestion.chunker import chunk_documents, iter_chunks, merge_chunks

W, O = 1000, 200


def _doc(length: int, source: str = "guide.pdf", page: int = 0) -> Document:
    # Non-repeating text so overlap checks cannot pass by accident.
    text = "".join(chr(ord("a") + (i * 7 + i // 26) % 26) for i in range(length))
    return Document(page_content=text, metadata={"source": source, "page": page})


class TestWindowChunking:
    @pytest.mark.parametrize("length", [1000, 1001, 1799, 1800, 1801, 2600, 5000, 12345])
    def test_chunk_count_formula(self, length: int) -> None:
        chunks = list(iter_chunks(_doc(length), W, O))
        assert len(chunks) == math.ceil((length - O) / (W - O))

    @pytest.mark.parametrize("length", [1500, 3333, 8000])
    def test_consecutive_chunks_share_exact_overlap(self, length: int) -> None:
        chunks = list(iter_chunks(_doc(length), W, O))
        for prev, nxt in zip(chunks, chunks[1:]):
            assert prev.text[-O:] == nxt.text[:O]

    @pytest.mark.parametrize("length", [1, 999, 1000, 1801, 4321])
    def test_merge_reconstructs_original(self, length: int) -> None:
        doc = _doc(length)
        chunks = list(iter_chunks(doc, W, O))
        assert merge_chunks(chunks, O) == doc.page_content

    def test_all_but_last_chunk_are_full_size(self) -> None:
        chunks = list(iter_chunks(_doc(2500), W, O))
        assert all(len(c.text) == W for c in chunks[:-1])
        assert len(chunks[-1].text) <= W

    def test_short_document_yields_one_chunk(self) -> None:
        chunks = list(iter_chunks(_doc(120), W, O))
        assert len(chunks) == 1
        assert len(chunks[0].text) == 120

    def test_empty_document_yields_nothing(self) -> None:
        assert list(iter_chunks(Document(page_content=""), W, O)) == []

    def test_sequence_index_follows_source_order(self) -> None:
        chunks = list(iter_chunks(_doc(4000), W, O))
        assert [c.sequence_index for c in chunks] == list(range(len(chunks)))

    def test_metadata_preserved(self) -> None:
        chunks = list(iter_chunks(_doc(3000, source="faq.pdf", page=2), W, O))
        assert all(c.source_metadata == {"source": "faq.pdf", "page": 2} for c in chunks)
        assert all(c.source == "faq.pdf" for c in chunks)

    def test_iterator_is_single_pass(self) -> None:
        it = iter_chunks(_doc(2000), W, O)
        assert len(list(it)) == 3
        assert list(it) == []

    @pytest.mark.parametrize(("size", "overlap"), [(0, 0), (100, 100), (100, 150), (100, -1)])
    def test_invalid_window_rejected(self, size: int, overlap: int) -> None:
        with pytest.raises(ValueError):
            list(iter_chunks(_doc(10), size, overlap))


class TestChunkDocuments:
    def test_three_page_pdf_yields_five_chunks(self) -> None:
        pages = [_doc(1800, page=0), _doc(1000, page=1), _doc(1400, page=2)]
        chunks = chunk_documents(pages, chunk_size=W, chunk_overlap=O)
        assert len(chunks) == 5
        assert [c.source_metadata["page"] for c in chunks] == [0, 0, 1, 2, 2]

    def test_empty_input(self) -> None:
        assert chunk_documents([]) == []

    def test_recursive_strategy_splits_long_text(self) -> None:
        docs = [Document(page_content="word " * 500, metadata={"source": "test.pdf"})]
        chunks = chunk_documents(docs, chunk_size=256, chunk_overlap=32, strategy="recursive")
        assert len(chunks) > 1
        assert all(len(c.text) <= 256 for c in chunks)
        assert all(c.source == "test.pdf" for c in chunks)

    def test_unknown_strategy_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown chunking strategy"):
            chunk_documents([_doc(10)], strategy="semantic")


class TestChunkIdentity:
    def test_record_id_is_deterministic(self) -> None:
        first = chunk_documents([_doc(2500)])
        second = chunk_documents([_doc(2500)])
        assert [c.record_id() for c in first] == [c.record_id() for c in second]

    def test_record_ids_are_unique_per_chunk(self) -> None:
        chunks = chunk_documents([_doc(5000, page=0), _doc(5000, page=1)])
        ids = [c.record_id() for c in chunks]
        assert len(ids) == len(set(ids))

    def test_record_metadata_carries_chunk_index(self) -> None:
        chunk = chunk_documents([_doc(2500, source="a.pdf", page=3)])[1]
        assert chunk.record_metadata() == {"source": "a.pdf", "page": 3, "chunk_index": 1}
