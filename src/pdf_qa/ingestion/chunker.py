"""Text chunking strategies."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING

from langchain_text_splitters import RecursiveCharacterTextSplitter

from pdf_qa.ingestion.models import Chunk

if TYPE_CHECKING:
    from langchain_core.documents import Document


def _validate(chunk_size: int, chunk_overlap: int) -> None:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size ({chunk_size}) must be positive")
    if chunk_overlap < 0 or chunk_overlap >= chunk_size:
        raise ValueError(
            f"chunk_overlap ({chunk_overlap}) must be >= 0 and < chunk_size ({chunk_size})"
        )


def iter_chunks(
    document: Document,
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
) -> Iterator[Chunk]:
    """Slide a fixed-size window over *document* and yield its chunks.

    Consecutive chunks share exactly *chunk_overlap* characters; the last
    chunk may be shorter than *chunk_size*.  A document shorter than the
    window yields one chunk and an empty document yields none.
    """
    _validate(chunk_size, chunk_overlap)
    text = document.page_content
    step = chunk_size - chunk_overlap
    start = 0
    index = 0
    while start < len(text):
        yield Chunk(
            text=text[start : start + chunk_size],
            source_metadata=dict(document.metadata),
            sequence_index=index,
        )
        if start + chunk_size >= len(text):
            break
        start += step
        index += 1


def _recursive_chunks(
    document: Document,
    chunk_size: int,
    chunk_overlap: int,
) -> Iterator[Chunk]:
    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        length_function=len,
        separators=["\n\n", "\n", ". ", " ", ""],
    )
    for index, piece in enumerate(splitter.split_text(document.page_content)):
        yield Chunk(text=piece, source_metadata=dict(document.metadata), sequence_index=index)


def chunk_documents(
    documents: Iterable[Document],
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
    strategy: str = "window",
) -> list[Chunk]:
    """Split *documents* into chunks ready for embedding.

    Parameters
    ----------
    documents:
        Source documents produced by a loader.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of overlapping characters between consecutive chunks.
    strategy:
        ``"window"`` — fixed sliding window with exact overlap;
        ``"recursive"`` — LangChain's separator-aware splitter, which
        prefers paragraph and sentence boundaries.

    Returns
    -------
    list[Chunk]
        Chunks in document order, then in source order within a document.
    """
    _validate(chunk_size, chunk_overlap)
    if strategy == "window":
        split = iter_chunks
    elif strategy == "recursive":
        split = _recursive_chunks
    else:
        raise ValueError(f"Unknown chunking strategy: {strategy!r}")

    chunks: list[Chunk] = []
    for document in documents:
        chunks.extend(split(document, chunk_size, chunk_overlap))
    return chunks


def merge_chunks(chunks: Sequence[Chunk], chunk_overlap: int = 200) -> str:
    """Rebuild the source text of window chunks by dropping each overlap."""
    if not chunks:
        return ""
    return chunks[0].text + "".join(c.text[chunk_overlap:] for c in chunks[1:])
