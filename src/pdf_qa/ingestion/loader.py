"""Document loaders — thin wrappers around LangChain's PDF loader."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from langchain_community.document_loaders import PyPDFLoader

from pdf_qa.errors import ExternalServiceError

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)

PDF_SUFFIX = ".pdf"


def is_pdf(path: str | Path) -> bool:
    """Return ``True`` when *path* carries a ``.pdf`` suffix (any case)."""
    return str(path).lower().endswith(PDF_SUFFIX)


def load_pdf(path: str | Path) -> list[Document]:
    """Load a single PDF file, one ``Document`` per page.

    Raises
    ------
    ExternalServiceError
        When the file is missing or cannot be parsed.
    """
    try:
        return PyPDFLoader(str(path)).load()
    except Exception as exc:
        raise ExternalServiceError(f"Failed to load PDF {path}: {exc}") from exc


def load_pdf_folder(folder: str | Path) -> list[Document]:
    """Load every PDF directly inside *folder* (non-recursive).

    A missing folder contributes zero documents rather than an error.
    """
    root = Path(folder)
    if not root.is_dir():
        logger.info("PDF folder %s does not exist — skipping", root)
        return []

    documents: list[Document] = []
    for entry in sorted(root.iterdir()):
        if entry.is_file() and is_pdf(entry.name):
            documents.extend(load_pdf(entry))
    return documents


def load_sources(manual_paths: Iterable[str | Path], folder: str | Path | None) -> list[Document]:
    """Load explicitly named PDFs followed by the contents of *folder*.

    Parameters
    ----------
    manual_paths:
        Individual files; entries without a ``.pdf`` suffix are ignored.
    folder:
        Directory scanned for ``*.pdf`` files, or ``None`` to skip.

    Returns
    -------
    list[Document]
        Flat list of page documents, manual files first.
    """
    documents: list[Document] = []
    for path in manual_paths:
        if not is_pdf(path):
            logger.warning("Ignoring %s: not a PDF", path)
            continue
        documents.extend(load_pdf(path))
    if folder is not None:
        documents.extend(load_pdf_folder(folder))
    return documents
