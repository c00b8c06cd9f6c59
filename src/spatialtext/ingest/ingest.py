"""Ingest stage — PDF validation and text-layer token extraction.

Centralises PDF opening so the core never calls ``pdfplumber.open()``
directly.  The core only ever sees a :class:`TokenStore`.

Public API
----------
- :func:`extract_page_tokens` — open + validate a PDF, return one page's tokens
- :func:`tokens_from_words` — convert pdfplumber word dicts to tokens
- :class:`IngestError` — raised on validation / extraction failures
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Mapping, Any

import pdfplumber

from ..config import LayoutConfig
from ..models import Token, TokenStore

log = logging.getLogger(__name__)


class IngestError(Exception):
    """Raised when a source document cannot be turned into tokens."""


def validate_pdf_path(pdf_path: Path) -> None:
    """Raise :class:`IngestError` for missing / empty / wrong-extension files."""
    if not pdf_path.exists():
        raise IngestError(f"File not found: {pdf_path}")
    if not pdf_path.is_file():
        raise IngestError(f"Not a file: {pdf_path}")
    if pdf_path.stat().st_size == 0:
        raise IngestError(f"Empty file: {pdf_path}")
    if pdf_path.suffix.lower() != ".pdf":
        raise IngestError(f"Not a PDF (suffix={pdf_path.suffix!r}): {pdf_path}")


def tokens_from_words(
    words: Iterable[Mapping[str, Any]], page_index: int = 0
) -> TokenStore:
    """Convert pdfplumber ``extract_words()`` dicts into a :class:`TokenStore`.

    ``x0``/``top`` become the token position and ``x1 - x0`` /
    ``bottom - top`` its extent.  Words with empty text are dropped.
    """
    tokens: List[Token] = []
    for w in words:
        x0 = float(w.get("x0", 0.0))
        top = float(w.get("top", 0.0))
        tokens.append(
            Token(
                content=str(w.get("text") or ""),
                h_pos=x0,
                v_pos=top,
                width=float(w.get("x1", x0)) - x0,
                height=float(w.get("bottom", top)) - top,
            )
        )
    return TokenStore.from_records(tokens, page_index=page_index)


def extract_page_tokens(
    pdf_path: Path | str,
    page_index: int,
    cfg: LayoutConfig | None = None,
) -> TokenStore:
    """Extract one page's word tokens from the PDF text layer.

    Parameters
    ----------
    pdf_path : Path or str
        Path to the PDF file.
    page_index : int
        Zero-based page index.
    cfg : LayoutConfig, optional
        Supplies the pdfplumber x/y tolerances.

    Returns
    -------
    TokenStore

    Raises
    ------
    IngestError
        When the file is invalid, the page does not exist, or the PDF
        cannot be read.
    """
    if cfg is None:
        cfg = LayoutConfig()
    pdf_path = Path(pdf_path)
    validate_pdf_path(pdf_path)

    try:
        with pdfplumber.open(pdf_path) as pdf:
            if not 0 <= page_index < len(pdf.pages):
                raise IngestError(
                    f"Page {page_index} out of range (document has {len(pdf.pages)} pages)"
                )
            words = pdf.pages[page_index].extract_words(
                x_tolerance=cfg.pdf_x_tolerance,
                y_tolerance=cfg.pdf_y_tolerance,
            )
    except IngestError:
        raise
    except Exception as exc:
        raise IngestError(f"Cannot read PDF: {exc}") from exc

    store = tokens_from_words(words, page_index=page_index)
    if not store:
        log.warning("Page %d: zero tokens extracted (blank or image-only page)", page_index)
    else:
        log.info("Extracted %d tokens from %s page %d", len(store), pdf_path.name, page_index)
    return store
