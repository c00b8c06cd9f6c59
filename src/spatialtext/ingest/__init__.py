"""Ingest stage — turn source documents into token stores.

Public API
----------
- :func:`extract_page_tokens` — pdfplumber text-layer words for one page
- :func:`tokens_from_words` — pdfplumber word dicts → :class:`TokenStore`
- :func:`run_pdfalto` — run ``pdfalto`` for one page, return ALTO XML
- :func:`parse_alto` — ALTO XML → :class:`AltoPage` (blocks of lines)
- :func:`tokens_to_alto` — tokens → ALTO XML
- :class:`IngestError` — raised on every adapter failure
"""

from .alto import AltoPage, parse_alto, run_pdfalto, tokens_to_alto
from .ingest import IngestError, extract_page_tokens, tokens_from_words, validate_pdf_path

__all__ = [
    "AltoPage",
    "IngestError",
    "extract_page_tokens",
    "parse_alto",
    "run_pdfalto",
    "tokens_from_words",
    "tokens_to_alto",
    "validate_pdf_path",
]
