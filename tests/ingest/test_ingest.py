"""Tests for spatialtext.ingest — PDF validation and pdfplumber word extraction."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from spatialtext.config import LayoutConfig
from spatialtext.ingest import (
    IngestError,
    extract_page_tokens,
    tokens_from_words,
    validate_pdf_path,
)

# ── tokens_from_words ─────────────────────────────────────────────────


class TestTokensFromWords:
    def test_conversion(self):
        words = [{"text": "CITY", "x0": 160.8, "top": 84.8, "x1": 187.2, "bottom": 95.4}]
        store = tokens_from_words(words, page_index=2)
        tok = store.tokens[0]
        assert store.page_index == 2
        assert tok.content == "CITY"
        assert (tok.h_pos, tok.v_pos) == (160.8, 84.8)
        assert tok.width == pytest.approx(26.4)
        assert tok.height == pytest.approx(10.6)

    def test_empty_text_dropped(self):
        words = [{"text": "", "x0": 0, "top": 0}, {"text": "ok", "x0": 1, "top": 1}]
        assert [t.content for t in tokens_from_words(words)] == ["ok"]

    def test_missing_extent(self):
        tok = tokens_from_words([{"text": "a", "x0": 5.0, "top": 7.0}]).tokens[0]
        assert (tok.width, tok.height) == (0.0, 0.0)

    def test_no_words(self):
        assert len(tokens_from_words([])) == 0


# ── Path validation ───────────────────────────────────────────────────


class TestValidatePdfPath:
    def test_missing_file(self, tmp_path):
        with pytest.raises(IngestError, match="File not found"):
            validate_pdf_path(tmp_path / "nonexistent.pdf")

    def test_directory_not_file(self, tmp_path):
        d = tmp_path / "subdir.pdf"
        d.mkdir()
        with pytest.raises(IngestError, match="Not a file"):
            validate_pdf_path(d)

    def test_empty_file(self, tmp_path):
        f = tmp_path / "empty.pdf"
        f.write_bytes(b"")
        with pytest.raises(IngestError, match="Empty file"):
            validate_pdf_path(f)

    def test_wrong_extension(self, tmp_path):
        f = tmp_path / "data.txt"
        f.write_text("hello")
        with pytest.raises(IngestError, match="Not a PDF"):
            validate_pdf_path(f)

    def test_uppercase_suffix_ok(self, tmp_path):
        f = tmp_path / "SCAN.PDF"
        f.write_bytes(b"%PDF-1.4\n%%EOF")
        validate_pdf_path(f)


# ── extract_page_tokens with mock pdfplumber ──────────────────────────


def _fake_pdf(tmp_path):
    f = tmp_path / "test.pdf"
    # Minimal header so the extension / size checks pass
    f.write_bytes(b"%PDF-1.4\n%%EOF")
    return f


def _mock_pdf(pages):
    mock_pdf = MagicMock()
    mock_pdf.pages = pages
    mock_pdf.__enter__ = MagicMock(return_value=mock_pdf)
    mock_pdf.__exit__ = MagicMock(return_value=False)
    return mock_pdf


class TestExtractPageTokens:
    def test_basic_extract(self, tmp_path):
        page = MagicMock()
        page.extract_words.return_value = [
            {"text": "General", "x0": 78.6, "top": 108.5, "x1": 115.0, "bottom": 119.1},
            {"text": "Fund", "x0": 117.7, "top": 108.5, "x1": 141.8, "bottom": 119.1},
        ]
        mock_pdf = _mock_pdf([MagicMock(), page])

        with patch("spatialtext.ingest.ingest.pdfplumber.open", return_value=mock_pdf):
            store = extract_page_tokens(_fake_pdf(tmp_path), 1)

        assert store.page_index == 1
        assert [t.content for t in store] == ["General", "Fund"]
        page.extract_words.assert_called_once_with(x_tolerance=3.0, y_tolerance=3.0)

    def test_tolerances_from_config(self, tmp_path):
        page = MagicMock()
        page.extract_words.return_value = []
        cfg = LayoutConfig(pdf_x_tolerance=1.5, pdf_y_tolerance=2.0)

        with patch("spatialtext.ingest.ingest.pdfplumber.open", return_value=_mock_pdf([page])):
            store = extract_page_tokens(str(_fake_pdf(tmp_path)), 0, cfg)

        assert len(store) == 0
        page.extract_words.assert_called_once_with(x_tolerance=1.5, y_tolerance=2.0)

    def test_page_out_of_range(self, tmp_path):
        with patch(
            "spatialtext.ingest.ingest.pdfplumber.open",
            return_value=_mock_pdf([MagicMock()]),
        ):
            with pytest.raises(IngestError, match="out of range"):
                extract_page_tokens(_fake_pdf(tmp_path), 3)

    def test_corrupt_pdf(self, tmp_path):
        with patch(
            "spatialtext.ingest.ingest.pdfplumber.open",
            side_effect=ValueError("bad xref"),
        ):
            with pytest.raises(IngestError, match="Cannot read PDF") as exc_info:
                extract_page_tokens(_fake_pdf(tmp_path), 0)
        assert isinstance(exc_info.value.__cause__, ValueError)
