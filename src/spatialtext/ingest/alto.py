"""ALTO XML adapter — pdfalto invocation, parsing, and export.

ALTO describes a page as ``TextBlock`` → ``TextLine`` → ``String``
elements, each ``String`` carrying ``HPOS``, ``VPOS``, ``WIDTH``,
``HEIGHT`` and ``CONTENT`` attributes.  Parsing ignores namespaces so
ALTO v2/v3/v4 documents all read the same way.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

from lxml import etree

from ..config import LayoutConfig
from ..models import Block, Line, Token, TokenStore
from .ingest import IngestError, validate_pdf_path

log = logging.getLogger(__name__)


@dataclass
class AltoPage:
    """Blocks parsed from one ALTO page plus its declared size."""

    blocks: List[Block] = field(default_factory=list)
    width: float = 0.0
    height: float = 0.0
    page_index: int = 0

    def tokens(self) -> TokenStore:
        """All tokens in document order, as a :class:`TokenStore`."""
        return TokenStore.from_records(
            (t for blk in self.blocks for t in blk.tokens()),
            page_index=self.page_index,
        )


def _local(el: etree._Element) -> str:
    return etree.QName(el).localname


def _float_attr(el: etree._Element, name: str) -> float:
    raw = el.get(name)
    if raw is None:
        return 0.0
    try:
        return float(raw)
    except ValueError:
        return 0.0


def _string_token(el: etree._Element) -> Optional[Token]:
    content = el.get("CONTENT") or ""
    if not content:
        return None
    return Token(
        content=content,
        h_pos=_float_attr(el, "HPOS"),
        v_pos=_float_attr(el, "VPOS"),
        width=_float_attr(el, "WIDTH"),
        height=_float_attr(el, "HEIGHT"),
    )


def parse_alto(xml: Union[str, bytes], page_index: int = 0) -> AltoPage:
    """Parse an ALTO document into blocks of lines of tokens.

    Only the first ``Page`` element is read.  Empty strings, lines, and
    blocks are skipped.

    Raises
    ------
    IngestError
        When *xml* is not well-formed.
    """
    if isinstance(xml, str):
        xml = xml.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True, recover=False)
    try:
        root = etree.fromstring(xml, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise IngestError(f"Malformed ALTO XML: {exc}") from exc

    page = AltoPage(page_index=page_index)
    scope = root
    for el in root.iter(tag=etree.Element):
        if _local(el) == "Page":
            page.width = _float_attr(el, "WIDTH")
            page.height = _float_attr(el, "HEIGHT")
            scope = el
            break

    for block_el in scope.iter(tag=etree.Element):
        if _local(block_el) != "TextBlock":
            continue
        lines: List[Line] = []
        for line_el in block_el.iter(tag=etree.Element):
            if _local(line_el) != "TextLine":
                continue
            toks: List[Token] = []
            for s in line_el.iterchildren(tag=etree.Element):
                if _local(s) != "String":
                    continue
                tok = _string_token(s)
                if tok is not None:
                    toks.append(tok)
            if toks:
                lines.append(Line.from_tokens(toks))
        if lines:
            page.blocks.append(Block(lines=lines))

    log.info(
        "Parsed ALTO page %d: %d blocks, %d tokens",
        page_index,
        len(page.blocks),
        sum(len(b.tokens()) for b in page.blocks),
    )
    return page


def tokens_to_alto(
    tokens: Iterable[Token],
    page_width: float = 0.0,
    page_height: float = 0.0,
) -> str:
    """Write *tokens* as a one-block, one-line ALTO document."""
    alto = etree.Element("alto")
    layout = etree.SubElement(alto, "Layout")
    page = etree.SubElement(
        layout,
        "Page",
        ID="page1",
        WIDTH=f"{page_width:.1f}",
        HEIGHT=f"{page_height:.1f}",
    )
    toks = list(tokens)
    block = etree.SubElement(page, "TextBlock", ID="block1")
    if toks:
        block.set("HPOS", f"{toks[0].h_pos:.1f}")
        block.set("VPOS", f"{toks[0].v_pos:.1f}")
    line = etree.SubElement(block, "TextLine", ID="line1")
    for i, tok in enumerate(toks, start=1):
        etree.SubElement(
            line,
            "String",
            ID=f"s{i}",
            CONTENT=tok.content,
            HPOS=f"{tok.h_pos:.1f}",
            VPOS=f"{tok.v_pos:.1f}",
            WIDTH=f"{tok.width:.1f}",
            HEIGHT=f"{tok.height:.1f}",
        )
    return etree.tostring(
        alto, xml_declaration=True, encoding="UTF-8", pretty_print=True
    ).decode("utf-8")


def run_pdfalto(
    pdf_path: Path | str,
    page_index: int,
    cfg: LayoutConfig | None = None,
) -> str:
    """Run the configured ``pdfalto`` executable for one page; return the XML.

    The command and timeout come from *cfg* (``pdfalto_command``,
    ``extraction_timeout_s``).  The call is not retried.

    Raises
    ------
    IngestError
        Missing executable, timeout, non-zero exit, or no output.
    """
    if cfg is None:
        cfg = LayoutConfig()
    pdf_path = Path(pdf_path)
    validate_pdf_path(pdf_path)

    page_no = str(page_index + 1)  # pdfalto pages are 1-based
    with tempfile.TemporaryDirectory(prefix="spatialtext_alto_") as tmp:
        out_path = Path(tmp) / f"{pdf_path.stem}.xml"
        cmd = [
            cfg.pdfalto_command,
            "-f",
            page_no,
            "-l",
            page_no,
            "-readingOrder",
            "-noImage",
            "-noLineNumbers",
            str(pdf_path),
            str(out_path),
        ]
        try:
            proc = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                text=True,
                timeout=cfg.extraction_timeout_s,
            )
        except FileNotFoundError as exc:
            raise IngestError(
                f"{cfg.pdfalto_command!r} not found on PATH"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise IngestError(
                f"pdfalto timed out after {cfg.extraction_timeout_s}s on page {page_index}"
            ) from exc

        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip()
            raise IngestError(
                f"pdfalto failed with exit code {proc.returncode}: {stderr[:500]}"
            )
        if not out_path.exists():
            raise IngestError(f"pdfalto produced no output for page {page_index}")
        xml = out_path.read_text(encoding="utf-8", errors="replace")

    log.debug("pdfalto page %d: %d bytes of ALTO", page_index, len(xml))
    return xml
