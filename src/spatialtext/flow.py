"""Flowed text rendering — linear text with inferred line and paragraph breaks.

The alternative to the fixed grid: lines are emitted in vertical order,
separated by a number of newlines derived from the vertical gap between
them.  Table lines keep approximate column alignment by padding with
spaces proportional to the horizontal gap between tokens.
"""

from __future__ import annotations

import math
from typing import Iterable, List

from .config import LayoutConfig
from .models import Block, Line


def gap_to_breaks(gap: float, settings: LayoutConfig) -> int:
    """Convert a vertical gap between two lines into a newline count.

    ``0`` means the lines share one output line (joined by a space).
    Monotonic in *gap* and never above ``settings.max_breaks``.
    """
    if math.isnan(gap) or gap <= settings.line_gap:
        return 0
    if gap <= settings.section_gap:
        return min(1, settings.max_breaks)
    if math.isinf(gap):
        return settings.max_breaks
    extra = int((gap - settings.section_gap) // settings.paragraph_gap)
    return min(settings.max_breaks, 2 + extra)


def _table_spacing(gap: float, settings: LayoutConfig) -> int:
    # Half-up rounding; negative gaps (overlapping tokens) clamp to the minimum.
    n = math.floor(gap / settings.char_width + 0.5)
    return max(settings.table_min_spaces, min(settings.table_max_spaces, n))


def format_line(line: Line, settings: LayoutConfig) -> str:
    """Render one line: single spaces, or coordinate-aligned spacing for tables."""
    if not line.is_table:
        return line.text()
    parts: List[str] = []
    prev = None
    for tok in line.tokens:
        if prev is not None:
            parts.append(" " * _table_spacing(tok.h_pos - prev.right(), settings))
        parts.append(tok.content)
        prev = tok
    return "".join(parts)


def flow_text(lines: Iterable[Line], settings: LayoutConfig) -> str:
    """Join *lines* top to bottom with gap-derived breaks."""
    ordered = sorted((ln for ln in lines if ln.tokens), key=lambda ln: ln.avg_v_pos)
    out: List[str] = []
    prev = None
    for line in ordered:
        if prev is not None:
            breaks = gap_to_breaks(line.avg_v_pos - prev.avg_v_pos, settings)
            out.append("\n" * breaks if breaks else " ")
        out.append(format_line(line, settings))
        prev = line
    return "".join(out)


def flow_blocks(blocks: Iterable[Block], settings: LayoutConfig) -> str:
    """Flow every line of *blocks* as one document."""
    return flow_text((line for blk in blocks for line in blk.lines), settings)
