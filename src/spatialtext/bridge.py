"""Grid ↔ text conversion and viewport windowing.

Public API
----------
- :func:`to_text` — grid rows as trimmed linear text
- :func:`from_text` — re-ingest edited text into an existing grid
- :func:`viewport_text` — bounded window into a grid, blank outside it
- :class:`Viewport` — scroll position plus visible size
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List

from .grid import BLANK, Grid, cell_text

log = logging.getLogger(__name__)


def to_text(grid: Grid, trim_leading: bool = True) -> str:
    """Render *grid* as text.

    Each row is right-trimmed of spaces.  Blank rows at the end are
    removed, as are blank rows at the start unless *trim_leading* is
    ``False``; interior blank rows are kept exactly.
    """
    rows = [grid.row_string(r).rstrip(BLANK) for r in range(grid.height)]
    filled = [i for i, row in enumerate(rows) if row]
    if not filled:
        return ""
    first = filled[0] if trim_leading else 0
    return "\n".join(rows[first : filled[-1] + 1])


def _split_lines(text: str) -> List[str]:
    lines = text.split("\n")
    return [ln[:-1] if ln.endswith("\r") else ln for ln in lines]


def from_text(grid: Grid, text: str) -> int:
    """Replace the contents of *grid* with *text*, line by line.

    Characters beyond the grid's bounds are dropped; the grid is never
    resized here.  Returns the number of dropped non-blank characters.
    """
    grid.clear()
    dropped = 0
    if not text:
        return 0
    for row, line in enumerate(_split_lines(text)):
        line = cell_text(line)
        if row >= grid.height:
            dropped += len(line.replace(BLANK, ""))
            continue
        for col, ch in enumerate(line):
            if ch == BLANK:
                continue
            if col >= grid.width:
                dropped += 1
                continue
            grid.put(row, col, ch)
    if dropped:
        log.warning(
            "Edit did not fit %dx%d grid: dropped %d characters",
            grid.width,
            grid.height,
            dropped,
        )
    return dropped


def viewport_text(
    grid: Grid, offset_x: int, offset_y: int, width: int, height: int
) -> str:
    """Return a ``height``-row window starting at ``(offset_y, offset_x)``.

    Cells outside the grid render as blanks, so any offsets are safe.
    Each rendered row is right-trimmed of spaces.
    """
    width = max(0, int(width))
    height = max(0, int(height))
    if height == 0:
        return ""
    offset_x = int(offset_x)
    offset_y = int(offset_y)

    col_lo = max(0, offset_x)
    col_hi = min(grid.width, offset_x + width)
    lead = col_lo - offset_x

    out: List[str] = []
    for r in range(offset_y, offset_y + height):
        if not (0 <= r < grid.height) or col_lo >= col_hi:
            out.append("")
            continue
        segment = "".join(grid.cells[r, col_lo:col_hi].tolist())
        out.append((BLANK * lead + segment).rstrip(BLANK))
    return "\n".join(out)


@dataclass(frozen=True)
class Viewport:
    """A bounded, read-only window into a grid."""

    offset_x: int = 0
    offset_y: int = 0
    visible_width: int = 80
    visible_height: int = 24

    def text(self, grid: Grid) -> str:
        return viewport_text(
            grid, self.offset_x, self.offset_y, self.visible_width, self.visible_height
        )

    def scrolled(self, dx: int = 0, dy: int = 0) -> "Viewport":
        """Return a copy moved by ``(dx, dy)`` with offsets clamped at zero."""
        return replace(
            self,
            offset_x=max(0, self.offset_x + int(dx)),
            offset_y=max(0, self.offset_y + int(dy)),
        )

    def resized(self, width: int, height: int) -> "Viewport":
        return replace(self, visible_width=max(0, int(width)), visible_height=max(0, int(height)))
