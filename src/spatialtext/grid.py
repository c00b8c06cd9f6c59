"""Grid quantization — place tokens into a fixed-resolution character buffer.

Source coordinates map to cells with ``floor(coord / scale)`` clamped to
the grid, so no placement can ever land outside it.  Two placement
policies share one :class:`Grid`:

``raw``
    Each line starts at the cell of its first token; later tokens start
    at their own column or one blank after the previous token, whichever is
    further right.  Overflow wraps to the next row at the line's starting
    column.  A non-space cell is never overwritten (first writer wins).

``flowed``
    The flowed text rendering is laid out row by row from column 0, so
    collisions cannot occur.

Characters that do not fit are dropped and counted on :class:`GridBuild`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .config import LayoutConfig
from .flow import flow_blocks
from .models import Block, Line, Token

logger = logging.getLogger(__name__)

BLANK = " "

# Control characters collapse to a blank cell; a cell holds one character.
_CONTROL_TABLE = {i: BLANK for i in range(32)}


class PlacementPolicy(str, Enum):
    """How tokens are positioned in the grid."""

    raw = "raw"
    flowed = "flowed"


def _quantize(coord: float, scale: float, dim: int) -> int:
    if math.isnan(coord):
        return 0
    idx = coord / scale
    if math.isinf(idx):
        return 0 if idx < 0 else dim - 1
    return max(0, min(dim - 1, math.floor(idx)))


class Grid:
    """A ``height x width`` buffer of single characters, blank by default."""

    def __init__(
        self,
        width: int,
        height: int,
        char_width: float = 6.0,
        line_height: float = 12.0,
    ) -> None:
        self.cells = np.full((max(1, int(height)), max(1, int(width))), BLANK, dtype="<U1")
        self.char_width = char_width
        self.line_height = line_height

    @property
    def width(self) -> int:
        return int(self.cells.shape[1])

    @property
    def height(self) -> int:
        return int(self.cells.shape[0])

    def cell_for(self, h_pos: float, v_pos: float) -> Tuple[int, int]:
        """Return the clamped ``(row, col)`` for a source coordinate."""
        row = _quantize(v_pos, self.line_height, self.height)
        col = _quantize(h_pos, self.char_width, self.width)
        return row, col

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def get(self, row: int, col: int) -> str:
        """Character at ``(row, col)``; blank when out of range."""
        if not self.in_bounds(row, col):
            return BLANK
        return str(self.cells[row, col])

    def is_blank(self, row: int, col: int) -> bool:
        return self.get(row, col) == BLANK

    def put(self, row: int, col: int, ch: str) -> bool:
        """Write *ch* at ``(row, col)``; returns ``False`` if out of range."""
        if not ch or not self.in_bounds(row, col):
            return False
        self.cells[row, col] = ch[0]
        return True

    def clear(self) -> None:
        self.cells.fill(BLANK)

    def grow(self, width: int, height: int) -> None:
        """Enlarge to at least ``width x height``, keeping current contents."""
        new_w = max(self.width, int(width))
        new_h = max(self.height, int(height))
        if (new_w, new_h) == (self.width, self.height):
            return
        cells = np.full((new_h, new_w), BLANK, dtype="<U1")
        cells[: self.height, : self.width] = self.cells
        self.cells = cells

    def row_string(self, row: int) -> str:
        """Row *row* as a string of exactly ``width`` characters."""
        return "".join(self.cells[row].tolist())

    def rows(self) -> List[str]:
        return [self.row_string(r) for r in range(self.height)]

    def copy(self) -> "Grid":
        other = Grid(self.width, self.height, self.char_width, self.line_height)
        other.cells = self.cells.copy()
        return other

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self.cells.shape == other.cells.shape and bool(
            np.array_equal(self.cells, other.cells)
        )

    def __repr__(self) -> str:
        return f"Grid(width={self.width}, height={self.height})"


@dataclass
class GridBuild:
    """Outcome of one grid build."""

    grid: Grid
    policy: PlacementPolicy
    placed: int = 0
    dropped: int = 0
    collisions: int = 0

    def to_dict(self) -> dict:
        """Serialize counts to a JSON-compatible dict."""
        return {
            "policy": self.policy.value,
            "width": self.grid.width,
            "height": self.grid.height,
            "placed": self.placed,
            "dropped": self.dropped,
            "collisions": self.collisions,
        }


def cell_text(content: str) -> str:
    """Map control characters (tabs, newlines, ...) to blanks."""
    return content.translate(_CONTROL_TABLE)


def size_grid(tokens: Iterable[Token], settings: LayoutConfig) -> Tuple[int, int]:
    """Return ``(width, height)`` in cells that contains *tokens*.

    The result never drops below ``grid_min_*`` nor exceeds ``grid_max_*``;
    tokens beyond the maximum clamp onto the last column or row.
    """
    toks = list(tokens)
    max_right = max((t.right() for t in toks), default=0.0)
    max_bottom = max((t.bottom() for t in toks), default=0.0)
    cols = math.ceil(max(0.0, max_right) / settings.char_width)
    rows = math.ceil(max(0.0, max_bottom) / settings.line_height)
    return _bounded_size(cols + settings.grid_padding_cols, rows + settings.grid_padding_rows, settings)


def _bounded_size(width: int, height: int, settings: LayoutConfig) -> Tuple[int, int]:
    width = min(settings.grid_max_width, max(settings.grid_min_width, width))
    height = min(settings.grid_max_height, max(settings.grid_min_height, height))
    return width, height


def _remaining_chars(lines: Sequence[Line], tokens: Sequence[Token]) -> int:
    return sum(len(t.content) for t in tokens) + sum(
        len(t.content) for line in lines for t in line.tokens
    )


def _place_block_raw(grid: Grid, block: Block, build: GridBuild) -> None:
    for li, line in enumerate(block.lines):
        if not line.tokens:
            continue
        row, start_col = grid.cell_for(line.tokens[0].h_pos, line.avg_v_pos)
        cursor: Optional[int] = None
        for ti, tok in enumerate(line.tokens):
            _, col = grid.cell_for(tok.h_pos, line.avg_v_pos)
            if cursor is not None:
                col = max(col, cursor + 2)
            text = cell_text(tok.content)
            for ci, ch in enumerate(text):
                if col >= grid.width:
                    row += 1
                    col = start_col
                if row >= grid.height:
                    build.dropped += (len(text) - ci) + _remaining_chars(
                        block.lines[li + 1 :], line.tokens[ti + 1 :]
                    )
                    return
                if ch != BLANK:
                    if grid.is_blank(row, col):
                        grid.put(row, col, ch)
                        build.placed += 1
                    else:
                        build.collisions += 1
                cursor = col
                col += 1


def _place_flowed(grid: Grid, text: str, build: GridBuild) -> None:
    row = 0
    for src in text.split("\n"):
        src = cell_text(src)
        if not src:
            row += 1
            continue
        for start in range(0, len(src), grid.width):
            chunk = src[start : start + grid.width]
            if row >= grid.height:
                build.dropped += sum(1 for ch in chunk if ch != BLANK)
                continue
            for col, ch in enumerate(chunk):
                if ch != BLANK:
                    grid.put(row, col, ch)
                    build.placed += 1
            row += 1


def build_grid(
    blocks: Sequence[Block],
    settings: LayoutConfig,
    policy: Optional[PlacementPolicy] = None,
    grid: Optional[Grid] = None,
) -> GridBuild:
    """Quantize every block onto a grid.

    Parameters
    ----------
    blocks : sequence of Block
        Classified blocks; table lines use aligned spacing in flowed mode.
    settings : LayoutConfig
        Scale factors, size floor, and padding.
    policy : PlacementPolicy, optional
        Defaults to ``settings.placement_policy``.
    grid : Grid, optional
        Existing grid to reuse.  It is grown to the new size (never
        shrunk) and cleared before placement.

    Returns
    -------
    GridBuild
    """
    if policy is None:
        policy = PlacementPolicy(settings.placement_policy)
    else:
        policy = PlacementPolicy(policy)

    tokens = [t for blk in blocks for t in blk.tokens()]
    width, height = size_grid(tokens, settings)

    flowed = ""
    if policy is PlacementPolicy.flowed:
        flowed = flow_blocks(blocks, settings)
        text_rows = flowed.split("\n") if flowed else []
        width, height = _bounded_size(
            max(width, max((len(r) for r in text_rows), default=0) + settings.grid_padding_cols),
            max(height, len(text_rows) + settings.grid_padding_rows),
            settings,
        )

    if grid is None:
        grid = Grid(width, height, settings.char_width, settings.line_height)
    else:
        grid.char_width = settings.char_width
        grid.line_height = settings.line_height
        grid.grow(width, height)
        grid.clear()

    build = GridBuild(grid=grid, policy=policy)
    if policy is PlacementPolicy.flowed:
        _place_flowed(grid, flowed, build)
    else:
        for blk in blocks:
            _place_block_raw(grid, blk, build)

    if build.dropped:
        logger.warning(
            "Grid %dx%d: dropped %d characters (%s placement)",
            grid.width,
            grid.height,
            build.dropped,
            policy.value,
        )
    if build.collisions:
        logger.debug("Grid: %d characters refused by occupied cells", build.collisions)
    return build
