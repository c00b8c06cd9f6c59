"""Edit session — one page's tokens, grid, and editable text.

An :class:`EditSession` owns the grid exclusively; callers serialise
edits through it.  Re-ingestion of edited text is gated by a
:class:`~spatialtext.change.ChangeDetector` so unchanged text never
touches the grid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .bridge import Viewport, from_text, to_text
from .change import ChangeDetector
from .config import LayoutConfig
from .grid import Grid, PlacementPolicy
from .models import Block, TokenStore
from .pipeline import PageResult, run_page

logger = logging.getLogger(__name__)


@dataclass
class EditorState:
    """Transient editor bookkeeping; reset whenever the page changes."""

    page_index: int = 0
    viewport: Viewport = field(default_factory=Viewport)
    # Fractional scroll carried over between wheel events (in rows).
    scroll_accumulator: float = 0.0
    text_dirty: bool = False
    needs_repaint: bool = True
    detector: ChangeDetector = field(default_factory=ChangeDetector)

    def reset(self, page_index: int) -> None:
        self.page_index = page_index
        self.viewport = Viewport(
            visible_width=self.viewport.visible_width,
            visible_height=self.viewport.visible_height,
        )
        self.scroll_accumulator = 0.0
        self.text_dirty = False
        self.needs_repaint = True
        self.detector.reset()

    def accumulate_scroll(self, delta: float) -> int:
        """Add a fractional scroll *delta*; return the whole rows to move."""
        self.scroll_accumulator += delta
        steps = int(self.scroll_accumulator)
        self.scroll_accumulator -= steps
        return steps


class EditSession:
    """Holds the current page and keeps grid, text, and viewport in step."""

    def __init__(
        self,
        cfg: Optional[LayoutConfig] = None,
        policy: PlacementPolicy | str | None = None,
        viewport: Optional[Viewport] = None,
    ) -> None:
        self.cfg = cfg or LayoutConfig()
        self.policy = PlacementPolicy(policy or self.cfg.placement_policy)
        self.state = EditorState(viewport=viewport or Viewport())
        self.store = TokenStore()
        self.page: Optional[PageResult] = None
        self.grid: Optional[Grid] = None
        self._text = ""
        self._blocks: Optional[List[Block]] = None

    # ── Page lifecycle ────────────────────────────────────────────────

    def load_page(
        self, store: TokenStore, blocks: Optional[List[Block]] = None
    ) -> PageResult:
        """Replace the token store, reset editor state, and rebuild.

        The grid is discarded so its size follows the new page.
        """
        self.store = store
        self._blocks = blocks
        self.grid = None
        self.state.reset(store.page_index)
        return self.rebuild()

    def rebuild(self) -> PageResult:
        """Re-derive lines, blocks, and grid from the token store."""
        self.page = run_page(
            self.store, self.cfg, policy=self.policy, grid=self.grid, blocks=self._blocks
        )
        self.grid = self.page.grid
        self._text = to_text(self.grid, trim_leading=False)
        self.state.detector.update(self._text)
        self.state.text_dirty = False
        self.state.needs_repaint = True
        return self.page

    # ── Text view ─────────────────────────────────────────────────────

    @property
    def text(self) -> str:
        """Editable text; row *n* of the text is row *n* of the grid."""
        return self._text

    def flowed_text(self) -> str:
        return self.page.flowed_text if self.page is not None else ""

    def apply_edit(self, text: str) -> bool:
        """Re-ingest edited *text* into the grid if it actually changed.

        Returns ``True`` when the grid was rewritten.
        """
        if self.grid is None:
            self.rebuild()
        if not self.state.detector.update(text):
            return False
        dropped = from_text(self.grid, text)
        self._text = to_text(self.grid, trim_leading=False)
        self.state.text_dirty = True
        self.state.needs_repaint = True
        if dropped:
            logger.info("Page %d: edit clipped by %d characters", self.state.page_index, dropped)
        return True

    # ── Viewport ──────────────────────────────────────────────────────

    def viewport_text(self) -> str:
        if self.grid is None:
            return ""
        return self.state.viewport.text(self.grid)

    def scroll(self, dx: int = 0, dy: int = 0) -> Viewport:
        """Move the viewport by whole cells (offsets never go negative)."""
        before = self.state.viewport
        self.state.viewport = before.scrolled(dx, dy)
        if self.state.viewport != before:
            self.state.needs_repaint = True
        return self.state.viewport

    def scroll_lines(self, delta: float) -> Viewport:
        """Scroll vertically by a fractional row *delta* (e.g. a wheel event)."""
        return self.scroll(0, self.state.accumulate_scroll(delta))

    def resize_viewport(self, width: int, height: int) -> Viewport:
        self.state.viewport = self.state.viewport.resized(width, height)
        self.state.needs_repaint = True
        return self.state.viewport

    def mark_painted(self) -> None:
        self.state.needs_repaint = False
