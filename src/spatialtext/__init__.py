"""Layout-preserving text reconstruction from positioned tokens.

Frequently-used symbols are re-exported here for convenience.
For adapters (pdfplumber, ALTO / pdfalto) import directly from the
relevant submodule, e.g.::

    from spatialtext.ingest import extract_page_tokens, parse_alto
"""

# ── Core models & config ──────────────────────────────────────────────

from .bridge import Viewport, from_text, to_text, viewport_text
from .change import ChangeDetector, fingerprint
from .classify import (
    analyze_block,
    classify_block,
    classify_blocks,
    summarize_blocks,
    vertical_bins,
)
from .config import ConfigValidationError, LayoutConfig
from .flow import flow_blocks, flow_text, format_line, gap_to_breaks
from .grid import Grid, GridBuild, PlacementPolicy, build_grid, size_grid
from .grouping import build_lines, group_blocks
from .models import Block, BlockKind, BlockMetrics, Line, Token, TokenStore
from .pipeline import PageResult, StageResult, run_page
from .session import EditorState, EditSession

__all__ = [
    # Models & config
    "LayoutConfig",
    "ConfigValidationError",
    "Token",
    "TokenStore",
    "Line",
    "Block",
    "BlockKind",
    "BlockMetrics",
    # Grouping & classification
    "build_lines",
    "group_blocks",
    "vertical_bins",
    "analyze_block",
    "classify_block",
    "classify_blocks",
    "summarize_blocks",
    # Grid
    "Grid",
    "GridBuild",
    "PlacementPolicy",
    "build_grid",
    "size_grid",
    # Flow
    "gap_to_breaks",
    "format_line",
    "flow_text",
    "flow_blocks",
    # Bridge
    "Viewport",
    "to_text",
    "from_text",
    "viewport_text",
    # Change detection
    "ChangeDetector",
    "fingerprint",
    # Pipeline & session
    "PageResult",
    "StageResult",
    "run_page",
    "EditorState",
    "EditSession",
]
