"""Block classification — paragraph / table / unknown / empty.

Scores a block of lines on three signals:

* **Left-margin variance** — paragraphs share a left edge.
* **Column bins** — x-positions of every token merged into centroids;
  two or more bins means the block is multi-column.
* **Big-gap ratio** — fraction of lines with a wide gap between
  consecutive right edges, typical of table cells.

The decision is heuristic; ``unknown`` is an expected outcome and
downstream formatting treats it like paragraph text.
"""

from __future__ import annotations

import logging
import math
from statistics import mean, pvariance
from typing import Dict, Iterable, List

from .config import LayoutConfig
from .models import Block, BlockKind, BlockMetrics

logger = logging.getLogger(__name__)


def vertical_bins(block: Block, threshold: float) -> List[float]:
    """Merge every token ``h_pos`` in *block* into column centroids.

    Each value joins the first bin whose centroid is within *threshold*,
    moving that centroid to the midpoint; otherwise it opens a new bin.
    Returns the centroids sorted ascending.
    """
    bins: List[float] = []
    for line in block.lines:
        for x in sorted(t.h_pos for t in line.tokens):
            for i, b in enumerate(bins):
                if abs(x - b) <= threshold:
                    bins[i] = (b + x) / 2.0
                    break
            else:
                bins.append(x)
    return sorted(bins)


def _big_gap_ratio(block: Block, threshold: float) -> float:
    if not block.lines:
        return 0.0
    big_gap_lines = 0
    for line in block.lines:
        edges = sorted(t.right() for t in line.tokens)
        gaps = [edges[i + 1] - edges[i] for i in range(len(edges) - 1)]
        if any(g > threshold for g in gaps):
            big_gap_lines += 1
    return big_gap_lines / len(block.lines)


def analyze_block(block: Block, settings: LayoutConfig) -> BlockMetrics:
    """Measure margins, widths, column bins, and gaps for *block*."""
    lefts: List[int] = []
    widths: List[int] = []
    for line in block.lines:
        if not line.tokens:
            continue
        # Integer pixel-equivalents, truncated like the extraction layer's ints.
        left = math.trunc(line.left())
        right = max(math.trunc(t.right()) for t in line.tokens)
        lefts.append(left)
        widths.append(right - left)

    metrics = BlockMetrics(line_count=len(block.lines))
    if lefts:
        metrics.left_margin_mean = float(mean(lefts))
        metrics.left_margin_variance = float(pvariance(lefts))
        metrics.avg_content_width = float(mean(widths))
    metrics.column_bins = vertical_bins(block, settings.column_bin_threshold)
    metrics.big_gap_ratio = _big_gap_ratio(block, settings.big_gap_threshold)
    return metrics


def classify_block(block: Block, settings: LayoutConfig) -> BlockKind:
    """Return the :class:`BlockKind` for *block* (first matching rule wins)."""
    if not block.lines:
        return BlockKind.empty
    if not any(line.tokens for line in block.lines):
        return BlockKind.unknown

    m = analyze_block(block, settings)
    if m.multi_column and m.big_gap_ratio > settings.table_gap_ratio:
        return BlockKind.table
    if (
        m.left_margin_variance < settings.paragraph_margin_variance
        and m.avg_content_width > settings.paragraph_min_width
    ):
        return BlockKind.paragraph
    return BlockKind.unknown


def classify_blocks(blocks: Iterable[Block], settings: LayoutConfig) -> None:
    """Classify each block in place and flag the lines of table blocks.

    Stores ``classification`` and ``metrics`` on every block; every line
    of a ``table`` block gets ``is_table = True``, all others ``False``.
    """
    for blk in blocks:
        blk.classification = classify_block(blk, settings)
        blk.metrics = analyze_block(blk, settings) if blk.lines else BlockMetrics()
        is_table = blk.classification is BlockKind.table
        for line in blk.lines:
            line.is_table = is_table
        logger.debug(
            "Block %s: %d lines, %d column bins",
            blk.classification.value,
            len(blk.lines),
            len(blk.metrics.column_bins),
        )


def summarize_blocks(blocks: Iterable[Block]) -> Dict[str, int]:
    """Count blocks per kind plus multi-column blocks and tokens.

    Blocks must already have been through :func:`classify_blocks`.
    """
    summary: Dict[str, int] = {kind.value: 0 for kind in BlockKind}
    summary["blocks"] = 0
    summary["multi_column"] = 0
    summary["tokens"] = 0
    for blk in blocks:
        summary["blocks"] += 1
        summary[blk.classification.value] += 1
        if blk.metrics is not None and blk.metrics.multi_column:
            summary["multi_column"] += 1
        summary["tokens"] += sum(len(line.tokens) for line in blk.lines)
    return summary
