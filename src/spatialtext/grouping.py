from __future__ import annotations

import math
from collections import defaultdict
from typing import Dict, Iterable, List

from .config import LayoutConfig
from .models import Block, Line, Token


def _bucket_key(v_pos: float, bucket_height: float) -> int:
    return math.floor(v_pos / bucket_height)


def build_lines(tokens: Iterable[Token], settings: LayoutConfig) -> List[Line]:
    """Partition tokens into lines by vertical bucket.

    Bucket key is ``floor(v_pos / line_bucket_height)``; buckets are
    visited top of page first.  Within a line tokens are stable-sorted by
    ``h_pos`` so the same input always yields the same lines.

    Args:
        tokens: Tokens in any order
        settings: LayoutConfig with line_bucket_height

    Returns:
        List of Line objects sorted by bucket
    """
    buckets: Dict[int, List[Token]] = defaultdict(list)
    for tok in tokens:
        buckets[_bucket_key(tok.v_pos, settings.line_bucket_height)].append(tok)

    return [Line.from_tokens(buckets[key]) for key in sorted(buckets)]


def group_blocks(lines: Iterable[Line], settings: LayoutConfig) -> List[Block]:
    """Split lines into contiguous blocks at large vertical gaps.

    A new block starts whenever the distance between successive lines'
    ``avg_v_pos`` exceeds ``settings.block_gap``.
    """
    ordered = sorted(lines, key=lambda ln: ln.avg_v_pos)
    blocks: List[Block] = []
    current: List[Line] = []
    prev_v = 0.0
    for line in ordered:
        if current and line.avg_v_pos - prev_v > settings.block_gap:
            blocks.append(Block(lines=current))
            current = []
        current.append(line)
        prev_v = line.avg_v_pos
    if current:
        blocks.append(Block(lines=current))
    return blocks
