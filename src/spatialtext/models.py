from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

log = logging.getLogger(__name__)

# Coordinates are clamped to +-MAX_COORD so sums and products stay finite.
MAX_COORD = 1e9


def _finite(value: Any) -> float:
    """Coerce *value* to a bounded float; NaN and infinities become 0.0."""
    try:
        f = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(f):
        return 0.0
    return max(-MAX_COORD, min(MAX_COORD, f))


@dataclass(frozen=True)
class Token:
    """Smallest unit: one positioned run of text from the extraction layer.

    Coordinates use a top-left origin with y increasing downward.
    """

    content: str
    h_pos: float
    v_pos: float
    width: float = 0.0
    height: float = 0.0

    def __post_init__(self) -> None:
        # Frozen: coerce through object.__setattr__ so every downstream
        # computation sees finite numbers.
        for name in ("h_pos", "v_pos", "width", "height"):
            object.__setattr__(self, name, _finite(getattr(self, name)))

    def right(self) -> float:
        """Right edge (``h_pos + width``)."""
        return self.h_pos + self.width

    def bottom(self) -> float:
        """Bottom edge (``v_pos + height``)."""
        return self.v_pos + self.height

    def bbox(self) -> Tuple[float, float, float, float]:
        """Bounding box as ``(x0, y0, x1, y1)``."""
        return (self.h_pos, self.v_pos, self.right(), self.bottom())

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "content": self.content,
            "h_pos": round(self.h_pos, 3),
            "v_pos": round(self.v_pos, 3),
            "width": round(self.width, 3),
            "height": round(self.height, 3),
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Token":
        """Deserialize from a dict produced by :meth:`to_dict`."""
        return cls(
            content=str(d.get("content") or ""),
            h_pos=d.get("h_pos", 0.0),
            v_pos=d.get("v_pos", 0.0),
            width=d.get("width", 0.0),
            height=d.get("height", 0.0),
        )


TokenRecord = Union[Token, Mapping[str, Any]]


@dataclass
class TokenStore:
    """Ordered tokens for the page currently being processed.

    Tokens with empty content are dropped at ingestion; nothing else is.
    """

    tokens: List[Token] = field(default_factory=list)
    page_index: int = 0

    @classmethod
    def from_records(
        cls, records: Iterable[TokenRecord], page_index: int = 0
    ) -> "TokenStore":
        """Build a store from Tokens or ``{content, h_pos, ...}`` mappings."""
        tokens: List[Token] = []
        skipped = 0
        for rec in records:
            tok = rec if isinstance(rec, Token) else Token.from_dict(rec)
            if not tok.content:
                skipped += 1
                continue
            tokens.append(tok)
        if skipped:
            log.debug("Page %d: dropped %d empty tokens", page_index, skipped)
        return cls(tokens=tokens, page_index=page_index)

    def __len__(self) -> int:
        return len(self.tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self.tokens)

    def __bool__(self) -> bool:
        return bool(self.tokens)


@dataclass
class Line:
    """Tokens sharing an inferred vertical band, ordered by ``h_pos``."""

    tokens: List[Token] = field(default_factory=list)
    avg_v_pos: float = 0.0
    is_table: bool = False

    @classmethod
    def from_tokens(cls, tokens: Iterable[Token]) -> "Line":
        """Copy *tokens* in, stable-sort by ``h_pos``, and compute the mean v_pos."""
        ordered = sorted(tokens, key=lambda t: t.h_pos)
        avg = sum(t.v_pos for t in ordered) / len(ordered) if ordered else 0.0
        return cls(tokens=ordered, avg_v_pos=avg)

    def left(self) -> float:
        """Leftmost ``h_pos`` (0.0 for an empty line)."""
        return min((t.h_pos for t in self.tokens), default=0.0)

    def right(self) -> float:
        """Rightmost token edge (0.0 for an empty line)."""
        return max((t.right() for t in self.tokens), default=0.0)

    def text(self) -> str:
        """Join token contents with single spaces."""
        return " ".join(t.content for t in self.tokens)

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "tokens": [t.to_dict() for t in self.tokens],
            "avg_v_pos": round(self.avg_v_pos, 3),
            "is_table": self.is_table,
        }


class BlockKind(str, Enum):
    """Closed set of block classifications."""

    table = "table"
    paragraph = "paragraph"
    unknown = "unknown"
    empty = "empty"


@dataclass
class BlockMetrics:
    """Layout measurements backing a block classification."""

    line_count: int = 0
    left_margin_mean: float = 0.0
    left_margin_variance: float = 0.0
    avg_content_width: float = 0.0
    column_bins: List[float] = field(default_factory=list)
    big_gap_ratio: float = 0.0

    @property
    def multi_column(self) -> bool:
        return len(self.column_bins) >= 2

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "line_count": self.line_count,
            "left_margin_mean": round(self.left_margin_mean, 3),
            "left_margin_variance": round(self.left_margin_variance, 3),
            "avg_content_width": round(self.avg_content_width, 3),
            "column_bins": [round(b, 3) for b in self.column_bins],
            "big_gap_ratio": round(self.big_gap_ratio, 4),
            "multi_column": self.multi_column,
        }


@dataclass
class Block:
    """A contiguous run of lines judged to belong together."""

    lines: List[Line] = field(default_factory=list)
    classification: BlockKind = BlockKind.unknown
    metrics: Optional[BlockMetrics] = field(default=None, repr=False)

    def tokens(self) -> List[Token]:
        """All tokens in line order."""
        return [t for line in self.lines for t in line.tokens]

    def bbox(self) -> Tuple[float, float, float, float]:
        """Bounding box enclosing every token, or ``(0, 0, 0, 0)`` when empty."""
        toks = self.tokens()
        if not toks:
            return (0, 0, 0, 0)
        return (
            min(t.h_pos for t in toks),
            min(t.v_pos for t in toks),
            max(t.right() for t in toks),
            max(t.bottom() for t in toks),
        )

    def to_dict(self) -> dict:
        """Serialize to JSON-friendly dict.  Eagerly evaluates bbox()."""
        return {
            "classification": self.classification.value,
            "bbox": [round(v, 3) for v in self.bbox()],
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "lines": [ln.to_dict() for ln in self.lines],
        }
