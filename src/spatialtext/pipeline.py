"""Pipeline stage infrastructure: gating, timing, and stage-result recording.

Provides the canonical contract for the single-page flow:

    grouping → classify → quantize → flow

Every stage produces a :class:`StageResult`.  Gating logic is centralised
in :func:`gate` so every caller (editor session, scripts, tests) behaves
identically.

:func:`run_page` orchestrates one page and returns structured results
without performing any I/O.
"""

from __future__ import annotations

import logging
import time
import traceback
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generator, List, Optional

from .classify import classify_blocks, summarize_blocks
from .config import LayoutConfig
from .flow import flow_blocks
from .grid import Grid, GridBuild, PlacementPolicy, build_grid
from .grouping import build_lines, group_blocks
from .models import Block, Line, TokenStore

logger = logging.getLogger("spatialtext.pipeline")

# ── Skip reasons (exhaustive enumeration) ──────────────────────────────


class SkipReason(str, Enum):
    """Why a pipeline stage was skipped."""

    disabled_by_config = "disabled_by_config"
    no_tokens = "no_tokens"
    not_applicable = "not_applicable"


# ── Stage result ───────────────────────────────────────────────────────


@dataclass
class StageResult:
    """Outcome record for a single pipeline stage."""

    stage: str
    enabled: bool = False
    ran: bool = False
    status: str = "skipped"  # "success" | "skipped" | "failed"
    skip_reason: Optional[str] = None
    duration_ms: int = 0
    counts: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize stage result to a JSON-compatible dict."""
        d: Dict[str, Any] = {
            "stage": self.stage,
            "enabled": self.enabled,
            "ran": self.ran,
            "status": self.status,
        }
        if self.skip_reason is not None:
            d["skip_reason"] = self.skip_reason
        d["duration_ms"] = self.duration_ms
        if self.counts:
            d["counts"] = self.counts
        if self.error is not None:
            d["error"] = self.error
        return d


# ── Canonical gating function ──────────────────────────────────────────

STAGE_ORDER: List[str] = [
    "grouping",
    "classify",
    "quantize",
    "flow",
]


def gate(
    stage: str,
    cfg: LayoutConfig,
    inputs: Dict[str, Any] | None = None,
) -> tuple[bool, Optional[str]]:
    """Decide whether *stage* should run.

    Parameters
    ----------
    stage : str
        One of :data:`STAGE_ORDER`.
    cfg : LayoutConfig
        Effective configuration for the run.
    inputs : dict, optional
        Lightweight metadata about upstream outputs
        (e.g. ``{"tokens": 1500}``).

    Returns
    -------
    (should_run, skip_reason)
    """
    if inputs is None:
        inputs = {}

    # An empty page still gets an (empty) grid.
    if stage == "quantize":
        return True, None

    if stage in ("grouping", "classify"):
        if not inputs.get("tokens", 0):
            return False, SkipReason.no_tokens.value
        return True, None

    if stage == "flow":
        if not cfg.enable_flow:
            return False, SkipReason.disabled_by_config.value
        return True, None

    return False, SkipReason.not_applicable.value


# ── Stage context manager ──────────────────────────────────────────────


@contextmanager
def run_stage(
    stage: str,
    cfg: LayoutConfig,
    inputs: Dict[str, Any] | None = None,
) -> Generator[StageResult, None, None]:
    """Context manager that wraps a pipeline stage with gating + timing.

    Usage::

        with run_stage("grouping", cfg, {"tokens": n}) as sr:
            if sr.ran:
                ...
                sr.counts["lines"] = len(lines)

    The yielded :class:`StageResult` has ``ran=True`` only when
    :func:`gate` approves the stage.
    """
    should_run, skip_reason = gate(stage, cfg, inputs)

    sr = StageResult(stage=stage)
    sr.enabled = cfg.enable_flow if stage == "flow" else True

    if not should_run:
        sr.ran = False
        sr.status = "skipped"
        sr.skip_reason = skip_reason
        yield sr
        return

    sr.ran = True
    t0 = time.perf_counter()
    try:
        yield sr
        if sr.status not in ("success", "failed"):
            sr.status = "success"
    except Exception as exc:
        sr.status = "failed"
        sr.error = {
            "type": type(exc).__name__,
            "message": str(exc),
            "stack": traceback.format_exc(),
        }
        raise
    finally:
        elapsed = time.perf_counter() - t0
        sr.duration_ms = int(elapsed * 1000)


# ── Page-level result container ────────────────────────────────────────


@dataclass
class PageResult:
    """Structured result from :func:`run_page` for a single page."""

    page_index: int = 0
    lines: List[Line] = field(default_factory=list)
    blocks: List[Block] = field(default_factory=list)
    build: Optional[GridBuild] = None
    flowed_text: str = ""
    summary: Dict[str, int] = field(default_factory=dict)
    stages: Dict[str, StageResult] = field(default_factory=dict)

    @property
    def grid(self) -> Optional[Grid]:
        return self.build.grid if self.build is not None else None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the page result (without grid cells)."""
        return {
            "page_index": self.page_index,
            "summary": dict(self.summary),
            "grid": self.build.to_dict() if self.build is not None else None,
            "blocks": [blk.to_dict() for blk in self.blocks],
            "flowed_text": self.flowed_text,
            "stages": {name: sr.to_dict() for name, sr in self.stages.items()},
        }


def run_page(
    store: TokenStore,
    cfg: LayoutConfig | None = None,
    policy: PlacementPolicy | str | None = None,
    grid: Optional[Grid] = None,
    blocks: Optional[List[Block]] = None,
) -> PageResult:
    """Run grouping → classify → quantize → flow for one page.

    Parameters
    ----------
    store : TokenStore
        Tokens for the page (may be empty).
    cfg : LayoutConfig, optional
        Defaults are used when ``None``.
    policy : PlacementPolicy or str, optional
        Grid placement policy; defaults to ``cfg.placement_policy``.
    grid : Grid, optional
        Grid to reuse (grown, never shrunk).
    blocks : list of Block, optional
        Pre-built block structure (e.g. ALTO ``TextBlock``\\ s); skips the
        line/block grouping of *store*.

    Returns
    -------
    PageResult
    """
    if cfg is None:
        cfg = LayoutConfig()
    if policy is not None:
        policy = PlacementPolicy(policy)

    result = PageResult(page_index=store.page_index)
    n_tokens = len(store) if blocks is None else sum(len(b.tokens()) for b in blocks)

    with run_stage("grouping", cfg, {"tokens": n_tokens}) as sr:
        if sr.ran:
            if blocks is None:
                result.lines = build_lines(store, cfg)
                result.blocks = group_blocks(result.lines, cfg)
            else:
                result.blocks = list(blocks)
                result.lines = [ln for blk in result.blocks for ln in blk.lines]
            sr.counts = {"lines": len(result.lines), "blocks": len(result.blocks)}
    result.stages["grouping"] = sr

    with run_stage("classify", cfg, {"tokens": n_tokens}) as sr:
        if sr.ran:
            classify_blocks(result.blocks, cfg)
            result.summary = summarize_blocks(result.blocks)
            sr.counts = dict(result.summary)
    result.stages["classify"] = sr
    if not result.summary:
        result.summary = summarize_blocks(result.blocks)

    with run_stage("quantize", cfg) as sr:
        if sr.ran:
            result.build = build_grid(result.blocks, cfg, policy=policy, grid=grid)
            sr.counts = result.build.to_dict()
    result.stages["quantize"] = sr

    with run_stage("flow", cfg) as sr:
        if sr.ran:
            result.flowed_text = flow_blocks(result.blocks, cfg)
            sr.counts = {"chars": len(result.flowed_text)}
    result.stages["flow"] = sr

    logger.info(
        "Page %d: %d tokens, %d blocks (%d table, %d paragraph, %d unknown, "
        "%d multi-column)",
        result.page_index,
        result.summary.get("tokens", 0),
        result.summary.get("blocks", 0),
        result.summary.get("table", 0),
        result.summary.get("paragraph", 0),
        result.summary.get("unknown", 0),
        result.summary.get("multi_column", 0),
    )
    return result
