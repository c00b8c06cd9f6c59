from dataclasses import dataclass


class ConfigValidationError(ValueError):
    """Raised when a LayoutConfig field has an invalid value."""


def _check_range(
    name: str, value: float, lo: float, hi: float, *, inclusive: bool = True
) -> None:
    if inclusive:
        if not (lo <= value <= hi):
            raise ConfigValidationError(f"{name}={value} out of range [{lo}, {hi}]")
    else:
        if not (lo < value < hi):
            raise ConfigValidationError(f"{name}={value} out of range ({lo}, {hi})")


def _check_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ConfigValidationError(f"{name}={value} must be > 0")


def _check_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ConfigValidationError(f"{name}={value} must be >= 0")


PLACEMENT_POLICIES = ("raw", "flowed")


@dataclass
class LayoutConfig:
    """Tunables for token grouping, classification, and grid layout.

    All distances are in source coordinate units (ALTO / PDF points).
    """

    # ── Line grouping ─────────────────────────────────────────────────
    # Height of one vertical bucket; tokens sharing floor(v_pos / h) form a line.
    line_bucket_height: float = 12.0
    # Vertical distance between successive lines that starts a new block.
    block_gap: float = 20.0

    # ── Block classification ──────────────────────────────────────────
    # A token x-position joins a column bin within this distance of its centroid.
    column_bin_threshold: float = 40.0
    # Gap between sorted right edges that counts as a "big gap" on a line.
    big_gap_threshold: float = 50.0
    # Fraction of big-gap lines above which a multi-column block is a table.
    table_gap_ratio: float = 0.25
    # Left-margin variance below which a block may be a paragraph.
    paragraph_margin_variance: float = 20.0
    # Average line content width above which a block may be a paragraph.
    paragraph_min_width: float = 200.0

    # ── Grid quantization ─────────────────────────────────────────────
    # Source units per grid column / per grid row.
    char_width: float = 6.0
    line_height: float = 12.0
    # Minimum grid dimensions (cells).
    grid_min_width: int = 140
    grid_min_height: int = 60
    # Maximum grid dimensions (cells); coordinates beyond clamp to the last cell.
    grid_max_width: int = 1000
    grid_max_height: int = 1000
    # Additive padding beyond the content bounding box (cells).
    grid_padding_cols: int = 10
    grid_padding_rows: int = 5
    # "raw" places tokens at quantized coordinates (first writer wins);
    # "flowed" lays out the text-flow rendering row by row.
    placement_policy: str = "raw"

    # ── Text flow ─────────────────────────────────────────────────────
    # Gap at or below which successive lines join on one output line.
    line_gap: float = 12.0
    # Each further paragraph_gap beyond section_gap adds one more break.
    paragraph_gap: float = 20.0
    # Gap above which lines are separated by a blank line.
    section_gap: float = 40.0
    # Upper bound on newlines emitted between two lines.
    max_breaks: int = 5
    # Filler-space bounds between adjacent tokens on table lines.
    table_min_spaces: int = 1
    table_max_spaces: int = 20
    # Produce flowed text alongside the grid in the page pipeline.
    enable_flow: bool = True

    # ── Extraction adapters ───────────────────────────────────────────
    # pdfplumber extract_words() tolerances (pts).
    pdf_x_tolerance: float = 3.0
    pdf_y_tolerance: float = 3.0
    # Executable used to produce ALTO XML from a PDF page.
    pdfalto_command: str = "pdfalto"
    # Timeout (seconds) for one pdfalto invocation.
    extraction_timeout_s: float = 60.0

    def __post_init__(self) -> None:
        """Validate field ranges to catch misconfiguration early."""
        _check_range("table_gap_ratio", self.table_gap_ratio, 0.0, 1.0)

        # -- Strictly positive floats --
        _pos_floats = [
            "line_bucket_height",
            "column_bin_threshold",
            "big_gap_threshold",
            "char_width",
            "line_height",
            "line_gap",
            "paragraph_gap",
            "section_gap",
            "extraction_timeout_s",
        ]
        for name in _pos_floats:
            _check_positive(name, getattr(self, name))

        # -- Non-negative floats --
        _nn_floats = [
            "block_gap",
            "paragraph_margin_variance",
            "paragraph_min_width",
            "pdf_x_tolerance",
            "pdf_y_tolerance",
        ]
        for name in _nn_floats:
            _check_non_negative(name, getattr(self, name))

        # -- Positive ints --
        _pos_ints = [
            "grid_min_width",
            "grid_min_height",
            "max_breaks",
            "table_min_spaces",
        ]
        for name in _pos_ints:
            val = getattr(self, name)
            if val < 1:
                raise ConfigValidationError(f"{name}={val} must be >= 1")

        _check_non_negative("grid_padding_cols", self.grid_padding_cols)
        _check_non_negative("grid_padding_rows", self.grid_padding_rows)

        if self.grid_max_width < self.grid_min_width:
            raise ConfigValidationError(
                f"grid_max_width ({self.grid_max_width}) must be >= "
                f"grid_min_width ({self.grid_min_width})"
            )
        if self.grid_max_height < self.grid_min_height:
            raise ConfigValidationError(
                f"grid_max_height ({self.grid_max_height}) must be >= "
                f"grid_min_height ({self.grid_min_height})"
            )

        if self.table_max_spaces < self.table_min_spaces:
            raise ConfigValidationError(
                f"table_max_spaces ({self.table_max_spaces}) must be >= "
                f"table_min_spaces ({self.table_min_spaces})"
            )

        # -- Break thresholds must be ordered --
        if not (self.line_gap <= self.paragraph_gap <= self.section_gap):
            raise ConfigValidationError(
                f"line_gap ({self.line_gap}) <= paragraph_gap "
                f"({self.paragraph_gap}) <= section_gap ({self.section_gap}) required"
            )

        if self.placement_policy not in PLACEMENT_POLICIES:
            raise ConfigValidationError(
                f"placement_policy={self.placement_policy!r} must be 'raw' or 'flowed'"
            )

        if not self.pdfalto_command:
            raise ConfigValidationError("pdfalto_command must not be empty")
