"""Shared test fixtures for spatialtext."""

import pytest

from spatialtext.config import LayoutConfig
from spatialtext.models import Block, Line, Token, TokenStore

# ── Helpers ────────────────────────────────────────────────────────────


def make_token(
    content: str,
    h_pos: float,
    v_pos: float,
    width: float = 30.0,
    height: float = 10.0,
) -> Token:
    """Create a Token with sane defaults."""
    return Token(content=content, h_pos=h_pos, v_pos=v_pos, width=width, height=height)


def make_line(
    tokens: list[tuple[str, float, float, float]],
    is_table: bool = False,
) -> Line:
    """Build a Line from ``(content, h_pos, v_pos, width)`` tuples."""
    line = Line.from_tokens(make_token(c, x, y, w) for c, x, y, w in tokens)
    line.is_table = is_table
    return line


def make_block(rows: list[list[tuple[str, float, float, float]]]) -> Block:
    """Build a Block with one Line per row of ``(content, h_pos, v_pos, width)``."""
    return Block(lines=[make_line(row) for row in rows])


# ── Fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def default_cfg() -> LayoutConfig:
    """Return a default LayoutConfig."""
    return LayoutConfig()


@pytest.fixture
def title_tokens() -> list[Token]:
    """Title line of a municipal finance page (one ALTO TextLine).

    "CITY CASH MANAGEMENT AND INVESTMENT POLICIES" at v_pos 84.8.
    """
    return [
        make_token("CITY", 160.8, 84.8, 26.4, 10.6),
        make_token("CASH", 189.8, 84.8, 29.3, 10.6),
        make_token("MANAGEMENT", 221.8, 84.8, 79.8, 10.6),
        make_token("AND", 304.3, 84.8, 22.9, 10.6),
        make_token("INVESTMENT", 329.9, 84.8, 71.0, 10.6),
        make_token("POLICIES", 403.5, 84.8, 50.5, 10.6),
    ]


@pytest.fixture
def paragraph_block() -> Block:
    """Three full-width lines sharing a left margin."""
    return make_block(
        [
            [("Due", 72.0, 200.0, 20.0), ("to", 96.0, 200.0, 10.0), ("the", 110.0, 200.0, 400.0)],
            [("City", 72.0, 213.0, 22.0), ("issues", 98.0, 213.0, 30.0), ("notes", 132.0, 213.0, 380.0)],
            [("and", 73.0, 226.0, 18.0), ("makes", 95.0, 226.0, 30.0), ("payments", 129.0, 226.0, 360.0)],
        ]
    )


@pytest.fixture
def table_block() -> Block:
    """Three rows of five right-aligned money columns."""
    xs = [100.0, 180.0, 260.0, 340.0, 420.0]
    rows = []
    for r, values in enumerate(
        [
            ["$285.00", "$173.00", "$127.00", "$100.00", "$130.00"],
            ["$50.00", "$50.00", "N/A", "N/A", "N/A"],
            ["7.38%", "4.82%", "3.43%", "2.63%", "3.43%"],
        ]
    ):
        rows.append([(v, x, 400.0 + r * 14.0, 24.0) for v, x in zip(values, xs)])
    return make_block(rows)


@pytest.fixture
def page_store(title_tokens) -> TokenStore:
    """Title, a short paragraph, and a small table, in shuffled order."""
    body = [
        make_token("General", 78.6, 108.5, 36.4, 10.6),
        make_token("Fund", 117.7, 108.5, 24.1, 10.6),
        make_token("$285.00", 100.0, 200.0, 30.0, 10.0),
        make_token("$173.00", 200.0, 200.0, 30.0, 10.0),
        make_token("$50.00", 100.0, 214.0, 30.0, 10.0),
        make_token("N/A", 200.0, 214.0, 20.0, 10.0),
    ]
    tokens = list(reversed(title_tokens + body))
    return TokenStore.from_records(tokens, page_index=0)
