"""Tests for spatialtext.session — editor state and the edit session."""

import pytest
from conftest import make_token

from spatialtext.bridge import Viewport, to_text
from spatialtext.config import LayoutConfig
from spatialtext.grid import PlacementPolicy
from spatialtext.models import TokenStore
from spatialtext.session import EditorState, EditSession


@pytest.fixture
def session(page_store):
    s = EditSession(viewport=Viewport(visible_width=40, visible_height=10))
    s.load_page(page_store)
    return s


class TestEditorState:
    def test_accumulate_scroll(self):
        state = EditorState()
        assert state.accumulate_scroll(0.4) == 0
        assert state.accumulate_scroll(0.4) == 0
        assert state.accumulate_scroll(0.4) == 1
        assert state.scroll_accumulator == pytest.approx(0.2)

    def test_accumulate_negative(self):
        state = EditorState()
        assert state.accumulate_scroll(-2.5) == -2
        assert state.scroll_accumulator == pytest.approx(-0.5)

    def test_reset_keeps_viewport_size(self):
        state = EditorState(viewport=Viewport(offset_x=5, offset_y=9, visible_width=50))
        state.text_dirty = True
        state.scroll_accumulator = 0.7
        state.detector.update("x")
        state.reset(3)
        assert state.page_index == 3
        assert state.viewport == Viewport(visible_width=50)
        assert state.scroll_accumulator == 0.0
        assert state.text_dirty is False
        assert state.needs_repaint is True
        assert state.detector.last is None


class TestLoadPage:
    def test_text_rows_match_grid_rows(self, session):
        rows = session.text.split("\n")
        assert rows[7].lstrip().startswith("CITY CASH MANAGEMENT")
        assert session.text == to_text(session.grid, trim_leading=False)

    def test_flowed_text_available(self, session):
        assert session.flowed_text().startswith("CITY CASH MANAGEMENT")

    def test_new_page_resets_state(self, session):
        session.scroll(3, 4)
        store = TokenStore.from_records([make_token("next", 0, 0)], page_index=1)
        session.load_page(store)
        assert session.state.page_index == 1
        assert session.state.viewport.offset_y == 0
        assert session.state.viewport.visible_width == 40
        assert session.text == "next"

    def test_flowed_policy(self, page_store):
        s = EditSession(cfg=LayoutConfig(placement_policy="flowed"))
        s.load_page(page_store)
        assert s.policy is PlacementPolicy.flowed
        assert s.text.split("\n")[0] == "CITY CASH MANAGEMENT AND INVESTMENT POLICIES"

    def test_before_load(self):
        s = EditSession()
        assert s.text == ""
        assert s.flowed_text() == ""
        assert s.viewport_text() == ""


class TestApplyEdit:
    def test_unchanged_text_is_ignored(self, session):
        session.mark_painted()
        assert session.apply_edit(session.text) is False
        assert session.state.text_dirty is False
        assert session.state.needs_repaint is False

    def test_edit_rewrites_grid(self, session):
        rows = session.text.split("\n")
        rows[0] = "EDITED"
        assert session.apply_edit("\n".join(rows)) is True
        assert session.grid.row_string(0).startswith("EDITED")
        assert session.text.startswith("EDITED")
        assert session.state.text_dirty is True
        assert session.state.needs_repaint is True

    def test_repeated_edit_is_ignored(self, session):
        assert session.apply_edit("once") is True
        assert session.apply_edit("once") is False

    def test_edit_clipped_to_grid(self, session):
        width = session.grid.width
        session.apply_edit("x" * (width + 5))
        assert session.grid.row_string(0) == "x" * width
        assert session.grid.width == width

    def test_empty_edit_blanks_grid(self, session):
        assert session.apply_edit("") is True
        assert session.text == ""

    def test_rebuild_restores_layout(self, session):
        original = session.text
        session.apply_edit("scratch")
        session.rebuild()
        assert session.text == original
        assert session.state.text_dirty is False


class TestViewportControl:
    def test_viewport_text(self, session):
        session.scroll(0, 7)
        first = session.viewport_text().split("\n")[0]
        assert first.lstrip().startswith("CITY")
        assert len(session.viewport_text().split("\n")) == 10

    def test_scroll_clamps(self, session):
        vp = session.scroll(-5, -5)
        assert (vp.offset_x, vp.offset_y) == (0, 0)

    def test_scroll_far_beyond_grid(self, session):
        session.scroll(10_000, 10_000)
        assert session.viewport_text() == "\n" * 9

    def test_scroll_lines(self, session):
        session.scroll_lines(0.6)
        assert session.state.viewport.offset_y == 0
        session.scroll_lines(0.6)
        assert session.state.viewport.offset_y == 1

    def test_resize(self, session):
        vp = session.resize_viewport(20, 2)
        assert (vp.visible_width, vp.visible_height) == (20, 2)
        assert len(session.viewport_text().split("\n")) == 2

    def test_repaint_flags(self, session):
        session.mark_painted()
        session.scroll(0, 0)
        assert session.state.needs_repaint is False
        session.scroll(0, 1)
        assert session.state.needs_repaint is True
