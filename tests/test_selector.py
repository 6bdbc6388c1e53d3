"""Tests for the interactive selector state machine and its driver."""

from datetime import UTC, datetime
from pathlib import Path

import pytest
from rich.console import Console

from chatprune.cascade import DeletionError
from chatprune.scanner import Conversation
from chatprune.selector import Selector, State, render_browse, render_confirm, run_selection


def make_convs(n, *, active=()):
    return [
        Conversation(
            path=Path(f"/p/-home-dev-app/s{i}.jsonl"),
            session_id=f"s{i}",
            workspace_folder=Path("/p/-home-dev-app"),
            workspace_path="/home/dev/app",
            is_empty=False,
            is_active=i in active,
            title=f"Conversation {i}",
            timestamp=datetime(2024, 1, 1, tzinfo=UTC),
        )
        for i in range(n)
    ]


def press(selector, *keys, page_size=3):
    for key in keys:
        selector.handle_key(key, page_size=page_size)
    return selector


class FakeTerminal:
    """Scripted keys in, recorded output out."""

    def __init__(self, keys, height=20):
        self.keys = list(keys)
        self.height = height
        self.frames = []
        self.out = Console(record=True, width=120)
        self.err = Console(record=True, width=120)
        self.cursor_visible = True

    def read_key(self):
        return self.keys.pop(0)

    def draw(self, frame):
        self.frames.append(frame.plain)

    def clear(self):
        pass

    def hide_cursor(self):
        self.cursor_visible = False

    def show_cursor(self):
        self.cursor_visible = True

    def print(self, *objects, **kwargs):
        self.out.print(*objects, **kwargs)

    def print_error(self, *objects, **kwargs):
        self.err.print(*objects, **kwargs)

    @property
    def output(self):
        return self.out.export_text(clear=False)


class TestCursor:
    def test_moves_and_clamps(self):
        s = Selector(make_convs(3))

        press(s, "up")
        assert s.cursor == 0
        press(s, "down", "j", "down", "down")
        assert s.cursor == 2
        press(s, "k")
        assert s.cursor == 1

    def test_paging_clamps(self):
        s = Selector(make_convs(10))

        press(s, "pagedown", page_size=4)
        assert s.cursor == 4
        press(s, "pagedown", "pagedown", page_size=4)
        assert s.cursor == 9
        press(s, "pageup", page_size=4)
        assert s.cursor == 5
        press(s, "pageup", "pageup", page_size=4)
        assert s.cursor == 0


class TestSelection:
    def test_toggle_advances(self):
        s = Selector(make_convs(3))

        press(s, "space", "space")

        assert s.selected == [True, True, False]
        assert s.cursor == 2

    def test_toggle_on_last_item_stays(self):
        s = Selector(make_convs(2))

        press(s, "down", "space", "space")

        assert s.selected == [False, False]
        assert s.cursor == 1

    def test_select_all_and_none(self):
        s = Selector(make_convs(4))

        press(s, "a")
        assert s.selected_count == 4
        press(s, "n")
        assert s.selected_count == 0

    def test_selected_conversations_in_list_order(self):
        convs = make_convs(4)
        s = Selector(convs)

        press(s, "down", "down", "space", "up", "up", "up", "space")

        assert s.selected_conversations() == [convs[0], convs[2]]


class TestTransitions:
    def test_delete_without_selection_stays_browsing(self):
        s = Selector(make_convs(3))

        assert s.handle_key("enter") is State.BROWSING
        assert s.cursor == 0

    def test_delete_with_selection_confirms(self):
        s = press(Selector(make_convs(3)), "space")

        assert s.handle_key("enter") is State.CONFIRMING

    def test_cancel_clears_selection(self):
        s = press(Selector(make_convs(3)), "space", "space", "enter")

        assert s.handle_key("escape") is State.BROWSING
        assert s.selected == [False, False, False]
        assert s.cursor == 2

    def test_confirming_ignores_other_keys(self):
        s = press(Selector(make_convs(3)), "space", "enter")

        for key in ("j", "space", "a", "q"):
            assert s.handle_key(key) is State.CONFIRMING
        assert s.selected == [True, False, False]

    def test_confirm_finishes(self):
        s = press(Selector(make_convs(3)), "a", "enter")

        assert s.handle_key("enter") is State.FINISHED

    @pytest.mark.parametrize("key", ["q", "escape"])
    def test_quit(self, key):
        assert Selector(make_convs(1)).handle_key(key) is State.QUIT


class TestViewport:
    def test_size_from_terminal_height(self):
        assert Selector(make_convs(1)).viewport_size(30) == 20
        assert Selector(make_convs(1, active={0})).viewport_size(30) == 19

    def test_size_floor(self):
        assert Selector(make_convs(1)).viewport_size(5) == 3

    def test_scrolls_to_keep_cursor_visible(self):
        s = Selector(make_convs(10))

        assert s.scroll(3) == range(0, 3)
        press(s, "down", "down", "down", "down")
        assert s.scroll(3) == range(2, 5)
        press(s, "up", "up")
        assert s.scroll(3) == range(2, 5)
        press(s, "up")
        assert s.scroll(3) == range(1, 4)

    def test_window_clipped_at_end(self):
        s = Selector(make_convs(2))

        assert s.scroll(5) == range(0, 2)


class TestRender:
    def test_browse_frame(self):
        s = press(Selector(make_convs(5, active={1})), "space")

        frame = render_browse(s, term_height=14).plain

        assert "Total: 5 | Selected: 1 | Showing: 1-3/5" in frame
        assert "1 active (modified <5min, marked with *)" in frame
        assert "[/] " in frame
        assert "*Conversation 1" in frame
        assert "Conversation 3" not in frame
        assert "Delete 1 chat(s)?" in frame

    def test_browse_help_line_without_selection(self):
        frame = render_browse(Selector(make_convs(1)), term_height=20).plain

        assert "[Space]Select" in frame

    def test_confirm_frame_warns_about_active(self):
        s = press(Selector(make_convs(3, active={0})), "a")

        frame = render_confirm(s).plain

        assert "WARNING: 1 conversation(s) may be currently in use!" in frame
        assert "3 conversations to delete:" in frame
        assert "  - Conversation 0 [ACTIVE] (/home/dev/app)" in frame
        assert "may cause errors" in frame

    def test_confirm_frame_without_active(self):
        s = press(Selector(make_convs(2)), "space")

        frame = render_confirm(s).plain

        assert "WARNING" not in frame
        assert "Press ENTER to confirm, ESC to cancel" in frame


class TestRunSelection:
    def test_quit_deletes_nothing(self):
        deleted = []
        term = FakeTerminal(["space", "q"])

        result = run_selection(make_convs(3), term, delete=deleted.append)

        assert result is None
        assert deleted == []
        assert "Cancelled." in term.output
        assert term.cursor_visible

    def test_confirmed_delete(self):
        convs = make_convs(3)
        deleted = []

        def fake_delete(conv):
            deleted.append(conv)
            return 2

        term = FakeTerminal(["space", "down", "space", "enter", "enter", "x"])
        summary = run_selection(convs, term, delete=fake_delete)

        assert deleted == [convs[0], convs[2]]
        assert summary.files == 4
        assert summary.ok
        assert "Deleted 4 files (2 chats + related agents)" in term.output
        assert "Press any key to exit..." in term.output
        assert term.keys == []

    def test_partial_failure_reported(self):
        convs = make_convs(3)

        def flaky_delete(conv):
            if conv.session_id == "s1":
                raise DeletionError(conv.path, PermissionError("denied"))
            return 1

        term = FakeTerminal(["a", "enter", "enter", "x"])
        summary = run_selection(convs, term, delete=flaky_delete)

        assert summary.files == 2
        assert len(summary.failures) == 1
        assert "Deleted 2 files (1 failed)" in term.output
        assert "ERR s1" in term.err.export_text()

    def test_cancel_then_quit(self):
        deleted = []
        term = FakeTerminal(["space", "enter", "escape", "q"])

        assert run_selection(make_convs(2), term, delete=deleted.append) is None
        assert deleted == []
        assert any("conversations to delete" in f for f in term.frames)

    def test_empty_list_returns_immediately(self):
        term = FakeTerminal([])

        assert run_selection([], term) is None
        assert term.frames == []
