"""Tests for Container, TUI rendering and TUI input routing."""

from __future__ import annotations

from replprompt.keys import MouseEvent
from replprompt.tui import CURSOR_MARKER, TUI, Container, extract_cursor_position, is_focusable

from .virtual_terminal import VirtualTerminal


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class SimpleText:
    """A trivial component that renders a fixed string."""

    def __init__(self, text: str) -> None:
        self.text = text

    def render(self, width: int) -> list[str]:
        return [self.text]

    def invalidate(self) -> None:
        pass


class MultiLineText:
    """A component that renders multiple lines."""

    def __init__(self, lines: list[str]) -> None:
        self.lines = lines

    def render(self, width: int) -> list[str]:
        return list(self.lines)

    def invalidate(self) -> None:
        pass


class InputRecorder(MultiLineText):
    """Focusable component that records keys and mouse events."""

    def __init__(self, lines: list[str]) -> None:
        super().__init__(lines)
        self.focused = False
        self.keys: list[str] = []
        self.mouse: list[MouseEvent] = []

    def handle_input(self, data: str) -> None:
        self.keys.append(data)

    def handle_mouse(self, event: MouseEvent) -> None:
        self.mouse.append(event)


def _started(rows: int = 24, columns: int = 80) -> tuple[VirtualTerminal, TUI]:
    term = VirtualTerminal(rows=rows, columns=columns)
    tui = TUI(term)
    tui.start()
    return term, tui


# ---------------------------------------------------------------------------
# Container tests
# ---------------------------------------------------------------------------


class TestContainer:
    def test_add_child(self) -> None:
        container = Container()
        child = SimpleText("a")
        container.add_child(child)
        assert container.children == [child]

    def test_remove_child(self) -> None:
        container = Container()
        a, b = SimpleText("a"), SimpleText("b")
        container.add_child(a)
        container.add_child(b)
        container.remove_child(a)
        assert container.children == [b]

    def test_remove_absent_child_is_noop(self) -> None:
        container = Container()
        container.add_child(SimpleText("a"))
        container.remove_child(SimpleText("other"))
        assert len(container.children) == 1

    def test_clear_removes_all(self) -> None:
        container = Container()
        container.add_child(SimpleText("a"))
        container.add_child(SimpleText("b"))
        container.clear()
        assert container.children == []

    def test_render_concatenates_in_order(self) -> None:
        container = Container()
        container.add_child(MultiLineText(["line1", "line2"]))
        container.add_child(SimpleText("after"))
        assert container.render(80) == ["line1", "line2", "after"]

    def test_width_is_forwarded_to_children(self) -> None:
        received_widths: list[int] = []

        class WidthRecorder:
            def render(self, width: int) -> list[str]:
                received_widths.append(width)
                return ["x"]

            def invalidate(self) -> None:
                pass

        container = Container()
        container.add_child(WidthRecorder())
        container.render(42)
        assert received_widths == [42]

    def test_invalidate_calls_children(self) -> None:
        invalidated: list[str] = []

        class TrackingComponent:
            def __init__(self, name: str) -> None:
                self.name = name

            def render(self, width: int) -> list[str]:
                return [self.name]

            def invalidate(self) -> None:
                invalidated.append(self.name)

        container = Container()
        container.add_child(TrackingComponent("a"))
        container.add_child(TrackingComponent("b"))
        container.invalidate()
        assert invalidated == ["a", "b"]


# ---------------------------------------------------------------------------
# Cursor marker
# ---------------------------------------------------------------------------


class TestExtractCursorPosition:
    def test_no_marker(self) -> None:
        lines, row, col = extract_cursor_position(["abc", "def"])
        assert lines == ["abc", "def"]
        assert row is None

    def test_marker_is_removed_and_located(self) -> None:
        lines, row, col = extract_cursor_position(["abc", "de" + CURSOR_MARKER + "f"])
        assert lines == ["abc", "def"]
        assert row == 1
        assert col == 2

    def test_column_ignores_escape_sequences(self) -> None:
        lines, row, col = extract_cursor_position(["\x1b[31mab\x1b[0m" + CURSOR_MARKER])
        assert col == 2


# ---------------------------------------------------------------------------
# TUI rendering
# ---------------------------------------------------------------------------


class TestTUIRender:
    def test_render_before_start_is_noop(self) -> None:
        term = VirtualTerminal()
        tui = TUI(term)
        tui.add_child(SimpleText("hidden"))
        tui.request_render()
        assert term.output == ""

    def test_start_draws_first_frame(self) -> None:
        term, tui = _started()
        tui.add_child(SimpleText("hello world"))
        tui.do_render()
        assert "hello world" in term.output
        assert not term.cursor_visible

    def test_children_order_in_output(self) -> None:
        term, tui = _started()
        tui.add_child(SimpleText("AAA"))
        tui.add_child(SimpleText("BBB"))
        tui.add_child(SimpleText("CCC"))
        tui.do_render()
        output = term.output
        assert output.find("AAA") < output.find("BBB") < output.find("CCC")

    def test_unchanged_frame_writes_nothing(self) -> None:
        term, tui = _started()
        tui.add_child(SimpleText("static line"))
        tui.do_render()
        term.clear_buffer()
        tui.do_render()
        assert term.output == ""

    def test_only_changed_rows_are_rewritten(self) -> None:
        term, tui = _started()
        first = SimpleText("one")
        second = SimpleText("two")
        tui.add_child(first)
        tui.add_child(second)
        tui.do_render()
        term.clear_buffer()

        second.text = "TWO"
        tui.do_render()
        assert "TWO" in term.output
        assert "one" not in term.output
        assert "\x1b[2;1H" in term.output

    def test_shrinking_content_clears_stale_rows(self) -> None:
        term, tui = _started()
        comp = MultiLineText(["a", "b", "c"])
        tui.add_child(comp)
        tui.do_render()
        term.clear_buffer()

        comp.lines = ["a"]
        tui.do_render()
        assert "\x1b[3;1H\x1b[K" in term.output

    def test_width_change_triggers_full_redraw(self) -> None:
        term, tui = _started()
        tui.add_child(SimpleText("content"))
        tui.do_render()
        before = tui.full_redraws
        term.columns = 100
        tui.do_render()
        assert tui.full_redraws == before + 1

    def test_resize_forces_full_redraw(self) -> None:
        term, tui = _started()
        tui.add_child(SimpleText("content"))
        before = tui.full_redraws
        term.simulate_resize(rows=10)
        assert tui.full_redraws == before + 1

    def test_tall_content_shows_bottom_rows(self) -> None:
        term, tui = _started(rows=3)
        tui.add_child(MultiLineText([f"row{i}" for i in range(6)]))
        tui.do_render()
        assert tui.viewport_top == 3
        assert "row5" in term.output
        term.clear_buffer()
        tui.do_render()
        assert "row0" not in term.output

    def test_cursor_marker_positions_cursor(self) -> None:
        term, tui = _started()
        tui.add_child(SimpleText("ab" + CURSOR_MARKER + "c"))
        tui.do_render()
        assert CURSOR_MARKER not in term.output
        assert term.output.endswith("\x1b[1;3H")

    def test_zero_dimensions_do_not_crash(self) -> None:
        term, tui = _started(rows=0, columns=0)
        tui.add_child(SimpleText("text"))
        tui.do_render()
        assert "text" not in term.output

    def test_stop_restores_cursor_and_ignores_renders(self) -> None:
        term, tui = _started()
        tui.add_child(SimpleText("visible"))
        tui.stop()
        assert term.cursor_visible
        assert not term.started
        term.clear_buffer()
        tui.request_render()
        assert term.output == ""


class TestTUIScreen:
    """What the replayed screen shows after each frame."""

    def test_screen_matches_content(self) -> None:
        term, tui = _started(rows=4)
        tui.add_child(MultiLineText(["alpha", "beta"]))
        tui.do_render()
        assert term.screen() == ["alpha", "beta", "", ""]

    def test_differential_update_keeps_screen_in_sync(self) -> None:
        term, tui = _started(rows=3)
        comp = MultiLineText(["a", "b", "c"])
        tui.add_child(comp)
        tui.do_render()
        comp.lines = ["a", "B"]
        tui.do_render()
        assert term.screen() == ["a", "B", ""]

    def test_bottom_rows_on_screen(self) -> None:
        term, tui = _started(rows=2)
        tui.add_child(MultiLineText(["one", "two", "three"]))
        tui.do_render()
        assert term.screen() == ["two", "three"]

    def test_cursor_lands_on_marker(self) -> None:
        term, tui = _started(rows=3)
        tui.add_child(MultiLineText(["first", "se" + CURSOR_MARKER + "cond"]))
        tui.do_render()
        assert term.cursor == (1, 2)
        assert term.screen()[1] == "second"


# ---------------------------------------------------------------------------
# Focus and input routing
# ---------------------------------------------------------------------------


class TestTUIFocus:
    def test_set_focus_toggles_focused_flag(self) -> None:
        _, tui = _started()
        a = InputRecorder(["a"])
        b = InputRecorder(["b"])
        tui.set_focus(a)
        assert a.focused
        tui.set_focus(b)
        assert not a.focused
        assert b.focused
        assert tui.focused_component is b

    def test_is_focusable(self) -> None:
        assert is_focusable(InputRecorder([]))
        assert not is_focusable(SimpleText("x"))
        assert not is_focusable(None)


class TestTUIInput:
    def test_keys_go_to_focused_component(self) -> None:
        term, tui = _started()
        comp = InputRecorder(["x"])
        tui.add_child(comp)
        tui.set_focus(comp)
        term.simulate_input("a")
        term.simulate_input("\r")
        assert comp.keys == ["a", "\r"]

    def test_input_without_focus_is_dropped(self) -> None:
        term, tui = _started()
        comp = InputRecorder(["x"])
        tui.add_child(comp)
        term.simulate_input("a")
        assert comp.keys == []

    def test_mouse_row_is_relative_to_component(self) -> None:
        term, tui = _started()
        tui.add_child(MultiLineText(["header", "header"]))
        comp = InputRecorder(["r0", "r1", "r2"])
        tui.add_child(comp)
        tui.set_focus(comp)
        tui.do_render()

        # Screen row 4 (1-based) is the component's third row
        term.simulate_input("\x1b[<0;5;4M")
        assert comp.keys == []
        assert len(comp.mouse) == 1
        event = comp.mouse[0]
        assert event.y == 1
        assert event.x == 4
        assert event.pressed

    def test_mouse_row_accounts_for_viewport(self) -> None:
        term, tui = _started(rows=2)
        comp = InputRecorder(["r0", "r1", "r2", "r3"])
        tui.add_child(comp)
        tui.set_focus(comp)
        tui.do_render()

        term.simulate_input("\x1b[<0;1;1m")
        assert comp.mouse[0].y == 2
        assert comp.mouse[0].released
