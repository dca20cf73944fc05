"""Tests for replprompt.dispatch.KeyDispatcher -- the key decision table."""

from __future__ import annotations

import pytest

from replprompt.dispatch import Decision, KeyDispatcher
from replprompt.keybindings import PromptKeybindingsManager
from replprompt.state import PromptState

KEY_UP = "\x1b[A"
KEY_DOWN = "\x1b[B"
KEY_ENTER = "\r"
KEY_SHIFT_ENTER = "\x1b[13;2u"
KEY_CTRL_ENTER = "\x1b[13;5u"
KEY_ALT_ENTER = "\x1b\r"
KEY_BACKSPACE = "\x7f"
KEY_HOME = "\x1b[H"
KEY_TAB = "\t"
KEY_SHIFT_TAB = "\x1b[Z"
KEY_LEFT = "\x1b[D"


def complete() -> bool:
    return True


def incomplete() -> bool:
    return False


def state_at(text: str, start: int, end: int | None = None) -> PromptState:
    state = PromptState(text)
    state.select(start, start if end is None else end)
    return state


class TestHistoryKeys:
    def test_up_at_start_with_history(self) -> None:
        decision = KeyDispatcher().decide(KEY_UP, state_at("abc", 0), 2, complete)
        assert decision == Decision("historyOlder")

    def test_up_on_empty_buffer(self) -> None:
        decision = KeyDispatcher().decide(KEY_UP, state_at("", 0), 1, complete)
        assert decision.action == "historyOlder"

    def test_up_not_at_start_passes_through(self) -> None:
        decision = KeyDispatcher().decide(KEY_UP, state_at("ab\ncd", 4), 2, complete)
        assert decision == Decision("passThrough", reset_history=False)

    def test_up_without_history_passes_through(self) -> None:
        decision = KeyDispatcher().decide(KEY_UP, state_at("", 0), 0, complete)
        assert decision.action == "passThrough"
        assert not decision.reset_history

    def test_down_at_end_with_history(self) -> None:
        decision = KeyDispatcher().decide(KEY_DOWN, state_at("abc", 3), 1, complete)
        assert decision == Decision("historyNewer")

    def test_down_not_at_end_passes_through(self) -> None:
        decision = KeyDispatcher().decide(KEY_DOWN, state_at("abc", 1), 1, complete)
        assert decision.action == "passThrough"
        assert not decision.reset_history


class TestSubmitKeys:
    def test_enter_at_end_and_complete_submits(self) -> None:
        decision = KeyDispatcher().decide(KEY_ENTER, state_at("1+1", 3), 0, complete)
        assert decision == Decision("submit", reset_history=True)

    def test_enter_when_incomplete_inserts_newline(self) -> None:
        decision = KeyDispatcher().decide(KEY_ENTER, state_at("f(", 2), 0, incomplete)
        assert decision.action == "smartNewline"

    def test_enter_not_at_end_inserts_newline_without_validating(self) -> None:
        calls: list[int] = []

        def tracking() -> bool:
            calls.append(1)
            return True

        decision = KeyDispatcher().decide(KEY_ENTER, state_at("abc", 1), 0, tracking)
        assert decision.action == "smartNewline"
        assert calls == []

    def test_shift_enter_always_newline(self) -> None:
        decision = KeyDispatcher().decide(KEY_SHIFT_ENTER, state_at("1", 1), 0, complete)
        assert decision == Decision("smartNewline", reset_history=True)

    @pytest.mark.parametrize("key", [KEY_CTRL_ENTER, KEY_ALT_ENTER])
    def test_forced_submit_ignores_validation(self, key: str) -> None:
        decision = KeyDispatcher().decide(key, state_at("f(", 0), 0, incomplete)
        assert decision.action == "submit"


class TestEditingKeys:
    def test_backspace(self) -> None:
        decision = KeyDispatcher().decide(KEY_BACKSPACE, state_at("a", 1), 0, complete)
        assert decision == Decision("smartBackspace", reset_history=True)

    def test_home(self) -> None:
        decision = KeyDispatcher().decide(KEY_HOME, state_at("  a", 3), 0, complete)
        assert decision.action == "smartHome"

    def test_tab_without_selection(self) -> None:
        decision = KeyDispatcher().decide(KEY_TAB, state_at("a", 1), 0, complete)
        assert decision.action == "indent"

    def test_tab_with_selection(self) -> None:
        decision = KeyDispatcher().decide(KEY_TAB, state_at("ab", 0, 2), 0, complete)
        assert decision.action == "blockIndent"

    def test_shift_tab_without_selection(self) -> None:
        decision = KeyDispatcher().decide(KEY_SHIFT_TAB, state_at("  a", 3), 0, complete)
        assert decision.action == "dedent"

    def test_shift_tab_with_selection(self) -> None:
        decision = KeyDispatcher().decide(KEY_SHIFT_TAB, state_at("ab", 0, 2), 0, complete)
        assert decision.action == "blockDedent"

    @pytest.mark.parametrize("key", ["x", KEY_LEFT])
    def test_other_keys_pass_through_and_reset(self, key: str) -> None:
        decision = KeyDispatcher().decide(key, state_at("a", 1), 3, complete)
        assert decision == Decision("passThrough", reset_history=True)


class TestCustomKeybindings:
    def test_dispatcher_uses_given_manager(self) -> None:
        kb = PromptKeybindingsManager({"submit": "ctrl+s"})
        dispatcher = KeyDispatcher(kb)
        assert dispatcher.keybindings is kb
        assert dispatcher.decide("\x13", state_at("1", 1), 0, complete).action == "submit"
        assert dispatcher.decide(KEY_ENTER, state_at("1", 1), 0, complete).action == "passThrough"
