"""Tests for replprompt.diagnostics -- the debounced overlay."""

from __future__ import annotations

import asyncio
import logging

import pytest

from replprompt.backend import Diagnostic
from replprompt.config import PromptConfig
from replprompt.diagnostics import (
    AsyncioScheduler,
    DiagnosticMark,
    DiagnosticsRenderer,
    build_marks,
    run_validator,
)

from .fake_scheduler import FakeScheduler


class TestBuildMarks:
    def test_pad_and_span(self) -> None:
        marks = build_marks("abcdef", [Diagnostic(3, 4, "bad")])
        assert marks == [DiagnosticMark("  ", "  ", "bad")]
        assert (marks[0].start, marks[0].stop) == (2, 4)

    def test_newlines_kept_in_pad(self) -> None:
        (mark,) = build_marks("ab\ncd", [Diagnostic(5, 5, "x")])
        assert mark.pad == "  \n "
        assert mark.covers(4)
        assert not mark.covers(3)

    def test_one_mark_per_diagnostic(self) -> None:
        marks = build_marks("abc", [Diagnostic(1, 1, "a"), Diagnostic(3, 3, "c")])
        assert [m.message for m in marks] == ["a", "c"]


class TestRunValidator:
    def test_normalizes_result(self) -> None:
        result = run_validator(lambda code: [{"start": 1, "end": 1, "message": "m"}], "x")
        assert result == [Diagnostic(1, 1, "m")]

    def test_none_result_is_clean(self) -> None:
        assert run_validator(lambda code: None, "x") == []

    def test_failure_logged_and_none(self, caplog: pytest.LogCaptureFixture) -> None:
        def broken(code: str) -> list[Diagnostic]:
            raise ValueError("nope")

        with caplog.at_level(logging.ERROR, logger="replprompt.diagnostics"):
            assert run_validator(broken, "x") is None
        assert "Validator failed" in caplog.text


class TestDebounce:
    def test_default_delay_matches_config(self) -> None:
        scheduler = FakeScheduler()
        renderer = DiagnosticsRenderer(scheduler)
        renderer.update("(", [Diagnostic(1, 1, "unclosed")])
        assert scheduler.live[0].delay == PromptConfig().diagnostics_delay

    def test_marks_hidden_until_timer_fires(self) -> None:
        scheduler = FakeScheduler()
        renderer = DiagnosticsRenderer(scheduler, delay=1.0)
        renderer.update("(", [Diagnostic(1, 1, "unclosed")])
        assert renderer.marks == []
        assert renderer.pending
        assert scheduler.live[0].delay == 1.0
        scheduler.fire_all()
        assert [m.message for m in renderer.marks] == ["unclosed"]
        assert not renderer.pending

    def test_new_update_restarts_timer(self) -> None:
        scheduler = FakeScheduler()
        renderer = DiagnosticsRenderer(scheduler)
        renderer.update("(", [Diagnostic(1, 1, "first")])
        renderer.update("((", [Diagnostic(2, 2, "second")])
        assert scheduler.handles[0].cancelled
        assert len(scheduler.live) == 1
        scheduler.fire_all()
        assert [m.message for m in renderer.marks] == ["second"]

    def test_clean_result_clears_at_once(self) -> None:
        scheduler = FakeScheduler()
        renderer = DiagnosticsRenderer(scheduler)
        renderer.update("(", [Diagnostic(1, 1, "x")])
        scheduler.fire_all()
        renderer.update("()", [])
        assert renderer.marks == []
        assert scheduler.live == []

    def test_clean_result_cancels_pending(self) -> None:
        scheduler = FakeScheduler()
        renderer = DiagnosticsRenderer(scheduler)
        renderer.update("(", [Diagnostic(1, 1, "x")])
        renderer.update("()", [])
        assert not renderer.pending
        assert scheduler.live == []

    def test_on_render_called_when_marks_change(self) -> None:
        calls: list[int] = []
        scheduler = FakeScheduler()
        renderer = DiagnosticsRenderer(scheduler, on_render=lambda: calls.append(1))
        renderer.update("(", [Diagnostic(1, 1, "x")])
        assert calls == []
        scheduler.fire_all()
        assert calls == [1]
        renderer.clear()
        assert calls == [1, 1]
        renderer.clear()
        assert calls == [1, 1]

    def test_messages_at(self) -> None:
        scheduler = FakeScheduler()
        renderer = DiagnosticsRenderer(scheduler)
        renderer.update("abcd", [Diagnostic(2, 3, "mid")])
        scheduler.fire_all()
        assert renderer.messages_at(1) == ["mid"]
        assert renderer.messages_at(2) == ["mid"]
        assert renderer.messages_at(3) == []

    def test_without_loop_shows_immediately(self) -> None:
        renderer = DiagnosticsRenderer(AsyncioScheduler())
        renderer.update("(", [Diagnostic(1, 1, "x")])
        assert [m.message for m in renderer.marks] == ["x"]
        assert not renderer.pending

    @pytest.mark.asyncio
    async def test_asyncio_debounce(self) -> None:
        renderer = DiagnosticsRenderer(delay=0.02)
        renderer.update("(", [Diagnostic(1, 1, "x")])
        assert renderer.marks == []
        assert renderer.pending
        await asyncio.sleep(0.06)
        assert [m.message for m in renderer.marks] == ["x"]

    @pytest.mark.asyncio
    async def test_asyncio_timer_cancelled_by_edit(self) -> None:
        renderer = DiagnosticsRenderer(delay=0.02)
        renderer.update("(", [Diagnostic(1, 1, "x")])
        renderer.update("()", [])
        await asyncio.sleep(0.06)
        assert renderer.marks == []
