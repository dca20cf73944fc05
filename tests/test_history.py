"""Tests for replprompt.history.HistoryLog."""

from __future__ import annotations

import pytest

from replprompt.history import NEWER, OLDER, HistoryLog


def make_log(*entries: str) -> HistoryLog:
    log = HistoryLog()
    for entry in entries:
        log.push(entry)
    return log


class TestEmptyLog:
    @pytest.mark.parametrize("direction", [OLDER, NEWER])
    def test_navigate_returns_nothing(self, direction: int) -> None:
        log = HistoryLog()
        assert log.navigate(direction) is None
        assert log.selected is None
        assert not log.browsing


class TestNavigation:
    def test_older_older_newer(self) -> None:
        log = make_log("a", "b", "c")
        assert log.navigate(OLDER) == "c"
        assert log.navigate(OLDER) == "b"
        assert log.navigate(NEWER) == "c"

    def test_cyclic_period(self) -> None:
        log = make_log("a", "b", "c", "d")
        first = log.navigate(OLDER)
        for _ in range(len(log) - 1):
            log.navigate(OLDER)
        assert log.navigate(OLDER) == first

    def test_newer_wraps_to_oldest(self) -> None:
        log = make_log("a", "b", "c")
        log.navigate(OLDER)
        assert log.navigate(NEWER) == "a"

    def test_reset_restarts_from_most_recent(self) -> None:
        log = make_log("a", "b", "c")
        log.navigate(OLDER)
        log.navigate(OLDER)
        log.reset()
        assert log.selected is None
        assert log.navigate(OLDER) == "c"

    def test_single_entry(self) -> None:
        log = make_log("only")
        assert log.navigate(OLDER) == "only"
        assert log.navigate(NEWER) == "only"


class TestPush:
    def test_entries_in_submission_order(self) -> None:
        log = make_log("x", "y")
        assert log.entries == ("x", "y")
        assert len(log) == 2

    def test_duplicates_kept(self) -> None:
        log = make_log("x", "x")
        assert len(log) == 2
