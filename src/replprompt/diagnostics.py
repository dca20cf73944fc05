"""Debounced diagnostics overlay.

Validation runs on every edit, but marks only appear once the buffer has
been left alone for ``delay`` seconds. A clean validation clears the marks
at once. Each mark is a pad of spaces (newlines kept) that lines the span up
under the offending characters, followed by the span itself.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from replprompt.backend import Diagnostic, normalize_diagnostics
from replprompt.config import DEFAULT_DIAGNOSTICS_DELAY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagnosticMark:
    pad: str
    span: str
    message: str

    @property
    def start(self) -> int:
        """0-based offset of the first marked character."""
        return len(self.pad)

    @property
    def stop(self) -> int:
        """0-based offset one past the last marked character."""
        return len(self.pad) + len(self.span)

    def covers(self, offset: int) -> bool:
        return self.start <= offset < self.stop


def build_marks(text: str, diagnostics: Sequence[Diagnostic]) -> list[DiagnosticMark]:
    marks: list[DiagnosticMark] = []
    for d in diagnostics:
        before = text[: max(0, d.start - 1)]
        pad = "".join("\n" if ch == "\n" else " " for ch in before)
        span = " " * max(0, d.end - d.start + 1)
        marks.append(DiagnosticMark(pad, span, d.message))
    return marks


def run_validator(
    validate: Callable[[str], Any], code: str
) -> list[Diagnostic] | None:
    """Call *validate* and normalize its result.

    Returns ``None`` when the validator raises; the error is logged and the
    buffer counts as not ready to submit.
    """
    try:
        return normalize_diagnostics(validate(code))
    except Exception:
        logger.exception("Validator failed for %d chars of input", len(code))
        return None


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback after a delay, returning a cancellable handle."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable | None: ...


class AsyncioScheduler:
    """Schedules on the running event loop.

    Without a running loop there is nothing to wait on, so the callback runs
    immediately.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            callback()
            return None
        return loop.call_later(delay, callback)


# ---------------------------------------------------------------------------
# DiagnosticsRenderer
# ---------------------------------------------------------------------------


class DiagnosticsRenderer:
    """Holds the visible diagnostic marks and the pending debounce timer."""

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        delay: float = DEFAULT_DIAGNOSTICS_DELAY,
        on_render: Callable[[], None] | None = None,
    ) -> None:
        self.scheduler: Scheduler = scheduler or AsyncioScheduler()
        self.delay = delay
        self.on_render = on_render
        self._marks: list[DiagnosticMark] = []
        self._pending: Cancellable | None = None

    @property
    def marks(self) -> list[DiagnosticMark]:
        return list(self._marks)

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def update(self, text: str, errors: Sequence[Diagnostic]) -> None:
        """Clear at once on no errors; otherwise (re)start the debounce timer."""
        self.cancel()
        if not errors:
            self._show([])
            return

        fired = False

        def fire() -> None:
            nonlocal fired
            fired = True
            self._pending = None
            self._show(build_marks(text, errors))

        handle = self.scheduler.call_later(self.delay, fire)
        # A scheduler may run ``fire`` synchronously
        if not fired:
            self._pending = handle

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def clear(self) -> None:
        self.cancel()
        self._show([])

    def messages_at(self, offset: int) -> list[str]:
        return [m.message for m in self._marks if m.covers(offset)]

    def _show(self, marks: list[DiagnosticMark]) -> None:
        changed = marks != self._marks
        self._marks = marks
        if changed and self.on_render is not None:
            self.on_render()
