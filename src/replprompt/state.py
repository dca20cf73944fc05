"""PromptState: the live buffer and its selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class Edit:
    """A complete buffer state produced by an editing operation.

    ``selection_end`` is where the caret lands. A selection extended
    backwards has ``selection_end < selection_start``;
    :meth:`PromptState.apply` orders the bounds.
    """

    text: str
    selection_start: int
    selection_end: int

    @classmethod
    def caret(cls, text: str, pos: int) -> Edit:
        return cls(text, pos, pos)


class PromptState:
    """Owns the prompt text and the selection bounds.

    ``0 <= selection_start <= selection_end <= len(text)`` holds after every
    operation. Out-of-range positions are clamped, never rejected.
    """

    def __init__(self, text: str = "") -> None:
        self._text: str = text
        self._selection_start: int = len(text)
        self._selection_end: int = len(text)
        # Caret sits at selection_start after a backward selection
        self._backward: bool = False

        # Called with the new text after every mutation of the buffer
        self.on_change: Callable[[str], None] | None = None

    # -- properties ---------------------------------------------------------

    @property
    def text(self) -> str:
        return self._text

    @property
    def selection_start(self) -> int:
        return self._selection_start

    @property
    def selection_end(self) -> int:
        return self._selection_end

    @property
    def cursor(self) -> int:
        """The caret: the moving end of the selection."""
        return self._selection_start if self._backward else self._selection_end

    @property
    def anchor(self) -> int:
        """The fixed end of the selection."""
        return self._selection_end if self._backward else self._selection_start

    @property
    def row_count(self) -> int:
        return self._text.count("\n") + 1

    @property
    def has_selection(self) -> bool:
        return self._selection_start != self._selection_end

    @property
    def at_start(self) -> bool:
        return self._selection_start == 0

    @property
    def at_end(self) -> bool:
        return self._selection_end == len(self._text)

    # -- mutation -----------------------------------------------------------

    def set(self, text: str) -> None:
        """Replace the buffer; the caret lands at the end."""
        self._text = text
        self._selection_start = self._selection_end = len(text)
        self._backward = False
        self._notify()

    def set_cursor(self, pos: int) -> None:
        pos = self._clamp(pos)
        self._selection_start = self._selection_end = pos
        self._backward = False

    def select(self, start: int, end: int) -> None:
        """Select from *start* (anchor) to *end* (caret), in either order."""
        start, end = self._clamp(start), self._clamp(end)
        self._backward = end < start
        start, end = sorted((start, end))
        self._selection_start = start
        self._selection_end = end

    def apply(self, edit: Edit) -> bool:
        """Install *edit*; return ``True`` if the text changed."""
        changed = edit.text != self._text
        self._text = edit.text
        self.select(edit.selection_start, edit.selection_end)
        if changed:
            self._notify()
        return changed

    def clear(self) -> None:
        self.set("")

    # -- internal -----------------------------------------------------------

    def _clamp(self, pos: int) -> int:
        return max(0, min(pos, len(self._text)))

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self._text)
