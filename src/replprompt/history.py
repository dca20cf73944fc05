"""Cyclic, append-only log of submitted inputs."""

from __future__ import annotations

OLDER = -1
NEWER = 1


class HistoryLog:
    """Submitted inputs in submission order, browsable with Up/Down.

    ``selected`` starts unset. The first step from an unset selection counts
    from index 0, so the first :data:`OLDER` step wraps to the most recent
    entry and repeated steps cycle backwards through time.
    """

    def __init__(self) -> None:
        self._entries: list[str] = []
        self._selected: int | None = None

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)

    @property
    def selected(self) -> int | None:
        return self._selected

    @property
    def browsing(self) -> bool:
        return self._selected is not None

    def push(self, entry: str) -> None:
        self._entries.append(entry)

    def navigate(self, direction: int) -> str | None:
        """Step the selection by *direction* and return the entry, if any."""
        n = len(self._entries)
        if n == 0:
            return None
        self._selected = ((self._selected or 0) + direction) % n
        return self._entries[self._selected]

    def reset(self) -> None:
        self._selected = None
