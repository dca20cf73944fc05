"""Split raw stdin chunks into complete key sequences and pastes.

Terminal input can arrive in partial chunks, so an escape sequence such as a
mouse report may be split across reads. ``StdinBuffer`` holds on to an
incomplete sequence until the rest arrives or a short timeout expires, and
collects bracketed pastes into a single event.
"""

from __future__ import annotations

import asyncio
import re
from typing import Callable, Literal

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

SequenceStatus = Literal["complete", "incomplete", "not-escape"]

_SGR_MOUSE_BODY_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")

# String sequences terminated by ST (ESC \), OSC also accepts BEL
_STRING_INTRODUCERS = {"]": True, "P": False, "_": False}


def _csi_status(data: str) -> SequenceStatus:
    if len(data) < 3:
        return "incomplete"
    payload = data[2:]
    if not 0x40 <= ord(payload[-1]) <= 0x7E:
        return "incomplete"
    if payload.startswith("<"):
        # SGR mouse reports contain ';' and digits before the final M/m
        return "complete" if _SGR_MOUSE_BODY_RE.match(payload) else "incomplete"
    return "complete"


def sequence_status(data: str) -> SequenceStatus:
    """Classify *data* as a complete or incomplete escape sequence."""
    if not data.startswith(ESC):
        return "not-escape"
    if len(data) == 1:
        return "incomplete"

    kind = data[1]
    if kind == "[":
        # Legacy X10 mouse: ESC [ M followed by three bytes
        if data.startswith("\x1b[M"):
            return "complete" if len(data) >= 6 else "incomplete"
        return _csi_status(data)
    if kind in _STRING_INTRODUCERS:
        if data.endswith("\x1b\\") and len(data) > 2:
            return "complete"
        if _STRING_INTRODUCERS[kind] and data.endswith("\x07"):
            return "complete"
        return "incomplete"
    if kind == "O":
        return "complete" if len(data) >= 3 else "incomplete"
    # Alt + key
    return "complete"


def split_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences and an incomplete remainder."""
    sequences: list[str] = []
    pos = 0
    while pos < len(buffer):
        if buffer[pos] != ESC:
            sequences.append(buffer[pos])
            pos += 1
            continue

        end = pos + 1
        while end <= len(buffer):
            if sequence_status(buffer[pos:end]) != "incomplete":
                break
            end += 1
        else:
            return sequences, buffer[pos:]
        sequences.append(buffer[pos:end])
        pos = end
    return sequences, ""


class StdinBuffer:
    """Buffers stdin input and emits complete sequences and pastes."""

    def __init__(self, *, timeout: float = 0.01) -> None:
        self.timeout = timeout
        self._buffer: str = ""
        self._paste: str | None = None
        self._timeout_handle: asyncio.TimerHandle | None = None

        self._on_data: Callable[[str], None] | None = None
        self._on_paste: Callable[[str], None] | None = None

    def on_data(self, callback: Callable[[str], None]) -> None:
        """Set the callback for complete key sequences."""
        self._on_data = callback

    def on_paste(self, callback: Callable[[str], None]) -> None:
        """Set the callback for bracketed paste content."""
        self._on_paste = callback

    @property
    def pending(self) -> str:
        return self._buffer

    def process(self, data: str) -> None:
        """Feed a raw chunk of input."""
        self._cancel_timeout()

        if self._paste is not None:
            self._paste += data
            self._finish_paste()
            return

        self._buffer += data
        start = self._buffer.find(BRACKETED_PASTE_START)
        if start != -1:
            before = self._buffer[:start]
            self._paste = self._buffer[start + len(BRACKETED_PASTE_START) :]
            self._buffer = ""
            for sequence in split_sequences(before)[0]:
                self._emit_data(sequence)
            self._finish_paste()
            return

        sequences, self._buffer = split_sequences(self._buffer)
        for sequence in sequences:
            self._emit_data(sequence)

        if self._buffer:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                self._flush_pending()
                return
            self._timeout_handle = loop.call_later(self.timeout, self._flush_pending)

    def flush(self) -> list[str]:
        """Return and drop whatever incomplete input is buffered."""
        self._cancel_timeout()
        if not self._buffer:
            return []
        pending, self._buffer = self._buffer, ""
        return [pending]

    def clear(self) -> None:
        self._cancel_timeout()
        self._buffer = ""
        self._paste = None

    def destroy(self) -> None:
        self.clear()

    # -- internal -----------------------------------------------------------

    def _finish_paste(self) -> None:
        assert self._paste is not None
        end = self._paste.find(BRACKETED_PASTE_END)
        if end == -1:
            return
        content = self._paste[:end]
        rest = self._paste[end + len(BRACKETED_PASTE_END) :]
        self._paste = None
        if self._on_paste is not None:
            self._on_paste(content)
        if rest:
            self.process(rest)

    def _flush_pending(self) -> None:
        self._timeout_handle = None
        for sequence in self.flush():
            self._emit_data(sequence)

    def _cancel_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def _emit_data(self, data: str) -> None:
        if self._on_data is not None:
            self._on_data(data)
