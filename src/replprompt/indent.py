"""Smart indentation algorithms.

Every function takes the buffer text, the selection bounds and the indent
unit, and returns the resulting :class:`~replprompt.state.Edit`. They work
purely on character positions, so any input is accepted.
"""

from __future__ import annotations

from replprompt.state import Edit
from replprompt.utils import graphemes

OPENERS = "({["
CLOSERS = ")}]"


def line_start(text: str, pos: int) -> int:
    """Offset of the first character of the line containing *pos*."""
    return text.rfind("\n", 0, pos) + 1


def line_end(text: str, pos: int) -> int:
    """Offset of the newline ending the line containing *pos* (or ``len``)."""
    end = text.find("\n", pos)
    return len(text) if end == -1 else end


def leading_spaces(text: str, start: int, limit: int | None = None) -> int:
    """Count the spaces at *start*, up to *limit* of them."""
    end = len(text) if limit is None else min(len(text), start + limit)
    n = 0
    while start + n < end and text[start + n] == " ":
        n += 1
    return n


def touched_line_starts(text: str, selection_start: int, selection_end: int) -> list[int]:
    """Starts of the lines lying within ``[line_start(selection_start), selection_end]``."""
    first = line_start(text, selection_start)
    starts = [first]
    pos = text.find("\n", first)
    while pos != -1 and pos + 1 <= selection_end:
        starts.append(pos + 1)
        pos = text.find("\n", pos + 1)
    return starts


# ---------------------------------------------------------------------------
# Single caret operations
# ---------------------------------------------------------------------------


def smart_newline(text: str, selection_start: int, selection_end: int, indent: int) -> Edit:
    """Insert a newline carrying the current indentation.

    The indentation grows by one *indent* when the line up to the caret
    opens more brackets than it closes.
    """
    line = text[line_start(text, selection_start) : selection_start]
    opened = sum(line.count(ch) for ch in OPENERS)
    closed = sum(line.count(ch) for ch in CLOSERS)
    width = len(line) - len(line.lstrip(" "))
    if opened > closed:
        width += indent

    inserted = "\n" + " " * width
    pos = selection_start + len(inserted)
    return Edit.caret(text[:selection_start] + inserted + text[selection_end:], pos)


def smart_backspace(text: str, selection_start: int, selection_end: int, indent: int) -> Edit:
    """Delete backwards, removing up to one *indent* of spaces at once."""
    if selection_start != selection_end:
        return Edit.caret(text[:selection_start] + text[selection_end:], selection_start)
    if selection_start == 0:
        return Edit.caret(text, 0)

    n = 0
    while n < indent and selection_start - n > 0 and text[selection_start - n - 1] == " ":
        n += 1

    if n == 0:
        before = text[line_start(text, selection_start) : selection_start]
        n = len(graphemes(before)[-1]) if before else 1

    start = selection_start - n
    return Edit.caret(text[:start] + text[selection_start:], start)


def smart_home(text: str, selection_start: int, selection_end: int, indent: int) -> Edit:
    """Move the caret to the first non-space character of the line."""
    start = line_start(text, selection_start)
    target = start + leading_spaces(text, start)
    return Edit.caret(text, min(target, line_end(text, start)))


def indent_line(text: str, selection_start: int, selection_end: int, indent: int) -> Edit:
    """Insert one *indent* of spaces at the caret."""
    pos = selection_start + indent
    return Edit.caret(text[:selection_start] + " " * indent + text[selection_end:], pos)


def dedent_line(text: str, selection_start: int, selection_end: int, indent: int) -> Edit:
    """Remove up to one *indent* of spaces from the start of the line."""
    start = line_start(text, selection_start)
    removed = leading_spaces(text, start, indent)
    pos = max(start, selection_start - removed)
    return Edit.caret(text[:start] + text[start + removed :], pos)


# ---------------------------------------------------------------------------
# Block operations
# ---------------------------------------------------------------------------


def block_indent(text: str, selection_start: int, selection_end: int, indent: int) -> Edit:
    """Indent every line touched by the selection."""
    starts = touched_line_starts(text, selection_start, selection_end)
    pad = " " * indent
    pieces: list[str] = []
    prev = 0
    for start in starts:
        pieces.append(text[prev:start])
        pieces.append(pad)
        prev = start
    pieces.append(text[prev:])
    return Edit(
        "".join(pieces),
        selection_start + indent,
        selection_end + indent * len(starts),
    )


def block_dedent(text: str, selection_start: int, selection_end: int, indent: int) -> Edit:
    """Remove up to one *indent* of spaces from every line touched by the selection."""
    starts = touched_line_starts(text, selection_start, selection_end)
    pieces: list[str] = []
    prev = 0
    total = 0
    first_removed = 0
    for i, start in enumerate(starts):
        removed = leading_spaces(text, start, indent)
        if i == 0:
            first_removed = removed
        pieces.append(text[prev:start])
        prev = start + removed
        total += removed
    pieces.append(text[prev:])

    new_start = max(starts[0], selection_start - first_removed)
    new_end = max(new_start, selection_end - total)
    return Edit("".join(pieces), new_start, new_end)
