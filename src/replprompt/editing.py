"""Plain text-field editing: insertion, deletion and caret movement.

These cover the keys the smart dispatcher passes through. Movement is
grapheme-aware; vertical movement keeps the character column, clamped to
the length of the target line.
"""

from __future__ import annotations

from replprompt.indent import line_end, line_start
from replprompt.state import Edit
from replprompt.utils import graphemes


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


# ---------------------------------------------------------------------------
# Grapheme boundaries
# ---------------------------------------------------------------------------


def prev_boundary(text: str, pos: int) -> int:
    """Offset of the grapheme boundary before *pos*."""
    if pos <= 0:
        return 0
    start = line_start(text, pos)
    if start == pos:
        return pos - 1
    return pos - len(graphemes(text[start:pos])[-1])


def next_boundary(text: str, pos: int) -> int:
    """Offset of the grapheme boundary after *pos*."""
    if pos >= len(text):
        return len(text)
    end = line_end(text, pos)
    if end == pos:
        return pos + 1
    return pos + len(graphemes(text[pos:end])[0])


def vertical_target(text: str, pos: int, direction: int) -> int:
    """Offset one line up (*direction* < 0) or down from *pos*.

    Moving up from the first line goes to the buffer start, moving down from
    the last line goes to the buffer end.
    """
    start = line_start(text, pos)
    column = pos - start
    if direction < 0:
        if start == 0:
            return 0
        target_start = line_start(text, start - 1)
        return min(target_start + column, start - 1)

    end = line_end(text, pos)
    if end == len(text):
        return len(text)
    target_start = end + 1
    return min(target_start + column, line_end(text, target_start))


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


def insert_text(text: str, selection_start: int, selection_end: int, chunk: str) -> Edit:
    """Replace the selection (or insert at the caret) with *chunk*."""
    chunk = normalize_newlines(chunk)
    pos = selection_start + len(chunk)
    return Edit.caret(text[:selection_start] + chunk + text[selection_end:], pos)


def delete_forward(text: str, selection_start: int, selection_end: int) -> Edit:
    """Delete the selection, or the grapheme after the caret."""
    if selection_start == selection_end:
        selection_end = next_boundary(text, selection_start)
    return Edit.caret(text[:selection_start] + text[selection_end:], selection_start)


def move_left(text: str, selection_start: int, selection_end: int) -> Edit:
    if selection_start != selection_end:
        return Edit.caret(text, selection_start)
    return Edit.caret(text, prev_boundary(text, selection_start))


def move_right(text: str, selection_start: int, selection_end: int) -> Edit:
    if selection_start != selection_end:
        return Edit.caret(text, selection_end)
    return Edit.caret(text, next_boundary(text, selection_end))


def move_vertical(text: str, caret: int, direction: int) -> Edit:
    return Edit.caret(text, vertical_target(text, caret, direction))


def move_line_end(text: str, caret: int) -> Edit:
    return Edit.caret(text, line_end(text, caret))


def extend_selection(text: str, anchor: int, target: int) -> Edit:
    """Select from *anchor* to *target*, keeping the caret at *target*."""
    return Edit(text, anchor, target)
