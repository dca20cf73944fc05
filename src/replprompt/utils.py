"""Terminal text utilities: ANSI handling, width measurement, wrapping.

Provides functions for measuring visible terminal widths, splitting text
into grapheme clusters, hard-wrapping text with ANSI codes preserved, and
truncating lines to a column budget.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# ---------------------------------------------------------------------------
# Regex patterns for ANSI / OSC / APC sequences
# ---------------------------------------------------------------------------

_STRIP_RE = re.compile(
    r"\x1b\[[0-9;]*[mGKHJ]"        # CSI
    r"|\x1b\]8;[^\x07\x1b]*(?:\x07|\x1b\\)"  # OSC 8 hyperlinks
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"  # APC
)

_SGR_RESET = "\x1b[0m"

# Tabs are expanded to this many columns for measurement and wrapping
TAB_WIDTH = 4

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Graphemes
# ---------------------------------------------------------------------------


def graphemes(text: str) -> list[str]:
    """Split *text* into user-perceived characters."""
    return list(grapheme.graphemes(text))


def grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster.

    Control characters and combining marks are zero width, emoji sequences
    are two columns, everything else is delegated to ``wcwidth``.
    """
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if g == "\t":
            return TAB_WIDTH
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        # VS16, ZWJ, skin tones, regional indicators
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = g[0]
    if ord(first) >= 0x1F000:
        return 2
    if unicodedata.category(first).startswith("M"):
        return 0
    return max(_wcwidth.wcwidth(first), 0)


# ---------------------------------------------------------------------------
# visible_width / strip_ansi
# ---------------------------------------------------------------------------


def strip_ansi(text: str) -> str:
    """Remove CSI, OSC 8 and APC sequences from *text*."""
    return _STRIP_RE.sub("", text)


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*.

    Escape sequences are ignored; pure printable ASCII takes a fast path and
    everything else is measured per grapheme cluster and cached.
    """
    if not text:
        return 0

    stripped = strip_ansi(text)
    if not stripped:
        return 0

    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


# ---------------------------------------------------------------------------
# extract_ansi_code
# ---------------------------------------------------------------------------


def extract_ansi_code(text: str, pos: int) -> str | None:
    """Return the escape sequence starting at *pos*, or ``None``.

    Recognises SGR/cursor CSI sequences and OSC/APC strings terminated by
    BEL or ST.
    """
    if pos + 1 >= len(text) or text[pos] != "\x1b":
        return None

    kind = text[pos + 1]
    if kind == "[":
        i = pos + 2
        while i < len(text) and (text[i].isdigit() or text[i] == ";"):
            i += 1
        if i < len(text) and text[i] in "mGKHJ":
            return text[pos : i + 1]
        return None

    if kind in "]_":
        i = pos + 2
        while i < len(text):
            if text[i] == "\x07":
                return text[pos : i + 1]
            if text[i] == "\x1b" and i + 1 < len(text) and text[i + 1] == "\\":
                return text[pos : i + 2]
            i += 1
    return None


def _tokenize(line: str) -> list[tuple[str, bool]]:
    """Split *line* into ``(piece, is_escape)`` tuples, graphemes otherwise."""
    pieces: list[tuple[str, bool]] = []
    plain_start = 0
    i = 0
    while i < len(line):
        code = extract_ansi_code(line, i)
        if code is None:
            i += 1
            continue
        if plain_start < i:
            pieces.extend((g, False) for g in grapheme.graphemes(line[plain_start:i]))
        pieces.append((code, True))
        i += len(code)
        plain_start = i
    if plain_start < len(line):
        pieces.extend((g, False) for g in grapheme.graphemes(line[plain_start:]))
    return pieces


# ---------------------------------------------------------------------------
# wrap_text_with_ansi
# ---------------------------------------------------------------------------


class _SgrState:
    """Remember the SGR codes emitted since the last reset."""

    def __init__(self) -> None:
        self.codes: list[str] = []

    def process(self, code: str) -> None:
        if not code.endswith("m") or not code.startswith("\x1b["):
            return
        params = code[2:-1]
        if params in ("", "0"):
            self.codes.clear()
        else:
            self.codes.append(code)

    @property
    def active(self) -> str:
        return "".join(self.codes)


def wrap_text_with_ansi(text: str, width: int) -> list[str]:
    """Hard-wrap *text* to *width* columns, preserving ANSI escape codes.

    Each physical line is wrapped independently; active SGR attributes are
    closed at the end of a wrapped row and re-opened on the next one.
    Tabs are expanded to spaces.
    """
    if width <= 0:
        return text.split("\n")

    state = _SgrState()
    result: list[str] = []

    for physical in text.split("\n"):
        row: list[str] = [state.active]
        row_width = 0
        for piece, is_escape in _tokenize(physical):
            if is_escape:
                state.process(piece)
                row.append(piece)
                continue
            if piece == "\t":
                piece = " " * (TAB_WIDTH - row_width % TAB_WIDTH)
            w = visible_width(piece)
            if row_width + w > width and row_width > 0:
                if state.codes:
                    row.append(_SGR_RESET)
                result.append("".join(row))
                row = [state.active]
                row_width = 0
            row.append(piece)
            row_width += w
        if state.codes:
            row.append(_SGR_RESET)
        result.append("".join(row))

    return result


# ---------------------------------------------------------------------------
# truncate_to_width
# ---------------------------------------------------------------------------


def truncate_to_width(
    text: str,
    max_width: int,
    ellipsis: str = "...",
    pad: bool = False,
) -> str:
    """Truncate *text* to fit within *max_width* visible columns.

    If the text is wider than *max_width*, it is cut at a grapheme boundary
    and *ellipsis* is appended (the ellipsis counts towards the width).  If
    *pad* is ``True``, the result is right-padded with spaces to exactly
    *max_width*.
    """
    if max_width <= 0:
        return ""

    text_width = visible_width(text)
    if text_width <= max_width:
        if pad:
            return text + " " * (max_width - text_width)
        return text

    target = max_width - visible_width(ellipsis)
    if target <= 0:
        return _take_columns(ellipsis, max_width)

    result = _take_columns(text, target)
    if strip_ansi(result) != result:
        result += _SGR_RESET
    result += ellipsis

    if pad:
        result += " " * max(0, max_width - visible_width(result))
    return result


def _take_columns(text: str, max_cols: int) -> str:
    """Return a prefix of *text* that fits within *max_cols* visible columns."""
    result: list[str] = []
    cols = 0
    for piece, is_escape in _tokenize(text):
        if is_escape:
            result.append(piece)
            continue
        w = grapheme_width(piece)
        if cols + w > max_cols:
            break
        result.append(piece)
        cols += w
    return "".join(result)


def pad_to_width(text: str, width: int) -> str:
    """Right-pad *text* with spaces to *width* visible columns."""
    return text + " " * max(0, width - visible_width(text))
