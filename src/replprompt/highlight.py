"""Syntax highlight overlay built from a backend token stream."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Union

from replprompt.backend import HighlightToken, normalize_tokens

logger = logging.getLogger(__name__)


class _LineBreak:
    """Marker separating buffer lines in a fragment stream."""

    _instance: _LineBreak | None = None

    def __new__(cls) -> _LineBreak:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "LINE_BREAK"


LINE_BREAK = _LineBreak()


@dataclass(frozen=True)
class StyledFragment:
    """A run of text on a single line sharing one style tag."""

    style: str
    text: str


Fragment = Union[StyledFragment, _LineBreak]


def fragments_from_tokens(tokens: Iterable[HighlightToken]) -> list[Fragment]:
    """Split tokens on embedded newlines, inserting :data:`LINE_BREAK` markers."""
    fragments: list[Fragment] = []
    for token in tokens:
        parts = token.text.split("\n")
        for i, part in enumerate(parts):
            if i > 0:
                fragments.append(LINE_BREAK)
            if part:
                fragments.append(StyledFragment(token.style, part))
    return fragments


def plain_fragments(text: str) -> list[Fragment]:
    return fragments_from_tokens([HighlightToken("none", text)])


def fragment_text(fragments: Iterable[Fragment]) -> str:
    """Rebuild the source text; each marker becomes a newline."""
    return "".join("\n" if f is LINE_BREAK else f.text for f in fragments)  # type: ignore[union-attr]


def split_lines(fragments: Iterable[Fragment]) -> list[list[StyledFragment]]:
    """Group fragments into one list per buffer line."""
    lines: list[list[StyledFragment]] = [[]]
    for fragment in fragments:
        if fragment is LINE_BREAK:
            lines.append([])
        else:
            lines[-1].append(fragment)  # type: ignore[arg-type]
    return lines


class HighlightRenderer:
    """Turns buffer text into line-aligned styled fragments.

    The highlighter is any ``code -> token stream`` callable. If it raises,
    or returns tokens that do not reproduce the input, the failure is logged
    and the text is shown unstyled.
    """

    def __init__(self, highlighter: Callable[[str], Iterable[Any]]) -> None:
        self.highlighter = highlighter

    def render(self, text: str) -> list[Fragment]:
        try:
            tokens = normalize_tokens(self.highlighter(text))
        except Exception:
            logger.exception("Highlighter failed; showing plain text")
            return plain_fragments(text)

        if "".join(t.text for t in tokens) != text:
            logger.warning(
                "Highlighter tokens do not reproduce the input (%d chars); showing plain text",
                len(text),
            )
            return plain_fragments(text)
        return fragments_from_tokens(tokens)
