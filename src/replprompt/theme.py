"""Styling for the prompt widget.

A theme is a bag of ``str -> str`` styling functions. Highlight tags coming
from a language backend are looked up in :attr:`PromptTheme.styles`; unknown
tags render unstyled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

StyleFn = Callable[[str], str]


def _identity(text: str) -> str:
    return text


def sgr(*codes: int) -> StyleFn:
    """Return a styling function wrapping text in the given SGR codes."""
    prefix = "\x1b[" + ";".join(str(c) for c in codes) + "m"

    def style(text: str) -> str:
        return f"{prefix}{text}\x1b[0m" if text else text

    return style


def _default_styles() -> dict[str, StyleFn]:
    return {
        "keyword": sgr(35),
        "string": sgr(32),
        "number": sgr(33),
        "comment": sgr(2, 3),
        "operator": sgr(36),
        "punctuation": sgr(2),
        "identifier": _identity,
        "builtin": sgr(34),
        "error": sgr(31),
    }


@dataclass
class PromptTheme:
    """Styling functions used by the prompt and output region."""

    styles: dict[str, StyleFn] = field(default_factory=_default_styles)
    prompt: StyleFn = field(default_factory=lambda: sgr(1, 36))
    continuation: StyleFn = field(default_factory=lambda: sgr(2))
    input_record: StyleFn = field(default_factory=lambda: sgr(2))
    output_record: StyleFn = _identity
    error_title: StyleFn = field(default_factory=lambda: sgr(1, 31))
    error_text: StyleFn = field(default_factory=lambda: sgr(31))
    link: StyleFn = field(default_factory=lambda: sgr(4, 34))
    diagnostic: StyleFn = field(default_factory=lambda: sgr(4, 31))
    diagnostic_message: StyleFn = field(default_factory=lambda: sgr(3, 31))
    selection: StyleFn = field(default_factory=lambda: sgr(7))
    button: StyleFn = field(default_factory=lambda: sgr(2))
    run_glyph: str = "▶"
    share_glyph: str = "↗"

    def style_for(self, tag: str) -> StyleFn:
        return self.styles.get(tag, _identity)


def plain_theme() -> PromptTheme:
    """A theme that applies no ANSI formatting."""
    return PromptTheme(
        styles={},
        prompt=_identity,
        continuation=_identity,
        input_record=_identity,
        output_record=_identity,
        error_title=_identity,
        error_text=_identity,
        link=_identity,
        diagnostic=_identity,
        diagnostic_message=_identity,
        selection=_identity,
        button=_identity,
    )
