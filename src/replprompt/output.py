"""Output region: the transcript of inputs, results and errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from replprompt.highlight import Fragment, fragment_text, split_lines
from replprompt.theme import PromptTheme, StyleFn
from replprompt.utils import pad_to_width, wrap_text_with_ansi

RecordKind = Literal["input", "output", "error"]

UNEXPECTED_ERROR_TITLE = "Error: An unexpected error was encountered!"


def hyperlink(url: str, text: str) -> str:
    """Wrap *text* in an OSC 8 hyperlink to *url*."""
    return f"\x1b]8;;{url}\x1b\\{text}\x1b]8;;\x1b\\"


@dataclass(eq=False)
class OutputRecord:
    """One cell of the output region.

    ``text`` is the raw content; sharing encodes it. Input records also
    carry the highlight ``fragments`` of that text. A result record keeps
    the input that produced it in ``source``, and a click on it copies that
    input back into the prompt rather than the result.
    """

    kind: RecordKind
    text: str = ""
    fragments: list[Fragment] | None = None
    clickable: bool = False
    link_url: str | None = None
    source: str | None = None

    @property
    def copy_text(self) -> str:
        """Text a click puts back into the prompt."""
        return self.text if self.source is None else self.source

    def append(self, chunk: str) -> None:
        self.text += chunk

    @classmethod
    def input(cls, fragments: list[Fragment]) -> OutputRecord:
        return cls("input", fragment_text(fragments), list(fragments), clickable=True)

    @classmethod
    def unexpected_error(cls, issue_url: str | None = None) -> OutputRecord:
        return cls(
            "error",
            f"{UNEXPECTED_ERROR_TITLE}\nWhy not submit an issue?",
            link_url=issue_url,
        )


@dataclass
class _Layout:
    width: int
    lines: list[str] = field(default_factory=list)
    owners: list[OutputRecord] = field(default_factory=list)
    first_rows: dict[int, int] = field(default_factory=dict)


class OutputRegion:
    """An ordered list of output records rendered as terminal lines.

    When ``max_rows`` is set only a window of the rendered lines is shown.
    The window follows the bottom of the transcript until it is scrolled.
    """

    def __init__(
        self,
        theme: PromptTheme | None = None,
        prompt_prefix: str = "> ",
        continuation_prefix: str = "  ",
        share_enabled: bool = False,
    ) -> None:
        self.theme = theme or PromptTheme()
        self.prompt_prefix = prompt_prefix
        self.continuation_prefix = continuation_prefix
        self.share_enabled = share_enabled
        self.max_rows: int | None = None

        self._records: list[OutputRecord] = []
        # None follows the bottom of the transcript
        self._scroll_top: int | None = None
        self._reveal: OutputRecord | None = None
        self._layout: _Layout | None = None
        # Layout and window of the last render, for hit testing
        self._shown: _Layout | None = None
        self._window_top: int = 0

    # -- records ------------------------------------------------------------

    @property
    def records(self) -> tuple[OutputRecord, ...]:
        return tuple(self._records)

    def push(self, record: OutputRecord) -> OutputRecord:
        self._records.append(record)
        self.invalidate()
        return record

    def remove(self, record: OutputRecord) -> None:
        self._records = [r for r in self._records if r is not record]
        self.invalidate()

    def clear(self) -> None:
        self._records.clear()
        self._scroll_top = None
        self._reveal = None
        self._shown = None
        self.invalidate()

    # -- scrolling ----------------------------------------------------------

    def scroll_into_view(self, record: OutputRecord) -> None:
        self._reveal = record

    def scroll(self, delta: int) -> None:
        """Move the window by *delta* rows; negative scrolls towards older output."""
        self._reveal = None
        top = self._window_top + delta
        layout = self._shown
        if layout is None or self.max_rows is None:
            return
        bottom_top = max(0, len(layout.lines) - self.max_rows)
        top = max(0, min(top, bottom_top))
        self._scroll_top = None if top >= bottom_top else top

    # -- hit testing --------------------------------------------------------

    def record_at(self, row: int) -> OutputRecord | None:
        """Return the record drawn on rendered *row*, if any."""
        if self._shown is None or row < 0:
            return None
        index = self._window_top + row
        if index >= len(self._shown.owners):
            return None
        return self._shown.owners[index]

    def is_share_cell(self, row: int, col: int) -> bool:
        """Return ``True`` if (*row*, *col*) is a record's share glyph."""
        record = self.record_at(row)
        if record is None or not self.share_enabled or record.kind != "input":
            return False
        assert self._shown is not None
        first = self._shown.first_rows.get(id(record))
        return first == self._window_top + row and col >= self._shown.width - 2

    # -- component ----------------------------------------------------------

    def invalidate(self) -> None:
        self._layout = None

    def render(self, width: int) -> list[str]:
        if self._layout is None or self._layout.width != width:
            self._layout = self._build_layout(width)
        layout = self._shown = self._layout
        total = len(layout.lines)

        if self.max_rows is None or total <= self.max_rows:
            self._window_top = 0
            return list(layout.lines)

        bottom_top = total - self.max_rows
        top = bottom_top if self._scroll_top is None else min(self._scroll_top, bottom_top)
        if self._reveal is not None:
            top = self._reveal_top(layout, self._reveal, top)
            self._reveal = None
            self._scroll_top = None if top >= bottom_top else top
        self._window_top = top
        return layout.lines[top : top + self.max_rows]

    # -- internal -----------------------------------------------------------

    def _reveal_top(self, layout: _Layout, record: OutputRecord, top: int) -> int:
        assert self.max_rows is not None
        rows = [i for i, owner in enumerate(layout.owners) if owner is record]
        if not rows:
            return top
        first, last = rows[0], rows[-1]
        if first < top:
            return first
        if last >= top + self.max_rows:
            return last - self.max_rows + 1
        return top

    def _build_layout(self, width: int) -> _Layout:
        layout = _Layout(width)
        gutter = 2 if self.share_enabled else 0
        content_width = max(1, width - gutter)
        for record in self._records:
            rows: list[str] = []
            for line in self._record_lines(record):
                rows.extend(wrap_text_with_ansi(line, content_width))
            if not rows:
                continue
            layout.first_rows[id(record)] = len(layout.lines)
            for i, row in enumerate(rows):
                if gutter and i == 0 and record.kind == "input":
                    row = pad_to_width(row, content_width) + " " + self.theme.button(
                        self.theme.share_glyph
                    )
                layout.lines.append(row)
                layout.owners.append(record)
        return layout

    def _record_lines(self, record: OutputRecord) -> list[str]:
        theme = self.theme
        if record.kind == "error":
            link_text = theme.link("submit an issue")
            if record.link_url:
                link_text = hyperlink(record.link_url, link_text)
            return [
                theme.error_title(UNEXPECTED_ERROR_TITLE),
                theme.error_text("Why not ") + link_text + theme.error_text("?"),
            ]

        if record.kind == "input":
            fragments = record.fragments
            if fragments is None:
                return self._prefixed(record.text.split("\n"), theme.input_record)
            styled = [
                "".join(theme.style_for(f.style)(f.text) for f in line)
                for line in split_lines(fragments)
            ]
            return self._prefixed(styled, str)

        if not record.text:
            return []
        return [theme.output_record(line) for line in record.text.split("\n")]

    def _prefixed(self, lines: list[str], style: StyleFn) -> list[str]:
        theme = self.theme
        return [
            theme.input_record(self.prompt_prefix if i == 0 else self.continuation_prefix)
            + style(line)
            for i, line in enumerate(lines)
        ]
