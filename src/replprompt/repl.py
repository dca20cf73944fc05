"""The REPL prompt widget.

``Repl`` is a TUI component made of a multi-line prompt and an output
region. Key presses go through the :class:`~replprompt.dispatch.KeyDispatcher`;
every change to the buffer re-highlights it and re-validates it for the
diagnostics overlay.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from replprompt import editing, indent
from replprompt.backend import CallbackBackend, LanguageBackend
from replprompt.config import PromptConfig
from replprompt.diagnostics import DiagnosticsRenderer, Scheduler, run_validator
from replprompt.dispatch import DispatchAction, KeyDispatcher
from replprompt.errors import ShareError
from replprompt.highlight import Fragment, HighlightRenderer, split_lines
from replprompt.history import NEWER, OLDER, HistoryLog
from replprompt.keybindings import PromptKeybindingsManager
from replprompt.keys import MouseEvent, is_text_input, matches_key
from replprompt.output import OutputRecord, OutputRegion
from replprompt.share import copy_to_clipboard, encode_share_url
from replprompt.state import Edit, PromptState
from replprompt.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START
from replprompt.submission import SubmissionController
from replprompt.theme import PromptTheme
from replprompt.tui import CURSOR_MARKER, TUI
from replprompt.utils import TAB_WIDTH, graphemes, truncate_to_width, visible_width

logger = logging.getLogger(__name__)

_INDENT_ACTIONS: dict[DispatchAction, Callable[[str, int, int, int], Edit]] = {
    "smartNewline": indent.smart_newline,
    "smartBackspace": indent.smart_backspace,
    "smartHome": indent.smart_home,
    "indent": indent.indent_line,
    "dedent": indent.dedent_line,
    "blockIndent": indent.block_indent,
    "blockDedent": indent.block_dedent,
}

# Columns reserved at the right edge for the run and share glyphs
_GLYPH_GUTTER = 2

_WHEEL_ROWS = 3


@dataclass
class _Cell:
    text: str
    offset: int
    style: str
    selected: bool
    marked: bool


class Repl:
    """An embeddable REPL prompt.

    Parameters
    ----------
    tui:
        The TUI hosting the widget; used for focus, render requests and the
        screen height.
    backend:
        Evaluate/highlight/validate provider. Defaults to a backend that
        highlights nothing, accepts everything and outputs nothing.
    config:
        Construction-time options.
    scheduler:
        Timer source for the diagnostics debounce.
    clipboard:
        Called with the share URL; defaults to the system clipboard.
    """

    def __init__(
        self,
        tui: TUI,
        backend: LanguageBackend | None = None,
        config: PromptConfig | None = None,
        theme: PromptTheme | None = None,
        keybindings: PromptKeybindingsManager | None = None,
        scheduler: Scheduler | None = None,
        clipboard: Callable[[str], None] | None = None,
    ) -> None:
        self.tui = tui
        self.config = config or PromptConfig()
        self.theme = theme or PromptTheme()
        self._clipboard = clipboard or copy_to_clipboard

        # Focusable interface
        self.focused: bool = False

        self.on_share: Callable[[str], None] | None = None
        self.on_exit: Callable[[], None] | None = None

        self._backend = (
            CallbackBackend.from_backend(backend) if backend is not None else CallbackBackend()
        )
        self._dispatcher = KeyDispatcher(keybindings)
        self._header = self.config.initial_header

        self.state = PromptState()
        self.history = HistoryLog()
        self.highlighter = HighlightRenderer(self._backend.highlight)
        self.diagnostics = DiagnosticsRenderer(
            scheduler, self.config.diagnostics_delay, on_render=self._request_render
        )
        self.output = OutputRegion(
            self.theme,
            prompt_prefix=self.config.prompt_prefix,
            continuation_prefix=self.config.continuation_prefix,
            share_enabled=self.config.share_url is not None,
        )
        self.submission = SubmissionController(
            self.state,
            self.history,
            self.output,
            self.highlighter,
            self._backend,
            output_mode=self.config.output_mode,
            issue_url=self.config.issue_url,
        )
        self.submission.on_update = self._request_render

        self._fragments: list[Fragment] = []
        self.state.on_change = self._on_buffer_change
        self._on_buffer_change(self.state.text)

        # Layout of the last render, for mouse hit testing
        self._width: int = 0
        self._prompt_top: int = 0
        self._prompt_rows: list[list[tuple[int, int]]] = []
        self._output_top: int = 0
        self._output_rows: int = 0
        self._press: MouseEvent | None = None
        self._dragged: bool = False

        if self.config.initial_input:
            self.with_initial_input(self.config.initial_input)
        if self._header:
            self.output.push(OutputRecord("output", self._header))
        if self.config.initial_run:
            self.run()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, code: str | None = None) -> OutputRecord | None:
        """Submit *code*, or the prompt's contents."""
        record = self.submission.submit(code)
        self.focus()
        self._request_render()
        return record

    def set(self, text: str) -> None:
        """Replace the prompt's contents; the caret moves to the end."""
        self.state.set(text)
        self._request_render()

    def get_text(self) -> str:
        return self.state.text

    def clear(self) -> None:
        self.submission.clear_prompt()
        self.focus()
        self._request_render()

    def focus(self) -> None:
        self.tui.set_focus(self)

    def set_cursor_pos(self, pos: int) -> None:
        self.state.set_cursor(pos)
        self._request_render()

    def clear_output(self) -> None:
        """Empty the output region, keeping the header."""
        self.output.clear()
        if self._header:
            self.output.push(OutputRecord("output", self._header))
        self._request_render()

    def share(self, record: OutputRecord) -> str | None:
        """Copy a share URL for *record* and return it."""
        if self.config.share_url is None:
            return None
        url = encode_share_url(record.text, self.config.share_url)
        try:
            self._clipboard(url)
        except ShareError:
            logger.warning("Could not copy share URL to the clipboard", exc_info=True)
        if self.on_share is not None:
            self.on_share(url)
        return url

    # -- builders -----------------------------------------------------------

    def with_eval_callback(self, evaluate: Callable[..., Any]) -> Repl:
        backend = self._backend
        self._set_backend(CallbackBackend(evaluate, backend.highlight_fn, backend.validate_fn))
        return self

    def with_validate_callback(self, validate: Callable[[str], Any]) -> Repl:
        backend = self._backend
        self._set_backend(CallbackBackend(backend.evaluate_fn, backend.highlight_fn, validate))
        self._on_buffer_change(self.state.text)
        return self

    def with_highlight_callback(self, highlight: Callable[[str], Any]) -> Repl:
        backend = self._backend
        self._set_backend(CallbackBackend(backend.evaluate_fn, highlight, backend.validate_fn))
        self._on_buffer_change(self.state.text)
        return self

    def with_initial_input(self, text: str) -> Repl:
        """Fill the prompt with *text* unless it already has contents."""
        if not self.state.text:
            self.state.set(text)
        return self

    def with_initial_header(self, text: str) -> Repl:
        self._header = text
        if text:
            self.output.push(OutputRecord("output", text))
        return self

    # ------------------------------------------------------------------
    # Component interface
    # ------------------------------------------------------------------

    def invalidate(self) -> None:
        self.output.invalidate()

    def handle_input(self, data: str) -> None:
        if data.startswith(BRACKETED_PASTE_START):
            pasted = data[len(BRACKETED_PASTE_START) :]
            if pasted.endswith(BRACKETED_PASTE_END):
                pasted = pasted[: -len(BRACKETED_PASTE_END)]
            self.history.reset()
            self._apply(
                editing.insert_text(
                    self.state.text, self.state.selection_start, self.state.selection_end, pasted
                )
            )
            return

        kb = self._dispatcher.keybindings
        # Only Up/Down keep a browsing session alive
        navigating = kb.matches(data, "cursorUp") or kb.matches(data, "cursorDown")
        if self.history.browsing and not navigating:
            self.history.reset()

        if kb.matches(data, "exit"):
            if not matches_key(data, "ctrl+d") or not self.state.text:
                if self.on_exit is not None:
                    self.on_exit()
                return
        if kb.matches(data, "scrollUp") or kb.matches(data, "scrollDown"):
            page = max(1, self._output_rows - 1)
            self.output.scroll(-page if kb.matches(data, "scrollUp") else page)
            self._request_render()
            return
        if kb.matches(data, "clearOutput"):
            self.clear_output()
            return

        decision = self._dispatcher.decide(
            data, self.state, len(self.history), self._is_complete
        )
        if decision.reset_history:
            self.history.reset()
        self._perform(decision.action, data)
        self._request_render()

    def handle_mouse(self, event: MouseEvent) -> None:
        """Handle a mouse report whose ``y`` is a row of this component."""
        if event.wheel:
            self.output.scroll(-_WHEEL_ROWS if event.button == 0 else _WHEEL_ROWS)
            self._request_render()
            return
        if event.motion:
            if self._press is not None:
                self._dragged = True
            return
        if event.pressed:
            self._press = event
            self._dragged = False
            return

        press, self._press = self._press, None
        # A drag selects text; only a press and release on one cell is a click
        if press is None or self._dragged or (press.x, press.y) != (event.x, event.y):
            return
        self._click(event.y, event.x)

    def render(self, width: int) -> list[str]:
        self._width = width
        prompt_lines = self._render_prompt(width)
        prompt_lines.extend(self._render_messages(width))

        self._output_rows = max(0, self.tui.terminal.rows - len(prompt_lines))
        self.output.max_rows = self._output_rows
        output_lines = self.output.render(width)

        if self.config.output_location == "below":
            self._prompt_top = 0
            self._output_top = len(prompt_lines)
            return prompt_lines + output_lines
        self._output_top = 0
        self._prompt_top = len(output_lines)
        return output_lines + prompt_lines

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _perform(self, action: DispatchAction, data: str) -> None:
        state = self.state
        if action == "historyOlder":
            entry = self.history.navigate(OLDER)
            if entry is not None:
                state.set(entry)
                state.set_cursor(0)
        elif action == "historyNewer":
            entry = self.history.navigate(NEWER)
            if entry is not None:
                state.set(entry)
        elif action == "submit":
            self.run()
        elif action == "passThrough":
            self._native(data)
        else:
            op = _INDENT_ACTIONS[action]
            self._apply(op(state.text, state.selection_start, state.selection_end, self.config.indent))

    def _native(self, data: str) -> None:
        kb = self._dispatcher.keybindings
        state = self.state
        text, start, end, caret = state.text, state.selection_start, state.selection_end, state.cursor

        if kb.matches(data, "cursorLeft"):
            edit = editing.move_left(text, start, end)
        elif kb.matches(data, "cursorRight"):
            edit = editing.move_right(text, start, end)
        elif kb.matches(data, "cursorUp"):
            edit = editing.move_vertical(text, caret, -1)
        elif kb.matches(data, "cursorDown"):
            edit = editing.move_vertical(text, caret, 1)
        elif kb.matches(data, "cursorLineEnd"):
            edit = editing.move_line_end(text, caret)
        elif kb.matches(data, "deleteCharForward"):
            edit = editing.delete_forward(text, start, end)
        elif kb.matches(data, "selectLeft"):
            edit = editing.extend_selection(text, state.anchor, editing.prev_boundary(text, caret))
        elif kb.matches(data, "selectRight"):
            edit = editing.extend_selection(text, state.anchor, editing.next_boundary(text, caret))
        elif kb.matches(data, "selectUp"):
            edit = editing.extend_selection(text, state.anchor, editing.vertical_target(text, caret, -1))
        elif kb.matches(data, "selectDown"):
            edit = editing.extend_selection(text, state.anchor, editing.vertical_target(text, caret, 1))
        elif kb.matches(data, "selectLineStart"):
            edit = editing.extend_selection(text, state.anchor, indent.line_start(text, caret))
        elif kb.matches(data, "selectLineEnd"):
            edit = editing.extend_selection(text, state.anchor, indent.line_end(text, caret))
        elif is_text_input(data):
            edit = editing.insert_text(text, start, end, data)
        else:
            return
        self._apply(edit)

    def _apply(self, edit: Edit) -> None:
        self.state.apply(edit)
        self._request_render()

    def _click(self, row: int, col: int) -> None:
        prompt_row = row - self._prompt_top
        if 0 <= prompt_row < len(self._prompt_rows):
            if (
                prompt_row == 0
                and self.config.show_run_button
                and col >= self._width - _GLYPH_GUTTER
            ):
                self.run()
                return
            self.focus()
            self.set_cursor_pos(self._offset_at(prompt_row, col))
            return

        output_row = row - self._output_top
        record = self.output.record_at(output_row)
        if record is None:
            return
        if self.output.is_share_cell(output_row, col):
            self.share(record)
            return
        if record.clickable:
            self.set(record.copy_text)
            self.focus()

    def _offset_at(self, prompt_row: int, col: int) -> int:
        cells = self._prompt_rows[prompt_row]
        offset = cells[-1][1]
        for cell_col, cell_offset in cells:
            if cell_col > col:
                break
            offset = cell_offset
        return offset

    # ------------------------------------------------------------------
    # Buffer change handling
    # ------------------------------------------------------------------

    def _set_backend(self, backend: CallbackBackend) -> None:
        self._backend = backend
        self.highlighter.highlighter = backend.highlight
        self.submission.backend = backend

    def _on_buffer_change(self, text: str) -> None:
        self._fragments = self.highlighter.render(text)
        errors = run_validator(self._backend.validate, text)
        if errors is None:
            self.diagnostics.clear()
        else:
            self.diagnostics.update(text, errors)
        self._request_render()

    def _is_complete(self) -> bool:
        return run_validator(self._backend.validate, self.state.text) == []

    def _request_render(self) -> None:
        self.tui.request_render()

    # ------------------------------------------------------------------
    # Prompt rendering
    # ------------------------------------------------------------------

    def _cells(self) -> list[tuple[list[_Cell], int]]:
        """Per buffer line, its graphemes with display attributes and the
        offset just past its last grapheme."""
        state = self.state
        marks = self.diagnostics.marks
        lines: list[tuple[list[_Cell], int]] = []
        offset = 0
        for line in split_lines(self._fragments):
            cells: list[_Cell] = []
            for fragment in line:
                for g in graphemes(fragment.text):
                    cells.append(
                        _Cell(
                            text=" " * TAB_WIDTH if g == "\t" else g,
                            offset=offset,
                            style=fragment.style,
                            selected=state.selection_start <= offset < state.selection_end,
                            marked=any(m.covers(offset) for m in marks),
                        )
                    )
                    offset += len(g)
            lines.append((cells, offset))
            # The newline itself
            offset += 1
        return lines

    def _styled(self, key: tuple[str, bool, bool], text: str) -> str:
        style, marked, selected = key
        theme = self.theme
        text = theme.style_for(style)(text)
        if marked:
            text = theme.diagnostic(text)
        if selected:
            text = theme.selection(text)
        return text

    def _caret(self, text: str) -> str:
        marker = CURSOR_MARKER if self.focused else ""
        return f"{marker}\x1b[7m{text}\x1b[27m"

    def _wrap_line(
        self, cells: list[_Cell], end_offset: int, content_width: int, caret: int | None
    ) -> list[str]:
        """Wrap one buffer line into rows of at most *content_width* columns.

        Records the ``(column, offset)`` of every cell in ``_prompt_rows``.
        """
        rows: list[str] = []
        parts: list[str] = []
        positions: list[tuple[int, int]] = []
        run_key: tuple[str, bool, bool] | None = None
        run_text = ""
        col = 0

        def close_run() -> None:
            nonlocal run_key, run_text
            if run_key is not None and run_text:
                parts.append(self._styled(run_key, run_text))
            run_key, run_text = None, ""

        def new_row() -> None:
            nonlocal parts, positions, col
            close_run()
            rows.append("".join(parts))
            self._prompt_rows.append(positions)
            parts, positions, col = [], [], 0

        for cell in cells:
            w = visible_width(cell.text)
            if col + w > content_width and col > 0:
                new_row()
            positions.append((col, cell.offset))
            if cell.offset == caret:
                close_run()
                parts.append(self._caret(self._styled((cell.style, cell.marked, False), cell.text)))
            else:
                key = (cell.style, cell.marked, cell.selected)
                if key != run_key:
                    close_run()
                    run_key = key
                run_text += cell.text
            col += w

        if end_offset == caret and col + 1 > content_width and col > 0:
            new_row()
        close_run()
        positions.append((col, end_offset))
        if end_offset == caret:
            parts.append(self._caret(" "))
        rows.append("".join(parts))
        self._prompt_rows.append(positions)
        return rows

    def _render_prompt(self, width: int) -> list[str]:
        config = self.config
        theme = self.theme
        prefix_width = max(
            visible_width(config.prompt_prefix), visible_width(config.continuation_prefix)
        )
        gutter = _GLYPH_GUTTER if config.show_run_button else 0
        content_width = max(1, width - prefix_width - gutter)
        caret = None if self.state.has_selection else self.state.cursor

        self._prompt_rows = []
        rows: list[str] = []
        for cells, end_offset in self._cells():
            rows.extend(self._wrap_line(cells, end_offset, content_width, caret))

        lines: list[str] = []
        for i, row in enumerate(rows):
            prefix = config.prompt_prefix if i == 0 else config.continuation_prefix
            style = theme.prompt if i == 0 else theme.continuation
            line = style(prefix) + " " * (prefix_width - visible_width(prefix)) + row
            if gutter:
                line = truncate_to_width(line, width - gutter, pad=True)
                if i == 0:
                    line += " " + theme.button(theme.run_glyph)
            lines.append(line)

        for positions in self._prompt_rows:
            for k, (col, offset) in enumerate(positions):
                positions[k] = (col + prefix_width, offset)
        return lines

    def _render_messages(self, width: int) -> list[str]:
        """Messages of the diagnostics under the caret, one row each."""
        if self.state.has_selection:
            return []
        style = self.theme.diagnostic_message
        return [
            style(truncate_to_width(message, width))
            for message in self.diagnostics.messages_at(self.state.cursor)
        ]
