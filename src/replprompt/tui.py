"""Minimal full-screen TUI with differential rendering.

Provides the ``Component`` and ``Focusable`` protocols, a ``Container`` for
composing children, and the ``TUI`` class that renders them on the alternate
screen of a ``Terminal`` and routes key and mouse input to the focused
component.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from replprompt.keys import parse_mouse
from replprompt.utils import visible_width

if TYPE_CHECKING:
    from replprompt.terminal import Terminal

logger = logging.getLogger(__name__)

__all__ = [
    "Component",
    "Focusable",
    "is_focusable",
    "CURSOR_MARKER",
    "Container",
    "TUI",
]

# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class Component(Protocol):
    """A renderable terminal component.

    ``handle_input(data)`` and ``handle_mouse(event)`` are optional and
    looked up with ``getattr`` where input is dispatched.
    """

    def render(self, width: int) -> list[str]:
        """Render the component into a list of terminal lines."""
        ...

    def invalidate(self) -> None:
        """Drop any cached rendering."""
        ...


@runtime_checkable
class Focusable(Protocol):
    """A component that can receive focus."""

    focused: bool


def is_focusable(component: object | None) -> bool:
    return component is not None and hasattr(component, "focused")


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Zero-width APC marker a component emits where the cursor belongs
CURSOR_MARKER = "\x1b_rp:c\x07"

_HOME = "\x1b[H"
_CLEAR_SCREEN = "\x1b[2J"
_CLEAR_TO_EOL = "\x1b[K"
_RESET = "\x1b[0m"


def _move_to(row: int, col: int) -> str:
    return f"\x1b[{row + 1};{col + 1}H"


def extract_cursor_position(lines: list[str]) -> tuple[list[str], int | None, int]:
    """Remove the first ``CURSOR_MARKER`` from *lines*.

    Returns ``(lines, row, col)``; ``row`` is ``None`` when no marker is
    present.
    """
    for row, line in enumerate(lines):
        pos = line.find(CURSOR_MARKER)
        if pos == -1:
            continue
        cleaned = list(lines)
        cleaned[row] = line[:pos] + line[pos + len(CURSOR_MARKER) :]
        return cleaned, row, visible_width(line[:pos])
    return lines, None, 0


# ---------------------------------------------------------------------------
# Container
# ---------------------------------------------------------------------------


class Container:
    """Renders its children one after another."""

    def __init__(self) -> None:
        self.children: list[object] = []  # list[Component]

    def add_child(self, component: object) -> None:
        self.children.append(component)

    def remove_child(self, component: object) -> None:
        """Remove *component* (no-op if absent)."""
        try:
            self.children.remove(component)
        except ValueError:
            pass

    def clear(self) -> None:
        self.children.clear()

    def invalidate(self) -> None:
        for child in self.children:
            inv = getattr(child, "invalidate", None)
            if inv is not None:
                inv()

    def render(self, width: int) -> list[str]:
        lines: list[str] = []
        for child in self.children:
            lines.extend(child.render(width))  # type: ignore[attr-defined]
        return lines


# ---------------------------------------------------------------------------
# TUI
# ---------------------------------------------------------------------------


class TUI(Container):
    """Drives rendering and input against a ``Terminal``.

    * Renders are requested with :meth:`request_render` and coalesced into
      one pass per event-loop tick.
    * Only lines that changed since the previous frame are rewritten.
    * When the content is taller than the screen the viewport shows its
      bottom rows.
    * Key input goes to the focused component; SGR mouse reports are
      translated into that component's own row coordinates.
    """

    def __init__(self, terminal: Terminal) -> None:
        super().__init__()
        self.terminal: Terminal = terminal

        self._focused_component: object | None = None

        self._previous_lines: list[str] = []
        self._previous_width: int = 0
        self._viewport_top: int = 0
        # First content row of each child in the last render
        self._child_offsets: dict[int, int] = {}

        self._render_requested: bool = False
        self._full_redraw_count: int = 0
        self._stopped: bool = True

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def full_redraws(self) -> int:
        """Number of full (non-differential) redraws performed."""
        return self._full_redraw_count

    @property
    def focused_component(self) -> object | None:
        return self._focused_component

    @property
    def viewport_top(self) -> int:
        return self._viewport_top

    # ------------------------------------------------------------------
    # Focus
    # ------------------------------------------------------------------

    def set_focus(self, component: object | None) -> None:
        """Set the focused component, unfocusing the previous one."""
        if self._focused_component is component:
            return
        if is_focusable(self._focused_component):
            self._focused_component.focused = False  # type: ignore[union-attr]
        self._focused_component = component
        if is_focusable(component):
            component.focused = True  # type: ignore[union-attr]
        self.request_render()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the terminal and draw the first frame."""
        self._stopped = False
        self._previous_lines = []
        self._previous_width = 0
        self.terminal.start(self.handle_input, self.handle_resize)
        self.terminal.hide_cursor()
        self.request_render()

    def stop(self) -> None:
        """Stop rendering and restore the terminal."""
        if self._stopped:
            return
        self._stopped = True
        self.terminal.show_cursor()
        self.terminal.stop()

    def invalidate(self) -> None:
        super().invalidate()
        self.request_render()

    def handle_resize(self) -> None:
        self._previous_width = 0
        self.invalidate()

    # ------------------------------------------------------------------
    # Render scheduling
    # ------------------------------------------------------------------

    def request_render(self) -> None:
        """Schedule a render on the next event-loop tick.

        Multiple calls coalesce into a single pass. Without a running loop
        the render happens immediately.
        """
        if self._stopped or self._render_requested:
            return
        self._render_requested = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._do_render_tick()
            return
        loop.call_soon(self._do_render_tick)

    def _do_render_tick(self) -> None:
        self._render_requested = False
        if not self._stopped:
            self.do_render()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def handle_input(self, data: str) -> None:
        """Dispatch terminal input to the focused component."""
        if self._stopped:
            return
        focused = self._focused_component
        if focused is None:
            return

        event = parse_mouse(data)
        if event is not None:
            handler = getattr(focused, "handle_mouse", None)
            if callable(handler):
                row = event.y + self._viewport_top - self._child_offsets.get(id(focused), 0)
                handler(event.with_row(row))
            return

        handler = getattr(focused, "handle_input", None)
        if callable(handler):
            handler(data)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, width: int) -> list[str]:
        lines: list[str] = []
        self._child_offsets = {}
        for child in self.children:
            self._child_offsets[id(child)] = len(lines)
            lines.extend(child.render(width))  # type: ignore[attr-defined]
        return lines

    def do_render(self) -> None:
        """Render all children and write the changed rows to the terminal."""
        width = self.terminal.columns
        height = self.terminal.rows
        if width <= 0 or height <= 0:
            return

        content = self.render(width)
        content, cursor_row, cursor_col = extract_cursor_position(content)

        viewport_top = max(0, len(content) - height)
        lines = content[viewport_top : viewport_top + height]
        if cursor_row is not None:
            cursor_row -= viewport_top

        full = width != self._previous_width or viewport_top != self._viewport_top
        self._viewport_top = viewport_top

        out: list[str] = []
        if full:
            self._full_redraw_count += 1
            out.append(_CLEAR_SCREEN + _HOME)
            for row, line in enumerate(lines):
                out.append(_move_to(row, 0) + line + _RESET + _CLEAR_TO_EOL)
        else:
            previous = self._previous_lines
            for row in range(max(len(lines), len(previous))):
                if row >= len(lines):
                    out.append(_move_to(row, 0) + _CLEAR_TO_EOL)
                elif row >= len(previous) or lines[row] != previous[row]:
                    out.append(_move_to(row, 0) + lines[row] + _RESET + _CLEAR_TO_EOL)

        if cursor_row is not None and 0 <= cursor_row < height:
            out.append(_move_to(cursor_row, cursor_col))

        self._previous_lines = lines
        self._previous_width = width
        if out:
            self.terminal.write("".join(out))
