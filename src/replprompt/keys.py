"""Keyboard and mouse input parsing for terminal applications.

Handles the kitty keyboard protocol, xterm ``modifyOtherKeys``, legacy
escape sequences, ESC-prefixed Alt combinations and SGR mouse reports.
``parse_key`` turns raw terminal input into a key identifier such as
``"ctrl+enter"`` or ``"shift+tab"``; ``matches_key`` compares raw input with
an identifier written in any modifier order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Type alias
# ---------------------------------------------------------------------------

KeyId = str

# ---------------------------------------------------------------------------
# Global state: kitty keyboard protocol
# ---------------------------------------------------------------------------

_kitty_protocol_active: bool = False


def set_kitty_protocol_active(active: bool) -> None:
    global _kitty_protocol_active
    _kitty_protocol_active = active


def is_kitty_protocol_active() -> bool:
    return _kitty_protocol_active


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Modifier bits as encoded by xterm/kitty (the wire value is bits + 1)
MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
    "super": 8,
}

# Caps lock and num lock bits are ignored when matching
LOCK_MASK = 64 + 128

# Canonical modifier order used in key identifiers
_MODIFIER_ORDER = ("ctrl", "shift", "alt", "super")

_MODIFIER_ALIASES: dict[str, str] = {
    "control": "ctrl",
    "option": "alt",
    "meta": "super",
    "cmd": "super",
    "command": "super",
}

_KEY_ALIASES: dict[str, str] = {
    "esc": "escape",
    "return": "enter",
    "pageup": "pageUp",
    "pagedown": "pageDown",
}

# Codepoints reported by CSI-u for non-printing keys
CODEPOINTS: dict[int, str] = {
    27: "escape",
    9: "tab",
    13: "enter",
    32: "space",
    127: "backspace",
    57414: "enter",  # keypad enter
}

# Final byte of ``CSI 1;<mod> X`` sequences
_LETTER_KEYS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
}

# Number of ``CSI <n>;<mod> ~`` sequences
_TILDE_KEYS: dict[int, str] = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "pageUp",
    6: "pageDown",
    7: "home",
    8: "end",
}

# Unmodified legacy sequences
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    **{f"\x1b[{letter}": name for letter, name in _LETTER_KEYS.items()},
    **{f"\x1bO{letter}": name for letter, name in _LETTER_KEYS.items()},
    **{f"\x1b[{number}~": name for number, name in _TILDE_KEYS.items()},
    "\x1b[Z": "shift+tab",
}

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

# CSI u: \x1b[<codepoint>(:<shifted>(:<base>))?(;<modifier>(:<event>))?u
_KITTY_CSI_U_RE = re.compile(
    r"^\x1b\[(\d+)(?::(\d*)(?::(\d+))?)?(?:;(\d+)(?::(\d+))?)?u$"
)

# Letter keys with modifier: \x1b[1;<modifier>(:<event>)?[ABCDHF]
_MODIFIED_LETTER_RE = re.compile(r"^\x1b\[1;(\d+)(?::(\d+))?([ABCDHF])$")

# Tilde keys with modifier: \x1b[<number>;<modifier>(:<event>)?~
_MODIFIED_TILDE_RE = re.compile(r"^\x1b\[(\d+);(\d+)(?::(\d+))?~$")

# xterm modifyOtherKeys: \x1b[27;<modifier>;<keycode>~
_MODIFY_OTHER_KEYS_RE = re.compile(r"^\x1b\[27;(\d+);(\d+)~$")

# SGR mouse: \x1b[<<button>;<x>;<y>(M|m)
_SGR_MOUSE_RE = re.compile(r"^\x1b\[<(\d+);(\d+);(\d+)([Mm])$")

_RELEASE_EVENT = 3


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _prefix_for(modifier_field: int) -> str:
    """Build a ``ctrl+shift+...`` prefix from a wire modifier value."""
    mod = (modifier_field - 1) & ~LOCK_MASK
    return "".join(f"{name}+" for name in _MODIFIER_ORDER if mod & MODIFIERS[name])


def _name_for_codepoint(codepoint: int) -> str | None:
    name = CODEPOINTS.get(codepoint)
    if name is not None:
        return name
    # Private-use area: keypad and lone modifier keys
    if 57344 <= codepoint <= 63743:
        return None
    if codepoint > 0:
        ch = chr(codepoint)
        if ch.isprintable():
            return ch.lower()
    return None


def normalize_key_id(key_id: str) -> str:
    """Rewrite *key_id* with canonical modifier order and key aliases.

    ``"Shift+Ctrl+Enter"`` and ``"ctrl+shift+enter"`` both normalize to
    ``"ctrl+shift+enter"``.
    """
    parts = key_id.split("+")
    if key_id.endswith("++"):
        parts = parts[:-2] + ["+"]
    *mods, key = parts
    modifiers = {_MODIFIER_ALIASES.get(m.lower(), m.lower()) for m in mods}
    key = _KEY_ALIASES.get(key.lower(), key.lower())
    prefix = "".join(f"{m}+" for m in _MODIFIER_ORDER if m in modifiers)
    return prefix + key


# ---------------------------------------------------------------------------
# parse_key
# ---------------------------------------------------------------------------


def parse_key(data: str) -> KeyId | None:  # noqa: C901
    """Parse raw terminal input and return the key identifier, or ``None``.

    Returned identifiers use the canonical form ``matches_key`` compares
    against, e.g. ``"a"``, ``"ctrl+a"``, ``"shift+enter"``, ``"alt+left"``.
    Key-release reports return ``None``.
    """
    if not data:
        return None

    # --- kitty CSI u ---
    m = _KITTY_CSI_U_RE.match(data)
    if m:
        modifier = int(m.group(4)) if m.group(4) else 1
        event = int(m.group(5)) if m.group(5) else 1
        if event == _RELEASE_EVENT:
            return None
        name = _name_for_codepoint(int(m.group(1)))
        return _prefix_for(modifier) + name if name is not None else None

    # --- modified cursor / home / end keys ---
    m = _MODIFIED_LETTER_RE.match(data)
    if m:
        if m.group(2) and int(m.group(2)) == _RELEASE_EVENT:
            return None
        return _prefix_for(int(m.group(1))) + _LETTER_KEYS[m.group(3)]

    # --- modifyOtherKeys ---
    m = _MODIFY_OTHER_KEYS_RE.match(data)
    if m:
        name = _name_for_codepoint(int(m.group(2)))
        return _prefix_for(int(m.group(1))) + name if name is not None else None

    # --- modified tilde keys (delete, page up, ...) ---
    m = _MODIFIED_TILDE_RE.match(data)
    if m:
        name = _TILDE_KEYS.get(int(m.group(1)))
        if name is None or (m.group(3) and int(m.group(3)) == _RELEASE_EVENT):
            return None
        return _prefix_for(int(m.group(2))) + name

    legacy = LEGACY_KEY_SEQUENCES.get(data)
    if legacy is not None:
        return legacy

    # --- single-byte keys ---
    if data == "\x1b":
        return "escape"
    if data == "\r":
        return "enter"
    # Ctrl+Enter arrives as a bare line feed on most legacy terminals
    if data == "\n":
        return "ctrl+j"
    if data == "\t":
        return "tab"
    if data == " ":
        return "space"
    if data in ("\x7f", "\x08"):
        return "backspace"
    if data == "\x00":
        return "ctrl+space"
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return "ctrl+" + chr(ord(data) + ord("a") - 1)

    # --- Alt + key (ESC prefix) ---
    if data[0] == "\x1b" and len(data) > 1:
        rest = data[1:]
        if len(rest) == 1 and rest.isupper():
            return "shift+alt+" + rest.lower()
        inner = parse_key(rest)
        if inner is not None and "alt+" not in inner:
            return normalize_key_id("alt+" + inner)
        return None

    if len(data) == 1 and data.isprintable():
        return data

    return None


def matches_key(data: str, key_id: KeyId) -> bool:
    """Return ``True`` if raw input *data* corresponds to *key_id*."""
    parsed = parse_key(data)
    return parsed is not None and parsed == normalize_key_id(key_id)


def is_text_input(data: str) -> bool:
    """Return ``True`` if *data* is plain text rather than a control sequence."""
    return bool(data) and not any(
        ord(ch) < 32 or ord(ch) == 0x7F or 0x80 <= ord(ch) <= 0x9F for ch in data
    )


# ---------------------------------------------------------------------------
# Mouse
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MouseEvent:
    """A decoded SGR mouse report.

    ``x`` and ``y`` are 0-based screen coordinates. The TUI rewrites ``y``
    into a content row before handing the event to a component.
    """

    button: int
    x: int
    y: int
    pressed: bool
    motion: bool = False
    wheel: bool = False

    @property
    def released(self) -> bool:
        return not self.pressed

    def with_row(self, row: int) -> MouseEvent:
        return MouseEvent(self.button, self.x, row, self.pressed, self.motion, self.wheel)


def parse_mouse(data: str) -> MouseEvent | None:
    """Decode an SGR mouse report, or return ``None``."""
    m = _SGR_MOUSE_RE.match(data)
    if m is None:
        return None
    code = int(m.group(1))
    return MouseEvent(
        button=code & 3,
        x=int(m.group(2)) - 1,
        y=int(m.group(3)) - 1,
        pressed=m.group(4) == "M",
        motion=bool(code & 32),
        wheel=bool(code & 64),
    )
