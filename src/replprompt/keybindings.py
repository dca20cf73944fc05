"""Prompt keybindings manager."""

from __future__ import annotations

from typing import Literal

from replprompt.keys import KeyId, matches_key

PromptAction = Literal[
    # History browsing / vertical movement
    "cursorUp",
    "cursorDown",
    # Submission
    "submit",
    "forceSubmit",
    "newLine",
    # Smart editing
    "deleteCharBackward",
    "smartHome",
    "indent",
    "dedent",
    # Native text-field behaviour
    "cursorLeft",
    "cursorRight",
    "cursorLineEnd",
    "deleteCharForward",
    "selectLeft",
    "selectRight",
    "selectUp",
    "selectDown",
    "selectLineStart",
    "selectLineEnd",
    # Output region
    "scrollUp",
    "scrollDown",
    "clearOutput",
    # Host
    "exit",
]

PromptKeybindingsConfig = dict[PromptAction, KeyId | list[KeyId]]

DEFAULT_PROMPT_KEYBINDINGS: dict[PromptAction, KeyId | list[KeyId]] = {
    "cursorUp": "up",
    "cursorDown": "down",
    "submit": "enter",
    "forceSubmit": ["ctrl+enter", "super+enter", "alt+enter", "ctrl+j"],
    "newLine": "shift+enter",
    "deleteCharBackward": "backspace",
    "smartHome": ["home", "alt+left", "super+left"],
    "indent": "tab",
    "dedent": "shift+tab",
    "cursorLeft": ["left", "ctrl+b"],
    "cursorRight": ["right", "ctrl+f"],
    "cursorLineEnd": ["end", "ctrl+e", "alt+right", "super+right"],
    "deleteCharForward": "delete",
    "selectLeft": "shift+left",
    "selectRight": "shift+right",
    "selectUp": "shift+up",
    "selectDown": "shift+down",
    "selectLineStart": "shift+home",
    "selectLineEnd": "shift+end",
    "scrollUp": "pageUp",
    "scrollDown": "pageDown",
    "clearOutput": "ctrl+l",
    "exit": ["ctrl+c", "ctrl+d"],
}


class PromptKeybindingsManager:
    """Maps prompt actions to the keys that trigger them."""

    def __init__(
        self, config: PromptKeybindingsConfig | None = None
    ) -> None:
        self._action_to_keys: dict[PromptAction, list[KeyId]] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: PromptKeybindingsConfig) -> None:
        for source in (DEFAULT_PROMPT_KEYBINDINGS, config):
            for action, keys in source.items():
                key_array = keys if isinstance(keys, list) else [keys]
                self._action_to_keys[action] = list(key_array)

    def matches(self, data: str, action: PromptAction) -> bool:
        """Check if input matches a specific action."""
        return any(matches_key(data, key) for key in self._action_to_keys.get(action, []))


_global_prompt_keybindings: PromptKeybindingsManager | None = None


def get_prompt_keybindings() -> PromptKeybindingsManager:
    """Return the process-wide manager, creating it on first use."""
    global _global_prompt_keybindings
    if _global_prompt_keybindings is None:
        _global_prompt_keybindings = PromptKeybindingsManager()
    return _global_prompt_keybindings


def set_prompt_keybindings(manager: PromptKeybindingsManager) -> None:
    global _global_prompt_keybindings
    _global_prompt_keybindings = manager
