"""Key dispatch: decide what a key press does to the prompt.

The dispatcher is a pure decision table over the key, the selection and the
history size. It never touches the buffer; the widget carries out the
returned :class:`Decision`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

from replprompt.keybindings import PromptKeybindingsManager, get_prompt_keybindings
from replprompt.state import PromptState

DispatchAction = Literal[
    "historyOlder",
    "historyNewer",
    "submit",
    "smartNewline",
    "smartBackspace",
    "smartHome",
    "indent",
    "dedent",
    "blockIndent",
    "blockDedent",
    "passThrough",
]


@dataclass(frozen=True)
class Decision:
    action: DispatchAction
    reset_history: bool = False


class KeyDispatcher:
    """Evaluates the prompt's key table on every key press."""

    def __init__(self, keybindings: PromptKeybindingsManager | None = None) -> None:
        self._keybindings = keybindings

    @property
    def keybindings(self) -> PromptKeybindingsManager:
        return self._keybindings or get_prompt_keybindings()

    def decide(
        self,
        data: str,
        state: PromptState,
        history_size: int,
        is_complete: Callable[[], bool],
    ) -> Decision:
        """Return the action for raw key input *data*.

        *is_complete* is only called for Enter pressed at the end of the
        buffer, so validation does not run on other keys.
        """
        kb = self.keybindings
        is_up = kb.matches(data, "cursorUp")
        is_down = kb.matches(data, "cursorDown")

        if is_up and state.at_start and history_size > 0:
            return Decision("historyOlder")
        if is_down and state.at_end and history_size > 0:
            return Decision("historyNewer")

        reset = not (is_up or is_down)

        if kb.matches(data, "newLine"):
            return Decision("smartNewline", reset)
        if kb.matches(data, "forceSubmit"):
            return Decision("submit", reset)
        if kb.matches(data, "submit"):
            if state.at_end and is_complete():
                return Decision("submit", reset)
            return Decision("smartNewline", reset)
        if kb.matches(data, "deleteCharBackward"):
            return Decision("smartBackspace", reset)
        if kb.matches(data, "smartHome"):
            return Decision("smartHome", reset)
        if kb.matches(data, "dedent"):
            return Decision("blockDedent" if state.has_selection else "dedent", reset)
        if kb.matches(data, "indent"):
            return Decision("blockIndent" if state.has_selection else "indent", reset)
        return Decision("passThrough", reset)
