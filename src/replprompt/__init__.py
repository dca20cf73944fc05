"""replprompt: multi-line REPL prompt widget for the terminal."""

# Language backends
from replprompt.backend import (
    CallbackBackend,
    Diagnostic,
    EchoBackend,
    HighlightToken,
    LanguageBackend,
    load_backend,
)

# Configuration
from replprompt.config import OutputLocation, OutputMode, PromptConfig

# Diagnostics
from replprompt.diagnostics import AsyncioScheduler, DiagnosticsRenderer, Scheduler

# Key dispatch
from replprompt.dispatch import Decision, DispatchAction, KeyDispatcher

# Errors
from replprompt.errors import BackendLoadError, ConfigError, ReplPromptError, ShareError

# Highlighting
from replprompt.highlight import HighlightRenderer, StyledFragment

# History
from replprompt.history import HistoryLog

# Keybindings
from replprompt.keybindings import (
    DEFAULT_PROMPT_KEYBINDINGS,
    PromptAction,
    PromptKeybindingsManager,
    get_prompt_keybindings,
    set_prompt_keybindings,
)

# Keyboard and mouse input
from replprompt.keys import KeyId, MouseEvent, matches_key, parse_key, parse_mouse

# Output region
from replprompt.output import OutputRecord, OutputRegion

# The widget
from replprompt.repl import Repl

# Sharing
from replprompt.share import copy_to_clipboard, encode_share_url

# Editing state
from replprompt.state import Edit, PromptState

# Input buffering
from replprompt.stdin_buffer import StdinBuffer

# Submission
from replprompt.submission import SubmissionController

# Terminal interface and implementation
from replprompt.terminal import ProcessTerminal, Terminal

# Styling
from replprompt.theme import PromptTheme, plain_theme

# Core TUI
from replprompt.tui import CURSOR_MARKER, TUI, Component, Container, Focusable, is_focusable

# Utilities
from replprompt.utils import truncate_to_width, visible_width, wrap_text_with_ansi

__all__ = [
    # Backends
    "CallbackBackend",
    "Diagnostic",
    "EchoBackend",
    "HighlightToken",
    "LanguageBackend",
    "load_backend",
    # Config
    "OutputLocation",
    "OutputMode",
    "PromptConfig",
    # Diagnostics
    "AsyncioScheduler",
    "DiagnosticsRenderer",
    "Scheduler",
    # Dispatch
    "Decision",
    "DispatchAction",
    "KeyDispatcher",
    # Errors
    "BackendLoadError",
    "ConfigError",
    "ReplPromptError",
    "ShareError",
    # Highlighting
    "HighlightRenderer",
    "StyledFragment",
    # History
    "HistoryLog",
    # Keybindings
    "DEFAULT_PROMPT_KEYBINDINGS",
    "PromptAction",
    "PromptKeybindingsManager",
    "get_prompt_keybindings",
    "set_prompt_keybindings",
    # Keys
    "KeyId",
    "MouseEvent",
    "matches_key",
    "parse_key",
    "parse_mouse",
    # Output
    "OutputRecord",
    "OutputRegion",
    # Widget
    "Repl",
    # Share
    "copy_to_clipboard",
    "encode_share_url",
    # State
    "Edit",
    "PromptState",
    # Stdin buffer
    "StdinBuffer",
    # Submission
    "SubmissionController",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # Theme
    "PromptTheme",
    "plain_theme",
    # TUI core
    "CURSOR_MARKER",
    "Component",
    "Container",
    "Focusable",
    "TUI",
    "is_focusable",
    # Utilities
    "truncate_to_width",
    "visible_width",
    "wrap_text_with_ansi",
]
