"""Exception types raised by replprompt."""

from __future__ import annotations


class ReplPromptError(Exception):
    """Base class for errors raised by this package."""


class ConfigError(ReplPromptError, ValueError):
    """A configuration value is missing, malformed or out of range."""


class BackendLoadError(ReplPromptError):
    """A ``module:attr`` backend reference could not be resolved."""


class ShareError(ReplPromptError):
    """A share URL could not be copied to the clipboard."""
