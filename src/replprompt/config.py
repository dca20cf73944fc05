"""Construction-time widget configuration.

``PromptConfig`` is read once when a :class:`~replprompt.repl.Repl` is built
and never changes afterwards. Values can come from keyword arguments, from a
mapping that uses the widget's data-attribute names (``outputMode``,
``initialInput``, ...), or from a JSON file.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Literal, get_args

from replprompt.errors import ConfigError

OutputMode = Literal["history", "single"]
OutputLocation = Literal["above", "below"]

# data-attribute style names -> field names
_CAMEL_KEYS: dict[str, str] = {
    "indent": "indent",
    "outputMode": "output_mode",
    "outputLocation": "output_location",
    "initialInput": "initial_input",
    "initialHeader": "initial_header",
    "initialRun": "initial_run",
    "diagnosticsDelay": "diagnostics_delay",
    "promptPrefix": "prompt_prefix",
    "continuationPrefix": "continuation_prefix",
    "shareUrl": "share_url",
    "issueUrl": "issue_url",
    "showRunButton": "show_run_button",
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}

DEFAULT_DIAGNOSTICS_DELAY = 1.0


@dataclass(frozen=True)
class PromptConfig:
    """Options for one prompt widget."""

    indent: int = 2
    output_mode: OutputMode = "history"
    output_location: OutputLocation = "above"
    initial_input: str = ""
    initial_header: str = ""
    initial_run: bool = False
    diagnostics_delay: float = DEFAULT_DIAGNOSTICS_DELAY
    prompt_prefix: str = "> "
    continuation_prefix: str = "  "
    share_url: str | None = None
    issue_url: str | None = None
    show_run_button: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.indent, bool) or not isinstance(self.indent, int) or self.indent < 1:
            raise ConfigError(f"indent must be a positive integer, got {self.indent!r}")
        if self.output_mode not in get_args(OutputMode):
            raise ConfigError(
                f"output_mode must be one of {get_args(OutputMode)}, got {self.output_mode!r}"
            )
        if self.output_location not in get_args(OutputLocation):
            raise ConfigError(
                f"output_location must be one of {get_args(OutputLocation)}, "
                f"got {self.output_location!r}"
            )
        if self.diagnostics_delay < 0:
            raise ConfigError("diagnostics_delay must not be negative")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PromptConfig:
        """Build a config from data-attribute or snake_case keys.

        String values are coerced to the field types. A literal ``\\n`` in
        ``initialInput`` becomes a newline, as written in markup attributes.
        Unknown keys raise :class:`ConfigError`.
        """
        types = {f.name: f.type for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_KEYS.get(key, key)
            if name not in types:
                raise ConfigError(f"unknown config key {key!r}")
            kwargs[name] = _coerce(name, value)

        if isinstance(data.get("initialInput"), str):
            kwargs["initial_input"] = kwargs["initial_input"].replace("\\n", "\n")
        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: str | Path) -> PromptConfig:
        """Load a JSON object of config keys from *path*."""
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"cannot read config file {path}: {exc}") from exc
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"invalid JSON in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"config file {path} must contain a JSON object")
        return cls.from_mapping(data)

    def merged(self, overrides: Mapping[str, Any]) -> PromptConfig:
        """Return a copy with the non-``None`` values of *overrides* applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for key, value in overrides.items():
            if value is not None:
                values[_CAMEL_KEYS.get(key, key)] = value
        return PromptConfig(**values)


def _coerce(name: str, value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if name == "indent":
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigError(f"indent must be an integer, got {value!r}") from exc
    if name == "diagnostics_delay":
        try:
            return float(value)
        except ValueError as exc:
            raise ConfigError(f"diagnostics_delay must be a number, got {value!r}") from exc
    if name in ("initial_run", "show_run_button"):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ConfigError(f"{name} must be a boolean, got {value!r}")
    if name in ("share_url", "issue_url"):
        return value or None
    return value
