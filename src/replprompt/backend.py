"""Language backend contract: evaluate, highlight and validate callbacks.

The widget never depends on a specific language. A host supplies an object
implementing :class:`LanguageBackend`, or three plain callables wrapped in a
:class:`CallbackBackend`.
"""

from __future__ import annotations

import importlib
import inspect
import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol, runtime_checkable

from replprompt.errors import BackendLoadError

logger = logging.getLogger(__name__)

AppendPartial = Callable[[str], None]


@dataclass(frozen=True)
class HighlightToken:
    """A run of source text sharing one style tag."""

    style: str
    text: str


@dataclass(frozen=True)
class Diagnostic:
    """A validation error.

    ``start`` and ``end`` are 1-based, inclusive character positions into
    the buffer that was validated.
    """

    start: int
    end: int
    message: str


@runtime_checkable
class LanguageBackend(Protocol):
    """The three capabilities a host provides."""

    def evaluate(self, code: str, append_partial: AppendPartial) -> str:
        """Run *code*; may call *append_partial* zero or more times first."""
        ...

    def highlight(self, code: str) -> Iterable[Any]:
        """Return a token stream whose text concatenates back to *code*."""
        ...

    def validate(self, code: str) -> Sequence[Any]:
        """Return diagnostics; an empty sequence means ready to submit."""
        ...


# ---------------------------------------------------------------------------
# Normalization of host return values
# ---------------------------------------------------------------------------


def normalize_tokens(stream: Iterable[Any]) -> list[HighlightToken]:
    """Coerce a host token stream into :class:`HighlightToken` objects.

    Accepts tokens, ``(style, text)`` pairs, or a flat alternating
    ``[style, text, style, text, ...]`` sequence.
    """
    items = list(stream)
    if items and all(isinstance(item, str) for item in items):
        if len(items) % 2:
            raise ValueError("flat token stream must alternate style and text")
        return [HighlightToken(items[i], items[i + 1]) for i in range(0, len(items), 2)]

    tokens: list[HighlightToken] = []
    for item in items:
        if isinstance(item, HighlightToken):
            tokens.append(item)
        else:
            style, text = item
            tokens.append(HighlightToken(str(style), str(text)))
    return tokens


def _diagnostic_field(error: Any, name: str) -> Any:
    if isinstance(error, Mapping):
        return error[name]
    value = getattr(error, name)
    return value() if callable(value) else value


def normalize_diagnostics(errors: Iterable[Any] | None) -> list[Diagnostic]:
    """Coerce host validation results into :class:`Diagnostic` objects.

    Accepts diagnostics, mappings with ``start``/``end``/``message`` keys, or
    objects exposing ``start()``/``end()``/``message()`` methods.
    """
    if not errors:
        return []
    diagnostics: list[Diagnostic] = []
    for error in errors:
        if isinstance(error, Diagnostic):
            diagnostics.append(error)
            continue
        diagnostics.append(
            Diagnostic(
                start=int(_diagnostic_field(error, "start")),
                end=int(_diagnostic_field(error, "end")),
                message=str(_diagnostic_field(error, "message")),
            )
        )
    return diagnostics


# ---------------------------------------------------------------------------
# CallbackBackend
# ---------------------------------------------------------------------------


def _plain_highlight(code: str) -> list[HighlightToken]:
    return [HighlightToken("none", code)]


def _always_valid(code: str) -> list[Diagnostic]:
    return []


def _no_output(code: str) -> str:
    return ""


def _accepts_sink(fn: Callable[..., Any]) -> bool:
    """Return ``True`` if *fn* can be called with ``(code, append_partial)``."""
    try:
        inspect.signature(fn).bind("", lambda chunk: None)
    except TypeError:
        return False
    except ValueError:
        # Builtins without a signature; assume the full contract
        return True
    return True


@dataclass
class CallbackBackend:
    """A backend assembled from three plain callables.

    ``evaluate`` may take just the code; the streaming sink is then omitted.
    """

    evaluate_fn: Callable[..., Any] = _no_output
    highlight_fn: Callable[[str], Iterable[Any]] = _plain_highlight
    validate_fn: Callable[[str], Sequence[Any]] = _always_valid
    _streams: bool = field(init=False, repr=False, default=True)

    def __post_init__(self) -> None:
        self._streams = _accepts_sink(self.evaluate_fn)

    def evaluate(self, code: str, append_partial: AppendPartial) -> str:
        if self._streams:
            return self.evaluate_fn(code, append_partial)
        return self.evaluate_fn(code)

    def highlight(self, code: str) -> Iterable[Any]:
        return self.highlight_fn(code)

    def validate(self, code: str) -> Sequence[Any]:
        return self.validate_fn(code)

    @classmethod
    def from_backend(cls, backend: LanguageBackend) -> CallbackBackend:
        if isinstance(backend, CallbackBackend):
            return cls(backend.evaluate_fn, backend.highlight_fn, backend.validate_fn)
        return cls(backend.evaluate, backend.highlight, backend.validate)


# ---------------------------------------------------------------------------
# EchoBackend
# ---------------------------------------------------------------------------

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}

_ECHO_TOKEN_RE = re.compile(
    r"(?P<string>\"(?:[^\"\\\n]|\\.)*\"?|'(?:[^'\\\n]|\\.)*'?)"
    r"|(?P<number>\b\d+(?:\.\d+)?\b)"
    r"|(?P<punctuation>[()\[\]{}])"
)


class EchoBackend:
    """Demo backend: echoes submitted code back as its output.

    Highlights strings, numbers and brackets, and reports unbalanced
    brackets so that Enter only submits complete input.
    """

    def evaluate(self, code: str, append_partial: AppendPartial) -> str:
        return code

    def highlight(self, code: str) -> list[HighlightToken]:
        tokens: list[HighlightToken] = []
        pos = 0
        for m in _ECHO_TOKEN_RE.finditer(code):
            if m.start() > pos:
                tokens.append(HighlightToken("none", code[pos : m.start()]))
            tokens.append(HighlightToken(m.lastgroup or "none", m.group()))
            pos = m.end()
        if pos < len(code):
            tokens.append(HighlightToken("none", code[pos:]))
        return tokens

    def validate(self, code: str) -> list[Diagnostic]:
        stack: list[tuple[str, int]] = []
        errors: list[Diagnostic] = []
        stripped = _ECHO_TOKEN_RE.sub(
            lambda m: " " * len(m.group()) if m.lastgroup == "string" else m.group(), code
        )
        for i, ch in enumerate(stripped):
            if ch in _OPENERS:
                stack.append((ch, i))
            elif ch in _CLOSERS:
                if stack and stack[-1][0] == _CLOSERS[ch]:
                    stack.pop()
                else:
                    errors.append(Diagnostic(i + 1, i + 1, f"unexpected '{ch}'"))
        for ch, i in stack:
            errors.append(Diagnostic(i + 1, i + 1, f"unclosed '{ch}'"))
        return errors


# ---------------------------------------------------------------------------
# load_backend
# ---------------------------------------------------------------------------


def load_backend(reference: str) -> LanguageBackend:
    """Resolve ``"package.module:attr"`` into a backend.

    *attr* may name a backend object, a class, or a zero-argument factory.
    """
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise BackendLoadError(f"expected 'module:attr', got {reference!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise BackendLoadError(f"cannot import backend module {module_name!r}: {exc}") from exc

    try:
        target = getattr(module, attr)
    except AttributeError as exc:
        raise BackendLoadError(f"module {module_name!r} has no attribute {attr!r}") from exc

    if inspect.isclass(target) or not hasattr(target, "evaluate"):
        if not callable(target):
            raise BackendLoadError(f"{reference!r} is neither a backend nor a factory")
        try:
            backend = target()
        except TypeError as exc:
            raise BackendLoadError(f"cannot call {reference!r} without arguments: {exc}") from exc
    else:
        backend = target
    if not isinstance(backend, LanguageBackend):
        raise BackendLoadError(
            f"{reference!r} does not provide evaluate, highlight and validate"
        )
    logger.debug("Loaded backend %s from %s", type(backend).__name__, reference)
    return backend
