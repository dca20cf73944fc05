"""Tests for replprompt.backend -- host callback contract."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from replprompt.backend import (
    CallbackBackend,
    Diagnostic,
    EchoBackend,
    HighlightToken,
    LanguageBackend,
    load_backend,
    normalize_diagnostics,
    normalize_tokens,
)
from replprompt.errors import BackendLoadError


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


class TestNormalizeTokens:
    def test_tokens_pass_through(self) -> None:
        tokens = [HighlightToken("keyword", "if")]
        assert normalize_tokens(tokens) == tokens

    def test_pairs(self) -> None:
        assert normalize_tokens([("number", "1"), ("none", " ")]) == [
            HighlightToken("number", "1"),
            HighlightToken("none", " "),
        ]

    def test_flat_alternating_stream(self) -> None:
        assert normalize_tokens(["keyword", "let", "none", " x"]) == [
            HighlightToken("keyword", "let"),
            HighlightToken("none", " x"),
        ]

    def test_odd_flat_stream_rejected(self) -> None:
        with pytest.raises(ValueError):
            normalize_tokens(["keyword", "let", "none"])

    def test_generator_accepted(self) -> None:
        stream = (("none", ch) for ch in "ab")
        assert [t.text for t in normalize_tokens(stream)] == ["a", "b"]


@dataclass
class MethodStyleError:
    """Error object exposing start()/end()/message() methods."""

    s: int
    e: int
    m: str

    def start(self) -> int:
        return self.s

    def end(self) -> int:
        return self.e

    def message(self) -> str:
        return self.m


class TestNormalizeDiagnostics:
    def test_none_and_empty(self) -> None:
        assert normalize_diagnostics(None) == []
        assert normalize_diagnostics([]) == []

    def test_mappings(self) -> None:
        assert normalize_diagnostics([{"start": 1, "end": 2, "message": "bad"}]) == [
            Diagnostic(1, 2, "bad")
        ]

    def test_method_objects(self) -> None:
        assert normalize_diagnostics([MethodStyleError(3, 4, "oops")]) == [
            Diagnostic(3, 4, "oops")
        ]

    def test_diagnostics_pass_through(self) -> None:
        d = Diagnostic(1, 1, "x")
        assert normalize_diagnostics([d]) == [d]


# ---------------------------------------------------------------------------
# CallbackBackend
# ---------------------------------------------------------------------------


class TestCallbackBackend:
    def test_defaults(self) -> None:
        backend = CallbackBackend()
        assert backend.evaluate("1", lambda chunk: None) == ""
        assert list(backend.highlight("abc")) == [HighlightToken("none", "abc")]
        assert list(backend.validate("abc")) == []

    def test_evaluate_without_sink(self) -> None:
        backend = CallbackBackend(evaluate_fn=lambda code: code.upper())
        assert backend.evaluate("abc", lambda chunk: None) == "ABC"

    def test_evaluate_with_sink(self) -> None:
        chunks: list[str] = []

        def evaluate(code: str, append_partial) -> str:  # type: ignore[no-untyped-def]
            append_partial("partial")
            return "done"

        backend = CallbackBackend(evaluate_fn=evaluate)
        assert backend.evaluate("x", chunks.append) == "done"
        assert chunks == ["partial"]

    def test_satisfies_protocol(self) -> None:
        assert isinstance(CallbackBackend(), LanguageBackend)

    def test_from_backend_wraps_methods(self) -> None:
        backend = CallbackBackend.from_backend(EchoBackend())
        assert backend.evaluate("(1)", lambda chunk: None) == "(1)"

    def test_from_callback_backend_copies(self) -> None:
        original = CallbackBackend(evaluate_fn=lambda code: "r")
        copy = CallbackBackend.from_backend(original)
        assert copy is not original
        assert copy.evaluate("x", lambda chunk: None) == "r"


# ---------------------------------------------------------------------------
# EchoBackend
# ---------------------------------------------------------------------------


class TestEchoBackend:
    def test_evaluate_echoes(self) -> None:
        assert EchoBackend().evaluate("a\nb", lambda chunk: None) == "a\nb"

    def test_highlight_styles(self) -> None:
        tokens = EchoBackend().highlight('print("hi", 42)')
        assert tokens == [
            HighlightToken("none", "print"),
            HighlightToken("punctuation", "("),
            HighlightToken("string", '"hi"'),
            HighlightToken("none", ", "),
            HighlightToken("number", "42"),
            HighlightToken("punctuation", ")"),
        ]

    @pytest.mark.parametrize("code", ["", "abc", "f(x)\n  [1, 2]", "'unterminated", "{}}"])
    def test_highlight_round_trip(self, code: str) -> None:
        assert "".join(t.text for t in EchoBackend().highlight(code)) == code

    def test_validate_balanced(self) -> None:
        assert EchoBackend().validate("f([1], {2})") == []

    def test_validate_unclosed(self) -> None:
        assert EchoBackend().validate("f(") == [Diagnostic(2, 2, "unclosed '('")]

    def test_validate_unexpected(self) -> None:
        assert EchoBackend().validate("a)") == [Diagnostic(2, 2, "unexpected ')'")]

    def test_validate_ignores_brackets_in_strings(self) -> None:
        assert EchoBackend().validate('x = "("') == []


# ---------------------------------------------------------------------------
# load_backend
# ---------------------------------------------------------------------------


class TestLoadBackend:
    def test_class_is_instantiated(self) -> None:
        assert isinstance(load_backend("replprompt.backend:EchoBackend"), EchoBackend)

    @pytest.mark.parametrize("reference", ["replprompt.backend", ":EchoBackend", "mod:"])
    def test_malformed_reference(self, reference: str) -> None:
        with pytest.raises(BackendLoadError):
            load_backend(reference)

    def test_missing_module(self) -> None:
        with pytest.raises(BackendLoadError, match="cannot import"):
            load_backend("replprompt_no_such_module:Backend")

    def test_missing_attribute(self) -> None:
        with pytest.raises(BackendLoadError, match="no attribute"):
            load_backend("replprompt.backend:NoSuchBackend")

    def test_not_a_backend(self) -> None:
        with pytest.raises(BackendLoadError):
            load_backend("replprompt.errors:ReplPromptError")

    def test_factory_needing_arguments(self) -> None:
        with pytest.raises(BackendLoadError):
            load_backend("replprompt.backend:normalize_tokens")
