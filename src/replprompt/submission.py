"""Submission: history, output records and evaluation of one run."""

from __future__ import annotations

import logging
from typing import Any, Callable

from replprompt.backend import LanguageBackend
from replprompt.config import OutputMode
from replprompt.highlight import HighlightRenderer
from replprompt.history import HistoryLog
from replprompt.output import OutputRecord, OutputRegion
from replprompt.state import PromptState

logger = logging.getLogger(__name__)


def result_text(result: Any) -> str:
    return "" if result is None else str(result)


class SubmissionController:
    """Runs the prompt's code through the backend and records the outcome.

    Whitespace-only input just clears the prompt. Otherwise the raw input is
    pushed to the history, an output record is opened for streamed chunks and
    the final result, and any exception from the evaluator is logged and
    replaced by the generic error block.
    """

    def __init__(
        self,
        state: PromptState,
        history: HistoryLog,
        region: OutputRegion,
        highlighter: HighlightRenderer,
        backend: LanguageBackend,
        output_mode: OutputMode = "history",
        issue_url: str | None = None,
    ) -> None:
        self.state = state
        self.history = history
        self.region = region
        self.highlighter = highlighter
        self.backend = backend
        self.output_mode: OutputMode = output_mode
        self.issue_url = issue_url

        # Called whenever the output region changes mid-run
        self.on_update: Callable[[], None] | None = None

    def submit(self, code: str | None = None) -> OutputRecord | None:
        """Run *code* (the prompt text by default).

        Returns the record holding the result or the error block, or ``None``
        for empty input.
        """
        if code is None:
            code = self.state.text
        if not code.strip():
            self.clear_prompt()
            return None

        self.history.push(code)
        single = self.output_mode == "single"

        if not single:
            self.region.push(OutputRecord.input(self.highlighter.render(code)))
            self.clear_prompt()

        record = self.region.push(OutputRecord("output", clickable=True, source=code))

        def append_partial(chunk: str) -> None:
            record.append(result_text(chunk))
            self.region.invalidate()
            self._updated()

        try:
            result = self.backend.evaluate(code, append_partial)
        except Exception:
            logger.exception("Evaluation failed for %d chars of input", len(code))
            self.region.remove(record)
            if single:
                self.region.clear()
            record = self.region.push(OutputRecord.unexpected_error(self.issue_url))
        else:
            if single:
                self.region.clear()
                self.region.push(record)
            record.append(result_text(result))
            self.region.invalidate()

        self.region.scroll_into_view(record)
        if single:
            self.clear_prompt()
        self._updated()
        return record

    def clear_prompt(self) -> None:
        self.state.clear()
        self.history.reset()

    def _updated(self) -> None:
        if self.on_update is not None:
            self.on_update()
