"""CLI entry point: run a prompt widget full-screen in the terminal."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any

from replprompt.backend import EchoBackend, LanguageBackend, load_backend
from replprompt.config import PromptConfig
from replprompt.errors import ReplPromptError
from replprompt.repl import Repl
from replprompt.terminal import ProcessTerminal
from replprompt.tui import TUI

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="replprompt",
        description="Interactive multi-line REPL prompt",
    )
    parser.add_argument("--config", help="JSON file of widget options")
    parser.add_argument(
        "--backend",
        help="Language backend as 'module:attr' (default: built-in echo backend)",
    )
    parser.add_argument("--indent", type=int, help="Spaces per indentation level (default: 2)")
    parser.add_argument("--output-mode", choices=["history", "single"], help="Output mode")
    parser.add_argument(
        "--output-location", choices=["above", "below"], help="Output region position"
    )
    parser.add_argument("--initial-input", help="Prompt contents at startup ('\\n' for newlines)")
    parser.add_argument("--initial-header", help="Text shown at the top of the output")
    parser.add_argument(
        "--initial-run",
        action="store_const",
        const=True,
        help="Submit the initial input at startup",
    )
    parser.add_argument(
        "--diagnostics-delay", type=float, help="Seconds before diagnostics are shown"
    )
    parser.add_argument("--prompt-prefix", help="Prefix of the first prompt row")
    parser.add_argument("--continuation-prefix", help="Prefix of the following rows")
    parser.add_argument("--share-url", help="Base URL for share links (enables sharing)")
    parser.add_argument("--issue-url", help="Link shown in the unexpected-error block")
    parser.add_argument(
        "--no-run-button",
        dest="show_run_button",
        action="store_const",
        const=False,
        help="Hide the run glyph",
    )
    parser.add_argument(
        "--log-level", default="info", choices=["debug", "info", "warning", "error"]
    )
    parser.add_argument("--log-file", help="Write logs to this file")
    return parser


def config_from_args(args: argparse.Namespace) -> PromptConfig:
    """Load ``--config`` (if any) and apply the command-line overrides."""
    config = PromptConfig.from_file(args.config) if args.config else PromptConfig()
    overrides: dict[str, Any] = {
        "indent": args.indent,
        "output_mode": args.output_mode,
        "output_location": args.output_location,
        "initial_input": (
            args.initial_input.replace("\\n", "\n") if args.initial_input is not None else None
        ),
        "initial_header": args.initial_header,
        "initial_run": args.initial_run,
        "diagnostics_delay": args.diagnostics_delay,
        "prompt_prefix": args.prompt_prefix,
        "continuation_prefix": args.continuation_prefix,
        "share_url": args.share_url,
        "issue_url": args.issue_url,
        "show_run_button": args.show_run_button,
    }
    return config.merged(overrides)


def setup_logging(level: str, log_file: str | None) -> None:
    # The UI owns the screen, so logs only go to a file
    if log_file is None:
        logging.getLogger().addHandler(logging.NullHandler())
        return
    logging.basicConfig(
        filename=log_file,
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
    )


async def run_interactive(backend: LanguageBackend, config: PromptConfig) -> None:
    """Run the widget until the user exits."""
    tui = TUI(ProcessTerminal())
    repl = Repl(tui, backend, config)
    done = asyncio.Event()
    repl.on_exit = done.set
    repl.on_share = lambda url: logger.info("Copied share URL %s", url)

    tui.add_child(repl)
    tui.start()
    repl.focus()
    try:
        await done.wait()
    finally:
        tui.stop()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    try:
        config = config_from_args(args)
        backend = load_backend(args.backend) if args.backend else EchoBackend()
    except ReplPromptError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if not sys.stdin.isatty():
        print("Error: replprompt needs an interactive terminal", file=sys.stderr)
        return 1

    logger.info("Starting prompt with %s", type(backend).__name__)
    asyncio.run(run_interactive(backend, config))
    return 0


if __name__ == "__main__":
    sys.exit(main())
