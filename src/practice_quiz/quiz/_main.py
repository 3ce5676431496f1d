"""CLI entry point for running quizzes."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from practice_quiz.core import config_templates
from practice_quiz.core import workspace as workspace_mod
from practice_quiz.core.config_templates import ConfigTemplateError
from practice_quiz.core.logging import configure_logger
from practice_quiz.core.workspace import WorkspaceError

from .config import (
    ConfigOverrides,
    LoadResult,
    QuizConfigError,
    default_config_path,
    load_config,
)
from .console import run_console_quiz
from .loader import LoadFailure, QuestionLoader
from .session import QuizSession

LOGGER_NAME = "practice_quiz.quiz"


def _add_run_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--source",
        help=(
            "URL or path of a JSON question document (defaults to the "
            "configured source or the bundled sample questions)."
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a quiz.toml (defaults to the workspace config directory).",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root used for config and logs.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds to wait for a remote question document.",
    )
    parser.add_argument(
        "--no-explain",
        dest="explain",
        action="store_false",
        default=None,
        help="Hide explanations after answering.",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level for the run log file (defaults to INFO).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Also write log records to stderr.",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="practice-quiz quiz",
        description="Take a multiple-choice practice quiz.",
        epilog=(
            "Run `practice-quiz quiz config init` to scaffold the default "
            "quiz.toml template."
        ),
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sp_play = sub.add_parser("play", help="Take the quiz in the console")
    _add_run_options(sp_play)

    sp_tui = sub.add_parser("tui", help="Take the quiz in a full-screen TUI")
    _add_run_options(sp_tui)

    sp_check = sub.add_parser(
        "check", help="Load the question source once and report the result"
    )
    _add_run_options(sp_check)
    return parser


def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="practice-quiz quiz config",
        description="Manage the quiz configuration file.",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    init_parser = sub.add_parser("init", help="Write the default quiz.toml.")
    init_parser.add_argument(
        "--path",
        type=Path,
        help="Destination for quiz.toml (defaults to the workspace config dir).",
    )
    init_parser.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root used when resolving the default path.",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    if args_list[:1] == ["config"]:
        return _handle_config(args_list[1:])

    parser = build_arg_parser()
    args = parser.parse_args(args_list)
    overrides = ConfigOverrides(
        source=args.source,
        timeout_seconds=args.timeout,
        show_explanations=args.explain,
        log_level=args.log_level,
        verbose=args.verbose,
    )
    try:
        loaded = load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except QuizConfigError as exc:
        parser.error(str(exc))

    logger, log_path = configure_logger(
        LOGGER_NAME,
        log_dir=loaded.layout.path_for("logs"),
        level=loaded.config.log_level,
        verbose=loaded.config.verbose,
    )
    logger.debug(
        "quiz CLI invoked",
        extra={
            "command": args.command,
            "config_path": loaded.config_path,
            "source": loaded.config.source,
        },
    )
    loader = QuestionLoader(
        loaded.config.source, timeout=loaded.config.timeout_seconds
    )

    if args.command == "check":
        return _cmd_check(loader, logger)
    if args.command == "tui":
        return _cmd_tui(loader, loaded)
    return _cmd_play(loader, loaded, log_path)


def _cmd_play(loader: QuestionLoader, loaded: LoadResult, log_path: Path) -> int:
    console = Console()
    result = run_console_quiz(
        QuizSession(),
        loader,
        console,
        console.input,
        show_explanations=loaded.config.show_explanations,
    )
    if result.summary is not None:
        console.print(
            f"Final score: {result.summary.score}/{result.summary.total} "
            f"({result.summary.percentage:.1f}%)"
        )
    console.print(f"[dim]Log file: {log_path}[/]")
    return 0


def _cmd_tui(loader: QuestionLoader, loaded: LoadResult) -> int:
    # Imported lazily so console-only runs do not pay for Textual start-up.
    from .view import QuizApp

    app = QuizApp(
        QuizSession(),
        loader,
        show_explanations=loaded.config.show_explanations,
    )
    app.run()
    return 0


def _cmd_check(loader: QuestionLoader, logger: logging.Logger) -> int:
    try:
        questions = loader.fetch()
    except LoadFailure as exc:
        logger.warning("source check failed", extra={"reason": str(exc)})
        sys.stderr.write(f"Error: {exc}\n")
        return 1
    if not questions:
        sys.stderr.write(f"Error: {loader.describe()} contains no questions.\n")
        return 1
    sys.stdout.write(
        f"{loader.describe()}: {len(questions)} question(s) ready.\n"
    )
    return 0


def _handle_config(argv: Sequence[str]) -> int:
    args = _build_config_parser().parse_args(list(argv))
    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1
    template = config_templates.get_template("quiz")
    try:
        written = template.write(target, overwrite=args.force)
    except ConfigTemplateError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1
    sys.stdout.write(f"Wrote quiz config to {written}\n")
    return 0


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate
    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return default_config_path(layout)


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
