"""Rich console front end for a quiz session.

The loop is synchronous: render the current :class:`SessionView`, read one
line from ``input_provider``, translate it into a session action, repeat.
Input providers are plain callables so tests can script a whole run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from .loader import QuestionLoader, load_into
from .session import (
    InvalidTransitionError,
    OptionState,
    Phase,
    QuizSession,
    ScoreSummary,
    SessionView,
)

__all__ = [
    "ConsoleQuizResult",
    "QuizCommand",
    "parse_quiz_command",
    "render_view",
    "run_console_quiz",
]

log = logging.getLogger(__name__)

InputProvider = Callable[[], str]
ExitAction = Literal["quit", "interrupted"]

TITLE = "Practice Quiz"
SUBTITLE = "Test Your Knowledge"

_OPTION_STYLES = {
    OptionState.SELECTABLE: "",
    OptionState.CORRECT: "bold green",
    OptionState.INCORRECT: "bold red",
    OptionState.NEUTRAL: "dim",
}
_OPTION_MARKS = {
    OptionState.CORRECT: "✔",
    OptionState.INCORRECT: "✘",
}


@dataclass(frozen=True)
class QuizCommand:
    """Normalized user command parsed from one line of input."""

    type: Literal["select", "next", "restart", "retry", "quit"]
    key: Optional[str] = None


@dataclass(frozen=True)
class ConsoleQuizResult:
    exit_action: ExitAction
    phase: Phase
    summary: Optional[ScoreSummary]


def parse_quiz_command(raw: Optional[str]) -> Optional[QuizCommand]:
    if raw is None:
        return None
    text = raw.strip().lower()
    if not text:
        return None
    if text in {"n", "next"}:
        return QuizCommand("next")
    if text in {"r", "restart"}:
        return QuizCommand("restart")
    if text in {"t", "retry"}:
        return QuizCommand("retry")
    if text in {"q", "quit", "exit"}:
        return QuizCommand("quit")
    if len(text) == 1 and text.isalpha():
        return QuizCommand("select", text.upper())
    return None


def run_console_quiz(
    session: QuizSession,
    loader: QuestionLoader,
    console: Console,
    input_provider: InputProvider,
    *,
    show_explanations: bool = True,
) -> ConsoleQuizResult:
    """Drive ``session`` from console input until the user quits."""

    if session.phase is Phase.LOADING:
        render_view(console, session.view())
        load_into(session, loader)

    exit_action: ExitAction = "quit"
    while True:
        render_view(console, session.view(), show_explanations=show_explanations)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            exit_action = "interrupted"
            break
        command = parse_quiz_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("[bold yellow]Goodbye.[/]")
            break
        _apply_command(command, session, loader, console)

    return ConsoleQuizResult(
        exit_action=exit_action,
        phase=session.phase,
        summary=session.summary(),
    )


def _apply_command(
    command: QuizCommand,
    session: QuizSession,
    loader: QuestionLoader,
    console: Console,
) -> None:
    if command.type == "select" and command.key:
        _apply_select(command.key, session, console)
    elif command.type == "next":
        if not session.advance():
            if session.phase is Phase.IN_PROGRESS:
                console.print("[yellow]Choose an answer first.[/]")
            else:
                console.print("[yellow]There is no question to move past.[/]")
    elif command.type == "restart":
        try:
            session.restart()
        except InvalidTransitionError as exc:
            log.debug("restart rejected", extra={"reason": str(exc)})
            console.print("[yellow]Nothing to restart yet.[/]")
    elif command.type == "retry":
        if session.phase is not Phase.ERROR:
            console.print("[yellow]Nothing to retry.[/]")
            return
        render_view(console, SessionView(phase=Phase.LOADING))
        load_into(session, loader)


def _apply_select(key: str, session: QuizSession, console: Console) -> None:
    question = session.current_question
    if question is None:
        console.print("[yellow]No question is waiting for an answer.[/]")
        return
    index = ord(key) - ord("A")
    if not 0 <= index < question.option_count:
        console.print(f"[red]'{key}' is not a valid choice for this question.[/]")
        return
    if not session.select_answer(index):
        console.print("[yellow]Your answer is already locked in.[/]")


def render_view(
    console: Console,
    view: SessionView,
    *,
    show_explanations: bool = True,
) -> None:
    if view.phase is Phase.LOADING:
        console.print(
            Panel(
                Text("Loading questions...", justify="center"),
                title=TITLE,
                border_style="blue",
            )
        )
    elif view.phase is Phase.ERROR:
        _render_error(console, view)
    elif view.phase is Phase.COMPLETE:
        _render_complete(console, view)
    else:
        _render_question(console, view, show_explanations=show_explanations)


def _render_error(console: Console, view: SessionView) -> None:
    message = view.error.message if view.error else ""
    body = Group(
        Text("Oops!", style="bold red", justify="center"),
        Text(message, justify="center"),
        Text("Type 'retry' to try again or 'quit' to leave.", style="dim"),
    )
    console.print(Panel(body, title=TITLE, border_style="red"))


def _render_question(
    console: Console, view: SessionView, *, show_explanations: bool
) -> None:
    console.print()
    console.rule(
        Text.assemble((TITLE, "bold cyan"), (f"  {SUBTITLE}", "dim"))
    )
    console.print(
        ProgressBar(total=1.0, completed=view.progress, width=console.width)
    )
    header = Table.grid(expand=True)
    header.add_column()
    header.add_column(justify="right")
    header.add_row(
        Text(
            f"Question {view.question_number} of {view.total_questions}",
            style="bold",
        ),
        Text(f"Score: {view.score}", style="bold blue"),
    )
    console.print(header)
    console.print(Text(view.prompt, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    table.add_column("Mark", justify="right")
    for option in view.options:
        table.add_row(
            option.key,
            Text(option.text, style=_OPTION_STYLES[option.state]),
            _OPTION_MARKS.get(option.state, ""),
        )
    console.print(table)

    if not view.is_answered:
        keys = ", ".join(option.key for option in view.options)
        console.print(Text(f"Choose an answer [{keys}] or quit.", style="dim"))
        return
    if show_explanations and view.explanation:
        console.print(
            Panel(view.explanation, title="Explanation", border_style="blue")
        )
    console.print(
        Text(f"n: {view.advance_label} | r: restart | q: quit", style="dim")
    )


def _render_complete(console: Console, view: SessionView) -> None:
    summary = view.summary
    if summary is None:  # pragma: no cover - complete views carry a summary
        return
    console.print()
    console.rule(Text("Quiz Complete!", style="bold magenta"))
    console.print(
        Panel(
            Group(
                Text(
                    f"{summary.score}/{summary.total}",
                    style="bold",
                    justify="center",
                ),
                Text(f"Score: {summary.percentage:.1f}%", justify="center"),
            ),
            border_style="magenta",
        )
    )
    table = Table(
        title="Performance Summary",
        show_header=False,
        box=box.MINIMAL_DOUBLE_HEAD,
    )
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Correct Answers", Text(str(summary.score), style="green"))
    table.add_row(
        "Incorrect Answers", Text(str(summary.incorrect), style="red")
    )
    table.add_row("Accuracy", Text(f"{summary.percentage:.1f}%", style="blue"))
    console.print(table)
    console.print(Text("r: Restart Quiz | q: quit", style="dim"))
