from __future__ import annotations

from typing import Optional, Union

from textual import work
from textual.app import App, ComposeResult
from textual.containers import Container, Vertical
from textual.widget import Widget
from textual.widgets import Button, Static

from .loader import LoadFailure, QuestionLoader, attempt_fetch, deliver_result
from .models import QuestionSet
from .session import (
    InvalidTransitionError,
    OptionState,
    Phase,
    QuizSession,
    SessionView,
)

TITLE = "Practice Quiz"


class QuizApp(App):
    CSS = """
#title { text-style: bold; content-align: center middle; }
#choices Button.correct { background: $success; }
#choices Button.incorrect { background: $error; }
#choices Button.neutral { opacity: 70%; }
#explanation { border-left: thick $accent; padding: 0 1; }
"""
    BINDINGS = [
        ("a", "choose('A')", "A"),
        ("b", "choose('B')", "B"),
        ("c", "choose('C')", "C"),
        ("d", "choose('D')", "D"),
        ("e", "choose('E')", "E"),
        ("f", "choose('F')", "F"),
        ("n", "next", "Next"),
        ("r", "restart", "Restart"),
        ("t", "retry", "Retry"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        session: QuizSession,
        loader: QuestionLoader,
        *,
        show_explanations: bool = True,
    ) -> None:
        super().__init__()
        self.quiz_session = session
        self.question_loader = loader
        self.show_explanations = show_explanations
        self.load_pending = False

    def compose(self) -> ComposeResult:
        yield Static(TITLE, id="title")
        with Container(id="stage"):
            yield self._panel()
        with Container(id="footer"):
            yield Button("Next", id="next")
            yield Button("Restart", id="restart")
            yield Button("Retry", id="retry")
            yield Static(self._status_text(), id="status")

    def on_mount(self) -> None:
        if self.quiz_session.phase is Phase.LOADING:
            self.retry_load()

    # Pure helpers so behaviour is testable without running the App.
    def select_option(self, index: int) -> bool:
        question = self.quiz_session.current_question
        if question is None or not 0 <= index < question.option_count:
            return False
        accepted = self.quiz_session.select_answer(index)
        self._update_stage()
        return accepted

    def next_question(self) -> bool:
        moved = self.quiz_session.advance()
        self._update_stage()
        return moved

    def restart_quiz(self) -> bool:
        try:
            self.quiz_session.restart()
        except InvalidTransitionError:
            return False
        self._update_stage()
        return True

    def retry_load(self) -> bool:
        """Start a background fetch; the result arrives via :meth:`finish_load`."""

        if self.load_pending:
            return False
        if self.quiz_session.phase not in (Phase.LOADING, Phase.ERROR):
            return False
        self.quiz_session.begin_loading()
        self.load_pending = True
        self._update_stage()
        self._fetch_questions()
        return True

    @work(thread=True, exclusive=True, group="load")
    def _fetch_questions(self) -> None:
        result = attempt_fetch(self.question_loader)
        self.call_from_thread(self.finish_load, result)

    def finish_load(self, result: Union[QuestionSet, LoadFailure]) -> bool:
        self.load_pending = False
        loaded = deliver_result(self.quiz_session, result)
        self._update_stage()
        return loaded

    def action_choose(self, key: str) -> None:
        self.select_option(ord(key.upper()) - ord("A"))

    def action_next(self) -> None:
        self.next_question()

    def action_restart(self) -> None:
        self.restart_quiz()

    def action_retry(self) -> None:
        self.retry_load()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        if bid.startswith("option-"):
            suffix = bid[len("option-"):]
            if suffix.isdigit():
                self.select_option(int(suffix))
        elif bid == "next":
            self.action_next()
        elif bid == "restart":
            self.action_restart()
        elif bid == "retry":
            self.action_retry()

    def _panel(self) -> "QuestionPanel":
        return QuestionPanel(
            self.quiz_session.view(), show_explanation=self.show_explanations
        )

    def _status_text(self) -> str:
        view = self.quiz_session.view()
        if view.phase is Phase.IN_PROGRESS:
            return f"Score: {view.score}"
        if view.phase is Phase.ERROR:
            return "Press t to retry."
        return ""

    def _update_stage(self) -> None:
        try:
            stage = self.query_one("#stage", Container)
        except Exception:
            # Not mounted yet (or already torn down).
            return
        stage.remove_children()
        stage.mount(self._panel())
        try:
            status = self.query_one("#status", Static)
        except Exception:
            return
        status.update(self._status_text())


class QuestionPanel(Widget):
    """Render one :class:`SessionView`, whatever its phase."""

    def __init__(self, view: SessionView, *, show_explanation: bool = True):
        super().__init__()
        self.session_view = view
        self.show_explanation = show_explanation

    def compose(self) -> ComposeResult:
        view = self.session_view
        if view.phase is Phase.LOADING:
            yield Static("Loading questions...", id="loading")
            return
        if view.phase is Phase.ERROR:
            yield Static("Oops!", id="error-title")
            yield Static(view.error.message if view.error else "", id="error")
            return
        if view.phase is Phase.COMPLETE:
            yield from self._compose_summary()
            return

        yield Static(self.progress_text(), id="progress")
        yield Static(view.prompt, id="prompt")
        with Vertical(id="choices"):
            for option in view.options:
                yield Button(
                    f"{option.key}) {option.text}",
                    id=f"option-{option.index}",
                    classes=option.state.value,
                    disabled=view.is_answered,
                )
        yield Static(self.feedback_text(), id="feedback")
        if self.show_explanation and view.explanation:
            yield Static(view.explanation, id="explanation")

    def _compose_summary(self) -> ComposeResult:
        summary = self.session_view.summary
        if summary is None:  # pragma: no cover - complete views carry one
            return
        yield Static("Quiz Complete!", id="complete")
        yield Static(f"{summary.score}/{summary.total}", id="final-score")
        yield Static(f"Score: {summary.percentage:.1f}%", id="percentage")
        yield Static(
            f"Correct Answers: {summary.score}\n"
            f"Incorrect Answers: {summary.incorrect}\n"
            f"Accuracy: {summary.percentage:.1f}%",
            id="performance",
        )

    def progress_text(self) -> str:
        view = self.session_view
        filled = round(view.progress * 20)
        bar = "█" * filled + "░" * (20 - filled)
        return (
            f"{bar}  Question {view.question_number} of "
            f"{view.total_questions}  |  Score: {view.score}"
        )

    def feedback_text(self) -> str:
        view = self.session_view
        if not view.is_answered:
            return ""
        chosen: Optional[OptionState] = None
        for option in view.options:
            if option.selected:
                chosen = option.state
        verdict = "Correct!" if chosen is OptionState.CORRECT else "Incorrect."
        return f"{verdict} {view.advance_label} (n)"
