"""Quiz session state machine and the view model derived from it.

A :class:`QuizSession` owns progress through one :class:`QuestionSet`. It is
driven by two load callbacks (``on_load_succeeded`` / ``on_load_failed``) and
three user actions (``select_answer``, ``advance``, ``restart``). Front ends
never read the mutable fields to decide styling; they render the immutable
:class:`SessionView` returned by :meth:`QuizSession.view`, which is
recomputed from state on every call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .models import Question, QuestionSet, option_key

__all__ = [
    "Phase",
    "ErrorKind",
    "LoadError",
    "OptionState",
    "OptionView",
    "ScoreSummary",
    "SessionView",
    "QuizSession",
    "QuizSessionError",
    "InvalidOptionError",
    "InvalidTransitionError",
    "final_percentage",
]

log = logging.getLogger(__name__)


class Phase(Enum):
    LOADING = "loading"
    ERROR = "error"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class ErrorKind(Enum):
    LOAD_FAILURE = "load_failure"
    EMPTY_QUESTION_SET = "empty_question_set"


class OptionState(Enum):
    """Feedback classification for one option of the current question."""

    SELECTABLE = "selectable"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    NEUTRAL = "neutral"


class QuizSessionError(RuntimeError):
    """Base class for contract violations reported by the session."""


class InvalidOptionError(QuizSessionError, IndexError):
    """An option index outside the current question's options was given."""


class InvalidTransitionError(QuizSessionError):
    """A load callback or restart arrived in a phase that cannot accept it."""


@dataclass(frozen=True)
class LoadError:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class OptionView:
    index: int
    key: str
    text: str
    state: OptionState
    selected: bool


@dataclass(frozen=True)
class ScoreSummary:
    """End-of-quiz tally shown on the results screen."""

    score: int
    total: int
    percentage: float

    @property
    def incorrect(self) -> int:
        return self.total - self.score


@dataclass(frozen=True)
class SessionView:
    """Snapshot of everything a front end needs to draw the session."""

    phase: Phase
    error: Optional[LoadError] = None
    question_number: int = 0
    total_questions: int = 0
    score: int = 0
    progress: float = 0.0
    prompt: str = ""
    options: tuple[OptionView, ...] = ()
    is_answered: bool = False
    explanation: Optional[str] = None
    advance_label: Optional[str] = None
    summary: Optional[ScoreSummary] = None


def final_percentage(score: int, total: int) -> float:
    """Score as a percentage of ``total`` rounded to one decimal place."""

    if total <= 0:
        return 0.0
    return round(score / total * 100, 1)


class QuizSession:
    """Single-owner state machine for one quiz run."""

    def __init__(self) -> None:
        self._questions: QuestionSet = QuestionSet()
        self._phase = Phase.LOADING
        self._error: Optional[LoadError] = None
        self._current_index = 0
        self._selected_index: Optional[int] = None
        self._score = 0

    # -- read-only state ---------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def error(self) -> Optional[LoadError]:
        return self._error

    @property
    def questions(self) -> QuestionSet:
        return self._questions

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def selected_index(self) -> Optional[int]:
        return self._selected_index

    @property
    def score(self) -> int:
        return self._score

    @property
    def total_questions(self) -> int:
        return len(self._questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self._phase is not Phase.IN_PROGRESS:
            return None
        return self._questions[self._current_index]

    @property
    def is_answered(self) -> bool:
        return self._selected_index is not None

    @property
    def is_last_question(self) -> bool:
        return self._current_index == len(self._questions) - 1

    @property
    def progress_fraction(self) -> float:
        if not self._questions:
            return 0.0
        return (self._current_index + 1) / len(self._questions)

    @property
    def final_percentage(self) -> Optional[float]:
        if self._phase is not Phase.COMPLETE:
            return None
        return final_percentage(self._score, len(self._questions))

    # -- load lifecycle ----------------------------------------------------

    def begin_loading(self) -> None:
        """Enter ``LOADING`` for a (re)load attempt.

        Questions from an earlier successful load stay in place until a new
        load succeeds; score and position are only reset at that point.
        """

        if self._phase is Phase.LOADING:
            return
        if self._phase is not Phase.ERROR:
            raise InvalidTransitionError(
                f"cannot reload questions while {self._phase.value}"
            )
        self._error = None
        self._set_phase(Phase.LOADING)

    def on_load_succeeded(self, questions: Sequence[Question]) -> None:
        self._require_loading("on_load_succeeded")
        question_set = (
            questions
            if isinstance(questions, QuestionSet)
            else QuestionSet.of(questions)
        )
        if not question_set:
            self._fail(ErrorKind.EMPTY_QUESTION_SET, "No questions available.")
            return
        self._questions = question_set
        self._reset_progress()
        self._set_phase(Phase.IN_PROGRESS)

    def on_load_failed(self, reason: str) -> None:
        self._require_loading("on_load_failed")
        self._fail(ErrorKind.LOAD_FAILURE, reason)

    # -- user actions ------------------------------------------------------

    def select_answer(self, option_index: int) -> bool:
        """Lock in ``option_index`` for the current question.

        Returns ``False`` without changing anything when the quiz is not in
        progress or an answer is already locked. An index outside the current
        question's options raises :class:`InvalidOptionError`.
        """

        question = self.current_question
        if question is None:
            return False
        if (
            isinstance(option_index, bool)
            or not isinstance(option_index, int)
            or not 0 <= option_index < question.option_count
        ):
            raise InvalidOptionError(
                f"option index {option_index!r} is not valid for a question "
                f"with {question.option_count} options"
            )
        if self._selected_index is not None:
            return False
        self._selected_index = option_index
        correct = question.is_correct(option_index)
        if correct:
            self._score += 1
        log.debug(
            "answer locked",
            extra={
                "question": self._current_index,
                "option": option_index,
                "correct": correct,
                "score": self._score,
            },
        )
        return True

    def advance(self) -> bool:
        if self._phase is not Phase.IN_PROGRESS or self._selected_index is None:
            return False
        if self.is_last_question:
            self._set_phase(Phase.COMPLETE)
            return True
        self._current_index += 1
        self._selected_index = None
        return True

    def restart(self) -> None:
        if self._phase is Phase.LOADING or not self._questions:
            raise InvalidTransitionError(
                f"cannot restart while {self._phase.value} without questions"
                if not self._questions
                else "cannot restart while questions are loading"
            )
        self._error = None
        self._reset_progress()
        self._set_phase(Phase.IN_PROGRESS)

    # -- derived view ------------------------------------------------------

    def is_correct(self, option_index: int) -> bool:
        question = self.current_question
        return question is not None and question.is_correct(option_index)

    def option_states(self) -> tuple[OptionState, ...]:
        question = self.current_question
        if question is None:
            return ()
        if self._selected_index is None:
            return (OptionState.SELECTABLE,) * question.option_count
        states = []
        for index in range(question.option_count):
            if index == question.correct_index:
                states.append(OptionState.CORRECT)
            elif index == self._selected_index:
                states.append(OptionState.INCORRECT)
            else:
                states.append(OptionState.NEUTRAL)
        return tuple(states)

    def summary(self) -> Optional[ScoreSummary]:
        if self._phase is not Phase.COMPLETE:
            return None
        total = len(self._questions)
        return ScoreSummary(
            score=self._score,
            total=total,
            percentage=final_percentage(self._score, total),
        )

    def view(self) -> SessionView:
        if self._phase is Phase.LOADING:
            return SessionView(phase=self._phase)
        if self._phase is Phase.ERROR:
            return SessionView(phase=self._phase, error=self._error)
        if self._phase is Phase.COMPLETE:
            return SessionView(
                phase=self._phase,
                total_questions=len(self._questions),
                score=self._score,
                progress=1.0,
                summary=self.summary(),
            )

        question = self._questions[self._current_index]
        options = tuple(
            OptionView(
                index=index,
                key=option_key(index),
                text=text,
                state=state,
                selected=index == self._selected_index,
            )
            for index, (text, state) in enumerate(
                zip(question.options, self.option_states())
            )
        )
        answered = self.is_answered
        advance_label = None
        if answered:
            advance_label = (
                "View Results" if self.is_last_question else "Next Question"
            )
        return SessionView(
            phase=self._phase,
            question_number=self._current_index + 1,
            total_questions=len(self._questions),
            score=self._score,
            progress=self.progress_fraction,
            prompt=question.prompt,
            options=options,
            is_answered=answered,
            explanation=question.explanation if answered else None,
            advance_label=advance_label,
        )

    # -- internals ---------------------------------------------------------

    def _require_loading(self, event: str) -> None:
        if self._phase is not Phase.LOADING:
            raise InvalidTransitionError(
                f"{event} is only valid while loading (phase is "
                f"{self._phase.value})"
            )

    def _fail(self, kind: ErrorKind, message: str) -> None:
        self._error = LoadError(kind, message)
        self._set_phase(Phase.ERROR)

    def _reset_progress(self) -> None:
        self._current_index = 0
        self._selected_index = None
        self._score = 0

    def _set_phase(self, phase: Phase) -> None:
        log.debug(
            "phase change",
            extra={"from_phase": self._phase.value, "to_phase": phase.value},
        )
        self._phase = phase

    def __repr__(self) -> str:
        return (
            f"QuizSession(phase={self._phase.value}, "
            f"index={self._current_index}, selected={self._selected_index}, "
            f"score={self._score}/{len(self._questions)})"
        )
