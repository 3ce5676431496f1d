"""Question data model and question-document parsing."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

__all__ = [
    "Question",
    "QuestionSet",
    "QuestionFormatError",
    "MAX_OPTIONS",
    "option_key",
    "parse_question",
    "parse_question_set",
]


# Options are keyed A..F; later letters are taken by front-end commands.
MAX_OPTIONS = 6


class QuestionFormatError(ValueError):
    """Raised when a question document does not have the expected shape."""


def option_key(index: int) -> str:
    """Return the display letter for option ``index`` (0 -> 'A')."""

    return chr(ord("A") + index)


@dataclass(frozen=True)
class Question:
    """One multiple-choice question with exactly one correct option."""

    prompt: str
    options: tuple[str, ...]
    correct_index: int
    explanation: str

    def __post_init__(self) -> None:
        if len(self.options) < 2:
            raise QuestionFormatError("a question needs at least two options")
        if len(self.options) > MAX_OPTIONS:
            raise QuestionFormatError(
                f"a question allows at most {MAX_OPTIONS} options, "
                f"got {len(self.options)}"
            )
        if not 0 <= self.correct_index < len(self.options):
            raise QuestionFormatError(
                f"correct index {self.correct_index} is outside "
                f"0..{len(self.options) - 1}"
            )

    @property
    def option_count(self) -> int:
        return len(self.options)

    def option_key(self, index: int) -> str:
        return option_key(index)

    def is_correct(self, index: int) -> bool:
        return index == self.correct_index


@dataclass(frozen=True)
class QuestionSet(Sequence[Question]):
    """Immutable, ordered questions for one quiz run."""

    questions: tuple[Question, ...] = ()

    def __len__(self) -> int:
        return len(self.questions)

    def __getitem__(self, index):  # type: ignore[override]
        return self.questions[index]

    def __iter__(self) -> Iterator[Question]:
        return iter(self.questions)

    @classmethod
    def of(cls, questions: Sequence[Question]) -> "QuestionSet":
        return cls(tuple(questions))


def parse_question_set(document: Any) -> QuestionSet:
    """Build a :class:`QuestionSet` from a decoded JSON document.

    The document must be an object holding a ``questions`` list. Each record
    needs ``question`` (or ``prompt``), ``options``, ``correct`` (or
    ``correct_index``) and ``explanation``. The first bad record aborts the
    whole parse so callers never see a partially-populated set.
    """

    if not isinstance(document, Mapping):
        raise QuestionFormatError("question document must be a JSON object")
    records = document.get("questions")
    if not isinstance(records, list):
        raise QuestionFormatError("'questions' must be a list")
    parsed = []
    for position, record in enumerate(records):
        try:
            parsed.append(parse_question(record))
        except QuestionFormatError as exc:
            raise QuestionFormatError(f"questions[{position}]: {exc}") from exc
    return QuestionSet(tuple(parsed))


def parse_question(record: Any) -> Question:
    if not isinstance(record, Mapping):
        raise QuestionFormatError("record must be an object")
    prompt = _require_text(record, "question", "prompt")
    options = record.get("options")
    if not isinstance(options, list):
        raise QuestionFormatError("'options' must be a list")
    if not all(isinstance(item, str) for item in options):
        raise QuestionFormatError("'options' entries must be strings")
    correct = _first_present(record, "correct", "correct_index")
    # bool is an int subclass; true/false are not indices.
    if isinstance(correct, bool) or not isinstance(correct, int):
        raise QuestionFormatError("'correct' must be an integer index")
    explanation = record.get("explanation", "")
    if not isinstance(explanation, str):
        raise QuestionFormatError("'explanation' must be a string")
    return Question(
        prompt=prompt,
        options=tuple(options),
        correct_index=correct,
        explanation=explanation,
    )


def _first_present(record: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in record:
            return record[name]
    return None


def _require_text(record: Mapping[str, Any], *names: str) -> str:
    value = _first_present(record, *names)
    if not isinstance(value, str) or not value.strip():
        raise QuestionFormatError(f"'{names[0]}' must be a non-empty string")
    return value.strip()
