"""Shared testing helpers for the practice_quiz test suite."""

from .questions import (  # noqa: F401
    loaded_session,
    make_question,
    question_document,
    question_record,
    write_question_file,
)

__all__ = [
    "loaded_session",
    "make_question",
    "question_document",
    "question_record",
    "write_question_file",
]
