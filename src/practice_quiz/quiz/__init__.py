from ._main import build_arg_parser
from .models import (
    Question,
    QuestionFormatError,
    QuestionSet,
    parse_question_set,
)
from .session import (
    ErrorKind,
    InvalidOptionError,
    InvalidTransitionError,
    LoadError,
    OptionState,
    Phase,
    QuizSession,
    ScoreSummary,
    SessionView,
)
from .loader import LoadFailure, QuestionLoader, load_into
from .console import parse_quiz_command, run_console_quiz

__all__ = [
    "build_arg_parser",
    "Question",
    "QuestionFormatError",
    "QuestionSet",
    "parse_question_set",
    "ErrorKind",
    "InvalidOptionError",
    "InvalidTransitionError",
    "LoadError",
    "OptionState",
    "Phase",
    "QuizSession",
    "ScoreSummary",
    "SessionView",
    "LoadFailure",
    "QuestionLoader",
    "load_into",
    "parse_quiz_command",
    "run_console_quiz",
]
