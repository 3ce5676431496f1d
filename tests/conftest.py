from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


@pytest.fixture(autouse=True)
def _isolated_workspace(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[Path]:
    """Point the workspace and env overrides at a per-test directory."""

    home = tmp_path / "practice-quiz-home"
    monkeypatch.setenv("PRACTICE_QUIZ_DATA_HOME", str(home))
    for key in (
        "PRACTICE_QUIZ_CONFIG",
        "PRACTICE_QUIZ_SOURCE",
        "PRACTICE_QUIZ_TIMEOUT",
        "PRACTICE_QUIZ_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    yield home
    logger = logging.getLogger("practice_quiz.quiz")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
