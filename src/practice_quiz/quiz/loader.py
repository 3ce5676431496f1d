"""Question loader: fetch a question document and feed the session.

The loader performs exactly one attempt per call. It never retries on its
own; a retry is a fresh :func:`load_into` call triggered by the user.
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Optional, Union

import httpx

from .models import QuestionFormatError, QuestionSet, parse_question_set
from .session import QuizSession

__all__ = [
    "BUNDLED_SOURCE",
    "DEFAULT_TIMEOUT",
    "LOAD_FAILURE_MESSAGE",
    "LoadFailure",
    "QuestionLoader",
    "attempt_fetch",
    "deliver_result",
    "load_into",
]

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
LOAD_FAILURE_MESSAGE = "Unable to load questions. Please try again later."
BUNDLED_SOURCE = "bundled:questions.json"

Source = Union[str, Path, None]


class LoadFailure(RuntimeError):
    """The question document could not be retrieved or parsed."""


class QuestionLoader:
    """Fetch and parse a question document from a URL, a file or the package.

    ``source`` may be an ``http://`` / ``https://`` URL, a filesystem path, or
    ``None`` (or an empty string) for the sample set bundled with the
    package. Pass ``client`` to reuse an :class:`httpx.Client`; otherwise one
    is created and closed per fetch.
    """

    def __init__(
        self,
        source: Source = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.source = _normalize_source(source)
        self.timeout = timeout
        self._client = client

    @property
    def is_remote(self) -> bool:
        return self.source.startswith(("http://", "https://"))

    def describe(self) -> str:
        if self.source == BUNDLED_SOURCE:
            return "bundled sample questions"
        return self.source

    def fetch(self) -> QuestionSet:
        """Return the parsed question set or raise :class:`LoadFailure`."""

        if self.is_remote:
            raw = self._fetch_remote()
        elif self.source == BUNDLED_SOURCE:
            raw = _read_bundled()
        else:
            raw = self._read_file()
        try:
            document = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            raise LoadFailure(
                f"{self.describe()} is not valid JSON: {exc}"
            ) from exc
        try:
            return parse_question_set(document)
        except QuestionFormatError as exc:
            raise LoadFailure(
                f"{self.describe()} has an invalid question document: {exc}"
            ) from exc

    def _fetch_remote(self) -> str:
        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            response = client.get(self.source)
            response.raise_for_status()
            return response.text
        except httpx.HTTPStatusError as exc:
            raise LoadFailure(
                f"{self.source} answered HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise LoadFailure(f"request to {self.source} failed: {exc}") from exc
        finally:
            if self._client is None:
                client.close()

    def _read_file(self) -> str:
        path = Path(self.source).expanduser()
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadFailure(f"cannot read {path}: {exc}") from exc


def load_into(session: QuizSession, loader: QuestionLoader) -> bool:
    """Run one load attempt and report the outcome to ``session``.

    Returns ``True`` when the session ended up in progress.
    """

    session.begin_loading()
    return deliver_result(session, attempt_fetch(loader))


def attempt_fetch(loader: QuestionLoader) -> Union[QuestionSet, LoadFailure]:
    """Fetch once, returning the failure instead of raising it.

    Touches no session state, so it is safe to call from a worker thread.
    """

    try:
        questions = loader.fetch()
    except LoadFailure as exc:
        log.warning(
            "question load failed",
            extra={"source": loader.describe(), "reason": str(exc)},
        )
        return exc
    log.info(
        "questions loaded",
        extra={"source": loader.describe(), "count": len(questions)},
    )
    return questions


def deliver_result(
    session: QuizSession, result: Union[QuestionSet, LoadFailure]
) -> bool:
    """Hand a finished fetch to the session's load callbacks."""

    if isinstance(result, LoadFailure):
        session.on_load_failed(LOAD_FAILURE_MESSAGE)
        return False
    session.on_load_succeeded(result)
    return session.error is None


def _normalize_source(source: Source) -> str:
    if source is None:
        return BUNDLED_SOURCE
    text = str(source).strip()
    return text or BUNDLED_SOURCE


def _read_bundled() -> str:
    name = BUNDLED_SOURCE.split(":", 1)[1]
    try:
        return (
            resources.files("practice_quiz.quiz")
            .joinpath("data", name)
            .read_text(encoding="utf-8")
        )
    except (FileNotFoundError, ModuleNotFoundError) as exc:
        raise LoadFailure(f"bundled question set {name} is missing") from exc
