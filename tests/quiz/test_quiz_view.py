from __future__ import annotations

from types import SimpleNamespace

import pytest

from fixtures import loaded_session, write_question_file
from practice_quiz.quiz import view as qv
from practice_quiz.quiz.loader import QuestionLoader, attempt_fetch
from practice_quiz.quiz.session import Phase, QuizSession


class StubContainer:
    def __init__(self, *_, **kwargs):
        self.id = kwargs.get("id")
        self.children = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False

    def remove_children(self) -> None:
        self.children.clear()

    def mount(self, widget) -> None:
        self.children.append(widget)


class StubStatic:
    def __init__(self, text: str = "", id: str | None = None):
        self.text = text
        self.id = id

    def update(self, new: str) -> None:
        self.text = new


class StubButton:
    def __init__(self, label: str, id: str | None = None, **kwargs):
        self.label = label
        self.id = id
        self.classes = kwargs.get("classes")
        self.disabled = kwargs.get("disabled", False)


@pytest.fixture
def stub_widgets(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(qv, "Container", StubContainer)
    monkeypatch.setattr(qv, "Vertical", StubContainer)
    monkeypatch.setattr(qv, "Static", StubStatic)
    monkeypatch.setattr(qv, "Button", StubButton)


def fake_query(selector: str, _type):
    if selector == "#stage":
        return StubContainer(id="stage")
    return StubStatic("", id=selector.lstrip("#"))


def compose_panel(session: QuizSession, **kwargs) -> dict:
    panel = qv.QuestionPanel(session.view(), **kwargs)
    return {getattr(item, "id", None): item for item in panel.compose()}


def test_panel_in_progress(stub_widgets) -> None:
    session = loaded_session(1, 0)

    items = compose_panel(session)

    assert "Question 1 of 2" in items["progress"].text
    assert items["prompt"].text == "Pick one"
    buttons = [items[f"option-{i}"] for i in range(4)]
    assert [b.label for b in buttons][:2] == ["A) Alpha", "B) Beta"]
    assert all(b.classes == "selectable" for b in buttons)
    assert not any(b.disabled for b in buttons)
    assert items["feedback"].text == ""
    assert "explanation" not in items


def test_panel_after_answer(stub_widgets) -> None:
    session = loaded_session(1, 0)
    session.select_answer(2)

    items = compose_panel(session)

    assert items["option-1"].classes == "correct"
    assert items["option-2"].classes == "incorrect"
    assert items["option-0"].classes == "neutral"
    assert items["option-0"].disabled
    assert items["feedback"].text.startswith("Incorrect.")
    assert "Next Question" in items["feedback"].text
    assert items["explanation"].text == "Because."


def test_panel_hides_explanation(stub_widgets) -> None:
    session = loaded_session(0)
    session.select_answer(0)

    items = compose_panel(session, show_explanation=False)

    assert items["feedback"].text.startswith("Correct!")
    assert "View Results" in items["feedback"].text
    assert "explanation" not in items


def test_panel_other_phases(stub_widgets) -> None:
    loading = compose_panel(QuizSession())
    assert loading["loading"].text == "Loading questions..."

    failed = QuizSession()
    failed.on_load_failed("Unable to load questions.")
    items = compose_panel(failed)
    assert items["error-title"].text == "Oops!"
    assert items["error"].text == "Unable to load questions."

    done = loaded_session(0, 1)
    for answer in (0, 0):
        done.select_answer(answer)
        done.advance()
    items = compose_panel(done)
    assert items["complete"].text == "Quiz Complete!"
    assert items["final-score"].text == "1/2"
    assert items["percentage"].text == "Score: 50.0%"
    assert "Incorrect Answers: 1" in items["performance"].text


def test_app_compose_and_update(monkeypatch, stub_widgets) -> None:
    session = loaded_session(0, 1)
    app = qv.QuizApp(session, QuestionLoader())

    rendered = list(app.compose())
    assert rendered[0].text == "Practice Quiz"

    stage = StubContainer(id="stage")
    status = StubStatic("", id="status")
    monkeypatch.setattr(
        app,
        "query_one",
        lambda selector, _type: stage if selector == "#stage" else status,
    )

    assert app.select_option(9) is False
    assert app.select_option(0) is True
    assert app.select_option(1) is False
    assert isinstance(stage.children[-1], qv.QuestionPanel)
    assert status.text == "Score: 1"

    assert app.next_question() is True
    assert session.current_index == 1
    app.action_choose("b")
    assert session.score == 2
    app.action_next()
    assert session.phase is Phase.COMPLETE

    assert app.restart_quiz() is True
    assert session.score == 0
    assert app.retry_load() is False


def test_app_update_stage_before_mount(monkeypatch, stub_widgets) -> None:
    app = qv.QuizApp(loaded_session(0), QuestionLoader())

    def failing_query(selector: str, _type):
        raise LookupError(selector)

    monkeypatch.setattr(app, "query_one", failing_query)
    assert app.select_option(0) is True
    assert app.quiz_session.score == 1


def run_fetch_inline(monkeypatch, app) -> None:
    monkeypatch.setattr(
        app,
        "_fetch_questions",
        lambda: app.finish_load(attempt_fetch(app.question_loader)),
    )


def test_app_shows_loading_until_fetch_finishes(
    tmp_path, monkeypatch, stub_widgets
) -> None:
    path = write_question_file(tmp_path / "questions.json", 0)
    session = QuizSession()
    app = qv.QuizApp(session, QuestionLoader(path))
    stage = StubContainer(id="stage")
    monkeypatch.setattr(
        app,
        "query_one",
        lambda selector, _type: stage
        if selector == "#stage"
        else StubStatic("", id="status"),
    )
    started = []
    monkeypatch.setattr(app, "_fetch_questions", lambda: started.append(True))

    app.on_mount()

    assert started == [True]
    assert session.phase is Phase.LOADING
    assert app.load_pending
    items = {item.id: item for item in stage.children[-1].compose()}
    assert items["loading"].text == "Loading questions..."
    assert app.retry_load() is False
    assert started == [True]

    assert app.finish_load(attempt_fetch(app.question_loader)) is True
    assert not app.load_pending
    assert session.phase is Phase.IN_PROGRESS
    assert "prompt" in {item.id for item in stage.children[-1].compose()}


def test_app_retry_load_from_error(tmp_path, monkeypatch, stub_widgets) -> None:
    path = tmp_path / "questions.json"
    session = QuizSession()
    app = qv.QuizApp(session, QuestionLoader(path))
    monkeypatch.setattr(app, "query_one", fake_query)
    run_fetch_inline(monkeypatch, app)

    app.on_mount()
    assert session.phase is Phase.ERROR
    assert app._status_text() == "Press t to retry."
    assert app.restart_quiz() is False

    write_question_file(path, 0)
    app.action_retry()
    assert session.phase is Phase.IN_PROGRESS
    assert app.retry_load() is False


class StubEvent:
    def __init__(self, button_id: str):
        self.button = SimpleNamespace(id=button_id)


def test_on_button_pressed_branches(monkeypatch, stub_widgets) -> None:
    session = loaded_session(1)
    app = qv.QuizApp(session, QuestionLoader())
    monkeypatch.setattr(app, "query_one", fake_query)

    app.on_button_pressed(StubEvent("option-x"))
    assert session.selected_index is None
    app.on_button_pressed(StubEvent("option-1"))
    assert session.score == 1
    app.on_button_pressed(StubEvent("next"))
    assert session.phase is Phase.COMPLETE
    app.on_button_pressed(StubEvent("restart"))
    assert session.phase is Phase.IN_PROGRESS
    app.on_button_pressed(StubEvent("retry"))
    assert session.phase is Phase.IN_PROGRESS
