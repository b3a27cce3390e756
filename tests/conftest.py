from datetime import datetime
from typing import Optional, Union

import pytest

from moviequiz.config import QuizSettings
from moviequiz.db import init_db
from moviequiz.models import GameRecord, Question
from moviequiz.presenter import QuizPresenter


@pytest.fixture
def db(tmp_path):
    init_db(f"sqlite:///{tmp_path / 'test.db'}")
    yield


class EventLog(list):
    def names(self) -> list[str]:
        return [name for name, _ in self]


class FakeView:
    def __init__(self, log: EventLog) -> None:
        self.log = log
        self.shown = []

    def show(self, view_model) -> None:
        self.shown.append(view_model)
        self.log.append(("show", view_model))

    def clear_highlight(self) -> None:
        self.log.append(("clear_highlight", None))

    def highlight(self, is_correct: bool) -> None:
        self.log.append(("highlight", is_correct))

    def show_busy_indicator(self) -> None:
        self.log.append(("show_busy", None))

    def hide_busy_indicator(self) -> None:
        self.log.append(("hide_busy", None))

    def set_input_enabled(self, enabled: bool) -> None:
        self.log.append(("input_enabled", enabled))


Outcome = Union[str, Exception, None]


class FakeQuestionFactory:
    """Answers synchronously from scripted outcomes.

    ``load_outcomes``: "ok", an exception (load failure) or any other string
    (data error message). ``request_outcomes`` is consulted per request:
    a Question, None, or a string data error; when exhausted, ``questions``
    are cycled.
    """

    def __init__(
        self,
        log: EventLog,
        questions: Optional[list[Question]] = None,
        load_outcomes: Optional[list[Outcome]] = None,
        request_outcomes: Optional[dict[int, Union[Question, str, None]]] = None,
        deliver: bool = True,
    ) -> None:
        self.log = log
        self.delegate = None
        self.questions = questions or [Question("q", b"img", True)]
        self.load_outcomes = list(load_outcomes or [])
        self.request_outcomes = dict(request_outcomes or {})
        self.deliver = deliver
        self.load_calls = 0
        self.request_calls = 0

    def set_delegate(self, delegate) -> None:
        self.delegate = delegate

    def load_data(self) -> None:
        self.load_calls += 1
        self.log.append(("load_data", None))
        outcome = self.load_outcomes.pop(0) if self.load_outcomes else "ok"
        if outcome == "ok":
            self.delegate.did_load_data_from_server()
        elif isinstance(outcome, Exception):
            self.delegate.did_fail_to_load_data(outcome)
        else:
            self.delegate.did_receive_error_message(outcome)

    def request_next_question(self) -> None:
        call = self.request_calls
        self.request_calls += 1
        self.log.append(("request_next_question", None))
        if not self.deliver:
            return
        if call in self.request_outcomes:
            outcome = self.request_outcomes.pop(call)
            if isinstance(outcome, str):
                self.delegate.did_receive_error_message(outcome)
                return
            self.delegate.did_receive_next_question(outcome)
            return
        self.delegate.did_receive_next_question(self.questions[call % len(self.questions)])


class FakeStatistics:
    def __init__(self, log: EventLog) -> None:
        self.log = log
        self.stored: list[tuple[int, int]] = []

    def store(self, correct: int, total: int) -> None:
        self.stored.append((correct, total))
        self.log.append(("store", (correct, total)))

    @property
    def games_count(self) -> int:
        return len(self.stored)

    @property
    def best_game(self) -> GameRecord:
        best = max(self.stored, key=lambda item: item[0], default=(0, 0))
        return GameRecord(correct=best[0], total=best[1], date=datetime(2024, 5, 1, 18, 30))

    @property
    def total_accuracy(self) -> float:
        correct = sum(c for c, _ in self.stored)
        total = sum(t for _, t in self.stored)
        return correct / total * 100 if total else 0.0


class FakeAlertPresenter:
    def __init__(self, log: EventLog) -> None:
        self.log = log
        self.alerts = []

    def show_alert(self, request, target) -> None:
        self.alerts.append(request)
        self.log.append(("alert", request))

    def acknowledge_last(self) -> None:
        self.alerts[-1].completion()


@pytest.fixture
def log():
    return EventLog()


@pytest.fixture
def view(log):
    return FakeView(log)


@pytest.fixture
def statistics(log):
    return FakeStatistics(log)


@pytest.fixture
def alerts(log):
    return FakeAlertPresenter(log)


@pytest.fixture
async def make_presenter(view, statistics, alerts, log):
    created = []

    def factory(question_factory=None, total_questions=10, pacing_delay=0.0):
        question_factory = question_factory or FakeQuestionFactory(log)
        presenter = QuizPresenter(
            view=view,
            question_factory=question_factory,
            statistic_service=statistics,
            alert_presenter=alerts,
            settings=QuizSettings(total_questions=total_questions, pacing_delay=pacing_delay),
        )
        created.append(presenter)
        return presenter, question_factory

    yield factory
    for presenter in created:
        presenter.close()


@pytest.fixture
def make_factory(log):
    def factory(**kwargs):
        return FakeQuestionFactory(log, **kwargs)

    return factory
