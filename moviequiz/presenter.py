import asyncio
import logging
import weakref
from enum import Enum
from typing import Callable, Optional

from moviequiz.config import QuizSettings
from moviequiz.models import (
    AggregateStatistics,
    AlertRequest,
    Question,
    SessionState,
    StepViewModel,
)
from moviequiz.protocols import (
    AlertPresenterProtocol,
    QuestionFactoryProtocol,
    QuizView,
    StatisticServiceProtocol,
)
from moviequiz.services.statistic_service import date_time_string

RESULT_TITLE = "Этот раунд окончен!"
RESULT_BUTTON_TEXT = "Сыграть еще раз"
ERROR_TITLE = "Ошибка"
RETRY_BUTTON_TEXT = "Попробовать еще раз"
LOAD_FAILURE_MESSAGE = "Не удалось загрузить данные. Проверьте подключение к сети."


class SessionPhase(Enum):
    INITIALIZING = "initializing"
    AWAITING_QUESTION = "awaiting_question"
    AWAITING_ANSWER = "awaiting_answer"
    SCORING = "scoring"
    FINISHED = "finished"
    ERROR_PRESENTED = "error_presented"
    CLOSED = "closed"


def convert(question: Question, question_index: int, total: int) -> StepViewModel:
    """Build the view model for the question at the given index."""
    return StepViewModel(
        image=question.image or b"",
        question=question.text,
        question_number=f"{question_index + 1}/{total}",
    )


def compose_result_message(state: SessionState, statistics: AggregateStatistics) -> str:
    """Text of the end-of-round alert."""
    best = statistics.best_game
    return "\n".join(
        [
            f"Ваш результат: {state.correct_count}/{state.total_questions}",
            f"Количество сыгранных квизов: {statistics.games_count}",
            f"Рекорд: {best.correct}/{best.total} ({date_time_string(best.date)})",
            f"Средняя точность: {statistics.total_accuracy:.2f}%",
        ]
    )


class QuizPresenter:
    """Drives one quiz session of a player.

    Collaborator callbacks, user answers, alert acknowledgements and the
    pacing timer never touch the session directly: they post events into a
    queue that a single worker task processes in order. Collaborators reach
    the presenter through weak references only; after ``close()`` every
    posted event is dropped.
    """

    def __init__(
        self,
        view: QuizView,
        question_factory: QuestionFactoryProtocol,
        statistic_service: StatisticServiceProtocol,
        alert_presenter: AlertPresenterProtocol,
        settings: Optional[QuizSettings] = None,
    ) -> None:
        self.view = view
        self.question_factory = question_factory
        self.statistic_service = statistic_service
        self.alert_presenter = alert_presenter
        self.settings = settings or QuizSettings()

        self._state = SessionState(total_questions=self.settings.total_questions)
        self._phase = SessionPhase.INITIALIZING
        self._current_question: Optional[Question] = None
        self._busy_visible = False
        self._closed = False
        self._events: asyncio.Queue = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._timers: set[asyncio.Task] = set()

        # Number of empty deliveries from the question source; stays 0 in a well-formed session
        self.skipped_deliveries = 0

        question_factory.set_delegate(self)

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_question(self) -> Optional[Question]:
        return self._current_question

    @property
    def is_closed(self) -> bool:
        return self._closed

    # Lifecycle

    def start(self) -> None:
        """Start the worker and begin loading questions. Needs a running loop."""
        if self._closed:
            raise RuntimeError("Presenter is closed")
        if self._worker is None:
            self._worker = asyncio.get_running_loop().create_task(self._run())
            self._post(self._initialize)

    def close(self) -> None:
        """Tear the session down; later callbacks become no-ops."""
        if self._closed:
            return
        self._closed = True
        self._phase = SessionPhase.CLOSED
        if self._worker is not None:
            self._worker.cancel()
        while not self._events.empty():
            self._events.get_nowait()
            self._events.task_done()
        logging.info("Quiz session closed")

    async def drain(self) -> None:
        """Wait until no event is queued and no pacing delay is pending."""
        while not self._closed:
            await self._events.join()
            pending = [task for task in self._timers if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    # Answer entry points

    def yes_button_pressed(self) -> None:
        self._post(self._handle_answer, True)

    def no_button_pressed(self) -> None:
        self._post(self._handle_answer, False)

    # Question source delegate

    def did_load_data_from_server(self) -> None:
        self._post(self._handle_load_completed)

    def did_fail_to_load_data(self, error: Exception) -> None:
        self._post(self._handle_load_failed, error)

    def did_receive_error_message(self, message: str) -> None:
        self._post(self._handle_error_message, message)

    def did_receive_next_question(self, question: Optional[Question]) -> None:
        self._post(self._handle_question, question)

    # Event plumbing

    def _post(self, handler: Callable, *args) -> None:
        if self._closed:
            logging.debug(f"Dropped {handler.__name__}: session is closed")
            return
        self._events.put_nowait((handler, args))

    async def _run(self) -> None:
        while True:
            handler, args = await self._events.get()
            try:
                if not self._closed:
                    handler(*args)
            except Exception:
                logging.exception(f"Quiz event {handler.__name__} failed")
            finally:
                self._events.task_done()

    def _continuation(self, handler_name: str) -> Callable[[], None]:
        presenter_ref = weakref.ref(self)

        def completion() -> None:
            presenter = presenter_ref()
            if presenter is None or presenter.is_closed:
                return
            presenter._post(getattr(presenter, handler_name))

        return completion

    def _show_busy_indicator(self) -> None:
        self._busy_visible = True
        self.view.show_busy_indicator()

    def _hide_busy_indicator(self) -> None:
        if self._busy_visible:
            self._busy_visible = False
            self.view.hide_busy_indicator()

    # Transitions

    def _initialize(self) -> None:
        self._phase = SessionPhase.INITIALIZING
        self._show_busy_indicator()
        self.question_factory.load_data()

    def _handle_load_completed(self) -> None:
        if self._phase is not SessionPhase.INITIALIZING:
            logging.debug(f"Ignored load completion in phase {self._phase.value}")
            return
        self._hide_busy_indicator()
        self._request_question()

    def _handle_load_failed(self, error: Exception) -> None:
        logging.warning(f"Failed to load quiz data: {error}")
        self._hide_busy_indicator()
        self._present_error(LOAD_FAILURE_MESSAGE)

    def _handle_error_message(self, message: str) -> None:
        logging.warning(f"Question source reported an error: {message}")
        self._hide_busy_indicator()
        self._present_error(message)

    def _present_error(self, message: str) -> None:
        self._phase = SessionPhase.ERROR_PRESENTED
        alert = AlertRequest(
            title=ERROR_TITLE,
            message=message,
            button_text=RETRY_BUTTON_TEXT,
            completion=self._continuation("_reload"),
        )
        self.alert_presenter.show_alert(alert, self.view)

    def _reload(self) -> None:
        if self._phase is not SessionPhase.ERROR_PRESENTED:
            logging.debug(f"Ignored reload in phase {self._phase.value}")
            return
        self._initialize()

    def _request_question(self) -> None:
        self._phase = SessionPhase.AWAITING_QUESTION
        self.question_factory.request_next_question()

    def _handle_question(self, question: Optional[Question]) -> None:
        if question is None:
            self.skipped_deliveries += 1
            logging.warning(
                f"No question available at {self._state.question_index + 1}/{self._state.total_questions}"
            )
            return
        if self._phase is not SessionPhase.AWAITING_QUESTION:
            logging.debug(f"Ignored question delivered in phase {self._phase.value}")
            return

        self._current_question = question
        view_model = convert(question, self._state.question_index, self._state.total_questions)
        self.view.clear_highlight()
        self.view.show(view_model)
        self._phase = SessionPhase.AWAITING_ANSWER

    def _handle_answer(self, given_answer: bool) -> None:
        if self._phase is not SessionPhase.AWAITING_ANSWER or self._current_question is None:
            logging.debug(f"Ignored answer in phase {self._phase.value}")
            return

        is_correct = self._current_question.correct_answer == given_answer
        self._phase = SessionPhase.SCORING
        self.view.set_input_enabled(False)
        self.view.highlight(is_correct)
        if is_correct:
            self._state.correct_count += 1
        self._schedule_advance()

    def _schedule_advance(self) -> None:
        task = asyncio.get_running_loop().create_task(self._pace())
        self._timers.add(task)
        task.add_done_callback(self._timers.discard)

    async def _pace(self) -> None:
        await asyncio.sleep(self.settings.pacing_delay)
        self._post(self._handle_pacing_elapsed)

    def _handle_pacing_elapsed(self) -> None:
        if self._phase is not SessionPhase.SCORING:
            logging.debug(f"Ignored pacing timer in phase {self._phase.value}")
            return
        self._proceed_to_next_question_or_results()
        self.view.set_input_enabled(True)

    def _proceed_to_next_question_or_results(self) -> None:
        if self._state.is_last_question():
            self._show_result()
        else:
            self._state.question_index += 1
            self._request_question()

    def _show_result(self) -> None:
        self._phase = SessionPhase.FINISHED
        self.statistic_service.store(self._state.correct_count, self._state.total_questions)
        statistics = AggregateStatistics(
            games_count=self.statistic_service.games_count,
            best_game=self.statistic_service.best_game,
            total_accuracy=self.statistic_service.total_accuracy,
        )
        logging.info(
            f"Round finished: {self._state.correct_count}/{self._state.total_questions}"
        )
        alert = AlertRequest(
            title=RESULT_TITLE,
            message=compose_result_message(self._state, statistics),
            button_text=RESULT_BUTTON_TEXT,
            completion=self._continuation("_restart"),
        )
        self.alert_presenter.show_alert(alert, self.view)

    def _restart(self) -> None:
        if self._phase is not SessionPhase.FINISHED:
            logging.debug(f"Ignored restart in phase {self._phase.value}")
            return
        self._state.reset()
        self._current_question = None
        self._request_question()
