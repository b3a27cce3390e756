from typing import Optional, Protocol

from moviequiz.models import AlertRequest, GameRecord, Question, StepViewModel


class QuizView(Protocol):
    """Render target driven by the presenter. All calls are fire-and-forget."""

    def show(self, view_model: StepViewModel) -> None: ...

    def clear_highlight(self) -> None: ...

    def highlight(self, is_correct: bool) -> None: ...

    def show_busy_indicator(self) -> None: ...

    def hide_busy_indicator(self) -> None: ...

    def set_input_enabled(self, enabled: bool) -> None: ...


class AlertPresenterProtocol(Protocol):
    def show_alert(self, request: AlertRequest, target: QuizView) -> None: ...


class QuestionFactoryDelegate(Protocol):
    """Completion callbacks of a question source."""

    def did_load_data_from_server(self) -> None: ...

    def did_fail_to_load_data(self, error: Exception) -> None: ...

    def did_receive_error_message(self, message: str) -> None: ...

    def did_receive_next_question(self, question: Optional[Question]) -> None: ...


class QuestionFactoryProtocol(Protocol):
    """Asynchronous question source. Results are reported to the delegate."""

    def set_delegate(self, delegate: QuestionFactoryDelegate) -> None: ...

    def load_data(self) -> None: ...

    def request_next_question(self) -> None: ...


class StatisticServiceProtocol(Protocol):
    def store(self, correct: int, total: int) -> None: ...

    @property
    def games_count(self) -> int: ...

    @property
    def best_game(self) -> GameRecord: ...

    @property
    def total_accuracy(self) -> float: ...
