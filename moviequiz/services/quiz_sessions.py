import logging
from dataclasses import dataclass
from typing import Callable, Optional
from aiogram import Bot

from moviequiz.config import QuizSettings
from moviequiz.presenter import QuizPresenter
from moviequiz.services.alert_presenter import TelegramAlertPresenter
from moviequiz.services.movies_loader import MoviesLoader
from moviequiz.services.question_factory import QuestionFactory
from moviequiz.services.statistic_service import StatisticService
from moviequiz.services.telegram_view import TelegramQuizView


@dataclass
class QuizSession:
    presenter: QuizPresenter
    view: TelegramQuizView
    alerts: TelegramAlertPresenter
    question_factory: QuestionFactory


class QuizSessions:
    """Running quiz sessions, one per chat."""

    def __init__(
        self,
        settings: Optional[QuizSettings] = None,
        loader_factory: Callable[[], MoviesLoader] = MoviesLoader,
    ) -> None:
        self.settings = settings or QuizSettings.from_env()
        self.loader_factory = loader_factory
        self._sessions: dict[int, QuizSession] = {}

    def get(self, chat_id: int) -> Optional[QuizSession]:
        return self._sessions.get(chat_id)

    def start(self, bot: Bot, chat_id: int) -> QuizSession:
        """Start a new session for the chat, replacing a running one."""
        self.stop(chat_id)

        view = TelegramQuizView(bot, chat_id)
        alerts = TelegramAlertPresenter()
        question_factory = QuestionFactory(self.loader_factory())
        presenter = QuizPresenter(
            view=view,
            question_factory=question_factory,
            statistic_service=StatisticService(chat_id),
            alert_presenter=alerts,
            settings=self.settings,
        )
        view.attach(presenter)
        session = QuizSession(presenter, view, alerts, question_factory)
        self._sessions[chat_id] = session

        view.start()
        presenter.start()
        logging.info(f"Quiz session started in chat {chat_id}")
        return session

    def stop(self, chat_id: int) -> None:
        session = self._sessions.pop(chat_id, None)
        if session is None:
            return
        session.presenter.close()
        session.alerts.clear()
        session.view.close()

    def stop_all(self) -> None:
        for chat_id in list(self._sessions):
            self.stop(chat_id)
