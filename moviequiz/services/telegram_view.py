import asyncio
import logging
import re
import weakref
from typing import Awaitable, Callable, Optional
from uuid import uuid4
from aiogram import Bot
from aiogram.enums import ChatAction, ParseMode
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest
from aiogram.types import BufferedInputFile

from moviequiz.keyboards import (
    build_alert_keyboard,
    build_answers_keyboard,
    build_highlight_keyboard,
)
from moviequiz.models import AlertRequest, StepViewModel

BUSY_TEXT = "⏳ Загружаем фильмы\\.\\.\\."


def escape_md(text: str) -> str:
    """Escape special characters for MarkdownV2."""
    return re.sub(r"([_*\[\]()~`>#+\-=|{}.!\\])", r"\\\1", text)


def format_question_caption(view_model: StepViewModel) -> str:
    return (
        f"❓ _Вопрос {escape_md(view_model.question_number)}_\n\n"
        f"*{escape_md(view_model.question)}*"
    )


def format_alert_text(request: AlertRequest) -> str:
    return f"*{escape_md(request.title)}*\n\n{escape_md(request.message)}"


class TelegramQuizView:
    """Renders a quiz session into a Telegram chat.

    The presenter calls are fire-and-forget: each one only enqueues a Bot API
    call, and a single outbox task sends them in order.
    """

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self.bot = bot
        self.chat_id = chat_id
        self.input_enabled = True
        self.token = uuid4().hex[:8]
        self._presenter_ref: Optional[weakref.ref] = None
        self._render_id = 0
        self._question_message_id: Optional[int] = None
        self._busy_message_id: Optional[int] = None
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None

    @property
    def presenter(self):
        return self._presenter_ref() if self._presenter_ref else None

    @property
    def render_id(self) -> int:
        """Identity of the latest question shown by this view."""
        return self._render_id

    def attach(self, presenter) -> None:
        """Bind the presenter that receives this chat's answers."""
        self._presenter_ref = weakref.ref(presenter)

    def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.get_running_loop().create_task(self._run())

    def close(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            self._worker = None

    async def drain(self) -> None:
        """Wait until every queued Bot API call has been sent."""
        await self._outbox.join()

    def forward_answer(self, answer: bool, view_token: str, render_id: int) -> bool:
        """Pass a button press to the presenter.

        Returns False while input is off or when the press comes from a
        keyboard other than the latest question rendered by this view.
        """
        presenter = self.presenter
        if presenter is None or not self.input_enabled:
            return False
        if view_token != self.token or render_id != self._render_id:
            logging.debug(f"Stale answer {view_token}:{render_id} in chat {self.chat_id}")
            return False
        if answer:
            presenter.yes_button_pressed()
        else:
            presenter.no_button_pressed()
        return True

    # Render target

    def show(self, view_model: StepViewModel) -> None:
        self._render_id += 1
        self._enqueue(self._send_question, view_model, self._render_id)

    def clear_highlight(self) -> None:
        self._enqueue(self._forget_question_message)

    def highlight(self, is_correct: bool) -> None:
        self._enqueue(self._send_highlight, is_correct)

    def show_busy_indicator(self) -> None:
        self._enqueue(self._send_busy)

    def hide_busy_indicator(self) -> None:
        self._enqueue(self._delete_busy)

    def set_input_enabled(self, enabled: bool) -> None:
        self.input_enabled = enabled

    def send_alert(self, request: AlertRequest, token: str) -> None:
        self._enqueue(self._send_alert, request, token)

    # Outbox

    def _enqueue(self, call: Callable[..., Awaitable[None]], *args) -> None:
        self._outbox.put_nowait((call, args))

    async def _run(self) -> None:
        while True:
            call, args = await self._outbox.get()
            try:
                await call(*args)
            except TelegramAPIError as e:
                logging.warning(f"Telegram call {call.__name__} failed in chat {self.chat_id}: {e}")
            finally:
                self._outbox.task_done()

    async def _send_question(self, view_model: StepViewModel, render_id: int) -> None:
        caption = format_question_caption(view_model)
        keyboard = build_answers_keyboard(self.token, render_id)
        try:
            if view_model.image:
                msg = await self.bot.send_photo(
                    self.chat_id,
                    BufferedInputFile(view_model.image, filename="poster.jpg"),
                    caption=caption,
                    reply_markup=keyboard,
                    parse_mode=ParseMode.MARKDOWN_V2,
                )
            else:
                msg = await self.bot.send_message(
                    self.chat_id, caption, reply_markup=keyboard, parse_mode=ParseMode.MARKDOWN_V2
                )
        except TelegramBadRequest as e:
            logging.warning(f"Error sending question: {e}")
            # Fallback to text only
            msg = await self.bot.send_message(
                self.chat_id, caption, reply_markup=keyboard, parse_mode=ParseMode.MARKDOWN_V2
            )
        self._question_message_id = msg.message_id

    async def _forget_question_message(self) -> None:
        # the previous question keeps its marker, later highlights target the next one
        self._question_message_id = None

    async def _send_highlight(self, is_correct: bool) -> None:
        if self._question_message_id is None:
            return
        await self.bot.edit_message_reply_markup(
            chat_id=self.chat_id,
            message_id=self._question_message_id,
            reply_markup=build_highlight_keyboard(is_correct),
        )

    async def _send_busy(self) -> None:
        await self.bot.send_chat_action(self.chat_id, ChatAction.UPLOAD_PHOTO)
        msg = await self.bot.send_message(self.chat_id, BUSY_TEXT, parse_mode=ParseMode.MARKDOWN_V2)
        self._busy_message_id = msg.message_id

    async def _delete_busy(self) -> None:
        message_id, self._busy_message_id = self._busy_message_id, None
        if message_id is not None:
            await self.bot.delete_message(self.chat_id, message_id)

    async def _send_alert(self, request: AlertRequest, token: str) -> None:
        await self.bot.send_message(
            self.chat_id,
            format_alert_text(request),
            reply_markup=build_alert_keyboard(request.button_text, token),
            parse_mode=ParseMode.MARKDOWN_V2,
        )
