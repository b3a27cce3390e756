import logging
from aiogram import Router, F
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import CallbackQuery

from moviequiz.keyboards.builders import (
    ANSWER_PREFIX,
    ALERT_PREFIX,
    HIGHLIGHT_PREFIX,
    parse_answer_callback,
)
from moviequiz.services.quiz_sessions import QuizSessions

router = Router()


@router.callback_query(F.data.startswith(ANSWER_PREFIX))
async def handle_answer(cb: CallbackQuery, sessions: QuizSessions) -> None:
    """Forward a yes/no press to the chat's session."""
    try:
        view_token, render_id, answer = parse_answer_callback(cb.data)
    except ValueError as e:
        logging.error(f"Invalid callback format: {cb.data} - {e}")
        await cb.answer("❌ Ошибка обработки ответа")
        return

    session = sessions.get(cb.message.chat.id)
    if session is None:
        await cb.answer("⚠️ Сессия завершена. Нажми /start", show_alert=True)
        return

    if view_token != session.view.token:
        await cb.answer("⚠️ Этот квиз уже завершён", show_alert=True)
        return

    if not session.view.forward_answer(answer, view_token, render_id):
        await cb.answer("⏳ Подожди следующий вопрос")
        return
    await cb.answer()


@router.callback_query(F.data.startswith(ALERT_PREFIX))
async def handle_alert(cb: CallbackQuery, sessions: QuizSessions) -> None:
    """Acknowledge an alert and continue the session."""
    token = cb.data[len(ALERT_PREFIX):]
    session = sessions.get(cb.message.chat.id)
    if session is None or not session.alerts.acknowledge(token):
        await cb.answer("⚠️ Действие устарело. Нажми /start", show_alert=True)
        return

    try:
        await cb.message.edit_reply_markup(reply_markup=None)
    except TelegramBadRequest as e:
        logging.warning(f"Failed to remove alert button: {e}")
    await cb.answer()


@router.callback_query(F.data.startswith(HIGHLIGHT_PREFIX))
async def handle_marker(cb: CallbackQuery) -> None:
    """The correctness marker is not an action."""
    await cb.answer()


@router.callback_query()
async def unknown_callback(cb: CallbackQuery) -> None:
    """Handle unknown callbacks."""
    await cb.answer(
        "⚠️ Действие устарело или сессия завершена. Нажми /start", show_alert=True
    )
