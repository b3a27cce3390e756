from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.exceptions import TelegramBadRequest

from moviequiz.keyboards.builders import ALERT_PREFIX, answer_callback_data, parse_answer_callback
from moviequiz.models import AlertRequest, StepViewModel
from moviequiz.services.telegram_view import TelegramQuizView, escape_md, format_question_caption


def make_bot():
    bot = MagicMock()
    sent = SimpleNamespace(message_id=42)
    bot.send_photo = AsyncMock(return_value=sent)
    bot.send_message = AsyncMock(return_value=sent)
    bot.send_chat_action = AsyncMock()
    bot.delete_message = AsyncMock()
    bot.edit_message_reply_markup = AsyncMock()
    return bot


@pytest.fixture
async def view():
    telegram_view = TelegramQuizView(make_bot(), chat_id=100)
    telegram_view.start()
    yield telegram_view
    telegram_view.close()


def test_escape_md():
    assert escape_md("Рейтинг 7.5 (IMDb)!") == "Рейтинг 7\\.5 \\(IMDb\\)\\!"


def test_question_caption():
    caption = format_question_caption(StepViewModel(b"", "Больше чем 7?", "3/10"))

    assert caption == "❓ _Вопрос 3/10_\n\n*Больше чем 7?*"


async def test_show_sends_poster_with_answers(view):
    view.show(StepViewModel(b"poster", "Больше чем 7?", "1/10"))
    await view.drain()

    view.bot.send_photo.assert_awaited_once()
    kwargs = view.bot.send_photo.await_args.kwargs
    buttons = [b.callback_data for b in kwargs["reply_markup"].inline_keyboard[0]]
    assert buttons == [
        answer_callback_data(view.token, 1, False),
        answer_callback_data(view.token, 1, True),
    ]
    assert parse_answer_callback(buttons[1]) == (view.token, 1, True)
    assert "1/10" in kwargs["caption"]


async def test_show_without_image_sends_text(view):
    view.show(StepViewModel(b"", "Больше чем 7?", "1/10"))
    await view.drain()

    view.bot.send_photo.assert_not_awaited()
    view.bot.send_message.assert_awaited_once()


async def test_photo_error_falls_back_to_text(view):
    view.bot.send_photo.side_effect = TelegramBadRequest(method=MagicMock(), message="bad photo")

    view.show(StepViewModel(b"poster", "q", "1/10"))
    await view.drain()

    view.bot.send_message.assert_awaited_once()


async def test_failed_call_does_not_stop_outbox(view):
    view.bot.send_chat_action.side_effect = TelegramBadRequest(method=MagicMock(), message="blocked")

    view.show_busy_indicator()
    view.show(StepViewModel(b"", "q", "1/10"))
    await view.drain()

    view.bot.send_message.assert_awaited_once()


async def test_highlight_replaces_answers_of_question_message(view):
    view.show(StepViewModel(b"poster", "q", "1/10"))
    view.highlight(False)
    await view.drain()

    kwargs = view.bot.edit_message_reply_markup.await_args.kwargs
    assert kwargs["message_id"] == 42
    assert kwargs["reply_markup"].inline_keyboard[0][0].text == "❌ Неверно"


async def test_highlight_after_clear_does_not_touch_previous_question(view):
    view.show(StepViewModel(b"poster", "q", "1/10"))
    view.clear_highlight()
    view.highlight(True)
    await view.drain()

    view.bot.edit_message_reply_markup.assert_not_awaited()


async def test_busy_indicator_is_deleted_on_hide(view):
    view.show_busy_indicator()
    view.hide_busy_indicator()
    view.hide_busy_indicator()
    await view.drain()

    view.bot.delete_message.assert_awaited_once_with(100, 42)


async def test_alert_message_has_single_button(view):
    view.send_alert(AlertRequest("Ошибка", "Нет сети", "Попробовать еще раз"), "abc")
    await view.drain()

    kwargs = view.bot.send_message.await_args.kwargs
    keyboard = kwargs["reply_markup"].inline_keyboard
    assert len(keyboard) == 1 and len(keyboard[0]) == 1
    assert keyboard[0][0].callback_data == f"{ALERT_PREFIX}abc"


def test_forward_answer_respects_input_state():
    view = TelegramQuizView(make_bot(), chat_id=1)
    presenter = MagicMock()
    view.attach(presenter)
    view.show(StepViewModel(b"", "q", "1/10"))

    assert view.forward_answer(True, view.token, 1) is True
    presenter.yes_button_pressed.assert_called_once()

    view.set_input_enabled(False)
    assert view.forward_answer(False, view.token, 1) is False
    presenter.no_button_pressed.assert_not_called()


def test_forward_answer_without_presenter():
    view = TelegramQuizView(make_bot(), chat_id=1)

    assert view.forward_answer(True, view.token, 0) is False


def test_forward_answer_rejects_outdated_keyboard():
    view = TelegramQuizView(make_bot(), chat_id=1)
    presenter = MagicMock()
    view.attach(presenter)
    view.show(StepViewModel(b"", "q1", "1/10"))
    view.show(StepViewModel(b"", "q2", "2/10"))

    assert view.forward_answer(True, view.token, 1) is False
    assert view.forward_answer(True, "other", 2) is False
    presenter.yes_button_pressed.assert_not_called()

    assert view.forward_answer(True, view.token, 2) is True


def test_parse_answer_callback_rejects_garbage():
    with pytest.raises(ValueError):
        parse_answer_callback("ans:yes")
    with pytest.raises(ValueError):
        parse_answer_callback("ans:abc:x:yes")
    with pytest.raises(ValueError):
        parse_answer_callback("ans:abc:1:maybe")
