from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

ANSWER_PREFIX = "ans:"
ALERT_PREFIX = "alert:"
HIGHLIGHT_PREFIX = "mark:"


def answer_callback_data(view_token: str, render_id: int, answer: bool) -> str:
    return f"{ANSWER_PREFIX}{view_token}:{render_id}:{'yes' if answer else 'no'}"


def parse_answer_callback(data: str) -> tuple[str, int, bool]:
    """Split answer callback data into (view token, render id, answer)."""
    _, view_token, render_id, answer = data.split(":")
    if answer not in ("yes", "no"):
        raise ValueError(f"Unknown answer: {answer}")
    return view_token, int(render_id), answer == "yes"


def build_answers_keyboard(view_token: str, render_id: int) -> InlineKeyboardMarkup:
    """Build keyboard with yes/no answers bound to one rendered question."""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="Нет", callback_data=answer_callback_data(view_token, render_id, False)),
                InlineKeyboardButton(text="Да", callback_data=answer_callback_data(view_token, render_id, True)),
            ]
        ]
    )


def build_highlight_keyboard(is_correct: bool) -> InlineKeyboardMarkup:
    """Replace the answers with a correctness marker."""
    text = "✅ Верно" if is_correct else "❌ Неверно"
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text=text, callback_data=f"{HIGHLIGHT_PREFIX}{int(is_correct)}")]
        ]
    )


def build_alert_keyboard(button_text: str, token: str) -> InlineKeyboardMarkup:
    """Build the single acknowledgement button of an alert."""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text=button_text, callback_data=f"{ALERT_PREFIX}{token}")]
        ]
    )
