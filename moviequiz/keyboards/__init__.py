from moviequiz.keyboards.builders import (
    build_answers_keyboard,
    build_highlight_keyboard,
    build_alert_keyboard,
)

__all__ = [
    "build_answers_keyboard",
    "build_highlight_keyboard",
    "build_alert_keyboard",
]
