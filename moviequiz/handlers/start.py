from aiogram import Router, Bot
from aiogram.filters import Command
from aiogram.types import Message

from moviequiz.services.quiz_sessions import QuizSessions
from moviequiz.services.statistic_service import StatisticService

router = Router()


@router.message(Command("start"))
async def cmd_start(msg: Message, bot: Bot, sessions: QuizSessions) -> None:
    """Handle /start command - begin a new round."""
    await msg.answer(
        "🎬 Привет! Я покажу постеры фильмов из топ-250.\n"
        "Угадай, выше ли рейтинг фильма названного порога."
    )
    sessions.start(bot, msg.chat.id)


@router.message(Command("stats"))
async def cmd_stats(msg: Message) -> None:
    """Show the player's statistics."""
    await msg.answer("📊 " + StatisticService(msg.chat.id).get_stats_text())
