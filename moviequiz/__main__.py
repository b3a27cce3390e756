import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.types import BotCommand, BotCommandScopeDefault

from moviequiz import config
from moviequiz.db import init_db
from moviequiz.handlers import setup_routers
from moviequiz.services.quiz_sessions import QuizSessions

logging.basicConfig(level=config.log_level)


async def on_startup(bot: Bot) -> None:
    await bot.set_my_commands(
        [
            BotCommand(command="start", description="🎬 Начать новый квиз"),
            BotCommand(command="stats", description="📊 Моя статистика"),
        ],
        scope=BotCommandScopeDefault(),
    )
    logging.info("Bot commands updated")


async def on_shutdown(sessions: QuizSessions) -> None:
    sessions.stop_all()
    logging.info("All quiz sessions stopped")


async def main() -> None:
    if not config.bot_token:
        raise RuntimeError("BOT_TOKEN is not set")

    init_db()

    bot = Bot(token=config.bot_token)
    dp = Dispatcher(sessions=QuizSessions())
    dp.include_router(setup_routers())
    dp.startup.register(on_startup)
    dp.shutdown.register(on_shutdown)

    await dp.start_polling(bot)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
