from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.filters import ExceptionTypeFilter

from sharetab.config import get_settings
from sharetab.db.repo import Database, NotFoundError, ShareTabRepository
from sharetab.handlers import basic_router, expenses_router, on_user_error, settlement_router, trips_router
from sharetab.logging import configure_logging, get_logger
from sharetab.services.validation import ValidationError


def build_dispatcher(repo: ShareTabRepository) -> Dispatcher:
    dp = Dispatcher()
    # handlers receive these as keyword arguments
    dp["repo"] = repo
    dp["settings"] = get_settings()

    dp.include_router(basic_router)
    dp.include_router(trips_router)
    dp.include_router(expenses_router)
    dp.include_router(settlement_router)
    dp.errors.register(on_user_error, ExceptionTypeFilter(ValidationError, NotFoundError))
    return dp


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    db = Database(settings.database_url)
    await db.connect()
    dp = build_dispatcher(ShareTabRepository(db))

    log = get_logger(__name__)
    log.info("bot.start")
    try:
        await dp.start_polling(bot)
    finally:
        await db.close()
        await bot.session.close()
        log.info("bot.stop")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
