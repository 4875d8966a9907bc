"""
HackGate — hackathon team admission bot.
Entry point: creates the bot, registers routers + middleware, handles graceful shutdown.
"""
import asyncio
import logging
import signal
import sys

from aiogram import Bot, Dispatcher, Router
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import ErrorEvent
from sqlalchemy.exc import SQLAlchemyError

from hackgate.config import settings
from hackgate.middlewares import AdminMiddleware, DatabaseMiddleware, IsAdmin, RateLimitMiddleware
from hackgate.models.base import Base, engine
from hackgate.services import (
    LocalBlobStore, TelegramNotifier, build_gateway, drain_notifications,
)

# ── Handlers ──────────────────────────────────────────────────────────────────
from hackgate.handlers.common import router as common_router
from hackgate.handlers.registration import router as registration_router
from hackgate.handlers.admin.panel import router as admin_panel_router
from hackgate.handlers.admin.checkin_desk import router as admin_checkin_router
from hackgate.handlers.admin.stats import router as admin_stats_router
from hackgate.handlers.fallback import router as fallback_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


async def create_tables() -> None:
    """Create all database tables on startup."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ready.")
    except (SQLAlchemyError, OSError) as e:
        logger.critical(
            "❌ Cannot connect to database!\n"
            "   URL: %s\n"
            "   Error: %s\n\n"
            "   → Start PostgreSQL or use SQLite locally "
            "(DATABASE_URL=sqlite+aiosqlite:///./hackgate.db)",
            settings.DATABASE_URL.split("@")[-1],   # hide credentials in log
            e,
        )
        sys.exit(1)


def build_dispatcher() -> Dispatcher:
    dp = Dispatcher(storage=MemoryStorage())

    # ── Global error handler — ensures callbacks are always answered ──────────
    @dp.errors()
    async def handle_error(event: ErrorEvent) -> None:
        logger.exception("Unhandled error: %s", event.exception)
        update = event.update
        if update.callback_query:
            try:
                await update.callback_query.answer(
                    "⚠️ Something went wrong. Please try again.", show_alert=True
                )
            except TelegramAPIError as e:
                logger.warning("Could not answer callback after error: %s", e)

    # ── Global middlewares (outer → inner) ────────────────────────────────────
    dp.update.middleware(DatabaseMiddleware())
    dp.update.middleware(AdminMiddleware())
    dp.update.middleware(RateLimitMiddleware())

    # ── Routers — order matters for handler priority ──────────────────────────
    dp.include_router(common_router)
    dp.include_router(registration_router)

    # One IsAdmin gate in front of every admin router
    admin_router = Router(name="admin")
    admin_router.callback_query.filter(IsAdmin())
    admin_router.message.filter(IsAdmin())
    admin_router.include_routers(admin_panel_router, admin_checkin_router, admin_stats_router)
    dp.include_router(admin_router)

    # !! Must be last — catches any callback not handled above !!
    dp.include_router(fallback_router)

    return dp


async def main() -> None:
    logger.info("Starting HackGate bot for %s…", settings.EVENT_NAME)
    await create_tables()

    bot = Bot(
        token=settings.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.MARKDOWN),
    )
    dp = build_dispatcher()

    # Injected into handlers by parameter name
    gateway = build_gateway()
    dp["notifier"]   = TelegramNotifier(bot)
    dp["blob_store"] = LocalBlobStore()
    dp["gateway"]    = gateway
    if gateway is None:
        logger.info("Payment gateway not configured — manual transaction IDs only.")

    # ── Graceful shutdown on SIGTERM (Docker / systemd) ───────────────────────
    loop = asyncio.get_running_loop()

    def _handle_signal() -> None:
        logger.info("Received shutdown signal, stopping…")
        asyncio.ensure_future(dp.stop_polling())

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _handle_signal)
        except NotImplementedError:
            # Windows does not support add_signal_handler
            pass

    try:
        logger.info("Bot is running. Press Ctrl+C to stop.")
        await dp.start_polling(
            bot,
            allowed_updates=dp.resolve_used_update_types(),
            handle_signals=False,
        )
    finally:
        logger.info("Shutting down…")
        await drain_notifications()
        if gateway is not None:
            await gateway.aclose()
        await bot.session.close()
        await engine.dispose()
        logger.info("Shutdown complete.")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
