"""
Global fallback handler — included LAST in the dispatcher.

Catches callback queries no other router handled (stale keyboards after a
restart wipe MemoryStorage) so the user never sees an endless spinner.
"""
import logging

from aiogram import Router
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery

from hackgate.keyboards import admin_main_menu, back_to_main

logger = logging.getLogger(__name__)
router = Router(name="fallback")


@router.callback_query()
async def cq_fallback(
    callback: CallbackQuery,
    state: FSMContext,
    is_admin: bool = False,
) -> None:
    await state.clear()
    try:
        await callback.answer("⚠️ This button has expired. Please start again.", show_alert=True)
        await callback.message.edit_text(
            "🔄 *Session reset.* Back to the main menu:",
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=admin_main_menu() if is_admin else back_to_main(),
        )
    except TelegramBadRequest as e:
        logger.debug("Fallback could not edit message: %s", e)
