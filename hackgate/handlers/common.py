"""
Common handlers: /start, main menu routing.
"""
import logging

from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from hackgate.config import settings
from hackgate.keyboards import MainMenuCb, admin_main_menu, participant_main_menu
from hackgate.services import get_team_for_user, get_user, upsert_user

logger = logging.getLogger(__name__)
router = Router(name="common")


# ── /start ────────────────────────────────────────────────────────────────────

@router.message(CommandStart())
async def cmd_start(message: Message, session: AsyncSession, is_admin: bool, state: FSMContext) -> None:
    await state.clear()
    tg = message.from_user
    user = await upsert_user(
        session,
        telegram_id=tg.id,
        first_name=tg.first_name,
        last_name=tg.last_name,
        username=tg.username,
    )

    if is_admin:
        await message.answer(
            f"⚡ *Admin panel* — {tg.first_name}\n\n"
            f"Review payments, issue tickets and run the check-in desk.\n\n"
            f"Choose a section:",
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=admin_main_menu(),
        )
        return

    team = await get_team_for_user(session, user.id)
    await message.answer(
        f"👋 Welcome to *{settings.EVENT_NAME}*, {tg.first_name}!\n\n"
        f"📅 {settings.EVENT_DATE} · {settings.EVENT_VENUE}\n\n"
        + (
            f"Your team: *{team.team_name}* (`{team.registration_number}`)"
            if team else
            "Register your team, pay the fee and get your entry ticket right here."
        ),
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=participant_main_menu(team),
    )


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(
        "ℹ️ *How it works*\n\n"
        "1️⃣ Register your team (Solo, Duo or Team)\n"
        "2️⃣ Pay the fee online or send your transaction ID\n"
        "3️⃣ Upload the payment screenshot and your ID card\n"
        "4️⃣ Wait for an organiser to verify — your ticket arrives here\n"
        "5️⃣ Show the ticket QR at the venue\n\n"
        f"Support: {settings.SUPPORT_CONTACT}",
        parse_mode=ParseMode.MARKDOWN,
    )


# ── Main menu callback ────────────────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "main"))
async def cq_main_menu(
    callback: CallbackQuery,
    session: AsyncSession,
    is_admin: bool,
    state: FSMContext,
) -> None:
    await state.clear()
    if is_admin:
        text = "⚡ *Admin panel*\n\nChoose a section:"
        kb   = admin_main_menu()
    else:
        user = await get_user(session, callback.from_user.id)
        team = await get_team_for_user(session, user.id) if user else None
        text = f"🏁 *{settings.EVENT_NAME}*\n\nChoose an action:"
        kb   = participant_main_menu(team)

    await callback.message.edit_text(text, parse_mode=ParseMode.MARKDOWN, reply_markup=kb)
    await callback.answer()


@router.callback_query(F.data == "noop")
async def cq_noop(callback: CallbackQuery) -> None:
    await callback.answer()
