"""
Admin check-in desk.

Workflow:
  1. Admin taps "📷 Check-in desk" → bot enters waiting_ticket state
  2. Volunteer scans the team's ticket QR with any reader app
  3. The decoded text (ticket JSON) or a typed registration number is sent here
  4. Bot checks the team in and stays on the desk for the next ticket

Two volunteers scanning the same ticket at once is safe: only one scan is
counted, the other sees "already checked in".
"""
import logging

from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from hackgate.errors import AdmissionError
from hackgate.keyboards import AdminPanelCb, CheckInCb, admin_main_menu, checkin_cancel_kb
from hackgate.models.models import CheckInMethod, TeamSize
from hackgate.services import CheckInResult, can_check_in, check_in, extract_registration_number
from hackgate.states import AdminCheckInStates

logger = logging.getLogger(__name__)
router = Router(name="admin_checkin_desk")


# ── Entry ─────────────────────────────────────────────────────────────────────

@router.callback_query(AdminPanelCb.filter(F.action == "checkin"))
async def cq_checkin_desk(callback: CallbackQuery, state: FSMContext) -> None:
    await state.set_state(AdminCheckInStates.waiting_ticket)
    await callback.message.edit_text(
        "📷 *Check-in desk*\n\n"
        "Scan the team's ticket QR with any reader app and send the decoded text here,\n"
        "or type the registration number (e.g. `TEAM0001`).",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=checkin_cancel_kb(),
    )
    await callback.answer()


# ── Ticket input ──────────────────────────────────────────────────────────────

@router.message(AdminCheckInStates.waiting_ticket, ~F.text.startswith("/"))
async def msg_ticket(message: Message, session: AsyncSession) -> None:
    raw = message.text.strip() if message.text else ""
    registration_number = extract_registration_number(raw)
    if registration_number is None:
        await message.answer(
            "⚠️ No registration number found.\n\n"
            "Send the decoded QR text or a number like `TEAM0001`.",
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=checkin_cancel_kb(),
        )
        return

    method = CheckInMethod.QR_SCAN if raw.startswith("{") else CheckInMethod.MANUAL
    try:
        result = await check_in(session, registration_number, message.from_user.id, method)
    except AdmissionError as e:
        await message.answer(
            f"❌ *{registration_number}*: {e.message}",
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=checkin_cancel_kb(),
        )
        return

    await message.answer(
        _result_card(result),
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=checkin_cancel_kb(),
    )


# ── Read-only lookup ──────────────────────────────────────────────────────────

@router.message(Command("lookup"))
async def cmd_lookup(message: Message, command: CommandObject, session: AsyncSession) -> None:
    registration_number = extract_registration_number(command.args or "")
    if registration_number is None:
        await message.answer("Usage: `/lookup TEAM0001`", parse_mode=ParseMode.MARKDOWN)
        return

    try:
        info = await can_check_in(session, registration_number)
    except AdmissionError as e:
        await message.answer(f"❌ {e.message}")
        return

    icon = "🟢" if info.can_check_in else "🔴"
    when = f"\n🕒 {info.check_in_time:%d.%m %H:%M}" if info.check_in_time else ""
    await message.answer(
        f"{icon} *{info.team_name}* (`{info.registration_number}`)\n"
        f"💳 Payment: {info.payment_status}\n"
        f"{info.message}{when}",
        parse_mode=ParseMode.MARKDOWN,
    )


# ── Cancel ────────────────────────────────────────────────────────────────────

@router.callback_query(CheckInCb.filter(F.action == "cancel"))
async def cq_checkin_cancel(callback: CallbackQuery, state: FSMContext) -> None:
    await state.clear()
    await callback.message.edit_text(
        "📷 *Check-in desk closed.*",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=admin_main_menu(),
    )
    await callback.answer()


# ── Helpers ───────────────────────────────────────────────────────────────────

def _result_card(r: CheckInResult) -> str:
    head = "✅ *Check-in successful!*" if r.success else "ℹ️ *Team already checked in*"
    lines = [
        head,
        "",
        f"👥 *{r.team_name}*",
        f"🔖 `{r.registration_number}` · {TeamSize.EMOJI.get(r.team_size, '')} {r.team_size}",
        f"👤 Leader: {r.leader_name}",
    ]
    if r.check_in_time:
        lines.append(f"🕒 {r.check_in_time:%H:%M:%S} UTC")
    lines.append(f"🔁 Check-ins so far: {r.check_in_count}")
    return "\n".join(lines)
