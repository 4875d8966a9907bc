"""
Admin panel entry point and team review.

Verify / reject / back-to-pending go through set_payment_status; the team
leader is notified from a background task so the admin's screen updates
immediately.
"""
import logging

from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from hackgate.errors import AdmissionError
from hackgate.keyboards import (
    AdminPanelCb, TeamCb, TeamListCb,
    admin_main_menu, reject_reason_kb, team_detail_admin_kb, team_list_kb,
)
from hackgate.models.models import PaymentStatus, ProofKind, Team, TeamSize
from hackgate.services import (
    Notifier, get_team, list_teams, set_payment_status, undo_check_in,
)
from hackgate.states import AdminReviewStates

logger = logging.getLogger(__name__)
router = Router(name="admin_panel")


def _team_admin_card(team: Team) -> str:
    proof = team.payment_proof
    lines = [
        f"{team.status_emoji} *{team.team_name}*",
        f"🔖 `{team.registration_number}` · {TeamSize.EMOJI.get(team.team_size, '')} {team.team_size}",
        f"👤 Leader: {team.leader.display_name}"
        + (f" (@{team.leader.username})" if team.leader.username else ""),
    ]
    if team.members:
        lines.append("👥 Members: " + ", ".join(m.display_name for m in team.members))
    lines.append(f"💳 Status: {team.payment_status}")
    if proof is None:
        lines.append("💰 Payment: not submitted")
    elif team.proof_kind == ProofKind.GATEWAY:
        lines.append(f"💰 Gateway: `{team.gateway_payment_id}` · ₹{team.amount_display}")
    else:
        lines.append(f"💰 Transaction: `{team.transaction_id}` · ₹{team.amount_display}")
    if team.documents_uploaded:
        lines.append(f"📎 [Payment screenshot]({team.payment_screenshot_url}) · [ID card]({team.id_card_url})")
    else:
        lines.append("📎 Documents: missing")
    if team.rejection_reason:
        lines.append(f"⚠️ Reason: _{team.rejection_reason}_")
    if team.ticket_number:
        lines.append(f"🎫 Ticket: `{team.ticket_number}`")
    if team.checked_in:
        lines.append(f"📍 Checked in {team.check_in_time:%d.%m %H:%M} (total {team.check_in_count})")
    return "\n".join(lines)


async def _show_team(callback: CallbackQuery, team: Team) -> None:
    await callback.message.edit_text(
        _team_admin_card(team),
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=team_detail_admin_kb(team),
        disable_web_page_preview=True,
    )


# ── Admin home (back) ─────────────────────────────────────────────────────────

@router.callback_query(AdminPanelCb.filter(F.action == "back"))
async def cq_admin_home(callback: CallbackQuery, state: FSMContext) -> None:
    await state.clear()
    await callback.message.edit_text(
        "⚡ *Admin panel*\n\nChoose a section:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=admin_main_menu(),
    )
    await callback.answer()


# ── Team list ─────────────────────────────────────────────────────────────────

@router.callback_query(AdminPanelCb.filter(F.action == "teams"))
@router.callback_query(TeamListCb.filter())
async def cq_team_list(
    callback: CallbackQuery,
    session: AsyncSession,
    callback_data: AdminPanelCb | TeamListCb,
) -> None:
    status = callback_data.status if isinstance(callback_data, TeamListCb) else ""
    page   = callback_data.page if isinstance(callback_data, TeamListCb) else 0
    teams  = await list_teams(session, payment_status=status or None)

    await callback.message.edit_text(
        f"👥 *Teams* — {len(teams)} found",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=team_list_kb(teams, status=status, page=page),
    )
    await callback.answer()


@router.callback_query(TeamCb.filter(F.action == "view"))
async def cq_team_view(
    callback: CallbackQuery,
    callback_data: TeamCb,
    session: AsyncSession,
    state: FSMContext,
) -> None:
    await state.clear()
    team = await get_team(session, callback_data.tid)
    if team is None:
        await callback.answer("Team not found.", show_alert=True)
        return
    await _show_team(callback, team)
    await callback.answer()


# ── Status transitions ────────────────────────────────────────────────────────

@router.callback_query(TeamCb.filter(F.action == "verify"))
async def cq_team_verify(
    callback: CallbackQuery,
    callback_data: TeamCb,
    session: AsyncSession,
    notifier: Notifier,
) -> None:
    try:
        team = await set_payment_status(
            session, callback_data.tid, PaymentStatus.VERIFIED,
            admin_id=callback.from_user.id, notifier=notifier,
        )
    except AdmissionError as e:
        await callback.answer(e.message, show_alert=True)
        return

    await _show_team(callback, team)
    await callback.answer(f"✅ Verified — ticket {team.ticket_number}")


@router.callback_query(TeamCb.filter(F.action == "pending"))
async def cq_team_pending(
    callback: CallbackQuery,
    callback_data: TeamCb,
    session: AsyncSession,
) -> None:
    try:
        team = await set_payment_status(
            session, callback_data.tid, PaymentStatus.PENDING,
            admin_id=callback.from_user.id,
        )
    except AdmissionError as e:
        await callback.answer(e.message, show_alert=True)
        return

    await _show_team(callback, team)
    await callback.answer("⏳ Back to pending")


@router.callback_query(TeamCb.filter(F.action == "reject"))
async def cq_team_reject(
    callback: CallbackQuery,
    callback_data: TeamCb,
    state: FSMContext,
) -> None:
    await state.set_state(AdminReviewStates.enter_reject_reason)
    await state.update_data(team_id=callback_data.tid)
    await callback.message.edit_text(
        "❌ *Reject team*\n\nSend the reason the team leader will see:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=reject_reason_kb(callback_data.tid),
    )
    await callback.answer()


@router.callback_query(TeamCb.filter(F.action == "reject_default"))
async def cq_team_reject_default(
    callback: CallbackQuery,
    callback_data: TeamCb,
    session: AsyncSession,
    state: FSMContext,
    notifier: Notifier,
) -> None:
    await state.clear()
    try:
        team = await set_payment_status(
            session, callback_data.tid, PaymentStatus.REJECTED,
            admin_id=callback.from_user.id, notifier=notifier,
        )
    except AdmissionError as e:
        await callback.answer(e.message, show_alert=True)
        return

    await _show_team(callback, team)
    await callback.answer("❌ Rejected")


@router.message(AdminReviewStates.enter_reject_reason)
async def msg_reject_reason(
    message: Message,
    session: AsyncSession,
    state: FSMContext,
    notifier: Notifier,
) -> None:
    data = await state.get_data()
    await state.clear()
    try:
        team = await set_payment_status(
            session, data["team_id"], PaymentStatus.REJECTED,
            admin_id=message.from_user.id,
            rejection_reason=message.text,
            notifier=notifier,
        )
    except AdmissionError as e:
        await message.answer(f"❌ {e.message}", reply_markup=admin_main_menu())
        return

    await message.answer(
        _team_admin_card(team),
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=team_detail_admin_kb(team),
        disable_web_page_preview=True,
    )


# ── Check-in corrections ──────────────────────────────────────────────────────

@router.callback_query(TeamCb.filter(F.action == "undo"))
async def cq_team_undo_checkin(
    callback: CallbackQuery,
    callback_data: TeamCb,
    session: AsyncSession,
) -> None:
    try:
        team = await undo_check_in(session, callback_data.tid)
    except AdmissionError as e:
        await callback.answer(e.message, show_alert=True)
        return

    logger.info("Admin %d undid check-in of team %s", callback.from_user.id, team.registration_number)
    await _show_team(callback, team)
    await callback.answer("↩️ Check-in undone")


@router.callback_query(TeamCb.filter(F.action == "history"))
async def cq_team_history(
    callback: CallbackQuery,
    callback_data: TeamCb,
    session: AsyncSession,
) -> None:
    team = await get_team(session, callback_data.tid)
    if team is None:
        await callback.answer("Team not found.", show_alert=True)
        return

    lines = [f"🕒 *Check-in history* — {team.team_name}", ""]
    for i, entry in enumerate(team.check_in_history, 1):
        lines.append(f"{i}. `{entry.timestamp:%d.%m %H:%M:%S}` · {entry.method} · admin {entry.checked_in_by}")
    if not team.check_in_history:
        lines.append("_No check-ins yet._")

    await callback.message.edit_text(
        "\n".join(lines),
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=team_detail_admin_kb(team),
    )
    await callback.answer()
