"""
Team leader flow: registration, payment proof, documents and ticket.

Flow:
  /start → register → team name → tier → confirm → TEAM0001 ✅
         → pay online  (gateway order → payment id + signature)
           or send transaction ID + amount
         → payment screenshot → ID card
         → (admin verifies) → 🎟 ticket
"""
import logging
from typing import Optional

from aiogram import Bot, F, Router
from aiogram.enums import ParseMode
from aiogram.fsm.context import FSMContext
from aiogram.types import BufferedInputFile, CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from hackgate.config import settings
from hackgate.errors import AdmissionError
from hackgate.keyboards import (
    MainMenuCb, TierCb,
    back_to_main, cancel_kb, confirm_registration_kb, participant_main_menu, tier_kb,
)
from hackgate.models.models import Team, TeamSize
from hackgate.services import (
    BlobStore, Notifier, PaymentGateway,
    create_order, get_team_for_user, get_user, payment_summary, price_for,
    record_transaction, register_team, release_blobs, submit_proof, upload_documents,
)
from hackgate.services.qr_service import generate_qr_buffered
from hackgate.states import PaymentStates, RegistrationStates

logger = logging.getLogger(__name__)
router = Router(name="registration")


async def _current_team(session: AsyncSession, telegram_id: int) -> Optional[Team]:
    user = await get_user(session, telegram_id)
    if user is None:
        return None
    return await get_team_for_user(session, user.id)


def _team_card(team: Team) -> str:
    summary = payment_summary(team)
    lines = [
        f"👥 *{team.team_name}*",
        f"🔖 Registration No.: `{team.registration_number}`",
        f"{TeamSize.EMOJI.get(team.team_size, '')} Size: {team.team_size} "
        f"(₹{price_for(team.team_size) // 100})",
        f"💳 Payment: {team.status_emoji} {team.payment_status}",
    ]
    if summary["paymentAmount"] is not None:
        lines.append(f"💰 Paid: ₹{summary['paymentAmount']:g}")
    lines.append(f"📎 Documents: {'uploaded' if summary['documentsUploaded'] else 'missing'}")
    if team.rejection_reason:
        lines.append(f"⚠️ Reason: _{team.rejection_reason}_")
    if team.ticket_number:
        lines.append(f"🎫 Ticket: `{team.ticket_number}`")
    if team.checked_in:
        lines.append("📍 Checked in at the venue")
    return "\n".join(lines)


# ── Registration ──────────────────────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "register"))
async def cq_start_registration(
    callback: CallbackQuery,
    session: AsyncSession,
    state: FSMContext,
) -> None:
    user = await get_user(session, callback.from_user.id)
    if user is None:
        await callback.answer("Please send /start first.", show_alert=True)
        return
    if await get_team_for_user(session, user.id):
        await callback.answer("You are already part of a team.", show_alert=True)
        return

    await state.set_state(RegistrationStates.enter_team_name)
    await callback.message.edit_text(
        "📝 *Team registration*\n\n"
        "Enter your *team name* (3–50 characters):",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=cancel_kb(),
    )
    await callback.answer()


@router.message(RegistrationStates.enter_team_name)
async def msg_team_name(message: Message, state: FSMContext) -> None:
    name = " ".join(message.text.split()) if message.text else ""
    if len(name) < 3:
        await message.answer(
            "⚠️ The team name is too short. Enter at least 3 characters:",
            reply_markup=cancel_kb(),
        )
        return

    await state.update_data(team_name=name)
    await state.set_state(RegistrationStates.choose_tier)
    await message.answer(
        f"👥 *{name}*\n\nChoose your team size:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=tier_kb(),
    )


@router.callback_query(TierCb.filter(), RegistrationStates.choose_tier)
async def cq_tier_selected(
    callback: CallbackQuery,
    callback_data: TierCb,
    state: FSMContext,
) -> None:
    await state.update_data(team_size=callback_data.size)
    await state.set_state(RegistrationStates.confirm)
    data = await state.get_data()
    await callback.message.edit_text(
        f"📋 *Please confirm*\n\n"
        f"👥 Team: *{data['team_name']}*\n"
        f"{TeamSize.EMOJI.get(callback_data.size, '')} Size: {callback_data.size}\n"
        f"💰 Fee: ₹{price_for(callback_data.size) // 100}",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=confirm_registration_kb(),
    )
    await callback.answer()


@router.callback_query(F.data == "reg_edit", RegistrationStates.confirm)
async def cq_registration_edit(callback: CallbackQuery, state: FSMContext) -> None:
    await state.set_state(RegistrationStates.enter_team_name)
    await callback.message.edit_text(
        "✏️ Enter your *team name* again:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=cancel_kb(),
    )
    await callback.answer()


@router.callback_query(F.data == "reg_confirm", RegistrationStates.confirm)
async def cq_registration_confirm(
    callback: CallbackQuery,
    session: AsyncSession,
    state: FSMContext,
    notifier: Notifier,
) -> None:
    data = await state.get_data()
    await state.clear()
    user = await get_user(session, callback.from_user.id)
    if user is None:
        await callback.answer("Please send /start first.", show_alert=True)
        return

    try:
        team = await register_team(
            session,
            team_name=data["team_name"],
            leader_id=user.id,
            size_tier=data["team_size"],
            notifier=notifier,
        )
    except AdmissionError as e:
        await callback.message.edit_text(f"❌ {e.message}", reply_markup=back_to_main())
        await callback.answer()
        return

    await callback.message.edit_text(
        f"✅ *Team registered!*\n\n{_team_card(team)}\n\n"
        f"Next: pay ₹{price_for(team.team_size) // 100} and submit the proof.",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=participant_main_menu(team),
    )
    await callback.answer()


# ── My team ───────────────────────────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "my_team"))
async def cq_my_team(callback: CallbackQuery, session: AsyncSession) -> None:
    team = await _current_team(session, callback.from_user.id)
    if team is None:
        await callback.answer("You have not registered a team yet.", show_alert=True)
        return
    await callback.message.edit_text(
        _team_card(team),
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=participant_main_menu(team),
    )
    await callback.answer()


# ── Payment: manual transaction ID ────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "pay"))
async def cq_pay_manual(callback: CallbackQuery, session: AsyncSession, state: FSMContext) -> None:
    team = await _current_team(session, callback.from_user.id)
    if team is None:
        await callback.answer("You have not registered a team yet.", show_alert=True)
        return

    await state.update_data(team_id=team.id)
    await state.set_state(PaymentStates.enter_transaction)
    await callback.message.edit_text(
        f"🧾 *Transaction details*\n\n"
        f"Send the transaction ID (UTR / UPI reference) and the amount in rupees, "
        f"separated by a space.\n\nExample: `UTR123456 {price_for(team.team_size) // 100}`",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=cancel_kb(),
    )
    await callback.answer()


@router.message(PaymentStates.enter_transaction)
async def msg_transaction(message: Message, session: AsyncSession, state: FSMContext) -> None:
    parts = message.text.split() if message.text else []
    try:
        transaction_id, amount = parts[0], float(parts[1].replace(",", "."))
    except (IndexError, ValueError):
        await message.answer(
            "⚠️ Send the transaction ID and the amount, e.g. `UTR123456 500`",
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=cancel_kb(),
        )
        return

    data = await state.get_data()
    try:
        team = await record_transaction(session, data["team_id"], transaction_id, amount)
    except AdmissionError as e:
        await message.answer(f"❌ {e.message}", reply_markup=cancel_kb())
        return

    await state.set_state(PaymentStates.upload_payment_shot)
    await message.answer(
        f"✅ Transaction `{team.transaction_id}` saved.\n\n"
        f"📎 Now send a *screenshot of the payment* (photo or file):",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=cancel_kb(),
    )


# ── Payment: gateway ──────────────────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "pay_online"))
async def cq_pay_online(
    callback: CallbackQuery,
    session: AsyncSession,
    state: FSMContext,
    gateway: Optional[PaymentGateway] = None,
) -> None:
    team = await _current_team(session, callback.from_user.id)
    if team is None:
        await callback.answer("You have not registered a team yet.", show_alert=True)
        return

    try:
        order = await create_order(session, team.id, gateway)
    except AdmissionError as e:
        await callback.answer(e.message, show_alert=True)
        return

    await state.update_data(team_id=team.id, order_id=order.order_id)
    await state.set_state(PaymentStates.enter_gateway_proof)
    await callback.message.edit_text(
        f"💳 *Online payment*\n\n"
        f"Order: `{order.order_id}`\n"
        f"Amount: ₹{order.amount / 100:g} {order.currency}\n\n"
        f"Complete the checkout, then send the *payment id* and *signature* "
        f"shown on the receipt, separated by a space.",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=cancel_kb(),
    )
    await callback.answer()


@router.message(PaymentStates.enter_gateway_proof)
async def msg_gateway_proof(
    message: Message,
    session: AsyncSession,
    state: FSMContext,
    gateway: Optional[PaymentGateway] = None,
) -> None:
    parts = message.text.split() if message.text else []
    if len(parts) != 2:
        await message.answer(
            "⚠️ Send the payment id and the signature separated by a space.",
            reply_markup=cancel_kb(),
        )
        return

    data = await state.get_data()
    try:
        await submit_proof(session, data["team_id"], data["order_id"], parts[0], parts[1], gateway)
    except AdmissionError as e:
        await message.answer(f"❌ {e.message}", reply_markup=cancel_kb())
        return

    await state.set_state(PaymentStates.upload_payment_shot)
    await message.answer(
        "✅ Payment confirmed.\n\n📎 Now send a *screenshot of the payment* (photo or file):",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=cancel_kb(),
    )


# ── Documents ─────────────────────────────────────────────────────────────────

def _file_id(message: Message) -> Optional[str]:
    if message.photo:
        return message.photo[-1].file_id
    if message.document:
        return message.document.file_id
    return None


@router.callback_query(MainMenuCb.filter(F.action == "documents"))
async def cq_documents(callback: CallbackQuery, session: AsyncSession, state: FSMContext) -> None:
    team = await _current_team(session, callback.from_user.id)
    if team is None:
        await callback.answer("You have not registered a team yet.", show_alert=True)
        return

    await state.update_data(team_id=team.id)
    await state.set_state(PaymentStates.upload_payment_shot)
    await callback.message.edit_text(
        "📎 Send a *screenshot of the payment* (photo or file):",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=cancel_kb(),
    )
    await callback.answer()


@router.message(PaymentStates.upload_payment_shot)
async def msg_payment_shot(message: Message, state: FSMContext) -> None:
    file_id = _file_id(message)
    if file_id is None:
        await message.answer("⚠️ Please send an image or a file.", reply_markup=cancel_kb())
        return

    await state.update_data(payment_file_id=file_id)
    await state.set_state(PaymentStates.upload_id_card)
    await message.answer(
        "🪪 Now send a photo of your *ID card* (college or government ID):",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=cancel_kb(),
    )


@router.message(PaymentStates.upload_id_card)
async def msg_id_card(
    message: Message,
    bot: Bot,
    session: AsyncSession,
    state: FSMContext,
    blob_store: BlobStore,
) -> None:
    file_id = _file_id(message)
    if file_id is None:
        await message.answer("⚠️ Please send an image or a file.", reply_markup=cancel_kb())
        return

    data = await state.get_data()
    payment_blob = (await bot.download(data["payment_file_id"])).read()
    id_blob      = (await bot.download(file_id)).read()

    try:
        docs = await upload_documents(
            session, data["team_id"], payment_blob, id_blob, blob_store, release_previous=False
        )
    except AdmissionError as e:
        await state.clear()
        await message.answer(f"❌ {e.message}", reply_markup=back_to_main())
        return

    # Old blobs go only after the new handles are durable
    try:
        await session.commit()
    except Exception:
        await release_blobs(blob_store, docs.new_handles)
        raise
    await release_blobs(blob_store, docs.replaced_handles)

    await state.clear()
    await message.answer(
        "✅ *Documents received.*\n\n"
        "An organiser will verify your payment shortly — your ticket will arrive in this chat.",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=back_to_main(),
    )


# ── Ticket ────────────────────────────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "ticket"))
async def cq_ticket(callback: CallbackQuery, session: AsyncSession) -> None:
    team = await _current_team(session, callback.from_user.id)
    if team is None or not team.ticket_number:
        await callback.answer("Your ticket is not ready yet.", show_alert=True)
        return

    await callback.message.answer_photo(
        photo=BufferedInputFile(
            generate_qr_buffered(team.ticket_qr_payload).read(),
            filename=f"{team.ticket_number}.png",
        ),
        caption=(
            f"🎫 *{team.ticket_number}*\n"
            f"👥 {team.team_name} · `{team.registration_number}`\n\n"
            f"📍 {settings.EVENT_VENUE}\n"
            f"📅 {settings.EVENT_DATE} · reporting {settings.REPORTING_TIME}"
        ),
        parse_mode=ParseMode.MARKDOWN,
    )
    await callback.message.answer_document(
        document=BufferedInputFile(
            team.ticket_document.encode("utf-8"),
            filename=f"{team.ticket_number}.html",
        ),
        caption="Printable ticket — open in any browser.",
    )
    await callback.answer()
    logger.info("Ticket %s re-sent to team %s", team.ticket_number, team.registration_number)
