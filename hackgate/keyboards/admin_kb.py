"""
Keyboards for the admin panel: team review, verification and check-in.
"""
from typing import List

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from hackgate.keyboards.callbacks import AdminPanelCb, CheckInCb, TeamCb, TeamListCb
from hackgate.models.models import PaymentStatus, Team

PAGE_SIZE = 10

_FILTER_LABELS = {
    "":                     "All",
    PaymentStatus.PENDING:  "⏳ Pending",
    PaymentStatus.VERIFIED: "✅ Verified",
    PaymentStatus.REJECTED: "❌ Rejected",
}


def team_list_kb(teams: List[Team], status: str = "", page: int = 0) -> InlineKeyboardMarkup:
    """One page of teams plus filter and paging controls."""
    builder = InlineKeyboardBuilder()
    builder.row(*[
        InlineKeyboardButton(
            text=f"• {label}" if key == status else label,
            callback_data=TeamListCb(status=key).pack(),
        )
        for key, label in _FILTER_LABELS.items()
    ])

    chunk = teams[page * PAGE_SIZE:(page + 1) * PAGE_SIZE]
    for t in chunk:
        builder.row(
            InlineKeyboardButton(
                text=f"{t.status_emoji} {t.registration_number} · {t.team_name}",
                callback_data=TeamCb(action="view", tid=t.id).pack(),
            )
        )

    nav = []
    if page > 0:
        nav.append(InlineKeyboardButton(text="◀️", callback_data=TeamListCb(status=status, page=page - 1).pack()))
    if (page + 1) * PAGE_SIZE < len(teams):
        nav.append(InlineKeyboardButton(text="▶️", callback_data=TeamListCb(status=status, page=page + 1).pack()))
    if nav:
        builder.row(*nav)

    builder.row(InlineKeyboardButton(text="🔙 Back", callback_data=AdminPanelCb(action="back").pack()))
    return builder.as_markup()


def team_detail_admin_kb(team: Team) -> InlineKeyboardMarkup:
    """Actions available for the team's current state."""
    builder = InlineKeyboardBuilder()
    if team.payment_status != PaymentStatus.VERIFIED:
        builder.row(
            InlineKeyboardButton(text="✅ Verify", callback_data=TeamCb(action="verify", tid=team.id).pack()),
        )
    if team.payment_status != PaymentStatus.REJECTED:
        builder.row(
            InlineKeyboardButton(text="❌ Reject", callback_data=TeamCb(action="reject", tid=team.id).pack()),
        )
    if team.payment_status != PaymentStatus.PENDING and not team.checked_in:
        builder.row(
            InlineKeyboardButton(text="⏳ Back to pending", callback_data=TeamCb(action="pending", tid=team.id).pack()),
        )
    if team.checked_in:
        builder.row(
            InlineKeyboardButton(text="↩️ Undo check-in", callback_data=TeamCb(action="undo", tid=team.id).pack()),
        )
    if team.check_in_history:
        builder.row(
            InlineKeyboardButton(text="🕒 Check-in history", callback_data=TeamCb(action="history", tid=team.id).pack()),
        )
    builder.row(InlineKeyboardButton(text="🔙 Teams", callback_data=TeamListCb().pack()))
    return builder.as_markup()


def checkin_cancel_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="❌ Close desk", callback_data=CheckInCb(action="cancel").pack()))
    return builder.as_markup()


def reject_reason_kb(team_id: int) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="Use default reason", callback_data=TeamCb(action="reject_default", tid=team_id).pack()),
    )
    builder.row(InlineKeyboardButton(text="❌ Cancel", callback_data=TeamCb(action="view", tid=team_id).pack()))
    return builder.as_markup()
