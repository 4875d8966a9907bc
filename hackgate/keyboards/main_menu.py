"""
Main menu keyboards — context-aware (team leader vs. admin, lifecycle stage).
"""
from typing import Optional

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from hackgate.config import settings
from hackgate.keyboards.callbacks import AdminPanelCb, MainMenuCb
from hackgate.models.models import PaymentStatus, Team


def participant_main_menu(team: Optional[Team] = None) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    if team is None:
        builder.row(
            InlineKeyboardButton(text="📝 Register a team", callback_data=MainMenuCb(action="register").pack()),
        )
        return builder.as_markup()

    builder.row(
        InlineKeyboardButton(text="👥 My team", callback_data=MainMenuCb(action="my_team").pack()),
    )
    if team.payment_status != PaymentStatus.VERIFIED:
        if settings.gateway_enabled:
            builder.row(
                InlineKeyboardButton(text="💳 Pay online", callback_data=MainMenuCb(action="pay_online").pack()),
            )
        builder.row(
            InlineKeyboardButton(text="🧾 Submit transaction ID", callback_data=MainMenuCb(action="pay").pack()),
        )
        if team.payment_proof is not None:
            builder.row(
                InlineKeyboardButton(text="📎 Upload documents", callback_data=MainMenuCb(action="documents").pack()),
            )
    if team.ticket_number:
        builder.row(
            InlineKeyboardButton(text="🎟 My ticket", callback_data=MainMenuCb(action="ticket").pack()),
        )
    return builder.as_markup()


def admin_main_menu() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="👥 Teams",          callback_data=AdminPanelCb(action="teams").pack()),
    )
    builder.row(
        InlineKeyboardButton(text="📷 Check-in desk",  callback_data=AdminPanelCb(action="checkin").pack()),
    )
    builder.row(
        InlineKeyboardButton(text="📍 Checked in",     callback_data=AdminPanelCb(action="checked_in").pack()),
    )
    builder.row(
        InlineKeyboardButton(text="📊 Dashboard",      callback_data=AdminPanelCb(action="stats").pack()),
    )
    return builder.as_markup()


def back_to_main() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="🔙 Main menu", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()
