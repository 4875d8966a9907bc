"""
Keyboards for the team registration and payment flow.
"""
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from hackgate.keyboards.callbacks import MainMenuCb, TierCb
from hackgate.models.models import TeamSize


def tier_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for size in TeamSize.ALL:
        builder.row(
            InlineKeyboardButton(
                text=f"{TeamSize.EMOJI[size]} {size} — ₹{TeamSize.PRICES[size] // 100}",
                callback_data=TierCb(size=size).pack(),
            )
        )
    builder.row(InlineKeyboardButton(text="❌ Cancel", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()


def cancel_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="❌ Cancel", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()


def confirm_registration_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="✅ Confirm", callback_data="reg_confirm"),
        InlineKeyboardButton(text="✏️ Edit",    callback_data="reg_edit"),
    )
    builder.row(InlineKeyboardButton(text="❌ Cancel", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()
