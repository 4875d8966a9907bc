"""
Team notification service.

Lifecycle events (registered / verified / rejected) are pushed to the team
leader's Telegram chat. Delivery is fire-and-forget: `dispatch_notification`
schedules a background task and returns immediately, so a slow or failing
notifier can never block or undo a state transition. Failures are logged,
never retried here.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, Set

from aiogram import Bot
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest, TelegramForbiddenError
from aiogram.types import BufferedInputFile

from hackgate.config import settings
from hackgate.models.models import Team

logger = logging.getLogger(__name__)


class NotificationKind:
    REGISTERED = "registered"
    VERIFIED   = "verified"
    REJECTED   = "rejected"


@dataclass(frozen=True)
class TeamNotification:
    kind:                str
    chat_id:             int
    team_name:           str
    registration_number: str
    team_size:           str
    leader_name:         str
    amount_minor:        Optional[int]      = None
    ticket_number:       Optional[str]      = None
    ticket_document:     Optional[str]      = None
    verified_at:         Optional[datetime] = None
    reason:              Optional[str]      = None


class Notifier(Protocol):
    async def notify(self, kind: str, payload: TeamNotification) -> None: ...


def build_notification(kind: str, team: Team) -> TeamNotification:
    """Snapshot the fields a notification needs; `team.leader` must be loaded."""
    return TeamNotification(
        kind=kind,
        chat_id=team.leader.telegram_id,
        team_name=team.team_name,
        registration_number=team.registration_number,
        team_size=team.team_size,
        leader_name=team.leader.display_name,
        amount_minor=team.payment_amount,
        ticket_number=team.ticket_number,
        ticket_document=team.ticket_document,
        verified_at=team.verified_at,
        reason=team.rejection_reason,
    )


# ── Fire-and-forget dispatch ──────────────────────────────────────────────────

# Strong references so pending tasks are not garbage-collected mid-flight
_pending: Set[asyncio.Task] = set()


async def _deliver(notifier: Notifier, payload: TeamNotification) -> None:
    try:
        await notifier.notify(payload.kind, payload)
    except Exception:
        logger.exception(
            "Failed to deliver %s notification for %s",
            payload.kind, payload.registration_number,
        )


def dispatch_notification(
    notifier: Optional[Notifier],
    payload: TeamNotification,
) -> Optional[asyncio.Task]:
    if notifier is None:
        return None
    task = asyncio.create_task(_deliver(notifier, payload))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


async def drain_notifications() -> None:
    """Wait for every in-flight notification (used on shutdown and in tests)."""
    while _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)


# ── Telegram delivery ─────────────────────────────────────────────────────────

class TelegramNotifier:
    """Delivers notifications as Telegram messages from the bot."""

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def notify(self, kind: str, payload: TeamNotification) -> None:
        text = format_notification(payload)
        try:
            await self._bot.send_message(
                chat_id=payload.chat_id,
                text=text,
                parse_mode=ParseMode.MARKDOWN,
            )
            if kind == NotificationKind.VERIFIED and payload.ticket_document:
                await self._bot.send_document(
                    chat_id=payload.chat_id,
                    document=BufferedInputFile(
                        payload.ticket_document.encode("utf-8"),
                        filename=f"{payload.ticket_number}.html",
                    ),
                    caption="🎫 Your ticket — open in any browser, print or show it at the venue.",
                )
        except (TelegramForbiddenError, TelegramBadRequest) as e:
            logger.warning(
                "Could not notify team leader chat_id=%d: %s", payload.chat_id, e
            )


def format_notification(payload: TeamNotification) -> str:
    amount = (
        f"₹{payload.amount_minor / 100:g}" if payload.amount_minor is not None else "—"
    )
    if payload.kind == NotificationKind.REGISTERED:
        return (
            f"🎉 *Registration successful!*\n\n"
            f"👥 Team: *{payload.team_name}*\n"
            f"🔖 Registration No.: `{payload.registration_number}`\n"
            f"📐 Size: {payload.team_size}\n\n"
            f"Next steps:\n"
            f"1️⃣ Pay the registration fee\n"
            f"2️⃣ Send the transaction ID\n"
            f"3️⃣ Upload the payment screenshot and your ID card"
        )
    if payload.kind == NotificationKind.VERIFIED:
        return (
            f"✅ *Payment verified — you're in!*\n\n"
            f"🏆 {settings.EVENT_NAME}\n"
            f"👥 Team: *{payload.team_name}*\n"
            f"🔖 Registration No.: `{payload.registration_number}`\n"
            f"🎫 Ticket: `{payload.ticket_number}`\n"
            f"💳 Amount: `{amount}`\n\n"
            f"📍 {settings.EVENT_VENUE} · {settings.EVENT_DATE}\n"
            f"⏰ Reporting time: {settings.REPORTING_TIME}"
        )
    return (
        f"❌ *Registration verification issue*\n\n"
        f"👥 Team: *{payload.team_name}*\n"
        f"🔖 Registration No.: `{payload.registration_number}`\n\n"
        f"Reason: _{payload.reason or settings.DEFAULT_REJECTION_REASON}_\n\n"
        f"Please re-submit your payment details and documents.\n"
        f"Questions? {settings.SUPPORT_CONTACT}"
    )
