"""
Admin dashboard and the list of teams currently at the venue.
"""
import logging

from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.types import CallbackQuery
from sqlalchemy.ext.asyncio import AsyncSession

from hackgate.keyboards import AdminPanelCb, back_to_main
from hackgate.services import checkin_stats, dashboard_stats, format_dashboard_text, list_checked_in

logger = logging.getLogger(__name__)
router = Router(name="admin_stats")


@router.callback_query(AdminPanelCb.filter(F.action == "stats"))
async def cq_dashboard(callback: CallbackQuery, session: AsyncSession) -> None:
    stats    = await dashboard_stats(session)
    checkins = await checkin_stats(session)

    await callback.message.edit_text(
        format_dashboard_text(stats, checkins),
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=back_to_main(),
    )
    await callback.answer()
    logger.info("Dashboard viewed by admin %d", callback.from_user.id)


@router.callback_query(AdminPanelCb.filter(F.action == "checked_in"))
async def cq_checked_in(callback: CallbackQuery, session: AsyncSession) -> None:
    teams = await list_checked_in(session)
    if not teams:
        await callback.answer("Nobody has checked in yet.", show_alert=True)
        return

    lines = [f"📍 *At the venue* — {len(teams)}", ""]
    for t in teams:
        lines.append(f"`{t.check_in_time:%H:%M}` {t.registration_number} · {t.team_name} ({t.team_size})")

    # Telegram caps a message at 4096 characters
    text = "\n".join(lines)
    if len(text) > 4000:
        text = text[:4000].rsplit("\n", 1)[0] + "\n…"
    await callback.message.edit_text(text, parse_mode=ParseMode.MARKDOWN, reply_markup=back_to_main())
    await callback.answer()
