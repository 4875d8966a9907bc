"""
Admin dashboard statistics.

Two reports:
  - DashboardStats : registration / payment / document / check-in funnel
  - CheckInStats   : venue progress plus the most recent check-ins
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hackgate.models.models import PaymentStatus, Team, User


def _rate(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part / whole * 100, 1)


@dataclass
class DashboardStats:
    total_teams:        int = 0
    verified_payments:  int = 0
    pending_payments:   int = 0
    rejected_payments:  int = 0
    total_users:        int = 0
    payments_completed: int = 0
    documents_uploaded: int = 0
    checked_in:         int = 0

    @property
    def payment_verification_rate(self) -> float:
        return _rate(self.verified_payments, self.total_teams)

    @property
    def checkin_rate(self) -> float:
        return _rate(self.checked_in, self.verified_payments)


@dataclass
class RecentCheckIn:
    team_name:           str
    registration_number: str
    leader_name:         str
    check_in_time:       Optional[datetime]


@dataclass
class CheckInStats:
    total_verified: int = 0
    checked_in:     int = 0
    recent:         List[RecentCheckIn] = field(default_factory=list)

    @property
    def pending(self) -> int:
        return self.total_verified - self.checked_in

    @property
    def checkin_rate(self) -> float:
        return _rate(self.checked_in, self.total_verified)


async def _count(session: AsyncSession, *conditions) -> int:
    stmt = select(func.count()).select_from(Team)
    if conditions:
        stmt = stmt.where(*conditions)
    result = await session.execute(stmt)
    return result.scalar_one()


async def dashboard_stats(session: AsyncSession) -> DashboardStats:
    users = await session.execute(select(func.count()).select_from(User))
    return DashboardStats(
        total_teams=await _count(session),
        verified_payments=await _count(session, Team.payment_status == PaymentStatus.VERIFIED),
        pending_payments=await _count(session, Team.payment_status == PaymentStatus.PENDING),
        rejected_payments=await _count(session, Team.payment_status == PaymentStatus.REJECTED),
        total_users=users.scalar_one(),
        payments_completed=await _count(session, Team.proof_kind.is_not(None)),
        documents_uploaded=await _count(
            session,
            Team.payment_screenshot_handle.is_not(None),
            Team.id_card_handle.is_not(None),
        ),
        checked_in=await _count(session, Team.checked_in.is_(True)),
    )


async def list_checked_in(session: AsyncSession, limit: Optional[int] = None) -> List[Team]:
    """Teams currently checked in, most recent first."""
    q = (
        select(Team)
        .where(Team.checked_in.is_(True))
        .options(selectinload(Team.leader))
        .order_by(Team.check_in_time.desc())
    )
    if limit:
        q = q.limit(limit)
    result = await session.execute(q)
    return list(result.scalars().all())


async def checkin_stats(session: AsyncSession, recent_limit: int = 10) -> CheckInStats:
    recent = await list_checked_in(session, limit=recent_limit)
    return CheckInStats(
        total_verified=await _count(session, Team.payment_status == PaymentStatus.VERIFIED),
        checked_in=await _count(
            session,
            Team.payment_status == PaymentStatus.VERIFIED,
            Team.checked_in.is_(True),
        ),
        recent=[
            RecentCheckIn(
                team_name=t.team_name,
                registration_number=t.registration_number,
                leader_name=t.leader.display_name,
                check_in_time=t.check_in_time,
            )
            for t in recent
        ],
    )


def format_dashboard_text(stats: DashboardStats, checkins: CheckInStats) -> str:
    """Render both reports as a Markdown-formatted Telegram message."""
    lines = [
        "📊 *Dashboard*",
        "",
        "━━━ 👥 Registrations ━━━",
        f"Teams: `{stats.total_teams}` · Users: `{stats.total_users}`",
        f"Payments submitted: `{stats.payments_completed}`",
        f"Documents uploaded: `{stats.documents_uploaded}`",
        "",
        "━━━ 💳 Verification ━━━",
        f"✅ Verified: `{stats.verified_payments}`",
        f"⏳ Pending: `{stats.pending_payments}`",
        f"❌ Rejected: `{stats.rejected_payments}`",
        f"Rate: `{stats.payment_verification_rate}%` {_progress_bar(stats.payment_verification_rate)}",
        "",
        "━━━ 📍 Venue ━━━",
        f"Checked in: `{checkins.checked_in}/{checkins.total_verified}` "
        f"— `{checkins.checkin_rate}%` {_progress_bar(checkins.checkin_rate)}",
        f"Still expected: `{checkins.pending}`",
    ]
    if checkins.recent:
        lines += ["", "━━━ 🕒 Recent check-ins ━━━"]
        for r in checkins.recent:
            when = r.check_in_time.strftime("%H:%M") if r.check_in_time else "—"
            lines.append(f"`{when}` {r.registration_number} · {r.team_name}")
    return "\n".join(lines)


def _progress_bar(pct: float, length: int = 10) -> str:
    """ASCII progress bar: ████░░░░░░"""
    filled = round(pct / 100 * length)
    return "█" * filled + "░" * (length - filled)
