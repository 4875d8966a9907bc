"""
Check-in ledger — venue admission.

`check_in` is one conditional UPDATE:

    UPDATE teams SET checked_in = true, check_in_count = check_in_count + 1, ...
     WHERE registration_number = :rn
       AND payment_status = 'verified'
       AND checked_in = false

Only the caller whose UPDATE matched a row appends the history entry (same
transaction). Two kiosks scanning the same QR at once therefore produce one
counted check-in; the other scan gets an "already checked in" result.

`check_in_count` is cumulative: undo clears presence but keeps the count
and the history, which is a permanent audit trail.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from hackgate.errors import (
    NotCheckedInError,
    NotVerifiedError,
    TeamNotFoundError,
    ValidationFailure,
)
from hackgate.models.models import (
    CheckInEntry,
    CheckInMethod,
    PaymentStatus,
    Team,
    utcnow,
)
from hackgate.services.registration_service import (
    get_team,
    get_team_by_registration_number,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckInResult:
    success:             bool
    already_checked_in:  bool
    team_name:           str
    registration_number: str
    team_size:           str
    leader_name:         str
    check_in_time:       Optional[datetime]
    check_in_count:      int

    @property
    def message(self) -> str:
        return "Check-in successful" if self.success else "Team already checked in"


@dataclass(frozen=True)
class CheckInEligibility:
    can_check_in:        bool
    team_name:           str
    registration_number: str
    payment_status:      str
    checked_in:          bool
    check_in_time:       Optional[datetime]

    @property
    def message(self) -> str:
        if self.can_check_in:
            return "Team can be checked in"
        if self.checked_in:
            return "Team already checked in"
        return "Payment not verified"


def _result(team: Team, success: bool) -> CheckInResult:
    return CheckInResult(
        success=success,
        already_checked_in=not success,
        team_name=team.team_name,
        registration_number=team.registration_number,
        team_size=team.team_size,
        leader_name=team.leader.display_name,
        check_in_time=team.check_in_time,
        check_in_count=team.check_in_count,
    )


async def check_in(
    session: AsyncSession,
    registration_number: str,
    admin_id: int,              # admin telegram_id
    method: str = CheckInMethod.QR_SCAN,
) -> CheckInResult:
    if method not in CheckInMethod.ALL:
        raise ValidationFailure(f"Unknown check-in method {method!r}")
    rn = (registration_number or "").strip().upper()
    if not rn:
        raise ValidationFailure("Registration number is required")

    now = utcnow()
    result = await session.execute(
        update(Team)
        .where(
            Team.registration_number == rn,
            Team.payment_status == PaymentStatus.VERIFIED,
            Team.checked_in.is_(False),
        )
        .values(
            checked_in=True,
            check_in_time=now,
            checked_in_by=admin_id,
            check_in_count=Team.check_in_count + 1,
            version=Team.version + 1,
        )
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 1:
        team = await get_team_by_registration_number(session, rn)
        session.add(CheckInEntry(
            team_id=team.id,
            timestamp=now,
            checked_in_by=admin_id,
            method=method,
        ))
        await session.flush()
        logger.info(
            "Check-in: team %s (%s) by %d via %s, count=%d",
            rn, team.team_name, admin_id, method, team.check_in_count,
        )
        return _result(team, success=True)

    # Nothing matched: classify why, without touching the row
    team = await get_team_by_registration_number(session, rn)
    if team is None:
        raise TeamNotFoundError("Team not found with this registration number")
    if team.payment_status != PaymentStatus.VERIFIED:
        raise NotVerifiedError()
    logger.info("Duplicate check-in scan for team %s ignored", rn)
    return _result(team, success=False)


async def undo_check_in(session: AsyncSession, team_id: int) -> Team:
    result = await session.execute(
        update(Team)
        .where(Team.id == team_id, Team.checked_in.is_(True))
        .values(
            checked_in=False,
            check_in_time=None,
            checked_in_by=None,
            version=Team.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    team = await get_team(session, team_id)
    if team is None:
        raise TeamNotFoundError()
    if result.rowcount != 1:
        raise NotCheckedInError()
    logger.info("Check-in undone for team %s", team.registration_number)
    return team


async def can_check_in(session: AsyncSession, registration_number: str) -> CheckInEligibility:
    """Read-only: safe to poll from a kiosk as often as needed."""
    team = await get_team_by_registration_number(session, registration_number or "")
    if team is None:
        raise TeamNotFoundError()
    return CheckInEligibility(
        can_check_in=team.payment_status == PaymentStatus.VERIFIED and not team.checked_in,
        team_name=team.team_name,
        registration_number=team.registration_number,
        payment_status=team.payment_status,
        checked_in=team.checked_in,
        check_in_time=team.check_in_time,
    )
