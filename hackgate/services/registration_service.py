"""
Registration ledger — team creation, lookup and guarded updates.

Uniqueness (team name, registration number, one team per user) is enforced
by unique constraints. The SELECT checks in `_ensure_available` are only a
fast path for a friendly error; the INSERT is what decides a race.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hackgate.config import settings
from hackgate.errors import (
    AllocationError,
    AlreadyRegisteredError,
    ConcurrentUpdateError,
    DuplicateNameError,
    InvalidTierError,
    TeamNotFoundError,
    TeamSizeError,
)
from hackgate.models.models import (
    PaymentStatus,
    Team,
    TeamMembership,
    TeamSize,
    TeamStatus,
    User,
)
from hackgate.services.identity_service import (
    next_registration_number,
    resync_registration_counter,
)
from hackgate.services.notification_service import (
    NotificationKind,
    Notifier,
    build_notification,
    dispatch_notification,
)
from hackgate.validators import TeamRegistrationData, validation_failure

logger = logging.getLogger(__name__)


# ── User ──────────────────────────────────────────────────────────────────────

async def upsert_user(
    session: AsyncSession,
    telegram_id: int,
    first_name: str,
    last_name: Optional[str],
    username: Optional[str],
) -> User:
    """Create or update a Telegram user record."""
    result = await session.execute(
        select(User).where(User.telegram_id == telegram_id)
    )
    user = result.scalar_one_or_none()
    if user is None:
        user = User(
            telegram_id=telegram_id,
            first_name=first_name,
            last_name=last_name,
            username=username,
        )
        session.add(user)
        await session.flush()
    else:
        user.first_name = first_name
        user.last_name  = last_name
        user.username   = username
    return user


async def get_user(session: AsyncSession, telegram_id: int) -> Optional[User]:
    result = await session.execute(
        select(User).where(User.telegram_id == telegram_id)
    )
    return result.scalar_one_or_none()


# ── Queries ───────────────────────────────────────────────────────────────────

def _team_query():
    # populate_existing: guarded updates run as bulk UPDATEs, so any Team
    # already in the identity map must be overwritten on the next read.
    return (
        select(Team)
        .options(
            selectinload(Team.leader),
            selectinload(Team.memberships).selectinload(TeamMembership.user),
            selectinload(Team.check_in_history),
        )
        .execution_options(populate_existing=True)
    )


async def get_team(session: AsyncSession, team_id: int) -> Optional[Team]:
    result = await session.execute(_team_query().where(Team.id == team_id))
    return result.scalar_one_or_none()


async def require_team(session: AsyncSession, team_id: int) -> Team:
    team = await get_team(session, team_id)
    if team is None:
        raise TeamNotFoundError()
    return team


async def get_team_by_registration_number(
    session: AsyncSession,
    registration_number: str,
) -> Optional[Team]:
    result = await session.execute(
        _team_query().where(Team.registration_number == registration_number.strip().upper())
    )
    return result.scalar_one_or_none()


async def get_team_for_user(session: AsyncSession, user_id: int) -> Optional[Team]:
    """The team a user leads or belongs to (users.id, not telegram_id)."""
    result = await session.execute(
        _team_query()
        .join(TeamMembership, TeamMembership.team_id == Team.id)
        .where(TeamMembership.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def list_teams(
    session: AsyncSession,
    payment_status: Optional[str] = None,
) -> List[Team]:
    q = _team_query().order_by(Team.created_at.desc(), Team.id.desc())
    if payment_status:
        q = q.where(Team.payment_status == payment_status)
    result = await session.execute(q)
    return list(result.scalars().all())


# ── Registration ──────────────────────────────────────────────────────────────

async def _ensure_available(
    session: AsyncSession,
    team_name: str,
    user_ids: Sequence[int],
) -> None:
    taken = await session.execute(
        select(func.count()).select_from(Team).where(Team.team_name == team_name)
    )
    if taken.scalar_one():
        raise DuplicateNameError()

    member = await session.execute(
        select(func.count())
        .select_from(TeamMembership)
        .where(TeamMembership.user_id.in_(list(user_ids)))
    )
    if member.scalar_one():
        raise AlreadyRegisteredError()


async def register_team(
    session: AsyncSession,
    team_name: str,
    leader_id: int,             # users.id
    size_tier: str,
    member_ids: Sequence[int] = (),
    notifier: Optional[Notifier] = None,
) -> Team:
    """
    Create a team with a fresh registration number.

    Must be the first write of its unit of work: on a unique violation the
    session is rolled back before the cause is classified. A duplicate name
    or an already-registered user surfaces as a Conflict; a registration
    number collision resyncs the counter with the stored numbers and is
    retried up to ALLOCATION_MAX_RETRIES times before AllocationError.
    """
    if size_tier not in TeamSize.ALL:
        raise InvalidTierError()
    try:
        team_name = TeamRegistrationData(team_name=team_name, team_size=size_tier).team_name
    except ValidationError as e:
        raise validation_failure(e) from e

    members = [m for m in dict.fromkeys(member_ids) if m != leader_id]
    if len(members) > TeamSize.MAX_MEMBERS[size_tier]:
        raise TeamSizeError(
            f"A {size_tier} team can have at most "
            f"{TeamSize.MAX_MEMBERS[size_tier]} member(s) besides the leader"
        )
    user_ids = [leader_id, *members]

    await _ensure_available(session, team_name, user_ids)

    for attempt in range(settings.ALLOCATION_MAX_RETRIES + 1):
        try:
            registration_number = await next_registration_number(session)
            team = Team(
                team_name=team_name,
                registration_number=registration_number,
                leader_id=leader_id,
                team_size=size_tier,
                payment_status=PaymentStatus.PENDING,
                status=TeamStatus.PENDING,
            )
            team.memberships = [TeamMembership(user_id=leader_id, is_leader=True)] + [
                TeamMembership(user_id=uid, is_leader=False) for uid in members
            ]
            session.add(team)
            await session.flush()
        except IntegrityError:
            await session.rollback()
            # Raises the Conflict if another registration won the race
            await _ensure_available(session, team_name, user_ids)
            await resync_registration_counter(session)
            logger.warning(
                "Registration number collision for team %r (attempt %d), retrying",
                team_name, attempt + 1,
            )
            continue

        logger.info(
            "Team %d registered: %r as %s (%s)",
            team.id, team_name, registration_number, size_tier,
        )
        team = await require_team(session, team.id)
        dispatch_notification(
            notifier, build_notification(NotificationKind.REGISTERED, team)
        )
        return team

    logger.error("Registration number allocation exhausted for team %r", team_name)
    raise AllocationError()


# ── Guarded update ────────────────────────────────────────────────────────────

async def apply_team_update(
    session: AsyncSession,
    team: Team,
    **values: Any,
) -> Team:
    """
    Write `values` to the team in one UPDATE, conditional on the version that
    was read. Preconditions checked against `team` therefore hold at the
    moment of the write; if another writer got there first nothing is
    changed and ConcurrentUpdateError is raised.
    """
    result = await session.execute(
        update(Team)
        .where(Team.id == team.id, Team.version == team.version)
        .values(version=team.version + 1, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning("Concurrent update detected on team %d", team.id)
        raise ConcurrentUpdateError()
    return await require_team(session, team.id)
