"""
Integration tests — registration ledger (registration_service.py).

Coverage:
  - user upsert / lookup
  - team registration: numbering, memberships, tier limits, validation
  - conflicts: duplicate team name, user already in a team
  - concurrent registrations of the same name
  - lookups by id / registration number / user, filtered listing
  - version-guarded updates
  - "registered" notification
"""
from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import delete, update

from conftest import make_team, make_user
from hackgate.errors import (
    AlreadyRegisteredError,
    ConcurrentUpdateError,
    DuplicateNameError,
    InvalidTierError,
    TeamNotFoundError,
    TeamSizeError,
    ValidationFailure,
)
from hackgate.models import Counter, CounterName, PaymentStatus, Team, TeamStatus
from hackgate.services import (
    NotificationKind,
    apply_team_update,
    drain_notifications,
    get_team,
    get_team_by_registration_number,
    get_team_for_user,
    get_user,
    list_teams,
    register_team,
    require_team,
    upsert_user,
)


# ─────────────────────────── Users ────────────────────────────────────────────

class TestUsers:
    async def test_upsert_creates(self, async_session) -> None:
        user = await upsert_user(async_session, 555, "Ada", "Lovelace", "ada")
        assert user.id is not None
        assert user.display_name == "Ada Lovelace"

    async def test_upsert_updates_existing(self, async_session) -> None:
        first = await upsert_user(async_session, 555, "Ada", None, None)
        second = await upsert_user(async_session, 555, "Ada", "King", "countess")
        assert first.id == second.id
        assert second.username == "countess"

    async def test_get_user_missing(self, async_session) -> None:
        assert await get_user(async_session, 404) is None


# ─────────────────────────── Registration ─────────────────────────────────────

class TestRegisterTeam:
    async def test_fresh_team_defaults(self, async_session) -> None:
        team = await make_team(async_session, "Code Crafters", "Solo")
        assert team.registration_number == "TEAM0001"
        assert team.payment_status == PaymentStatus.PENDING
        assert team.status == TeamStatus.PENDING
        assert team.checked_in is False
        assert team.check_in_count == 0
        assert team.ticket_number is None
        assert team.version == 1

    async def test_numbers_are_sequential(self, async_session) -> None:
        a = await make_team(async_session, "Alpha Team", telegram_id=1)
        await async_session.commit()
        b = await make_team(async_session, "Beta Team", telegram_id=2)
        assert (a.registration_number, b.registration_number) == ("TEAM0001", "TEAM0002")

    async def test_leader_membership(self, async_session) -> None:
        team = await make_team(async_session)
        assert len(team.memberships) == 1
        assert team.memberships[0].is_leader
        assert team.members == []

    async def test_members_added(self, async_session) -> None:
        m1 = await make_user(async_session, 2001, "Grace")
        m2 = await make_user(async_session, 2002, "Linus")
        await async_session.commit()
        team = await make_team(async_session, "Full House", "Team", member_ids=[m1.id, m2.id])
        assert sorted(u.first_name for u in team.members) == ["Grace", "Linus"]

    async def test_too_many_members_for_tier(self, async_session) -> None:
        m1 = await make_user(async_session, 2001)
        m2 = await make_user(async_session, 2002)
        await async_session.commit()
        with pytest.raises(TeamSizeError):
            await make_team(async_session, "Crowded Duo", "Duo", member_ids=[m1.id, m2.id])

    async def test_invalid_tier(self, async_session) -> None:
        with pytest.raises(InvalidTierError):
            await make_team(async_session, "Big Squad", "Squad")

    async def test_invalid_name(self, async_session) -> None:
        with pytest.raises(ValidationFailure):
            await make_team(async_session, "x")

    async def test_name_normalised(self, async_session) -> None:
        team = await make_team(async_session, "  Byte   Me ")
        assert team.team_name == "Byte Me"


class TestRegistrationConflicts:
    async def test_duplicate_name(self, async_session) -> None:
        await make_team(async_session, "Code Crafters", telegram_id=1)
        await async_session.commit()
        with pytest.raises(DuplicateNameError):
            await make_team(async_session, "Code Crafters", telegram_id=2)

    async def test_leader_already_in_team(self, async_session) -> None:
        await make_team(async_session, "First Team", telegram_id=1)
        await async_session.commit()
        with pytest.raises(AlreadyRegisteredError):
            await make_team(async_session, "Second Team", telegram_id=1)

    async def test_member_already_in_team(self, async_session) -> None:
        member = await make_user(async_session, 3001)
        await async_session.commit()
        await make_team(async_session, "First Duo", "Duo", telegram_id=1, member_ids=[member.id])
        await async_session.commit()
        with pytest.raises(AlreadyRegisteredError):
            await make_team(async_session, "Second Duo", "Duo", telegram_id=2, member_ids=[member.id])

    async def test_failed_registration_consumes_no_number(self, async_session) -> None:
        await make_team(async_session, "Code Crafters", telegram_id=1)
        await async_session.commit()
        with pytest.raises(DuplicateNameError):
            await make_team(async_session, "Code Crafters", telegram_id=2)
        team = await make_team(async_session, "Other Name", telegram_id=3)
        assert team.registration_number == "TEAM0002"

    async def test_number_collision_recovers(self, async_session) -> None:
        await make_team(async_session, "Alpha Team", telegram_id=1)
        await async_session.commit()
        # Counter lost or restored from an older backup
        await async_session.execute(delete(Counter).where(Counter.name == CounterName.REGISTRATION))
        await async_session.commit()

        team = await make_team(async_session, "Beta Team", telegram_id=2)
        assert team.registration_number == "TEAM0002"
        assert len(await list_teams(async_session)) == 2

    async def test_concurrent_same_name(self, session_factory) -> None:
        async with session_factory() as s:
            leaders = [await make_user(s, tg) for tg in (11, 12)]
            await s.commit()
            leader_ids = [u.id for u in leaders]

        async def attempt(leader_id: int):
            async with session_factory() as s:
                try:
                    team = await register_team(s, "Race Condition", leader_id, "Solo")
                    await s.commit()
                    return team.registration_number
                except DuplicateNameError as e:
                    return e

        results = await asyncio.gather(*[attempt(uid) for uid in leader_ids])
        winners = [r for r in results if isinstance(r, str)]
        losers  = [r for r in results if isinstance(r, DuplicateNameError)]
        assert len(winners) == 1
        assert len(losers) == 1

        async with session_factory() as s:
            assert len(await list_teams(s)) == 1


# ─────────────────────────── Lookups ──────────────────────────────────────────

class TestLookups:
    async def test_get_team_missing(self, async_session) -> None:
        assert await get_team(async_session, 999) is None

    async def test_require_team_missing(self, async_session) -> None:
        with pytest.raises(TeamNotFoundError):
            await require_team(async_session, 999)

    async def test_by_registration_number_case_insensitive(self, async_session) -> None:
        team = await make_team(async_session)
        found = await get_team_by_registration_number(async_session, " team0001 ")
        assert found is not None and found.id == team.id

    async def test_for_user(self, async_session) -> None:
        team = await make_team(async_session, telegram_id=77)
        user = await get_user(async_session, 77)
        found = await get_team_for_user(async_session, user.id)
        assert found is not None and found.id == team.id

    async def test_list_filtered_by_status(self, async_session) -> None:
        a = await make_team(async_session, "Alpha Team", telegram_id=1)
        await async_session.commit()
        await make_team(async_session, "Beta Team", telegram_id=2)
        await apply_team_update(async_session, a, payment_status=PaymentStatus.REJECTED)

        assert len(await list_teams(async_session)) == 2
        rejected = await list_teams(async_session, payment_status=PaymentStatus.REJECTED)
        assert [t.team_name for t in rejected] == ["Alpha Team"]


# ─────────────────────────── Guarded update ───────────────────────────────────

class TestApplyTeamUpdate:
    async def test_bumps_version(self, async_session) -> None:
        team = await make_team(async_session)
        updated = await apply_team_update(async_session, team, rejection_reason="x")
        assert updated.version == 2
        assert updated.rejection_reason == "x"

    async def test_stale_version_rejected(self, async_session) -> None:
        team = await make_team(async_session)
        # Another writer bumps the version behind this session's back
        await async_session.execute(
            update(Team)
            .where(Team.id == team.id)
            .values(version=Team.version + 1, rejection_reason="other writer")
            .execution_options(synchronize_session=False)
        )
        assert team.version == 1

        with pytest.raises(ConcurrentUpdateError):
            await apply_team_update(async_session, team, rejection_reason="mine")

        fresh = await require_team(async_session, team.id)
        assert fresh.rejection_reason == "other writer"
        assert fresh.version == 2


# ─────────────────────────── Notifications ────────────────────────────────────

class TestRegisteredNotification:
    async def test_leader_notified(self, async_session, notifier) -> None:
        leader = await make_user(async_session, 4242, "Ada")
        await async_session.commit()
        await register_team(async_session, "Notify Me", leader.id, "Duo", notifier=notifier)
        await drain_notifications()

        assert notifier.kinds == [NotificationKind.REGISTERED]
        payload = notifier.sent[0]
        assert payload.chat_id == 4242
        assert payload.registration_number == "TEAM0001"

    async def test_notifier_failure_does_not_fail_registration(self, async_session) -> None:
        from conftest import RecordingNotifier

        leader = await make_user(async_session, 4243)
        await async_session.commit()
        team = await register_team(
            async_session, "Still Works", leader.id, "Solo", notifier=RecordingNotifier(fail=True)
        )
        await drain_notifications()
        assert team.registration_number == "TEAM0001"
