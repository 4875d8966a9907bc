"""
Integration tests — check-in ledger (checkin_service.py).

Coverage:
  - successful check-in appends one history entry
  - duplicate scan: "already checked in", nothing counted twice
  - unverified / unknown teams refused without side effects
  - concurrent scans of the same ticket from several kiosks
  - undo keeps the cumulative count and history
  - read-only eligibility lookup
"""
from __future__ import annotations

import asyncio

import pytest

from conftest import ADMIN_ID, make_ready_team, make_team
from hackgate.errors import (
    NotCheckedInError,
    NotVerifiedError,
    TeamNotFoundError,
    ValidationFailure,
)
from hackgate.models import CheckInMethod, PaymentStatus
from hackgate.services import (
    can_check_in,
    check_in,
    require_team,
    set_payment_status,
    undo_check_in,
)


async def _verified_team(session, blob_store, team_name="Code Crafters", telegram_id=1001):
    team = await make_ready_team(session, blob_store, team_name, telegram_id)
    team = await set_payment_status(session, team.id, PaymentStatus.VERIFIED, ADMIN_ID)
    await session.commit()
    return team


class TestCheckIn:
    async def test_success(self, async_session, blob_store) -> None:
        team = await _verified_team(async_session, blob_store)
        result = await check_in(async_session, team.registration_number, ADMIN_ID, CheckInMethod.MANUAL)

        assert result.success and not result.already_checked_in
        assert result.check_in_count == 1
        assert result.leader_name == "Leader"

        fresh = await require_team(async_session, team.id)
        assert fresh.checked_in
        assert fresh.checked_in_by == ADMIN_ID
        assert [e.method for e in fresh.check_in_history] == [CheckInMethod.MANUAL]

    async def test_registration_number_normalised(self, async_session, blob_store) -> None:
        team = await _verified_team(async_session, blob_store)
        result = await check_in(async_session, "  team0001 ", ADMIN_ID)
        assert result.registration_number == team.registration_number

    async def test_duplicate_scan(self, async_session, blob_store) -> None:
        team = await _verified_team(async_session, blob_store)
        await check_in(async_session, team.registration_number, ADMIN_ID)
        again = await check_in(async_session, team.registration_number, ADMIN_ID)

        assert not again.success
        assert again.already_checked_in
        assert again.check_in_count == 1
        fresh = await require_team(async_session, team.id)
        assert len(fresh.check_in_history) == 1

    async def test_not_verified(self, async_session, blob_store) -> None:
        team = await make_ready_team(async_session, blob_store)
        with pytest.raises(NotVerifiedError):
            await check_in(async_session, team.registration_number, ADMIN_ID)

        fresh = await require_team(async_session, team.id)
        assert not fresh.checked_in
        assert fresh.check_in_count == 0
        assert fresh.check_in_history == []

    async def test_unknown_team(self, async_session) -> None:
        with pytest.raises(TeamNotFoundError):
            await check_in(async_session, "TEAM9999", ADMIN_ID)

    async def test_empty_registration_number(self, async_session) -> None:
        with pytest.raises(ValidationFailure):
            await check_in(async_session, "   ", ADMIN_ID)

    async def test_unknown_method(self, async_session, blob_store) -> None:
        team = await _verified_team(async_session, blob_store)
        with pytest.raises(ValidationFailure):
            await check_in(async_session, team.registration_number, ADMIN_ID, "telepathy")


class TestConcurrentCheckIn:
    async def test_same_ticket_from_several_kiosks(self, session_factory, blob_store) -> None:
        async with session_factory() as s:
            team = await _verified_team(s, blob_store)
            rn, team_id = team.registration_number, team.id

        async def scan(admin_id: int):
            async with session_factory() as s:
                result = await check_in(s, rn, admin_id)
                await s.commit()
                return result

        results = await asyncio.gather(*[scan(ADMIN_ID + i) for i in range(5)])
        assert sum(r.success for r in results) == 1
        assert sum(r.already_checked_in for r in results) == 4

        async with session_factory() as s:
            fresh = await require_team(s, team_id)
            assert fresh.check_in_count == 1
            assert len(fresh.check_in_history) == 1


class TestUndoCheckIn:
    async def test_undo_keeps_audit_trail(self, async_session, blob_store) -> None:
        team = await _verified_team(async_session, blob_store)
        await check_in(async_session, team.registration_number, ADMIN_ID)

        undone = await undo_check_in(async_session, team.id)
        assert not undone.checked_in
        assert undone.check_in_time is None
        assert undone.check_in_count == 1
        assert len(undone.check_in_history) == 1

    async def test_undo_when_not_checked_in(self, async_session, blob_store) -> None:
        team = await _verified_team(async_session, blob_store)
        with pytest.raises(NotCheckedInError):
            await undo_check_in(async_session, team.id)

    async def test_undo_unknown_team(self, async_session) -> None:
        with pytest.raises(TeamNotFoundError):
            await undo_check_in(async_session, 999)

    async def test_check_in_again_after_undo(self, async_session, blob_store) -> None:
        team = await _verified_team(async_session, blob_store)
        await check_in(async_session, team.registration_number, ADMIN_ID)
        await undo_check_in(async_session, team.id)
        result = await check_in(async_session, team.registration_number, ADMIN_ID)

        assert result.success
        assert result.check_in_count == 2
        fresh = await require_team(async_session, team.id)
        assert len(fresh.check_in_history) == 2


class TestCanCheckIn:
    async def test_verified_team(self, async_session, blob_store) -> None:
        team = await _verified_team(async_session, blob_store)
        status = await can_check_in(async_session, team.registration_number)
        assert status.can_check_in
        assert status.message == "Team can be checked in"

    async def test_already_checked_in(self, async_session, blob_store) -> None:
        team = await _verified_team(async_session, blob_store)
        await check_in(async_session, team.registration_number, ADMIN_ID)
        status = await can_check_in(async_session, team.registration_number)
        assert not status.can_check_in
        assert status.checked_in
        assert status.check_in_time is not None

    async def test_pending_team(self, async_session) -> None:
        team = await make_team(async_session)
        status = await can_check_in(async_session, team.registration_number)
        assert not status.can_check_in
        assert status.message == "Payment not verified"

    async def test_lookup_does_not_write(self, async_session, blob_store) -> None:
        team = await _verified_team(async_session, blob_store)
        version = team.version
        await can_check_in(async_session, team.registration_number)
        fresh = await require_team(async_session, team.id)
        assert fresh.version == version
        assert not fresh.checked_in

    async def test_unknown(self, async_session) -> None:
        with pytest.raises(TeamNotFoundError):
            await can_check_in(async_session, "TEAM9999")
