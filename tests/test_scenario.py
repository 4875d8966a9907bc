"""
End-to-end admission flow: registration → payment → documents →
verification → ticket → venue check-in, through the service layer only.
"""
from __future__ import annotations

import json

import pytest

from conftest import ADMIN_ID, make_team
from hackgate.errors import NotVerifiedError
from hackgate.models import CheckInMethod, PaymentStatus, TeamStatus
from hackgate.services import (
    NotificationKind,
    check_in,
    drain_notifications,
    extract_registration_number,
    record_transaction,
    require_team,
    set_payment_status,
    upload_documents,
)


class TestAdmissionFlow:
    async def test_full_lifecycle(self, async_session, blob_store, notifier) -> None:
        team = await make_team(async_session, "Team0001", "Solo")
        assert team.registration_number == "TEAM0001"

        await record_transaction(async_session, team.id, "UTR123", 500)
        await upload_documents(async_session, team.id, b"screenshot", b"id-card", blob_store)
        await async_session.commit()

        verified = await set_payment_status(
            async_session, team.id, PaymentStatus.VERIFIED, ADMIN_ID, notifier=notifier
        )
        await async_session.commit()
        assert verified.ticket_number == "HACK2025-001"
        assert verified.status == TeamStatus.APPROVED
        assert verified.checked_in is False

        # Kiosk scans the QR from the issued ticket
        rn = extract_registration_number(verified.ticket_qr_payload)
        assert rn == "TEAM0001"
        assert json.loads(verified.ticket_qr_payload)["ticketNumber"] == "HACK2025-001"

        first = await check_in(async_session, rn, ADMIN_ID, CheckInMethod.QR_SCAN)
        assert first.success
        assert first.check_in_count == 1

        repeat = await check_in(async_session, rn, ADMIN_ID, CheckInMethod.QR_SCAN)
        assert repeat.already_checked_in
        assert repeat.message == "Team already checked in"
        assert repeat.check_in_count == 1

        fresh = await require_team(async_session, team.id)
        assert fresh.checked_in
        assert len(fresh.check_in_history) == 1
        assert fresh.check_in_history[0].method == CheckInMethod.QR_SCAN

        await drain_notifications()
        assert notifier.kinds == [NotificationKind.VERIFIED]

    async def test_pending_team_cannot_enter(self, async_session) -> None:
        team = await make_team(async_session)
        with pytest.raises(NotVerifiedError):
            await check_in(async_session, team.registration_number, ADMIN_ID)

        fresh = await require_team(async_session, team.id)
        assert fresh.check_in_history == []
        assert fresh.check_in_count == 0
