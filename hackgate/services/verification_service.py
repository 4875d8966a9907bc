"""
Verification authority — the admin-driven payment status state machine.

    pending ──► verified        (needs both documents and a payment proof)
    pending ──► rejected
    rejected ─► pending         (operator correction or team re-submission)
    rejected ─► verified
    verified ─► rejected        (clears the ticket; re-verification issues a new one)
    verified ─► pending         (keeps the ticket; refused while checked in)

Each branch ends in one version-guarded UPDATE of the team, so a failed
precondition or a concurrent writer leaves the row exactly as it was.
`status` (pending / approved / rejected) always moves with `payment_status`.
"""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hackgate.config import settings
from hackgate.errors import (
    AllocationError,
    DocumentsMissingError,
    PaymentMissingError,
    TeamCheckedInError,
    ValidationFailure,
)
from hackgate.models.models import PaymentStatus, Team, TeamStatus, utcnow
from hackgate.services.notification_service import (
    NotificationKind,
    Notifier,
    build_notification,
    dispatch_notification,
)
from hackgate.services.identity_service import resync_ticket_counter
from hackgate.services.registration_service import apply_team_update, require_team
from hackgate.services.ticket_service import issue_ticket, render_ticket
from hackgate.validators import RejectionData, validation_failure

logger = logging.getLogger(__name__)


async def set_payment_status(
    session: AsyncSession,
    team_id: int,
    target_status: str,
    admin_id: int,              # admin telegram_id
    rejection_reason: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> Team:
    if target_status not in PaymentStatus.ALL:
        raise ValidationFailure("Invalid payment status")

    if target_status == PaymentStatus.VERIFIED:
        return await _verify(session, team_id, admin_id, notifier)
    if target_status == PaymentStatus.REJECTED:
        return await _reject(session, team_id, rejection_reason, notifier)
    return await _reset_to_pending(session, team_id)


# ── verified ──────────────────────────────────────────────────────────────────

async def _verify(
    session: AsyncSession,
    team_id: int,
    admin_id: int,
    notifier: Optional[Notifier],
) -> Team:
    """
    Issue the ticket on first verification; re-verification keeps the ticket
    number and verification stamp, so running it twice changes nothing.

    A ticket number collision (unique constraint) rolls the session back,
    moves the ticket counter past the highest stored number and retries,
    bounded by ALLOCATION_MAX_RETRIES.
    """
    for attempt in range(settings.ALLOCATION_MAX_RETRIES + 1):
        team = await require_team(session, team_id)
        if not team.documents_uploaded:
            raise DocumentsMissingError()
        if team.payment_proof is None:
            raise PaymentMissingError()

        was_verified = team.payment_status == PaymentStatus.VERIFIED
        values = {
            "payment_status":   PaymentStatus.VERIFIED,
            "status":           TeamStatus.APPROVED,
            "rejection_reason": None,
        }

        try:
            if team.ticket_number is None:
                verified_at = utcnow()
                ticket = await issue_ticket(session, team, verified_at)
                values.update(
                    ticket_number=ticket.ticket_number,
                    verified_at=verified_at,
                    verified_by=admin_id,
                    # First issuance: start admission state fresh
                    checked_in=False,
                    check_in_time=None,
                    checked_in_by=None,
                )
            else:
                verified_at = team.verified_at or utcnow()
                ticket = render_ticket(team, team.ticket_number, verified_at)
                values.update(
                    verified_at=verified_at,
                    verified_by=team.verified_by or admin_id,
                )
            values.update(
                ticket_qr_payload=ticket.qr_payload,
                ticket_document=ticket.document,
            )
            team = await apply_team_update(session, team, **values)
        except IntegrityError:
            await session.rollback()
            await resync_ticket_counter(session)
            logger.warning(
                "Ticket number collision for team %d (attempt %d), retrying",
                team_id, attempt + 1,
            )
            continue

        logger.info(
            "Team %s verified by %d, ticket %s",
            team.registration_number, admin_id, team.ticket_number,
        )
        if not was_verified:
            dispatch_notification(
                notifier, build_notification(NotificationKind.VERIFIED, team)
            )
        return team

    logger.error("Ticket number allocation exhausted for team %d", team_id)
    raise AllocationError()


# ── rejected ──────────────────────────────────────────────────────────────────

async def _reject(
    session: AsyncSession,
    team_id: int,
    rejection_reason: Optional[str],
    notifier: Optional[Notifier],
) -> Team:
    """
    Clear the credential and record the reason. A checked-in team is also
    checked out (only verified teams may be checked in); its check-in count
    and history stay as the audit trail.
    """
    try:
        reason = RejectionData(reason=rejection_reason).reason or settings.DEFAULT_REJECTION_REASON
    except ValidationError as e:
        raise validation_failure(e) from e
    team = await require_team(session, team_id)

    team = await apply_team_update(
        session,
        team,
        payment_status=PaymentStatus.REJECTED,
        status=TeamStatus.REJECTED,
        rejection_reason=reason,
        ticket_number=None,
        ticket_qr_payload=None,
        ticket_document=None,
        verified_at=None,
        verified_by=None,
        checked_in=False,
        check_in_time=None,
        checked_in_by=None,
    )
    logger.info("Team %s rejected: %s", team.registration_number, reason)
    dispatch_notification(
        notifier, build_notification(NotificationKind.REJECTED, team)
    )
    return team


# ── pending ───────────────────────────────────────────────────────────────────

async def _reset_to_pending(session: AsyncSession, team_id: int) -> Team:
    team = await require_team(session, team_id)
    if team.checked_in:
        raise TeamCheckedInError()

    team = await apply_team_update(
        session,
        team,
        payment_status=PaymentStatus.PENDING,
        status=TeamStatus.PENDING,
        rejection_reason=None,
    )
    logger.info("Team %s reset to pending", team.registration_number)
    return team
