"""
Payment session manager.

Two ways to prove payment, one proof per team at a time:

  gateway : create_order → client pays → submit_proof(order, payment, signature)
            The signature is checked locally (HMAC) and the payment is
            fetched from the gateway to confirm it was captured.
  manual  : record_transaction(transaction_id, amount)
            Stored as claimed; an admin checks it against bank records.

Neither path marks the payment verified. Verification is always a separate
admin act (see verification_service). Recording a proof on a rejected team
is a re-submission and moves it back to pending.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from hackgate.config import settings
from hackgate.errors import (
    AlreadyVerifiedError,
    GatewayNotConfiguredError,
    OrderMismatchError,
    PaymentNotCapturedError,
    SignatureMismatchError,
)
from hackgate.models.models import (
    PaymentStatus,
    ProofKind,
    Team,
    TeamSize,
    TeamStatus,
    utcnow,
)
from hackgate.services.gateway_client import CAPTURED, PaymentGateway, signature_matches
from hackgate.services.registration_service import apply_team_update, require_team
from hackgate.validators import TransactionData, validation_failure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentOrder:
    order_id: str
    amount:   int       # minor units
    currency: str


def price_for(size_tier: str) -> int:
    """Registration fee for a tier, in minor units."""
    return TeamSize.PRICES[size_tier]


def _ensure_not_verified(team: Team) -> None:
    if team.payment_status == PaymentStatus.VERIFIED:
        raise AlreadyVerifiedError()


def _resubmission_values(team: Team) -> Dict[str, Any]:
    if team.payment_status == PaymentStatus.REJECTED:
        return {
            "payment_status":   PaymentStatus.PENDING,
            "status":           TeamStatus.PENDING,
            "rejection_reason": None,
        }
    return {}


# ── Gateway path ──────────────────────────────────────────────────────────────

async def create_order(
    session: AsyncSession,
    team_id: int,
    gateway: Optional[PaymentGateway],
) -> PaymentOrder:
    if gateway is None:
        raise GatewayNotConfiguredError()

    team = await require_team(session, team_id)
    _ensure_not_verified(team)

    amount = price_for(team.team_size)
    order_id = await gateway.create_order(
        amount,
        settings.CURRENCY,
        {
            "receipt":            f"team_{team.registration_number}",
            "teamId":             str(team.id),
            "teamName":           team.team_name,
            "teamSize":           team.team_size,
            "registrationNumber": team.registration_number,
        },
    )
    await apply_team_update(
        session, team, gateway_order_id=order_id, payment_amount=amount
    )
    logger.info("Order %s created for team %s (%d)", order_id, team.registration_number, amount)
    return PaymentOrder(order_id=order_id, amount=amount, currency=settings.CURRENCY)


async def submit_proof(
    session: AsyncSession,
    team_id: int,
    order_id: str,
    payment_id: str,
    signature: str,
    gateway: Optional[PaymentGateway],
    secret: Optional[str] = None,
) -> Team:
    """
    Record a gateway payment after checking its signature and capture status.

    A signed-but-uncaptured payment and a captured payment with a bad
    signature are both rejected; no state changes in either case.
    """
    secret = secret or settings.GATEWAY_KEY_SECRET
    if gateway is None or not secret:
        raise GatewayNotConfiguredError()

    team = await require_team(session, team_id)
    _ensure_not_verified(team)

    if not team.gateway_order_id or team.gateway_order_id != order_id:
        raise OrderMismatchError()

    if not signature_matches(order_id, payment_id, signature, secret):
        logger.warning("Signature mismatch for team %s payment %s", team.registration_number, payment_id)
        raise SignatureMismatchError()

    payment = await gateway.fetch_payment(payment_id)
    if payment.status != CAPTURED:
        logger.warning(
            "Payment %s for team %s is %r, not captured",
            payment_id, team.registration_number, payment.status,
        )
        raise PaymentNotCapturedError()

    team = await apply_team_update(
        session,
        team,
        proof_kind=ProofKind.GATEWAY,
        gateway_payment_id=payment_id,
        gateway_signature=signature,
        transaction_id=None,
        payment_amount=payment.amount or team.payment_amount,
        payment_completed_at=utcnow(),
        **_resubmission_values(team),
    )
    logger.info("Gateway payment %s recorded for team %s", payment_id, team.registration_number)
    return team


# ── Manual path ───────────────────────────────────────────────────────────────

async def record_transaction(
    session: AsyncSession,
    team_id: int,
    transaction_id: str,
    amount: float,              # major units, e.g. 500 for ₹500
) -> Team:
    try:
        data = TransactionData(transaction_id=transaction_id, amount=amount)
    except ValidationError as e:
        raise validation_failure(e) from e

    team = await require_team(session, team_id)
    _ensure_not_verified(team)

    team = await apply_team_update(
        session,
        team,
        proof_kind=ProofKind.MANUAL,
        transaction_id=data.transaction_id,
        gateway_order_id=None,
        gateway_payment_id=None,
        gateway_signature=None,
        payment_amount=data.amount_minor,
        payment_completed_at=utcnow(),
        **_resubmission_values(team),
    )
    logger.info("Transaction %s recorded for team %s", data.transaction_id, team.registration_number)
    return team


def payment_summary(team: Team) -> Dict[str, Any]:
    """Read model of a team's payment state."""
    proof = team.payment_proof
    return {
        "paymentStatus":      team.payment_status,
        "paymentAmount":      team.payment_amount / 100 if team.payment_amount is not None else None,
        "proofKind":          team.proof_kind if proof else None,
        "paymentCompletedAt": team.payment_completed_at,
        "documentsUploaded":  team.documents_uploaded,
        "verifiedAt":         team.verified_at,
        "hasTicket":          bool(team.ticket_number),
    }
