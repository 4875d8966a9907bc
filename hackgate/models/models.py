"""
ORM models for the hackathon admission system.

Domain overview
---------------
User        — a Telegram user (leader, member or admin)
Team        — the sole aggregate: registration → payment proof → documents
              → verification → ticket → venue check-in
  ├─ TeamMembership — one row per leader/member; user_id is UNIQUE so a user
  │                   can never belong to two teams
  └─ CheckInEntry   — append-only check-in audit trail
Counter     — named atomic sequence (registration / ticket numbers)
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Union

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hackgate.models.base import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns below."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ─────────────────────────── Constants ────────────────────────────────────────

class TeamSize:
    SOLO = "Solo"
    DUO  = "Duo"
    TEAM = "Team"

    ALL = (SOLO, DUO, TEAM)

    # Registration fee in minor currency units (paise)
    PRICES: dict[str, int] = {
        SOLO: 50000,   # ₹500
        DUO:  80000,   # ₹800
        TEAM: 120000,  # ₹1200
    }

    # Members besides the leader
    MAX_MEMBERS: dict[str, int] = {
        SOLO: 0,
        DUO:  1,
        TEAM: 3,
    }

    EMOJI: dict[str, str] = {
        SOLO: "👤",
        DUO:  "👥",
        TEAM: "👨‍👩‍👧‍👦",
    }


class PaymentStatus:
    PENDING  = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"

    ALL = (PENDING, VERIFIED, REJECTED)

    EMOJI = {
        PENDING:  "⏳",
        VERIFIED: "✅",
        REJECTED: "❌",
    }


class TeamStatus:
    """Administrative superstate, kept in lockstep with PaymentStatus."""
    PENDING  = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    FOR_PAYMENT = {
        PaymentStatus.PENDING:  PENDING,
        PaymentStatus.VERIFIED: APPROVED,
        PaymentStatus.REJECTED: REJECTED,
    }


class ProofKind:
    GATEWAY = "gateway"
    MANUAL  = "manual"


class CheckInMethod:
    QR_SCAN = "qr_scan"
    MANUAL  = "manual"

    ALL = (QR_SCAN, MANUAL)


class CounterName:
    REGISTRATION = "registration"

    @staticmethod
    def ticket(year: int) -> str:
        return f"ticket:{year}"


# ─────────────────────────── Payment proof variants ───────────────────────────

@dataclass(frozen=True)
class GatewayProof:
    order_id: str
    payment_id: str
    signature: str


@dataclass(frozen=True)
class ManualProof:
    transaction_id: str


PaymentProof = Union[GatewayProof, ManualProof]


# ─────────────────────────── Models ───────────────────────────────────────────

class User(Base):
    """Telegram user — team leader or member."""
    __tablename__ = "users"

    id:          Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    telegram_id: Mapped[int]           = mapped_column(BigInteger, unique=True, index=True)
    username:    Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    first_name:  Mapped[str]           = mapped_column(String(255))
    last_name:   Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at:  Mapped[datetime]      = mapped_column(DateTime, default=func.now())

    membership: Mapped[Optional["TeamMembership"]] = relationship(back_populates="user")

    @property
    def display_name(self) -> str:
        parts = [self.first_name]
        if self.last_name:
            parts.append(self.last_name)
        return " ".join(parts)


class Team(Base):
    """A registered hackathon team and its whole admission lifecycle."""
    __tablename__ = "teams"

    id:                  Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_name:           Mapped[str]           = mapped_column(String(100), unique=True)
    registration_number: Mapped[str]           = mapped_column(String(20), unique=True, index=True)
    leader_id:           Mapped[int]           = mapped_column(ForeignKey("users.id"))
    team_size:           Mapped[str]           = mapped_column(String(10))            # TeamSize.*
    status:              Mapped[str]           = mapped_column(String(20), default=TeamStatus.PENDING)
    # Bumped by every multi-field transition; guards optimistic updates
    version:             Mapped[int]           = mapped_column(Integer, default=1)
    created_at:          Mapped[datetime]      = mapped_column(DateTime, default=func.now())

    # ── Payment ───────────────────────────────────────────────────────────────
    payment_status:       Mapped[str]                = mapped_column(String(20), default=PaymentStatus.PENDING)
    payment_amount:       Mapped[Optional[int]]      = mapped_column(Integer, nullable=True)  # minor units
    proof_kind:           Mapped[Optional[str]]      = mapped_column(String(10), nullable=True)  # ProofKind.*
    gateway_order_id:     Mapped[Optional[str]]      = mapped_column(String(64), nullable=True)
    gateway_payment_id:   Mapped[Optional[str]]      = mapped_column(String(64), nullable=True)
    gateway_signature:    Mapped[Optional[str]]      = mapped_column(String(128), nullable=True)
    transaction_id:       Mapped[Optional[str]]      = mapped_column(String(64), nullable=True)
    payment_completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # ── Proof artifacts ───────────────────────────────────────────────────────
    payment_screenshot_url:    Mapped[Optional[str]]      = mapped_column(String(500), nullable=True)
    payment_screenshot_handle: Mapped[Optional[str]]      = mapped_column(String(255), nullable=True)
    id_card_url:               Mapped[Optional[str]]      = mapped_column(String(500), nullable=True)
    id_card_handle:            Mapped[Optional[str]]      = mapped_column(String(255), nullable=True)
    documents_uploaded_at:     Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # ── Verification ──────────────────────────────────────────────────────────
    verified_by:      Mapped[Optional[int]]      = mapped_column(BigInteger, nullable=True)  # admin telegram_id
    verified_at:      Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    rejection_reason: Mapped[Optional[str]]      = mapped_column(String(500), nullable=True)

    # ── Ticket ────────────────────────────────────────────────────────────────
    ticket_number:     Mapped[Optional[str]] = mapped_column(String(30), unique=True, nullable=True)
    ticket_qr_payload: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ticket_document:   Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── Check-in ──────────────────────────────────────────────────────────────
    checked_in:     Mapped[bool]               = mapped_column(Boolean, default=False)
    check_in_time:  Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    checked_in_by:  Mapped[Optional[int]]      = mapped_column(BigInteger, nullable=True)  # admin telegram_id
    check_in_count: Mapped[int]                = mapped_column(Integer, default=0)

    leader:      Mapped["User"]                 = relationship(foreign_keys=[leader_id])
    memberships: Mapped[List["TeamMembership"]] = relationship(
        back_populates="team", cascade="all, delete-orphan"
    )
    check_in_history: Mapped[List["CheckInEntry"]] = relationship(
        back_populates="team",
        cascade="all, delete-orphan",
        order_by="CheckInEntry.id",
    )

    @property
    def members(self) -> List["User"]:
        """Members other than the leader."""
        return [m.user for m in self.memberships if not m.is_leader]

    @property
    def payment_proof(self) -> Optional[PaymentProof]:
        if self.proof_kind == ProofKind.GATEWAY and self.gateway_payment_id:
            return GatewayProof(
                order_id=self.gateway_order_id or "",
                payment_id=self.gateway_payment_id,
                signature=self.gateway_signature or "",
            )
        if self.proof_kind == ProofKind.MANUAL and self.transaction_id:
            return ManualProof(transaction_id=self.transaction_id)
        return None

    @property
    def documents_uploaded(self) -> bool:
        return bool(self.payment_screenshot_handle and self.id_card_handle)

    @property
    def status_emoji(self) -> str:
        return PaymentStatus.EMOJI.get(self.payment_status, "❓")

    @property
    def amount_display(self) -> str:
        if self.payment_amount is None:
            return "—"
        return f"{self.payment_amount / 100:g}"


class TeamMembership(Base):
    """Links a user to exactly one team (leader or member)."""
    __tablename__ = "team_memberships"

    id:        Mapped[int]  = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id:   Mapped[int]  = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"))
    user_id:   Mapped[int]  = mapped_column(ForeignKey("users.id"), unique=True)
    is_leader: Mapped[bool] = mapped_column(Boolean, default=False)

    team: Mapped["Team"] = relationship(back_populates="memberships")
    user: Mapped["User"] = relationship(back_populates="membership")


class CheckInEntry(Base):
    """One successful venue check-in. Rows are never updated or deleted."""
    __tablename__ = "check_in_entries"

    id:            Mapped[int]      = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id:       Mapped[int]      = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), index=True)
    timestamp:     Mapped[datetime] = mapped_column(DateTime)
    checked_in_by: Mapped[int]      = mapped_column(BigInteger)   # admin telegram_id
    method:        Mapped[str]      = mapped_column(String(20))   # CheckInMethod.*

    team: Mapped["Team"] = relationship(back_populates="check_in_history")


class Counter(Base):
    """Named monotonically increasing sequence, incremented atomically in SQL."""
    __tablename__ = "counters"

    name:  Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, default=0)
