"""Initial schema — teams, memberships, check-in history and counters

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

Tables:
  - users             : Telegram users (leaders, members)
  - teams             : registration, payment proof, documents, ticket, check-in
  - team_memberships  : user_id UNIQUE — one team per user
  - check_in_entries  : append-only check-in audit trail
  - counters          : atomic sequences for registration / ticket numbers
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("telegram_id", sa.BigInteger(), nullable=False),
        sa.Column("username", sa.String(255), nullable=True),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_telegram_id", "users", ["telegram_id"], unique=True)

    # ── teams ─────────────────────────────────────────────────────────────────
    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("team_name", sa.String(100), nullable=False, unique=True),
        sa.Column("registration_number", sa.String(20), nullable=False),
        sa.Column("leader_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("team_size", sa.String(10), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        # payment
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_amount", sa.Integer(), nullable=True),
        sa.Column("proof_kind", sa.String(10), nullable=True),
        sa.Column("gateway_order_id", sa.String(64), nullable=True),
        sa.Column("gateway_payment_id", sa.String(64), nullable=True),
        sa.Column("gateway_signature", sa.String(128), nullable=True),
        sa.Column("transaction_id", sa.String(64), nullable=True),
        sa.Column("payment_completed_at", sa.DateTime(), nullable=True),
        # documents
        sa.Column("payment_screenshot_url", sa.String(500), nullable=True),
        sa.Column("payment_screenshot_handle", sa.String(255), nullable=True),
        sa.Column("id_card_url", sa.String(500), nullable=True),
        sa.Column("id_card_handle", sa.String(255), nullable=True),
        sa.Column("documents_uploaded_at", sa.DateTime(), nullable=True),
        # verification
        sa.Column("verified_by", sa.BigInteger(), nullable=True),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        sa.Column("rejection_reason", sa.String(500), nullable=True),
        # ticket
        sa.Column("ticket_number", sa.String(30), nullable=True, unique=True),
        sa.Column("ticket_qr_payload", sa.Text(), nullable=True),
        sa.Column("ticket_document", sa.Text(), nullable=True),
        # check-in
        sa.Column("checked_in", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("check_in_time", sa.DateTime(), nullable=True),
        sa.Column("checked_in_by", sa.BigInteger(), nullable=True),
        sa.Column("check_in_count", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index(
        "ix_teams_registration_number", "teams", ["registration_number"], unique=True
    )

    # ── team_memberships ──────────────────────────────────────────────────────
    op.create_table(
        "team_memberships",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("is_leader", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    # ── check_in_entries ──────────────────────────────────────────────────────
    op.create_table(
        "check_in_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("checked_in_by", sa.BigInteger(), nullable=False),
        sa.Column("method", sa.String(20), nullable=False),
    )
    op.create_index("ix_check_in_entries_team_id", "check_in_entries", ["team_id"])

    # ── counters ──────────────────────────────────────────────────────────────
    op.create_table(
        "counters",
        sa.Column("name", sa.String(50), primary_key=True),
        sa.Column("value", sa.Integer(), nullable=False, server_default="0"),
    )


def downgrade() -> None:
    op.drop_table("counters")
    op.drop_index("ix_check_in_entries_team_id", table_name="check_in_entries")
    op.drop_table("check_in_entries")
    op.drop_table("team_memberships")
    op.drop_index("ix_teams_registration_number", table_name="teams")
    op.drop_table("teams")
    op.drop_index("ix_users_telegram_id", table_name="users")
    op.drop_table("users")
