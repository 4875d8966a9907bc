"""
Shared pytest fixtures for HackGate tests.

Sets required environment variables BEFORE any hackgate module is imported so
that pydantic-settings and SQLAlchemy engine initialisation use safe test values.
"""
from __future__ import annotations

import os
from typing import AsyncGenerator, Dict, List, Sequence

# ── Set env vars before any hackgate import ───────────────────────────────────
os.environ.setdefault("BOT_TOKEN", "test-token-for-pytest")
os.environ.setdefault("ADMIN_IDS", "123456789")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# ── Third-party ───────────────────────────────────────────────────────────────
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# ── HackGate imports (safe after env vars are set) ────────────────────────────
from hackgate.models import Base, Team, User
from hackgate.services import (
    StoredBlob, TeamNotification, drain_notifications,
    record_transaction, register_team, upload_documents, upsert_user,
)

ADMIN_ID = 123456789


# ── DB fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture
async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a fresh AsyncSession backed by an isolated in-memory SQLite database.
    Schema is created fresh for every test function; engine is always disposed
    on teardown, even if the test raises an exception.
    """
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with factory() as session:
            yield session
    finally:
        await drain_notifications()
        await engine.dispose()


@pytest.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory over a file-backed SQLite database, for tests that run
    several sessions (connections) against the same data concurrently.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'hackgate.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await drain_notifications()
        await engine.dispose()


# ── Test doubles ──────────────────────────────────────────────────────────────

class InMemoryBlobStore:
    """BlobStore keeping blobs in a dict; `fail_on_put` simulates a storage outage."""

    def __init__(self) -> None:
        self.blobs: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self.fail_on_put = False
        self._seq = 0

    async def put(self, data: bytes, key: str) -> StoredBlob:
        if self.fail_on_put:
            raise OSError("storage unavailable")
        self._seq += 1
        handle = f"{key}-{self._seq}"
        self.blobs[handle] = data
        return StoredBlob(url=f"https://files.test/{handle}", handle=handle)

    async def delete(self, handle: str) -> None:
        self.deleted.append(handle)
        self.blobs.pop(handle, None)


class RecordingNotifier:
    """Notifier that records every payload it is asked to deliver."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: List[TeamNotification] = []
        self.fail = fail

    async def notify(self, kind: str, payload: TeamNotification) -> None:
        if self.fail:
            raise RuntimeError("notifier down")
        self.sent.append(payload)

    @property
    def kinds(self) -> List[str]:
        return [p.kind for p in self.sent]


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


# ── Builders ──────────────────────────────────────────────────────────────────

async def make_user(session: AsyncSession, telegram_id: int, first_name: str = "Leader") -> User:
    return await upsert_user(
        session,
        telegram_id=telegram_id,
        first_name=first_name,
        last_name=None,
        username=None,
    )


async def make_team(
    session: AsyncSession,
    team_name: str = "Code Crafters",
    size_tier: str = "Solo",
    telegram_id: int = 1001,
    member_ids: Sequence[int] = (),
) -> Team:
    leader = await make_user(session, telegram_id)
    await session.commit()
    return await register_team(session, team_name, leader.id, size_tier, member_ids=member_ids)


async def make_ready_team(
    session: AsyncSession,
    blob_store: InMemoryBlobStore,
    team_name: str = "Code Crafters",
    telegram_id: int = 1001,
) -> Team:
    """A Solo team with a manual payment proof and both documents uploaded."""
    team = await make_team(session, team_name, "Solo", telegram_id)
    await record_transaction(session, team.id, f"UTR{telegram_id:06d}", 500)
    await upload_documents(session, team.id, b"payment-png", b"id-card-png", blob_store)
    await session.commit()
    return team
