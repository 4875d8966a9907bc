"""
Identity allocator — registration numbers and ticket numbers.

Both sequences live in the `counters` table and are advanced with a single
`UPDATE counters SET value = value + 1` inside the caller's transaction.
The row stays locked until that transaction ends, so two concurrent
callers can never read the same value. Nothing is cached in process:
several bot instances may share one database.

An increment made in a transaction that is later rolled back is undone
too. After a unique-constraint collision the caller therefore runs
`resync_registration_counter` / `resync_ticket_counter`, which move the
counter past the highest number already stored, before allocating again.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hackgate.config import settings
from hackgate.models.models import Counter, CounterName, Team

REGISTRATION_PREFIX = "TEAM"


async def next_value(session: AsyncSession, name: str) -> int:
    """
    Atomically increment the named counter and return the new value.

    The first call for a name inserts the row. Two first calls racing each
    other collide on the primary key; the loser's INSERT raises
    IntegrityError, which allocation callers treat like any other collision
    and retry.
    """
    result = await session.execute(
        update(Counter)
        .where(Counter.name == name)
        .values(value=Counter.value + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await session.execute(insert(Counter).values(name=name, value=1))
        return 1

    value = await session.execute(select(Counter.value).where(Counter.name == name))
    return value.scalar_one()


def format_registration_number(seq: int) -> str:
    return f"{REGISTRATION_PREFIX}{seq:04d}"


def format_ticket_number(seq: int, year: Optional[int] = None) -> str:
    return f"{_ticket_prefix(year)}{seq:03d}"


async def next_registration_number(session: AsyncSession) -> str:
    seq = await next_value(session, CounterName.REGISTRATION)
    return format_registration_number(seq)


async def next_ticket_number(session: AsyncSession) -> str:
    """Ticket sequence counts verified teams per event year, not wall-clock time."""
    seq = await next_value(session, CounterName.ticket(settings.EVENT_YEAR))
    return format_ticket_number(seq)


# ── Resync after a collision ──────────────────────────────────────────────────

def _ticket_prefix(year: Optional[int] = None) -> str:
    return f"{settings.TICKET_PREFIX}{year or settings.EVENT_YEAR}-"


async def _highest_stored(session: AsyncSession, column, prefix: str) -> int:
    """Largest sequence number among stored values of `column` with `prefix`."""
    result = await session.execute(select(column).where(column.like(f"{prefix}%")))
    highest = 0
    for value in result.scalars():
        digits = value[len(prefix):]
        if digits.isdigit():
            highest = max(highest, int(digits))
    return highest


async def advance_counter(session: AsyncSession, name: str, floor: int) -> None:
    """Raise the counter to at least `floor`; never moves it backwards."""
    await session.execute(
        update(Counter)
        .where(Counter.name == name, Counter.value < floor)
        .values(value=floor)
        .execution_options(synchronize_session=False)
    )
    exists = await session.execute(
        select(func.count()).select_from(Counter).where(Counter.name == name)
    )
    if not exists.scalar_one():
        await session.execute(insert(Counter).values(name=name, value=floor))


async def resync_registration_counter(session: AsyncSession) -> None:
    floor = await _highest_stored(session, Team.registration_number, REGISTRATION_PREFIX)
    await advance_counter(session, CounterName.REGISTRATION, floor)


async def resync_ticket_counter(session: AsyncSession) -> None:
    floor = await _highest_stored(session, Team.ticket_number, _ticket_prefix())
    await advance_counter(session, CounterName.ticket(settings.EVENT_YEAR), floor)
