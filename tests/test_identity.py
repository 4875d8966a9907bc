"""
Integration tests — identity allocator (identity_service.py).

Coverage:
  - number formatting
  - counter bootstrap and monotonic increments
  - independent sequences per counter name
  - no duplicates under concurrent allocation from several sessions
  - counter resync with the numbers already stored
"""
from __future__ import annotations

import asyncio

from sqlalchemy import delete, select

from conftest import make_team
from hackgate.models import Counter, CounterName
from hackgate.services import (
    advance_counter,
    format_registration_number,
    format_ticket_number,
    next_registration_number,
    next_ticket_number,
    next_value,
    resync_registration_counter,
)


class TestFormatting:
    def test_registration_number_padding(self) -> None:
        assert format_registration_number(1) == "TEAM0001"
        assert format_registration_number(42) == "TEAM0042"

    def test_registration_number_overflows_padding(self) -> None:
        assert format_registration_number(12345) == "TEAM12345"

    def test_ticket_number_uses_event_year(self) -> None:
        assert format_ticket_number(1) == "HACK2025-001"

    def test_ticket_number_explicit_year(self) -> None:
        assert format_ticket_number(17, year=2026) == "HACK2026-017"


class TestCounters:
    async def test_first_value_is_one(self, async_session) -> None:
        assert await next_value(async_session, "demo") == 1

    async def test_values_increase(self, async_session) -> None:
        values = [await next_value(async_session, "demo") for _ in range(5)]
        assert values == [1, 2, 3, 4, 5]

    async def test_sequences_are_independent(self, async_session) -> None:
        assert await next_registration_number(async_session) == "TEAM0001"
        assert await next_registration_number(async_session) == "TEAM0002"
        assert await next_ticket_number(async_session) == "HACK2025-001"

    async def test_ticket_counter_is_per_year(self, async_session) -> None:
        await next_ticket_number(async_session)
        rows = (await async_session.execute(select(Counter.name))).scalars().all()
        assert CounterName.ticket(2025) in rows

    async def test_value_survives_commit(self, async_session) -> None:
        await next_value(async_session, "demo")
        await async_session.commit()
        assert await next_value(async_session, "demo") == 2


class TestConcurrentAllocation:
    async def test_no_duplicates_across_sessions(self, session_factory) -> None:
        # Bootstrap the row so every caller takes the UPDATE path
        async with session_factory() as s:
            await next_registration_number(s)
            await s.commit()

        async def allocate() -> str:
            async with session_factory() as s:
                number = await next_registration_number(s)
                await s.commit()
                return number

        numbers = await asyncio.gather(*[allocate() for _ in range(10)])
        assert len(set(numbers)) == 10
        assert sorted(numbers) == [format_registration_number(i) for i in range(2, 12)]


class TestResync:
    async def test_advance_never_moves_backwards(self, async_session) -> None:
        for _ in range(5):
            await next_value(async_session, "demo")
        await advance_counter(async_session, "demo", 2)
        assert await next_value(async_session, "demo") == 6

    async def test_advance_raises_counter(self, async_session) -> None:
        await next_value(async_session, "demo")
        await advance_counter(async_session, "demo", 7)
        assert await next_value(async_session, "demo") == 8

    async def test_advance_creates_missing_counter(self, async_session) -> None:
        await advance_counter(async_session, "demo", 3)
        assert await next_value(async_session, "demo") == 4

    async def test_registration_counter_catches_up(self, async_session) -> None:
        await make_team(async_session)
        await async_session.commit()
        await async_session.execute(delete(Counter).where(Counter.name == CounterName.REGISTRATION))

        await resync_registration_counter(async_session)
        assert await next_registration_number(async_session) == "TEAM0002"
