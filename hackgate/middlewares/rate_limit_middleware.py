"""
Per-user flood control.

Sliding window of RATE_LIMIT updates per RATE_PERIOD seconds. Admins are not
limited: a volunteer at the check-in desk scans one ticket after another.
"""
from __future__ import annotations

import logging
import time
from collections import defaultdict, deque
from typing import Any, Awaitable, Callable, Deque, Dict, Optional

from aiogram import BaseMiddleware
from aiogram.exceptions import TelegramAPIError
from aiogram.types import TelegramObject

from hackgate.config import settings

logger = logging.getLogger(__name__)

THROTTLED = "⏳ Too many requests. Please wait a moment and try again."


class RateLimitMiddleware(BaseMiddleware):
    def __init__(self, rate: Optional[int] = None, period: Optional[float] = None) -> None:
        self._rate   = rate or settings.RATE_LIMIT
        self._period = period or settings.RATE_PERIOD
        # user_id → timestamps, most recent first
        self._history: Dict[int, Deque[float]] = defaultdict(deque)

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        user = data.get("event_from_user")
        if user is None or data.get("is_admin"):
            return await handler(event, data)

        now = time.monotonic()
        window = self._history[user.id]
        while window and now - window[-1] > self._period:
            window.pop()

        if len(window) >= self._rate:
            logger.info("Throttled user %d (%d updates in window)", user.id, len(window))
            await self._throttle_response(data)
            return None

        window.appendleft(now)
        return await handler(event, data)

    async def _throttle_response(self, data: Dict[str, Any]) -> None:
        update = data.get("event_update")
        if update is None:
            return
        try:
            if update.callback_query:
                await update.callback_query.answer(THROTTLED, show_alert=True)
            elif update.message:
                await update.message.answer(THROTTLED)
        except TelegramAPIError as exc:
            logger.warning("Could not deliver throttle notice: %s", exc)
