"""
Admin authorization.

AdminMiddleware attaches `is_admin: bool` to handler data for all updates;
IsAdmin turns that flag into the filter of the parent admin router that
wraps the panel, the check-in desk and the dashboard.
"""
from typing import Any, Awaitable, Callable, Dict, Union

from aiogram import BaseMiddleware
from aiogram.filters import BaseFilter
from aiogram.types import CallbackQuery, Message, TelegramObject

from hackgate.config import settings

ACCESS_DENIED = "⛔️ Admins only."


class AdminMiddleware(BaseMiddleware):
    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        user = data.get("event_from_user")
        data["is_admin"] = bool(user and user.id in settings.admin_ids_list)
        return await handler(event, data)


class IsAdmin(BaseFilter):
    """
    Restrict a router or handler to configured ADMIN_IDS.

    Plain messages from non-admins pass through silently so the next router
    can still handle them; only commands get the denial reply.
    """

    async def __call__(
        self,
        event: Union[Message, CallbackQuery],
        is_admin: bool = False,
    ) -> bool:
        if not is_admin:
            if isinstance(event, Message) and (event.text or "").startswith("/"):
                await event.answer(ACCESS_DENIED)
            elif isinstance(event, CallbackQuery):
                await event.answer(ACCESS_DENIED, show_alert=True)
        return is_admin
