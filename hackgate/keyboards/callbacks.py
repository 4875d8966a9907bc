"""
Centralized CallbackData factories.
Telegram limits callback_data to 64 bytes — all prefixes are kept short.
"""
from aiogram.filters.callback_data import CallbackData


class MainMenuCb(CallbackData, prefix="mm"):
    action: str           # main | register | my_team | pay | pay_online | documents | ticket


class TierCb(CallbackData, prefix="tier"):
    size: str             # TeamSize.*


class AdminPanelCb(CallbackData, prefix="adm"):
    action: str           # teams | stats | checkin | checked_in | back


class TeamListCb(CallbackData, prefix="tl"):
    status: str = ""      # PaymentStatus.* or "" for all
    page: int = 0


class TeamCb(CallbackData, prefix="team"):
    action: str           # view | verify | reject | reject_default | pending | undo | history
    tid: int = 0          # team id


class CheckInCb(CallbackData, prefix="chk"):
    action: str           # cancel
