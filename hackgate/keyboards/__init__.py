from hackgate.keyboards.callbacks import (
    MainMenuCb,
    TierCb,
    AdminPanelCb,
    TeamListCb,
    TeamCb,
    CheckInCb,
)
from hackgate.keyboards.main_menu import participant_main_menu, admin_main_menu, back_to_main
from hackgate.keyboards.registration_kb import tier_kb, cancel_kb, confirm_registration_kb
from hackgate.keyboards.admin_kb import (
    team_list_kb,
    team_detail_admin_kb,
    checkin_cancel_kb,
    reject_reason_kb,
    PAGE_SIZE,
)

__all__ = [
    # callbacks
    "MainMenuCb", "TierCb", "AdminPanelCb", "TeamListCb", "TeamCb", "CheckInCb",
    # main menu
    "participant_main_menu", "admin_main_menu", "back_to_main",
    # registration
    "tier_kb", "cancel_kb", "confirm_registration_kb",
    # admin
    "team_list_kb", "team_detail_admin_kb",
    "checkin_cancel_kb", "reject_reason_kb", "PAGE_SIZE",
]
