from aiogram.fsm.state import State, StatesGroup


class AdminReviewStates(StatesGroup):
    """FSM for rejecting a team with a custom reason."""
    enter_reject_reason = State()


class AdminCheckInStates(StatesGroup):
    """Check-in desk: the admin sends decoded QR payloads or registration numbers."""
    waiting_ticket = State()
