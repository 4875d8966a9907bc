from aiogram.fsm.state import State, StatesGroup


class RegistrationStates(StatesGroup):
    """FSM for team self-registration."""
    enter_team_name = State()   # Text input: team name
    choose_tier     = State()   # Inline: Solo / Duo / Team
    confirm         = State()   # Show summary → confirm or edit


class PaymentStates(StatesGroup):
    """FSM for payment proof and document upload."""
    enter_transaction   = State()   # Text: "<transaction id> <amount>"
    enter_gateway_proof = State()   # Text: "<payment id> <signature>"
    upload_payment_shot = State()   # Photo: payment screenshot
    upload_id_card      = State()   # Photo: student / government ID
