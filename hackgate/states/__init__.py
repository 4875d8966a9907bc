from hackgate.states.registration_states import RegistrationStates, PaymentStates
from hackgate.states.admin_states import AdminReviewStates, AdminCheckInStates

__all__ = [
    "RegistrationStates", "PaymentStates",
    "AdminReviewStates", "AdminCheckInStates",
]
