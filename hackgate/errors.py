"""
Error taxonomy for the admission lifecycle.

Every error raised by the service layer derives from AdmissionError and
belongs to exactly one category:

  Validation    — bad input shape, rejected before touching state
  Precondition  — business rule not met, surfaced verbatim, no retry
  Conflict      — uniqueness violation
  Transient     — external dependency timed out / unavailable, safe to retry
  Fatal         — allocator exhausted, persistence corruption

`status_code` is what an HTTP adapter would answer with; `kind` is the
machine-readable error name placed in a response body.
"""
from __future__ import annotations


class AdmissionError(Exception):
    category = "fatal"
    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def kind(self) -> str:
        return type(self).__name__


# ── Categories ────────────────────────────────────────────────────────────────

class ValidationFailure(AdmissionError):
    category = "validation"
    status_code = 400
    default_message = "Invalid input"


class PreconditionFailed(AdmissionError):
    category = "precondition"
    status_code = 400
    default_message = "Operation not allowed in the current state"


class ConflictError(AdmissionError):
    category = "conflict"
    status_code = 400
    default_message = "Conflicting state"


class TransientError(AdmissionError):
    category = "transient"
    status_code = 503
    default_message = "Temporary failure, try again"


class FatalError(AdmissionError):
    category = "fatal"
    status_code = 500
    default_message = "Internal error"


# ── Validation ────────────────────────────────────────────────────────────────

class InvalidTierError(ValidationFailure):
    default_message = "Team size must be one of Solo, Duo, Team"


class TeamSizeError(ValidationFailure):
    default_message = "Too many members for the selected team size"


# ── Not found ─────────────────────────────────────────────────────────────────

class TeamNotFoundError(PreconditionFailed):
    status_code = 404
    default_message = "Team not found"


# ── Conflict ──────────────────────────────────────────────────────────────────

class DuplicateNameError(ConflictError):
    default_message = "Team name already exists. Please choose a different name."


class AlreadyRegisteredError(ConflictError):
    default_message = "User is already registered in a team"


class ConcurrentUpdateError(ConflictError):
    default_message = "Team was modified concurrently, please retry"


# ── Precondition ──────────────────────────────────────────────────────────────

class AlreadyVerifiedError(PreconditionFailed):
    default_message = "Payment already verified for this team"


class GatewayRejectedError(PreconditionFailed):
    default_message = "Payment gateway rejected the request"


class OrderMismatchError(PreconditionFailed):
    default_message = "Order does not belong to this team"


class SignatureMismatchError(PreconditionFailed):
    default_message = "Payment verification failed - invalid signature"


class PaymentNotCapturedError(PreconditionFailed):
    default_message = "Payment not successful"


class PaymentNotStartedError(PreconditionFailed):
    default_message = "Please complete payment and save the transaction ID first"


class DocumentsMissingError(PreconditionFailed):
    default_message = "Cannot verify team. Payment screenshot and ID card not uploaded yet."


class PaymentMissingError(PreconditionFailed):
    default_message = "Cannot verify team. Payment not completed yet."


class NotVerifiedError(PreconditionFailed):
    default_message = "Team payment not verified. Cannot check-in."


class NotCheckedInError(PreconditionFailed):
    default_message = "Team is not checked in"


class TeamCheckedInError(PreconditionFailed):
    default_message = "Team is checked in. Undo the check-in first."


# ── Transient ─────────────────────────────────────────────────────────────────

class GatewayTimeoutError(TransientError):
    default_message = "Payment gateway timed out"


class GatewayUnavailableError(TransientError):
    default_message = "Payment gateway unavailable"


class GatewayNotConfiguredError(TransientError):
    default_message = "Payment gateway is not configured"


# ── Fatal ─────────────────────────────────────────────────────────────────────

class AllocationError(FatalError):
    default_message = "Could not allocate a unique number"
