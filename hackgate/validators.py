"""
Input validation — Pydantic v2 models.

Used to validate user-supplied text before any service touches the
database. Keeps validation logic out of handler code and makes it
trivially testable.
"""
from __future__ import annotations

import re
from typing import Literal, Optional

from pydantic import BaseModel, ValidationError, field_validator

from hackgate.errors import ValidationFailure

# Letters, digits, spaces and a few separators; must start with a letter or digit
_TEAM_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9 _\-\.&']*$")

# Bank UTR / UPI reference: 6–40 alphanumerics
_TRANSACTION_RE = re.compile(r"^[A-Za-z0-9]{6,40}$")


class TeamRegistrationData(BaseModel):
    """
    Team registration payload.

    Attributes
    ----------
    team_name : 3–50 chars, letters / digits / spaces / - _ . & '
    team_size : "Solo", "Duo" or "Team"
    """

    team_name: str
    team_size: Literal["Solo", "Duo", "Team"]

    @field_validator("team_name")
    @classmethod
    def validate_team_name(cls, v: str) -> str:
        v = " ".join(v.split())
        if len(v) < 3 or len(v) > 50:
            raise ValueError("Team name must be 3 to 50 characters long")
        if not _TEAM_NAME_RE.match(v):
            raise ValueError(
                "Team name may only contain letters, digits, spaces and - _ . & '"
            )
        return v


class TransactionData(BaseModel):
    """
    Manually reported payment.

    Attributes
    ----------
    transaction_id : bank / UPI reference as printed on the receipt
    amount         : amount paid in major currency units (rupees)
    """

    transaction_id: str
    amount: float

    @field_validator("transaction_id")
    @classmethod
    def validate_transaction_id(cls, v: str) -> str:
        v = v.strip()
        if not _TRANSACTION_RE.match(v):
            raise ValueError("Transaction ID must be 6–40 letters or digits")
        return v.upper()

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: float) -> float:
        if v <= 0 or v > 100_000:
            raise ValueError("Amount must be between 0 and 100000")
        return round(v, 2)

    @property
    def amount_minor(self) -> int:
        return int(round(self.amount * 100))


class RejectionData(BaseModel):
    """Optional free-text reason an admin gives when rejecting a team."""

    reason: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if len(v) > 500:
            raise ValueError("Reason must be at most 500 characters")
        return v or None


def first_error(exc: ValidationError) -> str:
    """Human-readable message of the first validation error."""
    err = exc.errors()[0]
    msg = err.get("msg", "Invalid input")
    return msg.removeprefix("Value error, ")


def validation_failure(exc: ValidationError) -> ValidationFailure:
    return ValidationFailure(first_error(exc))
