"""
Unit tests — Input validation (validators.py) and the error taxonomy.

Tests Pydantic v2 models for robustness against malformed user input:
  - TeamRegistrationData: team_name, team_size
  - TransactionData: transaction_id, amount (major → minor units)
  - RejectionData: optional reason

All tests are synchronous; no database session required.
"""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from hackgate.errors import (
    AllocationError,
    DuplicateNameError,
    GatewayTimeoutError,
    NotVerifiedError,
    TeamNotFoundError,
    ValidationFailure,
)
from hackgate.validators import (
    RejectionData,
    TeamRegistrationData,
    TransactionData,
    first_error,
    validation_failure,
)


# ─────────────────────────── TeamRegistrationData ─────────────────────────────

class TestTeamRegistrationDataValid:
    def test_simple_name(self) -> None:
        d = TeamRegistrationData(team_name="Code Crafters", team_size="Duo")
        assert d.team_name == "Code Crafters"
        assert d.team_size == "Duo"

    def test_inner_whitespace_collapsed(self) -> None:
        d = TeamRegistrationData(team_name="  Byte   Me  ", team_size="Solo")
        assert d.team_name == "Byte Me"

    def test_allowed_separators(self) -> None:
        d = TeamRegistrationData(team_name="R&D-Squad_v2.0", team_size="Team")
        assert d.team_name == "R&D-Squad_v2.0"

    def test_minimum_length(self) -> None:
        assert TeamRegistrationData(team_name="abc", team_size="Solo").team_name == "abc"

    def test_maximum_length(self) -> None:
        name = "A" * 50
        assert TeamRegistrationData(team_name=name, team_size="Solo").team_name == name


class TestTeamRegistrationDataInvalid:
    def test_too_short(self) -> None:
        with pytest.raises(ValidationError):
            TeamRegistrationData(team_name="ab", team_size="Solo")

    def test_too_long(self) -> None:
        with pytest.raises(ValidationError):
            TeamRegistrationData(team_name="A" * 51, team_size="Solo")

    def test_emoji_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TeamRegistrationData(team_name="Rocket 🚀", team_size="Solo")

    def test_must_start_with_letter_or_digit(self) -> None:
        with pytest.raises(ValidationError):
            TeamRegistrationData(team_name="-dash", team_size="Solo")

    def test_unknown_size(self) -> None:
        with pytest.raises(ValidationError):
            TeamRegistrationData(team_name="Valid Name", team_size="Squad")


# ─────────────────────────── TransactionData ──────────────────────────────────

class TestTransactionData:
    def test_upper_cased_and_stripped(self) -> None:
        d = TransactionData(transaction_id="  utr123456 ", amount=500)
        assert d.transaction_id == "UTR123456"

    def test_amount_in_minor_units(self) -> None:
        assert TransactionData(transaction_id="UTR123", amount=500).amount_minor == 50000

    def test_fractional_amount(self) -> None:
        assert TransactionData(transaction_id="UTR123", amount=799.99).amount_minor == 79999

    @pytest.mark.parametrize("tid", ["UTR12", "UTR-1234", "utr 12345", "A" * 41, ""])
    def test_bad_transaction_id(self, tid: str) -> None:
        with pytest.raises(ValidationError):
            TransactionData(transaction_id=tid, amount=500)

    @pytest.mark.parametrize("amount", [0, -1, 100_001])
    def test_bad_amount(self, amount: float) -> None:
        with pytest.raises(ValidationError):
            TransactionData(transaction_id="UTR123456", amount=amount)


# ─────────────────────────── RejectionData ────────────────────────────────────

class TestRejectionData:
    def test_none_allowed(self) -> None:
        assert RejectionData(reason=None).reason is None

    def test_blank_becomes_none(self) -> None:
        assert RejectionData(reason="   ").reason is None

    def test_reason_stripped(self) -> None:
        assert RejectionData(reason=" blurry ID ").reason == "blurry ID"

    def test_too_long(self) -> None:
        with pytest.raises(ValidationError):
            RejectionData(reason="x" * 501)


# ─────────────────────────── Error mapping ────────────────────────────────────

class TestErrorMapping:
    def test_first_error_strips_pydantic_prefix(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            TeamRegistrationData(team_name="ab", team_size="Solo")
        assert first_error(exc_info.value) == "Team name must be 3 to 50 characters long"

    def test_validation_failure_wraps_message(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            TransactionData(transaction_id="UTR123", amount=0)
        err = validation_failure(exc_info.value)
        assert isinstance(err, ValidationFailure)
        assert err.category == "validation"
        assert "Amount" in err.message

    @pytest.mark.parametrize(
        "error_cls, category, status_code",
        [
            (DuplicateNameError,  "conflict",     400),
            (NotVerifiedError,    "precondition", 400),
            (TeamNotFoundError,   "precondition", 404),
            (GatewayTimeoutError, "transient",    503),
            (AllocationError,     "fatal",        500),
        ],
    )
    def test_categories(self, error_cls, category: str, status_code: int) -> None:
        err = error_cls()
        assert err.category == category
        assert err.status_code == status_code
        assert err.kind == error_cls.__name__
        assert str(err) == err.message == error_cls.default_message

    def test_custom_message(self) -> None:
        assert TeamNotFoundError("No such team").message == "No such team"
