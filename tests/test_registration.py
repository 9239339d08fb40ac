import pytest

from tracker.ui.registration_modal import validate_registration
from tracker.utils.exceptions import RegistrationValidationError


def test_values_are_normalized():
    values = validate_registration(" Alice Kumar ", " 23211a 6701 ", "ai&ml", "b", " alice_lc ")

    assert values == {
        "name": "Alice Kumar",
        "roll_number": "23211A6701",
        "branch": "AI&ML",
        "section": "B",
        "leetcode_username": "alice_lc",
    }


@pytest.mark.parametrize("field", range(5))
def test_every_field_is_required(field):
    raw = ["Alice", "23211A6701", "CSE", "A", "alice_lc"]
    raw[field] = "   "

    with pytest.raises(RegistrationValidationError):
        validate_registration(*raw)


def test_unknown_branch_or_section_is_rejected():
    with pytest.raises(RegistrationValidationError) as exc_info:
        validate_registration("Alice", "R1", "MECH", "A", "alice_lc")
    assert "CSD, CSE, AI&DS, AI&ML, CS&BS, IT" in exc_info.value.user_message

    with pytest.raises(RegistrationValidationError):
        validate_registration("Alice", "R1", "CSE", "E", "alice_lc")
