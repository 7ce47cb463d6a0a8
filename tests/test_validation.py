from datetime import date, timedelta

import pytest

from taskdesk.domain.errors import ValidationError
from taskdesk.domain.validation import normalize_email, validate_password, validate_profile

TODAY = date(2025, 3, 1)


class TestPasswordRules:
    @pytest.mark.parametrize("password", ["", "short", "1234567"])
    def test_too_short(self, password):
        with pytest.raises(ValidationError) as exc_info:
            validate_password(password)
        assert "password" in exc_info.value.errors

    def test_minimum_length_is_accepted(self):
        assert validate_password("12345678") == "12345678"

    def test_more_than_72_bytes_is_rejected(self):
        with pytest.raises(ValidationError):
            validate_password("x" * 73)

    def test_error_is_reported_under_given_field(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_password("short", field="new_password")
        assert list(exc_info.value.errors) == ["new_password"]


class TestProfileRules:
    def test_values_are_trimmed(self):
        cleaned = validate_profile({"first_name": "  Alice ", "department": " Ops "}, TODAY)
        assert cleaned == {"first_name": "Alice", "department": "Ops"}

    def test_each_bad_field_is_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_profile(
                {
                    "first_name": "a" * 51,
                    "position": "p" * 101,
                    "phone": "not-a-phone",
                    "date_of_birth": TODAY,
                    "hire_date": TODAY + timedelta(days=1),
                },
                TODAY,
            )
        assert set(exc_info.value.errors) == {
            "first_name",
            "position",
            "phone",
            "date_of_birth",
            "hire_date",
        }

    def test_hire_date_today_is_allowed(self):
        assert validate_profile({"hire_date": TODAY}, TODAY) == {"hire_date": TODAY}

    def test_international_phone_is_allowed(self):
        assert validate_profile({"phone": "+15551234567"}, TODAY)["phone"] == "+15551234567"


def test_normalize_email():
    assert normalize_email("  Alice@Example.COM ") == "alice@example.com"
