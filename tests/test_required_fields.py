from datetime import date

from use_cases.required_fields import FieldValidationError, SupportedRequiredField, parse_birthday

BIRTHDAY = SupportedRequiredField.BIRTHDAY
GIVEN_NAME = SupportedRequiredField.GIVEN_NAME


def test_from_required_drops_unsupported_fields():
    fields = SupportedRequiredField.from_required(["family_name", "nickname", "birthday"])
    assert fields == [SupportedRequiredField.FAMILY_NAME, BIRTHDAY]


def test_birthday_format_inserts_dashes():
    assert BIRTHDAY.format("", "199") == "199"
    assert BIRTHDAY.format("", "1990") == "1990-"
    assert BIRTHDAY.format("1990-", "1990-05") == "1990-05-"
    assert BIRTHDAY.format("", "19900517") == "1990-05-17"
    assert BIRTHDAY.format("", "1990-05-17999") == "1990-05-17"


def test_birthday_backspace_over_dash_removes_digit():
    assert BIRTHDAY.format("1990-", "1990") == "199"


def test_names_are_not_formatted():
    assert GIVEN_NAME.format("", " Al ice") == " Al ice"


def test_validation():
    assert GIVEN_NAME.validate("") == FieldValidationError.MISSING
    assert GIVEN_NAME.validate("Al") == FieldValidationError.LESS_THAN_THREE
    assert GIVEN_NAME.validate("Alice") is None
    assert BIRTHDAY.validate("1990-02-30") == FieldValidationError.DATE_INVALID
    assert BIRTHDAY.validate("1990-02-28") is None


def test_parse_birthday():
    assert parse_birthday("2000-01-31") == date(2000, 1, 31)
    assert parse_birthday("31.01.2000") is None


def test_cursor_motion():
    assert GIVEN_NAME.allows_cursor_motion
    assert not BIRTHDAY.allows_cursor_motion
