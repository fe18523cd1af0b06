"""Profile fields the flow can collect after login."""

import re
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional

BIRTHDAY_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


class FieldValidationError(str, Enum):
    MISSING = "missing"
    LESS_THAN_THREE = "less_than_three"
    DATE_INVALID = "date_invalid"


def parse_birthday(value: str) -> Optional[date]:
    match = BIRTHDAY_PATTERN.match(value)
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


class SupportedRequiredField(str, Enum):
    GIVEN_NAME = "given_name"
    FAMILY_NAME = "family_name"
    BIRTHDAY = "birthday"

    @classmethod
    def from_required(cls, fields: Iterable[str]) -> List["SupportedRequiredField"]:
        supported = {f.value for f in cls}
        return [cls(name) for name in fields if name in supported]

    def format(self, old_value: str, new_value: str) -> str:
        if self != SupportedRequiredField.BIRTHDAY:
            return new_value

        # Backspace over an auto-inserted dash also removes the digit before it.
        if len(new_value) == len(old_value) - 1 and old_value.endswith("-"):
            return new_value[:-1]

        digits = re.sub(r"[^0-9]", "", new_value)
        if len(digits) < 4:
            return digits
        formatted = digits[:4] + "-" + digits[4:]
        if len(formatted) < 7:
            return formatted
        formatted = formatted[:7] + "-" + formatted[7:]
        return formatted[:10]

    def validate(self, value: str) -> Optional[FieldValidationError]:
        if not value:
            return FieldValidationError.MISSING
        if self == SupportedRequiredField.BIRTHDAY:
            if parse_birthday(value) is None:
                return FieldValidationError.DATE_INVALID
        elif len(value) < 3:
            return FieldValidationError.LESS_THAN_THREE
        return None

    @property
    def allows_cursor_motion(self) -> bool:
        return self != SupportedRequiredField.BIRTHDAY
