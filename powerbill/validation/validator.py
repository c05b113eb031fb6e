"""
Caller Input Validation

Small checks the store applies to raw caller input before it touches the
data tree. These never correct input silently beyond trimming whitespace;
anything else is reported as an InputValidationError.
"""

import re
from typing import Iterable, Union


# Entries may themselves hold several numbers separated by commas or newlines.
_ACCOUNT_SEPARATORS = re.compile(r"[\n\r,]+")


class InputValidationError(ValueError):
    """Caller input that the store refuses to apply."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


def parse_account_numbers(entries: Union[str, Iterable[str]]) -> list[str]:
    """
    Split, trim and drop empty account numbers, keeping input order.

    Duplicates are kept.

    Examples:
        parse_account_numbers("1001, 1002\\n1003") -> ["1001", "1002", "1003"]
        parse_account_numbers(["1001", "1002,1003", "  "]) -> ["1001", "1002", "1003"]
    """
    if isinstance(entries, str):
        entries = [entries]

    numbers = []
    for entry in entries:
        if not isinstance(entry, str):
            raise InputValidationError(
                "account_numbers",
                f"Account numbers must be text, got {type(entry).__name__}",
            )
        for part in _ACCOUNT_SEPARATORS.split(entry):
            part = part.strip()
            if part:
                numbers.append(part)
    return numbers


def require_name(value: str, field: str = "name") -> str:
    """Return the trimmed value, or fail if nothing is left."""
    if not isinstance(value, str) or not value.strip():
        raise InputValidationError(field, f"{field.replace('_', ' ').capitalize()} must not be blank")
    return value.strip()
