"""Caller input validation package."""

from powerbill.validation.validator import (
    InputValidationError,
    parse_account_numbers,
    require_name,
)

__all__ = ["InputValidationError", "parse_account_numbers", "require_name"]
