from __future__ import annotations

import re
from typing import NamedTuple

_USERNAME_RE = re.compile(r"^[a-zA-Z0-9]+$")
_GMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@gmail\.com$")
_CAPITAL_RE = re.compile(r"[A-Z]")
_DIGIT_RE = re.compile(r"[0-9]")
_SYMBOL_RE = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>/?]""")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 8


class ValidationResult(NamedTuple):
    is_valid: bool
    error: str = ""


_OK = ValidationResult(True)


def validate_username(username: str | None) -> ValidationResult:
    if not username or not username.strip():
        return ValidationResult(False, "Username is required.")
    if len(username) < USERNAME_MIN_LENGTH:
        return ValidationResult(False, "Username must be at least 3 characters long.")
    if len(username) > USERNAME_MAX_LENGTH:
        return ValidationResult(False, "Username must be less than 20 characters.")
    if not _USERNAME_RE.match(username):
        return ValidationResult(
            False, "Username can only contain letters and numbers (no symbols)."
        )
    return _OK


def validate_email(email: str | None) -> ValidationResult:
    if not email or not email.strip():
        return ValidationResult(False, "Email is required.")
    if not email.lower().endswith("@gmail.com"):
        return ValidationResult(False, "Email must end with @gmail.com.")
    if not _GMAIL_RE.match(email):
        return ValidationResult(
            False, "Please enter a valid Gmail address (e.g., username@gmail.com)."
        )
    return _OK


def validate_password(password: str | None) -> ValidationResult:
    if not password or not password.strip():
        return ValidationResult(False, "Password is required.")
    if len(password) < PASSWORD_MIN_LENGTH:
        return ValidationResult(False, "Password must be at least 8 characters long.")
    if not _CAPITAL_RE.search(password):
        return ValidationResult(False, "Password must contain at least one capital letter (A-Z).")
    if not _DIGIT_RE.search(password):
        return ValidationResult(False, "Password must contain at least one number (0-9).")
    if not _SYMBOL_RE.search(password):
        return ValidationResult(False, "Password must contain at least one symbol (!@#$%^&* etc).")
    return _OK


def validate_registration(
    username: str | None,
    email: str | None,
    password: str | None,
    confirm_password: str | None,
) -> ValidationResult:
    """Run every registration rule and return the first failure."""

    for result in (
        validate_username(username),
        validate_email(email),
        validate_password(password),
    ):
        if not result.is_valid:
            return result
    if password != confirm_password:
        return ValidationResult(False, "Passwords do not match.")
    return _OK


__all__ = [
    "ValidationResult",
    "validate_email",
    "validate_password",
    "validate_registration",
    "validate_username",
]
