"""
Validation Utilities
====================

Passkey policy and account field validation.
"""

from __future__ import annotations

from fpvault.core.exceptions import PasskeyPolicyError
from fpvault.security.constants import (
    DIGIT_CHARS,
    LOWERCASE_CHARS,
    MAX_PASSKEY_LENGTH,
    MIN_PASSKEY_LENGTH,
    SPECIAL_CHARS,
    UPPERCASE_CHARS,
)

MAX_FIELD_LENGTH = 4096


class ValidationError(ValueError):
    """Raised when validation fails."""
    pass


def passkey_policy_violations(passkey: str) -> list[str]:
    """
    List every way a passkey falls short of the strength policy.

    Returns:
        Human-readable problems; empty if the passkey is acceptable
    """
    errors = []

    if len(passkey) < MIN_PASSKEY_LENGTH:
        errors.append(f"Passkey must be at least {MIN_PASSKEY_LENGTH} characters")

    if len(passkey) > MAX_PASSKEY_LENGTH:
        errors.append(f"Passkey must be at most {MAX_PASSKEY_LENGTH} characters")

    if not any(c in UPPERCASE_CHARS for c in passkey):
        errors.append("Passkey must contain at least one uppercase letter")

    if not any(c in LOWERCASE_CHARS for c in passkey):
        errors.append("Passkey must contain at least one lowercase letter")

    if not any(c in DIGIT_CHARS for c in passkey):
        errors.append("Passkey must contain at least one digit")

    if not any(c in SPECIAL_CHARS for c in passkey):
        errors.append("Passkey must contain at least one special character")

    return errors


def validate_passkey(passkey: str) -> str:
    """
    Enforce the passkey strength policy.

    Raises:
        PasskeyPolicyError: If the passkey is too weak
    """
    errors = passkey_policy_violations(passkey)
    if errors:
        raise PasskeyPolicyError("; ".join(errors))
    return passkey


def validate_string_safe(
    value: str,
    min_length: int = 0,
    max_length: int = MAX_FIELD_LENGTH,
    allow_empty: bool = False,
    field_name: str = "value",
) -> str:
    """
    Validate a string value for safety.

    Args:
        value: The string to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length
        allow_empty: If False, empty strings are rejected
        field_name: Name of the field for error messages

    Returns:
        Validated string

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")

    if not allow_empty and not value:
        raise ValidationError(f"{field_name} cannot be empty")

    if len(value) < min_length:
        raise ValidationError(
            f"{field_name} must be at least {min_length} characters"
        )

    if len(value) > max_length:
        raise ValidationError(
            f"{field_name} must be at most {max_length} characters"
        )

    # Null bytes break terminal display and clipboard handling
    if "\x00" in value:
        raise ValidationError(f"{field_name} contains invalid characters")

    return value
