"""
Password Generation
===================

Random account passwords with guaranteed character-class coverage.
"""

from __future__ import annotations

import secrets

from fpvault.security.constants import (
    DIGIT_CHARS,
    GENERATED_PASSWORD_LENGTH,
    LOWERCASE_CHARS,
    SPECIAL_CHARS,
    UPPERCASE_CHARS,
)

_CHARACTER_CLASSES = (SPECIAL_CHARS, LOWERCASE_CHARS, UPPERCASE_CHARS, DIGIT_CHARS)
_ALL_CHARS = "".join(_CHARACTER_CLASSES)


def generate_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    """
    Generate a random password.

    One character is drawn from each class (special, lowercase,
    uppercase, digit), the rest from their union, and the result is
    shuffled with the OS CSPRNG.

    Args:
        length: Password length; must cover every character class

    Raises:
        ValueError: If length is shorter than the number of classes
    """
    if length < len(_CHARACTER_CLASSES):
        raise ValueError(f"Password length must be at least {len(_CHARACTER_CLASSES)}")

    chars = [secrets.choice(charset) for charset in _CHARACTER_CLASSES]
    chars.extend(secrets.choice(_ALL_CHARS) for _ in range(length - len(chars)))
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)
