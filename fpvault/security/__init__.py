"""
Security module - Policy constants shared across fpvault.
"""

from fpvault.security.constants import (
    MIN_PASSKEY_LENGTH,
    SPECIAL_CHARS,
    GENERATED_PASSWORD_LENGTH,
    CLIPBOARD_CLEAR_SECONDS,
)

__all__ = [
    "MIN_PASSKEY_LENGTH",
    "SPECIAL_CHARS",
    "GENERATED_PASSWORD_LENGTH",
    "CLIPBOARD_CLEAR_SECONDS",
]
