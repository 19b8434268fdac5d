"""
Utils module - Utility functions and helpers.

This module contains utility functions used throughout fpvault.
"""

from fpvault.utils.passwords import generate_password
from fpvault.utils.validators import (
    ValidationError,
    validate_passkey,
    validate_string_safe,
)

__all__ = [
    "generate_password",
    "ValidationError",
    "validate_passkey",
    "validate_string_safe",
]
