"""
Security Constants
==================

Defines security-related constants used throughout the application.
These values follow security best practices and should not be modified
without careful security review.
"""

import string
from typing import Final

# Passkey Requirements
MIN_PASSKEY_LENGTH: Final[int] = 15
MAX_PASSKEY_LENGTH: Final[int] = 1024

# Character classes for the passkey policy and the password generator
LOWERCASE_CHARS: Final[str] = string.ascii_lowercase
UPPERCASE_CHARS: Final[str] = string.ascii_uppercase
DIGIT_CHARS: Final[str] = string.digits
SPECIAL_CHARS: Final[str] = "!@#$%^&*()-_=+[]{}|;:,.<>?/"

# Password Generation
GENERATED_PASSWORD_LENGTH: Final[int] = 20

# Clipboard
CLIPBOARD_CLEAR_SECONDS: Final[int] = 30

# Database file
DATABASE_SUFFIX: Final[str] = ".fp"
DATABASE_FILE_MODE: Final[int] = 0o600
