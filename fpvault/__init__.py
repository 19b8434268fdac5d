"""
fpvault - Encrypted Local Credential Store
==========================================

A single-user password database kept in one encrypted ``.fp`` file.

Security Notice:
- The passkey is never stored; the key is derived with Argon2id
- Records are sealed with AES-256-GCM and written atomically
- No secrets are logged
- Fail-closed: every unlock failure looks the same
"""

from fpvault.core.config import VaultConfig
from fpvault.core.exceptions import VaultError
from fpvault.core.logging import configure_logging
from fpvault.db import AccountRecord, Database

__version__ = "0.1.0"
__author__ = "fpvault Team"

__all__ = [
    "AccountRecord",
    "Database",
    "VaultConfig",
    "VaultError",
    "configure_logging",
    "__version__",
]
