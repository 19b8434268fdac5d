"""
Error Taxonomy
==============

Every failure the vault core can report to its caller.

All errors derive from VaultError so a shell can catch the whole family
in one place. None of them are fatal to the process and none are retried
by the core; retry (e.g. "re-enter passkey") is the caller's decision.

Security Notes:
- OpenError deliberately does not say which check failed
- Messages never include passkeys, keys, or plaintext
"""

from __future__ import annotations


class VaultError(Exception):
    """Base class for all vault errors."""
    pass


class PasskeyPolicyError(VaultError, ValueError):
    """Raised when a new passkey does not meet the strength policy."""
    pass


class OpenError(VaultError):
    """
    Raised when a database cannot be unlocked.

    Covers wrong passkey, tampered or truncated file, and foreign files
    alike. The cause is chained for debugging but never shown to users.
    """

    def __init__(self, message: str = "Invalid passkey or corrupted database") -> None:
        super().__init__(message)


class DatabaseIOError(VaultError, OSError):
    """Raised on file system failures (not found, permission, disk full)."""
    pass


class FormatError(VaultError, ValueError):
    """Raised when a container or plaintext payload is structurally invalid."""
    pass


class AccountNotFoundError(VaultError, KeyError):
    """Raised when an operation references an absent account id."""

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return self.args[0]


class DuplicateAccountError(VaultError, ValueError):
    """Raised when inserting an account whose id is already present."""
    pass


class KeyDerivationError(VaultError):
    """Raised when Argon2id key derivation fails or is misconfigured."""
    pass


class IntegrityError(VaultError):
    """
    Raised when AEAD verification fails.

    This indicates tampering, corruption, or a wrong key.
    """
    pass


class SessionClosedError(VaultError):
    """Raised when an operation is attempted on a closed database."""
    pass


class ClipboardError(VaultError):
    """Raised when the system clipboard cannot be used."""
    pass
