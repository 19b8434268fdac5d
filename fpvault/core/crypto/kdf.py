"""
Key Derivation Functions
========================

Turns a passkey plus a stored salt into the 256-bit database key.

Implements:
    - Argon2id (argon2-cffi) for memory-hard passkey stretching
    - DerivedKey, a zeroizing container for the result

Determinism is required: the same (passkey, salt, parameters) always
yields the same key, otherwise a database could never be reopened.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Final

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw

from fpvault.core.exceptions import KeyDerivationError
from fpvault.core.memory import SecureBuffer, ZeroizeContext

# Argon2id parameters (OWASP recommended)
ARGON2_TIME_COST: Final[int] = 3
ARGON2_MEMORY_COST: Final[int] = 65536  # 64 MB
ARGON2_PARALLELISM: Final[int] = 4

KEY_LENGTH: Final[int] = 32  # 256 bits for AES-256
SALT_LENGTH: Final[int] = 16  # 128 bits

# Bounds accepted from configuration and from file headers.
# The header is read before it can be authenticated, so the upper bounds
# cap what a corrupted file can make open() spend.
MIN_TIME_COST: Final[int] = 1
MAX_TIME_COST: Final[int] = 10
MIN_MEMORY_COST: Final[int] = 8192  # 8 MB
MAX_MEMORY_COST: Final[int] = 1024 * 1024  # 1 GB
MIN_PARALLELISM: Final[int] = 1
MAX_PARALLELISM: Final[int] = 16


@dataclass(frozen=True, slots=True)
class KdfParameters:
    """
    Argon2id cost parameters.

    Attributes:
        time_cost: Number of iterations
        memory_cost: Memory usage in KiB
        parallelism: Degree of parallelism (lanes)
    """

    time_cost: int = ARGON2_TIME_COST
    memory_cost: int = ARGON2_MEMORY_COST
    parallelism: int = ARGON2_PARALLELISM

    def validate(self) -> None:
        """
        Check parameters against the accepted bounds.

        Raises:
            KeyDerivationError: If any parameter is out of range
        """
        if not MIN_TIME_COST <= self.time_cost <= MAX_TIME_COST:
            raise KeyDerivationError(
                f"time_cost must be between {MIN_TIME_COST} and {MAX_TIME_COST}"
            )
        if not MIN_MEMORY_COST <= self.memory_cost <= MAX_MEMORY_COST:
            raise KeyDerivationError(
                f"memory_cost must be between {MIN_MEMORY_COST} and {MAX_MEMORY_COST} KiB"
            )
        if not MIN_PARALLELISM <= self.parallelism <= MAX_PARALLELISM:
            raise KeyDerivationError(
                f"parallelism must be between {MIN_PARALLELISM} and {MAX_PARALLELISM}"
            )
        if self.memory_cost < 8 * self.parallelism:
            raise KeyDerivationError("memory_cost must be at least 8 KiB per lane")

    def is_valid(self) -> bool:
        try:
            self.validate()
        except KeyDerivationError:
            return False
        return True


DEFAULT_KDF_PARAMETERS: Final[KdfParameters] = KdfParameters()


class DerivedKey(SecureBuffer):
    """
    The 32-byte symmetric key of an open database.

    Never serialized. Zeroed by wipe(), on context exit, on garbage
    collection, and at interpreter exit.
    """

    __slots__ = ()

    def __init__(self, lock_memory: bool = True) -> None:
        super().__init__(KEY_LENGTH, lock_memory=lock_memory)


def generate_salt() -> bytes:
    """Generate a random salt for a new database."""
    return secrets.token_bytes(SALT_LENGTH)


def derive_key(
    passkey: str,
    salt: bytes,
    params: KdfParameters = DEFAULT_KDF_PARAMETERS,
) -> DerivedKey:
    """
    Derive the database key from a passkey using Argon2id.

    Args:
        passkey: User passkey
        salt: Random salt stored in the database header (at least 16 bytes)
        params: Argon2id cost parameters

    Returns:
        DerivedKey holding the 32-byte key; caller must wipe() it

    Raises:
        KeyDerivationError: If inputs or parameters are invalid, or the
            computation fails (e.g. cannot allocate memory)

    Limitations:
        argon2-cffi only accepts and returns immutable bytes, so one copy
        of the encoded passkey and one of the raw key outlive this call
        until garbage collection. Zeroing the bytearray and the DerivedKey
        is best-effort, not guaranteed.
    """
    if not passkey:
        raise KeyDerivationError("Passkey cannot be empty")
    if len(salt) < SALT_LENGTH:
        raise KeyDerivationError(f"Salt must be at least {SALT_LENGTH} bytes")
    params.validate()

    secret = bytearray(passkey.encode("utf-8"))
    with ZeroizeContext(secret):
        try:
            raw = hash_secret_raw(
                secret=bytes(secret),
                salt=bytes(salt),
                time_cost=params.time_cost,
                memory_cost=params.memory_cost,
                parallelism=params.parallelism,
                hash_len=KEY_LENGTH,
                type=Type.ID,
            )
        except (HashingError, MemoryError) as e:
            raise KeyDerivationError("Argon2id key derivation failed") from e

    key = DerivedKey()
    key.view[:] = raw
    return key
