"""
Database File Container
=======================

On-disk format of an encrypted credential database (``.fp`` file).

File Format:
    HEADER (18 bytes, little-endian):
        - MAGIC: 4 bytes (b"FPDB")
        - VERSION: 2 bytes
        - SALT_LEN: 1 byte (must be 16)
        - NONCE_LEN: 1 byte (must be 12)
        - MEMORY_COST: 4 bytes (Argon2id, KiB)
        - TIME_COST: 4 bytes (Argon2id iterations)
        - PARALLELISM: 2 bytes (Argon2id lanes)
    SALT: 16 bytes
    NONCE: 12 bytes
    CIPHERTEXT: remaining bytes (AES-256-GCM output incl. 16-byte tag)

The header and salt are bound to the ciphertext as GCM associated data,
so any change to them fails authentication.

Writes go to a temporary file in the destination directory which is
fsynced and atomically renamed over the target; a failed write leaves
the previous file untouched.
"""

from __future__ import annotations

import logging
import os
import struct
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from fpvault.core.crypto.aes_gcm import AES_NONCE_SIZE, AES_TAG_SIZE
from fpvault.core.crypto.kdf import SALT_LENGTH, KdfParameters
from fpvault.core.exceptions import DatabaseIOError, FormatError
from fpvault.security.constants import DATABASE_FILE_MODE

# File format constants
MAGIC_BYTES: Final[bytes] = b"FPDB"
FILE_FORMAT_VERSION: Final[int] = 1
HEADER_FORMAT: Final[str] = "<4sHBBIIH"
HEADER_SIZE: Final[int] = struct.calcsize(HEADER_FORMAT)
MIN_FILE_SIZE: Final[int] = HEADER_SIZE + SALT_LENGTH + AES_NONCE_SIZE + AES_TAG_SIZE

_log = logging.getLogger("fpvault.db.container")


@dataclass(frozen=True, slots=True)
class DatabaseFile:
    """
    Parsed contents of a database file.

    Attributes:
        salt: Argon2id salt, fixed for the life of the database
        nonce: GCM nonce of the current ciphertext
        ciphertext: Sealed payload with appended authentication tag
        kdf: Argon2id parameters the key was derived with
    """

    salt: bytes
    nonce: bytes
    ciphertext: bytes
    kdf: KdfParameters

    def __post_init__(self) -> None:
        if len(self.salt) != SALT_LENGTH:
            raise FormatError(f"Salt must be exactly {SALT_LENGTH} bytes")
        if len(self.nonce) != AES_NONCE_SIZE:
            raise FormatError(f"Nonce must be exactly {AES_NONCE_SIZE} bytes")
        if len(self.ciphertext) < AES_TAG_SIZE:
            raise FormatError("Ciphertext too short (missing authentication tag)")

    @staticmethod
    def header_bytes(kdf: KdfParameters) -> bytes:
        return struct.pack(
            HEADER_FORMAT,
            MAGIC_BYTES,
            FILE_FORMAT_VERSION,
            SALT_LENGTH,
            AES_NONCE_SIZE,
            kdf.memory_cost,
            kdf.time_cost,
            kdf.parallelism,
        )

    @classmethod
    def associated_data(cls, salt: bytes, kdf: KdfParameters) -> bytes:
        """Bytes authenticated alongside the ciphertext: header plus salt."""
        return cls.header_bytes(kdf) + salt

    @property
    def aad(self) -> bytes:
        return self.associated_data(self.salt, self.kdf)

    def to_bytes(self) -> bytes:
        return self.aad + self.nonce + self.ciphertext

    @classmethod
    def from_bytes(cls, data: bytes) -> "DatabaseFile":
        """
        Parse a database file image.

        Raises:
            FormatError: If the data is truncated or structurally invalid
        """
        if len(data) < MIN_FILE_SIZE:
            raise FormatError("Data too short for a database file")

        magic, version, salt_len, nonce_len, memory_cost, time_cost, parallelism = struct.unpack(
            HEADER_FORMAT, data[:HEADER_SIZE]
        )

        if magic != MAGIC_BYTES:
            raise FormatError("Invalid file format (bad magic bytes)")

        if version != FILE_FORMAT_VERSION:
            raise FormatError(f"Unsupported file format version: {version}")

        if salt_len != SALT_LENGTH or nonce_len != AES_NONCE_SIZE:
            raise FormatError("Inconsistent salt or nonce length in header")

        kdf = KdfParameters(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )
        if not kdf.is_valid():
            raise FormatError("Key derivation parameters out of range")

        salt_end = HEADER_SIZE + SALT_LENGTH
        nonce_end = salt_end + AES_NONCE_SIZE

        return cls(
            salt=data[HEADER_SIZE:salt_end],
            nonce=data[salt_end:nonce_end],
            ciphertext=data[nonce_end:],
            kdf=kdf,
        )

    @classmethod
    def read(cls, path: Path | str) -> "DatabaseFile":
        """
        Load and parse a database file from disk.

        Raises:
            DatabaseIOError: If the file cannot be read
            FormatError: If the contents are structurally invalid
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise DatabaseIOError(e.errno, f"Cannot read database file: {e.strerror}", str(path)) from e
        return cls.from_bytes(data)

    def write(self, path: Path | str) -> None:
        """
        Atomically replace the file at path with this container.

        Raises:
            DatabaseIOError: If the write did not durably complete
        """
        path = Path(path)
        data = self.to_bytes()
        directory = path.parent if str(path.parent) else Path(".")

        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=directory
            )
        except OSError as e:
            raise DatabaseIOError(e.errno, f"Cannot write database file: {e.strerror}", str(path)) from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, DATABASE_FILE_MODE)
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise DatabaseIOError(e.errno, f"Cannot write database file: {e.strerror}", str(path)) from e

        _fsync_directory(directory)
        _log.debug("Wrote %d bytes to %s", len(data), path.name)

    def __repr__(self) -> str:
        """Safe representation."""
        return f"DatabaseFile(ciphertext_len={len(self.ciphertext)}, kdf={self.kdf})"


def _fsync_directory(directory: Path) -> None:
    """Persist the rename itself; not supported on every platform."""
    if os.name != "posix":
        return
    try:
        dir_fd = os.open(directory, os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        _log.debug("Directory fsync not supported for %s", directory)
    finally:
        os.close(dir_fd)
