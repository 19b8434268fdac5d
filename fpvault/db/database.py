"""
Database Session
================

An open credential database: the decrypted account collection plus the
derived key, for as long as the session lasts.

Lifecycle:
    Closed -> create()/open() -> Open -> close() -> Closed

Mutations only touch memory; nothing reaches disk until save(). close()
discards unsaved changes and zeroes the key.

Security Notes:
    - The passkey is used once to derive the key and is never stored
    - Every save draws a fresh nonce; the salt never changes
    - All unlock failures look the same to the caller (OpenError)
    - Not thread-safe: one session, one thread
"""

from __future__ import annotations

import errno
import logging
from pathlib import Path
from typing import Any, Optional

from fpvault.core.config import VaultConfig
from fpvault.core.crypto.aes_gcm import AesGcmCipher
from fpvault.core.crypto.kdf import DerivedKey, KdfParameters, derive_key, generate_salt
from fpvault.core.exceptions import (
    DatabaseIOError,
    FormatError,
    IntegrityError,
    KeyDerivationError,
    OpenError,
    SessionClosedError,
)
from fpvault.db import codec
from fpvault.db.container import DatabaseFile
from fpvault.db.models import AccountCollection, AccountRecord
from fpvault.utils.validators import validate_passkey


class Database:
    """
    Encrypted credential database session.

    Usage:
        db = Database.create(path, "Str0ng!Passkey123")
        db.new_account("email", "a@b.com", "x")
        db.save()
        db.close()

        with Database.open(path, "Str0ng!Passkey123") as db:
            for account in db.list_accounts():
                ...
        # key zeroed on exit

    Security Notes:
        - Use the context manager or call close() on every path
        - Unsaved changes are lost on close by design
    """

    __slots__ = (
        "_path", "_salt", "_kdf", "_key", "_accounts",
        "_cipher", "_used_nonces", "_dirty", "_log",
    )

    def __init__(
        self,
        path: Path,
        salt: bytes,
        kdf: KdfParameters,
        key: DerivedKey,
        accounts: AccountCollection,
        last_nonce: Optional[bytes] = None,
    ) -> None:
        """Use Database.create() or Database.open() instead."""
        self._path = path
        self._salt = salt
        self._kdf = kdf
        self._key: Optional[DerivedKey] = key
        self._accounts = accounts
        self._cipher = AesGcmCipher()
        self._used_nonces: set[bytes] = {last_nonce} if last_nonce else set()
        self._dirty = False
        self._log = logging.getLogger("fpvault.db")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        path: Path | str,
        passkey: str,
        config: Optional[VaultConfig] = None,
    ) -> "Database":
        """
        Create a new, empty database and write it to disk.

        Args:
            path: Destination file; must not exist
            passkey: Master passkey (must satisfy the strength policy)
            config: Configuration supplying Argon2id parameters

        Returns:
            An open Database

        Raises:
            PasskeyPolicyError: If the passkey is too weak
            DatabaseIOError: If the path exists or is not writable
            KeyDerivationError: If key derivation fails
        """
        validate_passkey(passkey)
        path = Path(path)
        kdf = (config or VaultConfig.get_instance()).kdf

        salt = generate_salt()
        key = derive_key(passkey, salt, kdf)

        # Reserve the name so a concurrent create cannot race us
        try:
            fd = path.open("xb")
        except FileExistsError as e:
            key.wipe()
            raise DatabaseIOError(errno.EEXIST, "Database file already exists", str(path)) from e
        except OSError as e:
            key.wipe()
            raise DatabaseIOError(e.errno, f"Cannot create database file: {e.strerror}", str(path)) from e
        fd.close()

        db = cls(path, salt, kdf, key, AccountCollection())
        try:
            db.save()
        except BaseException:
            db.close()
            path.unlink(missing_ok=True)
            raise

        db._log.info("Created database %s", path.name)
        return db

    @classmethod
    def open(cls, path: Path | str, passkey: str) -> "Database":
        """
        Unlock an existing database.

        Args:
            path: Database file
            passkey: Master passkey

        Returns:
            An open Database

        Raises:
            DatabaseIOError: If the file cannot be read
            OpenError: Wrong passkey, corrupted/foreign file, or key
                derivation failure under the header parameters
        """
        path = Path(path)
        log = logging.getLogger("fpvault.db")

        try:
            container = DatabaseFile.read(path)
        except FormatError as e:
            log.warning("Failed to open %s", path.name)
            raise OpenError() from e

        if not passkey:
            log.warning("Failed to open %s", path.name)
            raise OpenError()

        try:
            key = derive_key(passkey, container.salt, container.kdf)
        except KeyDerivationError as e:
            log.warning("Failed to open %s", path.name)
            raise OpenError() from e

        try:
            plaintext = AesGcmCipher().open(
                key.view, container.nonce, container.ciphertext, aad=container.aad
            )
            accounts = codec.decode(plaintext)
        except (IntegrityError, FormatError) as e:
            key.wipe()
            log.warning("Failed to open %s", path.name)
            raise OpenError() from e
        except BaseException:
            key.wipe()
            raise

        log.info("Opened database %s (%d accounts)", path.name, len(accounts))
        return cls(path, container.salt, container.kdf, key, accounts, last_nonce=container.nonce)

    def save(self) -> None:
        """
        Encrypt the current collection under a fresh nonce and replace the file.

        Raises:
            SessionClosedError: If the database is closed
            DatabaseIOError: If the write did not complete
        """
        key = self._require_open()

        nonce = self._cipher.generate_nonce()
        while nonce in self._used_nonces:
            nonce = self._cipher.generate_nonce()

        aad = DatabaseFile.associated_data(self._salt, self._kdf)
        ciphertext = self._cipher.seal(key.view, nonce, codec.encode(self._accounts), aad=aad)

        container = DatabaseFile(salt=self._salt, nonce=nonce, ciphertext=ciphertext, kdf=self._kdf)
        container.write(self._path)

        self._used_nonces.add(nonce)
        self._dirty = False
        self._log.info("Saved database %s (%d accounts)", self._path.name, len(self._accounts))

    def close(self) -> None:
        """
        Discard the collection and zero the key. No implicit save.

        Safe to call more than once.
        """
        if self._key is None:
            return

        if self._dirty:
            self._log.warning("Closing %s with unsaved changes", self._path.name)

        self._accounts.clear()
        self._key.wipe()
        self._key = None
        self._used_nonces.clear()
        self._dirty = False
        self._log.info("Closed database %s", self._path.name)

    def verify_passkey(self, passkey: str) -> bool:
        """
        Check a passkey against the open session's key in constant time.

        Raises:
            SessionClosedError: If the database is closed
        """
        key = self._require_open()
        if not passkey:
            return False
        with derive_key(passkey, self._salt, self._kdf) as candidate:
            return key.equals(candidate)

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def add_account(self, record: AccountRecord) -> AccountRecord:
        """
        Add a record.

        Raises:
            DuplicateAccountError: If the id is already present
            ValidationError: If a field is invalid
        """
        self._require_open()
        record.validate()
        self._accounts.add(record)
        self._dirty = True
        self._log.debug("Added account %s", record.id)
        return record

    def new_account(
        self,
        service: str,
        username: str,
        password: str,
        description: Optional[str] = None,
    ) -> AccountRecord:
        """Build a record with a fresh unique id and add it."""
        self._require_open()
        record = AccountRecord(
            id=self._accounts.new_id(),
            service=service,
            username=username,
            password=password,
            description=description,
        )
        return self.add_account(record)

    def update_account(self, account_id: str, **fields: Any) -> AccountRecord:
        """
        Change fields of an existing record.

        Args:
            account_id: Record id
            **fields: Any of service, username, password, description

        Returns:
            The updated record

        Raises:
            AccountNotFoundError: If the id is absent
            ValueError: If a field name is not editable or a value is invalid
        """
        self._require_open()
        updated = self._accounts.get(account_id).with_changes(**fields)
        updated.validate()
        self._accounts.replace(updated)
        self._dirty = True
        self._log.debug("Updated account %s", account_id)
        return updated

    def delete_account(self, account_id: str) -> None:
        """
        Raises:
            AccountNotFoundError: If the id is absent
        """
        self._require_open()
        self._accounts.remove(account_id)
        self._dirty = True
        self._log.debug("Deleted account %s", account_id)

    def get_account(self, account_id: str) -> AccountRecord:
        """
        Raises:
            AccountNotFoundError: If the id is absent
        """
        self._require_open()
        return self._accounts.get(account_id)

    def list_accounts(self) -> list[AccountRecord]:
        """All records in insertion order."""
        self._require_open()
        return list(self._accounts)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._key is not None

    @property
    def dirty(self) -> bool:
        """True when there are changes not yet written by save()."""
        return self._dirty

    def __len__(self) -> int:
        return len(self._accounts)

    def __repr__(self) -> str:
        """Safe representation."""
        state = "open" if self.is_open else "closed"
        return f"Database(path={self._path.name!r}, state={state}, accounts={len(self._accounts)})"

    def _require_open(self) -> DerivedKey:
        if self._key is None:
            raise SessionClosedError("Database is closed")
        return self._key
