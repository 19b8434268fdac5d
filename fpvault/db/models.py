"""
Account Models
==============

In-memory representation of the records sealed inside a database.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, fields, replace
from typing import Any, Final, Iterable, Iterator, Optional

from fpvault.core.exceptions import AccountNotFoundError, DuplicateAccountError
from fpvault.utils.validators import validate_string_safe

ACCOUNT_ID_BYTES: Final[int] = 4  # 8 hex characters

EDITABLE_FIELDS: Final[frozenset[str]] = frozenset({
    "service", "username", "password", "description",
})


def generate_account_id() -> str:
    """Generate a short random account identifier."""
    return secrets.token_hex(ACCOUNT_ID_BYTES)


@dataclass(frozen=True, slots=True)
class AccountRecord:
    """
    A single stored credential.

    Immutable; edits produce a new record via with_changes().
    Note: password is never exposed in repr or str.
    """

    id: str
    service: str
    username: str
    password: str
    description: Optional[str] = None

    def validate(self) -> None:
        """
        Check field contents: id, username and password non-empty,
        service and description may be empty, nothing over the length
        limit or containing NUL.

        Raises:
            ValidationError: If a field is invalid
        """
        validate_string_safe(self.id, field_name="id")
        validate_string_safe(self.service, allow_empty=True, field_name="service")
        validate_string_safe(self.username, field_name="username")
        validate_string_safe(self.password, field_name="password")
        if self.description is not None:
            validate_string_safe(self.description, allow_empty=True, field_name="description")

    def with_changes(self, **changes: Any) -> "AccountRecord":
        """
        Return a copy with the given fields replaced.

        Raises:
            ValueError: If a field is unknown or not editable
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Optional[str]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def __repr__(self) -> str:
        """Safe representation without password."""
        return (
            f"AccountRecord(id={self.id!r}, service={self.service!r}, "
            f"username={self.username!r})"
        )


class AccountCollection:
    """
    Ordered set of AccountRecord keyed by id.

    Insertion order is preserved for display; ids are unique.
    """

    __slots__ = ("_records",)

    def __init__(self, records: Iterable[AccountRecord] = ()) -> None:
        self._records: dict[str, AccountRecord] = {}
        for record in records:
            self.add(record)

    def add(self, record: AccountRecord) -> None:
        if record.id in self._records:
            raise DuplicateAccountError(f"Account id already exists: {record.id}")
        self._records[record.id] = record

    def get(self, account_id: str) -> AccountRecord:
        try:
            return self._records[account_id]
        except KeyError:
            raise AccountNotFoundError(account_id) from None

    def replace(self, record: AccountRecord) -> None:
        """Swap in a new version of an existing record, keeping its position."""
        if record.id not in self._records:
            raise AccountNotFoundError(record.id)
        self._records[record.id] = record

    def remove(self, account_id: str) -> AccountRecord:
        try:
            return self._records.pop(account_id)
        except KeyError:
            raise AccountNotFoundError(account_id) from None

    def new_id(self) -> str:
        """Generate an id not already used in this collection."""
        while True:
            account_id = generate_account_id()
            if account_id not in self._records:
                return account_id

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._records

    def __iter__(self) -> Iterator[AccountRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AccountCollection):
            return NotImplemented
        return list(self) == list(other)

    def __repr__(self) -> str:
        return f"AccountCollection(count={len(self._records)})"
