"""
Record Codec
============

Canonical serialization of the account collection (the plaintext that
gets sealed).

Payload Format (UTF-8 JSON, sorted keys, no whitespace):
    {"accounts": [{"description": null, "id": "...", "password": "...",
                   "service": "...", "username": "..."}, ...],
     "version": 1}

Decode Policy:
    - Unknown fields (top level or per record) are rejected
    - "description" may be absent or null; every other field is a
      required string
    - Field contents follow AccountRecord.validate(), the same rules
      add_account and update_account apply
    - Duplicate ids are rejected
    - Any violation raises FormatError
"""

from __future__ import annotations

import json
from typing import Any, Final, Iterable

from fpvault.core.exceptions import DuplicateAccountError, FormatError
from fpvault.db.models import AccountCollection, AccountRecord
from fpvault.utils.validators import ValidationError

PAYLOAD_VERSION: Final[int] = 1

_REQUIRED_FIELDS: Final[tuple[str, ...]] = ("id", "service", "username", "password")
_OPTIONAL_FIELDS: Final[tuple[str, ...]] = ("description",)
_RECORD_FIELDS: Final[frozenset[str]] = frozenset(_REQUIRED_FIELDS + _OPTIONAL_FIELDS)
_TOP_LEVEL_FIELDS: Final[frozenset[str]] = frozenset({"version", "accounts"})


def encode(records: Iterable[AccountRecord]) -> bytes:
    """
    Serialize records to canonical bytes.

    Identical collections always produce identical bytes.
    """
    payload = {
        "version": PAYLOAD_VERSION,
        "accounts": [record.to_dict() for record in records],
    }
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def decode(data: bytes | bytearray) -> AccountCollection:
    """
    Parse a decrypted payload back into an AccountCollection.

    Raises:
        FormatError: If the payload is not a valid collection
    """
    try:
        payload = json.loads(bytes(data).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FormatError("Payload is not valid UTF-8 JSON") from e

    if not isinstance(payload, dict):
        raise FormatError("Payload must be a JSON object")

    unknown = set(payload) - _TOP_LEVEL_FIELDS
    if unknown:
        raise FormatError(f"Unknown payload field(s): {', '.join(sorted(unknown))}")

    version = payload.get("version")
    if version != PAYLOAD_VERSION or isinstance(version, bool):
        raise FormatError(f"Unsupported payload version: {version!r}")

    accounts = payload.get("accounts")
    if not isinstance(accounts, list):
        raise FormatError("Payload 'accounts' must be a list")

    collection = AccountCollection()
    for index, item in enumerate(accounts):
        try:
            collection.add(_decode_record(item, index))
        except DuplicateAccountError as e:
            raise FormatError(f"Duplicate account id at index {index}") from e
    return collection


def _decode_record(item: Any, index: int) -> AccountRecord:
    if not isinstance(item, dict):
        raise FormatError(f"Account at index {index} must be an object")

    unknown = set(item) - _RECORD_FIELDS
    if unknown:
        raise FormatError(
            f"Account at index {index} has unknown field(s): {', '.join(sorted(unknown))}"
        )

    for name in _REQUIRED_FIELDS:
        if not isinstance(item.get(name), str):
            raise FormatError(f"Account at index {index}: '{name}' must be a string")

    description = item.get("description")
    if description is not None and not isinstance(description, str):
        raise FormatError(f"Account at index {index}: 'description' must be a string or null")

    record = AccountRecord(
        id=item["id"],
        service=item["service"],
        username=item["username"],
        password=item["password"],
        description=description,
    )
    try:
        record.validate()
    except ValidationError as e:
        raise FormatError(f"Account at index {index}: {e}") from e
    return record
