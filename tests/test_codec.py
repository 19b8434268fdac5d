"""
Tests for the record codec and account models.

Covers:
- Canonical, deterministic encoding
- Strict decoding: unknown fields, types, field rules, version, duplicates
- AccountRecord / AccountCollection behaviour
"""

import json

import pytest

from fpvault.core.exceptions import AccountNotFoundError, DuplicateAccountError, FormatError
from fpvault.db import codec
from fpvault.db.models import AccountCollection, AccountRecord, generate_account_id
from fpvault.utils.validators import ValidationError


def _record(account_id="a1b2c3d4", **overrides):
    fields = dict(
        id=account_id,
        service="email",
        username="a@b.com",
        password="x",
        description=None,
    )
    fields.update(overrides)
    return AccountRecord(**fields)


def _payload(accounts, version=1, **extra):
    doc = {"version": version, "accounts": accounts, **extra}
    return json.dumps(doc).encode("utf-8")


# ── Encoding ─────────────────────────────────────────────────────────


class TestEncode:

    def test_canonical_bytes(self):
        data = codec.encode([_record()])
        assert data == (
            b'{"accounts":[{"description":null,"id":"a1b2c3d4","password":"x",'
            b'"service":"email","username":"a@b.com"}],"version":1}'
        )

    def test_empty_collection(self):
        assert codec.encode(AccountCollection()) == b'{"accounts":[],"version":1}'

    def test_deterministic(self):
        records = [_record("1"), _record("2", description="work")]
        assert codec.encode(records) == codec.encode(list(records))

    def test_roundtrip_preserves_order_and_unicode(self):
        records = AccountCollection([
            _record("b", service="Bänk", password="pässwörd-密码"),
            _record("a", description="personal"),
        ])
        decoded = codec.decode(codec.encode(records))
        assert decoded == records
        assert [r.id for r in decoded] == ["b", "a"]


# ── Decoding ─────────────────────────────────────────────────────────


class TestDecode:

    def test_description_may_be_absent(self):
        data = _payload([{"id": "1", "service": "s", "username": "u", "password": "p"}])
        (record,) = list(codec.decode(data))
        assert record.description is None

    def test_accepts_bytearray(self):
        assert len(codec.decode(bytearray(codec.encode([_record()])))) == 1

    @pytest.mark.parametrize("data", [
        b"",
        b"not json",
        b"\xff\xfe",
        b"[]",
        b'"string"',
    ])
    def test_malformed(self, data):
        with pytest.raises(FormatError):
            codec.decode(data)

    def test_unknown_top_level_field(self):
        with pytest.raises(FormatError, match="Unknown payload field"):
            codec.decode(_payload([], extra="x"))

    def test_unknown_record_field(self):
        item = {"id": "1", "service": "s", "username": "u", "password": "p", "url": "x"}
        with pytest.raises(FormatError, match="unknown field"):
            codec.decode(_payload([item]))

    @pytest.mark.parametrize("missing", ["id", "service", "username", "password"])
    def test_missing_required_field(self, missing):
        item = {"id": "1", "service": "s", "username": "u", "password": "p"}
        del item[missing]
        with pytest.raises(FormatError):
            codec.decode(_payload([item]))

    def test_wrong_field_type(self):
        item = {"id": 1, "service": "s", "username": "u", "password": "p"}
        with pytest.raises(FormatError):
            codec.decode(_payload([item]))

    def test_wrong_description_type(self):
        item = {"id": "1", "service": "s", "username": "u", "password": "p", "description": 5}
        with pytest.raises(FormatError):
            codec.decode(_payload([item]))

    @pytest.mark.parametrize("version", [0, 2, "1", None, True])
    def test_bad_version(self, version):
        with pytest.raises(FormatError):
            codec.decode(_payload([], version=version))

    def test_accounts_must_be_list(self):
        with pytest.raises(FormatError):
            codec.decode(_payload({"id": "1"}))

    def test_record_must_be_object(self):
        with pytest.raises(FormatError):
            codec.decode(_payload(["x"]))

    def test_duplicate_ids(self):
        item = {"id": "1", "service": "s", "username": "u", "password": "p"}
        with pytest.raises(FormatError, match="Duplicate"):
            codec.decode(_payload([item, dict(item)]))

    @pytest.mark.parametrize("field,value", [
        ("id", ""),
        ("username", ""),
        ("password", ""),
        ("password", "p\x00"),
        ("service", "s" * 4097),
    ])
    def test_field_rules_enforced(self, field, value):
        item = {"id": "1", "service": "s", "username": "u", "password": "p"}
        item[field] = value
        with pytest.raises(FormatError, match="index 0"):
            codec.decode(_payload([item]))

    def test_decoded_record_is_editable(self, db):
        db.add_account(codec.decode(_payload([
            {"id": "1", "service": "", "username": "u", "password": "p"},
        ])).get("1"))
        assert db.update_account("1", password="q").password == "q"


# ── Models ───────────────────────────────────────────────────────────


class TestAccountRecord:

    def test_generated_id_is_hex(self):
        account_id = generate_account_id()
        assert len(account_id) == 8
        int(account_id, 16)

    def test_validate_accepts_empty_service_and_description(self):
        _record(service="", description="").validate()

    @pytest.mark.parametrize("overrides", [
        {"account_id": ""},
        {"username": ""},
        {"password": ""},
        {"password": "a\x00b"},
        {"description": "x" * 4097},
    ])
    def test_validate_rejects(self, overrides):
        with pytest.raises(ValidationError):
            _record(**overrides).validate()

    def test_generate_account_id_is_random(self):
        assert generate_account_id() != generate_account_id()

    def test_repr_hides_password(self):
        record = _record(password="hunter2-very-secret")
        assert "hunter2" not in repr(record)
        assert "hunter2" not in str(record)

    def test_with_changes(self):
        updated = _record().with_changes(username="new@b.com", description="d")
        assert updated.username == "new@b.com"
        assert updated.description == "d"
        assert updated.id == "a1b2c3d4"

    def test_with_changes_rejects_id(self):
        with pytest.raises(ValueError):
            _record().with_changes(id="other")

    def test_immutable(self):
        with pytest.raises(AttributeError):
            _record().password = "y"


class TestAccountCollection:

    def test_insertion_order(self):
        collection = AccountCollection([_record("3"), _record("1"), _record("2")])
        assert [r.id for r in collection] == ["3", "1", "2"]

    def test_duplicate_add(self):
        collection = AccountCollection([_record("1")])
        with pytest.raises(DuplicateAccountError):
            collection.add(_record("1"))

    def test_replace_keeps_position(self):
        collection = AccountCollection([_record("1"), _record("2")])
        collection.replace(_record("1", username="changed"))
        assert [r.username for r in collection] == ["changed", "a@b.com"]

    def test_missing_ids(self):
        collection = AccountCollection()
        with pytest.raises(AccountNotFoundError):
            collection.get("nope")
        with pytest.raises(AccountNotFoundError):
            collection.remove("nope")
        with pytest.raises(AccountNotFoundError):
            collection.replace(_record("nope"))

    def test_not_found_is_key_error(self):
        with pytest.raises(KeyError) as exc_info:
            AccountCollection().get("nope")
        assert str(exc_info.value) == "Account not found: nope"

    def test_new_id_is_unused(self):
        collection = AccountCollection([_record("1")])
        assert collection.new_id() not in collection

    def test_clear(self):
        collection = AccountCollection([_record("1")])
        collection.clear()
        assert len(collection) == 0
