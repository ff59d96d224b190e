"""Tests for the Vault / Record data model and its wire form."""

import pytest

from tinyvault.vault.exceptions import CorruptVaultError
from tinyvault.vault.models import (
    PlainRecord,
    Record,
    RecordTag,
    Vault,
    VaultTag,
)


def _record(pepper=b"\x01\x02\x03"):
    return Record(pepper=pepper, extra=b"\xaa" * 16, user=b"\xbb" * 16, password=b"\xcc" * 6)


def _vault(records=()):
    return Vault(
        vault_id=b"\x00\x11\x22\x33",
        iv=bytes(range(16)),
        salt=b"\xde\xad\xbe\xef",
        seed_ciphertext=b"\x99" * 16,
        records=records,
    )


class TestTags:
    def test_vault_tags(self):
        assert [int(t) for t in VaultTag] == [0, 1, 2, 3, 4]

    def test_record_tags(self):
        assert [int(t) for t in RecordTag] == [5, 6, 7, 8]


class TestRecordWire:
    def test_to_wire(self):
        assert _record().to_wire() == {
            5: "010203",
            6: "aa" * 16,
            7: "bb" * 16,
            8: "cc" * 6,
        }

    def test_record_id_is_hex_pepper(self):
        assert _record().record_id == "010203"

    def test_from_wire_roundtrip(self):
        record = _record()
        assert Record.from_wire(record.to_wire()) == record

    def test_string_keys_accepted(self):
        wire = {str(k): v for k, v in _record().to_wire().items()}
        assert Record.from_wire(wire) == _record()

    def test_missing_field(self):
        wire = _record().to_wire()
        del wire[7]
        with pytest.raises(CorruptVaultError, match="USER"):
            Record.from_wire(wire)

    def test_bad_pepper_size(self):
        wire = _record().to_wire()
        wire[5] = "0102"
        with pytest.raises(CorruptVaultError, match="pepper"):
            Record.from_wire(wire)

    def test_empty_pass_allowed(self):
        wire = _record().to_wire()
        wire[8] = ""
        assert Record.from_wire(wire).password == b""


class TestVaultWire:
    def test_to_wire(self):
        wire = _vault([_record()]).to_wire()
        assert wire[0] == "00112233"
        assert wire[1] == bytes(range(16)).hex()
        assert wire[2] == "deadbeef"
        assert wire[3] == "99" * 16
        assert wire[4] == [_record().to_wire()]

    def test_roundtrip_keeps_order(self):
        vault = _vault([_record(b"\x00\x00\x02"), _record(b"\x00\x00\x01")])
        assert Vault.from_wire(vault.to_wire()) == vault

    def test_records_stored_as_tuple(self):
        assert isinstance(_vault([_record()]).records, tuple)

    def test_not_a_map(self):
        with pytest.raises(CorruptVaultError, match="expected a map"):
            Vault.from_wire([1, 2, 3])

    def test_unexpected_key(self):
        wire = _vault().to_wire()
        wire["seed"] = "00"
        with pytest.raises(CorruptVaultError, match="unexpected key"):
            Vault.from_wire(wire)

    @pytest.mark.parametrize("tag", list(VaultTag))
    def test_missing_field(self, tag):
        wire = _vault().to_wire()
        del wire[int(tag)]
        with pytest.raises(CorruptVaultError, match=tag.name):
            Vault.from_wire(wire)

    def test_records_not_a_list(self):
        wire = _vault().to_wire()
        wire[4] = "nope"
        with pytest.raises(CorruptVaultError, match="records must be a list"):
            Vault.from_wire(wire)

    def test_bad_iv_size(self):
        wire = _vault().to_wire()
        wire[1] = "00" * 12
        with pytest.raises(CorruptVaultError, match="vault.iv"):
            Vault.from_wire(wire)

    def test_empty_seed(self):
        wire = _vault().to_wire()
        wire[3] = ""
        with pytest.raises(CorruptVaultError, match="seed"):
            Vault.from_wire(wire)

    def test_corrupt_record_fails_whole_vault(self):
        wire = _vault([_record()]).to_wire()
        wire[4][0][6] = "not hex"
        with pytest.raises(CorruptVaultError):
            Vault.from_wire(wire)

    def test_peppers(self):
        vault = _vault([_record(b"\x00\x00\x01"), _record(b"\x00\x00\x02")])
        assert vault.peppers() == {b"\x00\x00\x01", b"\x00\x00\x02"}


class TestPlainRecord:
    def test_to_dict(self):
        plain = PlainRecord(extra="example.com", user="alice", password="s3cr3t", pepper=b"\xab\xcd\xef")
        assert plain.to_dict() == {
            "EXTRA": "example.com",
            "USER": "alice",
            "PASS": "s3cr3t",
            "ID": "abcdef",
        }

    def test_repr_hides_password(self):
        plain = PlainRecord(extra="example.com", user="alice", password="s3cr3t", pepper=b"\x01\x02\x03")
        assert "s3cr3t" not in repr(plain)
