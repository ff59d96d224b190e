# tinyvault: Vault Data Model
#
# Vault and Record are immutable; every operation returns new instances.
# The wire form is a map keyed by small integer tags. Vault and Record have
# separate tag enumerations, and the in-memory model keeps the vault id and
# the record pepper as distinct fields.

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Mapping, Tuple

from .exceptions import CorruptVaultError
from .hexcodec import expect_length, from_hex, to_hex

VAULT_ID_LENGTH = 4
VAULT_IV_LENGTH = 16
SALT_LENGTH = 4
SEED_LENGTH = 14
PEPPER_LENGTH = 3


class VaultTag(IntEnum):
    """Wire tags of the vault map."""
    ID = 0
    IV = 1
    SALT = 2
    SEED = 3
    RECORDS = 4


class RecordTag(IntEnum):
    """Wire tags of a record map."""
    PEPPER = 5
    EXTRA = 6
    USER = 7
    PASS = 8


def _normalize_keys(data: Mapping, what: str) -> Dict[int, Any]:
    """Accept integer tags, or their string form as written by JS encoders."""
    if not isinstance(data, Mapping):
        raise CorruptVaultError(f"{what}: expected a map, got {type(data).__name__}")
    normalized = {}
    for key, value in data.items():
        try:
            normalized[int(key)] = value
        except (TypeError, ValueError):
            raise CorruptVaultError(f"{what}: unexpected key {key!r}") from None
    return normalized


def _require(data: Dict[int, Any], tag: IntEnum, what: str) -> Any:
    if int(tag) not in data:
        raise CorruptVaultError(f"{what}: missing field {tag.name}")
    return data[int(tag)]


@dataclass(frozen=True)
class Record:
    """One encrypted credential entry."""
    pepper: bytes
    extra: bytes
    user: bytes
    password: bytes

    @property
    def record_id(self) -> str:
        """External identifier of the record (hex pepper)."""
        return to_hex(self.pepper)

    def to_wire(self) -> Dict[int, str]:
        return {
            int(RecordTag.PEPPER): to_hex(self.pepper),
            int(RecordTag.EXTRA): to_hex(self.extra),
            int(RecordTag.USER): to_hex(self.user),
            int(RecordTag.PASS): to_hex(self.password),
        }

    @classmethod
    def from_wire(cls, data: Mapping) -> "Record":
        d = _normalize_keys(data, "record")
        pepper = expect_length(
            from_hex(_require(d, RecordTag.PEPPER, "record"), "record.pepper"),
            PEPPER_LENGTH, "record.pepper",
        )
        return cls(
            pepper=pepper,
            extra=from_hex(_require(d, RecordTag.EXTRA, "record"), "record.extra"),
            user=from_hex(_require(d, RecordTag.USER, "record"), "record.user"),
            password=from_hex(_require(d, RecordTag.PASS, "record"), "record.pass"),
        )


@dataclass(frozen=True)
class Vault:
    """
    One vault file.

    vault_id, iv and salt are set once by generate and never change.
    records are ordered most recently added first.
    """
    vault_id: bytes
    iv: bytes
    salt: bytes
    seed_ciphertext: bytes
    records: Tuple[Record, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept any iterable of records but always store a tuple
        object.__setattr__(self, "records", tuple(self.records))

    @property
    def vault_id_hex(self) -> str:
        return to_hex(self.vault_id)

    def peppers(self) -> set:
        return {record.pepper for record in self.records}

    def to_wire(self) -> Dict[int, Any]:
        return {
            int(VaultTag.ID): to_hex(self.vault_id),
            int(VaultTag.IV): to_hex(self.iv),
            int(VaultTag.SALT): to_hex(self.salt),
            int(VaultTag.SEED): to_hex(self.seed_ciphertext),
            int(VaultTag.RECORDS): [record.to_wire() for record in self.records],
        }

    @classmethod
    def from_wire(cls, data: Mapping) -> "Vault":
        """
        Build a Vault from its decoded container.

        Raises:
            CorruptVaultError: Missing fields, wrong sizes, malformed hex
        """
        d = _normalize_keys(data, "vault")
        records = _require(d, VaultTag.RECORDS, "vault")
        if not isinstance(records, (list, tuple)):
            raise CorruptVaultError(f"vault: records must be a list, got {type(records).__name__}")

        seed_ciphertext = from_hex(_require(d, VaultTag.SEED, "vault"), "vault.seed")
        if not seed_ciphertext:
            raise CorruptVaultError("vault.seed: empty ciphertext")

        return cls(
            vault_id=expect_length(
                from_hex(_require(d, VaultTag.ID, "vault"), "vault.id"),
                VAULT_ID_LENGTH, "vault.id",
            ),
            iv=expect_length(
                from_hex(_require(d, VaultTag.IV, "vault"), "vault.iv"),
                VAULT_IV_LENGTH, "vault.iv",
            ),
            salt=expect_length(
                from_hex(_require(d, VaultTag.SALT, "vault"), "vault.salt"),
                SALT_LENGTH, "vault.salt",
            ),
            seed_ciphertext=seed_ciphertext,
            records=tuple(Record.from_wire(r) for r in records),
        )


@dataclass(frozen=True)
class PlainRecord:
    """Decrypted projection of a Record. Never persisted."""
    extra: str
    user: str
    password: str = field(repr=False)
    pepper: bytes = b""

    @property
    def record_id(self) -> str:
        return to_hex(self.pepper)

    def to_dict(self) -> Dict[str, str]:
        return {
            "EXTRA": self.extra,
            "USER": self.user,
            "PASS": self.password,
            "ID": self.record_id,
        }
