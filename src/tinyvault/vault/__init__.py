# tinyvault: Vault Module - Encrypted Credential Store
#
# Single-file vault: PBKDF2 master key, encrypted seed, per-record pepper
# AES-CBC/GCM for labels and usernames, AES-CTR for passwords
#
# VaultEngine lives in .engine (imported from the top-level package) since
# it depends on tinyvault.config, which itself imports from this package.

from .cipher import CipherMode, FieldCipher
from .exceptions import (
    CorruptVaultError,
    CryptoError,
    DecryptionError,
    InputError,
    KeyDerivationError,
    VaultError,
)
from .kdf import FieldOffset, HashAlgorithm, derive_field_iv, derive_key, derive_master_key
from .models import PlainRecord, Record, RecordTag, Vault, VaultTag
from .random_source import RandomSource, SeededRandomSource, SystemRandomSource
from .storage import VaultFile, decode_vault, encode_vault

__all__ = [
    "CipherMode",
    "FieldCipher",
    "FieldOffset",
    "HashAlgorithm",
    "derive_key",
    "derive_master_key",
    "derive_field_iv",
    "Vault",
    "Record",
    "PlainRecord",
    "VaultTag",
    "RecordTag",
    "VaultFile",
    "encode_vault",
    "decode_vault",
    "RandomSource",
    "SystemRandomSource",
    "SeededRandomSource",
    "VaultError",
    "InputError",
    "CryptoError",
    "KeyDerivationError",
    "DecryptionError",
    "CorruptVaultError",
]
