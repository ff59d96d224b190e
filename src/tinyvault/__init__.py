# tinyvault - Main Package
#
# Single-file encrypted credential store: a master password unlocks a vault
# of (site, username, password) records, each field encrypted on its own.

__version__ = "1.0.0"
__description__ = "Single-file encrypted password vault"

from .config import VaultConfig
from .vault.engine import SessionKey, VaultEngine
from .vault import (
    CipherMode,
    HashAlgorithm,
    PlainRecord,
    Record,
    Vault,
    VaultFile,
    VaultError,
    InputError,
    DecryptionError,
    CorruptVaultError,
)

__all__ = [
    "__version__",
    "VaultConfig",
    "VaultEngine",
    "SessionKey",
    "Vault",
    "Record",
    "PlainRecord",
    "VaultFile",
    "CipherMode",
    "HashAlgorithm",
    "VaultError",
    "InputError",
    "DecryptionError",
    "CorruptVaultError",
]
