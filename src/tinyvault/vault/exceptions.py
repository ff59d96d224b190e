"""
Vault Exception Classes
"""


class VaultError(Exception):
    """Base exception for vault operations"""
    pass


class InputError(VaultError):
    """Raised when parameters are missing or malformed, before any crypto call"""
    pass


class CryptoError(VaultError):
    """Base class for key derivation and cipher failures"""
    pass


class KeyDerivationError(CryptoError):
    """Raised when PBKDF2 cannot produce a key from the supplied input"""
    pass


class DecryptionError(CryptoError):
    """Raised when a ciphertext does not decrypt under the session key.

    A wrong master password and a corrupted vault file are not
    distinguishable here; both surface as this error.
    """
    pass


class CorruptVaultError(VaultError):
    """Raised when the vault container lacks expected fields or is malformed"""
    pass
