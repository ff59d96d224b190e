# tinyvault: Key Derivation Hierarchy
#
# Master password + vault salt -> master key (PBKDF2)
# Decrypted seed + record pepper -> per-field IV/counter (PBKDF2)
#
# Both roles run the same PBKDF2 with the same hash; the field role adds a
# small offset to the iteration count so every field of a record gets its
# own 128-bit value while only the 3-byte pepper is persisted per record.

from enum import Enum, IntEnum

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.backends import default_backend

from .exceptions import KeyDerivationError


DEFAULT_ITERATIONS = 100_000
DEFAULT_KEY_BITS = 256
FIELD_IV_BITS = 128

# AES accepts 128/192/256-bit keys only
SUPPORTED_KEY_BITS = (128, 192, 256)


class HashAlgorithm(str, Enum):
    """PRF hash for PBKDF2. Values match the names used in the vault config."""
    SHA256 = "SHA-256"
    SHA512 = "SHA-512"

    def to_primitive(self) -> hashes.HashAlgorithm:
        if self is HashAlgorithm.SHA512:
            return hashes.SHA512()
        return hashes.SHA256()


class FieldOffset(IntEnum):
    """Iteration offset selecting the IV/counter of each record field."""
    EXTRA = 0
    USER = 1
    PASS = 2


def derive_key(
    secret: bytes,
    salt: bytes,
    iterations: int = DEFAULT_ITERATIONS,
    key_bits: int = DEFAULT_KEY_BITS,
    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256,
) -> bytes:
    """
    Derive key material with PBKDF2-HMAC.

    Args:
        secret: Password-like input (already encoded to bytes)
        salt: Salt or nonce (raw bytes)
        iterations: PBKDF2 iteration count
        key_bits: Output size in bits (multiple of 8)
        hash_algorithm: SHA-256 or SHA-512

    Returns:
        key_bits // 8 bytes of key material

    Raises:
        KeyDerivationError: On empty input or invalid parameters
    """
    if not secret:
        raise KeyDerivationError("Cannot derive a key from an empty secret")
    if not salt:
        raise KeyDerivationError("Cannot derive a key with an empty salt")
    if iterations < 1:
        raise KeyDerivationError(f"Iteration count must be positive, got {iterations}")
    if key_bits < 8 or key_bits % 8:
        raise KeyDerivationError(f"Key size must be a positive multiple of 8 bits, got {key_bits}")

    kdf = PBKDF2HMAC(
        algorithm=HashAlgorithm(hash_algorithm).to_primitive(),
        length=key_bits // 8,
        salt=bytes(salt),
        iterations=iterations,
        backend=default_backend()
    )
    return kdf.derive(bytes(secret))


def derive_master_key(
    password: str,
    salt: bytes,
    iterations: int = DEFAULT_ITERATIONS,
    key_bits: int = DEFAULT_KEY_BITS,
    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256,
) -> bytes:
    """
    Derive the vault master key from the master password.

    The key is used for every cipher call of one operation and is never
    persisted.
    """
    if key_bits not in SUPPORTED_KEY_BITS:
        raise KeyDerivationError(f"Unsupported AES key size: {key_bits} bits")
    return derive_key(password.encode("utf-8"), salt, iterations, key_bits, hash_algorithm)


def encode_seed_secret(seed: bytes) -> bytes:
    """
    Render the decrypted seed as the PBKDF2 secret for field derivation.

    The secret is the seed's byte values in decimal, comma separated
    ("12,200,7,..."), not the raw bytes. Existing vault files depend on it.
    """
    return ",".join(str(b) for b in seed).encode("utf-8")


def derive_field_iv(
    seed: bytes,
    pepper: bytes,
    offset: FieldOffset,
    iterations: int = DEFAULT_ITERATIONS,
    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256,
) -> bytes:
    """
    Derive the 128-bit IV/counter for one field of one record.

    Args:
        seed: Decrypted vault seed
        pepper: Record pepper (clear, 3 bytes)
        offset: Which field (EXTRA=0, USER=1, PASS=2)
        iterations: Vault iteration count (offset is added to it)
        hash_algorithm: Same hash as the master key derivation

    Returns:
        16 bytes
    """
    return derive_key(
        encode_seed_secret(seed),
        pepper,
        iterations + int(offset),
        FIELD_IV_BITS,
        hash_algorithm,
    )


def derive_record_ivs(
    seed: bytes,
    pepper: bytes,
    iterations: int = DEFAULT_ITERATIONS,
    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256,
) -> dict:
    """Derive the IVs of all three fields of a record, keyed by FieldOffset."""
    return {
        offset: derive_field_iv(seed, pepper, offset, iterations, hash_algorithm)
        for offset in FieldOffset
    }
