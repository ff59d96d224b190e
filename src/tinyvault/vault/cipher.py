# tinyvault: Field Cipher Engine
#
# AES-CBC / AES-GCM for the vault seed and the extra/user fields
# AES-CTR for the pass field (length preserving)
#
# Key is always the per-operation master key; the IV/counter is always a
# value from the key derivation hierarchy. Only GCM authenticates: a
# tampered CBC/CTR ciphertext can decrypt to garbage without an error.

from enum import Enum

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.backends import default_backend

from .exceptions import DecryptionError, InputError


BLOCK_SIZE = 16  # AES block size in bytes


class CipherMode(str, Enum):
    """AES mode names, as accepted in the vault configuration."""
    CBC = "AES-CBC"
    GCM = "AES-GCM"
    CTR = "AES-CTR"


# Modes allowed as the vault-wide mode. CTR is reserved for the pass field.
BLOCK_MODES = (CipherMode.CBC, CipherMode.GCM)


def counter_bits_for(length: int) -> int:
    """Width of the incrementing part of the CTR counter block for a field.

    Equal to the field's byte length, clamped to 1..128.
    """
    return max(1, min(length, BLOCK_SIZE * 8))


class FieldCipher:
    """
    Encrypts and decrypts individual vault fields.

    Flow:
    1. Vault seed: vault-wide mode (CBC or GCM) under the vault IV
    2. extra/user: vault-wide mode under their derived IVs
    3. pass: CTR with the derived value as initial counter block
    """

    @staticmethod
    def encrypt(key: bytes, mode: CipherMode, iv: bytes, plaintext: bytes) -> bytes:
        """
        Encrypt one field value.

        Args:
            key: Master key (128/192/256 bits)
            mode: CBC, GCM or CTR
            iv: 16-byte IV (CBC/GCM) or initial counter block (CTR)
            plaintext: Field bytes

        Returns:
            Ciphertext (GCM output carries the 16-byte tag at the end)
        """
        mode = CipherMode(mode)
        if len(iv) != BLOCK_SIZE:
            raise InputError(f"{mode.value} needs a {BLOCK_SIZE}-byte IV, got {len(iv)}")

        if mode is CipherMode.GCM:
            return AESGCM(key).encrypt(iv, plaintext, None)

        if mode is CipherMode.CTR:
            return FieldCipher._ctr_xor(key, iv, plaintext, counter_bits_for(len(plaintext)))

        padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv), backend=default_backend()).encryptor()
        return encryptor.update(padded) + encryptor.finalize()

    @staticmethod
    def decrypt(key: bytes, mode: CipherMode, iv: bytes, ciphertext: bytes) -> bytes:
        """
        Decrypt one field value.

        For CTR the counter width comes from the ciphertext length, which
        equals the plaintext length.

        Raises:
            DecryptionError: GCM tag mismatch, bad CBC length or padding
        """
        mode = CipherMode(mode)
        if len(iv) != BLOCK_SIZE:
            raise InputError(f"{mode.value} needs a {BLOCK_SIZE}-byte IV, got {len(iv)}")

        if mode is CipherMode.GCM:
            try:
                return AESGCM(key).decrypt(iv, ciphertext, None)
            except InvalidTag:
                raise DecryptionError("Authentication tag mismatch (wrong password or corrupted data)") from None

        if mode is CipherMode.CTR:
            return FieldCipher._ctr_xor(key, iv, ciphertext, counter_bits_for(len(ciphertext)))

        if not ciphertext or len(ciphertext) % BLOCK_SIZE:
            raise DecryptionError(f"CBC ciphertext length {len(ciphertext)} is not a positive multiple of {BLOCK_SIZE}")
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv), backend=default_backend()).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
        try:
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError:
            raise DecryptionError("Invalid padding (wrong password or corrupted data)") from None

    @staticmethod
    def _ctr_xor(key: bytes, counter_block: bytes, data: bytes, counter_bits: int) -> bytes:
        """
        AES-CTR where only the rightmost counter_bits bits of the block
        increment, wrapping inside that width. The other bits stay fixed.
        """
        if not data:
            return b""

        n_blocks = -(-len(data) // BLOCK_SIZE)
        value = int.from_bytes(counter_block, "big")
        span = 1 << counter_bits
        low = value % span

        if counter_bits == BLOCK_SIZE * 8 or low + n_blocks <= span:
            # No wrap inside the counter field: plain 128-bit CTR is identical
            encryptor = Cipher(algorithms.AES(key), modes.CTR(counter_block), backend=default_backend()).encryptor()
            return encryptor.update(data) + encryptor.finalize()

        fixed = value - low
        blocks = b"".join(
            (fixed + (low + i) % span).to_bytes(BLOCK_SIZE, "big")
            for i in range(n_blocks)
        )
        encryptor = Cipher(algorithms.AES(key), modes.ECB(), backend=default_backend()).encryptor()
        keystream = encryptor.update(blocks) + encryptor.finalize()
        return bytes(a ^ b for a, b in zip(data, keystream))

    @staticmethod
    def decode_text(data: bytes, field: str) -> str:
        """Decode decrypted field bytes as UTF-8."""
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            raise DecryptionError(f"{field}: decrypted bytes are not valid UTF-8 (wrong password or corrupted data)") from None
