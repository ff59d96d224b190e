# Tests for the field cipher engine
#
# Coverage:
#   - CBC / GCM / CTR round trips
#   - CTR is length preserving and matches plain AES-CTR without wrap
#   - CTR counter wraps inside the field-length counter width
#   - GCM detects tampering, CBC rejects bad lengths
#   - UTF-8 decoding of decrypted fields

import pytest
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from tinyvault.vault.cipher import (
    BLOCK_SIZE,
    CipherMode,
    FieldCipher,
    counter_bits_for,
)
from tinyvault.vault.exceptions import DecryptionError, InputError

KEY = bytes(range(32))
IV = bytes(range(100, 116))


def _ecb(key: bytes, blocks: bytes) -> bytes:
    encryptor = Cipher(algorithms.AES(key), modes.ECB()).encryptor()
    return encryptor.update(blocks) + encryptor.finalize()


class TestRoundTrip:
    @pytest.mark.parametrize("mode", list(CipherMode))
    @pytest.mark.parametrize("plaintext", [
        b"",
        b"a",
        b"example.com",
        b"exactly16bytes!!",
        "mötley crüe ✓".encode("utf-8"),
        b"x" * 1000,
    ])
    def test_roundtrip(self, mode, plaintext):
        ciphertext = FieldCipher.encrypt(KEY, mode, IV, plaintext)
        assert FieldCipher.decrypt(KEY, mode, IV, ciphertext) == plaintext

    @pytest.mark.parametrize("bits", [128, 192, 256])
    def test_key_sizes(self, bits):
        key = KEY[: bits // 8]
        ciphertext = FieldCipher.encrypt(key, CipherMode.CBC, IV, b"alice")
        assert FieldCipher.decrypt(key, CipherMode.CBC, IV, ciphertext) == b"alice"

    def test_mode_accepts_name(self):
        ciphertext = FieldCipher.encrypt(KEY, "AES-GCM", IV, b"alice")
        assert FieldCipher.decrypt(KEY, CipherMode.GCM, IV, ciphertext) == b"alice"


class TestOutputSizes:
    def test_cbc_pads_to_block(self):
        assert len(FieldCipher.encrypt(KEY, CipherMode.CBC, IV, b"x" * 14)) == 16
        # Full block of plaintext gets a full block of padding
        assert len(FieldCipher.encrypt(KEY, CipherMode.CBC, IV, b"x" * 16)) == 32

    def test_gcm_appends_tag(self):
        assert len(FieldCipher.encrypt(KEY, CipherMode.GCM, IV, b"x" * 14)) == 14 + 16

    @pytest.mark.parametrize("length", [0, 1, 6, 16, 17, 200])
    def test_ctr_is_length_preserving(self, length):
        assert len(FieldCipher.encrypt(KEY, CipherMode.CTR, IV, b"p" * length)) == length


class TestCounterMode:
    def test_counter_bits(self):
        assert counter_bits_for(0) == 1
        assert counter_bits_for(6) == 6
        assert counter_bits_for(128) == 128
        assert counter_bits_for(500) == 128

    def test_matches_plain_ctr_without_wrap(self):
        data = b"s3cr3t-password-longer-than-a-block"
        encryptor = Cipher(algorithms.AES(KEY), modes.CTR(IV)).encryptor()
        expected = encryptor.update(data) + encryptor.finalize()
        assert FieldCipher.encrypt(KEY, CipherMode.CTR, IV, data) == expected

    def test_counter_wraps_inside_field_width(self):
        # 20-byte field -> 20 counter bits; low 20 bits of the block are all ones
        counter = bytes(13) + b"\x0f\xff\xff"
        data = bytes(range(20))

        keystream = _ecb(KEY, counter + bytes(16))
        expected = bytes(a ^ b for a, b in zip(data, keystream))

        ciphertext = FieldCipher.encrypt(KEY, CipherMode.CTR, counter, data)
        assert ciphertext == expected
        assert FieldCipher.decrypt(KEY, CipherMode.CTR, counter, ciphertext) == data

    def test_wrap_keeps_fixed_bits(self):
        # Bits above the counter field must not change on wrap
        counter = b"\xaa" * 13 + b"\xaf\xff\xff"
        data = bytes(20)

        keystream = _ecb(KEY, counter + b"\xaa" * 13 + b"\xa0\x00\x00")
        assert FieldCipher.encrypt(KEY, CipherMode.CTR, counter, data) == keystream[:20]

    def test_wrong_key_gives_garbage_not_error(self):
        ciphertext = FieldCipher.encrypt(KEY, CipherMode.CTR, IV, b"s3cr3t")
        other = FieldCipher.decrypt(bytes(32), CipherMode.CTR, IV, ciphertext)
        assert len(other) == 6
        assert other != b"s3cr3t"


class TestFailures:
    def test_gcm_tamper_detected(self):
        ciphertext = bytearray(FieldCipher.encrypt(KEY, CipherMode.GCM, IV, b"alice"))
        ciphertext[0] ^= 0x01
        with pytest.raises(DecryptionError, match="Authentication tag"):
            FieldCipher.decrypt(KEY, CipherMode.GCM, IV, bytes(ciphertext))

    def test_gcm_wrong_key(self):
        ciphertext = FieldCipher.encrypt(KEY, CipherMode.GCM, IV, b"alice")
        with pytest.raises(DecryptionError):
            FieldCipher.decrypt(bytes(32), CipherMode.GCM, IV, ciphertext)

    def test_cbc_bad_length(self):
        with pytest.raises(DecryptionError, match="not a positive multiple"):
            FieldCipher.decrypt(KEY, CipherMode.CBC, IV, b"\x00" * 15)

    def test_cbc_empty(self):
        with pytest.raises(DecryptionError):
            FieldCipher.decrypt(KEY, CipherMode.CBC, IV, b"")

    def test_iv_size_checked(self):
        with pytest.raises(InputError):
            FieldCipher.encrypt(KEY, CipherMode.CBC, IV[:12], b"alice")

    def test_block_size(self):
        assert BLOCK_SIZE == 16


class TestDecodeText:
    def test_utf8(self):
        assert FieldCipher.decode_text("naïve".encode("utf-8"), "user") == "naïve"

    def test_invalid_utf8(self):
        with pytest.raises(DecryptionError, match="user"):
            FieldCipher.decode_text(b"\xff\xfe\xfa", "user")
