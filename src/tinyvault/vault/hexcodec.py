# tinyvault: Byte/Hex Codec
#
# Every binary field of a persisted vault (ids, IVs, salts, peppers and
# ciphertexts) is stored as lowercase hex text. Hex only exists at the
# serialization boundary; the engine works on bytes.

from .exceptions import CorruptVaultError


def to_hex(data: bytes) -> str:
    """Encode bytes as lowercase hex."""
    return bytes(data).hex()


def from_hex(text: str, field: str = "value") -> bytes:
    """
    Decode a hex string from the vault container.

    Args:
        text: Hex text (upper or lower case)
        field: Field name used in the error message

    Returns:
        Decoded bytes

    Raises:
        CorruptVaultError: If text is not a string of hex digit pairs
    """
    if isinstance(text, (bytes, bytearray)):
        # msgpack may hand back raw bin values for files written elsewhere
        return bytes(text)
    if not isinstance(text, str):
        raise CorruptVaultError(f"{field}: expected hex string, got {type(text).__name__}")
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise CorruptVaultError(f"{field}: malformed hex") from None


def expect_length(data: bytes, length: int, field: str) -> bytes:
    """Check that a decoded fixed-size field has the right size."""
    if len(data) != length:
        raise CorruptVaultError(f"{field}: expected {length} bytes, got {len(data)}")
    return data
