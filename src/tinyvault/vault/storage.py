# tinyvault: Vault File
#
# Reads and writes one vault as a msgpack map with integer tags.
# Writes go to a temp file in the same directory and replace the vault
# atomically, so a crash never leaves a half-written vault behind.
# No cross-process locking: callers serialize read-modify-write.

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

import msgpack

from .exceptions import CorruptVaultError
from .models import Vault

logger = logging.getLogger(__name__)


def encode_vault(vault: Vault) -> bytes:
    """Serialize a vault to msgpack bytes."""
    return msgpack.packb(vault.to_wire(), use_bin_type=True)


def decode_vault(blob: bytes) -> Vault:
    """
    Parse msgpack bytes into a Vault.

    Raises:
        CorruptVaultError: Not msgpack, or not a vault container
    """
    try:
        data = msgpack.unpackb(blob, raw=False, strict_map_key=False)
    except (msgpack.exceptions.UnpackException, ValueError, TypeError) as e:
        raise CorruptVaultError(f"Vault file is not valid msgpack: {e}") from None
    return Vault.from_wire(data)


class VaultFile:
    """A vault persisted at a filesystem path."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def exists(self) -> bool:
        """True if a non-empty vault file is present (0-byte files are not vaults)."""
        return self.path.exists() and self.path.stat().st_size > 0

    def load(self) -> Vault:
        """
        Read and parse the vault.

        Raises:
            OSError: File missing or unreadable
            CorruptVaultError: Malformed contents
        """
        blob = self.path.read_bytes()
        if not blob:
            raise CorruptVaultError(f"Vault file {self.path} is empty")
        vault = decode_vault(blob)
        logger.debug("Loaded vault %s (%d records) from %s", vault.vault_id_hex, len(vault.records), self.path)
        return vault

    def save(self, vault: Vault) -> None:
        """Write the vault atomically with owner-only permissions."""
        blob = encode_vault(vault)
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        logger.debug("Saved vault %s (%d records) to %s", vault.vault_id_hex, len(vault.records), self.path)
