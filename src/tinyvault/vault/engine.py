# tinyvault: Vault Operations
#
# generate / add_pass / view_pass / dell_pass over the Vault data model.
#
# Each operation is a function of (password, vault, arguments) -> new vault
# or error. The input vault is never mutated, so a failure part way through
# leaves nothing half-written for the caller to persist.

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from ..config import VaultConfig
from ..core import EventSeverity, EventType, get_audit_logger
from .cipher import CipherMode, FieldCipher
from .exceptions import DecryptionError, InputError, VaultError
from .kdf import FieldOffset, HashAlgorithm, derive_master_key, derive_record_ivs
from .models import (
    PEPPER_LENGTH,
    SALT_LENGTH,
    SEED_LENGTH,
    VAULT_ID_LENGTH,
    VAULT_IV_LENGTH,
    PlainRecord,
    Record,
    Vault,
)
from .random_source import RandomSource, get_random_source

logger = logging.getLogger(__name__)

# Redraws allowed when a new pepper collides with one already in the vault
MAX_PEPPER_ATTEMPTS = 32


@dataclass(frozen=True)
class SessionKey:
    """
    Key material of one unlocked operation.

    Derived once per operation and passed explicitly to every cipher call.
    Never persisted, logged or shown in repr.
    """
    master_key: bytes = field(repr=False)
    seed: bytes = field(repr=False)
    iterations: int
    hash_algorithm: HashAlgorithm

    def record_ivs(self, pepper: bytes) -> Dict[FieldOffset, bytes]:
        """The three field IVs of the record with this pepper."""
        return derive_record_ivs(self.seed, pepper, self.iterations, self.hash_algorithm)


class VaultEngine:
    """
    Cryptographic engine of a password vault.

    Security:
    - Master key = PBKDF2(password, vault salt), never stored
    - Vault seed (14 random bytes) encrypted under the master key
    - Per-field IVs = PBKDF2(seed, record pepper, iterations + offset)
    - extra/user under the vault-wide mode, pass under AES-CTR
    - Audit logging for all vault access (no secrets in the log)
    """

    def __init__(
        self,
        config: Optional[VaultConfig] = None,
        random_source: Optional[RandomSource] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Crypto settings (must match the ones used at generate time)
            random_source: Source of random bytes (default: os.urandom)
        """
        self.config = config or VaultConfig()
        self.random = random_source or get_random_source()
        self.logger = get_audit_logger()

    @staticmethod
    def _require_password(password: str) -> None:
        if not isinstance(password, str) or not password:
            raise InputError("Master password is required")

    def _derive_master_key(self, password: str, salt: bytes) -> bytes:
        return derive_master_key(
            password,
            salt,
            self.config.iterations,
            self.config.key_bits,
            self.config.hash_algorithm,
        )

    def generate(self, password: str) -> Vault:
        """
        Create a new, empty vault protected by password.

        Args:
            password: Master password

        Returns:
            Fresh Vault with a new id, IV, salt and encrypted seed
        """
        self._require_password(password)

        vault_id = self.random.token_bytes(VAULT_ID_LENGTH)
        iv = self.random.token_bytes(VAULT_IV_LENGTH)
        salt = self.random.token_bytes(SALT_LENGTH)

        master_key = self._derive_master_key(password, salt)
        seed = self.random.token_bytes(SEED_LENGTH)
        seed_ciphertext = FieldCipher.encrypt(master_key, self.config.mode, iv, seed)

        vault = Vault(
            vault_id=vault_id,
            iv=iv,
            salt=salt,
            seed_ciphertext=seed_ciphertext,
            records=(),
        )

        self.logger.log_event(
            event_type=EventType.VAULT_CREATED,
            severity=EventSeverity.INFO,
            message="Vault initialized with master password",
            details={"vault_id": vault.vault_id_hex, "mode": self.config.mode.value},
        )
        logger.debug("Generated vault %s", vault.vault_id_hex)
        return vault

    def unlock(self, password: str, vault: Vault) -> SessionKey:
        """
        Derive the session key of one operation.

        Raises:
            InputError: Empty password
            DecryptionError: Wrong master password or corrupted seed
        """
        self._require_password(password)
        master_key = self._derive_master_key(password, vault.salt)

        try:
            seed = FieldCipher.decrypt(master_key, self.config.mode, vault.iv, vault.seed_ciphertext)
            if len(seed) != SEED_LENGTH:
                raise DecryptionError(f"Decrypted seed has {len(seed)} bytes, expected {SEED_LENGTH}")
        except DecryptionError as exc:
            self.logger.log_event(
                event_type=EventType.VAULT_UNLOCK_FAILED,
                severity=EventSeverity.ALERT,
                message="Vault unlock failed: incorrect password or corrupted vault",
                details={"vault_id": vault.vault_id_hex},
            )
            raise DecryptionError("Incorrect master password or corrupted vault") from exc

        self.logger.log_event(
            event_type=EventType.VAULT_UNLOCKED,
            severity=EventSeverity.INFO,
            message="Vault unlocked successfully",
            details={"vault_id": vault.vault_id_hex},
        )
        return SessionKey(
            master_key=master_key,
            seed=seed,
            iterations=self.config.iterations,
            hash_algorithm=self.config.hash_algorithm,
        )

    def _new_pepper(self, vault: Vault) -> bytes:
        """Draw a pepper not already used by a record of this vault."""
        taken = vault.peppers()
        for _ in range(MAX_PEPPER_ATTEMPTS):
            pepper = self.random.token_bytes(PEPPER_LENGTH)
            if pepper not in taken:
                return pepper
            logger.debug("Pepper collision in vault %s, drawing again", vault.vault_id_hex)
        raise VaultError(f"Could not draw an unused pepper after {MAX_PEPPER_ATTEMPTS} attempts")

    def add_pass(
        self,
        password: str,
        vault: Vault,
        extra: str,
        user: str,
        new_password: str,
    ) -> Vault:
        """
        Add a credential to the vault.

        Args:
            password: Master password
            vault: Current vault
            extra: Site, URL or host label
            user: Username / email
            new_password: Secret to store

        Returns:
            New Vault with the record prepended
        """
        for name, value in (("extra", extra), ("user", user), ("newpass", new_password)):
            if not isinstance(value, str):
                raise InputError(f"{name} must be a string")

        session = self.unlock(password, vault)
        pepper = self._new_pepper(vault)
        ivs = session.record_ivs(pepper)

        record = Record(
            pepper=pepper,
            extra=FieldCipher.encrypt(
                session.master_key, self.config.mode, ivs[FieldOffset.EXTRA], extra.encode("utf-8")
            ),
            user=FieldCipher.encrypt(
                session.master_key, self.config.mode, ivs[FieldOffset.USER], user.encode("utf-8")
            ),
            password=FieldCipher.encrypt(
                session.master_key, CipherMode.CTR, ivs[FieldOffset.PASS], new_password.encode("utf-8")
            ),
        )

        self.logger.log_event(
            event_type=EventType.VAULT_PASSWORD_ADDED,
            severity=EventSeverity.INFO,
            message="Password added to vault",
            details={"vault_id": vault.vault_id_hex, "record_id": record.record_id},
        )
        return replace(vault, records=(record,) + vault.records)

    def _decrypt_record(self, session: SessionKey, record: Record) -> PlainRecord:
        ivs = session.record_ivs(record.pepper)
        try:
            extra = FieldCipher.decode_text(
                FieldCipher.decrypt(session.master_key, self.config.mode, ivs[FieldOffset.EXTRA], record.extra),
                "extra",
            )
            user = FieldCipher.decode_text(
                FieldCipher.decrypt(session.master_key, self.config.mode, ivs[FieldOffset.USER], record.user),
                "user",
            )
            secret = FieldCipher.decode_text(
                FieldCipher.decrypt(session.master_key, CipherMode.CTR, ivs[FieldOffset.PASS], record.password),
                "pass",
            )
        except DecryptionError as exc:
            raise DecryptionError(f"Record {record.record_id}: {exc}") from exc
        return PlainRecord(extra=extra, user=user, password=secret, pepper=record.pepper)

    def view_pass(self, password: str, vault: Vault) -> List[PlainRecord]:
        """
        Decrypt every record of the vault.

        Records come back in storage order, most recently added first.
        One record that fails to decrypt aborts the whole view.

        Raises:
            DecryptionError: Wrong master password, or a corrupt record
        """
        session = self.unlock(password, vault)

        try:
            plain = [self._decrypt_record(session, record) for record in vault.records]
        except DecryptionError as exc:
            self.logger.log_event(
                event_type=EventType.VAULT_ERROR,
                severity=EventSeverity.CRITICAL,
                message=f"Failed to decrypt vault records: {exc}",
                details={"vault_id": vault.vault_id_hex},
            )
            raise

        self.logger.log_event(
            event_type=EventType.VAULT_PASSWORD_ACCESSED,
            severity=EventSeverity.INFO,
            message=f"Vault records viewed ({len(plain)})",
            details={"vault_id": vault.vault_id_hex, "count": len(plain)},
        )
        return plain

    def dell_pass(self, identifier: str, vault: Vault) -> Vault:
        """
        Remove every record whose pepper matches identifier (hex).

        No master password is needed to delete. An unknown identifier
        returns the vault unchanged.
        """
        if not isinstance(identifier, str) or not identifier:
            raise InputError("Record identifier is required")

        wanted = identifier.strip().lower()
        kept = tuple(record for record in vault.records if record.record_id != wanted)
        removed = len(vault.records) - len(kept)

        if not removed:
            logger.info("No record with id %s in vault %s", wanted, vault.vault_id_hex)
            return vault

        self.logger.log_event(
            event_type=EventType.VAULT_PASSWORD_DELETED,
            severity=EventSeverity.INFO,
            message="Password deleted from vault",
            details={"vault_id": vault.vault_id_hex, "record_id": wanted, "removed": removed},
        )
        return replace(vault, records=kept)
