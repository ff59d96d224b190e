# tinyvault: Configuration
#
# Iteration count, key size, block mode and hash are not stored in the vault
# file. The values used at generate time must be used for every later
# operation on that vault, so they come from one place: defaults, then the
# environment (.env files loaded once), then CLI flags.

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Tuple

from dotenv import load_dotenv

from .vault.cipher import BLOCK_MODES, CipherMode
from .vault.exceptions import InputError
from .vault.kdf import (
    DEFAULT_ITERATIONS,
    DEFAULT_KEY_BITS,
    SUPPORTED_KEY_BITS,
    HashAlgorithm,
)

logger = logging.getLogger(__name__)

ENV_ITERATIONS = "TINYVAULT_ITERATIONS"
ENV_KEY_BITS = "TINYVAULT_KEY_BITS"
ENV_MODE = "TINYVAULT_MODE"
ENV_HASH = "TINYVAULT_HASH"
ENV_PATH = "TINYVAULT_PATH"
ENV_AUDIT_DIR = "TINYVAULT_AUDIT_DIR"

DEFAULT_VAULT_PATH = Path("./vault.dat")
DEFAULT_AUDIT_DIR = Path("./audit_logs")

# Track which directories have already been processed to avoid re-loading.
_LOADED_ROOTS: set = set()


def load_env_once(project_root: Optional[Path] = None) -> List[Path]:
    """
    Load .env then .env.local (overriding) from project_root, once per root.

    Returns:
        Env file paths that were loaded (empty if already loaded)
    """
    root_path = Path(project_root) if project_root else Path.cwd()
    root_key = str(root_path.resolve())
    if root_key in _LOADED_ROOTS:
        return []

    env_paths: List[Tuple[Path, bool]] = [
        (root_path / ".env", False),
        (root_path / ".env.local", True),
    ]
    loaded: List[Path] = []
    for path, should_override in env_paths:
        if path.exists():
            load_dotenv(path, override=should_override)
            loaded.append(path)

    _LOADED_ROOTS.add(root_key)
    if loaded:
        logger.debug("Loaded env files: %s", ", ".join(str(p) for p in loaded))
    return loaded


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise InputError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class VaultConfig:
    """Cryptographic and file settings for one vault."""
    iterations: int = DEFAULT_ITERATIONS
    key_bits: int = DEFAULT_KEY_BITS
    mode: CipherMode = CipherMode.CBC
    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256
    vault_path: Path = DEFAULT_VAULT_PATH
    audit_log_dir: Path = DEFAULT_AUDIT_DIR

    def __post_init__(self):
        try:
            mode = CipherMode(self.mode)
        except ValueError:
            raise InputError(f"Unknown cipher mode {self.mode!r}") from None
        if mode not in BLOCK_MODES:
            raise InputError(
                f"Vault mode must be one of {', '.join(m.value for m in BLOCK_MODES)}, got {mode.value}"
            )
        try:
            hash_algorithm = HashAlgorithm(self.hash_algorithm)
        except ValueError:
            raise InputError(f"Unknown hash algorithm {self.hash_algorithm!r}") from None
        if self.iterations < 1:
            raise InputError(f"Iteration count must be positive, got {self.iterations}")
        if self.key_bits not in SUPPORTED_KEY_BITS:
            raise InputError(
                f"Key size must be one of {SUPPORTED_KEY_BITS} bits, got {self.key_bits}"
            )

        object.__setattr__(self, "mode", mode)
        object.__setattr__(self, "hash_algorithm", hash_algorithm)
        object.__setattr__(self, "vault_path", Path(self.vault_path))
        object.__setattr__(self, "audit_log_dir", Path(self.audit_log_dir))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "VaultConfig":
        """
        Build a config from TINYVAULT_* environment variables.

        When environ is None, .env files in the working directory are
        loaded first and os.environ is used.
        """
        if environ is None:
            load_env_once()
            environ = os.environ

        kwargs = {}
        if environ.get(ENV_ITERATIONS):
            kwargs["iterations"] = _parse_int(ENV_ITERATIONS, environ[ENV_ITERATIONS])
        if environ.get(ENV_KEY_BITS):
            kwargs["key_bits"] = _parse_int(ENV_KEY_BITS, environ[ENV_KEY_BITS])
        if environ.get(ENV_MODE):
            kwargs["mode"] = environ[ENV_MODE].upper()
        if environ.get(ENV_HASH):
            kwargs["hash_algorithm"] = environ[ENV_HASH].upper()
        if environ.get(ENV_PATH):
            kwargs["vault_path"] = Path(environ[ENV_PATH]).expanduser()
        if environ.get(ENV_AUDIT_DIR):
            kwargs["audit_log_dir"] = Path(environ[ENV_AUDIT_DIR]).expanduser()
        return cls(**kwargs)

    def with_overrides(self, **overrides) -> "VaultConfig":
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def describe(self) -> Iterable[Tuple[str, str]]:
        yield "iterations", str(self.iterations)
        yield "key_bits", str(self.key_bits)
        yield "mode", self.mode.value
        yield "hash", self.hash_algorithm.value
