"""
Shared pytest fixtures for the tinyvault test suite.

Autouse fixtures below isolate tests from the live working directory:
  - Audit logger -> temp directory  (prevents test events in ./audit_logs)
  - Environment  -> no TINYVAULT_* variables leak in from the shell
"""

import pytest

from tinyvault.config import VaultConfig
from tinyvault.vault.random_source import SeededRandomSource

# Low iteration count so the suite runs in seconds; the real default is 100k
FAST_ITERATIONS = 10


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path, monkeypatch):
    """Redirect the global AuditLogger to a temp directory for every test.

    Without this, any test that (directly or indirectly) calls
    ``get_audit_logger().log_event(...)`` writes into the real
    ``./audit_logs/`` directory.
    """
    import tinyvault.core.audit_log as audit_mod

    # Reset the singleton so the next call to get_audit_logger() creates
    # a fresh instance pointing at the temp directory.
    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = None

    orig_init = audit_mod.AuditLogger.__init__

    def patched_init(self, log_dir=None):
        orig_init(self, log_dir=log_dir or tmp_path / "audit_logs")

    monkeypatch.setattr(audit_mod.AuditLogger, "__init__", patched_init)

    yield

    audit_mod._audit_logger = old_logger


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Drop TINYVAULT_* variables so the shell cannot change test settings."""
    import os

    for name in list(os.environ):
        if name.startswith("TINYVAULT_"):
            monkeypatch.delenv(name)


@pytest.fixture
def fast_config(tmp_path):
    """CBC vault config with a low iteration count."""
    return VaultConfig(
        iterations=FAST_ITERATIONS,
        vault_path=tmp_path / "vault.dat",
        audit_log_dir=tmp_path / "audit_logs",
    )


@pytest.fixture
def gcm_config(tmp_path):
    """GCM / SHA-512 vault config with a low iteration count."""
    return VaultConfig(
        iterations=FAST_ITERATIONS,
        mode="AES-GCM",
        hash_algorithm="SHA-512",
        vault_path=tmp_path / "vault.dat",
        audit_log_dir=tmp_path / "audit_logs",
    )


@pytest.fixture
def seeded_random():
    """Deterministic random source for reproducible vaults."""
    return SeededRandomSource(1234)
