# tinyvault: Audit Logging
#
# Append-only audit trail of vault operations (create, unlock, add, view,
# delete, failures) as structured JSON lines, one file per day.
# Details carry vault ids and record peppers only. Passwords, keys, seeds
# and decrypted fields are never logged.

import logging
import os
import socket
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

AUDIT_LOGGER_NAME = "tinyvault.audit"


class EventType(str, Enum):
    """Types of vault events that can be logged."""
    # Vault Events
    VAULT_CREATED = "vault.created"
    VAULT_UNLOCKED = "vault.unlocked"
    VAULT_UNLOCK_FAILED = "vault.unlock.failed"
    VAULT_PASSWORD_ADDED = "vault.password.added"
    VAULT_PASSWORD_ACCESSED = "vault.password.accessed"
    VAULT_PASSWORD_DELETED = "vault.password.deleted"
    VAULT_ERROR = "vault.error"

    # System Events
    SYSTEM_START = "system.start"


class EventSeverity(str, Enum):
    """
    Severity levels for vault events.

    - INFO: Normal activity
    - ALERT: Failed unlock (possible guessing)
    - CRITICAL: Corrupt vault or unexpected failure
    """
    INFO = "info"
    ALERT = "alert"
    CRITICAL = "critical"


class AuditLogger:
    """
    Append-only audit logger for vault events.

    Features:
    - Structured JSON logging (structlog)
    - Automatic timestamp and event ID
    - OS user / host context
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
        """
        self.log_dir = Path(log_dir) if log_dir else Path("./audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        # Setup structured logging
        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self.log_file = self._setup_file_handler()

        self.logger = structlog.get_logger(AUDIT_LOGGER_NAME)

    def _setup_file_handler(self) -> Path:
        """Attach a daily file handler to the audit logger (replacing any previous one)."""
        today = datetime.now().strftime("%Y-%m-%d")
        log_file = self.log_dir / f"audit_{today}.log"

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        formatter = logging.Formatter('%(message)s')  # structlog handles formatting
        file_handler.setFormatter(formatter)

        audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
        for handler in list(audit_logger.handlers):
            audit_logger.removeHandler(handler)
            handler.close()
        audit_logger.addHandler(file_handler)
        audit_logger.setLevel(logging.INFO)
        # Keep audit lines out of the console
        audit_logger.propagate = False
        return log_file

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_context: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log a vault event (append-only).

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (never secrets!)
            user_context: User context (defaults to OS user / hostname)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())

        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details or {},
            "user_context": user_context or self._get_default_user_context(),
        }

        self.logger.info(
            "vault_event",
            **event_data
        )

        return event_id

    def _get_default_user_context(self) -> Dict[str, Any]:
        """Get default user context (OS user, hostname, etc.)."""
        return {
            "os_user": os.getenv("USERNAME") or os.getenv("USER"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def configure_audit_logger(log_dir: Path) -> AuditLogger:
    """Replace the global audit logger with one writing to log_dir."""
    global _audit_logger
    _audit_logger = AuditLogger(log_dir=log_dir)
    return _audit_logger

