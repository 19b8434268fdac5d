"""
Secure Logging Module
=====================

Provides security-aware logging with secret filtering.

Security Features:
- Automatic secret/sensitive data filtering
- Rotating log files with size limits
- No debug information leakage

Core modules obtain plain stdlib loggers under the "fpvault" namespace
(e.g. logging.getLogger("fpvault.db")); configure_logging() attaches the
filtered handlers to the package logger once at startup.
"""

from __future__ import annotations

import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, Pattern

from fpvault.core.config import LoggingConfig

PACKAGE_LOGGER: Final[str] = "fpvault"

# Patterns for sensitive data detection
_SENSITIVE_PATTERNS: Final[list[tuple[str, Pattern[str]]]] = [
    ("password", re.compile(r'(?i)(password|passwd|pwd|passkey)\s*[=:]\s*["\']?[^\s"\']+["\']?')),
    ("secret", re.compile(r'(?i)(secret|private[_-]?key)\s*[=:]\s*["\']?[^\s"\']+["\']?')),
    ("token", re.compile(r'(?i)(token|bearer)\s*[=:]\s*["\']?[^\s"\']+["\']?')),
    # Base64 encoded secrets
    ("base64_secret", re.compile(r'[A-Za-z0-9+/]{40,}={0,2}')),
    # Hex encoded secrets
    ("hex_secret", re.compile(r'(?i)(?:0x)?[a-f0-9]{32,}')),
]

_REDACTED_TEXT: Final[str] = "[REDACTED]"

_CONSOLE_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_FILE_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"


class SecureLogFilter(logging.Filter):
    """
    Log filter that removes sensitive information from log messages.

    Scans messages and string arguments for patterns that might contain
    passwords, keys or tokens and replaces them with [REDACTED].
    """

    def __init__(self, name: str = "", additional_patterns: Optional[list[Pattern[str]]] = None) -> None:
        super().__init__(name)
        self._additional_patterns = additional_patterns or []

    def filter(self, record: logging.LogRecord) -> bool:
        """Sanitize the record in place; records are never dropped."""
        if record.msg and isinstance(record.msg, str):
            record.msg = self._sanitize(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._sanitize(v) if isinstance(v, str) else v
                               for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self._sanitize(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        return True

    def _sanitize(self, text: str) -> str:
        result = text

        for name, pattern in _SENSITIVE_PATTERNS:
            result = pattern.sub(f"{name}={_REDACTED_TEXT}", result)

        for pattern in self._additional_patterns:
            result = pattern.sub(_REDACTED_TEXT, result)

        return result


class SecureRotatingFileHandler(RotatingFileHandler):
    """Rotating file handler that creates its directory with owner-only permissions."""

    def __init__(
        self,
        filename: str | Path,
        mode: str = "a",
        maxBytes: int = 10 * 1024 * 1024,
        backupCount: int = 5,
        encoding: str = "utf-8",
    ) -> None:
        log_path = Path(filename).resolve()
        log_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

        super().__init__(
            str(log_path),
            mode=mode,
            maxBytes=maxBytes,
            backupCount=backupCount,
            encoding=encoding,
        )


def get_secure_logger(
    name: str = PACKAGE_LOGGER,
    log_dir: Optional[Path] = None,
    level: str = "INFO",
    enable_console: bool = True,
    enable_file: bool = True,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Create a logger with automatic secret filtering.

    Args:
        name: Logger name (typically the package name)
        log_dir: Directory for log files (file output disabled if None)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Whether to output to stderr
        enable_file: Whether to output to a rotating file
        max_file_size: Maximum log file size before rotation
        backup_count: Number of backup files to keep

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, level.upper()))
    secure_filter = SecureLogFilter()

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        console_handler.addFilter(secure_filter)
        logger.addHandler(console_handler)

    if enable_file and log_dir:
        file_handler = SecureRotatingFileHandler(
            filename=log_dir / f"{name.replace('.', '_')}.log",
            maxBytes=max_file_size,
            backupCount=backup_count,
        )
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        file_handler.addFilter(secure_filter)
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def configure_logging(settings: LoggingConfig, log_dir: Optional[Path] = None) -> logging.Logger:
    """
    Configure the package logger from a LoggingConfig.

    Call once at application startup.
    """
    return get_secure_logger(
        PACKAGE_LOGGER,
        log_dir=log_dir,
        level=settings.level,
        enable_console=settings.enable_console,
        enable_file=settings.enable_file,
        max_file_size=settings.max_file_size_bytes,
        backup_count=settings.backup_count,
    )
