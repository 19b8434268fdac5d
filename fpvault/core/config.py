"""
Secure Configuration Module
===========================

Provides immutable, environment-aware configuration with security-first defaults.

Security Features:
- Immutable configuration after initialization
- Environment variable override support
- No secrets in default values or accepted from the environment
- OS-aware path handling
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Optional

from fpvault.core.crypto.kdf import KdfParameters
from fpvault.security.constants import CLIPBOARD_CLEAR_SECONDS

ENV_PREFIX: Final[str] = "FPVAULT"

# Security Constants
_SENSITIVE_KEYS: Final[frozenset[str]] = frozenset({
    "password", "passkey", "secret", "key", "token",
    "private", "credential", "salt",
})


def _is_sensitive_key(key: str) -> bool:
    """Check if a configuration key might contain sensitive data."""
    leaf = key.rsplit(".", 1)[-1]
    return any(sensitive in leaf for sensitive in _SENSITIVE_KEYS)


def _get_default_data_dir() -> Path:
    """Get OS-appropriate default data directory."""
    system = platform.system().lower()

    if system == "windows":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    elif system == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:  # Linux and others
        base = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))

    return base / "fpvault"


def _get_default_log_dir() -> Path:
    """Get OS-appropriate default log directory."""
    system = platform.system().lower()

    if system == "windows":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return base / "fpvault" / "Logs"
    elif system == "darwin":
        return Path.home() / "Library" / "Logs" / "fpvault"
    else:  # Linux and others
        return Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state")) / "fpvault" / "logs"


@dataclass(frozen=True, slots=True)
class PathConfig:
    """Immutable path configuration with OS-aware defaults."""

    data_dir: Path = field(default_factory=_get_default_data_dir)
    log_dir: Path = field(default_factory=_get_default_log_dir)

    def __post_init__(self) -> None:
        for field_name in ("data_dir", "log_dir"):
            path = getattr(self, field_name)
            if not path.is_absolute():
                raise ValueError(f"{field_name} must be an absolute path: {path}")


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Immutable logging configuration."""

    level: str = "WARNING"
    max_file_size_bytes: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    enable_console: bool = True
    enable_file: bool = False

    def __post_init__(self) -> None:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {self.level}")


@dataclass(frozen=True, slots=True)
class ClipboardConfig:
    """Immutable clipboard configuration."""

    clear_seconds: float = CLIPBOARD_CLEAR_SECONDS

    def __post_init__(self) -> None:
        if self.clear_seconds <= 0:
            raise ValueError("clear_seconds must be positive")


class VaultConfig:
    """
    Centralized, immutable configuration with environment override support.

    Usage:
        config = VaultConfig.load()
        params = config.kdf
        level = config.logging.level

    Environment variables are prefixed with FPVAULT_ and use double
    underscores for nesting:
        FPVAULT_LOGGING__LEVEL=DEBUG
        FPVAULT_KDF__MEMORY_COST=131072
        FPVAULT_CLIPBOARD__CLEAR_SECONDS=15
    """

    __slots__ = ("_paths", "_kdf", "_logging", "_clipboard", "_frozen")

    _instance: Optional[VaultConfig] = None

    def __init__(
        self,
        paths: Optional[PathConfig] = None,
        kdf: Optional[KdfParameters] = None,
        logging: Optional[LoggingConfig] = None,
        clipboard: Optional[ClipboardConfig] = None,
    ) -> None:
        """Initialize configuration. Use VaultConfig.load() for standard initialization."""
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_paths", paths or PathConfig())
        object.__setattr__(self, "_kdf", kdf or KdfParameters())
        object.__setattr__(self, "_logging", logging or LoggingConfig())
        object.__setattr__(self, "_clipboard", clipboard or ClipboardConfig())
        self._kdf.validate()
        object.__setattr__(self, "_frozen", True)

    @property
    def paths(self) -> PathConfig:
        return self._paths

    @property
    def kdf(self) -> KdfParameters:
        """Argon2id parameters used for newly created databases."""
        return self._kdf

    @property
    def logging(self) -> LoggingConfig:
        return self._logging

    @property
    def clipboard(self) -> ClipboardConfig:
        return self._clipboard

    @classmethod
    def load(cls, env_prefix: str = ENV_PREFIX) -> VaultConfig:
        """
        Load configuration with environment variable overrides.

        Args:
            env_prefix: Prefix for environment variables (default: FPVAULT)

        Returns:
            Configured VaultConfig instance

        Raises:
            ValueError: If an override has the wrong type or is out of range
        """
        env = cls._parse_env_overrides(env_prefix)

        paths_kwargs: dict[str, Any] = {}
        for name in ("data_dir", "log_dir"):
            if f"paths.{name}" in env:
                paths_kwargs[name] = Path(env[f"paths.{name}"])

        kdf_kwargs: dict[str, Any] = {}
        for name in ("time_cost", "memory_cost", "parallelism"):
            if f"kdf.{name}" in env:
                kdf_kwargs[name] = int(env[f"kdf.{name}"])

        logging_kwargs: dict[str, Any] = {}
        if "logging.level" in env:
            logging_kwargs["level"] = env["logging.level"].upper()
        if "logging.enable_console" in env:
            logging_kwargs["enable_console"] = env["logging.enable_console"].lower() == "true"
        if "logging.enable_file" in env:
            logging_kwargs["enable_file"] = env["logging.enable_file"].lower() == "true"

        clipboard_kwargs: dict[str, Any] = {}
        if "clipboard.clear_seconds" in env:
            clipboard_kwargs["clear_seconds"] = float(env["clipboard.clear_seconds"])

        return cls(
            paths=PathConfig(**paths_kwargs) if paths_kwargs else None,
            kdf=KdfParameters(**kdf_kwargs) if kdf_kwargs else None,
            logging=LoggingConfig(**logging_kwargs) if logging_kwargs else None,
            clipboard=ClipboardConfig(**clipboard_kwargs) if clipboard_kwargs else None,
        )

    @staticmethod
    def _parse_env_overrides(prefix: str) -> dict[str, str]:
        """Parse environment variables with the given prefix."""
        overrides: dict[str, str] = {}
        prefix_upper = f"{prefix.upper()}_"

        for key, value in os.environ.items():
            if key.startswith(prefix_upper):
                # FPVAULT_SECTION__KEY -> section.key
                config_key = key[len(prefix_upper):].lower().replace("__", ".")

                # SECURITY: never take secrets from the environment
                if _is_sensitive_key(config_key):
                    continue

                overrides[config_key] = value

        return overrides

    @classmethod
    def get_instance(cls) -> VaultConfig:
        """Get or create the singleton configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance. Use only for testing."""
        cls._instance = None

    def __repr__(self) -> str:
        return (
            f"VaultConfig(data_dir={str(self._paths.data_dir)!r}, "
            f"kdf={self._kdf}, log_level={self._logging.level})"
        )

    def __setattr__(self, name: str, value: Any) -> None:
        """Prevent modification after initialization."""
        if getattr(self, "_frozen", False):
            raise AttributeError("VaultConfig is immutable after initialization")
        super().__setattr__(name, value)
