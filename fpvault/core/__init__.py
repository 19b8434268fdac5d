"""
Core module - Contains configuration, logging, errors, and crypto components.
"""

from fpvault.core.config import VaultConfig
from fpvault.core.exceptions import VaultError
from fpvault.core.logging import configure_logging, get_secure_logger, SecureLogFilter

__all__ = ["VaultConfig", "VaultError", "configure_logging", "get_secure_logger", "SecureLogFilter"]
