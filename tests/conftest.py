"""
Shared pytest fixtures for the fpvault test suite.

Autouse fixtures below isolate tests from the real environment:
  - Configuration -> cheap Argon2id parameters, temp data/log dirs
  - Logging       -> package logger handlers removed after each test
"""

import logging

import pytest

from fpvault.core.config import PathConfig, VaultConfig
from fpvault.core.crypto.kdf import KdfParameters
from fpvault.db.database import Database

PASSKEY = "Str0ng!Passkey123"


@pytest.fixture(autouse=True)
def _isolate_config(tmp_path, monkeypatch):
    """Point the singleton config at a temp dir with fast KDF settings.

    Default Argon2id parameters take 64 MiB and noticeable time per
    derivation; every test that creates or opens a database would pay it.
    """
    monkeypatch.setenv("FPVAULT_KDF__TIME_COST", "1")
    monkeypatch.setenv("FPVAULT_KDF__MEMORY_COST", "8192")
    monkeypatch.setenv("FPVAULT_KDF__PARALLELISM", "1")
    monkeypatch.setenv("FPVAULT_PATHS__DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("FPVAULT_PATHS__LOG_DIR", str(tmp_path / "logs"))
    VaultConfig.reset_instance()

    yield

    VaultConfig.reset_instance()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers configure_logging() attached to the package logger."""
    yield

    logger = logging.getLogger("fpvault")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fast_kdf():
    return KdfParameters(time_cost=1, memory_cost=8192, parallelism=1)


@pytest.fixture
def config(tmp_path, fast_kdf):
    return VaultConfig(
        paths=PathConfig(data_dir=tmp_path / "data", log_dir=tmp_path / "logs"),
        kdf=fast_kdf,
    )


@pytest.fixture
def passkey():
    return PASSKEY


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "vault.fp"


@pytest.fixture
def db(db_path, passkey, config):
    """A freshly created, open, empty database."""
    database = Database.create(db_path, passkey, config)
    yield database
    database.close()
