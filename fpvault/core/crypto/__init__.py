"""
fpvault Cryptographic Core
==========================

Passkey-based authenticated encryption for the credential database.

Architecture:
    1. Argon2id: passkey + salt -> 256-bit key
    2. AES-256-GCM: authenticated encryption of the record payload

Security Properties:
    - All encryption is authenticated (AEAD)
    - Keys never touch disk (memory-only, zeroized on release)
    - Secure RNG for all random values

WARNING: This module handles sensitive cryptographic material.
         Incorrect usage can compromise security.
"""

from fpvault.core.crypto.aes_gcm import AesGcmCipher, AES_KEY_SIZE, AES_NONCE_SIZE, AES_TAG_SIZE
from fpvault.core.crypto.kdf import (
    DEFAULT_KDF_PARAMETERS,
    DerivedKey,
    KdfParameters,
    SALT_LENGTH,
    derive_key,
    generate_salt,
)

__all__ = [
    "AesGcmCipher",
    "AES_KEY_SIZE",
    "AES_NONCE_SIZE",
    "AES_TAG_SIZE",
    "DEFAULT_KDF_PARAMETERS",
    "DerivedKey",
    "KdfParameters",
    "SALT_LENGTH",
    "derive_key",
    "generate_salt",
]
