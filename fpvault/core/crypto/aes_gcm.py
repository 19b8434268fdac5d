"""
AES-256-GCM Authenticated Encryption
====================================

Seals and opens the database payload under the derived key.

Security Properties:
    - 256-bit key (128-bit security level)
    - 96-bit nonce (NIST recommended)
    - 128-bit authentication tag
    - Authenticated Additional Data (AAD) support

NIST SP 800-38D Compliance:
    - GCM mode with 96-bit IV
    - Unique nonce for each encryption under same key

WARNING:
    - Never reuse (key, nonce) pairs
    - open() fails closed: wrong key and corruption are indistinguishable
"""

from __future__ import annotations

import secrets
from typing import Final, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from fpvault.core.exceptions import IntegrityError

# Constants following NIST recommendations
AES_KEY_SIZE: Final[int] = 32  # 256 bits
AES_NONCE_SIZE: Final[int] = 12  # 96 bits (NIST recommended for GCM)
AES_TAG_SIZE: Final[int] = 16  # 128 bits


class AesGcmCipher:
    """
    AES-256-GCM Authenticated Encryption with Associated Data (AEAD).

    Usage:
        cipher = AesGcmCipher()
        nonce = cipher.generate_nonce()
        sealed = cipher.seal(key, nonce, plaintext, aad=header)
        plaintext = cipher.open(key, nonce, sealed, aad=header)

    Security Notes:
        - Callers must draw a fresh nonce for every seal()
        - open() verifies the tag before any plaintext is returned
    """

    __slots__ = ()

    @staticmethod
    def generate_nonce() -> bytes:
        """
        Generate a cryptographically secure random nonce.

        Returns:
            12 bytes of cryptographic random data

        Security:
            96-bit nonces with random generation have negligible collision
            probability for up to 2^32 encryptions under same key.
        """
        return secrets.token_bytes(AES_NONCE_SIZE)

    def seal(
        self,
        key: bytes | bytearray,
        nonce: bytes,
        plaintext: bytes,
        aad: Optional[bytes] = None,
    ) -> bytes:
        """
        Encrypt plaintext using AES-256-GCM.

        Args:
            key: 32-byte key
            nonce: 12-byte nonce, never used before with this key
            plaintext: Data to encrypt (can be empty)
            aad: Additional Authenticated Data (authenticated but not encrypted)

        Returns:
            Ciphertext with the 16-byte authentication tag appended

        Raises:
            ValueError: If key or nonce has the wrong size
        """
        if len(key) != AES_KEY_SIZE:
            raise ValueError(f"Key must be exactly {AES_KEY_SIZE} bytes")
        if len(nonce) != AES_NONCE_SIZE:
            raise ValueError(f"Nonce must be exactly {AES_NONCE_SIZE} bytes")

        return AESGCM(key).encrypt(nonce, plaintext, aad)

    def open(
        self,
        key: bytes | bytearray,
        nonce: bytes,
        ciphertext: bytes,
        aad: Optional[bytes] = None,
    ) -> bytes:
        """
        Decrypt ciphertext using AES-256-GCM with integrity verification.

        Args:
            key: The 32-byte key
            nonce: The nonce used during encryption
            ciphertext: Encrypted data with authentication tag
            aad: Additional Authenticated Data (must match seal AAD)

        Returns:
            Decrypted plaintext bytes

        Raises:
            IntegrityError: On any verification failure, including malformed
                key, nonce, or ciphertext lengths
        """
        if (
            len(key) != AES_KEY_SIZE
            or len(nonce) != AES_NONCE_SIZE
            or len(ciphertext) < AES_TAG_SIZE
        ):
            raise IntegrityError("Authentication failed")

        try:
            return AESGCM(key).decrypt(nonce, ciphertext, aad)
        except InvalidTag as e:
            raise IntegrityError("Authentication failed") from e
