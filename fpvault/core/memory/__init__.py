"""
fpvault Memory Security Module
==============================

Provides secure memory handling primitives for key material.

Components:
- secure_memory.py: Zeroizing buffer implementation
- zeroization.py: Memory wiping utilities and exit-time registry

WARNING:
- Python's memory model doesn't guarantee secure erasure
- These are best-effort mitigations
"""

from fpvault.core.memory.secure_memory import SecureBuffer
from fpvault.core.memory.zeroization import (
    secure_zero,
    ZeroizeContext,
    WipeRegistry,
    get_wipe_registry,
)

__all__ = [
    "SecureBuffer",
    "secure_zero",
    "ZeroizeContext",
    "WipeRegistry",
    "get_wipe_registry",
]
