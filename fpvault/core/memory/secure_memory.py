"""
Secure Memory Buffers
=====================

Fixed-size byte buffer for key material with explicit zeroization.

Security Properties:
- Explicit zeroization (don't rely on Python GC)
- Memory locking where supported (prevent swapping)
- Automatic cleanup on context exit, GC, and interpreter exit

Limitations:
- Python's memory model copies data internally
- Best-effort security, not guaranteed
"""

from __future__ import annotations

import ctypes
import ctypes.util
import hmac
import platform
from typing import Final, Optional

from fpvault.core.memory.zeroization import get_wipe_registry, secure_zero


# Platform detection
IS_WINDOWS: Final[bool] = platform.system() == "Windows"

_libc: Optional[ctypes.CDLL] = None


def _load_libc() -> Optional[ctypes.CDLL]:
    global _libc
    if _libc is None and not IS_WINDOWS:
        name = ctypes.util.find_library("c")
        if name:
            _libc = ctypes.CDLL(name, use_errno=True)
    return _libc


def _mlock(address: int, size: int) -> bool:
    """
    Lock memory pages to prevent swapping.

    Returns True if successful, False otherwise. Failure is normal for
    unprivileged processes with a low RLIMIT_MEMLOCK.
    """
    try:
        if IS_WINDOWS:
            kernel32 = ctypes.windll.kernel32
            return bool(kernel32.VirtualLock(ctypes.c_void_p(address), ctypes.c_size_t(size)))
        libc = _load_libc()
        if libc is None:
            return False
        return libc.mlock(ctypes.c_void_p(address), ctypes.c_size_t(size)) == 0
    except (OSError, AttributeError):
        return False


def _munlock(address: int, size: int) -> bool:
    """Unlock memory pages."""
    try:
        if IS_WINDOWS:
            kernel32 = ctypes.windll.kernel32
            return bool(kernel32.VirtualUnlock(ctypes.c_void_p(address), ctypes.c_size_t(size)))
        libc = _load_libc()
        if libc is None:
            return False
        return libc.munlock(ctypes.c_void_p(address), ctypes.c_size_t(size)) == 0
    except (OSError, AttributeError):
        return False


class SecureBuffer:
    """
    Fixed-size secret byte buffer with explicit zeroization.

    Usage:
        with SecureBuffer.from_bytes(key_material) as buf:
            cipher.seal(buf.view, nonce, data)
        # Buffer is now zeroed

    Security Notes:
        - Always use context manager or call wipe() explicitly
        - .view exposes the live buffer without copying; do not keep it
        - The source passed to from_bytes is NOT wiped by this class
    """

    __slots__ = ("_buffer", "_size", "_wiped", "_locked", "__weakref__")

    def __init__(self, size: int, lock_memory: bool = True) -> None:
        if size <= 0:
            raise ValueError("Buffer size must be positive")

        self._size = size
        self._buffer = bytearray(size)
        self._wiped = False
        self._locked = False

        if lock_memory:
            self._locked = _mlock(self._address(), size)

        get_wipe_registry().register(self)

    @classmethod
    def from_bytes(cls, data: bytes | bytearray, lock_memory: bool = True) -> "SecureBuffer":
        """Create a buffer holding an exact copy of data."""
        buf = cls(len(data), lock_memory=lock_memory)
        buf._buffer[:] = data
        return buf

    def _address(self) -> int:
        return ctypes.addressof((ctypes.c_char * self._size).from_buffer(self._buffer))

    @property
    def size(self) -> int:
        return self._size

    @property
    def is_wiped(self) -> bool:
        return self._wiped

    @property
    def is_locked(self) -> bool:
        return self._locked

    @property
    def view(self) -> bytearray:
        """
        The live backing buffer.

        Raises:
            ValueError: If the buffer has been wiped
        """
        if self._wiped:
            raise ValueError("Buffer has been wiped")
        return self._buffer

    def equals(self, other: "SecureBuffer") -> bool:
        """Constant-time comparison with another buffer."""
        return hmac.compare_digest(self.view, other.view)

    def wipe(self) -> None:
        """Overwrite the buffer with zeros and release the memory lock."""
        if self._wiped:
            return

        secure_zero(self._buffer)

        if self._locked:
            _munlock(self._address(), self._size)
            self._locked = False

        self._wiped = True
        get_wipe_registry().unregister(self)

    def __enter__(self) -> "SecureBuffer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.wipe()

    def __del__(self) -> None:
        # Interpreter shutdown may have torn down module globals already
        try:
            self.wipe()
        except Exception:
            pass

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        """Safe representation."""
        if self._wiped:
            return f"{type(self).__name__}(WIPED)"
        return f"{type(self).__name__}(size={self._size}, locked={self._locked})"
