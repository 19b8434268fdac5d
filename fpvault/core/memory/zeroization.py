"""
Memory Zeroization Utilities
============================

Explicit zeroization of key material and a process-exit wipe registry.

Key Concepts:
- Zeroization: Overwriting memory with zeros before release
- Registry: Weakly tracks live secrets so interpreter exit wipes them
- Guard: Automatic cleanup on scope exit

Limitations:
- Python may hold copies (immutable bytes, interned strings)
- These are best-effort mitigations
"""

from __future__ import annotations

import atexit
import ctypes
import threading
import weakref
from contextlib import contextmanager
from typing import Any, Iterator, Protocol


class Wipeable(Protocol):
    def wipe(self) -> None: ...


def secure_zero(data: bytearray | memoryview) -> None:
    """
    Overwrite a mutable byte buffer with zeros.

    Uses ctypes.memset for bytearrays, element-wise assignment
    for memoryviews.

    Args:
        data: Mutable byte buffer to zero

    Security Notes:
        - Buffer must be mutable (bytearray, not bytes)
        - Call immediately after use, before GC
    """
    length = len(data)
    if length == 0:
        return

    if isinstance(data, bytearray):
        addr = ctypes.addressof((ctypes.c_char * length).from_buffer(data))
        ctypes.memset(addr, 0, length)
    else:
        data[:] = bytes(length)


@contextmanager
def ZeroizeContext(*buffers: bytearray) -> Iterator[None]:
    """
    Context manager that zeroizes buffers on exit.

    Always zeroizes, whether exit is normal or exceptional.

    Usage:
        secret = bytearray(passkey.encode("utf-8"))
        with ZeroizeContext(secret):
            derive(secret)
        # secret is now zeroed
    """
    try:
        yield
    finally:
        for buf in buffers:
            secure_zero(buf)


class WipeRegistry:
    """
    Tracks live secret containers and wipes them at interpreter exit.

    Objects are held by weak reference, so registration never keeps a
    secret alive. Anything with a wipe() method can be registered.
    """

    def __init__(self) -> None:
        self._refs: weakref.WeakSet[Any] = weakref.WeakSet()
        self._lock = threading.Lock()
        atexit.register(self.wipe_all)

    def register(self, obj: Wipeable) -> None:
        with self._lock:
            self._refs.add(obj)

    def unregister(self, obj: Wipeable) -> None:
        with self._lock:
            self._refs.discard(obj)

    def wipe_all(self) -> None:
        """Wipe every registered object that is still alive."""
        with self._lock:
            live = list(self._refs)
            self._refs.clear()
        for obj in live:
            obj.wipe()

    def __len__(self) -> int:
        return len(self._refs)


_registry = WipeRegistry()


def get_wipe_registry() -> WipeRegistry:
    """Return the process-wide wipe registry."""
    return _registry
