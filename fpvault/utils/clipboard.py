"""
Clipboard Helper
================

Copies a secret to the system clipboard and clears it after a delay.

The clear only happens if the clipboard still holds the copied value,
so anything the user copied in the meantime is left alone.

Clear timers are daemon threads and die with the process, so every
pending clear is also run by clear_pending(), which is registered
with atexit and called when the shell closes.
"""

from __future__ import annotations

import atexit
import logging
import threading
from typing import Optional

import pyperclip

from fpvault.core.exceptions import ClipboardError
from fpvault.security.constants import CLIPBOARD_CLEAR_SECONDS

_log = logging.getLogger("fpvault.clipboard")

# Timer -> text it will clear
_pending: dict[threading.Timer, str] = {}
_pending_lock = threading.Lock()


def _clear_if_unchanged(text: str) -> None:
    try:
        if pyperclip.paste() == text:
            pyperclip.copy("")
            _log.debug("Clipboard cleared")
    except pyperclip.PyperclipException as e:
        _log.warning("Could not clear clipboard: %s", type(e).__name__)


def _on_timer(text: str) -> None:
    with _pending_lock:
        _pending.pop(threading.current_thread(), None)
    _clear_if_unchanged(text)


def copy_to_clipboard(
    text: str,
    clear_after: Optional[float] = CLIPBOARD_CLEAR_SECONDS,
) -> Optional[threading.Timer]:
    """
    Copy text to the clipboard and schedule its removal.

    Args:
        text: Value to copy
        clear_after: Seconds before clearing; None disables clearing

    Returns:
        The daemon timer that will clear the clipboard, or None

    Raises:
        ClipboardError: If no clipboard mechanism is available
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise ClipboardError("Clipboard is not available") from e

    if clear_after is None:
        return None

    timer = threading.Timer(clear_after, _on_timer, args=(text,))
    timer.daemon = True
    with _pending_lock:
        _pending[timer] = text
    timer.start()
    return timer


def clear_pending() -> None:
    """
    Cancel every scheduled clear and perform it now.

    Safe to call more than once; a value the user has since replaced
    is still left alone.
    """
    with _pending_lock:
        pending = list(_pending.items())
        _pending.clear()

    for timer, text in pending:
        timer.cancel()
        _clear_if_unchanged(text)


atexit.register(clear_pending)
