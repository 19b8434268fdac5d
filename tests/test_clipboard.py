"""
Tests for the clipboard helper. pyperclip is replaced by an in-memory fake.

Covers:
- Copy and delayed clear, leaving newer content alone
- Pending clears run early by clear_pending() and at exit
- Mapping of pyperclip failures to ClipboardError
"""

import importlib

import pyperclip
import pytest

import fpvault.utils.clipboard as clipboard_mod
from fpvault.core.exceptions import ClipboardError
from fpvault.utils.clipboard import clear_pending, copy_to_clipboard


class FakeClipboard:

    def __init__(self):
        self.content = ""

    def copy(self, text):
        self.content = text

    def paste(self):
        return self.content


@pytest.fixture
def fake_clipboard(monkeypatch):
    fake = FakeClipboard()
    monkeypatch.setattr(clipboard_mod.pyperclip, "copy", fake.copy)
    monkeypatch.setattr(clipboard_mod.pyperclip, "paste", fake.paste)
    yield fake
    clear_pending()


def test_copies_text(fake_clipboard):
    timer = copy_to_clipboard("hunter2", clear_after=None)
    assert timer is None
    assert fake_clipboard.content == "hunter2"


def test_clears_after_delay(fake_clipboard):
    timer = copy_to_clipboard("hunter2", clear_after=0.01)
    assert timer.daemon
    timer.join(timeout=5)
    assert fake_clipboard.content == ""


def test_does_not_clear_newer_content(fake_clipboard):
    timer = copy_to_clipboard("hunter2", clear_after=0.05)
    fake_clipboard.copy("something else")
    timer.join(timeout=5)
    assert fake_clipboard.content == "something else"


def test_timer_can_be_cancelled(fake_clipboard):
    timer = copy_to_clipboard("hunter2", clear_after=60)
    timer.cancel()
    assert fake_clipboard.content == "hunter2"


def test_unavailable_clipboard(monkeypatch):
    def broken(text):
        raise pyperclip.PyperclipException("no clipboard mechanism")

    monkeypatch.setattr(clipboard_mod.pyperclip, "copy", broken)
    with pytest.raises(ClipboardError):
        copy_to_clipboard("hunter2")


def test_clear_failure_is_logged_not_raised(fake_clipboard, monkeypatch):
    def broken():
        raise pyperclip.PyperclipException("gone")

    monkeypatch.setattr(clipboard_mod.pyperclip, "paste", broken)
    clipboard_mod._clear_if_unchanged("hunter2")


# ── Pending clears ───────────────────────────────────────────────────


class TestClearPending:

    def test_clears_before_delay(self, fake_clipboard):
        timer = copy_to_clipboard("hunter2", clear_after=60)
        clear_pending()
        assert fake_clipboard.content == ""
        assert timer.finished.is_set()

    def test_leaves_newer_content(self, fake_clipboard):
        copy_to_clipboard("hunter2", clear_after=60)
        fake_clipboard.copy("something else")
        clear_pending()
        assert fake_clipboard.content == "something else"

    def test_fired_timer_is_forgotten(self, fake_clipboard):
        timer = copy_to_clipboard("hunter2", clear_after=0.01)
        timer.join(timeout=5)
        assert timer not in clipboard_mod._pending

    def test_idempotent(self, fake_clipboard):
        copy_to_clipboard("hunter2", clear_after=60)
        clear_pending()
        fake_clipboard.copy("hunter2")
        clear_pending()
        assert fake_clipboard.content == "hunter2"
        assert clipboard_mod._pending == {}

    def test_registered_at_exit(self, monkeypatch):
        registered = []
        monkeypatch.setattr(clipboard_mod.atexit, "register", registered.append)
        importlib.reload(clipboard_mod)
        assert registered == [clipboard_mod.clear_pending]
