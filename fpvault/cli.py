"""
Command Line Interface
======================

Entry points:
    fpvault create PATH      Create a new database (passkey prompted twice)
    fpvault open PATH        Unlock a database and start the interactive shell
    fpvault generate         Print a random password

Security Notes:
- Passkeys and passwords are only read through getpass (never echoed)
- The passkey is asked for again before edit, delete and copy
- Errors are reported as one line; details go to the log only
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional, Sequence

from fpvault.core.config import VaultConfig
from fpvault.core.exceptions import PasskeyPolicyError, VaultError
from fpvault.core.logging import configure_logging
from fpvault.db.database import Database
from fpvault.db.models import AccountRecord
from fpvault.security.constants import DATABASE_SUFFIX, GENERATED_PASSWORD_LENGTH
from fpvault.utils.clipboard import clear_pending, copy_to_clipboard
from fpvault.utils.passwords import generate_password
from fpvault.utils.validators import passkey_policy_violations

InputFunc = Callable[[str], str]
OutputFunc = Callable[[str], None]

MAX_PASSKEY_ATTEMPTS = 3

_log = logging.getLogger("fpvault.cli")


def prompt_new_passkey(
    getpass_func: InputFunc = getpass.getpass,
    output: OutputFunc = print,
    attempts: int = MAX_PASSKEY_ATTEMPTS,
) -> str:
    """
    Ask for a new passkey until it meets the policy and is confirmed.

    Raises:
        PasskeyPolicyError: If no acceptable passkey was given in time
    """
    for _ in range(attempts):
        passkey = getpass_func("New passkey: ")
        errors = passkey_policy_violations(passkey)
        if errors:
            for error in errors:
                output(f"  - {error}")
            continue

        if getpass_func("Confirm passkey: ") != passkey:
            output("Passkeys do not match.")
            continue

        return passkey

    raise PasskeyPolicyError("No acceptable passkey entered")


class VaultShell:
    """
    Interactive menu over an open Database.

    The shell owns the session it is given and closes it when the user
    leaves. All I/O goes through the injected callables.
    """

    MENU = (
        ("1", "list", "List accounts"),
        ("2", "view", "View account"),
        ("3", "add", "Add account"),
        ("4", "edit", "Edit account"),
        ("5", "delete", "Delete account"),
        ("6", "generate", "Generate password"),
        ("7", "copy", "Copy password to clipboard"),
        ("8", "save", "Save changes"),
        ("9", "close", "Close database"),
    )

    def __init__(
        self,
        db: Database,
        input_func: InputFunc = input,
        getpass_func: InputFunc = getpass.getpass,
        output: OutputFunc = print,
        clipboard_func: Callable[..., object] = copy_to_clipboard,
        clear_after: Optional[float] = None,
    ) -> None:
        self._db = db
        self._input = input_func
        self._getpass = getpass_func
        self._output = output
        self._clipboard = clipboard_func
        self._clear_after = (
            clear_after if clear_after is not None
            else VaultConfig.get_instance().clipboard.clear_seconds
        )
        self._actions: dict[str, Callable[[], None]] = {
            "list": self.do_list,
            "view": self.do_view,
            "add": self.do_add,
            "edit": self.do_edit,
            "delete": self.do_delete,
            "generate": self.do_generate,
            "copy": self.do_copy,
            "save": self.do_save,
        }

    def run(self) -> None:
        """Loop over the menu until the user closes the database."""
        try:
            while True:
                command = self._read_command()
                if command is None or command == "close":
                    break
                action = self._actions.get(command)
                if action is None:
                    self._output("Invalid choice, please try again.")
                    continue
                try:
                    action()
                except (VaultError, ValueError) as e:
                    _log.debug("Shell action %s failed: %s", command, type(e).__name__)
                    self._output(f"Error: {e}")
            self._confirm_unsaved()
        finally:
            self._db.close()
            clear_pending()

    def _read_command(self) -> Optional[str]:
        self._output("")
        self._output(f"=== {self._db.path.name} ===")
        for number, _, label in self.MENU:
            self._output(f"{number}. {label}")
        try:
            choice = self._input(f"Enter your choice (1-{len(self.MENU)}): ").strip().lower()
        except EOFError:
            return None
        for number, name, _ in self.MENU:
            if choice in (number, name):
                return name
        return choice

    def _confirm_unsaved(self) -> None:
        if not self._db.dirty:
            return
        try:
            answer = self._input("Save changes before closing? (y/n): ")
        except EOFError:
            answer = "n"
        if answer.strip().lower() == "y":
            self.do_save()
        else:
            self._output("Changes discarded.")

    def _verify(self) -> bool:
        """Ask for the passkey again before a sensitive action."""
        passkey = self._getpass("Enter database passkey: ")
        if self._db.verify_passkey(passkey):
            return True
        self._output("Invalid passkey.")
        return False

    def _select(self) -> AccountRecord:
        account_id = self._input("Account id: ").strip()
        return self._db.get_account(account_id)

    def _read_password(self) -> str:
        choice = self._input("(1) enter a password or (2) generate one? (1/2): ").strip()
        if choice == "2":
            password = generate_password()
            self._output(f"Generated password: {password}")
            return password
        return self._getpass("Password: ")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def do_list(self) -> None:
        accounts = self._db.list_accounts()
        if not accounts:
            self._output("No accounts found in the database.")
            return
        self._output(f"{'ID':<10} {'Service':<20} {'Username':<30} {'Description'}")
        self._output("-" * 72)
        for account in accounts:
            self._output(
                f"{account.id:<10} {account.service:<20} {account.username:<30} "
                f"{account.description or ''}"
            )

    def do_view(self) -> None:
        account = self._select()
        self._output(f"ID:          {account.id}")
        self._output(f"Service:     {account.service}")
        self._output(f"Username:    {account.username}")
        self._output("Password:    ********")
        self._output(f"Description: {account.description or ''}")

    def do_add(self) -> None:
        service = self._input("Service: ").strip()
        username = self._input("Username/Email: ").strip()
        description = self._input("Description (optional): ").strip() or None
        password = self._read_password()
        account = self._db.new_account(service, username, password, description)
        self._output(f"Account {account.id} added.")

    def do_edit(self) -> None:
        account = self._select()
        if not self._verify():
            return

        changes: dict[str, Optional[str]] = {}
        for name, label in (("service", "Service"), ("username", "Username/Email"),
                            ("description", "Description")):
            current = getattr(account, name) or ""
            value = self._input(f"{label} [{current}] (leave empty to keep): ").strip()
            if value:
                changes[name] = value

        if self._input("Change password? (y/n): ").strip().lower() == "y":
            changes["password"] = self._read_password()

        if not changes:
            self._output("Nothing changed.")
            return
        self._db.update_account(account.id, **changes)
        self._output(f"Account {account.id} updated.")

    def do_delete(self) -> None:
        account = self._select()
        if not self._verify():
            return
        confirm = self._input(f"Delete {account.service} / {account.username}? (y/n): ")
        if confirm.strip().lower() != "y":
            self._output("Not deleted.")
            return
        self._db.delete_account(account.id)
        self._output(f"Account {account.id} deleted.")

    def do_generate(self) -> None:
        self._output(generate_password())

    def do_copy(self) -> None:
        account = self._select()
        if not self._verify():
            return
        self._clipboard(account.password, clear_after=self._clear_after)
        self._output(f"Password copied; clipboard clears in {self._clear_after:g}s.")

    def do_save(self) -> None:
        self._db.save()
        self._output("Changes saved.")


def _database_path(raw: str, data_dir: Path, add_suffix: bool = False) -> Path:
    """
    Resolve a database argument. A bare file name lives in the data
    directory; anything with a directory part (including ./name) is
    taken as given.
    """
    path = Path(raw).expanduser()
    if path.name == raw:
        path = data_dir / path
    if add_suffix and not path.suffix:
        path = path.with_suffix(DATABASE_SUFFIX)
    return path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fpvault",
        description="fpvault - encrypted local credential store",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Override the configured log level",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create a new database")
    create.add_argument(
        "path",
        help=f"Database file (adds {DATABASE_SUFFIX} if no extension; a bare name goes in the data directory)",
    )

    open_ = subparsers.add_parser("open", help="Open a database in the interactive shell")
    open_.add_argument("path", help="Database file (a bare name is looked up in the data directory)")

    generate = subparsers.add_parser("generate", help="Print a random password")
    generate.add_argument(
        "--length",
        type=int,
        default=GENERATED_PASSWORD_LENGTH,
        help=f"Password length (default: {GENERATED_PASSWORD_LENGTH})",
    )

    return parser


def main(
    argv: Optional[Sequence[str]] = None,
    input_func: InputFunc = input,
    getpass_func: InputFunc = getpass.getpass,
    output: OutputFunc = print,
) -> int:
    """
    Run the CLI.

    Returns:
        Process exit status (0 on success, 1 on error)
    """
    args = build_parser().parse_args(argv)

    config = VaultConfig.get_instance()
    settings = config.logging
    if args.log_level:
        settings = replace(settings, level=args.log_level)
    configure_logging(settings, log_dir=config.paths.log_dir)

    try:
        if args.command == "generate":
            output(generate_password(args.length))

        elif args.command == "create":
            path = _database_path(args.path, config.paths.data_dir, add_suffix=True)
            passkey = prompt_new_passkey(getpass_func, output)
            if path.parent == config.paths.data_dir:
                path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            with Database.create(path, passkey, config):
                output(f"Database created: {path}")

        elif args.command == "open":
            path = _database_path(args.path, config.paths.data_dir)
            passkey = getpass_func("Enter database passkey: ")
            db = Database.open(path, passkey)
            output("Database loaded successfully!")
            VaultShell(
                db,
                input_func=input_func,
                getpass_func=getpass_func,
                output=output,
                clear_after=config.clipboard.clear_seconds,
            ).run()

    except (VaultError, ValueError, OSError) as e:
        _log.debug("Command %s failed: %s", args.command, type(e).__name__)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        return 130

    return 0
