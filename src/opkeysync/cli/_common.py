"""Shared console output for the CLI.

Provides the Rich console instance, the colored reporter the
orchestrator talks to, and the account and summary renderers.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..models import Account, SyncResult

console = Console()


def configure_logging() -> None:
    """Route library warnings to stderr; everything when OPKEYSYNC_DEBUG is set."""
    level = logging.DEBUG if os.environ.get("OPKEYSYNC_DEBUG") else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s: %(message)s")


class ConsoleReporter:
    """Colored running commentary: [INFO], [WARNING], [ERROR] and headings."""

    def __init__(self, out: Console = console):
        self.out = out

    def heading(self, message: str) -> None:
        self.out.print(f"\n[bold blue]=== {escape(message)} ===[/]\n")

    def info(self, message: str) -> None:
        self.out.print(f"[green]\\[INFO][/] {escape(message)}")

    def warning(self, message: str) -> None:
        self.out.print(f"[yellow]\\[WARNING][/] {escape(message)}")

    def error(self, message: str) -> None:
        self.out.print(f"[red]\\[ERROR][/] {escape(message)}")


def show_accounts(accounts: list[Account], out: Console = console) -> None:
    """Print the numbered account list the selection refers to."""
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("#", style="bold cyan", justify="right")
    table.add_column("Email")
    table.add_column("URL", style="dim")
    table.add_column("Account ID", style="dim")

    for index, account in enumerate(accounts, start=1):
        table.add_row(str(index), escape(account.email), escape(account.url), account.id)

    out.print("\n[bold blue]=== Available 1Password Accounts ===[/]\n")
    out.print(table)
    out.print()


def show_summary(result: SyncResult, ssh_dir: Path, out: Console = console) -> None:
    """Print the end-of-run summary panel and the ssh-add hint."""
    lines = [
        f"Items found: [bold]{result.items_found}[/]",
        f"Keys written: [bold green]{result.keys_written}[/]",
        f"Skipped (no private key): [yellow]{result.keys_skipped}[/]",
        f"Failed: [red]{result.keys_failed}[/]",
        f"Public keys derived: {result.public_keys_derived}",
        f"Missing public keys: {result.public_keys_missing}",
        f"Existing keys backed up: {result.keys_backed_up}",
        f"Keys saved to: [cyan]{escape(str(ssh_dir))}[/]",
        f"Backup created at: [cyan]{escape(str(result.backup_dir))}[/]",
    ]
    out.print()
    out.print(Panel("\n".join(lines), title="Sync Complete", border_style="green"))
    out.print(
        "\nTo use these keys, you may need to add them to your SSH agent:\n"
        "  [cyan]ssh-add ~/.ssh/your_key_name[/]\n\n"
        "Or configure them in [cyan]~/.ssh/config[/]\n"
    )
