"""
opkeysync CLI — pull SSH keys out of 1Password.

Lists the signed-in accounts, asks which ones to export, and writes
their SSH keys into ~/.ssh. There are no flags: paths and binaries
come from the config file or OPKEYSYNC_* environment variables.

Entry point: opkeysync.cli:main
"""

from __future__ import annotations

import sys

import click

from .. import __version__
from ..config import ConfigError, load_settings
from ..engine import NoAccountsError, SyncAbort, SyncOrchestrator, VaultUnreachable
from ..selector import ALL_TOKEN, select_accounts
from ..vault_client import INSTALL_URL, OnePasswordClient
from ._common import ConsoleReporter, configure_logging, console, show_accounts, show_summary

SELECTION_PROMPT = (
    "Select accounts to sync (enter numbers separated by spaces, "
    "or 'all' for all accounts)"
)


@click.command()
@click.version_option(version=__version__, prog_name="opkeysync")
def main():
    """Export SSH keys from 1Password into ~/.ssh.

    Existing keys with the same name are copied to a timestamped
    backup directory before being replaced.

    Examples:

        opkeysync

        OPKEYSYNC_SSH_DIR=/tmp/keys opkeysync
    """
    configure_logging()
    reporter = ConsoleReporter(console)

    try:
        settings = load_settings()
    except ConfigError as exc:
        reporter.error(str(exc))
        sys.exit(1)

    client = OnePasswordClient(settings.op_binary, timeout=settings.command_timeout)
    orchestrator = SyncOrchestrator(client, settings, reporter)

    try:
        reporter.info("Checking 1Password accounts...")
        accounts = orchestrator.fetch_accounts()
        show_accounts(accounts)

        raw = click.prompt(SELECTION_PROMPT, default="", show_default=False)
        selection = select_accounts(accounts, raw)
        for token in selection.rejected:
            reporter.warning(f"Invalid selection: {token} (skipping)")
        if raw.strip().lower() == ALL_TOKEN:
            reporter.info("Selected all accounts")

        result = orchestrator.run(selection.accounts)
    except VaultUnreachable as exc:
        reporter.error(f"1Password CLI (op) is not available: {exc}")
        console.print(f"Please install it from: {INSTALL_URL}")
        sys.exit(1)
    except NoAccountsError as exc:
        reporter.error(str(exc))
        console.print("Please run: eval $(op signin)")
        sys.exit(1)
    except SyncAbort as exc:
        reporter.error(str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/]")
        sys.exit(130)

    show_summary(result, settings.ssh_path)
