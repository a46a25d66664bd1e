"""
The export pipeline, end to end.

fetch accounts -> select -> ensure ~/.ssh -> make backup dir
    -> per account: discover items
        -> per item: fetch detail -> extract -> name -> write

Accounts and items are processed one at a time. The writer does
check-then-backup-then-write against a shared directory, so running
items concurrently would race on colliding names.

Only three things stop a run: the vault CLI is missing, nobody is
signed in, or no valid account was selected. Everything else becomes
an ItemOutcome and the run moves on.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from .config import SyncSettings
from .discovery import discover_key_items
from .extractor import extract_key_material
from .models import Account, ItemOutcome, KeyItem, OutcomeStatus, SyncResult
from .naming import resolve_filename
from .reporting import LogReporter, Reporter
from .vault_client import VaultClient, VaultError, VaultUnavailable
from .writer import BackupError, KeyWriteError, KeyWriter, create_backup_dir, ensure_ssh_dir

logger = logging.getLogger("opkeysync.engine")


class SyncAbort(Exception):
    """A condition that ends the whole run."""


class VaultUnreachable(SyncAbort):
    """The vault CLI is not installed or cannot be run."""


class NoAccountsError(SyncAbort):
    """No vault account is signed in."""


class NoAccountsSelectedError(SyncAbort):
    """The selection resolved to zero accounts."""


class SyncOrchestrator:
    """Drives the export for a set of selected accounts.

    Args:
        client: Vault to read from.
        settings: Paths, binaries and timeouts. Defaults if omitted.
        reporter: Receives the running commentary. Logs if omitted.
    """

    def __init__(
        self,
        client: VaultClient,
        settings: Optional[SyncSettings] = None,
        reporter: Optional[Reporter] = None,
    ):
        self.client = client
        self.settings = settings or SyncSettings()
        self.reporter = reporter or LogReporter()

    def fetch_accounts(self) -> list[Account]:
        """List signed-in accounts.

        Raises:
            VaultUnreachable: The vault CLI is unavailable.
            NoAccountsError: No account is signed in.
        """
        try:
            accounts = self.client.list_accounts()
        except VaultUnavailable as exc:
            raise VaultUnreachable(str(exc)) from exc
        if not accounts:
            raise NoAccountsError("No 1Password accounts found or not signed in.")
        return accounts

    def run(self, accounts: list[Account], now: Optional[datetime] = None) -> SyncResult:
        """Export keys from every selected account.

        Args:
            accounts: The selected accounts.
            now: Timestamp for the backup directory name.

        Returns:
            SyncResult: Counters and per-item outcomes for the run.

        Raises:
            NoAccountsSelectedError: accounts is empty.
        """
        if not accounts:
            raise NoAccountsSelectedError("No valid accounts selected.")

        ssh_dir = self.settings.ssh_path
        self.reporter.info(f"Will sync from {len(accounts)} account(s)")
        if ensure_ssh_dir(ssh_dir):
            self.reporter.info(f"Created {ssh_dir} directory")

        backup_dir = create_backup_dir(ssh_dir, now=now)
        self.reporter.info(f"Created backup directory at {backup_dir}")

        result = SyncResult(backup_dir=backup_dir)
        writer = KeyWriter(
            backup_dir,
            keygen=self.settings.keygen_binary,
            timeout=self.settings.command_timeout,
        )
        multi_account = len(accounts) > 1

        for account in accounts:
            try:
                self._process_account(account, multi_account, writer, result)
            except VaultError as exc:
                self.reporter.error(f"Could not process account {account.email}: {exc}")

        logger.info(
            "Sync finished: %d found, %d written, %d skipped, %d failed, %d backed up",
            result.items_found,
            result.keys_written,
            result.keys_skipped,
            result.keys_failed,
            result.keys_backed_up,
        )
        return result

    def _process_account(
        self,
        account: Account,
        multi_account: bool,
        writer: KeyWriter,
        result: SyncResult,
    ) -> None:
        self.reporter.heading(f"Processing Account: {account.email}")
        discovery = discover_key_items(
            self.client,
            account,
            category=self.settings.category,
            needle=self.settings.title_needle,
        )
        if discovery.used_fallback:
            self.reporter.warning(
                f"No SSH keys found in '{self.settings.category}' category; "
                f"searched titles for '{self.settings.title_needle}'."
            )
        if not discovery.items:
            self.reporter.warning("No SSH keys found in this account.")
            return

        self.reporter.info(f"Found {len(discovery.items)} SSH key item(s) in this account.")
        result.items_found += len(discovery.items)

        for item in discovery.items:
            result.record(self.process_item(item, account, multi_account, writer))

    def process_item(
        self,
        item: KeyItem,
        account: Account,
        multi_account: bool,
        writer: KeyWriter,
    ) -> ItemOutcome:
        """Run one item through extract -> name -> write.

        Returns:
            ItemOutcome: Never raises for per-item problems.
        """
        outcome = ItemOutcome(
            status=OutcomeStatus.FAILED,
            item_title=item.title,
            account_email=account.email,
        )
        self.reporter.info(f"Processing: {item.title}")

        try:
            detail = self.client.get_item_detail(item.id, account.id)
        except VaultError as exc:
            self.reporter.error(f"Could not fetch {item.title}: {exc}")
            outcome.reason = str(exc)
            return outcome

        material = extract_key_material(detail)
        if not material.has_private:
            self.reporter.warning(f"No private key found for: {item.title}")
            outcome.status = OutcomeStatus.SKIPPED
            outcome.reason = "no private key found"
            return outcome

        target = resolve_filename(
            item.title,
            account.email,
            item.id,
            multi_account,
            self.settings.ssh_path,
        )

        try:
            written = writer.write(target, material)
        except (BackupError, KeyWriteError) as exc:
            self.reporter.error(f"{item.title}: {exc}")
            outcome.reason = str(exc)
            return outcome

        for backup in written.backups:
            self.reporter.warning(f"Backed up existing key to: {backup}")
        self.reporter.info(f"Saved private key: {written.private_path}")

        outcome.private_path = written.private_path
        outcome.backed_up = written.backed_up
        outcome.public_derived = written.public_derived

        if written.has_public:
            verb = "Generated" if written.public_derived else "Saved"
            self.reporter.info(f"{verb} public key: {written.public_path}")
            outcome.public_path = written.public_path
            outcome.status = OutcomeStatus.WRITTEN
        elif written.public_error:
            self.reporter.warning(f"{item.title}: {written.public_error}")
            outcome.status = OutcomeStatus.PARTIAL
            outcome.reason = "public key write failed"
        else:
            self.reporter.warning(f"No public key found for: {item.title}; could not generate one")
            outcome.status = OutcomeStatus.PARTIAL
            outcome.reason = "public key missing"
        return outcome
