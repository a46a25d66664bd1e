"""
Vault access — a thin wrapper around the 1Password CLI.

The rest of the package only sees the VaultClient interface: list the
signed-in accounts, list items in an account, fetch one item's fields.
OnePasswordClient implements it by shelling out to ``op`` with
``--format json``. Calls are synchronous and never retried.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import Any, Optional

from .models import Account, FieldType, ItemDetail, ItemField, KeyItem

logger = logging.getLogger("opkeysync.vault_client")

INSTALL_URL = "https://developer.1password.com/docs/cli/get-started/"


class VaultError(Exception):
    """Base class for vault access failures."""


class VaultUnavailable(VaultError):
    """Raised when the vault CLI is not installed or cannot be started."""


class ItemNotFound(VaultError):
    """Raised when an item's details cannot be retrieved."""


class VaultClient(ABC):
    """Narrow read-only view of a secrets vault."""

    @abstractmethod
    def available(self) -> bool:
        """Check if the backend can be reached at all."""

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """Return the signed-in accounts, or [] if none.

        Raises:
            VaultUnavailable: If the backend is not installed.
        """

    @abstractmethod
    def list_items(self, account_id: str, category: Optional[str] = None) -> list[KeyItem]:
        """List items in an account, optionally restricted to a category."""

    @abstractmethod
    def get_item_detail(self, item_id: str, account_id: str) -> ItemDetail:
        """Fetch all fields of one item.

        Raises:
            ItemNotFound: If the item cannot be retrieved.
        """


def _parse_json(raw: str) -> Any:
    try:
        return json.loads(raw) if raw.strip() else None
    except json.JSONDecodeError as exc:
        logger.debug("Unparseable op output: %s", exc)
        return None


def _field_from_record(record: dict[str, Any]) -> ItemField:
    value = record.get("value")
    return ItemField(
        label=record.get("label") or "",
        id=record.get("id") or "",
        type=FieldType.CONCEALED if record.get("type") == "CONCEALED" else FieldType.OTHER,
        value=None if value is None else str(value),
    )


class OnePasswordClient(VaultClient):
    """VaultClient backed by the ``op`` command line tool."""

    def __init__(self, binary: str = "op", timeout: Optional[float] = None):
        """Initialize the client.

        Args:
            binary: Name or path of the op executable.
            timeout: Seconds to wait for each op call. None waits forever.
        """
        self.binary = binary
        self.timeout = timeout

    def available(self) -> bool:
        return shutil.which(self.binary) is not None

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        cmd = [self.binary, *args, "--format", "json"]
        logger.debug("Running %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise VaultUnavailable(f"{self.binary} is not installed") from exc
        except OSError as exc:
            raise VaultUnavailable(f"Could not run {self.binary}: {exc}") from exc

    def _run_listing(self, *args: str) -> list[dict[str, Any]]:
        try:
            result = self._run(*args)
        except subprocess.TimeoutExpired:
            logger.warning("op %s timed out after %ss", " ".join(args), self.timeout)
            return []
        if result.returncode != 0:
            logger.debug("op %s failed: %s", " ".join(args), result.stderr.strip())
            return []
        data = _parse_json(result.stdout)
        if not isinstance(data, list):
            return []
        return [rec for rec in data if isinstance(rec, dict)]

    def list_accounts(self) -> list[Account]:
        if not self.available():
            raise VaultUnavailable(f"{self.binary} is not installed. See {INSTALL_URL}")

        accounts: list[Account] = []
        seen: set[str] = set()
        for rec in self._run_listing("account", "list"):
            account_id = rec.get("account_uuid")
            if not account_id or account_id in seen:
                continue
            seen.add(account_id)
            accounts.append(Account(
                id=account_id,
                email=rec.get("email") or "",
                url=rec.get("url") or "",
            ))
        return accounts

    def list_items(self, account_id: str, category: Optional[str] = None) -> list[KeyItem]:
        args = ["item", "list", "--account", account_id]
        if category:
            args += ["--categories", category]
        return [
            KeyItem(id=rec["id"], title=rec.get("title") or "", account_id=account_id)
            for rec in self._run_listing(*args)
            if rec.get("id")
        ]

    def get_item_detail(self, item_id: str, account_id: str) -> ItemDetail:
        try:
            result = self._run("item", "get", item_id, "--account", account_id)
        except subprocess.TimeoutExpired as exc:
            raise ItemNotFound(f"op item get {item_id} timed out") from exc

        if result.returncode != 0:
            raise ItemNotFound(result.stderr.strip() or f"op item get {item_id} failed")

        data = _parse_json(result.stdout)
        if not isinstance(data, dict):
            raise ItemNotFound(f"Malformed details for item {item_id}")

        fields = [_field_from_record(f) for f in data.get("fields") or [] if isinstance(f, dict)]
        return ItemDetail(item_id=item_id, fields=fields)
