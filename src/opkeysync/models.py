"""
Pydantic models for the export pipeline.

Accounts and items come straight from the vault and never change
during a run. Key material and resolved filenames exist for one item
only. The SyncResult is the single accumulator the orchestrator hands
back once every account has been processed.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# What `jq -r` prints for a missing value; 1Password exports sometimes carry it verbatim.
NULL_SENTINEL = "null"


def is_present(value: Optional[str]) -> bool:
    """True when a field value holds real content."""
    return bool(value) and value != NULL_SENTINEL


class FieldType(str, Enum):
    """Vault field types that matter for key extraction."""

    CONCEALED = "CONCEALED"
    OTHER = "OTHER"


class Account(BaseModel):
    """A signed-in vault account."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str = ""
    url: str = ""


class KeyItem(BaseModel):
    """A candidate SSH key item inside one account."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    account_id: str


class ItemField(BaseModel):
    """One field of a vault item, as returned by the item detail call."""

    model_config = ConfigDict(frozen=True)

    label: str = ""
    id: str = ""
    type: FieldType = FieldType.OTHER
    value: Optional[str] = None


class ItemDetail(BaseModel):
    """Full field list of an item. Field order is significant."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    fields: list[ItemField] = Field(default_factory=list)


class KeyMaterial(BaseModel):
    """Private and public key values pulled out of an item."""

    private: Optional[str] = None
    public: Optional[str] = None

    @property
    def has_private(self) -> bool:
        """Whether a usable private key value was found."""
        return is_present(self.private)

    @property
    def has_public(self) -> bool:
        """Whether a usable public key value was found."""
        return is_present(self.public)

    @property
    def needs_derivation(self) -> bool:
        """Private key present but the public half has to be derived."""
        return self.has_private and not self.has_public


class ResolvedFilename(BaseModel):
    """On-disk location of one key pair."""

    model_config = ConfigDict(frozen=True)

    base: str
    private_path: Path
    public_path: Path


class OutcomeStatus(str, Enum):
    """Terminal state of one item."""

    WRITTEN = "written"
    PARTIAL = "partial"
    SKIPPED = "skipped"
    FAILED = "failed"


class ItemOutcome(BaseModel):
    """Tagged result of processing a single item."""

    status: OutcomeStatus
    item_title: str = ""
    account_email: str = ""
    reason: str = ""
    private_path: Optional[Path] = None
    public_path: Optional[Path] = None
    backed_up: bool = False
    public_derived: bool = False


class SyncResult(BaseModel):
    """Counters for a whole run plus where the backup went.

    Attributes:
        items_found: Items discovered across all selected accounts.
        keys_written: Items whose private key landed on disk.
        keys_skipped: Items without a usable private key.
        keys_backed_up: Items whose existing key files were backed up.
        keys_failed: Items that hit a detail, backup, or write error.
        public_keys_derived: Public keys produced by ssh-keygen.
        public_keys_missing: Written items left without a public key.
        backup_dir: The run's backup directory.
        outcomes: Every per-item outcome, in processing order.
    """

    items_found: int = 0
    keys_written: int = 0
    keys_skipped: int = 0
    keys_backed_up: int = 0
    keys_failed: int = 0
    public_keys_derived: int = 0
    public_keys_missing: int = 0
    backup_dir: Optional[Path] = None
    outcomes: list[ItemOutcome] = Field(default_factory=list)

    def record(self, outcome: ItemOutcome) -> None:
        """Fold one item outcome into the counters."""
        self.outcomes.append(outcome)
        if outcome.backed_up:
            self.keys_backed_up += 1
        if outcome.status in (OutcomeStatus.WRITTEN, OutcomeStatus.PARTIAL):
            self.keys_written += 1
            if outcome.public_derived:
                self.public_keys_derived += 1
            if outcome.status == OutcomeStatus.PARTIAL:
                self.public_keys_missing += 1
        elif outcome.status == OutcomeStatus.SKIPPED:
            self.keys_skipped += 1
        else:
            self.keys_failed += 1
