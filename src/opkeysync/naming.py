"""
Filenames for exported keys.

Names are a pure function of the item title, the account email, the
item id and whether more than one account is being exported. Re-running
the export therefore lands on the same files (backed up, then
replaced) instead of piling up copies.
"""

from __future__ import annotations

import re
from pathlib import Path

from .models import ResolvedFilename

_UNSAFE = re.compile(r"[^a-z0-9._-]")

# Titles that say nothing about the key; these get an id-based name.
GENERIC_TITLE = "ssh_key"
ID_PREFIX_LEN = 8


def normalize_component(text: str) -> str:
    """Lowercase, map anything outside [a-z0-9._-] to '_', trim '_' from both ends."""
    return _UNSAFE.sub("_", text.lower()).strip("_")


def account_short_name(email: str) -> str:
    """Normalized local part of an email address."""
    return normalize_component(email.split("@", 1)[0])


def resolve_base_name(title: str, account_email: str, item_id: str, multi_account: bool) -> str:
    """Compute the key's base filename.

    Args:
        title: Item title.
        account_email: Email of the owning account.
        item_id: Vault item id.
        multi_account: Whether more than one account is being exported.

    Returns:
        str: Base name without directory or ``.pub`` suffix.
    """
    name = normalize_component(title)
    short = account_short_name(account_email)

    if not name or name == GENERIC_TITLE:
        return f"id_rsa_{short}_{item_id[:ID_PREFIX_LEN]}"
    if multi_account:
        return f"{name}_{short}"
    return name


def resolve_filename(
    title: str,
    account_email: str,
    item_id: str,
    multi_account: bool,
    ssh_dir: Path,
) -> ResolvedFilename:
    """Resolve the private and public key paths for an item."""
    base = resolve_base_name(title, account_email, item_id, multi_account)
    return ResolvedFilename(
        base=base,
        private_path=ssh_dir / base,
        public_path=ssh_dir / f"{base}.pub",
    )
