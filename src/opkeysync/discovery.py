"""
Find SSH key items in an account.

Vaults are inconsistent: some SSH keys are proper "SSH Key" items,
others are free-form entries that merely mention ssh in the title. Ask
for the category first and only fall back to a title search when the
category comes back empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .models import Account, KeyItem
from .vault_client import VaultClient

logger = logging.getLogger("opkeysync.discovery")

SSH_CATEGORY = "SSH Key"
TITLE_NEEDLE = "ssh"


@dataclass
class Discovery:
    """Items found in one account and how they were found."""

    account: Account
    items: list[KeyItem] = field(default_factory=list)
    used_fallback: bool = False


def filter_by_title(items: list[KeyItem], needle: str = TITLE_NEEDLE) -> list[KeyItem]:
    """Keep items whose title contains needle, ignoring case."""
    needle = needle.lower()
    return [item for item in items if needle in item.title.lower()]


def discover_key_items(
    client: VaultClient,
    account: Account,
    category: str = SSH_CATEGORY,
    needle: str = TITLE_NEEDLE,
) -> Discovery:
    """Collect candidate SSH key items for one account.

    Args:
        client: Vault to query.
        account: Account to search.
        category: Category tried first.
        needle: Title substring used when the category is empty.

    Returns:
        Discovery: Possibly empty; an empty account is not an error.
    """
    items = client.list_items(account.id, category=category)
    if items:
        logger.debug("%d item(s) in %r for %s", len(items), category, account.email)
        return Discovery(account=account, items=items)

    logger.info("No items in %r for %s, searching titles for %r", category, account.email, needle)
    items = filter_by_title(client.list_items(account.id), needle)
    return Discovery(account=account, items=items, used_fallback=True)
