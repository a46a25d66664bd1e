"""Turn the user's typed selection into a list of accounts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .models import Account

logger = logging.getLogger("opkeysync.selector")

ALL_TOKEN = "all"


@dataclass
class Selection:
    """Accounts picked by the user, plus the tokens that were thrown away."""

    accounts: list[Account] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        """True when nothing valid was selected."""
        return not self.accounts

    @property
    def multi_account(self) -> bool:
        """True when filenames need an account suffix."""
        return len(self.accounts) > 1


def select_accounts(accounts: list[Account], raw: str) -> Selection:
    """Resolve a selection string against the listed accounts.

    The string is either ``all`` (any case) or whitespace separated
    1-based indices. Bad tokens are skipped with a warning; they never
    cancel the rest of the selection. Repeated indices count once and
    the result follows the listing order, not the typed order.

    Args:
        accounts: Accounts in the order they were shown to the user.
        raw: What the user typed.

    Returns:
        Selection: Chosen accounts and rejected tokens.
    """
    text = raw.strip()
    if text.lower() == ALL_TOKEN:
        return Selection(accounts=list(accounts))

    chosen: set[int] = set()
    rejected: list[str] = []
    for token in text.split():
        if token.isdigit() and token.isascii() and 1 <= int(token) <= len(accounts):
            chosen.add(int(token) - 1)
        else:
            logger.info("Invalid selection: %s (skipping)", token)
            rejected.append(token)

    return Selection(
        accounts=[accounts[i] for i in sorted(chosen)],
        rejected=rejected,
    )
