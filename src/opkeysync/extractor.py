"""
Pull key material out of an item's fields.

Fields are matched with small rule tables rather than by poking at
attributes: a field is the private key if ANY private rule matches it,
the public key if ANY public rule matches. The first matching field in
list order wins, duplicates after it are ignored.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Optional

from .models import FieldType, ItemDetail, ItemField, KeyMaterial

logger = logging.getLogger("opkeysync.extractor")

FieldRule = Callable[[ItemField], bool]

PRIVATE_KEY_RULES: tuple[FieldRule, ...] = (
    lambda f: f.label == "private key",
    lambda f: f.id == "private_key",
    lambda f: f.type == FieldType.CONCEALED,
)

PUBLIC_KEY_RULES: tuple[FieldRule, ...] = (
    lambda f: f.label == "public key",
    lambda f: f.id == "public_key",
)


def first_match(fields: list[ItemField], rules: tuple[FieldRule, ...]) -> Optional[ItemField]:
    """Return the first field satisfying any rule, or None."""
    for item_field in fields:
        if any(rule(item_field) for rule in rules):
            return item_field
    return None


def extract_key_material(detail: ItemDetail) -> KeyMaterial:
    """Pick the private and public key values out of an item.

    Args:
        detail: The item's ordered fields.

    Returns:
        KeyMaterial: Values may be None or the null sentinel; check
        ``has_private`` / ``needs_derivation`` before using them.
    """
    private = first_match(detail.fields, PRIVATE_KEY_RULES)
    public = first_match(detail.fields, PUBLIC_KEY_RULES)
    return KeyMaterial(
        private=private.value if private else None,
        public=public.value if public else None,
    )


def derive_public_key(
    private_path: Path,
    keygen: str = "ssh-keygen",
    timeout: Optional[float] = None,
) -> Optional[str]:
    """Compute the public key for a private key file with ssh-keygen.

    Args:
        private_path: Private key file on disk.
        keygen: ssh-keygen executable.
        timeout: Seconds to wait. None waits forever.

    Returns:
        The public key line, or None if the tool is missing or fails.
    """
    if not shutil.which(keygen):
        logger.info("%s not found — cannot derive public key", keygen)
        return None

    try:
        result = subprocess.run(
            [keygen, "-y", "-f", str(private_path)],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.info("%s error: %s", keygen, exc)
        return None

    if result.returncode != 0:
        logger.info("%s -y failed for %s: %s", keygen, private_path, result.stderr.strip())
        return None

    public = result.stdout.strip()
    return public or None
