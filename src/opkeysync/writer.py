"""
Key file writer.

Per item the writer walks a fixed sequence:

    START -> BACKUP (only if files exist) -> WRITE_PRIVATE
          -> WRITE_PUBLIC | DERIVE_PUBLIC -> DONE

Nothing is overwritten until its previous content sits in the run's
backup directory. A failed backup stops the item before any write.
Private keys end up 0600, public keys 0644, whatever the umask.
"""

from __future__ import annotations

import itertools
import logging
import os
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from .extractor import derive_public_key
from .models import KeyMaterial, ResolvedFilename

logger = logging.getLogger("opkeysync.writer")

PRIVATE_MODE = 0o600
PUBLIC_MODE = 0o644
DIR_MODE = 0o700
BACKUP_PREFIX = "backup_"
BACKUP_TIMESTAMP = "%Y%m%d_%H%M%S"


class BackupError(Exception):
    """Raised when an existing key could not be backed up."""


class KeyWriteError(Exception):
    """Raised when key material could not be written."""


@dataclass
class WriteResult:
    """What the writer did for one item."""

    private_path: Path
    public_path: Optional[Path] = None
    backups: list[Path] = field(default_factory=list)
    public_derived: bool = False
    public_error: str = ""

    @property
    def backed_up(self) -> bool:
        return bool(self.backups)

    @property
    def has_public(self) -> bool:
        return self.public_path is not None


def ensure_ssh_dir(ssh_dir: Path) -> bool:
    """Create the SSH directory (mode 0700) if it is missing.

    Returns:
        bool: True if the directory was created.
    """
    if ssh_dir.is_dir():
        return False
    ssh_dir.mkdir(parents=True, mode=DIR_MODE)
    os.chmod(ssh_dir, DIR_MODE)
    logger.debug("Created %s", ssh_dir)
    return True


def create_backup_dir(ssh_dir: Path, now: Optional[datetime] = None) -> Path:
    """Create a fresh timestamped backup directory under ssh_dir.

    Two runs within the same second get ``-2``, ``-3``... appended
    rather than sharing a directory.

    Args:
        ssh_dir: The SSH directory.
        now: Timestamp to use, the current local time by default.

    Returns:
        Path: The newly created directory.
    """
    stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP)
    base = ssh_dir / f"{BACKUP_PREFIX}{stamp}"
    for n in itertools.count(start=1):
        candidate = base if n == 1 else base.with_name(f"{base.name}-{n}")
        try:
            candidate.mkdir(mode=DIR_MODE)
        except FileExistsError:
            continue
        return candidate


def _free_name(directory: Path, name: str) -> Path:
    # Same basename backed up twice in one run: keep the first copy.
    target = directory / name
    for n in itertools.count(start=2):
        if not target.exists():
            return target
        target = directory / f"{name}-{n}"


def _terminated(content: str) -> str:
    return content if content.endswith("\n") else content + "\n"


def write_key_file(path: Path, content: str, mode: int) -> None:
    """Write content to path and force its permission bits to mode."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with os.fdopen(fd, "w", encoding="utf-8") as out:
        out.write(_terminated(content))
    os.chmod(path, mode)


class KeyWriter:
    """Writes key pairs into the SSH directory, backing up what was there."""

    def __init__(
        self,
        backup_dir: Path,
        keygen: str = "ssh-keygen",
        timeout: Optional[float] = None,
    ):
        """Initialize the writer.

        Args:
            backup_dir: Where overwritten files are copied, must exist.
            keygen: ssh-keygen executable for public key derivation.
            timeout: Seconds to wait for ssh-keygen.
        """
        self.backup_dir = backup_dir
        self.keygen = keygen
        self.timeout = timeout

    def backup(self, target: ResolvedFilename) -> list[Path]:
        """Copy existing key files for target into the backup directory.

        Raises:
            BackupError: If any existing file could not be copied.
        """
        copies: list[Path] = []
        for path in (target.private_path, target.public_path):
            if not path.is_file():
                continue
            dest = _free_name(self.backup_dir, path.name)
            try:
                shutil.copy2(path, dest)
            except OSError as exc:
                raise BackupError(f"Could not back up {path}: {exc}") from exc
            logger.debug("Backed up %s -> %s", path, dest)
            copies.append(dest)
        return copies

    def _drop_stale_public(self, target: ResolvedFilename) -> None:
        # Any previous .pub is already in the backup and belongs to another key.
        try:
            target.public_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove stale %s: %s", target.public_path, exc)

    def write(self, target: ResolvedFilename, material: KeyMaterial) -> WriteResult:
        """Back up, then write the private key and a public key if one can be had.

        Args:
            target: Resolved on-disk paths.
            material: Extracted key values. Must contain a private key.

        Returns:
            WriteResult: Paths written and backups made.

        Raises:
            BackupError: Existing files could not be preserved; nothing was written.
            KeyWriteError: The private key file could not be written.
        """
        if not material.has_private:
            raise KeyWriteError("No private key to write")

        result = WriteResult(private_path=target.private_path)
        result.backups = self.backup(target)

        try:
            write_key_file(target.private_path, material.private, PRIVATE_MODE)
        except OSError as exc:
            raise KeyWriteError(f"Could not write {target.private_path}: {exc}") from exc
        logger.debug("Saved private key: %s", target.private_path)

        derived = not material.has_public
        public = derive_public_key(target.private_path, self.keygen, self.timeout) if derived else material.public

        if public is None:
            logger.debug("No public key for %s", target.private_path)
            self._drop_stale_public(target)
            return result

        # The private key is already in place; a public key failure only degrades the item.
        try:
            write_key_file(target.public_path, public, PUBLIC_MODE)
        except OSError as exc:
            logger.warning("Could not write %s: %s", target.public_path, exc)
            result.public_error = f"Could not write {target.public_path}: {exc}"
            self._drop_stale_public(target)
            return result
        logger.debug("Saved public key: %s", target.public_path)
        result.public_path = target.public_path
        result.public_derived = derived
        return result
