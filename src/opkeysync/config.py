"""
Runtime settings.

Defaults first, then an optional YAML file, then environment
variables. There are no command line flags for any of this; the
export is meant to be run bare.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ValidationError

from . import SSH_HOME

logger = logging.getLogger("opkeysync.config")

DEFAULT_CONFIG_FILE = "~/.config/opkeysync/config.yaml"

# env var -> settings field
ENV_OVERRIDES = {
    "OPKEYSYNC_SSH_DIR": "ssh_dir",
    "OPKEYSYNC_OP_BINARY": "op_binary",
    "OPKEYSYNC_KEYGEN_BINARY": "keygen_binary",
    "OPKEYSYNC_TIMEOUT": "command_timeout",
}


class ConfigError(Exception):
    """Raised when a settings override cannot be used."""


class SyncSettings(BaseModel):
    """Everything the export pipeline can be tuned with.

    Attributes:
        ssh_dir: Destination directory for key files.
        op_binary: 1Password CLI executable.
        keygen_binary: Tool used to derive missing public keys.
        category: Vault category queried first.
        title_needle: Substring searched in titles when the category is empty.
        command_timeout: Seconds before an external command is abandoned.
            None blocks for as long as the command runs.
    """

    ssh_dir: Path = Path(SSH_HOME)
    op_binary: str = "op"
    keygen_binary: str = "ssh-keygen"
    category: str = "SSH Key"
    title_needle: str = "ssh"
    command_timeout: Optional[float] = None

    @property
    def ssh_path(self) -> Path:
        """The SSH directory with ~ expanded."""
        return self.ssh_dir.expanduser()


def _read_config_file(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to load %s: %s — using defaults", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a mapping, got %s", path, type(data).__name__)
        return {}
    return data


def load_settings(
    config_file: Optional[Path] = None,
    environ: Optional[dict[str, str]] = None,
) -> SyncSettings:
    """Build settings from defaults, the YAML file, and the environment.

    Args:
        config_file: Explicit YAML file. Defaults to $OPKEYSYNC_CONFIG or
            ~/.config/opkeysync/config.yaml.
        environ: Environment mapping, os.environ when omitted.

    Returns:
        SyncSettings: The merged settings.

    Raises:
        ConfigError: If an environment override holds an invalid value.
    """
    env = os.environ if environ is None else environ
    path = config_file or Path(env.get("OPKEYSYNC_CONFIG", DEFAULT_CONFIG_FILE))

    data = _read_config_file(path.expanduser())
    try:
        settings = SyncSettings(**data)
    except ValidationError as exc:
        logger.warning("Invalid settings in %s: %s — using defaults", path, exc)
        settings = SyncSettings()

    overrides = {field: env[var] for var, field in ENV_OVERRIDES.items() if env.get(var)}
    if not overrides:
        return settings

    try:
        return SyncSettings(**{**settings.model_dump(), **overrides})
    except ValidationError as exc:
        raise ConfigError(f"Invalid environment override: {exc}") from exc
