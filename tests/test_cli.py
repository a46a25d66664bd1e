"""Tests for the opkeysync command."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from opkeysync import __version__
from opkeysync.cli import main

from conftest import FakeVault


@pytest.fixture
def env(tmp_path: Path, monkeypatch) -> Path:
    """Point the CLI at a temporary SSH dir and no config file."""
    ssh_dir = tmp_path / ".ssh"
    monkeypatch.setenv("OPKEYSYNC_SSH_DIR", str(ssh_dir))
    monkeypatch.setenv("OPKEYSYNC_CONFIG", str(tmp_path / "absent.yaml"))
    monkeypatch.delenv("OPKEYSYNC_TIMEOUT", raising=False)
    return ssh_dir


def _invoke(vault: FakeVault, selection: str):
    runner = CliRunner()
    with patch("opkeysync.cli.OnePasswordClient", return_value=vault), \
            patch("opkeysync.writer.derive_public_key", return_value=None):
        return runner.invoke(main, [], input=selection + "\n")


class TestMain:
    """Interactive flow and exit codes."""

    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_exports_selected_account(self, env, vault, alice, bob):
        vault.add_item(alice, "a1", "GitHub")
        vault.add_item(bob, "b1", "Work")

        result = _invoke(vault, "1")

        assert result.exit_code == 0, result.output
        assert "alice@example.com" in result.output
        assert "Sync Complete" in result.output
        assert (env / "github").exists()
        assert not (env / "work").exists()

    def test_all_selects_everything(self, env, vault, alice, bob):
        vault.add_item(alice, "a1", "GitHub")
        vault.add_item(bob, "b1", "GitHub")

        result = _invoke(vault, "ALL")

        assert result.exit_code == 0, result.output
        assert "Selected all accounts" in result.output
        assert (env / "github_alice").exists()
        assert (env / "github_bob").exists()

    def test_partial_invalid_selection_warns(self, env, vault, alice):
        vault.add_item(alice, "a1", "GitHub")

        result = _invoke(vault, "7 1 x")

        assert result.exit_code == 0, result.output
        assert "Invalid selection: 7" in result.output
        assert "Invalid selection: x" in result.output
        assert (env / "github").exists()

    def test_no_valid_selection_exits_1(self, env, vault):
        result = _invoke(vault, "9")
        assert result.exit_code == 1
        assert "No valid accounts selected" in result.output
        assert not env.exists()

    def test_op_missing_exits_1(self, env):
        result = _invoke(FakeVault(installed=False), "1")
        assert result.exit_code == 1
        assert "not available" in result.output

    def test_not_signed_in_exits_1(self, env):
        result = _invoke(FakeVault([]), "1")
        assert result.exit_code == 1
        assert "op signin" in result.output

    def test_skipped_items_still_exit_0(self, env, vault, alice):
        vault.add_item(alice, "a1", "Broken", fields=[])

        result = _invoke(vault, "1")

        assert result.exit_code == 0, result.output
        assert "No private key found for: Broken" in result.output

    def test_bad_timeout_override_exits_1(self, env, vault, monkeypatch):
        monkeypatch.setenv("OPKEYSYNC_TIMEOUT", "whenever")
        result = _invoke(vault, "1")
        assert result.exit_code == 1
