"""Tests for key filename resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from opkeysync.naming import (
    account_short_name,
    normalize_component,
    resolve_base_name,
    resolve_filename,
)


class TestNormalize:
    """Character-class normalization."""

    def test_lowercases_and_replaces(self):
        assert normalize_component("GitHub SSH Key") == "github_ssh_key"

    def test_keeps_dots_dashes_underscores(self):
        assert normalize_component("deploy-key.v2_prod") == "deploy-key.v2_prod"

    def test_strips_edge_underscores(self):
        assert normalize_component("  (work) ") == "work"

    def test_non_ascii_becomes_underscore(self):
        assert normalize_component("clé ssh") == "cl__ssh"

    def test_all_symbols_is_empty(self):
        assert normalize_component("!!! ???") == ""

    def test_account_short_name(self):
        assert account_short_name("alice@example.com") == "alice"
        assert account_short_name("First.Last+op@corp.io") == "first.last_op"


class TestResolveBaseName:
    """Base name derivation rules."""

    def test_single_account_uses_title(self):
        assert resolve_base_name("GitHub SSH Key", "alice@example.com", "abcdef1234567890", False) == "github_ssh_key"

    def test_empty_title_uses_item_id(self):
        assert resolve_base_name("", "alice@example.com", "abcdef1234567890", False) == "id_rsa_alice_abcdef12"

    def test_generic_title_uses_item_id(self):
        assert resolve_base_name("SSH Key", "alice@example.com", "abcdef1234567890", True) == "id_rsa_alice_abcdef12"

    def test_multi_account_appends_suffix(self):
        assert resolve_base_name("deploy-key", "bob@example.com", "x", True) == "deploy-key_bob"

    def test_short_item_id(self):
        assert resolve_base_name("", "bob@example.com", "abc", False) == "id_rsa_bob_abc"

    def test_same_title_different_accounts_differ(self):
        a = resolve_base_name("server", "alice@example.com", "1", True)
        b = resolve_base_name("server", "bob@example.com", "2", True)
        assert a != b

    @pytest.mark.parametrize("multi", [True, False])
    def test_deterministic(self, multi):
        args = ("Prod Box", "carol@example.com", "zzzzyyyyxxxx", multi)
        assert resolve_base_name(*args) == resolve_base_name(*args)


class TestResolveFilename:
    """Paths derived from the base name."""

    def test_paths(self, tmp_path: Path):
        resolved = resolve_filename("GitHub SSH Key", "alice@example.com", "id", False, tmp_path)
        assert resolved.base == "github_ssh_key"
        assert resolved.private_path == tmp_path / "github_ssh_key"
        assert resolved.public_path == tmp_path / "github_ssh_key.pub"
