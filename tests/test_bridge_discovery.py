"""
Tests for calendar-bridge discovery.

Tests for:
- Candidate order (explicit, resolved plugin dir and parents, given dir, cwd)
- Symlinked plugin directories pointing into a dev checkout
- Fallback when nothing exists
"""

import sys

import pytest

from schedule_hub.environments.apple.calendar.discovery import (
    MAX_PARENT_LEVELS,
    bridge_candidates,
    find_bridge_binary,
)


NAME = "calendar-bridge"


class TestCandidates:
    """Tests for bridge_candidates."""

    def test_order_and_deduplication(self, tmp_path):
        """Test explicit path first, then plugin dir upwards, then cwd."""
        plugin = tmp_path / "a" / "b"
        plugin.mkdir(parents=True)
        cwd = tmp_path / "work"

        candidates = bridge_candidates(
            plugin_dir=plugin, binary_name=NAME, explicit_path=tmp_path / "explicit", cwd=cwd
        )
        resolved = plugin.resolve()

        assert candidates[0] == tmp_path / "explicit"
        assert candidates[1] == resolved / NAME
        assert candidates[2] == resolved.parent / NAME
        assert candidates[-1] == cwd / NAME
        # The plugin dir as given resolves to the same place and is not repeated
        assert len(candidates) == len(set(candidates))

    def test_parent_levels_are_bounded(self, tmp_path):
        """Test at most MAX_PARENT_LEVELS parents are probed."""
        plugin = tmp_path.joinpath(*[f"d{i}" for i in range(MAX_PARENT_LEVELS + 3)])
        plugin.mkdir(parents=True)

        candidates = bridge_candidates(plugin_dir=plugin, binary_name=NAME, cwd=tmp_path / "elsewhere")
        resolved = plugin.resolve()

        assert candidates[0] == resolved / NAME
        assert resolved.parents[MAX_PARENT_LEVELS - 1] / NAME in candidates
        assert resolved.parents[MAX_PARENT_LEVELS] / NAME not in candidates

    def test_without_plugin_dir(self, tmp_path):
        """Test only the working directory is probed by default."""
        assert bridge_candidates(binary_name=NAME, cwd=tmp_path) == [tmp_path / NAME]


class TestFindBridgeBinary:
    """Tests for find_bridge_binary."""

    def test_binary_in_plugin_dir(self, tmp_path):
        """Test a helper next to the plugin is found."""
        plugin = tmp_path / "plugin"
        plugin.mkdir()
        (plugin / NAME).write_text("")

        found = find_bridge_binary(plugin_dir=plugin, binary_name=NAME, cwd=tmp_path / "cwd")

        assert found == plugin.resolve() / NAME

    @pytest.mark.skipif(sys.platform.startswith("win"), reason="symlinks need privileges on Windows")
    def test_symlinked_plugin_dir_finds_checkout_binary(self, tmp_path):
        """Test a symlinked plugin dir finds the binary higher up in the checkout."""
        checkout = tmp_path / "checkout"
        (checkout / "plugins" / "calendar").mkdir(parents=True)
        (checkout / NAME).write_text("")

        installed = tmp_path / "installed-plugin"
        installed.symlink_to(checkout / "plugins" / "calendar", target_is_directory=True)

        found = find_bridge_binary(plugin_dir=installed, binary_name=NAME, cwd=tmp_path / "cwd")

        assert found == checkout.resolve() / NAME

    def test_explicit_path_wins(self, tmp_path):
        """Test an existing explicit path is preferred."""
        explicit = tmp_path / "custom-bridge"
        explicit.write_text("")
        plugin = tmp_path / "plugin"
        plugin.mkdir()
        (plugin / NAME).write_text("")

        found = find_bridge_binary(plugin_dir=plugin, binary_name=NAME, explicit_path=explicit)

        assert found == explicit

    def test_cwd_fallback_candidate(self, tmp_path):
        """Test the working directory is used when it holds the helper."""
        cwd = tmp_path / "cwd"
        cwd.mkdir()
        (cwd / NAME).write_text("")

        found = find_bridge_binary(plugin_dir=tmp_path / "missing", binary_name=NAME, cwd=cwd)

        assert found == cwd / NAME

    def test_nothing_found_returns_first_candidate(self, tmp_path):
        """Test the first candidate is returned when no helper exists."""
        plugin = tmp_path / "plugin"
        plugin.mkdir()

        found = find_bridge_binary(plugin_dir=plugin, binary_name=NAME, cwd=tmp_path / "cwd")

        assert found == plugin.resolve() / NAME
        assert not found.exists()
