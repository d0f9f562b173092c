# ABOUTME: Tests for mcpv locations and project descriptor (mcpv.json) I/O
import json
import sys
from pathlib import Path

import pytest

from mcpv.config import (
    get_backup_dir,
    get_config_dir,
    get_descriptor_path,
    get_install_root,
    load_descriptor,
    remove_servers,
    save_descriptor,
    upsert_server,
)
from mcpv.errors import DescriptorError
from mcpv.models import ProjectDescriptor, ServerInstallation


class TestLocations:
    """Tests for install root and config directory lookup."""

    def test_install_root_honours_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
        assert get_install_root() == tmp_path / "data" / "mcpv"

    def test_install_root_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert get_install_root() == tmp_path / ".local" / "share" / "mcpv"

    def test_config_dir_linux_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
        assert get_config_dir() == tmp_path / "cfg" / "mcpv"

    def test_config_dir_linux_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert get_config_dir() == tmp_path / ".config" / "mcpv"

    def test_config_dir_macos(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "darwin")
        monkeypatch.setenv("HOME", str(tmp_path))
        assert get_config_dir() == tmp_path / "Library" / "Application Support" / "mcpv"

    def test_backup_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_backup_dir() == tmp_path / "mcpv" / "backups"

    def test_descriptor_path(self, tmp_path: Path) -> None:
        assert get_descriptor_path(tmp_path) == tmp_path / "mcpv.json"


class TestLoadDescriptor:
    """Tests for load_descriptor function."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        descriptor = load_descriptor(tmp_path / "mcpv.json")
        assert descriptor == ProjectDescriptor()

    def test_full_descriptor(self, tmp_path: Path) -> None:
        path = tmp_path / "mcpv.json"
        path.write_text(json.dumps({
            "servers": [
                {"name": "fs", "version": "1.0.0", "repository": "https://example.com/fs.git"},
                {"name": "git", "version": "0.2.0", "repository": "https://example.com/git.git",
                 "command": "uvx", "args": ["mcp-git"], "env": {"GIT_DIR": ".git"}},
            ],
            "default_agent": "cursor",
            "agents": {"zed": {"name": "Zed", "config": {"path": ".zed/mcp.json"}}},
        }))

        descriptor = load_descriptor(path)

        assert [s.name for s in descriptor.servers] == ["fs", "git"]
        assert descriptor.servers[1].env == {"GIT_DIR": ".git"}
        assert descriptor.default_agent == "cursor"
        assert descriptor.agents["zed"].type == "zed"

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "mcpv.json"
        path.write_text("{ invalid json }")

        with pytest.raises(DescriptorError, match="Invalid JSON"):
            load_descriptor(path)

    def test_not_an_object(self, tmp_path: Path) -> None:
        path = tmp_path / "mcpv.json"
        path.write_text("[]")

        with pytest.raises(DescriptorError, match="JSON object"):
            load_descriptor(path)

    def test_server_without_name(self, tmp_path: Path) -> None:
        path = tmp_path / "mcpv.json"
        path.write_text(json.dumps({"servers": [{"version": "1.0.0"}]}))

        with pytest.raises(DescriptorError, match="name"):
            load_descriptor(path)

    @pytest.mark.parametrize(
        "agents",
        [
            ["not", "a", "mapping"],
            {"zed": "oops"},
            {"zed": {"config": "oops"}},
            {"zed": {"detection": ["~/.zed"]}},
        ],
    )
    def test_malformed_agents(self, tmp_path: Path, agents) -> None:
        """Test that a malformed agents block is a DescriptorError, not a crash."""
        path = tmp_path / "mcpv.json"
        path.write_text(json.dumps({"servers": [], "agents": agents}))

        with pytest.raises(DescriptorError, match="agent"):
            load_descriptor(path)

    def test_null_agent_paths(self, tmp_path: Path) -> None:
        path = tmp_path / "mcpv.json"
        path.write_text(json.dumps({"agents": {"zed": {"config": {"paths": None, "path": None}}}}))

        descriptor = load_descriptor(path)

        assert descriptor.agents["zed"].config.paths == []
        assert descriptor.agents["zed"].config.path == ""


class TestSaveDescriptor:
    """Tests for save_descriptor function."""

    def test_writes_indented_json(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "mcpv.json"
        descriptor = ProjectDescriptor(
            servers=[ServerInstallation(name="fs", version="1.0.0", repository="https://example.com/fs.git")],
            default_agent="cursor",
        )

        save_descriptor(path, descriptor)

        text = path.read_text()
        assert text.endswith("\n")
        assert json.loads(text) == {
            "servers": [{"name": "fs", "version": "1.0.0", "repository": "https://example.com/fs.git"}],
            "default_agent": "cursor",
        }
        assert load_descriptor(path) == descriptor

    def test_unwritable(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        with pytest.raises(DescriptorError, match="Failed to write"):
            save_descriptor(blocker / "mcpv.json", ProjectDescriptor())


class TestUpsertAndRemove:
    """Tests for upsert_server and remove_servers."""

    def test_upsert_appends_new_version(self, tmp_path: Path) -> None:
        path = tmp_path / "mcpv.json"
        upsert_server(path, ServerInstallation(name="fs", version="1.0.0"))
        upsert_server(path, ServerInstallation(name="fs", version="2.0.0"))

        assert [s.version for s in load_descriptor(path).servers] == ["1.0.0", "2.0.0"]

    def test_upsert_replaces_same_version(self, tmp_path: Path) -> None:
        path = tmp_path / "mcpv.json"
        upsert_server(path, ServerInstallation(name="fs", version="1.0.0"))
        upsert_server(path, ServerInstallation(name="fs", version="1.0.0", command="node"))

        servers = load_descriptor(path).servers
        assert len(servers) == 1
        assert servers[0].command == "node"

    def test_upsert_keeps_default_agent(self, tmp_path: Path) -> None:
        path = tmp_path / "mcpv.json"
        save_descriptor(path, ProjectDescriptor(default_agent="cursor"))

        upsert_server(path, ServerInstallation(name="fs", version="1.0.0"))

        assert load_descriptor(path).default_agent == "cursor"

    def test_remove_one_version(self, tmp_path: Path) -> None:
        path = tmp_path / "mcpv.json"
        upsert_server(path, ServerInstallation(name="fs", version="1.0.0"))
        upsert_server(path, ServerInstallation(name="fs", version="2.0.0"))

        assert remove_servers(path, "fs", "1.0.0") == 1
        assert [s.version for s in load_descriptor(path).servers] == ["2.0.0"]

    def test_remove_all_versions(self, tmp_path: Path) -> None:
        path = tmp_path / "mcpv.json"
        upsert_server(path, ServerInstallation(name="fs", version="1.0.0"))
        upsert_server(path, ServerInstallation(name="fs", version="2.0.0"))
        upsert_server(path, ServerInstallation(name="git", version="0.1.0"))

        assert remove_servers(path, "fs") == 2
        assert [s.name for s in load_descriptor(path).servers] == ["git"]

    def test_remove_nothing_leaves_file_alone(self, tmp_path: Path) -> None:
        path = tmp_path / "mcpv.json"
        original = '{"servers": [{"name": "git", "version": "0.1.0"}]}'
        path.write_text(original)

        assert remove_servers(path, "fs") == 0
        assert path.read_text() == original

    def test_remove_from_missing_descriptor(self, tmp_path: Path) -> None:
        path = tmp_path / "mcpv.json"
        assert remove_servers(path, "fs") == 0
        assert not path.exists()
