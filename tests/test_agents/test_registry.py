# ABOUTME: Tests for AgentRegistry: bundled catalog, persistence by version,
# ABOUTME: custom agents, detection and config path resolution
import json
from pathlib import Path

import pytest

from mcpv.agents import AgentRegistry, get_registry_path
from mcpv.errors import AgentConfigIOError, AgentLookupError
from mcpv.models import AgentSpec, ConfigSpec, DetectionSpec


def read_json(path: Path) -> dict:
    return json.loads(path.read_text())


class TestBundledRegistry:
    """Tests for the catalog shipped with the package."""

    def test_bundled_agents(self) -> None:
        registry = AgentRegistry.bundled(storage_path=Path("unused.json"))

        assert registry.version == "1.0.0"
        assert registry.types() == ["claude", "claude_code", "cursor", "roocode", "windsurf"]

    def test_bundled_specs_are_well_formed(self) -> None:
        """Test that every bundled agent has a JSON config and identity field names."""
        registry = AgentRegistry.bundled(storage_path=Path("unused.json"))

        for agent_type in registry.types():
            spec = registry.get(agent_type)
            assert spec.type == agent_type
            assert spec.config is not None
            assert spec.config.format == "json"
            assert spec.server_config_format == {"command": "command", "args": "args", "env": "env"}

    def test_global_flags(self) -> None:
        registry = AgentRegistry.bundled(storage_path=Path("unused.json"))

        assert registry.get("claude").global_ is True
        assert registry.get("windsurf").global_ is True
        assert registry.get("cursor").global_ is False

    def test_registry_path_under_config_dir(self, isolated_home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.platform", "linux")
        assert get_registry_path() == isolated_home / ".config" / "mcpv" / "agents.json"


class TestInstall:
    """Tests for version-gated persistence."""

    def test_writes_when_missing(self, tmp_path: Path) -> None:
        storage = tmp_path / "cfg" / "agents.json"
        registry = AgentRegistry("1.0", storage_path=storage)

        assert registry.install() is True
        assert read_json(storage)["version"] == "1.0"

    def test_replaces_older_version(self, tmp_path: Path) -> None:
        """Test that a stored 1.0 registry is replaced by a 1.1 one."""
        storage = tmp_path / "agents.json"
        storage.write_text(json.dumps({"version": "1.0", "agents": {"old": {"name": "Old"}}}))
        registry = AgentRegistry("1.1", {"new": AgentSpec(name="New", type="new")}, storage_path=storage)

        assert registry.install() is True

        data = read_json(storage)
        assert data["version"] == "1.1"
        assert list(data["agents"]) == ["new"]

    def test_same_version_is_not_rewritten(self, tmp_path: Path) -> None:
        storage = tmp_path / "agents.json"
        original = json.dumps({"version": "1.1", "agents": {}, "note": "hand edited"})
        storage.write_text(original)
        registry = AgentRegistry("1.1", {"new": AgentSpec(name="New", type="new")}, storage_path=storage)

        assert registry.install() is False
        assert storage.read_text() == original

    def test_unreadable_copy_is_replaced(self, tmp_path: Path) -> None:
        storage = tmp_path / "agents.json"
        storage.write_text("{broken")

        assert AgentRegistry("1.1", storage_path=storage).install() is True
        assert read_json(storage)["version"] == "1.1"


class TestLoad:
    """Tests for AgentRegistry.load."""

    def test_first_run_persists_bundled(self, tmp_path: Path, project_dir: Path) -> None:
        storage = tmp_path / "cfg" / "agents.json"

        registry = AgentRegistry.load(project_dir, storage_path=storage)

        assert storage.exists()
        assert read_json(storage)["version"] == registry.version
        assert "cursor" in registry.agents

    def test_persisted_copy_wins_on_same_version(self, tmp_path: Path, project_dir: Path) -> None:
        storage = tmp_path / "agents.json"
        data = AgentRegistry.bundled(storage).to_dict()
        data["agents"]["zed"] = {"name": "Zed", "type": "zed", "config": {"path": ".zed/mcp.json"}}
        storage.write_text(json.dumps(data))

        registry = AgentRegistry.load(project_dir, storage_path=storage)

        assert registry.get("zed").config.path == ".zed/mcp.json"

    def test_version_change_replaces_persisted_copy(self, tmp_path: Path, project_dir: Path) -> None:
        """Test that a stale persisted copy (and its custom agents) is replaced."""
        storage = tmp_path / "agents.json"
        storage.write_text(json.dumps({"version": "0.9", "agents": {"zed": {"name": "Zed"}}}))

        registry = AgentRegistry.load(project_dir, storage_path=storage)

        assert "zed" not in registry.agents
        assert read_json(storage)["version"] == registry.version

    def test_merges_descriptor_agents(self, tmp_path: Path, project_dir: Path) -> None:
        (project_dir / "mcpv.json").write_text(json.dumps({
            "servers": [],
            "agents": {
                "zed": {"name": "Zed", "config": {"path": ".zed/settings.json"}},
                "cursor": {"name": "Cursor (custom)", "config": {"path": "cursor.json"}},
            },
        }))

        registry = AgentRegistry.load(project_dir, storage_path=tmp_path / "agents.json")

        assert registry.get("zed").config.path == ".zed/settings.json"
        # Custom entries replace bundled ones wholesale
        assert registry.get("cursor").config.global_path == ""
        assert "zed" in read_json(tmp_path / "agents.json")["agents"]

    def test_invalid_descriptor_is_ignored(self, tmp_path: Path, project_dir: Path) -> None:
        (project_dir / "mcpv.json").write_text("{nope")

        registry = AgentRegistry.load(project_dir, storage_path=tmp_path / "agents.json")

        assert "claude" in registry.agents

    @pytest.mark.parametrize("agents", [["not", "a", "mapping"], {"zed": "oops"}])
    def test_malformed_descriptor_agents_are_ignored(self, tmp_path: Path, project_dir: Path, agents) -> None:
        (project_dir / "mcpv.json").write_text(json.dumps({"servers": [], "agents": agents}))

        registry = AgentRegistry.load(project_dir, storage_path=tmp_path / "agents.json")

        assert "zed" not in registry.agents
        assert "cursor" in registry.agents

    def test_descriptor_agent_with_null_paths(self, tmp_path: Path, project_dir: Path) -> None:
        (project_dir / "mcpv.json").write_text(json.dumps({"agents": {"zed": {"config": {"paths": None}}}}))

        registry = AgentRegistry.load(project_dir, storage_path=tmp_path / "agents.json")

        assert registry.get("zed").config.paths == []

    def test_read_invalid(self, tmp_path: Path) -> None:
        storage = tmp_path / "agents.json"
        storage.write_text(json.dumps({"agents": {}}))

        with pytest.raises(AgentConfigIOError, match="version"):
            AgentRegistry.read(storage)


class TestCustomAgents:
    """Tests for add_custom / remove_custom."""

    def test_add_custom_persists(self, tmp_path: Path) -> None:
        storage = tmp_path / "agents.json"
        registry = AgentRegistry("1.0", storage_path=storage)

        registry.add_custom("zed", AgentSpec(name="Zed", type="zed", config=ConfigSpec(path=".zed/mcp.json")))

        assert AgentRegistry.read(storage).get("zed").name == "Zed"

    def test_remove_custom(self, tmp_path: Path) -> None:
        storage = tmp_path / "agents.json"
        registry = AgentRegistry("1.0", {"zed": AgentSpec(name="Zed", type="zed")}, storage_path=storage)

        registry.remove_custom("zed")

        assert AgentRegistry.read(storage).agents == {}

    def test_remove_unknown(self, tmp_path: Path) -> None:
        registry = AgentRegistry("1.0", storage_path=tmp_path / "agents.json")

        with pytest.raises(AgentLookupError):
            registry.remove_custom("zed")
        assert not (tmp_path / "agents.json").exists()


class TestLookupAndDetection:
    """Tests for get and detect."""

    def test_unknown_type_lists_supported(self, tmp_path: Path, agent_factory) -> None:
        registry = AgentRegistry("1.0", {"alpha": agent_factory("alpha", "a.json")}, storage_path=tmp_path / "a.json")

        with pytest.raises(AgentLookupError, match="Supported types: alpha"):
            registry.get("vim")

    def test_detects_by_path(self, tmp_path: Path, agent_factory) -> None:
        present = tmp_path / "present"
        present.mkdir()
        registry = AgentRegistry(
            "1.0",
            {
                "alpha": agent_factory("alpha", "a.json", detect_path=present),
                "beta": agent_factory("beta", "b.json", detect_path=tmp_path / "absent"),
            },
            storage_path=tmp_path / "agents.json",
        )

        assert registry.detect() == {"alpha"}

    def test_relative_detection_path_is_not_checked_against_cwd(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that an unexpanded %APPDATA% path never matches a directory in the cwd."""
        monkeypatch.setattr("sys.platform", "linux")
        (tmp_path / "%APPDATA%" / "Claude").mkdir(parents=True)
        monkeypatch.chdir(tmp_path)
        spec = AgentSpec(name="Claude", type="claude", detection=DetectionSpec(paths=["%APPDATA%/Claude"]))
        registry = AgentRegistry("1.0", {"claude": spec}, storage_path=tmp_path / "agents.json")

        assert registry.detect() == set()

    def test_detects_by_command(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an executable on the search path marks an agent as installed."""
        monkeypatch.setattr("mcpv.agents.registry.command_exists", lambda command: command == "claude")
        registry = AgentRegistry.bundled(storage_path=tmp_path / "agents.json")
        monkeypatch.setenv("HOME", str(tmp_path))

        assert registry.detect() == {"claude_code"}


class TestResolvePath:
    """Tests for AgentRegistry.resolve_path."""

    def make_registry(self, tmp_path: Path, **agents: AgentSpec) -> AgentRegistry:
        return AgentRegistry("1.0", agents, storage_path=tmp_path / "agents.json")

    def test_local_path_is_anchored_to_project(self, tmp_path, project_dir, agent_factory) -> None:
        registry = self.make_registry(tmp_path, cursor=agent_factory("cursor", ".cursor/mcp.json", global_path="~/.cursor/mcp.json"))

        assert registry.resolve_path("cursor", True, project_dir) == project_dir / ".cursor" / "mcp.json"

    def test_global_path_when_not_local(self, tmp_path, project_dir, isolated_home, agent_factory) -> None:
        registry = self.make_registry(tmp_path, cursor=agent_factory("cursor", ".cursor/mcp.json", global_path="~/.cursor/mcp.json"))

        assert registry.resolve_path("cursor", False, project_dir) == isolated_home / ".cursor" / "mcp.json"

    def test_global_agent_ignores_prefer_local(self, tmp_path, project_dir, isolated_home, agent_factory) -> None:
        """Test that a global agent always resolves to its global file."""
        registry = self.make_registry(
            tmp_path, windsurf=agent_factory("windsurf", "~/.codeium/windsurf/mcp_config.json", global_=True)
        )

        assert registry.resolve_path("windsurf", True, project_dir) == (
            isolated_home / ".codeium" / "windsurf" / "mcp_config.json"
        )

    def test_candidates_pick_existing_parent(self, tmp_path, project_dir, agent_factory) -> None:
        second = tmp_path / "second"
        second.mkdir()
        registry = self.make_registry(
            tmp_path,
            claude=agent_factory("claude", paths=[str(tmp_path / "first" / "c.json"), str(second / "c.json")], global_=True),
        )

        assert registry.resolve_path("claude", False, project_dir) == second / "c.json"

    def test_candidates_fall_back_to_first(self, tmp_path, project_dir, agent_factory) -> None:
        registry = self.make_registry(
            tmp_path,
            claude=agent_factory("claude", paths=[str(tmp_path / "a" / "c.json"), str(tmp_path / "b" / "c.json")]),
        )

        assert registry.resolve_path("claude", False, project_dir) == tmp_path / "a" / "c.json"

    def test_no_config(self, tmp_path, project_dir) -> None:
        registry = self.make_registry(tmp_path, bare=AgentSpec(name="Bare", type="bare"))

        with pytest.raises(AgentLookupError, match="No config specification"):
            registry.resolve_path("bare", True, project_dir)

    def test_no_paths(self, tmp_path, project_dir) -> None:
        registry = self.make_registry(tmp_path, empty=AgentSpec(name="Empty", type="empty", config=ConfigSpec()))

        with pytest.raises(AgentLookupError, match="No config path"):
            registry.resolve_path("empty", True, project_dir)
