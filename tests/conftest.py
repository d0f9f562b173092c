# ABOUTME: Shared fixtures: an isolated home directory, a scripted command runner,
# ABOUTME: and a small agent registry whose config files live under tmp_path
import subprocess
from pathlib import Path

import pytest

from mcpv.agents import AgentRegistry
from mcpv.models import AgentSpec, ConfigSpec, DetectionSpec


class FakeRunner:
    """Stands in for run_command: records calls and scripts their outcome.

    files: written into the clone destination on `git clone`
    fail: argv prefix -> exit status for commands that should fail
    tags: tag names reported by `git ls-remote --tags`
    """

    def __init__(
        self,
        files: dict[str, str] | None = None,
        fail: dict[tuple[str, ...], int] | None = None,
        tags: list[str] | None = None,
    ) -> None:
        self.files = files or {}
        self.fail = fail or {}
        self.tags = tags or []
        self.calls: list[tuple[list[str], Path | None]] = []

    def __call__(self, argv, cwd=None, capture=False):
        argv = list(argv)
        self.calls.append((argv, cwd))

        for prefix, code in self.fail.items():
            if tuple(argv[:len(prefix)]) == prefix:
                return subprocess.CompletedProcess(argv, code, stdout="", stderr="fatal: boom")

        stdout = ""
        if argv[:2] == ["git", "clone"]:
            destination = Path(argv[3])
            destination.mkdir(parents=True, exist_ok=True)
            for rel, content in self.files.items():
                target = destination / rel
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(content)
        elif argv[:2] == ["git", "ls-remote"]:
            stdout = "".join(f"{idx:040d}\trefs/tags/{tag}\n" for idx, tag in enumerate(self.tags))

        return subprocess.CompletedProcess(argv, 0, stdout=stdout, stderr="")

    def commands(self) -> list[list[str]]:
        return [argv for argv, _cwd in self.calls]

    @classmethod
    def node_server(cls, **kwargs) -> "FakeRunner":
        """Runner whose clones produce a buildable node tree (main: index.js)."""
        return cls(files=dict(NODE_SERVER_FILES), **kwargs)


NODE_SERVER_FILES = {
    "package.json": '{"name": "fs-server", "main": "index.js"}',
    "index.js": "console.log('hi')\n",
}


@pytest.fixture
def runner_factory():
    """The FakeRunner class, for building scripted runners inside tests."""
    return FakeRunner


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME and the XDG roots at tmp_path and hide agent executables."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    monkeypatch.setattr("mcpv.agents.registry.command_exists", lambda command: False)
    return home


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    project = tmp_path / "project"
    project.mkdir()
    return project


def make_agent(
    agent_type: str,
    path: str = "",
    detect_path: Path | None = None,
    global_: bool = False,
    global_path: str = "",
    paths: list[str] | None = None,
    field_names: dict[str, str] | None = None,
) -> AgentSpec:
    return AgentSpec(
        name=agent_type.title(),
        type=agent_type,
        global_=global_,
        config=ConfigSpec(path=path, paths=paths or [], global_path=global_path, structure={"mcpServers": {}}),
        server_config_format=field_names or {},
        detection=DetectionSpec(paths=[str(detect_path)] if detect_path else []),
    )


@pytest.fixture
def agent_factory():
    return make_agent


@pytest.fixture
def two_agent_registry(tmp_path: Path) -> AgentRegistry:
    """Registry with two detected project-level agents: alpha and beta."""
    marker = tmp_path / "installed"
    marker.mkdir()
    return AgentRegistry(
        version="test",
        agents={
            "alpha": make_agent("alpha", ".alpha/mcp.json", detect_path=marker),
            "beta": make_agent("beta", ".beta/mcp.json", detect_path=marker),
        },
        storage_path=tmp_path / "config" / "agents.json",
    )
