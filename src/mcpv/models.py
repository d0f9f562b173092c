# Core data models for mcpv
import copy
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

# ABOUTME: Key under which agents keep their server entries unless a spec says otherwise
DEFAULT_SERVERS_KEY = "mcpServers"


class Ecosystem(str, Enum):
    """Build ecosystem detected for a fetched source tree."""

    NODE = "node"
    PYTHON = "python"
    GO = "go"
    RUST = "rust"
    UNKNOWN = "unknown"


@dataclass
class ServerInstallation:
    """One concrete name@version server and how to launch it.

    ABOUTME: Mirrors a single entry of the project descriptor's "servers" list
    ABOUTME: Execution fields may be empty for declarative descriptor entries
    """
    name: str
    version: str = ""
    repository: str = ""
    install_path: str = ""
    command: str = ""
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    installed: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize for mcpv.json, omitting empty optional fields."""
        data: dict[str, Any] = {"name": self.name, "version": self.version, "repository": self.repository}
        if self.install_path:
            data["install_path"] = self.install_path
        if self.installed:
            data["installed"] = True
        if self.command:
            data["command"] = self.command
        if self.args:
            data["args"] = list(self.args)
        if self.env:
            data["env"] = dict(self.env)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServerInstallation":
        if "name" not in data:
            raise ValueError("Server entry missing required 'name' field")
        return cls(
            name=data["name"],
            version=data.get("version", "") or "",
            repository=data.get("repository", "") or "",
            install_path=data.get("install_path", "") or "",
            command=data.get("command", "") or "",
            args=[str(arg) for arg in data.get("args") or []],
            env={str(k): str(v) for k, v in (data.get("env") or {}).items()},
            installed=bool(data.get("installed", False)),
        )


@dataclass
class ConfigSpec:
    """Where an agent keeps its config file and what the file looks like.

    ABOUTME: Either a single path or an ordered list of candidate paths
    ABOUTME: global_path is used when the caller does not prefer a local file
    """
    path: str = ""
    paths: list[str] = field(default_factory=list)
    global_path: str = ""
    format: str = "json"
    structure: dict[str, Any] = field(default_factory=dict)
    servers_key: str = DEFAULT_SERVERS_KEY

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"format": self.format}
        if self.path:
            data["path"] = self.path
        if self.paths:
            data["paths"] = list(self.paths)
        if self.global_path:
            data["global_path"] = self.global_path
        if self.structure:
            data["structure"] = copy.deepcopy(self.structure)
        if self.servers_key != DEFAULT_SERVERS_KEY:
            data["servers_key"] = self.servers_key
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConfigSpec":
        return cls(
            path=data.get("path", "") or "",
            paths=list(data.get("paths") or []),
            global_path=data.get("global_path", "") or "",
            format=data.get("format", "json"),
            structure=copy.deepcopy(data.get("structure") or {}),
            servers_key=data.get("servers_key", DEFAULT_SERVERS_KEY),
        )


@dataclass
class DetectionSpec:
    """Filesystem paths and executables whose presence means an agent is installed."""
    paths: list[str] = field(default_factory=list)
    commands: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"paths": list(self.paths), "commands": list(self.commands)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DetectionSpec":
        return cls(paths=list(data.get("paths") or []), commands=list(data.get("commands") or []))


@dataclass
class AgentSpec:
    """Data-driven description of one external agent.

    ABOUTME: type is the unique key used for lookup, detection and persistence
    ABOUTME: server_config_format renames entry fields (command/args/env) per agent
    """
    name: str
    type: str
    description: str = ""
    global_: bool = False
    config: ConfigSpec | None = None
    server_config_format: dict[str, str] = field(default_factory=dict)
    detection: DetectionSpec = field(default_factory=DetectionSpec)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "description": self.description,
        }
        if self.global_:
            data["global"] = True
        if self.config is not None:
            data["config"] = self.config.to_dict()
        data["server_config_format"] = dict(self.server_config_format)
        data["detection"] = self.detection.to_dict()
        return data

    @classmethod
    def from_dict(cls, agent_type: str, data: dict[str, Any]) -> "AgentSpec":
        """Build a spec from JSON/TOML data.

        ABOUTME: Falls back to the mapping key when the data has no 'type'
        """
        config_data = data.get("config")
        return cls(
            name=data.get("name", agent_type),
            type=data.get("type") or agent_type,
            description=data.get("description", ""),
            global_=bool(data.get("global", False)),
            config=ConfigSpec.from_dict(config_data) if config_data else None,
            server_config_format=dict(data.get("server_config_format") or {}),
            detection=DetectionSpec.from_dict(data.get("detection") or {}),
        )


@dataclass
class ConfigDirectorySpec:
    """Where mcpv stores its own files (the persisted agent registry).

    ABOUTME: Carried through load/save so the persisted registry keeps the catalog's table
    ABOUTME: Not consulted at runtime; mcpv.config.get_config_dir() decides the location
    """
    name: str = "mcpv"
    paths: dict[str, str] = field(default_factory=dict)
    agents_file: str = "agents.json"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "paths": dict(self.paths), "agents_file": self.agents_file}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConfigDirectorySpec":
        return cls(
            name=data.get("name", "mcpv"),
            paths=dict(data.get("paths") or {}),
            agents_file=data.get("agents_file", "agents.json"),
        )


@dataclass
class ProjectDescriptor:
    """mcpv.json loaded from a project directory.

    ABOUTME: Read and written as a whole document, never patched in place
    """
    servers: list[ServerInstallation] = field(default_factory=list)
    default_agent: str = ""
    agents: dict[str, AgentSpec] = field(default_factory=dict)

    def find(self, name: str, version: str) -> int | None:
        """Return the index of name@version in servers, or None."""
        for idx, server in enumerate(self.servers):
            if server.name == name and server.version == version:
                return idx
        return None


@dataclass
class AgentConfigDocument:
    """Typed view of an external agent's JSON config file.

    ABOUTME: servers holds the mcpServers-style mapping (name -> entry)
    ABOUTME: extra keeps every other top-level key so saves are lossless
    """
    servers: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    servers_key: str = DEFAULT_SERVERS_KEY

    @classmethod
    def from_dict(cls, data: dict[str, Any], servers_key: str = DEFAULT_SERVERS_KEY) -> "AgentConfigDocument":
        extra = {key: value for key, value in data.items() if key != servers_key}
        servers = data.get(servers_key)
        if not isinstance(servers, dict):
            servers = {}
        return cls(servers=dict(servers), extra=extra, servers_key=servers_key)

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        data[self.servers_key] = self.servers
        return data


@runtime_checkable
class AgentConfigAdapter(Protocol):
    """Protocol for per-agent config file handling.

    ABOUTME: One instance per agent type, driven by AgentRegistry data
    ABOUTME: Uses @runtime_checkable for isinstance() support
    """

    @property
    def agent_type(self) -> str:
        """Registry key of the agent."""
        ...

    def locate(self) -> Path:
        """Path of the agent's config file (may not exist yet)."""
        ...

    def load(self) -> AgentConfigDocument:
        """Load the config document, synthesizing a default if missing."""
        ...

    def save(self, document: AgentConfigDocument) -> None:
        """Overwrite the config file with the full document."""
        ...

    def add_entry(self, installation: ServerInstallation) -> None:
        """Set mcpServers[installation.name], replacing any prior entry."""
        ...

    def remove_entry(self, name: str) -> None:
        """Delete mcpServers[name] if present."""
        ...
