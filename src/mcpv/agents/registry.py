# Data-driven catalog of supported agents
import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

import tomli

from mcpv.config import get_config_dir, get_descriptor_path, load_descriptor
from mcpv.errors import AgentConfigIOError, AgentLookupError, DescriptorError
from mcpv.models import AgentSpec, ConfigDirectorySpec
from mcpv.utils.env import expand_path
from mcpv.utils.process import command_exists

logger = logging.getLogger(__name__)

# ABOUTME: Bundled default catalog shipped inside the package
BUNDLED_AGENTS_RESOURCE = "data/agents.toml"


def get_registry_path() -> Path:
    """Return the default location of the persisted registry (agents.json)."""
    return get_config_dir() / "agents.json"


class AgentRegistry:
    """Versioned mapping of agent type -> AgentSpec.

    ABOUTME: Type keys are the only identity used for lookup and persistence
    ABOUTME: Persisted copy is replaced wholesale when its version string differs
    """

    def __init__(
        self,
        version: str,
        agents: dict[str, AgentSpec] | None = None,
        config_directory: ConfigDirectorySpec | None = None,
        storage_path: Path | None = None,
    ) -> None:
        self.version = version
        self.agents: dict[str, AgentSpec] = dict(agents or {})
        self.config_directory = config_directory or ConfigDirectorySpec()
        self.storage_path = storage_path or get_registry_path()

    # -- construction -----------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any], storage_path: Path | None = None) -> "AgentRegistry":
        """Parse a registry document (persisted JSON or bundled TOML).

        Raises:
            ValueError: If the document has no version or malformed agents
        """
        if not isinstance(data, dict) or "version" not in data:
            raise ValueError("Agent registry missing required 'version' field")

        agents_data = data.get("agents") or {}
        if not isinstance(agents_data, dict):
            raise ValueError("Agent registry 'agents' must be a mapping")

        agents = {
            agent_type: AgentSpec.from_dict(agent_type, spec_data)
            for agent_type, spec_data in agents_data.items()
        }
        return cls(
            version=str(data["version"]),
            agents=agents,
            config_directory=ConfigDirectorySpec.from_dict(data.get("config_directory") or {}),
            storage_path=storage_path,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "agents": {agent_type: spec.to_dict() for agent_type, spec in self.agents.items()},
            "config_directory": self.config_directory.to_dict(),
        }

    @classmethod
    def bundled(cls, storage_path: Path | None = None) -> "AgentRegistry":
        """Load the default catalog packaged with mcpv."""
        text = resources.files("mcpv").joinpath(BUNDLED_AGENTS_RESOURCE).read_text(encoding="utf-8")
        return cls.from_dict(tomli.loads(text), storage_path=storage_path)

    @classmethod
    def read(cls, path: Path) -> "AgentRegistry":
        """Load a persisted registry from JSON.

        Raises:
            AgentConfigIOError: If the file is unreadable or invalid
        """
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return cls.from_dict(data, storage_path=path)
        except (OSError, json.JSONDecodeError, ValueError, TypeError, AttributeError) as e:
            raise AgentConfigIOError(f"Failed to load agent registry {path}: {e}") from e

    @classmethod
    def load(cls, project_dir: Path, storage_path: Path | None = None) -> "AgentRegistry":
        """Materialize the registry for this run.

        ABOUTME: Persisted copy wins when loadable and on the bundled version
        ABOUTME: Otherwise bundled default + descriptor custom agents, then install()

        Args:
            project_dir: Directory holding mcpv.json (for inline custom agents)
            storage_path: Override for the persisted agents.json location

        Returns:
            Resolved AgentRegistry bound to storage_path
        """
        storage_path = storage_path or get_registry_path()
        bundled = cls.bundled(storage_path=storage_path)

        if storage_path.exists():
            try:
                persisted = cls.read(storage_path)
            except AgentConfigIOError as e:
                logger.warning(f"{e}; falling back to bundled agents")
            else:
                if persisted.version == bundled.version:
                    return persisted
                logger.info(
                    f"Agent registry version changed ({persisted.version} -> {bundled.version}), replacing"
                )

        try:
            descriptor = load_descriptor(get_descriptor_path(project_dir))
        except DescriptorError as e:
            logger.warning(f"Failed to load custom agents from mcpv.json: {e}")
        else:
            bundled.merge(descriptor.agents)

        bundled.install()
        return bundled

    # -- persistence ------------------------------------------------------

    def install(self) -> bool:
        """Persist the registry unless the stored copy has the same version.

        ABOUTME: Ordinal string comparison, not semantic versioning
        ABOUTME: Returns True when the file was written

        Raises:
            AgentConfigIOError: If the file cannot be written
        """
        if self.storage_path.exists():
            try:
                existing = AgentRegistry.read(self.storage_path)
            except AgentConfigIOError:
                existing = None
            if existing is not None and existing.version == self.version:
                return False

        self.save()
        return True

    def save(self) -> None:
        """Write the whole registry document to storage_path.

        Raises:
            AgentConfigIOError: If the file cannot be written
        """
        try:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.storage_path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
                f.write("\n")
        except OSError as e:
            raise AgentConfigIOError(f"Failed to write agent registry {self.storage_path}: {e}") from e

    # -- lookup -----------------------------------------------------------

    def get(self, agent_type: str) -> AgentSpec:
        """Return the spec for agent_type.

        Raises:
            AgentLookupError: If agent_type is not registered
        """
        try:
            return self.agents[agent_type]
        except KeyError:
            raise AgentLookupError(
                f"Unknown agent type: {agent_type}. Supported types: {', '.join(self.types())}"
            ) from None

    def types(self) -> list[str]:
        return sorted(self.agents)

    def merge(self, agents: dict[str, AgentSpec]) -> None:
        """Add or fully replace specs by type key."""
        for agent_type, spec in agents.items():
            self.agents[agent_type] = spec

    def add_custom(self, agent_type: str, spec: AgentSpec) -> None:
        """Register (or replace) an agent and persist the registry."""
        self.agents[agent_type] = spec
        self.save()

    def remove_custom(self, agent_type: str) -> None:
        """Unregister an agent and persist the registry.

        Raises:
            AgentLookupError: If agent_type is not registered
        """
        self.get(agent_type)
        del self.agents[agent_type]
        self.save()

    # -- detection --------------------------------------------------------

    def is_available(self, spec: AgentSpec) -> bool:
        """An agent is available if any detection path exists or any command is on PATH.

        ABOUTME: Paths still relative after expansion (e.g. %APPDATA% off Windows) are skipped
        """
        for path in spec.detection.paths:
            expanded = expand_path(path)
            if expanded.is_absolute() and expanded.exists():
                return True
        return any(command_exists(command) for command in spec.detection.commands)

    def detect(self) -> set[str]:
        """Return the types of agents present on this machine."""
        return {agent_type for agent_type, spec in self.agents.items() if self.is_available(spec)}

    # -- config paths -----------------------------------------------------

    def resolve_path(self, agent_type: str, prefer_local: bool, project_dir: Path) -> Path:
        """Return the config file path an agent should be written to.

        ABOUTME: Global agents ignore prefer_local
        ABOUTME: Candidate lists pick the first entry whose parent dir exists,
        ABOUTME: else the first entry (a best guess, not a writability promise)

        Args:
            agent_type: Registry key
            prefer_local: Use the project-level file when the agent has one
            project_dir: Anchor for relative (project-level) paths

        Raises:
            AgentLookupError: For unknown agents or agents without a config path
        """
        spec = self.get(agent_type)
        if spec.global_:
            prefer_local = False

        config = spec.config
        if config is None:
            raise AgentLookupError(f"No config specification for agent {agent_type}")

        if not prefer_local and config.global_path:
            return self._anchor(config.global_path, project_dir)

        if config.path:
            return self._anchor(config.path, project_dir)

        candidates = [self._anchor(path, project_dir) for path in config.paths]
        for candidate in candidates:
            if candidate.parent.exists():
                return candidate
        if candidates:
            return candidates[0]

        raise AgentLookupError(f"No config path available for agent {agent_type}")

    @staticmethod
    def _anchor(path: str, project_dir: Path) -> Path:
        expanded = expand_path(path)
        return expanded if expanded.is_absolute() else project_dir / expanded
