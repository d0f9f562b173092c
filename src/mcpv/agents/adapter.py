# Registry-driven agent config adapter
import logging
from pathlib import Path

from mcpv.agents.base import default_document, installation_to_entry, read_json_file, write_json_file
from mcpv.agents.registry import AgentRegistry
from mcpv.errors import AgentConfigIOError
from mcpv.models import DEFAULT_SERVERS_KEY, AgentConfigAdapter, AgentConfigDocument, AgentSpec, ServerInstallation
from mcpv.utils.backup import create_backup

logger = logging.getLogger(__name__)


class RegistryAgentAdapter(AgentConfigAdapter):
    """Config adapter for any agent described by an AgentSpec.

    ABOUTME: Implements AgentConfigAdapter protocol from registry data alone
    ABOUTME: New agents need a registry entry, not a new class
    """

    def __init__(
        self,
        agent_type: str,
        registry: AgentRegistry,
        project_dir: Path,
        prefer_local: bool | None = None,
        backup_dir: Path | None = None,
    ) -> None:
        """Bind the adapter to one agent type.

        ABOUTME: prefer_local defaults to True for non-global agents
        ABOUTME: backup_dir=None disables backups before overwriting

        Raises:
            AgentLookupError: If agent_type is not registered
        """
        spec = registry.get(agent_type)
        self._agent_type = agent_type
        self._registry = registry
        self._project_dir = project_dir
        self._prefer_local = (not spec.global_) if prefer_local is None else prefer_local
        self._backup_dir = backup_dir

    @property
    def agent_type(self) -> str:
        return self._agent_type

    @property
    def spec(self) -> AgentSpec:
        return self._registry.get(self._agent_type)

    @property
    def servers_key(self) -> str:
        config = self.spec.config
        return config.servers_key if config is not None else DEFAULT_SERVERS_KEY

    def locate(self) -> Path:
        return self._registry.resolve_path(self._agent_type, self._prefer_local, self._project_dir)

    def load(self) -> AgentConfigDocument:
        """Load the agent's config document.

        ABOUTME: Missing file -> declared default structure (or bare mcpServers)
        ABOUTME: Existing file keeps all unknown top-level keys

        Raises:
            AgentConfigIOError: If the file is unreadable, invalid or not JSON-formatted
        """
        self._check_format()
        path = self.locate()

        if not path.exists():
            return AgentConfigDocument.from_dict(default_document(self.spec), self.servers_key)

        return AgentConfigDocument.from_dict(read_json_file(path), self.servers_key)

    def save(self, document: AgentConfigDocument) -> None:
        """Overwrite the agent's config file with the full document.

        Raises:
            AgentConfigIOError: If the file cannot be written
        """
        self._check_format()
        path = self.locate()

        if self._backup_dir is not None and path.is_file():
            try:
                create_backup(path, self._backup_dir, self._agent_type)
            except OSError as e:
                logger.warning(f"Failed to back up {path}: {e}")

        write_json_file(path, document.to_dict())
        logger.debug(f"Wrote {self._agent_type} config to {path}")

    def add_entry(self, installation: ServerInstallation) -> None:
        """Set the server entry, replacing any previous one (no field merge)."""
        document = self.load()
        document.servers[installation.name] = installation_to_entry(installation, self.spec)
        self.save(document)

    def remove_entry(self, name: str) -> None:
        """Delete the server entry; absent entries are not an error."""
        path = self.locate()
        if not path.exists():
            return

        document = self.load()
        if name not in document.servers:
            return

        del document.servers[name]
        self.save(document)

    def _check_format(self) -> None:
        config = self.spec.config
        if config is not None and config.format.lower() != "json":
            raise AgentConfigIOError(
                f"Agent {self._agent_type} uses unsupported config format '{config.format}'"
            )
