# Descriptor-level workflows: install, remove, update, agent registration
import logging
from dataclasses import dataclass
from pathlib import Path

from mcpv.agents import AgentRegistry
from mcpv.config import (
    get_backup_dir,
    get_descriptor_path,
    get_install_root,
    load_descriptor,
    remove_servers,
    save_descriptor,
    upsert_server,
)
from mcpv.errors import AggregateAgentError, AlreadyInstalledError, DescriptorError, McpvError, NotInstalledError
from mcpv.install import LATEST, InstallOrchestrator
from mcpv.models import ProjectDescriptor, ServerInstallation
from mcpv.sync import add_to_agent, add_to_agents, remove_from_agent, remove_from_agents

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Outcome of installing (or re-registering) one server."""
    installation: ServerInstallation
    already_installed: bool = False
    agent_error: McpvError | None = None


@dataclass
class RemoveResult:
    """Outcome of removing one server (one or all versions)."""
    name: str
    removed_versions: list[str]
    descriptor_entries: int = 0
    agent_error: McpvError | None = None


@dataclass
class UpdateResult:
    """Outcome of updating one descriptor entry."""
    name: str
    from_version: str
    to_version: str = ""
    status: str = "skipped"  # 'updated', 'current', 'skipped' or 'failed'
    error: Exception | None = None


def parse_server_spec(spec: str) -> tuple[str, str]:
    """Split "name@version" into (name, version); version may be "".

    Examples:
        >>> parse_server_spec("filesystem@1.2.0")
        ('filesystem', '1.2.0')
        >>> parse_server_spec("filesystem")
        ('filesystem', '')
    """
    name, _, version = spec.partition("@")
    return name, version


class ServerManager:
    """Coordinates installs, the project descriptor and agent configs.

    ABOUTME: Every operation is anchored to an explicit project_dir
    ABOUTME: Agent fan-out failures are warnings; an explicit target agent's failure propagates
    """

    def __init__(
        self,
        project_dir: Path,
        install_root: Path | None = None,
        registry: AgentRegistry | None = None,
        orchestrator: InstallOrchestrator | None = None,
        backup_dir: Path | None = None,
    ) -> None:
        self.project_dir = project_dir
        self.orchestrator = orchestrator or InstallOrchestrator(install_root or get_install_root())
        self.registry = registry or AgentRegistry.load(project_dir)
        self.backup_dir = backup_dir if backup_dir is not None else get_backup_dir()

    @property
    def descriptor_path(self) -> Path:
        return get_descriptor_path(self.project_dir)

    def load_descriptor(self) -> ProjectDescriptor:
        return load_descriptor(self.descriptor_path)

    # -- init ---------------------------------------------------------------

    def init_descriptor(self, default_agent: str, force: bool = False) -> ProjectDescriptor:
        """Create mcpv.json with an empty server list and a default agent.

        Raises:
            DescriptorError: If mcpv.json exists and force is False
            AgentLookupError: If default_agent is not a registered type
        """
        if self.descriptor_path.exists() and not force:
            raise DescriptorError(f"{self.descriptor_path} already exists. Use --force to overwrite")

        self.registry.get(default_agent)
        descriptor = ProjectDescriptor(default_agent=default_agent)
        save_descriptor(self.descriptor_path, descriptor)
        return descriptor

    # -- install ------------------------------------------------------------

    def install_from_descriptor(
        self,
        agent_type: str | None = None,
        prefer_local: bool | None = None,
    ) -> list[InstallResult]:
        """Install every server listed in mcpv.json and register it with agents.

        ABOUTME: Already-installed servers are a soft success; execution data is re-derived
        ABOUTME: Target agent: agent_type, else the descriptor's default_agent, else fan-out

        Raises:
            DescriptorError: If mcpv.json is invalid or an entry has no repository
            AgentLookupError: If the target agent is unknown
            FetchError, BuildError, ExecutionResolutionError: From the first failing install
        """
        descriptor = self.load_descriptor()
        target = agent_type or descriptor.default_agent or None
        if target:
            self.registry.get(target)

        results: list[InstallResult] = []
        for entry in descriptor.servers:
            if not entry.repository:
                raise DescriptorError(f"Repository not specified for server {entry.name}")

            version = entry.version or LATEST
            result = self._install_or_describe(entry, version)
            self._register(result, target, prefer_local)
            results.append(result)

        return results

    def install_server(
        self,
        name: str,
        version: str,
        repository: str,
        agent_type: str | None = None,
        prefer_local: bool | None = None,
    ) -> InstallResult:
        """Install one server, record it in mcpv.json and register it with agents.

        Raises:
            AlreadyInstalledError: If name@version is already installed
            AgentLookupError: If the target agent is unknown
            FetchError, BuildError, ExecutionResolutionError: From the install pipeline
        """
        version = version or LATEST
        descriptor = self.load_descriptor()
        target = agent_type or descriptor.default_agent or None
        if target:
            self.registry.get(target)

        installation = self.orchestrator.install(name, version, repository)
        upsert_server(self.descriptor_path, installation)

        result = InstallResult(installation=installation)
        self._register(result, target, prefer_local)
        return result

    def _install_or_describe(self, entry: ServerInstallation, version: str) -> InstallResult:
        logger.info(f"Installing {entry.name}@{version}...")
        try:
            installation = self.orchestrator.install(entry.name, version, entry.repository)
        except AlreadyInstalledError:
            logger.info(f"Server {entry.name}@{version} is already installed")
            installation = self.orchestrator.describe(
                entry.name,
                version,
                entry.repository,
                command=entry.command,
                args=entry.args,
                env=entry.env,
            )
            return InstallResult(installation=installation, already_installed=True)

        logger.info(f"Successfully installed {entry.name}@{version}")
        return InstallResult(installation=installation)

    def _register(self, result: InstallResult, target: str | None, prefer_local: bool | None) -> None:
        installation = result.installation
        if target:
            add_to_agent(
                self.registry, target, installation, self.project_dir, prefer_local, self.backup_dir
            )
            return

        try:
            report = add_to_agents(
                self.registry, installation, self.project_dir, backup_dir=self.backup_dir
            )
        except AggregateAgentError as e:
            logger.warning(f"Failed to configure server {installation.name} for agents: {e}")
            result.agent_error = e
            return

        if not report.targets:
            logger.info(
                f"No supported agents detected. Server {installation.name} installed "
                f"but not configured for any agents."
            )

    # -- remove -------------------------------------------------------------

    def remove_server(
        self,
        name: str,
        version: str | None = None,
        agent_type: str | None = None,
    ) -> RemoveResult:
        """Remove one version (or all versions) of a server.

        ABOUTME: Directory and descriptor removal always proceed
        ABOUTME: Agent cleanup failures are recorded, not raised, unless agent_type is explicit
        """
        if version:
            versions = [version]
        else:
            versions = [server.version for server in self.orchestrator.list_installed() if server.name == name]
            if not versions:
                logger.warning(f"Server {name} is not installed, but will still remove from config")

        removed: list[str] = []
        for ver in versions:
            try:
                self.orchestrator.uninstall(name, ver)
            except NotInstalledError as e:
                logger.warning(f"Failed to remove installed server {name}@{ver}: {e}")
            else:
                removed.append(ver)

        try:
            entries = remove_servers(self.descriptor_path, name, version or None)
        except DescriptorError as e:
            logger.warning(f"Failed to remove {name} from {self.descriptor_path}: {e}")
            entries = 0

        result = RemoveResult(name=name, removed_versions=removed, descriptor_entries=entries)

        if agent_type:
            remove_from_agent(self.registry, agent_type, name, self.project_dir, backup_dir=self.backup_dir)
            return result

        try:
            remove_from_agents(self.registry, name, self.project_dir, backup_dir=self.backup_dir)
        except AggregateAgentError as e:
            logger.warning(f"Failed to remove server from agent configurations: {e}")
            result.agent_error = e

        return result

    # -- list / update --------------------------------------------------------

    def list_installed(self) -> list[ServerInstallation]:
        return self.orchestrator.list_installed()

    def project_status(self) -> list[tuple[ServerInstallation, bool, Path]]:
        """Return (entry, installed, install path) for each mcpv.json server.

        ABOUTME: An entry without a version is reported as "latest"
        ABOUTME: Not-installed entries get the path an install would use

        Raises:
            DescriptorError: If mcpv.json is invalid
        """
        rows: list[tuple[ServerInstallation, bool, Path]] = []
        for entry in self.load_descriptor().servers:
            version = entry.version or LATEST
            rows.append((
                entry,
                self.orchestrator.is_installed(entry.name, version),
                self.orchestrator.install_path(entry.name, version),
            ))
        return rows

    def update_from_descriptor(self) -> list[UpdateResult]:
        """Install the newest tagged version of every descriptor server.

        ABOUTME: Per-server failures are recorded and the loop continues
        ABOUTME: Updated entries are rewritten in mcpv.json with the new version
        """
        descriptor = self.load_descriptor()
        target = descriptor.default_agent or None
        results: list[UpdateResult] = []

        for entry in descriptor.servers:
            result = UpdateResult(name=entry.name, from_version=entry.version)
            results.append(result)

            if not entry.repository:
                logger.info(f"Skipping {entry.name}: no repository specified")
                continue

            try:
                latest = self.orchestrator.fetcher.latest_tag(entry.repository)
                result.to_version = latest
                # No version tags means there is nothing newer to move to
                if latest in (LATEST, entry.version) or self.orchestrator.is_installed(entry.name, latest):
                    result.status = "current"
                    continue

                installation = self.orchestrator.install(entry.name, latest, entry.repository)
                remove_servers(self.descriptor_path, entry.name, entry.version)
                upsert_server(self.descriptor_path, installation)
                self._register(InstallResult(installation=installation), target, None)
                result.status = "updated"
            except McpvError as e:
                logger.warning(f"Failed to update {entry.name}: {e}")
                result.status = "failed"
                result.error = e

        return results

    # -- agents ---------------------------------------------------------------

    def register_with_agent(
        self,
        name: str,
        agent_type: str,
        version: str | None = None,
        prefer_local: bool | None = None,
    ) -> ServerInstallation:
        """Add an already-installed server to one agent's config.

        ABOUTME: Execution data comes from mcpv.json when present, else is re-derived

        Raises:
            NotInstalledError: If no installed version of name exists
            AgentLookupError, AgentConfigIOError: From the agent adapter
        """
        self.registry.get(agent_type)

        installed = [s for s in self.orchestrator.list_installed() if s.name == name]
        if version:
            installed = [s for s in installed if s.version == version]
        if not installed:
            raise NotInstalledError(name, version or "*")
        chosen = installed[-1]

        descriptor = self.load_descriptor()
        idx = descriptor.find(name, chosen.version)
        declared = descriptor.servers[idx] if idx is not None else None

        installation = self.orchestrator.describe(
            name,
            chosen.version,
            declared.repository if declared else "",
            command=declared.command if declared else "",
            args=declared.args if declared else None,
            env=declared.env if declared else None,
        )
        add_to_agent(self.registry, agent_type, installation, self.project_dir, prefer_local, self.backup_dir)
        return installation

    def unregister_from_agents(self, name: str, agent_type: str | None = None) -> None:
        """Remove a server entry from one agent, or from every detected agent.

        Raises:
            AggregateAgentError: If the fan-out failed for some agents
            AgentLookupError, AgentConfigIOError: For an explicit agent_type
        """
        if agent_type:
            remove_from_agent(self.registry, agent_type, name, self.project_dir, backup_dir=self.backup_dir)
        else:
            remove_from_agents(self.registry, name, self.project_dir, backup_dir=self.backup_dir)

    def agent_configurations(self) -> list[tuple[str, Path | None, str]]:
        """Return (type, config path, error) for each detected agent."""
        rows: list[tuple[str, Path | None, str]] = []
        for agent_type in sorted(self.registry.detect()):
            spec = self.registry.get(agent_type)
            try:
                path = self.registry.resolve_path(agent_type, not spec.global_, self.project_dir)
            except McpvError as e:
                rows.append((agent_type, None, str(e)))
            else:
                rows.append((agent_type, path, ""))
        return rows
