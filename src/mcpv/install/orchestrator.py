# Install orchestration: fetch -> build -> resolve, with rollback up to fetch
import logging
import shutil
from enum import Enum
from pathlib import Path

from mcpv.errors import AlreadyInstalledError, ExecutionResolutionError, NotInstalledError
from mcpv.install.build import Builder
from mcpv.install.detect import detect_ecosystem
from mcpv.install.execution import resolve_execution
from mcpv.install.fetch import RepositoryFetcher
from mcpv.models import ServerInstallation

logger = logging.getLogger(__name__)


class InstallState(str, Enum):
    """Stages an install passes through; failure can stop at any of them."""

    REQUESTED = "requested"
    RESERVED = "reserved"
    FETCHED = "fetched"
    DEPENDENCIES_INSTALLED = "dependencies_installed"
    BUILT = "built"
    EXECUTION_RESOLVED = "execution_resolved"
    REGISTERED = "registered"


class InstallOrchestrator:
    """Installs name@version trees under an install root.

    ABOUTME: Layout is <install_root>/<name>/<version>/
    ABOUTME: Fetch failures remove the reserved directory; later failures keep it
    ABOUTME: The exists-check and mkdir are not atomic; concurrent installs of the
    ABOUTME: same name@version are not mutually exclusive
    """

    def __init__(
        self,
        install_root: Path,
        fetcher: RepositoryFetcher | None = None,
        builder: Builder | None = None,
    ) -> None:
        self.install_root = install_root
        self.fetcher = fetcher or RepositoryFetcher()
        self.builder = builder or Builder()

    def install_path(self, name: str, version: str) -> Path:
        """Return the install directory for name@version (pure, no I/O)."""
        return self.install_root / name / version

    def is_installed(self, name: str, version: str) -> bool:
        return self.install_path(name, version).exists()

    def install(self, name: str, version: str, repository: str) -> ServerInstallation:
        """Fetch, build and resolve a server.

        Args:
            name: Server name (first path component under the root)
            version: Tag or branch to check out, or "latest"
            repository: Git URL to clone

        Returns:
            ServerInstallation with execution fields and installed=True

        Raises:
            AlreadyInstalledError: If the install directory already exists
            FetchError: If cloning fails (directory is removed)
            BuildError: If a dependency or build step fails (directory kept)
            ExecutionResolutionError: If no launch strategy applies (directory kept)
        """
        server_dir = self.install_path(name, version)
        state = InstallState.REQUESTED

        if server_dir.exists():
            raise AlreadyInstalledError(name, version)

        server_dir.mkdir(parents=True)
        state = self._advance(name, version, state, InstallState.RESERVED)

        try:
            self.fetcher.fetch(repository, version, server_dir)
        except Exception:
            logger.debug(f"Fetch failed, removing {server_dir}")
            shutil.rmtree(server_dir, ignore_errors=True)
            raise
        state = self._advance(name, version, state, InstallState.FETCHED)

        ecosystem = detect_ecosystem(server_dir)
        logger.info(f"Detected {ecosystem.value} project for {name}@{version}")

        # Builder failures propagate without cleanup so artifacts can be inspected
        self.builder.build(server_dir, ecosystem)
        state = self._advance(name, version, state, InstallState.DEPENDENCIES_INSTALLED)
        state = self._advance(name, version, state, InstallState.BUILT)

        execution = resolve_execution(server_dir, ecosystem)
        state = self._advance(name, version, state, InstallState.EXECUTION_RESOLVED)

        installation = ServerInstallation(
            name=name,
            version=version,
            repository=repository,
            install_path=str(server_dir),
            command=execution.command,
            args=list(execution.args),
            env=dict(execution.env),
            installed=True,
        )
        self._advance(name, version, state, InstallState.REGISTERED)
        return installation

    def describe(
        self,
        name: str,
        version: str,
        repository: str = "",
        command: str = "",
        args: list[str] | None = None,
        env: dict[str, str] | None = None,
    ) -> ServerInstallation:
        """Build a ServerInstallation for an already-installed server.

        ABOUTME: Re-derives execution fields when command is empty
        ABOUTME: A failed derivation is logged and leaves the fields empty
        """
        server_dir = self.install_path(name, version)
        installation = ServerInstallation(
            name=name,
            version=version,
            repository=repository,
            install_path=str(server_dir),
            command=command,
            args=list(args or []),
            env=dict(env or {}),
            installed=server_dir.exists(),
        )

        if not installation.command and installation.installed:
            try:
                execution = resolve_execution(server_dir, detect_ecosystem(server_dir))
            except ExecutionResolutionError as e:
                logger.warning(f"Could not determine execution for {name}@{version}: {e}")
            else:
                installation.command = execution.command
                installation.args = list(execution.args)
                installation.env = dict(execution.env)

        return installation

    def uninstall(self, name: str, version: str) -> None:
        """Remove an installed version and prune the empty name directory.

        Raises:
            NotInstalledError: If name@version has no install directory
        """
        server_dir = self.install_path(name, version)
        if not server_dir.exists():
            raise NotInstalledError(name, version)

        shutil.rmtree(server_dir)

        parent = server_dir.parent
        if parent.exists() and not any(parent.iterdir()):
            parent.rmdir()

    def list_installed(self) -> list[ServerInstallation]:
        """Return every <name>/<version> directory under the install root."""
        servers: list[ServerInstallation] = []
        if not self.install_root.exists():
            return servers

        for name_dir in sorted(self.install_root.iterdir()):
            if not name_dir.is_dir():
                continue
            for version_dir in sorted(name_dir.iterdir()):
                if not version_dir.is_dir():
                    continue
                servers.append(ServerInstallation(
                    name=name_dir.name,
                    version=version_dir.name,
                    install_path=str(version_dir),
                    installed=True,
                ))
        return servers

    def _advance(self, name: str, version: str, current: InstallState, target: InstallState) -> InstallState:
        logger.debug(f"{name}@{version}: {current.value} -> {target.value}")
        return target
