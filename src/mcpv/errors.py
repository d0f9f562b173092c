# Error taxonomy for mcpv
# ABOUTME: Every failure raised by the core derives from McpvError
# ABOUTME: Install errors roll back only up to the fetch step (see install.orchestrator)


class McpvError(Exception):
    """Base class for all mcpv errors."""


class AlreadyInstalledError(McpvError):
    """Raised when name@version already has an install directory."""

    def __init__(self, name: str, version: str) -> None:
        self.name = name
        self.version = version
        super().__init__(f"Server {name}@{version} is already installed")


class NotInstalledError(McpvError):
    """Raised when removing a name@version that has no install directory."""

    def __init__(self, name: str, version: str) -> None:
        self.name = name
        self.version = version
        super().__init__(f"Server {name}@{version} is not installed")


class FetchError(McpvError):
    """Raised when cloning or checking out a repository fails.

    ABOUTME: Carries the requested ref and the underlying cause
    """

    def __init__(self, url: str, ref: str, cause: str) -> None:
        self.url = url
        self.ref = ref
        self.cause = cause
        super().__init__(f"Failed to fetch {url} at '{ref or 'default branch'}': {cause}")


class BuildError(McpvError):
    """Raised when a build step exits non-zero or cannot be started."""

    def __init__(self, step: str, detail: str) -> None:
        self.step = step
        self.detail = detail
        super().__init__(f"Step '{step}' failed: {detail}")


class DependencyInstallError(BuildError):
    """Raised when a dependency-install step fails."""


class ExecutionResolutionError(McpvError):
    """Raised when no launch strategy applies to a built tree."""


class AgentLookupError(McpvError):
    """Raised for an unknown agent type or an agent without a config path."""


class AgentConfigIOError(McpvError):
    """Raised when an agent config file cannot be read, parsed or written."""


class DescriptorError(McpvError):
    """Raised when the project descriptor (mcpv.json) is unreadable or invalid."""


class AggregateAgentError(McpvError):
    """Raised when one or more agents fail during a fan-out patch.

    ABOUTME: Agents that succeeded keep their mutation (no rollback)
    ABOUTME: failures maps agent type to the exception it raised
    """

    def __init__(self, failures: dict[str, Exception], succeeded: list[str] | None = None) -> None:
        self.failures = dict(failures)
        self.succeeded = list(succeeded or [])
        joined = "; ".join(f"{agent}: {err}" for agent, err in self.failures.items())
        super().__init__(f"Failed to update {len(self.failures)} agent(s): {joined}")
