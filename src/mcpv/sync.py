# Fan-out of server entries to agent config files
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from mcpv.agents import AgentRegistry, get_adapter
from mcpv.errors import AggregateAgentError
from mcpv.models import AgentConfigAdapter, ServerInstallation

logger = logging.getLogger(__name__)

# ABOUTME: An operation applied to one agent's adapter (add_entry / remove_entry)
AgentOperation = Callable[[AgentConfigAdapter], None]


@dataclass
class PatchReport:
    """Report from a fan-out operation.

    ABOUTME: Tracks which agents were updated and which failed
    ABOUTME: Failures never undo the agents that already succeeded
    """
    targets: list[str] = field(default_factory=list)
    patched: list[str] = field(default_factory=list)
    errors: dict[str, Exception] = field(default_factory=dict)

    def add_success(self, agent_type: str) -> None:
        self.patched.append(agent_type)

    def add_error(self, agent_type: str, error: Exception) -> None:
        """Record an agent failure; the fan-out continues."""
        self.errors[agent_type] = error

    @property
    def ok(self) -> bool:
        return not self.errors


def apply_to_agents(
    registry: AgentRegistry,
    operation: AgentOperation,
    project_dir: Path,
    agent_types: Iterable[str] | None = None,
    backup_dir: Path | None = None,
) -> PatchReport:
    """Apply operation independently to every target agent.

    ABOUTME: Targets are the detected agents unless agent_types is given
    ABOUTME: Collects per-agent errors instead of stopping at the first one
    ABOUTME: Raises AggregateAgentError after all agents were attempted

    Args:
        registry: Loaded agent registry
        operation: Callable receiving each agent's adapter
        project_dir: Anchor for project-level config files
        agent_types: Explicit targets (default: registry.detect())
        backup_dir: Where to back up config files before overwriting

    Returns:
        PatchReport listing patched agents (empty targets if none detected)

    Raises:
        AggregateAgentError: If one or more agents failed
    """
    targets = sorted(registry.detect() if agent_types is None else agent_types)
    report = PatchReport(targets=targets)

    for agent_type in targets:
        try:
            adapter = get_adapter(registry, agent_type, project_dir, backup_dir=backup_dir)
            operation(adapter)
        except Exception as e:
            # Record error but continue with other agents
            logger.debug(f"{agent_type}: {e}")
            report.add_error(agent_type, e)
        else:
            report.add_success(agent_type)

    if report.errors:
        raise AggregateAgentError(report.errors, succeeded=report.patched)

    return report


def add_to_agents(
    registry: AgentRegistry,
    installation: ServerInstallation,
    project_dir: Path,
    agent_types: Iterable[str] | None = None,
    backup_dir: Path | None = None,
) -> PatchReport:
    """Register installation with every detected (or listed) agent."""
    def add(adapter: AgentConfigAdapter) -> None:
        adapter.add_entry(installation)
        logger.info(f"Added {installation.name} to {adapter.agent_type} configuration")

    return apply_to_agents(registry, add, project_dir, agent_types, backup_dir)


def remove_from_agents(
    registry: AgentRegistry,
    name: str,
    project_dir: Path,
    agent_types: Iterable[str] | None = None,
    backup_dir: Path | None = None,
) -> PatchReport:
    """Remove a server entry from every detected (or listed) agent."""
    def remove(adapter: AgentConfigAdapter) -> None:
        adapter.remove_entry(name)
        logger.info(f"Removed {name} from {adapter.agent_type} configuration")

    return apply_to_agents(registry, remove, project_dir, agent_types, backup_dir)


def add_to_agent(
    registry: AgentRegistry,
    agent_type: str,
    installation: ServerInstallation,
    project_dir: Path,
    prefer_local: bool | None = None,
    backup_dir: Path | None = None,
) -> None:
    """Register installation with one named agent.

    ABOUTME: Errors propagate unchanged; this agent is the operation's target
    """
    adapter = get_adapter(registry, agent_type, project_dir, prefer_local, backup_dir)
    adapter.add_entry(installation)
    logger.info(f"Added {installation.name} to {agent_type} configuration")


def remove_from_agent(
    registry: AgentRegistry,
    agent_type: str,
    name: str,
    project_dir: Path,
    prefer_local: bool | None = None,
    backup_dir: Path | None = None,
) -> None:
    """Remove a server entry from one named agent; errors propagate."""
    adapter = get_adapter(registry, agent_type, project_dir, prefer_local, backup_dir)
    adapter.remove_entry(name)
    logger.info(f"Removed {name} from {agent_type} configuration")
