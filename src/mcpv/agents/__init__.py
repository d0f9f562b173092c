# Agent registry and adapters
from pathlib import Path

from mcpv.agents.adapter import RegistryAgentAdapter
from mcpv.agents.registry import AgentRegistry, get_registry_path
from mcpv.models import AgentConfigAdapter

__all__ = [
    "AgentConfigAdapter",
    "AgentRegistry",
    "RegistryAgentAdapter",
    "get_registry_path",
    "get_adapter",
]


def get_adapter(
    registry: AgentRegistry,
    agent_type: str,
    project_dir: Path,
    prefer_local: bool | None = None,
    backup_dir: Path | None = None,
) -> AgentConfigAdapter:
    """Build the adapter for one agent type.

    ABOUTME: Raises AgentLookupError for unknown types
    """
    return RegistryAgentAdapter(agent_type, registry, project_dir, prefer_local, backup_dir)
