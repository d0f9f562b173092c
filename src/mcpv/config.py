# Configuration locations and project descriptor I/O for mcpv
import json
import os
import sys
from pathlib import Path
from typing import Any

from mcpv.errors import DescriptorError
from mcpv.models import AgentSpec, ProjectDescriptor, ServerInstallation

# ABOUTME: Project descriptor file name, looked up in an explicit project directory
DESCRIPTOR_FILE = "mcpv.json"

# ABOUTME: Sub-directory name used under the data and config roots
APP_NAME = "mcpv"


def get_install_root() -> Path:
    """Return the base directory holding <name>/<version> install trees.

    ABOUTME: $XDG_DATA_HOME/mcpv when set, else ~/.local/share/mcpv
    ABOUTME: Does not create the directory
    """
    xdg_data_home = os.environ.get("XDG_DATA_HOME")
    if xdg_data_home:
        return Path(xdg_data_home) / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME


def get_config_dir() -> Path:
    """Return the platform-specific mcpv configuration directory.

    ABOUTME: macOS uses Application Support, Windows uses %APPDATA%
    ABOUTME: Linux honours $XDG_CONFIG_HOME, falling back to ~/.config
    """
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME
        return Path.home() / "AppData" / "Roaming" / APP_NAME
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_backup_dir() -> Path:
    """Return the directory where agent config backups are kept."""
    return get_config_dir() / "backups"


def get_descriptor_path(project_dir: Path) -> Path:
    """Return the path of mcpv.json inside project_dir."""
    return project_dir / DESCRIPTOR_FILE


def load_descriptor(path: Path) -> ProjectDescriptor:
    """Load and parse a project descriptor from JSON.

    ABOUTME: A missing file is an empty descriptor, not an error
    ABOUTME: Fail-fast on parse errors with clear error messages

    Args:
        path: Path to mcpv.json

    Returns:
        Parsed ProjectDescriptor

    Raises:
        DescriptorError: If the file is unreadable or structurally invalid
    """
    if not path.exists():
        return ProjectDescriptor()

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise DescriptorError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise DescriptorError(f"Failed to read {path}: {e}") from e

    if not isinstance(data, dict):
        raise DescriptorError(f"{path} must contain a JSON object")

    try:
        servers = [ServerInstallation.from_dict(entry) for entry in data.get("servers") or []]
    except (ValueError, AttributeError, TypeError) as e:
        raise DescriptorError(f"Invalid server entry in {path}: {e}") from e

    agents_data = data.get("agents") or {}
    if not isinstance(agents_data, dict):
        raise DescriptorError(f"'agents' in {path} must be a JSON object")

    try:
        agents = {
            agent_type: _parse_agent(agent_type, spec_data)
            for agent_type, spec_data in agents_data.items()
        }
    except (ValueError, AttributeError, TypeError) as e:
        raise DescriptorError(f"Invalid agent entry in {path}: {e}") from e

    return ProjectDescriptor(
        servers=servers,
        default_agent=data.get("default_agent", "") or "",
        agents=agents,
    )


def _parse_agent(agent_type: str, spec_data: Any) -> AgentSpec:
    if not isinstance(spec_data, dict):
        raise ValueError(f"agent {agent_type} must be a JSON object")
    return AgentSpec.from_dict(agent_type, spec_data)


def save_descriptor(path: Path, descriptor: ProjectDescriptor) -> None:
    """Write the whole project descriptor back to disk.

    ABOUTME: Overwrites the file; there is no partial patching
    ABOUTME: Creates parent directory if needed

    Raises:
        DescriptorError: If the file cannot be written
    """
    data: dict[str, Any] = {"servers": [server.to_dict() for server in descriptor.servers]}
    if descriptor.default_agent:
        data["default_agent"] = descriptor.default_agent
    if descriptor.agents:
        data["agents"] = {agent_type: spec.to_dict() for agent_type, spec in descriptor.agents.items()}

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
    except OSError as e:
        raise DescriptorError(f"Failed to write {path}: {e}") from e


def upsert_server(path: Path, server: ServerInstallation) -> ProjectDescriptor:
    """Add or replace name@version in the descriptor at path.

    ABOUTME: Loads existing descriptor, replaces a matching entry or appends, saves back
    """
    descriptor = load_descriptor(path)
    idx = descriptor.find(server.name, server.version)
    if idx is None:
        descriptor.servers.append(server)
    else:
        descriptor.servers[idx] = server
    save_descriptor(path, descriptor)
    return descriptor


def remove_servers(path: Path, name: str, version: str | None = None) -> int:
    """Remove name@version (or every version of name) from the descriptor.

    ABOUTME: Returns the number of entries removed; the file is only rewritten if >0
    """
    descriptor = load_descriptor(path)
    kept = [
        server for server in descriptor.servers
        if not (server.name == name and (version is None or server.version == version))
    ]
    removed = len(descriptor.servers) - len(kept)
    if removed:
        descriptor.servers = kept
        save_descriptor(path, descriptor)
    return removed
