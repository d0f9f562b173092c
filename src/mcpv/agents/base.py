# Agent config file helpers
import copy
import json
from pathlib import Path
from typing import Any

from mcpv.errors import AgentConfigIOError
from mcpv.models import AgentSpec, ServerInstallation


def read_json_file(path: Path) -> dict[str, Any]:
    """Read a JSON object from path.

    ABOUTME: Raises AgentConfigIOError for invalid JSON or a non-object document
    """
    try:
        with open(path, encoding="utf-8") as f:
            result = json.load(f)
    except json.JSONDecodeError as e:
        raise AgentConfigIOError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise AgentConfigIOError(f"Failed to read {path}: {e}") from e

    if not isinstance(result, dict):
        raise AgentConfigIOError(f"{path} does not contain a JSON object")
    return result


def write_json_file(path: Path, data: dict[str, Any]) -> None:
    """Write JSON file, replacing any previous content.

    ABOUTME: Creates parent directories if needed
    ABOUTME: Uses 2-space indentation for readability
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")  # Add trailing newline
    except OSError as e:
        raise AgentConfigIOError(f"Failed to write {path}: {e}") from e


def default_document(spec: AgentSpec) -> dict[str, Any]:
    """Return a fresh copy of the spec's declared default structure.

    ABOUTME: Falls back to {<servers_key>: {}} when nothing is declared
    """
    if spec.config is not None and spec.config.structure:
        return copy.deepcopy(spec.config.structure)
    servers_key = spec.config.servers_key if spec.config is not None else "mcpServers"
    return {servers_key: {}}


def installation_to_entry(installation: ServerInstallation, spec: AgentSpec) -> dict[str, Any]:
    """Convert a ServerInstallation to an agent's server entry.

    ABOUTME: Omits empty command, args and env
    ABOUTME: Field names go through spec.server_config_format (identity by default)
    """
    field_names = spec.server_config_format
    entry: dict[str, Any] = {}

    if installation.command:
        entry[field_names.get("command", "command")] = installation.command
    if installation.args:
        entry[field_names.get("args", "args")] = list(installation.args)
    if installation.env:
        entry[field_names.get("env", "env")] = dict(installation.env)

    return entry
