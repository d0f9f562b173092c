# Launch command resolution for built server trees
import json
from dataclasses import dataclass, field
from pathlib import Path

from mcpv.errors import ExecutionResolutionError
from mcpv.models import Ecosystem

NODE_INTERPRETER = "node"
PYTHON_INTERPRETER = "python"

# ABOUTME: Go builds are compiled to this file name in the tree root
GO_BINARY_NAME = "server"


@dataclass(frozen=True)
class Execution:
    """How an agent should launch an installed server."""
    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)


def _resolve_node(directory: Path) -> Execution:
    try:
        with open(directory / "package.json", encoding="utf-8") as f:
            manifest = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ExecutionResolutionError(f"Cannot read package.json in {directory}: {e}") from e

    if not isinstance(manifest, dict):
        raise ExecutionResolutionError(f"package.json in {directory} is not an object")

    script: str | None = None
    bin_field = manifest.get("bin")
    if isinstance(bin_field, dict):
        script = next((value for value in bin_field.values() if isinstance(value, str)), None)

    main_field = manifest.get("main")
    if script is None and isinstance(main_field, str) and main_field:
        script = main_field

    return Execution(NODE_INTERPRETER, [str(directory / (script or "index.js"))])


def _resolve_python(directory: Path) -> Execution:
    for entry in ("main.py", "__main__.py"):
        if (directory / entry).exists():
            return Execution(PYTHON_INTERPRETER, [str(directory / entry)])
    # Module-style fallback uses the install directory's own name
    return Execution(PYTHON_INTERPRETER, ["-m", directory.name])


def _resolve_go(directory: Path) -> Execution:
    binary = directory / GO_BINARY_NAME
    if not binary.exists():
        raise ExecutionResolutionError(f"Go binary '{GO_BINARY_NAME}' not found in {directory}")
    return Execution(str(binary))


def cargo_package_name(directory: Path) -> str | None:
    """Return the first `name = "..."` value in Cargo.toml.

    ABOUTME: Plain line scan; TOML table sections are not distinguished,
    ABOUTME: so a dependency table with a name key can shadow [package]
    """
    try:
        text = (directory / "Cargo.toml").read_text(encoding="utf-8")
    except OSError:
        return None
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("name = "):
            return stripped.removeprefix("name = ").strip().strip('"').strip("'")
    return None


def _resolve_rust(directory: Path) -> Execution:
    name = cargo_package_name(directory)
    if not name:
        raise ExecutionResolutionError(f"No package name found in {directory / 'Cargo.toml'}")
    binary = directory / "target" / "release" / name
    if not binary.exists():
        raise ExecutionResolutionError(f"Rust release binary not found at {binary}")
    return Execution(str(binary))


_STRATEGIES = {
    Ecosystem.NODE: _resolve_node,
    Ecosystem.PYTHON: _resolve_python,
    Ecosystem.GO: _resolve_go,
    Ecosystem.RUST: _resolve_rust,
}


def resolve_execution(directory: Path, ecosystem: Ecosystem) -> Execution:
    """Derive the launch command, args and env for a built tree.

    ABOUTME: Read-only and deterministic for identical tree contents
    ABOUTME: Never triggers a build; missing binaries are an error

    Args:
        directory: Install directory (absolute paths are derived from it)
        ecosystem: Detected ecosystem of the tree

    Returns:
        Execution with command, args and an empty env

    Raises:
        ExecutionResolutionError: If no strategy applies

    Examples:
        >>> resolve_execution(Path("/data/mcpv/fs/1.0.0"), Ecosystem.NODE)
        Execution(command='node', args=['/data/mcpv/fs/1.0.0/index.js'], env={})
    """
    strategy = _STRATEGIES.get(ecosystem)
    if strategy is None:
        raise ExecutionResolutionError(f"Could not determine execution method for server in {directory}")
    return strategy(directory)
