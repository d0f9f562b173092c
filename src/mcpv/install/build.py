# Dependency install and build steps per ecosystem
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from mcpv.errors import BuildError, DependencyInstallError
from mcpv.models import Ecosystem
from mcpv.utils.process import CommandRunner, describe_failure, run_command

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildStep:
    """One external process run inside the install directory."""
    name: str
    argv: tuple[str, ...]
    kind: Literal["dependencies", "build"]


def has_npm_script(directory: Path, script: str) -> bool:
    """Return True if package.json declares scripts.<script>.

    ABOUTME: An unreadable or malformed manifest counts as "no script"
    """
    try:
        with open(directory / "package.json", encoding="utf-8") as f:
            manifest = json.load(f)
    except (OSError, json.JSONDecodeError):
        return False
    scripts = manifest.get("scripts") if isinstance(manifest, dict) else None
    return isinstance(scripts, dict) and script in scripts


def plan_steps(directory: Path, ecosystem: Ecosystem) -> list[BuildStep]:
    """Return the ordered steps for an ecosystem.

    ABOUTME: Process table: npm install [+ npm run build], pip install -r,
    ABOUTME: go mod download + go build -o server ., cargo build --release
    """
    if ecosystem is Ecosystem.NODE:
        steps = [BuildStep("npm install", ("npm", "install"), "dependencies")]
        if has_npm_script(directory, "build"):
            steps.append(BuildStep("npm run build", ("npm", "run", "build"), "build"))
        return steps
    if ecosystem is Ecosystem.PYTHON:
        return [BuildStep("pip install", ("pip", "install", "-r", "requirements.txt"), "dependencies")]
    if ecosystem is Ecosystem.GO:
        return [
            BuildStep("go mod download", ("go", "mod", "download"), "dependencies"),
            BuildStep("go build", ("go", "build", "-o", "server", "."), "build"),
        ]
    if ecosystem is Ecosystem.RUST:
        return [BuildStep("cargo build", ("cargo", "build", "--release"), "build")]
    return []


class Builder:
    """Runs dependency-install and build steps for a fetched tree.

    ABOUTME: Each step blocks until its process exits; output goes to the terminal
    ABOUTME: A failed step leaves its artifacts in place for diagnosis
    """

    def __init__(self, runner: CommandRunner = run_command) -> None:
        self._run = runner

    def build(self, directory: Path, ecosystem: Ecosystem) -> None:
        """Run every planned step for ecosystem inside directory.

        Raises:
            DependencyInstallError: If a dependency step fails
            BuildError: If a build step fails
        """
        steps = plan_steps(directory, ecosystem)
        if not steps:
            logger.debug(f"No build steps for {ecosystem.value} tree at {directory}")

        for step in steps:
            error_cls = DependencyInstallError if step.kind == "dependencies" else BuildError
            logger.info(f"Running {step.name} in {directory}")
            try:
                result = self._run(step.argv, cwd=directory)
            except FileNotFoundError as e:
                raise error_cls(step.name, f"executable '{step.argv[0]}' not found") from e
            if result.returncode != 0:
                raise error_cls(step.name, describe_failure(result))
