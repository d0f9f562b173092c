# Install pipeline: fetch, detect, build, resolve
from mcpv.install.build import Builder, BuildStep, plan_steps
from mcpv.install.detect import detect_ecosystem
from mcpv.install.execution import Execution, resolve_execution
from mcpv.install.fetch import LATEST, RepositoryFetcher
from mcpv.install.orchestrator import InstallOrchestrator, InstallState

__all__ = [
    "Builder",
    "BuildStep",
    "plan_steps",
    "detect_ecosystem",
    "Execution",
    "resolve_execution",
    "LATEST",
    "RepositoryFetcher",
    "InstallOrchestrator",
    "InstallState",
]
