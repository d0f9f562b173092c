# mcpv - MCP server version manager
# ABOUTME: Version information
__version__ = "0.1.0"

# ABOUTME: Export core data models and the error taxonomy
# ABOUTME: Export descriptor loading functions
from mcpv.config import get_config_dir, get_descriptor_path, get_install_root, load_descriptor, save_descriptor
from mcpv.errors import (
    AgentConfigIOError,
    AgentLookupError,
    AggregateAgentError,
    AlreadyInstalledError,
    BuildError,
    DependencyInstallError,
    DescriptorError,
    ExecutionResolutionError,
    FetchError,
    McpvError,
    NotInstalledError,
)
from mcpv.models import (
    AgentConfigAdapter,
    AgentConfigDocument,
    AgentSpec,
    Ecosystem,
    ProjectDescriptor,
    ServerInstallation,
)

__all__ = [
    "__version__",
    "AgentConfigAdapter",
    "AgentConfigDocument",
    "AgentSpec",
    "Ecosystem",
    "ProjectDescriptor",
    "ServerInstallation",
    "get_config_dir",
    "get_descriptor_path",
    "get_install_root",
    "load_descriptor",
    "save_descriptor",
    "McpvError",
    "AlreadyInstalledError",
    "NotInstalledError",
    "FetchError",
    "BuildError",
    "DependencyInstallError",
    "ExecutionResolutionError",
    "AgentLookupError",
    "AgentConfigIOError",
    "AggregateAgentError",
    "DescriptorError",
]
