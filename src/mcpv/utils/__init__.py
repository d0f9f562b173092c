# ABOUTME: Utility modules for mcpv
# ABOUTME: Exports path expansion, process and backup helpers

from mcpv.utils.backup import cleanup_old_backups, create_backup
from mcpv.utils.env import expand_env_vars, expand_path
from mcpv.utils.process import command_exists, describe_failure, run_command

__all__ = [
    "expand_env_vars",
    "expand_path",
    "run_command",
    "command_exists",
    "describe_failure",
    "create_backup",
    "cleanup_old_backups",
]
