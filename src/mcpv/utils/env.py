# Path and environment variable expansion utilities
import logging
import os
import re
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

# ABOUTME: Pattern matches ${VAR_NAME} on every platform
ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

# ABOUTME: Pattern matches %VAR_NAME%, only expanded on Windows
WINDOWS_VAR_PATTERN = re.compile(r'%([A-Za-z_][A-Za-z0-9_]*)%')


def expand_env_vars(value: str) -> str:
    """Expand environment variables in ${VAR} (and on Windows %VAR%) form.

    ABOUTME: Unknown variables are left untouched
    ABOUTME: Returns original value if variable not found

    Args:
        value: String potentially containing variable references

    Returns:
        String with known variables expanded

    Examples:
        >>> expand_env_vars("${HOME}/projects")
        '/Users/user/projects'
        >>> expand_env_vars("${UNSET_VAR}/x")
        '${UNSET_VAR}/x'
    """
    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        if var_name in os.environ:
            return os.environ[var_name]
        logger.debug(f"Environment variable '{var_name}' not set, keeping original")
        return match.group(0)

    expanded = ENV_VAR_PATTERN.sub(replace_var, value)
    if sys.platform == "win32":
        expanded = WINDOWS_VAR_PATTERN.sub(replace_var, expanded)
    return expanded


def expand_path(value: str) -> Path:
    """Expand a leading ~ and environment variables into a Path.

    ABOUTME: Relative paths stay relative; callers anchor them explicitly
    """
    return Path(os.path.expanduser(expand_env_vars(value)))
