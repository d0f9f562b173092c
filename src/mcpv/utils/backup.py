# ABOUTME: Backup utilities for agent configuration files.
# ABOUTME: Takes a timestamped copy before each overwrite, keeping the last 5 per agent.
import logging
import re
import shutil
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

# ABOUTME: Pattern matches {agent}_{YYYYMMDD}_{HHMMSS}.{ext}
BACKUP_PATTERN = re.compile(r"^(.+?)_(\d{8}_\d{6})\.(.+)$")

MAX_BACKUPS_PER_AGENT = 5


def create_backup(source_path: Path, backup_dir: Path, label: str) -> Path:
    """Create a timestamped backup of an agent config file.

    ABOUTME: Backup format: {label}_{YYYYMMDD}_{HHMMSS}.{ext}
    ABOUTME: Uses shutil.copy2() to preserve file metadata
    ABOUTME: Creates backup_dir if it doesn't exist

    Args:
        source_path: Path to file to backup
        backup_dir: Directory where backup should be created
        label: Agent type used as the backup name prefix

    Returns:
        Path to created backup file

    Raises:
        FileNotFoundError: If source_path doesn't exist
        OSError: If backup creation fails

    Examples:
        >>> backup_path = create_backup(Path("~/.cursor/mcp.json").expanduser(), backup_dir, "cursor")
        >>> backup_path.name
        'cursor_20260108_143022.json'
    """
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {source_path}")

    backup_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    extension = source_path.suffix or ".bak"
    backup_path = backup_dir / f"{label}_{timestamp}{extension}"

    shutil.copy2(source_path, backup_path)
    logger.debug(f"Backed up {source_path} to {backup_path}")

    cleanup_old_backups(backup_dir)

    return backup_path


def cleanup_old_backups(backup_dir: Path, max_backups_per_agent: int = MAX_BACKUPS_PER_AGENT) -> list[Path]:
    """Remove old backup files, keeping only the most recent per agent.

    ABOUTME: Groups backups by agent prefix (before _timestamp)
    ABOUTME: Logs warnings on errors but does not raise exceptions

    Args:
        backup_dir: Directory containing backup files
        max_backups_per_agent: Maximum backups to keep per agent

    Returns:
        List of paths that were deleted
    """
    deleted_files: list[Path] = []

    if not backup_dir.exists():
        return deleted_files

    backups_by_agent: dict[str, list[tuple[str, Path]]] = {}

    for file_path in backup_dir.iterdir():
        if not file_path.is_file():
            continue

        match = BACKUP_PATTERN.match(file_path.name)
        if not match:
            continue

        backups_by_agent.setdefault(match.group(1), []).append((match.group(2), file_path))

    for backups in backups_by_agent.values():
        # Newest first
        backups.sort(key=lambda x: x[0], reverse=True)

        for _timestamp, file_path in backups[max_backups_per_agent:]:
            try:
                file_path.unlink()
                deleted_files.append(file_path)
                logger.debug(f"Deleted old backup: {file_path}")
            except OSError as e:
                logger.warning(f"Failed to delete old backup {file_path}: {e}")

    return deleted_files
