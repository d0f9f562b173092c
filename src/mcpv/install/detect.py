# Ecosystem detection for fetched source trees
from pathlib import Path

from mcpv.models import Ecosystem

# ABOUTME: Marker files in priority order; first match wins
# ABOUTME: A tree with both package.json and go.mod is therefore node
MARKERS: tuple[tuple[str, Ecosystem], ...] = (
    ("package.json", Ecosystem.NODE),
    ("requirements.txt", Ecosystem.PYTHON),
    ("go.mod", Ecosystem.GO),
    ("Cargo.toml", Ecosystem.RUST),
)


def detect_ecosystem(directory: Path) -> Ecosystem:
    """Classify a source tree by its marker files.

    Examples:
        >>> detect_ecosystem(Path("/srv/mcp/fs-server/1.0.0"))
        <Ecosystem.NODE: 'node'>
    """
    for marker, ecosystem in MARKERS:
        if (directory / marker).exists():
            return ecosystem
    return Ecosystem.UNKNOWN
