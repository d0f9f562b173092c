# Repository fetching via the git CLI
import logging
import re
from pathlib import Path

from mcpv.errors import FetchError
from mcpv.utils.process import CommandRunner, describe_failure, run_command

logger = logging.getLogger(__name__)

# ABOUTME: Version sentinel meaning "default branch, no checkout"
LATEST = "latest"

# ABOUTME: Tags like v1.2.3 or 2.0 count as versions; anything else is ignored
VERSION_TAG_PATTERN = re.compile(r"^v?(\d+(?:\.\d+)*)")


class RepositoryFetcher:
    """Clones a repository and checks out a tag or branch.

    ABOUTME: Single attempt per operation; network failures surface as FetchError
    ABOUTME: runner is injectable so tests never need a real git binary
    """

    def __init__(self, runner: CommandRunner = run_command) -> None:
        self._run = runner

    def fetch(self, url: str, ref: str, destination: Path) -> None:
        """Clone url into destination and check out ref.

        ABOUTME: Empty ref or "latest" stays on the default branch
        ABOUTME: Tries refs/tags/<ref> first, then the branch <ref>

        Args:
            url: Repository URL (anything git clone accepts)
            ref: Tag or branch name, "" or "latest"
            destination: Target directory; must be missing or empty

        Raises:
            FetchError: If cloning or both checkout attempts fail
        """
        if destination.exists() and any(destination.iterdir()):
            raise FetchError(url, ref, f"destination {destination} is not empty")

        self._git(url, ref, ["clone", url, str(destination)])

        if not ref or ref == LATEST:
            return

        try:
            self._git(url, ref, ["checkout", f"refs/tags/{ref}"], cwd=destination)
            logger.debug(f"Checked out tag {ref}")
            return
        except FetchError as tag_error:
            logger.debug(f"No tag {ref}, trying branch: {tag_error.cause}")

        try:
            self._git(url, ref, ["checkout", ref], cwd=destination)
        except FetchError as e:
            raise FetchError(url, ref, f"failed to checkout version {ref}: {e.cause}") from e
        logger.debug(f"Checked out branch {ref}")

    def latest_tag(self, url: str) -> str:
        """Return the highest version-like tag of a remote, or "latest" if none.

        Raises:
            FetchError: If the remote cannot be listed
        """
        result = self._git(url, LATEST, ["ls-remote", "--tags", "--refs", url])

        best: tuple[tuple[int, ...], str] | None = None
        for line in (result.stdout or "").splitlines():
            _, _, ref_name = line.partition("\t")
            tag = ref_name.strip().removeprefix("refs/tags/")
            match = VERSION_TAG_PATTERN.match(tag)
            if not match:
                continue
            key = tuple(int(part) for part in match.group(1).split("."))
            if best is None or key > best[0]:
                best = (key, tag)

        return best[1] if best else LATEST

    def _git(self, url: str, ref: str, args: list[str], cwd: Path | None = None):
        try:
            result = self._run(["git", *args], cwd=cwd, capture=True)
        except FileNotFoundError as e:
            raise FetchError(url, ref, "git executable not found") from e
        if result.returncode != 0:
            raise FetchError(url, ref, describe_failure(result))
        return result
