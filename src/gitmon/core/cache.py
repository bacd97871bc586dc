"""Local mirror management for monitored repositories.

Each remote URL maps to a directory under the cache root named by the SHA-1
of the URL. The directory is cloned on first use and pulled afterwards.
"""

import hashlib
import logging
import shutil
from pathlib import Path

import git
from git import Repo

from gitmon.core.errors import MirrorError

logger = logging.getLogger(__name__)


def mirror_key(remote_url: str) -> str:
    """Stable directory name for a remote URL."""
    return hashlib.sha1(remote_url.encode("utf-8")).hexdigest()  # noqa: S324


class GitMirrorProvider:
    """Creates and refreshes mirrors with GitPython."""

    def clone(self, remote_url: str, path: Path) -> None:
        Repo.clone_from(remote_url, str(path))

    def update(self, path: Path) -> None:
        with Repo(path) as repo:
            repo.remote("origin").pull(ff_only=True)


class MirrorCache:
    """Resolves remote URLs to up-to-date local mirrors."""

    def __init__(self, cache_root: Path, provider=None):
        self.cache_root = Path(cache_root)
        self.provider = provider or GitMirrorProvider()

    def mirror_path(self, remote_url: str) -> Path:
        return self.cache_root / mirror_key(remote_url)

    def ensure_mirror(self, remote_url: str) -> Path:
        """Clone or update the mirror for ``remote_url`` and return its path.

        A failed clone raises ``MirrorError``. A failed update only logs a
        warning; the mirror is still usable in its current state.
        """
        path = self.mirror_path(remote_url)

        if path.exists():
            logger.debug("Pulling updates for %s", remote_url)
            try:
                self.provider.update(path)
                logger.debug("Updated %s", remote_url)
            except (git.exc.GitError, ValueError, OSError) as e:
                logger.warning("Git pull failed for %s: %s", remote_url, e)
            return path

        logger.debug("Cloning %s into %s", remote_url, path)
        try:
            self.provider.clone(remote_url, path)
        except (git.exc.GitError, ValueError, OSError) as e:
            # Leave no half-written mirror for the next run to mistake as valid
            shutil.rmtree(path, ignore_errors=True)
            raise MirrorError(f"Failed to clone {remote_url}: {e}") from e
        return path
