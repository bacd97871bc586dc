"""Walks mirror history for commits newer than a watermark."""

import logging
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Iterable, List, Optional

import git
from git import Repo

from gitmon.core.errors import HistoryError
from gitmon.models.commit import CommitRecord

logger = logging.getLogger(__name__)

CHANGE_ID_TRAILER = "Change-Id:"


def _as_text(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value or ""


def extract_change_id(message: str, prefix: str = CHANGE_ID_TRAILER) -> Optional[str]:
    """Return the value of the first ``prefix`` trailer line in a message."""
    for line in message.splitlines():
        if line.startswith(prefix):
            return line[len(prefix):].strip()
    return None


def to_record(commit: git.Commit, display_tz: Optional[tzinfo] = None) -> CommitRecord:
    """Build a CommitRecord from a GitPython commit."""
    authored_at = datetime.fromtimestamp(commit.authored_date, tz=timezone.utc)
    author = commit.author.name if commit.author is not None else None

    return CommitRecord(
        id=commit.hexsha,
        authored_at=authored_at.astimezone(display_tz),
        author=author or "Unknown",
        summary=_as_text(commit.summary),
        change_id=extract_change_id(_as_text(commit.message)),
    )


def collect_new(
    commits: Iterable[git.Commit],
    last_seen: Optional[str] = None,
    max_count: Optional[int] = None,
    display_tz: Optional[tzinfo] = None,
) -> List[CommitRecord]:
    """Take commits from a newest-first stream until the watermark or cap."""
    records: List[CommitRecord] = []
    for commit in commits:
        if max_count is not None and len(records) >= max_count:
            break
        if commit.hexsha == last_seen:
            break
        records.append(to_record(commit, display_tz))
    return records


class HistoryWalker:
    """Reads new commits from a local mirror."""

    def __init__(self, display_tz: Optional[tzinfo] = None):
        self.display_tz = display_tz

    def new_commits_since(
        self,
        local_path: Path,
        last_seen: Optional[str] = None,
        max_count: Optional[int] = None,
    ) -> List[CommitRecord]:
        """Return commits reachable from HEAD newer than ``last_seen``.

        The result is newest first. With no watermark the walk stops at
        ``max_count`` records or at the root of history.
        """
        try:
            with Repo(local_path) as repo:
                head = repo.head.commit
                commits = repo.iter_commits(head, date_order=True)
                records = collect_new(commits, last_seen, max_count, self.display_tz)
        except (git.exc.GitError, git.exc.ODBError, ValueError, OSError) as e:
            raise HistoryError(f"Failed to read commits from {local_path}: {e}") from e

        logger.debug("Found %d new commit(s) in %s", len(records), local_path)
        return records
