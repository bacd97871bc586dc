"""Per-repository and per-run outcomes."""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel

from .commit import CommitRecord


class RepoResult(BaseModel):
    """Outcome of checking a single repository."""

    url: str
    commits: List[CommitRecord] = []
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def newest_id(self) -> Optional[str]:
        """Identifier of the newest commit, the watermark candidate."""
        return self.commits[0].id if self.commits else None


class RunReport(BaseModel):
    """Summary of one gitmon run."""

    aggregate: Dict[str, List[CommitRecord]] = {}
    staged: Dict[str, str] = {}
    failures: Dict[str, str] = {}
    html: Optional[str] = None
    delivered: bool = False
    delivery_error: Optional[str] = None
    state_saved: bool = False
    output_path: Optional[Path] = None

    @property
    def commit_count(self) -> int:
        return sum(len(commits) for commits in self.aggregate.values())
