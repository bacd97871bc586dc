"""Persisted watermark state."""

from typing import Dict, Optional

from pydantic import BaseModel


class WatermarkState(BaseModel):
    """Last-seen commit id per repository URL."""

    last_seen: Dict[str, str] = {}

    def get(self, url: str) -> Optional[str]:
        """Return the watermark for a repository, if one was recorded."""
        return self.last_seen.get(url)

    def advance(self, url: str, commit_id: str) -> bool:
        """Record a newer commit id for a repository.

        Returns True if the stored value changed.
        """
        if self.last_seen.get(url) == commit_id:
            return False
        self.last_seen[url] = commit_id
        return True
