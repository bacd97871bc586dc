"""Commit model for new commits found in a monitored repository."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

DISPLAY_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class CommitRecord(BaseModel):
    """A commit observed in a mirror during the current run."""

    id: str
    authored_at: datetime
    author: str = "Unknown"
    summary: str = ""
    change_id: Optional[str] = None  # Change-Id trailer, when present

    model_config = {"frozen": True}

    @property
    def display_date(self) -> str:
        """Authored time formatted for the report."""
        return self.authored_at.strftime(DISPLAY_DATE_FORMAT)
