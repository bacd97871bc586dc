"""Data models for gitmon."""

from .commit import CommitRecord
from .result import RepoResult, RunReport
from .state import WatermarkState

__all__ = ["CommitRecord", "RepoResult", "RunReport", "WatermarkState"]
