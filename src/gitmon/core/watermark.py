"""Durable storage of per-repository watermarks."""

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from gitmon.models.state import WatermarkState

logger = logging.getLogger(__name__)


class WatermarkStore:
    """Loads and saves ``WatermarkState`` as pretty-printed JSON."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> WatermarkState:
        """Read the state file; a missing or corrupt file yields empty state."""
        if not self.path.exists():
            return WatermarkState()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return WatermarkState.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.debug("Ignoring unreadable state file %s: %s", self.path, e)
            return WatermarkState()

    def save(self, state: WatermarkState) -> bool:
        """Atomically replace the state file. Returns False on failure."""
        payload = json.dumps(state.model_dump(), indent=2, sort_keys=True) + "\n"

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=".state-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to save state to %s: %s", self.path, e)
            return False

        logger.debug("Saved state for %d repositories", len(state.last_seen))
        return True
