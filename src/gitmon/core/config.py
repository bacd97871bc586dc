"""Configuration loading for gitmon.

The configuration is a TOML file read once at startup. Any problem locating,
reading or validating it is fatal and surfaces as a ``ConfigError``.
"""

import os
import sys
import tomllib
from datetime import tzinfo
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, ValidationError, field_validator

from gitmon.core.errors import ConfigError

APP_NAME = "gitmon"
CONFIG_FILENAME = "config.toml"
STATE_FILENAME = "state.json"


class GitmonConfig(BaseModel):
    """Settings read from ``config.toml``."""

    repos: List[str]
    from_addr: str = Field(alias="from")
    to: str
    token: str
    template_path: Optional[str] = None
    cache_dir: Optional[str] = None
    max_commits: Optional[int] = Field(default=None, ge=1)

    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    subject: str = "Git Commit Notification"
    display_timezone: Optional[str] = None
    jobs: int = Field(default=1, ge=1)
    # Keep the watermark unchanged when the report could not be delivered
    require_delivery: bool = False

    model_config = {"populate_by_name": True}

    @field_validator("repos")
    @classmethod
    def strip_repos(cls, v):
        return [url.strip() for url in v if url.strip()]

    @field_validator("display_timezone")
    @classmethod
    def validate_timezone(cls, v):
        if v is not None:
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"Unknown timezone: {v}") from e
        return v

    def display_tz(self) -> Optional[tzinfo]:
        """Timezone for report dates; None means the local zone."""
        return ZoneInfo(self.display_timezone) if self.display_timezone else None


def _home_dir() -> Path:
    try:
        return Path.home()
    except RuntimeError as e:
        raise ConfigError("Could not determine home directory") from e


def default_config_path() -> Path:
    """Get the default configuration file location."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base_dir = Path(xdg) if xdg else _home_dir() / ".config"
    return base_dir / APP_NAME / CONFIG_FILENAME


def load_config(path: Optional[Path] = None) -> GitmonConfig:
    """Read and validate the configuration file."""
    resolved = Path(path) if path is not None else default_config_path()

    try:
        content = resolved.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {resolved}: {e}") from e

    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config TOML at {resolved}: {e}") from e

    try:
        return GitmonConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config at {resolved}: {e}") from e


def expand_home(value: str) -> Path:
    """Expand a leading ``~`` to the user's home directory."""
    if value.startswith("~"):
        return Path(value.replace("~", str(_home_dir()), 1))
    return Path(value)


def platform_cache_dir() -> Path:
    """Per-user cache directory for the current platform."""
    if sys.platform == "darwin":
        return _home_dir() / "Library" / "Caches"
    if sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA")
        if not local:
            raise ConfigError("Could not determine cache directory: LOCALAPPDATA is not set")
        return Path(local)

    xdg = os.environ.get("XDG_CACHE_HOME")
    return Path(xdg) if xdg else _home_dir() / ".cache"


def resolve_cache_root(cache_dir: Optional[str] = None) -> Path:
    """Get the directory holding mirrors and the state file."""
    if cache_dir:
        return expand_home(cache_dir)

    return platform_cache_dir() / APP_NAME


def ensure_cache_root(cache_root: Path) -> Path:
    """Create the cache root if needed."""
    try:
        cache_root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Failed to create cache directory {cache_root}: {e}") from e
    return cache_root
