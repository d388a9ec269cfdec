"""Configuration management for Index Bootstrap."""

import json
import logging
from pathlib import Path
from typing import List, Optional, Any

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".index-bootstrap"
CONFIG_FILE_NAME = "config.json"


class PollingConfig(BaseModel):
    """Configuration for the reachability poll and its retry budgets."""

    max_attempts: int = Field(
        default=30, description="Liveness probes per activation before giving up"
    )
    warmup_ms: int = Field(
        default=200, description="Delay before the first liveness probe"
    )
    ping_retry_interval_ms: int = Field(
        default=500, description="Delay after a failed liveness probe"
    )
    discovery_retry_interval_ms: int = Field(
        default=1000, description="Delay after the project could not be located"
    )
    registry_attempts: int = Field(
        default=3, description="list_projects requests before giving up"
    )
    registry_retry_interval_ms: int = Field(
        default=500, description="Delay after a failed list_projects request"
    )

    @field_validator("max_attempts", "registry_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        """Every budget allows at least one attempt."""
        if v < 1:
            raise ValueError(f"Attempt budget must be at least 1, got {v}")
        return v

    @field_validator(
        "warmup_ms",
        "ping_retry_interval_ms",
        "discovery_retry_interval_ms",
        "registry_retry_interval_ms",
    )
    @classmethod
    def validate_interval(cls, v: int) -> int:
        """Intervals are strictly positive milliseconds."""
        if v <= 0:
            raise ValueError(f"Interval must be positive, got {v}ms")
        return v


class IndexConfig(BaseModel):
    """Configuration for locating and validating persisted indexes."""

    min_index_size: int = Field(
        default=50000,
        description="Index files at or below this size (bytes) are treated as missing",
    )
    index_dir: Path = Field(
        default_factory=lambda: Path.home() / ".cache" / "index-bootstrap" / "indexes",
        description="Directory holding one index file per project",
    )

    @field_validator("index_dir", mode="before")
    @classmethod
    def convert_path(cls, v: Any) -> Path:
        """Convert string paths to Path objects."""
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v
        raise ValueError(f"Expected str or Path, got {type(v)}")


class ProjectConfig(BaseModel):
    """Configuration for project discovery."""

    manifest_patterns: List[str] = Field(
        default=["*.uproject"],
        description="Glob patterns identifying a project manifest file",
    )

    @field_validator("manifest_patterns")
    @classmethod
    def validate_patterns(cls, v: List[str]) -> List[str]:
        patterns = [p.strip() for p in v if p and p.strip()]
        if not patterns:
            raise ValueError("At least one manifest pattern is required")
        return patterns


class ServiceConfig(BaseModel):
    """Configuration for the background index service process."""

    command: List[str] = Field(
        default=["index-service", "--socket", "{socket}"],
        description="Command used to spawn the service; {socket} is substituted",
    )
    socket_path: Optional[Path] = Field(
        default=None, description="Override for the service socket location"
    )
    request_timeout: Optional[float] = Field(
        default=30.0,
        description="Seconds to wait for a service reply; null waits indefinitely",
    )


class Config(BaseModel):
    """Main configuration for Index Bootstrap."""

    polling: PollingConfig = Field(default_factory=PollingConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)


class ConfigManager:
    """Manages configuration loading, saving, and lookup."""

    DEFAULT_CONFIG_PATH = Path(CONFIG_DIR_NAME) / CONFIG_FILE_NAME

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or self.DEFAULT_CONFIG_PATH
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """Load configuration from file or fall back to defaults."""
        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    data = json.load(f)
                self._config = Config(**data)
            except Exception as e:
                raise ValueError(f"Failed to load config from {self.config_path}: {e}")
        else:
            logger.debug(f"No config at {self.config_path}, using defaults")
            self._config = Config()

        return self._config

    def save(self, config: Optional[Config] = None) -> None:
        """Save configuration to file."""
        if config is None:
            config = self._config

        if config is None:
            raise ValueError("No configuration to save")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, "w") as f:
            json.dump(config.model_dump(mode="json"), f, indent=2)

        self._config = config

    @staticmethod
    def find_config_path(start_dir: Optional[Path] = None) -> Optional[Path]:
        """Find .index-bootstrap/config.json by walking up the directory tree.

        Args:
            start_dir: Directory to start searching from (default: current directory)

        Returns:
            Path to config.json if found, None otherwise
        """
        if start_dir:
            current = start_dir
        else:
            try:
                current = Path.cwd()
            except (FileNotFoundError, OSError):
                # Working directory deleted
                return None

        for path in [current] + list(current.parents):
            config_path = path / CONFIG_DIR_NAME / CONFIG_FILE_NAME
            if config_path.exists():
                return config_path

        return None

    @classmethod
    def create_with_backtrack(cls, start_dir: Optional[Path] = None) -> "ConfigManager":
        """Create ConfigManager by finding config through directory backtracking.

        Args:
            start_dir: Directory to start searching from (default: current directory)

        Returns:
            ConfigManager instance with found config path or default path
        """
        config_path = cls.find_config_path(start_dir)
        if config_path is None:
            start = start_dir if start_dir else Path.cwd()
            config_path = start / CONFIG_DIR_NAME / CONFIG_FILE_NAME
        return cls(config_path)
