"""Configuration service for loading devbrain.yml."""

import logging
from pathlib import Path

import yaml

from ..models import WorkspaceConfig

logger = logging.getLogger(__name__)


class ConfigService:
    """Service for loading and caching workspace configuration."""

    CONFIG_FILE = "devbrain.yml"

    def __init__(self, base_path: Path) -> None:
        """Initialize the config service.

        Args:
            base_path: Workspace root containing devbrain.yml
        """
        self.base_path = base_path
        self._config: WorkspaceConfig | None = None
        self._config_error: str | None = None

    @property
    def config_path(self) -> Path:
        return self.base_path / self.CONFIG_FILE

    @property
    def has_config_error(self) -> bool:
        """Check if there was an error loading config."""
        return self._config_error is not None

    @property
    def config_error(self) -> str | None:
        """Get the config error message if any."""
        return self._config_error

    def get_config(self) -> WorkspaceConfig:
        """Get configuration, loading from file if not cached."""
        if self._config is None:
            self._config = self._load_config()
        return self._config

    def reload(self) -> None:
        """Clear cached configuration, forcing reload on next access."""
        self._config = None
        self._config_error = None

    def _load_config(self) -> WorkspaceConfig:
        """Load configuration from file or return default."""
        self._config_error = None

        if not self.config_path.exists():
            logger.debug(f"No {self.CONFIG_FILE} found, using defaults")
            return WorkspaceConfig.default()

        try:
            with open(self.config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)

            if data is None:
                self._config_error = f"{self.CONFIG_FILE} is empty"
                logger.warning(self._config_error)
                return WorkspaceConfig.default()

            if not isinstance(data, dict):
                self._config_error = f"{self.CONFIG_FILE} must contain a mapping"
                logger.warning(self._config_error)
                return WorkspaceConfig.default()

            config = WorkspaceConfig(**data)
            logger.info(
                f"Loaded {self.CONFIG_FILE} (task prefix {config.task_id.prefix})"
            )
            return config

        except yaml.YAMLError as e:
            self._config_error = f"Invalid YAML in {self.CONFIG_FILE}: {e}"
            logger.warning(self._config_error)
            return WorkspaceConfig.default()

        except Exception as e:
            self._config_error = f"Error loading {self.CONFIG_FILE}: {e}"
            logger.warning(self._config_error)
            return WorkspaceConfig.default()
