"""Configuration management for the Mask Paint editor."""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional
import logging

import yaml

from maskpaint.utils.constants import (
    CONFIG_FILE,
    DEFAULT_MAX_BOUND,
    DEFAULT_BRUSH_SIZE,
    DEFAULT_FETCH_TIMEOUT,
    MASK_TINT,
)

logger = logging.getLogger(__name__)


@dataclass
class EditorConfig:
    """Configuration for the mask editing session."""
    max_bound: int = DEFAULT_MAX_BOUND
    default_brush_size: int = DEFAULT_BRUSH_SIZE
    default_tool: str = "brush"
    mask_tint: list[int] = field(default_factory=lambda: list(MASK_TINT))
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT

    def tint(self) -> tuple[int, int, int, int]:
        """Get the mask tint as an RGBA tuple with every channel in 0..255."""
        channels = (list(self.mask_tint) + [255, 255, 255, 255])[:4]
        return tuple(max(0, min(int(c), 255)) for c in channels)


@dataclass
class DirectoriesConfig:
    """Configuration for directory paths."""
    output: str = "./output"


@dataclass
class WindowConfig:
    """Configuration for the main window."""
    width: int = 1100
    height: int = 800
    maximized: bool = False


@dataclass
class LoggingConfig:
    """Configuration for log output."""
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    """Main application configuration."""
    version: str = "1.0"
    editor: EditorConfig = field(default_factory=EditorConfig)
    directories: DirectoriesConfig = field(default_factory=DirectoriesConfig)
    window: WindowConfig = field(default_factory=WindowConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict:
        """Convert config to dictionary for YAML serialization."""
        return {
            "version": self.version,
            "editor": asdict(self.editor),
            "directories": asdict(self.directories),
            "window": asdict(self.window),
            "logging": asdict(self.logging),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppConfig":
        """Create config from dictionary."""
        return cls(
            version=data.get("version", "1.0"),
            editor=EditorConfig(**(data.get("editor") or {})),
            directories=DirectoriesConfig(**(data.get("directories") or {})),
            window=WindowConfig(**(data.get("window") or {})),
            logging=LoggingConfig(**(data.get("logging") or {})),
        )

    def get_output_path(self) -> Path:
        """Get absolute path to output directory."""
        path = Path(self.directories.output)
        if not path.is_absolute():
            path = Path.cwd() / path
        return path.resolve()


class ConfigManager:
    """Manages loading and saving application configuration."""

    def __init__(self, config_file: Optional[Path] = None):
        self._config_file = Path(config_file) if config_file is not None else CONFIG_FILE
        self._config: Optional[AppConfig] = None

    @property
    def config(self) -> AppConfig:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    @property
    def config_file(self) -> Path:
        return self._config_file

    def exists(self) -> bool:
        """Check if configuration file exists."""
        return self._config_file.exists()

    def load(self) -> AppConfig:
        """Load configuration from file, or return defaults."""
        if not self._config_file.exists():
            return AppConfig()

        try:
            with open(self._config_file, "r") as f:
                data = yaml.safe_load(f)
                if data is None:
                    return AppConfig()
                return AppConfig.from_dict(data)
        except (OSError, yaml.YAMLError, TypeError, AttributeError) as e:
            logger.warning("Error loading config %s: %s", self._config_file, e)
            return AppConfig()

    def save(self, config: Optional[AppConfig] = None) -> bool:
        """Save configuration to file."""
        if config is not None:
            self._config = config

        if self._config is None:
            self._config = AppConfig()

        try:
            self._config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self._config_file, "w") as f:
                yaml.dump(
                    self._config.to_dict(),
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                )
            return True
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Error saving config %s: %s", self._config_file, e)
            return False

    def update(self, **kwargs) -> None:
        """Update specific configuration values."""
        config = self.config

        for key, value in kwargs.items():
            if hasattr(config, key):
                setattr(config, key, value)
            elif hasattr(config.editor, key):
                setattr(config.editor, key, value)
            elif hasattr(config.directories, key):
                setattr(config.directories, key, value)
            elif hasattr(config.window, key):
                setattr(config.window, key, value)
            elif hasattr(config.logging, key):
                setattr(config.logging, key, value)
            else:
                logger.warning("Unknown config key: %s", key)

        self.save()

    def ensure_directories(self) -> None:
        """Ensure the output directory exists."""
        self.config.get_output_path().mkdir(parents=True, exist_ok=True)


# Global config manager instance
config_manager = ConfigManager()
