"""Configuration management for pomotask."""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional

import yaml

from .task import MarkerConvention

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_KEYWORDS = ["work", "personal", "home", "health", "finance", "study", "project"]


@dataclass
class ConfigModel:
    """Settings shared by the parser, the enhancer and the CLI."""

    # Parsing
    marker_convention: MarkerConvention = MarkerConvention.CATEGORY
    recognize_asap: bool = False  # treat a free-standing "ASAP" as #high
    pomodoro_minutes: int = 25

    # Rendering
    date_format: str = "%A, %B %d, %Y"
    time_format: str = "%I:%M %p"

    # Vocabulary
    category_keywords: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORY_KEYWORDS))
    known_categories: List[str] = field(default_factory=list)  # used for typo suggestions

    # UI
    use_color: bool = True

    def __post_init__(self):
        if isinstance(self.marker_convention, str):
            try:
                self.marker_convention = MarkerConvention(self.marker_convention.lower())
            except ValueError:
                logger.warning(f"Unknown marker convention {self.marker_convention!r}, using 'category'")
                self.marker_convention = MarkerConvention.CATEGORY
        if not isinstance(self.pomodoro_minutes, int) or self.pomodoro_minutes <= 0:
            logger.warning(f"Invalid pomodoro_minutes {self.pomodoro_minutes!r}, using 25")
            self.pomodoro_minutes = 25

    @property
    def default_categories(self) -> List[str]:
        """Categories offered as suggestions: known ones plus the keyword vocabulary."""
        seen = []
        for name in list(self.known_categories) + list(self.category_keywords):
            if name not in seen:
                seen.append(name)
        return seen

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {
            "marker_convention": self.marker_convention.value,
            "recognize_asap": self.recognize_asap,
            "pomodoro_minutes": self.pomodoro_minutes,
            "date_format": self.date_format,
            "time_format": self.time_format,
            "category_keywords": list(self.category_keywords),
            "known_categories": list(self.known_categories),
            "use_color": self.use_color,
        }
        return yaml.dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML, ignoring unknown keys."""
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ValueError("Configuration root must be a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

        return cls(**{key: value for key, value in data.items() if key in known})


def default_config_path() -> Path:
    """Config file location, overridable with POMOTASK_CONFIG."""
    env_path = os.environ.get("POMOTASK_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return Path("~/.pomotask/config.yaml").expanduser()


class Config:
    """Configuration manager caching the loaded model."""

    _instance: Optional[ConfigModel] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Load configuration from file, falling back to defaults."""
        if cls._instance is not None:
            return cls._instance

        config = ConfigModel()

        if config_path is None:
            config_path = default_config_path()
        config_path = Path(config_path)

        if config_path.exists():
            try:
                config = ConfigModel.from_yaml(config_path.read_text())
                logger.info(f"Loaded configuration from {config_path}")
            except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}. Using default configuration.")
                config = ConfigModel()
        else:
            logger.debug(f"No configuration at {config_path}, using defaults")

        cls._instance = config
        return config

    @classmethod
    def save(cls, config: ConfigModel, config_path: Optional[Path] = None) -> Path:
        """Save configuration to file."""
        if config_path is None:
            config_path = default_config_path()
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(config.to_yaml())
        logger.info(f"Configuration saved to {config_path}")
        return config_path

    @classmethod
    def get(cls) -> ConfigModel:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reload(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Drop the cached model and load again."""
        cls._instance = None
        return cls.load(config_path)


def get_config() -> ConfigModel:
    """Get the current configuration."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> ConfigModel:
    """Load configuration from file."""
    return Config.load(config_path)


def save_config(config: ConfigModel, config_path: Optional[Path] = None) -> Path:
    """Save configuration to file."""
    return Config.save(config, config_path)
