# config.py

import sys
import shutil
import logging
import tomli, tomli_w
from pathlib import Path
from dataclasses import dataclass, field
from importlib.resources import files
from platformdirs import user_config_path
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Any, Tuple

from mptv.errors import ConfigurationError
from mptv.models import ChannelSorting, ValidationResult
from mptv.validate import ConfigValidator


def _genre_names(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        raise TypeError("expected a list of genre names")
    return tuple(value)


@dataclass(frozen=True)
class PluginConfiguration:
    """Read-only snapshot of the configuration, taken once per operation"""
    host: str = "localhost"
    port: int = 4322
    username: str = ""
    password: str = ""
    timeout: float = 30.0
    streaming_user_name: str = ""
    default_channel_group: int = 0
    channel_sort_order: ChannelSorting = ChannelSorting.DEFAULT
    enable_direct_access: bool = False
    requires_path_substitution: bool = False
    local_file_path: str = ""
    remote_file_path: str = ""
    genre_mappings: Mapping[str, Tuple[str, ...]] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        mappings = {tag: tuple(names) for tag, names in self.genre_mappings.items()}
        object.__setattr__(self, "genre_mappings", MappingProxyType(mappings))

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}/MPExtended/"

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "PluginConfiguration":
        backend = config.get("backend", {})
        channels = config.get("channels", {})
        recordings = config.get("recordings", {})
        genres = config.get("genres", {})

        def convert(section: Dict[str, Any], key: str, default: Any, to: Callable[[Any], Any]) -> Any:
            value = section.get(key, default)
            try:
                return to(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(key, value) from e

        return cls(
            host=backend.get("host", "localhost"),
            port=convert(backend, "port", 4322, int),
            username=backend.get("username", ""),
            password=backend.get("password", ""),
            timeout=convert(backend, "timeout", 30.0, float),
            streaming_user_name=backend.get("streaming_user_name", ""),
            default_channel_group=convert(channels, "default_group", 0, int),
            channel_sort_order=convert(channels, "sort_order", "default", ChannelSorting),
            enable_direct_access=bool(recordings.get("enable_direct_access", False)),
            requires_path_substitution=bool(recordings.get("requires_path_substitution", False)),
            local_file_path=recordings.get("local_file_path", ""),
            remote_file_path=recordings.get("remote_file_path", ""),
            genre_mappings={tag: convert(genres, tag, (), _genre_names) for tag in genres},
        )


class ConfigManager:
    """Manages the bridge configuration file"""

    def __init__(self, config_dir: Optional[Path] = None):
        self.logger = logging.getLogger("mptv.config")
        self.logger.debug("🔧 Initializing ConfigManager")

        self.validator = ConfigValidator()

        self.config_dir = config_dir or user_config_path(appname="mptv", appauthor=False, ensure_exists=True)
        self.config_file_path = self.config_dir / "config.toml"
        self.data_dir = files("mptv.data")

        self.config = self.load_config()

    def load_config(self) -> Dict[str, Any]:
        """Loads the configuration file"""

        self.logger.debug("🔁 Loading configuration")

        # Create a default config file if it doesn't exist
        if not self.config_file_path.exists():
            self.logger.debug("⚠️ Config file not found, creating default")
            self._create_default_config()

        # Check if the config file is empty
        if self.config_file_path.stat().st_size == 0:
            self.logger.debug("⚠️ Config file is empty, creating default")
            self._create_default_config()

        try:
            with open(self.config_file_path, "rb") as f:
                config = tomli.load(f)

        except tomli.TOMLDecodeError as e:
            self.logger.error(f"💀 Error loading configuration: {str(e)}")
            sys.exit(1)

        # Cache the config for later use
        self.config = config
        self._log_validation(self.validator.validate_config(config))
        return config

    def validate_config(self) -> ValidationResult:
        """Validates the current configuration and returns validation results"""
        return self.validator.validate_config(self.config)

    def snapshot(self) -> PluginConfiguration:
        """Returns an immutable view of the configuration as currently loaded"""
        return PluginConfiguration.from_dict(self.config)

    def _create_default_config(self) -> None:
        """Creates a default configuration file"""

        default_config_path = self.data_dir / "config.toml"

        self.logger.debug(f"🔁 Copying default config")

        self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
        with default_config_path.open("rb") as src, open(self.config_file_path, "wb") as dst:
            shutil.copyfileobj(src, dst)
        self.logger.debug("✅ Default configuration created")

    def set_path_substitution(self, local_path: Optional[str], remote_path: Optional[str]) -> bool:
        """Enables direct access with an optional local-to-remote prefix substitution

        Args:
            local_path (str): Prefix as reported by the backend, or None to disable substitution
            remote_path (str): Prefix to put in its place
        """

        self.logger.debug(f"🔁 Setting path substitution")

        self.load_config()

        recordings = self.config.setdefault("recordings", {})
        recordings["enable_direct_access"] = True
        recordings["requires_path_substitution"] = local_path is not None
        recordings["local_file_path"] = local_path or ""
        recordings["remote_file_path"] = remote_path or ""

        return self._save_config(self.config)

    def _save_config(self, config: dict) -> bool:
        """Saves the configuration to the config file"""

        self.logger.debug("🔁 Saving configuration")

        # Validate the config before saving
        validation = self.validator.validate_config(config)
        self._log_validation(validation)
        if validation.failed:
            return False

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.config_file_path, "wb") as f:
                tomli_w.dump(config, f)

            # Verify the file can be read back
            with open(self.config_file_path, "rb") as f:
                tomli.load(f)

            self.logger.debug("✅ Configuration saved")
            return True

        except (OSError, tomli.TOMLDecodeError) as e:
            self.logger.error(f"💀 Error saving configuration: {str(e)}")
            return False

    def _log_validation(self, validation: ValidationResult) -> None:
        if validation.failed:
            self.logger.error("💀 Configuration validation failed")
            for key, result in validation.errors.items():
                self.logger.error(f"    ❗ {key.upper()}: {result}")

        for key, result in validation.warnings.items():
            self.logger.warning(f"    ⚠️ {key.upper()}: {result}")

    def genre_tags(self) -> List[str]:
        """Canonical genre tags configured in the mapping table"""
        return list(self.config.get("genres", {}).keys())
