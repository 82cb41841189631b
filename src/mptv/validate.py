# validate.py
import logging
from typing import Dict, Any

from mptv.models import ChannelSorting, ValidationResult


class ConfigValidator:
    """Validator for the bridge configuration"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def validate_config(self, config: Dict[str, Any]) -> ValidationResult:
        """Main validation entry point"""
        result = ValidationResult()

        self._validate_backend(config.get("backend", {}), result)
        self._validate_channels(config.get("channels", {}), result)
        self._validate_recordings(config.get("recordings", {}), result)
        self._validate_genres(config.get("genres", {}), result)

        self.logger.debug(f"Config validation: {len(result.errors)} errors, {len(result.warnings)} warnings")
        return result

    def _validate_backend(self, backend: Dict[str, Any], result: ValidationResult) -> None:
        if not backend.get("host"):
            result.add("config_host", "error", "Backend host must not be empty")

        port = backend.get("port", 4322)
        if not isinstance(port, int) or not 0 < port < 65536:
            result.add("config_port", "error", f"Invalid backend port: {port}")

        timeout = backend.get("timeout", 30)
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            result.add("config_timeout", "error", f"Timeout must be a positive number of seconds: {timeout}")

        if backend.get("password") and not backend.get("username"):
            result.add("config_auth", "warning", "A password is set without a username and will be ignored")

    def _validate_channels(self, channels: Dict[str, Any], result: ValidationResult) -> None:
        sort_order = channels.get("sort_order", "default")
        accepted = [s.value for s in ChannelSorting]
        if sort_order not in accepted:
            result.add("config_sort_order", "error", f"Unknown sort order '{sort_order}', expected one of {accepted}")

        group = channels.get("default_group", 0)
        if not isinstance(group, int) or group < 0:
            result.add("config_default_group", "error", f"Default channel group must be a non-negative id: {group}")

    def _validate_recordings(self, recordings: Dict[str, Any], result: ValidationResult) -> None:
        if not recordings.get("requires_path_substitution", False):
            return

        if not recordings.get("local_file_path") or not recordings.get("remote_file_path"):
            result.add("config_path_substitution", "error", "Path substitution needs both a local and a remote path")

        if not recordings.get("enable_direct_access", False):
            result.add("config_path_substitution", "warning", "Path substitution has no effect while direct access is disabled")

    def _validate_genres(self, genres: Dict[str, Any], result: ValidationResult) -> None:
        for tag, values in genres.items():
            if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                result.add("config_genres", "error", f"Genre mapping '{tag}' must be a list of strings")
