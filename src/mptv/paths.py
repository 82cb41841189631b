# paths.py
from typing import Optional

from mptv.config import PluginConfiguration


class RecordingPathMapper:
    """Turns a backend recording file name into a path the host can open directly"""

    def __init__(self, configuration: PluginConfiguration):
        self.enabled = configuration.enable_direct_access
        self.substitute = configuration.requires_path_substitution
        self.local_path = configuration.local_file_path
        self.remote_path = configuration.remote_file_path

    def map_path(self, file_name: str) -> Optional[str]:
        """Returns None when direct access is disabled.

        The substitution is a plain substring replace: separators are not
        normalised and partial path segments match too.
        """
        if not self.enabled:
            return None
        if self.substitute and self.local_path:
            return file_name.replace(self.local_path, self.remote_path)
        return file_name
