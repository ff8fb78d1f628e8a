from pathlib import Path
from typing import Any, Dict, Optional, Union

from pigment_mixer.utils.file_io import read_json, write_json


class ConfigManager:
    """
    Dotted-key access to the mixer JSON configuration.

    Example:
        >>> cfg = ConfigManager(data={"search": {"workers": 2}})
        >>> cfg.get("search.workers")
        2
    """

    def __init__(self, path: Optional[Union[str, Path]] = None, data: Optional[Dict] = None):
        self.config_path = Path(path) if path else None
        self._config = {}
        if data:
            self._config = data
        elif self.config_path and self.config_path.exists():
            self._config = read_json(self.config_path)

    def get(self, key: str, default: Any = None) -> Any:
        keys = key.split(".")
        val = self._config
        try:
            for k in keys:
                val = val[k]
            return val
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any):
        keys = key.split(".")
        val = self._config
        for k in keys[:-1]:
            val = val.setdefault(k, {})
        val[keys[-1]] = value

    def section(self, name: str) -> Dict[str, Any]:
        """Top-level section as a dict (empty when missing or not a mapping)."""
        value = self._config.get(name)
        return dict(value) if isinstance(value, dict) else {}

    def save(self, path: Optional[Union[str, Path]] = None):
        target = Path(path) if path else self.config_path
        if target:
            write_json(self._config, target)
