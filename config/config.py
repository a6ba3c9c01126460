from copy import deepcopy
from json import JSONDecodeError, load
from logging import getLogger
from pathlib import Path
from threading import RLock
from typing import Any, Optional

from pydantic import ValidationError
from yaml import safe_load

from config.config_yaml_schema import ConfigSchema
from models.models import StaticIpConfig

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

_logger = getLogger("ethagent.CONFIG")


class Config:
    """Defines application level Config"""

    def __init__(self, path: Path = DEFAULT_CONFIG_PATH):
        self._lock = RLock()
        self._path: Path = path
        self._config = {}
        self._load()

    def _load(self):
        with self._lock:
            with open(self._path, mode="r", encoding="utf-8") as _file_handle:
                _raw = safe_load(_file_handle)
            ConfigSchema.model_validate(_raw)
            self._config = _raw

    def reload(self):
        """Reload config"""
        self._load()

    def get(self, key: str) -> Any:
        """Get section from config obj"""

        if not isinstance(key, str) or not key:
            raise ValueError("Key must be a non-empty str.")

        if key not in self._config:
            raise RuntimeError("Unknown key.")

        with self._lock:
            return deepcopy(self._config[key])


def load_static_ip_config(path: Path) -> Optional[StaticIpConfig]:
    """Read the persisted static IP record.

    A missing file is the normal "no static override" case and returns None.
    A file that cannot be parsed or fails validation is logged and also
    treated as absent.
    """
    if not path.exists():
        return None

    try:
        with open(path, encoding="utf-8", mode="r") as file_handle:
            return StaticIpConfig.model_validate(load(file_handle))

    except (OSError, JSONDecodeError, ValidationError) as err:
        _logger.error("Ignoring static ip config %s: %s", path, err)
        return None


config = Config()
