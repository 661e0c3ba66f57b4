"""Option source — layered lookup of CLI overrides, environment and config file."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping

from dnsfailover.config import CONFIG_FILE, ENV_PREFIX

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Persistent config file
# ------------------------------------------------------------------

def load_config(path: Path | None = None) -> dict[str, Any]:
    """Return the JSON config file as a dict, or ``{}`` if absent or unreadable."""
    path = path or CONFIG_FILE
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level is not an object", path)
        return {}
    return data


def set_config(key: str, value: str, path: Path | None = None) -> None:
    path = path or CONFIG_FILE
    cfg = load_config(path)
    cfg[key] = value
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg, indent=2, sort_keys=True), encoding="utf-8")


def unset_config(key: str, path: Path | None = None) -> bool:
    """Remove *key* from the config file.  Returns ``False`` if it wasn't set."""
    path = path or CONFIG_FILE
    cfg = load_config(path)
    if key not in cfg:
        return False
    del cfg[key]
    path.write_text(json.dumps(cfg, indent=2, sort_keys=True), encoding="utf-8")
    return True


def parse_overrides(pairs: tuple[str, ...] | list[str]) -> dict[str, str]:
    """Turn ``key=value`` strings into a dict.  Raises ``ValueError`` on a bad pair."""
    overrides: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid override '{pair}', expected KEY=VALUE")
        overrides[key] = value
    return overrides


def env_var_name(key: str) -> str:
    """``id-broker-value`` → ``DNSFAILOVER_ID_BROKER_VALUE``."""
    return ENV_PREFIX + key.upper().replace("-", "_")


# ------------------------------------------------------------------
# Option source
# ------------------------------------------------------------------

class OptionSource:
    """Resolve option keys against explicit overrides, environment, then file.

    Empty strings are treated as unset at every layer, so ``get`` falls
    through to the next layer and finally to *default*.
    """

    def __init__(
        self,
        overrides: Mapping[str, str] | None = None,
        *,
        environ: Mapping[str, str] | None = None,
        config: Mapping[str, Any] | None = None,
    ) -> None:
        self._overrides = dict(overrides or {})
        self._environ = os.environ if environ is None else environ
        self._config = load_config() if config is None else dict(config)

    @classmethod
    def from_file(cls, path: Path, overrides: Mapping[str, str] | None = None) -> "OptionSource":
        return cls(overrides, config=load_config(path))

    def get(self, key: str, default: str = "") -> str:
        value = self._overrides.get(key)
        if value:
            return value
        value = self._environ.get(env_var_name(key))
        if value:
            return value
        value = self._config.get(key)
        if value not in (None, ""):
            return str(value)
        return default

    def source_of(self, key: str) -> str | None:
        """Name the layer that supplies *key*, or ``None`` if unset."""
        if self._overrides.get(key):
            return "command line"
        if self._environ.get(env_var_name(key)):
            return "environment"
        if self._config.get(key) not in (None, ""):
            return "config file"
        return None
