"""Read gogroup settings from project configuration files.

Settings live in ``[tool.gogroup]`` of ``pyproject.toml`` or in a
``[gogroup]`` section of ``setup.cfg`` or ``tox.ini``::

    [tool.gogroup]
    order = ["std", "prefix=github.com/me", "other"]
    sort-by-name = false
"""

import configparser
import logging
from pathlib import Path
import tomllib
from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from gogroup.rules import ConfigError

LOG = logging.getLogger(__name__)

INI_FILES = ("setup.cfg", "tox.ini")
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _as_order(value: Any, source: Path) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return value
    raise ConfigError(f"{source}: 'order' must be a string or a list of strings")


def _as_bool(value: Any, source: Path) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
        return value.strip().lower() in _TRUE
    raise ConfigError(f"{source}: 'sort-by-name' must be a boolean")


def _normalize(raw: Dict[str, Any], source: Path) -> Dict[str, Any]:
    settings: Dict[str, Any] = {}
    for key, value in raw.items():
        key = key.replace("_", "-")
        if key == "order":
            settings["order"] = _as_order(value, source)
        elif key == "sort-by-name":
            settings["sort_by_name"] = _as_bool(value, source)
        else:
            LOG.warning("%s: ignoring unknown gogroup setting '%s'", source, key)
    return settings


def read_toml_config(path: Path) -> Optional[Dict[str, Any]]:
    """Return the [tool.gogroup] table of a pyproject.toml, if present."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path}: {exc}") from exc
    table = data.get("tool", {}).get("gogroup")
    if table is None:
        return None
    if not isinstance(table, dict):
        raise ConfigError(f"{path}: [tool.gogroup] must be a table")
    return _normalize(table, path)


def read_ini_config(path: Path) -> Optional[Dict[str, Any]]:
    """Return the [gogroup] section of a setup.cfg or tox.ini, if present."""
    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read(path, encoding="utf-8")
    except configparser.Error as exc:
        raise ConfigError(f"{path}: {exc}") from exc
    if not parser.has_section("gogroup"):
        return None
    raw: Dict[str, Any] = dict(parser.items("gogroup"))
    if "order" in raw:
        # Multi-line values hold one specification per line.
        raw["order"] = [line.strip() for line in raw["order"].splitlines() if line.strip()]
    return _normalize(raw, path)


def read_config(root: str) -> Dict[str, Any]:
    """Detect gogroup settings in the project root, or return an empty dict.

    The returned dict may hold ``order`` (a list of order specifications)
    and ``sort_by_name`` (a bool).

    Raises:
        ConfigError: If a configuration file is malformed.
    """
    root_path = Path(root)

    toml_path = root_path / "pyproject.toml"
    if toml_path.exists():
        settings = read_toml_config(toml_path)
        if settings is not None:
            LOG.debug("Read settings from %s", toml_path)
            return settings

    for cfg_name in INI_FILES:
        cfg = root_path / cfg_name
        if cfg.exists():
            settings = read_ini_config(cfg)
            if settings is not None:
                LOG.debug("Read settings from %s", cfg)
                return settings

    return {}


def read_config_file(path: str) -> Dict[str, Any]:
    """Read settings from an explicitly given configuration file.

    Raises:
        ConfigError: If the file is malformed or has no gogroup section.
    """
    path_obj = Path(path)
    if path_obj.suffix == ".toml":
        settings = read_toml_config(path_obj)
    else:
        settings = read_ini_config(path_obj)
    if settings is None:
        raise ConfigError(f"{path}: no gogroup settings found")
    return settings
