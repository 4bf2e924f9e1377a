"""Loading of YAML configuration resources.

:copyright: Copyright 2024 by MLL <mll@mll.bio>.
:license: Apache 2.0. See LICENSE for details.
"""

import logging
import os
from importlib import resources
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Optional, TypeVar

import jax.tree as jt
from ruamel.yaml import YAML

from activax.types import TreeNamespace, dict_to_namespace

logger = logging.getLogger(__name__)


CONFIG_DIR_ENV_VAR_NAME = "ACTIVAX_CONFIG_DIR"
RESOURCE_ROOT = "activax.config"


T = TypeVar("T", bound=SimpleNamespace)


yaml = YAML(typ="safe")


def _maybe_open_yaml(resource_root: str, stem: str) -> Optional[dict]:
    """Return parsed YAML from package resources, or None if missing."""
    try:
        path = resources.files(resource_root) / f"{stem}.yml"
    except ModuleNotFoundError:
        return None

    if not path.is_file():
        return None

    with resources.as_file(path) as real_path:
        with open(real_path, "r", encoding="utf-8") as f:
            return yaml.load(f) or {}


def get_user_config_dir() -> Optional[Path]:
    """Get user config directory from environment variable, or return None."""
    env_config_dir = os.environ.get(CONFIG_DIR_ENV_VAR_NAME)
    if env_config_dir is None:
        return None
    return Path(env_config_dir).expanduser()


def load_config(name: str) -> dict[str, Any]:
    """Load a YAML config as a dict.

    Precedence:
      1) user config dir:    ${ACTIVAX_CONFIG_DIR}/{name}.yml
      2) base fallback:      activax.config/{name}.yml
    """
    user_config_dir = get_user_config_dir()
    if user_config_dir is not None:
        upath = user_config_dir / f"{name}.yml"
        if upath.exists():
            logger.debug(f"Loading config `{upath}`")
            with open(upath, "r", encoding="utf-8") as f:
                return yaml.load(f) or {}
        else:
            logger.info(
                f"Config file {name}.yml not found in user config directory "
                f"`{user_config_dir}`. Falling back to base resources."
            )

    data = _maybe_open_yaml(RESOURCE_ROOT, name)
    if data is None:
        raise ValueError(f"Config '{name}.yml' not found in base package resources.")
    return data


def load_config_as_ns(name: str, to_type: type[T] = TreeNamespace) -> T:
    """Load the contents of a project YAML config file resource as a namespace."""
    return dict_to_namespace(load_config(name), to_type=to_type)


def _normalize_log_level(label: str, lvl: str | int) -> int:
    if isinstance(lvl, str):
        lvl = lvl.strip().upper()
        try:
            lvl = logging.getLevelNamesMapping()[lvl]
        except KeyError:
            raise ValueError(f"Invalid {label} specified in YAML config: {lvl!r}")
    if not isinstance(lvl, int):
        raise ValueError(f"Cannot parse log level {lvl!r}")
    return lvl


def _setup_logging(logging_ns: TreeNamespace) -> TreeNamespace:
    for label in ["file_level", "console_level"]:
        tree = getattr(logging_ns, label, None)
        if tree is None:
            continue
        tree_normalized = jt.map(
            lambda x: _normalize_log_level(label, x),
            tree,
        )
        setattr(logging_ns, label, tree_normalized)

    return logging_ns
