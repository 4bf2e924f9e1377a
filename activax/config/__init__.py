from .config import (
    CONFIG_DIR_ENV_VAR_NAME,
    _setup_logging,
    get_user_config_dir,
    load_config,
    load_config_as_ns,
)

__all__ = [
    "CONFIG_DIR_ENV_VAR_NAME",
    "get_user_config_dir",
    "load_config",
    "load_config_as_ns",
    "load_logging_config",
]


def load_logging_config():
    """Load `logging.yml` as a namespace, with log levels normalized to ints."""
    return _setup_logging(load_config_as_ns("logging"))
