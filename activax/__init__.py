"""
:copyright: Copyright 2023-2024 by MLL <mll@mll.bio>.
:license: Apache 2.0, see LICENSE for details.
"""

import importlib.metadata
import logging
import os

from activax.activation import DerivativeRequest, FirstOrderActivationDynamics
from activax.errors import (
    ActivationDynamicsError,
    InvalidArgumentError,
    InvalidParameterError,
    UnsupportedDerivativeError,
)
from activax.function import AbstractFunction
from activax.simulate import max_stable_step, simulate_activation


__version__ = importlib.metadata.version("activax")


if os.environ.get("ACTIVAX_DEBUG", False) == "True":
    DEFAULT_LOG_LEVEL = "DEBUG"
else:
    DEFAULT_LOG_LEVEL = "INFO"

LOG_LEVEL = os.environ.get("ACTIVAX_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()


logger = logging.getLogger(__package__)
logger.addHandler(logging.NullHandler())
logger.setLevel(LOG_LEVEL)


__all__ = [
    "AbstractFunction",
    "ActivationDynamicsError",
    "DerivativeRequest",
    "FirstOrderActivationDynamics",
    "InvalidArgumentError",
    "InvalidParameterError",
    "UnsupportedDerivativeError",
    "max_stable_step",
    "simulate_activation",
]
