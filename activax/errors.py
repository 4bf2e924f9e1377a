"""Exceptions raised by activation dynamics models.

:copyright: Copyright 2024 by MLL <mll@mll.bio>.
:license: Apache 2.0. See LICENSE for details.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "ActivationDynamicsError",
    "InvalidParameterError",
    "InvalidArgumentError",
    "UnsupportedDerivativeError",
]


class ActivationDynamicsError(ValueError):
    """Base class for precondition violations in activation dynamics."""


class InvalidParameterError(ActivationDynamicsError):
    """A configuration value lies outside its domain at construction.

    Attributes:
        label: Name of the model being constructed.
        parameter: Name of the offending parameter.
        value: The rejected value.
    """

    def __init__(self, label: str, parameter: str, value: Any, reason: str):
        self.label = label
        self.parameter = parameter
        self.value = value
        super().__init__(f"{label}: {reason} (got {parameter}={value!r})")


class InvalidArgumentError(ActivationDynamicsError):
    """An operating point has the wrong shape or lies out of bounds."""


class UnsupportedDerivativeError(ActivationDynamicsError):
    """A derivative of unsupported order or component was requested."""
