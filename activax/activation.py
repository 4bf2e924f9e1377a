"""First-order muscle activation dynamics.

Maps a neural excitation `u` in [0, 1] to the rate of change of muscle
activation `a`, which is bounded below by a minimum activation `a_min` that
models baseline tone. Activation is first rescaled so that [a_min, 1] maps to
[0, 1]:

    offset = a / (1 - a_min) - a_min / (1 - a_min)

and then relaxes toward the excitation with a time constant that depends on
the direction of change and scales linearly with the rescaled state:

    tau = tau_act   * (0.5 + 1.5 * offset)   if u > offset
    tau = tau_deact * (0.5 + 1.5 * offset)   otherwise

    da/dt = (u - offset) / tau

References:
    Thelen (2003): Adjustment of muscle mechanics model parameters to
        simulate dynamic contractions in older adults.
    Millard et al. (2013): Flexing computational muscle: modeling and
        simulation of musculotendon dynamics.

:copyright: Copyright 2024 by MLL <mll@mll.bio>.
:license: Apache 2.0. See LICENSE for details.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
import logging
import operator
from types import SimpleNamespace
from typing import Any, Optional

from equinox import field
import jax.numpy as jnp
from jaxtyping import Array, ArrayLike, Float, Scalar

from activax.config import load_config
from activax.constants import (
    DEFAULT_MIN_ACTIVATION,
    DEFAULT_NAME,
    DEFAULT_TAU_ACTIVATION,
    DEFAULT_TAU_DEACTIVATION,
    NAME_SUFFIX,
    SMALL_TOL,
)
from activax.errors import (
    InvalidArgumentError,
    InvalidParameterError,
    UnsupportedDerivativeError,
)
from activax.function import AbstractFunction
from activax.misc import deep_merge
from activax.types import namespace_to_dict


logger = logging.getLogger(__name__)


PARAMETER_NAMES = ("tau_activation", "tau_deactivation", "min_activation")


class DerivativeRequest(Enum):
    """What a list of derivative components asks of the activation model."""

    VALUE = "value"
    FIRST_DERIVATIVE_OF_ACTIVATION = "first_derivative_of_activation"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_components(cls, derivative_components: Sequence[int]) -> DerivativeRequest:
        try:
            components = tuple(operator.index(c) for c in derivative_components)
        except TypeError:
            # Not integer argument indices
            return cls.UNSUPPORTED
        if len(components) == 0:
            return cls.VALUE
        if components == (0,):
            return cls.FIRST_DERIVATIVE_OF_ACTIVATION
        return cls.UNSUPPORTED


def _validate_parameters(
    name: str,
    tau_activation: float,
    tau_deactivation: float,
    min_activation: float,
) -> None:
    for parameter, tau in (
        ("tau_activation", tau_activation),
        ("tau_deactivation", tau_deactivation),
    ):
        if not tau > SMALL_TOL:
            raise InvalidParameterError(
                name,
                parameter,
                tau,
                f"activation/deactivation time constants must exceed {SMALL_TOL:g}",
            )

    if not (min_activation >= 0 and min_activation < 1 - SMALL_TOL):
        raise InvalidParameterError(
            name,
            "min_activation",
            min_activation,
            "minimum activation must be at least 0 and less than 1",
        )


class FirstOrderActivationDynamics(AbstractFunction):
    """First-order activation dynamics with activation-dependent time constants.

    The model is a function of the operating point `x = (activation,
    excitation)`. Its value is the activation itself; its only defined partial
    derivative is the activation rate, `calc_derivative([0], x)`.

    Instances are immutable. The `with_*` methods return a new, re-validated
    model, so `min_activation_ratio` always matches `min_activation`.

    Attributes:
        tau_activation: Time constant while activation rises [s].
        tau_deactivation: Time constant while activation decays [s].
        min_activation: Floor on activation, in [0, 1).
        min_activation_ratio: `min_activation / (1 - min_activation)`.
        name: Label used in error and log messages.
    """

    tau_activation: float
    tau_deactivation: float
    min_activation: float
    min_activation_ratio: float
    name: str = field(static=True)

    def __init__(
        self,
        tau_activation: float = DEFAULT_TAU_ACTIVATION,
        tau_deactivation: float = DEFAULT_TAU_DEACTIVATION,
        min_activation: float = DEFAULT_MIN_ACTIVATION,
        muscle_name: Optional[str] = None,
        *,
        name: Optional[str] = None,
    ):
        """Initialize and validate the activation dynamics.

        Args:
            tau_activation: Activation time constant [s].
            tau_deactivation: Deactivation time constant [s].
            min_activation: Minimum activation level.
            muscle_name: Name of the owning muscle; the model is labelled
                `"<muscle_name>_activation"`.
            name: Explicit label, overriding `muscle_name`.

        Raises:
            InvalidParameterError: If a time constant is not greater than
                `sqrt(eps)`, or `min_activation` is outside `[0, 1 - sqrt(eps))`.
        """
        if name is None:
            name = DEFAULT_NAME if muscle_name is None else muscle_name + NAME_SUFFIX

        tau_activation = float(tau_activation)
        tau_deactivation = float(tau_deactivation)
        min_activation = float(min_activation)
        _validate_parameters(name, tau_activation, tau_deactivation, min_activation)

        self.name = name
        self.tau_activation = tau_activation
        self.tau_deactivation = tau_deactivation
        self.min_activation = min_activation
        self.min_activation_ratio = min_activation / (1 - min_activation)

        logger.debug(
            f"Constructed {name}: tau_activation={tau_activation:g}, "
            f"tau_deactivation={tau_deactivation:g}, min_activation={min_activation:g}"
        )

    @classmethod
    def from_config(
        cls,
        config: Optional[Mapping[str, Any] | SimpleNamespace] = None,
        *,
        muscle_name: Optional[str] = None,
        **overrides: Any,
    ) -> FirstOrderActivationDynamics:
        """Construct from a parameter mapping, falling back to `activation.yml`.

        Keyword overrides that are not `None` take precedence over the config.
        """
        if config is None:
            config = load_config("activation")
        elif isinstance(config, SimpleNamespace):
            config = namespace_to_dict(config)

        params = deep_merge(
            dict(config),
            {k: v for k, v in overrides.items() if v is not None},
        )
        unknown = set(params) - set(PARAMETER_NAMES)
        if unknown:
            raise ValueError(
                f"Unknown activation dynamics parameters: {sorted(unknown)}"
            )
        return cls(**params, muscle_name=muscle_name)

    def _replace(self, **changes: float) -> FirstOrderActivationDynamics:
        params = {k: getattr(self, k) for k in PARAMETER_NAMES}
        return type(self)(**(params | changes), name=self.name)

    def with_tau_activation(self, tau_activation: float) -> FirstOrderActivationDynamics:
        return self._replace(tau_activation=tau_activation)

    def with_tau_deactivation(self, tau_deactivation: float) -> FirstOrderActivationDynamics:
        return self._replace(tau_deactivation=tau_deactivation)

    def with_min_activation(self, min_activation: float) -> FirstOrderActivationDynamics:
        """Return a copy with a new activation floor and its ratio recomputed."""
        return self._replace(min_activation=min_activation)

    @property
    def argument_size(self) -> int:
        # activation and excitation
        return 2

    @property
    def max_derivative_order(self) -> int:
        return 1

    def calc_value(self, x: ArrayLike) -> float:
        """Return the activation at operating point `x = (activation, excitation)`.

        Only the size of `x` is checked; the activation is not bounds-checked.
        """
        x = self._check_operating_point(x)
        return float(x[0])

    def calc_activation_rate(self, activation: float, excitation: float) -> float:
        """Return da/dt at the given activation and excitation."""
        return self.calc_derivative([0], (activation, excitation))

    def calc_derivative(
        self,
        derivative_components: Sequence[int],
        x: ArrayLike,
    ) -> float:
        """Evaluate the value (`[]`) or the activation rate (`[0]`) at `x`.

        Args:
            derivative_components: Indices of the arguments to differentiate
                with respect to.
            x: Operating point `(activation, excitation)`.

        Raises:
            InvalidArgumentError: If `x` does not have two entries, or for the
                activation rate, if the excitation is outside [0, 1] or the
                activation is outside [min_activation, 1].
            UnsupportedDerivativeError: For any request other than `[]` or `[0]`.
        """
        x = self._check_operating_point(x)

        request = DerivativeRequest.from_components(derivative_components)

        if request is DerivativeRequest.VALUE:
            return self.calc_value(x)

        if request is DerivativeRequest.UNSUPPORTED:
            if len(derivative_components) == 1:
                raise UnsupportedDerivativeError(
                    f"{self.name}: calc_derivative is only valid for the 0th partial"
                )
            raise UnsupportedDerivativeError(
                f"{self.name}: calc_derivative is only valid for the 0th and 1st derivative"
            )

        activation, excitation = float(x[0]), float(x[1])
        self._check_bounds(activation, excitation)
        return self._activation_rate(activation, excitation)

    def _check_bounds(self, activation: float, excitation: float) -> None:
        if not (excitation >= 0 and excitation <= 1):
            raise InvalidArgumentError(
                f"{self.name}: excitation out of bounds; must be between 0 and 1 "
                f"(got {excitation!r})"
            )
        if not (activation >= self.min_activation and activation <= 1):
            raise InvalidArgumentError(
                f"{self.name}: activation out of bounds; must be between "
                f"{self.min_activation:f} and 1 (got {activation!r})"
            )

    def _activation_rate(self, activation: float, excitation: float) -> float:
        offset = activation / (1 - self.min_activation) - self.min_activation_ratio
        if excitation > offset:
            tau = self.tau_activation * (0.5 + 1.5 * offset)
        else:
            tau = self.tau_deactivation * (0.5 + 1.5 * offset)
        return (excitation - offset) / tau

    def __call__(
        self,
        excitation: Float[ArrayLike, "*batch"],
        activation: Float[ArrayLike, "*batch"],
    ) -> Float[Array, "*batch"]:
        """Compute the activation rate elementwise on arrays.

        Suitable for use under `jax.jit`, `jax.vmap` and `jax.grad`. Bounds
        cannot be checked on traced values, so the caller must keep
        excitation in [0, 1] and activation in [min_activation, 1].

        Args:
            excitation: Neural excitation [0, 1].
            activation: Current activation [min_activation, 1].

        Returns:
            Time derivative of activation.
        """
        excitation = jnp.asarray(excitation)
        activation = jnp.asarray(activation)
        offset = activation / (1 - self.min_activation) - self.min_activation_ratio
        scale = 0.5 + 1.5 * offset
        tau = jnp.where(
            excitation > offset,
            self.tau_activation * scale,
            self.tau_deactivation * scale,
        )
        return (excitation - offset) / tau

    def vector_field(self, t: Scalar, y: Array, args: Any) -> Array:
        """Diffrax right-hand side, with `args` a path giving excitation at `t`."""
        return self(args.evaluate(t), y)
