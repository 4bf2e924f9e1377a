"""Integration of activation trajectories from sampled excitations.

:copyright: Copyright 2024 by MLL <mll@mll.bio>.
:license: Apache 2.0. See LICENSE for details.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Type

import diffrax as dfx
import jax.numpy as jnp
import numpy as np
from jaxtyping import Array, ArrayLike, Float

from activax.activation import FirstOrderActivationDynamics
from activax.errors import InvalidArgumentError


logger = logging.getLogger(__name__)


def max_stable_step(model: FirstOrderActivationDynamics) -> float:
    """Largest default step [s] for explicit solvers.

    The fastest rate constant of the activation ODE is
    `1 / (0.5 * tau * (1 - min_activation))`; stepping at half its reciprocal
    keeps Euler steps from overshooting the excitation.
    """
    tau_min = min(model.tau_activation, model.tau_deactivation)
    return 0.25 * tau_min * (1 - model.min_activation)


def simulate_activation(
    model: FirstOrderActivationDynamics,
    ts: Float[ArrayLike, " time"],
    excitations: Float[ArrayLike, "time *muscles"],
    initial_activation: Optional[float | Float[ArrayLike, "*muscles"]] = None,
    *,
    solver_type: Type[dfx.AbstractSolver] = dfx.Euler,
    dt0: Optional[float] = None,
) -> Float[Array, "time *muscles"]:
    """Integrate the activation ODE driven by linearly interpolated excitations.

    All muscles sharing the trailing dimensions of `excitations` use the same
    `model`. Inputs are checked on the host before solving, since the
    array-valued dynamics cannot check bounds once traced.

    Args:
        model: The activation dynamics.
        ts: Strictly increasing sample times [s].
        excitations: Excitation at each of `ts`, in [0, 1].
        initial_activation: Activation at `ts[0]`, in [min_activation, 1].
            Defaults to `model.min_activation`.
        solver_type: Diffrax solver class.
        dt0: Constant integration step [s]. Defaults to the smallest spacing
            of `ts`, capped at `max_stable_step(model)`.

    Returns:
        Activation at each of `ts`.

    Raises:
        InvalidArgumentError: If any input violates the preconditions above.
    """
    ts_np = np.asarray(ts, dtype=np.float64)
    excitations_np = np.asarray(excitations, dtype=np.float64)

    if ts_np.ndim != 1 or ts_np.size < 2:
        raise InvalidArgumentError(f"{model.name}: need a 1D array of at least 2 sample times")
    if not np.all(np.diff(ts_np) > 0):
        raise InvalidArgumentError(f"{model.name}: sample times must be strictly increasing")
    if excitations_np.ndim == 0 or excitations_np.shape[0] != ts_np.size:
        raise InvalidArgumentError(
            f"{model.name}: expected {ts_np.size} excitation samples, "
            f"got array of shape {excitations_np.shape}"
        )
    if not np.all((excitations_np >= 0) & (excitations_np <= 1)):
        raise InvalidArgumentError(
            f"{model.name}: excitation out of bounds; must be between 0 and 1"
        )

    if initial_activation is None:
        initial_activation = model.min_activation
    try:
        y0_np = np.broadcast_to(
            np.asarray(initial_activation, dtype=np.float64), excitations_np.shape[1:]
        )
    except ValueError as e:
        raise InvalidArgumentError(
            f"{model.name}: initial activation of shape {np.shape(initial_activation)} "
            f"does not broadcast to muscle shape {excitations_np.shape[1:]}"
        ) from e
    if not np.all((y0_np >= model.min_activation) & (y0_np <= 1)):
        raise InvalidArgumentError(
            f"{model.name}: activation out of bounds; must be between "
            f"{model.min_activation:f} and 1"
        )

    if dt0 is None:
        # Keep explicit steps well inside the fastest time constant
        dt0 = min(float(np.min(np.diff(ts_np))), max_stable_step(model))
    elif not (math.isfinite(dt0) and dt0 > 0):
        raise InvalidArgumentError(f"{model.name}: dt0 must be finite and positive (got {dt0!r})")
    dt0 = float(dt0)
    t0, t1 = float(ts_np[0]), float(ts_np[-1])
    n_steps = math.ceil((t1 - t0) / dt0) + 1

    logger.debug(
        f"Integrating {model.name} with {solver_type.__name__}, "
        f"dt0={dt0:g}, t in [{t0:g}, {t1:g}] ({n_steps} steps)"
    )

    ts_arr = jnp.asarray(ts_np)
    path = dfx.LinearInterpolation(ts=ts_arr, ys=jnp.asarray(excitations_np))
    sol = dfx.diffeqsolve(
        dfx.ODETerm(model.vector_field),
        solver_type(),
        t0=t0,
        t1=t1,
        dt0=dt0,
        y0=jnp.asarray(y0_np),
        args=path,
        saveat=dfx.SaveAt(ts=ts_arr),
        stepsize_controller=dfx.ConstantStepSize(),
        max_steps=n_steps,
    )
    return sol.ys
