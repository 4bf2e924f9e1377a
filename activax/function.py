"""Generic interface for scalar functions with partial derivatives.

An external ODE solver addresses a function by an operating point `x` and a
list of derivative components, where each entry is the index of an argument
to differentiate with respect to. The length of the list is the derivative
order: `[]` asks for the value, `[0]` for the first partial with respect to
`x[0]`, `[0, 1]` for a mixed second partial, and so on.

:copyright: Copyright 2024 by MLL <mll@mll.bio>.
:license: Apache 2.0. See LICENSE for details.
"""

from abc import abstractmethod
from collections.abc import Sequence
import logging

from equinox import AbstractVar, Module
import numpy as np
from jaxtyping import ArrayLike

from activax.errors import InvalidArgumentError


logger = logging.getLogger(__name__)


class AbstractFunction(Module):
    """Scalar function of a fixed number of real arguments.

    Attributes:
        name: Label used in error messages.
    """

    name: AbstractVar[str]

    @property
    @abstractmethod
    def argument_size(self) -> int:
        """Number of entries an operating point must have."""
        ...

    @property
    @abstractmethod
    def max_derivative_order(self) -> int:
        """Highest derivative order `calc_derivative` can return."""
        ...

    @abstractmethod
    def calc_value(self, x: ArrayLike) -> float:
        """Evaluate the function at operating point `x`."""
        ...

    @abstractmethod
    def calc_derivative(
        self,
        derivative_components: Sequence[int],
        x: ArrayLike,
    ) -> float:
        """Evaluate the partial derivative addressed by `derivative_components` at `x`."""
        ...

    def _check_operating_point(self, x: ArrayLike) -> np.ndarray:
        """Return `x` as a float64 vector, or raise if it has the wrong size."""
        x = np.asarray(x, dtype=np.float64)
        if x.shape != (self.argument_size,):
            raise InvalidArgumentError(
                f"{self.name}: {self.argument_size} arguments are required, "
                f"got an operating point of shape {x.shape}"
            )
        return x
