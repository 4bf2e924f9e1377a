import numpy as np

## Numerical tolerances

# Smallest admissible time constant, and the margin kept below unit minimum activation.
SMALL_TOL = float(np.sqrt(np.finfo(np.float64).eps))

## Default first-order activation parameters

DEFAULT_TAU_ACTIVATION = 0.010
DEFAULT_TAU_DEACTIVATION = 0.040
DEFAULT_MIN_ACTIVATION = 0.01

DEFAULT_NAME = "default_first_order_activation_dynamics"
NAME_SUFFIX = "_activation"
