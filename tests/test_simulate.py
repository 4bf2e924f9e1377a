"""Tests for integrating activation trajectories.

:copyright: Copyright 2024 by MLL <mll@mll.bio>.
:license: Apache 2.0. See LICENSE for details.
"""

import diffrax as dfx
import jax
import jax.numpy as jnp
import pytest

from activax import (
    FirstOrderActivationDynamics,
    InvalidArgumentError,
    max_stable_step,
    simulate_activation,
)


jax.config.update("jax_enable_x64", True)


@pytest.fixture
def model():
    return FirstOrderActivationDynamics()


class TestSimulateActivation:
    """Tests for `simulate_activation`."""

    def test_single_euler_step(self, model):
        ts = jnp.array([0.0, 0.001])
        ys = simulate_activation(model, ts, jnp.ones(2))
        assert ys.shape == (2,)
        assert float(ys[0]) == pytest.approx(model.min_activation)
        # 0.01 + 0.001 * 200
        assert float(ys[1]) == pytest.approx(0.21)

    def test_rise_toward_full_activation(self, model):
        ts = jnp.linspace(0.0, 0.3, 301)
        ys = simulate_activation(model, ts, jnp.ones_like(ts))

        assert jnp.all(jnp.diff(ys) >= 0)
        assert jnp.all(ys <= 1.0)
        assert float(ys[-1]) > 0.99

    def test_decay_toward_floor(self, model):
        ts = jnp.linspace(0.0, 1.0, 1001)
        ys = simulate_activation(model, ts, jnp.zeros_like(ts), initial_activation=1.0)

        assert jnp.all(jnp.diff(ys) <= 0)
        assert jnp.all(ys >= model.min_activation)
        assert float(ys[-1]) == pytest.approx(model.min_activation, abs=1e-3)

    def test_deactivation_slower_than_activation(self, model):
        ts = jnp.linspace(0.0, 0.02, 21)
        rise = simulate_activation(model, ts, jnp.ones_like(ts))
        fall = simulate_activation(model, ts, jnp.zeros_like(ts), initial_activation=1.0)

        assert float(rise[-1] - rise[0]) > float(fall[0] - fall[-1])

    def test_steady_state(self, model):
        """Constant excitation u settles at a = u * (1 - a_min) + a_min."""
        ts = jnp.linspace(0.0, 1.0, 1001)
        ys = simulate_activation(model, ts, jnp.full_like(ts, 0.5))
        assert float(ys[-1]) == pytest.approx(0.505, abs=1e-4)

    def test_multiple_muscles(self, model):
        ts = jnp.linspace(0.0, 0.1, 101)
        excitations = jnp.stack(
            [jnp.zeros_like(ts), jnp.full_like(ts, 0.5), jnp.ones_like(ts)], axis=-1
        )
        ys = simulate_activation(model, ts, excitations, initial_activation=0.3)

        assert ys.shape == (101, 3)
        assert ys[-1, 0] < 0.3 < ys[-1, 2]

    def test_other_solver(self, model):
        ts = jnp.linspace(0.0, 0.3, 301)
        ys = simulate_activation(
            model, ts, jnp.ones_like(ts), solver_type=dfx.Heun, dt0=0.0005
        )
        assert float(ys[-1]) > 0.99

    def test_excitation_out_of_bounds(self, model):
        ts = jnp.linspace(0.0, 0.1, 11)
        with pytest.raises(InvalidArgumentError, match="excitation"):
            simulate_activation(model, ts, jnp.full_like(ts, 1.2))

    def test_initial_activation_below_floor(self, model):
        ts = jnp.linspace(0.0, 0.1, 11)
        with pytest.raises(InvalidArgumentError, match="activation"):
            simulate_activation(model, ts, jnp.ones_like(ts), initial_activation=0.0)

    def test_non_increasing_times(self, model):
        ts = jnp.array([0.0, 0.1, 0.1])
        with pytest.raises(InvalidArgumentError, match="increasing"):
            simulate_activation(model, ts, jnp.ones(3))

    def test_mismatched_lengths(self, model):
        ts = jnp.linspace(0.0, 0.1, 11)
        with pytest.raises(InvalidArgumentError):
            simulate_activation(model, ts, jnp.ones(5))

    def test_nan_excitation(self, model):
        ts = jnp.linspace(0.0, 0.1, 11)
        excitations = jnp.ones_like(ts).at[3].set(jnp.nan)
        with pytest.raises(InvalidArgumentError, match="excitation"):
            simulate_activation(model, ts, excitations)

    def test_nan_initial_activation(self, model):
        ts = jnp.linspace(0.0, 0.1, 11)
        with pytest.raises(InvalidArgumentError, match="activation"):
            simulate_activation(model, ts, jnp.ones_like(ts), initial_activation=jnp.nan)

    def test_nan_sample_time(self, model):
        ts = jnp.linspace(0.0, 0.1, 11).at[5].set(jnp.nan)
        with pytest.raises(InvalidArgumentError, match="increasing"):
            simulate_activation(model, ts, jnp.ones(11))

    @pytest.mark.parametrize("dt0", [0.0, -0.001, float("nan"), float("inf")])
    def test_invalid_dt0(self, model, dt0):
        ts = jnp.linspace(0.0, 0.1, 11)
        with pytest.raises(InvalidArgumentError, match="dt0"):
            simulate_activation(model, ts, jnp.ones_like(ts), dt0=dt0)

    def test_initial_activation_shape_mismatch(self, model):
        ts = jnp.linspace(0.0, 0.1, 11)
        excitations = jnp.ones((11, 3))
        with pytest.raises(InvalidArgumentError, match="broadcast"):
            simulate_activation(model, ts, excitations, initial_activation=jnp.full(2, 0.5))


class TestDefaultStep:
    """Tests for the default step size on coarsely sampled excitations."""

    def test_max_stable_step(self, model):
        assert max_stable_step(model) == pytest.approx(0.25 * 0.010 * 0.99)

    def test_coarse_sampling_stays_in_bounds(self, model):
        """At 100 Hz the sample spacing exceeds the fastest time constant."""
        ts = jnp.linspace(0.0, 0.5, 51)
        ys = simulate_activation(model, ts, jnp.ones_like(ts))

        assert jnp.all(ys <= 1.0 + 1e-12)
        assert jnp.all(jnp.diff(ys) >= -1e-12)
        assert float(ys[-1]) > 0.99

    def test_coarse_sampling_decay_stays_above_floor(self, model):
        ts = jnp.linspace(0.0, 1.0, 101)
        ys = simulate_activation(model, ts, jnp.zeros_like(ts), initial_activation=1.0)

        assert jnp.all(ys >= model.min_activation)
        assert jnp.all(ys <= 1.0)

    def test_high_floor_stays_in_bounds(self):
        model = FirstOrderActivationDynamics(0.010, 0.040, 0.8)
        ts = jnp.linspace(0.0, 0.2, 21)
        ys = simulate_activation(model, ts, jnp.ones_like(ts))

        assert jnp.all(ys <= 1.0 + 1e-12)
        assert float(ys[-1]) > 0.99
