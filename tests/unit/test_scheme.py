"""
Tests for the Euler evolution scheme.

[T1] Y_{k+1} = Y_k + μ Δt + l ΔW in the model's state space
"""

import numpy as np
import pytest

from ir_montecarlo.errors import InvalidConfigurationError
from ir_montecarlo.simulation.covariance import StateSpace
from ir_montecarlo.simulation.grids import TimeGrid
from ir_montecarlo.simulation.scheme import (
    EulerScheme,
    Scheme,
    from_state_space,
    to_state_space,
)


class ConstantCoefficientModel:
    """Two components driven by one factor with constant drift and loading."""

    def __init__(self, state_space: StateSpace):
        self.time_grid = TimeGrid([0.0, 0.25, 1.0])
        self.state_space = state_space
        self.drift_value = np.array([0.1, -0.2])
        self.loading_value = np.array([[0.3], [0.0]])

    def drift(self, time_index, state):
        return np.broadcast_to(self.drift_value, state.shape)

    def factor_loading(self, time_index, state):
        return np.broadcast_to(self.loading_value, (state.shape[0], 2, 1))


class TestStateSpaceTransform:

    def test_normal_is_identity(self):
        values = np.array([0.01, -0.02])
        np.testing.assert_array_equal(to_state_space(values, StateSpace.NORMAL), values)
        np.testing.assert_array_equal(from_state_space(values, StateSpace.NORMAL), values)

    def test_lognormal_round_trip(self):
        values = np.array([0.01, 0.05])
        transformed = to_state_space(values, StateSpace.LOGNORMAL)
        np.testing.assert_allclose(transformed, np.log(values))
        np.testing.assert_allclose(from_state_space(transformed, StateSpace.LOGNORMAL), values)


class TestEulerScheme:

    def test_default_scheme(self):
        assert EulerScheme().scheme is Scheme.EULER
        assert EulerScheme("euler").scheme is Scheme.EULER

    def test_unsupported_scheme(self):
        with pytest.raises(InvalidConfigurationError, match="unsupported scheme"):
            EulerScheme("milstein")

    def test_normal_step(self):
        model = ConstantCoefficientModel(StateSpace.NORMAL)
        state = np.array([[0.05, 0.04], [0.03, 0.02]])
        increments = np.array([[0.5], [-1.0]])

        result = EulerScheme().step(model, 1, state, increments)

        dt = 0.75
        expected = state + model.drift_value * dt + np.array([[0.15, 0.0], [-0.3, 0.0]])
        np.testing.assert_allclose(result, expected)

    def test_lognormal_step(self):
        model = ConstantCoefficientModel(StateSpace.LOGNORMAL)
        state = np.array([[0.05, 0.04]])
        increments = np.array([[0.2]])

        result = EulerScheme().step(model, 0, state, increments)

        dt = 0.25
        expected = state * np.exp(model.drift_value * dt + np.array([0.06, 0.0]))
        np.testing.assert_allclose(result, expected)

    def test_step_does_not_mutate_state(self):
        model = ConstantCoefficientModel(StateSpace.NORMAL)
        state = np.array([[0.05, 0.04]])
        EulerScheme().step(model, 0, state, np.array([[1.0]]))
        np.testing.assert_array_equal(state, [[0.05, 0.04]])
