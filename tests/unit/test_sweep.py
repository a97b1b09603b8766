"""
Unit tests for mosim/engine/sweep.py (ribbon)
"""

import pytest
import numpy as np

from mosim.engine import SweepSimulator, build_covariates
from mosim.exceptions import (
    ConfigurationError,
    EmptyGridError,
    NonAxisVariableError,
    UnknownVariableError,
)
from mosim.models import predict


class TestSweep:
    """Point-estimate curves across one variable."""

    def test_one_point_per_grid_value_in_order(self, simulator, sample_case):
        grid = [0.0, 4.0, 8.0, 12.0, 16.0]
        result = simulator.sweep(sample_case, "age", grid)
        assert len(result) == 5
        assert result.x_values == grid

    def test_points_are_probability_vectors(self, simulator, sample_case):
        result = simulator.sweep(sample_case, "trust", [1.0, 2.0, 3.0, 4.0, 5.0])
        probabilities = result.probabilities()
        assert probabilities.shape == (5, 4)
        assert np.all(probabilities >= 0)
        np.testing.assert_allclose(probabilities.sum(axis=1), 1.0)

    def test_rising_coefficient_gives_rising_curve(self, simulator, sample_case):
        result = simulator.sweep(sample_case, "age", [0.0, 1.0, 2.0, 3.0])
        curve = result.curve("Emancipation")
        assert all(later > earlier for earlier, later in zip(curve, curve[1:]))

    def test_baseline_held_fixed(self, simulator, model, sample_case):
        result = simulator.sweep(sample_case, "age", [0.0, 5.0, 10.0])
        columns = {name: i for i, name in enumerate(model.predictors)}
        assert np.all(result.covariates[:, columns["trust"]] == -2.0)
        assert np.all(result.covariates[:, columns["employ"]] == 1.0)
        assert np.all(result.covariates[:, columns["hh"]] == 2.0)
        np.testing.assert_allclose(result.covariates[:, columns["age"]], np.log1p([0.0, 5.0, 10.0]))

    def test_grid_values_are_not_rounded(self, simulator, model, sample_case):
        result = simulator.sweep(sample_case, "age", [0.5, 1.5])
        column = model.predictors.index("age")
        np.testing.assert_allclose(result.covariates[:, column], np.log1p([0.5, 1.5]))
        assert result.x_values == [0.5, 1.5]

    def test_uses_point_estimate(self, simulator, model, sample_case):
        result = simulator.sweep(sample_case, "hh", [1.0, 3.0])
        x = build_covariates(model, {"age": np.log1p(5.0), "trust": -2.0, "employ": 1.0, "hh": 3.0})
        expected = predict(model.coefficients, x)
        np.testing.assert_allclose(result.probabilities()[1], expected)

    def test_repeatable(self, simulator, sample_case):
        first = simulator.sweep(sample_case, "age", [1.0, 2.0])
        second = simulator.sweep(sample_case, "age", [1.0, 2.0])
        np.testing.assert_array_equal(first.probabilities(), second.probabilities())

    def test_baseline_excludes_swept_variable(self, simulator, sample_case):
        result = simulator.sweep(sample_case, "age", [1.0, 2.0])
        assert result.baseline == {"trust": 2.0, "employ": 1.0, "hh": 2.0}
        assert result.variable == "age"

    def test_swept_variable_may_be_absent_from_baseline(self, simulator, sample_case):
        baseline = {k: v for k, v in sample_case.items() if k != "age"}
        assert len(simulator.sweep(baseline, "age", [1.0, 2.0])) == 2

    def test_swept_variable_baseline_value_is_not_converted(self, simulator, sample_case):
        # -2 is outside the log1p domain; only grid values reach the model
        baseline = dict(sample_case, age=-2.0)
        result = simulator.sweep(baseline, "age", [1.0, 2.0])
        np.testing.assert_allclose(result.probabilities(), simulator.sweep(sample_case, "age", [1.0, 2.0]).probabilities())

    def test_point_only_model(self, registry, point_only_model, sample_case):
        result = SweepSimulator(registry).sweep(sample_case, "age", [1.0, 2.0], point_only_model)
        assert len(result) == 2


class TestErrors:
    def test_facet_variable_cannot_be_swept(self, simulator, sample_case):
        with pytest.raises(NonAxisVariableError):
            simulator.sweep(sample_case, "employ", [0.0, 1.0])

    def test_unknown_variable(self, simulator, sample_case):
        with pytest.raises(UnknownVariableError):
            simulator.sweep(sample_case, "income", [0.0, 1.0])

    @pytest.mark.parametrize("grid", [[], [3.0]])
    def test_grid_too_small(self, simulator, sample_case, grid):
        with pytest.raises(EmptyGridError):
            simulator.sweep(sample_case, "age", grid)


class TestResultExport:
    def test_to_frame(self, simulator, sample_case):
        frame = simulator.sweep(sample_case, "hh", [1.0, 2.0, 3.0]).to_frame()
        assert list(frame.columns) == ["x", "outcome", "probability"]
        assert len(frame) == 12
        assert list(frame["x"][:4]) == [1.0, 1.0, 1.0, 1.0]

    def test_most_likely(self, simulator, sample_case):
        leaders = simulator.sweep(sample_case, "age", [0.0, 17.0]).most_likely()
        assert leaders[0] == (0.0, "Reunification")
        assert leaders[1] == (17.0, "Emancipation")

    def test_unknown_curve(self, simulator, sample_case):
        with pytest.raises(ConfigurationError):
            simulator.sweep(sample_case, "age", [1.0, 2.0]).curve("Runaway")

    def test_to_dict(self, simulator, sample_case):
        payload = simulator.sweep(sample_case, "age", [1.0, 2.0]).to_dict()
        assert payload["variable"] == "age"
        assert [point["x"] for point in payload["points"]] == [1.0, 2.0]


class TestMetrics:
    def test_counters(self, simulator, metrics, sample_case):
        simulator.sweep(sample_case, "age", [1.0, 2.0, 3.0])
        assert metrics.counter("sweep.calls") == 1
        assert metrics.counter("sweep.points") == 3
