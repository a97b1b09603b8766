"""
Unit tests for mosim/models/fitted.py
"""

import json

import pytest
import numpy as np

from mosim.exceptions import ConfigurationError
from mosim.models import FittedModel, Formula, OutcomeSet


class TestConstruction:
    """Shape checks and immutability."""

    def test_arrays_are_read_only(self, model):
        with pytest.raises(ValueError):
            model.coefficients[0, 0] = 5.0
        with pytest.raises(ValueError):
            model.covariance[0, 0] = 5.0

    def test_input_array_is_copied(self, outcomes, coefficients):
        formula = Formula.parse("outcome ~ age + trust + employ + hh")
        fitted = FittedModel(outcomes, formula.predictors, coefficients, formula=formula)
        coefficients[0, 0] = 99.0
        assert fitted.coefficients[0, 0] == -0.5

    def test_coefficient_shape(self, outcomes):
        with pytest.raises(ConfigurationError):
            FittedModel(outcomes, ("(Intercept)", "x"), np.zeros((2, 2)))

    def test_covariance_shape(self, outcomes):
        with pytest.raises(ConfigurationError):
            FittedModel(outcomes, ("(Intercept)",), np.zeros((3, 1)), covariance=np.eye(2))

    def test_ensemble_shape(self, outcomes):
        with pytest.raises(ConfigurationError):
            FittedModel(outcomes, ("(Intercept)",), np.zeros((3, 1)), ensemble=np.zeros((4, 3, 2)))

    def test_predictors_must_match_formula(self, outcomes):
        with pytest.raises(ConfigurationError):
            FittedModel(
                outcomes,
                ("(Intercept)", "b"),
                np.zeros((3, 2)),
                formula=Formula.parse("y ~ a"),
            )

    def test_uncertainty_method(self, model, point_only_model):
        assert model.uncertainty_method == "covariance"
        assert point_only_model.uncertainty_method is None
        ensemble = np.stack([model.coefficients, model.coefficients])
        assert model.with_ensemble(ensemble).uncertainty_method == "ensemble"


class TestAccessors:
    def test_coefficient_lookup(self, model):
        assert model.coefficient("Emancipation", "age") == 1.2
        assert model.coefficient("Adoption", "(Intercept)") == -0.5

    def test_reference_has_no_coefficients(self, model):
        with pytest.raises(ConfigurationError):
            model.coefficient("Reunification", "age")

    def test_unknown_predictor(self, model):
        with pytest.raises(ConfigurationError):
            model.coefficient("Adoption", "income")

    def test_standard_errors(self, model, point_only_model):
        np.testing.assert_allclose(model.standard_errors(), np.full((3, 5), 0.1))
        assert point_only_model.standard_errors() is None

    def test_coefficient_frame(self, model):
        frame = model.coefficient_frame()
        assert list(frame.columns) == ["outcome", "predictor", "estimate", "std_error"]
        assert len(frame) == 15
        row = frame[(frame["outcome"] == "Emancipation") & (frame["predictor"] == "age")].iloc[0]
        assert row["estimate"] == 1.2
        assert row["std_error"] == pytest.approx(0.1)


class TestSerialisation:
    def test_save_and_load(self, model, tmp_path):
        path = model.save_json(tmp_path / "models" / "model.json")
        loaded = FittedModel.load_json(path)
        assert loaded.outcomes.labels == model.outcomes.labels
        assert loaded.predictors == model.predictors
        assert str(loaded.formula) == str(model.formula)
        np.testing.assert_array_equal(loaded.coefficients, model.coefficients)
        np.testing.assert_array_equal(loaded.covariance, model.covariance)
        assert loaded.ensemble is None

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FittedModel.load_json(tmp_path / "nope.json")

    def test_missing_field(self, tmp_path):
        path = tmp_path / "model.json"
        path.write_text(json.dumps({"outcomes": ["A", "B"]}), encoding="utf-8")
        with pytest.raises(ConfigurationError):
            FittedModel.load_json(path)

    def test_predictors_from_formula(self):
        payload = {
            "outcomes": {"outcomes": ["A", "B"]},
            "formula": "y ~ x",
            "coefficients": [[0.5, -1.0]],
        }
        fitted = FittedModel.from_dict(payload)
        assert fitted.predictors == ("(Intercept)", "x")
        assert fitted.outcomes == OutcomeSet.of(["A", "B"])
