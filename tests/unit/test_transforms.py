"""
Unit tests for mosim/variables/transforms.py

Covers the named transform pairs, their domains and how they are built
from configuration entries.
"""

import math

import pytest
import numpy as np

from mosim.exceptions import ConfigurationError, DomainError
from mosim.variables.transforms import (
    IDENTITY,
    Transform,
    build_transform,
    describe_transform,
)


class TestNamedTransforms:
    """Tests for the built-in transform kinds."""

    def test_identity_passes_values_through(self):
        assert IDENTITY.to_display(3.5) == 3.5
        assert IDENTITY.to_model(-2.0) == -2.0

    def test_negate(self):
        negate = Transform("negate")
        assert negate.to_display(2.0) == -2.0
        assert negate.to_model(-4.0) == 4.0

    def test_log_pair(self):
        log = Transform("log")
        assert log.to_display(0.0) == pytest.approx(1.0)
        assert log.to_model(math.e) == pytest.approx(1.0)

    def test_log1p_pair_maps_age_back_to_years(self):
        log1p = Transform("log1p")
        assert log1p.to_model(0.0) == 0.0
        assert log1p.to_display(np.log1p(12.0)) == pytest.approx(12.0)

    def test_affine(self):
        affine = Transform("affine", scale=2.0, shift=1.0)
        assert affine.to_display(3.0) == pytest.approx(7.0)
        assert affine.to_model(7.0) == pytest.approx(3.0)

    def test_custom_callables(self):
        cube = Transform("custom", display_fn=lambda x: x ** 3, model_fn=np.cbrt)
        assert cube.to_display(2.0) == pytest.approx(8.0)
        assert cube.to_model(27.0) == pytest.approx(3.0)

    @pytest.mark.parametrize("kind", ["identity", "negate", "log", "log1p"])
    def test_inverse_pair(self, kind):
        transform = Transform(kind)
        for value in (0.5, 1.0, 7.25):
            assert transform.to_model(transform.to_display(value)) == pytest.approx(value)

    def test_scalar_input_returns_float(self):
        assert isinstance(Transform("log1p").to_model(3), float)

    def test_array_input_is_element_wise(self):
        result = Transform("log1p").to_model(np.array([0.0, 1.0, 3.0]))
        assert isinstance(result, np.ndarray)
        np.testing.assert_allclose(result, np.log1p([0.0, 1.0, 3.0]))


class TestDomain:
    """Out-of-domain values raise DomainError."""

    def test_log_rejects_non_positive(self):
        with pytest.raises(DomainError) as exc:
            Transform("log").to_model(0.0, variable="log_par_age")
        assert exc.value.variable == "log_par_age"
        assert exc.value.transform == "log"

    def test_log1p_rejects_minus_one(self):
        with pytest.raises(DomainError):
            Transform("log1p").to_model(-1.0)

    def test_array_with_one_bad_value(self):
        with pytest.raises(DomainError):
            Transform("log").to_model(np.array([1.0, 2.0, -3.0]))

    def test_non_finite_input(self):
        with pytest.raises(DomainError):
            IDENTITY.to_display(float("nan"))
        with pytest.raises(DomainError):
            Transform("negate").to_model(float("inf"))

    def test_overflowing_output(self):
        with pytest.raises(DomainError):
            Transform("log").to_display(1e6)

    def test_non_numeric_input(self):
        with pytest.raises(DomainError):
            IDENTITY.to_model("high")


class TestBuildTransform:
    """Tests for building transforms from configuration entries."""

    def test_none_is_identity(self):
        assert build_transform(None) is IDENTITY

    def test_by_name(self):
        assert build_transform("log1p").kind == "log1p"
        assert build_transform(" Negate ").kind == "negate"

    def test_aliases(self):
        assert build_transform("exp").kind == "log"
        assert build_transform("expm1").kind == "log1p"
        assert build_transform("negation").kind == "negate"

    def test_affine_mapping(self):
        transform = build_transform({"kind": "affine", "scale": 10, "shift": -5})
        assert transform.scale == 10.0
        assert transform.shift == -5.0

    def test_unknown_kind(self):
        with pytest.raises(ConfigurationError):
            build_transform("sqrt")

    def test_affine_by_name_needs_parameters(self):
        with pytest.raises(ConfigurationError):
            build_transform("affine")

    def test_zero_scale_rejected(self):
        with pytest.raises(ConfigurationError):
            build_transform({"kind": "affine", "scale": 0})

    def test_describe_round_trips_through_build(self):
        transform = Transform("affine", scale=2.0, shift=3.0)
        assert build_transform(describe_transform(transform)) == transform

    def test_custom_cannot_be_described(self):
        custom = Transform("custom", display_fn=np.exp, model_fn=np.log)
        with pytest.raises(ConfigurationError):
            describe_transform(custom)
