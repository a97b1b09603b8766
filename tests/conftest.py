"""
Pytest configuration and shared fixtures for outcome simulator tests.
"""

import pytest
import pandas as pd
import numpy as np

from mosim.engine import OutcomeSimulator
from mosim.models import FittedModel, Formula, OutcomeSet
from mosim.ops import InMemoryMetricsRecorder
from mosim.variables import VariableRegistry


OUTCOMES = ["Reunification", "Adoption", "Guardianship", "Emancipation"]
FORMULA = "outcome ~ age + trust + employ + hh"


@pytest.fixture
def variable_table():
    """Small declarative variable table covering every transform role."""
    return {
        "variables": {
            "age": {
                "pretty_name": "Child Age at Episode Begin",
                "x_axis_candidate": True,
                "slider_candidate": True,
                "slider_rounding": 1,
                "facet_candidate": False,
                "transform": "log1p",
            },
            "trust": {
                "pretty_name": "Parent Trusts Case Worker",
                "custom_x_labels": ["very low", "low", "moderate", "high", "very high"],
                "x_axis_candidate": True,
                "slider_candidate": True,
                "slider_rounding": 1,
                "facet_candidate": False,
                "transform": "negate",
            },
            "employ": {
                "pretty_name": "Parental Employment Status",
                "x_axis_candidate": False,
                "slider_candidate": False,
                "slider_rounding": "NA",
                "facet_candidate": True,
                "transform": "identity",
            },
            "hh": {
                "pretty_name": "Number of Children in the Household",
                "custom_x_breaks": [1, 2, 3, 4, 5],
                "x_axis_candidate": True,
                "slider_candidate": True,
                "slider_rounding": None,
                "facet_candidate": False,
            },
        }
    }


@pytest.fixture
def registry(variable_table):
    return VariableRegistry.from_dict(variable_table)


@pytest.fixture
def outcomes():
    return OutcomeSet.of(OUTCOMES)


@pytest.fixture
def coefficients():
    """(K-1, P) weights; Emancipation rises fastest with age."""
    return np.array([
        # (Intercept), age, trust, employ, hh
        [-0.5, -0.3, -0.2, -0.4, 0.1],   # Adoption
        [-1.0, 0.1, -0.1, 0.0, 0.0],     # Guardianship
        [-3.0, 1.2, 0.0, -0.2, 0.0],     # Emancipation
    ])


@pytest.fixture
def model(outcomes, coefficients):
    formula = Formula.parse(FORMULA)
    return FittedModel(
        outcomes=outcomes,
        predictors=formula.predictors,
        coefficients=coefficients,
        covariance=np.eye(coefficients.size) * 0.01,
        formula=formula,
    )


@pytest.fixture
def point_only_model(outcomes, coefficients):
    """Model without any uncertainty representation."""
    formula = Formula.parse(FORMULA)
    return FittedModel(
        outcomes=outcomes,
        predictors=formula.predictors,
        coefficients=coefficients,
        formula=formula,
    )


@pytest.fixture
def metrics():
    return InMemoryMetricsRecorder()


@pytest.fixture
def simulator(model, registry, metrics):
    return OutcomeSimulator(model, registry, metrics=metrics)


@pytest.fixture
def sample_case():
    """Display-space case description."""
    return {"age": 5.0, "trust": 2.0, "employ": 1.0, "hh": 2.0}


@pytest.fixture
def sample_frame():
    """Model-space dataset with the formula variables and an outcome column."""
    rng = np.random.default_rng(11)
    n = 400
    return pd.DataFrame({
        "age": np.log1p(rng.uniform(0, 17, size=n)),
        "trust": -rng.uniform(1, 5, size=n),
        "employ": rng.integers(0, 2, size=n).astype(float),
        "hh": rng.integers(1, 7, size=n).astype(float),
        "outcome": rng.choice(OUTCOMES, size=n),
    })
