"""
Unit tests for mosim/models/outcomes.py
"""

import pytest

from mosim.exceptions import ConfigurationError
from mosim.models.outcomes import DEFAULT_OUTCOME_COLORS, OutcomeSet


def test_reference_is_first_label(outcomes):
    assert outcomes.reference == "Reunification"
    assert outcomes.non_reference == ("Adoption", "Guardianship", "Emancipation")
    assert len(outcomes) == 4
    assert list(outcomes) == ["Reunification", "Adoption", "Guardianship", "Emancipation"]


def test_index(outcomes):
    assert outcomes.index("Guardianship") == 2
    with pytest.raises(ConfigurationError):
        outcomes.index("Unknown")


def test_default_colors_follow_level_order(outcomes):
    colors = outcomes.color_map()
    assert colors["Reunification"] == DEFAULT_OUTCOME_COLORS[0]
    assert colors["Emancipation"] == DEFAULT_OUTCOME_COLORS[3]


def test_custom_colors():
    outcome_set = OutcomeSet.of(["Stay", "Leave"], colors=["#000000", "#FFFFFF"])
    assert outcome_set.color_map() == {"Stay": "#000000", "Leave": "#FFFFFF"}


def test_too_few_colors():
    with pytest.raises(ConfigurationError):
        OutcomeSet.of(["A", "B", "C"], colors=["#000000"])


def test_needs_two_outcomes():
    with pytest.raises(ConfigurationError):
        OutcomeSet.of(["Only"])


def test_duplicates_rejected():
    with pytest.raises(ConfigurationError):
        OutcomeSet.of(["A", "B", "A"])


def test_from_config_mapping():
    outcome_set = OutcomeSet.from_config({
        "outcomes": ["Reunification", "Adoption"],
        "outcome_colors": ["#D9BB32", "#6DB33F", "#6E9CAE"],
    })
    assert outcome_set.labels == ("Reunification", "Adoption")
    assert outcome_set.to_dict()["outcome_colors"] == ["#D9BB32", "#6DB33F", "#6E9CAE"]


def test_from_config_without_labels():
    with pytest.raises(ConfigurationError):
        OutcomeSet.from_config({"outcome_colors": ["#D9BB32"]})
