"""
Unit tests for mosim/config.py
"""

import json

import pytest

from mosim.config import Config


ENV_KEYS = [
    "MOSIM_MODEL_PATH",
    "MOSIM_VARIABLES_PATH",
    "MOSIM_DRAW_COUNT",
    "MOSIM_SEED",
    "MOSIM_SAMPLING_METHOD",
    "MOSIM_SWEEP_POINTS",
    "MOSIM_ROUNDING_FALLBACK",
    "MOSIM_OUTPUT_DIR",
    "MOSIM_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    config = Config.from_env()
    assert config.model_path == ""
    assert config.draw_count == 1000
    assert config.seed is None
    assert config.sampling_method == "auto"
    assert config.sweep_points == 25
    assert config.rounding_fallback == 0.1
    assert config.output_dir == "output"


def test_from_env(monkeypatch):
    monkeypatch.setenv("MOSIM_MODEL_PATH", "model.json")
    monkeypatch.setenv("MOSIM_DRAW_COUNT", "250")
    monkeypatch.setenv("MOSIM_SEED", "7")
    monkeypatch.setenv("MOSIM_ROUNDING_FALLBACK", "0.5")
    config = Config.from_env()
    assert config.model_path == "model.json"
    assert config.draw_count == 250
    assert config.seed == 7
    assert config.rounding_fallback == 0.5


def test_bad_values_fall_back(monkeypatch):
    monkeypatch.setenv("MOSIM_DRAW_COUNT", "lots")
    monkeypatch.setenv("MOSIM_SEED", "abc")
    monkeypatch.setenv("MOSIM_SWEEP_POINTS", "1")
    config = Config.from_env()
    assert config.draw_count == 1000
    assert config.seed is None
    assert config.sweep_points == 25


def test_non_positive_draw_count_reset():
    assert Config(model_path="", variables_path="", draw_count=0).draw_count == 1000


def test_load_env_file(tmp_path, monkeypatch):
    monkeypatch.setenv("MOSIM_DRAW_COUNT", "300")
    env_file = tmp_path / "mosim.env"
    env_file.write_text(
        "# simulator settings\n"
        "MOSIM_VARIABLES_PATH='configs/cos_variables.json'\n"
        "MOSIM_SEED=11\n",
        encoding="utf-8",
    )
    config = Config.load(str(env_file))
    assert config.variables_path == "configs/cos_variables.json"
    assert config.seed == 11
    assert config.draw_count == 300


def test_load_json_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"MOSIM_SWEEP_POINTS": 40, "MOSIM_OUTPUT_DIR": "runs"}), encoding="utf-8")
    config = Config.load(str(path))
    assert config.sweep_points == 40
    assert config.output_dir == "runs"


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config.load(str(tmp_path / "missing.env"))


def test_to_dict_is_all_strings():
    payload = Config(model_path="m.json", variables_path="v.json", seed=3).to_dict()
    assert payload["seed"] == "3"
    assert all(isinstance(v, str) for v in payload.values())
