"""Configuration for simulator runs."""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional, Dict
import json
import os


_DEFAULT_DRAW_COUNT = 1000
_DEFAULT_SWEEP_POINTS = 25
_DEFAULT_ROUNDING_FALLBACK = 0.1
_DEFAULT_OUTPUT_DIR = "output"
_DEFAULT_LOG_LEVEL = "INFO"
_DEFAULT_SAMPLING_METHOD = "auto"


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _coerce_float(value: Optional[str], default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _coerce_int(value: Optional[str], default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _coerce_optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_env_file(path: Path) -> Dict[str, str]:
    data: Dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        data[key.strip()] = _strip_quotes(value.strip())
    return data


def _load_config_data(path: Path) -> Dict[str, str]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    if path.suffix.lower() == ".json":
        payload = json.loads(path.read_text(encoding="utf-8"))
        return {str(k): ("" if v is None else str(v)) for k, v in payload.items()}
    return _parse_env_file(path)


@dataclass
class Config:
    # Model inputs
    model_path: str
    variables_path: str

    # Simulation
    draw_count: int = _DEFAULT_DRAW_COUNT
    seed: Optional[int] = None
    sampling_method: str = _DEFAULT_SAMPLING_METHOD

    # Sweep grids built by callers when no custom breaks are configured
    sweep_points: int = _DEFAULT_SWEEP_POINTS

    # Slider rounding when a variable leaves it unset
    rounding_fallback: float = _DEFAULT_ROUNDING_FALLBACK

    # Output
    output_dir: str = _DEFAULT_OUTPUT_DIR
    log_level: str = _DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        if self.draw_count <= 0:
            self.draw_count = _DEFAULT_DRAW_COUNT
        if self.sweep_points < 2:
            self.sweep_points = _DEFAULT_SWEEP_POINTS
        if self.rounding_fallback <= 0:
            self.rounding_fallback = _DEFAULT_ROUNDING_FALLBACK

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            model_path=os.environ.get("MOSIM_MODEL_PATH", ""),
            variables_path=os.environ.get("MOSIM_VARIABLES_PATH", ""),
            draw_count=_coerce_int(os.environ.get("MOSIM_DRAW_COUNT"), _DEFAULT_DRAW_COUNT),
            seed=_coerce_optional_int(os.environ.get("MOSIM_SEED")),
            sampling_method=os.environ.get("MOSIM_SAMPLING_METHOD", _DEFAULT_SAMPLING_METHOD),
            sweep_points=_coerce_int(os.environ.get("MOSIM_SWEEP_POINTS"), _DEFAULT_SWEEP_POINTS),
            rounding_fallback=_coerce_float(
                os.environ.get("MOSIM_ROUNDING_FALLBACK"),
                _DEFAULT_ROUNDING_FALLBACK,
            ),
            output_dir=os.environ.get("MOSIM_OUTPUT_DIR", _DEFAULT_OUTPUT_DIR),
            log_level=os.environ.get("MOSIM_LOG_LEVEL", _DEFAULT_LOG_LEVEL),
        )

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        env_config = cls.from_env()
        if not config_path:
            return env_config

        file_data = _load_config_data(Path(config_path))
        return cls(
            model_path=file_data.get("MOSIM_MODEL_PATH", env_config.model_path),
            variables_path=file_data.get("MOSIM_VARIABLES_PATH", env_config.variables_path),
            draw_count=_coerce_int(file_data.get("MOSIM_DRAW_COUNT"), env_config.draw_count),
            seed=(
                _coerce_optional_int(file_data.get("MOSIM_SEED"))
                if file_data.get("MOSIM_SEED") not in (None, "")
                else env_config.seed
            ),
            sampling_method=file_data.get("MOSIM_SAMPLING_METHOD", env_config.sampling_method),
            sweep_points=_coerce_int(file_data.get("MOSIM_SWEEP_POINTS"), env_config.sweep_points),
            rounding_fallback=_coerce_float(
                file_data.get("MOSIM_ROUNDING_FALLBACK"),
                env_config.rounding_fallback,
            ),
            output_dir=file_data.get("MOSIM_OUTPUT_DIR", env_config.output_dir),
            log_level=file_data.get("MOSIM_LOG_LEVEL", env_config.log_level),
        )

    def to_dict(self) -> Dict[str, str]:
        return {k: str(v) for k, v in asdict(self).items()}
