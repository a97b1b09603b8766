"""JSON export for simulation and sweep results."""

from pathlib import Path
import json


def write_result_json(result, output_path: str) -> str:
    """Write any result exposing ``to_dict()``."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(result.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
    return str(path)
