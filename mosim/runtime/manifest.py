"""Run manifest for reproducing a simulate/sweep/fit invocation."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional
import json
import uuid


@dataclass
class RunManifest:
    command: str
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    seed: Optional[int] = None
    config_hash: Optional[str] = None
    model_path: Optional[str] = None
    parameters: Dict[str, object] = field(default_factory=dict)
    outputs: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "command": self.command,
            "started_at": self.started_at.isoformat(),
            "seed": self.seed,
            "config_hash": self.config_hash,
            "model_path": self.model_path,
            "parameters": dict(self.parameters),
            "outputs": dict(self.outputs),
        }

    def write(self, output_dir: Path) -> Path:
        output_dir.mkdir(parents=True, exist_ok=True)
        manifest_path = output_dir / f"manifest_{self.run_id}.json"
        self.outputs["manifest"] = str(manifest_path)
        manifest_path.write_text(
            json.dumps(self.to_dict(), indent=2, sort_keys=True, default=str),
            encoding="utf-8",
        )
        return manifest_path
