"""CSV output helpers."""

from typing import List, Dict
from pathlib import Path
import csv

import pandas as pd


def write_rows_csv(rows: List[Dict], output_path: str) -> str:
    """Write dict rows to CSV; the header is the union of keys in first-seen order."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if not rows:
        path.write_text("", encoding="utf-8")
        return str(path)

    fieldnames = list(rows[0].keys())
    for row in rows[1:]:
        for key in row.keys():
            if key not in fieldnames:
                fieldnames.append(key)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)
    return str(path)


def write_frame_csv(frame: pd.DataFrame, output_path: str) -> str:
    """Write a long-format result frame (dot cloud or ribbon) to CSV."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, index=False)
    return str(path)
