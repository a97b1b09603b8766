"""Result export."""

from mosim.reporting.csv_output import write_frame_csv, write_rows_csv
from mosim.reporting.json_output import write_result_json

__all__ = ["write_frame_csv", "write_rows_csv", "write_result_json"]
