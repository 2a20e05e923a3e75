"""
Record sink for confirmed eel sightings.

One CSV row per report event, plus a JSON summary of the whole run.
"""

import csv
import json
from pathlib import Path
from typing import Iterable

from eeltrack.errors import OutputCreateError
from eeltrack.utils.data_models import CSV_HEADER, EelRecord, RunData


class EelRecordWriter:
    """Append-only CSV writer for EelRecord rows."""

    def __init__(self, output_path: Path | str):
        """
        Create the CSV file and write its header.

        Args:
            output_path: Path for the CSV file

        Raises:
            OutputCreateError: If the file cannot be created
        """
        self.output_path = Path(output_path)
        self.rows_written = 0
        try:
            self._file = open(self.output_path, "w", newline="", encoding="utf8")
        except OSError as e:
            raise OutputCreateError(f"Cannot create record file {self.output_path}: {e}") from e

        self._writer = csv.writer(self._file)
        self._writer.writerow(CSV_HEADER)
        self._file.flush()

    def write(self, records: Iterable[EelRecord]) -> None:
        """Write one frame's records and flush so the file is readable mid-run."""
        for record in records:
            self._writer.writerow(record.to_row())
            self.rows_written += 1
        self._file.flush()

    def close(self):
        self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def read_records(csv_path: Path | str) -> list[EelRecord]:
    """Load records back from a CSV written by EelRecordWriter."""
    with open(csv_path, newline="", encoding="utf8") as f:
        return [
            EelRecord(
                frame_idx=int(row["frame"]),
                timestamp=float(row["timestamp_sec"]),
                track_id=int(row["track_id"]),
                x=float(row["x"]),
                y=float(row["y"]),
            )
            for row in csv.DictReader(f)
        ]


def save_run_summary(run_data: RunData, output_path: Path | str) -> None:
    """Save run metadata and per-eel summaries as JSON."""
    results = {
        "video_path": run_data.video_path,
        "fps": run_data.fps,
        "total_frames": run_data.total_frames,
        "width": run_data.width,
        "height": run_data.height,
        "frames_processed": run_data.frames_processed,
        "eel_count": run_data.eel_count,
        "num_records": len(run_data.records),
        "eels": [],
    }

    for summary in run_data.eel_tracks:
        records = run_data.get_records_for_track(summary.track_id)
        eel = summary.model_dump()
        eel["positions"] = [
            {"frame": r.frame_idx, "timestamp": r.timestamp, "x": r.x, "y": r.y}
            for r in records
        ]
        results["eels"].append(eel)

    with open(output_path, "w") as f:
        json.dump(results, f, indent=2)
