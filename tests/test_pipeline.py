"""End-to-end pipeline runs on synthetic video with a scripted detector."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from eeltrack.errors import OutputCreateError, VideoOpenError
from eeltrack.pipeline import Pipeline
from eeltrack.utils.data_models import Detection, OrientedBox
from eeltrack.utils.records import read_records
from eeltrack.cli import deep_merge, load_config


class ScriptedDetector:
    """Stands in for BlobDetector: one blob moving 5 px right per frame."""

    def __init__(self, static: bool = False):
        self.static = static
        self.calls: list[int] = []

    def detect(self, frame, frame_idx: int = 0) -> list[Detection]:
        self.calls.append(frame_idx)
        x = 20.0 if self.static else 10.0 + 5.0 * frame_idx
        return [
            Detection(
                frame_idx=frame_idx,
                centroid=(x, 32.0),
                box=OrientedBox(cx=x, cy=32.0, width=30.0, height=6.0),
            )
        ]


def _config() -> dict:
    return deep_merge(load_config(None), {"output": {"codec": "mpeg4", "crf": None}})


def test_pipeline_reports_confirmed_eel_every_frame_after_confirmation(
    tmp_path: Path, write_video, blank_frames
) -> None:
    video = write_video(blank_frames(12, width=128, height=64))
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    pipeline = Pipeline(_config(), out_dir)
    pipeline._detector = ScriptedDetector()
    run = pipeline.run(video)

    # 1-based frame numbers
    assert pipeline._detector.calls == list(range(1, 13))
    assert run.frames_processed == 12
    assert run.eel_count == 1
    assert [r.frame_idx for r in run.records] == list(range(6, 13))
    assert {r.track_id for r in run.records} == {1}

    csv_records = read_records(pipeline.csv_path)
    assert csv_records == run.records
    assert csv_records[0].x == pytest.approx(40.0)
    assert csv_records[0].timestamp == pytest.approx(0.5, abs=1e-3)

    summary = json.loads(pipeline.summary_path.read_text())
    assert summary["eel_count"] == 1
    assert summary["frames_processed"] == 12
    assert summary["eels"][0]["confirmed_frame"] == 6

    assert pipeline.video_path.exists()
    assert pipeline.video_path.stat().st_size > 0


def test_pipeline_static_blob_produces_no_reports(
    tmp_path: Path, write_video, blank_frames
) -> None:
    video = write_video(blank_frames(10, width=128, height=64))
    pipeline = Pipeline(_config(), tmp_path)
    pipeline._detector = ScriptedDetector(static=True)
    run = pipeline.run(video)

    assert run.eel_count == 0
    assert run.records == []
    assert pipeline.csv_path.read_text(encoding="utf8").splitlines() == ["frame,timestamp_sec,track_id,x,y"]


def test_tracker_is_rebuilt_for_each_run(tmp_path: Path, write_video, blank_frames) -> None:
    video = write_video(blank_frames(8, width=128, height=64))
    pipeline = Pipeline(_config(), tmp_path)

    pipeline._detector = ScriptedDetector()
    pipeline.run(video)
    first = pipeline.tracker

    pipeline._detector = ScriptedDetector()
    run = pipeline.run(video)

    assert pipeline.tracker is not first
    assert pipeline.tracker.gate_distance == 128 * 0.25
    assert {r.track_id for r in run.records} == {1}


def test_pipeline_with_real_detector_on_empty_scene(tmp_path: Path, write_video, blank_frames) -> None:
    video = write_video(blank_frames(6, width=128, height=64))
    run = Pipeline(_config(), tmp_path).run(video)
    assert run.frames_processed == 6
    assert run.records == []


def test_missing_video_fails_before_processing(tmp_path: Path) -> None:
    with pytest.raises(VideoOpenError):
        Pipeline(_config(), tmp_path).run(tmp_path / "nope.mp4")


def test_missing_output_directory_fails_before_processing(
    tmp_path: Path, write_video, blank_frames
) -> None:
    video = write_video(blank_frames(3))
    pipeline = Pipeline(_config(), tmp_path / "missing")
    pipeline._detector = ScriptedDetector()
    with pytest.raises(OutputCreateError):
        pipeline.run(video)
    assert pipeline._detector.calls == []


def test_tracking_thresholds_come_from_config(tmp_path: Path, write_video, blank_frames) -> None:
    video = write_video(blank_frames(4, width=128, height=64))
    config = deep_merge(_config(), {"tracking": {"min_frames_eel": 1}})
    pipeline = Pipeline(config, tmp_path)
    pipeline._detector = ScriptedDetector()
    run = pipeline.run(video)

    assert pipeline.tracker.min_frames_eel == 1
    assert [r.frame_idx for r in run.records] == [2, 3, 4]
