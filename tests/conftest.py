"""Ensure tests can import the package and CLI from the repo root without installation."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import numpy as np
import pytest


def pytest_configure() -> None:
    root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(root))


@pytest.fixture()
def write_video(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing RGB frames to an mpeg4 file in tmp_path."""
    from eeltrack.utils.video_io import VideoWriter

    def _write(frames: list[np.ndarray], name: str = "clip.mp4", fps: float = 10.0) -> Path:
        height, width = frames[0].shape[:2]
        path = tmp_path / name
        with VideoWriter(path, width, height, fps, codec="mpeg4", crf=None) as writer:
            for frame in frames:
                writer.write_frame(frame)
        return path

    return _write


@pytest.fixture()
def blank_frames() -> Callable[..., list[np.ndarray]]:
    def _frames(count: int, width: int = 96, height: int = 64, value: int = 30) -> list[np.ndarray]:
        return [np.full((height, width, 3), value, dtype=np.uint8) for _ in range(count)]

    return _frames
