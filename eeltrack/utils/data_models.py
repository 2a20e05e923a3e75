"""
Pydantic data models for the eel tracking system.

Defines structured data types for blob detections, report events, and run summaries.
"""

from typing import Optional
from pydantic import BaseModel, Field
import numpy as np


CSV_HEADER = ["frame", "timestamp_sec", "track_id", "x", "y"]


class OrientedBox(BaseModel):
    """Rotated rectangle in pixel coordinates (OpenCV RotatedRect convention)."""
    cx: float
    cy: float
    width: float
    height: float
    angle: float = 0.0  # degrees

    @property
    def center(self) -> tuple[float, float]:
        return (self.cx, self.cy)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def aspect_ratio(self) -> float:
        """Short side over long side, 0 for degenerate boxes."""
        long_side = max(self.width, self.height)
        if long_side <= 0:
            return 0.0
        return min(self.width, self.height) / long_side

    def to_cv(self) -> tuple[tuple[float, float], tuple[float, float], float]:
        """Convert to the ((cx, cy), (w, h), angle) tuple OpenCV expects."""
        return ((self.cx, self.cy), (self.width, self.height), self.angle)

    @classmethod
    def from_cv(cls, rect) -> "OrientedBox":
        (cx, cy), (w, h), angle = rect
        return cls(cx=float(cx), cy=float(cy), width=float(w), height=float(h), angle=float(angle))


class Detection(BaseModel):
    """Single candidate blob in a frame."""
    frame_idx: int
    centroid: tuple[float, float]
    box: OrientedBox
    area: float = 0.0
    contour: Optional[np.ndarray] = None  # contour points, only used for rendering

    class Config:
        arbitrary_types_allowed = True


class EelRecord(BaseModel):
    """Report event emitted for a confirmed eel track on a matched frame."""
    frame_idx: int
    timestamp: float  # seconds from video start
    track_id: int
    x: float
    y: float

    def to_row(self) -> list:
        """Convert to a CSV row in CSV_HEADER order."""
        return [self.frame_idx, self.timestamp, self.track_id, self.x, self.y]


class TrackSummary(BaseModel):
    """Lifetime summary of a track that was confirmed as an eel."""
    track_id: int
    start_frame: int
    last_frame_seen: int
    frames_tracked: int
    is_eel: bool = False
    confirmed_frame: Optional[int] = None


class RunData(BaseModel):
    """Complete results of one processing run."""
    video_path: str
    fps: float
    total_frames: int
    width: int
    height: int

    frames_processed: int = 0
    eel_count: int = 0
    records: list[EelRecord] = Field(default_factory=list)
    eel_tracks: list[TrackSummary] = Field(default_factory=list)

    def get_records_for_track(self, track_id: int) -> list[EelRecord]:
        """Get all report events of one track, in frame order."""
        return [r for r in self.records if r.track_id == track_id]
