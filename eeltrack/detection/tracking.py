"""
Greedy nearest-neighbour blob tracking with eel confirmation.

Each live track picks the closest still-unassigned detection in track creation
order. Tracks that keep moving for more than `min_frames_eel` matched frames are
confirmed as eels and reported on every frame they match afterwards. Tracks not
seen for more than `max_frames_missed` frames are dropped and their ids retired.
"""

import math
from typing import Literal, Optional
from dataclasses import dataclass, field

from eeltrack.utils.data_models import Detection, EelRecord, TrackSummary


@dataclass
class Track:
    """Single blob track."""
    track_id: int
    position: tuple[float, float]
    frames_tracked: int = 1
    last_frame_seen: int = 0
    start_frame: int = 0
    is_eel: bool = False
    confirmed_frame: Optional[int] = None

    def summary(self) -> TrackSummary:
        return TrackSummary(
            track_id=self.track_id,
            start_frame=self.start_frame,
            last_frame_seen=self.last_frame_seen,
            frames_tracked=self.frames_tracked,
            is_eel=self.is_eel,
            confirmed_frame=self.confirmed_frame,
        )


@dataclass
class TrackUpdate:
    """What happened to one track this frame, for rendering."""
    track_id: int
    position: tuple[float, float]
    detection_index: int
    status: Literal["matched", "created"]
    is_eel: bool = False
    just_confirmed: bool = False


@dataclass
class FrameResult:
    """Output of one tracker update."""
    frame_idx: int
    timestamp: float
    updates: list[TrackUpdate] = field(default_factory=list)
    records: list[EelRecord] = field(default_factory=list)
    assigned: list[bool] = field(default_factory=list)
    removed_ids: list[int] = field(default_factory=list)

    @property
    def eel_updates(self) -> list[TrackUpdate]:
        return [u for u in self.updates if u.is_eel]


def _dist(a: tuple[float, float], b: tuple[float, float]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


class EelTracker:
    """
    Frame-sequential multi-blob tracker.

    Tracks are kept in an insertion-ordered dict so association is
    reproducible: earlier tracks always get first pick of the detections.
    """

    def __init__(
        self,
        frame_width: int,
        min_motion_distance: float = 2.0,
        min_frames_eel: int = 5,
        max_frames_missed: int = 50,
        gate_fraction: float = 0.25,
    ):
        """
        Initialize EelTracker.

        Args:
            frame_width: Width of the video frames in pixels, scales the association gate
            min_motion_distance: Matches closer than this are treated as a static object
                                 (detection consumed, track not updated)
            min_frames_eel: A track is confirmed once frames_tracked exceeds this
            max_frames_missed: Frames a track may go unmatched before it is dropped
            gate_fraction: Association gate as a fraction of frame_width
        """
        self.frame_width = frame_width
        self.min_motion_distance = min_motion_distance
        self.min_frames_eel = min_frames_eel
        self.max_frames_missed = max_frames_missed
        self.gate_fraction = gate_fraction

        self.tracks: dict[int, Track] = {}
        self.eel_history: dict[int, Track] = {}

        self.frame_idx = 0
        self.next_id = 1
        self.eel_count = 0

    @property
    def gate_distance(self) -> float:
        return self.frame_width * self.gate_fraction

    def reset(self) -> None:
        """Clear all tracker state and restart IDs."""
        self.tracks = {}
        self.eel_history = {}
        self.frame_idx = 0
        self.next_id = 1
        self.eel_count = 0

    def _get_next_id(self) -> int:
        """Get next unique track ID."""
        track_id = self.next_id
        self.next_id += 1
        return track_id

    def update(
        self,
        detections: list[Detection],
        frame_idx: int,
        timestamp: float = 0.0,
    ) -> FrameResult:
        """
        Update tracker with one frame of detections.

        Args:
            detections: Candidate blobs in detector order (may be empty)
            frame_idx: Current frame number
            timestamp: Frame presentation time in seconds, copied into reports

        Returns:
            FrameResult with per-track updates, report events, and the
            assigned/unassigned partition of the detections
        """
        self.frame_idx = frame_idx
        result = FrameResult(frame_idx=frame_idx, timestamp=timestamp)
        centers = [d.centroid for d in detections]

        result.assigned = self._associate(centers, result)
        self._create_tracks(centers, result)
        result.removed_ids = self._prune()

        return result

    def _associate(
        self,
        centers: list[tuple[float, float]],
        result: FrameResult,
    ) -> list[bool]:
        """Greedy per-track nearest-neighbour matching."""
        assigned = [False] * len(centers)

        for track in self.tracks.values():
            best_idx = -1
            min_dist = math.inf
            for i, center in enumerate(centers):
                if assigned[i]:
                    continue
                d = _dist(track.position, center)
                # Strict comparison: first enumerated wins ties
                if d < min_dist:
                    min_dist = d
                    best_idx = i

            if best_idx == -1 or min_dist >= self.gate_distance:
                continue

            assigned[best_idx] = True
            if min_dist < self.min_motion_distance:
                # Static blob (debris, reflections): swallow it without crediting the track
                continue

            track.position = centers[best_idx]
            track.last_frame_seen = self.frame_idx
            track.frames_tracked += 1

            update = TrackUpdate(
                track_id=track.track_id,
                position=track.position,
                detection_index=best_idx,
                status="matched",
            )
            self._confirm(track, update, result)
            result.updates.append(update)

        return assigned

    def _confirm(self, track: Track, update: TrackUpdate, result: FrameResult) -> None:
        """Promote a matched track to eel and emit its report event."""
        if not (track.frames_tracked > self.min_frames_eel or track.is_eel):
            return

        if not track.is_eel:
            track.is_eel = True
            track.confirmed_frame = self.frame_idx
            self.eel_count += 1
            self.eel_history[track.track_id] = track
            update.just_confirmed = True

        update.is_eel = True
        result.records.append(
            EelRecord(
                frame_idx=self.frame_idx,
                timestamp=result.timestamp,
                track_id=track.track_id,
                x=float(track.position[0]),
                y=float(track.position[1]),
            )
        )

    def _create_tracks(
        self,
        centers: list[tuple[float, float]],
        result: FrameResult,
    ) -> None:
        """Start a new tentative track for every unassigned detection."""
        for i, center in enumerate(centers):
            if result.assigned[i]:
                continue
            track = Track(
                track_id=self._get_next_id(),
                position=center,
                frames_tracked=1,
                last_frame_seen=self.frame_idx,
                start_frame=self.frame_idx,
            )
            self.tracks[track.track_id] = track
            result.updates.append(
                TrackUpdate(
                    track_id=track.track_id,
                    position=center,
                    detection_index=i,
                    status="created",
                )
            )

    def _prune(self) -> list[int]:
        """Drop tracks unseen for more than max_frames_missed frames."""
        survivors = {
            tid: t for tid, t in self.tracks.items()
            if self.frame_idx - t.last_frame_seen <= self.max_frames_missed
        }
        removed = [tid for tid in self.tracks if tid not in survivors]
        self.tracks = survivors
        return removed

    def get_active_tracks(self) -> list[Track]:
        """Get all live tracks in association order."""
        return list(self.tracks.values())

    def get_eel_summaries(self) -> list[TrackSummary]:
        """Summaries of every track ever confirmed, live or pruned."""
        return [t.summary() for t in self.eel_history.values()]
