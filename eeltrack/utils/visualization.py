"""
Visualization utilities for the annotated output video.

Draws candidate contours, track ids, and boxes around confirmed eels.
"""

from typing import Optional
import numpy as np
import cv2
import supervision as sv

from eeltrack.utils.data_models import Detection, OrientedBox
from eeltrack.detection.tracking import FrameResult, TrackUpdate


# Colors (BGR format for OpenCV)
CONTOUR_COLOR = (255, 0, 0)    # Blue
TRACK_COLOR = (0, 0, 255)      # Red
ID_TEXT_COLOR = (255, 255, 255)
EEL_COLOR = (0, 255, 0)        # Green

LABEL_FONT = cv2.FONT_HERSHEY_SIMPLEX
LABEL_SCALE = 0.5
LABEL_THICKNESS = 1
LABEL_GAP = 5


def bounding_rect(box: OrientedBox) -> tuple[int, int, int, int]:
    """Axis-aligned (x, y, w, h) rectangle enclosing an oriented box."""
    points = cv2.boxPoints(box.to_cv())
    x, y, w, h = cv2.boundingRect(np.round(points).astype(np.int32))
    return x, y, w, h


def label_origin(rect: tuple[int, int, int, int], label: str) -> tuple[int, int]:
    """Text origin that centres the label horizontally, LABEL_GAP px below rect."""
    x, y, w, h = rect
    (text_w, text_h), _ = cv2.getTextSize(label, LABEL_FONT, LABEL_SCALE, LABEL_THICKNESS)
    return x + (w - text_w) // 2, y + h + text_h + LABEL_GAP


def draw_contours(frame: np.ndarray, detections: list[Detection]) -> np.ndarray:
    """Outline every candidate blob that has a contour."""
    contours = [d.contour for d in detections if d.contour is not None]
    if contours:
        cv2.drawContours(frame, contours, -1, CONTOUR_COLOR, 2)
    return frame


def draw_track_marker(frame: np.ndarray, update: TrackUpdate) -> np.ndarray:
    """Red centre dot with the track id to its right."""
    x, y = int(update.position[0]), int(update.position[1])
    cv2.circle(frame, (x, y), 3, TRACK_COLOR, -1)
    cv2.putText(
        frame,
        f"id :{update.track_id}",
        (x + 10, y),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.5,
        ID_TEXT_COLOR,
        1,
    )
    return frame


def draw_eel_boxes(
    frame: np.ndarray,
    boxes: list[OrientedBox],
    label: str = "Eel",
) -> np.ndarray:
    """
    Draw green boxes around confirmed eels with the label centred below.

    Args:
        frame: BGR numpy array
        boxes: Oriented boxes of the detections matched by confirmed tracks
        label: Text drawn under each box

    Returns:
        Annotated frame
    """
    if not boxes:
        return frame

    xyxy = []
    for box in boxes:
        x, y, w, h = bounding_rect(box)
        xyxy.append([x, y, x + w, y + h])

    detections = sv.Detections(xyxy=np.array(xyxy, dtype=np.float32))
    color = sv.Color(EEL_COLOR[2], EEL_COLOR[1], EEL_COLOR[0])  # BGR -> RGB

    frame = sv.BoxAnnotator(
        color=color, thickness=2, color_lookup=sv.ColorLookup.INDEX
    ).annotate(frame, detections)

    for x1, y1, x2, y2 in xyxy:
        origin = label_origin((x1, y1, x2 - x1, y2 - y1), label)
        cv2.putText(frame, label, origin, LABEL_FONT, LABEL_SCALE, EEL_COLOR, LABEL_THICKNESS)
    return frame


def draw_status(
    frame: np.ndarray,
    frame_idx: int,
    eel_count: int,
    live_tracks: int,
) -> np.ndarray:
    """Status line in the top-left corner."""
    text = f"frame {frame_idx}  eels {eel_count}  tracks {live_tracks}"
    cv2.putText(frame, text, (10, 20), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 0, 0), 3)
    cv2.putText(frame, text, (10, 20), cv2.FONT_HERSHEY_SIMPLEX, 0.5, ID_TEXT_COLOR, 1)
    return frame


def draw_frame_annotations(
    frame: np.ndarray,
    detections: list[Detection],
    result: FrameResult,
    label: str = "Eel",
    eel_count: Optional[int] = None,
    live_tracks: Optional[int] = None,
) -> np.ndarray:
    """
    Draw all annotations for a frame.

    Args:
        frame: RGB numpy array
        detections: This frame's candidate blobs (indexed by TrackUpdate.detection_index)
        result: Tracker output for this frame
        label: Text drawn under confirmed eels
        eel_count: Cumulative eel count for the status line (omitted if None)
        live_tracks: Live track count for the status line

    Returns:
        Annotated BGR frame
    """
    frame_bgr = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)

    draw_contours(frame_bgr, detections)

    for update in result.updates:
        draw_track_marker(frame_bgr, update)

    eel_boxes = [detections[u.detection_index].box for u in result.eel_updates]
    frame_bgr = draw_eel_boxes(frame_bgr, eel_boxes, label=label)

    if eel_count is not None:
        draw_status(frame_bgr, result.frame_idx, eel_count, live_tracks or 0)

    return frame_bgr
