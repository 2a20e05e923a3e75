"""Guard the eel overlay: green box with a plain green label centred just below it."""

from __future__ import annotations

import cv2
import numpy as np

from eeltrack.utils.data_models import OrientedBox
from eeltrack.utils.visualization import (
    EEL_COLOR,
    LABEL_FONT,
    LABEL_GAP,
    LABEL_SCALE,
    LABEL_THICKNESS,
    bounding_rect,
    draw_eel_boxes,
    label_origin,
)


def test_label_origin_centres_text_below_rect() -> None:
    (text_w, text_h), _ = cv2.getTextSize("Eel", LABEL_FONT, LABEL_SCALE, LABEL_THICKNESS)
    x, y = label_origin((70, 35, 60, 10), "Eel")
    assert x == 70 + (60 - text_w) // 2
    assert y == 35 + 10 + text_h + LABEL_GAP


def test_label_is_plain_green_text_without_background() -> None:
    frame = np.zeros((120, 200, 3), dtype=np.uint8)
    box = OrientedBox(cx=100, cy=40, width=60, height=10)
    rect = bounding_rect(box)
    x, y, w, h = rect
    origin_x, origin_y = label_origin(rect, "Eel")
    (text_w, text_h), _ = cv2.getTextSize("Eel", LABEL_FONT, LABEL_SCALE, LABEL_THICKNESS)

    frame = draw_eel_boxes(frame, [box], label="Eel")

    # Gap between the box edge and the text stays untouched
    gap = frame[y + h + 2 : y + h + 4, origin_x : origin_x + text_w]
    assert not gap.any()

    text = frame[origin_y - text_h : origin_y + 1, origin_x : origin_x + text_w]
    lit = text[text.any(axis=2)]
    assert len(lit) > 0
    assert (lit == EEL_COLOR).all()
    # Text covers only a fraction of its own box, unlike a filled label
    assert len(lit) < text.shape[0] * text.shape[1] / 2


def test_no_boxes_leaves_frame_unchanged() -> None:
    frame = np.zeros((20, 20, 3), dtype=np.uint8)
    assert not draw_eel_boxes(frame, []).any()
