"""
Moving blob detection using MOG2 background subtraction.

Segments foreground from an accumulated background model, cleans the mask with
morphology, and keeps the contours whose area and elongation fit an eel.
"""

import numpy as np
import cv2

from eeltrack.utils.data_models import Detection, OrientedBox


class BlobDetector:
    """Foreground blob detector with area and elongation screening."""

    def __init__(
        self,
        history: int = 500,
        var_threshold: float = 16.0,
        detect_shadows: bool = False,
        blur_kernel: int = 7,
        blur_sigma: float = 1.5,
        open_kernel: int = 5,
        close_kernel: int = 11,
        min_area: float = 1500.0,
        max_area: float = 5000.0,
        max_aspect_ratio: float = 0.33,
    ):
        """
        Initialize the blob detector.

        Args:
            history: Number of frames the background model remembers
            var_threshold: MOG2 squared Mahalanobis distance threshold
            detect_shadows: Whether MOG2 marks shadows (they are dropped from the mask)
            blur_kernel: Gaussian blur kernel size (odd)
            blur_sigma: Gaussian blur sigma
            open_kernel: Square kernel size for morphological opening (removes specks)
            close_kernel: Square kernel size for morphological closing (fills holes)
            min_area: Minimum contour area in pixels
            max_area: Maximum contour area in pixels
            max_aspect_ratio: Maximum short/long side ratio of the min-area rectangle
        """
        self.blur_kernel = blur_kernel
        self.blur_sigma = blur_sigma
        self.min_area = min_area
        self.max_area = max_area
        self.max_aspect_ratio = max_aspect_ratio

        self._open_kernel = np.ones((open_kernel, open_kernel), np.uint8)
        self._close_kernel = np.ones((close_kernel, close_kernel), np.uint8)
        self._subtractor = cv2.createBackgroundSubtractorMOG2(
            history=history,
            varThreshold=var_threshold,
            detectShadows=detect_shadows,
        )

    @classmethod
    def from_config(cls, config: dict) -> "BlobDetector":
        """Build a detector from the `background` and `detection` config sections."""
        bg = config.get("background", {})
        det = config.get("detection", {})
        return cls(
            history=bg.get("history", 500),
            var_threshold=bg.get("var_threshold", 16.0),
            detect_shadows=bg.get("detect_shadows", False),
            blur_kernel=bg.get("blur_kernel", 7),
            blur_sigma=bg.get("blur_sigma", 1.5),
            open_kernel=bg.get("open_kernel", 5),
            close_kernel=bg.get("close_kernel", 11),
            min_area=det.get("min_area", 1500.0),
            max_area=det.get("max_area", 5000.0),
            max_aspect_ratio=det.get("max_aspect_ratio", 0.33),
        )

    def foreground_mask(self, frame: np.ndarray) -> np.ndarray:
        """
        Update the background model with a frame and return its cleaned foreground mask.

        Args:
            frame: RGB uint8 frame

        Returns:
            Binary uint8 mask (0 or 255)
        """
        gray = cv2.cvtColor(frame, cv2.COLOR_RGB2GRAY)
        gray = cv2.GaussianBlur(gray, (self.blur_kernel, self.blur_kernel), self.blur_sigma)
        mask = self._subtractor.apply(gray)

        # Shadows come out as 127 when enabled; only keep confident foreground
        _, mask = cv2.threshold(mask, 200, 255, cv2.THRESH_BINARY)

        mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, self._open_kernel)
        mask = cv2.morphologyEx(mask, cv2.MORPH_CLOSE, self._close_kernel)
        return mask

    def find_blobs(self, mask: np.ndarray, frame_idx: int = 0) -> list[Detection]:
        """Extract eel-shaped blobs from a binary mask, in contour order."""
        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        return filter_blobs_by_shape(
            contours,
            frame_idx,
            min_area=self.min_area,
            max_area=self.max_area,
            max_aspect_ratio=self.max_aspect_ratio,
        )

    def detect(self, frame: np.ndarray, frame_idx: int = 0) -> list[Detection]:
        """
        Detect candidate eels in a frame.

        Args:
            frame: RGB uint8 frame
            frame_idx: Frame number stored on each detection

        Returns:
            List of detections, centroid = centre of the min-area rectangle
        """
        return self.find_blobs(self.foreground_mask(frame), frame_idx)


def filter_blobs_by_shape(
    contours,
    frame_idx: int = 0,
    min_area: float = 1500.0,
    max_area: float = 5000.0,
    max_aspect_ratio: float = 0.33,
) -> list[Detection]:
    """
    Filter contours by area and elongation.

    Args:
        contours: OpenCV contours
        frame_idx: Frame number stored on each detection
        min_area: Minimum contour area in pixels
        max_area: Maximum contour area in pixels
        max_aspect_ratio: Maximum short/long side ratio of the min-area rectangle

    Returns:
        Detections for the contours that pass, in input order
    """
    detections = []
    for cnt in contours:
        area = cv2.contourArea(cnt)
        if area < min_area or area > max_area:
            continue

        box = OrientedBox.from_cv(cv2.minAreaRect(cnt))
        if box.aspect_ratio > max_aspect_ratio:
            continue

        detections.append(
            Detection(
                frame_idx=frame_idx,
                centroid=box.center,
                box=box,
                area=float(area),
                contour=cnt,
            )
        )

    return detections
