"""
Main processing pipeline for eel tracking.

Orchestrates the detection, tracking, rendering, and record output stages.
"""

from pathlib import Path
from typing import Optional
import cv2
from tqdm import tqdm

from eeltrack.errors import OutputCreateError
from eeltrack.utils.video_io import VideoReader, VideoWriter
from eeltrack.utils.data_models import RunData
from eeltrack.utils.records import EelRecordWriter, save_run_summary
from eeltrack.utils.visualization import draw_frame_annotations
from eeltrack.detection.blob_detector import BlobDetector
from eeltrack.detection.tracking import EelTracker


ESC_KEY = 27
WINDOW_NAME = "Eel tracking"


class Pipeline:
    """Main processing pipeline for eel detection in underwater video."""

    def __init__(
        self,
        config: dict,
        output_dir: Path,
        display: bool = False,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Configuration dictionary
            output_dir: Directory for output files
            display: Show annotated frames in a window (ESC stops processing)
        """
        self.config = config
        self.output_dir = Path(output_dir)
        self.display = display

        self.output_cfg = config.get("output", {})

        # Initialize components (lazy loading)
        self._detector: Optional[BlobDetector] = None
        self._tracker: Optional[EelTracker] = None

        self.run_data: Optional[RunData] = None

    @property
    def detector(self) -> BlobDetector:
        """Lazy-load blob detector."""
        if self._detector is None:
            self._detector = BlobDetector.from_config(self.config)
        return self._detector

    @property
    def tracker(self) -> Optional[EelTracker]:
        """Tracker of the current run (None before the first run)."""
        return self._tracker

    def _build_tracker(self, frame_width: int) -> EelTracker:
        """Construct a fresh tracker instance from config."""
        cfg = self.config.get("tracking", {})
        return EelTracker(
            frame_width=frame_width,
            min_motion_distance=cfg.get("min_motion_distance", 2.0),
            min_frames_eel=cfg.get("min_frames_eel", 5),
            max_frames_missed=cfg.get("max_frames_missed", 50),
            gate_fraction=cfg.get("gate_fraction", 0.25),
        )

    @property
    def video_path(self) -> Path:
        return self.output_dir / self.output_cfg.get("video_name", "eel_tracking.mp4")

    @property
    def csv_path(self) -> Path:
        return self.output_dir / self.output_cfg.get("csv_name", "eel_tracking.csv")

    @property
    def summary_path(self) -> Path:
        return self.output_dir / self.output_cfg.get("summary_name", "eel_summary.json")

    def run(
        self,
        video_path: Path,
        start_frame: int = 0,
        end_frame: Optional[int] = None,
    ) -> RunData:
        """
        Run the full processing pipeline.

        Args:
            video_path: Path to input video
            start_frame: First frame to process
            end_frame: Last frame to process (exclusive)

        Returns:
            RunData with all report events and eel summaries

        Raises:
            VideoOpenError: If the input video cannot be opened
            OutputCreateError: If the output video or CSV cannot be created
        """
        reader = VideoReader(video_path)
        if not self.output_dir.is_dir():
            raise OutputCreateError(f"Output directory does not exist: {self.output_dir}")

        print(f"Video info:")
        print(f"  Resolution: {reader.width}x{reader.height}")
        print(f"  FPS: {reader.fps:.2f}")
        print(f"  Total frames: {reader.total_frames}")

        # Tracker ids and eel count restart with every video
        self._tracker = self._build_tracker(reader.width)

        self.run_data = RunData(
            video_path=str(video_path),
            fps=reader.fps,
            total_frames=reader.total_frames,
            width=reader.width,
            height=reader.height,
        )

        if end_frame is None and reader.total_frames:
            end_frame = reader.total_frames
        total = end_frame - start_frame if end_frame is not None else None

        label = self.output_cfg.get("label", "Eel")
        stopped = False

        print(f"\nProcessing frames {start_frame} to {end_frame if end_frame is not None else 'end'}...")

        with VideoWriter(
            self.video_path,
            reader.width,
            reader.height,
            reader.fps,
            codec=self.output_cfg.get("codec", "h264"),
            crf=self.output_cfg.get("crf", 23),
        ) as writer, EelRecordWriter(self.csv_path) as records:
            with tqdm(total=total, desc="Processing", unit="frame",
                      bar_format='{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]') as pbar:
                for frame_idx, timestamp, frame in reader.frames(start_frame=start_frame, end_frame=end_frame):
                    # Frame numbers in the records are 1-based
                    frame_number = frame_idx + 1

                    detections = self.detector.detect(frame, frame_number)
                    result = self._tracker.update(detections, frame_number, timestamp)

                    annotated = draw_frame_annotations(
                        frame,
                        detections,
                        result,
                        label=label,
                        eel_count=self._tracker.eel_count,
                        live_tracks=len(self._tracker.tracks),
                    )
                    writer.write_frame(cv2.cvtColor(annotated, cv2.COLOR_BGR2RGB))

                    records.write(result.records)
                    self.run_data.records.extend(result.records)
                    self.run_data.frames_processed += 1
                    pbar.update(1)

                    if self.display:
                        cv2.imshow(WINDOW_NAME, annotated)
                        if cv2.waitKey(1) & 0xFF == ESC_KEY:
                            stopped = True
                            break

        if self.display:
            cv2.destroyAllWindows()

        self.run_data.eel_count = self._tracker.eel_count
        self.run_data.eel_tracks = self._tracker.get_eel_summaries()
        save_run_summary(self.run_data, self.summary_path)

        print(f"\nResults:")
        if stopped:
            print(f"  Stopped by user after {self.run_data.frames_processed} frames")
        print(f"  Frames processed: {self.run_data.frames_processed}")
        print(f"  Eels confirmed: {self.run_data.eel_count}")
        print(f"  Report rows: {len(self.run_data.records)}")

        print(f"\nOutput files:")
        print(f"  Directory: {self.output_dir}")
        print(f"  Annotated video: {self.video_path}")
        print(f"  Records CSV: {self.csv_path}")
        print(f"  Summary JSON: {self.summary_path}")

        return self.run_data
