"""
Video I/O module using PyAV for memory-efficient streaming.

Frames are decoded one at a time so long survey recordings never sit in memory.
"""

from fractions import Fraction
from pathlib import Path
from typing import Generator, Optional
import numpy as np

try:
    import av
    from av.error import FFmpegError
except ImportError:
    raise ImportError("PyAV is required. Install with: pip install av")

from eeltrack.errors import VideoOpenError, OutputCreateError


class VideoReader:
    """Memory-efficient video reader using PyAV streaming."""

    def __init__(self, video_path: Path | str):
        """
        Initialize video reader.

        Args:
            video_path: Path to the video file

        Raises:
            VideoOpenError: If the file is missing or has no decodable video stream
        """
        self.video_path = Path(video_path)
        if not self.video_path.exists():
            raise VideoOpenError(f"Video not found: {self.video_path}")

        # Open container to get metadata
        try:
            container = av.open(str(self.video_path))
        except FFmpegError as e:
            raise VideoOpenError(f"Cannot open video {self.video_path}: {e}") from e

        try:
            if not container.streams.video:
                raise VideoOpenError(f"No video stream in {self.video_path}")
            stream = container.streams.video[0]

            self.width = stream.width
            self.height = stream.height
            self.fps = float(stream.average_rate) if stream.average_rate else 30.0
            self.total_frames = stream.frames
            self.duration = float(stream.duration * stream.time_base) if stream.duration else None
            self.codec = stream.codec_context.name
        finally:
            container.close()

    def __repr__(self) -> str:
        return (
            f"VideoReader({self.video_path.name}, "
            f"{self.width}x{self.height}, "
            f"{self.fps:.2f}fps, "
            f"{self.total_frames} frames)"
        )

    def frames(
        self,
        start_frame: int = 0,
        end_frame: int | None = None,
    ) -> Generator[tuple[int, float, np.ndarray], None, None]:
        """
        Iterate over video frames as numpy arrays.

        Args:
            start_frame: First frame to yield (0-indexed)
            end_frame: Last frame to yield (exclusive), None for all

        Yields:
            Tuple of (frame_number, timestamp_sec, frame_array) where frame_array is RGB uint8
        """
        container = av.open(str(self.video_path))
        try:
            stream = container.streams.video[0]

            # Seek to start frame if needed
            if start_frame > 0:
                timestamp = int(start_frame / self.fps / stream.time_base)
                container.seek(timestamp, stream=stream)

            frame_idx = 0
            for frame in container.decode(video=0):
                # After seeking, calculate actual frame index from PTS
                if frame.pts is not None:
                    frame_idx = int(round(frame.pts * stream.time_base * self.fps))

                # Skip frames before start (seek may land before target)
                if frame_idx < start_frame:
                    frame_idx += 1
                    continue

                if end_frame is not None and frame_idx >= end_frame:
                    break

                timestamp_sec = float(frame.time) if frame.time is not None else frame_idx / self.fps
                yield frame_idx, timestamp_sec, frame.to_ndarray(format="rgb24")

                frame_idx += 1
        finally:
            container.close()


class VideoWriter:
    """Video writer using PyAV."""

    def __init__(
        self,
        output_path: Path | str,
        width: int,
        height: int,
        fps: float = 30.0,
        codec: str = "h264",
        crf: Optional[int] = 23,
    ):
        """
        Initialize video writer.

        Args:
            output_path: Path for output video
            width: Frame width
            height: Frame height
            fps: Frames per second
            codec: Video codec (h264, mpeg4, etc.)
            crf: Constant rate factor for x264/x265 (lower = better), None to skip

        Raises:
            OutputCreateError: If the container or stream cannot be created
        """
        self.output_path = Path(output_path)
        self.width = width
        self.height = height
        self.fps = fps

        try:
            self.container = av.open(str(self.output_path), mode="w")
        except (FFmpegError, OSError) as e:
            raise OutputCreateError(f"Cannot create video file {self.output_path}: {e}") from e

        try:
            # Convert fps to Fraction for PyAV compatibility
            fps_fraction = Fraction(fps).limit_denominator(10000)
            self.stream = self.container.add_stream(codec, rate=fps_fraction)
        except (FFmpegError, ValueError) as e:
            self.container.close()
            raise OutputCreateError(f"Cannot create {codec} stream in {self.output_path}: {e}") from e

        self.stream.width = width + width % 2
        self.stream.height = height + height % 2
        self.stream.pix_fmt = "yuv420p"
        if crf is not None:
            self.stream.options = {"crf": str(crf)}

    def write_frame(self, frame: np.ndarray):
        """
        Write a frame to the video.

        Odd-sized frames are edge-padded to the even size yuv420p requires.

        Args:
            frame: RGB numpy array (height, width, 3)

        Raises:
            OutputCreateError: If the encoder rejects the frame
        """
        if frame.shape[:2] != (self.height, self.width):
            raise ValueError(
                f"Frame shape {frame.shape[:2]} doesn't match "
                f"video dimensions ({self.height}, {self.width})"
            )

        if (self.stream.height, self.stream.width) != frame.shape[:2]:
            frame = np.pad(
                frame,
                ((0, self.stream.height - self.height), (0, self.stream.width - self.width), (0, 0)),
                mode="edge",
            )

        av_frame = av.VideoFrame.from_ndarray(frame, format="rgb24")

        try:
            for packet in self.stream.encode(av_frame):
                self.container.mux(packet)
        except FFmpegError as e:
            raise OutputCreateError(f"Cannot encode frame into {self.output_path}: {e}") from e

    def close(self):
        """Finalize and close the video file."""
        try:
            # Flush encoder
            for packet in self.stream.encode():
                self.container.mux(packet)
        except FFmpegError as e:
            raise OutputCreateError(f"Cannot finalize {self.output_path}: {e}") from e
        finally:
            self.container.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def get_video_info(video_path: Path | str) -> dict:
    """
    Get video metadata.

    Args:
        video_path: Path to video file

    Returns:
        Dictionary with video information
    """
    reader = VideoReader(video_path)
    return {
        "path": str(reader.video_path),
        "width": reader.width,
        "height": reader.height,
        "fps": reader.fps,
        "total_frames": reader.total_frames,
        "duration": reader.duration,
        "codec": reader.codec,
    }
