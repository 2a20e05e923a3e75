"""
Fatal startup errors for the eel tracking pipeline.

Raised before the frame loop starts; the CLI turns them into a message and exit code.
"""


EXIT_CODE_VIDEO_OPEN = 3
EXIT_CODE_OUTPUT_CREATE = 4


class EelTrackingError(RuntimeError):
    def __init__(self, message: str, *, exit_code: int = 2) -> None:
        super().__init__(message)
        self.exit_code = int(exit_code)


class VideoOpenError(EelTrackingError):
    """Input video is missing or cannot be decoded."""

    def __init__(self, message: str) -> None:
        super().__init__(message, exit_code=EXIT_CODE_VIDEO_OPEN)


class OutputCreateError(EelTrackingError):
    """Annotated video or record file cannot be created."""

    def __init__(self, message: str) -> None:
        super().__init__(message, exit_code=EXIT_CODE_OUTPUT_CREATE)
