"""Exceptions raised by demo-recorder."""

from __future__ import annotations


class DemoRecorderError(Exception):
    pass


class InvalidDemoError(DemoRecorderError):
    """A demo file could not be loaded or is missing required fields."""


class RecordingError(DemoRecorderError):
    pass


class ConcurrentInteractionError(DemoRecorderError, RuntimeError):
    """An engine helper was called while another one was still running."""


class FfmpegNotFoundError(DemoRecorderError):
    def __init__(self) -> None:
        super().__init__(
            "FFmpeg not found. Please install FFmpeg:\n"
            "  macOS: brew install ffmpeg\n"
            "  Ubuntu: sudo apt install ffmpeg\n"
            "  Windows: choco install ffmpeg\n"
            "or point DEMO_RECORDER_FFMPEG at the binary."
        )


class TranscodeError(DemoRecorderError):
    pass
