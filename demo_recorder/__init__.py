"""Record demo videos of web apps using Playwright."""

from .models import DemoContext, DemoDefinition, RecordingResult, VideoSettings

__version__ = "1.0.0"

__all__ = [
    "DemoContext",
    "DemoDefinition",
    "RecordingResult",
    "VideoSettings",
    "__version__",
]
