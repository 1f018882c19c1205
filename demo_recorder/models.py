"""Data types shared by the loader, recorder and demo scripts."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

if TYPE_CHECKING:
    from playwright.sync_api import Browser, BrowserContext, Page


DEFAULT_VIEWPORT = {"width": 1920, "height": 1080}


@dataclass(frozen=True)
class VideoSettings:
    width: int = DEFAULT_VIEWPORT["width"]
    height: int = DEFAULT_VIEWPORT["height"]

    @classmethod
    def from_overrides(cls, overrides: Optional[Mapping[str, Any]]) -> "VideoSettings":
        """Merge partial ``{"width": ..., "height": ...}`` overrides over the defaults."""
        if overrides is None:
            return cls()
        if isinstance(overrides, VideoSettings):
            return overrides
        base = cls()
        return cls(
            width=int(overrides.get("width", base.width)),
            height=int(overrides.get("height", base.height)),
        )

    def as_size(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class DemoDefinition:
    """One recorded walkthrough.

    ``run`` receives a :class:`DemoContext` and drives the page; it is called
    once per recording.
    """

    id: str
    name: str
    url: str
    run: Callable[["DemoContext"], None]
    video: VideoSettings = field(default_factory=VideoSettings)
    source: Optional[Path] = None


@dataclass
class DemoContext:
    """Everything a demo's ``run`` function can use.

    ``page``, ``browser`` and ``context`` are the raw Playwright objects; the
    remaining attributes are the animated helpers bound to the current session.
    """

    page: "Page"
    browser: "Browser"
    context: "BrowserContext"
    wait: Callable[[float], None]
    highlight: Callable[..., None]
    click_animated: Callable[..., None]
    type_animated: Callable[..., None]
    move_to: Callable[..., None]
    zoom_highlight: Callable[..., None]
    screenshot: Callable[..., Path]


@dataclass(frozen=True)
class RecordingResult:
    video_path: Path
    duration_ms: int

    @property
    def duration_s(self) -> float:
        return self.duration_ms / 1000
