"""Run a demo definition inside a video-capturing Playwright session."""

from __future__ import annotations

import logging
import re
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional

from playwright.sync_api import Browser, BrowserContext, Page, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from .animations import InteractionEngine
from .errors import RecordingError
from .models import DemoContext, DemoDefinition, RecordingResult, VideoSettings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 18_000
FINAL_HOLD_MS = 500


@dataclass
class Session:
    browser: Browser
    context: BrowserContext
    page: Page
    engine: InteractionEngine


def slugify(text: str, max_length: int = 48) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug[:max_length].rstrip("-") or "shot"


def _close_quietly(resource: object, label: str) -> None:
    try:
        resource.close()  # type: ignore[attr-defined]
    except PlaywrightError as exc:
        logger.debug("Ignoring error while closing %s: %s", label, exc)


@contextmanager
def open_session(
    demo: DemoDefinition,
    *,
    headed: bool = False,
    video_dir: Optional[Path] = None,
) -> Iterator[Session]:
    """Launch Chromium, open the demo URL and set up the animation engine.

    With ``video_dir`` the context records a WebM there; it is written when
    the context closes. Browser and context are always closed on exit.
    """
    settings = demo.video
    context_options: dict = {"viewport": settings.as_size()}
    if video_dir is not None:
        context_options["record_video_dir"] = str(video_dir)
        context_options["record_video_size"] = settings.as_size()

    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(headless=not headed)
        try:
            context = browser.new_context(**context_options)
            try:
                page = context.new_page()
                page.set_default_timeout(DEFAULT_TIMEOUT_MS)
                logger.info("Navigating to %s", demo.url)
                page.goto(demo.url, wait_until="networkidle")
                engine = InteractionEngine(page)
                engine.setup()
                yield Session(browser=browser, context=context, page=page, engine=engine)
            finally:
                _close_quietly(context, "browser context")
        finally:
            _close_quietly(browser, "browser")


def build_demo_context(
    session: Session,
    screenshot: Callable[..., Path],
) -> DemoContext:
    engine = session.engine
    return DemoContext(
        page=session.page,
        browser=session.browser,
        context=session.context,
        wait=engine.wait,
        highlight=engine.highlight,
        click_animated=engine.click_animated,
        type_animated=engine.type_animated,
        move_to=engine.move_to,
        zoom_highlight=engine.zoom_highlight,
        screenshot=screenshot,
    )


def find_recorded_video(directory: Path) -> Path:
    """Newest ``.webm`` in ``directory``; Playwright picks random file names."""
    candidates = sorted(
        Path(directory).glob("*.webm"), key=lambda path: path.stat().st_mtime, reverse=True
    )
    if not candidates:
        raise RecordingError(f"No video file found in {directory}")
    return candidates[0]


class PlaywrightRecorder:
    def __init__(self, *, headed: bool = False) -> None:
        self.headed = headed

    def record(self, demo: DemoDefinition, output_dir: Path) -> RecordingResult:
        """Record ``demo`` to ``<output_dir>/<demo.id>/`` and return the raw video path."""
        settings: VideoSettings = demo.video
        video_dir = Path(output_dir) / demo.id
        video_dir.mkdir(parents=True, exist_ok=True)
        screenshots_dir = video_dir / "screenshots"
        shot_count = 0

        logger.info("Starting recording for: %s", demo.name)
        logger.info("Resolution: %sx%s", settings.width, settings.height)
        logger.info("URL: %s", demo.url)

        started = time.monotonic()
        video_path: Optional[Path] = None
        with open_session(demo, headed=self.headed, video_dir=video_dir) as session:

            def screenshot(name: Optional[str] = None, *, full_page: bool = False) -> Path:
                nonlocal shot_count
                shot_count += 1
                screenshots_dir.mkdir(parents=True, exist_ok=True)
                label = slugify(name) if name else "shot"
                path = screenshots_dir / f"{shot_count:03d}-{label}.png"
                session.page.screenshot(path=str(path), full_page=full_page)
                return path

            logger.info("Running demo script...")
            demo.run(build_demo_context(session, screenshot))
            session.page.wait_for_timeout(FINAL_HOLD_MS)

            video = session.page.video
            session.context.close()
            if video is not None:
                video_path = Path(video.path())

        if video_path is None or not video_path.exists():
            video_path = find_recorded_video(video_dir)
        duration_ms = int((time.monotonic() - started) * 1000)

        logger.info("Recording complete: %s", video_path)
        logger.info("Duration: %.1fs", duration_ms / 1000)
        return RecordingResult(video_path=video_path, duration_ms=duration_ms)
