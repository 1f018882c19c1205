"""Fakes standing in for Playwright so tests run without a browser."""

from __future__ import annotations

import io
import random
from pathlib import Path
from typing import Optional

import pytest
from PIL import Image
from playwright.sync_api import Error as PlaywrightError

from demo_recorder.animations import InteractionEngine


def png_bytes(size=(64, 36), color=(30, 41, 59)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeHandle:
    def __init__(self, box: Optional[dict]) -> None:
        self._box = box

    def bounding_box(self) -> Optional[dict]:
        return self._box


class FakeMouse:
    def __init__(self, page: "FakePage") -> None:
        self.page = page
        self.moves: list[tuple[float, float]] = []

    def move(self, x: float, y: float) -> None:
        self.page._check("mouse.move")
        self.moves.append((x, y))
        self.page.calls.append(("mouse.move", x, y))


class FakeKeyboard:
    def __init__(self, page: "FakePage") -> None:
        self.page = page
        self.typed: list[str] = []

    def type(self, text: str) -> None:
        self.page._check("keyboard.type")
        self.typed.append(text)
        self.page.calls.append(("type", text))


class FakeVideo:
    def __init__(self, path: Path) -> None:
        self._path = path

    def path(self) -> str:
        return str(self._path)


class FakePage:
    def __init__(self, elements: Optional[dict] = None) -> None:
        self.elements = dict(elements or {})
        self.calls: list[tuple] = []
        self.failing: set[str] = set()
        self.mouse = FakeMouse(self)
        self.keyboard = FakeKeyboard(self)
        self.video: Optional[FakeVideo] = None
        self.url = "about:blank"

    def _check(self, name: str) -> None:
        if name in self.failing:
            raise PlaywrightError(f"{name} failed")

    @property
    def waits(self) -> list[float]:
        return [call[1] for call in self.calls if call[0] == "wait"]

    def calls_named(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    def query_selector(self, selector: str) -> Optional[FakeHandle]:
        self._check("query_selector")
        if selector not in self.elements:
            return None
        return FakeHandle(self.elements[selector])

    def evaluate(self, script: str, arg=None):
        self._check("evaluate")
        self.calls.append(("evaluate", script, arg))

    def add_init_script(self, script: str) -> None:
        self._check("add_init_script")
        self.calls.append(("init_script", script))

    def wait_for_timeout(self, ms: float) -> None:
        self.calls.append(("wait", ms))

    def click(self, selector: str) -> None:
        self._check("click")
        if selector not in self.elements:
            raise PlaywrightError(f"Timeout waiting for {selector}")
        self.calls.append(("click", selector))

    def goto(self, url: str, wait_until: Optional[str] = None) -> None:
        self._check("goto")
        self.url = url
        self.calls.append(("goto", url, wait_until))

    def set_default_timeout(self, ms: float) -> None:
        self.calls.append(("default_timeout", ms))

    def screenshot(self, path: Optional[str] = None, full_page: bool = False, type: str = "png", quality=None):
        self._check("screenshot")
        data = png_bytes()
        if type == "jpeg":
            buffer = io.BytesIO()
            Image.open(io.BytesIO(data)).convert("RGB").save(buffer, format="JPEG")
            data = buffer.getvalue()
        if path:
            Path(path).write_bytes(data)
        self.calls.append(("screenshot", path, full_page, type, quality))
        return data


class FakeBrowserContext:
    def __init__(self, page: FakePage, options: dict) -> None:
        self.page = page
        self.options = options
        self.closed = False
        video_dir = options.get("record_video_dir")
        self._video_file = Path(video_dir) / "3f9a1c.webm" if video_dir else None

    def new_page(self) -> FakePage:
        if self._video_file is not None:
            self.page.video = FakeVideo(self._video_file)
        return self.page

    def close(self) -> None:
        if not self.closed and self._video_file is not None:
            self._video_file.write_bytes(b"\x1aE\xdf\xa3webm")
        self.closed = True


class FakeBrowser:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.contexts: list[FakeBrowserContext] = []
        self.closed = False

    def new_context(self, **options) -> FakeBrowserContext:
        context = FakeBrowserContext(self.page, options)
        self.contexts.append(context)
        return context

    def close(self) -> None:
        self.closed = True


class FakeChromium:
    def __init__(self, browser: FakeBrowser) -> None:
        self.browser = browser
        self.launch_options: dict = {}

    def launch(self, **options) -> FakeBrowser:
        self.launch_options = options
        return self.browser


class FakePlaywright:
    def __init__(self, page: FakePage) -> None:
        self.browser = FakeBrowser(page)
        self.chromium = FakeChromium(self.browser)

    def __call__(self) -> "FakePlaywright":
        return self

    def __enter__(self) -> "FakePlaywright":
        return self

    def __exit__(self, *exc_info) -> None:
        return None


@pytest.fixture
def page():
    return FakePage(
        {
            "#btn": {"x": 250.0, "y": 180.0, "width": 100.0, "height": 40.0},
            "#input": {"x": 400.0, "y": 300.0, "width": 200.0, "height": 30.0},
        }
    )


@pytest.fixture
def engine(page):
    return InteractionEngine(page, rng=random.Random(1234))


@pytest.fixture
def fake_playwright(monkeypatch, page):
    playwright = FakePlaywright(page)
    monkeypatch.setattr("demo_recorder.recorder.sync_playwright", playwright)
    return playwright
