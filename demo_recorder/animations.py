"""Animated interaction helpers layered over a Playwright page.

Every helper turns a logical action ("click that button") into a short,
visible sequence in the recorded video: the cursor glides to the element,
a ripple marks the click, typing happens one key at a time. A missing element
or a failing DOM call never aborts the recording; it is logged and skipped.
"""

from __future__ import annotations

import functools
import logging
import random
import threading
from typing import Callable, Iterator, Mapping, Optional, Tuple, TypeVar

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from .errors import ConcurrentInteractionError

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
F = TypeVar("F", bound=Callable[..., object])

DEFAULT_CURSOR: Point = (100.0, 100.0)
DEFAULT_HIGHLIGHT_MS = 500
DEFAULT_MOVE_MS = 500
DEFAULT_MOVE_STEPS = 20
DEFAULT_HOVER_MS = 200
DEFAULT_CLICK_MOVE_MS = 400
DEFAULT_TYPING_DELAY_MS = 50
DEFAULT_TYPING_VARIATION_MS = 20
DEFAULT_ZOOM_SCALE = 1.05
DEFAULT_ZOOM_MS = 600

MIN_TYPING_DELAY_MS = 10
HIGHLIGHT_FADE_MS = 200
RIPPLE_MS = 400
FOCUS_SETTLE_MS = 100

CURSOR_SCRIPT = """
(() => {
  const mount = () => {
    if (document.getElementById('demo-cursor')) return;
    const style = document.createElement('style');
    style.id = 'demo-cursor-style';
    style.innerHTML = `
      #demo-cursor {
        position: fixed;
        left: 100px;
        top: 100px;
        width: 14px;
        height: 14px;
        border-radius: 9999px;
        background: rgba(255, 255, 255, 0.95);
        border: 1.5px solid rgba(15, 23, 42, 0.85);
        box-shadow:
          0 0 0 2px rgba(59, 130, 246, 0.35),
          0 4px 14px rgba(2, 6, 23, 0.3);
        transform: translate(-50%, -50%);
        pointer-events: none;
        z-index: 2147483647;
        transition:
          width 80ms ease,
          height 80ms ease,
          box-shadow 80ms ease;
      }
      #demo-cursor.demo-cursor-down {
        width: 11px;
        height: 11px;
        box-shadow:
          0 0 0 3px rgba(59, 130, 246, 0.45),
          0 2px 10px rgba(2, 6, 23, 0.26);
      }
      nextjs-portal,
      [data-nextjs-toast],
      [data-nextjs-dev-tools-button],
      vite-error-overlay {
        display: none !important;
      }
    `;
    document.head.appendChild(style);

    const cursor = document.createElement('div');
    cursor.id = 'demo-cursor';
    cursor.setAttribute('aria-hidden', 'true');
    document.body.appendChild(cursor);

    const move = (x, y) => {
      cursor.style.left = `${x}px`;
      cursor.style.top = `${y}px`;
    };
    document.addEventListener('mousemove', (e) => move(e.clientX, e.clientY), { passive: true });
    document.addEventListener('mousedown', () => cursor.classList.add('demo-cursor-down'), { passive: true });
    document.addEventListener('mouseup', () => cursor.classList.remove('demo-cursor-down'), { passive: true });
  };

  if (document.readyState === 'loading') {
    document.addEventListener('DOMContentLoaded', mount, { once: true });
  } else {
    mount();
  }
})();
"""

MOVE_CURSOR_SCRIPT = """
([x, y]) => {
  const cursor = document.getElementById('demo-cursor');
  if (!cursor) return;
  cursor.style.left = `${x}px`;
  cursor.style.top = `${y}px`;
}
"""

HIGHLIGHT_SCRIPT = """
({ box, duration, fade }) => {
  const overlay = document.createElement('div');
  overlay.style.cssText = `
    position: absolute;
    border: 3px solid #ff4444;
    border-radius: 4px;
    pointer-events: none;
    z-index: 2147483646;
    box-shadow: 0 0 10px rgba(255, 68, 68, 0.5);
    transition: opacity ${fade}ms ease-out;
  `;
  overlay.style.top = `${box.y + window.scrollY - 3}px`;
  overlay.style.left = `${box.x + window.scrollX - 3}px`;
  overlay.style.width = `${box.width + 6}px`;
  overlay.style.height = `${box.height + 6}px`;
  document.body.appendChild(overlay);

  setTimeout(() => {
    overlay.style.opacity = '0';
    setTimeout(() => overlay.remove(), fade);
  }, duration);
}
"""

RIPPLE_SCRIPT = """
({ x, y, duration }) => {
  const ripple = document.createElement('div');
  ripple.style.cssText = `
    position: fixed;
    left: ${x}px;
    top: ${y}px;
    width: 48px;
    height: 48px;
    border-radius: 50%;
    background: rgba(59, 130, 246, 0.35);
    border: 2px solid rgba(59, 130, 246, 0.8);
    pointer-events: none;
    z-index: 2147483646;
    transform: translate(-50%, -50%) scale(0);
  `;
  document.body.appendChild(ripple);
  const animation = ripple.animate(
    [
      { transform: 'translate(-50%, -50%) scale(0)', opacity: 1 },
      { transform: 'translate(-50%, -50%) scale(1.6)', opacity: 0 },
    ],
    { duration, easing: 'ease-out', fill: 'forwards' },
  );
  animation.onfinish = () => ripple.remove();
}
"""

ZOOM_SCRIPT = """
({ box, scale, duration }) => {
  const frame = document.createElement('div');
  frame.style.cssText = `
    position: fixed;
    left: ${box.x - 4}px;
    top: ${box.y - 4}px;
    width: ${box.width + 8}px;
    height: ${box.height + 8}px;
    border: 2px solid rgba(59, 130, 246, 0.9);
    border-radius: 8px;
    background: rgba(59, 130, 246, 0.08);
    box-shadow: 0 0 24px rgba(59, 130, 246, 0.45);
    pointer-events: none;
    z-index: 2147483646;
    opacity: 0;
  `;
  document.body.appendChild(frame);
  const animation = frame.animate(
    [
      { offset: 0, opacity: 0, transform: 'scale(1)' },
      { offset: 0.2, opacity: 1, transform: `scale(${scale})` },
      { offset: 0.8, opacity: 1, transform: `scale(${scale})` },
      { offset: 1, opacity: 0, transform: 'scale(1)' },
    ],
    { duration, easing: 'ease-in-out', fill: 'forwards' },
  );
  animation.onfinish = () => frame.remove();
}
"""


def ease_out_cubic(progress: float) -> float:
    return 1 - (1 - progress) ** 3


def cursor_path(start: Point, end: Point, steps: int) -> Iterator[Point]:
    """Yield ``steps`` positions from just after ``start`` up to ``end``.

    Positions follow the ease-out cubic curve; the last one is ``end`` itself
    so rounding never leaves the cursor short of the target.
    """
    sx, sy = start
    ex, ey = end
    for step in range(1, steps + 1):
        if step == steps:
            yield (ex, ey)
            return
        eased = ease_out_cubic(step / steps)
        yield (sx + (ex - sx) * eased, sy + (ey - sy) * eased)


def typing_delay(delay: float, variation: float, rng: random.Random) -> float:
    """Delay after one keystroke: ``delay`` +/- ``variation``, never under 10ms."""
    return max(MIN_TYPING_DELAY_MS, delay + rng.uniform(-variation, variation))


def box_center(box: Mapping[str, float]) -> Point:
    return (box["x"] + box["width"] / 2, box["y"] + box["height"] / 2)


def _exclusive(method: F) -> F:
    @functools.wraps(method)
    def wrapper(self: "InteractionEngine", *args, **kwargs):
        if not self._busy.acquire(blocking=False):
            raise ConcurrentInteractionError(
                f"{method.__name__}() called while another interaction is still running"
            )
        try:
            return method(self, *args, **kwargs)
        finally:
            self._busy.release()

    return wrapper  # type: ignore[return-value]


class InteractionEngine:
    """Animated helpers bound to one page for one recording session.

    The engine owns the logical cursor position: ``move_to`` starts from it
    and updates it after every step. Calls must be sequential; overlapping
    calls raise :class:`ConcurrentInteractionError`.
    """

    def __init__(self, page: Page, *, rng: Optional[random.Random] = None) -> None:
        self.page = page
        self.cursor: Optional[Point] = None
        self._rng = rng or random.Random()
        self._busy = threading.Lock()

    def setup(self) -> None:
        """Install the cursor overlay and reset the logical cursor.

        Errors propagate: a session without its cursor overlay is not worth
        recording.
        """
        self.page.add_init_script(CURSOR_SCRIPT)
        self.page.evaluate(CURSOR_SCRIPT)
        self.cursor = DEFAULT_CURSOR
        self.page.mouse.move(*DEFAULT_CURSOR)

    def wait(self, ms: float) -> None:
        self.page.wait_for_timeout(ms)

    @_exclusive
    def highlight(self, selector: str, duration_ms: int = DEFAULT_HIGHLIGHT_MS) -> None:
        try:
            box = self._element_box(selector)
            if box is None:
                logger.warning("Highlight: element not found for selector: %s", selector)
                return
            self.page.evaluate(
                HIGHLIGHT_SCRIPT,
                {"box": box, "duration": duration_ms, "fade": HIGHLIGHT_FADE_MS},
            )
            self.page.wait_for_timeout(duration_ms + HIGHLIGHT_FADE_MS)
        except PlaywrightError as exc:
            logger.warning("Failed to highlight element %s: %s", selector, exc)

    @_exclusive
    def move_to(
        self,
        selector: str,
        *,
        duration: float = DEFAULT_MOVE_MS,
        steps: int = DEFAULT_MOVE_STEPS,
    ) -> None:
        try:
            if not self._glide_to(selector, duration, steps):
                logger.warning("Move: element not found for selector: %s", selector)
        except PlaywrightError as exc:
            logger.warning("Failed to move cursor to %s: %s", selector, exc)

    @_exclusive
    def click_animated(
        self,
        selector: str,
        *,
        hover_duration: float = DEFAULT_HOVER_MS,
        move_duration: float = DEFAULT_CLICK_MOVE_MS,
    ) -> None:
        try:
            if not self._glide_to(selector, move_duration, DEFAULT_MOVE_STEPS):
                logger.warning("Click: element not found for selector: %s", selector)
                return
            self.page.wait_for_timeout(hover_duration)
            x, y = self.cursor or DEFAULT_CURSOR
            self.page.evaluate(RIPPLE_SCRIPT, {"x": x, "y": y, "duration": RIPPLE_MS})
            self.page.click(selector)
        except PlaywrightError as exc:
            logger.warning("Failed to click element %s: %s", selector, exc)

    @_exclusive
    def type_animated(
        self,
        selector: str,
        text: str,
        *,
        delay: float = DEFAULT_TYPING_DELAY_MS,
        variation: float = DEFAULT_TYPING_VARIATION_MS,
    ) -> None:
        try:
            if self.page.query_selector(selector) is None:
                logger.warning("Type: element not found for selector: %s", selector)
                return
            self.page.click(selector)
            self.page.wait_for_timeout(FOCUS_SETTLE_MS)
            for char in text:
                self.page.keyboard.type(char)
                self.page.wait_for_timeout(typing_delay(delay, variation, self._rng))
        except PlaywrightError as exc:
            logger.warning("Failed to type into %s: %s", selector, exc)

    @_exclusive
    def zoom_highlight(
        self,
        selector: str,
        *,
        scale: float = DEFAULT_ZOOM_SCALE,
        duration: float = DEFAULT_ZOOM_MS,
    ) -> None:
        try:
            box = self._element_box(selector)
            if box is None:
                logger.warning("Zoom: element not found for selector: %s", selector)
                return
            self.page.evaluate(
                ZOOM_SCRIPT, {"box": box, "scale": scale, "duration": duration}
            )
            self.page.wait_for_timeout(duration)
        except PlaywrightError as exc:
            logger.warning("Failed to zoom-highlight %s: %s", selector, exc)

    def _element_box(self, selector: str) -> Optional[dict]:
        handle = self.page.query_selector(selector)
        if handle is None:
            return None
        return handle.bounding_box()

    def _glide_to(self, selector: str, duration: float, steps: int) -> bool:
        box = self._element_box(selector)
        if box is None:
            return False
        steps = max(1, int(steps))
        step_delay = duration / steps
        start = self.cursor or DEFAULT_CURSOR
        # A navigation remounts the overlay at its CSS default; put it back first.
        self.page.evaluate(MOVE_CURSOR_SCRIPT, [start[0], start[1]])
        for point in cursor_path(start, box_center(box), steps):
            self._place_cursor(point)
            self.page.wait_for_timeout(step_delay)
        return True

    def _place_cursor(self, point: Point) -> None:
        x, y = point
        self.page.evaluate(MOVE_CURSOR_SCRIPT, [x, y])
        self.page.mouse.move(x, y)
        self.cursor = point
