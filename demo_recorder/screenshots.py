"""Screenshot mode: run a demo without video and capture after each interaction."""

from __future__ import annotations

import functools
import html
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from PIL import Image

from .models import DemoDefinition
from .recorder import Session, build_demo_context, open_session, slugify

logger = logging.getLogger(__name__)

FORMATS = ("png", "jpeg", "webp")
AUTO_CAPTURED = ("highlight", "click_animated", "type_animated", "zoom_highlight")


@dataclass(frozen=True)
class ScreenshotOptions:
    format: str = "png"
    quality: int = 90
    full_page: bool = False
    gallery: bool = True

    def __post_init__(self) -> None:
        if self.format not in FORMATS:
            raise ValueError(f"Unsupported format {self.format!r}; choose one of {', '.join(FORMATS)}")
        if not 0 <= self.quality <= 100:
            raise ValueError("quality must be between 0 and 100")

    @property
    def extension(self) -> str:
        return "jpg" if self.format == "jpeg" else self.format


class ScreenshotWriter:
    """Numbers and saves screenshots of one page into one directory."""

    def __init__(self, page, directory: Path, options: ScreenshotOptions) -> None:
        self.page = page
        self.directory = directory
        self.options = options
        self.paths: list[Path] = []

    def capture(self, label: Optional[str] = None, *, full_page: Optional[bool] = None) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        index = len(self.paths) + 1
        name = f"{index:03d}-{slugify(label) if label else 'shot'}.{self.options.extension}"
        path = self.directory / name
        full = self.options.full_page if full_page is None else full_page

        if self.options.format == "webp":
            png = self.page.screenshot(full_page=full, type="png")
            with Image.open(io.BytesIO(png)) as img:
                img.save(path, format="WEBP", quality=self.options.quality)
        elif self.options.format == "jpeg":
            self.page.screenshot(
                path=str(path), full_page=full, type="jpeg", quality=self.options.quality
            )
        else:
            self.page.screenshot(path=str(path), full_page=full, type="png")

        self.paths.append(path)
        logger.debug("Captured %s", path)
        return path


def _capturing(helper: Callable[..., None], writer: ScreenshotWriter, action: str) -> Callable[..., None]:
    @functools.wraps(helper)
    def wrapper(*args, **kwargs):
        helper(*args, **kwargs)
        target = args[0] if args else kwargs.get("selector", "")
        writer.capture(f"{action} {target}")

    return wrapper


def write_gallery(demo: DemoDefinition, paths: list[Path], directory: Path) -> Path:
    """Write an ``index.html`` showing every screenshot in capture order."""
    items = "\n".join(
        f'    <figure><img src="{html.escape(path.name)}" alt="{html.escape(path.stem)}" loading="lazy">'
        f"<figcaption>{html.escape(path.stem)}</figcaption></figure>"
        for path in paths
    )
    title = html.escape(demo.name)
    document = f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{title} - screenshots</title>
  <style>
    body {{ font-family: system-ui, sans-serif; margin: 2rem; background: #0f172a; color: #e2e8f0; }}
    h1 {{ font-weight: 600; }}
    main {{ display: grid; grid-template-columns: repeat(auto-fill, minmax(360px, 1fr)); gap: 1.5rem; }}
    figure {{ margin: 0; background: #1e293b; border-radius: 8px; overflow: hidden; }}
    img {{ width: 100%; display: block; }}
    figcaption {{ padding: 0.5rem 0.75rem; font-size: 0.85rem; color: #94a3b8; }}
  </style>
</head>
<body>
  <h1>{title}</h1>
  <p><a href="{html.escape(demo.url)}">{html.escape(demo.url)}</a> &middot; {len(paths)} screenshot(s)</p>
  <main>
{items}
  </main>
</body>
</html>
"""
    gallery = directory / "index.html"
    gallery.write_text(document, encoding="utf-8")
    return gallery


def capture_screenshots(
    demo: DemoDefinition,
    output_dir: Path,
    options: Optional[ScreenshotOptions] = None,
    *,
    headed: bool = False,
) -> list[Path]:
    options = options or ScreenshotOptions()
    directory = Path(output_dir) / demo.id / "screenshots"
    logger.info("Capturing screenshots for: %s", demo.name)

    with open_session(demo, headed=headed) as session:
        writer = ScreenshotWriter(session.page, directory, options)
        writer.capture("initial")
        context = _auto_capturing_context(session, writer)
        demo.run(context)
        writer.capture("final")

    if options.gallery:
        gallery = write_gallery(demo, writer.paths, directory)
        logger.info("Gallery written: %s", gallery)
    return writer.paths


def _auto_capturing_context(session: Session, writer: ScreenshotWriter):
    context = build_demo_context(session, writer.capture)
    for action in AUTO_CAPTURED:
        setattr(context, action, _capturing(getattr(context, action), writer, action))
    return context
