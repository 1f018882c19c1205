"""Command-line entry point: ``demo-recorder <command> ...``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from dotenv import load_dotenv
from playwright.sync_api import Error as PlaywrightError
from rich.console import Console

from . import __version__
from .errors import DemoRecorderError
from .loader import DEMO_SUFFIX, list_demos, load_demo
from .recorder import PlaywrightRecorder
from .screenshots import FORMATS, ScreenshotOptions, capture_screenshots
from .video import (
    check_ffmpeg_installed,
    create_gif,
    extract_thumbnail,
    finalize_video,
    write_gif,
)

logger = logging.getLogger("demo_recorder")
console = Console()

DEFAULT_DEMOS_DIR = "./demos"
DEFAULT_OUTPUT_DIR = "./output"
IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".webp")

DEMO_TEMPLATE = '''"""Demo: {name}."""

from demo_recorder import DemoContext, DemoDefinition


def run(ctx: DemoContext) -> None:
    # Wait for page to load
    ctx.wait(1500)

    # Add your demo steps here, for example:
    #   ctx.highlight("button.submit", 500)
    #   ctx.click_animated("button.submit")
    #   ctx.type_animated("input#email", "test@example.com", delay=40)
    #   ctx.zoom_highlight(".result", duration=700)
    #   ctx.page.wait_for_selector(".result")
    #   ctx.screenshot("result")

    # Final pause
    ctx.wait(2000)


demo = DemoDefinition(
    id={id!r},
    name={name!r},
    url={url!r},
    run=run,
)
'''


def _title_from_id(demo_id: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in demo_id.split("-") if word)


def _fail(message: str, exc: Optional[BaseException] = None) -> int:
    console.print(f"[red]✖[/red] {message}")
    if exc is not None:
        logger.error("%s: %s", type(exc).__name__, exc)
    return 1


def _banner(label: str, path: Path) -> None:
    console.print()
    console.print("=" * 40)
    console.print(label)
    console.print(f"File: {path}")
    console.print("=" * 40)
    console.print()


def cmd_record(args: argparse.Namespace) -> int:
    try:
        with console.status("Loading demo definition..."):
            demo = load_demo(args.demo_file)
        console.print(f"[green]✔[/green] Loaded demo: {demo.name}")

        convert = args.convert
        if convert and not check_ffmpeg_installed():
            console.print("[yellow]⚠[/yellow] FFmpeg not found - video will be saved as WebM")
            convert = False

        with console.status("Recording demo..."):
            result = PlaywrightRecorder(headed=args.headed).record(demo, Path(args.output))
        console.print(f"[green]✔[/green] Recording complete ({result.duration_s:.1f}s)")

        final_path = result.video_path
        if convert:
            with console.status("Converting to MP4..."):
                final_path = finalize_video(result.video_path)
            if final_path != result.video_path:
                console.print("[green]✔[/green] Conversion complete")
    except (DemoRecorderError, PlaywrightError, OSError) as exc:
        return _fail("Recording failed", exc)
    except Exception as exc:
        return _fail("Recording failed: demo script raised an error", exc)

    _banner("Recording saved!", final_path)
    return 0


def cmd_screenshot(args: argparse.Namespace) -> int:
    try:
        options = ScreenshotOptions(
            format=args.format,
            quality=args.quality,
            full_page=args.full_page,
            gallery=args.gallery,
        )
    except ValueError as exc:
        return _fail("Invalid screenshot options", exc)

    try:
        with console.status("Loading demo definition..."):
            demo = load_demo(args.demo_file)
        console.print(f"[green]✔[/green] Loaded demo: {demo.name}")

        with console.status("Capturing screenshots..."):
            paths = capture_screenshots(demo, Path(args.output), options, headed=args.headed)
    except (DemoRecorderError, PlaywrightError, OSError) as exc:
        return _fail("Screenshot capture failed", exc)
    except Exception as exc:
        return _fail("Screenshot capture failed: demo script raised an error", exc)

    console.print(f"[green]✔[/green] Captured {len(paths)} screenshot(s)")
    if paths:
        console.print(f"Saved to: {paths[0].parent}")
        if options.gallery:
            console.print(f"Gallery: {paths[0].parent / 'index.html'}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    demos_dir = Path(args.dir).resolve()
    with console.status("Finding demo files..."):
        demo_files = list_demos(demos_dir)

    if not demo_files:
        console.print("[blue]ℹ[/blue] No demo files found")
        console.print(f"\nLooking in: {demos_dir}")
        console.print(f"Demo files should have the extension: {DEMO_SUFFIX}\n")
        return 0

    console.print(f"[green]✔[/green] Found {len(demo_files)} demo file(s)")
    console.print("\nAvailable demos:\n")
    for path in demo_files:
        console.print(f"  {path.name}", highlight=False)
        try:
            demo = load_demo(path)
        except DemoRecorderError as exc:
            console.print(f"    Error: {exc}", highlight=False)
        else:
            console.print(f"    ID: {demo.id}", highlight=False)
            console.print(f"    Name: {demo.name}", highlight=False)
            console.print(f"    URL: {demo.url}", highlight=False)
        console.print()
    return 0


def cmd_create(args: argparse.Namespace) -> int:
    demos_dir = Path(args.dir).resolve()
    filepath = demos_dir / f"{args.id}{DEMO_SUFFIX}"
    if filepath.exists():
        return _fail(f"Demo file already exists: {filepath}")

    name = args.name or _title_from_id(args.id)
    try:
        demos_dir.mkdir(parents=True, exist_ok=True)
        filepath.write_text(
            DEMO_TEMPLATE.format(id=args.id, name=name, url=args.url), encoding="utf-8"
        )
    except OSError as exc:
        return _fail("Failed to create demo", exc)
    console.print(f"[green]✔[/green] Created demo: {filepath}")

    console.print("\nNext steps:")
    console.print(f"  1. Edit {filepath.name} to define your demo flow")
    console.print(f"  2. Run: demo-recorder record {filepath}")

    if args.record:
        console.print()
        record_args = argparse.Namespace(
            demo_file=str(filepath),
            output=args.output,
            convert=True,
            headed=args.headed,
        )
        return cmd_record(record_args)
    return 0


def cmd_thumbnail(args: argparse.Namespace) -> int:
    try:
        with console.status("Extracting thumbnail..."):
            path = extract_thumbnail(
                Path(args.video),
                Path(args.output) if args.output else None,
                at_seconds=args.time,
                width=args.width,
            )
    except (DemoRecorderError, OSError) as exc:
        return _fail("Thumbnail extraction failed", exc)
    console.print(f"[green]✔[/green] Thumbnail saved: {path}")
    return 0


def cmd_gif(args: argparse.Namespace) -> int:
    source = Path(args.source)
    try:
        with console.status("Creating GIF..."):
            if source.is_dir():
                frames = sorted(p for p in source.iterdir() if p.suffix.lower() in IMAGE_SUFFIXES)
                if not frames:
                    return _fail(f"No images found in {source}")
                output = Path(args.output) if args.output else source / "screenshots.gif"
                path = write_gif(frames, output, frame_ms=args.frame_ms)
            else:
                path = create_gif(
                    source,
                    Path(args.output) if args.output else None,
                    fps=args.fps,
                    width=args.width,
                    start=args.start,
                    duration=args.duration,
                )
    except (DemoRecorderError, OSError, ValueError) as exc:
        return _fail("GIF creation failed", exc)
    console.print(f"[green]✔[/green] GIF saved: {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="demo-recorder",
        description="Record demo videos of web apps using Playwright.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logging."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create a new demo definition file")
    create.add_argument("id", help="Demo id, used for file names")
    create.add_argument("-u", "--url", required=True, help="URL of the app to demo")
    create.add_argument("-n", "--name", help="Human-readable name for the demo")
    create.add_argument("-d", "--dir", default=DEFAULT_DEMOS_DIR, help="Directory to create demo in")
    create.add_argument("-r", "--record", action="store_true", help="Record the demo immediately after creating")
    create.add_argument("-o", "--output", default=DEFAULT_OUTPUT_DIR, help="Output directory for recordings")
    create.add_argument("--headed", action="store_true", help="Run browser in headed mode when recording")
    create.set_defaults(func=cmd_create)

    record = sub.add_parser("record", help="Record a demo video from a demo definition file")
    record.add_argument("demo_file", help="Path to a *.demo.py file")
    record.add_argument("-o", "--output", default=DEFAULT_OUTPUT_DIR, help="Output directory")
    record.add_argument(
        "--no-convert", dest="convert", action="store_false", help="Skip WebM to MP4 conversion"
    )
    record.add_argument("--headed", action="store_true", help="Run browser in headed mode (visible window)")
    record.set_defaults(func=cmd_record)

    screenshot = sub.add_parser(
        "screenshot",
        help="Capture screenshots from a demo (auto-captures after each interaction)",
    )
    screenshot.add_argument("demo_file", help="Path to a *.demo.py file")
    screenshot.add_argument("-o", "--output", default=DEFAULT_OUTPUT_DIR, help="Output directory")
    screenshot.add_argument("--format", default="png", choices=FORMATS, help="Image format")
    screenshot.add_argument("--quality", type=int, default=90, help="Quality for jpeg/webp (0-100)")
    screenshot.add_argument("--full-page", action="store_true", help="Capture full page instead of viewport")
    screenshot.add_argument("--headed", action="store_true", help="Run browser in headed mode (visible window)")
    screenshot.add_argument(
        "--no-gallery", dest="gallery", action="store_false", help="Skip HTML gallery generation"
    )
    screenshot.set_defaults(func=cmd_screenshot)

    list_cmd = sub.add_parser("list", help="List all demo definition files")
    list_cmd.add_argument("-d", "--dir", default=DEFAULT_DEMOS_DIR, help="Demos directory")
    list_cmd.set_defaults(func=cmd_list)

    thumbnail = sub.add_parser("thumbnail", help="Extract a thumbnail image from a video")
    thumbnail.add_argument("video", help="Path to a recorded video")
    thumbnail.add_argument("-o", "--output", help="Output image path (default: <video>-thumbnail.png)")
    thumbnail.add_argument("-t", "--time", type=float, default=1.0, help="Timestamp in seconds")
    thumbnail.add_argument("-w", "--width", type=int, help="Scale down to this width in pixels")
    thumbnail.set_defaults(func=cmd_thumbnail)

    gif = sub.add_parser("gif", help="Create a GIF from a video or a directory of screenshots")
    gif.add_argument("source", help="Video file or screenshot directory")
    gif.add_argument("-o", "--output", help="Output GIF path")
    gif.add_argument("--fps", type=int, default=10, help="Frames per second (video input)")
    gif.add_argument("-w", "--width", type=int, default=800, help="GIF width in pixels (video input)")
    gif.add_argument("--start", type=float, help="Start offset in seconds (video input)")
    gif.add_argument("--duration", type=float, help="Clip length in seconds (video input)")
    gif.add_argument(
        "--frame-ms", type=int, default=500, help="Milliseconds per frame (screenshot input)"
    )
    gif.set_defaults(func=cmd_gif)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s  %(name)s  %(message)s",
    )
    handler: Callable[[argparse.Namespace], int] = args.func
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
