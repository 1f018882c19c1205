"""FFmpeg and Pillow post-processing for recorded demos."""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from PIL import Image

from .errors import FfmpegNotFoundError, TranscodeError

logger = logging.getLogger(__name__)

FFMPEG_ENV_VAR = "DEMO_RECORDER_FFMPEG"
CODECS = {"h264": "libx264", "h265": "libx265"}
STDERR_TAIL = 500


def find_ffmpeg() -> Optional[str]:
    override = os.environ.get(FFMPEG_ENV_VAR)
    if override:
        return override if Path(override).exists() else shutil.which(override)
    return shutil.which("ffmpeg")


def _require_ffmpeg() -> str:
    ffmpeg = find_ffmpeg()
    if not ffmpeg:
        raise FfmpegNotFoundError()
    return ffmpeg


def _run_ffmpeg(args: Sequence[str], description: str) -> None:
    cmd = [_require_ffmpeg(), *args]
    logger.debug("Running %s", " ".join(cmd))
    try:
        completed = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except FileNotFoundError as exc:
        raise FfmpegNotFoundError() from exc
    if completed.returncode != 0:
        tail = (completed.stderr or "")[-STDERR_TAIL:]
        raise TranscodeError(
            f"{description} failed: FFmpeg exited with code {completed.returncode}: {tail}"
        )


def check_ffmpeg_installed() -> bool:
    ffmpeg = find_ffmpeg()
    if not ffmpeg:
        return False
    try:
        completed = subprocess.run(
            [ffmpeg, "-version"], capture_output=True, text=True, check=False
        )
    except OSError:
        return False
    return completed.returncode == 0


def get_ffmpeg_version() -> Optional[str]:
    ffmpeg = find_ffmpeg()
    if not ffmpeg:
        return None
    try:
        completed = subprocess.run(
            [ffmpeg, "-version"], capture_output=True, text=True, check=False
        )
    except OSError:
        return None
    if completed.returncode != 0:
        return None
    match = re.search(r"ffmpeg version (\S+)", completed.stdout or "")
    return match.group(1) if match else "unknown"


def convert_to_mp4(
    input_path: Path,
    output_path: Optional[Path] = None,
    *,
    codec: str = "h264",
    crf: int = 23,
) -> Path:
    """Transcode a WebM capture to an MP4 that plays on YouTube and in browsers."""
    if codec not in CODECS:
        raise ValueError(f"Unsupported codec {codec!r}; choose one of {', '.join(CODECS)}")
    input_path = Path(input_path)
    output_path = Path(output_path) if output_path else input_path.with_suffix(".mp4")
    logger.info("Converting %s to MP4...", input_path.name)
    _run_ffmpeg(
        [
            "-i",
            str(input_path),
            "-c:v",
            CODECS[codec],
            "-crf",
            str(crf),
            "-preset",
            "medium",
            "-pix_fmt",
            "yuv420p",
            "-movflags",
            "+faststart",
            "-y",
            str(output_path),
        ],
        f"Converting {input_path.name}",
    )
    logger.info("Conversion complete: %s", output_path)
    return output_path


def finalize_video(video_path: Path, *, convert: bool = True) -> Path:
    """Return the file to hand to the user: MP4 when possible, else the raw capture."""
    if not convert:
        return Path(video_path)
    if not check_ffmpeg_installed():
        logger.warning("FFmpeg not found - video will be saved as %s", Path(video_path).suffix[1:].upper())
        return Path(video_path)
    return convert_to_mp4(video_path)


def extract_thumbnail(
    video_path: Path,
    output_path: Optional[Path] = None,
    *,
    at_seconds: float = 1.0,
    width: Optional[int] = None,
) -> Path:
    video_path = Path(video_path)
    output_path = Path(output_path) if output_path else video_path.with_name(
        f"{video_path.stem}-thumbnail.png"
    )
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _run_ffmpeg(
        [
            "-y",
            "-ss",
            f"{at_seconds:.3f}",
            "-i",
            str(video_path),
            "-frames:v",
            "1",
            str(output_path),
        ],
        f"Extracting thumbnail from {video_path.name}",
    )
    if width:
        resize_image(output_path, width)
    return output_path


def resize_image(path: Path, width: int) -> None:
    """Scale the image at ``path`` down to ``width`` pixels wide, keeping aspect."""
    with Image.open(path) as img:
        if img.width <= width:
            return
        height = max(1, round(img.height * width / img.width))
        resized = img.resize((width, height), Image.Resampling.LANCZOS)
    resized.save(path)
    resized.close()


def create_gif(
    video_path: Path,
    output_path: Optional[Path] = None,
    *,
    fps: int = 10,
    width: int = 800,
    start: Optional[float] = None,
    duration: Optional[float] = None,
) -> Path:
    video_path = Path(video_path)
    output_path = Path(output_path) if output_path else video_path.with_suffix(".gif")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    args: list[str] = ["-y"]
    if start is not None:
        args.extend(["-ss", f"{start:.3f}"])
    if duration is not None:
        args.extend(["-t", f"{duration:.3f}"])
    args.extend(
        [
            "-i",
            str(video_path),
            "-vf",
            f"fps={fps},scale={width}:-1:flags=lanczos,split[s0][s1];[s0]palettegen[p];[s1][p]paletteuse",
            "-loop",
            "0",
            str(output_path),
        ]
    )
    _run_ffmpeg(args, f"Creating GIF from {video_path.name}")
    return output_path


def write_gif(frame_paths: list[Path], output_path: Path, frame_ms: int) -> Path:
    if not frame_paths:
        raise ValueError("No frames to write to GIF")
    frames = [Image.open(path).convert("RGB") for path in frame_paths]
    first, rest = frames[0], frames[1:]
    first.save(
        output_path,
        save_all=True,
        append_images=rest,
        optimize=True,
        duration=frame_ms,
        loop=0,
    )
    for frame in frames:
        frame.close()
    return output_path
