"""Load ``*.demo.py`` files into :class:`DemoDefinition` objects."""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import sys
from pathlib import Path
from typing import Any, Mapping

from .errors import InvalidDemoError
from .models import DemoDefinition, VideoSettings

logger = logging.getLogger(__name__)

DEMO_SUFFIX = ".demo.py"
REQUIRED_FIELDS = ("id", "name", "url", "run")


def _module_name(path: Path) -> str:
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:10]
    stem = path.name[: -len(DEMO_SUFFIX)] if path.name.endswith(DEMO_SUFFIX) else path.stem
    safe = "".join(ch if ch.isalnum() else "_" for ch in stem)
    return f"_demo_recorder_demo_{safe}_{digest}"


def _import_file(path: Path) -> Any:
    name = _module_name(path)
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise InvalidDemoError(f"Invalid demo definition: cannot import {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(name, None)
        raise InvalidDemoError(f"Invalid demo definition: {path.name} failed to import: {exc}") from exc
    return module


def coerce_definition(raw: Any, source: Path | None = None) -> DemoDefinition:
    """Validate ``raw`` (a DemoDefinition or a mapping) and return a DemoDefinition."""
    label = source.name if source else "<demo>"
    if isinstance(raw, DemoDefinition):
        data: Mapping[str, Any] = {
            "id": raw.id,
            "name": raw.name,
            "url": raw.url,
            "run": raw.run,
            "video": raw.video,
        }
    elif isinstance(raw, Mapping):
        data = raw
    else:
        raise InvalidDemoError(
            f"Invalid demo definition in {label}: expected a DemoDefinition or dict, "
            f"got {type(raw).__name__}"
        )

    missing = [key for key in REQUIRED_FIELDS if not data.get(key)]
    if missing:
        raise InvalidDemoError(
            f"Invalid demo definition in {label}: missing {', '.join(missing)}"
        )
    for key in ("id", "name", "url"):
        if not isinstance(data[key], str):
            raise InvalidDemoError(f"Invalid demo definition in {label}: '{key}' must be a string")
    if not callable(data["run"]):
        raise InvalidDemoError(f"Invalid demo definition in {label}: 'run' must be callable")

    video = data.get("video")
    if video is not None and not isinstance(video, (Mapping, VideoSettings)):
        raise InvalidDemoError(
            f"Invalid demo definition in {label}: 'video' must be a mapping with width/height"
        )
    try:
        settings = VideoSettings.from_overrides(video)
    except (TypeError, ValueError) as exc:
        raise InvalidDemoError(f"Invalid demo definition in {label}: bad video settings ({exc})") from exc

    return DemoDefinition(
        id=data["id"],
        name=data["name"],
        url=data["url"],
        run=data["run"],
        video=settings,
        source=source,
    )


def load_demo(path: str | Path) -> DemoDefinition:
    """Import the demo file at ``path`` and return its validated definition.

    The module must expose a ``demo`` attribute, either a
    :class:`DemoDefinition` or a dict with ``id``, ``name``, ``url``, ``run``
    and optionally ``video``.
    """
    demo_path = Path(path).resolve()
    if not demo_path.is_file():
        raise InvalidDemoError(f"Demo file not found: {demo_path}")
    module = _import_file(demo_path)
    raw = getattr(module, "demo", None)
    if raw is None:
        raise InvalidDemoError(
            f"Invalid demo definition in {demo_path.name}: no 'demo' attribute defined"
        )
    definition = coerce_definition(raw, source=demo_path)
    logger.debug("Loaded demo %s from %s", definition.id, demo_path)
    return definition


def list_demos(directory: str | Path) -> list[Path]:
    demos_dir = Path(directory)
    if not demos_dir.is_dir():
        return []
    return sorted(path for path in demos_dir.iterdir() if path.name.endswith(DEMO_SUFFIX))
