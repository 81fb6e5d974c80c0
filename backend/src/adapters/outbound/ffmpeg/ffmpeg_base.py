"""
Shared FFmpeg path resolution and command construction.
"""
from __future__ import annotations

import logging
import os
import shutil
from typing import Optional

logger = logging.getLogger(__name__)

# Common install locations checked when ffmpeg is not on PATH
_KNOWN_FFMPEG_PATHS = [
    "/usr/local/bin/ffmpeg",
    "/opt/homebrew/bin/ffmpeg",
    r"C:\Program Files\ffmpeg\bin\ffmpeg.exe",
    r"C:\ffmpeg\bin\ffmpeg.exe",
]

# Container magic numbers checked before the engine is started.
CONTAINER_SIGNATURES: dict[str, tuple[bytes, ...]] = {
    "webm": (b"\x1a\x45\xdf\xa3",),
    "matroska": (b"\x1a\x45\xdf\xa3",),
    "avi": (b"RIFF",),
    "flv": (b"FLV",),
}


def get_ffmpeg_path(configured: Optional[str] = None) -> str:
    """Resolve ffmpeg executable path. Checks config, then PATH, then known locations."""
    if configured:
        return configured

    path = shutil.which("ffmpeg")
    if path:
        return path

    for candidate in _KNOWN_FFMPEG_PATHS:
        if os.path.exists(candidate):
            logger.info("Found FFmpeg at: %s", candidate)
            return candidate

    return "ffmpeg"


def matches_container(data: bytes, input_format: str) -> bool:
    """True when *data* starts with a known signature for *input_format*.

    Formats without a registered signature are passed through to the engine.
    """
    signatures = CONTAINER_SIGNATURES.get(input_format.lower())
    if signatures is None:
        return True
    return any(data.startswith(sig) for sig in signatures)


def build_frame_extraction_args(input_format: str, frame_rate: float) -> list[str]:
    """FFmpeg arguments reading a container from stdin and writing PNGs to stdout."""
    return [
        "-hide_banner",
        "-loglevel", "error",
        "-f", input_format,
        "-i", "pipe:0",
        "-vf", f"fps={frame_rate:g}",
        "-f", "image2pipe",
        "-c:v", "png",
        "pipe:1",
    ]
