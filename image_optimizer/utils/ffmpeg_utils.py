"""Utilities for finding the ffmpeg and pngquant executables."""

from __future__ import annotations

import shutil
from pathlib import Path


def find_ffmpeg() -> str | None:
    """
    Find ffmpeg executable.

    Search order:
    1. Configured path (config.FFMPEG_PATH)
    2. System PATH (ffmpeg command)
    3. Bundled FFmpeg (imageio-ffmpeg)

    Returns:
        Path to ffmpeg or None if not found
    """
    from .config import FFMPEG_PATH
    if Path(FFMPEG_PATH).is_file():
        return FFMPEG_PATH

    system_ffmpeg = shutil.which("ffmpeg")
    if system_ffmpeg:
        return system_ffmpeg

    try:
        from .ffmpeg_bundled import get_bundled_ffmpeg
        return get_bundled_ffmpeg()
    except (ImportError, RuntimeError):
        pass

    return None


def find_pngquant() -> str | None:
    """
    Find the pngquant executable (optional PNG optimizer).

    Returns:
        Path to pngquant or None if it is not installed
    """
    from .config import PNGQUANT_PATH
    if Path(PNGQUANT_PATH).is_file():
        return PNGQUANT_PATH

    return shutil.which("pngquant")
