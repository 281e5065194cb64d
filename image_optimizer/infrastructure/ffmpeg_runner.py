"""External tool launching. Every FFmpeg / pngquant subprocess is started here.

Keeps the service layer independent of subprocess details so tests can
swap in a mock runner.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import Any

from image_optimizer.utils.ffmpeg_utils import find_ffmpeg, find_pngquant


class FFmpegRunner:
    """Infrastructure class that starts FFmpeg and pngquant processes."""

    def __init__(self, ffmpeg_path: str | None = None, pngquant_path: str | None = None):
        """Paths default to auto-detection (config → PATH → bundled)."""
        self._ffmpeg = ffmpeg_path or find_ffmpeg()
        self._pngquant = pngquant_path
        self._pngquant_probed = pngquant_path is not None

    @property
    def ffmpeg_path(self) -> str | None:
        return self._ffmpeg

    @property
    def pngquant_path(self) -> str | None:
        if not self._pngquant_probed:
            self._pngquant = find_pngquant()
            self._pngquant_probed = True
        return self._pngquant

    def is_available(self) -> bool:
        """Whether the FFmpeg executable exists."""
        return self._ffmpeg is not None and Path(self._ffmpeg).is_file()

    def has_pngquant(self) -> bool:
        """Presence probe for the optional PNG optimizer (cached after the first call)."""
        path = self.pngquant_path
        return path is not None and Path(path).is_file()

    def run_async(self, args: list[str], **kwargs: Any) -> subprocess.Popen:
        """Start FFmpeg. args excludes the ffmpeg binary itself."""
        if not self._ffmpeg:
            raise FileNotFoundError("FFmpeg not found. Please install FFmpeg.")
        return self._popen([self._ffmpeg] + args, **kwargs)

    def run_pngquant_async(self, args: list[str], **kwargs: Any) -> subprocess.Popen:
        """Start pngquant. args excludes the pngquant binary itself."""
        path = self.pngquant_path
        if not path:
            raise FileNotFoundError("pngquant not found.")
        return self._popen([path] + args, **kwargs)

    @staticmethod
    def _popen(cmd: list[str], **kwargs: Any) -> subprocess.Popen:
        if sys.platform == "win32":
            kwargs.setdefault("creationflags", subprocess.CREATE_NO_WINDOW)
        return subprocess.Popen(cmd, **kwargs)


# Shared default instance
_default_runner: FFmpegRunner | None = None


def get_ffmpeg_runner() -> FFmpegRunner:
    """Return the default FFmpegRunner instance."""
    global _default_runner
    if _default_runner is None:
        _default_runner = FFmpegRunner()
    return _default_runner
