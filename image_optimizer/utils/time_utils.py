"""Time parsing and formatting utilities."""

from __future__ import annotations

import re

# FFmpeg reports progress on stderr as e.g. "time=00:00:01.23"
_FFMPEG_TIME_RE = re.compile(r"time=(\d{2}):(\d{2}):(\d{2})\.(\d{2})")


def parse_ffmpeg_time(text: str) -> int | None:
    """Return elapsed whole seconds from the first ``time=HH:MM:SS.ff`` token, or None."""
    match = _FFMPEG_TIME_RE.search(text)
    if not match:
        return None
    hours, minutes, seconds = (int(g) for g in match.groups()[:3])
    return hours * 3600 + minutes * 60 + seconds


def seconds_to_display(seconds: float) -> str:
    """Format seconds as 'M:SS' (or 'H:MM:SS' past an hour)."""
    total = max(0, int(round(seconds)))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_size(num_bytes: int) -> str:
    """Human readable byte count, e.g. '1.5 MB'."""
    size = float(num_bytes)
    for unit in ("B", "KB", "MB"):
        if abs(size) < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"
