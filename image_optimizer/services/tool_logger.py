"""Utility for logging external tool (FFmpeg, pngquant) output to a file."""

from __future__ import annotations

import logging
from pathlib import Path

from image_optimizer.utils.config import LOG_DIR, TOOL_LOG_NAME

_logger = logging.getLogger("tool_output")
_logger.setLevel(logging.DEBUG)
_logger.propagate = False


def get_tool_log_path() -> Path:
    """Return the path to the tool log file."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    return LOG_DIR / TOOL_LOG_NAME


def _ensure_handler() -> None:
    if _logger.handlers:
        return
    try:
        fh = logging.FileHandler(get_tool_log_path(), encoding="utf-8")
    except OSError:
        # Log directory not writable
        _logger.addHandler(logging.NullHandler())
        return
    fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    _logger.addHandler(fh)


def log_tool_command(tool_name: str, args: list[str]) -> None:
    """Log the command line being executed."""
    _ensure_handler()
    _logger.info("Executing %s: %s", tool_name, " ".join(args))


def log_tool_line(tool_name: str, line: str) -> None:
    """Log a single line of tool output."""
    _ensure_handler()
    _logger.debug("[%s] %s", tool_name, line.rstrip())
