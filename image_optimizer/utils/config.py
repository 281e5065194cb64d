"""Application configuration constants."""

from __future__ import annotations

import sys
from pathlib import Path

APP_NAME = "ImageOptimizer"
APP_VERSION = "0.1.0"
ORG_NAME = "ImageOptimizer"

# External tools
if sys.platform == "darwin":
    FFMPEG_PATH = "/opt/homebrew/bin/ffmpeg"
    PNGQUANT_PATH = "/opt/homebrew/bin/pngquant"
elif sys.platform == "win32":
    FFMPEG_PATH = r"C:\ffmpeg\bin\ffmpeg.exe"
    PNGQUANT_PATH = r"C:\pngquant\pngquant.exe"
else:
    FFMPEG_PATH = "/usr/bin/ffmpeg"
    PNGQUANT_PATH = "/usr/bin/pngquant"

# Seconds to wait after terminate() before kill()
PROCESS_TERMINATE_TIMEOUT = 2.0

# Logs
LOG_DIR = Path.home() / ".image_optimizer" / "logs"
TOOL_LOG_NAME = "tools.log"

# Supported inputs
IMAGE_EXTENSIONS = [".jpg", ".jpeg", ".png", ".webp", ".avif", ".bmp", ".tiff", ".gif", ".heic"]
SUPPORTED_MIME_TYPES = [
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/avif",
    "image/bmp",
    "image/tiff",
    "image/gif",
    "image/heic",
]
MAX_FILE_SIZE = 100 * 1024 * 1024  # 100MB

# Output naming: <stem>_optimized.<ext>
OUTPUT_SUFFIX = "_optimized"
DEFAULT_OUTPUT_EXTENSION = "jpg"

# Single-item progress layout (percent)
PROGRESS_PREPARING = 10
PROGRESS_PROCESSING_START = 25
PROGRESS_PROCESSING_END = 85
PROGRESS_FINALIZING = 95
# Percent gained per second of transcoder time while processing
PROGRESS_PER_TOOL_SECOND = 10.0
