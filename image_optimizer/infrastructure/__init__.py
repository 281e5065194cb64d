"""Infrastructure layer: external tools (FFmpeg, pngquant).

This layer hides subprocess details so the service layer does not
depend on them directly.
"""

from image_optimizer.infrastructure.ffmpeg_runner import FFmpegRunner, get_ffmpeg_runner

__all__ = [
    "FFmpegRunner",
    "get_ffmpeg_runner",
]
