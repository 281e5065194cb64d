"""Transcode one image with FFmpeg (PNG outputs try the two-stage path first)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from image_optimizer.infrastructure.ffmpeg_runner import FFmpegRunner, get_ffmpeg_runner
from image_optimizer.models.conversion_settings import ConversionSettings
from image_optimizer.services.cancellation import CancellationToken
from image_optimizer.services.encoder_settings import normalize_extension
from image_optimizer.services.errors import OutputMissingError, ToolNotFoundError
from image_optimizer.services.ffmpeg_args import build_ffmpeg_args
from image_optimizer.services.png_optimizer import optimize_png
from image_optimizer.services.process_runner import execute
from image_optimizer.utils.i18n import tr

logger = logging.getLogger(__name__)


def transcode_image(
    input_path: Path,
    output_path: Path,
    settings: ConversionSettings,
    runner: FFmpegRunner | None = None,
    on_progress: Callable[[int], None] | None = None,
    cancel_token: CancellationToken | None = None,
) -> Path:
    """Convert *input_path* into *output_path*.

    Returns:
        output_path, which exists.

    Raises:
        ConversionError subclasses (see process_runner.execute).
    """
    runner = runner or get_ffmpeg_runner()
    if not runner.is_available():
        raise ToolNotFoundError(tr("FFmpeg not found. Please install FFmpeg."))

    input_path = Path(input_path)
    output_path = Path(output_path)

    if normalize_extension(output_path.suffix) == "png":
        if optimize_png(input_path, output_path, settings, runner, on_progress, cancel_token):
            if not output_path.exists():
                raise OutputMissingError(output_path)
            return output_path
        logger.info("Falling back to single-stage PNG conversion for %s", input_path.name)

    args = build_ffmpeg_args(input_path, output_path, settings)
    return execute(
        runner.run_async,
        args,
        output_path,
        tool_name="FFmpeg",
        on_progress=on_progress,
        cancel_token=cancel_token,
    )
