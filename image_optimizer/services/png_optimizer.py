"""Two-stage PNG optimization: FFmpeg into a scratch file, then pngquant."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Callable

from image_optimizer.infrastructure.ffmpeg_runner import FFmpegRunner
from image_optimizer.models.conversion_settings import ConversionSettings
from image_optimizer.services.cancellation import CancellationToken
from image_optimizer.services.errors import ConversionCancelledError, ConversionError
from image_optimizer.services.ffmpeg_args import build_png_scratch_args, build_pngquant_args
from image_optimizer.services.process_runner import execute

logger = logging.getLogger(__name__)


def optimize_png(
    input_path: Path,
    output_path: Path,
    settings: ConversionSettings,
    runner: FFmpegRunner,
    on_progress: Callable[[int], None] | None = None,
    cancel_token: CancellationToken | None = None,
) -> bool:
    """Try the two-stage PNG path.

    pngquant is only a size optimization: when it is missing or fails the
    scratch transcode becomes the output.

    Returns:
        True if *output_path* was written, False if the scratch transcode
        failed and the caller should use the single-stage path.

    Raises:
        ConversionCancelledError: Cancelled during either stage.
    """
    scratch_dir = Path(tempfile.mkdtemp(prefix="image_optimizer_"))
    scratch_path = scratch_dir / f"scratch_{Path(output_path).stem}.png"
    try:
        try:
            execute(
                runner.run_async,
                build_png_scratch_args(input_path, scratch_path, settings),
                scratch_path,
                tool_name="FFmpeg",
                on_progress=on_progress,
                cancel_token=cancel_token,
            )
        except ConversionCancelledError:
            raise
        except ConversionError as e:
            logger.info("PNG scratch transcode failed, using single-stage path: %s", e)
            return False

        if runner.has_pngquant():
            try:
                execute(
                    runner.run_pngquant_async,
                    build_pngquant_args(scratch_path, output_path, settings),
                    Path(output_path),
                    tool_name="pngquant",
                    cancel_token=cancel_token,
                )
                return True
            except ConversionCancelledError:
                raise
            except ConversionError as e:
                logger.info("pngquant failed, keeping FFmpeg output: %s", e)
        else:
            logger.info("pngquant not available, keeping FFmpeg output")

        shutil.copyfile(scratch_path, output_path)
        return True
    finally:
        shutil.rmtree(scratch_dir, ignore_errors=True)
