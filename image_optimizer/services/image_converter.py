"""Convert a single image file: prepare → transcode → finalize.

``ImageConverter.convert`` never raises; every failure, cancellation
included, comes back as a failed ConversionResult.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from image_optimizer.infrastructure.ffmpeg_runner import FFmpegRunner
from image_optimizer.models.conversion import (
    ConversionErrorKind,
    ConversionProgress,
    ConversionResult,
    FileDescriptor,
    ProgressStage,
)
from image_optimizer.models.conversion_settings import ConversionSettings
from image_optimizer.services.cancellation import CancellationToken
from image_optimizer.services.encoder_settings import output_extension, output_format_name
from image_optimizer.services.errors import ConversionError, NoDestinationError, OutputMissingError
from image_optimizer.services.image_transcoder import transcode_image
from image_optimizer.utils.config import (
    OUTPUT_SUFFIX,
    PROGRESS_FINALIZING,
    PROGRESS_PER_TOOL_SECOND,
    PROGRESS_PREPARING,
    PROGRESS_PROCESSING_END,
    PROGRESS_PROCESSING_START,
)
from image_optimizer.utils.i18n import tr

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ConversionProgress], None]
# (file, extension) -> destination, or None when the user declines
OutputChooser = Callable[[FileDescriptor, str], Path | None]

# Sub-stage messages shown while the transcoder runs (percent threshold, message)
PROCESSING_STEPS: list[tuple[int, str]] = [
    (25, "Starting format conversion..."),
    (45, "Applying quality settings..."),
    (65, "Resizing..."),
    (85, "Applying optimizations..."),
]


def default_output_path(file: FileDescriptor, extension: str, output_dir: Path | None = None) -> Path:
    """``<dir>/<stem>_optimized.<ext>``, next to the input unless *output_dir* is given."""
    directory = Path(output_dir) if output_dir else file.path.parent
    return directory / f"{Path(file.name).stem}{OUTPUT_SUFFIX}.{extension}"


def unique_output_path(path: Path, claimed: set[Path]) -> Path:
    """First of ``path``, ``<stem>-1<suffix>``, ``<stem>-2<suffix>``... not in *claimed*."""
    candidate = path
    counter = 1
    while candidate in claimed:
        candidate = path.with_name(f"{path.stem}-{counter}{path.suffix}")
        counter += 1
    return candidate


def processing_message(percent: float) -> str:
    message = PROCESSING_STEPS[0][1]
    for threshold, step_message in PROCESSING_STEPS:
        if percent >= threshold:
            message = step_message
    return tr(message)


class _ProgressReporter:
    """Emits progress for one file, keeping percent non-decreasing until an error."""

    def __init__(self, on_progress: ProgressCallback | None, start: float):
        self._on_progress = on_progress
        self._start = start
        self._percent = 0.0

    def elapsed(self) -> float:
        return time.monotonic() - self._start

    def emit(self, stage: ProgressStage, percent: float, message: str, remaining: float | None = None) -> None:
        if stage is ProgressStage.ERROR:
            self._percent = 0.0
        else:
            self._percent = max(self._percent, min(100.0, float(percent)))
        if self._on_progress:
            self._on_progress(ConversionProgress(
                stage=stage,
                percent=self._percent,
                message=message,
                elapsed_seconds=self.elapsed(),
                remaining_seconds=remaining,
            ))

    def tool_time(self, tool_seconds: int) -> None:
        """Map transcoder time to the processing band."""
        percent = min(
            PROGRESS_PROCESSING_END,
            PROGRESS_PROCESSING_START + tool_seconds * PROGRESS_PER_TOOL_SECOND,
        )
        percent = max(self._percent, percent)
        elapsed = self.elapsed()
        remaining = elapsed / percent * (100 - percent) if percent > 0 else None
        self.emit(ProgressStage.PROCESSING, percent, processing_message(percent), remaining)


class ImageConverter:
    """Single-item converter.

    Args:
        runner: FFmpegRunner to launch tools with (default: shared runner).
        output_dir: Directory for outputs (default: next to each input).
        choose_output: Overrides output naming; returning None aborts the
            conversion with a no-destination failure.
    """

    def __init__(
        self,
        runner: FFmpegRunner | None = None,
        output_dir: Path | None = None,
        choose_output: OutputChooser | None = None,
    ):
        self._runner = runner
        self._output_dir = output_dir
        self._choose_output = choose_output

    def _destination(
        self,
        file: FileDescriptor,
        extension: str,
        claimed_paths: set[Path] | None,
    ) -> Path | None:
        if self._choose_output is not None:
            return self._choose_output(file, extension)
        path = default_output_path(file, extension, self._output_dir)
        if claimed_paths is not None:
            path = unique_output_path(path, claimed_paths)
            claimed_paths.add(path)
        return path

    def convert(
        self,
        file: FileDescriptor,
        settings: ConversionSettings,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
        claimed_paths: set[Path] | None = None,
    ) -> ConversionResult:
        """Convert *file*; never raises.

        *claimed_paths* collects default destinations already used in the
        current run; a colliding name gets a ``-N`` suffix and is added.
        """
        token = cancel_token or CancellationToken()
        start = time.monotonic()
        reporter = _ProgressReporter(on_progress, start)
        output_path: Path | None = None
        transcoded = False

        try:
            reporter.emit(ProgressStage.PREPARING, PROGRESS_PREPARING, tr("Preparing file..."), 0.0)
            token.raise_if_cancelled()

            extension = output_extension(settings.format, file.name)
            output_path = self._destination(file, extension, claimed_paths)
            if output_path is None:
                raise NoDestinationError()
            output_path = Path(output_path)

            reporter.emit(ProgressStage.PROCESSING, PROGRESS_PROCESSING_START, processing_message(PROGRESS_PROCESSING_START))
            token.raise_if_cancelled()

            logger.info("Converting %s -> %s (%s)", file.path, output_path, settings.to_dict())
            transcode_image(
                file.path,
                output_path,
                settings,
                runner=self._runner,
                on_progress=reporter.tool_time,
                cancel_token=token,
            )
            transcoded = True

            reporter.emit(ProgressStage.PROCESSING, PROGRESS_PROCESSING_END, processing_message(PROGRESS_PROCESSING_END))
            token.raise_if_cancelled()

            reporter.emit(ProgressStage.FINALIZING, PROGRESS_FINALIZING, tr("Saving file..."))
            try:
                result = ConversionResult.succeeded(
                    output_path=output_path,
                    output_format=output_format_name(output_path, settings.format),
                    original_size=file.size,
                    processing_time=time.monotonic() - start,
                )
            except FileNotFoundError:
                raise OutputMissingError(output_path)
            token.raise_if_cancelled()

            reporter.emit(ProgressStage.COMPLETED, 100, tr("Conversion complete!"), 0.0)
            logger.info(
                "Converted %s: %d -> %d bytes (%.1f%%)",
                file.name, result.original_size, result.output_size, result.compression_ratio,
            )
            return result

        except Exception as e:
            if isinstance(e, ConversionError):
                kind = e.kind
                logger.warning("Conversion of %s failed (%s): %s", file.name, kind.value, e)
            else:
                kind = ConversionErrorKind.INTERNAL
                logger.exception("Unexpected error converting %s", file.name)
            if kind is ConversionErrorKind.CANCELLED and transcoded and output_path is not None:
                output_path.unlink(missing_ok=True)
            message = str(e) or tr("Conversion failed")
            elapsed = time.monotonic() - start
            try:
                reporter.emit(ProgressStage.ERROR, 0, message)
            except Exception:
                logger.exception("Progress callback failed while reporting an error")
            return ConversionResult.failed(message, file.size, elapsed, kind)
