"""Caller-facing conversion API: single files, batches and cancellation."""

from __future__ import annotations

import threading
from pathlib import Path

from image_optimizer.infrastructure.ffmpeg_runner import FFmpegRunner
from image_optimizer.models.conversion import ConversionResult, FileDescriptor
from image_optimizer.models.conversion_settings import ConversionSettings
from image_optimizer.services import size_estimator
from image_optimizer.services.batch_converter import BatchConverter, BatchProgressCallback
from image_optimizer.services.cancellation import CancellationToken
from image_optimizer.services.image_converter import ImageConverter, OutputChooser, ProgressCallback
from image_optimizer.utils.config import SUPPORTED_MIME_TYPES


class ConversionService:
    """Facade over ImageConverter and BatchConverter."""

    def __init__(
        self,
        runner: FFmpegRunner | None = None,
        output_dir: Path | None = None,
        choose_output: OutputChooser | None = None,
    ):
        self._converter = ImageConverter(runner=runner, output_dir=output_dir, choose_output=choose_output)
        self._batch = BatchConverter(self._converter)
        self._lock = threading.Lock()
        self._single_token: CancellationToken | None = None

    def convert_one(
        self,
        file: FileDescriptor,
        settings: ConversionSettings,
        on_progress: ProgressCallback | None = None,
    ) -> ConversionResult:
        token = CancellationToken()
        with self._lock:
            self._single_token = token
        try:
            return self._converter.convert(file, settings, on_progress, token)
        finally:
            with self._lock:
                if self._single_token is token:
                    self._single_token = None

    def convert_batch(
        self,
        files: list[FileDescriptor],
        settings: ConversionSettings,
        on_progress: BatchProgressCallback | None = None,
    ) -> list[ConversionResult]:
        return self._batch.convert_batch(files, settings, on_progress)

    def cancel(self) -> None:
        """Cancel the running single-file conversion."""
        with self._lock:
            token = self._single_token
        if token is not None:
            token.cancel()

    def cancel_one(self, file_id: str) -> None:
        self._batch.cancel_file(file_id)

    def cancel_all(self) -> None:
        self._batch.cancel_all()

    @staticmethod
    def is_supported(mime_type: str) -> bool:
        return mime_type in SUPPORTED_MIME_TYPES

    @staticmethod
    def estimate_size(original_size: int, settings: ConversionSettings) -> int:
        return size_estimator.estimate_size(original_size, settings)

    @staticmethod
    def estimate_batch_size(files: list[FileDescriptor], settings: ConversionSettings) -> tuple[int, int]:
        return size_estimator.estimate_batch_size(files, settings)
