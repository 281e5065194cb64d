"""Sequential batch conversion with per-file and whole-batch cancellation."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable

from image_optimizer.models.batch import BatchProgress, FileProgress, FileStatus, make_file_id
from image_optimizer.models.conversion import (
    ConversionErrorKind,
    ConversionProgress,
    ConversionResult,
    FileDescriptor,
    ProgressStage,
)
from image_optimizer.models.conversion_settings import ConversionSettings
from image_optimizer.services.cancellation import CancellationToken
from image_optimizer.services.image_converter import ImageConverter
from image_optimizer.utils.i18n import tr

logger = logging.getLogger(__name__)

BatchProgressCallback = Callable[[BatchProgress], None]


class BatchConverter:
    """Runs ImageConverter over a list of files, one at a time.

    ``cancel_file`` and ``cancel_all`` may be called from any thread while
    ``convert_batch`` runs. Progress callbacks fire on the thread running
    ``convert_batch`` and receive immutable snapshots.
    """

    def __init__(self, converter: ImageConverter | None = None):
        self._converter = converter or ImageConverter()
        self._lock = threading.Lock()
        self._batch_cancelled = False
        self._cancelled_files: set[str] = set()
        self._active_file_id: str | None = None
        self._active_token: CancellationToken | None = None

    # ------------------------------------------------------------ Cancellation

    def cancel_file(self, file_id: str) -> None:
        """Cancel one item: skipped if not started, terminated if running."""
        with self._lock:
            self._cancelled_files.add(file_id)
            token = self._active_token if self._active_file_id == file_id else None
        if token is not None:
            logger.info("Cancelling running item %s", file_id)
            token.cancel()

    def cancel_all(self) -> None:
        """Stop the batch before the next item and terminate the running one."""
        with self._lock:
            self._batch_cancelled = True
            token = self._active_token
        logger.info("Batch cancellation requested")
        if token is not None:
            token.cancel()

    @property
    def is_cancelled(self) -> bool:
        with self._lock:
            return self._batch_cancelled

    # ------------------------------------------------------------ Run

    def _dequeue(self, file_id: str, token: CancellationToken) -> str:
        """Claim the next item. Returns 'stop', 'skip' or 'run'."""
        with self._lock:
            if self._batch_cancelled:
                return "stop"
            if file_id in self._cancelled_files:
                return "skip"
            self._active_file_id = file_id
            self._active_token = token
            return "run"

    def _release(self) -> None:
        with self._lock:
            self._active_file_id = None
            self._active_token = None

    def convert_batch(
        self,
        files: list[FileDescriptor],
        settings: ConversionSettings,
        on_progress: BatchProgressCallback | None = None,
    ) -> list[ConversionResult]:
        """Convert *files* in order.

        Returns:
            One result per item that was dequeued (including items skipped
            because they were cancelled). Items never reached because of
            ``cancel_all`` are omitted.
        """
        with self._lock:
            self._batch_cancelled = False
            self._cancelled_files.clear()

        start_time = time.time()
        start = time.monotonic()
        records = [
            FileProgress(
                file_id=make_file_id(f.name, i),
                file_name=f.name,
                index=i,
                progress=ConversionProgress(ProgressStage.PREPARING, 0, tr("Waiting...")),
            )
            for i, f in enumerate(files)
        ]
        results: list[ConversionResult] = []
        claimed_paths: set[Path] = set()
        current_index = 0

        def emit() -> None:
            if on_progress:
                on_progress(BatchProgress.capture(records, current_index, start_time, time.monotonic() - start))

        logger.info("Starting batch of %d files (%s)", len(files), settings.to_dict())
        emit()

        for index, file in enumerate(files):
            record = records[index]
            token = CancellationToken()
            action = self._dequeue(record.file_id, token)
            if action == "stop":
                logger.info("Batch cancelled before %s", record.file_id)
                break

            current_index = index
            if action == "skip":
                result = ConversionResult.failed(
                    tr("Cancelled"), file.size, 0.0, ConversionErrorKind.CANCELLED,
                )
                record.progress = ConversionProgress(ProgressStage.ERROR, 0, tr("Cancelled"))
                record.finish(FileStatus.CANCELLED, result)
                results.append(result)
                emit()
                continue

            try:
                record.start()
                emit()

                def on_item_progress(progress: ConversionProgress, record=record) -> None:
                    record.update(progress)
                    emit()

                result = self._converter.convert(
                    file, settings, on_item_progress, token, claimed_paths=claimed_paths,
                )
            except Exception as e:
                logger.exception("Batch item %s aborted", record.file_id)
                message = str(e) or tr("Conversion failed")
                result = ConversionResult.failed(message, file.size, 0.0, ConversionErrorKind.INTERNAL)
                record.progress = ConversionProgress(ProgressStage.ERROR, 0, message)
            finally:
                self._release()

            if result.success:
                status = FileStatus.COMPLETED
            elif result.cancelled:
                status = FileStatus.CANCELLED
            else:
                status = FileStatus.ERROR
            if not record.status.is_terminal:
                record.finish(status, result)
            results.append(result)
            emit()

        emit()
        succeeded = sum(1 for r in results if r.success)
        logger.info("Batch finished: %d/%d succeeded, %d processed", succeeded, len(files), len(results))
        return results
