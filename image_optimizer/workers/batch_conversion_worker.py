"""Background worker for batch image conversion."""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal

from image_optimizer.models.batch import BatchProgress
from image_optimizer.models.conversion import FileDescriptor
from image_optimizer.models.conversion_settings import ConversionSettings
from image_optimizer.services.conversion_service import ConversionService


class BatchConversionWorker(QObject):
    """Runs a batch sequentially in a background thread.

    Signals:
        progress(BatchProgress): Snapshot after every state change.
        file_finished(str, ConversionResult): (file_id, result) per terminal item.
        all_finished(list): Results for every dequeued item.
    """

    progress = Signal(object)
    file_finished = Signal(str, object)
    all_finished = Signal(list)

    def __init__(
        self,
        files: list[FileDescriptor],
        settings: ConversionSettings,
        service: ConversionService | None = None,
    ):
        super().__init__()
        self._files = files
        self._settings = settings
        self._service = service or ConversionService()
        self._reported: set[str] = set()

    def cancel(self) -> None:
        self._service.cancel_all()

    def cancel_file(self, file_id: str) -> None:
        self._service.cancel_one(file_id)

    def _on_progress(self, snapshot: BatchProgress) -> None:
        self.progress.emit(snapshot)
        for file_id, fp in snapshot.file_progresses.items():
            if fp.status.is_terminal and file_id not in self._reported:
                self._reported.add(file_id)
                self.file_finished.emit(file_id, fp.result)

    def run(self) -> None:
        self._reported.clear()
        results = self._service.convert_batch(self._files, self._settings, self._on_progress)
        self.all_finished.emit(results)
