"""Background worker for converting a single image."""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal

from image_optimizer.models.conversion import FileDescriptor
from image_optimizer.models.conversion_settings import ConversionSettings
from image_optimizer.services.conversion_service import ConversionService


class ConversionWorker(QObject):
    """Runs one conversion in a background thread.

    Signals:
        progress(ConversionProgress): Stage/percent updates.
        finished(ConversionResult): Emitted once with the result (success or failure).
    """

    progress = Signal(object)
    finished = Signal(object)

    def __init__(
        self,
        file: FileDescriptor,
        settings: ConversionSettings,
        service: ConversionService | None = None,
    ):
        super().__init__()
        self._file = file
        self._settings = settings
        self._service = service or ConversionService()

    def cancel(self) -> None:
        self._service.cancel()

    def run(self) -> None:
        result = self._service.convert_one(
            self._file,
            self._settings,
            on_progress=lambda p: self.progress.emit(p),
        )
        self.finished.emit(result)
