"""Cooperative cancellation shared between a caller and a running conversion."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from image_optimizer.services.errors import ConversionCancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    """A one-way flag plus callbacks fired when it is set.

    Pipeline code polls ``is_cancelled`` at stage boundaries; a running
    process registers a callback so it is terminated immediately.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Cancellation callback failed")

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run *callback* on cancel (now, if already cancelled). Returns an unregister function."""
        with self._lock:
            already = self._event.is_set()
            if not already:
                self._callbacks.append(callback)
        if already:
            callback()

        def unregister() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unregister

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ConversionCancelledError()
