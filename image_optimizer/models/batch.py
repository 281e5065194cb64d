"""Batch progress data models (pure Python, no Qt dependency)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from image_optimizer.models.conversion import (
    ConversionProgress,
    ConversionResult,
    ProgressStage,
)


class FileStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (FileStatus.COMPLETED, FileStatus.ERROR, FileStatus.CANCELLED)


def make_file_id(name: str, index: int) -> str:
    """Stable batch key. Duplicate names are legal, so the index is part of it."""
    return f"{name}-{index}"


def _waiting_progress() -> ConversionProgress:
    return ConversionProgress(ProgressStage.PREPARING, 0, "Waiting...")


@dataclass(slots=True)
class FileProgress:
    """Tracks one batch item. Owned and mutated by the batch orchestrator only."""

    file_id: str
    file_name: str
    index: int
    status: FileStatus = FileStatus.PENDING
    progress: ConversionProgress = field(default_factory=_waiting_progress)
    result: ConversionResult | None = None

    def start(self) -> None:
        if self.status is not FileStatus.PENDING:
            raise RuntimeError(f"{self.file_id}: cannot start from {self.status.value}")
        self.status = FileStatus.PROCESSING

    def update(self, progress: ConversionProgress) -> None:
        if self.status is not FileStatus.PROCESSING:
            raise RuntimeError(f"{self.file_id}: progress while {self.status.value}")
        self.progress = progress

    def finish(self, status: FileStatus, result: ConversionResult) -> None:
        if not status.is_terminal:
            raise ValueError(f"{status.value} is not a terminal status")
        if self.status.is_terminal:
            raise RuntimeError(f"{self.file_id}: already {self.status.value}")
        self.status = status
        self.result = result

    def snapshot(self) -> FileProgress:
        return replace(self)


@dataclass(frozen=True, slots=True)
class BatchProgress:
    """Immutable view of a batch run at one point in time."""

    total_files: int
    completed_files: int    # Items in any terminal status
    current_file_index: int
    overall_percent: float  # 0-100
    file_progresses: Mapping[str, FileProgress]
    start_time: float       # POSIX timestamp
    estimated_remaining_seconds: float | None = None

    @classmethod
    def capture(
        cls,
        records: list[FileProgress],
        current_file_index: int,
        start_time: float,
        elapsed: float,
    ) -> BatchProgress:
        """Copy *records* into a new snapshot."""
        total = len(records)
        completed = sum(1 for r in records if r.status.is_terminal)
        overall = completed / total * 100 if total else 0.0
        remaining = None
        if completed > 0:
            remaining = max(0.0, elapsed / completed * total - elapsed)
        return cls(
            total_files=total,
            completed_files=completed,
            current_file_index=current_file_index,
            overall_percent=overall,
            file_progresses=MappingProxyType({r.file_id: r.snapshot() for r in records}),
            start_time=start_time,
            estimated_remaining_seconds=remaining,
        )

    def statuses(self) -> dict[str, FileStatus]:
        return {file_id: fp.status for file_id, fp in self.file_progresses.items()}
