"""Per-file conversion data models (pure Python, no Qt dependency)."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ProgressStage(str, Enum):
    PREPARING = "preparing"
    PROCESSING = "processing"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    ERROR = "error"


class ConversionErrorKind(str, Enum):
    """Why a conversion failed."""

    INVOCATION = "invocation"          # tool missing or could not be spawned
    TOOL = "tool"                      # non-zero exit status
    POSTCONDITION = "postcondition"    # exit 0 but no output file
    CANCELLED = "cancelled"
    NO_DESTINATION = "no_destination"
    INTERNAL = "internal"


def compression_ratio(original_size: int, compressed_size: int) -> float:
    """Percentage saved: (1 - compressed/original) * 100."""
    if original_size <= 0:
        return 0.0
    return (1 - compressed_size / original_size) * 100


@dataclass(frozen=True, slots=True)
class FileDescriptor:
    """An input file submitted for conversion."""

    name: str
    path: Path
    size: int               # Bytes, always > 0
    mime_type: str = ""
    last_modified: float = 0.0  # POSIX timestamp

    def __post_init__(self):
        object.__setattr__(self, "path", Path(self.path))
        if self.size <= 0:
            raise ValueError(f"File size must be positive: {self.name} ({self.size} bytes)")

    @property
    def extension(self) -> str:
        return self.path.suffix.lstrip(".").lower()

    @classmethod
    def from_path(cls, path: Path | str) -> FileDescriptor:
        path = Path(path).absolute()
        stat = path.stat()
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            path=path,
            size=stat.st_size,
            mime_type=mime_type or "",
            last_modified=stat.st_mtime,
        )


@dataclass(frozen=True, slots=True)
class ConversionProgress:
    """A single progress event for one file."""

    stage: ProgressStage
    percent: float          # 0-100
    message: str
    elapsed_seconds: float | None = None
    remaining_seconds: float | None = None


@dataclass(frozen=True, slots=True)
class ConversionResult:
    """Outcome of converting one file.

    ``success`` is only ever True when ``output_path`` pointed at an
    existing file at the moment the result was built.
    """

    success: bool
    original_size: int
    processing_time: float
    output_path: Path | None = None
    output_size: int = 0
    output_format: str | None = None
    compression_ratio: float = 0.0
    error_message: str | None = None
    error_kind: ConversionErrorKind | None = None

    @property
    def compressed_size(self) -> int:
        return self.output_size

    @property
    def size_difference(self) -> int:
        """Bytes saved (negative when the output grew)."""
        if not self.success:
            return 0
        return self.original_size - self.output_size

    @property
    def cancelled(self) -> bool:
        return self.error_kind is ConversionErrorKind.CANCELLED

    @classmethod
    def succeeded(
        cls,
        output_path: Path,
        output_format: str,
        original_size: int,
        processing_time: float,
    ) -> ConversionResult:
        """Build a success result from the file actually on disk.

        Raises FileNotFoundError if the output is missing.
        """
        output_size = Path(output_path).stat().st_size
        return cls(
            success=True,
            original_size=original_size,
            processing_time=processing_time,
            output_path=Path(output_path),
            output_size=output_size,
            output_format=output_format,
            compression_ratio=compression_ratio(original_size, output_size),
        )

    @classmethod
    def failed(
        cls,
        message: str,
        original_size: int,
        processing_time: float = 0.0,
        kind: ConversionErrorKind = ConversionErrorKind.INTERNAL,
    ) -> ConversionResult:
        return cls(
            success=False,
            original_size=original_size,
            processing_time=processing_time,
            error_message=message,
            error_kind=kind,
        )
