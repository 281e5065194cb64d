"""Exceptions for image conversion operations.

Each exception carries the ConversionErrorKind it maps to when the
single-item converter turns it into a failed ConversionResult.
"""

from __future__ import annotations

from pathlib import Path

from image_optimizer.models.conversion import ConversionErrorKind
from image_optimizer.utils.i18n import tr


class ConversionError(Exception):
    """Base exception for conversion operations."""

    kind = ConversionErrorKind.INTERNAL


class ToolLaunchError(ConversionError):
    """External tool could not be spawned."""

    kind = ConversionErrorKind.INVOCATION


class ToolNotFoundError(ToolLaunchError):
    """External tool executable is not installed."""


class ToolFailedError(ConversionError):
    """External tool exited with a non-zero status."""

    kind = ConversionErrorKind.TOOL

    def __init__(self, tool_name: str, returncode: int, stderr: str = ""):
        self.tool_name = tool_name
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{tool_name} exited with code {returncode}: {stderr.strip()}")


class OutputMissingError(ConversionError):
    """Tool reported success but the declared output file does not exist."""

    kind = ConversionErrorKind.POSTCONDITION

    def __init__(self, output_path: Path):
        self.output_path = output_path
        super().__init__(f"{tr('Output file not found')}: {output_path}")


class ConversionCancelledError(ConversionError):
    """Conversion was deliberately stopped."""

    kind = ConversionErrorKind.CANCELLED

    def __init__(self, message: str | None = None):
        super().__init__(message or tr("Conversion was cancelled"))


class NoDestinationError(ConversionError):
    """No output location was chosen."""

    kind = ConversionErrorKind.NO_DESTINATION

    def __init__(self):
        super().__init__(tr("No output destination was selected"))
