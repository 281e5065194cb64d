"""Conversion settings data models (pure Python, no Qt dependency)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class QualityTier(str, Enum):
    """Named quality presets, ordered from best fidelity to smallest output."""

    HIGHEST = "highest"
    HIGH = "high"
    STANDARD = "standard"
    COMPRESSED = "compressed"
    MAXIMUM_COMPRESSION = "maximum_compression"

    @property
    def reduces_color_depth(self) -> bool:
        return self in (QualityTier.COMPRESSED, QualityTier.MAXIMUM_COMPRESSION)


class ResizeTier(str, Enum):
    ORIGINAL = "original"
    HALF = "1/2"
    THIRD = "1/3"
    QUARTER = "1/4"
    EIGHTH = "1/8"

    @property
    def divisor(self) -> int:
        """Integer divisor applied to both width and height (1 = no scaling)."""
        if self is ResizeTier.ORIGINAL:
            return 1
        return int(self.value.split("/")[1])

    @property
    def scale_factor(self) -> float:
        return 1.0 / self.divisor


class OutputFormat(str, Enum):
    AUTO = "auto"
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    AVIF = "avif"
    GIF = "gif"
    HEIC = "heic"

    @property
    def extension(self) -> str | None:
        """File extension written for this format (None for AUTO)."""
        if self is OutputFormat.AUTO:
            return None
        if self is OutputFormat.JPEG:
            return "jpg"
        return self.value


@dataclass(frozen=True, slots=True)
class ConversionSettings:
    """One immutable settings value shared by every file of a batch.

    Plain strings are accepted and coerced to their enum; an unknown value
    raises ValueError, so a half-valid settings object cannot be built.
    """

    quality: QualityTier = QualityTier.STANDARD
    resize: ResizeTier = ResizeTier.ORIGINAL
    format: OutputFormat = OutputFormat.AUTO

    def __post_init__(self):
        object.__setattr__(self, "quality", QualityTier(self.quality))
        object.__setattr__(self, "resize", ResizeTier(self.resize))
        object.__setattr__(self, "format", OutputFormat(self.format))

    def to_dict(self) -> dict:
        return {
            "quality": self.quality.value,
            "resize": self.resize.value,
            "format": self.format.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ConversionSettings:
        missing = [key for key in ("quality", "resize", "format") if key not in data]
        if missing:
            raise ValueError(f"Missing conversion settings: {', '.join(missing)}")
        return cls(
            quality=data["quality"],
            resize=data["resize"],
            format=data["format"],
        )
