"""Rough output-size estimates shown before a conversion runs."""

from __future__ import annotations

from image_optimizer.models.conversion import FileDescriptor
from image_optimizer.models.conversion_settings import ConversionSettings, QualityTier, ResizeTier

QUALITY_RATIOS: dict[QualityTier, float] = {
    QualityTier.HIGHEST: 0.1,
    QualityTier.HIGH: 0.25,
    QualityTier.STANDARD: 0.4,
    QualityTier.COMPRESSED: 0.55,
    QualityTier.MAXIMUM_COMPRESSION: 0.7,
}

# Pixel-count reduction from resizing
RESIZE_RATIOS: dict[ResizeTier, float] = {
    ResizeTier.ORIGINAL: 0.0,
    ResizeTier.HALF: 0.75,
    ResizeTier.THIRD: 0.89,
    ResizeTier.QUARTER: 0.9375,
    ResizeTier.EIGHTH: 0.984375,
}

MAX_ESTIMATED_RATIO = 0.95


def estimated_compression_ratio(settings: ConversionSettings) -> float:
    return min(MAX_ESTIMATED_RATIO, QUALITY_RATIOS[settings.quality] + RESIZE_RATIOS[settings.resize])


def estimate_size(original_size: int, settings: ConversionSettings) -> int:
    return round(original_size * (1 - estimated_compression_ratio(settings)))


def estimate_batch_size(files: list[FileDescriptor], settings: ConversionSettings) -> tuple[int, int]:
    """Returns (total_original_size, total_estimated_size)."""
    total_original = sum(f.size for f in files)
    total_estimated = sum(estimate_size(f.size, settings) for f in files)
    return total_original, total_estimated
