"""Map abstract conversion settings to concrete FFmpeg encoder parameters.

Every (quality tier, output extension) pair resolves to exactly one
parameter variant; there is no unsupported combination.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from image_optimizer.models.conversion_settings import (
    ConversionSettings,
    OutputFormat,
    QualityTier,
    ResizeTier,
)
from image_optimizer.utils.config import DEFAULT_OUTPUT_EXTENSION

# JPEG -q:v (1-31, lower = better)
JPEG_QUALITY: dict[QualityTier, int] = {
    QualityTier.HIGHEST: 3,
    QualityTier.HIGH: 8,
    QualityTier.STANDARD: 12,
    QualityTier.COMPRESSED: 18,
    QualityTier.MAXIMUM_COMPRESSION: 28,
}

# PNG -compression_level (0-9, higher = smaller)
PNG_COMPRESSION: dict[QualityTier, int] = {
    QualityTier.HIGHEST: 6,
    QualityTier.HIGH: 7,
    QualityTier.STANDARD: 8,
    QualityTier.COMPRESSED: 9,
    QualityTier.MAXIMUM_COMPRESSION: 9,
}

# WebP -q:v (0-100, higher = better)
WEBP_QUALITY: dict[QualityTier, int] = {
    QualityTier.HIGHEST: 95,
    QualityTier.HIGH: 85,
    QualityTier.STANDARD: 75,
    QualityTier.COMPRESSED: 65,
    QualityTier.MAXIMUM_COMPRESSION: 50,
}

# AVIF -crf (0-63, lower = better)
AVIF_CRF: dict[QualityTier, int] = {
    QualityTier.HIGHEST: 18,
    QualityTier.HIGH: 25,
    QualityTier.STANDARD: 32,
    QualityTier.COMPRESSED: 40,
    QualityTier.MAXIMUM_COMPRESSION: 50,
}

# HEIC (x265) -crf (0-51, lower = better)
HEIC_CRF: dict[QualityTier, int] = {
    QualityTier.HIGHEST: 18,
    QualityTier.HIGH: 23,
    QualityTier.STANDARD: 28,
    QualityTier.COMPRESSED: 35,
    QualityTier.MAXIMUM_COMPRESSION: 45,
}

# pngquant --quality min-max
PNGQUANT_QUALITY: dict[QualityTier, str] = {
    QualityTier.HIGHEST: "85-95",
    QualityTier.HIGH: "75-90",
    QualityTier.STANDARD: "65-85",
    QualityTier.COMPRESSED: "50-75",
    QualityTier.MAXIMUM_COMPRESSION: "25-60",
}

# Compression level used for the scratch file of the two-stage PNG path
PNG_SCRATCH_COMPRESSION = 9

_EXTENSION_FORMATS: dict[str, OutputFormat] = {
    "jpg": OutputFormat.JPEG,
    "jpeg": OutputFormat.JPEG,
    "png": OutputFormat.PNG,
    "webp": OutputFormat.WEBP,
    "avif": OutputFormat.AVIF,
    "gif": OutputFormat.GIF,
    "heic": OutputFormat.HEIC,
}


@dataclass(frozen=True, slots=True)
class JpegParams:
    quality: int

    def to_args(self) -> list[str]:
        return [
            "-codec:v", "mjpeg",
            "-q:v", str(self.quality),
            "-huffman", "optimal",
            "-pix_fmt", "yuv420p",
        ]


@dataclass(frozen=True, slots=True)
class PngParams:
    compression_level: int
    force_8bit: bool = False    # rgb24 instead of the source depth

    def to_args(self) -> list[str]:
        args = [
            "-codec:v", "png",
            "-compression_level", str(self.compression_level),
            "-pred", "mixed",
        ]
        if self.force_8bit:
            args += ["-pix_fmt", "rgb24"]
        return args


@dataclass(frozen=True, slots=True)
class WebpParams:
    quality: int
    lossless: bool = False

    def to_args(self) -> list[str]:
        args = [
            "-codec:v", "libwebp",
            "-q:v", str(self.quality),
            "-lossless", "1" if self.lossless else "0",
        ]
        if not self.lossless:
            args += ["-preset", "photo", "-method", "6", "-pix_fmt", "yuv420p"]
        return args


@dataclass(frozen=True, slots=True)
class AvifParams:
    crf: int

    def to_args(self) -> list[str]:
        return [
            "-codec:v", "libaom-av1",
            "-crf", str(self.crf),
            "-cpu-used", "4",
            "-pix_fmt", "yuv420p",
        ]


@dataclass(frozen=True, slots=True)
class HeicParams:
    crf: int

    def to_args(self) -> list[str]:
        return [
            "-codec:v", "libx265",
            "-crf", str(self.crf),
            "-preset", "medium",
            "-pix_fmt", "yuv420p",
        ]


@dataclass(frozen=True, slots=True)
class GenericParams:
    """Single quality knob for inputs the tables do not cover."""

    quality: int

    def to_args(self) -> list[str]:
        return ["-q:v", str(self.quality), "-pix_fmt", "yuv420p"]


@dataclass(frozen=True, slots=True)
class PassthroughParams:
    """No codec arguments; FFmpeg picks the encoder from the output extension."""

    def to_args(self) -> list[str]:
        return []


EncoderParams = Union[
    JpegParams,
    PngParams,
    WebpParams,
    AvifParams,
    HeicParams,
    GenericParams,
    PassthroughParams,
]


def normalize_extension(ext: str | None) -> str:
    """'.JPG' → 'jpg'; None → ''."""
    return (ext or "").lstrip(".").lower()


def png_params(quality: QualityTier, compression_level: int | None = None) -> PngParams:
    level = PNG_COMPRESSION[quality] if compression_level is None else compression_level
    return PngParams(compression_level=level, force_8bit=quality.reduces_color_depth)


def _params_for_format(fmt: OutputFormat, quality: QualityTier) -> EncoderParams | None:
    if fmt is OutputFormat.JPEG:
        return JpegParams(JPEG_QUALITY[quality])
    if fmt is OutputFormat.PNG:
        return png_params(quality)
    if fmt is OutputFormat.WEBP:
        return WebpParams(WEBP_QUALITY[quality], lossless=quality is QualityTier.HIGHEST)
    if fmt is OutputFormat.AVIF:
        return AvifParams(AVIF_CRF[quality])
    if fmt is OutputFormat.HEIC:
        return HeicParams(HEIC_CRF[quality])
    return None


def resolve(
    settings: ConversionSettings,
    output_ext: str | None,
    input_ext: str | None,
) -> EncoderParams:
    """Resolve encoder parameters for one conversion.

    The output extension selects the codec. For extensions without a
    dedicated table (gif, bmp, ...) the input extension decides when it
    matches the output or the format is ``auto``; otherwise FFmpeg's
    own defaults for the container are used.
    """
    out = normalize_extension(output_ext)
    inp = normalize_extension(input_ext)
    quality = settings.quality

    params = _params_for_format(_EXTENSION_FORMATS.get(out, OutputFormat.AUTO), quality)
    if params is not None:
        return params

    if inp == out or settings.format is OutputFormat.AUTO:
        fmt = _EXTENSION_FORMATS.get(inp)
        if fmt in (OutputFormat.JPEG, OutputFormat.PNG):
            return _params_for_format(fmt, quality)
        return GenericParams(JPEG_QUALITY[quality])

    return PassthroughParams()


def scale_filter(resize: ResizeTier) -> str | None:
    """FFmpeg scale expression for *resize*, or None for ``original``."""
    if resize is ResizeTier.ORIGINAL:
        return None
    n = resize.divisor
    return f"scale=iw/{n}:ih/{n}"


def output_extension(fmt: OutputFormat, input_name: str) -> str:
    """Extension to write: the input's own for ``auto``, else the format's."""
    if fmt is OutputFormat.AUTO:
        ext = normalize_extension(Path(input_name).suffix)
        return ext or DEFAULT_OUTPUT_EXTENSION
    return fmt.extension


def output_format_name(output_path: Path | str, requested: OutputFormat) -> str:
    """Format name reported in results ('jpeg', 'png', ...)."""
    if requested is not OutputFormat.AUTO:
        return requested.value
    fmt = _EXTENSION_FORMATS.get(normalize_extension(Path(output_path).suffix))
    return fmt.value if fmt else OutputFormat.JPEG.value
