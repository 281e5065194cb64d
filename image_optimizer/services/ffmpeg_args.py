"""Build argument lists for FFmpeg and pngquant invocations.

FFmpeg argument order is fixed: input and overwrite flag, stream
selection, metadata stripping, codec arguments, one filter chain,
output path.
"""

from __future__ import annotations

from pathlib import Path

from image_optimizer.models.conversion_settings import ConversionSettings
from image_optimizer.services.encoder_settings import (
    PNG_SCRATCH_COMPRESSION,
    PNGQUANT_QUALITY,
    EncoderParams,
    png_params,
    resolve,
    scale_filter,
)


def append_filter(args: list[str], expression: str) -> None:
    """Add *expression* to the existing ``-vf`` chain, or start one."""
    if "-vf" in args:
        idx = args.index("-vf")
        args[idx + 1] = f"{args[idx + 1]},{expression}"
    else:
        args += ["-vf", expression]


def _build(input_path: Path, output_path: Path, params: EncoderParams, settings: ConversionSettings) -> list[str]:
    args = ["-i", str(input_path), "-y"]
    # Only the first video stream; multi-stream containers (HEIC, animated) carry several
    args += ["-map", "0:v:0"]
    args += ["-map_metadata", "-1"]
    args += params.to_args()

    scale = scale_filter(settings.resize)
    if scale:
        append_filter(args, scale)

    args.append(str(output_path))
    return args


def build_ffmpeg_args(
    input_path: Path | str,
    output_path: Path | str,
    settings: ConversionSettings,
) -> list[str]:
    """FFmpeg arguments (without the binary) for one conversion."""
    input_path = Path(input_path)
    output_path = Path(output_path)
    params = resolve(settings, output_path.suffix, input_path.suffix)
    return _build(input_path, output_path, params, settings)


def build_png_scratch_args(
    input_path: Path | str,
    scratch_path: Path | str,
    settings: ConversionSettings,
) -> list[str]:
    """First stage of the PNG path: maximum lossless compression into a scratch file."""
    params = png_params(settings.quality, compression_level=PNG_SCRATCH_COMPRESSION)
    return _build(Path(input_path), Path(scratch_path), params, settings)


def build_pngquant_args(
    input_path: Path | str,
    output_path: Path | str,
    settings: ConversionSettings,
) -> list[str]:
    """pngquant arguments (without the binary): --quality lo-hi --output OUT IN."""
    return [
        "--quality", PNGQUANT_QUALITY[settings.quality],
        "--output", str(output_path),
        str(input_path),
    ]
