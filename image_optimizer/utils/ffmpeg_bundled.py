"""
Bundled FFmpeg using imageio-ffmpeg.
Used when no FFmpeg is installed on the host.
"""
from __future__ import annotations


def get_bundled_ffmpeg() -> str:
    """
    Get the FFmpeg executable shipped with imageio-ffmpeg.

    Returns:
        Path to ffmpeg executable

    Raises:
        ImportError: If imageio-ffmpeg is not installed
        RuntimeError: If the binary cannot be obtained
    """
    try:
        import imageio_ffmpeg
        return imageio_ffmpeg.get_ffmpeg_exe()
    except ImportError:
        raise ImportError(
            "imageio-ffmpeg is not installed.\n"
            "Install with: pip install imageio-ffmpeg"
        )
    except Exception as e:
        raise RuntimeError(f"Failed to get bundled FFmpeg: {e}")
