"""Image Optimizer: batch image conversion and optimization through FFmpeg."""

__version__ = "0.1.0"
