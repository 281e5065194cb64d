"""Headless batch runner: converts files given on the command line."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QThread, QTimer

from image_optimizer.models.batch import BatchProgress
from image_optimizer.models.conversion import FileDescriptor
from image_optimizer.models.conversion_settings import (
    ConversionSettings,
    OutputFormat,
    QualityTier,
    ResizeTier,
)
from image_optimizer.services.conversion_service import ConversionService
from image_optimizer.utils.config import APP_NAME, APP_VERSION, IMAGE_EXTENSIONS, MAX_FILE_SIZE, ORG_NAME
from image_optimizer.utils.i18n import init_language
from image_optimizer.utils.time_utils import format_size, seconds_to_display
from image_optimizer.workers.batch_conversion_worker import BatchConversionWorker

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="image-optimizer", description="Convert and optimize images with FFmpeg.")
    parser.add_argument("files", nargs="+", type=Path, help="Input image files")
    parser.add_argument("-q", "--quality", choices=[q.value for q in QualityTier], default=QualityTier.STANDARD.value)
    parser.add_argument("-r", "--resize", choices=[r.value for r in ResizeTier], default=ResizeTier.ORIGINAL.value)
    parser.add_argument("-f", "--format", choices=[f.value for f in OutputFormat], default=OutputFormat.AUTO.value)
    parser.add_argument("-o", "--output-dir", type=Path, default=None, help="Output directory (default: next to each input)")
    parser.add_argument("--lang", default="en", help="Message language (en, ja)")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return parser


def collect_files(paths: list[Path]) -> list[FileDescriptor]:
    """Build descriptors for usable inputs, logging and skipping the rest."""
    files = []
    for path in paths:
        if path.suffix.lower() not in IMAGE_EXTENSIONS:
            logger.warning("Skipping unsupported file: %s", path)
            continue
        try:
            descriptor = FileDescriptor.from_path(path)
        except (OSError, ValueError) as e:
            logger.warning("Skipping %s: %s", path, e)
            continue
        if descriptor.size > MAX_FILE_SIZE:
            logger.warning("Skipping %s: larger than %s", path, format_size(MAX_FILE_SIZE))
            continue
        files.append(descriptor)
    return files


def _print_progress(snapshot: BatchProgress) -> None:
    eta = snapshot.estimated_remaining_seconds
    eta_text = seconds_to_display(eta) if eta is not None else "--:--"
    print(
        f"\r[{snapshot.completed_files}/{snapshot.total_files}] "
        f"{snapshot.overall_percent:5.1f}%  ETA {eta_text}",
        end="",
        flush=True,
    )


def _print_summary(results: list, total: int) -> None:
    print()
    succeeded = [r for r in results if r.success]
    for r in results:
        if r.success:
            print(f"  OK   {r.output_path}  {format_size(r.original_size)} -> "
                  f"{format_size(r.output_size)} ({r.compression_ratio:.1f}%)")
        else:
            print(f"  FAIL {r.error_message}")
    skipped = total - len(results)
    print(f"{len(succeeded)} succeeded, {len(results) - len(succeeded)} failed, {skipped} not started")


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    init_language(args.lang)

    files = collect_files(args.files)
    if not files:
        logger.error("No convertible files given")
        return 2

    QCoreApplication.setOrganizationName(ORG_NAME)
    QCoreApplication.setApplicationName(APP_NAME)
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    settings = ConversionSettings(quality=args.quality, resize=args.resize, format=args.format)
    worker = BatchConversionWorker(files, settings, ConversionService(output_dir=args.output_dir))
    thread = QThread()
    worker.moveToThread(thread)

    outcome: list = []

    def _on_finished(results: list) -> None:
        outcome.append(results)
        thread.quit()

    thread.started.connect(worker.run)
    worker.progress.connect(_print_progress)
    worker.all_finished.connect(_on_finished)
    thread.finished.connect(app.quit)

    # Ctrl+C cancels the batch; the running FFmpeg process is terminated
    signal.signal(signal.SIGINT, lambda *_: worker.cancel())
    # Wake the interpreter periodically so the handler runs during app.exec()
    wake_timer = QTimer()
    wake_timer.timeout.connect(lambda: None)
    wake_timer.start(200)

    thread.start()
    app.exec()
    thread.wait()

    results = outcome[0] if outcome else []
    _print_summary(results, len(files))
    return 0 if results and all(r.success for r in results) and len(results) == len(files) else 1
