"""Run one external tool process to completion or until cancelled."""

from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path
from typing import Callable

from image_optimizer.services.cancellation import CancellationToken
from image_optimizer.services.errors import (
    ConversionCancelledError,
    OutputMissingError,
    ToolFailedError,
    ToolLaunchError,
)
from image_optimizer.services.tool_logger import log_tool_command, log_tool_line
from image_optimizer.utils.config import PROCESS_TERMINATE_TIMEOUT
from image_optimizer.utils.time_utils import parse_ffmpeg_time

logger = logging.getLogger(__name__)

Launcher = Callable[..., subprocess.Popen]


def _drain_stdout(process: subprocess.Popen, tool_name: str) -> None:
    """Log stdout in the background so the pipe never fills up."""
    try:
        for line in process.stdout:
            log_tool_line(tool_name, line)
    except (OSError, ValueError):
        pass


def _stop(process: subprocess.Popen) -> None:
    try:
        process.wait(timeout=PROCESS_TERMINATE_TIMEOUT)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()


def execute(
    launch: Launcher,
    args: list[str],
    output_path: Path,
    *,
    tool_name: str = "FFmpeg",
    on_progress: Callable[[int], None] | None = None,
    cancel_token: CancellationToken | None = None,
) -> Path:
    """Start a tool via *launch* and wait for it.

    Args:
        launch: Callable starting the process (e.g. FFmpegRunner.run_async).
        args: Tool arguments, without the binary.
        output_path: File the tool is expected to write.
        tool_name: Name used in logs and error messages.
        on_progress: Called with elapsed seconds for each ``time=`` token on stderr.
        cancel_token: Terminates the process as soon as it is cancelled.

    Returns:
        output_path, which exists.

    Raises:
        ToolLaunchError: The process could not be started.
        ToolFailedError: Non-zero exit status (stderr attached).
        OutputMissingError: Exit status 0 but no output file.
        ConversionCancelledError: Terminated through *cancel_token*.

    Any other exception raised while supervising (e.g. from *on_progress*)
    stops the process and removes its output before propagating.
    """
    if cancel_token:
        cancel_token.raise_if_cancelled()

    log_tool_command(tool_name, args)
    try:
        process = launch(
            args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except (OSError, ValueError) as e:
        raise ToolLaunchError(f"{tool_name} spawn error: {e}") from e

    terminated = threading.Event()

    def _terminate() -> None:
        terminated.set()
        if process.poll() is None:
            logger.info("Terminating %s (pid %s)", tool_name, process.pid)
            process.terminate()

    unregister = cancel_token.register(_terminate) if cancel_token else None

    stdout_thread = None
    if process.stdout:
        stdout_thread = threading.Thread(target=_drain_stdout, args=(process, tool_name), daemon=True)
        stdout_thread.start()

    stderr_chunks: list[str] = []
    try:
        if process.stderr:
            # Universal newlines split FFmpeg's \r-separated status lines
            for line in process.stderr:
                stderr_chunks.append(line)
                log_tool_line(tool_name, line)
                if on_progress and not terminated.is_set():
                    seconds = parse_ffmpeg_time(line)
                    if seconds is not None:
                        on_progress(seconds)
        if terminated.is_set():
            _stop(process)
            returncode = process.returncode
        else:
            returncode = process.wait()
    except BaseException:
        if process.poll() is None:
            logger.warning("Stopping %s (pid %s) after a supervision error", tool_name, process.pid)
            process.terminate()
            _stop(process)
        Path(output_path).unlink(missing_ok=True)
        raise
    finally:
        if unregister:
            unregister()
        if stdout_thread:
            stdout_thread.join(timeout=5)

    if terminated.is_set():
        Path(output_path).unlink(missing_ok=True)
        logger.info("%s cancelled, removed partial output %s", tool_name, output_path)
        raise ConversionCancelledError()

    if returncode != 0:
        logger.error("%s failed with code %s", tool_name, returncode)
        raise ToolFailedError(tool_name, returncode, "".join(stderr_chunks))

    if not Path(output_path).exists():
        logger.error("%s exited cleanly but %s is missing", tool_name, output_path)
        raise OutputMissingError(Path(output_path))

    return Path(output_path)
