"""Tests for running one external tool process."""

from __future__ import annotations

import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from conftest import FakeProcess
from image_optimizer.services.cancellation import CancellationToken
from image_optimizer.services.errors import (
    ConversionCancelledError,
    OutputMissingError,
    ToolFailedError,
    ToolLaunchError,
)
from image_optimizer.services.process_runner import execute
from image_optimizer.utils.time_utils import parse_ffmpeg_time


def _launcher(process: FakeProcess, output: Path | None = None, data: bytes = b"out"):
    def launch(args, **kwargs):
        if output is not None:
            output.write_bytes(data)
        return process

    return launch


class TestParseTime:
    def test_parses_token(self):
        assert parse_ffmpeg_time("frame=1 time=01:02:03.45 bitrate=N/A") == 3723

    def test_no_token(self):
        assert parse_ffmpeg_time("Input #0, png_pipe, from 'a.png':") is None

    def test_first_token_wins(self):
        assert parse_ffmpeg_time("time=00:00:01.00 time=00:00:09.00") == 1


class TestExecute:
    def test_success_reports_progress(self, tmp_path):
        out = tmp_path / "out.jpg"
        process = FakeProcess(stderr_lines=[
            "Input #0, png_pipe\n",
            "frame=1 time=00:00:01.50 bitrate=N/A\n",
            "frame=2 time=00:00:03.00 bitrate=N/A\n",
        ])
        seen = []
        result = execute(_launcher(process, out), ["-i", "x", str(out)], out, on_progress=seen.append)
        assert result == out
        assert seen == [1, 3]

    def test_launch_kwargs(self, tmp_path):
        out = tmp_path / "o.png"
        launch = MagicMock(side_effect=_launcher(FakeProcess(), out))
        execute(launch, ["a"], out)
        kwargs = launch.call_args.kwargs
        assert kwargs["text"] is True
        assert kwargs["stderr"] is not None
        assert kwargs["stdin"] is not None

    def test_nonzero_exit_carries_stderr(self, tmp_path):
        out = tmp_path / "o.jpg"
        process = FakeProcess(stderr_lines=["Unknown encoder 'libfoo'\n"], returncode=1)
        with pytest.raises(ToolFailedError) as exc_info:
            execute(_launcher(process), ["a"], out)
        assert exc_info.value.returncode == 1
        assert "Unknown encoder" in exc_info.value.stderr
        assert "Unknown encoder" in str(exc_info.value)

    def test_exit_zero_without_output_is_failure(self, tmp_path):
        out = tmp_path / "never_written.jpg"
        with pytest.raises(OutputMissingError) as exc_info:
            execute(_launcher(FakeProcess(returncode=0)), ["a"], out)
        assert exc_info.value.output_path == out

    def test_spawn_failure(self, tmp_path):
        def launch(args, **kwargs):
            raise PermissionError("Permission denied: 'ffmpeg'")

        with pytest.raises(ToolLaunchError, match="spawn error"):
            execute(launch, ["a"], tmp_path / "o.jpg")

    def test_already_cancelled_never_spawns(self, tmp_path):
        token = CancellationToken()
        token.cancel()
        launch = MagicMock()
        with pytest.raises(ConversionCancelledError):
            execute(launch, ["a"], tmp_path / "o.jpg", cancel_token=token)
        launch.assert_not_called()

    def test_cancel_terminates_running_process(self, tmp_path):
        out = tmp_path / "o.jpg"
        process = FakeProcess(stderr_lines=["frame=1 time=00:00:00.04\n"], hold=True)
        token = CancellationToken()
        errors = []

        def run():
            try:
                execute(_launcher(process, out), ["a"], out, cancel_token=token)
            except ConversionCancelledError as e:
                errors.append(e)

        t = threading.Thread(target=run)
        t.start()
        assert process.started.wait(timeout=5)
        token.cancel()
        t.join(timeout=5)

        assert not t.is_alive()
        assert process.terminated
        assert len(errors) == 1
        # Output written before termination is not reported as a result
        assert not out.exists()

    def test_failing_progress_callback_stops_process(self, tmp_path):
        out = tmp_path / "o.jpg"
        process = FakeProcess(stderr_lines=["frame=1 time=00:00:01.00\n"], hold=True)
        token = CancellationToken()

        def on_progress(seconds):
            raise RuntimeError("subscriber broke")

        with pytest.raises(RuntimeError, match="subscriber broke"):
            execute(_launcher(process, out), ["a"], out, on_progress=on_progress, cancel_token=token)

        assert process.terminated
        assert process.returncode is not None
        assert not out.exists()

    def test_unregisters_cancel_callback(self, tmp_path):
        out = tmp_path / "o.jpg"
        process = FakeProcess()
        token = CancellationToken()
        execute(_launcher(process, out), ["a"], out, cancel_token=token)
        token.cancel()
        assert not process.terminated


class TestCancellationToken:
    def test_register_after_cancel_runs_immediately(self):
        token = CancellationToken()
        token.cancel()
        hits = []
        token.register(lambda: hits.append(1))
        assert hits == [1]

    def test_cancel_is_idempotent(self):
        token = CancellationToken()
        hits = []
        token.register(lambda: hits.append(1))
        token.cancel()
        token.cancel()
        assert hits == [1]
        assert token.is_cancelled

    def test_failing_callback_does_not_block_others(self):
        token = CancellationToken()
        hits = []
        token.register(MagicMock(side_effect=RuntimeError("boom")))
        token.register(lambda: hits.append(1))
        token.cancel()
        assert hits == [1]
