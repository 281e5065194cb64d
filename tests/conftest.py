"""Shared fakes for tests that would otherwise spawn FFmpeg / pngquant."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable

import pytest

from image_optimizer.models.conversion import FileDescriptor

FFMPEG_BYTES = b"ffmpeg-output-bytes"
PNGQUANT_BYTES = b"pq"


class FakeProcess:
    """Stand-in for subprocess.Popen with scripted stderr and exit status.

    With ``hold=True`` the stderr stream blocks after the scripted lines
    until terminate()/kill() is called, like a long-running transcode.
    """

    def __init__(self, stderr_lines=(), returncode: int = 0, hold: bool = False):
        self.pid = 4242
        self.returncode: int | None = None
        self.terminated = False
        self._final = returncode
        self._hold = hold
        self._released = threading.Event()
        self.started = threading.Event()
        self.stdout = iter(["ffmpeg version n6.1\n"])
        self.stderr = self._stream(list(stderr_lines))

    def _stream(self, lines):
        self.started.set()
        for line in lines:
            yield line
        if self._hold:
            self._released.wait(timeout=5)

    def poll(self):
        return self.returncode

    def terminate(self):
        self.terminated = True
        self.returncode = -15
        self._released.set()

    def kill(self):
        self.terminate()
        self.returncode = -9

    def wait(self, timeout=None):
        if self.returncode is None:
            self.returncode = self._final
        return self.returncode


def ffmpeg_writes_output(data: bytes = FFMPEG_BYTES, stderr_lines=("frame=    1 fps=0.0 size=N/A time=00:00:02.00 bitrate=N/A\n",)):
    """FFmpeg behaviour: write *data* to the last argument, exit 0."""

    def behave(args: list[str]) -> FakeProcess:
        Path(args[-1]).write_bytes(data)
        return FakeProcess(stderr_lines=stderr_lines)

    return behave


def pngquant_writes_output(data: bytes = PNGQUANT_BYTES):
    def behave(args: list[str]) -> FakeProcess:
        Path(args[args.index("--output") + 1]).write_bytes(data)
        return FakeProcess()

    return behave


class FakeRunner:
    """Duck-typed FFmpegRunner recording every invocation."""

    def __init__(
        self,
        ffmpeg: Callable[[list[str]], FakeProcess] | None = None,
        pngquant: Callable[[list[str]], FakeProcess] | None = None,
        available: bool = True,
        has_pngquant: bool = False,
    ):
        self.ffmpeg = ffmpeg or ffmpeg_writes_output()
        self.pngquant = pngquant or pngquant_writes_output()
        self.available = available
        self.pngquant_present = has_pngquant
        self.calls: list[tuple[str, list[str]]] = []
        self.processes: list[FakeProcess] = []

    def is_available(self) -> bool:
        return self.available

    def has_pngquant(self) -> bool:
        return self.pngquant_present

    def run_async(self, args, **kwargs):
        self.calls.append(("ffmpeg", list(args)))
        process = self.ffmpeg(args)
        self.processes.append(process)
        return process

    def run_pngquant_async(self, args, **kwargs):
        self.calls.append(("pngquant", list(args)))
        process = self.pngquant(args)
        self.processes.append(process)
        return process


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_image(tmp_path) -> Callable[..., FileDescriptor]:
    """Create an input file on disk and return its descriptor."""

    def _make(name: str = "photo.jpg", size: int = 1000, subdir: str = "in") -> FileDescriptor:
        directory = tmp_path / subdir
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_bytes(b"\xff" * size)
        return FileDescriptor.from_path(path)

    return _make


@pytest.fixture(autouse=True)
def _isolated_tool_log(tmp_path, monkeypatch):
    """Keep the tool log out of the real home directory."""
    monkeypatch.setattr("image_optimizer.services.tool_logger.LOG_DIR", tmp_path / "logs")
