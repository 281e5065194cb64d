"""Tests for sequential batch conversion and cancellation."""

from __future__ import annotations

import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from conftest import FakeProcess, FakeRunner
from image_optimizer.models.batch import FileStatus
from image_optimizer.models.conversion import ConversionErrorKind, ConversionResult, ProgressStage
from image_optimizer.models.conversion_settings import ConversionSettings
from image_optimizer.services.batch_converter import BatchConverter
from image_optimizer.services.image_converter import ImageConverter

SETTINGS = ConversionSettings(format="jpeg")


def _files(make_image, count=5):
    return [make_image(f"img{i}.png", size=100 + i) for i in range(count)]


def _batch(runner) -> BatchConverter:
    return BatchConverter(ImageConverter(runner=runner))


class TestBatchHappyPath:
    def test_all_files_converted_in_order(self, make_image, fake_runner):
        files = _files(make_image, 3)
        snapshots = []
        results = _batch(fake_runner).convert_batch(files, SETTINGS, snapshots.append)

        assert len(results) == 3
        assert all(r.success for r in results)
        assert [r.original_size for r in results] == [100, 101, 102]
        final = snapshots[-1]
        assert final.completed_files == 3
        assert final.overall_percent == pytest.approx(100.0)
        assert set(final.statuses().values()) == {FileStatus.COMPLETED}

    def test_snapshot_properties(self, make_image, fake_runner):
        snapshots = []
        _batch(fake_runner).convert_batch(_files(make_image, 4), SETTINGS, snapshots.append)

        completed = [s.completed_files for s in snapshots]
        assert completed == sorted(completed)
        assert all(0 <= s.overall_percent <= 100 for s in snapshots)
        assert snapshots[0].completed_files == 0
        assert snapshots[0].estimated_remaining_seconds is None
        assert all(s.estimated_remaining_seconds >= 0 for s in snapshots if s.completed_files)
        assert all(s.total_files == 4 for s in snapshots)

    def test_at_most_one_processing_at_a_time(self, make_image, fake_runner):
        snapshots = []
        _batch(fake_runner).convert_batch(_files(make_image, 4), SETTINGS, snapshots.append)
        for s in snapshots:
            active = [fid for fid, st in s.statuses().items() if st is FileStatus.PROCESSING]
            assert len(active) <= 1

    def test_duplicate_names_get_distinct_ids(self, make_image, fake_runner):
        a = make_image("same.jpg", subdir="one")
        b = make_image("same.jpg", subdir="two")
        snapshots = []
        results = _batch(fake_runner).convert_batch([a, b], SETTINGS, snapshots.append)
        assert len(results) == 2
        assert list(snapshots[-1].file_progresses) == ["same.jpg-0", "same.jpg-1"]

    def test_same_names_into_one_output_dir_do_not_overwrite(self, make_image, tmp_path):
        a = make_image("same.jpg", subdir="a")
        b = make_image("same.jpg", subdir="b")

        def ffmpeg(args):
            Path(args[-1]).write_bytes(Path(args[1]).parent.name.encode() * 4)
            return FakeProcess()

        out_dir = tmp_path / "out"
        out_dir.mkdir()
        converter = ImageConverter(runner=FakeRunner(ffmpeg=ffmpeg), output_dir=out_dir)
        results = BatchConverter(converter).convert_batch([a, b], SETTINGS)

        assert [r.output_path for r in results] == [
            out_dir / "same_optimized.jpg",
            out_dir / "same_optimized-1.jpg",
        ]
        assert results[0].output_path.read_bytes() == b"aaaa"
        assert results[1].output_path.read_bytes() == b"bbbb"

    def test_output_names_reset_between_batches(self, make_image, fake_runner, tmp_path):
        batch = BatchConverter(ImageConverter(runner=fake_runner, output_dir=tmp_path))
        first = batch.convert_batch([make_image("x.jpg")], SETTINGS)
        second = batch.convert_batch([make_image("x.jpg")], SETTINGS)
        assert first[0].output_path == second[0].output_path == tmp_path / "x_optimized.jpg"

    def test_failure_does_not_stop_batch(self, make_image, tmp_path):
        def ffmpeg(args):
            if "img1" in args[1]:
                return FakeProcess(stderr_lines=["corrupt\n"], returncode=1)
            Path(args[-1]).write_bytes(b"ok")
            return FakeProcess()

        snapshots = []
        results = _batch(FakeRunner(ffmpeg=ffmpeg)).convert_batch(_files(make_image, 3), SETTINGS, snapshots.append)
        assert [r.success for r in results] == [True, False, True]
        statuses = snapshots[-1].statuses()
        assert statuses["img1.png-1"] is FileStatus.ERROR
        assert snapshots[-1].file_progresses["img1.png-1"].result is results[1]

    def test_converter_crash_aborts_only_that_item(self, make_image):
        converter = MagicMock()
        converter.convert.side_effect = [
            RuntimeError("invariant broken"),
            ConversionResult.failed("x", 1, kind=ConversionErrorKind.TOOL),
        ]
        results = BatchConverter(converter).convert_batch(_files(make_image, 2), SETTINGS)
        assert len(results) == 2
        assert results[0].error_kind is ConversionErrorKind.INTERNAL
        assert results[0].error_message == "invariant broken"

    def test_converter_crash_marks_record_as_error_stage(self, make_image):
        converter = MagicMock()
        converter.convert.side_effect = RuntimeError("invariant broken")
        snapshots = []
        BatchConverter(converter).convert_batch(_files(make_image, 1), SETTINGS, snapshots.append)

        record = snapshots[-1].file_progresses["img0.png-0"]
        assert record.status is FileStatus.ERROR
        assert record.progress.stage is ProgressStage.ERROR
        assert record.progress.percent == 0
        assert record.progress.message == "invariant broken"

    def test_snapshots_are_not_live(self, make_image, fake_runner):
        snapshots = []
        _batch(fake_runner).convert_batch(_files(make_image, 2), SETTINGS, snapshots.append)
        assert snapshots[0].file_progresses["img0.png-0"].status is FileStatus.PENDING
        assert snapshots[-1].file_progresses["img0.png-0"].status is FileStatus.COMPLETED


class TestPerFileCancellation:
    def test_cancel_pending_file(self, make_image, fake_runner):
        files = _files(make_image, 5)
        batch = _batch(fake_runner)
        snapshots = []

        def on_progress(snapshot):
            snapshots.append(snapshot)
            if snapshot.completed_files == 1:
                batch.cancel_file("img2.png-2")

        results = batch.convert_batch(files, SETTINGS, on_progress)

        assert len(results) == 5
        assert results[2].success is False
        assert results[2].error_kind is ConversionErrorKind.CANCELLED
        final = snapshots[-1].statuses()
        assert final["img2.png-2"] is FileStatus.CANCELLED
        assert final["img3.png-3"] is FileStatus.COMPLETED
        assert final["img4.png-4"] is FileStatus.COMPLETED
        # The cancelled item never entered processing
        assert all(s.statuses()["img2.png-2"] is not FileStatus.PROCESSING for s in snapshots)
        assert len(fake_runner.calls) == 4

    def test_cancel_running_file_terminates_process(self, make_image):
        held = FakeProcess(stderr_lines=["frame=1 time=00:00:00.04\n"], hold=True)
        runner = FakeRunner()
        default = runner.ffmpeg

        def ffmpeg(args):
            if "img1" in args[1]:
                return held
            return default(args)

        runner.ffmpeg = ffmpeg
        batch = _batch(runner)
        out = []
        t = threading.Thread(target=lambda: out.append(batch.convert_batch(_files(make_image, 3), SETTINGS)))
        t.start()
        assert held.started.wait(timeout=5)
        batch.cancel_file("img1.png-1")
        t.join(timeout=5)

        assert not t.is_alive()
        assert held.terminated
        results = out[0]
        assert [r.success for r in results] == [True, False, True]
        assert results[1].cancelled


class TestBatchCancellation:
    def test_cancel_all_after_first_file(self, make_image, fake_runner):
        batch = _batch(fake_runner)
        snapshots = []

        def on_progress(snapshot):
            snapshots.append(snapshot)
            if snapshot.completed_files == 1:
                batch.cancel_all()

        results = batch.convert_batch(_files(make_image, 5), SETTINGS, on_progress)

        assert 1 <= len(results) <= 2
        assert results[0].success
        for s in snapshots:
            statuses = s.statuses()
            for fid in ("img2.png-2", "img3.png-3", "img4.png-4"):
                assert statuses[fid] is not FileStatus.PROCESSING
        final = snapshots[-1].statuses()
        assert final["img4.png-4"] is FileStatus.PENDING

    def test_cancel_all_terminates_running_item(self, make_image):
        held = FakeProcess(hold=True)
        runner = FakeRunner(ffmpeg=lambda args: held)
        batch = _batch(runner)
        out = []
        t = threading.Thread(target=lambda: out.append(batch.convert_batch(_files(make_image, 3), SETTINGS)))
        t.start()
        assert held.started.wait(timeout=5)
        batch.cancel_all()
        t.join(timeout=5)

        assert not t.is_alive()
        assert held.terminated
        assert len(out[0]) == 1
        assert out[0][0].cancelled
        assert batch.is_cancelled

    def test_new_batch_resets_cancellation(self, make_image, fake_runner):
        batch = _batch(fake_runner)
        batch.cancel_all()
        results = batch.convert_batch(_files(make_image, 2), SETTINGS)
        assert len(results) == 2
