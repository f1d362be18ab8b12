"""Tests for splice.render.ffmpeg module."""

from __future__ import annotations

import subprocess
import threading
from pathlib import Path

import pytest

from splice import edits
from splice.config import RenderSettings
from splice.exceptions import EncodeFailedError, ExportCancelledError, StalePlanError
from splice.render.ffmpeg import FFmpegEncoder, normalize_filter
from splice.render.plan import compile_plan


class FakeRunner:
    """Stands in for subprocess.run, writing the output file of each command."""

    def __init__(self, fail_at: int | None = None, stderr: str = "boom\nInvalid data found") -> None:
        self.calls: list[list[str]] = []
        self.fail_at = fail_at
        self.stderr = stderr
        self.seen_files: list[Path] = []

    def __call__(self, cmd, capture_output=False, text=False, **kwargs):
        index = len(self.calls)
        self.calls.append(cmd)
        if "concat" in cmd:
            list_path = Path(cmd[cmd.index("-i") + 1])
            self.seen_files.append(list_path)
            self.list_text = list_path.read_text()
        if self.fail_at == index:
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr=self.stderr)
        Path(cmd[-1]).write_bytes(b"data")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


@pytest.fixture
def plan(timeline, add_media):
    media = add_media(10.0)
    first = edits.place_clip(timeline, media.id, 1)
    edits.trim_clip(timeline, first.id, 2.0, 7.0)
    edits.place_clip(timeline, media.id, 1)
    return compile_plan(timeline)


class TestNormalizeFilter:
    def test_filter_string(self) -> None:
        assert normalize_filter(1280, 720, 30.0) == (
            "scale=1280:720:force_original_aspect_ratio=decrease,"
            "pad=1280:720:(ow-iw)/2:(oh-ih)/2,setsar=1,fps=30"
        )

    def test_fractional_frame_rate(self) -> None:
        assert normalize_filter(640, 360, 29.97).endswith("fps=29.97")


class TestCommands:
    def test_trim_command(self, plan, tmp_path) -> None:
        step = plan.trim_steps[0]
        cmd = FFmpegEncoder().trim_command(step, tmp_path / "seg0.ts")

        assert cmd[:4] == ["ffmpeg", "-y", "-i", step.source_locator]
        assert cmd[cmd.index("-ss") + 1] == "2.000"
        assert cmd[cmd.index("-t") + 1] == "5.000"
        assert cmd[cmd.index("-c:v") + 1] == "libx264"
        assert cmd[cmd.index("-preset") + 1] == "ultrafast"
        assert cmd[cmd.index("-c:a") + 1] == "aac"
        assert cmd[cmd.index("-ar") + 1] == "44100"
        assert cmd[cmd.index("-f") + 1] == "mpegts"
        assert "scale=1280:720" in cmd[cmd.index("-vf") + 1]
        assert cmd[-1] == str(tmp_path / "seg0.ts")

    def test_trim_command_uses_settings(self, plan, tmp_path) -> None:
        settings = RenderSettings(video_codec="libx265", encoder_preset="slow")
        cmd = FFmpegEncoder(settings, ffmpeg="/opt/ffmpeg").trim_command(
            plan.trim_steps[0], tmp_path / "x.ts"
        )
        assert cmd[0] == "/opt/ffmpeg"
        assert "libx265" in cmd
        assert "slow" in cmd

    def test_concat_command_copies_streams(self, tmp_path) -> None:
        cmd = FFmpegEncoder().concat_command(tmp_path / "list.txt", tmp_path / "out.mp4")
        assert cmd[cmd.index("-f") + 1] == "concat"
        assert cmd[cmd.index("-safe") + 1] == "0"
        assert cmd[cmd.index("-c") + 1] == "copy"
        assert cmd[-1] == str(tmp_path / "out.mp4")


class TestExecute:
    def test_runs_steps_in_order(self, plan, tmp_path, monkeypatch) -> None:
        runner = FakeRunner()
        monkeypatch.setattr(subprocess, "run", runner)
        output = tmp_path / "out" / "final.mp4"

        result = FFmpegEncoder(work_dir=tmp_path / "work").execute(plan, output)

        assert result == output
        assert output.exists()
        assert len(runner.calls) == 3
        assert runner.calls[0][-1].endswith("seg0.ts")
        assert runner.calls[1][-1].endswith("seg1.ts")
        assert "concat" in runner.calls[2]

    def test_concat_list_lists_segments(self, plan, tmp_path, monkeypatch) -> None:
        runner = FakeRunner()
        monkeypatch.setattr(subprocess, "run", runner)
        work = tmp_path / "work"

        FFmpegEncoder(work_dir=work).execute(plan, tmp_path / "final.mp4")

        assert runner.list_text == (
            f"file '{work / 'seg0.ts'}'\nfile '{work / 'seg1.ts'}'\n"
        )

    def test_progress_reaches_one(self, plan, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr(subprocess, "run", FakeRunner())
        reported: list[float] = []

        FFmpegEncoder(work_dir=tmp_path / "work").execute(
            plan, tmp_path / "final.mp4", progress=reported.append
        )

        assert len(reported) == 3
        assert reported == sorted(reported)
        assert reported[-1] == 1.0

    def test_segments_removed_after_success(self, plan, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr(subprocess, "run", FakeRunner())
        work = tmp_path / "work"

        FFmpegEncoder(work_dir=work).execute(plan, tmp_path / "final.mp4")

        assert list(work.iterdir()) == []

    def test_owned_work_dir_is_removed(self, plan, tmp_path, monkeypatch) -> None:
        runner = FakeRunner()
        monkeypatch.setattr(subprocess, "run", runner)

        FFmpegEncoder().execute(plan, tmp_path / "final.mp4")

        assert not Path(runner.calls[0][-1]).parent.exists()

    def test_failure_reports_step_index(self, plan, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr(subprocess, "run", FakeRunner(fail_at=1))
        work = tmp_path / "work"

        with pytest.raises(EncodeFailedError) as exc:
            FFmpegEncoder(work_dir=work).execute(plan, tmp_path / "final.mp4")

        assert exc.value.step_index == 1
        assert "Invalid data found" in str(exc.value)
        assert list(work.iterdir()) == []
        assert not (tmp_path / "final.mp4").exists()

    def test_missing_ffmpeg_is_encode_failure(self, plan, tmp_path, monkeypatch) -> None:
        def _missing(*args, **kwargs):
            raise FileNotFoundError("ffmpeg")

        monkeypatch.setattr(subprocess, "run", _missing)
        with pytest.raises(EncodeFailedError) as exc:
            FFmpegEncoder(work_dir=tmp_path / "work").execute(plan, tmp_path / "final.mp4")
        assert exc.value.step_index == 0

    def test_cancel_before_start(self, plan, tmp_path, monkeypatch) -> None:
        runner = FakeRunner()
        monkeypatch.setattr(subprocess, "run", runner)
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(ExportCancelledError):
            FFmpegEncoder(work_dir=tmp_path / "work").execute(
                plan, tmp_path / "final.mp4", cancel_event=cancel
            )
        assert runner.calls == []

    def test_cancel_mid_export(self, plan, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr(subprocess, "run", FakeRunner())
        cancel = threading.Event()
        work = tmp_path / "work"

        def _progress(fraction: float) -> None:
            cancel.set()

        with pytest.raises(ExportCancelledError) as exc:
            FFmpegEncoder(work_dir=work).execute(
                plan, tmp_path / "final.mp4", progress=_progress, cancel_event=cancel
            )

        assert exc.value.step_index == 1
        assert list(work.iterdir()) == []

    def test_stale_plan_is_refused(self, timeline, plan, tmp_path, monkeypatch) -> None:
        runner = FakeRunner()
        monkeypatch.setattr(subprocess, "run", runner)
        edits.remove_media(timeline, plan.trim_steps[0].media_id)

        with pytest.raises(StalePlanError):
            FFmpegEncoder(work_dir=tmp_path / "work").execute(
                plan, tmp_path / "final.mp4", catalog=timeline.catalog
            )
        assert runner.calls == []
