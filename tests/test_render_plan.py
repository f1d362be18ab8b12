"""Tests for splice.render.plan - render plan compilation."""

from __future__ import annotations

import pytest

from splice import edits
from splice.config import RenderSettings, SpliceConfig
from splice.exceptions import NoExportableContentError, StalePlanError
from splice.render.plan import (
    ConcatStep,
    NormalizeTarget,
    RenderPlan,
    TrimStep,
    compile_plan,
    playback_order,
)
from splice.timeline import Timeline


class TestCompilePlan:
    def test_single_trimmed_clip(self, timeline, add_media) -> None:
        media = add_media(10.0)
        clip = edits.place_clip(timeline, media.id, 1)
        edits.trim_clip(timeline, clip.id, 2.0, 7.0)

        plan = compile_plan(timeline.snapshot())

        assert plan.step_count == 2
        trim, concat = plan.steps
        assert isinstance(trim, TrimStep)
        assert (trim.trim_start, trim.trim_end) == (2.0, 7.0)
        assert trim.segment_id == "seg0"
        assert trim.source_locator == media.locator
        assert trim.clip_id == clip.id
        assert isinstance(concat, ConcatStep)
        assert concat.segments == ["seg0"]

    def test_no_clips_raises(self, timeline) -> None:
        with pytest.raises(NoExportableContentError):
            compile_plan(timeline.snapshot())

    def test_audio_only_raises(self, timeline, add_media) -> None:
        music = add_media(30.0, mime_type="audio/mpeg")
        edits.place_clip(timeline, music.id, 3)
        with pytest.raises(NoExportableContentError):
            compile_plan(timeline)

    def test_audio_tracks_are_skipped(self, timeline, add_media) -> None:
        video = add_media(5.0)
        music = add_media(30.0, mime_type="audio/mpeg")
        edits.place_clip(timeline, music.id, 3)
        clip = edits.place_clip(timeline, video.id, 2)

        plan = compile_plan(timeline)

        assert [s.clip_id for s in plan.trim_steps] == [clip.id]

    def test_sorted_by_start_across_tracks(self, timeline, add_media) -> None:
        media = add_media(10.0)
        late = edits.place_clip(timeline, media.id, 1)
        edits.move_clip(timeline, late.id, 40.0)
        early = edits.place_clip(timeline, media.id, 2)
        middle = edits.place_clip(timeline, media.id, 2)

        plan = compile_plan(timeline)

        assert [s.clip_id for s in plan.trim_steps] == [early.id, middle.id, late.id]
        assert plan.concat_step.segments == ["seg0", "seg1", "seg2"]

    def test_equal_starts_keep_track_order(self, timeline, add_media) -> None:
        media = add_media(10.0)
        on_two = edits.place_clip(timeline, media.id, 2)
        on_one = edits.place_clip(timeline, media.id, 1)

        plan = compile_plan(timeline)

        assert [s.clip_id for s in plan.trim_steps] == [on_one.id, on_two.id]

    def test_uniform_normalize_target(self, timeline, add_media) -> None:
        edits.place_clip(timeline, add_media(4.0, width_px=1920, height_px=1080).id, 1)
        edits.place_clip(timeline, add_media(4.0, width_px=640, height_px=480).id, 1)

        plan = compile_plan(timeline)

        targets = {s.normalize for s in plan.trim_steps}
        assert targets == {NormalizeTarget(width=1280, height=720, frame_rate=30.0)}
        assert plan.target == NormalizeTarget(width=1280, height=720, frame_rate=30.0)

    def test_target_from_timeline_config(self, add_media) -> None:
        config = SpliceConfig(render=RenderSettings(width=640, height=360, frame_rate=24.0))
        timeline = Timeline(config=config)
        media = timeline.catalog.register("a.mp4", {"mime_type": "video/mp4", "duration_seconds": 3})
        edits.place_clip(timeline, media.id, 1)

        plan = compile_plan(timeline)

        assert plan.target == NormalizeTarget(width=640, height=360, frame_rate=24.0)

    def test_explicit_target_overrides(self, timeline, add_media) -> None:
        edits.place_clip(timeline, add_media(3.0).id, 1)
        target = NormalizeTarget(width=320, height=240, frame_rate=15.0)
        plan = compile_plan(timeline, target=target)
        assert plan.trim_steps[0].normalize == target

    def test_split_clip_yields_contiguous_steps(self, timeline, add_media) -> None:
        clip = edits.place_clip(timeline, add_media(10.0).id, 1)
        edits.split_clip(timeline, clip.id, 4.0)

        plan = compile_plan(timeline)

        windows = [(s.trim_start, s.trim_end) for s in plan.trim_steps]
        assert windows == [(0.0, 4.0), (4.0, 10.0)]
        assert plan.duration == 10.0

    def test_compile_does_not_mutate(self, timeline, add_media) -> None:
        edits.place_clip(timeline, add_media(10.0).id, 1)
        before = [t.model_dump() for t in timeline.tracks]
        compile_plan(timeline)
        compile_plan(timeline)
        assert [t.model_dump() for t in timeline.tracks] == before

    def test_compile_is_deterministic(self, timeline, add_media) -> None:
        media = add_media(10.0)
        for track in (1, 2, 1):
            edits.place_clip(timeline, media.id, track)
        snapshot = timeline.snapshot()
        assert compile_plan(snapshot) == compile_plan(snapshot)

    def test_plan_ignores_later_edits(self, timeline, add_media) -> None:
        clip = edits.place_clip(timeline, add_media(10.0).id, 1)
        snapshot = timeline.snapshot()
        edits.trim_clip(timeline, clip.id, 5.0, 6.0)
        plan = compile_plan(snapshot)
        assert (plan.trim_steps[0].trim_start, plan.trim_steps[0].trim_end) == (0.0, 10.0)


class TestRenderPlan:
    def _plan(self, timeline, add_media, clips: int = 3) -> RenderPlan:
        media = add_media(10.0)
        for _ in range(clips):
            edits.place_clip(timeline, media.id, 1)
        return compile_plan(timeline)

    def test_progress(self, timeline, add_media) -> None:
        plan = self._plan(timeline, add_media)
        assert plan.step_count == 4
        assert plan.progress(0) == 0.0
        assert plan.progress(2) == 0.5
        assert plan.progress(4) == 1.0
        assert plan.progress(9) == 1.0

    def test_media_ids(self, timeline, add_media) -> None:
        a = add_media()
        b = add_media()
        edits.place_clip(timeline, a.id, 1)
        edits.place_clip(timeline, b.id, 2)
        assert compile_plan(timeline).media_ids == {a.id, b.id}

    def test_plan_goes_stale_after_media_removal(self, timeline, add_media) -> None:
        plan = self._plan(timeline, add_media, clips=1)
        assert plan.is_stale(timeline.catalog) is False
        plan.ensure_fresh(timeline.catalog)

        edits.remove_media(timeline, plan.trim_steps[0].media_id)

        assert plan.is_stale(timeline.catalog) is True
        with pytest.raises(StalePlanError):
            plan.ensure_fresh(timeline.catalog)

    def test_json_round_trip(self, timeline, add_media) -> None:
        plan = self._plan(timeline, add_media, clips=2)
        data = plan.model_dump(mode="json")
        assert [s["kind"] for s in data["steps"]] == ["trim", "trim", "concat"]
        assert RenderPlan.model_validate(data) == plan


class TestPlaybackOrder:
    def test_empty_snapshot(self, timeline) -> None:
        assert playback_order(timeline.snapshot()) == []
