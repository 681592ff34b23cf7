"""
Unit tests for motion_engine.engine.
"""

import dataclasses
import logging
import math

import numpy as np
import pytest

from motioncore.core.config import Settings
from motioncore.motion_engine.engine import AnimationEngine
from motioncore.motion_engine.keyframe_store import KeyframeStore
from motioncore.motion_engine.runtime import Transform
from motioncore.schemas import CaptureRecording, MousePosition, SourceData, TimelineEntry, TimelineState
from tests.conftest import ScriptedDecoder
from tests.factories import (
    make_animation,
    make_image,
    make_polygon,
    make_sequence,
    make_text,
    make_video,
    position_kf,
)

ENGINE_LOGGER = "motioncore.motion_engine.engine"


def make_engine(sequences, settings, activate=True, **kwargs):
    store = KeyframeStore()
    for seq in sequences:
        store.load_sequence(seq)
    engine = AnimationEngine(store, settings=settings, **kwargs)
    if activate and kwargs.get("timeline") is None:
        engine.set_current_sequence(sequences[0].id)
    return engine


class StaticCapture:
    """Capture source returning one fixed recording for every video."""

    def __init__(self, recording):
        self.recording = recording
        self.requested = []

    def load(self, video):
        self.requested.append(video.id)
        return self.recording


class TestPropertyWrites:
    """Tests for writing sampled values into transforms."""

    def test_position_sampled(self, settings, renderer):
        """Position follows the track and is pushed to the renderer."""
        seq = make_sequence(polygons=[make_polygon("p")], animations=[make_animation("p")])
        engine = make_engine([seq], settings, renderer=renderer)

        report = engine.step(override_s=0.5)

        assert report.updated == ["p"]
        assert engine.runtime(seq.id, "p").transform.position == pytest.approx((12.5, 0.0))
        matrix = renderer.transforms["p"]
        assert matrix.shape == (4, 4)
        assert matrix[0, 3] == pytest.approx(12.5)

    def test_group_and_canvas_offsets(self):
        """Group offset and canvas origin are added to sampled positions."""
        settings = Settings(_env_file=None, canvas_horiz_offset=600.0, canvas_vert_offset=50.0)
        anim = make_animation("p", group_offset=(10, 20))
        seq = make_sequence(polygons=[make_polygon("p")], animations=[anim])
        engine = make_engine([seq], settings)

        engine.step(override_s=0.0)

        assert engine.runtime(seq.id, "p").transform.position == pytest.approx((610.0, 70.0))

    def test_rotation_in_radians(self, settings):
        """Rotation degrees are converted to radians."""
        anim = make_animation("p", rotation=(0, 90))
        seq = make_sequence(polygons=[make_polygon("p")], animations=[anim])
        engine = make_engine([seq], settings)

        engine.step(override_s=2.0)

        assert engine.runtime(seq.id, "p").transform.rotation == pytest.approx(math.pi / 4)

    def test_scale_per_object_kind(self, settings):
        """Polygons scale from unit size, images from their dimensions."""
        seq = make_sequence(
            polygons=[make_polygon("p")],
            images=[make_image("i")],
            animations=[make_animation("p", scale=(100, 200)), make_animation("i", object_kind="image", scale=(100, 200))],
        )
        engine = make_engine([seq], settings)

        engine.step(override_s=2.0)

        assert engine.runtime(seq.id, "p").transform.scale == pytest.approx((1.5, 1.5))
        assert engine.runtime(seq.id, "i").transform.scale == pytest.approx((300.0, 150.0))

    def test_opacity_hundredths(self, settings):
        """Opacity is stored in hundredths."""
        anim = make_animation("p", opacity=(100, 0))
        seq = make_sequence(polygons=[make_polygon("p")], animations=[anim])
        engine = make_engine([seq], settings)

        engine.step(override_s=1.0)

        assert engine.runtime(seq.id, "p").transform.opacity == pytest.approx(0.75)

    def test_transform_matrix(self):
        """The model matrix applies scale, then rotation, then translation."""
        transform = Transform(position=(10.0, 20.0), rotation=math.pi / 2, scale=(2.0, 3.0), layer=4)
        point = transform.matrix() @ np.array([1.0, 0.0, 0.0, 1.0])
        assert tuple(point[:3]) == pytest.approx((10.0, 22.0, 4.0))


class TestTiming:
    """Tests for time windows and wrap-around."""

    def test_skip_before_start(self, settings):
        """Animations not yet started are skipped and keep their state."""
        anim = make_animation("p", start_time_ms=1000)
        seq = make_sequence(polygons=[make_polygon("p", position=(5, 5))], animations=[anim])
        engine = make_engine([seq], settings)

        report = engine.step(override_s=0.5)

        assert report.skipped == ["p"]
        assert engine.runtime(seq.id, "p").transform.position == (5.0, 5.0)

    def test_start_offset_shifts_local_time(self, settings):
        """Local animation time subtracts start_time_ms."""
        anim = make_animation("p", start_time_ms=1000, duration=2000, positions=[position_kf(0, 0, 0), position_kf(2000, 200, 0)])
        seq = make_sequence(polygons=[make_polygon("p")], animations=[anim])
        engine = make_engine([seq], settings)

        engine.step(override_s=1.5)

        assert engine.runtime(seq.id, "p").transform.position[0] == pytest.approx(50.0)

    def test_wraps_past_sequence_duration(self, settings):
        """Times past the sequence duration wrap around."""
        seq = make_sequence(polygons=[make_polygon("p")], animations=[make_animation("p")])
        engine = make_engine([seq], settings)

        engine.step(override_s=4.5)

        assert engine.runtime(seq.id, "p").transform.position[0] == pytest.approx(12.5)


class TestRecoverableErrors:
    """Tests for recovered, logged-once errors."""

    def test_missing_track_left_unchanged_and_logged_once(self, settings, caplog):
        """Missing tracks keep their value and are logged once per activation."""
        anim = make_animation("p", include=["position"])
        seq = make_sequence(polygons=[make_polygon("p")], animations=[anim])
        engine = make_engine([seq], settings)

        with caplog.at_level(logging.WARNING, logger=ENGINE_LOGGER):
            engine.step(override_s=0.5)
            engine.step(override_s=1.0)

        runtime = engine.runtime(seq.id, "p")
        assert runtime.transform.rotation == 0.0
        assert runtime.transform.opacity == 1.0
        assert runtime.transform.position[0] == pytest.approx(25.0)
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1

    def test_logging_resets_on_activation(self, settings, caplog):
        """Errors are logged again after the sequence is reactivated."""
        anim = make_animation("p", include=["position"])
        seq = make_sequence(polygons=[make_polygon("p")], animations=[anim])
        engine = make_engine([seq], settings)

        with caplog.at_level(logging.WARNING, logger=ENGINE_LOGGER):
            engine.step(override_s=0.5)
            engine.set_current_sequence(seq.id)
            engine.step(override_s=0.5)

        assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 2


class TestVideoObjects:
    """Tests for video pacing and zoom."""

    def video_sequence(self, zoom=(100, 100)):
        anim = make_animation(
            "v",
            object_kind="video",
            positions=[position_kf(0, 0, 0), position_kf(4000, 4000, 0)],
            zoom=zoom,
        )
        return make_sequence(videos=[make_video("v")], animations=[anim])

    def test_skip_when_pacer_declines(self, settings, decoder, renderer):
        """No property updates on steps without a new frame."""
        seq = self.video_sequence()
        engine = make_engine([seq], settings, decoder=decoder, renderer=renderer)

        first = engine.step(override_s=0.0)
        second = engine.step(override_s=0.010)

        assert first.updated == ["v"]
        assert first.frames_decoded == {"v": 1}
        assert second.skipped == ["v"]
        assert second.frames_decoded == {"v": 0}
        assert engine.runtime(seq.id, "v").transform.position[0] == pytest.approx(0.0)
        assert renderer.uploads == [("v", 1, 1920, 1080)]

    def test_catch_up_then_update(self, settings, decoder):
        """A lagging step decodes catch-up frames and samples properties."""
        seq = self.video_sequence()
        engine = make_engine([seq], settings, decoder=decoder)

        engine.step(override_s=0.0)
        report = engine.step(override_s=0.190)

        assert report.frames_decoded == {"v": 4}
        assert engine.runtime(seq.id, "v").video.pacer.num_frames_drawn == 5
        assert engine.runtime(seq.id, "v").transform.position[0] == pytest.approx(190.0)

    def test_stall_skips_object(self, settings, caplog):
        """A stalled decoder is a non-advance, logged once."""
        seq = self.video_sequence()
        engine = make_engine([seq], settings, decoder=ScriptedDecoder(stall=True))

        with caplog.at_level(logging.WARNING, logger=ENGINE_LOGGER):
            first = engine.step(override_s=0.0)
            engine.step(override_s=0.5)

        assert first.skipped == ["v"]
        assert len([r for r in caplog.records if "decoder returned no frame" in r.getMessage()]) == 1

    def test_zoom_without_capture_centres_window(self, settings, renderer, caplog):
        """Without mouse data the zoom window is centred on the display."""
        seq = self.video_sequence(zoom=(200, 200))
        engine = make_engine([seq], settings, renderer=renderer)

        with caplog.at_level(logging.WARNING, logger=ENGINE_LOGGER):
            engine.step(override_s=0.0)

        video = engine.runtime(seq.id, "v").video
        assert video.uv_rect.as_tuple() == pytest.approx((0.25, 0.25, 0.75, 0.75))
        assert video.uv_grid.shape == (20, 20, 2)
        assert renderer.uv_quads["v"] == video.uv_rect
        assert any("no recorded mouse positions" in r.getMessage() for r in caplog.records)

    def test_zoom_follows_capture(self, settings):
        """With mouse data the window follows the remapped mouse position."""
        recording = CaptureRecording(
            mouse_positions=[MousePosition(x=1728.0, y=540.0, timestamp_ms=t) for t in range(0, 12_000, 50)],
            source_data=SourceData(width=1920, height=1080),
        )
        capture = StaticCapture(recording)
        seq = self.video_sequence(zoom=(200, 200))
        engine = make_engine([seq], settings, capture=capture)

        engine.step(override_s=0.0)

        video = engine.runtime(seq.id, "v").video
        assert capture.requested == ["v"]
        assert video.follow.last_center == pytest.approx((720.0, 225.0))
        assert video.uv_rect.as_tuple() == pytest.approx((0.5, 0.25, 1.0, 0.75))

    def test_play_rewinds_pacers(self, settings, decoder):
        """play() resets every pacer and rewinds the decoder."""
        seq = self.video_sequence()
        engine = make_engine([seq], settings, decoder=decoder)
        engine.step(override_s=0.0)

        engine.play(now=0.0)

        assert engine.runtime(seq.id, "v").video.pacer.num_frames_drawn == 0
        assert decoder.resets[-1] == "v"


class TestResetAndActivation:
    """Tests for sequence activation and reset."""

    def test_reset_restores_initial_state(self, settings, decoder):
        """Reset restores position, rotation 0, scale 1 and opacity 1."""
        anim = make_animation("p", rotation=(0, 90), scale=(100, 300), opacity=(100, 0))
        seq = make_sequence(
            polygons=[make_polygon("p", position=(40, 60))],
            videos=[make_video("v")],
            animations=[anim, make_animation("v", object_kind="video")],
        )
        engine = make_engine([seq], settings, decoder=decoder)
        first = engine.step(override_s=0.0)
        snapshot = dataclasses.replace(engine.runtime(seq.id, "p").transform)
        engine.step(override_s=0.0)
        engine.step(override_s=2.0)

        engine.reset_sequence_objects()

        runtime = engine.runtime(seq.id, "p")
        assert runtime.transform.position == (40.0, 60.0)
        assert runtime.transform.rotation == 0.0
        assert runtime.transform.scale == (1.0, 1.0)
        assert runtime.transform.opacity == 1.0
        assert engine.runtime(seq.id, "v").video.pacer.num_frames_drawn == 0
        assert engine.runtime(seq.id, "v").transform.scale == (800.0, 450.0)

        again = engine.step(override_s=0.0)
        assert engine.runtime(seq.id, "p").transform == snapshot
        assert again.updated == first.updated

    def test_timeline_switches_visibility_and_background(self, settings, renderer):
        """Crossing into a new entry activates its sequence."""
        seq_a = make_sequence("a", polygons=[make_polygon("pa")], animations=[make_animation("pa")], background=(255, 0, 0, 255))
        seq_b = make_sequence("b", polygons=[make_polygon("pb")], animations=[make_animation("pb")], background=(0, 0, 255, 255))
        timeline = TimelineState(
            timeline_sequences=[
                TimelineEntry(sequence_id="a", start_time_ms=0, duration_ms=2000),
                TimelineEntry(sequence_id="b", start_time_ms=2000, duration_ms=2000),
            ]
        )
        engine = make_engine([seq_a, seq_b], settings, renderer=renderer, timeline=timeline)

        first = engine.step(override_s=0.5)
        assert first.switched is True
        assert first.sequence_id == "a"
        assert engine.runtime("a", "pa").hidden is False
        assert engine.runtime("b", "pb").hidden is True

        second = engine.step(override_s=2.5)
        assert second.switched is True
        assert second.sequence_id == "b"
        assert second.local_time_ms == pytest.approx(500.0)
        assert engine.runtime("a", "pa").hidden is True
        assert engine.runtime("b", "pb").hidden is False
        assert engine.background == pytest.approx((0.0, 0.0, 1.0, 1.0))
        assert renderer.backgrounds[0] == pytest.approx((1.0, 0.0, 0.0, 1.0))
        assert engine.runtime("b", "pb").transform.position[0] == pytest.approx(12.5)

    def test_outside_timeline(self, settings):
        """Steps outside every entry do nothing."""
        seq = make_sequence("a", polygons=[make_polygon("pa")], animations=[make_animation("pa")])
        timeline = TimelineState(
            timeline_sequences=[TimelineEntry(sequence_id="a", start_time_ms=1000, duration_ms=1000)]
        )
        engine = make_engine([seq], settings, timeline=timeline)

        report = engine.step(override_s=0.5)

        assert report.sequence_id is None
        assert report.updated == []

    def test_entry_for_unloaded_sequence_is_skipped(self, settings, caplog):
        """Entries pointing at sequences that were never loaded do not break stepping."""
        seq = make_sequence(polygons=[make_polygon("p")], animations=[make_animation("p")])
        timeline = TimelineState(
            timeline_sequences=[
                TimelineEntry(sequence_id="ghost", start_time_ms=0, duration_ms=1000),
                TimelineEntry(sequence_id=seq.id, start_time_ms=1000, duration_ms=4000),
            ]
        )
        engine = make_engine([seq], settings, timeline=timeline)

        with caplog.at_level(logging.WARNING):
            first = engine.step(override_s=0.5)
            engine.step(override_s=0.75)
        assert first.sequence_id is None
        assert engine.current_sequence_id is None
        assert caplog.text.count("unknown sequence ghost") == 1

        second = engine.step(override_s=1.5)
        assert second.switched is True
        assert second.sequence_id == seq.id
        assert second.local_time_ms == pytest.approx(500.0)


class TestVisibleTargets:
    """Tests for visible_targets()."""

    def test_order_and_durations(self, settings):
        """Targets list polygons, text, images then videos."""
        seq = make_sequence(
            videos=[make_video("v", position=(4, 4), source_duration_ms=8000)],
            images=[make_image("i", position=(3, 3))],
            texts=[make_text("t", position=(2, 2))],
            polygons=[make_polygon("p", position=(1, 1))],
        )
        engine = make_engine([seq], settings)

        targets = engine.visible_targets()

        assert [t.object_id for t in targets] == ["p", "t", "i", "v"]
        assert [t.duration_ms for t in targets] == [20_000, 20_000, 20_000, 8000]
        assert targets[0].position == (1.0, 1.0)

    def test_canvas_offset_removed(self):
        """Target positions are canvas-space."""
        settings = Settings(_env_file=None, canvas_horiz_offset=600.0, canvas_vert_offset=50.0)
        seq = make_sequence(polygons=[make_polygon("p", position=(100, 100))])
        engine = make_engine([seq], settings)

        assert engine.visible_targets()[0].position == (100.0, 100.0)

    def test_hidden_sequences_excluded(self, settings):
        """Only the active sequence contributes targets."""
        seq_a = make_sequence("a", polygons=[make_polygon("pa")])
        seq_b = make_sequence("b", polygons=[make_polygon("pb")])
        engine = make_engine([seq_a, seq_b], settings)

        assert [t.object_id for t in engine.visible_targets()] == ["pa"]
