"""
Animation engine.

Drives the keyframe store and interpolator to write object transforms for
the active sequence, and paces video objects so their property updates stay
locked to decoded frames.

Usage:
    store = KeyframeStore()
    store.load_sequence(sequence)
    engine = AnimationEngine(store, timeline=project.timeline_state, renderer=renderer)
    engine.play()
    report = engine.step()
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from ..core.config import Settings, get_settings
from ..schemas.animation import AnimationData
from ..schemas.sequence import ColorFill, Sequence, VideoItemConfig
from ..schemas.timeline import TimelineState
from .clock import PlaybackClock
from .collaborators import CaptureSource, Renderer, VideoDecoder
from .composer import TimelineComposer
from .errors import (
    AnimationError,
    FollowUninitializedError,
    MissingTrackError,
    OutOfRangeError,
    SparseTrackError,
    VideoStallError,
)
from .follow import uv_grid, zoom_window
from .interpolator import SampledValue, sample
from .keyframe_store import KeyframeStore, expected_property_paths
from .runtime import ObjectRuntime, SynthesisTarget, Transform, base_scale, build_runtime

logger = logging.getLogger(__name__)

RuntimeKey = Tuple[str, str]

# Stand-in frame when no decoder is attached
_HEADLESS_FRAME = object()


def animation_local_time(anim: AnimationData, sequence_t_ms: float) -> float:
    """
    Time inside an animation for a sequence-local time.

    Raises:
        OutOfRangeError: If the animation is not running at sequence_t_ms
    """
    local = sequence_t_ms - anim.start_time_ms
    if local < 0 or local > anim.duration:
        raise OutOfRangeError(
            f"{local:.0f}ms is outside animation {anim.id} (0-{anim.duration}ms)"
        )
    return local


@dataclass
class StepReport:
    """What one engine step did."""

    t_ms: float
    sequence_id: Optional[str] = None
    local_time_ms: Optional[float] = None
    switched: bool = False
    updated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    frames_decoded: Dict[str, int] = field(default_factory=dict)


class AnimationEngine:
    """
    Computes per-object transforms and video state at any instant.

    The engine keeps a runtime for every object of every loaded sequence.
    Objects outside the active sequence are hidden. Non-fatal errors are
    logged once per object per sequence activation.
    """

    def __init__(
        self,
        store: KeyframeStore,
        timeline: Optional[TimelineState] = None,
        renderer: Optional[Renderer] = None,
        decoder: Optional[VideoDecoder] = None,
        capture: Optional[CaptureSource] = None,
        settings: Optional[Settings] = None,
        clock: Optional[PlaybackClock] = None,
    ):
        self.store = store
        self.renderer = renderer
        self.decoder = decoder
        self.capture = capture
        self.settings = settings or get_settings()
        self.clock = clock or PlaybackClock()
        self.composer = (
            TimelineComposer(timeline, is_available=store.has_sequence) if timeline is not None else None
        )

        self.current_sequence_id: Optional[str] = None
        self.background: Optional[Tuple[float, float, float, float]] = None
        self.runtimes: Dict[RuntimeKey, ObjectRuntime] = {}
        self._logged: Set[Tuple[str, str]] = set()

        for sequence in store.sequences:
            self._build_runtimes(sequence)

    @property
    def canvas_offset(self) -> Tuple[float, float]:
        return (self.settings.canvas_horiz_offset, self.settings.canvas_vert_offset)

    # -------------------------------------------------------------------------
    # Runtime management
    # -------------------------------------------------------------------------

    def _build_runtimes(self, sequence: Sequence) -> None:
        for kind, config in sequence.iter_configs():
            key = (sequence.id, config.id)
            if key in self.runtimes:
                continue
            runtime = build_runtime(
                kind,
                config,
                sequence.id,
                max_catch_up=self.settings.max_catch_up_frames,
            )
            runtime.reset(self.canvas_offset)
            runtime.hidden = sequence.id != self.current_sequence_id
            if runtime.video is not None and self.capture is not None:
                recording = self.capture.load(config)
                if recording is not None:
                    runtime.video.mouse_positions = sorted(
                        recording.mouse_positions, key=lambda p: p.timestamp_ms
                    )
                    runtime.video.source_data = recording.source_data
            self.runtimes[key] = runtime

    def runtime(self, sequence_id: str, object_id: str) -> Optional[ObjectRuntime]:
        return self.runtimes.get((sequence_id, object_id))

    def sequence_runtimes(self, sequence_id: str) -> List[ObjectRuntime]:
        return [rt for (seq_id, _), rt in self.runtimes.items() if seq_id == sequence_id]

    def _log_once(self, runtime: ObjectRuntime, exc: AnimationError, level: int = logging.WARNING) -> None:
        key = (runtime.object_id, type(exc).__name__)
        if key in self._logged:
            return
        self._logged.add(key)
        logger.log(level, f"{runtime.object_kind} {runtime.object_id}: {exc}")

    def _push_transform(self, runtime: ObjectRuntime) -> None:
        if self.renderer is not None:
            self.renderer.set_transform(runtime.object_id, runtime.transform.matrix())

    # -------------------------------------------------------------------------
    # Playback control
    # -------------------------------------------------------------------------

    def play(self, now: Optional[float] = None) -> None:
        """Start the clock and rewind every video pacer."""
        self.clock.start(now)
        for runtime in self.runtimes.values():
            if runtime.video is not None:
                runtime.video.pacer.reset()
                if self.decoder is not None:
                    self.decoder.reset(runtime.object_id)

    def stop(self, now: Optional[float] = None) -> None:
        self.clock.stop(now)

    def set_current_sequence(self, sequence_id: str) -> None:
        """
        Activate a sequence: toggle visibility, reset its objects and apply
        its background.

        Raises:
            KeyError: If the sequence is not loaded
        """
        sequence = self.store.get_sequence(sequence_id)
        self._build_runtimes(sequence)

        self.current_sequence_id = sequence_id
        self._logged.clear()
        for runtime in self.runtimes.values():
            runtime.hidden = runtime.sequence_id != sequence_id

        self.reset_sequence_objects()

        fill = sequence.background_fill
        if isinstance(fill, ColorFill):
            self.background = fill.as_floats()
            if self.renderer is not None:
                self.renderer.set_background(self.background)
        logger.info(f"Activated sequence {sequence_id} ({sequence.name or 'unnamed'})")

    def reset_sequence_objects(self) -> None:
        """Restore every object of the current sequence to its initial state."""
        if self.current_sequence_id is None:
            return
        for runtime in self.sequence_runtimes(self.current_sequence_id):
            runtime.reset(self.canvas_offset)
            if runtime.video is not None and self.decoder is not None:
                self.decoder.reset(runtime.object_id)
            self._push_transform(runtime)

    # -------------------------------------------------------------------------
    # Stepping
    # -------------------------------------------------------------------------

    def step(self, now: Optional[float] = None, override_s: Optional[float] = None) -> StepReport:
        """
        Advance the engine to the clock's current time.

        Args:
            now: Wall instant in seconds (defaults to the clock's time source)
            override_s: Explicit play time in seconds, used by the exporter

        Returns:
            StepReport describing the step
        """
        t_ms = self.clock.sample_time(now, override_s) * 1000.0
        switched = False
        local_ms = t_ms

        if self.composer is not None:
            update = self.composer.update(t_ms)
            if update.active is None:
                return StepReport(t_ms=t_ms)
            if update.switched:
                self.set_current_sequence(update.active.sequence_id)
                switched = True
            local_ms = update.active.local_time_ms

        if self.current_sequence_id is None:
            return StepReport(t_ms=t_ms)

        sequence = self.store.get_sequence(self.current_sequence_id)
        report = self.step_sequence(sequence, local_ms)
        report.t_ms = t_ms
        report.switched = switched
        return report

    def step_sequence(self, sequence: Sequence, t_ms: float) -> StepReport:
        """
        Sample every animation of a sequence at t_ms (sequence-local).

        Times past the sequence duration wrap around. Objects whose
        animation is not running at the wrapped time are skipped, as are
        videos whose pacer does not advance a frame this step.
        """
        report = StepReport(t_ms=t_ms, sequence_id=sequence.id, local_time_ms=t_ms)
        sequence_t = t_ms % sequence.duration_ms

        for anim in sequence.polygon_motion_paths:
            runtime = self.runtime(sequence.id, anim.object_id)
            if runtime is None:
                self._build_runtimes(sequence)
                runtime = self.runtime(sequence.id, anim.object_id)
                if runtime is None:
                    continue

            try:
                anim_local = animation_local_time(anim, sequence_t)
            except OutOfRangeError as exc:
                self._log_once(runtime, exc, level=logging.DEBUG)
                report.skipped.append(anim.object_id)
                continue

            if runtime.video is not None:
                decoded = self._advance_video(runtime, anim_local)
                report.frames_decoded[anim.object_id] = decoded
                if decoded == 0:
                    report.skipped.append(anim.object_id)
                    continue

            self._apply_tracks(runtime, anim, anim_local)
            self._push_transform(runtime)
            report.updated.append(anim.object_id)

        logger.debug(
            f"Step {sequence.id} @ {t_ms:.1f}ms: {len(report.updated)} updated, "
            f"{len(report.skipped)} skipped"
        )
        return report

    def _advance_video(self, runtime: ObjectRuntime, anim_local_ms: float) -> int:
        pacer = runtime.video.pacer
        before = pacer.num_frames_drawn
        stalls = pacer.stalls
        last_frame: List[Any] = []

        def decode() -> Optional[Any]:
            if self.decoder is None:
                return _HEADLESS_FRAME
            frame = self.decoder.decode_next_frame(runtime.object_id)
            if frame is not None:
                last_frame[:] = [frame]
            return frame

        pacer.advance(anim_local_ms / 1000.0, decode)

        if pacer.stalls > stalls:
            self._log_once(
                runtime,
                VideoStallError(f"decoder returned no frame at frame {pacer.num_frames_drawn}"),
            )
        if last_frame and self.renderer is not None:
            width, height = runtime.config.source_dimensions
            self.renderer.upload_texture(runtime.object_id, last_frame[0], width, height)
        return pacer.num_frames_drawn - before

    def _apply_tracks(self, runtime: ObjectRuntime, anim: AnimationData, anim_local_ms: float) -> None:
        for property_path in expected_property_paths(anim.object_kind):
            try:
                track = self.store.get_track(anim, property_path)
                value = sample(track, anim_local_ms, limit_ms=anim.duration)
            except (MissingTrackError, SparseTrackError) as exc:
                self._log_once(runtime, exc)
                continue
            self._write_property(runtime, anim, property_path, value, anim_local_ms)

    def _write_property(
        self,
        runtime: ObjectRuntime,
        anim: AnimationData,
        property_path: str,
        value: SampledValue,
        anim_local_ms: float,
    ) -> None:
        transform: Transform = runtime.transform
        if property_path == "position":
            offset_x, offset_y = self.canvas_offset
            transform.position = (
                value.x + anim.position[0] + offset_x,
                value.y + anim.position[1] + offset_y,
            )
        elif property_path == "rotation":
            transform.rotation = math.radians(value.scalar)
        elif property_path == "scale":
            factor = value.scalar / 100.0
            base_x, base_y = base_scale(runtime.object_kind, runtime.config)
            transform.scale = (base_x * factor, base_y * factor)
        elif property_path == "opacity":
            transform.opacity = value.scalar / 100.0
        elif property_path == "zoom":
            self._apply_zoom(runtime, value.scalar / 100.0, anim_local_ms)

    def _apply_zoom(self, runtime: ObjectRuntime, zoom: float, elapsed_ms: float) -> None:
        video = runtime.video
        config: VideoItemConfig = runtime.config
        display = (float(config.dimensions[0]), float(config.dimensions[1]))

        if video.mouse_positions and video.source_data is not None:
            result = video.follow.update(
                elapsed_ms,
                video.mouse_positions,
                video.source_data,
                config.source_dimensions,
                zoom,
                display,
                source_duration_ms=config.source_duration_ms,
            )
            rect = result.uv_rect
        else:
            self._log_once(
                runtime,
                FollowUninitializedError("no recorded mouse positions, zooming on the display centre"),
            )
            rect = zoom_window(zoom, (display[0] / 2.0, display[1] / 2.0), display)

        video.uv_rect = rect
        video.uv_grid = uv_grid(rect, self.settings.uv_grid_size)
        if self.renderer is not None:
            self.renderer.set_uv_quad(runtime.object_id, rect)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def visible_runtimes(self) -> List[ObjectRuntime]:
        if self.current_sequence_id is None:
            return []
        return [rt for rt in self.sequence_runtimes(self.current_sequence_id) if not rt.hidden]

    def visible_targets(self) -> List[SynthesisTarget]:
        """
        Visible objects of the current sequence for motion path generation.

        Ordered polygons, text, images, videos. Positions are canvas-space
        (canvas offset removed). Videos use their source duration, other
        objects the default object duration.
        """
        if self.current_sequence_id is None:
            return []
        sequence = self.store.get_sequence(self.current_sequence_id)
        offset_x, offset_y = self.canvas_offset
        targets: List[SynthesisTarget] = []
        for kind, config in sequence.iter_configs():
            runtime = self.runtime(sequence.id, config.id)
            if runtime is None or runtime.hidden:
                continue
            if isinstance(config, VideoItemConfig):
                duration_ms = config.source_duration_ms
            else:
                duration_ms = self.settings.default_object_duration_ms
            position = runtime.transform.position
            targets.append(
                SynthesisTarget(
                    object_id=config.id,
                    object_kind=kind,
                    position=(position[0] - offset_x, position[1] - offset_y),
                    dimensions=(float(config.dimensions[0]), float(config.dimensions[1])),
                    duration_ms=duration_ms,
                )
            )
        return targets
