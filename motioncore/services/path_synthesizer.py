"""
Motion path synthesis from predicted waypoints.

Turns the flat prediction array of a motion model into full AnimationData
tracks: predicted paths are matched to objects, shifted so each path's third
keyframe lands on the object's current position, and given a range hold in
the middle. Optional flags add fades, default Bezier curves, or reuse the
longest path for every object.

Prediction layout (per object, 6 rows of 7 features):
    object_index, time_slot, width, height, x_pct, y_pct, direction

x_pct and y_pct are percentages of the 800 x 450 logical canvas.

Usage:
    synthesizer = PathSynthesizer(GenerationOptions(count=6, fade=True))
    animations = synthesizer.run_inference(predictor, engine.visible_targets())
    for anim in animations:
        store.replace_animation(sequence_id, anim)
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core.config import Settings, get_settings
from ..motion_engine.collaborators import Predictor
from ..motion_engine.errors import AssignmentInfeasibleError
from ..motion_engine.runtime import SynthesisTarget
from ..schemas.animation import AnimationData
from ..schemas.keyframe import (
    BezierPath,
    Keyframe,
    LinearPath,
    OpacityValue,
    Point,
    PositionValue,
    PropertyTrack,
    RangeKind,
    RotationValue,
    ScaleValue,
    ZoomValue,
)
from .assignment import assignment_cost, solve_assignment

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

NUM_INFERENCE_FEATURES = 7
KEYFRAMES_PER_OBJECT = 6
VALUES_PER_OBJECT = NUM_INFERENCE_FEATURES * KEYFRAMES_PER_OBJECT

X_COLUMN = 4
Y_COLUMN = 5

# Object class code sent in every prompt row
PROMPT_OBJECT_CODE = 5

# Durations up to this use proportional slot times
PROPORTIONAL_SLOTS_UP_TO_MS = 10_000
SLOT_FRACTIONS = (0.0, 0.125, 0.25, 0.75, 0.875, 1.0)

# Default curve placement
MIN_CURVE_DISTANCE = 10.0
CURVE_FORWARD_RATIO = 0.25
CURVE_FORWARD_MAX = 100.0
CURVE_OFFSET_RATIO = 0.2
CURVE_OFFSET_MAX = 50.0


@dataclass
class GenerationOptions:
    count: int = 6
    choreographed: bool = False
    curved: bool = False
    fade: bool = False
    canvas: Tuple[int, int] = (800, 450)
    max_objects: int = 7

    def __post_init__(self) -> None:
        if self.count not in (4, 6):
            raise ValueError(f"count must be 4 or 6, got {self.count}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationOptions":
        return cls(
            count=settings.generation_count,
            choreographed=settings.generation_choreographed,
            curved=settings.generation_curved,
            fade=settings.generation_fade,
            canvas=(settings.canvas_width, settings.canvas_height),
            max_objects=settings.max_objects,
        )


# =============================================================================
# Helpers
# =============================================================================


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def keyframe_timestamps(duration_ms: int) -> List[int]:
    """
    Times of the six generated keyframe slots.

    The first three are anchored to the start and the last three to the end:
    [0, 2500, 5000, d - 5000, d - 2500, d]. Durations of 10 s or less use the
    same shape scaled to the duration.

    Raises:
        ValueError: If the duration is too short for six distinct slot times
    """
    if duration_ms > PROPORTIONAL_SLOTS_UP_TO_MS:
        return [0, 2500, 5000, duration_ms - 5000, duration_ms - 2500, duration_ms]
    times = [round_half_away(f * duration_ms) for f in SLOT_FRACTIONS]
    if any(b <= a for a, b in zip(times, times[1:])):
        raise ValueError(f"Duration {duration_ms}ms is too short for distinct keyframe slots: {times}")
    return times


def _format_number(value: float) -> str:
    return f"{value:g}"


def encode_prompt(
    targets: Sequence[SynthesisTarget],
    canvas: Tuple[int, int] = (800, 450),
    max_objects: int = 7,
) -> str:
    """
    Build the predictor prompt, one row per target.

    Each row reads "index, 5, width, height, x_pct, y_pct, 0.000, " with
    positions as rounded percentages of the canvas.
    """
    rows = []
    for index, target in enumerate(targets[:max_objects]):
        x_pct = round_half_away(target.position[0] / canvas[0] * 100.0)
        y_pct = round_half_away(target.position[1] / canvas[1] * 100.0)
        rows.append(
            f"{index}, {PROMPT_OBJECT_CODE}, {_format_number(target.dimensions[0])}, "
            f"{_format_number(target.dimensions[1])}, {x_pct}, {y_pct}, 0.000, \n"
        )
    return "".join(rows)


def reshape_predictions(predictions: Sequence[float]) -> np.ndarray:
    """
    View the flat prediction array as (objects, 6, 7).

    Trailing values that do not form a complete object are dropped.
    """
    flat = np.asarray(predictions, dtype=float).ravel()
    num_objects = flat.size // VALUES_PER_OBJECT
    if flat.size % VALUES_PER_OBJECT:
        logger.warning(
            f"Prediction length {flat.size} is not a multiple of {VALUES_PER_OBJECT}; "
            f"using {num_objects} complete object(s)"
        )
    return flat[: num_objects * VALUES_PER_OBJECT].reshape(
        num_objects, KEYFRAMES_PER_OBJECT, NUM_INFERENCE_FEATURES
    )


def denormalize(row: np.ndarray, canvas: Tuple[int, int]) -> Tuple[int, int]:
    """Canvas pixels for one prediction row."""
    return (
        round_half_away(row[X_COLUMN] * 0.01 * canvas[0]),
        round_half_away(row[Y_COLUMN] * 0.01 * canvas[1]),
    )


def path_length(points: Sequence[Tuple[int, int]]) -> float:
    return sum(math.hypot(b[0] - a[0], b[1] - a[1]) for a, b in zip(points, points[1:]))


def default_curve(current: Keyframe, following: Keyframe):
    """
    Default Bezier towards the next position keyframe.

    Both control points sit on the same side of the straight segment:
    pushed forward along it by min(d/4, 100) from each end and offset
    perpendicular by min(d/5, 50). Short segments stay linear.
    """
    if not isinstance(current.value, PositionValue) or not isinstance(following.value, PositionValue):
        return LinearPath()

    x0, y0 = current.value.value
    x1, y1 = following.value.value
    dx = float(x1 - x0)
    dy = float(y1 - y0)
    distance = math.hypot(dx, dy)
    if distance < MIN_CURVE_DISTANCE:
        return LinearPath()

    dir_x, dir_y = dx / distance, dy / distance
    perp_x, perp_y = -dir_y, dir_x
    forward = min(distance * CURVE_FORWARD_RATIO, CURVE_FORWARD_MAX)
    offset = min(distance * CURVE_OFFSET_RATIO, CURVE_OFFSET_MAX)

    cp1 = Point(
        x=int(x0 + dir_x * forward + perp_x * offset),
        y=int(y0 + dir_y * forward + perp_y * offset),
    )
    cp2 = Point(
        x=int(x1 - dir_x * forward + perp_x * offset),
        y=int(y1 - dir_y * forward + perp_y * offset),
    )
    return BezierPath(control_point1=cp1, control_point2=cp2)


def _constant_track(name: str, property_path: str, values: Sequence, timestamps: Sequence[int]) -> PropertyTrack:
    return PropertyTrack(
        name=name,
        property_path=property_path,
        keyframes=[
            Keyframe(time=t, value=value, easing="ease_in_out")
            for t, value in zip(timestamps, values)
        ],
    )


# =============================================================================
# Synthesizer
# =============================================================================


class PathSynthesizer:
    """Builds AnimationData for visible objects from motion predictions."""

    def __init__(self, options: Optional[GenerationOptions] = None, settings: Optional[Settings] = None):
        self.options = options or GenerationOptions.from_settings(settings or get_settings())

    def run_inference(self, predictor: Predictor, targets: Sequence[SynthesisTarget]) -> List[AnimationData]:
        """
        Prompt the predictor with the targets and synthesize their tracks.

        Args:
            predictor: Motion model
            targets: Visible objects, polygons, text, images then videos

        Returns:
            One AnimationData per matched object
        """
        targets = list(targets[: self.options.max_objects])
        if not targets:
            logger.info("No visible objects, skipping motion inference")
            return []
        prompt = encode_prompt(targets, self.options.canvas, self.options.max_objects)
        logger.debug(f"Motion prompt:\n{prompt}")
        predictions = predictor.predict(prompt)
        return self.synthesize(predictions, targets)

    def synthesize(
        self,
        predictions: Sequence[float],
        targets: Sequence[SynthesisTarget],
    ) -> List[AnimationData]:
        """
        Convert predictions into animations for the targets.

        Args:
            predictions: Flat array, objects x 6 keyframes x 7 features
            targets: Objects to animate, in prompt order

        Returns:
            AnimationData per object with Position, Rotation, Scale,
            Opacity (and Zoom for videos) tracks
        """
        predicted = reshape_predictions(predictions)
        targets = list(targets[: self.options.max_objects])
        if predicted.shape[0] == 0 or not targets:
            logger.warning(
                f"Nothing to synthesize ({predicted.shape[0]} predicted paths, {len(targets)} objects)"
            )
            return []

        paths = [
            [denormalize(row, self.options.canvas) for row in predicted[idx]]
            for idx in range(predicted.shape[0])
        ]

        if self.options.choreographed:
            lengths = [path_length(points) for points in paths]
            source_idx = int(np.argmax(lengths))
            logger.info(f"Choreographed generation reusing path {source_idx} ({lengths[source_idx]:.1f}px)")
            pairs = [(i, source_idx) for i in range(len(targets))]
        else:
            pairs = self._assign(paths, targets)

        animations = []
        for obj, src in pairs:
            target = targets[obj]
            try:
                timestamps = keyframe_timestamps(target.duration_ms)
            except ValueError as exc:
                logger.warning(f"Skipping motion path for {target.object_id}: {exc}")
                continue
            animations.append(self._build_animation(target, paths[src], timestamps))
        logger.info(f"Synthesized {len(animations)} motion path(s)")
        return animations

    def _assign(
        self,
        paths: List[List[Tuple[int, int]]],
        targets: Sequence[SynthesisTarget],
    ) -> List[Tuple[int, int]]:
        """Match objects to paths by distance to each path's third keyframe."""
        cost = np.array(
            [
                [math.hypot(path[2][0] - t.position[0], path[2][1] - t.position[1]) for path in paths]
                for t in targets
            ]
        )
        try:
            pairs = solve_assignment(cost)
        except AssignmentInfeasibleError as exc:
            logger.warning(f"Motion path assignment failed ({exc}), using identity")
            pairs = [(i, i) for i in range(min(len(targets), len(paths)))]
        logger.debug(f"Assigned {len(pairs)} path(s), total anchor distance {assignment_cost(cost, pairs):.1f}px")
        return pairs

    def _position_keyframes(
        self,
        target: SynthesisTarget,
        path: List[Tuple[int, int]],
        timestamps: List[int],
    ) -> List[Keyframe]:
        anchor = path[2]
        offset_x = round_half_away(target.position[0]) - anchor[0]
        offset_y = round_half_away(target.position[1]) - anchor[1]

        slots = list(range(KEYFRAMES_PER_OBJECT))
        if self.options.count == 4:
            slots = [0, 2, 3, 5]

        keyframes = [
            Keyframe(
                time=timestamps[slot],
                value=PositionValue(value=(path[slot][0] + offset_x, path[slot][1] + offset_y)),
                easing="ease_in_out",
            )
            for slot in slots
        ]

        # Hold the middle keyframe until the next one, then drop it
        hold = 2 if len(keyframes) == 6 else 1
        keyframes[hold] = keyframes[hold].model_copy(
            update={"kind": RangeKind(end_time=keyframes[hold + 1].time)}
        )
        del keyframes[hold + 1]

        if self.options.curved:
            for i in range(len(keyframes) - 1):
                keyframes[i] = keyframes[i].model_copy(
                    update={"path": default_curve(keyframes[i], keyframes[i + 1])}
                )
        return keyframes

    def _build_animation(
        self,
        target: SynthesisTarget,
        path: List[Tuple[int, int]],
        timestamps: List[int],
    ) -> AnimationData:
        slots = len(timestamps)

        opacity = [100] * slots
        if self.options.fade:
            opacity[0] = 0
            opacity[-1] = 0

        properties = [
            PropertyTrack(
                name="Position",
                property_path="position",
                keyframes=self._position_keyframes(target, path, timestamps),
            ),
            _constant_track("Rotation", "rotation", [RotationValue(value=0)] * slots, timestamps),
            _constant_track("Scale", "scale", [ScaleValue(value=100)] * slots, timestamps),
            _constant_track("Opacity", "opacity", [OpacityValue(value=v) for v in opacity], timestamps),
        ]
        if target.object_kind == "video":
            properties.append(_constant_track("Zoom", "zoom", [ZoomValue(value=100)] * slots, timestamps))

        return AnimationData(
            object_id=target.object_id,
            object_kind=target.object_kind,
            duration=target.duration_ms,
            start_time_ms=0,
            position=(0, 0),
            properties=properties,
        )
