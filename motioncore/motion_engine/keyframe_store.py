"""
Keyframe store: owns loaded sequences and answers bracket queries.

Sequences are normalized (tracks sorted by time) and validated on load. A
sequence that breaks a structural invariant is rejected with
SequenceValidationError, or RangeInvariantError for overlapping holds.

Usage:
    store = KeyframeStore()
    store.load_sequence(sequence)
    anim = store.get_sequence(sequence.id).polygon_motion_paths[0]
    bracket = find_bracket(store.get_track(anim, "position"), t=1500)
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..schemas.animation import AnimationData
from ..schemas.keyframe import FrameKind, Keyframe, PropertyTrack
from ..schemas.sequence import Sequence
from .errors import (
    MissingTrackError,
    MixedVariantError,
    RangeInvariantError,
    SequenceValidationError,
)

logger = logging.getLogger(__name__)


# Property paths every object kind is expected to carry
BASE_PROPERTY_PATHS = ("position", "rotation", "scale", "opacity")
VIDEO_PROPERTY_PATHS = BASE_PROPERTY_PATHS + ("zoom",)


def expected_property_paths(object_kind: str) -> tuple:
    if object_kind == "video":
        return VIDEO_PROPERTY_PATHS
    return BASE_PROPERTY_PATHS


# =============================================================================
# Bracket Search
# =============================================================================


@dataclass(frozen=True)
class Bracket:
    """The keyframe pair used to interpolate at a time.

    hold is True when the pair was synthesized from a range keyframe and the
    query falls inside the hold interval; the left value applies unchanged.
    """

    left: Keyframe
    right: Keyframe
    hold: bool = False


def _virtual_keyframe(source: Keyframe, time: int) -> Keyframe:
    return source.model_copy(
        update={"id": f"{source.id}@{time}", "time": time, "kind": FrameKind()}
    )


def find_bracket(
    track: PropertyTrack,
    t: float,
    limit_ms: Optional[int] = None,
) -> Optional[Bracket]:
    """
    Find the keyframes surrounding time t.

    Args:
        track: Track to search
        t: Query time in milliseconds
        limit_ms: Keyframes later than this are ignored

    Returns:
        Bracket for t, or None when t precedes the first keyframe or is at or
        after the last one
    """
    keyframes = track.sorted_keyframes()
    if limit_ms is not None:
        keyframes = [k for k in keyframes if k.time <= limit_ms]

    for i, right in enumerate(keyframes):
        if right.time > t:
            break
    else:
        return None
    if i == 0:
        return None

    left = keyframes[i - 1]
    end_time = left.end_time
    if end_time is None:
        return Bracket(left=left, right=right)

    held = _virtual_keyframe(left, end_time)
    if t < end_time:
        return Bracket(left=left, right=held, hold=True)
    return Bracket(left=held, right=right)


# =============================================================================
# Validation
# =============================================================================


def _iter_tracks(tracks: Iterable[PropertyTrack]) -> Iterable[PropertyTrack]:
    for track in tracks:
        yield track
        yield from _iter_tracks(track.children)


def _validate_track(anim: AnimationData, track: PropertyTrack) -> None:
    keyframes = track.keyframes
    where = f"Object {anim.object_id} track '{track.property_path}'"

    kinds = {kf.value.type for kf in keyframes}
    if len(kinds) > 1:
        raise MixedVariantError(f"{where}: mixed value variants {sorted(kinds)}")

    for prev, cur in zip(keyframes, keyframes[1:]):
        if cur.time == prev.time:
            raise SequenceValidationError(f"{where}: two keyframes at {cur.time}ms")
        if cur.time < prev.time:
            raise SequenceValidationError(
                f"{where}: keyframes not sorted ({prev.time}ms before {cur.time}ms)"
            )

    for idx, kf in enumerate(keyframes):
        end_time = kf.end_time
        if end_time is None:
            continue
        if end_time <= kf.time:
            raise RangeInvariantError(
                f"{where}: range at {kf.time}ms must end after it starts, got end_time={end_time}"
            )
        if idx + 1 < len(keyframes):
            next_time = keyframes[idx + 1].time
            if end_time >= next_time:
                raise RangeInvariantError(
                    f"{where}: range at {kf.time}ms ends at {end_time}ms, "
                    f"overlapping next keyframe at {next_time}ms"
                )
        elif end_time > anim.duration:
            raise RangeInvariantError(
                f"{where}: range at {kf.time}ms ends at {end_time}ms, "
                f"past animation duration {anim.duration}ms"
            )


def validate_animation(anim: AnimationData) -> None:
    """
    Validate one object's animation.

    Raises:
        SequenceValidationError: Unsorted or duplicate keyframe times, or a
            zoom track on a non-video object (or missing on a video)
        RangeInvariantError: A range keyframe overlaps its successor
        MixedVariantError: A track mixes value variants
    """
    for track in _iter_tracks(anim.properties):
        _validate_track(anim, track)

    has_zoom = anim.track("zoom") is not None
    if has_zoom and anim.object_kind != "video":
        raise SequenceValidationError(
            f"Object {anim.object_id}: zoom track is only valid on video objects"
        )
    if anim.object_kind == "video" and not has_zoom:
        raise SequenceValidationError(f"Object {anim.object_id}: video object has no zoom track")


def validate_sequence(sequence: Sequence) -> None:
    """
    Validate a sequence before it is accepted by the store.

    Args:
        sequence: The Sequence to validate

    Raises:
        SequenceValidationError: If any structural rule is violated
        RangeInvariantError: If a range keyframe overlaps its successor
    """
    # 1. Object ids unique across all config lists
    seen: Dict[str, str] = {}
    for kind, config in sequence.iter_configs():
        if config.id in seen:
            raise SequenceValidationError(
                f"Sequence {sequence.id}: duplicate object id '{config.id}' "
                f"({seen[config.id]} and {kind})"
            )
        seen[config.id] = kind

    # 2. Each animation points at a config of the same kind
    for anim in sequence.polygon_motion_paths:
        kind = seen.get(anim.object_id)
        if kind is None:
            raise SequenceValidationError(
                f"Sequence {sequence.id}: animation {anim.id} references unknown object '{anim.object_id}'"
            )
        if kind != anim.object_kind:
            raise SequenceValidationError(
                f"Sequence {sequence.id}: animation for '{anim.object_id}' is {anim.object_kind}, "
                f"object is {kind}"
            )
        validate_animation(anim)


def normalize_tracks(tracks: List[PropertyTrack]) -> None:
    """Sort each track's keyframes by time in place."""
    for track in _iter_tracks(tracks):
        track.keyframes = track.sorted_keyframes()


# =============================================================================
# Store
# =============================================================================


class KeyframeStore:
    """
    Owns sequences by id.

    The store is read-only during an engine step. Edits and regenerated
    tracks are applied between steps through replace_animation.
    """

    def __init__(self) -> None:
        self._sequences: Dict[str, Sequence] = {}

    @property
    def sequences(self) -> List[Sequence]:
        return list(self._sequences.values())

    def load_sequence(self, sequence: Sequence) -> Sequence:
        """
        Normalize, validate and store a sequence.

        Raises:
            SequenceValidationError: If the sequence is rejected
        """
        for anim in sequence.polygon_motion_paths:
            normalize_tracks(anim.properties)
        validate_sequence(sequence)
        self._sequences[sequence.id] = sequence
        logger.info(
            f"Loaded sequence {sequence.id} ({len(sequence.polygon_motion_paths)} animations, "
            f"{sequence.duration_ms}ms)"
        )
        return sequence

    def get_sequence(self, sequence_id: str) -> Sequence:
        try:
            return self._sequences[sequence_id]
        except KeyError:
            raise KeyError(f"Sequence not loaded: {sequence_id}") from None

    def has_sequence(self, sequence_id: str) -> bool:
        return sequence_id in self._sequences

    def replace_animation(self, sequence_id: str, animation: AnimationData) -> None:
        """
        Swap in an object's animation, replacing any existing one for the
        same object id.

        Raises:
            KeyError: If the sequence is not loaded
            SequenceValidationError: If the new animation is invalid
        """
        sequence = self.get_sequence(sequence_id)
        normalize_tracks(animation.properties)
        validate_animation(animation)

        found = sequence.find_config(animation.object_id)
        if found is None or found[0] != animation.object_kind:
            raise SequenceValidationError(
                f"Sequence {sequence_id}: no {animation.object_kind} object '{animation.object_id}'"
            )

        animations = [a for a in sequence.polygon_motion_paths if a.object_id != animation.object_id]
        animations.append(animation)
        sequence.polygon_motion_paths = animations
        logger.debug(f"Replaced animation for {animation.object_id} in sequence {sequence_id}")

    @staticmethod
    def get_track(animation: AnimationData, property_path: str) -> PropertyTrack:
        """
        Return the track for a property.

        Raises:
            MissingTrackError: If the animation has no such track
        """
        track = animation.track(property_path)
        if track is None:
            raise MissingTrackError(animation.object_id, property_path)
        return track
