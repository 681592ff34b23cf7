"""
Follow/zoom controller for video objects.

Computes the zoom window centre of a video by smoothing its recorded mouse
trajectory with a fixed look-ahead. Retargeting has hysteresis: pairs that
moved less than MIN_SHIFT_DISTANCE are ignored, and the blend factor grows
with the size of the jump.

Coordinates:
    mouse samples     source pixels, offset by the SourceData origin and scaled
                      by the video's recorded source dimensions
    centre            display pixels of the video quad
    UVRect            normalized texture coordinates, [0, 1] per axis
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..schemas.capture import MousePosition, SourceData
from .errors import FollowUninitializedError

logger = logging.getLogger(__name__)

Vec2 = Tuple[float, float]

# Smoothing constants, tuned numerically
AUTOFOLLOW_DELAY_MS = 150
DELAY_OFFSET_MS = 500
MIN_SHIFT_DISTANCE = 100.0
BASE_ALPHA = 0.01
MAX_ALPHA = 0.1
SCALING_FACTOR = 0.01


@dataclass(frozen=True)
class UVRect:
    u_min: float = 0.0
    v_min: float = 0.0
    u_max: float = 1.0
    v_max: float = 1.0

    @property
    def width(self) -> float:
        return self.u_max - self.u_min

    @property
    def height(self) -> float:
        return self.v_max - self.v_min

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.u_min, self.v_min, self.u_max, self.v_max)


FULL_TEXTURE = UVRect()


@dataclass(frozen=True)
class FollowResult:
    center: Vec2
    uv_rect: UVRect


# =============================================================================
# Zoom Window
# =============================================================================


def _fit_axis(center: float, half: float) -> Tuple[float, float]:
    lo = center - half
    hi = center + half
    if lo < 0.0:
        hi += -lo
        lo = 0.0
    elif hi > 1.0:
        lo -= hi - 1.0
        hi = 1.0
    return max(lo, 0.0), min(hi, 1.0)


def zoom_window(zoom: float, center: Vec2, display: Vec2) -> UVRect:
    """
    UV rectangle for a zoom factor centred on a display-space point.

    The window is translated back inside the texture when it would cross an
    edge, then clamped, so it only shrinks when it is larger than the texture.

    Args:
        zoom: Zoom factor (1.0 = full texture)
        center: Window centre in display pixels
        display: Display width and height in pixels

    Returns:
        UVRect inside [0, 1] on both axes
    """
    if zoom <= 0 or display[0] <= 0 or display[1] <= 0:
        return FULL_TEXTURE
    half = 0.5 / zoom
    u_min, u_max = _fit_axis(center[0] / display[0], half)
    v_min, v_max = _fit_axis(center[1] / display[1], half)
    return UVRect(u_min=u_min, v_min=v_min, u_max=u_max, v_max=v_max)


def uv_grid(rect: UVRect, n: int = 20) -> np.ndarray:
    """
    UV coordinates of an n x n mesh spanning rect.

    Returns:
        Array of shape (n, n, 2); [row, col] holds (u, v) with u varying
        along columns and v along rows
    """
    if n < 2:
        raise ValueError(f"Grid needs at least 2 points per side, got {n}")
    u = np.linspace(rect.u_min, rect.u_max, n)
    v = np.linspace(rect.v_min, rect.v_max, n)
    uu, vv = np.meshgrid(u, v)
    return np.stack([uu, vv], axis=-1)


# =============================================================================
# Follow Controller
# =============================================================================


def find_pair(
    positions: Sequence[MousePosition],
    start_ms: float,
    end_ms: float,
    before_ms: Optional[float] = None,
) -> Optional[Tuple[MousePosition, MousePosition]]:
    """First samples at or after start_ms and end_ms, optionally before before_ms."""

    def first_at(ms: float) -> Optional[MousePosition]:
        for pos in positions:
            if pos.timestamp_ms >= ms:
                if before_ms is not None and pos.timestamp_ms >= before_ms:
                    return None
                return pos
        return None

    start = first_at(start_ms)
    end = first_at(end_ms)
    if start is None or end is None:
        return None
    return start, end


def _distance(a: MousePosition, b: MousePosition) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


class FollowController:
    """Per-video follow state. Owned by exactly one video runtime."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.last_center: Optional[Vec2] = None
        self.last_start: Optional[MousePosition] = None
        self.last_end: Optional[MousePosition] = None
        self.last_shift_time_ms: Optional[float] = None
        self.dynamic_alpha = BASE_ALPHA

    def _commit(self, pair: Tuple[MousePosition, MousePosition], elapsed_ms: float) -> None:
        self.last_start, self.last_end = pair
        self.last_shift_time_ms = elapsed_ms

    def _retarget(
        self,
        elapsed_ms: float,
        positions: Sequence[MousePosition],
        source_duration_ms: Optional[int],
    ) -> None:
        if self.last_shift_time_ms is None:
            # First call: latch the upcoming pair without shifting
            self.last_shift_time_ms = elapsed_ms
            pair = find_pair(positions, elapsed_ms, elapsed_ms + AUTOFOLLOW_DELAY_MS)
            if pair is not None:
                self.last_start, self.last_end = pair
            return

        if elapsed_ms - self.last_shift_time_ms <= AUTOFOLLOW_DELAY_MS:
            return

        pair = find_pair(
            positions,
            elapsed_ms - AUTOFOLLOW_DELAY_MS + DELAY_OFFSET_MS,
            elapsed_ms + DELAY_OFFSET_MS,
            before_ms=source_duration_ms,
        )
        if pair is None:
            return

        if self.last_start is None or self.last_end is None:
            self._commit(pair, elapsed_ms)
            return

        max_distance = max(_distance(pair[0], self.last_start), _distance(pair[1], self.last_end))
        if max_distance >= MIN_SHIFT_DISTANCE:
            self._commit(pair, elapsed_ms)
            self.dynamic_alpha = BASE_ALPHA + (MAX_ALPHA - BASE_ALPHA) * (
                1.0 - math.exp(-SCALING_FACTOR * max_distance)
            )
            logger.debug(
                f"Follow retarget at {elapsed_ms:.0f}ms, shift={max_distance:.1f}px, "
                f"alpha={self.dynamic_alpha:.4f}"
            )

    def target_center(
        self,
        elapsed_ms: float,
        source: SourceData,
        source_dimensions: Vec2,
        display: Vec2,
    ) -> Optional[Vec2]:
        """Display-space point of the committed pair at elapsed_ms, or None."""
        if self.last_start is None or self.last_end is None:
            return None
        start, end = self.last_start, self.last_end
        t = min(max(elapsed_ms, start.timestamp_ms), end.timestamp_ms)
        span = end.timestamp_ms - start.timestamp_ms
        tau = (t - start.timestamp_ms) / span if span > 0 else 0.0
        px = start.x + tau * (end.x - start.x)
        py = start.y + tau * (end.y - start.y)
        return (
            (px - source.x) / source_dimensions[0] * display[0],
            (py - source.y) / source_dimensions[1] * display[1],
        )

    def update(
        self,
        elapsed_ms: float,
        mouse_positions: List[MousePosition],
        source_data: SourceData,
        source_dimensions: Vec2,
        zoom: float,
        display: Vec2,
        source_duration_ms: Optional[int] = None,
    ) -> FollowResult:
        """
        Advance follow state and compute the zoom window.

        Args:
            elapsed_ms: Animation-local time in milliseconds
            mouse_positions: Recorded samples sorted by timestamp
            source_data: Captured window origin and size
            source_dimensions: Width and height of the recorded video frames
            zoom: Zoom factor (1.0 = none)
            display: Video display width and height in pixels
            source_duration_ms: Samples at or after this are never used

        Returns:
            FollowResult with the blended centre and UV window

        Raises:
            FollowUninitializedError: If no mouse positions were recorded
        """
        if not mouse_positions:
            raise FollowUninitializedError("Follow requested with an empty mouse record")

        self._retarget(elapsed_ms, mouse_positions, source_duration_ms)

        new_center = self.target_center(elapsed_ms, source_data, source_dimensions, display)
        if new_center is None:
            new_center = self.last_center or (display[0] / 2.0, display[1] / 2.0)

        if self.last_center is not None:
            alpha = self.dynamic_alpha
            blended = (
                self.last_center[0] * (1.0 - alpha) + new_center[0] * alpha,
                self.last_center[1] * (1.0 - alpha) + new_center[1] * alpha,
            )
        else:
            blended = new_center
        self.last_center = blended

        return FollowResult(center=blended, uv_rect=zoom_window(zoom, blended, display))
