"""
Easing functions for keyframe segments.

Each function maps normalized progress u in [0, 1] to eased progress.
"""

from typing import Callable, Dict


def linear(u: float) -> float:
    return u


def ease_in(u: float) -> float:
    return u * u


def ease_out(u: float) -> float:
    return 1.0 - (1.0 - u) * (1.0 - u)


def ease_in_out(u: float) -> float:
    if u < 0.5:
        return 2.0 * u * u
    return 1.0 - ((-2.0 * u + 2.0) ** 2) / 2.0


EASINGS: Dict[str, Callable[[float], float]] = {
    "linear": linear,
    "ease_in": ease_in,
    "ease_out": ease_out,
    "ease_in_out": ease_in_out,
}


def apply_easing(easing: str, u: float) -> float:
    """
    Clamp progress to [0, 1] and apply the named easing.

    Args:
        easing: One of linear, ease_in, ease_out, ease_in_out
        u: Raw progress

    Returns:
        Eased progress in [0, 1]

    Raises:
        ValueError: If the easing name is unknown
    """
    if easing not in EASINGS:
        raise ValueError(f"Unknown easing: {easing}")
    u = min(max(u, 0.0), 1.0)
    return EASINGS[easing](u)
