"""
Angle utilities and the shadow-avoidance heuristic.

Rather than computing which branches actually occlude sunlight from others,
a cheap model is used. Because branches are generated outward from root to
leaf, we estimate how much a new branch would shadow the older ones rather
than how much later ones will shadow it. Several candidate yaw angles are
tried and the one that shadows earlier branches least wins. The effect of a
previous branch decays geometrically the further back down the trunk it is.
"""

import math
from collections.abc import Sequence

from sapling.random_stream import UniformSource

PI2 = math.pi * 2
SHADOW_ARC = math.pi / 2  # Angular reach of a branch's shadow
SHADOW_DECAY = 0.8  # Weight multiplier per older branch


def wrap_angle(angle: float) -> float:
    """Normalize an angle into the range [-pi, +pi]."""
    angle = math.fmod(angle, PI2)
    if angle > math.pi:
        angle -= PI2
    elif angle < -math.pi:
        angle += PI2
    return angle


def diff_angle(angle1: float, angle2: float) -> float:
    """Absolute angular distance, taking wrap-around into account."""
    return abs(wrap_angle(angle1 - angle2))


def compute_shadow_effect(angle: float, prev: Sequence[float]) -> float:
    """
    Estimate how much a branch at `angle` shadows the previous branches.

    Args:
        angle: Candidate yaw angle (radians)
        prev: Yaw angles of earlier branches, most recent first

    Returns:
        Weighted overlap; 0 when there are no earlier branches
    """
    shadow_sum = 0.0
    coeff = 1.0
    for other in prev:
        shadow_sum += max(0.0, 1.0 - diff_angle(angle, other) / SHADOW_ARC) * coeff
        coeff *= SHADOW_DECAY
    return shadow_sum


def minimize_shadow(
    rnd: UniformSource, prev: Sequence[float], candidates: int = 5
) -> float:
    """Pick the least-shadowing of `candidates` random yaw angles in [0, 2pi)."""
    result_angle = 0.0
    result_shadow = math.inf
    for _ in range(candidates):
        angle = rnd.next() * PI2
        shadow = compute_shadow_effect(angle, prev)
        if shadow < result_shadow:
            result_shadow = shadow
            result_angle = angle
    return result_angle
