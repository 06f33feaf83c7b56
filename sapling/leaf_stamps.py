"""
Placement of leaflets within a compound leaf.

A compound leaf is drawn by stamping the same leaflet outline several times.
Each stamp is a rotation about the stem point, a uniform scale and a 2D offset.
The arrangement is a fan of leaflets radiating from the tip plus an optional
phalanx of opposite pairs spaced down the rachis.
"""

from typing import NamedTuple

from sapling.config import LeafGroupParams
from sapling.random_stream import UniformSource


class LeafStamp(NamedTuple):
    """Placement of one leaflet: rotate by `angle`, scale, then translate."""

    angle: float
    scale: float
    translate: tuple[float, float]


class TwigStem(NamedTuple):
    """A straight stem stroke drawn beneath the leaflets."""

    x0: float
    y0: float
    x1: float
    y1: float
    width: float


IDENTITY_STAMP = LeafStamp(0.0, 1.0, (0.0, 0.0))


def create_leaf_stamps(props: LeafGroupParams, rnd: UniformSource) -> list[LeafStamp]:
    """
    Compute the leaflet placements for one compound leaf.

    Draw order: for each fan pair, the positive-angle jitter then the
    negative-angle jitter; then for each phalanx pair, per stamp, the position
    jitter followed by the angle jitter.

    Args:
        props: Leaf group parameters
        rnd: Random stream

    Returns:
        Stamps, starting with the identity stamp
    """
    fan_size = props.fan_size
    fan_angle = props.fan_angle
    variation = props.angle_variation
    result = [IDENTITY_STAMP]

    for i in range(1, fan_size):
        scale = props.taper ** (i / (fan_size - 1))
        spread = i * fan_angle / (fan_size - 1)
        for sign in (1, -1):
            angle = sign * spread + rnd.next(-0.5, 0.5) * variation
            result.append(LeafStamp(angle, scale, (0.0, 0.0)))

    spacing = props.leaf_spacing
    pos = 0.0
    for _ in range(props.phalanx_count):
        pos -= spacing
        for sign in (1, -1):
            y = pos + rnd.next(-0.5, 0.5) * spacing * props.leaf_spacing_variation
            angle = sign * fan_angle + rnd.next(-0.5, 0.5) * variation
            result.append(LeafStamp(angle, props.taper, (0.0, y)))

    return result
