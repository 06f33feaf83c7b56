"""
Bounding box of a stamped compound leaf.

The box frames the leaf atlas: it is square and integer-aligned so that it maps
onto the [0, 1]^2 texture domain shared by the leaf mesh UVs and the rasterized
image without distortion.
"""

import math
from collections.abc import Iterable
from typing import NamedTuple

import numpy as np

from sapling.leaf_shape import Outline
from sapling.leaf_stamps import LeafStamp, TwigStem

DEFAULT_MARGIN = 2.0


class Bounds(NamedTuple):
    """Axis-aligned 2D box."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def scaled(self, factor: float) -> "Bounds":
        return Bounds(*(v * factor for v in self))


def stamp_matrix(stamp: LeafStamp) -> tuple[np.ndarray, np.ndarray]:
    """
    Linear part and offset of a stamp: p' = M @ p + t.

    M = scale * R(angle), the same rotation sense used when rasterizing.
    """
    c, s = math.cos(stamp.angle), math.sin(stamp.angle)
    linear = stamp.scale * np.array([[c, -s], [s, c]])
    return linear, np.asarray(stamp.translate, dtype=float)


def stamped_points(outline: Outline, stamp: LeafStamp) -> np.ndarray:
    """All control points of both outline halves under one stamp, (N, 2)."""
    points = np.array(outline, dtype=float).reshape(-1, 2)
    mirrored = points * np.array([-1.0, 1.0])
    linear, offset = stamp_matrix(stamp)
    return np.vstack([points, mirrored]) @ linear.T + offset


def calc_leaf_bounds(
    outline: Outline,
    stamps: Iterable[LeafStamp],
    stems: Iterable[TwigStem] = (),
    margin: float = DEFAULT_MARGIN,
) -> Bounds:
    """
    Square, integer-snapped box around every stamped leaflet and stem.

    Args:
        outline: Half-outline of the leaflet
        stamps: Leaflet placements
        stems: Optional stem strokes (included with their x-mirrors)
        margin: Padding added on every side before squaring

    Returns:
        Bounds with width == height and integer coordinates
    """
    clouds = [stamped_points(outline, stamp) for stamp in stamps]
    for stem in stems:
        clouds.append(
            np.array(
                [
                    [stem.x0, stem.y0],
                    [-stem.x0, stem.y0],
                    [stem.x1, stem.y1],
                    [-stem.x1, stem.y1],
                ],
                dtype=float,
            )
        )
    if clouds:
        points = np.vstack(clouds)
        lo = points.min(axis=0) - margin
        hi = points.max(axis=0) + margin
    else:
        lo = np.full(2, -margin)
        hi = np.full(2, margin)

    # Make the box square while still surrounding the figure.
    size = hi - lo
    if size[0] > size[1]:
        over = (size[0] - size[1]) / 2
        lo[1] -= over
        hi[1] += over
    else:
        over = (size[1] - size[0]) / 2
        lo[0] -= over
        hi[0] += over

    # Snap to integer coordinates. Rounding the two axes independently can
    # leave them one unit apart, so both take the larger side.
    min_x, min_y = math.floor(lo[0]), math.floor(lo[1])
    side = max(math.ceil(hi[0]) - min_x, math.ceil(hi[1]) - min_y)
    return Bounds(float(min_x), float(min_y), float(min_x + side), float(min_y + side))
