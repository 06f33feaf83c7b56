"""
Leaf outline construction.

A leaflet is described by one half of its silhouette: a chain of cubic Bezier
segments running from the stem (0, 0) to the tip (0, length) on the +x side of
the midrib. The other half is the mirror image and is never stored.

Construction has three stages:
    1. A single cubic from base to tip, shaped by width/taper parameters.
    2. Optional subdivision into `num_segments` pieces lying exactly on the
       original curve (De Casteljau blossoming at uniform parameter steps).
    3. Serration: each segment end is pushed outward along the curve normal,
       raked along the tangent and jittered, with the interior control points
       following in proportion so the segment stays smooth.

The outline is shared unchanged by the leaf mesh bounds and the texture
rasterizer.
"""

from typing import NamedTuple

import numpy as np

from sapling.config import LeafShapeParams
from sapling.random_stream import UniformSource

SERRATION_SCALE = 40.0  # Tooth height per unit of serration
JITTER_RANGE = 10.0  # Random offset in pixels per unit of jitter


class LeafSplineSegment(NamedTuple):
    """One cubic Bezier segment (p0, p1, p2, p3) in leaf-local 2D space."""

    x0: float
    y0: float
    x1: float
    y1: float
    x2: float
    y2: float
    x3: float
    y3: float

    def points(self) -> np.ndarray:
        """Control points as a (4, 2) array."""
        return np.array(self, dtype=float).reshape(4, 2)

    @classmethod
    def from_points(cls, points: np.ndarray) -> "LeafSplineSegment":
        return cls(*(float(v) for v in np.asarray(points, dtype=float).reshape(8)))

    def mirrored(self) -> "LeafSplineSegment":
        """The same segment on the other side of the midrib, traversed backwards."""
        return LeafSplineSegment(
            -self.x3, self.y3, -self.x2, self.y2, -self.x1, self.y1, -self.x0, self.y0
        )


Outline = tuple[LeafSplineSegment, ...]


def _blossom(points: np.ndarray, a: float, b: float, c: float) -> np.ndarray:
    """Polar form of a cubic: three De Casteljau levels at parameters a, b, c."""
    level = points
    for t in (a, b, c):
        level = (1.0 - t) * level[:-1] + t * level[1:]
    return level[0]


def divide_segments(segment: LeafSplineSegment, num_divisions: int) -> list[LeafSplineSegment]:
    """
    Split a cubic into `num_divisions` pieces at uniform parameter steps.

    The pieces trace exactly the same curve; segment endpoints lie on it.
    """
    if num_divisions < 2:
        return [segment]

    points = segment.points()
    result = []
    for i in range(num_divisions):
        t0 = i / num_divisions
        t1 = (i + 1) / num_divisions
        result.append(
            LeafSplineSegment.from_points(
                [
                    _blossom(points, t0, t0, t0),
                    _blossom(points, t0, t0, t1),
                    _blossom(points, t0, t1, t1),
                    _blossom(points, t1, t1, t1),
                ]
            )
        )
    return result


def _normalize(v: np.ndarray) -> np.ndarray:
    length = np.hypot(v[0], v[1])
    if length == 0:
        return np.zeros(2)
    return v / length


def add_serration(
    segments: list[LeafSplineSegment],
    length: float,
    props: LeafShapeParams,
    rnd: UniformSource,
) -> list[LeafSplineSegment]:
    """
    Displace segment ends to form teeth.

    Draws two values per non-final segment (x jitter, then y jitter), even when
    jitter is zero, so that the stream position does not depend on `jitter`.
    """
    pointyness = SERRATION_SCALE * props.serration
    count = len(segments)
    result = []

    for s in segments[:-1]:
        p = s.points()

        # Tangent of the curve at the end of the segment.
        tangent = _normalize(p[3] - p[2])
        normal = np.array([tangent[1], -tangent[0]])
        displacement = normal * pointyness + tangent * (props.rake * length * 2 / count)
        displacement[0] += rnd.next(-JITTER_RANGE, JITTER_RANGE) * props.jitter
        displacement[1] += rnd.next(-JITTER_RANGE, JITTER_RANGE) * props.jitter

        # Interior control points move in proportion to how far along the
        # tangent they sit, so the segment bends rather than kinks.
        d3 = float(np.dot(p[3] - p[0], tangent))
        if abs(d3) > 1e-12:
            d1 = float(np.dot(p[1] - p[0], tangent)) / d3
            d2 = float(np.dot(p[2] - p[0], tangent)) / d3
        else:
            d1 = d2 = 0.0

        p[1] += d1 * displacement
        p[2] += d2 * displacement
        p[3] += displacement
        result.append(LeafSplineSegment.from_points(p))

    last = segments[-1]
    result.append(last._replace(y2=last.y2 + pointyness, y3=last.y3 + pointyness))
    return result


def build_leaf_path(props: LeafShapeParams, rnd: UniformSource) -> Outline:
    """
    Build the half-outline of a leaflet.

    Args:
        props: Leaf shape parameters
        rnd: Random stream (consumed only by serration jitter)

    Returns:
        Tuple of Bezier segments from stem to tip on the +x side
    """
    length = props.length
    segment = LeafSplineSegment(
        0.0,
        0.0,
        length * props.base_width,
        length * props.base_taper,
        length * props.tip_width,
        length * (1 - props.tip_taper),
        0.0,
        length,
    )
    segments = divide_segments(segment, props.num_segments)
    return tuple(add_serration(segments, length, props, rnd))


def mirror_outline(outline: Outline) -> Outline:
    """The other half of the silhouette, running from tip back to stem."""
    return tuple(s.mirrored() for s in reversed(outline))


def outline_extent(outline: Outline) -> tuple[float, float]:
    """Largest x (half width) and largest y (length) over all control points."""
    points = np.array(outline, dtype=float).reshape(-1, 2)
    return max(0.0, float(points[:, 0].max())), max(0.0, float(points[:, 1].max()))
