"""
Tests for the leaflet outline builder.
"""

import numpy as np
import pytest

from sapling.config import LeafShapeParams
from sapling.leaf_shape import (
    LeafSplineSegment,
    add_serration,
    build_leaf_path,
    divide_segments,
    mirror_outline,
    outline_extent,
)


class CountingStream:
    """Returns the midpoint of every requested range and counts draws."""

    def __init__(self) -> None:
        self.draws = 0

    def next(self, lo: float = 0.0, hi: float = 1.0) -> float:
        self.draws += 1
        return (lo + hi) / 2


def bezier(segment: LeafSplineSegment, t: float) -> np.ndarray:
    p = segment.points()
    u = 1 - t
    return u**3 * p[0] + 3 * u**2 * t * p[1] + 3 * u * t**2 * p[2] + t**3 * p[3]


class TestBaseCurve:
    """Tests for the unsubdivided outline."""

    def test_default_control_points(self) -> None:
        """A single segment is built from the width/taper parameters."""
        props = LeafShapeParams()
        outline = build_leaf_path(props, CountingStream())

        assert len(outline) == 1
        s = outline[0]
        assert (s.x0, s.y0) == (0.0, 0.0)
        assert s.x1 == pytest.approx(60 * 0.27)
        assert s.y1 == pytest.approx(0.0)
        assert s.x2 == pytest.approx(60 * 0.2)
        assert s.y2 == pytest.approx(60 * 0.59)
        assert (s.x3, s.y3) == (0.0, 60.0)

    def test_no_draws_without_subdivision(self) -> None:
        """A one-segment leaf consumes no random values."""
        rnd = CountingStream()
        build_leaf_path(LeafShapeParams(jitter=1.0), rnd)
        assert rnd.draws == 0

    def test_tip_serration(self) -> None:
        """The last segment's tip moves up by 40 * serration."""
        outline = build_leaf_path(LeafShapeParams(serration=0.5), CountingStream())
        assert outline[-1].y3 == pytest.approx(60.0 + 20.0)


class TestSubdivision:
    """Tests for splitting the base curve."""

    def test_pieces_lie_on_curve(self) -> None:
        """Every piece endpoint is a point of the original cubic."""
        segment = LeafSplineSegment(0, 0, 16, 0, 12, 35, 0, 60)
        pieces = divide_segments(segment, 4)

        assert len(pieces) == 4
        for i, piece in enumerate(pieces):
            np.testing.assert_allclose(piece.points()[0], bezier(segment, i / 4), atol=1e-9)
            np.testing.assert_allclose(piece.points()[3], bezier(segment, (i + 1) / 4), atol=1e-9)

    def test_piece_midpoints_lie_on_curve(self) -> None:
        """Pieces trace the same curve, not just the same endpoints."""
        segment = LeafSplineSegment(0, 0, 16, 0, 12, 35, 0, 60)
        pieces = divide_segments(segment, 3)
        for i, piece in enumerate(pieces):
            np.testing.assert_allclose(
                bezier(piece, 0.5), bezier(segment, (i + 0.5) / 3), atol=1e-9
            )

    def test_single_division_is_identity(self) -> None:
        """Dividing into one piece returns the segment unchanged."""
        segment = LeafSplineSegment(0, 0, 16, 0, 12, 35, 0, 60)
        assert divide_segments(segment, 1) == [segment]


class TestSerration:
    """Tests for tooth displacement."""

    def test_two_draws_per_inner_segment(self) -> None:
        """Jitter draws x then y for every segment except the last."""
        rnd = CountingStream()
        outline = build_leaf_path(LeafShapeParams(num_segments=5), rnd)
        assert len(outline) == 5
        assert rnd.draws == 8

    def test_zero_serration_keeps_curve(self) -> None:
        """With no serration, rake or jitter the outline is unchanged."""
        segment = LeafSplineSegment(0, 0, 16, 0, 12, 35, 0, 60)
        pieces = divide_segments(segment, 3)
        result = add_serration(pieces, 60.0, LeafShapeParams(), CountingStream())
        for a, b in zip(pieces, result):
            np.testing.assert_allclose(a.points(), b.points(), atol=1e-9)

    def test_serration_pushes_outward(self) -> None:
        """Teeth move segment ends away from the midrib."""
        props = LeafShapeParams(num_segments=3, serration=0.2)
        plain = build_leaf_path(LeafShapeParams(num_segments=3), CountingStream())
        toothed = build_leaf_path(props, CountingStream())
        for a, b in zip(plain[:-1], toothed[:-1]):
            assert b.x3 > a.x3


class TestMirror:
    """Tests for the mirrored half."""

    def test_mirror_negates_and_reverses(self) -> None:
        outline = build_leaf_path(LeafShapeParams(num_segments=3), CountingStream())
        mirrored = mirror_outline(outline)

        assert len(mirrored) == 3
        assert (mirrored[0].x0, mirrored[0].y0) == (-outline[-1].x3, outline[-1].y3)
        assert (mirrored[-1].x3, mirrored[-1].y3) == (-outline[0].x0, outline[0].y0)

    def test_mirror_twice_is_identity(self) -> None:
        outline = build_leaf_path(LeafShapeParams(num_segments=4), CountingStream())
        assert mirror_outline(mirror_outline(outline)) == outline


class TestExtent:
    """Tests for outline extents."""

    def test_extent_of_default_leaf(self) -> None:
        """Half width and length come from the largest control coordinates."""
        outline = build_leaf_path(LeafShapeParams(), CountingStream())
        max_width, max_length = outline_extent(outline)
        assert max_width == pytest.approx(60 * 0.27)
        assert max_length == pytest.approx(60.0)
