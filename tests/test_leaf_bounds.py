"""
Tests for leaf atlas bounds.
"""

import math

import numpy as np
import pytest

from sapling.config import LeafGroupParams, LeafShapeParams
from sapling.leaf_bounds import Bounds, calc_leaf_bounds, stamped_points
from sapling.leaf_shape import build_leaf_path
from sapling.leaf_stamps import IDENTITY_STAMP, LeafStamp, TwigStem, create_leaf_stamps


class MidpointStream:
    def next(self, lo: float = 0.0, hi: float = 1.0) -> float:
        return (lo + hi) / 2


def default_outline():
    return build_leaf_path(LeafShapeParams(), MidpointStream())


def assert_square_integer(bounds: Bounds) -> None:
    assert bounds.width == bounds.height
    assert bounds.width > 0
    for v in bounds:
        assert v == math.floor(v)


class TestShape:
    """Tests for squareness and snapping."""

    def test_single_leaf_square(self) -> None:
        bounds = calc_leaf_bounds(default_outline(), [IDENTITY_STAMP])
        assert_square_integer(bounds)

    def test_compound_leaf_square(self) -> None:
        props = LeafGroupParams(fan_size=4, fan_angle=1.2, phalanx_count=2, angle_variation=0.3)
        stamps = create_leaf_stamps(props, MidpointStream())
        bounds = calc_leaf_bounds(default_outline(), stamps)
        assert_square_integer(bounds)

    def test_no_stamps(self) -> None:
        """An empty figure is just the margin box."""
        assert calc_leaf_bounds(default_outline(), []) == Bounds(-2.0, -2.0, 2.0, 2.0)


class TestContainment:
    """Tests that the box surrounds the figure."""

    def test_contains_all_stamped_points(self) -> None:
        outline = default_outline()
        stamps = create_leaf_stamps(
            LeafGroupParams(fan_size=3, fan_angle=2.0, phalanx_count=1), MidpointStream()
        )
        bounds = calc_leaf_bounds(outline, stamps)
        for stamp in stamps:
            points = stamped_points(outline, stamp)
            assert np.all(points[:, 0] >= bounds.min_x + 2 - 1e-9)
            assert np.all(points[:, 0] <= bounds.max_x - 2 + 1e-9)
            assert np.all(points[:, 1] >= bounds.min_y + 2 - 1e-9)
            assert np.all(points[:, 1] <= bounds.max_y - 2 + 1e-9)

    def test_includes_stems_and_mirrors(self) -> None:
        stems = [TwigStem(0, 0, 50, -30, 6)]
        bounds = calc_leaf_bounds(default_outline(), [IDENTITY_STAMP], stems)
        assert bounds.min_y <= -32
        assert bounds.max_x >= 52
        assert bounds.min_x <= -52


class TestStampTransform:
    """Tests for the stamp rotation convention."""

    def test_quarter_turn_moves_tip_to_negative_x(self) -> None:
        """A +pi/2 stamp rotates the tip (0, L) onto (-L, 0)."""
        stamp = LeafStamp(math.pi / 2, 1.0, (0.0, 0.0))
        points = stamped_points(default_outline(), stamp)
        tip = points[3]
        assert tip[0] == pytest.approx(-60.0)
        assert tip[1] == pytest.approx(0.0, abs=1e-9)

    def test_scale_then_translate(self) -> None:
        stamp = LeafStamp(0.0, 0.5, (0.0, -20.0))
        points = stamped_points(default_outline(), stamp)
        assert points[3] == pytest.approx([0.0, 10.0])
