"""
Tests for leaf card geometry.
"""

import math

import numpy as np
import pytest

from sapling.config import LeafGroupParams
from sapling.leaf_bounds import Bounds
from sapling.leaf_mesh import create_leaf_mesh
from sapling.transforms import identity, make_translation

# Scaled by 1/128 this is the square [-0.5, 0.5]^2.
UNIT_BOUNDS = Bounds(-64.0, -64.0, 64.0, 64.0)


class TestTopology:
    """Tests for vertex and index layout."""

    def test_no_instances(self) -> None:
        mesh = create_leaf_mesh([], UNIT_BOUNDS, LeafGroupParams())
        assert mesh.vertex_count == 0
        assert mesh.triangle_count == 0
        assert mesh.uvs is not None and len(mesh.uvs) == 0

    def test_one_card(self) -> None:
        mesh = create_leaf_mesh([identity()], UNIT_BOUNDS, LeafGroupParams())
        assert mesh.vertex_count == 12
        assert mesh.triangle_count == 8
        assert mesh.is_valid()

    def test_cards_are_independent(self) -> None:
        """The second card's indices are offset by one card."""
        instances = [identity(), make_translation(1.0, 0.0, 0.0)]
        mesh = create_leaf_mesh(instances, UNIT_BOUNDS, LeafGroupParams())
        assert mesh.vertex_count == 24
        assert mesh.triangle_count == 16
        tri = mesh.triangles
        assert tri[:8].max() < 12
        assert tri[8:].min() >= 12
        np.testing.assert_array_equal(tri[8:], tri[:8] + 12)

    def test_zero_height_bounds(self) -> None:
        mesh = create_leaf_mesh([identity()], Bounds(0.0, 5.0, 0.0, 5.0), LeafGroupParams())
        assert mesh.vertex_count == 0

    def test_consistent_winding(self) -> None:
        """A flat card's faces all face the same way."""
        mesh = create_leaf_mesh([identity()], UNIT_BOUNDS, LeafGroupParams())
        normals = mesh.face_normals()
        assert np.all(normals[:, 1] < 0)


class TestFlatCard:
    """Tests for an undrooped card at the origin."""

    def setup_method(self) -> None:
        self.mesh = create_leaf_mesh([identity()], UNIT_BOUNDS, LeafGroupParams())

    def test_positions(self) -> None:
        v = self.mesh.vertices
        np.testing.assert_allclose(v[:, 1], 0.0, atol=1e-7)
        np.testing.assert_allclose(v[:4, 0], [-0.5, 0.0, 0.0, 0.5])
        np.testing.assert_allclose(v[::4, 2], [-0.5, 0.0, 0.5])

    def test_uvs(self) -> None:
        """u runs across the card, v from 1 at min_y to 0 at max_y."""
        uv = self.mesh.uvs.reshape(-1, 2)
        np.testing.assert_allclose(uv[:4, 0], [0.0, 0.5, 0.5, 1.0])
        np.testing.assert_allclose(uv[::4, 1], [1.0, 0.5, 0.0])

    def test_center_column_duplicated(self) -> None:
        v = self.mesh.vertices.reshape(3, 4, 3)
        np.testing.assert_array_equal(v[:, 1], v[:, 2])


class TestDroop:
    """Tests for lateral and axial droop."""

    def test_lateral_droop_folds_edges_down(self) -> None:
        props = LeafGroupParams(lateral_droop=math.pi / 2)
        v = create_leaf_mesh([identity()], UNIT_BOUNDS, props).vertices.reshape(3, 4, 3)
        np.testing.assert_allclose(v[:, 0, 1], -0.5, atol=1e-6)
        np.testing.assert_allclose(v[:, 3, 1], -0.5, atol=1e-6)
        np.testing.assert_allclose(v[:, 1, 1], 0.0, atol=1e-6)
        np.testing.assert_allclose(v[:, :, 0], 0.0, atol=1e-6)

    def test_axial_droop_bends_far_half(self) -> None:
        """Only the part beyond the stem point bends."""
        props = LeafGroupParams(axial_droop=0.5)
        v = create_leaf_mesh([identity()], UNIT_BOUNDS, props).vertices.reshape(3, 4, 3)
        np.testing.assert_allclose(v[0, :, 1], 0.0, atol=1e-6)
        np.testing.assert_allclose(v[1, :, 1], 0.0, atol=1e-6)
        assert v[2, 1, 1] == pytest.approx(math.sin(0.5) * -0.5, abs=1e-6)
        assert v[2, 1, 2] == pytest.approx(math.cos(0.5) * 0.5, abs=1e-6)

    def test_instance_transform_applied(self) -> None:
        mesh = create_leaf_mesh([make_translation(0.0, 2.0, 0.0)], UNIT_BOUNDS, LeafGroupParams())
        np.testing.assert_allclose(mesh.vertices[:, 1], 2.0, atol=1e-6)
