"""
Tests for configuration validation, transform helpers and mesh buffers.
"""

import math

import numpy as np
import pytest

from sapling.config import BranchParams, GrowthConfig, TreeParams, TrunkParams, median
from sapling.mesh import MeshBuffers
from sapling.transforms import (
    apply_point,
    extract_rotation,
    make_rotation_axis,
    make_rotation_x,
    make_rotation_y,
    make_scale,
    make_translation,
)


class TestConfigValidation:
    """Tests for impossible parameter values."""

    @pytest.mark.parametrize(
        "values",
        [{"length": 0.0}, {"segment_length": -1.0}, {"taper": 0.0}, {"taper": 1.5}, {"radius": 0.0}],
    )
    def test_bad_trunk(self, values: dict) -> None:
        with pytest.raises(ValueError):
            TrunkParams(**values)

    def test_bad_symmetry(self) -> None:
        with pytest.raises(ValueError):
            BranchParams(symmetry=0)

    def test_bad_config(self) -> None:
        with pytest.raises(ValueError):
            GrowthConfig(num_sectors=2)

    def test_presets(self) -> None:
        assert TreeParams.trunk_only().branch == ()
        assert len(TreeParams.shrub().branch) == 2
        assert median((0.2, 0.4)) == pytest.approx(0.3)


class TestTransforms:
    """Tests for matrix conventions."""

    def test_rotation_y_turns_z_to_x(self) -> None:
        p = apply_point(make_rotation_y(math.pi / 2), (0.0, 0.0, 1.0))
        assert p == pytest.approx([1.0, 0.0, 0.0], abs=1e-12)

    def test_rotation_x_turns_y_to_z(self) -> None:
        p = apply_point(make_rotation_x(math.pi / 2), (0.0, 1.0, 0.0))
        assert p == pytest.approx([0.0, 0.0, 1.0], abs=1e-12)

    def test_axis_rotation_matches_rotation_x(self) -> None:
        np.testing.assert_allclose(
            make_rotation_axis(np.array([1.0, 0.0, 0.0]), 0.7), make_rotation_x(0.7), atol=1e-12
        )

    def test_composition_applies_right_first(self) -> None:
        m = make_translation(1.0, 0.0, 0.0) @ make_scale(2.0)
        assert apply_point(m, (1.0, 1.0, 1.0)) == pytest.approx([3.0, 2.0, 2.0])

    def test_extract_rotation_drops_scale_and_translation(self) -> None:
        m = make_translation(4.0, 5.0, 6.0) @ make_rotation_y(0.3) @ make_scale(3.0)
        np.testing.assert_allclose(extract_rotation(m), make_rotation_y(0.3), atol=1e-12)


class TestMeshBuffers:
    """Tests for the mesh container."""

    def test_from_lists(self) -> None:
        mesh = MeshBuffers.from_lists([0, 0, 0, 1, 0, 0, 0, 1, 0], [0, 1, 2])
        assert mesh.positions.dtype == np.float32
        assert mesh.indices.dtype == np.uint32
        assert mesh.vertex_count == 3
        assert mesh.triangle_count == 1
        assert mesh.is_valid()

    def test_read_only(self) -> None:
        mesh = MeshBuffers.from_lists([0, 0, 0], [])
        with pytest.raises(ValueError):
            mesh.positions[0] = 1.0

    def test_out_of_range_index_invalid(self) -> None:
        assert not MeshBuffers.from_lists([0, 0, 0], [0, 0, 1]).is_valid()

    def test_normals_follow_winding(self) -> None:
        mesh = MeshBuffers.from_lists([0, 0, 0, 1, 0, 0, 0, 1, 0], [0, 1, 2])
        assert mesh.face_normals()[0] == pytest.approx([0.0, 0.0, 1.0])
        np.testing.assert_allclose(mesh.vertex_normals(), [[0, 0, 1]] * 3)
