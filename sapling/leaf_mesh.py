"""
Leaf card geometry.

Every leaf instance becomes a small folded card textured with the leaf atlas:
a 2 x 2 grid of quads in leaf-local space, where z runs along the shoot, x
across the leaf face and y is the leaf normal. The center column is emitted
twice so the midrib fold stays a sharp crease under smooth shading.

Lateral droop folds the two halves down about the midrib; axial droop bends
the part beyond the stem point downward along the shoot.
"""

import math
from collections.abc import Sequence

import numpy as np

from sapling.config import LeafGroupParams
from sapling.leaf_bounds import Bounds
from sapling.mesh import MeshBuffers
from sapling.transforms import apply_points

NUM_STEPS = 2  # Quads per side of a leaf card
COLUMNS = (-0.5, 0.0, 0.0, 0.5)  # Center duplicated for the crease
STRIDE = len(COLUMNS)


def _card_vertices(bounds: Bounds, props: LeafGroupParams) -> tuple[np.ndarray, np.ndarray]:
    """Leaf-local positions (12, 3) and UVs (12, 2) of a single card."""
    width = bounds.width
    length = bounds.height
    sin_lateral = math.sin(props.lateral_droop)
    cos_lateral = math.cos(props.lateral_droop)
    sin_axial = math.sin(props.axial_droop)
    cos_axial = math.cos(props.axial_droop)

    positions = []
    uvs = []
    for dz in (bounds.min_y, 0.0, bounds.max_y):
        zt = 1 - (dz - bounds.min_y) / length
        z = cos_axial * dz if dz > 0 else dz
        for dx in COLUMNS:
            ax = -abs(dx)
            az = -max(0.0, dz) * length
            positions.append((cos_lateral * dx * width, sin_lateral * ax * width + sin_axial * az, z))
            uvs.append((dx + 0.5, zt))
    return np.array(positions), np.array(uvs)


def _card_indices(base: int) -> list[int]:
    indices = []
    for z in range(NUM_STEPS):
        for column in (0, 2):
            i2 = base + z * STRIDE + column
            indices.extend((i2, i2 + 1, i2 + STRIDE, i2 + STRIDE, i2 + 1, i2 + STRIDE + 1))
    return indices


def create_leaf_mesh(
    instances: Sequence[np.ndarray],
    bounds: Bounds,
    props: LeafGroupParams,
    texture_size: int = 128,
) -> MeshBuffers:
    """
    Build one textured card per leaf instance.

    Args:
        instances: 4x4 leaf transforms
        bounds: Leaf atlas bounds, in atlas pixels
        props: Leaf group parameters (droop angles)
        texture_size: Atlas edge length; bounds are divided by it

    Returns:
        Mesh with 12 vertices and 8 triangles per instance, UVs included
    """
    scaled = bounds.scaled(1.0 / texture_size)
    if scaled.height <= 0 or not instances:
        return MeshBuffers.empty(with_uvs=True)

    local, card_uvs = _card_vertices(scaled, props)
    positions = []
    uvs = []
    indices = []
    for transform in instances:
        base = len(positions) // 3
        positions.extend(apply_points(transform, local).ravel().tolist())
        uvs.extend(card_uvs.ravel().tolist())
        indices.extend(_card_indices(base))
    return MeshBuffers.from_lists(positions, indices, uvs)
