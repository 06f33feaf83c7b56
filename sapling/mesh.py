"""
Indexed triangle mesh buffers.

Positions are stored flat (x, y, z per vertex), indices flat (three per
triangle) and UVs flat (u, v per vertex). Winding is counter-clockwise when
viewed from outside, so face normals follow the right-hand rule.
"""

from dataclasses import dataclass

import numpy as np


def _frozen(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


@dataclass(frozen=True, eq=False)
class MeshBuffers:
    """
    Immutable mesh output of a generation pass.

    Attributes:
        positions: float32 array of length 3 * vertex_count
        indices: uint32 array of length 3 * triangle_count
        uvs: float32 array of length 2 * vertex_count, or None
    """

    positions: np.ndarray
    indices: np.ndarray
    uvs: np.ndarray | None = None

    @classmethod
    def from_lists(
        cls,
        positions: list[float],
        indices: list[int],
        uvs: list[float] | None = None,
    ) -> "MeshBuffers":
        return cls(
            positions=_frozen(np.asarray(positions, dtype=np.float32).reshape(-1)),
            indices=_frozen(np.asarray(indices, dtype=np.uint32).reshape(-1)),
            uvs=None if uvs is None else _frozen(np.asarray(uvs, dtype=np.float32).reshape(-1)),
        )

    @classmethod
    def empty(cls, with_uvs: bool = False) -> "MeshBuffers":
        return cls.from_lists([], [], [] if with_uvs else None)

    @property
    def vertex_count(self) -> int:
        return len(self.positions) // 3

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    @property
    def vertices(self) -> np.ndarray:
        """Positions as an (N, 3) array."""
        return self.positions.reshape(-1, 3)

    @property
    def triangles(self) -> np.ndarray:
        """Indices as an (M, 3) array."""
        return self.indices.reshape(-1, 3)

    def is_valid(self) -> bool:
        """Check index bounds, finiteness and buffer shapes."""
        if len(self.positions) % 3 or len(self.indices) % 3:
            return False
        if self.uvs is not None and len(self.uvs) != 2 * self.vertex_count:
            return False
        if len(self.indices) and int(self.indices.max()) >= self.vertex_count:
            return False
        if not np.all(np.isfinite(self.positions)):
            return False
        return self.uvs is None or bool(np.all(np.isfinite(self.uvs)))

    def face_normals(self) -> np.ndarray:
        """Unnormalized face normals, (M, 3)."""
        v = self.vertices.astype(np.float64)
        tri = self.triangles
        return np.cross(v[tri[:, 1]] - v[tri[:, 0]], v[tri[:, 2]] - v[tri[:, 0]])

    def vertex_normals(self) -> np.ndarray:
        """Area-weighted unit vertex normals, (N, 3)."""
        normals = np.zeros((self.vertex_count, 3))
        face = self.face_normals()
        for corner in range(3):
            np.add.at(normals, self.triangles[:, corner], face)
        lengths = np.linalg.norm(normals, axis=1, keepdims=True)
        lengths[lengths == 0] = 1.0
        return normals / lengths

    def tobytes(self) -> bytes:
        """Concatenated raw buffers, for byte-level comparison."""
        parts = [self.positions.tobytes(), self.indices.tobytes()]
        if self.uvs is not None:
            parts.append(self.uvs.tobytes())
        return b"".join(parts)
