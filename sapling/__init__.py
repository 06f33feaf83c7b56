"""
Sapling Tree Synthesis Module

Procedural generation of low-poly trees: a tapering, branching bark mesh plus
textured leaf cards and the leaf atlas image they sample.

Modules:
    config: Generation constants and parameter snapshots
    properties: Parameter editing, JSON persistence and change notification
    random_stream: Seeded deterministic random stream
    transforms: 4x4 affine matrix helpers
    mesh: Indexed triangle mesh buffers
    leaf_shape: Leaflet outline (Bezier half-silhouette)
    leaf_stamps: Leaflet placement within a compound leaf
    leaf_bounds: Square atlas bounds around the compound leaf
    growth: Branch growth engine (bark mesh and leaf placements)
    leaf_mesh: Folded leaf cards
    leaf_texture: Leaf atlas rasterizer
    angles: Angle utilities and shadow-avoidance heuristic
    generator: Full generation pass and editable tree
"""

from sapling.angles import compute_shadow_effect, diff_angle, minimize_shadow, wrap_angle
from sapling.config import (
    BranchParams,
    GradientDirection,
    GrowthConfig,
    GrowthPattern,
    LeafColorParams,
    LeafGroupParams,
    LeafShapeParams,
    TreeParams,
    TrunkParams,
)
from sapling.generator import TreeGenerator, TreeModel, generate
from sapling.growth import GrowthContext, compute_contraction_rate, grow_branch, grow_tree
from sapling.leaf_bounds import Bounds, calc_leaf_bounds
from sapling.leaf_mesh import create_leaf_mesh
from sapling.leaf_shape import LeafSplineSegment, build_leaf_path, mirror_outline
from sapling.leaf_stamps import LeafStamp, TwigStem, create_leaf_stamps
from sapling.leaf_texture import draw_leaf_texture
from sapling.mesh import MeshBuffers
from sapling.properties import ParameterStore, params_from_json, params_to_json
from sapling.random_stream import RandomStream

__all__ = [
    # Config
    "BranchParams",
    "GradientDirection",
    "GrowthConfig",
    "GrowthPattern",
    "LeafColorParams",
    "LeafGroupParams",
    "LeafShapeParams",
    "TreeParams",
    "TrunkParams",
    # Parameters
    "ParameterStore",
    "params_from_json",
    "params_to_json",
    # Randomness
    "RandomStream",
    # Geometry
    "MeshBuffers",
    "GrowthContext",
    "compute_contraction_rate",
    "grow_branch",
    "grow_tree",
    "create_leaf_mesh",
    # Leaves
    "Bounds",
    "LeafSplineSegment",
    "LeafStamp",
    "TwigStem",
    "build_leaf_path",
    "calc_leaf_bounds",
    "create_leaf_stamps",
    "draw_leaf_texture",
    "mirror_outline",
    # Angles
    "compute_shadow_effect",
    "diff_angle",
    "minimize_shadow",
    "wrap_angle",
    # Generation
    "TreeGenerator",
    "TreeModel",
    "generate",
]
