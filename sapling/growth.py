"""
Branch growth engine.

Extrudes the bark as a tapering hexagonal tube that walks forward along a
curving path, forks into child branches and records a leaf placement at every
leaf-bearing tip.

Each call to `grow_branch` grows one branch from its base ring to its end cap:

    1. Emit the base ring at the branch transform.
    2. Step forward in increments of at most `segment_length`. Every step
       shrinks the radius by taper^(step * contraction_rate), bends the path
       up or down according to the parent level's flex, advances along local
       +Y, emits a ring and stitches it to the previous one.
    3. Fork child branches according to the growth pattern (monopodial side
       forks along a dominant axis, or dichotomous splits once per level),
       recursing into each child before continuing.
    4. Close the tip with an apex vertex and, if the tip bears leaves, push a
       leaf transform.

The contraction rate normalizes tapering against the expected root-to-tip
length of the whole tree, so tip radii approach zero whatever the depth.

All buffers live in a `GrowthContext` shared by the whole recursion. Each call
gets a fixed iteration budget and a matching segment allowance that silently
truncate pathological parameter combinations (for example a sampled fork
interval of zero, or a vanishing segment length).
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np

from sapling.config import GrowthConfig, GrowthPattern, TreeParams, median
from sapling.mesh import MeshBuffers
from sapling.random_stream import UniformSource
from sapling.transforms import (
    UP,
    apply_direction,
    apply_point,
    apply_points,
    extract_rotation,
    get_position,
    identity,
    make_basis,
    make_rotation_axis,
    make_rotation_x,
    make_rotation_y,
    make_scale,
    make_translation,
    with_position,
)

logger = logging.getLogger(__name__)

# Lengths closer than this are treated as reached; avoids sliver rings from
# accumulated rounding.
LENGTH_EPSILON = 1e-9


def compute_contraction_rate(params: TreeParams) -> float:
    """
    Per-unit-length radius decay, normalized against the whole tree.

    rate = 1 / (trunk length + sum of the expected span of every branch level)

    For monopodial trees a level's expected span is its median length scaled
    by the median fork position, since side forks start partway up the parent.
    """
    total = params.trunk.length
    monopodial = params.trunk.growth_pattern is GrowthPattern.MONOPODIAL
    for level in params.branch:
        span = median(level.length)
        if monopodial:
            span *= median(level.branch_at)
        total += span
    if total <= 0:
        return 0.0
    return 1.0 / total


@dataclass
class GrowthContext:
    """
    State shared by every branch of one generation pass.

    Attributes:
        params: Parameter snapshot for the pass
        rnd: Random stream, consumed in recursion order
        config: Engine constants
        positions: Flat bark vertex positions
        indices: Flat bark triangle indices
        leaf_instances: 4x4 leaf transforms, in discovery order
    """

    params: TreeParams
    rnd: UniformSource
    config: GrowthConfig = field(default_factory=GrowthConfig)
    positions: list[float] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)
    leaf_instances: list[np.ndarray] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.contraction_rate = compute_contraction_rate(self.params)
        n = self.config.num_sectors
        angles = np.arange(n) * (2 * math.pi / n)
        self._ring = np.stack([np.sin(angles), np.zeros(n), np.cos(angles)], axis=1)

    @property
    def vertex_count(self) -> int:
        return len(self.positions) // 3

    def add_ring(self, transform: np.ndarray, radius: float) -> int:
        """Emit one ring of vertices; returns the index of its first vertex."""
        start = self.vertex_count
        self.positions.extend(apply_points(transform, self._ring * radius).ravel().tolist())
        return start

    def add_ring_faces(self, from_ring: int, to_ring: int) -> None:
        """Stitch two rings with two triangles per sector."""
        n = self.config.num_sectors
        for i in range(n):
            i2 = (i + 1) % n
            self.indices.extend(
                (
                    from_ring + i, from_ring + i2, to_ring + i,
                    from_ring + i2, to_ring + i2, to_ring + i,
                )
            )

    def add_end_cap(self, ring: int, transform: np.ndarray) -> None:
        """Close a branch with an apex vertex fanned to its last ring."""
        apex = self.vertex_count
        self.positions.extend(apply_point(transform, (0.0, 0.0, 0.0)).tolist())
        n = self.config.num_sectors
        for i in range(n):
            self.indices.extend((ring + i, ring + (i + 1) % n, apex))

    def bark_mesh(self) -> MeshBuffers:
        return MeshBuffers.from_lists(self.positions, self.indices)


@dataclass
class BranchState:
    """Per-call state of one growing branch."""

    transform: np.ndarray
    length: float
    radius: float
    scale: float
    level: int
    budget: int
    steps: int  # Segments this call may still emit
    current: float = 0.0
    prev_ring: int = 0
    rotation: float = math.pi / 2  # Accumulated yaw of forks along this branch


def _add_segment(ctx: GrowthContext, branch: BranchState, length: float) -> None:
    """Taper, bend and advance the branch by `length`, emitting one ring."""
    trunk = ctx.params.trunk
    branch.radius *= trunk.taper ** (length * ctx.contraction_rate)

    # Curve the branch up or down based on gravity bias.
    transform = branch.transform
    position = get_position(transform)
    rotation = extract_rotation(transform)
    forward = apply_direction(rotation, (0.0, length, 0.0))
    normal = np.cross(UP, forward)
    normal_length = float(np.linalg.norm(normal))
    if normal_length > ctx.config.normal_epsilon:
        flex = ctx.params.branch[branch.level - 1].flex if branch.level > 0 else 0.0
        # Positive flex lifts the tip, negative flex droops it.
        bend = make_rotation_axis(
            normal / normal_length, -flex * normal_length * ctx.config.flex_gain
        )
        transform = with_position(bend @ rotation, position)

    branch.transform = transform @ make_translation(0.0, length, 0.0)
    ring = ctx.add_ring(branch.transform, branch.radius)
    ctx.add_ring_faces(branch.prev_ring, ring)
    branch.prev_ring = ring
    branch.current += length


def _extend(ctx: GrowthContext, branch: BranchState, target: float, limit: float) -> None:
    """
    Add segments until `target` is reached; no single step passes `limit`.

    Stops early once the call's segment allowance is spent, so a tiny
    segment length truncates the branch instead of emitting unbounded rings.
    """
    segment_length = ctx.params.trunk.segment_length
    while target - branch.current > LENGTH_EPSILON and branch.steps > 0:
        step = min(segment_length, limit - branch.current)
        if step <= 0:
            break
        branch.steps -= 1
        _add_segment(ctx, branch, step)


def _fork_child(
    ctx: GrowthContext,
    branch: BranchState,
    yaw: float,
    pitch: float,
    offset: float,
    length: float,
    radius: float,
    scale: float,
) -> None:
    """Recurse into a child branch based `offset` along the current one."""
    rotation = make_rotation_y(yaw) @ make_rotation_x(pitch)
    transform = branch.transform @ make_translation(0.0, offset, 0.0) @ rotation
    grow_branch(ctx, transform, length, radius, scale, branch.level + 1)


def grow_monopodial(ctx: GrowthContext, branch: BranchState) -> bool:
    """
    Grow a dominant axis with side forks along it.

    Returns:
        Whether the branch tip bears leaves
    """
    levels = ctx.params.branch
    rnd = ctx.rnd

    # The tip at the end of a branch, no child branches here.
    if branch.level >= len(levels):
        _extend(ctx, branch, branch.length, branch.length)
        return True

    level = levels[branch.level]
    taper = ctx.params.trunk.taper
    first_fork = min(
        branch.length,
        branch.current + rnd.next(*level.branch_at) * (branch.length - branch.current),
    )
    next_fork = first_fork

    while branch.length - branch.current > LENGTH_EPSILON and branch.budget > 0:
        branch.budget -= 1

        # Add segments until we overshoot the next fork point.
        _extend(ctx, branch, next_fork, branch.length)

        while (
            next_fork <= branch.current + LENGTH_EPSILON
            and next_fork < branch.length
            and branch.budget > 0
        ):
            branch.budget -= 1
            relative_position = (next_fork - first_fork) / (branch.length - first_fork)
            branch_angle = rnd.next(*level.angle) + relative_position * level.angle_bias
            branch.rotation += rnd.next(*level.axis)

            # The fork point may lie behind the last ring; its radius is
            # interpolated back to that point.
            offset = next_fork - branch.current
            fork_radius = branch.radius * taper ** (offset * ctx.contraction_rate)
            for i in range(level.symmetry):
                _fork_child(
                    ctx,
                    branch,
                    branch.rotation + i * 2 * math.pi / level.symmetry,
                    -branch_angle,
                    offset,
                    rnd.next(*level.length),
                    fork_radius * ctx.config.fork_radius_scale,
                    branch.scale * (1 - relative_position * level.length_taper),
                )

            next_fork = min(next_fork + rnd.next(*level.interval), branch.length)

    return level.leaves


def grow_dichotomous(ctx: GrowthContext, branch: BranchState) -> bool:
    """
    Split once per level; one successor continues as the primary path.

    Returns:
        Whether the branch tip bears leaves (always, for this pattern)
    """
    levels = ctx.params.branch
    rnd = ctx.rnd
    next_fork = branch.length

    while branch.level < len(levels) and branch.budget > 0:
        branch.budget -= 1

        # Add segments until we reach the next fork point.
        _extend(ctx, branch, next_fork, next_fork)

        level = levels[branch.level]
        branch_angle = rnd.next(*level.angle)
        branch.rotation += rnd.next(*level.axis)
        for i in range(1, level.symmetry):
            child_length = rnd.next(*level.length)
            _fork_child(
                ctx,
                branch,
                branch.rotation + i * 2 * math.pi / level.symmetry,
                -branch_angle,
                0.0,
                child_length,
                branch.radius * ctx.config.fork_radius_scale,
                1.0,
            )

        if level.symmetry > 1:
            deflect = make_rotation_y(branch.rotation * rnd.next(*level.deflect))
            branch.transform = branch.transform @ deflect @ make_rotation_x(-branch_angle)

        next_fork = branch.current + rnd.next(*level.length)
        branch.level += 1

    _extend(ctx, branch, next_fork, next_fork)
    return True


GrowthFn = Callable[[GrowthContext, BranchState], bool]

GROWTH_PATTERNS: dict[GrowthPattern, GrowthFn] = {
    GrowthPattern.MONOPODIAL: grow_monopodial,
    GrowthPattern.DICHOTOMOUS: grow_dichotomous,
}


def leaf_transform(ctx: GrowthContext, transform: np.ndarray, scale: float) -> np.ndarray:
    """
    Placement of a leaf at a branch tip.

    The leaf frame is (normal, forward, binormal) with normal = up x forward,
    so leaves lie flat with respect to the world. A tip pointing straight up
    or down has no such frame and keeps the branch orientation.
    """
    cfg = ctx.config
    position = get_position(transform)
    forward = apply_direction(extract_rotation(transform), (0.0, 1.0, 0.0))
    forward = forward / np.linalg.norm(forward)
    normal = np.cross(UP, forward)
    normal_length = float(np.linalg.norm(normal))
    if normal_length > cfg.normal_epsilon:
        normal = normal / normal_length
        binormal = np.cross(normal, forward)
        binormal = binormal / np.linalg.norm(binormal)
        transform = make_basis(normal, forward, binormal, position)

    size = cfg.min_leaf_scale + (cfg.max_leaf_scale - cfg.min_leaf_scale) * scale
    return transform @ make_scale(size) @ make_rotation_x(-math.pi / 2)


def grow_branch(
    ctx: GrowthContext,
    transform: np.ndarray,
    length: float,
    radius: float,
    scale: float,
    level: int,
) -> None:
    """
    Grow one branch and, recursively, all of its children.

    Args:
        ctx: Shared buffers and parameters
        transform: Base of the branch (position and orientation)
        length: Target length before scaling
        radius: Base radius
        scale: Inherited size factor (also scales `length`)
        level: Nesting depth, 0 for the trunk
    """
    branch = BranchState(
        transform=transform.copy(),
        length=length * scale,
        radius=radius,
        scale=scale,
        level=level,
        budget=ctx.config.max_iterations,
        steps=ctx.config.max_iterations,
    )
    branch.prev_ring = ctx.add_ring(branch.transform, radius)

    grow = GROWTH_PATTERNS[ctx.params.trunk.growth_pattern]
    has_leaves = grow(ctx, branch)
    if branch.budget <= 0 or branch.steps <= 0:
        logger.debug("branch at level %d hit the iteration budget", level)

    # Endpoint
    branch.transform = branch.transform @ make_translation(0.0, ctx.config.end_cap_length, 0.0)
    ctx.add_end_cap(branch.prev_ring, branch.transform)

    if has_leaves:
        ctx.leaf_instances.append(leaf_transform(ctx, branch.transform, branch.scale))


def grow_tree(
    params: TreeParams,
    rnd: UniformSource,
    config: GrowthConfig | None = None,
) -> tuple[MeshBuffers, tuple[np.ndarray, ...]]:
    """
    Grow the whole tree from the trunk base at the origin, pointing up +Y.

    Returns:
        (bark mesh, leaf instance transforms)
    """
    ctx = GrowthContext(params, rnd, config if config is not None else GrowthConfig())
    trunk = params.trunk
    grow_branch(ctx, identity(), trunk.length, trunk.radius, 1.0, 0)
    logger.debug(
        "grew bark: %d vertices, %d triangles, %d leaves",
        ctx.vertex_count,
        len(ctx.indices) // 3,
        len(ctx.leaf_instances),
    )
    return ctx.bark_mesh(), tuple(ctx.leaf_instances)
