"""
Configuration and parameter definitions for procedural tree synthesis.

This module defines the generation constants and the parameter snapshots that
drive a generation pass. Parameters are grouped the same way they are persisted:

    trunk:      TrunkParams       (seed, growth pattern, trunk dimensions, bark color)
    branch:     BranchParams[]    (one entry per nesting level below the trunk)
    leafGroup:  LeafGroupParams   (compound leaf arrangement and droop)
    leafShape:  LeafShapeParams   (single leaflet silhouette)
    leafColor:  LeafColorParams   (atlas coloring)

Every parameter field carries a kind tag in its dataclass metadata (boolean,
integer, float, color, range or enum) which the serialization layer in
`sapling.properties` matches on when loading or saving.

Lengths are presumed to be in meters, leaf shape dimensions in atlas pixels.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class GrowthPattern(Enum):
    """How a branch distributes its forks."""

    DICHOTOMOUS = 0  # Branch splits into successors at each level
    MONOPODIAL = 1  # Dominant axis with side forks along it

    @property
    def label(self) -> str:
        return self.name.lower()


class GradientDirection(Enum):
    """Orientation of the leaf fill gradient."""

    LATERAL = 0  # Across the leaf width: outer / inner / outer
    AXIAL = 1  # Along the leaf length: inner to outer

    @property
    def label(self) -> str:
        return self.name.lower()


class PropKind(Enum):
    """Kind tag for a serializable parameter field."""

    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    COLOR = "color"
    RANGE = "range"
    ENUM = "enum"


Range = tuple[float, float]


def param(
    kind: PropKind,
    default: Any,
    *,
    minimum: float | None = None,
    maximum: float | None = None,
    enum: type[Enum] | None = None,
    pattern: GrowthPattern | None = None,
    exclude_pattern: GrowthPattern | None = None,
):
    """
    Declare a parameter field.

    Args:
        kind: Kind tag used for (de)serialization
        default: Initial value (also the reset value)
        minimum: Lower editing limit
        maximum: Upper editing limit
        enum: Enum class for ENUM fields
        pattern: Field only applies under this growth pattern
        exclude_pattern: Field does not apply under this growth pattern
    """
    return field(
        default=default,
        metadata={
            "kind": kind,
            "minimum": minimum,
            "maximum": maximum,
            "enum": enum,
            "pattern": pattern,
            "exclude_pattern": exclude_pattern,
        },
    )


def median(value: Range) -> float:
    """Midpoint of a [low, high] range."""
    return (value[0] + value[1]) * 0.5


# =============================================================================
# GENERATION CONSTANTS
# =============================================================================


@dataclass(frozen=True)
class GrowthConfig:
    """
    Fixed constants of the synthesis engine.

    These are not user parameters and are never persisted; tests and tools
    may override them for coarser or finer meshes.
    """

    num_sectors: int = 6  # Polygon faces around a branch circumference
    max_iterations: int = 100  # Loop budget per branch call
    fork_radius_scale: float = 0.9  # Child base radius relative to the fork point
    flex_gain: float = 4.0  # Gravity bend per unit of |up x forward|
    end_cap_length: float = 0.1  # Apex offset past the last ring
    min_leaf_scale: float = 0.3  # Leaf size on a fully shrunk branch
    max_leaf_scale: float = 1.0  # Leaf size on a full-scale branch
    normal_epsilon: float = 0.01  # Below this |up x forward| is degenerate
    texture_size: int = 128  # Leaf atlas edge length in pixels
    bounds_margin: float = 2.0  # Padding around the stamped leaf figure

    def __post_init__(self) -> None:
        if self.num_sectors < 3:
            raise ValueError("A branch ring needs at least 3 sectors")
        if self.max_iterations < 1:
            raise ValueError("Iteration budget must be positive")
        if self.texture_size < 1:
            raise ValueError("Texture size must be positive")


# =============================================================================
# PARAMETER GROUPS
# =============================================================================


@dataclass(frozen=True)
class TrunkParams:
    """Seed and trunk dimensions."""

    seed: int = param(PropKind.INTEGER, 200, minimum=1, maximum=100000)
    growth_pattern: GrowthPattern = param(
        PropKind.ENUM, GrowthPattern.DICHOTOMOUS, enum=GrowthPattern
    )
    radius: float = param(PropKind.FLOAT, 0.16, minimum=0.01, maximum=1)
    length: float = param(PropKind.FLOAT, 3.0, minimum=0.01, maximum=6)
    taper: float = param(PropKind.FLOAT, 0.1, minimum=0.01, maximum=1)
    segment_length: float = param(PropKind.FLOAT, 0.5, minimum=0.1, maximum=1)
    color: int = param(PropKind.COLOR, 0xA08000)

    def __post_init__(self) -> None:
        if self.radius <= 0:
            raise ValueError("Trunk radius must be positive")
        if self.length <= 0:
            raise ValueError("Trunk length must be positive")
        if not 0 < self.taper <= 1:
            raise ValueError("Taper must be in (0, 1]")
        if self.segment_length <= 0:
            raise ValueError("Segment length must be positive")


@dataclass(frozen=True)
class BranchParams:
    """Fork placement and shape for one nesting level."""

    branch_at: Range = param(
        PropKind.RANGE, (0.4, 0.4), minimum=0, maximum=1,
        pattern=GrowthPattern.MONOPODIAL,
    )
    interval: Range = param(
        PropKind.RANGE, (0.3, 0.3), minimum=0, maximum=1,
        pattern=GrowthPattern.MONOPODIAL,
    )
    length: Range = param(PropKind.RANGE, (0.4, 0.4), minimum=0, maximum=5)
    length_taper: float = param(
        PropKind.FLOAT, 1.0, minimum=0.05, maximum=1,
        pattern=GrowthPattern.MONOPODIAL,
    )
    axis: Range = param(PropKind.RANGE, (0.0, 0.0), minimum=-3.14159, maximum=3.14159)
    angle: Range = param(PropKind.RANGE, (0.51, 0.61), minimum=0, maximum=2.5)
    angle_bias: float = param(
        PropKind.FLOAT, 0.0, minimum=-1, maximum=1,
        pattern=GrowthPattern.MONOPODIAL,
    )
    symmetry: int = param(PropKind.INTEGER, 2, minimum=1, maximum=3)
    deflect: Range = param(
        PropKind.RANGE, (1.0, 1.0), minimum=0, maximum=1,
        exclude_pattern=GrowthPattern.MONOPODIAL,
    )
    flex: float = param(PropKind.FLOAT, 0.0, minimum=-1, maximum=1)
    leaves: bool = param(
        PropKind.BOOLEAN, False, pattern=GrowthPattern.MONOPODIAL
    )

    def __post_init__(self) -> None:
        if self.symmetry < 1:
            raise ValueError("Symmetry must be at least 1")


@dataclass(frozen=True)
class LeafGroupParams:
    """Compound leaf arrangement: a fan at the tip plus phalanx pairs below it."""

    fan_size: int = param(PropKind.INTEGER, 1, minimum=1, maximum=10)
    fan_angle: float = param(PropKind.FLOAT, 1.5, minimum=0.01, maximum=6)
    angle_variation: float = param(PropKind.FLOAT, 0.0, minimum=0, maximum=3)
    lateral_droop: float = param(PropKind.FLOAT, 0.0, minimum=-1.5, maximum=1.5)
    axial_droop: float = param(PropKind.FLOAT, 0.0, minimum=-1.5, maximum=1.5)
    taper: float = param(PropKind.FLOAT, 1.0, minimum=0, maximum=2)
    phalanx_count: int = param(PropKind.INTEGER, 0, minimum=0, maximum=10)
    leaf_spacing: float = param(PropKind.FLOAT, 20.0, minimum=1, maximum=100)
    leaf_spacing_variation: float = param(PropKind.FLOAT, 0.0, minimum=0, maximum=3)


@dataclass(frozen=True)
class LeafShapeParams:
    """Silhouette of a single leaflet, in atlas pixels."""

    length: float = param(PropKind.FLOAT, 60.0, minimum=20, maximum=128)
    num_segments: int = param(PropKind.INTEGER, 1, minimum=1, maximum=12)
    base_width: float = param(PropKind.FLOAT, 0.27, minimum=0.01, maximum=1)
    base_taper: float = param(PropKind.FLOAT, 0.0, minimum=-1, maximum=1)
    tip_width: float = param(PropKind.FLOAT, 0.2, minimum=0.01, maximum=1)
    tip_taper: float = param(PropKind.FLOAT, 0.41, minimum=-1, maximum=1)
    serration: float = param(PropKind.FLOAT, 0.0, minimum=0, maximum=1)
    rake: float = param(PropKind.FLOAT, 0.0, minimum=0, maximum=1)
    jitter: float = param(PropKind.FLOAT, 0.0, minimum=0, maximum=1)


@dataclass(frozen=True)
class LeafColorParams:
    """Atlas coloring."""

    inner_color: int = param(PropKind.COLOR, 0x444444)
    outer_color: int = param(PropKind.COLOR, 0x444444)
    variation: float = param(PropKind.FLOAT, 0.0, minimum=0, maximum=1)
    gradient_direction: GradientDirection = param(
        PropKind.ENUM, GradientDirection.LATERAL, enum=GradientDirection
    )


# Persisted group key -> snapshot class. Order matches the persisted layout.
GROUP_TYPES: dict[str, type] = {
    "trunk": TrunkParams,
    "branch": BranchParams,
    "leafGroup": LeafGroupParams,
    "leafShape": LeafShapeParams,
    "leafColor": LeafColorParams,
}

# Persisted group key -> TreeParams attribute
GROUP_ATTRS: dict[str, str] = {
    "trunk": "trunk",
    "branch": "branch",
    "leafGroup": "leaf_group",
    "leafShape": "leaf_shape",
    "leafColor": "leaf_color",
}


@dataclass(frozen=True)
class TreeParams:
    """
    Complete read-only parameter snapshot for one generation pass.

    `branch` may be empty, in which case the tree is a bare trunk.
    """

    trunk: TrunkParams = field(default_factory=TrunkParams)
    branch: tuple[BranchParams, ...] = (BranchParams(),)
    leaf_group: LeafGroupParams = field(default_factory=LeafGroupParams)
    leaf_shape: LeafShapeParams = field(default_factory=LeafShapeParams)
    leaf_color: LeafColorParams = field(default_factory=LeafColorParams)

    @classmethod
    def trunk_only(cls, **trunk_values: Any) -> "TreeParams":
        """A tree with no branch levels: a single tapering tube."""
        return cls(trunk=TrunkParams(**trunk_values), branch=())

    @classmethod
    def shrub(cls) -> "TreeParams":
        """A bushy monopodial shrub with palmate leaf fans."""
        level = BranchParams(
            branch_at=(0.2, 0.3),
            interval=(0.25, 0.4),
            length=(0.8, 1.1),
            length_taper=0.6,
            axis=(2.2, 2.6),
            angle=(0.6, 0.9),
            angle_bias=0.2,
            symmetry=1,
            flex=0.1,
        )
        twig = BranchParams(
            branch_at=(0.3, 0.5),
            interval=(0.2, 0.3),
            length=(0.3, 0.45),
            axis=(1.0, 2.0),
            angle=(0.7, 1.0),
            symmetry=2,
            flex=-0.2,
            leaves=True,
        )
        return cls(
            trunk=TrunkParams(
                growth_pattern=GrowthPattern.MONOPODIAL, length=2.0, radius=0.1
            ),
            branch=(level, twig),
            leaf_group=LeafGroupParams(fan_size=3, fan_angle=0.8, taper=0.8),
            leaf_shape=LeafShapeParams(num_segments=4, serration=0.1, jitter=0.2),
            leaf_color=LeafColorParams(
                inner_color=0x6A8F2A, outer_color=0x2E5A1C, variation=0.3
            ),
        )
