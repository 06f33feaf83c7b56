"""
Generation pass orchestration.

One pass turns a parameter snapshot into a complete `TreeModel`. All stages
share a single random stream, reseeded at the start of the pass and consumed
in a fixed order:

    1. Bark growth (every branch, in recursion order)
    2. Leaf outline (serration jitter)
    3. Leaf stamps (fan and phalanx jitter)
    4. Leaf bounds and leaf mesh (no draws)
    5. Leaf texture (two draws per stamp)

Identical parameters and seed therefore produce byte-identical buffers.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from sapling.config import GrowthConfig, TreeParams
from sapling.growth import grow_tree
from sapling.leaf_bounds import Bounds, calc_leaf_bounds
from sapling.leaf_mesh import create_leaf_mesh
from sapling.leaf_shape import build_leaf_path
from sapling.leaf_stamps import TwigStem, create_leaf_stamps
from sapling.leaf_texture import draw_leaf_texture
from sapling.mesh import MeshBuffers
from sapling.properties import ParameterStore
from sapling.random_stream import RandomStream

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class TreeModel:
    """
    Output of one generation pass.

    Attributes:
        params: Snapshot the model was generated from
        bark: Bark mesh (positions and indices)
        leaves: Leaf card mesh (positions, indices and UVs)
        leaf_texture: RGBA atlas, uint8 (N, N, 4); row 0 is bounds.min_y
        leaf_bounds: Atlas bounds in leaf units
        leaf_instances: 4x4 leaf transforms
        bark_color: Bark color (0xRRGGBB)
    """

    params: TreeParams
    bark: MeshBuffers
    leaves: MeshBuffers
    leaf_texture: np.ndarray
    leaf_bounds: Bounds
    leaf_instances: tuple[np.ndarray, ...] = field(default=())
    bark_color: int = 0

    @property
    def triangle_count(self) -> int:
        """Bark plus leaf triangles."""
        return self.bark.triangle_count + self.leaves.triangle_count

    @property
    def leaf_count(self) -> int:
        return len(self.leaf_instances)


def generate(
    params: TreeParams,
    seed: int | None = None,
    config: GrowthConfig | None = None,
    stems: Sequence[TwigStem] = (),
) -> TreeModel:
    """
    Run one complete generation pass.

    Args:
        params: Parameter snapshot
        seed: Overrides params.trunk.seed when given
        config: Engine constants (defaults if None)
        stems: Optional stem strokes drawn beneath the leaflets

    Returns:
        The generated model
    """
    config = config if config is not None else GrowthConfig()
    seed = params.trunk.seed if seed is None else seed
    rnd = RandomStream(seed)

    bark, instances = grow_tree(params, rnd, config)

    outline = build_leaf_path(params.leaf_shape, rnd)
    stamps = create_leaf_stamps(params.leaf_group, rnd)
    bounds = calc_leaf_bounds(outline, stamps, stems, margin=config.bounds_margin)

    leaves = create_leaf_mesh(instances, bounds, params.leaf_group, config.texture_size)
    texture = draw_leaf_texture(
        outline,
        stamps,
        stems,
        bounds,
        rnd,
        params.leaf_color,
        params.trunk.color,
        size=config.texture_size,
    )
    texture.flags.writeable = False

    model = TreeModel(
        params=params,
        bark=bark,
        leaves=leaves,
        leaf_texture=texture,
        leaf_bounds=bounds,
        leaf_instances=instances,
        bark_color=params.trunk.color,
    )
    logger.debug(
        "generated seed=%d: %d triangles, %d leaves",
        seed,
        model.triangle_count,
        model.leaf_count,
    )
    return model


class TreeGenerator:
    """
    Editable tree with regenerate-on-demand.

    Parameter edits go through `store`; any actual change marks the generator
    modified. `regenerate()` runs a full pass and only then swaps the result
    in, so a failing pass leaves the previous model current.

    Example:
        >>> gen = TreeGenerator()
        >>> gen.store.update("trunk", length=2.0)
        >>> gen.is_modified
        True
        >>> model = gen.regenerate()
    """

    def __init__(
        self,
        params: TreeParams | None = None,
        config: GrowthConfig | None = None,
    ):
        self.config = config if config is not None else GrowthConfig()
        self.store = ParameterStore(params)
        self.model: TreeModel | None = None
        self._modified = True
        self._unsubscribe = self.store.subscribe(self._on_change)

    def _on_change(self) -> None:
        self._modified = True

    @property
    def is_modified(self) -> bool:
        """True when the parameters changed since the last successful pass."""
        return self._modified

    @property
    def params(self) -> TreeParams:
        return self.store.params

    def regenerate(self, stems: Sequence[TwigStem] = ()) -> TreeModel:
        """Generate from the current parameters and publish the result."""
        params = self.store.params
        model = generate(params, config=self.config, stems=stems)
        self.model = model
        self._modified = self.store.params != params
        logger.info(
            "regenerated tree: %d triangles, %d leaves",
            model.triangle_count,
            model.leaf_count,
        )
        return model

    def update(self, stems: Sequence[TwigStem] = ()) -> TreeModel | None:
        """Regenerate only if the parameters changed; returns the current model."""
        if self._modified or self.model is None:
            return self.regenerate(stems)
        return self.model

    def reset(self) -> None:
        """Reset all parameter groups to their defaults."""
        self.store.reset()

    def to_json(self) -> dict[str, Any]:
        return self.store.to_json()

    def from_json(self, data: Any) -> None:
        self.store.from_json(data)

    def close(self) -> None:
        """Stop listening for parameter changes."""
        self._unsubscribe()
