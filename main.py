"""
Sapling - Procedural Tree Generator

Generates one tree from a parameter file (or the defaults) and writes:
1. leaf_texture.png - the leaf atlas image
2. tree_mesh.npz - bark and leaf mesh buffers plus leaf instance transforms
3. params.json - the parameters actually used, in persisted form

Usage:
    python main.py --params my_tree.json --seed 42 --out build/
"""

import json
import logging
from pathlib import Path

import click
import numpy as np
from matplotlib.image import imsave

from sapling import TreeGenerator, TreeModel, TreeParams


def load_params(path: Path | None) -> TreeParams:
    """Load a parameter document over the defaults."""
    generator = TreeGenerator()
    if path is not None:
        with open(path) as f:
            generator.from_json(json.load(f))
    return generator.params


def save_model(model: TreeModel, params_json: dict, out: Path) -> None:
    """Write the texture, mesh buffers and parameters into `out`."""
    out.mkdir(parents=True, exist_ok=True)
    imsave(out / "leaf_texture.png", model.leaf_texture)

    instances = (
        np.stack(model.leaf_instances)
        if model.leaf_instances
        else np.zeros((0, 4, 4))
    )
    np.savez(
        out / "tree_mesh.npz",
        bark_positions=model.bark.positions,
        bark_indices=model.bark.indices,
        leaf_positions=model.leaves.positions,
        leaf_indices=model.leaves.indices,
        leaf_uvs=model.leaves.uvs,
        leaf_instances=instances,
        leaf_bounds=np.array(model.leaf_bounds),
        bark_color=np.array(model.bark_color),
    )

    with open(out / "params.json", "w") as f:
        json.dump(params_json, f, indent=2)


@click.command()
@click.option("--params", "params_file", type=click.Path(exists=True, path_type=Path),
              default=None, help="Parameter JSON file")
@click.option("--seed", type=int, default=None, help="Override the trunk seed")
@click.option("--out", type=click.Path(path_type=Path), default=Path("."),
              help="Output directory")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(params_file: Path | None, seed: int | None, out: Path, verbose: bool) -> None:
    """Generate a tree and write its mesh, leaf atlas and parameters."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

    print("\n" + "=" * 60)
    print("  SAPLING: Procedural Tree Generator")
    print("=" * 60)

    generator = TreeGenerator(load_params(params_file))
    if seed is not None:
        generator.store.update("trunk", seed=seed)

    print(f"\nGenerating tree (seed {generator.params.trunk.seed})...")
    model = generator.regenerate()
    save_model(model, generator.to_json(), out)

    bounds = model.leaf_bounds
    print("\nTree complete!")
    print(f"  Bark: {model.bark.vertex_count} vertices, {model.bark.triangle_count} triangles")
    print(f"  Leaves: {model.leaf_count} cards, {model.leaves.triangle_count} triangles")
    print(f"  Total triangles: {model.triangle_count}")
    print(
        f"  Leaf bounds: ({bounds.min_x:g}, {bounds.min_y:g}) - "
        f"({bounds.max_x:g}, {bounds.max_y:g})"
    )
    print(f"\nWrote leaf_texture.png, tree_mesh.npz and params.json to {out}")


if __name__ == "__main__":
    main()
