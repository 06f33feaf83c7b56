"""
Seeded random stream.

A single stream is reseeded at the start of every generation pass and then
consumed in a fixed order by the branch growth engine, the leaf outline builder,
the stamp planner and the texture rasterizer. The draw order is part of the
output contract: reordering draws changes the generated tree.

Values come from JAX's counter-based threefry generator. Uniforms are drawn in
blocks keyed by (seed, block index), so the sequence depends only on the seed
and on how many values have been consumed, never on process state.
"""

from typing import Protocol

import jax.numpy as jnp
import jax.random as jr
import numpy as np

BLOCK_SIZE = 256


class UniformSource(Protocol):
    """Anything that yields uniform reals in [lo, hi)."""

    def next(self, lo: float = 0.0, hi: float = 1.0) -> float: ...


class RandomStream:
    """
    Deterministic stream of uniform reals.

    Example:
        >>> rnd = RandomStream(200)
        >>> a = rnd.next(-1, 1)
        >>> rnd.seed(200)
        >>> rnd.next(-1, 1) == a
        True
    """

    def __init__(self, seed: int = 1):
        self.seed(seed)

    def seed(self, n: int) -> None:
        """Reset the stream to the start of the sequence for seed `n`."""
        self._init_key(jr.PRNGKey(int(n)))

    def _init_key(self, key) -> None:
        self._key = key
        self._block_index = 0
        self._buffer = np.empty(0, dtype=np.float64)
        self._pos = 0

    def _refill(self) -> None:
        block = jr.uniform(
            jr.fold_in(self._key, self._block_index), (BLOCK_SIZE,), dtype=jnp.float32
        )
        self._buffer = np.asarray(block, dtype=np.float64)
        self._block_index += 1
        self._pos = 0

    def next(self, lo: float = 0.0, hi: float = 1.0) -> float:
        """Return the next value in [lo, hi) and advance the stream."""
        if self._pos >= len(self._buffer):
            self._refill()
        u = float(self._buffer[self._pos])
        self._pos += 1
        return lo + (hi - lo) * u

    def sample(self, bounds: tuple[float, float]) -> float:
        """Draw uniformly from a [low, high] parameter range."""
        return self.next(bounds[0], bounds[1])

    def fork(self, index: int) -> "RandomStream":
        """
        Derive an independent sub-stream.

        The parent stream is not advanced, so forking does not disturb the
        parent's sequence. Sub-streams with different indices are independent.
        """
        child = RandomStream.__new__(RandomStream)
        child._init_key(jr.fold_in(jr.fold_in(self._key, 0x5EED), int(index)))
        return child
