"""
Tests for the seeded random stream.

The stream must be a pure function of (seed, draw count) so that a tree can be
regenerated exactly from its parameters.
"""

from sapling.random_stream import BLOCK_SIZE, RandomStream


class TestDeterminism:
    """Tests for reproducibility."""

    def test_same_seed_same_sequence(self) -> None:
        """Two streams with the same seed agree across block boundaries."""
        a = RandomStream(200)
        b = RandomStream(200)
        count = BLOCK_SIZE * 2 + 10
        assert [a.next() for _ in range(count)] == [b.next() for _ in range(count)]

    def test_reseed_restarts(self) -> None:
        """Reseeding returns to the start of the sequence."""
        rnd = RandomStream(7)
        first = [rnd.next() for _ in range(5)]
        rnd.next()
        rnd.seed(7)
        assert [rnd.next() for _ in range(5)] == first

    def test_different_seeds_differ(self) -> None:
        """Different seeds give different sequences."""
        a = RandomStream(1)
        b = RandomStream(2)
        assert [a.next() for _ in range(8)] != [b.next() for _ in range(8)]


class TestRanges:
    """Tests for value ranges."""

    def test_unit_interval(self) -> None:
        """Default draws lie in [0, 1)."""
        rnd = RandomStream(3)
        values = [rnd.next() for _ in range(1000)]
        assert all(0.0 <= v < 1.0 for v in values)

    def test_custom_interval(self) -> None:
        """Draws respect explicit bounds."""
        rnd = RandomStream(3)
        values = [rnd.next(-1, 1) for _ in range(1000)]
        assert all(-1.0 <= v < 1.0 for v in values)
        assert min(values) < 0 < max(values)

    def test_sample_degenerate_range(self) -> None:
        """A range with equal ends always yields that value."""
        rnd = RandomStream(3)
        assert rnd.sample((0.4, 0.4)) == 0.4

    def test_sample_advances_like_next(self) -> None:
        """sample() consumes exactly one draw."""
        a = RandomStream(11)
        b = RandomStream(11)
        a.sample((2.0, 3.0))
        b.next()
        assert a.next() == b.next()


class TestFork:
    """Tests for sub-streams."""

    def test_fork_does_not_advance_parent(self) -> None:
        """Forking leaves the parent's sequence untouched."""
        expected = RandomStream(5)
        rnd = RandomStream(5)
        rnd.fork(1)
        assert rnd.next() == expected.next()

    def test_fork_is_deterministic(self) -> None:
        """The same fork index gives the same sub-stream."""
        a = RandomStream(5).fork(3)
        b = RandomStream(5).fork(3)
        assert [a.next() for _ in range(4)] == [b.next() for _ in range(4)]

    def test_fork_indices_independent(self) -> None:
        """Different fork indices give different sub-streams."""
        a = RandomStream(5).fork(1)
        b = RandomStream(5).fork(2)
        assert [a.next() for _ in range(4)] != [b.next() for _ in range(4)]
