"""Tests for id generation."""

from concurrent.futures import ThreadPoolExecutor

from reconops.utils.ids import SequentialIdGenerator


class TestSequentialIdGenerator:
    """Tests for SequentialIdGenerator."""

    def test_format(self):
        """Ids carry prefix, clock milliseconds and sequence number."""
        ids = SequentialIdGenerator(prefix="tc", clock=lambda: 1.5)

        assert ids.next() == "tc-1500-1"
        assert ids.next() == "tc-1500-2"

    def test_unique_across_threads(self):
        """Concurrent callers never receive the same id."""
        ids = SequentialIdGenerator(clock=lambda: 0)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: ids.next(), range(500)))

        assert len(set(results)) == 500

    def test_generators_are_independent(self):
        a = SequentialIdGenerator(prefix="a", clock=lambda: 0)
        b = SequentialIdGenerator(prefix="b", clock=lambda: 0)

        a.next()
        assert b.next() == "b-0-1"
