"""Tests for BucketCounters."""

import threading

import pytest

from partcount.framework.counters import BucketCounters


class TestBucketCounters:
    def test_add_and_get(self) -> None:
        counters = BucketCounters()
        counters.add(3)
        counters.add(3, 4)
        assert counters.get(3) == 5
        assert counters.get(0) == 0
        assert counters.copy() == {3: 5}
        assert counters.total() == 5
        assert len(counters) == 1

    @pytest.mark.parametrize("strict", [True, False])
    def test_precheck_can_veto(self, strict) -> None:
        counters = BucketCounters(strict=strict)

        def veto():
            raise RuntimeError("closed")

        with pytest.raises(RuntimeError):
            counters.add(1, precheck=veto)
        assert counters.copy() == {}

    def test_preload_drops_zero_counts(self) -> None:
        counters = BucketCounters()
        counters.add(9)
        counters.preload({1: 2, 2: 0})
        assert counters.copy() == {1: 2}

    def test_strict_mode_loses_nothing(self) -> None:
        counters = BucketCounters(strict=True)
        num_threads, per_thread = 8, 5000

        def work():
            for i in range(per_thread):
                counters.add(i % 4)

        threads = [threading.Thread(target=work) for _ in range(num_threads)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert counters.total() == num_threads * per_thread
        assert counters.copy() == {b: num_threads * per_thread // 4 for b in range(4)}

    def test_copy_is_detached(self) -> None:
        counters = BucketCounters(strict=False)
        counters.add(0)
        copy = counters.copy()
        counters.add(0)
        assert copy == {0: 1}
