"""Tests for IngestExecutor."""

import pytest

from partcount.framework.aggregator import PartitionAggregator
from partcount.framework.mapper import word_count_map
from partcount.utils.errors import UnserializableInputError
from partcount.worker.executor import IngestExecutor, split_items


class TestSplitItems:
    def test_round_robin(self) -> None:
        assert split_items(range(7), 3) == [[0, 3, 6], [1, 4], [2, 5]]

    def test_drops_empty_chunks(self) -> None:
        assert split_items([1], 4) == [[1]]
        assert split_items([], 4) == []

    def test_invalid_chunk_count(self) -> None:
        with pytest.raises(ValueError):
            split_items([1], 0)


class TestIngestExecutor:
    def test_concurrent_items_match_sequential(self) -> None:
        items = [f"Some data - {i}" for i in range(1, 5001)]
        sequential = PartitionAggregator(10)
        sequential.ingest_many(items)

        snapshot = IngestExecutor(PartitionAggregator(10), max_workers=4).execute_items(items)

        assert dict(snapshot) == dict(sequential.snapshot())
        assert sum(snapshot.values()) == 5000

    def test_execute_chunks_with_map_function(self) -> None:
        chunks = ["a b c", "a a", "", "b"]
        aggregator = PartitionAggregator(3)

        snapshot = IngestExecutor(aggregator, map_function=word_count_map, max_workers=2).execute(chunks)

        expected = PartitionAggregator(3)
        expected.ingest_many(["a", "b", "c", "a", "a", "b"])
        assert dict(snapshot) == dict(expected.snapshot())

    def test_default_map_is_lines(self) -> None:
        aggregator = PartitionAggregator(3)
        IngestExecutor(aggregator).execute(["x\ny\n", "z"])
        assert aggregator.total() == 3

    def test_failure_is_raised_after_other_tasks_finish(self) -> None:
        aggregator = PartitionAggregator(3)

        def map_function(key, value):
            if value == "bad":
                yield object()
            else:
                yield from value.split()

        executor = IngestExecutor(aggregator, map_function=map_function, max_workers=2)
        with pytest.raises(UnserializableInputError):
            executor.execute(["a b", "bad", "c d e"])

        assert aggregator.total() == 5
