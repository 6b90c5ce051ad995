"""Tests for ServerState."""

import pytest

from partcount.master.state import ServerState, TableExistsError
from partcount.utils.errors import InvalidRangeError


class TestServerState:
    def test_create_table_uses_configured_algorithm(self) -> None:
        state = ServerState(algorithm="fnv1a")
        aggregator, created = state.create_table("t", 16)
        assert created
        assert aggregator.partitioner.algorithm == "fnv1a"

    def test_unknown_algorithm(self) -> None:
        with pytest.raises(ValueError):
            ServerState(algorithm="sha512")

    def test_conflicting_range(self) -> None:
        state = ServerState()
        state.create_table("t", 16)
        with pytest.raises(TableExistsError):
            state.create_table("t", 8)

    def test_conflicting_mode(self) -> None:
        state = ServerState()
        state.create_table("t", 16, strict=False)
        with pytest.raises(TableExistsError, match="relaxed"):
            state.create_table("t", 16)
        assert not state.get_table("t").strict

    @pytest.mark.parametrize("num_partitions", [0, "abc", 2.5])
    def test_invalid_range_on_existing_name(self, num_partitions) -> None:
        state = ServerState()
        state.create_table("t", 10)
        with pytest.raises(InvalidRangeError):
            state.create_table("t", num_partitions)

    def test_invalid_range_does_not_register(self) -> None:
        state = ServerState()
        with pytest.raises(InvalidRangeError):
            state.create_table("t", 0)
        assert state.list_tables() == []

    def test_event_log_is_bounded(self) -> None:
        state = ServerState()
        state.create_table("t", 2)
        for i in range(150):
            state.record_ingest("t", i)
        assert len(state.task_history) == 100
        assert state.get_recent_events(limit=5)[-1]["details"] == {"name": "t", "accepted": 149}

    def test_summaries(self) -> None:
        state = ServerState()
        aggregator, _ = state.create_table("t", 4)
        aggregator.ingest_many(["a", "b"])
        summary = state.get_all_tables()["t"]
        assert summary["stats"]["total"] == 2
        assert all(isinstance(bucket, str) for bucket in summary["counts"])

    def test_restore_closed_table(self) -> None:
        state = ServerState()
        aggregator = state.restore_table("t", 4, {"1": 3}, closed=True)
        assert aggregator.closed
        assert dict(state.get_table("t").snapshot()) == {1: 3}

    def test_get_unknown_table(self) -> None:
        with pytest.raises(KeyError):
            ServerState().get_table("missing")
