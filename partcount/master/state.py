import threading
import time
from datetime import datetime

from partcount.framework.aggregator import PartitionAggregator
from partcount.framework.reducer import distribution_stats
from partcount.utils.hashing import get_hash_function
from partcount.utils.partitioner import Partitioner, validate_range


class TableExistsError(Exception):
    """A table with this name already exists with a different range or mode"""


class ServerState:
    """Named aggregators ("tables") hosted by the master, plus an event log.

    The lock guards the table registry only. Each PartitionAggregator
    synchronizes its own counts, so ingestion into different tables (or
    into the same table from several RPC threads) does not hold this lock.
    """

    def __init__(self, algorithm='murmur3'):
        get_hash_function(algorithm)  # fail fast on unknown names
        self.algorithm = algorithm
        self.tables = {}  # name -> PartitionAggregator
        self.created_at = {}  # name -> timestamp
        self.task_history = []  # For visualization: list of events
        self.lock = threading.Lock()

    def _log_event(self, event_type, details):
        """Log an event for visualization."""
        self.task_history.append({
            'timestamp': time.time(),
            'event': event_type,
            'details': details
        })
        # Keep only last 100 events
        if len(self.task_history) > 100:
            self.task_history = self.task_history[-100:]

    def create_table(self, name, num_partitions, strict=True):
        """Create a table, or return the existing one if it has the same range and mode

        Returns:
            (aggregator, created)

        Raises:
            InvalidRangeError: num_partitions is not a valid range
            TableExistsError: name is taken with a different range or strict mode
        """
        validate_range(num_partitions)

        with self.lock:
            existing = self.tables.get(name)
            if existing is not None:
                if existing.num_partitions != num_partitions:
                    raise TableExistsError(
                        f"Table {name!r} already exists with {existing.num_partitions} partitions"
                    )
                if existing.strict != strict:
                    mode = 'strict' if existing.strict else 'relaxed'
                    raise TableExistsError(f"Table {name!r} already exists in {mode} mode")
                return existing, False

            partitioner = Partitioner(num_partitions, algorithm=self.algorithm)
            aggregator = PartitionAggregator(num_partitions, partitioner=partitioner, strict=strict)
            self.tables[name] = aggregator
            self.created_at[name] = time.time()
            self._log_event('table_created', {'name': name, 'num_partitions': num_partitions})

        print(f"[{datetime.now()}] Table created: {name} (N={num_partitions})")
        return aggregator, True

    def restore_table(self, name, num_partitions, counts, strict=True, closed=False):
        """Re-create a table from checkpointed counts"""
        partitioner = Partitioner(num_partitions, algorithm=self.algorithm)
        aggregator = PartitionAggregator.from_snapshot(
            num_partitions, counts, partitioner=partitioner, strict=strict
        )
        if closed:
            aggregator.close()

        with self.lock:
            self.tables[name] = aggregator
            self.created_at.setdefault(name, time.time())
            self._log_event('table_restored', {'name': name, 'total': aggregator.total()})
        return aggregator

    def get_table(self, name):
        """Raises KeyError for unknown tables"""
        with self.lock:
            return self.tables[name]

    def close_table(self, name):
        aggregator = self.get_table(name)
        aggregator.close()
        with self.lock:
            self._log_event('table_closed', {'name': name})
        print(f"[{datetime.now()}] Table closed: {name}")
        return aggregator

    def record_ingest(self, name, accepted):
        with self.lock:
            self._log_event('ingest', {'name': name, 'accepted': accepted})

    def list_tables(self):
        with self.lock:
            return sorted(self.tables)

    def get_all_tables(self):
        """Summaries of every table for status output"""
        with self.lock:
            tables = dict(self.tables)

        summaries = {}
        for name, aggregator in tables.items():
            counts = aggregator.snapshot()
            summaries[name] = {
                'num_partitions': aggregator.num_partitions,
                'strict': aggregator.strict,
                'closed': aggregator.closed,
                'counts': {str(bucket): count for bucket, count in sorted(counts.items())},
                'stats': distribution_stats(counts, aggregator.num_partitions),
            }
        return summaries

    def get_recent_events(self, limit=20):
        with self.lock:
            return list(self.task_history[-limit:])
