from types import MappingProxyType

from partcount.utils.errors import AggregatorClosedError
from partcount.utils.partitioner import Partitioner, validate_range

from .counters import BucketCounters


class PartitionAggregator:
    """Routes items to buckets and keeps a running count per bucket.

    Lifecycle:
    - Open: accepts ingest() and snapshot()
    - Closed (after close()): ingest() raises AggregatorClosedError,
      snapshot() still returns the last counts

    Counts are sparse: a bucket only appears once it has received an item.

    Thread safety:
    - Hashing runs outside any lock (the partitioner is stateless)
    - In strict mode each increment, and the closed check guarding it, is a
      single critical section, so concurrent ingest() calls never lose or
      double-count items and snapshot() is always a point-in-time copy
    - In relaxed mode increments are unsynchronized; totals are only exact
      for a single writer
    """

    def __init__(self, num_partitions, *, partitioner=None, strict=True):
        """
        Args:
            num_partitions: Hash range N; buckets are 0..N-1
            partitioner: Optional shared Partitioner; must have the same N
            strict: Use atomic increments (default) or relaxed ones

        Raises:
            InvalidRangeError: if num_partitions is not a valid range
            ValueError: if partitioner disagrees with num_partitions
        """
        validate_range(num_partitions)
        if partitioner is None:
            partitioner = Partitioner(num_partitions)
        elif partitioner.num_partitions != num_partitions:
            raise ValueError(f"Partitioner range {partitioner.num_partitions} "
                             f"does not match num_partitions={num_partitions}")

        self._partitioner = partitioner
        self._counters = BucketCounters(strict=strict)
        self._closed = False

    @classmethod
    def new(cls, range_, **kwargs):
        """Create an empty aggregator for the given hash range"""
        return cls(range_, **kwargs)

    @classmethod
    def from_snapshot(cls, num_partitions, counts, **kwargs):
        """Create an aggregator pre-loaded with counts from an earlier snapshot.

        Args:
            num_partitions: Hash range N
            counts: Mapping of {bucket: count}; keys may be ints or numeric
                    strings (as they come back from JSON)

        Raises:
            ValueError: bucket outside [0, N) or negative count
        """
        aggregator = cls(num_partitions, **kwargs)
        restored = {}
        for bucket, count in counts.items():
            bucket = int(bucket)
            count = int(count)
            if not 0 <= bucket < num_partitions:
                raise ValueError(f"Bucket {bucket} outside [0, {num_partitions})")
            if count < 0:
                raise ValueError(f"Negative count {count} for bucket {bucket}")
            restored[bucket] = count
        aggregator._counters.preload(restored)
        return aggregator

    @property
    def num_partitions(self):
        return self._partitioner.num_partitions

    @property
    def partitioner(self):
        return self._partitioner

    @property
    def strict(self):
        return self._counters.strict

    @property
    def closed(self):
        return self._closed

    def _ensure_open(self):
        if self._closed:
            raise AggregatorClosedError()

    def ingest(self, item):
        """Count one item in its bucket.

        Raises:
            AggregatorClosedError: after close()
            UnserializableInputError: item has no canonical form
        """
        self._ensure_open()
        bucket = self._partitioner.get_partition(item)
        self._counters.add(bucket, precheck=self._ensure_open)

    def ingest_many(self, items):
        """Ingest items in order, stopping at the first failure.

        Items counted before the failure stay counted.
        """
        for item in items:
            self.ingest(item)

    def snapshot(self):
        """Immutable point-in-time copy of {bucket: count}"""
        return MappingProxyType(self._counters.copy())

    def total(self):
        """Number of items counted so far"""
        return self._counters.total()

    def close(self):
        """Stop accepting items. Calling it again is a no-op."""
        with self._counters.lock:
            self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def __repr__(self):
        state = 'closed' if self._closed else 'open'
        mode = 'strict' if self.strict else 'relaxed'
        return (f"<PartitionAggregator N={self.num_partitions} {mode} {state} "
                f"buckets={len(self._counters)}>")
