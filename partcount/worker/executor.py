from concurrent import futures

from partcount.framework.mapper import MapPhase, line_map


class IngestExecutor:
    """Runs map tasks over input chunks concurrently into one aggregator.

    Each chunk becomes one task on a thread pool. All tasks share the same
    PartitionAggregator, which serializes the increments itself.
    """

    def __init__(self, aggregator, map_function=None, max_workers=4):
        """
        Args:
            aggregator: PartitionAggregator receiving every item
            map_function: User-defined map function (default: line_map)
            max_workers: Thread pool size
        """
        self.aggregator = aggregator
        self.map_function = map_function or line_map
        self.max_workers = max_workers
        self.map_phase = MapPhase(self.map_function, aggregator)

    def execute_map(self, task_id, input_data):
        """Run one map task; returns the number of items ingested"""
        return self.map_phase.execute(task_id, input_data)

    def execute(self, chunks):
        """Map every chunk concurrently.

        Every task runs to completion (or failure) before this returns.
        Items from failed tasks that were counted before the failure stay
        counted.

        Args:
            chunks: Iterable of input values, one map task each

        Returns:
            The aggregator snapshot after all tasks finished

        Raises:
            The first task failure, in chunk order
        """
        with futures.ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            pending = [
                pool.submit(self.execute_map, f"map_{i}", chunk)
                for i, chunk in enumerate(chunks)
            ]

        _raise_first_failure(pending)
        return self.aggregator.snapshot()

    def execute_items(self, items):
        """Ingest a ready-made collection of items across the pool"""
        parts = split_items(items, self.max_workers)
        with futures.ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            pending = [pool.submit(self.aggregator.ingest_many, part) for part in parts]

        _raise_first_failure(pending)
        return self.aggregator.snapshot()


def split_items(items, num_chunks):
    """Round-robin split of items into at most num_chunks non-empty lists"""
    if num_chunks < 1:
        raise ValueError(f"num_chunks must be >= 1, got {num_chunks}")

    chunks = [[] for _ in range(num_chunks)]
    for i, item in enumerate(items):
        chunks[i % num_chunks].append(item)
    return [chunk for chunk in chunks if chunk]


def _raise_first_failure(pending):
    for future in pending:
        error = future.exception()
        if error is not None:
            raise error
