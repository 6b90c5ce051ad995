import threading


class BucketCounters:
    """Per-bucket integer counters with a choice of increment mode.

    strict=True:  every add() is a critical section; no update is ever lost.
    strict=False: add() is an unsynchronized read-modify-write; faster under
                  a single writer, but concurrent writers may lose updates.

    copy() always runs under the lock in both modes, so a copy never sees a
    half-applied add() from a strict writer.
    """

    def __init__(self, strict=True):
        self.strict = strict
        self.lock = threading.Lock()
        self._counts = {}  # bucket -> count, only buckets with count > 0

    def add(self, bucket, n=1, precheck=None):
        """Add n to a bucket.

        Args:
            bucket: Bucket index
            n: Amount to add (must be positive)
            precheck: Optional callable run just before the increment, inside
                      the critical section in strict mode; may raise to veto it
        """
        if self.strict:
            with self.lock:
                if precheck is not None:
                    precheck()
                self._counts[bucket] = self._counts.get(bucket, 0) + n
        else:
            if precheck is not None:
                precheck()
            self._counts[bucket] = self._counts.get(bucket, 0) + n

    def get(self, bucket):
        return self._counts.get(bucket, 0)

    def preload(self, counts):
        """Replace all counts (used when restoring from a checkpoint)"""
        with self.lock:
            self._counts = {bucket: count for bucket, count in counts.items() if count > 0}

    def copy(self):
        with self.lock:
            return dict(self._counts)

    def total(self):
        with self.lock:
            return sum(self._counts.values())

    def __len__(self):
        return len(self._counts)
