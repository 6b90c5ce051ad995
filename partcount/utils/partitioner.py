from .canonical import canonicalize
from .errors import InvalidRangeError
from .hashing import get_hash_function


# Same bounds as erlang:phash2/2
MAX_RANGE = 2 ** 32
DEFAULT_RANGE = 2 ** 27

DEFAULT_ALGORITHM = 'murmur3'


def validate_range(range_):
    """Return range_ if it is a usable hash range, else raise InvalidRangeError"""
    if isinstance(range_, bool) or not isinstance(range_, int):
        raise InvalidRangeError(range_, f"Hash range must be an int, got {type(range_).__name__}")
    if range_ < 1 or range_ > MAX_RANGE:
        raise InvalidRangeError(range_, f"Hash range must be in [1, {MAX_RANGE}], got {range_}")
    return range_


def phash(item, range_=DEFAULT_RANGE, *, seed=0, algorithm=DEFAULT_ALGORITHM):
    """Portable hash of item reduced into [0, range_).

    The result depends only on the canonical bytes of item, range_, seed
    and algorithm, so it is stable across calls, processes and runs
    (unlike the builtin hash(), which is salted per process).

    Args:
        item: Any value canonicalize() accepts
        range_: Number of buckets, 1 <= range_ <= 2**32
        seed: Explicit hash seed
        algorithm: Name of a function in hashing.HASH_FUNCTIONS

    Returns:
        int bucket index in [0, range_)

    Raises:
        InvalidRangeError: bad range_
        UnserializableInputError: item has no canonical form
    """
    validate_range(range_)
    hash_fn = get_hash_function(algorithm)
    return hash_fn(canonicalize(item), seed) % range_


class Partitioner:
    """Hash-based partitioning of items into a fixed number of buckets.

    Holds no mutable state, so one instance can be shared between threads
    and between aggregators.
    """

    __slots__ = ('_num_partitions', '_seed', '_algorithm', '_hash_fn')

    def __init__(self, num_partitions, *, seed=0, algorithm=DEFAULT_ALGORITHM):
        self._num_partitions = validate_range(num_partitions)
        self._seed = seed
        self._algorithm = algorithm
        self._hash_fn = get_hash_function(algorithm)

    @property
    def num_partitions(self):
        return self._num_partitions

    @property
    def seed(self):
        return self._seed

    @property
    def algorithm(self):
        return self._algorithm

    def hash(self, item, range_=None):
        """Bucket index of item in [0, range_), defaulting to num_partitions"""
        if range_ is None:
            range_ = self._num_partitions
        else:
            validate_range(range_)
        return self._hash_fn(canonicalize(item), self._seed) % range_

    def get_partition(self, key):
        """Get partition ID for a key using hash(key) mod R"""
        return self._hash_fn(canonicalize(key), self._seed) % self._num_partitions

    def partition_data(self, data):
        """Partition a dictionary of key-value pairs

        Args:
            data: Dict of {key: value}

        Returns:
            List of dicts, one per partition
        """
        partitions = [{} for _ in range(self._num_partitions)]

        for key, value in data.items():
            partition_id = self.get_partition(key)
            partitions[partition_id][key] = value

        return partitions

    def _key(self):
        return (self._num_partitions, self._seed, self._algorithm)

    def __eq__(self, other):
        if not isinstance(other, Partitioner):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return (f"Partitioner(num_partitions={self._num_partitions}, "
                f"seed={self._seed}, algorithm={self._algorithm!r})")
