class PartitionError(Exception):
    """Base class for partitioning and aggregation errors"""


class InvalidRangeError(PartitionError, ValueError):
    """Raised when a hash range is not an integer in [1, MAX_RANGE]"""
    
    def __init__(self, range_, message=None):
        self.range = range_
        super().__init__(message or f"Invalid hash range: {range_!r} (must be an int >= 1)")


class UnserializableInputError(PartitionError, TypeError):
    """Raised when an item has no canonical byte representation"""
    
    def __init__(self, item, reason):
        self.item = item
        self.reason = reason
        super().__init__(f"Cannot canonicalize {type(item).__name__}: {reason}")


class AggregatorClosedError(PartitionError, RuntimeError):
    """Raised when ingesting into an aggregator after close()"""
    
    def __init__(self):
        super().__init__("Aggregator is closed; create a new one to keep ingesting")
