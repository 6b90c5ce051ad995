class MapPhase:
    """Turns raw input into items and feeds them to an aggregator"""
    
    def __init__(self, map_function, aggregator):
        """
        Args:
            map_function: User-defined map function(key, value) -> iterable of items
            aggregator: PartitionAggregator receiving the items
        """
        self.map_function = map_function
        self.aggregator = aggregator
    
    def execute(self, input_key, input_value):
        """Execute map function and count its items
        
        Args:
            input_key: Input key (e.g., chunk id)
            input_value: Input value (e.g., text chunk)
        
        Returns:
            Number of items ingested
        
        Raises:
            Whatever the aggregator raises; items before the failing one
            stay counted
        """
        produced = 0
        
        def counted(items):
            nonlocal produced
            for item in items:
                yield item
                produced += 1
        
        self.aggregator.ingest_many(counted(self.map_function(input_key, input_value)))
        return produced


# Example map function for word count
def word_count_map(key, contents):
    """Map function for word count
    
    Yields:
        Lower-cased alphanumeric words
    """
    words = contents.lower().split()
    for word in words:
        # Clean word
        word = ''.join(c for c in word if c.isalnum())
        if word:
            yield word


def line_map(key, contents):
    """Map function that treats every non-empty line as one item"""
    for line in contents.splitlines():
        line = line.strip()
        if line:
            yield line
