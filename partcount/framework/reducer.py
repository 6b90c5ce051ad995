from collections import Counter


class ReducePhase:
    """Merges bucket counts produced by several aggregators"""
    
    def execute(self, snapshots):
        """Sum counts per bucket
        
        Args:
            snapshots: Iterable of {bucket: count} mappings
        
        Returns:
            Dict of {bucket: total}, sorted by bucket
        """
        return merge_counts(snapshots)


def merge_counts(snapshots):
    merged = Counter()
    for counts in snapshots:
        for bucket, count in counts.items():
            merged[int(bucket)] += count
    return {bucket: merged[bucket] for bucket in sorted(merged) if merged[bucket]}


def distribution_stats(counts, num_partitions):
    """Summarize how evenly items spread over the buckets
    
    Args:
        counts: {bucket: count} (sparse; missing buckets count as 0)
        num_partitions: Hash range N
    
    Returns:
        Dict with total, min, max, mean, empty_buckets and imbalance
        (max / mean, 1.0 is perfectly even, 0.0 when there are no items)
    """
    total = sum(counts.values())
    occupied = [count for count in counts.values() if count > 0]
    empty_buckets = num_partitions - len(occupied)
    mean = total / num_partitions
    
    return {
        'total': total,
        'min': 0 if empty_buckets else min(occupied, default=0),
        'max': max(occupied, default=0),
        'mean': mean,
        'empty_buckets': empty_buckets,
        'imbalance': (max(occupied) / mean) if total else 0.0,
    }
