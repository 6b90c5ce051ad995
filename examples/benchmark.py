#!/usr/bin/env python3
"""
Partition Counter Benchmark Script

This script runs in-process and measures:
1. How evenly each hash algorithm spreads "Some data - i" strings over N buckets
2. Ingestion throughput with 1 thread vs several threads
3. How many increments relaxed mode loses under contention

Usage:
    python3 examples/benchmark.py
    python3 examples/benchmark.py --test distribution
    python3 examples/benchmark.py --test threads
    python3 examples/benchmark.py --test relaxed --items 200000
"""

import argparse
import time

from partcount.framework.aggregator import PartitionAggregator
from partcount.framework.reducer import distribution_stats
from partcount.utils.hashing import HASH_FUNCTIONS
from partcount.utils.partitioner import Partitioner
from partcount.worker.executor import IngestExecutor


class PartitionBenchmark:
    def __init__(self, num_items=100000, num_partitions=10):
        self.num_items = num_items
        self.num_partitions = num_partitions
        self.items = [f"Some data - {i}" for i in range(1, num_items + 1)]
        self.results = {}

    def test_distribution(self):
        """Spread of items over buckets for every algorithm."""
        print(f"\nDistribution of {self.num_items} items over {self.num_partitions} buckets")
        for algorithm in sorted(HASH_FUNCTIONS):
            partitioner = Partitioner(self.num_partitions, algorithm=algorithm)
            aggregator = PartitionAggregator(self.num_partitions, partitioner=partitioner)

            start = time.perf_counter()
            aggregator.ingest_many(self.items)
            elapsed = time.perf_counter() - start

            stats = distribution_stats(aggregator.snapshot(), self.num_partitions)
            self.results[f'distribution_{algorithm}'] = stats
            print(f"  {algorithm:<8} min={stats['min']:<7} max={stats['max']:<7} "
                  f"imbalance={stats['imbalance']:.4f} time={elapsed:.2f}s")

    def test_threads(self, thread_counts=(1, 2, 4, 8)):
        """Throughput of strict ingestion with different pool sizes."""
        print(f"\nStrict ingestion of {self.num_items} items")
        for workers in thread_counts:
            aggregator = PartitionAggregator(self.num_partitions)
            executor = IngestExecutor(aggregator, max_workers=workers)

            start = time.perf_counter()
            snapshot = executor.execute_items(self.items)
            elapsed = time.perf_counter() - start

            total = sum(snapshot.values())
            self.results[f'threads_{workers}'] = {'seconds': elapsed, 'total': total}
            print(f"  {workers} thread(s): {elapsed:.2f}s, "
                  f"{self.num_items / elapsed:,.0f} items/s, total={total}")

    def test_relaxed(self, workers=8):
        """Lost updates in relaxed mode under contention."""
        print(f"\nRelaxed vs strict with {workers} threads")
        for strict in (True, False):
            aggregator = PartitionAggregator(self.num_partitions, strict=strict)
            executor = IngestExecutor(aggregator, max_workers=workers)

            start = time.perf_counter()
            snapshot = executor.execute_items(self.items)
            elapsed = time.perf_counter() - start

            lost = self.num_items - sum(snapshot.values())
            mode = 'strict' if strict else 'relaxed'
            self.results[f'mode_{mode}'] = {'seconds': elapsed, 'lost': lost}
            print(f"  {mode:<8} {elapsed:.2f}s, lost updates: {lost}")

    def print_summary(self):
        print("\n" + "=" * 60)
        print("BENCHMARK SUMMARY")
        print("=" * 60)
        for name, result in self.results.items():
            print(f"  {name}: {result}")


def main():
    parser = argparse.ArgumentParser(description='Partition counter benchmark')
    parser.add_argument('--test', choices=['distribution', 'threads', 'relaxed', 'all'],
                        default='all', help='Which benchmark to run')
    parser.add_argument('--items', type=int, default=100000,
                        help='Number of items')
    parser.add_argument('--partitions', type=int, default=10,
                        help='Number of buckets (N)')
    args = parser.parse_args()

    benchmark = PartitionBenchmark(num_items=args.items, num_partitions=args.partitions)

    if args.test in ('distribution', 'all'):
        benchmark.test_distribution()
    if args.test in ('threads', 'all'):
        benchmark.test_threads()
    if args.test in ('relaxed', 'all'):
        benchmark.test_relaxed()

    benchmark.print_summary()


if __name__ == '__main__':
    main()
