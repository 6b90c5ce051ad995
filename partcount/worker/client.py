import argparse
import os
import sys
from datetime import datetime

import grpc

from partcount.framework.mapper import line_map, word_count_map
from partcount.master.rpc import PartitionCounterStub
from partcount.utils import config


MAP_FUNCTIONS = {
    'lines': line_map,
    'words': word_count_map,
}


class PartitionClient:
    """Thin client for the master's PartitionCounter service.

    Raises grpc.RpcError on failures; the status code tells which core error
    happened on the server (INVALID_ARGUMENT, FAILED_PRECONDITION, NOT_FOUND,
    ALREADY_EXISTS).
    """

    def __init__(self, master_address=None, timeout=10):
        self.master_address = master_address or config.master_address()
        self.timeout = timeout
        self.channel = grpc.insecure_channel(self.master_address)
        self.stub = PartitionCounterStub(self.channel)

    def create_table(self, name, num_partitions, strict=True):
        return self.stub.CreateTable(
            {'name': name, 'num_partitions': num_partitions, 'strict': strict},
            timeout=self.timeout
        )

    def ingest(self, name, items):
        """Send a batch of items; returns {accepted, total}"""
        return self.stub.Ingest({'name': name, 'items': list(items)}, timeout=self.timeout)

    def snapshot(self, name):
        """Counts of a table, with int bucket keys"""
        response = self.stub.Snapshot({'name': name}, timeout=self.timeout)
        response['counts'] = {int(bucket): count for bucket, count in response['counts'].items()}
        return response

    def close_table(self, name):
        return self.stub.Close({'name': name}, timeout=self.timeout)

    def list_tables(self):
        return self.stub.ListTables({}, timeout=self.timeout)['tables']

    def close(self):
        self.channel.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False


def load_input_data(file_path, chunk_size=None):
    """Load and split input file into chunks.

    Args:
        file_path: Path to the input file
        chunk_size: Number of lines per chunk (None = one line per chunk)

    Returns:
        List of text chunks
    """
    if not os.path.exists(file_path):
        print(f"Warning: File {file_path} not found")
        return []

    with open(file_path, 'r', encoding='utf-8') as f:
        lines = [line.strip() for line in f if line.strip()]

    if chunk_size is None or chunk_size <= 1:
        return lines

    # Group lines into chunks
    chunks = []
    for i in range(0, len(lines), chunk_size):
        chunk = '\n'.join(lines[i:i + chunk_size])
        chunks.append(chunk)

    return chunks


def run_worker(worker_id, input_path, table, num_partitions, master_address=None,
               map_function=None, chunk_size=100, batch_size=500):
    """Map an input file and push its items to the master in batches.

    Returns:
        Number of items accepted by the master
    """
    map_function = map_function or line_map
    chunks = load_input_data(input_path, chunk_size=chunk_size)
    print(f"[{datetime.now()}] Worker {worker_id} loaded {len(chunks)} chunks from {input_path}")

    sent = 0
    with PartitionClient(master_address) as client:
        response = client.create_table(table, num_partitions)
        if response['created']:
            print(f"[{datetime.now()}] Worker {worker_id} created table {table} (N={num_partitions})")

        batch = []
        for i, chunk in enumerate(chunks):
            batch.extend(map_function(f"{worker_id}_{i}", chunk))
            while len(batch) >= batch_size:
                sent += client.ingest(table, batch[:batch_size])['accepted']
                batch = batch[batch_size:]
        if batch:
            sent += client.ingest(table, batch)['accepted']

        snapshot = client.snapshot(table)

    print(f"[{datetime.now()}] Worker {worker_id} sent {sent} items; "
          f"table {table} now holds {snapshot['total']}")
    return sent


def main(argv=None):
    parser = argparse.ArgumentParser(description='Partition Counter Worker')
    parser.add_argument('worker_id', help='Worker name used in log lines')
    parser.add_argument('--input', '-i', type=str, default='data/input/sample.txt',
                        help='Input file path')
    parser.add_argument('--table', '-t', type=str, default='default',
                        help='Table to count into')
    parser.add_argument('--partitions', '-n', type=int, default=None,
                        help='Number of partitions (N) if the table does not exist yet')
    parser.add_argument('--map', choices=sorted(MAP_FUNCTIONS), default='lines',
                        help='How to turn input text into items')
    parser.add_argument('--chunk-size', '-c', type=int, default=100,
                        help='Lines per map chunk')
    parser.add_argument('--batch-size', '-b', type=int, default=500,
                        help='Items per Ingest call')
    parser.add_argument('--master', type=str, default=None,
                        help='Master address (default: $MASTER_ADDRESS or localhost:50051)')

    args = parser.parse_args(argv)

    try:
        run_worker(
            args.worker_id,
            args.input,
            args.table,
            args.partitions if args.partitions is not None else config.default_partitions(),
            master_address=args.master,
            map_function=MAP_FUNCTIONS[args.map],
            chunk_size=args.chunk_size,
            batch_size=args.batch_size,
        )
    except grpc.RpcError as e:
        print(f"[{datetime.now()}] Worker {args.worker_id} failed: {e.code().name}: {e.details()}")
        return 1
    except KeyboardInterrupt:
        print(f"\n[{datetime.now()}] Worker {args.worker_id} interrupted")
        return 130
    return 0


if __name__ == '__main__':
    sys.exit(main())
