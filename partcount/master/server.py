"""
Partition Counter Master Server

This is the main master node that:
1. Hosts named partition aggregators ("tables")
2. Accepts item batches from workers over gRPC and counts them per bucket
3. Serves snapshots of the counts
4. Checkpoints counts to disk and restores them on startup
5. Exposes HTTP status endpoint for dashboard
"""

import argparse
import json
import threading
import time
from concurrent import futures
from datetime import datetime
from http.server import HTTPServer, BaseHTTPRequestHandler

import grpc

from partcount.utils import config
from partcount.utils.errors import (
    AggregatorClosedError,
    InvalidRangeError,
    UnserializableInputError,
)

from .checkpoint import PartitionCheckpoint
from .rpc import add_PartitionCounterServicer_to_server
from .state import ServerState, TableExistsError


class PartitionCounterServicer:
    """gRPC servicer; translates core errors into status codes.

    - InvalidRangeError, UnserializableInputError -> INVALID_ARGUMENT
    - AggregatorClosedError -> FAILED_PRECONDITION
    - unknown table -> NOT_FOUND
    - table name taken with another range -> ALREADY_EXISTS
    """

    def __init__(self, state=None, default_partitions=None):
        self.state = state or ServerState()
        if default_partitions is None:
            default_partitions = config.default_partitions()
        self.default_partitions = default_partitions

    def _check_request(self, request, context):
        if not isinstance(request, dict):
            context.abort(grpc.StatusCode.INVALID_ARGUMENT, "Request must be a JSON object")

    def _table(self, request, context):
        self._check_request(request, context)
        name = request.get('name')
        if not isinstance(name, str) or not name:
            context.abort(grpc.StatusCode.INVALID_ARGUMENT, "Request needs a non-empty 'name'")
        try:
            return name, self.state.get_table(name)
        except KeyError:
            context.abort(grpc.StatusCode.NOT_FOUND, f"No such table: {name}")

    def CreateTable(self, request, context):
        """Create a table (idempotent for the same range and mode)."""
        self._check_request(request, context)
        name = request.get('name')
        if not isinstance(name, str) or not name:
            context.abort(grpc.StatusCode.INVALID_ARGUMENT, "Request needs a non-empty 'name'")

        num_partitions = request.get('num_partitions', self.default_partitions)
        strict = bool(request.get('strict', True))

        try:
            aggregator, created = self.state.create_table(name, num_partitions, strict=strict)
        except InvalidRangeError as e:
            context.abort(grpc.StatusCode.INVALID_ARGUMENT, str(e))
        except TableExistsError as e:
            context.abort(grpc.StatusCode.ALREADY_EXISTS, str(e))

        return {
            'created': created,
            'name': name,
            'num_partitions': aggregator.num_partitions,
        }

    def Ingest(self, request, context):
        """Count a batch of items. Fails fast; earlier items stay counted."""
        name, aggregator = self._table(request, context)
        items = request.get('items', [])
        if not isinstance(items, list):
            context.abort(grpc.StatusCode.INVALID_ARGUMENT, "'items' must be a list")

        try:
            aggregator.ingest_many(items)
        except UnserializableInputError as e:
            context.abort(grpc.StatusCode.INVALID_ARGUMENT, str(e))
        except AggregatorClosedError as e:
            context.abort(grpc.StatusCode.FAILED_PRECONDITION, str(e))

        self.state.record_ingest(name, len(items))
        return {'accepted': len(items), 'total': aggregator.total()}

    def Snapshot(self, request, context):
        """Return the current counts of a table."""
        name, aggregator = self._table(request, context)
        closed = aggregator.closed
        counts = aggregator.snapshot()
        return {
            'name': name,
            'counts': {str(bucket): count for bucket, count in sorted(counts.items())},
            'total': sum(counts.values()),
            'closed': closed,
            'num_partitions': aggregator.num_partitions,
        }

    def Close(self, request, context):
        """Close a table; closing twice is fine."""
        name, _ = self._table(request, context)
        self.state.close_table(name)
        return {'closed': True}

    def ListTables(self, request, context):
        return {'tables': self.state.list_tables()}

    def get_status(self):
        """Get current system status for visualization."""
        tables = self.state.get_all_tables()
        if not tables:
            status = 'idle'
        elif all(t['closed'] for t in tables.values()):
            status = 'completed'
        else:
            status = 'running'

        return {
            'tables': tables,
            'status': status,
            'events': self.state.get_recent_events(),
            'last_update': datetime.now().isoformat()
        }


def create_server(servicer, port=50051, max_workers=10, host='[::]'):
    """Build (but do not start) the gRPC server

    Returns:
        (server, bound_port); port=0 picks a free port
    """
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=max_workers))
    add_PartitionCounterServicer_to_server(servicer, server)
    bound_port = server.add_insecure_port(f'{host}:{port}')
    return server, bound_port


def create_status_server(servicer, http_port=8080, host='0.0.0.0'):
    """HTTP server answering GET /status and /api/status with JSON"""
    class StatusHandler(BaseHTTPRequestHandler):
        def log_message(self, format, *args):
            pass  # Suppress HTTP logging

        def do_GET(self):
            if self.path in ('/status', '/api/status'):
                body = json.dumps(servicer.get_status()).encode()
                self.send_response(200)
                self.send_header('Content-Type', 'application/json')
                self.send_header('Access-Control-Allow-Origin', '*')
                self.send_header('Content-Length', str(len(body)))
                self.end_headers()
                self.wfile.write(body)
            else:
                self.send_response(404)
                self.end_headers()

    return HTTPServer((host, http_port), StatusHandler)


def format_status(status):
    """Plain-text status block printed by the master"""
    lines = [
        '=' * 60,
        f"SYSTEM STATUS - {status['last_update']}",
        '=' * 60,
        f"Tables: {len(status['tables'])} ({status['status']})",
    ]
    for name, table in sorted(status['tables'].items()):
        stats = table['stats']
        state = 'closed' if table['closed'] else 'open'
        lines.append(
            f"  {name}: N={table['num_partitions']} {state} | "
            f"Total: {stats['total']} | Min: {stats['min']} | Max: {stats['max']} | "
            f"Empty: {stats['empty_buckets']}"
        )
    lines.append('=' * 60)
    return '\n'.join(lines)


def serve(port=50051, http_port=8080, num_partitions=None, algorithm=None,
          checkpoint_dir=None, checkpoint_interval=None, restore=True,
          status_interval=10):
    """Start the master server and block until interrupted.

    Args:
        port: gRPC server port
        http_port: HTTP status endpoint port for dashboard
        num_partitions: Default range for tables created without one
        algorithm: Hash algorithm name used by every table
        checkpoint_dir: Where checkpoints are written
        checkpoint_interval: Seconds between checkpoints (0 = only on shutdown)
        restore: Load tables from the latest checkpoint before serving
        status_interval: Seconds between printed status blocks (0 = never)
    """
    state = ServerState(algorithm=algorithm or config.hash_algorithm())
    servicer = PartitionCounterServicer(state, default_partitions=num_partitions)

    checkpoint = PartitionCheckpoint(
        checkpoint_dir=checkpoint_dir or config.checkpoint_dir(),
        interval=checkpoint_interval if checkpoint_interval is not None else config.checkpoint_interval()
    )
    if restore:
        checkpoint.restore(state)

    server, bound_port = create_server(servicer, port)
    server.start()
    print(f"[{datetime.now()}] Master server started on port {bound_port}")

    http_server = create_status_server(servicer, http_port)
    http_thread = threading.Thread(target=http_server.serve_forever, daemon=True)
    http_thread.start()
    print(f"[{datetime.now()}] HTTP status server started on port {http_port}")

    if checkpoint.interval > 0:
        checkpoint.start_periodic_checkpointing(state)

    def print_status():
        while True:
            time.sleep(status_interval)
            print("\n" + format_status(servicer.get_status()) + "\n")

    if status_interval:
        threading.Thread(target=print_status, daemon=True).start()

    try:
        server.wait_for_termination()
    except KeyboardInterrupt:
        print(f"\n[{datetime.now()}] Shutting down master server...")
    finally:
        checkpoint.stop()
        http_server.shutdown()
        server.stop(0)
        checkpoint.save_checkpoint(state)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Partition Counter Master Server')
    parser.add_argument('--port', '-p', type=int, default=50051,
                        help='gRPC server port')
    parser.add_argument('--http-port', type=int, default=8080,
                        help='HTTP status port')
    parser.add_argument('--partitions', '-n', type=int, default=None,
                        help='Default number of partitions (N) for new tables')
    parser.add_argument('--algorithm', '-a', type=str, default=None,
                        help='Hash algorithm (murmur3, fnv1a, crc32, md5)')
    parser.add_argument('--checkpoint-dir', type=str, default=None,
                        help='Checkpoint directory')
    parser.add_argument('--checkpoint-interval', type=int, default=None,
                        help='Seconds between checkpoints (0 = only on shutdown)')
    parser.add_argument('--no-restore', action='store_true',
                        help='Ignore any existing checkpoint')

    args = parser.parse_args(argv)

    serve(
        port=args.port,
        http_port=args.http_port,
        num_partitions=args.partitions,
        algorithm=args.algorithm,
        checkpoint_dir=args.checkpoint_dir,
        checkpoint_interval=args.checkpoint_interval,
        restore=not args.no_restore,
    )


if __name__ == '__main__':
    main()
