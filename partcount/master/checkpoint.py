import json
import os
import threading
import time
from datetime import datetime


class PartitionCheckpoint:
    """Periodically saves every table's counts to disk and restores them"""

    def __init__(self, checkpoint_dir='./checkpoints', interval=30):
        self.checkpoint_dir = checkpoint_dir
        self.interval = interval  # seconds between checkpoints
        self.running = False
        self.checkpoint_thread = None
        self._stop_event = threading.Event()
        self._save_lock = threading.Lock()  # one writer of checkpoint.tmp at a time

        os.makedirs(checkpoint_dir, exist_ok=True)

    @property
    def checkpoint_path(self):
        return os.path.join(self.checkpoint_dir, 'checkpoint.json')

    def save_checkpoint(self, state):
        """Save the current counts of every table"""
        with state.lock:
            tables = dict(state.tables)

        checkpoint_data = {
            'timestamp': time.time(),
            'algorithm': state.algorithm,
            'tables': {name: self._serialize_table(agg) for name, agg in tables.items()}
        }

        # Write to temporary file first
        temp_path = os.path.join(self.checkpoint_dir, 'checkpoint.tmp')

        with self._save_lock:
            with open(temp_path, 'w') as f:
                json.dump(checkpoint_data, f, indent=2)

            # Atomic rename
            os.replace(temp_path, self.checkpoint_path)

        print(f"[{datetime.now()}] Checkpoint saved ({len(tables)} tables)")

    def load_checkpoint(self):
        """Load the most recent checkpoint, or None if there is none"""
        if not os.path.exists(self.checkpoint_path):
            return None

        try:
            with open(self.checkpoint_path, 'r') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            print(f"[{datetime.now()}] Failed to load checkpoint: {e}")
            return None

    def restore(self, state):
        """Re-create tables from the latest checkpoint

        Returns:
            Number of tables restored
        """
        data = self.load_checkpoint()
        if not data:
            return 0

        if data.get('algorithm', state.algorithm) != state.algorithm:
            raise ValueError(
                f"Checkpoint was written with hash algorithm {data['algorithm']!r}, "
                f"server uses {state.algorithm!r}"
            )

        for name, table in data.get('tables', {}).items():
            state.restore_table(
                name,
                table['num_partitions'],
                table.get('counts', {}),
                strict=table.get('strict', True),
                closed=table.get('closed', False),
            )

        restored = len(data.get('tables', {}))
        print(f"[{datetime.now()}] Restored {restored} tables from checkpoint")
        return restored

    def start_periodic_checkpointing(self, state):
        """Start background thread for periodic checkpointing"""
        self.running = True
        self._stop_event.clear()

        def checkpoint_loop():
            while not self._stop_event.wait(self.interval):
                try:
                    self.save_checkpoint(state)
                except (OSError, TypeError, ValueError) as e:
                    print(f"[{datetime.now()}] Checkpoint failed: {e}")

        self.checkpoint_thread = threading.Thread(target=checkpoint_loop, daemon=True)
        self.checkpoint_thread.start()

    def stop(self, timeout=None):
        """Stop checkpointing and wait for an in-flight save to finish"""
        self.running = False
        self._stop_event.set()
        if self.checkpoint_thread is not None:
            self.checkpoint_thread.join(timeout)

    def _serialize_table(self, aggregator):
        """Convert an aggregator to serializable format"""
        return {
            'num_partitions': aggregator.num_partitions,
            'strict': aggregator.strict,
            'closed': aggregator.closed,
            'counts': {str(bucket): count for bucket, count in sorted(aggregator.snapshot().items())}
        }
