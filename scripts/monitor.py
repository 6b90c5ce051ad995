#!/usr/bin/env python3
"""
Live terminal monitor for the partition counter master
Polls the master's HTTP status endpoint and draws per-bucket bars
"""

import argparse
import json
import os
import time
import urllib.error
import urllib.request
from datetime import datetime

from partcount.utils import config


WIDTH = 78


class PartitionMonitor:
    def __init__(self, status_url=None):
        self.status_url = status_url or config.master_http_url()
        self.status = None
        self.error = None

    def clear_screen(self):
        """Clear terminal screen"""
        os.system('clear' if os.name == 'posix' else 'cls')

    def fetch(self):
        """Fetch the master's status JSON"""
        try:
            with urllib.request.urlopen(self.status_url, timeout=2) as response:
                self.status = json.loads(response.read().decode())
                self.error = None
        except (urllib.error.URLError, OSError, ValueError) as e:
            self.error = str(e)

    def render(self):
        """Build the dashboard text"""
        lines = [
            "╔" + "═" * WIDTH + "╗",
            "║" + "Partition Counter Monitor".center(WIDTH) + "║",
            "║" + datetime.now().strftime("%Y-%m-%d %H:%M:%S").center(WIDTH) + "║",
            "╚" + "═" * WIDTH + "╝",
            "",
        ]

        if self.error:
            lines.append(f"  Master unreachable at {self.status_url}: {self.error}")
            return '\n'.join(lines)

        tables = (self.status or {}).get('tables', {})
        if not tables:
            lines.append("  No tables yet...")
            return '\n'.join(lines)

        for name, table in sorted(tables.items()):
            stats = table['stats']
            state = 'closed' if table['closed'] else 'open'
            lines.append(f"┌─ {name} (N={table['num_partitions']}, {state}) ".ljust(WIDTH + 1, "─") + "┐")
            lines.append(f"│  Total: {stats['total']:<10} Min: {stats['min']:<8} Max: {stats['max']:<8} "
                         f"Empty: {stats['empty_buckets']}".ljust(WIDTH + 1) + "│")
            lines.extend(self.render_bars(table['counts'], stats['max']))
            lines.append("└" + "─" * WIDTH + "┘")
            lines.append("")

        return '\n'.join(lines)

    def render_bars(self, counts, max_count, bar_length=50, limit=32):
        """One bar per occupied bucket, first `limit` buckets only"""
        rows = []
        for bucket, count in list(counts.items())[:limit]:
            filled = int(bar_length * count / max_count) if max_count else 0
            bar = "█" * filled + "░" * (bar_length - filled)
            rows.append(f"│  {bucket:>6} [{bar}] {count}".ljust(WIDTH + 1) + "│")
        if len(counts) > limit:
            rows.append(f"│  ... {len(counts) - limit} more buckets".ljust(WIDTH + 1) + "│")
        return rows

    def run(self, interval=3):
        """Run the monitoring loop"""
        print("Starting partition monitor...")
        print("Press Ctrl+C to stop")

        try:
            while True:
                self.fetch()
                self.clear_screen()
                print(self.render())
                time.sleep(interval)
        except KeyboardInterrupt:
            print("\n\nMonitoring stopped.")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Terminal monitor for the partition counter')
    parser.add_argument('--url', type=str, default=None,
                        help='Status URL (default: $MASTER_HTTP_URL)')
    parser.add_argument('--interval', type=float, default=3,
                        help='Refresh interval in seconds')
    args = parser.parse_args()

    PartitionMonitor(args.url).run(interval=args.interval)
