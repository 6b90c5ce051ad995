"""
Partition Counter Web Dashboard

Simple real-time visualization of the master's tables:
- Per-bucket counts for every table
- Distribution stats (total, min/max, empty buckets)
- Recent events

Polls the master's HTTP status endpoint for data.

Usage:
    python -m partcount.master.server
    python -m web.app
    # Dashboard at http://localhost:5000
"""

import json
import threading
import time
import urllib.error
import urllib.request
from datetime import datetime

from flask import Flask, render_template, jsonify, Response

from partcount.utils import config

app = Flask(__name__,
            template_folder='templates',
            static_folder='static')

# Master's HTTP status endpoint
MASTER_HTTP_URL = config.master_http_url()

# Master state (updated by polling)
cluster_state = {
    'tables': {},
    'events': [],
    'status': 'idle',
    'last_update': None,
    'connected': False
}

state_lock = threading.Lock()
_polling_thread = None


def poll_master(url=None):
    """Poll master's HTTP status endpoint once."""
    req = urllib.request.Request(url or MASTER_HTTP_URL, headers={'Accept': 'application/json'})
    try:
        with urllib.request.urlopen(req, timeout=2) as response:
            data = json.loads(response.read().decode())
    except (urllib.error.URLError, OSError, ValueError):
        with state_lock:
            cluster_state['connected'] = False
        return False

    with state_lock:
        cluster_state['tables'] = data.get('tables', {})
        cluster_state['status'] = data.get('status', 'idle')
        cluster_state['events'] = data.get('events', [])
        cluster_state['last_update'] = datetime.now().isoformat()
        cluster_state['connected'] = True
    return True


def polling_loop(interval=1):
    """Background polling thread."""
    while True:
        poll_master()
        time.sleep(interval)


def start_polling(interval=1):
    """Start the background poller once."""
    global _polling_thread
    if _polling_thread is None:
        _polling_thread = threading.Thread(target=polling_loop, args=(interval,), daemon=True)
        _polling_thread.start()
    return _polling_thread


@app.route('/')
def index():
    return render_template('index.html')


@app.route('/api/status')
def get_status():
    with state_lock:
        return jsonify(cluster_state)


@app.route('/api/stream')
def stream():
    """Server-Sent Events for live updates."""
    def generate():
        last_state = None
        while True:
            with state_lock:
                current = json.dumps(cluster_state)
            if current != last_state:
                yield f"data: {current}\n\n"
                last_state = current
            time.sleep(0.5)

    return Response(generate(), mimetype='text/event-stream')


if __name__ == '__main__':
    print("Partition Counter Dashboard - http://localhost:5000")
    start_polling()
    app.run(host='0.0.0.0', port=5000, debug=False, threaded=True)
