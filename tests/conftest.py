import threading

import pytest

from partcount.master.server import PartitionCounterServicer, create_server, create_status_server
from partcount.master.state import ServerState
from partcount.worker.client import PartitionClient


@pytest.fixture
def master():
    """In-process master on a free port; yields (servicer, client)."""
    servicer = PartitionCounterServicer(ServerState(), default_partitions=10)
    server, port = create_server(servicer, port=0, host='127.0.0.1')
    server.start()
    client = PartitionClient(f'127.0.0.1:{port}', timeout=5)
    try:
        yield servicer, client
    finally:
        client.close()
        server.stop(0)


@pytest.fixture
def status_url(master):
    """HTTP status endpoint for the `master` fixture."""
    servicer, _client = master
    http_server = create_status_server(servicer, http_port=0, host='127.0.0.1')
    thread = threading.Thread(target=http_server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f'http://127.0.0.1:{http_server.server_address[1]}/status'
    finally:
        http_server.shutdown()
        http_server.server_close()
