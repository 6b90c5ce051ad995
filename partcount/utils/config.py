"""
Environment-driven defaults shared by the master, worker and dashboard.

Command-line flags in each entry point override these.
"""

import os


def _env_int(name, default):
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}") from None


def master_address():
    return os.environ.get('MASTER_ADDRESS', 'localhost:50051')


def master_http_url():
    return os.environ.get('MASTER_HTTP_URL', 'http://localhost:8080/status')


def default_partitions():
    return _env_int('PARTCOUNT_PARTITIONS', 10)


def checkpoint_dir():
    return os.environ.get('PARTCOUNT_CHECKPOINT_DIR', './checkpoints')


def checkpoint_interval():
    return _env_int('PARTCOUNT_CHECKPOINT_INTERVAL', 30)


def hash_algorithm():
    return os.environ.get('PARTCOUNT_HASH_ALGORITHM', 'murmur3')
