"""
Integration test configuration: a real PostgreSQL server.

Connection parameters come from environment variables and default to the
reference server started with:

    docker run --rm -e POSTGRES_USER=pg -e POSTGRES_PASSWORD=pg -e POSTGRES_DB=pg \
        -p 127.0.0.1:15432:5432 postgres

Every test here is skipped when the server is not reachable.
"""

import os
import socket
import time

import pytest

from lob_benchmark.config import ConnectionConfig
from lob_benchmark.executors.postgres_executor import validate_connection


def wait_for_port(host: str, port: int, timeout: int = 5) -> bool:
    """Wait for a port to become available"""
    start_time = time.time()
    while time.time() - start_time < timeout:
        try:
            with socket.create_connection((host, port), timeout=1):
                return True
        except OSError:
            time.sleep(0.1)
    return False


@pytest.fixture(scope="session")
def pg_connection_config():
    """
    PostgreSQL connection parameters from environment variables:
    - LOB_BENCHMARK_HOST (127.0.0.1)
    - LOB_BENCHMARK_PORT (15432)
    - LOB_BENCHMARK_DATABASE / _USERNAME / _PASSWORD (pg)
    """
    config = ConnectionConfig(
        host=os.getenv("LOB_BENCHMARK_HOST", "127.0.0.1"),
        port=int(os.getenv("LOB_BENCHMARK_PORT", "15432")),
        database=os.getenv("LOB_BENCHMARK_DATABASE", "pg"),
        username=os.getenv("LOB_BENCHMARK_USERNAME", "pg"),
        password=os.getenv("LOB_BENCHMARK_PASSWORD", "pg"),
    )

    if not wait_for_port(config.host, config.port):
        pytest.skip(f"PostgreSQL not reachable at {config.host}:{config.port}")

    error = validate_connection(config)
    if error:
        pytest.skip(error)

    return config
