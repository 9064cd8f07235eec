"""
Pytest configuration for the LOB benchmark tests.

structlog is routed to stderr so assertions on stdout only see the
benchmark ledger.
"""

import pytest

from lob_benchmark.cli import configure_logging


@pytest.fixture(autouse=True)
def quiet_logging():
    configure_logging("WARNING")
    yield
