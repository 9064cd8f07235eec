"""
PostgreSQL LOB Storage Benchmark

Compares read throughput of one large binary payload stored four ways:
- a plain file on the local filesystem
- an inline bytea column
- a bytea column forced to external (out-of-line, uncompressed) storage
- a large object referenced through an lo column
"""

__version__ = "0.1.0"
