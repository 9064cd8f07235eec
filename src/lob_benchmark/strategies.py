"""
The four storage strategies under comparison.

A strategy is a pair of plain functions: ``write(runner)`` stores the
runner's payload once, ``open_stream(runner)`` returns a fresh binary stream
over the stored copy. Each call to ``open_stream`` issues a new file open or
a new query so nothing is cached between iterations.
"""

import io
import os
import tempfile
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any, BinaryIO, Callable, Optional

from lob_benchmark.executors.postgres_executor import (
    BYTEA_EXTERNAL_TABLE,
    BYTEA_TABLE,
    LO_TABLE,
)
from lob_benchmark.streams import open_large_object, write_large_object


@dataclass(frozen=True)
class StorageStrategy:
    """One way of storing and reading back the payload."""
    name: str
    write_label: str
    write: Callable[[Any], None]
    open_stream: Callable[[Any], BinaryIO]
    table: Optional[str] = None


def write_file(runner):
    """Write the payload to a new temporary file owned by the runner."""
    fd, name = tempfile.mkstemp(prefix=runner.config.temp_prefix, suffix=runner.config.temp_suffix)
    runner.temp_path = Path(name)
    with os.fdopen(fd, "wb") as out:
        out.write(runner.payload)


def open_file(runner) -> BinaryIO:
    return open(runner.temp_path, "rb", buffering=0)


def insert_bytea(runner, table: str):
    with runner.connection.cursor() as cursor:
        cursor.execute(f"INSERT INTO {table} VALUES (%b)", (runner.payload,))


def insert_large_object(runner, table: str):
    with runner.connection.cursor(binary=True) as cursor:
        oid = write_large_object(cursor, runner.payload, runner.config.lo_chunk_size)
        cursor.execute(f"INSERT INTO {table} VALUES (%s::oid)", (oid,))


def select_blobfield(runner, table: str):
    """
    Fetch the single stored value of a benchmark table.

    Raises:
        RuntimeError: If the table holds no row
    """
    with runner.connection.cursor(binary=True) as cursor:
        cursor.execute(f"SELECT blobfield FROM {table}")
        row = cursor.fetchone()

    if row is None:
        raise RuntimeError(f"No payload stored in {table}")
    return row[0]


def open_bytea(runner, table: str) -> BinaryIO:
    return io.BytesIO(select_blobfield(runner, table))


def open_lo(runner, table: str) -> BinaryIO:
    oid = select_blobfield(runner, table)
    return open_large_object(runner.connection, oid, runner.config.lo_chunk_size)


FILE = StorageStrategy(
    name="file",
    write_label="create file",
    write=write_file,
    open_stream=open_file,
)

BYTEA = StorageStrategy(
    name="bytea",
    write_label=f"write {BYTEA_TABLE}",
    write=partial(insert_bytea, table=BYTEA_TABLE),
    open_stream=partial(open_bytea, table=BYTEA_TABLE),
    table=BYTEA_TABLE,
)

BYTEA_EXTERNAL = StorageStrategy(
    name="bytea_external",
    write_label=f"write {BYTEA_EXTERNAL_TABLE}",
    write=partial(insert_bytea, table=BYTEA_EXTERNAL_TABLE),
    open_stream=partial(open_bytea, table=BYTEA_EXTERNAL_TABLE),
    table=BYTEA_EXTERNAL_TABLE,
)

LO = StorageStrategy(
    name="lo",
    write_label=f"write {LO_TABLE}",
    write=partial(insert_large_object, table=LO_TABLE),
    open_stream=partial(open_lo, table=LO_TABLE),
    table=LO_TABLE,
)

# Benchmark order
STRATEGIES = (FILE, BYTEA, BYTEA_EXTERNAL, LO)
