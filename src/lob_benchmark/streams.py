"""
Binary stream helpers: draining a stream through a scratch buffer and
server-side large object access over psycopg.

psycopg 3 has no client-side large object API, so large objects are
streamed with the server functions lo_create/lo_open/lowrite/loread/lo_close.
Those descriptors are only valid inside a transaction.
"""

import io
from typing import BinaryIO, Callable, Optional

import psycopg
import structlog

logger = structlog.get_logger()

# libpq-fs.h
INV_WRITE = 0x00020000
INV_READ = 0x00040000


def drain(
    stream: BinaryIO,
    buffer: bytearray,
    sink: Optional[Callable[[memoryview], None]] = None
) -> int:
    """
    Read a stream to end-of-stream through ``buffer`` and close it.

    The buffer contents are scratch; only the byte counts are used unless a
    ``sink`` is given, which receives each filled slice.

    Args:
        stream: Binary stream supporting readinto()
        buffer: Reusable scratch buffer
        sink: Optional callable fed every chunk read (e.g. a hash update)

    Returns:
        Total number of bytes read
    """
    view = memoryview(buffer)
    total = 0
    with stream:
        while True:
            count = stream.readinto(view)
            if not count:
                break
            total += count
            if sink is not None:
                sink(view[:count])
    return total


def write_large_object(cursor: psycopg.Cursor, data: bytes, chunk_size: int) -> int:
    """
    Stream ``data`` into a new large object in ``chunk_size`` pieces.

    Args:
        cursor: Cursor on a connection inside a transaction
        data: Content to store
        chunk_size: Bytes sent per lowrite() call

    Returns:
        Oid of the new large object
    """
    cursor.execute("SELECT lo_create(0)")
    oid = cursor.fetchone()[0]

    cursor.execute("SELECT lo_open(%s::oid, %s::int4)", (oid, INV_WRITE))
    fd = cursor.fetchone()[0]

    view = memoryview(data)
    for offset in range(0, len(view), chunk_size):
        cursor.execute("SELECT lowrite(%s::int4, %b)", (fd, view[offset:offset + chunk_size]))

    cursor.execute("SELECT lo_close(%s::int4)", (fd,))

    logger.debug("Large object written", oid=oid, size=len(view), chunk_size=chunk_size)
    return oid


class LargeObjectReader(io.RawIOBase):
    """
    Raw read-only stream over a server-side large object.

    Each readinto() is one loread() round trip; wrap in io.BufferedReader to
    control the transfer size independently of the caller's buffer.
    """

    def __init__(self, connection: psycopg.Connection, oid: int):
        super().__init__()
        self.oid = oid
        self._fd = None
        self._cursor = connection.cursor(binary=True)
        try:
            self._cursor.execute("SELECT lo_open(%s::oid, %s::int4)", (oid, INV_READ))
            self._fd = self._cursor.fetchone()[0]
        except Exception:
            self.close()
            raise

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        view = memoryview(b).cast("B")
        self._cursor.execute("SELECT loread(%s::int4, %s::int4)", (self._fd, len(view)))
        data = self._cursor.fetchone()[0]
        count = len(data)
        view[:count] = data
        return count

    def close(self):
        if self.closed:
            return
        try:
            if self._fd is not None:
                self._cursor.execute("SELECT lo_close(%s::int4)", (self._fd,))
        finally:
            self._cursor.close()
            super().close()


def open_large_object(connection: psycopg.Connection, oid: int, chunk_size: int) -> io.BufferedReader:
    """Open a large object for reading, ``chunk_size`` bytes per round trip."""
    return io.BufferedReader(LargeObjectReader(connection, oid), buffer_size=chunk_size)
