"""
Unit test fixtures.

FakeServer is an in-memory stand-in for the slice of PostgreSQL the
benchmark uses: the lo extension, the three benchmark tables, and the
server-side large object functions. ``psycopg.connect`` is patched to hand
out FakeConnection objects bound to it.
"""

import re

import psycopg
import pytest

from lob_benchmark.config import BenchmarkConfiguration, ConnectionConfig


class FakeServer:
    """Shared state behind every FakeConnection of a test."""

    def __init__(self):
        self.extensions = set()
        self.tables = {}
        self.column_types = {}
        self.storage = {}
        self.large_objects = {}
        self.descriptors = {}
        self.next_oid = 16384
        self.next_fd = 0
        self.statements = []
        self.connections = []
        self.fail_on = None

    def connect(self, **kwargs):
        connection = FakeConnection(self, **kwargs)
        self.connections.append(connection)
        return connection

    def rows(self, table):
        return list(self.tables[table])


class FakeConnection:

    def __init__(self, server, autocommit=False, **kwargs):
        self.server = server
        self.params = kwargs
        self._autocommit = autocommit
        self.closed = False
        self.commits = 0

    @property
    def autocommit(self):
        return self._autocommit

    @autocommit.setter
    def autocommit(self, value):
        self._check_open()
        self._autocommit = value

    def _check_open(self):
        if self.closed:
            raise psycopg.OperationalError("the connection is closed")

    def cursor(self, binary=False):
        self._check_open()
        return FakeCursor(self, binary)

    def commit(self):
        self._check_open()
        self.commits += 1

    def close(self):
        self.closed = True


class FakeCursor:

    def __init__(self, connection, binary):
        self.connection = connection
        self.binary = binary
        self.closed = False
        self._rows = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.closed = True

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def execute(self, query, params=()):
        if self.closed:
            raise psycopg.InterfaceError("the cursor is closed")
        self.connection._check_open()

        server = self.connection.server
        server.statements.append((query, self.connection.autocommit))
        if server.fail_on and server.fail_on in query:
            self.connection.closed = True
            raise psycopg.OperationalError("server closed the connection unexpectedly")

        self._rows = self._dispatch(server, query, params)

    def _dispatch(self, server, query, params):
        if m := re.fullmatch(r"CREATE EXTENSION IF NOT EXISTS (\w+)", query):
            server.extensions.add(m[1])
            return []

        if m := re.fullmatch(r"CREATE TABLE IF NOT EXISTS (\w+) \( blobfield (\w+) \)", query):
            table, column_type = m[1], m[2]
            if column_type == "lo" and "lo" not in server.extensions:
                raise psycopg.errors.UndefinedObject('type "lo" does not exist')
            if table not in server.tables:
                server.tables[table] = []
                server.column_types[table] = column_type
            return []

        if m := re.fullmatch(r"ALTER TABLE (\w+) ALTER COLUMN blobfield SET STORAGE (\w+)", query):
            server.storage[m[1]] = m[2]
            return []

        if m := re.fullmatch(r"TRUNCATE (\w+)", query):
            server.tables[m[1]].clear()
            return []

        if m := re.fullmatch(r"INSERT INTO (\w+) VALUES \((%b|%s::oid)\)", query):
            value = params[0]
            server.tables[m[1]].append(bytes(value) if m[2] == "%b" else int(value))
            return []

        if m := re.fullmatch(r"SELECT blobfield FROM (\w+)", query):
            return [(value,) for value in server.tables[m[1]]]

        if m := re.fullmatch(r"SELECT count\(\*\) FROM (\w+)", query):
            return [(len(server.tables[m[1]]),)]

        if query == "SELECT lo_create(0)":
            oid = server.next_oid
            server.next_oid += 1
            server.large_objects[oid] = bytearray()
            return [(oid,)]

        if query == "SELECT lo_open(%s::oid, %s::int4)":
            oid, mode = params
            if oid not in server.large_objects:
                raise psycopg.errors.UndefinedObject(f"large object {oid} does not exist")
            fd = server.next_fd
            server.next_fd += 1
            server.descriptors[fd] = [oid, 0, mode]
            return [(fd,)]

        if query == "SELECT lowrite(%s::int4, %b)":
            fd, data = params
            oid, position, _ = server.descriptors[fd]
            data = bytes(data)
            server.large_objects[oid][position:position + len(data)] = data
            server.descriptors[fd][1] = position + len(data)
            return [(len(data),)]

        if query == "SELECT loread(%s::int4, %s::int4)":
            fd, length = params
            oid, position, _ = server.descriptors[fd]
            data = bytes(server.large_objects[oid][position:position + length])
            server.descriptors[fd][1] = position + len(data)
            return [(data,)]

        if query == "SELECT lo_close(%s::int4)":
            del server.descriptors[params[0]]
            return [(0,)]

        raise AssertionError(f"FakeServer cannot execute: {query}")


@pytest.fixture
def fake_server(monkeypatch):
    """Patch psycopg.connect to use an in-memory server."""
    server = FakeServer()
    monkeypatch.setattr(psycopg, "connect", server.connect)
    return server


@pytest.fixture
def small_config():
    """16-byte payload read once, the smallest meaningful run."""
    return BenchmarkConfiguration(
        payload_size=16,
        buffer_size=4,
        iterations=1,
        lo_chunk_size=8,
        random_seed=42,
        connection=ConnectionConfig(),
    )
