"""
PostgreSQL + psycopg3 executor.

Owns the single benchmark connection and the schema of the three
benchmark tables.
"""

import math

import psycopg
import structlog
from typing import List, Optional

from lob_benchmark.config import ConnectionConfig

logger = structlog.get_logger()

BYTEA_TABLE = "testbytea"
BYTEA_EXTERNAL_TABLE = "testbytea_external"
LO_TABLE = "testlo"

BENCHMARK_TABLES = (BYTEA_TABLE, BYTEA_EXTERNAL_TABLE, LO_TABLE)

# Idempotent: safe to run against an existing schema
SCHEMA_STATEMENTS = [
    "CREATE EXTENSION IF NOT EXISTS lo",
    f"CREATE TABLE IF NOT EXISTS {BYTEA_TABLE} ( blobfield bytea )",
    f"CREATE TABLE IF NOT EXISTS {BYTEA_EXTERNAL_TABLE} ( blobfield bytea )",
    f"CREATE TABLE IF NOT EXISTS {LO_TABLE} ( blobfield lo )",
    f"ALTER TABLE {BYTEA_EXTERNAL_TABLE} ALTER COLUMN blobfield SET STORAGE EXTERNAL",
]

TRUNCATE_STATEMENTS = [f"TRUNCATE {table}" for table in BENCHMARK_TABLES]


class PostgresExecutor:
    """Execute benchmark statements against PostgreSQL."""

    def __init__(self, config: ConnectionConfig):
        """
        Initialize PostgreSQL executor.

        Args:
            config: Connection parameters
        """
        self.config = config
        self.connection: Optional[psycopg.Connection] = None

    def connect(self, autocommit: bool = True) -> psycopg.Connection:
        """Establish connection to PostgreSQL."""
        if self.connection is None:
            logger.info("Connecting to PostgreSQL",
                        host=self.config.host,
                        port=self.config.port,
                        database=self.config.database)
            self.connection = psycopg.connect(
                host=self.config.host,
                port=self.config.port,
                dbname=self.config.database,
                user=self.config.username,
                password=self.config.password,
                connect_timeout=math.ceil(self.config.connection_timeout),
                autocommit=autocommit
            )
        return self.connection

    def execute_all(self, statements: List[str]):
        """
        Execute statements in order on one cursor.

        Raises:
            psycopg.Error: On the first failing statement
        """
        if self.connection is None:
            self.connect()

        with self.connection.cursor() as cursor:
            for statement in statements:
                logger.debug("Executing statement", sql=statement)
                cursor.execute(statement)

    def ensure_schema(self):
        """Create the benchmark tables if absent and empty them."""
        self.execute_all(SCHEMA_STATEMENTS + TRUNCATE_STATEMENTS)
        logger.info("Benchmark schema ready", tables=list(BENCHMARK_TABLES))

    def set_autocommit(self, autocommit: bool):
        self.connection.autocommit = autocommit

    def commit(self):
        self.connection.commit()

    def count_rows(self, table: str) -> int:
        """Number of rows currently stored in a benchmark table."""
        if table not in BENCHMARK_TABLES:
            raise ValueError(f"Unknown benchmark table: {table}")

        with self.connection.cursor() as cursor:
            cursor.execute(f"SELECT count(*) FROM {table}")
            return cursor.fetchone()[0]

    def close(self):
        """Close database connection."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def validate_connection(config: ConnectionConfig) -> Optional[str]:
    """
    Validate that the PostgreSQL server is reachable.

    Args:
        config: Connection parameters

    Returns:
        None if successful, error message if failed
    """
    try:
        conn = psycopg.connect(
            host=config.host,
            port=config.port,
            dbname=config.database,
            user=config.username,
            password=config.password,
            connect_timeout=math.ceil(config.connection_timeout)
        )
        conn.close()
        return None
    except Exception as e:
        return f"PostgreSQL connection failed: {e}"
