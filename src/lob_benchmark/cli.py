"""
Command line entry point.

Without arguments this runs the reference experiment (300 MiB payload,
4 KiB reads, 5 iterations against pg@127.0.0.1:15432).
"""

import argparse
import logging
import sys
from typing import List, Optional

import structlog

from lob_benchmark.config import (
    KIB,
    MIB,
    BenchmarkConfiguration,
    BenchmarkReport,
    ConnectionConfig,
)
from lob_benchmark.output.json_exporter import export_json
from lob_benchmark.output.table_exporter import export_table
from lob_benchmark.runner import BenchmarkRunner

logger = structlog.get_logger()


def configure_logging(level: str):
    """Render structlog events to stderr so stdout carries only the ledger."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def build_parser() -> argparse.ArgumentParser:
    defaults = BenchmarkConfiguration()
    connection = defaults.connection

    parser = argparse.ArgumentParser(
        prog="lob-benchmark",
        description="Compare file / bytea / bytea external / lo read throughput on PostgreSQL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Start PostgreSQL first:
  docker run --rm -e POSTGRES_USER=pg -e POSTGRES_PASSWORD=pg -e POSTGRES_DB=pg \\
      -p 127.0.0.1:15432:5432 postgres

Examples:
  # Reference run (300 MiB, 5 iterations)
  python -m lob_benchmark

  # Quick run with a smaller payload, checking every stored copy
  python -m lob_benchmark --payload-mib 16 --iterations 2 --verify
        """
    )

    parser.add_argument('--host', default=connection.host,
                        help=f'PostgreSQL host (default: {connection.host})')
    parser.add_argument('--port', type=int, default=connection.port,
                        help=f'PostgreSQL port (default: {connection.port})')
    parser.add_argument('--database', default=connection.database,
                        help=f'Database name (default: {connection.database})')
    parser.add_argument('--username', default=connection.username,
                        help=f'Database user (default: {connection.username})')
    parser.add_argument('--password', default=connection.password,
                        help='Database password')
    parser.add_argument('--payload-mib', type=int, default=defaults.payload_size // MIB,
                        help=f'Payload size in MiB (default: {defaults.payload_size // MIB})')
    parser.add_argument('--buffer-kib', type=int, default=defaults.buffer_size // KIB,
                        help=f'Read buffer size in KiB (default: {defaults.buffer_size // KIB})')
    parser.add_argument('--iterations', type=int, default=defaults.iterations,
                        help=f'Reads per strategy (default: {defaults.iterations})')
    parser.add_argument('--lo-chunk-kib', type=int, default=defaults.lo_chunk_size // KIB,
                        help=f'Large object transfer size in KiB (default: {defaults.lo_chunk_size // KIB})')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for the payload (default: random)')
    parser.add_argument('--verify', action='store_true',
                        help='Compare every stored copy with the payload before teardown')
    parser.add_argument('--json-dir', default=None,
                        help='Write the report as JSON into this directory')
    parser.add_argument('--table-dir', default=None,
                        help='Print a summary table and save it into this directory')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Diagnostic log level on stderr (default: WARNING)')
    return parser


def config_from_args(args: argparse.Namespace) -> BenchmarkConfiguration:
    return BenchmarkConfiguration(
        payload_size=args.payload_mib * MIB,
        buffer_size=args.buffer_kib * KIB,
        iterations=args.iterations,
        lo_chunk_size=args.lo_chunk_kib * KIB,
        random_seed=args.seed,
        connection=ConnectionConfig(
            host=args.host,
            port=args.port,
            database=args.database,
            username=args.username,
            password=args.password,
        )
    )


def run(argv: Optional[List[str]] = None) -> BenchmarkReport:
    """Parse arguments, run the benchmark and export the report."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    config = config_from_args(args)
    errors = config.validate()
    if errors:
        parser.error("; ".join(errors))

    report = BenchmarkRunner(config).run(verify=args.verify)

    if args.table_dir:
        print()
        print(export_table(report, output_dir=args.table_dir))

    if args.json_dir:
        filepath = export_json(report, output_dir=args.json_dir)
        logger.info("JSON report written", path=filepath)

    return report


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    run(argv)
