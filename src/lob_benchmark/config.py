"""
Configuration and data models for the LOB storage benchmark.

Defaults reproduce the reference experiment: a 300 MiB payload read back
5 times through a 4 KiB buffer from PostgreSQL on 127.0.0.1:15432.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from lob_benchmark.metrics import KIB, MIB, calculate_metrics, throughput_mib_per_second


class BenchmarkState(Enum):
    """Benchmark execution states"""
    INITIALIZING = "initializing"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ConnectionConfig:
    """Connection parameters for the PostgreSQL server under test"""
    host: str = "127.0.0.1"
    port: int = 15432
    database: str = "pg"
    username: str = "pg"
    password: str = "pg"
    connection_timeout: float = 10.0

    def validate(self) -> List[str]:
        """
        Validate configuration parameters.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.host:
            errors.append("host cannot be empty")

        if not (1 <= self.port <= 65535):
            errors.append(f"Port must be 1-65535, got {self.port}")

        if not self.database:
            errors.append("database cannot be empty")

        if self.connection_timeout <= 0:
            errors.append(f"connection_timeout must be > 0, got {self.connection_timeout}")

        return errors


@dataclass
class BenchmarkConfiguration:
    """Configuration for one benchmark run"""
    payload_size: int = 300 * MIB
    buffer_size: int = 4 * KIB
    iterations: int = 5
    lo_chunk_size: int = 64 * KIB
    random_seed: Optional[int] = None
    temp_prefix: str = "logtest"
    temp_suffix: str = ".tmp"
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if self.payload_size <= 0:
            errors.append(f"payload_size must be > 0, got {self.payload_size}")

        if self.buffer_size <= 0:
            errors.append(f"buffer_size must be > 0, got {self.buffer_size}")

        if self.iterations <= 0:
            errors.append(f"iterations must be > 0, got {self.iterations}")

        # lowrite/loread take an int4 length
        if not (0 < self.lo_chunk_size < 2 ** 31):
            errors.append(f"lo_chunk_size must be 1..2^31-1, got {self.lo_chunk_size}")

        if self.random_seed is not None and self.random_seed < 0:
            errors.append(f"random_seed must be >= 0, got {self.random_seed}")

        errors.extend(f"connection: {e}" for e in self.connection.validate())

        return errors


@dataclass
class StrategyResult:
    """Timing of one strategy's read loop"""
    strategy: str
    iterations: int
    payload_size: int
    elapsed_seconds: float
    iteration_seconds: List[float]
    bytes_read: int

    @property
    def throughput_mib_s(self) -> float:
        """Aggregate throughput over all iterations in MiB/s."""
        return throughput_mib_per_second(self.iterations, self.payload_size, self.elapsed_seconds)

    def summary(self) -> Dict[str, float]:
        """Per-iteration min/median/max durations."""
        return calculate_metrics(self.iteration_seconds, self.payload_size)


@dataclass
class BenchmarkReport:
    """Complete benchmark results"""
    report_id: str
    config: BenchmarkConfiguration
    start_time: datetime
    end_time: Optional[datetime] = None
    results: Dict[str, StrategyResult] = field(default_factory=dict)
    state: BenchmarkState = BenchmarkState.INITIALIZING

    @property
    def total_duration_seconds(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def to_json(self) -> Dict:
        """
        Export report as JSON-ready dict.

        Returns:
            Dict suitable for json.dumps()
        """
        return {
            "report_id": self.report_id,
            "timestamp": self.start_time.isoformat(),
            "state": self.state.value,
            "config": {
                "payload_size": self.config.payload_size,
                "buffer_size": self.config.buffer_size,
                "iterations": self.config.iterations,
                "lo_chunk_size": self.config.lo_chunk_size,
                "host": self.config.connection.host,
                "port": self.config.connection.port,
                "database": self.config.connection.database,
            },
            "duration_seconds": self.total_duration_seconds,
            "results": {
                name: {
                    "throughput_mib_s": result.throughput_mib_s,
                    "elapsed_seconds": result.elapsed_seconds,
                    "iteration_seconds": list(result.iteration_seconds),
                    "median_iteration_seconds": result.summary()["median_s"],
                    "bytes_read": result.bytes_read,
                }
                for name, result in self.results.items()
            }
        }

    def to_table_rows(self) -> List[List]:
        """
        Export report as table rows for console display.

        Returns:
            List of rows [strategy, MiB/s, elapsed, fastest, slowest]
        """
        rows = []
        for result in self.results.values():
            summary = result.summary()
            rows.append([
                result.strategy,
                f"{result.throughput_mib_s:.1f}",
                f"{result.elapsed_seconds:.3f}",
                f"{summary['min_s']:.3f}",
                f"{summary['max_s']:.3f}",
            ])
        return rows
