"""
Benchmark driver.

Strictly sequential:
    prepare -> read file -> read bytea -> read bytea_external -> read lo -> teardown

Any exception skips the remaining phases; teardown (temp file removal and
connection close) runs on every exit path and the exception propagates.
"""

import hashlib
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

import structlog

from lob_benchmark.config import (
    BenchmarkConfiguration,
    BenchmarkReport,
    BenchmarkState,
    StrategyResult,
)
from lob_benchmark.executors.postgres_executor import PostgresExecutor
from lob_benchmark.output.phase_log import PhaseLog
from lob_benchmark.payload import generate_payload
from lob_benchmark.strategies import STRATEGIES, StorageStrategy
from lob_benchmark.streams import drain

logger = structlog.get_logger()


class BenchmarkRunner:
    """
    State of one benchmark run: payload, scratch buffer, connection,
    temp file and phase ledger.
    """

    def __init__(
        self,
        config: BenchmarkConfiguration,
        phase_log: Optional[PhaseLog] = None,
        strategies: Sequence[StorageStrategy] = STRATEGIES
    ):
        """
        Initialize benchmark runner.

        Args:
            config: Benchmark configuration
            phase_log: Ledger printer (defaults to stdout)
            strategies: Strategies to write and read, in order

        Raises:
            ValueError: If configuration validation fails
        """
        errors = config.validate()
        if errors:
            raise ValueError("Invalid configuration:\n" + "\n".join(errors))

        self.config = config
        self.phase_log = phase_log or PhaseLog()
        self.strategies: List[StorageStrategy] = list(strategies)
        self.executor = PostgresExecutor(config.connection)
        self.payload: bytes = b""
        self.buffer = bytearray(config.buffer_size)
        self.temp_path: Optional[Path] = None
        self.report = BenchmarkReport(
            report_id=f"lob_benchmark_{datetime.now().strftime('%Y%m%d_%H%M%S')}",
            config=config,
            start_time=datetime.now()
        )

    @property
    def connection(self):
        return self.executor.connection

    def run(self, verify: bool = False) -> BenchmarkReport:
        """
        Execute the complete benchmark.

        Args:
            verify: Re-read every strategy and compare with the payload
                before teardown

        Returns:
            BenchmarkReport with one result per strategy
        """
        self.report.state = BenchmarkState.RUNNING
        try:
            try:
                self.prepare()
                for strategy in self.strategies:
                    self.iterate(strategy)
                if verify:
                    self.verify()
            finally:
                self.teardown()
        except Exception as e:
            self.report.state = BenchmarkState.FAILED
            logger.error("Benchmark failed", error=str(e), error_type=type(e).__name__)
            raise
        finally:
            self.report.end_time = datetime.now()

        self.phase_log.log("done")
        self.phase_log.finish()
        self.report.state = BenchmarkState.COMPLETED
        return self.report

    def prepare(self):
        """Generate the payload, create the schema and store the payload four ways."""
        self.phase_log.log("create content")
        self.payload = generate_payload(self.config.payload_size, self.config.random_seed)

        self.phase_log.log("open connection")
        self.executor.connect(autocommit=True)

        self.phase_log.log("create structure")
        self.executor.ensure_schema()
        self.executor.set_autocommit(False)

        for strategy in self.strategies:
            self.phase_log.log(strategy.write_label)
            strategy.write(self)
            logger.debug("Payload stored", strategy=strategy.name, size=len(self.payload))

        self.phase_log.log("commit")
        self.executor.commit()

    def iterate(self, strategy: StorageStrategy) -> StrategyResult:
        """
        Read a strategy's copy ``iterations`` times and record the throughput.

        Raises:
            RuntimeError: If a read returns a different number of bytes than stored
        """
        self.phase_log.log(f"read {strategy.name}")

        iteration_seconds = []
        bytes_read = 0
        start = time.perf_counter()
        for _ in range(self.config.iterations):
            began = time.perf_counter()
            count = drain(strategy.open_stream(self), self.buffer)
            iteration_seconds.append(time.perf_counter() - began)
            if count != len(self.payload):
                raise RuntimeError(
                    f"{strategy.name}: read {count} bytes, expected {len(self.payload)}"
                )
            bytes_read += count
        elapsed = time.perf_counter() - start

        result = StrategyResult(
            strategy=strategy.name,
            iterations=self.config.iterations,
            payload_size=len(self.payload),
            elapsed_seconds=elapsed,
            iteration_seconds=iteration_seconds,
            bytes_read=bytes_read
        )
        self.report.results[strategy.name] = result

        self.phase_log.write(f"{result.throughput_mib_s:.1f} MiB/s  ")
        logger.debug("Strategy measured",
                     strategy=strategy.name,
                     elapsed_seconds=elapsed,
                     throughput_mib_s=result.throughput_mib_s)
        return result

    def verify(self):
        """
        Compare every stored copy with the payload.

        Raises:
            RuntimeError: Naming the first strategy whose copy differs
        """
        self.phase_log.log("verify")
        expected = hashlib.sha256(self.payload).hexdigest()

        for strategy in self.strategies:
            digest = hashlib.sha256()
            count = drain(strategy.open_stream(self), self.buffer, digest.update)
            if count != len(self.payload) or digest.hexdigest() != expected:
                raise RuntimeError(
                    f"{strategy.name}: stored copy differs from payload "
                    f"({count} of {len(self.payload)} bytes read)"
                )

        logger.info("Stored copies verified", strategies=[s.name for s in self.strategies])

    def teardown(self):
        """Delete the temp file and close the connection; both are always attempted."""
        self.phase_log.log("close connection")
        try:
            if self.temp_path is not None:
                self.temp_path.unlink(missing_ok=True)
                self.temp_path = None
        finally:
            self.executor.close()
