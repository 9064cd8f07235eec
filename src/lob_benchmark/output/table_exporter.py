"""
Console table export for benchmark results using tabulate.
"""

from pathlib import Path
from typing import Optional

from tabulate import tabulate

from lob_benchmark.config import BenchmarkReport, MIB, KIB


def export_table(report: BenchmarkReport, output_dir: Optional[str] = None) -> str:
    """
    Format benchmark report as a table, optionally saving it.

    Args:
        report: BenchmarkReport to export
        output_dir: Directory to also write ``<report_id>.txt`` into

    Returns:
        Formatted table string

    Example:
        >>> print(export_table(report))
        Strategy          MiB/s    Total (s)    Fastest (s)    Slowest (s)
        --------------  -------  -----------  -------------  -------------
        file             2481.3        0.605          0.117          0.125
        ...
    """
    headers = ["Strategy", "MiB/s", "Total (s)", "Fastest (s)", "Slowest (s)"]
    table_str = tabulate(report.to_table_rows(), headers=headers, tablefmt="simple", disable_numparse=True)

    config = report.config
    output = [
        "=" * 70,
        "PostgreSQL LOB Storage Benchmark",
        "=" * 70,
        f"Report ID: {report.report_id}",
        f"Timestamp: {report.start_time.isoformat()}",
        "",
        "Configuration:",
        f"  Server:       {config.connection.host}:{config.connection.port}/{config.connection.database}",
        f"  Payload:      {config.payload_size / MIB:g} MiB",
        f"  Read buffer:  {config.buffer_size / KIB:g} KiB",
        f"  Iterations:   {config.iterations}",
        "",
        "Results:",
        table_str,
        "",
        f"Benchmark completed in {report.total_duration_seconds:.2f} seconds.",
        "=" * 70,
    ]
    full_output = "\n".join(output)

    if output_dir is not None:
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)
        with open(output_path / f"{report.report_id}.txt", 'w') as f:
            f.write(full_output)

    return full_output
