"""
Tests for the phase ledger format.
"""

import io

from lob_benchmark.output.phase_log import PhaseLog


class FakeClock:

    def __init__(self, *times):
        self.times = list(times)

    def __call__(self):
        return self.times.pop(0)


class TestPhaseLog:

    def test_first_label_has_no_duration(self):
        out = io.StringIO()
        PhaseLog(stream=out, clock=FakeClock(100.0)).log("create content")

        assert out.getvalue() == "create content           "

    def test_duration_completes_previous_line(self):
        out = io.StringIO()
        log = PhaseLog(stream=out, clock=FakeClock(10.0, 11.25, 11.25))
        log.log("create content")
        log.log("open connection")
        log.log("done")
        log.finish()

        assert out.getvalue().splitlines() == [
            "create content           1.25s",
            "open connection          0s",
            "done                     ",
        ]

    def test_throughput_written_before_duration(self):
        out = io.StringIO()
        log = PhaseLog(stream=out, clock=FakeClock(0.0, 125.5))
        log.log("read lo")
        log.write("12.3 MiB/s  ")
        log.log("close connection")

        assert out.getvalue().splitlines()[0] == "read lo                  12.3 MiB/s  2m5.5s"

    def test_long_label_not_truncated(self):
        out = io.StringIO()
        PhaseLog(stream=out, clock=FakeClock(0.0), width=5).log("write testbytea")

        assert out.getvalue() == "write testbytea"

    def test_defaults_to_stdout(self, capsys):
        PhaseLog(clock=FakeClock(0.0)).log("commit")

        assert capsys.readouterr().out == "commit                   "
