from gpfs_exporter.collectors.base import BaseCollector
from gpfs_exporter.metrics import MetricSink, counter, gauge
from gpfs_exporter.parsers import OPERATIONS, parse_mmpmon
from gpfs_exporter.targets import Target

MMPMON_REQUEST = "fs_io_s\n"


class MmpmonCollector(BaseCollector):
    """Filesystem I/O counters of this node from ``mmpmon fs_io_s``.

    Counters reset when the GPFS daemon restarts or a filesystem is
    remounted.
    """

    name = "mmpmon"
    description = "GPFS I/O counters from mmpmon"
    default_enabled = True
    default_timeout = 5

    def __init__(self, runner, options=None, logger=None):
        super().__init__(runner, options, logger)
        self.read_bytes = counter("perf", "read_bytes_total", "GPFS read bytes", ["fs"])
        self.write_bytes = counter("perf", "write_bytes_total", "GPFS write bytes", ["fs"])
        self.operations = counter("perf", "operations_total", "GPFS operations reported by mmpmon",
                                  ["fs", "operation"])
        self.info = gauge("perf", "info", "GPFS client information", ["fs", "nodename"])

    def describe(self):
        return [self.read_bytes, self.write_bytes, self.operations, self.info]

    def collect(self, target: Target, sink: MetricSink) -> None:
        out = self.run_command("mmpmon", ["-s", "-p"], target, stdin=MMPMON_REQUEST)
        result = parse_mmpmon(out)
        self.report_parse_errors(sink, result.errors)
        for perf in result.records:
            sink.add(self.read_bytes, perf.read_bytes, perf.fs)
            sink.add(self.write_bytes, perf.write_bytes, perf.fs)
            for operation in OPERATIONS:
                sink.add(self.operations, getattr(perf, operation), perf.fs, operation)
            sink.add(self.info, 1, perf.fs, perf.node_name)
