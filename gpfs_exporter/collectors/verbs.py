from gpfs_exporter.collectors.base import BaseCollector
from gpfs_exporter.metrics import MetricSink, gauge
from gpfs_exporter.parsers import parse_verbs
from gpfs_exporter.targets import Target


class VerbsCollector(BaseCollector):
    name = "verbs"
    description = "GPFS RDMA verbs status"
    default_enabled = False
    default_timeout = 5

    def __init__(self, runner, options=None, logger=None):
        super().__init__(runner, options, logger)
        self.status = gauge("verbs", "status", "GPFS verbs status, 1=started 0=not started")

    def describe(self):
        return [self.status]

    def collect(self, target: Target, sink: MetricSink) -> None:
        out = self.run_command("mmfsadm", ["test", "verbs", "status"], target)
        result = parse_verbs(out)
        self.report_parse_errors(sink, result.errors)
        status = result.records[0] if result.records else ""
        self.logger.debug(f"Verbs status {status!r}")
        sink.add(self.status, 1 if status == "started" else 0)
