from gpfs_exporter.collectors.base import FilesystemCollector, emit_state
from gpfs_exporter.metrics import MetricSink, gauge
from gpfs_exporter.parsers import parse_mmlsdisk
from gpfs_exporter.targets import Target

DISK_STATUSES = ("ready", "suspended", "to be emptied", "being emptied", "emptied", "replacing", "replacement")
DISK_AVAILABILITY = ("up", "down", "recovering", "unrecovered")


class MmlsdiskCollector(FilesystemCollector):
    """One-hot disk status and availability per NSD from ``mmlsdisk``."""

    name = "mmlsdisk"
    description = "GPFS disk state from mmlsdisk"
    default_enabled = False
    default_timeout = 30

    def __init__(self, runner, options=None, logger=None):
        super().__init__(runner, options, logger)
        labels = ["name", "fs", "metadata", "data", "diskid", "storagepool"]
        self.status = gauge("disk", "status", "GPFS disk status", labels + ["status"])
        self.availability = gauge("disk", "availability", "GPFS disk availability", labels + ["availability"])

    def describe(self):
        return [self.status, self.availability]

    def collect_filesystem(self, target: Target, fs: str, sink: MetricSink) -> None:
        out = self.run_command("mmlsdisk", [fs, "-Y"], target)
        result = parse_mmlsdisk(out)
        self.report_parse_errors(sink, result.errors, fs)
        for disk in result.records:
            labels = (disk.name, fs, disk.metadata, disk.data, disk.disk_id, disk.storage_pool)
            if not emit_state(sink, self.status, DISK_STATUSES, disk.status, *labels):
                self.logger.warning(f"Unknown status {disk.status!r} for disk {disk.name} fs={fs}")
            if not emit_state(sink, self.availability, DISK_AVAILABILITY, disk.availability, *labels):
                self.logger.warning(f"Unknown availability {disk.availability!r} for disk {disk.name} fs={fs}")
