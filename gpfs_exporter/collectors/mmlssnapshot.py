from gpfs_exporter.collectors.base import FilesystemCollector
from gpfs_exporter.metrics import MetricSink, gauge
from gpfs_exporter.parsers import parse_mmlssnapshot
from gpfs_exporter.targets import Target


class MmlssnapshotCollector(FilesystemCollector):
    """
    Snapshot status, creation time and optionally size from ``mmlssnapshot``.

    Sizes require ``-d`` which makes GPFS walk the snapshot, so they are only
    collected with ``--collector.mmlssnapshot.get-size``.
    """

    name = "mmlssnapshot"
    description = "GPFS snapshots from mmlssnapshot"
    default_enabled = False
    default_timeout = 60

    def __init__(self, runner, options=None, logger=None, tz=None):
        super().__init__(runner, options, logger)
        self.get_size = bool(self.option("get_size", False))
        self.tz = tz
        labels = ["fs", "fileset", "snapshot", "id"]
        self.status = gauge("snapshot", "status_info", "GPFS snapshot status", labels + ["status"])
        self.created = gauge("snapshot", "created_timestamp_seconds", "GPFS snapshot creation timestamp", labels)
        self.data = gauge("snapshot", "data_size_bytes", "GPFS snapshot data size", labels)
        self.metadata = gauge("snapshot", "metadata_size_bytes", "GPFS snapshot metadata size", labels)

    def describe(self):
        return [self.status, self.created, self.data, self.metadata]

    def collect_filesystem(self, target: Target, fs: str, sink: MetricSink) -> None:
        args = [fs, "-s", "all", "-Y"]
        if self.get_size:
            args.append("-d")
        out = self.run_command("mmlssnapshot", args, target)
        result = parse_mmlssnapshot(out, self.tz)
        self.report_parse_errors(sink, result.errors, fs)
        for snapshot in result.records:
            labels = (snapshot.fs, snapshot.fileset, snapshot.name, snapshot.id)
            sink.add(self.status, 1, *labels, snapshot.status)
            sink.add(self.created, snapshot.created, *labels)
            if self.get_size:
                sink.add(self.data, snapshot.data, *labels)
                sink.add(self.metadata, snapshot.metadata, *labels)
