from gpfs_exporter.collectors.base import FilesystemCollector
from gpfs_exporter.metrics import MetricSink, gauge
from gpfs_exporter.parsers import parse_mmlspool
from gpfs_exporter.targets import Target


class MmlspoolCollector(FilesystemCollector):
    """
    Storage pool data capacity from ``mmlspool``.

    Metadata capacity is only emitted for pools that hold metadata.
    """

    name = "mmlspool"
    description = "GPFS storage pools from mmlspool"
    default_enabled = False
    default_timeout = 30

    def __init__(self, runner, options=None, logger=None):
        super().__init__(runner, options, logger)
        labels = ["fs", "pool"]
        self.total = gauge("pool", "total_bytes", "GPFS pool total size in bytes", labels)
        self.free = gauge("pool", "free_bytes", "GPFS pool free size in bytes", labels)
        self.free_percent = gauge("pool", "free_percent", "GPFS pool free percent", labels)
        self.meta_total = gauge("pool", "metadata_total_bytes", "GPFS pool total metadata in bytes", labels)
        self.meta_free = gauge("pool", "metadata_free_bytes", "GPFS pool free metadata in bytes", labels)
        self.meta_free_percent = gauge("pool", "metadata_free_percent", "GPFS pool free metadata percent", labels)

    def describe(self):
        return [self.total, self.free, self.free_percent, self.meta_total, self.meta_free, self.meta_free_percent]

    def collect_filesystem(self, target: Target, fs: str, sink: MetricSink) -> None:
        out = self.run_command("mmlspool", [fs], target)
        result = parse_mmlspool(out, fs)
        self.report_parse_errors(sink, result.errors, fs)
        for pool in result.records:
            sink.add(self.total, pool.total, fs, pool.name)
            sink.add(self.free, pool.free, fs, pool.name)
            sink.add(self.free_percent, pool.free_percent, fs, pool.name)
            if pool.meta:
                sink.add(self.meta_total, pool.meta_total, fs, pool.name)
                sink.add(self.meta_free, pool.meta_free, fs, pool.name)
                sink.add(self.meta_free_percent, pool.meta_free_percent, fs, pool.name)
