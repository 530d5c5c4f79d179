from gpfs_exporter.collectors.base import FilesystemCollector
from gpfs_exporter.metrics import MetricSink, gauge
from gpfs_exporter.parsers import parse_mmlsfileset
from gpfs_exporter.targets import Target


class MmlsfilesetCollector(FilesystemCollector):
    """Fileset status, junction path, creation time and inode counts."""

    name = "mmlsfileset"
    description = "GPFS filesets from mmlsfileset"
    default_enabled = False
    default_timeout = 60

    def __init__(self, runner, options=None, logger=None, tz=None):
        super().__init__(runner, options, logger)
        self.tz = tz
        labels = ["fs", "fileset"]
        self.status = gauge("fileset", "status_info", "GPFS fileset status", labels + ["status"])
        self.path = gauge("fileset", "path_info", "GPFS fileset path", labels + ["path"])
        self.created = gauge("fileset", "created_timestamp_seconds", "GPFS fileset creation timestamp", labels)
        self.max_inodes = gauge("fileset", "max_inodes", "GPFS fileset max inodes", labels)
        self.alloc_inodes = gauge("fileset", "alloc_inodes", "GPFS fileset alloc inodes", labels)
        self.free_inodes = gauge("fileset", "free_inodes", "GPFS fileset free inodes", labels)

    def describe(self):
        return [self.status, self.path, self.created, self.max_inodes, self.alloc_inodes, self.free_inodes]

    def collect_filesystem(self, target: Target, fs: str, sink: MetricSink) -> None:
        out = self.run_command("mmlsfileset", [fs, "-Y"], target)
        result = parse_mmlsfileset(out, self.tz)
        self.report_parse_errors(sink, result.errors, fs)
        for fileset in result.records:
            labels = (fileset.fs, fileset.fileset)
            sink.add(self.status, 1, *labels, fileset.status)
            sink.add(self.path, 1, *labels, fileset.path)
            sink.add(self.created, fileset.created, *labels)
            sink.add(self.max_inodes, fileset.max_inodes, *labels)
            sink.add(self.alloc_inodes, fileset.alloc_inodes, *labels)
            sink.add(self.free_inodes, fileset.free_inodes, *labels)
