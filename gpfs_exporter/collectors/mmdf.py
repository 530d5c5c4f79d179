from gpfs_exporter.collectors.base import FilesystemCollector
from gpfs_exporter.metrics import MetricSink, gauge
from gpfs_exporter.parsers import parse_mmdf
from gpfs_exporter.targets import Target


class MmdfCollector(FilesystemCollector):
    """
    Filesystem, metadata, data, pool and inode capacity from ``mmdf``.

    mmdf is slow on large filesystems, so this collector is usually run by
    the ``gpfs_mmdf_exporter`` textfile exporter instead of on the scrape
    path.
    """

    name = "mmdf"
    description = "GPFS capacity from mmdf"
    default_enabled = False
    default_timeout = 60

    def __init__(self, runner, options=None, logger=None):
        super().__init__(runner, options, logger)
        fs = ["fs"]
        pool = ["fs", "pool"]
        self.inodes_used = gauge("fs", "used_inodes", "GPFS filesystem inodes used", fs)
        self.inodes_free = gauge("fs", "free_inodes", "GPFS filesystem inodes free", fs)
        self.inodes_allocated = gauge("fs", "allocated_inodes", "GPFS filesystem inodes allocated", fs)
        self.inodes_total = gauge("fs", "inodes", "GPFS filesystem inodes total", fs)
        self.fs_total = gauge("fs", "size_bytes", "GPFS filesystem total size in bytes", fs)
        self.fs_free = gauge("fs", "free_bytes", "GPFS filesystem free size in bytes", fs)
        self.fs_used = gauge("fs", "used_bytes", "GPFS filesystem used size in bytes", fs)
        self.fs_free_percent = gauge("fs", "free_percent", "GPFS filesystem free percent", fs)
        self.metadata_total = gauge("fs", "metadata_size_bytes", "GPFS total metadata size in bytes", fs)
        self.metadata_free = gauge("fs", "metadata_free_bytes", "GPFS metadata free size in bytes", fs)
        self.metadata_used = gauge("fs", "metadata_used_bytes", "GPFS metadata used size in bytes", fs)
        self.metadata_free_percent = gauge("fs", "metadata_free_percent", "GPFS metadata free percent", fs)
        self.data_total = gauge("fs", "data_size_bytes", "GPFS total data size in bytes", fs)
        self.data_free = gauge("fs", "data_free_bytes", "GPFS data free size in bytes", fs)
        self.data_used = gauge("fs", "data_used_bytes", "GPFS data used size in bytes", fs)
        self.pool_total = gauge("fs", "pool_total_bytes", "GPFS pool total data size in bytes", pool)
        self.pool_free = gauge("fs", "pool_free_bytes", "GPFS pool free data size in bytes", pool)
        self.pool_free_percent = gauge("fs", "pool_free_percent", "GPFS pool free data percent", pool)
        self.pool_free_fragments = gauge("fs", "pool_free_fragments_bytes",
                                         "GPFS pool free fragments in bytes", pool)
        self.pool_max_disk_size = gauge("fs", "pool_max_disk_size_bytes",
                                        "GPFS pool max disk size in bytes", pool)

    def describe(self):
        return [
            self.inodes_used, self.inodes_free, self.inodes_allocated, self.inodes_total,
            self.fs_total, self.fs_free, self.fs_used, self.fs_free_percent,
            self.metadata_total, self.metadata_free, self.metadata_used, self.metadata_free_percent,
            self.data_total, self.data_free, self.data_used,
            self.pool_total, self.pool_free, self.pool_free_percent, self.pool_free_fragments,
            self.pool_max_disk_size,
        ]

    def collect_filesystem(self, target: Target, fs: str, sink: MetricSink) -> None:
        out = self.run_command("mmdf", [fs, "-Y"], target)
        result = parse_mmdf(out, fs)
        self.report_parse_errors(sink, result.errors, fs)
        if not result.records:
            raise self.no_records_error(f"mmdf returned no capacity for {fs}", f"mmdf {fs} -Y", out)
        capacity = result.records[0]

        sink.add(self.inodes_used, capacity.inodes_used, fs)
        sink.add(self.inodes_free, capacity.inodes_free, fs)
        sink.add(self.inodes_allocated, capacity.inodes_allocated, fs)
        sink.add(self.inodes_total, capacity.inodes_max, fs)
        sink.add(self.fs_total, capacity.fs_total, fs)
        sink.add(self.fs_free, capacity.fs_free, fs)
        sink.add(self.fs_used, capacity.fs_used, fs)
        sink.add(self.fs_free_percent, capacity.fs_free_percent, fs)
        if capacity.metadata_total is not None:
            sink.add(self.metadata_total, capacity.metadata_total, fs)
            sink.add(self.metadata_free, capacity.metadata_free, fs)
            sink.add(self.metadata_used, capacity.metadata_used, fs)
            sink.add(self.metadata_free_percent, capacity.metadata_free_percent, fs)
        if capacity.data_total is not None:
            sink.add(self.data_total, capacity.data_total, fs)
            sink.add(self.data_free, capacity.data_free, fs)
            sink.add(self.data_used, capacity.data_used, fs)
        for pool in capacity.pools:
            sink.add(self.pool_total, pool.total, fs, pool.name)
            sink.add(self.pool_free, pool.free, fs, pool.name)
            sink.add(self.pool_free_percent, pool.free_percent, fs, pool.name)
            sink.add(self.pool_free_fragments, pool.free_fragments, fs, pool.name)
            sink.add(self.pool_max_disk_size, pool.max_disk_size, fs, pool.name)
