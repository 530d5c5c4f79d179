import os
from typing import List

from gpfs_exporter.collectors.base import BaseCollector, split_list
from gpfs_exporter.config import FSTAB, PROC_MOUNTS
from gpfs_exporter.errors import ErrorCode, FileSystemError
from gpfs_exporter.metrics import MetricSink, gauge
from gpfs_exporter.parsers import parse_fstab, parse_proc_mounts, union_mounts
from gpfs_exporter.targets import Target


def _read(path: str) -> str:
    with open(path, "r") as f:
        return f.read()


class MountCollector(BaseCollector):
    """Report whether each expected GPFS filesystem is mounted."""

    name = "mount"
    description = "GPFS mount status from /proc/mounts and fstab"
    default_enabled = True
    default_timeout = 5

    def __init__(self, runner, options=None, logger=None, proc_mounts: str = PROC_MOUNTS):
        super().__init__(runner, options, logger)
        self.proc_mounts = proc_mounts
        self.fstab = self.option("fstab", FSTAB)
        self.mounts = split_list(self.option("mounts"))
        self.status = gauge("mount", "status", "Status of GPFS filesystems, 1=mounted 0=not mounted", ["mount"])

    def describe(self):
        return [self.status]

    def get_gpfs_mounts(self) -> List[str]:
        """Return mounted GPFS filesystems in ``/proc/mounts`` order.

        Raises:
            FileSystemError: The mount table cannot be read.
        """
        try:
            content = _read(self.proc_mounts)
        except OSError as e:
            raise FileSystemError(f"Unable to read {self.proc_mounts}: {e}", path=self.proc_mounts,
                                  operation="read", code=ErrorCode.FS_PATH_NOT_FOUND) from e
        return parse_proc_mounts(content).records

    def get_fstab_mounts(self) -> List[str]:
        if not self.fstab or not os.path.exists(self.fstab):
            self.logger.debug(f"fstab {self.fstab} not found, skipping configured mounts")
            return []
        try:
            content = _read(self.fstab)
        except OSError as e:
            raise FileSystemError(f"Unable to read {self.fstab}: {e}", path=self.fstab, operation="read",
                                  code=ErrorCode.FS_PERMISSION_DENIED) from e
        return parse_fstab(content).records

    def collect(self, target: Target, sink: MetricSink) -> None:
        mounted = self.get_gpfs_mounts()
        expected = target.fs_mounts or self.mounts
        if not expected:
            expected = union_mounts(mounted, self.get_fstab_mounts())
        self.logger.debug(f"GPFS mounts {mounted}, expected {expected}")
        for mount in expected:
            sink.add(self.status, 1 if mount in mounted else 0, mount)
