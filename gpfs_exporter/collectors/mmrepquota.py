from typing import Dict, List

from gpfs_exporter.collectors.base import BaseCollector, split_list
from gpfs_exporter.errors import ConfigurationError
from gpfs_exporter.metrics import MetricDescriptor, MetricSink, gauge
from gpfs_exporter.parsers import parse_mmrepquota
from gpfs_exporter.targets import Target

QUOTA_TYPE_ARGS = {
    "user": "-u",
    "group": "-g",
    "fileset": "-j",
}
# quotaType column of mmrepquota -> metric subsystem
QUOTA_SUBSYSTEMS = {
    "FILESET": "fileset",
    "USR": "user",
    "GRP": "group",
}
# record attribute -> (metric name, help suffix)
QUOTA_METRICS = (
    ("block_usage", "used_bytes", "quota used"),
    ("block_quota", "quota_bytes", "block quota"),
    ("block_limit", "limit_bytes", "quota block limit"),
    ("block_in_doubt", "in_doubt_bytes", "quota block in doubt"),
    ("files_usage", "used_files", "quota files used"),
    ("files_quota", "quota_files", "files quota"),
    ("files_limit", "limit_files", "quota files limit"),
    ("files_in_doubt", "in_doubt_files", "quota files in doubt"),
)


class MmrepquotaCollector(BaseCollector):
    """
    Quota usage and limits from ``mmrepquota``.

    One command runs per configured quota type (``user``, ``group``,
    ``fileset``), against the configured filesystems or ``-a``.
    """

    name = "mmrepquota"
    description = "GPFS quota usage from mmrepquota"
    default_enabled = False
    default_timeout = 20

    def __init__(self, runner, options=None, logger=None):
        super().__init__(runner, options, logger)
        self.quota_types = split_list(self.option("quota_types")) or ["fileset"]
        for quota_type in self.quota_types:
            if quota_type not in QUOTA_TYPE_ARGS:
                raise ConfigurationError(f"Unknown quota type {quota_type}",
                                         parameter="--collector.mmrepquota.quota-types",
                                         expected=", ".join(QUOTA_TYPE_ARGS), actual=quota_type)
        self.filesystems = split_list(self.option("filesystems"))

        self.metrics: Dict[str, Dict[str, MetricDescriptor]] = {}
        for subsystem in QUOTA_SUBSYSTEMS.values():
            self.metrics[subsystem] = {
                attribute: gauge(subsystem, metric, f"GPFS {subsystem} {help_suffix}", [subsystem, "fs"])
                for attribute, metric, help_suffix in QUOTA_METRICS
            }

    def describe(self):
        return [d for descriptors in self.metrics.values() for d in descriptors.values()]

    def deadline(self, target: Target) -> float:
        return len(self.quota_types) * (self.timeout_for(target) + self.grace) + 1

    def command_args(self, quota_type: str, target: Target) -> List[str]:
        filesystems = target.filesystems_for(self.name) or self.filesystems
        return [QUOTA_TYPE_ARGS[quota_type], "-Y"] + (filesystems or ["-a"])

    def collect(self, target: Target, sink: MetricSink) -> None:
        for quota_type in self.quota_types:
            out = self.run_command("mmrepquota", self.command_args(quota_type, target), target)
            result = parse_mmrepquota(out)
            self.report_parse_errors(sink, result.errors, quota_type)
            for quota in result.records:
                subsystem = QUOTA_SUBSYSTEMS.get(quota.quota_type)
                if subsystem is None:
                    self.logger.debug(f"Skipping unknown quota type {quota.quota_type!r}")
                    continue
                for attribute, descriptor in self.metrics[subsystem].items():
                    sink.add(descriptor, getattr(quota, attribute), quota.name, quota.fs)
