import re
import socket

from gpfs_exporter.collectors.base import BaseCollector, emit_state, split_list
from gpfs_exporter.errors import ConfigurationError, ErrorCode
from gpfs_exporter.metrics import MetricSink, gauge
from gpfs_exporter.parsers import CES_SERVICES, parse_mmces
from gpfs_exporter.targets import Target

CES_STATES = ("DEGRADED", "DEPEND", "DISABLED", "FAILED", "HEALTHY", "STARTING", "STOPPED", "SUSPENDED")


class MmcesCollector(BaseCollector):
    """State of each Cluster Export Services service on this protocol node."""

    name = "mmces"
    description = "GPFS CES service state"
    default_enabled = False
    default_timeout = 5

    def __init__(self, runner, options=None, logger=None):
        super().__init__(runner, options, logger)
        self.nodename = self.option("nodename", "")
        self.states = tuple(split_list(self.option("states")) or CES_STATES)
        self.ignored_services = re.compile(self.option("ignored_services", "^$"))
        self.state = gauge("ces", "state", "GPFS CES health status", ["service", "state"])

    def describe(self):
        return [self.state]

    def get_nodename(self) -> str:
        nodename = self.nodename or socket.getfqdn()
        if not nodename:
            raise ConfigurationError("Unable to determine the CES node name",
                                     parameter="--collector.mmces.nodename",
                                     code=ErrorCode.CONFIG_MISSING_REQUIRED)
        return nodename

    def collect(self, target: Target, sink: MetricSink) -> None:
        nodename = self.get_nodename()
        out = self.run_command("mmces", ["state", "show", "-N", nodename, "-Y"], target)
        result = parse_mmces(out, CES_SERVICES)
        self.report_parse_errors(sink, result.errors)
        for record in result.records:
            if self.ignored_services.search(record.service):
                self.logger.debug(f"Ignoring CES service {record.service}")
                continue
            if not emit_state(sink, self.state, self.states, record.state, record.service, unknown="UNKNOWN"):
                self.logger.warning(f"Unknown CES state {record.state!r} for service {record.service}")
