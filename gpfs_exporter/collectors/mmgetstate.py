from gpfs_exporter.collectors.base import BaseCollector, emit_state, split_list
from gpfs_exporter.metrics import MetricSink, gauge
from gpfs_exporter.parsers import parse_mmgetstate
from gpfs_exporter.targets import Target

MMGETSTATE_STATES = ("active", "arbitrating", "down")


class MmgetstateCollector(BaseCollector):
    name = "mmgetstate"
    description = "GPFS daemon state of this node"
    default_enabled = True
    default_timeout = 5

    def __init__(self, runner, options=None, logger=None):
        super().__init__(runner, options, logger)
        self.states = tuple(split_list(self.option("states")) or MMGETSTATE_STATES)
        self.state = gauge("", "state", "GPFS state", ["state"])

    def describe(self):
        return [self.state]

    def collect(self, target: Target, sink: MetricSink) -> None:
        out = self.run_command("mmgetstate", ["-Y"], target)
        result = parse_mmgetstate(out)
        self.report_parse_errors(sink, result.errors)
        if not result.records:
            raise self.no_records_error("mmgetstate returned no node state", "mmgetstate -Y", out)
        state = result.records[0].state
        if not emit_state(sink, self.state, self.states, state):
            self.logger.warning(f"Unknown mmgetstate state {state!r}")
