import re

from gpfs_exporter.collectors.base import BaseCollector, emit_state, split_list
from gpfs_exporter.metrics import MetricSink, gauge
from gpfs_exporter.parsers import parse_mmhealth
from gpfs_exporter.targets import Target

MMHEALTH_STATUSES = (
    "CHECKING", "DEGRADED", "DEPEND", "DISABLED", "FAILED",
    "HEALTHY", "STARTING", "STOPPED", "SUSPENDED", "TIPS",
)


class MmhealthCollector(BaseCollector):
    """
    Health of node components from ``mmhealth node show``.

    Every State row becomes a one-hot ``gpfs_health_status`` group over the
    known statuses plus ``UNKNOWN``. Every distinct Event becomes a
    ``gpfs_health_event`` gauge with value 1. Rows whose component, entity
    name or entity type match the ignore patterns are dropped, as are events
    matching the event ignore pattern when one is set.
    """

    name = "mmhealth"
    description = "GPFS component health from mmhealth"
    default_enabled = False
    default_timeout = 5

    def __init__(self, runner, options=None, logger=None):
        super().__init__(runner, options, logger)
        self.statuses = tuple(split_list(self.option("states")) or MMHEALTH_STATUSES)
        self.ignored_component = re.compile(self.option("ignored_component", "^$"))
        self.ignored_entityname = re.compile(self.option("ignored_entityname", "^$"))
        self.ignored_entitytype = re.compile(self.option("ignored_entitytype", "^$"))
        ignored_event = self.option("ignored_event", "")
        self.ignored_event = re.compile(ignored_event) if ignored_event else None

        self.status = gauge("health", "status", "GPFS health status",
                            ["component", "entityname", "entitytype", "status"])
        self.event = gauge("health", "event", "GPFS health event",
                           ["component", "entityname", "entitytype", "event"])

    def describe(self):
        return [self.status, self.event]

    def is_ignored(self, record) -> bool:
        if self.ignored_component.search(record.component):
            return True
        if self.ignored_entityname.search(record.entityname):
            return True
        if self.ignored_entitytype.search(record.entitytype):
            return True
        if record.type == "Event" and self.ignored_event is not None and self.ignored_event.search(record.event):
            return True
        return False

    def collect(self, target: Target, sink: MetricSink) -> None:
        out = self.run_command("mmhealth", ["node", "show", "-Y"], target)
        result = parse_mmhealth(out)
        self.report_parse_errors(sink, result.errors)

        seen_events = set()
        seen_entities = set()
        for record in result.records:
            if self.is_ignored(record):
                self.logger.debug(f"Ignoring mmhealth {record.type} {record}")
                continue
            labels = (record.component, record.entityname, record.entitytype)
            if record.type == "Event":
                key = labels + (record.event,)
                if key in seen_events:
                    continue
                seen_events.add(key)
                sink.add(self.event, 1, *key)
                continue
            if labels in seen_entities:
                continue
            seen_entities.add(labels)
            if not emit_state(sink, self.status, self.statuses, record.status, *labels, unknown="UNKNOWN"):
                self.logger.warning(
                    f"Unknown status {record.status!r} for component={record.component} "
                    f"entityname={record.entityname} entitytype={record.entitytype}"
                )
