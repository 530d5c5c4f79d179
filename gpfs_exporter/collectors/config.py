from gpfs_exporter.collectors.base import BaseCollector
from gpfs_exporter.metrics import MetricSink, gauge
from gpfs_exporter.parsers import parse_int, parse_mmdiag_config
from gpfs_exporter.targets import Target

# mmdiag --config name -> (metric name, help)
CONFIG_FLAGS = {
    "pagepool": ("page_pool_bytes", "GPFS configured page pool size"),
}


class ConfigCollector(BaseCollector):
    """Selected GPFS daemon configuration values from ``mmdiag --config``."""

    name = "config"
    description = "GPFS configuration from mmdiag"
    default_enabled = True
    default_timeout = 5

    def __init__(self, runner, options=None, logger=None):
        super().__init__(runner, options, logger)
        self.flags = {
            key: gauge("config", metric, help_text) for key, (metric, help_text) in CONFIG_FLAGS.items()
        }

    def describe(self):
        return list(self.flags.values())

    def collect(self, target: Target, sink: MetricSink) -> None:
        out = self.run_command("mmdiag", ["--config", "-Y"], target)
        result = parse_mmdiag_config(out)
        self.report_parse_errors(sink, result.errors)
        for record in result.records:
            descriptor = self.flags.get(record.name)
            if descriptor is None:
                continue
            try:
                value = parse_int(record.value)
            except ValueError:
                self.report_parse_errors(sink, [f"invalid {record.name} value {record.value!r}"])
                continue
            sink.add(descriptor, value)
