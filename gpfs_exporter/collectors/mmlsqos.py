from gpfs_exporter.collectors.base import FilesystemCollector
from gpfs_exporter.errors import ConfigurationError
from gpfs_exporter.metrics import MetricSink, gauge
from gpfs_exporter.parsers import parse_mmlsqos
from gpfs_exporter.targets import Target

DEFAULT_QOS_SECONDS = 60


class MmlsqosCollector(FilesystemCollector):
    """
    QoS class performance from ``mmlsqos <fs> -Y --seconds N``.

    Each stats row is one measurement period; the period start is kept as
    the ``measurement_period_seconds`` label so consecutive periods of the
    same pool and class stay distinct series.
    """

    name = "mmlsqos"
    description = "GPFS QoS statistics from mmlsqos"
    default_enabled = False
    default_timeout = 60

    def __init__(self, runner, options=None, logger=None):
        super().__init__(runner, options, logger)
        self.seconds = int(self.option("seconds", DEFAULT_QOS_SECONDS))
        if not 1 <= self.seconds <= 999:
            raise ConfigurationError("mmlsqos seconds out of range", parameter="--collector.mmlsqos.seconds",
                                     expected="1-999", actual=self.seconds)
        labels = ["fs", "pool", "class", "measurement_period_seconds"]
        self.iops = gauge("qos", "iops", "GPFS performance of the class in I/O operations per second", labels)
        self.pending = gauge("qos", "average_pending_requests",
                             "GPFS average number of I/O requests in the class that are pending for reasons "
                             "other than being queued by QoS", labels)
        self.queued = gauge("qos", "average_queued_requests",
                            "GPFS average number of I/O requests in the class that are queued by QoS", labels)
        self.interval = gauge("qos", "measurement_interval_seconds",
                              "GPFS interval in seconds during which the measurement was made", labels)
        self.bytes_per_second = gauge("qos", "bytes_per_second",
                                      "GPFS performance of the class in Bytes per second", labels)

    def describe(self):
        return [self.iops, self.pending, self.queued, self.interval, self.bytes_per_second]

    def collect_filesystem(self, target: Target, fs: str, sink: MetricSink) -> None:
        out = self.run_command("mmlsqos", [fs, "-Y", "--seconds", str(self.seconds)], target)
        result = parse_mmlsqos(out)
        self.report_parse_errors(sink, result.errors, fs)
        for qos in result.records:
            labels = (fs, qos.pool, qos.qos_class, f"{qos.time:.0f}")
            sink.add(self.iops, qos.iops, *labels)
            sink.add(self.pending, qos.average_pending_requests, *labels)
            sink.add(self.queued, qos.average_queued_requests, *labels)
            sink.add(self.interval, qos.measurement_interval, *labels)
            sink.add(self.bytes_per_second, qos.bytes_per_second, *labels)
