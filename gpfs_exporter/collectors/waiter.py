import re
from collections import Counter
from typing import List, Sequence, Union

from gpfs_exporter.collectors.base import BaseCollector, split_list
from gpfs_exporter.config import DEFAULT_WAITER_BUCKETS, DEFAULT_WAITER_EXCLUDE
from gpfs_exporter.errors import ConfigurationError
from gpfs_exporter.metrics import MetricSink, gauge, histogram, histogram_buckets
from gpfs_exporter.parsers import WaiterRecord, parse_mmdiag_waiters
from gpfs_exporter.targets import Target

DURATION_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600}
DURATION_PATTERN = re.compile(r"^([0-9.]+)(ms|s|m|h)?$")


def parse_duration(value: str) -> float:
    """Parse ``15s``, ``5m``, ``1h`` or a bare number of seconds."""
    match = DURATION_PATTERN.match(value.strip())
    if match is None:
        raise ConfigurationError(f"Invalid duration {value!r}", parameter="--collector.waiter.buckets",
                                 expected="number with optional ms/s/m/h suffix", actual=value)
    number, unit = match.groups()
    return float(number) * DURATION_UNITS[unit or "s"]


def parse_buckets(value: Union[str, Sequence[float], None]) -> List[float]:
    if not value:
        return list(DEFAULT_WAITER_BUCKETS)
    if isinstance(value, str):
        return sorted(parse_duration(v) for v in split_list(value))
    return sorted(float(v) for v in value)


class WaiterCollector(BaseCollector):
    """
    Histogram of GPFS waiter durations from ``mmdiag --waiters``.

    Waiters whose thread name matches the exclude pattern (or does not
    match the include pattern, when one is set) are dropped before the
    histogram is computed. ``gpfs_waiter_info_count`` counts waiters per
    thread name.
    """

    name = "waiter"
    description = "GPFS waiters from mmdiag"
    default_enabled = False
    default_timeout = 5

    def __init__(self, runner, options=None, logger=None):
        super().__init__(runner, options, logger)
        self.exclude = re.compile(self.option("exclude", DEFAULT_WAITER_EXCLUDE))
        include = self.option("include", "")
        self.include = re.compile(include) if include else None
        self.buckets = parse_buckets(self.option("buckets"))
        self.log_reason = bool(self.option("log_reason", False))
        self.threshold = float(self.global_option("mmdiag_waiter_threshold", 0))

        self.seconds = histogram("waiter", "seconds", "GPFS waiter in seconds")
        self.info_count = gauge("waiter", "info_count", "GPFS waiter info", ["waiter"])

    def describe(self):
        return [self.seconds, self.info_count]

    def keep(self, waiter: WaiterRecord) -> bool:
        if self.exclude.pattern and self.exclude.search(waiter.name):
            self.logger.debug(f"Skipping waiter {waiter.name} due to exclude pattern")
            return False
        if self.include is not None and not self.include.search(waiter.name):
            return False
        return True

    def collect(self, target: Target, sink: MetricSink) -> None:
        out = self.run_command("mmdiag", ["--waiters", "-Y"], target)
        result = parse_mmdiag_waiters(out)
        self.report_parse_errors(sink, result.errors)

        threshold = target.threshold_for(self.name, self.threshold)
        waiters = [w for w in result.records if self.keep(w)]
        info_counts = Counter()
        for waiter in waiters:
            if threshold and waiter.seconds > threshold:
                self.logger.warning(f"Waiter {waiter.name or 'unknown'} thread {waiter.thread_id} waiting "
                                    f"{waiter.seconds}s: {waiter.reason}")
            if not waiter.name and not waiter.reason:
                continue
            if self.log_reason:
                self.logger.info(f"Waiter reason information waiter={waiter.name} reason={waiter.reason} "
                                 f"seconds={waiter.seconds}")
            info_counts[waiter.name] += 1

        buckets, total = histogram_buckets([w.seconds for w in waiters], self.buckets)
        sink.add_histogram(self.seconds, buckets, total)
        for name, count in info_counts.items():
            sink.add(self.info_count, count, name)
