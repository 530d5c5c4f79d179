"""
Scrape dispatcher.

A Dispatcher runs the enabled collectors of one Target concurrently and
exposes the result through the ``prometheus_client`` custom collector
protocol, so it can be registered in a ``CollectorRegistry`` and rendered
with ``generate_latest``.

Every collector runs in its own thread with a private MetricSink. The
dispatcher waits for each collector up to its deadline; a collector that is
still running afterwards is reported as timed out and whatever it produces
later is discarded. Framework metrics (``gpfs_exporter_collect_error``,
``..._collect_timeout``, ``..._collector_duration_seconds``,
``..._last_execution``, ``..._parse_errors``) are emitted for every enabled
collector on every scrape, so a scrape never returns an empty body.
"""

import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from gpfs_exporter.config import EXPORTER_SUBSYSTEM
from gpfs_exporter.errors import CommandTimeoutError, ConfigurationError, ErrorCode, GPFSExporterException
from gpfs_exporter.gpfs_logging import get_logger
from gpfs_exporter.interfaces import CollectorInterface
from gpfs_exporter.metrics import MetricSink, Sample, SubCollectorStatus, build_families, gauge
from gpfs_exporter.targets import Target

COLLECT_ERROR = gauge(EXPORTER_SUBSYSTEM, "collect_error",
                      "Indicates if error has occurred during collection", ["collector"])
COLLECT_TIMEOUT = gauge(EXPORTER_SUBSYSTEM, "collect_timeout", "Indicates the collector timed out", ["collector"])
COLLECTOR_DURATION = gauge(EXPORTER_SUBSYSTEM, "collector_duration_seconds", "Collector time duration.",
                           ["collector"])
LAST_EXECUTION = gauge(EXPORTER_SUBSYSTEM, "last_execution", "Last execution time of collector", ["collector"])
PARSE_ERRORS = gauge(EXPORTER_SUBSYSTEM, "parse_errors", "Number of malformed records skipped during collection",
                     ["collector"])
COLLECTOR_ENABLED = gauge(EXPORTER_SUBSYSTEM, "collector_enabled", "Indicates the collector ran for this scrape",
                          ["collector"])

FRAMEWORK_DESCRIPTORS = (COLLECT_ERROR, COLLECT_TIMEOUT, COLLECTOR_DURATION, LAST_EXECUTION, PARSE_ERRORS,
                         COLLECTOR_ENABLED)


@dataclass
class CollectorResult:
    """Outcome of one collector for one scrape."""
    name: str
    sink: MetricSink = field(default_factory=MetricSink)
    error: bool = False
    timeout: bool = False
    duration: float = 0.0
    last_execution: float = 0.0

    @property
    def subcollectors(self) -> List[SubCollectorStatus]:
        return self.sink.subcollectors

    @property
    def failed(self) -> bool:
        return self.error or self.timeout or any(s.failed for s in self.subcollectors)


def status_samples(label: str, error: bool, timeout: bool, duration: float, last_execution: float) -> List[Sample]:
    samples = [
        Sample(COLLECT_ERROR, (label,), 1.0 if error else 0.0),
        Sample(COLLECT_TIMEOUT, (label,), 1.0 if timeout else 0.0),
        Sample(COLLECTOR_DURATION, (label,), duration),
    ]
    if last_execution:
        samples.append(Sample(LAST_EXECUTION, (label,), float(int(last_execution))))
    return samples


class Dispatcher:
    """
    Runs collectors for one Target per scrape.

    Args:
        collectors: Collector instances by name, shared across scrapes.
        target: Scrape profile. Its lock serializes scrapes of this Target.
        default_enabled: Names to run when the Target lists no collectors.
        only: Per-request filter (``collect[]``); intersected with the
            enabled set.
        logger: Logger, defaults to ``gpfs_exporter.dispatcher``.
    """

    def __init__(self, collectors: Dict[str, CollectorInterface], target: Target,
                 default_enabled: Optional[Iterable[str]] = None, only: Optional[Iterable[str]] = None,
                 logger=None):
        self.collectors = collectors
        self.target = target
        self.default_enabled = list(default_enabled) if default_enabled is not None else list(collectors)
        self.only = list(only) if only else []
        self.logger = logger or get_logger("dispatcher")

    def enabled(self) -> List[str]:
        """
        Resolve the collectors to run for this scrape.

        Raises:
            ConfigurationError: The Target names a collector that was not
                created at startup.
        """
        names = self.target.collectors or self.default_enabled
        missing = [name for name in names if name not in self.collectors]
        if missing:
            raise ConfigurationError(
                f"Target {self.target.name} enables collectors that are not available",
                parameter="collectors",
                expected=", ".join(self.collectors),
                actual=", ".join(missing),
                code=ErrorCode.CONFIG_INVALID_VALUE,
            )
        if self.only:
            names = [name for name in names if name in self.only]
        return names

    def describe(self):
        # Descriptors depend on the Target and request, so nothing is declared up front.
        return []

    def collect(self):
        return build_families(self.scrape())

    def scrape(self) -> List[Sample]:
        """Run every enabled collector once and return all samples."""
        with self.target.lock:
            try:
                results = self.run_collectors(self.enabled())
            finally:
                self.target.fs_cache.clear()

        samples = []
        for result in results:
            if not (result.error or result.timeout):
                samples.extend(result.sink.samples)
        for result in results:
            samples.extend(self.framework_samples(result))
        return samples

    def run_collectors(self, names: List[str]) -> List[CollectorResult]:
        if not names:
            return []
        executor = ThreadPoolExecutor(max_workers=len(names), thread_name_prefix="collector")
        start = time.monotonic()
        futures = {}
        try:
            for name in names:
                futures[name] = executor.submit(self.run_collector, name, self.collectors[name])

            results = []
            for name in names:
                collector = self.collectors[name]
                deadline = self.deadline_for(collector)
                remaining = max(0.0, start + deadline - time.monotonic())
                done, _ = wait([futures[name]], timeout=remaining)
                if done:
                    results.append(futures[name].result())
                    continue
                self.logger.error(f"Timeout collecting {name} after {deadline:.1f}s")
                futures[name].cancel()
                results.append(CollectorResult(name, timeout=True, duration=time.monotonic() - start,
                                               last_execution=time.time()))
            return results
        finally:
            # Overrunning collectors finish in the background; their results are discarded.
            executor.shutdown(wait=False)

    def deadline_for(self, collector: CollectorInterface) -> float:
        deadline = getattr(collector, "deadline", None)
        if callable(deadline):
            return deadline(self.target)
        return collector.timeout + 1

    def run_collector(self, name: str, collector: CollectorInterface) -> CollectorResult:
        result = CollectorResult(name, last_execution=time.time())
        start = time.monotonic()
        self.logger.debug(f"Collecting {name} for target {self.target.name}")
        try:
            collector.collect(self.target, result.sink)
        except CommandTimeoutError as e:
            result.timeout = True
            self.logger.error(f"Timeout executing {name}: {e}")
        except GPFSExporterException as e:
            result.error = True
            self.logger.error(f"Error collecting {name}: {e}")
        except Exception as e:
            result.error = True
            self.logger.exception(f"Unexpected error collecting {name}: {e}")
        result.duration = time.monotonic() - start
        self.logger.debug(f"Collector {name} finished in {result.duration:.3f}s")
        return result

    @staticmethod
    def framework_samples(result: CollectorResult) -> List[Sample]:
        sub_failed = any(s.failed for s in result.subcollectors)
        samples = status_samples(result.name, result.error or (sub_failed and not result.timeout),
                                 result.timeout, result.duration, result.last_execution)
        samples.append(Sample(PARSE_ERRORS, (result.name,), float(result.sink.parse_errors)))
        samples.append(Sample(COLLECTOR_ENABLED, (result.name,), 1.0))
        for status in result.subcollectors:
            samples.extend(status_samples(status.label, status.error, status.timeout, status.duration,
                                          status.last_execution))
        return samples
