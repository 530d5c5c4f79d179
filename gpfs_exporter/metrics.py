"""
Metric descriptors, samples and per-collector sinks.

Collectors never touch ``prometheus_client`` registries directly. They
declare ``MetricDescriptor`` objects once, push ``Sample`` objects into the
``MetricSink`` handed to ``collect()``, and the dispatcher turns the merged
samples into ``prometheus_client`` metric families at the end of a scrape.
"""

import enum
from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, HistogramMetricFamily
from prometheus_client.utils import floatToGoString

from gpfs_exporter.config import NAMESPACE


class MetricKind(enum.Enum):
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


@dataclass(frozen=True)
class MetricDescriptor:
    """
    Immutable description of one metric.

    Attributes:
        name: Fully qualified name, e.g. ``gpfs_perf_read_bytes_total``.
        help: Help text.
        labels: Label names in the order label values are bound.
        kind: Counter, gauge or histogram.
    """
    name: str
    help: str
    labels: Tuple[str, ...] = ()
    kind: MetricKind = MetricKind.GAUGE

    def new_family(self):
        labels = list(self.labels)
        if self.kind == MetricKind.COUNTER:
            return CounterMetricFamily(self.name, self.help, labels=labels)
        if self.kind == MetricKind.HISTOGRAM:
            return HistogramMetricFamily(self.name, self.help, labels=labels)
        return GaugeMetricFamily(self.name, self.help, labels=labels)


def build_name(subsystem: str, name: str, namespace: str = NAMESPACE) -> str:
    return "_".join(part for part in (namespace, subsystem, name) if part)


def gauge(subsystem: str, name: str, help_text: str, labels: Sequence[str] = ()) -> MetricDescriptor:
    return MetricDescriptor(build_name(subsystem, name), help_text, tuple(labels), MetricKind.GAUGE)


def counter(subsystem: str, name: str, help_text: str, labels: Sequence[str] = ()) -> MetricDescriptor:
    return MetricDescriptor(build_name(subsystem, name), help_text, tuple(labels), MetricKind.COUNTER)


def histogram(subsystem: str, name: str, help_text: str, labels: Sequence[str] = ()) -> MetricDescriptor:
    return MetricDescriptor(build_name(subsystem, name), help_text, tuple(labels), MetricKind.HISTOGRAM)


@dataclass
class Sample:
    descriptor: MetricDescriptor
    label_values: Tuple[str, ...]
    value: float = 0.0
    timestamp: Optional[float] = None
    buckets: Optional[List[Tuple[str, float]]] = None
    sum_value: Optional[float] = None


def histogram_buckets(values: Iterable[float], bounds: Sequence[float]) -> Tuple[List[Tuple[str, float]], float]:
    """
    Compute cumulative histogram buckets for ``values``.

    Returns:
        Tuple of (buckets, sum). Buckets are ``(le, count)`` pairs ending with
        ``+Inf``, with ``le`` formatted the way ``prometheus_client`` does.
    """
    values = list(values)
    bounds = sorted(bounds)
    buckets = []
    for bound in bounds:
        buckets.append((floatToGoString(bound), float(sum(1 for v in values if v <= bound))))
    buckets.append(("+Inf", float(len(values))))
    return buckets, float(sum(values))


@dataclass
class SubCollectorStatus:
    """Outcome of one unit of work inside a collector, such as one filesystem."""
    label: str
    error: bool = False
    timeout: bool = False
    duration: float = 0.0
    last_execution: float = 0.0

    @property
    def failed(self) -> bool:
        return self.error or self.timeout


class MetricSink:
    """
    Collects samples emitted by one collector during one scrape.

    Each collector gets its own sink, so no locking is needed. The
    dispatcher merges sinks after the collectors finish. Sub-collector
    statuses are reported even when the collector as a whole fails.
    """

    def __init__(self):
        self.samples: List[Sample] = []
        self.subcollectors: List[SubCollectorStatus] = []
        self.parse_errors = 0

    def __len__(self):
        return len(self.samples)

    def add(self, descriptor: MetricDescriptor, value: float, *label_values, timestamp: Optional[float] = None):
        self.samples.append(Sample(descriptor, self._bind(descriptor, label_values), float(value), timestamp))

    def add_histogram(self, descriptor: MetricDescriptor, buckets: List[Tuple[str, float]], sum_value: float,
                      *label_values):
        if descriptor.kind != MetricKind.HISTOGRAM:
            raise ValueError(f"{descriptor.name} is not a histogram")
        self.samples.append(Sample(descriptor, self._bind(descriptor, label_values),
                                   buckets=buckets, sum_value=sum_value))

    def add_parse_errors(self, errors: Sequence[str]):
        self.parse_errors += len(errors)

    def add_subcollector(self, status: SubCollectorStatus):
        self.subcollectors.append(status)

    def extend(self, other: "MetricSink"):
        self.samples.extend(other.samples)
        self.subcollectors.extend(other.subcollectors)
        self.parse_errors += other.parse_errors

    def find(self, name: str, **labels) -> List[Sample]:
        """Return samples of metric ``name`` whose labels include ``labels``."""
        found = []
        for sample in self.samples:
            if sample.descriptor.name != name:
                continue
            bound = dict(zip(sample.descriptor.labels, sample.label_values))
            if all(bound.get(k) == v for k, v in labels.items()):
                found.append(sample)
        return found

    @staticmethod
    def _bind(descriptor: MetricDescriptor, label_values) -> Tuple[str, ...]:
        if len(label_values) != len(descriptor.labels):
            raise ValueError(
                f"{descriptor.name} expects labels {descriptor.labels}, got {len(label_values)} values"
            )
        return tuple(str(v) for v in label_values)


def build_families(samples: Iterable[Sample]) -> list:
    """Group samples by descriptor into ``prometheus_client`` metric families."""
    families = OrderedDict()
    for sample in samples:
        descriptor = sample.descriptor
        family = families.get(descriptor.name)
        if family is None:
            family = descriptor.new_family()
            families[descriptor.name] = family
        labels = list(sample.label_values)
        if descriptor.kind == MetricKind.HISTOGRAM:
            family.add_metric(labels, sample.buckets, sample.sum_value, timestamp=sample.timestamp)
        else:
            family.add_metric(labels, sample.value, timestamp=sample.timestamp)
    return list(families.values())
