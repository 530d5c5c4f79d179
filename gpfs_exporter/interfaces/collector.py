"""
Collector interface definitions for gpfs_exporter.

A collector owns one metric family group, for example everything derived
from ``mmdf``. It runs its GPFS command through the runner it was built
with, parses the output and pushes samples into the sink it is given.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from gpfs_exporter.metrics import MetricDescriptor, MetricSink
    from gpfs_exporter.targets import Target


class CollectorInterface(ABC):
    """Interface for GPFS metric collectors.

    Collectors are constructed once at startup and reused for every scrape,
    possibly from several threads for different Targets, so ``collect()``
    must keep per-scrape state in local variables or in the Target.

    Failures are reported by raising:
    - CommandTimeoutError when the command deadline expired
    - any other exception for every other failure

    The dispatcher converts these into the ``collect_timeout`` and
    ``collect_error`` indicators and drops the collector's samples.

    Example:
        class VerbsCollector(BaseCollector):
            name = "verbs"

            def describe(self):
                return [self.status]

            def collect(self, target, sink):
                out = self.run_command("mmfsadm", ["test", "verbs", "status"], target)
                sink.add(self.status, 1 if "started" in out else 0)
    """

    name: str = ""

    @abstractmethod
    def describe(self) -> List["MetricDescriptor"]:
        """Return the descriptors of every domain metric this collector emits.

        Returns:
            List of MetricDescriptor, built once at construction.
        """
        pass

    @abstractmethod
    def collect(self, target: "Target", sink: "MetricSink") -> None:
        """Run the collection for ``target`` and add samples to ``sink``.

        Args:
            target: Scrape profile with filesystem allowlists and overrides.
            sink: Private sink for this collector and scrape.

        Raises:
            CommandTimeoutError: The command exceeded its deadline.
            Exception: Any other failure; no samples are published.
        """
        pass

    @property
    @abstractmethod
    def timeout(self) -> float:
        """Default command deadline in seconds."""
        pass
