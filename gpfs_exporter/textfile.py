"""
Textfile exporter for slow GPFS collectors.

``mmdf`` and ``mmlssnapshot`` can take minutes on large filesystems, which is
longer than a scrape should last. The textfile exporters run one of those
collectors from cron and write its metrics to a file read by the node
exporter textfile collector.

Handoff convention with the reader of the file:

- ``gpfs_<collector>_success`` is 1 when the last run refreshed the file and 0
  when it failed.
- ``gpfs_<collector>_last_collection_timestamp`` is the unix time of the last
  successful refresh; a failed run keeps the previous value.
- When a run fails and a previous file exists, its samples are kept and the
  ``gpfs_exporter_collect_error`` lines of the failed ``<collector>-<fs>``
  labels are set to 1.

The file is replaced atomically, so readers never see a partial write.
"""

import fcntl
import os
import re
import time
from typing import List, Optional, Tuple

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily

from gpfs_exporter.config import NAMESPACE, TEXTFILE_EXIT_CODE, TEXTFILE_LOCK_TEMPLATE
from gpfs_exporter.dispatcher import COLLECT_ERROR, COLLECT_TIMEOUT, Dispatcher
from gpfs_exporter.errors import ErrorCode, FileSystemError, LockError
from gpfs_exporter.gpfs_logging import get_logger
from gpfs_exporter.interfaces import CollectorInterface
from gpfs_exporter.metrics import Sample, build_families
from gpfs_exporter.targets import Target


class _StaticCollector:
    """Expose already built metric families to a prometheus_client registry."""

    def __init__(self, families):
        self.families = families

    def describe(self):
        return []

    def collect(self):
        return iter(self.families)


def failed_labels(samples: List[Sample]) -> List[str]:
    """Collector labels whose collect_error or collect_timeout is 1."""
    labels = []
    for sample in samples:
        if sample.descriptor in (COLLECT_ERROR, COLLECT_TIMEOUT) and sample.value == 1:
            label = sample.label_values[0]
            if label not in labels:
                labels.append(label)
    return labels


def mark_failed(content: str, labels: List[str]) -> str:
    """Set the collect_error lines of ``labels`` in a previous output to 1."""
    for label in labels:
        pattern = re.compile(
            r'^(%s\{collector="%s"\}) \S+$' % (re.escape(COLLECT_ERROR.name), re.escape(label)),
            re.MULTILINE,
        )
        content = pattern.sub(r"\1 1.0", content)
    return content


class TextfileExporter:
    """
    Run one collector and write its metrics to a textfile.

    Args:
        collector_name: Collector name, used for the marker metrics (``mmdf``).
        collector: The collector to run.
        output: Output path read by the node exporter.
        lock_file: Advisory lock preventing overlapping runs. Defaults to
            ``/tmp/gpfs_<collector>_exporter.lock``.
        logger: Logger, defaults to ``gpfs_exporter.textfile``.
        target: Scrape profile, the default Target when None.
    """

    def __init__(self, collector_name: str, collector: CollectorInterface, output: str,
                 lock_file: Optional[str] = None, logger=None, target: Optional[Target] = None):
        self.collector_name = collector_name
        self.collector = collector
        self.output = output
        self.lock_file = lock_file or TEXTFILE_LOCK_TEMPLATE.format(collector=collector_name)
        self.logger = logger or get_logger("textfile")
        self.target = target or Target()
        self.success_name = f"{NAMESPACE}_{collector_name}_success"
        self.timestamp_name = f"{NAMESPACE}_{collector_name}_last_collection_timestamp"

    def run(self) -> int:
        """
        Collect and write the output file.

        Returns:
            TEXTFILE_EXIT_CODE.SUCCESS when the output was refreshed or preserved,
            TEXTFILE_EXIT_CODE.LOCK_HELD when another run holds the lock and
            TEXTFILE_EXIT_CODE.FATAL when the lock or output cannot be written.
        """
        try:
            lock_fd = self.acquire_lock()
        except LockError as e:
            if e.code == ErrorCode.LOCK_HELD:
                self.logger.warning(f"Lock file {self.lock_file} is locked, skipping run")
                return TEXTFILE_EXIT_CODE.LOCK_HELD
            self.logger.error(str(e))
            return TEXTFILE_EXIT_CODE.FATAL

        try:
            self.collect_and_write()
        except FileSystemError as e:
            self.logger.error(str(e))
            return TEXTFILE_EXIT_CODE.FATAL
        finally:
            fcntl.flock(lock_fd, fcntl.LOCK_UN)
            os.close(lock_fd)
        return TEXTFILE_EXIT_CODE.SUCCESS

    def acquire_lock(self) -> int:
        """
        Take a non-blocking exclusive lock on the lock file.

        Raises:
            LockError: LOCK_HELD when another process holds it,
                LOCK_OPEN_FAILED when the file cannot be opened.
        """
        try:
            fd = os.open(self.lock_file, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise LockError(f"Unable to open lock file {self.lock_file}: {e}", path=self.lock_file,
                            code=ErrorCode.LOCK_OPEN_FAILED) from e
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            os.close(fd)
            raise LockError(f"Lock file {self.lock_file} is locked", path=self.lock_file,
                            code=ErrorCode.LOCK_HELD) from e
        except OSError as e:
            os.close(fd)
            raise LockError(f"Unable to lock {self.lock_file}: {e}", path=self.lock_file,
                            code=ErrorCode.LOCK_OPEN_FAILED) from e
        return fd

    def render(self) -> Tuple[str, List[str]]:
        """
        Run the collector and render its output.

        Returns:
            Tuple of (exposition text including marker metrics, failed labels).
        """
        dispatcher = Dispatcher({self.collector_name: self.collector}, self.target,
                                default_enabled=[self.collector_name], logger=self.logger)
        samples = dispatcher.scrape()
        failed = failed_labels(samples)

        families = build_families(samples)
        success = GaugeMetricFamily(self.success_name, f"Indicates the last {self.collector_name} collection succeeded")
        success.add_metric([], 0 if failed else 1)
        families.append(success)
        if not failed:
            timestamp = GaugeMetricFamily(self.timestamp_name,
                                          f"Unix time of the last successful {self.collector_name} collection")
            timestamp.add_metric([], int(time.time()))
            families.append(timestamp)

        registry = CollectorRegistry(auto_describe=False)
        registry.register(_StaticCollector(families))
        return generate_latest(registry).decode("utf-8"), failed

    def preserve(self, previous: str, failed: List[str]) -> str:
        """Keep a previous output, flagging the failed labels and the success marker."""
        content = mark_failed(previous, failed)
        success_line = re.compile(r"^%s \S+$" % re.escape(self.success_name), re.MULTILINE)
        if success_line.search(content):
            return success_line.sub(f"{self.success_name} 0.0", content)
        if content and not content.endswith("\n"):
            content += "\n"
        return (f"{content}# HELP {self.success_name} Indicates the last {self.collector_name} collection succeeded\n"
                f"# TYPE {self.success_name} gauge\n"
                f"{self.success_name} 0.0\n")

    def collect_and_write(self):
        content, failed = self.render()
        if failed:
            self.logger.error(f"Error detected with {self.collector_name} collection: {', '.join(failed)}")
            previous = self.read_previous()
            if previous is not None:
                self.logger.debug(f"Keeping previous metrics in {self.output}")
                content = self.preserve(previous, failed)
        self.write_atomic(content)
        self.logger.verbose(f"Wrote {self.collector_name} metrics to {self.output}")

    def read_previous(self) -> Optional[str]:
        if not os.path.exists(self.output):
            return None
        try:
            with open(self.output, "r") as f:
                return f.read()
        except OSError as e:
            raise FileSystemError(f"Unable to read previous metrics {self.output}: {e}", path=self.output,
                                  operation="read", code=ErrorCode.FS_PERMISSION_DENIED) from e

    def write_atomic(self, content: str):
        """
        Write ``content`` to a temp file beside the output and rename it over.

        Raises:
            FileSystemError: The temp file cannot be written or renamed.
        """
        tmp_path = f"{self.output}.tmp.{os.getpid()}"
        try:
            with open(tmp_path, "w") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.output)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise FileSystemError(f"Unable to write {self.output}: {e}", path=self.output, operation="write",
                                  code=ErrorCode.FS_WRITE_FAILED) from e
