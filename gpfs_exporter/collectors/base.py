"""
Base classes shared by every GPFS collector.

Classes:
    BaseCollector: Runner, options, logger and timeout handling.
    FilesystemCollector: Runs one command per filesystem concurrently and
        reports a ``<collector>-<fs>`` status for each of them.

Functions:
    emit_state: One-hot encode a reported state over a known state set.
    list_filesystems: Names of all filesystems from ``mmlsfs all -Y -T``.
"""

import argparse
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, List, Optional, Sequence

from gpfs_exporter.config import KILL_GRACE_SECONDS, MMLSFS_TIMEOUT
from gpfs_exporter.errors import CommandTimeoutError, ErrorCode, ParseError
from gpfs_exporter.gpfs_logging import get_logger
from gpfs_exporter.interfaces import CollectorInterface
from gpfs_exporter.metrics import MetricDescriptor, MetricSink, SubCollectorStatus
from gpfs_exporter.parsers import parse_mmlsfs
from gpfs_exporter.runner import CommandRunner
from gpfs_exporter.targets import Target

MAX_FILESYSTEM_WORKERS = 32


def split_list(value) -> List[str]:
    """Split a comma separated option value, accepting lists as they are."""
    if not value:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return list(value)


def emit_state(sink: MetricSink, descriptor: MetricDescriptor, states: Sequence[str], current: str,
               *label_values, unknown: str = "unknown"):
    """
    Emit one gauge per known state, 1 for ``current`` and 0 for the rest.

    A state outside ``states`` is reported through the extra ``unknown``
    state so exactly one gauge per entity is 1. The state label is always
    the last label of ``descriptor``.

    Returns:
        True if ``current`` is one of ``states``.
    """
    known = current in states
    for state in states:
        sink.add(descriptor, 1 if state == current else 0, *label_values, state)
    if unknown not in states:
        sink.add(descriptor, 0 if known else 1, *label_values, unknown)
    return known


def list_filesystems(runner: CommandRunner, timeout: float) -> List[str]:
    out = runner.run("mmlsfs", ["all", "-Y", "-T"], timeout=timeout).check()
    return [record.name for record in parse_mmlsfs(out).records]


class BaseCollector(CollectorInterface):
    """
    Common collector plumbing.

    Args:
        runner: Command runner used for every GPFS command.
        options: Parsed command line. Collector options are looked up as
            ``<collector name>_<option>`` attributes; missing ones fall back
            to the collector defaults.
        logger: Logger, defaults to ``gpfs_exporter.collector.<name>``.
    """

    name = ""
    description = ""
    default_enabled = False
    default_timeout: float = 5

    def __init__(self, runner: CommandRunner, options: Optional[argparse.Namespace] = None, logger=None):
        self.runner = runner
        self.options = options if options is not None else argparse.Namespace()
        self.logger = logger or get_logger(f"collector.{self.name}")
        self._timeout = float(self.option("timeout", self.default_timeout))

    def option(self, key: str, default=None):
        value = getattr(self.options, f"{self.name}_{key}", None)
        return default if value is None else value

    def global_option(self, key: str, default=None):
        value = getattr(self.options, key, None)
        return default if value is None else value

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def grace(self) -> float:
        return getattr(self.runner, "grace", KILL_GRACE_SECONDS)

    def timeout_for(self, target: Target) -> float:
        return target.timeout_for(self.name, self.timeout)

    def deadline(self, target: Target) -> float:
        """Seconds after which the dispatcher gives up on this collector."""
        return self.timeout_for(target) + self.grace + 1

    def run_command(self, binary: str, args: Iterable[str], target: Target, stdin: Optional[str] = None) -> str:
        """Run a command under this collector's deadline and return stdout.

        Raises:
            CommandTimeoutError: The deadline expired.
            CommandExecutionError: Non-zero exit or spawn failure.
        """
        result = self.runner.run(binary, list(args), stdin=stdin, timeout=self.timeout_for(target))
        return result.check()

    def report_parse_errors(self, sink: MetricSink, errors: Sequence[str], context: str = ""):
        if not errors:
            return
        sink.add_parse_errors(errors)
        where = f" ({context})" if context else ""
        for error in errors:
            self.logger.warning(f"Skipped malformed {self.name} output{where}: {error}")

    def no_records_error(self, message: str, command: str, out: str) -> ParseError:
        """ParseError for output that yielded nothing, empty or malformed."""
        code = ErrorCode.PARSE_MALFORMED if out.strip() else ErrorCode.PARSE_EMPTY_OUTPUT
        return ParseError(message, command=command, code=code)

    def describe(self) -> List[MetricDescriptor]:
        return []


class FilesystemCollector(BaseCollector):
    """
    Collector that runs one command per filesystem.

    The filesystem list comes from the Target, then from the
    ``--collector.<name>.filesystems`` option, then from ``mmlsfs``. Every
    filesystem is collected concurrently and reported under the sub-label
    ``<name>-<fs>``; a failed filesystem does not hide the others.
    Subclasses implement ``collect_filesystem``.
    """

    def filesystems(self, target: Target, sink: MetricSink) -> List[str]:
        configured = target.filesystems_for(self.name) or split_list(self.option("filesystems"))
        if configured:
            return configured

        mmlsfs_timeout = float(self.global_option("mmlsfs_timeout", MMLSFS_TIMEOUT))
        status = SubCollectorStatus(f"{self.name}-mmlsfs", last_execution=time.time())
        start = time.monotonic()
        filesystems = []
        try:
            filesystems = target.fs_cache.get(lambda: list_filesystems(self.runner, mmlsfs_timeout))
        except CommandTimeoutError:
            status.timeout = True
            self.logger.error("Timeout executing mmlsfs")
        except Exception as e:
            status.error = True
            self.logger.error(f"Error executing mmlsfs: {e}")
        status.duration = time.monotonic() - start
        sink.add_subcollector(status)
        return filesystems

    def deadline(self, target: Target) -> float:
        mmlsfs_timeout = float(self.global_option("mmlsfs_timeout", MMLSFS_TIMEOUT))
        return mmlsfs_timeout + self.timeout_for(target) + 2 * self.grace + 1

    def collect(self, target: Target, sink: MetricSink) -> None:
        filesystems = self.filesystems(target, sink)
        if not filesystems:
            return

        workers = min(len(filesystems), MAX_FILESYSTEM_WORKERS)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"{self.name}-fs") as executor:
            futures = {executor.submit(self._collect_one, target, fs): fs for fs in filesystems}
            for future in as_completed(futures):
                fs_sink, status = future.result()
                sink.add_subcollector(status)
                if not status.failed:
                    sink.extend(fs_sink)

    def _collect_one(self, target: Target, fs: str):
        fs_sink = MetricSink()
        status = SubCollectorStatus(f"{self.name}-{fs}", last_execution=time.time())
        start = time.monotonic()
        self.logger.debug(f"Collecting {self.name} metrics for fs {fs}")
        try:
            self.collect_filesystem(target, fs, fs_sink)
        except CommandTimeoutError:
            status.timeout = True
            self.logger.error(f"Timeout executing {status.label}")
        except Exception as e:
            status.error = True
            self.logger.error(f"Error collecting {status.label}: {e}")
        status.duration = time.monotonic() - start
        return fs_sink, status

    def collect_filesystem(self, target: Target, fs: str, sink: MetricSink) -> None:
        raise NotImplementedError
