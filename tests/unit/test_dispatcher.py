"""
Tests for the scrape Dispatcher.

Tests cover:
- Concurrent execution and per-collector deadlines
- Error and timeout indicators, sub-collector statuses
- Enabled set resolution from the Target, defaults and collect[]
- Clearing of the per-scrape filesystem cache
"""

import time
from argparse import Namespace

import pytest
from prometheus_client import CollectorRegistry, generate_latest

from gpfs_exporter.collectors import MmdfCollector, MmgetstateCollector, WaiterCollector
from gpfs_exporter.dispatcher import Dispatcher
from gpfs_exporter.errors import CommandTimeoutError, ConfigurationError, ParseError
from gpfs_exporter.interfaces import CollectorInterface
from gpfs_exporter.metrics import SubCollectorStatus, gauge
from gpfs_exporter.runner import RunStatus
from gpfs_exporter.targets import Target
from tests.fixtures import SAMPLE_MMDF, SAMPLE_MMLSFS, MockCommandRunner


class FakeCollector(CollectorInterface):
    """Collector emitting one gauge, optionally sleeping or failing first."""

    def __init__(self, name, value=1.0, delay=0.0, raises=None, timeout=5.0, deadline=None, subcollectors=()):
        self.name = name
        self.value = value
        self.delay = delay
        self.raises = raises
        self._timeout = timeout
        self._deadline = deadline
        self.subcollectors = subcollectors
        self.metric = gauge("fake", name, f"Fake {name} metric")
        self.calls = 0

    @property
    def timeout(self):
        return self._timeout

    def deadline(self, target):
        return self._deadline if self._deadline is not None else self._timeout + 1

    def describe(self):
        return [self.metric]

    def collect(self, target, sink):
        self.calls += 1
        for status in self.subcollectors:
            sink.add_subcollector(status)
        if self.delay:
            time.sleep(self.delay)
        sink.add(self.metric, self.value)
        if self.raises is not None:
            raise self.raises


def values(samples, name):
    return {s.label_values: s.value for s in samples if s.descriptor.name == name}


class TestEnabled:
    """Tests for Dispatcher.enabled."""

    def test_defaults_when_target_has_no_collectors(self, default_target, mock_logger):
        collectors = {"a": FakeCollector("a"), "b": FakeCollector("b")}
        dispatcher = Dispatcher(collectors, default_target, default_enabled=["a"], logger=mock_logger)
        assert dispatcher.enabled() == ["a"]

    def test_all_collectors_without_defaults(self, default_target, mock_logger):
        collectors = {"a": FakeCollector("a"), "b": FakeCollector("b")}
        assert Dispatcher(collectors, default_target, logger=mock_logger).enabled() == ["a", "b"]

    def test_target_collectors_replace_defaults(self, mock_logger):
        collectors = {"a": FakeCollector("a"), "b": FakeCollector("b")}
        target = Target(name="t", collectors=["b"])
        dispatcher = Dispatcher(collectors, target, default_enabled=["a"], logger=mock_logger)
        assert dispatcher.enabled() == ["b"]

    def test_only_filters_enabled(self, default_target, mock_logger):
        collectors = {"a": FakeCollector("a"), "b": FakeCollector("b"), "c": FakeCollector("c")}
        dispatcher = Dispatcher(collectors, default_target, default_enabled=["a", "b"], only=["b", "c"],
                                logger=mock_logger)
        assert dispatcher.enabled() == ["b"]

    def test_unknown_only_names_are_ignored(self, default_target, mock_logger):
        collectors = {"a": FakeCollector("a")}
        dispatcher = Dispatcher(collectors, default_target, only=["nope"], logger=mock_logger)
        assert dispatcher.enabled() == []
        assert dispatcher.scrape() == []

    def test_missing_collector_raises(self, mock_logger):
        target = Target(name="t", collectors=["mmdf"])
        dispatcher = Dispatcher({"a": FakeCollector("a")}, target, logger=mock_logger)
        with pytest.raises(ConfigurationError):
            dispatcher.enabled()


class TestScrape:
    """Tests for Dispatcher.scrape."""

    def test_successful_collector(self, default_target, mock_logger):
        dispatcher = Dispatcher({"a": FakeCollector("a", value=42)}, default_target, logger=mock_logger)
        samples = dispatcher.scrape()

        assert values(samples, "gpfs_fake_a") == {(): 42}
        assert values(samples, "gpfs_exporter_collect_error") == {("a",): 0}
        assert values(samples, "gpfs_exporter_collect_timeout") == {("a",): 0}
        assert values(samples, "gpfs_exporter_parse_errors") == {("a",): 0}
        assert values(samples, "gpfs_exporter_collector_enabled") == {("a",): 1}
        assert ("a",) in values(samples, "gpfs_exporter_collector_duration_seconds")
        assert values(samples, "gpfs_exporter_last_execution")[("a",)] == pytest.approx(time.time(), abs=5)

    def test_error_drops_samples(self, default_target, mock_logger):
        collectors = {
            "good": FakeCollector("good"),
            "bad": FakeCollector("bad", raises=ParseError("no output")),
        }
        samples = Dispatcher(collectors, default_target, logger=mock_logger).scrape()

        assert values(samples, "gpfs_fake_bad") == {}
        assert values(samples, "gpfs_fake_good") == {(): 1}
        assert values(samples, "gpfs_exporter_collect_error") == {("good",): 0, ("bad",): 1}
        mock_logger.error.assert_called()

    def test_unexpected_exception_is_an_error(self, default_target, mock_logger):
        collectors = {"bad": FakeCollector("bad", raises=KeyError("oops"))}
        samples = Dispatcher(collectors, default_target, logger=mock_logger).scrape()

        assert values(samples, "gpfs_exporter_collect_error") == {("bad",): 1}
        mock_logger.exception.assert_called()

    def test_command_timeout_is_a_timeout(self, default_target, mock_logger):
        collectors = {"slow": FakeCollector("slow", raises=CommandTimeoutError("deadline", command="mmdf"))}
        samples = Dispatcher(collectors, default_target, logger=mock_logger).scrape()

        assert values(samples, "gpfs_exporter_collect_timeout") == {("slow",): 1}
        assert values(samples, "gpfs_exporter_collect_error") == {("slow",): 0}
        assert values(samples, "gpfs_fake_slow") == {}

    def test_deadline_abandons_collector(self, default_target, mock_logger):
        collectors = {
            "slow": FakeCollector("slow", delay=2.0, deadline=0.2),
            "fast": FakeCollector("fast"),
        }
        start = time.monotonic()
        samples = Dispatcher(collectors, default_target, logger=mock_logger).scrape()

        assert time.monotonic() - start < 1.5
        assert values(samples, "gpfs_exporter_collect_timeout") == {("slow",): 1, ("fast",): 0}
        assert values(samples, "gpfs_fake_slow") == {}
        assert values(samples, "gpfs_fake_fast") == {(): 1}

    def test_collectors_run_concurrently(self, default_target, mock_logger):
        collectors = {name: FakeCollector(name, delay=0.5) for name in ("a", "b", "c", "d")}
        start = time.monotonic()
        samples = Dispatcher(collectors, default_target, logger=mock_logger).scrape()

        assert time.monotonic() - start < 1.5
        assert all(v == 0 for v in values(samples, "gpfs_exporter_collect_timeout").values())

    def test_subcollector_failure_sets_collector_error(self, default_target, mock_logger):
        subcollectors = (
            SubCollectorStatus("fake-project", last_execution=time.time()),
            SubCollectorStatus("fake-scratch", timeout=True, last_execution=time.time()),
        )
        collectors = {"fake": FakeCollector("fake", subcollectors=subcollectors)}
        samples = Dispatcher(collectors, default_target, logger=mock_logger).scrape()

        errors = values(samples, "gpfs_exporter_collect_error")
        timeouts = values(samples, "gpfs_exporter_collect_timeout")
        assert errors[("fake",)] == 1
        assert timeouts[("fake-scratch",)] == 1
        assert errors[("fake-project",)] == 0
        assert values(samples, "gpfs_fake_fake") == {(): 1}

    def test_subcollectors_reported_when_collector_fails(self, default_target, mock_logger):
        subcollectors = (SubCollectorStatus("fake-project", error=True),)
        collectors = {"fake": FakeCollector("fake", subcollectors=subcollectors, raises=ParseError("bad"))}
        samples = Dispatcher(collectors, default_target, logger=mock_logger).scrape()

        assert values(samples, "gpfs_exporter_collect_error") == {("fake",): 1, ("fake-project",): 1}

    def test_every_scrape_reruns_collectors(self, default_target, mock_logger):
        collector = FakeCollector("a")
        dispatcher = Dispatcher({"a": collector}, default_target, logger=mock_logger)
        dispatcher.scrape()
        dispatcher.scrape()
        assert collector.calls == 2


class TestFilesystemCollectors:
    """Dispatcher behaviour with real per-filesystem collectors."""

    def test_mmlsfs_cache_cleared_after_scrape(self, gpfs_runner, default_target, mock_logger):
        dispatcher = Dispatcher({"mmdf": MmdfCollector(gpfs_runner, logger=mock_logger)}, default_target,
                                logger=mock_logger)
        dispatcher.scrape()
        dispatcher.scrape()

        assert default_target.fs_cache.loads == 2
        assert len(gpfs_runner.get_commands_matching(r"^mmlsfs")) == 2

    def test_per_filesystem_labels(self, default_target, mock_logger):
        runner = MockCommandRunner({
            r"^mmlsfs": SAMPLE_MMLSFS,
            r"^mmdf scratch": ("", RunStatus.TIMEOUT),
            r"^mmdf": SAMPLE_MMDF,
        })
        dispatcher = Dispatcher({"mmdf": MmdfCollector(runner, logger=mock_logger)}, default_target,
                                logger=mock_logger)
        samples = dispatcher.scrape()

        errors = values(samples, "gpfs_exporter_collect_error")
        timeouts = values(samples, "gpfs_exporter_collect_timeout")
        assert errors[("mmdf",)] == 1
        assert timeouts[("mmdf",)] == 0
        assert timeouts[("mmdf-scratch",)] == 1
        assert errors[("mmdf-project",)] == 0
        assert errors[("mmdf-mmlsfs",)] == 0
        fs_labels = {labels[0] for labels in values(samples, "gpfs_fs_size_bytes")}
        assert fs_labels == {"project", "ess"}

    def test_slow_command_times_out(self, default_target, mock_logger):
        runner = MockCommandRunner({r"^mmgetstate": ("", RunStatus.OK, 0, 3.0)})
        collector = MmgetstateCollector(runner, Namespace(mmgetstate_timeout=0.1), logger=mock_logger)
        samples = Dispatcher({"mmgetstate": collector}, default_target, logger=mock_logger).scrape()

        assert values(samples, "gpfs_exporter_collect_timeout") == {("mmgetstate",): 1}
        assert values(samples, "gpfs_state") == {}


def test_dispatcher_renders_with_prometheus_client(default_target, mock_logger):
    registry = CollectorRegistry(auto_describe=False)
    registry.register(Dispatcher({"a": FakeCollector("a", value=3)}, default_target, logger=mock_logger))
    output = generate_latest(registry).decode("utf-8")

    assert "# TYPE gpfs_fake_a gauge" in output
    assert "gpfs_fake_a 3.0" in output
    assert 'gpfs_exporter_collect_error{collector="a"} 0.0' in output


class TestWaiterFailures:
    """A failing mmdiag --waiters run is reported by the indicators only."""

    def render(self, runner, target, logger):
        collector = WaiterCollector(runner, logger=logger)
        registry = CollectorRegistry(auto_describe=False)
        registry.register(Dispatcher({"waiter": collector}, target, logger=logger))
        return generate_latest(registry).decode("utf-8")

    def test_timeout(self, default_target, mock_logger):
        runner = MockCommandRunner({r"^mmdiag": ("", RunStatus.TIMEOUT)})
        output = self.render(runner, default_target, mock_logger)

        assert 'gpfs_exporter_collect_timeout{collector="waiter"} 1.0' in output
        assert 'gpfs_exporter_collect_error{collector="waiter"} 0.0' in output
        assert "gpfs_waiter_seconds_" not in output
        assert "gpfs_waiter_info_count{" not in output

    def test_nonzero_exit(self, default_target, mock_logger):
        runner = MockCommandRunner({r"^mmdiag": ("mmdiag: command failed", RunStatus.NONZERO_EXIT, 1)})
        output = self.render(runner, default_target, mock_logger)

        assert 'gpfs_exporter_collect_error{collector="waiter"} 1.0' in output
        assert 'gpfs_exporter_collect_timeout{collector="waiter"} 0.0' in output
        assert "gpfs_waiter_seconds_" not in output
