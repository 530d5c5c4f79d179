"""
Shared pytest fixtures for gpfs_exporter tests.

These fixtures provide mock runners, loggers, targets and sample GPFS
output that can be used across all test modules without GPFS or sudo
being installed.
"""

import datetime
from argparse import Namespace
from unittest.mock import MagicMock

import pytest

from gpfs_exporter.collectors import register_collectors
from gpfs_exporter.metrics import MetricSink
from gpfs_exporter.registry import CollectorRegistry
from gpfs_exporter.targets import Target
from tests.fixtures import (
    SAMPLE_MMCES,
    SAMPLE_MMDF,
    SAMPLE_MMDIAG_CONFIG,
    SAMPLE_MMGETSTATE,
    SAMPLE_MMHEALTH,
    SAMPLE_MMLSDISK,
    SAMPLE_MMLSFILESET,
    SAMPLE_MMLSFS,
    SAMPLE_MMLSPOOL,
    SAMPLE_MMLSQOS,
    SAMPLE_MMLSSNAPSHOT,
    SAMPLE_MMPMON,
    SAMPLE_MMREPQUOTA,
    SAMPLE_VERBS,
    SAMPLE_WAITERS,
    MockCommandRunner,
    MockLogger,
)


# =============================================================================
# Logger Fixtures
# =============================================================================

@pytest.fixture
def mock_logger():
    """
    Create a mock logger that captures all log calls.

    Usage:
        def test_something(mock_logger):
            some_function(logger=mock_logger)
            mock_logger.error.assert_called()
    """
    logger = MagicMock()
    for level in ['debug', 'info', 'warning', 'error', 'critical', 'exception',
                  'status', 'verbose', 'verboser', 'ridiculous']:
        setattr(logger, level, MagicMock())
    return logger


@pytest.fixture
def capturing_logger():
    """
    Create a logger that captures messages per level.

    Usage:
        def test_something(capturing_logger):
            collector = WaiterCollector(runner, logger=capturing_logger)
            collector.collect(target, sink)
            capturing_logger.assert_logged('warning', 'NSDThread')
    """
    return MockLogger()


# =============================================================================
# Runner Fixtures
# =============================================================================

@pytest.fixture
def mock_runner() -> MockCommandRunner:
    """A runner with no canned responses; every command returns empty output."""
    return MockCommandRunner()


@pytest.fixture
def gpfs_runner() -> MockCommandRunner:
    """A runner answering every GPFS command with sample output."""
    return MockCommandRunner({
        r'^mmlsfs all': SAMPLE_MMLSFS,
        r'^mmgetstate': SAMPLE_MMGETSTATE,
        r'^mmpmon': SAMPLE_MMPMON,
        r'^mmdiag --config': SAMPLE_MMDIAG_CONFIG,
        r'^mmdiag --waiters': SAMPLE_WAITERS,
        r'^mmhealth': SAMPLE_MMHEALTH,
        r'^mmces': SAMPLE_MMCES,
        r'^mmfsadm test verbs': SAMPLE_VERBS,
        r'^mmdf': SAMPLE_MMDF,
        r'^mmrepquota': SAMPLE_MMREPQUOTA,
        r'^mmlssnapshot': SAMPLE_MMLSSNAPSHOT,
        r'^mmlsfileset': SAMPLE_MMLSFILESET,
        r'^mmlsdisk': SAMPLE_MMLSDISK,
        r'^mmlspool': SAMPLE_MMLSPOOL,
        r'^mmlsqos': SAMPLE_MMLSQOS,
    })


# =============================================================================
# Target and Sink Fixtures
# =============================================================================

@pytest.fixture
def default_target() -> Target:
    return Target()


@pytest.fixture
def sink() -> MetricSink:
    return MetricSink()


@pytest.fixture
def est_zone() -> datetime.tzinfo:
    """Fixed UTC-5 zone used by the sample fileset and snapshot timestamps."""
    return datetime.timezone(datetime.timedelta(hours=-5), "EST")


# =============================================================================
# Args Fixtures (Namespace objects for CLI simulation)
# =============================================================================

@pytest.fixture
def base_args() -> Namespace:
    """Args shared by every program."""
    return Namespace(
        debug=False,
        verbose=False,
        log_level=None,
        sudo_command="sudo",
        gpfs_bin_dir="/usr/lpp/mmfs/bin",
        mmlsfs_timeout=5,
    )


# =============================================================================
# Registry Fixtures
# =============================================================================

@pytest.fixture
def registered_collectors():
    """Register the built-in collectors and return their names."""
    register_collectors()
    return CollectorRegistry.get_all_names()


@pytest.fixture
def clean_registry():
    """
    Provide an empty CollectorRegistry, restoring the built-in collectors
    afterwards.
    """
    saved = (
        dict(CollectorRegistry._collectors),
        dict(CollectorRegistry._cli_builders),
        dict(CollectorRegistry._descriptions),
        dict(CollectorRegistry._default_enabled),
    )
    CollectorRegistry.clear()
    yield CollectorRegistry
    CollectorRegistry.clear()
    CollectorRegistry._collectors.update(saved[0])
    CollectorRegistry._cli_builders.update(saved[1])
    CollectorRegistry._descriptions.update(saved[2])
    CollectorRegistry._default_enabled.update(saved[3])
