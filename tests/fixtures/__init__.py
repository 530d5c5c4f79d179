"""
Test fixtures package for gpfs_exporter tests.

This package provides reusable mock classes and sample GPFS command
output for testing parsers, collectors, the dispatcher and the exporters.
"""

from tests.fixtures.mock_logger import MockLogger, create_mock_logger
from tests.fixtures.mock_runner import MockCommandRunner
from tests.fixtures.sample_data import (
    SAMPLE_FSTAB,
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
    SAMPLE_MMLSQOS_NAN,
    SAMPLE_MMLSSNAPSHOT,
    SAMPLE_MMLSSNAPSHOT_BAD_VALUE,
    SAMPLE_MMLSSNAPSHOT_DATA,
    SAMPLE_MMPMON,
    SAMPLE_MMREPQUOTA,
    SAMPLE_PROC_MOUNTS,
    SAMPLE_VERBS,
    SAMPLE_WAITERS,
)

__all__ = [
    # Mock classes
    'MockLogger',
    'create_mock_logger',
    'MockCommandRunner',
    # Sample data
    'SAMPLE_FSTAB',
    'SAMPLE_MMCES',
    'SAMPLE_MMDF',
    'SAMPLE_MMDIAG_CONFIG',
    'SAMPLE_MMGETSTATE',
    'SAMPLE_MMHEALTH',
    'SAMPLE_MMLSDISK',
    'SAMPLE_MMLSFILESET',
    'SAMPLE_MMLSFS',
    'SAMPLE_MMLSPOOL',
    'SAMPLE_MMLSQOS',
    'SAMPLE_MMLSQOS_NAN',
    'SAMPLE_MMLSSNAPSHOT',
    'SAMPLE_MMLSSNAPSHOT_BAD_VALUE',
    'SAMPLE_MMLSSNAPSHOT_DATA',
    'SAMPLE_MMPMON',
    'SAMPLE_MMREPQUOTA',
    'SAMPLE_PROC_MOUNTS',
    'SAMPLE_VERBS',
    'SAMPLE_WAITERS',
]
