"""
CLI argument builders for gpfs_exporter.

This package provides modular CLI argument builders. The per-collector
builders are registered with the CollectorRegistry so the exporter and the
textfile exporters build the same collector flags.

Modules:
    - common_args: Shared help messages, logging and command arguments
    - web_args: HTTP exporter arguments
    - collector_args: Collector toggles, timeouts and tuning arguments
    - textfile_args: Textfile exporter arguments
"""

from gpfs_exporter.cli.common_args import (
    HELP_MESSAGES,
    PROGRAM_DESCRIPTIONS,
    add_universal_arguments,
    add_command_arguments,
)
from gpfs_exporter.cli.web_args import add_web_arguments
from gpfs_exporter.cli.textfile_args import add_textfile_arguments
from gpfs_exporter.cli.collector_args import (
    add_collector_toggle,
    add_collector_timeout,
    add_mount_arguments,
    add_mmgetstate_arguments,
    add_mmhealth_arguments,
    add_mmces_arguments,
    add_waiter_arguments,
    add_mmdf_arguments,
    add_mmrepquota_arguments,
    add_mmlssnapshot_arguments,
    add_mmlsfileset_arguments,
    add_mmlsdisk_arguments,
    add_mmlspool_arguments,
    add_mmlsqos_arguments,
)

__all__ = [
    # Common
    'HELP_MESSAGES',
    'PROGRAM_DESCRIPTIONS',
    'add_universal_arguments',
    'add_command_arguments',
    # Programs
    'add_web_arguments',
    'add_textfile_arguments',
    # Collectors
    'add_collector_toggle',
    'add_collector_timeout',
    'add_mount_arguments',
    'add_mmgetstate_arguments',
    'add_mmhealth_arguments',
    'add_mmces_arguments',
    'add_waiter_arguments',
    'add_mmdf_arguments',
    'add_mmrepquota_arguments',
    'add_mmlssnapshot_arguments',
    'add_mmlsfileset_arguments',
    'add_mmlsdisk_arguments',
    'add_mmlspool_arguments',
    'add_mmlsqos_arguments',
]
