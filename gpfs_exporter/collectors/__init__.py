"""
Built-in GPFS collectors.

Each collector wraps one GPFS command (or the mount table) and turns its
output into samples. ``register_collectors()`` adds all of them, with their
CLI builders, to the CollectorRegistry.

Collectors:
    - mount, mmpmon, mmgetstate, config: enabled by default
    - mmhealth, mmces, verbs, waiter: node level, disabled by default
    - mmdf, mmlssnapshot, mmlsfileset, mmlsdisk, mmlspool, mmlsqos: one
      command per filesystem, disabled by default
    - mmrepquota: quota reports, disabled by default
"""

from gpfs_exporter.cli import (
    add_mmces_arguments,
    add_mmdf_arguments,
    add_mmgetstate_arguments,
    add_mmhealth_arguments,
    add_mmlsdisk_arguments,
    add_mmlsfileset_arguments,
    add_mmlspool_arguments,
    add_mmlsqos_arguments,
    add_mmlssnapshot_arguments,
    add_mmrepquota_arguments,
    add_mount_arguments,
    add_waiter_arguments,
)
from gpfs_exporter.collectors.base import BaseCollector, FilesystemCollector, emit_state, list_filesystems
from gpfs_exporter.collectors.config import ConfigCollector
from gpfs_exporter.collectors.mmces import MmcesCollector
from gpfs_exporter.collectors.mmdf import MmdfCollector
from gpfs_exporter.collectors.mmgetstate import MmgetstateCollector
from gpfs_exporter.collectors.mmhealth import MmhealthCollector
from gpfs_exporter.collectors.mmlsdisk import MmlsdiskCollector
from gpfs_exporter.collectors.mmlsfileset import MmlsfilesetCollector
from gpfs_exporter.collectors.mmlspool import MmlspoolCollector
from gpfs_exporter.collectors.mmlsqos import MmlsqosCollector
from gpfs_exporter.collectors.mmlssnapshot import MmlssnapshotCollector
from gpfs_exporter.collectors.mmpmon import MmpmonCollector
from gpfs_exporter.collectors.mmrepquota import MmrepquotaCollector
from gpfs_exporter.collectors.mount import MountCollector
from gpfs_exporter.collectors.verbs import VerbsCollector
from gpfs_exporter.collectors.waiter import WaiterCollector
from gpfs_exporter.registry import CollectorRegistry

# Registration order is the order collectors appear in --help and in scrapes
BUILTIN_COLLECTORS = (
    (MountCollector, add_mount_arguments),
    (MmpmonCollector, None),
    (MmgetstateCollector, add_mmgetstate_arguments),
    (ConfigCollector, None),
    (MmhealthCollector, add_mmhealth_arguments),
    (MmcesCollector, add_mmces_arguments),
    (VerbsCollector, None),
    (WaiterCollector, add_waiter_arguments),
    (MmdfCollector, add_mmdf_arguments),
    (MmrepquotaCollector, add_mmrepquota_arguments),
    (MmlssnapshotCollector, add_mmlssnapshot_arguments),
    (MmlsfilesetCollector, add_mmlsfileset_arguments),
    (MmlsdiskCollector, add_mmlsdisk_arguments),
    (MmlspoolCollector, add_mmlspool_arguments),
    (MmlsqosCollector, add_mmlsqos_arguments),
)


def register_collectors():
    """Register every built-in collector. Safe to call more than once."""
    for collector_class, cli_builder in BUILTIN_COLLECTORS:
        CollectorRegistry.register(
            name=collector_class.name,
            collector_class=collector_class,
            cli_builder=cli_builder,
            description=collector_class.description,
            default_enabled=collector_class.default_enabled,
        )


__all__ = [
    'BaseCollector',
    'FilesystemCollector',
    'emit_state',
    'list_filesystems',
    'ConfigCollector',
    'MmcesCollector',
    'MmdfCollector',
    'MmgetstateCollector',
    'MmhealthCollector',
    'MmlsdiskCollector',
    'MmlsfilesetCollector',
    'MmlspoolCollector',
    'MmlsqosCollector',
    'MmlssnapshotCollector',
    'MmpmonCollector',
    'MmrepquotaCollector',
    'MountCollector',
    'VerbsCollector',
    'WaiterCollector',
    'BUILTIN_COLLECTORS',
    'register_collectors',
]
