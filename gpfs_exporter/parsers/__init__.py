"""
Pure parsers for GPFS command output.

Every parser takes the raw output of one command and returns a
``ParseResult`` with typed records and a list of per-line errors. Parsers
perform no I/O and never raise for malformed input, so a broken line costs
one record rather than the whole collection.

Input shapes:
    colon records: ``-Y`` output with per-discriminator HEADER rows
        (parse_colon_records and the per-command parsers built on it).
    tagged stream: ``mmpmon -p`` output of alternating ``_tag_ value`` tokens.
    free text: ``mmdiag --waiters`` lines when ``-Y`` is unavailable,
        and the ``mmlspool`` table.
"""

from gpfs_exporter.parsers.colon import (
    ColonRecord,
    ParseResult,
    parse_ansic_time,
    parse_colon_records,
    parse_float,
    parse_int,
    percent_decode,
    percent_encode,
)
from gpfs_exporter.parsers.capacity import (
    CapacityRecord,
    DiskRecord,
    PoolCapacity,
    PoolRecord,
    QosRecord,
    parse_mmdf,
    parse_mmlsdisk,
    parse_mmlspool,
    parse_mmlsqos,
)
from gpfs_exporter.parsers.filesets import (
    FilesetRecord,
    FilesystemRecord,
    QuotaRecord,
    SnapshotRecord,
    parse_mmlsfileset,
    parse_mmlsfs,
    parse_mmlssnapshot,
    parse_mmrepquota,
)
from gpfs_exporter.parsers.mmpmon import OPERATIONS, PerfRecord, parse_mmpmon
from gpfs_exporter.parsers.mounts import parse_fstab, parse_proc_mounts, union_mounts
from gpfs_exporter.parsers.state import (
    CES_SERVICES,
    CESStateRecord,
    ConfigRecord,
    HealthRecord,
    NodeStateRecord,
    parse_mmces,
    parse_mmdiag_config,
    parse_mmgetstate,
    parse_mmhealth,
    parse_verbs,
)
from gpfs_exporter.parsers.waiters import (
    WaiterRecord,
    parse_mmdiag_waiters,
    parse_waiters_colon,
    parse_waiters_text,
)

__all__ = [
    # Colon records
    "ColonRecord",
    "ParseResult",
    "parse_ansic_time",
    "parse_colon_records",
    "parse_float",
    "parse_int",
    "percent_decode",
    "percent_encode",
    # Capacity
    "CapacityRecord",
    "DiskRecord",
    "PoolCapacity",
    "PoolRecord",
    "QosRecord",
    "parse_mmdf",
    "parse_mmlsdisk",
    "parse_mmlspool",
    "parse_mmlsqos",
    # Filesets, snapshots, quotas
    "FilesetRecord",
    "FilesystemRecord",
    "QuotaRecord",
    "SnapshotRecord",
    "parse_mmlsfileset",
    "parse_mmlsfs",
    "parse_mmlssnapshot",
    "parse_mmrepquota",
    # mmpmon
    "OPERATIONS",
    "PerfRecord",
    "parse_mmpmon",
    # Mounts
    "parse_fstab",
    "parse_proc_mounts",
    "union_mounts",
    # State
    "CES_SERVICES",
    "CESStateRecord",
    "ConfigRecord",
    "HealthRecord",
    "NodeStateRecord",
    "parse_mmces",
    "parse_mmdiag_config",
    "parse_mmgetstate",
    "parse_mmhealth",
    "parse_verbs",
    # Waiters
    "WaiterRecord",
    "parse_mmdiag_waiters",
    "parse_waiters_colon",
    "parse_waiters_text",
]
