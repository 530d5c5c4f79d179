"""
Parsers for filesystem, fileset, snapshot and quota listings.

Each parser turns ``-Y`` output of one command into flat records keyed by
filesystem and fileset/snapshot/quota owner.
"""

import datetime
from dataclasses import dataclass
from typing import Optional, Union

from gpfs_exporter.parsers.colon import (
    ParseResult, iter_lines, parse_ansic_time, parse_colon_records, parse_float, parse_int,
    percent_decode,
)

KB = 1024


@dataclass
class FilesystemRecord:
    name: str
    mountpoint: str


def parse_mmlsfs(content: Union[str, bytes, None]) -> ParseResult:
    """
    Parse ``mmlsfs all -Y -T`` into filesystem names and default mountpoints.

    The HEADER of this command uses a different discriminator than its data
    rows (``fs::HEADER`` versus ``mmlsfs::0``), so fields are read by
    position: name in column 6 and mountpoint in column 8.
    """
    result = ParseResult()
    for number, line in iter_lines(content):
        items = line.split(":")
        if len(items) < 7 or items[2] == "HEADER":
            continue
        name = items[6]
        if not name:
            result.add_error(number, "empty filesystem name", line)
            continue
        mountpoint = percent_decode(items[8]) if len(items) > 8 else ""
        if any(record.name == name for record in result.records):
            continue
        result.records.append(FilesystemRecord(name, mountpoint))
    return result


@dataclass
class QuotaRecord:
    fs: str
    quota_type: str
    id: str
    name: str
    block_usage: int
    block_quota: int
    block_limit: int
    block_in_doubt: int
    files_usage: int
    files_quota: int
    files_limit: int
    files_in_doubt: int


QUOTA_BLOCK_FIELDS = {
    "blockUsage": "block_usage",
    "blockQuota": "block_quota",
    "blockLimit": "block_limit",
    "blockInDoubt": "block_in_doubt",
}
QUOTA_FILES_FIELDS = {
    "filesUsage": "files_usage",
    "filesQuota": "files_quota",
    "filesLimit": "files_limit",
    "filesInDoubt": "files_in_doubt",
}


def parse_mmrepquota(content: Union[str, bytes, None]) -> ParseResult:
    """
    Parse ``mmrepquota -Y`` reports for one or more filesystems.

    Each ``*** Report for ...`` section repeats the HEADER; rows whose field
    count differs from the HEADER are counted as errors and skipped. Block
    values are reported in KB.
    """
    parsed = parse_colon_records(content, prefix="mmrepquota", strict=True)
    result = ParseResult(errors=list(parsed.errors))
    for record in parsed.records:
        values = {}
        try:
            for name, attribute in QUOTA_BLOCK_FIELDS.items():
                values[attribute] = parse_int(record[name]) * KB
            for name, attribute in QUOTA_FILES_FIELDS.items():
                values[attribute] = parse_int(record[name])
        except ValueError as e:
            result.add_error(record.line_number, f"invalid quota value ({e})")
            continue
        result.records.append(QuotaRecord(
            fs=record["filesystemName"],
            quota_type=record["quotaType"],
            id=record["id"],
            name=record["name"],
            **values,
        ))
    return result


@dataclass
class SnapshotRecord:
    fs: str
    fileset: str
    name: str
    id: str
    status: str
    created: float
    data: int = 0
    metadata: int = 0


def parse_mmlssnapshot(content: Union[str, bytes, None],
                       tz: Optional[datetime.tzinfo] = None) -> ParseResult:
    """
    Parse ``mmlssnapshot <fs> -s all -Y``.

    ``data`` and ``metadata`` are only filled when the command ran with
    ``-d``; empty values are read as 0.

    Args:
        content: Raw command output.
        tz: Zone of the ``created`` timestamps, local time when None.
    """
    parsed = parse_colon_records(content, prefix="mmlssnapshot")
    result = ParseResult(errors=list(parsed.errors))
    for record in parsed.records:
        try:
            snapshot = SnapshotRecord(
                fs=record["filesystemName"],
                fileset=record["fileset"],
                name=record["directory"],
                id=record["snapID"],
                status=record["status"],
                created=parse_ansic_time(record["created"], tz),
                data=parse_int(record["data"] or "0") * KB,
                metadata=parse_int(record["metadata"] or "0") * KB,
            )
        except ValueError as e:
            result.add_error(record.line_number, f"invalid snapshot value ({e})")
            continue
        result.records.append(snapshot)
    return result


@dataclass
class FilesetRecord:
    fs: str
    fileset: str
    status: str
    path: str
    created: float
    max_inodes: float
    alloc_inodes: float
    free_inodes: float


def parse_mmlsfileset(content: Union[str, bytes, None],
                      tz: Optional[datetime.tzinfo] = None) -> ParseResult:
    parsed = parse_colon_records(content, prefix="mmlsfileset")
    result = ParseResult(errors=list(parsed.errors))
    for record in parsed.records:
        try:
            fileset = FilesetRecord(
                fs=record["filesystemName"],
                fileset=record["filesetName"],
                status=record["status"],
                path=record["path"],
                created=parse_ansic_time(record["created"], tz),
                max_inodes=parse_float(record["maxInodes"]),
                alloc_inodes=parse_float(record["allocInodes"]),
                free_inodes=parse_float(record["freeInodes"]),
            )
        except ValueError as e:
            result.add_error(record.line_number, f"invalid fileset value ({e})")
            continue
        result.records.append(fileset)
    return result
