"""
Parsers for capacity and storage layout commands.

``mmdf``, ``mmlspool``, ``mmlsdisk`` and ``mmlsqos`` report sizes in KB
(or MB/s for QoS throughput); every byte quantity returned here is already
converted to bytes.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from gpfs_exporter.parsers.colon import (
    ParseResult, iter_lines, parse_colon_records, parse_float, parse_int,
)

KB = 1024
MB = 1024 * 1024


@dataclass
class PoolCapacity:
    name: str
    total: int = 0
    free: int = 0
    free_percent: float = 0
    free_fragments: int = 0
    max_disk_size: int = 0

    @property
    def used(self) -> int:
        return self.total - self.free


@dataclass
class CapacityRecord:
    """Capacity of one filesystem as reported by ``mmdf <fs> -Y``."""
    fs: str = ""
    fs_total: int = 0
    fs_free: int = 0
    fs_free_percent: float = 0
    metadata_total: Optional[int] = None
    metadata_free: Optional[int] = None
    metadata_free_percent: Optional[float] = None
    data_total: Optional[int] = None
    data_free: Optional[int] = None
    data_free_percent: Optional[float] = None
    inodes_used: int = 0
    inodes_free: int = 0
    inodes_allocated: int = 0
    inodes_max: int = 0
    pools: List[PoolCapacity] = field(default_factory=list)

    @property
    def fs_used(self) -> int:
        return self.fs_total - self.fs_free

    @property
    def metadata_used(self) -> Optional[int]:
        if self.metadata_total is None or self.metadata_free is None:
            return None
        return self.metadata_total - self.metadata_free

    @property
    def data_used(self) -> Optional[int]:
        if self.data_total is None or self.data_free is None:
            return None
        return self.data_total - self.data_free


def _apply_mmdf_section(capacity: CapacityRecord, section: str, record) -> bool:
    if section == "fsTotal":
        capacity.fs_total = parse_int(record["fsSize"]) * KB
        capacity.fs_free = parse_int(record["freeBlocks"]) * KB
        capacity.fs_free_percent = parse_float(record["freeBlocksPct"])
    elif section == "inode":
        capacity.inodes_used = parse_int(record["usedInodes"])
        capacity.inodes_free = parse_int(record["freeInodes"])
        capacity.inodes_allocated = parse_int(record["allocatedInodes"])
        capacity.inodes_max = parse_int(record["maxInodes"])
    elif section == "metadata":
        capacity.metadata_total = parse_int(record["totalMetadata"]) * KB
        capacity.metadata_free = parse_int(record["freeBlocks"]) * KB
        capacity.metadata_free_percent = parse_float(record["freeBlocksPct"])
    elif section == "data":
        capacity.data_total = parse_int(record["totalData"]) * KB
        capacity.data_free = parse_int(record["freeBlocks"]) * KB
        capacity.data_free_percent = parse_float(record["freeBlocksPct"])
    elif section == "poolTotal":
        capacity.pools.append(PoolCapacity(
            name=record["poolName"],
            total=parse_int(record["poolSize"]) * KB,
            free=parse_int(record["freeBlocks"]) * KB,
            free_percent=parse_float(record["freeBlocksPct"]),
            free_fragments=parse_int(record["freeFragments"]) * KB,
            max_disk_size=parse_int(record["maxDiskSize"] or "0") * KB,
        ))
    else:
        return False
    return True


def parse_mmdf(content: Union[str, bytes, None], fs: str = "") -> ParseResult:
    """
    Parse ``mmdf <fs> -Y`` into a single CapacityRecord.

    The ``nsd`` section is ignored. When the output has no ``fsTotal``
    section the result has no records and one error.
    """
    parsed = parse_colon_records(content, prefix="mmdf")
    result = ParseResult(errors=list(parsed.errors))
    capacity = CapacityRecord(fs=fs)
    seen_total = False
    for record in parsed.records:
        section = record.discriminator.split(":", 1)[1]
        try:
            if _apply_mmdf_section(capacity, section, record) and section == "fsTotal":
                seen_total = True
        except ValueError as e:
            result.add_error(record.line_number, f"invalid {section} value ({e})")
    if seen_total:
        result.records.append(capacity)
    else:
        result.errors.append("mmdf output has no fsTotal section")
    return result


@dataclass
class PoolRecord:
    fs: str
    name: str
    meta: bool = False
    total: float = 0
    free: float = 0
    free_percent: float = 0
    meta_total: float = 0
    meta_free: float = 0
    meta_free_percent: float = 0


# mmlspool header column -> (attribute, multiplier)
POOL_COLUMNS = {
    "TotalData": ("total", KB),
    "FreeData": ("free", KB),
    "FreeDataPercent": ("free_percent", 1),
    "TotalMeta": ("meta_total", KB),
    "FreeMeta": ("meta_free", KB),
    "FreeMetaPercent": ("meta_free_percent", 1),
}


def parse_mmlspool_headers(items: List[str]) -> List[str]:
    """
    Collapse the multi-word ``mmlspool`` header into one name per column.

    ``Total Data in (KB)`` becomes ``TotalData``. Every ``Free`` column is
    followed by an implicit ``<name>Percent`` column for the ``( 18%)`` value.
    """
    headers = []
    skip = 0
    for index, item in enumerate(items):
        if skip:
            skip -= 1
            continue
        following = items[index + 1] if index + 1 < len(items) else ""
        if item in ("Total", "Free") and following in ("Data", "Meta"):
            item = f"{item}{following}"
            skip = 3
        headers.append(item)
        if item.startswith("Free"):
            headers.append(f"{item}Percent")
    return headers


def parse_mmlspool(content: Union[str, bytes, None], fs: str = "") -> ParseResult:
    result = ParseResult()
    headers: List[str] = []
    for number, line in iter_lines(content):
        items = line.split()
        if items[0] == "Name":
            headers = parse_mmlspool_headers(items)
            continue
        if not headers or len(items) < 2:
            continue

        cleaned = line.replace("(", "").replace("%)", "").replace(" MB", "").replace(" KB", "")
        items = cleaned.split()
        if len(items) < len(headers):
            result.add_error(number, "mmlspool column mismatch", line)
            continue

        pool = PoolRecord(fs=fs, name="")
        try:
            for header, item in zip(headers, items):
                if header == "Name":
                    pool.name = item
                elif header == "Meta":
                    pool.meta = item == "yes"
                elif header in POOL_COLUMNS:
                    attribute, multiplier = POOL_COLUMNS[header]
                    setattr(pool, attribute, parse_float(item) * multiplier)
        except ValueError as e:
            result.add_error(number, f"invalid pool value ({e})", line)
            continue
        result.records.append(pool)
    return result


@dataclass
class DiskRecord:
    name: str
    metadata: str
    data: str
    status: str
    availability: str
    disk_id: str
    storage_pool: str


DISK_FIELDS: Dict[str, str] = {
    "nsdName": "name",
    "metadata": "metadata",
    "data": "data",
    "status": "status",
    "availability": "availability",
    "diskID": "disk_id",
    "storagePool": "storage_pool",
}


def parse_mmlsdisk(content: Union[str, bytes, None]) -> ParseResult:
    parsed = parse_colon_records(content, prefix="mmlsdisk")
    result = ParseResult(errors=list(parsed.errors))
    for record in parsed.records:
        values = {attribute: record[name] for name, attribute in DISK_FIELDS.items()}
        result.records.append(DiskRecord(**values))
    return result


@dataclass
class QosRecord:
    pool: str
    time: float
    qos_class: str
    iops: float
    average_pending_requests: float
    average_queued_requests: float
    measurement_interval: float
    bytes_per_second: float


def parse_mmlsqos(content: Union[str, bytes, None]) -> ParseResult:
    """
    Parse the ``stats`` rows of ``mmlsqos <fs> -Y``.

    GPFS prints some values with a decimal comma (``33,267``) and reports
    ``nan`` for idle classes, which is read as 0.
    """
    parsed = parse_colon_records(content, prefix="mmlsqos:stats")
    result = ParseResult(errors=list(parsed.errors))
    for record in parsed.records:
        try:
            qos = QosRecord(
                pool=record["pool"],
                time=parse_float(record["timeEpoch"]),
                qos_class=record["class"],
                iops=parse_float(record["iops"]),
                average_pending_requests=parse_float(record["ioql"]),
                average_queued_requests=parse_float(record["qsdl"]),
                measurement_interval=parse_float(record["et"]),
                bytes_per_second=parse_float(record["MBs"]) * MB,
            )
        except ValueError as e:
            result.add_error(record.line_number, f"invalid mmlsqos value ({e})")
            continue
        result.records.append(qos)
    return result
