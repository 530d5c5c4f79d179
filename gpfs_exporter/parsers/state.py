"""
Parsers for node and service state commands.

Covers ``mmgetstate -Y``, ``mmhealth node show -Y``, ``mmces state show -Y``,
``mmfsadm test verbs status`` and ``mmdiag --config -Y``.
"""

from dataclasses import dataclass
from typing import Iterable, Union

from gpfs_exporter.parsers.colon import ParseResult, iter_lines, parse_colon_records

CES_SERVICES = ("AUTH", "BLOCK", "NETWORK", "AUTH_OBJ", "NFS", "OBJ", "SMB", "CES")


@dataclass
class NodeStateRecord:
    node_name: str
    state: str


@dataclass
class HealthRecord:
    type: str
    component: str
    entityname: str
    entitytype: str
    status: str = ""
    event: str = ""


@dataclass
class CESStateRecord:
    node_name: str
    service: str
    state: str


@dataclass
class ConfigRecord:
    name: str
    value: str
    changed: str = ""


def parse_mmgetstate(content: Union[str, bytes, None]) -> ParseResult:
    parsed = parse_colon_records(content, prefix="mmgetstate")
    result = ParseResult(errors=list(parsed.errors))
    for record in parsed.records:
        result.records.append(NodeStateRecord(record["nodeName"], record["state"]))
    return result


def parse_mmhealth(content: Union[str, bytes, None]) -> ParseResult:
    """
    Parse ``mmhealth node show -Y``.

    State and Event rows carry their own HEADER. Event rows are usually
    longer than their header because the event message is appended, extra
    fields are ignored.
    """
    parsed = parse_colon_records(content, prefix="mmhealth")
    result = ParseResult(errors=list(parsed.errors))
    for record in parsed.records:
        row_type = record.discriminator.split(":", 1)[1]
        if row_type not in ("State", "Event"):
            continue
        result.records.append(HealthRecord(
            type=row_type,
            component=record["component"],
            entityname=record["entityname"],
            entitytype=record["entitytype"],
            status=record["status"] if row_type == "State" else "",
            event=record["event"] if row_type == "Event" else "",
        ))
    return result


def parse_mmces(content: Union[str, bytes, None], services: Iterable[str] = CES_SERVICES) -> ParseResult:
    """
    Parse ``mmces state show -Y``.

    The HEADER names one column per CES service, each data row holds the
    state of those services on one node. Columns not listed in ``services``
    are ignored.
    """
    services = set(services)
    parsed = parse_colon_records(content, prefix="mmcesstate")
    result = ParseResult(errors=list(parsed.errors))
    for record in parsed.records:
        for name, value in record.fields.items():
            if name in services:
                result.records.append(CESStateRecord(record["NODE"], name, value))
    return result


def parse_verbs(content: Union[str, bytes, None]) -> ParseResult:
    """Return the RDMA status word from ``VERBS RDMA status: started``."""
    result = ParseResult()
    for number, line in iter_lines(content):
        if not line.startswith("VERBS"):
            continue
        parts = line.split(": ", 1)
        if len(parts) != 2:
            result.add_error(number, "missing verbs status", line)
            continue
        result.records.append(parts[1].strip())
        break
    return result


def parse_mmdiag_config(content: Union[str, bytes, None]) -> ParseResult:
    parsed = parse_colon_records(content, prefix="mmdiag:config")
    result = ParseResult(errors=list(parsed.errors))
    for record in parsed.records:
        result.records.append(ConfigRecord(record["name"], record["value"], record["changed"]))
    return result
