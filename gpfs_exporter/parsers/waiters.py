"""Parsers for ``mmdiag --waiters`` output in its ``-Y`` and free-text forms."""

import re
from dataclasses import dataclass
from typing import Union

from gpfs_exporter.parsers.colon import ParseResult, iter_lines, parse_colon_records, parse_float

WAITER_PATTERN = re.compile(
    r"^Waiting\s+(?P<seconds>[0-9.]+)\s+sec\s+since\s+.+?,\s+(?:monitored|ignored),\s+"
    r"thread\s+(?P<thread>\d+)\s*(?P<rest>.*)$"
)
WAITER_PREFIX = "mmdiag:waiters"


@dataclass
class WaiterRecord:
    name: str
    reason: str
    seconds: float
    thread_id: str = ""


def parse_waiters_text(content: Union[str, bytes, None]) -> ParseResult:
    """
    Parse free-text waiter lines.

    ``Waiting 64.3890 sec since 17:55:45, monitored, thread 120655 NSDThread: for I/O completion``
    yields name ``NSDThread`` and reason ``for I/O completion``. A line
    without the colon keeps its seconds but has an empty name and reason.
    """
    result = ParseResult()
    for number, line in iter_lines(content):
        if not line.startswith("Waiting"):
            continue
        match = WAITER_PATTERN.match(line)
        if match is None:
            result.add_error(number, "unrecognized waiter line", line)
            continue
        try:
            seconds = float(match.group("seconds"))
        except ValueError:
            result.add_error(number, "invalid waiter seconds", line)
            continue
        name, reason = "", ""
        rest = match.group("rest")
        if ":" in rest:
            name, reason = rest.split(":", 1)
            name = name.split()[-1] if name.split() else ""
            reason = reason.strip()
        result.records.append(WaiterRecord(name, reason, seconds, match.group("thread")))
    return result


def parse_waiters_colon(content: Union[str, bytes, None]) -> ParseResult:
    result = ParseResult()
    parsed = parse_colon_records(content, prefix=WAITER_PREFIX)
    result.errors.extend(parsed.errors)
    for record in parsed.records:
        try:
            seconds = parse_float(record["waitTime"])
        except ValueError:
            result.add_error(record.line_number, f"invalid waitTime {record['waitTime']!r}")
            continue
        result.records.append(WaiterRecord(
            name=record["threadName"],
            reason=record["auxReason"] or record["reason"],
            seconds=seconds,
            thread_id=record["threadId"],
        ))
    return result


def parse_mmdiag_waiters(content: Union[str, bytes, None]) -> ParseResult:
    """Parse waiters, preferring the ``-Y`` records when the output has them."""
    for _, line in iter_lines(content):
        if line.startswith(WAITER_PREFIX):
            return parse_waiters_colon(content)
    return parse_waiters_text(content)
