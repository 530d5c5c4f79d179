"""
Colon-delimited record streams (the ``-Y`` output of GPFS commands).

Each line is ``<cmd>:<section>:<type>:<fields...>``. The first two fields
form the discriminator (``mmdf:nsd``, ``mmhealth:State``, ``mmgetstate:``).
For every discriminator a ``HEADER`` row names the positional fields and
the following data rows bind their values by those names. Values are
percent-encoded by GPFS (``%2F`` for ``/``, ``%3A`` for ``:``).
"""

import datetime
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from urllib.parse import quote, unquote

from gpfs_exporter.config import ANSIC_TIME_FORMAT

HEADER = "HEADER"


@dataclass
class ParseResult:
    """
    Records extracted from one command output plus per-line errors.

    Parsers never raise for bad input. Each malformed line adds one entry to
    ``errors`` and contributes no records; the rest of the stream is kept.
    """
    records: List = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def add_error(self, line_number: int, message: str, line: str = ""):
        snippet = line if len(line) <= 120 else line[:120] + "..."
        if snippet:
            self.errors.append(f"line {line_number}: {message}: {snippet!r}")
        else:
            self.errors.append(f"line {line_number}: {message}")

    def extend(self, other: "ParseResult"):
        self.records.extend(other.records)
        self.errors.extend(other.errors)


@dataclass
class ColonRecord:
    discriminator: str
    fields: Dict[str, str]
    line_number: int = 0
    raw_field_count: int = 0

    def get(self, name: str, default: str = "") -> str:
        return self.fields.get(name, default)

    def __getitem__(self, name: str) -> str:
        return self.fields.get(name, "")


def to_text(content: Union[str, bytes, None]) -> str:
    if content is None:
        return ""
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def iter_lines(content: Union[str, bytes, None]):
    """Yield ``(line_number, stripped_line)`` for every non-blank line."""
    for number, line in enumerate(to_text(content).splitlines(), start=1):
        line = line.strip()
        if line:
            yield number, line


def percent_decode(value: str) -> str:
    return unquote(value)


def percent_encode(value: str) -> str:
    """Encode a value the way GPFS does in ``-Y`` output."""
    return quote(value, safe="")


def parse_colon_records(content: Union[str, bytes, None], prefix: Optional[str] = None,
                        strict: bool = False) -> ParseResult:
    """
    Parse a colon-delimited record stream into ``ColonRecord`` objects.

    Args:
        content: Raw command output.
        prefix: Only lines starting with this string are considered. Banner
            lines and wrapped continuation lines are ignored silently.
        strict: Reject data rows whose field count differs from their
            HEADER instead of padding or truncating them.

    Returns:
        ParseResult whose records are ColonRecord instances in stream order.

    Example:
        >>> out = "mmgetstate::HEADER:version:reserved:reserved:nodeName:state:\\n" \\
        ...       "mmgetstate::0:1:::node1:active:\\n"
        >>> parse_colon_records(out).records[0]["state"]
        'active'
    """
    result = ParseResult()
    headers: Dict[str, List[str]] = {}

    for number, line in iter_lines(content):
        if prefix and not line.startswith(prefix):
            continue
        items = line.split(":")
        if len(items) < 3:
            result.add_error(number, "too few fields", line)
            continue

        discriminator = f"{items[0]}:{items[1]}"
        if items[2] == HEADER:
            headers[discriminator] = items
            continue

        header = headers.get(discriminator)
        if header is None:
            result.add_error(number, f"no HEADER for {discriminator}", line)
            continue
        if strict and len(items) != len(header):
            result.add_error(number, f"expected {len(header)} fields, got {len(items)}", line)
            continue

        fields = {}
        for index, name in enumerate(header):
            if not name or index < 3 or name in fields:
                continue
            value = items[index] if index < len(items) else ""
            fields[name] = percent_decode(value)
        result.records.append(ColonRecord(discriminator, fields, number, len(items)))

    return result


def parse_int(value: str) -> int:
    """Parse an integer field, accepting float notation such as ``14.0``.

    Raises:
        ValueError: The field is not a finite number.
    """
    value = value.strip()
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return int(float(value))
    except OverflowError as e:
        raise ValueError(f"invalid integer {value!r}") from e


def parse_float(value: str) -> float:
    """Parse a float field, accepting a decimal comma and treating ``nan`` as 0."""
    value = value.strip()
    if "nan" in value.lower():
        return 0.0
    return float(value.replace(",", "."))


def parse_ansic_time(value: str, tz: Optional[datetime.tzinfo] = None) -> float:
    """
    Convert an ANSI C timestamp (``Wed Jan 20 00:30:02 2021``) to unix time.

    Args:
        value: Timestamp text, already percent-decoded.
        tz: Zone the timestamp is expressed in. Defaults to the local zone.

    Raises:
        ValueError: The text is not an ANSI C timestamp.
    """
    parsed = datetime.datetime.strptime(value.strip(), ANSIC_TIME_FORMAT)
    if tz is not None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed.timestamp()
