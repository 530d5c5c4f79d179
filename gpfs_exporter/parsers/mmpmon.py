"""Parser for the underscore-tagged ``mmpmon -s -p`` stream."""

from dataclasses import dataclass
from typing import Callable, Dict, Tuple, Union

from gpfs_exporter.parsers.colon import ParseResult, iter_lines

OPERATIONS = ("reads", "writes", "opens", "closes", "read_dir", "inode_updates")


@dataclass
class PerfRecord:
    fs: str = ""
    node_name: str = ""
    read_bytes: int = 0
    write_bytes: int = 0
    reads: int = 0
    writes: int = 0
    opens: int = 0
    closes: int = 0
    read_dir: int = 0
    inode_updates: int = 0


# tag -> (attribute, converter)
PERF_TAGS: Dict[str, Tuple[str, Callable]] = {
    "_fs_": ("fs", str),
    "_nn_": ("node_name", str),
    "_br_": ("read_bytes", int),
    "_bw_": ("write_bytes", int),
    "_rdc_": ("reads", int),
    "_wc_": ("writes", int),
    "_oc_": ("opens", int),
    "_cc_": ("closes", int),
    "_dir_": ("read_dir", int),
    "_iu_": ("inode_updates", int),
}


def parse_mmpmon(content: Union[str, bytes, None]) -> ParseResult:
    """
    Parse ``fs_io_s`` responses into PerfRecord objects.

    Every line starts with the response name (``_fs_io_s_``) followed by
    alternating tag/value tokens. Tags missing from ``PERF_TAGS`` are
    ignored and absent tags keep their zero value.

    Args:
        content: Raw mmpmon output.

    Returns:
        ParseResult with one PerfRecord per line.
    """
    result = ParseResult()
    for number, line in iter_lines(content):
        if not line.startswith("_"):
            continue
        tokens = line.split()
        record = PerfRecord()
        try:
            for tag, value in zip(tokens[1::2], tokens[2::2]):
                setter = PERF_TAGS.get(tag)
                if setter is None:
                    continue
                attribute, convert = setter
                setattr(record, attribute, convert(value))
        except ValueError as e:
            result.add_error(number, f"invalid value ({e})", line)
            continue
        result.records.append(record)
    return result
