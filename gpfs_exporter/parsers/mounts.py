"""Parsers for the kernel mount table and fstab."""

from typing import List, Union

from gpfs_exporter.parsers.colon import ParseResult, iter_lines

GPFS_FSTYPE = "gpfs"


def _gpfs_entries(content) -> ParseResult:
    result = ParseResult()
    for number, line in iter_lines(content):
        if line.startswith("#"):
            continue
        items = line.split()
        try:
            mountpoint, fstype = items[1], items[2]
        except IndexError:
            result.add_error(number, "short mount entry", line)
            continue
        if fstype != GPFS_FSTYPE:
            continue
        # /proc/mounts escapes spaces in paths as \040
        mountpoint = mountpoint.replace("\\040", " ")
        if mountpoint not in result.records:
            result.records.append(mountpoint)
    return result


def parse_proc_mounts(content: Union[str, bytes, None]) -> ParseResult:
    """Return GPFS mountpoints from ``/proc/mounts`` content in file order."""
    return _gpfs_entries(content)


def parse_fstab(content: Union[str, bytes, None]) -> ParseResult:
    """Return GPFS mountpoints declared in an fstab, in file order."""
    return _gpfs_entries(content)


def union_mounts(*mount_lists: List[str]) -> List[str]:
    mounts = []
    for mount_list in mount_lists:
        for mount in mount_list:
            if mount not in mounts:
                mounts.append(mount)
    return mounts
