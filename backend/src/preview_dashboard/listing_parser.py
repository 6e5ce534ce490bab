"""
Parser for ``ls -lah`` output captured from a container.

The format is column based and varies with locale and ``ls`` flavour
(GNU coreutils, BusyBox). Names are rebuilt from the columns after the
date, so entries with unusual date layouts may come out wrong.
"""
import re
from typing import List, Optional

from .kube_types import DirectoryListing, FileEntry

LISTING_COMMAND = ["ls", "-lah"]

MIN_FIELDS = 7
NAME_FIELD = 8
SHORT_NAME_FIELD = 6

_SIZE_RE = re.compile(r"^\d+(?:\.\d+)?")


def listing_command(path: str) -> List[str]:
    return LISTING_COMMAND + [path]


def _parse_size(token: str) -> float:
    # "4.0K" -> 4.0; the unit suffix is dropped
    match = _SIZE_RE.match(token)
    return float(match.group(0)) if match else 0.0


def parse_entry(line: str) -> Optional[FileEntry]:
    """Parse one listing line; None for unparseable or hidden entries."""
    fields = line.split()
    if len(fields) < MIN_FIELDS:
        return None

    start = NAME_FIELD if len(fields) > NAME_FIELD else SHORT_NAME_FIELD
    name = " ".join(fields[start:])
    if not name or name.startswith("."):
        return None

    permissions = fields[0]
    entry_type = "directory" if permissions.startswith("d") else "file"
    size = _parse_size(fields[4]) if entry_type == "file" else None
    return FileEntry(name=name, type=entry_type, permissions=permissions, size=size)


def parse_directory_listing(raw_output: str, path: str) -> DirectoryListing:
    """
    Parse the output of ``ls -lah <path>``.

    Args:
        raw_output: Captured stdout of the listing command
        path: Directory that was listed

    Returns:
        DirectoryListing with entries in output order
    """
    entries: List[FileEntry] = []
    first = True
    for line in raw_output.splitlines():
        if not line.strip():
            continue
        if first:
            first = False
            if line.split()[0] == "total":
                continue
        entry = parse_entry(line)
        if entry is not None:
            entries.append(entry)
    return DirectoryListing(path=path, entries=entries)
