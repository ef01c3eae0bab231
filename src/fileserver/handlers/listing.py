"""
=============================================================================
DIRECTORY LISTING
=============================================================================

GET on a directory answers with a long-format listing, one line per
entry, in the same shape as `ls -l -A --time-style="+%Y-%m-%d %H:%M:%S"`:

    drwxr-xr-x 2 alice staff 4096 2026-01-15 12:30:45 photos
    -rw-r--r-- 1 alice staff   11 2026-01-15 12:31:02 todo.txt
    lrwxrwxrwx 1 alice staff    8 2026-01-15 12:32:10 latest -> todo.txt
    ─────┬──── ┬ ──┬── ──┬── ─┬── ─────────┬───────── ──┬──
         │     │   │     │    │            │            └── name
         │     │   │     │    │            └── modification time (local)
         │     │   │     │    └── size in bytes
         │     │   │     └── group
         │     │   └── owner
         │     └── hard link count
         └── file type + permission bits

Hidden entries are included; "." and ".." are not. Entries are sorted by
name. Numeric columns are right-aligned to the widest value.

Entries are stat'ed without following symlinks, so a link shows as a
link even when its target is missing.

=============================================================================
"""

import grp
import os
import pwd
import stat
from datetime import datetime
from typing import List, NamedTuple


TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class ListingEntry(NamedTuple):
    mode: str
    nlink: int
    owner: str
    group: str
    size: int
    mtime: str
    name: str


def _owner_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def _group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


def describe_entry(entry: os.DirEntry) -> ListingEntry:
    """
    Collect the long-format fields for one directory entry.

    Raises:
        OSError: If the entry cannot be stat'ed (e.g. it just vanished).
    """
    info = entry.stat(follow_symlinks=False)

    name = entry.name
    if stat.S_ISLNK(info.st_mode):
        name = f"{name} -> {os.readlink(entry.path)}"

    return ListingEntry(
        mode=stat.filemode(info.st_mode),
        nlink=info.st_nlink,
        owner=_owner_name(info.st_uid),
        group=_group_name(info.st_gid),
        size=info.st_size,
        mtime=datetime.fromtimestamp(info.st_mtime).strftime(TIME_FORMAT),
        name=name,
    )


def collect_entries(path: str) -> List[ListingEntry]:
    """
    Describe every entry of a directory, sorted by name.

    Entries removed between scandir() and stat() are skipped.

    Raises:
        OSError: If the directory itself cannot be opened.
    """
    entries = []
    with os.scandir(path) as it:
        for dir_entry in sorted(it, key=lambda d: d.name):
            try:
                entries.append(describe_entry(dir_entry))
            except FileNotFoundError:
                continue
    return entries


def format_entries(entries: List[ListingEntry]) -> bytes:
    """Render entries as newline-terminated lines with aligned columns."""
    if not entries:
        return b""

    nlink_width = max(len(str(e.nlink)) for e in entries)
    owner_width = max(len(e.owner) for e in entries)
    group_width = max(len(e.group) for e in entries)
    size_width = max(len(str(e.size)) for e in entries)

    lines = [
        f"{e.mode} {e.nlink:>{nlink_width}} {e.owner:<{owner_width}} "
        f"{e.group:<{group_width}} {e.size:>{size_width}} {e.mtime} {e.name}\n"
        for e in entries
    ]
    return "".join(lines).encode("utf-8", "surrogateescape")


def list_directory(path: str) -> bytes:
    """
    Long-format listing of a directory as response body bytes.

    Raises:
        OSError: If the directory cannot be read.
    """
    return format_entries(collect_entries(path))
