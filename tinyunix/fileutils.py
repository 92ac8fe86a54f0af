"""File utilities: ls, mkdir, rm, ln and kill."""

import contextlib
import enum
import os
import signal
import stat as _stat
import sys
from dataclasses import dataclass

from .printf import fprintf
from .ulib import atoi

DIRSIZ = 14
_PATH_BUFFER = 512


class FileType(enum.IntEnum):
    """Kind of file reported by stat."""

    DIR = 1
    FILE = 2
    DEVICE = 3


@dataclass(frozen=True)
class StatInfo:
    """What stat reports about a file."""

    dev: int
    ino: int
    type: FileType
    nlink: int
    size: int


def fmtname(path):
    """Return the last component of ``path``, blank-padded to DIRSIZ characters."""
    name = path.rsplit("/", 1)[-1]
    if len(name) >= DIRSIZ:
        return name
    return name.ljust(DIRSIZ)


def stat_path(path):
    """Stat ``path``; raises OSError if it cannot be examined."""
    st = os.stat(path)
    if _stat.S_ISDIR(st.st_mode):
        kind = FileType.DIR
    elif _stat.S_ISCHR(st.st_mode) or _stat.S_ISBLK(st.st_mode):
        kind = FileType.DEVICE
    else:
        kind = FileType.FILE
    return StatInfo(st.st_dev, st.st_ino, kind, st.st_nlink, st.st_size)


def _print_entry(out, path, info):
    fprintf(out, "%s %d %d %d\n", fmtname(path), int(info.type), info.ino, info.size)


def ls(path, out):
    """List ``path`` on ``out``: one line for a file, one per entry for a directory."""
    try:
        info = stat_path(path)
    except OSError:
        fprintf(sys.stderr, "ls: cannot open %s\n", path)
        return
    if info.type is not FileType.DIR:
        _print_entry(out, path, info)
        return
    if len(path) + 1 + DIRSIZ + 1 > _PATH_BUFFER:
        fprintf(out, "ls: path too long\n")
        return
    try:
        names = sorted(os.listdir(path))
    except OSError:
        fprintf(sys.stderr, "ls: cannot open %s\n", path)
        return
    for name in (".", "..", *names):
        entry = f"{path}/{name}"
        try:
            entry_info = stat_path(entry)
        except OSError:
            fprintf(out, "ls: cannot stat %s\n", entry)
            continue
        _print_entry(out, entry, entry_info)


def _args(argv):
    return sys.argv[1:] if argv is None else list(argv)


def ls_main(argv=None):
    """List the current directory or each named path; return the exit status."""
    args = _args(argv)
    for path in args or ["."]:
        ls(path, sys.stdout)
    return 0


def mkdir_main(argv=None):
    """Create each named directory, stopping at the first failure."""
    args = _args(argv)
    if not args:
        fprintf(sys.stderr, "Usage: mkdir files...\n")
        return 1
    for path in args:
        try:
            os.mkdir(path)
        except OSError:
            fprintf(sys.stderr, "mkdir: %s failed to create\n", path)
            break
    return 0


def _unlink(path):
    if os.path.isdir(path) and not os.path.islink(path):
        os.rmdir(path)
    else:
        os.unlink(path)


def rm_main(argv=None):
    """Remove each named file or empty directory, stopping at the first failure."""
    args = _args(argv)
    if not args:
        fprintf(sys.stderr, "Usage: rm files...\n")
        return 1
    for path in args:
        try:
            _unlink(path)
        except OSError:
            fprintf(sys.stderr, "rm: %s failed to delete\n", path)
            break
    return 0


def ln_main(argv=None):
    """Create a hard link ``new`` to ``old``."""
    args = _args(argv)
    if len(args) != 2:
        fprintf(sys.stderr, "Usage: ln old new\n")
        return 1
    old, new = args
    try:
        os.link(old, new)
    except OSError:
        fprintf(sys.stderr, "link %s %s: failed\n", old, new)
    return 0


def kill_main(argv=None):
    """Terminate each process whose id is given; failures are ignored."""
    args = _args(argv)
    if not args:
        fprintf(sys.stderr, "usage: kill pid...\n")
        return 1
    for arg in args:
        pid = atoi(arg)
        if pid <= 0:
            continue
        with contextlib.suppress(OSError):
            os.kill(pid, signal.SIGTERM)
    return 0