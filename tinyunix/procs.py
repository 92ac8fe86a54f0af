"""Concurrency exercises: child exhaustion, concurrent file writers and an unreaped child.

Children are threads of this process: starting one plays the part of fork,
joining it the part of wait.
"""

import contextlib
import os
import sys
import threading
import time
from pathlib import Path

from .printf import sprintf

_FORK_LIMIT = 1000
_STRESS_PROCS = 4
_STRESS_BLOCK = 512
_STRESS_ROUNDS = 20
_ZOMBIE_DELAY = 0.5

_OUT_LOCK = threading.Lock()


class ForkTestError(Exception):
    """Raised when starting or reaping children does not behave as the fork test expects."""


def _emit(out, fmt, *args):
    text = sprintf(fmt, *args)
    with _OUT_LOCK:
        out.write(text)
        with contextlib.suppress(Exception):
            out.flush()


def _spawn(target, *args):
    """Start ``target`` as a child; return the child, or None if it cannot start."""
    child = threading.Thread(target=target, args=args, daemon=True)
    try:
        child.start()
    except RuntimeError:
        return None
    return child


def _child_exit():
    return None


def forktest(limit=_FORK_LIMIT, out=None):
    """Start children until that fails (at most ``limit`` times), then reap every one.

    Raises ForkTestError if every start succeeded or reaping misbehaves.
    """
    out = sys.stdout if out is None else out
    _emit(out, "fork test\n")
    children = []
    while len(children) < limit:
        child = _spawn(_child_exit)
        if child is None:
            break
        children.append(child)

    if len(children) == limit:
        for child in children:
            child.join()
        _emit(out, "fork claimed to work N times!\n")
        raise ForkTestError("fork claimed to work N times!")

    for _ in range(len(children)):
        if not children:
            _emit(out, "wait stopped early\n")
            raise ForkTestError("wait stopped early")
        children.pop().join()

    if children:
        _emit(out, "wait got too many\n")
        raise ForkTestError("wait got too many")

    _emit(out, "fork test OK\n")


def forktest_main(argv=None):
    """Run the fork test on standard output; return the exit status."""
    del argv
    try:
        forktest(_FORK_LIMIT, sys.stdout)
    except ForkTestError:
        return 1
    return 0


def _stress_one(directory, index, out):
    data = b"a" * _STRESS_BLOCK
    _emit(out, "write %d\n", index)
    path = Path(directory) / f"stressfs{index}"
    fd = os.open(path, os.O_CREAT | os.O_RDWR, 0o666)
    with os.fdopen(fd, "r+b") as stream:
        for _ in range(_STRESS_ROUNDS):
            stream.write(data)
    _emit(out, "read\n")
    with open(path, "rb") as stream:
        for _ in range(_STRESS_ROUNDS):
            stream.read(_STRESS_BLOCK)
    return path


def _stress_chain(directory, index, out):
    child = None
    while index < _STRESS_PROCS:
        child = _spawn(_stress_chain, directory, index + 1, out)
        if child is not None:
            break
        index += 1
    path = _stress_one(directory, index, out)
    if child is not None:
        child.join()
    return path


def stressfs(directory, out):
    """Write and read back files from a chain of five workers.

    Each worker writes ``stressfs<i>`` in ``directory``; this call returns the
    path the first worker wrote once the whole chain has finished.
    """
    _emit(out, "stressfs starting\n")
    return _stress_chain(directory, 0, out)


def stressfs_main(argv=None):
    """Run the file stress exercise in the current directory."""
    del argv
    stressfs(".", sys.stdout)
    return 0


def zombie_main(argv=None):
    """Start a child that ends at once while the caller sleeps without reaping it."""
    del argv
    child = _spawn(_child_exit)
    if child is not None:
        time.sleep(_ZOMBIE_DELAY)
    return 0