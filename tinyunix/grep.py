"""A small grep supporting only the ^ . * $ operators."""

import sys

from .printf import printf

_BUFFER_SIZE = 1024


def _match_here(pattern, pi, text, ti):
    if pi == len(pattern):
        return True
    if pi + 1 < len(pattern) and pattern[pi + 1] == "*":
        return _match_star(pattern[pi], pattern, pi + 2, text, ti)
    if pattern[pi] == "$" and pi + 1 == len(pattern):
        return ti == len(text)
    if ti < len(text) and pattern[pi] in (".", text[ti]):
        return _match_here(pattern, pi + 1, text, ti + 1)
    return False


def _match_star(c, pattern, pi, text, ti):
    while True:
        if _match_here(pattern, pi, text, ti):
            return True
        if ti >= len(text) or not (text[ti] == c or c == "."):
            return False
        ti += 1


def match(pattern, text):
    """Return True if ``pattern`` matches anywhere in ``text``."""
    if pattern.startswith("^"):
        return _match_here(pattern, 1, text, 0)
    return any(_match_here(pattern, 0, text, start) for start in range(len(text) + 1))


def grep(pattern, stream, out):
    """Write every newline-terminated line of ``stream`` that matches ``pattern``.

    A line that does not fit in the read buffer ends the search, and a final
    line without a newline is never printed.
    """
    pending = ""
    while True:
        room = _BUFFER_SIZE - 1 - len(pending)
        chunk = stream.read(room) if room > 0 else ""
        if not chunk:
            break
        pending += chunk
        *lines, pending = pending.split("\n")
        for line in lines:
            if match(pattern, line):
                out.write(line + "\n")


def main(argv=None):
    """Run grep over standard input or the named files; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("usage: grep pattern [file ...]\n")
        return 1
    pattern, *paths = args
    if not paths:
        grep(pattern, sys.stdin, sys.stdout)
        return 0
    for path in paths:
        try:
            stream = open(path, encoding="utf-8", errors="surrogateescape", newline="")
        except OSError:
            printf("grep: cannot open %s\n", path)
            return 1
        with stream:
            grep(pattern, stream, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())