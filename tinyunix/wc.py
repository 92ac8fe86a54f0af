"""Count lines, words and bytes."""

import sys
from dataclasses import dataclass

from .printf import fprintf, printf

_CHUNK = 512
# A NUL character ends a word as well.
_WHITESPACE = frozenset(" \r\t\n\v\0")


@dataclass(frozen=True)
class Counts:
    """Line, word and character totals of a stream."""

    lines: int = 0
    words: int = 0
    chars: int = 0


def count(stream):
    """Count lines, words and characters (bytes for binary streams) in ``stream``."""
    lines = words = chars = 0
    in_word = False
    while chunk := stream.read(_CHUNK):
        if isinstance(chunk, (bytes, bytearray)):
            chunk = bytes(chunk).decode("latin-1")
        for ch in chunk:
            chars += 1
            if ch == "\n":
                lines += 1
            if ch in _WHITESPACE:
                in_word = False
            elif not in_word:
                words += 1
                in_word = True
    return Counts(lines, words, chars)


def wc(stream, name, out):
    """Count ``stream``, write the totals and ``name`` to ``out`` and return them."""
    counts = count(stream)
    fprintf(out, "%d %d %d %s\n", counts.lines, counts.words, counts.chars, name)
    return counts


def main(argv=None):
    """Run wc over standard input or the named files; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        if not args:
            wc(getattr(sys.stdin, "buffer", sys.stdin), "", sys.stdout)
            return 0
        for path in args:
            try:
                stream = open(path, "rb")
            except OSError:
                printf("wc: cannot open %s\n", path)
                return 1
            with stream:
                wc(stream, path, sys.stdout)
    except OSError:
        printf("wc: read error\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())