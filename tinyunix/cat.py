"""Concatenate files to standard output."""

import sys

_CHUNK = 512


def cat(src, out):
    """Copy ``src`` to ``out`` in small chunks.

    Raises OSError("cat: read error") or OSError("cat: write error") on failure.
    """
    while True:
        try:
            chunk = src.read(_CHUNK)
        except OSError as exc:
            raise OSError("cat: read error") from exc
        if not chunk:
            return
        try:
            written = out.write(chunk)
        except OSError as exc:
            raise OSError("cat: write error") from exc
        if written is not None and written != len(chunk):
            raise OSError("cat: write error")


def main(argv=None):
    """Copy standard input or the named files to standard output; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    out = getattr(sys.stdout, "buffer", sys.stdout)
    try:
        if not args:
            cat(getattr(sys.stdin, "buffer", sys.stdin), out)
            return 0
        for path in args:
            try:
                src = open(path, "rb")
            except OSError:
                sys.stderr.write(f"cat: cannot open {path}\n")
                return 1
            with src:
                cat(src, out)
    except OSError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1
    finally:
        out.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())