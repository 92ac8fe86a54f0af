"""Print arguments, and a program that prints a null pointer."""

import sys

from .printf import printf


def echo(args):
    """Return the arguments joined by spaces and ended by a newline ("" if none)."""
    return (" ".join(args) + "\n") if args else ""


def main(argv=None):
    """Write the arguments to standard output; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    sys.stdout.write(echo(args))
    return 0


def null_deref_main(argv=None):
    """Print a null pointer value; return the exit status."""
    del argv
    printf("Dereferencing null pointer...\n")
    printf("Value: %p\n", None)
    return 0


if __name__ == "__main__":
    sys.exit(main())