"""Small printf-style formatter understanding %d, %u, %x (with l/ll), %p, %s and %%."""

import re
import sys

_DIGITS = "0123456789ABCDEF"
_INT_MASK = 0xFFFFFFFF
_PTR_MASK = 0xFFFFFFFFFFFFFFFF

_INT_CONVERSIONS = {"d": (10, True), "u": (10, False), "x": (16, False)}

# A conversion is "%" followed by an optional l/ll modifier and d/u/x, or by
# p, s or %; anything else after "%" is echoed back to draw attention.
_DIRECTIVE = re.compile(r"%(?:(l{0,2})([dux])|([ps%])|(.))?", re.DOTALL)


def _to_int32(value):
    value &= _INT_MASK
    return value - (1 << 32) if value & 0x80000000 else value


def _format_int(value, base, signed):
    """Render an integer the way the formatter does: narrowed to 32 bits."""
    value = _to_int32(int(value))
    negative = signed and value < 0
    magnitude = -value if negative else value & _INT_MASK
    digits = []
    while True:
        magnitude, remainder = divmod(magnitude, base)
        digits.append(_DIGITS[remainder])
        if magnitude == 0:
            break
    if negative:
        digits.append("-")
    return "".join(reversed(digits))


def _format_ptr(value):
    return "0x" + format(int(value or 0) & _PTR_MASK, "016X")


def _format_str(value):
    if value is None:
        return "(null)"
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("latin-1")
    return str(value).split("\0", 1)[0]


def sprintf(fmt, *args):
    """Format ``args`` according to ``fmt`` and return the resulting string."""
    values = iter(args)

    def next_arg():
        try:
            return next(values)
        except StopIteration:
            raise TypeError("not enough arguments for format string") from None

    def render(match):
        _modifier, conversion, simple, other = match.groups()
        if conversion is not None:
            base, signed = _INT_CONVERSIONS[conversion]
            return _format_int(next_arg(), base, signed)
        if simple == "p":
            return _format_ptr(next_arg())
        if simple == "s":
            return _format_str(next_arg())
        if simple == "%":
            return "%"
        if other is not None:
            return "%" + other
        return ""

    return _DIRECTIVE.sub(render, fmt.split("\0", 1)[0])


def fprintf(stream, fmt, *args):
    """Write the formatted text to ``stream``."""
    stream.write(sprintf(fmt, *args))


def printf(fmt, *args):
    """Write the formatted text to standard output."""
    fprintf(sys.stdout, fmt, *args)