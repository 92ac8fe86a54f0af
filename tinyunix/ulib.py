"""String and stream helpers used by the user programs."""


def atoi(s):
    """Convert the leading run of decimal digits in ``s`` to an int (0 if none)."""
    n = 0
    for ch in s:
        if not "0" <= ch <= "9":
            break
        n = n * 10 + ord(ch) - ord("0")
    return n


def _cstring(value):
    data = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    return data.split(b"\0", 1)[0]


def strcmp(a, b):
    """Compare two strings bytewise up to the first NUL; return the difference."""
    for p, q in zip(_cstring(a) + b"\0", _cstring(b) + b"\0"):
        if p == 0 or p != q:
            return p - q
    return 0


def memcmp(a, b, n):
    """Compare the first ``n`` bytes of ``a`` and ``b``; return the first difference."""
    left, right = bytes(a), bytes(b)
    if n > len(left) or n > len(right):
        raise ValueError("memcmp: length exceeds buffer")
    for p, q in zip(left[:n], right[:n]):
        if p != q:
            return p - q
    return 0


def gets(stream, limit):
    """Read up to ``limit - 1`` characters, stopping after a newline or carriage return."""
    pieces = []
    while len(pieces) + 1 < limit:
        ch = stream.read(1)
        if not ch:
            break
        pieces.append(ch)
        if ch in ("\n", "\r", b"\n", b"\r"):
            break
    if not pieces:
        return stream.read(0)
    return pieces[0][:0].join(pieces)