"""First-fit free-list allocator over a growable heap (addresses only)."""

_UNIT = 16
_MIN_UNITS = 4096
_BASE = 0
_DEFAULT_HEAP = 128 * 1024 * 1024


class Allocator:
    """Hands out heap addresses from a circular, address-ordered free list.

    The heap starts at ``start`` and may grow up to ``limit``; each block is
    preceded by a one-unit header, and freed neighbours are coalesced.
    """

    def __init__(self, start=0x1000, limit=None):
        if start <= _BASE or start % _UNIT:
            raise ValueError("heap start must be a positive multiple of the header size")
        self.start = start
        self.brk = start
        self.limit = start + _DEFAULT_HEAP if limit is None else limit
        self._next = {}
        self._size = {}
        self._allocated = set()
        self._freep = None

    def _sbrk(self, nbytes):
        if self.brk + nbytes > self.limit:
            return None
        old = self.brk
        self.brk += nbytes
        return old

    def _morecore(self, nunits):
        nunits = max(nunits, _MIN_UNITS)
        header = self._sbrk(nunits * _UNIT)
        if header is None:
            return None
        self._size[header] = nunits
        self._release(header)
        return self._freep

    def malloc(self, nbytes):
        """Return the address of a block of at least ``nbytes`` bytes.

        Raises MemoryError when the heap cannot grow far enough.
        """
        if nbytes < 0:
            raise ValueError("negative allocation size")
        nunits = (nbytes + _UNIT - 1) // _UNIT + 1
        if self._freep is None:
            self._next[_BASE] = _BASE
            self._size[_BASE] = 0
            self._freep = _BASE
        prevp = self._freep
        p = self._next[prevp]
        while True:
            if self._size[p] >= nunits:
                if self._size[p] == nunits:
                    self._next[prevp] = self._next.pop(p)
                else:
                    self._size[p] -= nunits
                    p += self._size[p] * _UNIT
                    self._size[p] = nunits
                self._freep = prevp
                self._allocated.add(p)
                return p + _UNIT
            if p == self._freep:
                p = self._morecore(nunits)
                if p is None:
                    raise MemoryError(f"malloc: cannot allocate {nbytes} bytes")
            prevp, p = p, self._next[p]

    def free(self, address):
        """Return the block at ``address`` (from malloc) to the free list."""
        header = address - _UNIT
        if header not in self._allocated:
            raise ValueError(f"free: {address:#x} is not an allocated block")
        self._allocated.discard(header)
        self._release(header)

    def _release(self, bp):
        nxt, size = self._next, self._size
        p = self._freep
        while not (p < bp < nxt[p]):
            if p >= nxt[p] and (bp > p or bp < nxt[p]):
                break
            p = nxt[p]
        upper = nxt[p]
        if bp + size[bp] * _UNIT == upper:
            size[bp] += size.pop(upper)
            nxt[bp] = nxt.pop(upper)
        else:
            nxt[bp] = upper
        if p + size[p] * _UNIT == bp:
            size[p] += size.pop(bp)
            nxt[p] = nxt.pop(bp)
        else:
            nxt[p] = bp
        self._freep = p