"""Sv39 three-level page tables over a simulated physical memory."""

import struct

from .memlayout import KERNBASE, MAXVA, PGSIZE, PHYSTOP

PTE_V = 1 << 0
PTE_R = 1 << 1
PTE_W = 1 << 2
PTE_X = 1 << 3
PTE_U = 1 << 4

_PTES_PER_PAGE = 512
_ZERO_PAGE = bytes(PGSIZE)


class VMPanic(RuntimeError):
    """An invariant of the memory system was violated."""


class OutOfMemory(MemoryError):
    """No physical page was left to allocate."""


class BadAddress(ValueError):
    """An address is unmapped, not accessible, or outside memory."""


def _round_up(a):
    return (a + PGSIZE - 1) & ~(PGSIZE - 1)


def _round_down(a):
    return a & ~(PGSIZE - 1)


def _px(level, va):
    return (va >> (12 + 9 * level)) & 0x1FF


def _pte2pa(pte):
    return (pte >> 10) << 12


def _pa2pte(pa):
    return (pa >> 12) << 10


def _pte_flags(pte):
    return pte & 0x3FF


class PhysicalMemory:
    """Page-granular physical RAM with a free-page allocator."""

    def __init__(self, npages=(PHYSTOP - KERNBASE) // PGSIZE, base=KERNBASE):
        if npages <= 0 or base % PGSIZE:
            raise ValueError("memory must hold at least one aligned page")
        self.base = base
        self.end = base + npages * PGSIZE
        self._pages = {}
        self._free = list(range(self.end - PGSIZE, base - 1, -PGSIZE))
        self._free_set = set(self._free)

    def __len__(self):
        """Number of free pages."""
        return len(self._free)

    def kalloc(self):
        """Allocate one page and return its physical address."""
        if not self._free:
            raise OutOfMemory("kalloc: out of memory")
        pa = self._free.pop()
        self._free_set.discard(pa)
        return pa

    def kfree(self, pa):
        """Return the page at ``pa`` to the allocator."""
        if pa % PGSIZE or not self.base <= pa < self.end:
            raise VMPanic("kfree")
        if pa in self._free_set:
            raise VMPanic("kfree: double free")
        self._free.append(pa)
        self._free_set.add(pa)

    def _spans(self, pa, n):
        if n < 0 or pa < self.base or pa + n > self.end:
            raise BadAddress(f"physical range {pa:#x}+{n} outside memory")
        while n > 0:
            page = _round_down(pa)
            offset = pa - page
            length = min(n, PGSIZE - offset)
            yield page, offset, length
            pa += length
            n -= length

    def read(self, pa, n):
        """Read ``n`` bytes starting at physical address ``pa``."""
        return b"".join(
            self._pages.get(page, _ZERO_PAGE)[offset:offset + length]
            for page, offset, length in self._spans(pa, n)
        )

    def write(self, pa, data):
        """Write ``data`` starting at physical address ``pa``."""
        view = memoryview(bytes(data))
        for page, offset, length in self._spans(pa, len(view)):
            frame = self._pages.get(page)
            if frame is None:
                frame = self._pages[page] = bytearray(PGSIZE)
            frame[offset:offset + length] = view[:length]
            view = view[length:]


class PageTable:
    """A three-level page table whose root page lives in ``mem``."""

    def __init__(self, mem, root=None):
        self.mem = mem
        if root is None:
            root = mem.kalloc()
            mem.write(root, _ZERO_PAGE)
        self.root = root

    def _load(self, addr):
        return int.from_bytes(self.mem.read(addr, 8), "little")

    def _store(self, addr, pte):
        self.mem.write(addr, pte.to_bytes(8, "little"))

    def walk(self, va, alloc=False):
        """Return the physical address of the leaf PTE for ``va``, or None.

        With ``alloc`` true, missing page-table pages are created; None is
        returned if one cannot be allocated.
        """
        if not 0 <= va < MAXVA:
            raise VMPanic("walk")
        table = self.root
        for level in (2, 1):
            addr = table + 8 * _px(level, va)
            pte = self._load(addr)
            if pte & PTE_V:
                table = _pte2pa(pte)
                continue
            if not alloc:
                return None
            try:
                table = self.mem.kalloc()
            except OutOfMemory:
                return None
            self.mem.write(table, _ZERO_PAGE)
            self._store(addr, _pa2pte(table) | PTE_V)
        return table + 8 * _px(0, va)

    def walkaddr(self, va):
        """Physical address of the user page mapping ``va``, or None."""
        if not 0 <= va < MAXVA:
            return None
        addr = self.walk(va)
        if addr is None:
            return None
        pte = self._load(addr)
        if not pte & PTE_V or not pte & PTE_U:
            return None
        return _pte2pa(pte)

    def kvmmap(self, va, pa, size, perm):
        """Add a boot-time mapping; any failure is fatal."""
        try:
            self.mappages(va, size, pa, perm)
        except OutOfMemory:
            raise VMPanic("kvmmap") from None

    def mappages(self, va, size, pa, perm):
        """Map ``size`` bytes at ``va`` to physical ``pa`` with ``perm``.

        Raises OutOfMemory if a page-table page cannot be allocated.
        """
        if va % PGSIZE:
            raise VMPanic("mappages: va not aligned")
        if size % PGSIZE:
            raise VMPanic("mappages: size not aligned")
        if size == 0:
            raise VMPanic("mappages: size")
        for offset in range(0, size, PGSIZE):
            addr = self.walk(va + offset, alloc=True)
            if addr is None:
                raise OutOfMemory("mappages: cannot allocate page-table page")
            if self._load(addr) & PTE_V:
                raise VMPanic("mappages: remap")
            self._store(addr, _pa2pte(pa + offset) | perm | PTE_V)

    def unmap(self, va, npages, do_free):
        """Remove ``npages`` existing mappings from ``va``, optionally freeing the pages."""
        if va % PGSIZE:
            raise VMPanic("uvmunmap: not aligned")
        for a in range(va, va + npages * PGSIZE, PGSIZE):
            addr = self.walk(a)
            if addr is None:
                raise VMPanic("uvmunmap: walk")
            pte = self._load(addr)
            if not pte & PTE_V:
                raise VMPanic("uvmunmap: not mapped")
            if _pte_flags(pte) == PTE_V:
                raise VMPanic("uvmunmap: not a leaf")
            if do_free:
                self.mem.kfree(_pte2pa(pte))
            self._store(addr, 0)

    def load_first(self, src):
        """Place ``src`` (less than a page) at user address zero."""
        if len(src) >= PGSIZE:
            raise VMPanic("uvmfirst: more than a page")
        page = self.mem.kalloc()
        self.mem.write(page, _ZERO_PAGE)
        self.mappages(0, PGSIZE, page, PTE_W | PTE_R | PTE_X | PTE_U)
        self.mem.write(page, src)

    def grow(self, oldsz, newsz, xperm=0):
        """Grow user memory from ``oldsz`` to ``newsz`` and return the new size.

        On failure the pages added are released and OutOfMemory is raised.
        """
        if newsz < oldsz:
            return oldsz
        oldsz = _round_up(oldsz)
        for a in range(oldsz, newsz, PGSIZE):
            try:
                page = self.mem.kalloc()
            except OutOfMemory:
                self.shrink(a, oldsz)
                raise
            self.mem.write(page, _ZERO_PAGE)
            try:
                self.mappages(a, PGSIZE, page, PTE_R | PTE_U | xperm)
            except OutOfMemory:
                self.mem.kfree(page)
                self.shrink(a, oldsz)
                raise
        return newsz

    def shrink(self, oldsz, newsz):
        """Release user pages to bring the size from ``oldsz`` down to ``newsz``."""
        if newsz >= oldsz:
            return oldsz
        low, high = _round_up(newsz), _round_up(oldsz)
        if low < high:
            self.unmap(low, (high - low) // PGSIZE, True)
        return newsz

    def freewalk(self):
        """Free all page-table pages; leaf mappings must already be gone."""
        page = self.mem.read(self.root, PGSIZE)
        for index, (pte,) in enumerate(struct.iter_unpack("<Q", page)):
            if pte & PTE_V and not pte & (PTE_R | PTE_W | PTE_X):
                PageTable(self.mem, _pte2pa(pte)).freewalk()
                self._store(self.root + 8 * index, 0)
            elif pte & PTE_V:
                raise VMPanic("freewalk: leaf")
        self.mem.kfree(self.root)

    def free(self, sz):
        """Free ``sz`` bytes of user memory, then the page-table pages."""
        if sz > 0:
            self.unmap(0, _round_up(sz) // PGSIZE, True)
        self.freewalk()

    def copy_to(self, other, sz):
        """Copy the first ``sz`` bytes of user memory, mappings and contents, into ``other``.

        On failure the pages already copied are released and OutOfMemory is raised.
        """
        for va in range(0, sz, PGSIZE):
            addr = self.walk(va)
            if addr is None:
                raise VMPanic("uvmcopy: pte should exist")
            pte = self._load(addr)
            if not pte & PTE_V:
                raise VMPanic("uvmcopy: page not present")
            try:
                page = other.mem.kalloc()
            except OutOfMemory:
                other.unmap(0, va // PGSIZE, True)
                raise
            other.mem.write(page, self.mem.read(_pte2pa(pte), PGSIZE))
            try:
                other.mappages(va, PGSIZE, page, _pte_flags(pte))
            except OutOfMemory:
                other.mem.kfree(page)
                other.unmap(0, va // PGSIZE, True)
                raise

    def clear_user(self, va):
        """Make the page at ``va`` inaccessible to user code."""
        addr = self.walk(va)
        if addr is None:
            raise VMPanic("uvmclear")
        self._store(addr, self._load(addr) & ~PTE_U)

    def copyout(self, dstva, data):
        """Copy ``data`` to user address ``dstva``; raises BadAddress if not writable."""
        view = memoryview(bytes(data))
        if dstva < 0:
            raise BadAddress(f"copyout: bad address {dstva:#x}")
        while view:
            va0 = _round_down(dstva)
            if va0 >= MAXVA:
                raise BadAddress(f"copyout: bad address {dstva:#x}")
            addr = self.walk(va0)
            pte = 0 if addr is None else self._load(addr)
            needed = PTE_V | PTE_U | PTE_W
            if pte & needed != needed:
                raise BadAddress(f"copyout: bad address {dstva:#x}")
            offset = dstva - va0
            n = min(PGSIZE - offset, len(view))
            self.mem.write(_pte2pa(pte) + offset, view[:n])
            view = view[n:]
            dstva = va0 + PGSIZE

    def copyin(self, srcva, n):
        """Return ``n`` bytes read from user address ``srcva``."""
        chunks = []
        while n > 0:
            va0 = _round_down(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise BadAddress(f"copyin: bad address {srcva:#x}")
            offset = srcva - va0
            length = min(PGSIZE - offset, n)
            chunks.append(self.mem.read(pa0 + offset, length))
            n -= length
            srcva = va0 + PGSIZE
        return b"".join(chunks)

    def copyinstr(self, srcva, limit):
        """Return the NUL-terminated string at ``srcva`` (without the NUL).

        Raises BadAddress if the string is unmapped or no NUL comes within ``limit`` bytes.
        """
        out = bytearray()
        while limit > 0:
            va0 = _round_down(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise BadAddress(f"copyinstr: bad address {srcva:#x}")
            offset = srcva - va0
            length = min(PGSIZE - offset, limit)
            chunk = self.mem.read(pa0 + offset, length)
            nul = chunk.find(0)
            if nul >= 0:
                out += chunk[:nul]
                return bytes(out)
            out += chunk
            limit -= length
            srcva = va0 + PGSIZE
        raise BadAddress("copyinstr: string not terminated within limit")