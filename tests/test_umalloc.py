import random

import pytest

from tinyunix.umalloc import Allocator


def test_first_malloc_grows_heap_by_minimum_chunk():
    heap = Allocator(start=0x1000)
    address = heap.malloc(1)
    assert heap.brk - heap.start == 65536
    assert heap.start < address < heap.brk


def test_free_then_malloc_reuses_block():
    heap = Allocator(start=0x1000)
    a = heap.malloc(10)
    heap.free(a)
    assert heap.malloc(10) == a


def test_blocks_do_not_overlap():
    heap = Allocator(start=0x1000)
    sizes = [1, 10, 100, 1000, 5000, 17, 64]
    spans = sorted((heap.malloc(n), n) for n in sizes)
    for (a, n), (b, _) in zip(spans, spans[1:]):
        assert a + n <= b
    assert all(heap.start < a and a + n <= heap.brk for a, n in spans)


def test_freed_blocks_coalesce():
    heap = Allocator(start=0x1000)
    blocks = [heap.malloc(1000) for _ in range(10)]
    brk = heap.brk
    random.Random(7).shuffle(blocks)
    for block in blocks:
        heap.free(block)
    big = heap.malloc(65536 - 16)
    assert heap.brk == brk
    assert heap.start < big < heap.brk


def test_large_request_grows_beyond_minimum():
    heap = Allocator(start=0x1000)
    address = heap.malloc(100000)
    assert address + 100000 <= heap.brk


def test_out_of_memory():
    heap = Allocator(start=0x1000, limit=0x1000 + 1000)
    with pytest.raises(MemoryError):
        heap.malloc(1)
    assert heap.brk == heap.start


def test_exhaustion_after_some_allocations():
    heap = Allocator(start=0x1000, limit=0x1000 + 65536)
    heap.malloc(100)
    with pytest.raises(MemoryError):
        heap.malloc(65536)


def test_double_free_rejected():
    heap = Allocator(start=0x1000)
    a = heap.malloc(32)
    heap.free(a)
    with pytest.raises(ValueError):
        heap.free(a)


def test_free_of_unknown_address_rejected():
    heap = Allocator(start=0x1000)
    heap.malloc(32)
    with pytest.raises(ValueError):
        heap.free(0x1234)


def test_bad_start_rejected():
    with pytest.raises(ValueError):
        Allocator(start=0)