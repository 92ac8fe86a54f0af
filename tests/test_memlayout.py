import pytest

from tinyunix.memlayout import (
    KERNBASE,
    MAXVA,
    PGSIZE,
    PLIC,
    TRAMPOLINE,
    TRAPFRAME,
    kstack,
    plic_sclaim,
    plic_senable,
    plic_spriority,
)


def test_first_kernel_stack_address():
    assert kstack(0) == 0x3FFFFFD000


def test_first_kernel_stack_leaves_guard_below_trampoline():
    assert kstack(0) + 2 * PGSIZE == TRAMPOLINE
    assert TRAMPOLINE + PGSIZE == MAXVA


def test_first_kernel_stack_sits_below_trapframe_page():
    assert kstack(0) + PGSIZE == TRAPFRAME


@pytest.mark.parametrize("p", [0, 1, 5, 63])
def test_kernel_stacks_have_guard_pages(p):
    assert kstack(p) - kstack(p + 1) == 2 * PGSIZE
    assert kstack(p) % PGSIZE == 0
    assert kstack(p) + PGSIZE < TRAMPOLINE


def test_plic_hart_zero_addresses():
    assert plic_senable(0) == 0x0C002080
    assert plic_spriority(0) == 0x0C201000
    assert plic_sclaim(0) == 0x0C201004


@pytest.mark.parametrize("hart", [0, 1, 2, 7])
def test_plic_claim_follows_priority(hart):
    assert plic_sclaim(hart) - plic_spriority(hart) == 4
    assert plic_spriority(hart + 1) - plic_spriority(hart) == 0x2000
    assert plic_sclaim(hart) < KERNBASE


@pytest.mark.parametrize("hart", [0, 3])
def test_plic_enable_per_hart(hart):
    assert plic_senable(hart + 1) - plic_senable(hart) == 0x100
    assert PLIC < plic_senable(hart) < plic_spriority(0)