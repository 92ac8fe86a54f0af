"""Physical and virtual memory layout of the machine and of user processes.

Physical addresses used by the kernel::

    00001000 -- boot ROM
    02000000 -- CLINT
    0C000000 -- PLIC
    10000000 -- uart0
    10001000 -- virtio disk
    80000000 -- kernel text and data, then the page allocation area
    PHYSTOP  -- end of RAM used by the kernel

User address space, from address zero: text, data and bss, a fixed-size
stack, the expandable heap, then TRAPFRAME and TRAMPOLINE at the top.
"""

PGSIZE = 4096

# Sv39 addresses have 39 bits; one bit fewer is used so that addresses
# never need sign extension.
MAXVA = 1 << (9 + 9 + 9 + 12 - 1)

UART0 = 0x10000000
UART0_IRQ = 10

VIRTIO0 = 0x10001000
VIRTIO0_IRQ = 1

PLIC = 0x0C000000
PLIC_PRIORITY = PLIC + 0x0
PLIC_PENDING = PLIC + 0x1000

KERNBASE = 0x80000000
PHYSTOP = KERNBASE + 128 * 1024 * 1024

# The trampoline page sits at the highest address in both user and kernel space.
TRAMPOLINE = MAXVA - PGSIZE

# Each process's trap frame sits just below the trampoline.
TRAPFRAME = TRAMPOLINE - PGSIZE


def plic_senable(hart):
    """Address of the supervisor interrupt-enable bits for ``hart``."""
    return PLIC + 0x2080 + hart * 0x100


def plic_spriority(hart):
    """Address of the supervisor priority threshold for ``hart``."""
    return PLIC + 0x201000 + hart * 0x2000


def plic_sclaim(hart):
    """Address of the supervisor claim/complete register for ``hart``."""
    return PLIC + 0x201004 + hart * 0x2000


def kstack(p):
    """Virtual address of the kernel stack of process slot ``p``.

    Stacks lie beneath the trampoline, each followed by an unmapped guard page.
    """
    return TRAMPOLINE - (p + 1) * 2 * PGSIZE