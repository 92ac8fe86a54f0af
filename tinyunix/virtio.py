"""Virtio MMIO registers and the split-virtqueue and block-request structures."""

import enum
import struct
from dataclasses import dataclass, field

# Contents of the magic and vendor registers.
VIRTIO_MMIO_MAGIC = 0x74726976
VIRTIO_MMIO_VENDOR = 0x554D4551

# Number of descriptors; must be a power of two.
NUM = 8

VRING_DESC_F_NEXT = 1  # chained with another descriptor
VRING_DESC_F_WRITE = 2  # device writes (vs read)

VIRTIO_BLK_T_IN = 0  # read the disk
VIRTIO_BLK_T_OUT = 1  # write the disk


class MmioRegister(enum.IntEnum):
    """Offsets of the virtio MMIO control registers."""

    MAGIC_VALUE = 0x000
    VERSION = 0x004
    DEVICE_ID = 0x008
    VENDOR_ID = 0x00C
    DEVICE_FEATURES = 0x010
    DRIVER_FEATURES = 0x020
    QUEUE_SEL = 0x030
    QUEUE_NUM_MAX = 0x034
    QUEUE_NUM = 0x038
    QUEUE_READY = 0x044
    QUEUE_NOTIFY = 0x050
    INTERRUPT_STATUS = 0x060
    INTERRUPT_ACK = 0x064
    STATUS = 0x070
    QUEUE_DESC_LOW = 0x080
    QUEUE_DESC_HIGH = 0x084
    DRIVER_DESC_LOW = 0x090
    DRIVER_DESC_HIGH = 0x094
    DEVICE_DESC_LOW = 0x0A0
    DEVICE_DESC_HIGH = 0x0A4


class ConfigStatus(enum.IntFlag):
    """Bits of the device status register."""

    ACKNOWLEDGE = 1
    DRIVER = 2
    DRIVER_OK = 4
    FEATURES_OK = 8


class BlkFeature(enum.IntEnum):
    """Bit numbers of device feature flags."""

    RO = 5
    SCSI = 7
    CONFIG_WCE = 11
    MQ = 12
    ANY_LAYOUT = 27
    RING_INDIRECT_DESC = 28
    RING_EVENT_IDX = 29


_DESC = struct.Struct("<QIHH")
_AVAIL = struct.Struct(f"<HH{NUM}HH")
_USED_ELEM = struct.Struct("<II")
_USED_HEAD = struct.Struct("<HH")
_USED_SIZE = _USED_HEAD.size + NUM * _USED_ELEM.size
_BLK_REQ = struct.Struct("<IIQ")


def _exact(data, size, what):
    data = bytes(data)
    if len(data) != size:
        raise ValueError(f"{what}: expected {size} bytes, got {len(data)}")
    return data


def _ring(ring, what):
    if len(ring) != NUM:
        raise ValueError(f"{what}: ring must have {NUM} entries")
    return ring


@dataclass
class VirtqDesc:
    """A single descriptor."""

    addr: int = 0
    len: int = 0
    flags: int = 0
    next: int = 0

    def pack(self):
        """Return the 16-byte wire form."""
        return _DESC.pack(self.addr, self.len, self.flags, self.next)

    @classmethod
    def unpack(cls, data):
        """Build a descriptor from its wire form."""
        return cls(*_DESC.unpack(_exact(data, _DESC.size, "virtq_desc")))


@dataclass
class VirtqAvail:
    """The whole available ring."""

    flags: int = 0
    idx: int = 0
    ring: list = field(default_factory=lambda: [0] * NUM)
    unused: int = 0

    def pack(self):
        """Return the wire form."""
        return _AVAIL.pack(self.flags, self.idx, *_ring(self.ring, "virtq_avail"), self.unused)

    @classmethod
    def unpack(cls, data):
        """Build the ring from its wire form."""
        flags, idx, *rest = _AVAIL.unpack(_exact(data, _AVAIL.size, "virtq_avail"))
        return cls(flags, idx, list(rest[:NUM]), rest[NUM])


@dataclass
class VirtqUsedElem:
    """One completed request in the used ring."""

    id: int = 0
    len: int = 0

    def pack(self):
        """Return the 8-byte wire form."""
        return _USED_ELEM.pack(self.id, self.len)

    @classmethod
    def unpack(cls, data):
        """Build an element from its wire form."""
        return cls(*_USED_ELEM.unpack(_exact(data, _USED_ELEM.size, "virtq_used_elem")))


@dataclass
class VirtqUsed:
    """The used ring, filled in by the device."""

    flags: int = 0
    idx: int = 0
    ring: list = field(default_factory=lambda: [VirtqUsedElem() for _ in range(NUM)])

    def pack(self):
        """Return the wire form."""
        elems = _ring(self.ring, "virtq_used")
        return _USED_HEAD.pack(self.flags, self.idx) + b"".join(e.pack() for e in elems)

    @classmethod
    def unpack(cls, data):
        """Build the ring from its wire form."""
        data = _exact(data, _USED_SIZE, "virtq_used")
        flags, idx = _USED_HEAD.unpack_from(data)
        ring = [VirtqUsedElem(*values) for values in _USED_ELEM.iter_unpack(data[_USED_HEAD.size:])]
        return cls(flags, idx, ring)


@dataclass
class VirtioBlkReq:
    """Header of a block request, followed by the data and a status byte."""

    type: int = VIRTIO_BLK_T_IN
    reserved: int = 0
    sector: int = 0

    def pack(self):
        """Return the 16-byte wire form."""
        return _BLK_REQ.pack(self.type, self.reserved, self.sector)

    @classmethod
    def unpack(cls, data):
        """Build a request header from its wire form."""
        return cls(*_BLK_REQ.unpack(_exact(data, _BLK_REQ.size, "virtio_blk_req")))