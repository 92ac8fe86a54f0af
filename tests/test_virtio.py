import pytest

from tinyunix.virtio import (
    NUM,
    VIRTIO_BLK_T_OUT,
    VRING_DESC_F_NEXT,
    VRING_DESC_F_WRITE,
    ConfigStatus,
    VirtioBlkReq,
    VirtqAvail,
    VirtqDesc,
    VirtqUsed,
    VirtqUsedElem,
)


def test_desc_wire_bytes():
    desc = VirtqDesc(addr=0x1122334455667788, len=512, flags=VRING_DESC_F_NEXT, next=3)
    assert desc.pack() == bytes.fromhex("8877665544332211" "00020000" "0100" "0300")


def test_desc_roundtrip():
    desc = VirtqDesc(addr=0x80001000, len=1024, flags=VRING_DESC_F_NEXT | VRING_DESC_F_WRITE, next=7)
    assert VirtqDesc.unpack(desc.pack()) == desc


def test_avail_roundtrip_and_size():
    avail = VirtqAvail(flags=0, idx=5, ring=list(range(NUM)), unused=9)
    packed = avail.pack()
    assert len(packed) == 4 + 2 * NUM + 2
    assert VirtqAvail.unpack(packed) == avail


def test_avail_wrong_ring_length():
    with pytest.raises(ValueError):
        VirtqAvail(ring=[0] * (NUM - 1)).pack()


def test_used_elem_roundtrip():
    elem = VirtqUsedElem(id=4, len=0x200)
    assert VirtqUsedElem.unpack(elem.pack()) == elem


def test_used_roundtrip_and_size():
    used = VirtqUsed(flags=0, idx=2, ring=[VirtqUsedElem(i, i * 10) for i in range(NUM)])
    packed = used.pack()
    assert len(packed) == 4 + 8 * NUM
    assert VirtqUsed.unpack(packed) == used


def test_used_short_data():
    with pytest.raises(ValueError):
        VirtqUsed.unpack(b"\0" * 10)


def test_blk_req_roundtrip():
    req = VirtioBlkReq(type=VIRTIO_BLK_T_OUT, reserved=0, sector=123456)
    packed = req.pack()
    assert len(packed) == 16
    assert VirtioBlkReq.unpack(packed) == req


def test_blk_req_wire_bytes():
    req = VirtioBlkReq(type=VIRTIO_BLK_T_OUT, sector=2)
    assert req.pack() == bytes([1, 0, 0, 0, 0, 0, 0, 0, 2, 0, 0, 0, 0, 0, 0, 0])


def test_desc_wrong_length():
    with pytest.raises(ValueError):
        VirtqDesc.unpack(b"\0" * 15)


def test_status_from_register_value():
    status = ConfigStatus(3)
    assert status == ConfigStatus.ACKNOWLEDGE | ConfigStatus.DRIVER
    assert ConfigStatus.DRIVER in status
    assert ConfigStatus.DRIVER_OK not in status