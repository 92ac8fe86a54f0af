import io
import struct

import pytest

from tinyunix.fileutils import DIRSIZ, FileType
from tinyunix.mkfs import (
    BSIZE,
    FSMAGIC,
    FSSIZE,
    LOGSIZE,
    MAXFILE,
    NDIRECT,
    NINDIRECT,
    ROOTINO,
    Dinode,
    ImageBuilder,
    MkfsError,
    make_image,
    main,
)


@pytest.fixture
def builder():
    return ImageBuilder(out=io.StringIO())


def read_data(b, inum):
    din = b.rinode(inum)
    blocks = list(din.addrs[:NDIRECT])
    if din.addrs[NDIRECT]:
        start = din.addrs[NDIRECT] * BSIZE
        blocks += struct.unpack(f"<{NINDIRECT}I", b.image[start:start + BSIZE])
    nblocks = -(-din.size // BSIZE)
    data = b"".join(bytes(b.image[x * BSIZE:(x + 1) * BSIZE]) for x in blocks[:nblocks])
    return data[:din.size]


def dir_entries(b, inum):
    data = read_data(b, inum)
    entries = []
    for off in range(0, len(data), 2 + DIRSIZ):
        num, name = struct.unpack_from(f"<H{DIRSIZ}s", data, off)
        if num:
            entries.append((num, name.rstrip(b"\0").decode()))
    return entries


def test_superblock_layout(builder):
    sb = builder.sb
    assert sb.magic == FSMAGIC
    assert sb.size == FSSIZE
    assert sb.nblocks + builder.nmeta == FSSIZE
    assert sb.logstart == 2
    assert sb.inodestart == 2 + LOGSIZE
    assert sb.bmapstart == sb.inodestart + builder.ninodeblocks
    on_disk = struct.unpack_from("<8I", builder.image, BSIZE)
    assert on_disk == (sb.magic, sb.size, sb.nblocks, sb.ninodes, sb.nlog,
                       sb.logstart, sb.inodestart, sb.bmapstart)


def test_root_directory(builder):
    root = builder.rinode(ROOTINO)
    assert root.type == FileType.DIR
    assert root.nlink == 1
    assert dir_entries(builder, ROOTINO) == [(ROOTINO, "."), (ROOTINO, "..")]


def test_add_file_strips_prefix_and_underscore(builder):
    inum = builder.add_file("user/_cat", b"hello world")
    assert dir_entries(builder, ROOTINO)[-1] == (inum, "cat")
    assert builder.rinode(inum).type == FileType.FILE
    assert read_data(builder, inum) == b"hello world"


def test_large_file_uses_indirect_block(builder):
    data = bytes(range(256)) * ((NDIRECT + 3) * BSIZE // 256) + b"tail"
    inum = builder.add_file("big", data)
    din = builder.rinode(inum)
    assert din.addrs[NDIRECT] != 0
    assert din.size == len(data)
    assert read_data(builder, inum) == data


def test_appends_accumulate(builder):
    inum = builder.ialloc(FileType.FILE)
    builder.iappend(inum, b"a" * 1000)
    builder.iappend(inum, b"b" * 100)
    assert read_data(builder, inum) == b"a" * 1000 + b"b" * 100


def test_file_too_large(builder):
    with pytest.raises(MkfsError):
        builder.add_file("huge", bytes(MAXFILE * BSIZE + 1))


def test_name_with_slash_rejected(builder):
    with pytest.raises(MkfsError):
        builder.add_file("dir/file", b"")


def test_name_too_long_rejected(builder):
    with pytest.raises(MkfsError):
        builder.add_file("x" * (DIRSIZ + 1), b"")


def test_winode_roundtrip(builder):
    inum = builder.ialloc(FileType.FILE)
    din = Dinode(type=int(FileType.DEVICE), major=1, minor=2, nlink=3, size=7)
    builder.winode(inum, din)
    assert builder.rinode(inum) == din


def test_finish_rounds_root_and_sets_bitmap(builder):
    builder.add_file("a", b"x")
    used = builder.freeblock
    image = builder.finish()
    assert len(image) == FSSIZE * BSIZE
    assert builder.rinode(ROOTINO).size % BSIZE == 0
    start = builder.sb.bmapstart * BSIZE
    bitmap = image[start:start + BSIZE]
    for block in (0, used - 1, used):
        bit = (bitmap[block // 8] >> (block % 8)) & 1
        assert bit == (1 if block < used else 0)
    assert "balloc: first" in builder.out.getvalue()


def test_balloc_too_many(builder):
    with pytest.raises(MkfsError):
        builder.balloc(BSIZE * 8)


def test_main_usage():
    assert main([]) == 1


def test_main_missing_input(tmp_path, capsys):
    status = main([str(tmp_path / "fs.img"), "missingfile"])
    assert status == 1
    assert "missingfile" in capsys.readouterr().err