"""Build a file-system image holding a root directory and a set of files.

Disk layout, one block per sector::

    [ boot block | superblock | log | inode blocks | free bit map | data blocks ]
"""

import struct
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .fileutils import DIRSIZ, FileType
from .printf import fprintf

BSIZE = 1024
FSSIZE = 2000
MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3
NDIRECT = 12
NINDIRECT = BSIZE // 4
MAXFILE = NDIRECT + NINDIRECT
ROOTINO = 1
FSMAGIC = 0x10203040
NINODES = 200

_SUPERBLOCK = struct.Struct("<8I")
_DINODE = struct.Struct(f"<4hI{NDIRECT + 1}I")
_DIRENT = struct.Struct(f"<H{DIRSIZ}s")
_INDIRECT = struct.Struct(f"<{NINDIRECT}I")

IPB = BSIZE // _DINODE.size
BPB = BSIZE * 8


class MkfsError(Exception):
    """Raised when the image cannot be built."""


@dataclass
class Superblock:
    """Describes the layout of the file system."""

    magic: int
    size: int
    nblocks: int
    ninodes: int
    nlog: int
    logstart: int
    inodestart: int
    bmapstart: int

    def _pack(self):
        return _SUPERBLOCK.pack(
            self.magic, self.size, self.nblocks, self.ninodes,
            self.nlog, self.logstart, self.inodestart, self.bmapstart,
        )


@dataclass
class Dinode:
    """An on-disk inode."""

    type: int = 0
    major: int = 0
    minor: int = 0
    nlink: int = 0
    size: int = 0
    addrs: list = field(default_factory=lambda: [0] * (NDIRECT + 1))

    def _pack(self):
        return _DINODE.pack(self.type, self.major, self.minor, self.nlink, self.size, *self.addrs)

    @classmethod
    def _unpack(cls, data):
        type_, major, minor, nlink, size, *addrs = _DINODE.unpack(data)
        return cls(type_, major, minor, nlink, size, list(addrs))


def _shortname(name):
    """Name a file gets in the root directory; raises MkfsError if unusable."""
    shortname = name[len("user/"):] if name.startswith("user/") else name
    if "/" in shortname:
        raise MkfsError(f"{name}: file name must not contain '/'")
    if shortname.startswith("_"):
        shortname = shortname[1:]
    encoded = shortname.encode("utf-8")
    if len(encoded) > DIRSIZ:
        raise MkfsError(f"{name}: file name longer than {DIRSIZ} bytes")
    return encoded


class ImageBuilder:
    """An image under construction, held in memory."""

    def __init__(self, fssize=FSSIZE, ninodes=NINODES, nlog=LOGSIZE, out=None):
        self.out = sys.stdout if out is None else out
        self.fssize = fssize
        self.nbitmap = fssize // BPB + 1
        self.ninodeblocks = ninodes // IPB + 1
        self.nlog = nlog
        self.nmeta = 2 + nlog + self.ninodeblocks + self.nbitmap
        self.nblocks = fssize - self.nmeta
        if self.nblocks <= 0:
            raise MkfsError("image too small for its metadata")
        self.sb = Superblock(
            magic=FSMAGIC,
            size=fssize,
            nblocks=self.nblocks,
            ninodes=ninodes,
            nlog=nlog,
            logstart=2,
            inodestart=2 + nlog,
            bmapstart=2 + nlog + self.ninodeblocks,
        )
        fprintf(
            self.out,
            "nmeta %d (boot, super, log blocks %u inode blocks %u, bitmap blocks %u) blocks %d total %d\n",
            self.nmeta, nlog, self.ninodeblocks, self.nbitmap, self.nblocks, fssize,
        )
        self.freeblock = self.nmeta
        self.freeinode = 1
        self.image = bytearray(fssize * BSIZE)
        self._wsect(1, self.sb._pack())

        self.rootino = self.ialloc(FileType.DIR)
        if self.rootino != ROOTINO:
            raise MkfsError("root inode is not inode 1")
        self.iappend(self.rootino, _DIRENT.pack(self.rootino, b"."))
        self.iappend(self.rootino, _DIRENT.pack(self.rootino, b".."))

    def _rsect(self, sec):
        if not 0 <= sec < self.fssize:
            raise MkfsError(f"read: sector {sec} outside image")
        return self.image[sec * BSIZE:(sec + 1) * BSIZE]

    def _wsect(self, sec, data):
        if not 0 <= sec < self.fssize:
            raise MkfsError(f"write: sector {sec} outside image")
        block = bytes(data).ljust(BSIZE, b"\0")
        self.image[sec * BSIZE:(sec + 1) * BSIZE] = block

    def _inode_location(self, inum):
        return self.sb.inodestart + inum // IPB, (inum % IPB) * _DINODE.size

    def _next_block(self):
        block = self.freeblock
        self.freeblock += 1
        return block

    def ialloc(self, type):
        """Allocate the next inode with the given file type and return its number."""
        inum = self.freeinode
        self.freeinode += 1
        self.winode(inum, Dinode(type=int(type), nlink=1, size=0))
        return inum

    def rinode(self, inum):
        """Read inode ``inum`` from the image."""
        bn, offset = self._inode_location(inum)
        return Dinode._unpack(self._rsect(bn)[offset:offset + _DINODE.size])

    def winode(self, inum, dinode):
        """Write ``dinode`` into slot ``inum`` of the image."""
        bn, offset = self._inode_location(inum)
        block = self._rsect(bn)
        block[offset:offset + _DINODE.size] = dinode._pack()
        self._wsect(bn, block)

    def iappend(self, inum, data):
        """Append ``data`` to inode ``inum``, allocating blocks as needed."""
        din = self.rinode(inum)
        off = din.size
        view = memoryview(bytes(data))
        while view:
            fbn = off // BSIZE
            if fbn >= MAXFILE:
                raise MkfsError(f"inode {inum}: file larger than {MAXFILE} blocks")
            if fbn < NDIRECT:
                if din.addrs[fbn] == 0:
                    din.addrs[fbn] = self._next_block()
                x = din.addrs[fbn]
            else:
                if din.addrs[NDIRECT] == 0:
                    din.addrs[NDIRECT] = self._next_block()
                indirect_block = din.addrs[NDIRECT]
                indirect = list(_INDIRECT.unpack(self._rsect(indirect_block)))
                slot = fbn - NDIRECT
                if indirect[slot] == 0:
                    indirect[slot] = self._next_block()
                    self._wsect(indirect_block, _INDIRECT.pack(*indirect))
                x = indirect[slot]
            n1 = min(len(view), (fbn + 1) * BSIZE - off)
            start = off - fbn * BSIZE
            block = self._rsect(x)
            block[start:start + n1] = view[:n1]
            self._wsect(x, block)
            view = view[n1:]
            off += n1
        din.size = off
        self.winode(inum, din)

    def add_file(self, name, data):
        """Add a regular file to the root directory and return its inode number.

        A leading "user/" and then a leading "_" are dropped from ``name``.
        """
        shortname = _shortname(name)
        inum = self.ialloc(FileType.FILE)
        self.iappend(self.rootino, _DIRENT.pack(inum, shortname))
        self.iappend(inum, data)
        return inum

    def balloc(self, used):
        """Mark the first ``used`` blocks as allocated in the free bitmap."""
        fprintf(self.out, "balloc: first %d blocks have been allocated\n", used)
        if used >= BPB:
            raise MkfsError("balloc: too many blocks for one bitmap block")
        bitmap = bytearray(BSIZE)
        full, rest = divmod(used, 8)
        bitmap[:full] = b"\xff" * full
        if rest:
            bitmap[full] = (1 << rest) - 1
        fprintf(self.out, "balloc: write bitmap block at sector %d\n", self.sb.bmapstart)
        self._wsect(self.sb.bmapstart, bitmap)

    def finish(self):
        """Round the root directory size up, write the bitmap and return the image."""
        din = self.rinode(self.rootino)
        din.size = (din.size // BSIZE + 1) * BSIZE
        self.winode(self.rootino, din)
        self.balloc(self.freeblock)
        return bytes(self.image)


def make_image(path, files, out=None):
    """Write an image containing ``files`` to ``path`` and return its bytes."""
    with open(path, "wb") as image_file:
        builder = ImageBuilder(out=out)
        for name in files:
            _shortname(name)
            builder.add_file(name, Path(name).read_bytes())
        image = builder.finish()
        image_file.write(image)
    return image


def main(argv=None):
    """Build an image from the command line; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("Usage: mkfs fs.img files...\n")
        return 1
    image, *files = args
    try:
        make_image(image, files)
    except OSError as exc:
        sys.stderr.write(f"{exc.filename or image}: {exc.strerror or exc}\n")
        return 1
    except MkfsError as exc:
        sys.stderr.write(f"mkfs: {exc}\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())