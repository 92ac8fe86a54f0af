# tinyunix

Classic Unix pieces in plain Python, with no third-party dependencies:

- **Userland tools** (`tinyunix.cat`, `tinyunix.echo`, `tinyunix.grep`,
  `tinyunix.wc`, `tinyunix.fileutils`): `cat`, `echo`, `grep` with the
  `^ . * $` pattern subset, `wc`, `ls`, `mkdir`, `rm`, `ln` and `kill`.
- **A small formatter** (`tinyunix.printf`): `sprintf`, `fprintf` and
  `printf` understand `%d`, `%u`, `%x` (with `l`/`ll` prefixes), `%p`, `%s`
  and `%%`; integers are narrowed to 32 bits, and unknown sequences are
  echoed back.
- **String helpers** (`tinyunix.ulib`): `atoi`, `strcmp`, `memcmp` and
  `gets`.
- **A shell command parser** (`tinyunix.shparse`): `parse_command` builds a
  tree of `ExecCmd`, `RedirCmd`, `PipeCmd`, `ListCmd` and `BackCmd` nodes and
  raises `ShellSyntaxError` on bad input; `getcmd` prints a `$ ` prompt and
  reads one line.
- **Process exercises** (`tinyunix.procs`): `forktest`, `stressfs` and a
  zombie demonstration, run with threads of the current process standing in
  for child processes.
- **Memory layout** (`tinyunix.memlayout`): the device and kernel addresses,
  and `plic_senable`, `plic_spriority`, `plic_sclaim` and `kstack`.
- **A three-level Sv39 page-table model** (`tinyunix.vm`): `PhysicalMemory`
  and `PageTable` with mapping, unmapping, growing, shrinking, copying and
  user/kernel copy routines; errors are raised as `VMPanic`, `OutOfMemory`
  and `BadAddress`.
- **A first-fit free-list allocator** (`tinyunix.umalloc.Allocator`) that
  hands out addresses and coalesces freed blocks.
- **A file-system image builder** (`tinyunix.mkfs`): `ImageBuilder` and
  `make_image` lay out boot block, superblock, log, inodes, bitmap and data
  blocks.
- **virtio structures** (`tinyunix.virtio`): register offsets, status and
  feature bits, and descriptor, ring and block-request records that `pack` to
  and `unpack` from bytes.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Commands

Each tool is installed as a console script:

```
tu-echo hello world
tu-cat notes.txt other.txt
tu-grep '^ab*c$' notes.txt
tu-wc notes.txt
tu-ls .
tu-mkdir newdir
tu-rm oldfile
tu-ln oldname newname
tu-kill 1234
tu-forktest
tu-stressfs
tu-zombie
tu-null-deref
tu-mkfs fs.img user/_cat user/_echo
```

- `tu-cat`, `tu-grep` and `tu-wc` read standard input when no file is given.
  `tu-grep` prints only newline-terminated lines.
- `tu-ls` prints, for each entry, the name padded to 14 characters, the type
  (1 directory, 2 file, 3 device), the inode number and the size; a
  directory's listing starts with `.` and `..`, followed by the other names
  in sorted order.
- `tu-rm` removes files and empty directories; `tu-mkdir` and `tu-rm` stop
  at the first failure.
- `tu-kill` sends SIGTERM to each process id and ignores failures.
- `tu-stressfs` writes and reads back `stressfs0` to `stressfs4` in the
  current directory.
- `tu-mkfs` writes a fresh image to its first argument and adds the remaining
  files to the root directory, dropping a leading `user/` and then a leading
  `_` from each name. It prints the layout and bitmap details on standard
  output.

## Library use

```python
from tinyunix.grep import match
from tinyunix.printf import sprintf
from tinyunix.shparse import parse_command
from tinyunix.umalloc import Allocator

match("^a.c$", "abc")            # True
sprintf("%d items at %p", 3, 16) # '3 items at 0x0000000000000010'

tree = parse_command("ls | wc > out; echo done &")

heap = Allocator()
block = heap.malloc(100)
heap.free(block)
```

Page tables:

```python
from tinyunix.vm import PTE_W, PageTable, PhysicalMemory

memory = PhysicalMemory()
table = PageTable(memory)
size = table.grow(0, 8192, PTE_W)
table.copyout(0, b"hello")
table.copyin(0, 5)               # b'hello'
```

Building an image in memory:

```python
import io

from tinyunix.mkfs import ImageBuilder

builder = ImageBuilder(out=io.StringIO())
builder.add_file("README", b"hello\n")
image = builder.finish()         # bytes of the whole image
```

`make_image("fs.img", ["README", "user/_cat"])` reads the named files from
disk and writes the image to `fs.img`.

## What this package does not do

- The shell part only parses command lines and reads them; there is no
  interactive shell that runs the parsed commands.
- There is no kernel, scheduler or file system that reads the images
  `tinyunix.mkfs` builds; the page tables, allocator and virtio records are
  models over simulated memory and byte strings, not drivers for a device.