"""Unix userland tools, a shell command parser, and models of page tables, a heap allocator, a file-system image builder and virtio structures."""

__version__ = "0.1.0"