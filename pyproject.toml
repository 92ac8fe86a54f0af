[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tinyunix"
version = "0.1.0"
description = "Small Unix userland tools, a shell command parser, a page-table model, a free-list allocator, a file-system image builder and virtio structures"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "unix",
    "shell",
    "grep",
    "wc",
    "page-table",
    "allocator",
    "filesystem",
    "mkfs",
    "virtio",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
    "Topic :: Education",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tu-cat = "tinyunix.cat:main"
tu-echo = "tinyunix.echo:main"
tu-null-deref = "tinyunix.echo:null_deref_main"
tu-grep = "tinyunix.grep:main"
tu-wc = "tinyunix.wc:main"
tu-ls = "tinyunix.fileutils:ls_main"
tu-mkdir = "tinyunix.fileutils:mkdir_main"
tu-rm = "tinyunix.fileutils:rm_main"
tu-ln = "tinyunix.fileutils:ln_main"
tu-kill = "tinyunix.fileutils:kill_main"
tu-forktest = "tinyunix.procs:forktest_main"
tu-stressfs = "tinyunix.procs:stressfs_main"
tu-zombie = "tinyunix.procs:zombie_main"
tu-mkfs = "tinyunix.mkfs:main"

[tool.hatch.build.targets.wheel]
packages = ["tinyunix"]

[tool.hatch.build.targets.sdist]
include = ["tinyunix", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
