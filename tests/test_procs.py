import io
import threading
import time

import pytest

from tinyunix.procs import ForkTestError, forktest, stressfs, stressfs_main, zombie_main


def test_forktest_reports_forks_that_never_fail():
    out = io.StringIO()
    with pytest.raises(ForkTestError, match="fork claimed to work N times!"):
        forktest(3, out)
    assert out.getvalue() == "fork test\nfork claimed to work N times!\n"


def test_forktest_leaves_no_children_behind():
    before = threading.active_count()
    with pytest.raises(ForkTestError):
        forktest(2, io.StringIO())
    assert threading.active_count() == before


def test_stressfs_writes_every_file(tmp_path):
    out = io.StringIO()
    path = stressfs(str(tmp_path), out)
    assert path == tmp_path / "stressfs0"
    for index in range(5):
        assert (tmp_path / f"stressfs{index}").read_bytes() == b"a" * 512 * 20
    lines = out.getvalue().splitlines()
    assert lines[0] == "stressfs starting"
    expected = ["stressfs starting"] + [f"write {i}" for i in range(5)] + ["read"] * 5
    assert sorted(lines) == sorted(expected)


def test_stressfs_reaps_its_chain(tmp_path):
    before = threading.active_count()
    path = stressfs(str(tmp_path), io.StringIO())
    assert path.name == "stressfs0"
    assert threading.active_count() == before


def test_stressfs_main_uses_current_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert stressfs_main([]) == 0
    assert sorted(p.name for p in tmp_path.iterdir()) == [f"stressfs{i}" for i in range(5)]


def test_zombie_main_sleeps_and_child_ends():
    before = threading.active_count()
    start = time.monotonic()
    assert zombie_main([]) == 0
    assert time.monotonic() - start >= 0.5
    assert threading.active_count() == before