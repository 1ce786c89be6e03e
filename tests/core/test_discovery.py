# File: tests/core/test_discovery.py
from pathlib import Path

import pytest

from assembler.core.discovery import DiscoveryConfig, DiscoveryEngine


def _touch(root: Path, rel: str) -> None:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text("x", encoding="utf-8")


def _rel(root: Path, paths) -> list:
    return [p.relative_to(root).as_posix() for p in paths]


def test_sorted_walk_skips_vcs_and_junk(tmp_path: Path) -> None:
    for rel in ["b.txt", "a/z.txt", "a/b.txt", ".git/config", "sub/CVS/Root", ".DS_Store"]:
        _touch(tmp_path, rel)
    found = DiscoveryEngine(DiscoveryConfig(root=tmp_path)).discover()
    assert _rel(tmp_path, found) == ["a/b.txt", "a/z.txt", "b.txt"]


def test_vcs_dirs_kept_without_default_excludes(tmp_path: Path) -> None:
    _touch(tmp_path, ".git/config")
    found = DiscoveryEngine(DiscoveryConfig(root=tmp_path, segment_excludes=())).discover()
    assert _rel(tmp_path, found) == [".git/config"]


def test_include_and_exclude_globs(tmp_path: Path) -> None:
    for rel in ["bin/run.sh", "bin/run.bat", "conf/app.conf", "conf/app.conf.bak"]:
        _touch(tmp_path, rel)
    cfg = DiscoveryConfig(root=tmp_path, include_globs=("bin/*", "conf/*"), exclude_globs=("*.bak", "*.bat"))
    found = DiscoveryEngine(cfg).discover()
    assert _rel(tmp_path, found) == ["bin/run.sh", "conf/app.conf"]


def test_case_insensitive_globs(tmp_path: Path) -> None:
    _touch(tmp_path, "README.TXT")
    cfg = DiscoveryConfig(root=tmp_path, include_globs=("*.txt",), case_insensitive=True)
    assert _rel(tmp_path, DiscoveryEngine(cfg).discover()) == ["README.TXT"]


def test_missing_root(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        DiscoveryEngine(DiscoveryConfig(root=tmp_path / "nope")).discover()
