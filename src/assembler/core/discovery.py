from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

# Files we always ignore
_JUNK = {"Thumbs.db", ".DS_Store"}

# Version-control metadata never belongs in an assembly
DEFAULT_SEGMENT_EXCLUDES: Tuple[str, ...] = (".git", ".svn", ".hg", ".bzr", "CVS")


def _cf(s: str, ci: bool) -> str:
    """Case-fold helper when case_insensitive is enabled."""
    return s.casefold() if ci else s


def _match_glob(rel_posix: str, pattern: str, ci: bool) -> bool:
    pat = pattern.replace("\\", "/")
    return fnmatch.fnmatchcase(_cf(rel_posix, ci), _cf(pat, ci))


@dataclass(frozen=True)
class DiscoveryConfig:
    root: Path
    include_globs: Tuple[str, ...] = ()
    exclude_globs: Tuple[str, ...] = ()
    segment_excludes: Tuple[str, ...] = DEFAULT_SEGMENT_EXCLUDES
    case_insensitive: bool = False
    follow_symlinks: bool = False


class DiscoveryEngine:
    """Deterministic file-set walk with segment excludes and include/exclude globs."""

    def __init__(self, cfg: DiscoveryConfig) -> None:
        self.cfg = cfg

    def _seg_excluded(self, rel_parts: Tuple[str, ...]) -> bool:
        excluded = set(_cf(x, self.cfg.case_insensitive) for x in self.cfg.segment_excludes)
        return any(_cf(seg, self.cfg.case_insensitive) in excluded for seg in rel_parts)

    def _selected(self, rel_posix: str) -> bool:
        ci = self.cfg.case_insensitive
        if self.cfg.include_globs and not any(_match_glob(rel_posix, g, ci) for g in self.cfg.include_globs):
            return False
        if self.cfg.exclude_globs and any(_match_glob(rel_posix, g, ci) for g in self.cfg.exclude_globs):
            return False
        return True

    def discover(self) -> List[Path]:
        root = self.cfg.root
        if not root.is_dir():
            raise FileNotFoundError(f"file set directory not found: {root}")

        out: List[Path] = []
        for cur, dirs, files in os.walk(root, followlinks=self.cfg.follow_symlinks):
            dirs.sort()
            dirs[:] = [
                d for d in dirs
                if not self._seg_excluded((Path(cur) / d).relative_to(root).parts)
            ]
            for fn in sorted(files):
                if fn in _JUNK:
                    continue
                p = Path(cur) / fn
                if self._selected(p.relative_to(root).as_posix()):
                    out.append(p)

        out.sort(key=lambda x: x.relative_to(root).as_posix())
        return out
