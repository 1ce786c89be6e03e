from __future__ import annotations

import sys
from typing import Optional, TextIO


def _one_line(s: str, max_len: int = 160) -> str:
    s = " ".join((s or "").split())
    return s[:max_len] + ("…" if len(s) > max_len else "")


class ConsoleLog:
    """Tagged single-line console logger. Warnings and errors go to stderr."""

    def __init__(self, tag: str, *, quiet: bool = False, stream: Optional[TextIO] = None):
        self.tag = tag
        self.quiet = quiet
        self.stream = stream

    def _emit(self, marker: str, msg: str, err: bool = False, max_len: int = 160) -> None:
        out = self.stream or (sys.stderr if err else sys.stdout)
        print(f"[{self.tag} {marker}] {_one_line(msg, max_len)}", file=out)

    def info(self, msg: str):
        if not self.quiet:
            self._emit("✅", msg)

    def warn(self, msg: str):
        self._emit("⚠️", msg, err=True)

    def error(self, msg: str):
        self._emit("❌", msg, err=True, max_len=600)

    def stage(self, emoji: str, msg: str):
        if not self.quiet:
            self._emit(emoji, msg)
