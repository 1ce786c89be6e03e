from __future__ import annotations

"""
Line-ending policies and converters.

A policy name (from an assembly descriptor) resolves to a `LineEndings`
member; `line_ending_converter` wraps a binary stream so its terminators are
rewritten on the fly, and `convert_line_endings` does the same for a whole
file on disk.

Conversion happens on raw bytes: CRLF, lone CR and LF are all treated as one
line break and rewritten to the target terminator.
"""

import io
import re
from enum import Enum
from pathlib import Path
from typing import BinaryIO, List, Optional

from assembler.core.errors import AssemblyFormattingError

CR = b"\r"
LF = b"\n"
CRLF = b"\r\n"

_LINE_RX = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+\Z")


class LineEndings(str, Enum):
    keep = "keep"
    dos = "dos"
    unix = "unix"
    lf = "lf"
    windows = "windows"
    crlf = "crlf"

    @property
    def characters(self) -> Optional[str]:
        return _CHARACTERS[self]

    def is_newline(self) -> bool:
        return self.characters == "\n"

    def is_crlf(self) -> bool:
        return self.characters == "\r\n"


_CHARACTERS = {
    LineEndings.keep: None,
    LineEndings.dos: "\r\n",
    LineEndings.unix: "\n",
    LineEndings.lf: "\n",
    LineEndings.windows: "\r\n",
    LineEndings.crlf: "\r\n",
}


def get_line_ending(name: Optional[str]) -> LineEndings:
    """Resolve a policy name; an unset name means `keep`."""
    if name is None or not str(name).strip():
        return LineEndings.keep
    key = str(name).strip().lower()
    try:
        return LineEndings(key)
    except ValueError:
        valid = ", ".join(m.value for m in LineEndings)
        raise AssemblyFormattingError(
            f"Invalid lineEnding: '{name}'. Valid values are: {valid}"
        ) from None


def get_line_ending_characters(name: Optional[str]) -> Optional[str]:
    return get_line_ending(name).characters


# ──────────────────────────────────────────────────────────────────────────────
# Streaming converter
# ──────────────────────────────────────────────────────────────────────────────
class LineEndingStream(io.RawIOBase):
    """
    Read-only raw stream rewriting line terminators of `source` to `eol`.

    A CR at the end of one chunk is held back until the next read so that a
    CRLF pair split across chunks still counts as a single break.
    """

    def __init__(
        self,
        source: BinaryIO,
        eol: bytes,
        *,
        ensure_final_newline: bool = False,
        chunk_size: int = 8192,
    ) -> None:
        super().__init__()
        self._source = source
        self._eol = eol
        self._ensure_final_newline = ensure_final_newline
        self._chunk_size = max(1, int(chunk_size))
        self._out = bytearray()
        self._held_cr = False
        self._eof = False
        self._seen_data = False
        self._ends_with_eol = False

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        while not self._out and not self._eof:
            self._fill()
        n = min(len(b), len(self._out))
        b[:n] = self._out[:n]
        del self._out[:n]
        return n

    def close(self) -> None:
        if not self.closed:
            try:
                self._source.close()
            finally:
                super().close()

    def _fill(self) -> None:
        chunk = self._source.read(self._chunk_size)
        if not chunk:
            self._eof = True
            if self._held_cr:
                self._held_cr = False
                self._out += self._eol
                self._ends_with_eol = True
            if self._ensure_final_newline and self._seen_data and not self._ends_with_eol:
                self._out += self._eol
            return

        self._seen_data = True
        if self._held_cr:
            chunk = CR + chunk
            self._held_cr = False
        if chunk.endswith(CR):
            chunk = chunk[:-1]
            self._held_cr = True
        if not chunk:
            return

        converted = chunk.replace(CRLF, LF).replace(CR, LF)
        if self._eol != LF:
            converted = converted.replace(LF, self._eol)
        self._out += converted
        self._ends_with_eol = converted.endswith(self._eol)


def line_ending_converter(
    stream: BinaryIO,
    line_ending: LineEndings,
    ensure_final_newline: bool = False,
) -> BinaryIO:
    """Wrap `stream` so it yields the requested terminators; `keep` is a no-op."""
    if line_ending.is_newline():
        eol = LF
    elif line_ending.is_crlf():
        eol = CRLF
    else:
        return stream
    raw = LineEndingStream(stream, eol, ensure_final_newline=ensure_final_newline)
    return io.BufferedReader(raw)


# ──────────────────────────────────────────────────────────────────────────────
# Whole-file conversion
# ──────────────────────────────────────────────────────────────────────────────
def detect_eol(lines: List[str]) -> str:
    for ln in lines:
        if ln.endswith("\r\n"):
            return "\r\n"
        if ln.endswith("\r"):
            return "\r"
        if ln.endswith("\n"):
            return "\n"
    return "\n"


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def convert_line_endings(
    source: Path,
    dest: Path,
    line_ending: LineEndings,
    at_end_of_file: Optional[bool] = None,
    encoding: Optional[str] = None,
) -> None:
    """
    Write a copy of `source` to `dest` with normalized terminators.

    at_end_of_file:
      True  -> make sure the last line is terminated
      False -> drop the terminator of the last line
      None  -> keep whatever the source had
    `keep` preserves each line's own terminator; the final terminator, when
    one must be added, is the first one found in the file.
    """
    enc = encoding or "utf-8"
    with Path(source).open("r", encoding=enc, newline="") as f:
        lines = _LINE_RX.findall(f.read())

    eol = line_ending.characters
    had_final = bool(lines) and lines[-1] != _strip_eol(lines[-1])

    if eol is not None:
        lines = [_strip_eol(ln) + eol for ln in lines]
        if lines and not had_final:
            lines[-1] = _strip_eol(lines[-1])
    final_eol = eol or detect_eol(lines)

    if lines:
        if at_end_of_file is True and not had_final:
            lines[-1] = lines[-1] + final_eol
        elif at_end_of_file is False:
            lines[-1] = _strip_eol(lines[-1])

    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    with dest.open("w", encoding=enc, newline="") as f:
        f.write("".join(lines))
