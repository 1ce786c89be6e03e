# File: tests/format/test_line_endings.py
"""
Line-ending policy resolution and conversion.

Run:
    pytest -q tests/format/test_line_endings.py
"""

import io
from pathlib import Path

import pytest

from assembler.core.errors import AssemblyFormattingError
from assembler.format.line_endings import (
    CRLF,
    LF,
    LineEndings,
    LineEndingStream,
    convert_line_endings,
    get_line_ending,
    get_line_ending_characters,
    line_ending_converter,
)


def _convert(data: bytes, policy: LineEndings, **kwargs) -> bytes:
    return line_ending_converter(io.BytesIO(data), policy, **kwargs).read()


def test_unset_policy_means_keep() -> None:
    assert get_line_ending(None) is LineEndings.keep
    assert get_line_ending("") is LineEndings.keep


def test_policy_names_are_case_insensitive() -> None:
    assert get_line_ending("UNIX") is LineEndings.unix
    assert get_line_ending("Windows") is LineEndings.windows


def test_invalid_policy_is_rejected() -> None:
    with pytest.raises(AssemblyFormattingError, match="Invalid lineEnding"):
        get_line_ending("mac")


@pytest.mark.parametrize(
    "name, expected",
    [("keep", None), ("unix", "\n"), ("lf", "\n"), ("dos", "\r\n"), ("windows", "\r\n"), ("crlf", "\r\n")],
)
def test_line_ending_characters(name: str, expected) -> None:
    assert get_line_ending_characters(name) == expected


def test_keep_returns_stream_untouched() -> None:
    stream = io.BytesIO(b"a\r\nb")
    assert line_ending_converter(stream, LineEndings.keep) is stream


def test_unix_rewrites_every_terminator() -> None:
    assert _convert(b"a\r\nb\rc\nd", LineEndings.unix) == b"a\nb\nc\nd"


def test_windows_rewrites_every_terminator() -> None:
    assert _convert(b"a\nb\r\nc\r", LineEndings.crlf) == b"a\r\nb\r\nc\r\n"


def test_trailing_cr_is_not_doubled() -> None:
    assert _convert(b"a\r", LineEndings.unix, ensure_final_newline=True) == b"a\n"


def test_ensure_final_newline() -> None:
    assert _convert(b"a\nb", LineEndings.dos, ensure_final_newline=True) == b"a\r\nb\r\n"
    assert _convert(b"a\n", LineEndings.unix, ensure_final_newline=True) == b"a\n"
    assert _convert(b"", LineEndings.unix, ensure_final_newline=True) == b""


@pytest.mark.parametrize("chunk_size", [1, 2, 3, 5, 8])
def test_chunk_boundaries_do_not_change_output(chunk_size: int) -> None:
    data = b"one\r\ntwo\rthree\n\r\nfour\r"
    for eol, expected in ((LF, b"one\ntwo\nthree\n\nfour\n"), (CRLF, b"one\r\ntwo\r\nthree\r\n\r\nfour\r\n")):
        raw = LineEndingStream(io.BytesIO(data), eol, chunk_size=chunk_size)
        assert io.BufferedReader(raw).read() == expected


def test_closing_converter_closes_source() -> None:
    src = io.BytesIO(b"x\n")
    out = line_ending_converter(src, LineEndings.unix)
    out.close()
    assert src.closed


def test_convert_file_adds_final_terminator(tmp_path: Path) -> None:
    src = tmp_path / "in.txt"
    dest = tmp_path / "out" / "out.txt"
    src.write_bytes(b"a\r\nb")
    convert_line_endings(src, dest, LineEndings.unix, at_end_of_file=True)
    assert dest.read_bytes() == b"a\nb\n"


def test_convert_file_strips_final_terminator(tmp_path: Path) -> None:
    src = tmp_path / "in.txt"
    dest = tmp_path / "out.txt"
    src.write_bytes(b"a\nb\n")
    convert_line_endings(src, dest, LineEndings.dos, at_end_of_file=False)
    assert dest.read_bytes() == b"a\r\nb"


def test_convert_file_preserves_final_state(tmp_path: Path) -> None:
    src = tmp_path / "in.txt"
    dest = tmp_path / "out.txt"
    src.write_bytes(b"a\r\nb")
    convert_line_endings(src, dest, LineEndings.unix)
    assert dest.read_bytes() == b"a\nb"


def test_convert_file_keep_uses_existing_terminator(tmp_path: Path) -> None:
    src = tmp_path / "in.txt"
    dest = tmp_path / "out.txt"
    src.write_bytes(b"a\r\nb\fc")
    convert_line_endings(src, dest, LineEndings.keep, at_end_of_file=True)
    assert dest.read_bytes() == b"a\r\nb\fc\r\n"
