# File: src/assembler/core/files.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

# Containers whose bytes must never go through a text transform
FORBIDDEN_SUFFIXES = (".zip", ".jar")


def is_property_file(name: str) -> bool:
    """True for Java-style properties files, which are filtered as ISO-8859-1."""
    return name.lower().endswith(".properties")


def is_forbidden_filetype(name: str) -> bool:
    return name.lower().endswith(FORBIDDEN_SUFFIXES)


def has_extension(name: str, extension: str) -> bool:
    return name.endswith("." + extension)


@dataclass(frozen=True)
class FileResource:
    """
    A file headed for the assembly.

    `name` is the path the file will carry inside the assembly (POSIX style);
    `path` is where the bytes live on disk, when they live on disk at all.
    """
    name: str
    path: Optional[Path] = None

    def open(self) -> BinaryIO:
        if self.path is None:
            raise FileNotFoundError(f"resource has no backing file: {self.name}")
        return self.path.open("rb")
