# File: src/assembler/core/errors.py
from __future__ import annotations


class AssemblerError(RuntimeError):
    """Base exception for assembler configuration and formatting failures."""


class ConfigError(AssemblerError):
    """Invalid or unreadable configuration (e.g., assembler.yml)."""


class AssemblyFormattingError(AssemblerError):
    """A file-set formatting option is invalid (e.g., unknown lineEnding)."""


class FilteringError(AssemblerError):
    """Raised by a text filter engine when token substitution fails."""


class FileTransformError(OSError):
    """A single file could not be transformed while being copied."""

    def __init__(self, message: str, resource_name: str | None = None) -> None:
        super().__init__(message)
        self.resource_name = resource_name


class LineEndingConflictError(FileTransformError):
    """Line-ending rewriting was requested for a binary container (zip/jar)."""
