from assembler.core.config import AssemblerConfig, FileSetSpec, ProjectModel, load_config
from assembler.core.errors import (
    AssemblerError,
    AssemblyFormattingError,
    ConfigError,
    FileTransformError,
    FilteringError,
    LineEndingConflictError,
)
from assembler.format.filtering import FilterRequest, PropertyFilter, TextFilter
from assembler.format.line_endings import LineEndings, get_line_ending, line_ending_converter
from assembler.format.reader_formatter import FileSetTransformer, get_file_set_transformers

__all__ = [
    "AssemblerConfig",
    "AssemblerError",
    "AssemblyFormattingError",
    "ConfigError",
    "FileSetSpec",
    "FileSetTransformer",
    "FileTransformError",
    "FilterRequest",
    "FilteringError",
    "LineEndingConflictError",
    "LineEndings",
    "ProjectModel",
    "PropertyFilter",
    "TextFilter",
    "get_file_set_transformers",
    "get_line_ending",
    "line_ending_converter",
    "load_config",
]

__version__ = "0.1.0"
