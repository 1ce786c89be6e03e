from __future__ import annotations

"""
Per-file stream transforms for file sets copied into an assembly.

`get_file_set_transformers` decides once per file set whether any transform
is needed at all. When it is, the returned `FileSetTransformer` is applied to
every file:

  1. excluded extensions pass through untouched
  2. filtering: decode -> TextFilter -> re-encode
     (.properties files always use ISO-8859-1)
  3. line endings: rewritten on the fly; zip/jar files are refused
"""

import codecs
import io
import threading
from dataclasses import dataclass, field
from typing import BinaryIO, Iterable, List, Optional, Protocol, Sequence, Tuple

from assembler.core.config import AssemblerConfig
from assembler.core.errors import (
    AssemblyFormattingError,
    FileTransformError,
    FilteringError,
    LineEndingConflictError,
)
from assembler.core.files import has_extension, is_forbidden_filetype, is_property_file
from assembler.format.filtering import DEFAULT_DELIMITERS, PROPERTIES_ENCODING, FilterRequest
from assembler.format.line_endings import LineEndings, get_line_ending, line_ending_converter
from assembler.utils.logging import ConsoleLog

_log = ConsoleLog("Formatter")


class Resource(Protocol):
    name: str


def resolve_delimiters(delimiters: Optional[Sequence[Optional[str]]]) -> Tuple[str, ...]:
    """
    Ordered, de-duplicated delimiter specs. Unset entries mean "${*}";
    an empty or missing list means the defaults.
    """
    if not delimiters:
        return DEFAULT_DELIMITERS
    out: List[str] = []
    for delim in delimiters:
        spec = "${*}" if delim is None else delim
        if spec not in out:
            out.append(spec)
    return tuple(out)


def create_reader_filter(
    text: str,
    source_name: str,
    config: AssemblerConfig,
    is_properties_file: bool,
) -> str:
    request = FilterRequest(
        text=text,
        source_name=source_name,
        delimiters=resolve_delimiters(config.delimiters),
        escape_string=config.escape_string,
        project=config.project,
        filters=tuple(config.filters),
        properties_file=is_properties_file,
        inject_project_build_filters=config.include_project_build_filters,
        additional_properties=config.additional_properties,
    )
    try:
        return config.reader_filter.filter(request)
    except FilteringError as e:
        raise FileTransformError(f"Error filtering file '{source_name}': {e}", source_name) from e


def validate_file_type(resource: Resource) -> None:
    if is_forbidden_filetype(resource.name):
        raise LineEndingConflictError(
            "Cannot transform line endings on this kind of file: "
            + resource.name
            + "\nDoing so is more or less guaranteed to destroy the file, and it indicates"
            " a problem with your assembly descriptor."
            "\nFix your descriptor: remove the lineEnding setting for this file set"
            " or exclude archives from it.",
            resource.name,
        )


def _check_encoding(encoding: Optional[str]) -> None:
    if not encoding:
        return
    try:
        codecs.lookup(encoding)
    except LookupError:
        raise AssemblyFormattingError(f"Unsupported encoding: '{encoding}'") from None


@dataclass(frozen=True)
class FileSetTransformer:
    config: AssemblerConfig
    is_filtered: bool
    non_filtered_extensions: Tuple[str, ...]
    line_ending: LineEndings
    _fallback_warned: threading.Event = field(
        default_factory=threading.Event, init=False, repr=False, compare=False
    )

    @property
    def transforms_line_endings(self) -> bool:
        return self.line_ending is not LineEndings.keep

    def encoding_for(self, name: str) -> str:
        if is_property_file(name):
            return PROPERTIES_ENCODING
        if self.config.encoding:
            return self.config.encoding
        if not self._fallback_warned.is_set():
            self._fallback_warned.set()
            _log.warn(
                f"File encoding has not been set, using '{self.config.default_encoding}' to filter resources"
            )
        return self.config.default_encoding

    def transform(self, resource: Resource, stream: BinaryIO) -> BinaryIO:
        name = resource.name
        for extension in self.non_filtered_extensions:
            if has_extension(name, extension):
                return stream

        if self.transforms_line_endings:
            validate_file_type(resource)

        result = stream
        if self.is_filtered:
            encoding = self.encoding_for(name)
            with stream:
                data = stream.read()
            try:
                text = data.decode(encoding)
            except (UnicodeDecodeError, LookupError) as e:
                raise FileTransformError(
                    f"Error filtering file '{name}': cannot decode as {encoding}: {e}", name
                ) from e
            filtered = create_reader_filter(text, name, self.config, is_property_file(name))
            try:
                result = io.BytesIO(filtered.encode(encoding))
            except (UnicodeEncodeError, LookupError) as e:
                raise FileTransformError(
                    f"Error filtering file '{name}': cannot encode as {encoding}: {e}", name
                ) from e

        if self.transforms_line_endings:
            result = line_ending_converter(result, self.line_ending)
        return result

    __call__ = transform


def get_file_set_transformers(
    config: AssemblerConfig,
    is_filtered: bool,
    non_filtered_extensions: Iterable[str],
    file_set_line_ending: Optional[str],
) -> Optional[FileSetTransformer]:
    """
    Build the transformer for one file set, or None when the file set is
    neither filtered nor line-ending converted (callers copy bytes as-is).
    """
    line_ending = get_line_ending(file_set_line_ending)
    if line_ending is LineEndings.keep and not is_filtered:
        return None

    if is_filtered:
        for encoding in (config.encoding, config.default_encoding):
            _check_encoding(encoding)

    if isinstance(non_filtered_extensions, str):
        non_filtered_extensions = (non_filtered_extensions,)

    return FileSetTransformer(
        config=config,
        is_filtered=is_filtered,
        non_filtered_extensions=tuple(non_filtered_extensions or ()),
        line_ending=line_ending,
    )
