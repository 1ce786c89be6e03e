from __future__ import annotations

"""
Token filtering (property substitution) for files copied into an assembly.

The formatter only depends on the `TextFilter` protocol: hand it a
`FilterRequest`, get filtered text back, or a `FilteringError`. `PropertyFilter`
is the built-in engine:

- delimiters are specs like "${*}" (begin "${", end "}") or "@" (begin and
  end are both "@"); DEFAULT_DELIMITERS is ("${*}", "@")
- keys resolve against, lowest to highest precedence: project properties,
  project.* model values, project build filter files (when injected), the
  configured filter files, and the request's additional properties
- resolved values are filtered again, so properties may reference each other
- unknown keys are left exactly as written
- a token prefixed with the escape string is emitted without the escape
- in .properties files, backslashes in substituted values are doubled so the
  result is still a valid properties file
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Pattern, Protocol, Sequence, Tuple

from assembler.core.errors import FilteringError

if TYPE_CHECKING:
    from assembler.core.config import ProjectModel

DEFAULT_DELIMITERS: Tuple[str, ...] = ("${*}", "@")
PROPERTIES_ENCODING = "ISO-8859-1"


@dataclass(frozen=True)
class FilterRequest:
    text: str
    source_name: str = ""
    delimiters: Tuple[str, ...] = DEFAULT_DELIMITERS
    escape_string: Optional[str] = None
    project: Optional["ProjectModel"] = None
    filters: Tuple[Path, ...] = ()
    properties_file: bool = False
    inject_project_build_filters: bool = False
    additional_properties: Mapping[str, str] = field(default_factory=dict)


class TextFilter(Protocol):
    def filter(self, request: FilterRequest) -> str:
        ...


@dataclass(frozen=True)
class DelimiterSpec:
    begin: str
    end: str

    @staticmethod
    def parse(spec: str) -> "DelimiterSpec":
        if not spec:
            raise FilteringError("Empty delimiter specification")
        if "*" in spec:
            begin, end = spec.split("*", 1)
            if not begin or not end:
                raise FilteringError(f"Invalid delimiter specification: '{spec}'")
            return DelimiterSpec(begin, end)
        return DelimiterSpec(spec, spec)


# ──────────────────────────────────────────────────────────────────────────────
# .properties parsing
# ──────────────────────────────────────────────────────────────────────────────
_WS = " \t\f"
_SEPARATORS = "=:"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _unescape(s: str) -> str:
    if "\\" not in s:
        return s
    out: List[str] = []
    i = 0
    while i < len(s):
        c = s[i]
        if c != "\\":
            out.append(c)
            i += 1
            continue
        i += 1
        if i >= len(s):
            break
        c = s[i]
        if c == "u":
            digits = s[i + 1:i + 5]
            if len(digits) != 4 or not all(ch in "0123456789abcdefABCDEF" for ch in digits):
                raise FilteringError(f"Malformed \\uxxxx encoding: '\\u{digits}'")
            out.append(chr(int(digits, 16)))
            i += 5
            continue
        out.append(_ESCAPES.get(c, c))
        i += 1
    return "".join(out)


def _split_key_value(line: str) -> Tuple[str, str]:
    n = len(line)
    i = 0
    while i < n:
        c = line[i]
        if c == "\\":
            i += 2
            continue
        if c in _SEPARATORS or c in _WS:
            break
        i += 1
    key = line[:i]
    j = i
    while j < n and line[j] in _WS:
        j += 1
    if j < n and line[j] in _SEPARATORS:
        j += 1
        while j < n and line[j] in _WS:
            j += 1
    return key, line[j:]


def parse_properties(text: str) -> Dict[str, str]:
    """Parse Java-style properties text (comments, continuations, escapes)."""
    props: Dict[str, str] = {}
    pending = ""
    continuing = False
    for raw in re.split(r"\r\n|\r|\n", text):
        line = raw.lstrip(_WS)
        if not continuing and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending += line[:-1]
            continuing = True
            continue
        pending += line
        key, value = _split_key_value(pending)
        props[_unescape(key)] = _unescape(value)
        pending = ""
        continuing = False
    if continuing and pending:
        key, value = _split_key_value(pending)
        props[_unescape(key)] = _unescape(value)
    return props


def load_properties(path: Path) -> Dict[str, str]:
    p = Path(path)
    try:
        text = p.read_text(encoding=PROPERTIES_ENCODING)
    except OSError as e:
        raise FilteringError(f"Error loading property file '{p}': {e}") from e
    return parse_properties(text)


# ──────────────────────────────────────────────────────────────────────────────
# Engine
# ──────────────────────────────────────────────────────────────────────────────
def _token_pattern(specs: Sequence[DelimiterSpec], escape_string: Optional[str]) -> Pattern[str]:
    parts = []
    for i, spec in enumerate(specs):
        esc = f"(?P<e{i}>{re.escape(escape_string)})?" if escape_string else ""
        parts.append(f"{esc}{re.escape(spec.begin)}(?P<k{i}>\\S+?){re.escape(spec.end)}")
    return re.compile("|".join(parts))


class PropertyFilter:
    """Default `TextFilter`: resolves delimited keys from project and filter properties."""

    def filter(self, request: FilterRequest) -> str:
        specs = [DelimiterSpec.parse(d) for d in (request.delimiters or DEFAULT_DELIMITERS)]
        pattern = _token_pattern(specs, request.escape_string)
        props = self.collect_properties(request)

        def top_level(m: "re.Match[str]") -> str:
            return self._replace(m, props, pattern, (), request.properties_file)

        return pattern.sub(top_level, request.text)

    def collect_properties(self, request: FilterRequest) -> Dict[str, str]:
        props: Dict[str, str] = {}
        project = request.project
        filter_files: List[Path] = []
        if project is not None:
            props.update({str(k): str(v) for k, v in project.properties.items()})
            props.update(project.expression_values())
            if request.inject_project_build_filters:
                filter_files.extend(project.build_filters)
        filter_files.extend(request.filters)
        for path in filter_files:
            props.update(load_properties(path))
        props.update({str(k): str(v) for k, v in request.additional_properties.items()})
        return props

    def _resolve(
        self,
        key: str,
        props: Mapping[str, str],
        pattern: Pattern[str],
        stack: Tuple[str, ...],
    ) -> Optional[str]:
        if key in stack:
            chain = " -> ".join(stack + (key,))
            raise FilteringError(f"Expression cycle detected: {chain}")
        value = props.get(key)
        if value is None:
            return None
        inner = stack + (key,)
        return pattern.sub(lambda m: self._replace(m, props, pattern, inner, False), value)

    def _replace(
        self,
        m: "re.Match[str]",
        props: Mapping[str, str],
        pattern: Pattern[str],
        stack: Tuple[str, ...],
        escape_backslashes: bool,
    ) -> str:
        group = m.lastgroup or ""
        idx = group[1:]
        escaped = m.groupdict().get(f"e{idx}")
        if escaped:
            return m.group(0)[len(escaped):]
        value = self._resolve(m.group(group), props, pattern, stack)
        if value is None:
            return m.group(0)
        if escape_backslashes:
            value = value.replace("\\", "\\\\")
        return value
