from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from assembler.core.errors import ConfigError
from assembler.format.filtering import PropertyFilter, TextFilter

DEFAULT_CONFIG_NAME = "assembler.yml"


def _frozen(mapping: Optional[Mapping[str, Any]]) -> Mapping[str, str]:
    return MappingProxyType({str(k): "" if v is None else str(v) for k, v in (mapping or {}).items()})


# ──────────────────────────────────────────────────────────────────────────────
# Project model
# ──────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ProjectModel:
    group_id: str = ""
    artifact_id: str = ""
    version: str = ""
    name: str = ""
    basedir: Optional[Path] = None
    properties: Mapping[str, str] = field(default_factory=dict)
    build_filters: Tuple[Path, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", _frozen(self.properties))
        object.__setattr__(self, "build_filters", tuple(self.build_filters))

    def expression_values(self) -> Dict[str, str]:
        """`project.*` expressions (and their legacy `pom.*` aliases)."""
        values = {
            "groupId": self.group_id,
            "artifactId": self.artifact_id,
            "version": self.version,
            "name": self.name or self.artifact_id,
        }
        if self.basedir is not None:
            values["basedir"] = str(self.basedir)
        out: Dict[str, str] = {}
        for prefix in ("pom", "project"):
            for key, value in values.items():
                out[f"{prefix}.{key}"] = value
        if self.basedir is not None:
            out["basedir"] = str(self.basedir)
        return out


# ──────────────────────────────────────────────────────────────────────────────
# Formatting configuration (one immutable snapshot per assembly run)
# ──────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class AssemblerConfig:
    project: ProjectModel = field(default_factory=ProjectModel)
    filters: Tuple[Path, ...] = ()
    encoding: Optional[str] = None
    default_encoding: str = "utf-8"
    escape_string: Optional[str] = None
    delimiters: Optional[Tuple[Optional[str], ...]] = None
    include_project_build_filters: bool = True
    additional_properties: Mapping[str, str] = field(default_factory=dict)
    reader_filter: TextFilter = field(default_factory=PropertyFilter, compare=False)

    def __post_init__(self) -> None:
        # copy caller containers into read-only ones
        object.__setattr__(self, "additional_properties", _frozen(self.additional_properties))
        object.__setattr__(self, "filters", tuple(self.filters))
        if self.delimiters is not None:
            object.__setattr__(self, "delimiters", tuple(self.delimiters))


@dataclass(frozen=True)
class FileSetSpec:
    directory: Path
    output_directory: Path
    includes: Tuple[str, ...] = ()
    excludes: Tuple[str, ...] = ()
    filtered: bool = False
    line_ending: Optional[str] = None
    non_filtered_extensions: Tuple[str, ...] = ()
    use_default_excludes: bool = True


# ──────────────────────────────────────────────────────────────────────────────
# YAML loading
# ──────────────────────────────────────────────────────────────────────────────
def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"YAML file is not a mapping: {path}")
    return data


def _section(data: Mapping[str, Any], name: str) -> Dict[str, Any]:
    sec = data.get(name)
    if sec is None:
        return {}
    if not isinstance(sec, dict):
        raise ConfigError(f"'{name}' section must be a mapping, got {type(sec).__name__}")
    return sec


def _str_list(sec: Mapping[str, Any], key: str, *, allow_none_items: bool = False) -> List[Any]:
    raw = sec.get(key)
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = [s.strip() for s in raw.split(",") if s.strip()]
    if not isinstance(raw, list):
        raise ConfigError(f"'{key}' must be a list, got {type(raw).__name__}")
    out: List[Any] = []
    for item in raw:
        if item is None and allow_none_items:
            out.append(None)
        elif item is None:
            continue
        else:
            out.append(str(item))
    return out


def _as_bool(v: Any, default: bool = False) -> bool:
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "yes", "on"}
    return default


def _resolve(base: Path, p: str) -> Path:
    path = Path(p).expanduser()
    return path if path.is_absolute() else (base / path).resolve()


def _opt_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v)
    return s or None


def load_config(path: Path) -> Tuple[AssemblerConfig, FileSetSpec]:
    """
    Load assembler.yml into a formatting snapshot and a file-set description.

    Missing file -> defaults rooted at the file's directory. Relative paths
    (filters, build filters, directories) resolve against that directory.
    """
    path = Path(path)
    base = path.parent.resolve()
    data = _read_yaml(path)

    proj = _section(data, "project")
    fmt = _section(data, "format")
    fs = _section(data, "fileset")

    project = ProjectModel(
        group_id=str(proj.get("group_id") or ""),
        artifact_id=str(proj.get("artifact_id") or ""),
        version=str(proj.get("version") or ""),
        name=str(proj.get("name") or ""),
        basedir=base,
        properties=_frozen(_section(proj, "properties")),
        build_filters=tuple(_resolve(base, p) for p in _str_list(proj, "build_filters")),
    )

    delimiters = _str_list(fmt, "delimiters", allow_none_items=True)
    cfg = AssemblerConfig(
        project=project,
        filters=tuple(_resolve(base, p) for p in _str_list(fmt, "filters")),
        encoding=_opt_str(fmt.get("encoding")),
        default_encoding=str(fmt.get("default_encoding") or "utf-8"),
        escape_string=_opt_str(fmt.get("escape_string")),
        delimiters=tuple(delimiters) if delimiters else None,
        include_project_build_filters=_as_bool(fmt.get("include_project_build_filters"), True),
        additional_properties=_frozen(_section(fmt, "additional_properties")),
    )

    spec = FileSetSpec(
        directory=_resolve(base, str(fs.get("directory") or ".")),
        output_directory=_resolve(base, str(fs.get("output_directory") or "target/assembly")),
        includes=tuple(_str_list(fs, "includes")),
        excludes=tuple(_str_list(fs, "excludes")),
        filtered=_as_bool(fs.get("filtered"), False),
        line_ending=_opt_str(fs.get("line_ending")),
        non_filtered_extensions=tuple(e.lstrip(".") for e in _str_list(fs, "non_filtered_extensions")),
        use_default_excludes=_as_bool(fs.get("use_default_excludes"), True),
    )
    return cfg, spec
