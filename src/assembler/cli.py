"""
Command-line entry point.

    python -m assembler --config assembler.yml [--line-ending unix] [--filtered]
                        [--encoding UTF-8] [-D key=value ...] [--quiet]

Config:   assembler.yml (project:, format:, fileset: sections)
Exit codes: 0 ok, 1 a file could not be transformed, 2 invalid configuration.
"""

from __future__ import annotations

import argparse
import dataclasses
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from assembler.core.config import DEFAULT_CONFIG_NAME, load_config
from assembler.core.errors import AssemblerError, FileTransformError
from assembler.io.fileset_copier import copy_file_set
from assembler.utils.logging import ConsoleLog


def _parse_defines(items: Iterable[str]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not key:
            raise argparse.ArgumentTypeError(f"invalid property definition: '{item}'")
        out[key] = value if sep else "true"
    return out


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="assembler",
        description="Copy a file set into an assembly directory, filtering tokens and normalizing line endings.",
    )
    p.add_argument("-c", "--config", type=Path, default=Path(DEFAULT_CONFIG_NAME),
                   help=f"YAML configuration (default: ./{DEFAULT_CONFIG_NAME})")
    p.add_argument("-l", "--line-ending", dest="line_ending",
                   help="keep | unix | lf | dos | windows | crlf")
    p.add_argument("--filtered", dest="filtered", action="store_true", default=None,
                   help="apply token filtering to the file set")
    p.add_argument("--no-filtered", dest="filtered", action="store_false",
                   help="disable token filtering")
    p.add_argument("--encoding", help="text encoding used for filtering")
    p.add_argument("-o", "--output", type=Path, help="output directory override")
    p.add_argument("-D", dest="defines", action="append", default=[], metavar="KEY=VALUE",
                   help="additional filtering property (repeatable)")
    p.add_argument("-q", "--quiet", action="store_true", help="suppress informative messages")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    log = ConsoleLog("Assembler", quiet=args.quiet)

    try:
        cfg, spec = load_config(args.config)
        defines = _parse_defines(args.defines)
    except (AssemblerError, argparse.ArgumentTypeError) as e:
        log.error(str(e))
        return 2

    if defines:
        merged = dict(cfg.additional_properties)
        merged.update(defines)
        cfg = dataclasses.replace(cfg, additional_properties=merged)
    if args.encoding:
        cfg = dataclasses.replace(cfg, encoding=args.encoding)

    overrides = {}
    if args.line_ending is not None:
        overrides["line_ending"] = args.line_ending
    if args.filtered is not None:
        overrides["filtered"] = args.filtered
    if args.output is not None:
        overrides["output_directory"] = args.output.resolve()
    if overrides:
        spec = dataclasses.replace(spec, **overrides)

    try:
        copy_file_set(spec, cfg, log=log)
    except AssemblerError as e:
        log.error(str(e))
        return 2
    except FileTransformError as e:
        log.error(str(e))
        return 1
    except FileNotFoundError as e:
        log.error(str(e))
        return 2
    return 0
