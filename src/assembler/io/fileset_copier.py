# File: src/assembler/io/fileset_copier.py
from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from assembler.core.config import AssemblerConfig, FileSetSpec
from assembler.core.discovery import DEFAULT_SEGMENT_EXCLUDES, DiscoveryConfig, DiscoveryEngine
from assembler.core.files import FileResource
from assembler.format.reader_formatter import get_file_set_transformers
from assembler.utils.logging import ConsoleLog


@dataclass
class CopyReport:
    output_directory: Path
    copied: List[str] = field(default_factory=list)
    transformed: int = 0
    bytes_written: int = 0

    @property
    def files(self) -> int:
        return len(self.copied)


def _inside(path: Path, root: Path) -> bool:
    try:
        path.resolve().relative_to(root.resolve())
        return True
    except ValueError:
        return False


def copy_file_set(
    spec: FileSetSpec,
    config: AssemblerConfig,
    log: Optional[ConsoleLog] = None,
) -> CopyReport:
    """
    Copy one file set into its output directory, streaming every file through
    the file-set transformer. The first failing file aborts the copy.
    """
    log = log or ConsoleLog("Assembler")
    transformer = get_file_set_transformers(
        config,
        spec.filtered,
        spec.non_filtered_extensions,
        spec.line_ending,
    )

    engine = DiscoveryEngine(
        DiscoveryConfig(
            root=spec.directory,
            include_globs=tuple(spec.includes),
            exclude_globs=tuple(spec.excludes),
            segment_excludes=DEFAULT_SEGMENT_EXCLUDES if spec.use_default_excludes else (),
        )
    )
    paths = [p for p in engine.discover() if not _inside(p, spec.output_directory)]
    log.stage(
        "📦",
        f"Copying {len(paths)} file(s) from {spec.directory} "
        f"(filtered={spec.filtered}, lineEnding={spec.line_ending or 'keep'})",
    )

    report = CopyReport(output_directory=spec.output_directory)
    for path in paths:
        rel = path.relative_to(spec.directory).as_posix()
        resource = FileResource(name=rel, path=path)
        dest = spec.output_directory / rel
        dest.parent.mkdir(parents=True, exist_ok=True)

        src = resource.open()
        try:
            stream = src if transformer is None else transformer(resource, src)
            with stream, dest.open("wb") as out:
                shutil.copyfileobj(stream, out)
        finally:
            src.close()

        if stream is not src:
            report.transformed += 1
        report.copied.append(rel)
        report.bytes_written += dest.stat().st_size

    log.info(
        f"Copied {report.files} file(s), {report.transformed} transformed, "
        f"{report.bytes_written} bytes -> {spec.output_directory}"
    )
    return report
