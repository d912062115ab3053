"""Place input files in the output directory.

Bundle unpacking is not performed: each input is copied through unchanged
and renamed in place inside the output directory.
"""

from __future__ import annotations

import shutil
from collections.abc import Sequence
from pathlib import Path

import structlog

from deminify.pipeline.stages import SourceFile

log = structlog.get_logger(__name__)


def extract_sources(
    inputs: Sequence[Path],
    output_dir: Path,
    *,
    overwrite: bool = True,
) -> list[SourceFile]:
    """Copy ``inputs`` into ``output_dir`` and return them in processing order.

    With ``overwrite=False`` (resuming) an existing output file is kept, so
    files finished by an earlier run are not reverted to their input text.
    Inputs sharing a file name get a numeric suffix.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    files: list[SourceFile] = []
    used: set[str] = set()
    for index, src in enumerate(inputs):
        name = src.name
        stem, suffix = src.stem, src.suffix
        n = 1
        while name in used:
            name = f"{stem}_{n}{suffix}"
            n += 1
        used.add(name)

        dest = output_dir / name
        if dest.exists() and (not overwrite or dest.resolve() == src.resolve()):
            log.debug("source_kept", output=str(dest))
        else:
            shutil.copyfile(src, dest)
            log.debug("source_extracted", input=str(src), output=str(dest))
        files.append(SourceFile(index=index, path=dest))
    return files
