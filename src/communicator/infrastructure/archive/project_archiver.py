"""Zip a project directory, honoring its ``.gitignore``.

The archive is written as ``<dirname>-project.zip`` into the directory being
archived. ``.git`` (directory or gitlink file), every path matched by the root
``.gitignore`` and the archive itself are left out.
"""

from __future__ import annotations

import os
import zipfile
from pathlib import Path

import pathspec
import structlog

from communicator.core.domain.errors import ArchiveError
from communicator.core.domain.question import ArchiveArtifact

logger = structlog.get_logger(__name__)

# a directory in a normal checkout, a gitlink file in worktrees and submodules
VCS_METADATA_NAME = ".git"
IGNORE_FILE_NAME = ".gitignore"


class ProjectArchiver:
    """Build a DEFLATE-compressed zip of a project tree."""

    def __init__(self, *, compress_level: int = 9) -> None:
        self._compress_level = compress_level

    def create(self, directory: Path) -> ArchiveArtifact:
        root = Path(directory).resolve()
        if not root.is_dir():
            raise ArchiveError(
                f"Directory not found: {directory}", details={"directory": str(directory)}
            )

        spec = self._load_ignore_spec(root)
        output_path = root / f"{root.name}-project.zip"
        file_count = 0

        try:
            with zipfile.ZipFile(
                output_path,
                "w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=self._compress_level,
            ) as archive:
                for path in self._iter_files(root, spec):
                    if path == output_path:
                        continue
                    archive.write(path, arcname=path.relative_to(root).as_posix())
                    file_count += 1
        except OSError as exc:
            output_path.unlink(missing_ok=True)
            raise ArchiveError(
                f"Cannot archive {root}: {exc}", details={"directory": str(root)}
            ) from exc

        size_bytes = output_path.stat().st_size
        logger.info(
            "archive.created",
            path=str(output_path),
            files=file_count,
            size_bytes=size_bytes,
        )
        return ArchiveArtifact(path=output_path, size_bytes=size_bytes, file_count=file_count)

    @staticmethod
    def _load_ignore_spec(root: Path) -> pathspec.GitIgnoreSpec:
        ignore_file = root / IGNORE_FILE_NAME
        lines: list[str] = []
        if ignore_file.is_file():
            lines = ignore_file.read_text(encoding="utf-8", errors="replace").splitlines()
        return pathspec.GitIgnoreSpec.from_lines(lines)

    @staticmethod
    def _iter_files(root: Path, spec: pathspec.GitIgnoreSpec):
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            rel_dir = current.relative_to(root).as_posix()
            prefix = "" if rel_dir == "." else f"{rel_dir}/"

            # prune in place so os.walk skips ignored subtrees
            dirnames[:] = sorted(
                name
                for name in dirnames
                if name != VCS_METADATA_NAME and not spec.match_file(f"{prefix}{name}/")
            )
            for name in sorted(filenames):
                if name == VCS_METADATA_NAME or spec.match_file(f"{prefix}{name}"):
                    continue
                yield current / name
