"""
zodgen - Schema Exporter (File-System Writer)
=============================================

Responsible for:
    1. Optionally cleaning the schemas directory before a run.
    2. Writing rendered modules atomically (write-to-temp then rename).
    3. Producing an export manifest with checksums for reproducibility.

Re-running on the same directory is always safe: every path is written in
full and identical input produces byte-identical files.  A failed write is
recorded and the remaining files are still written.

Complexity: O(F) where F = total number of output files.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from zodgen.models import GeneratedFile
from zodgen.utils import Timer, clean_directory, count_lines, ensure_directory, sha256_hex

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.exporters")

MANIFEST_FILENAME: str = "zodgen-manifest.json"


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """Manifest of all exported files, serialisable to JSON."""

    generator_version: str = ""
    export_timestamp: str = ""
    output_directory: str = ""
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generator_version": self.generator_version,
            "export_timestamp": self.export_timestamp,
            "output_directory": self.output_directory,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Final result returned by ``SchemaExporter.export()``."""

    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# SchemaExporter class
# ---------------------------------------------------------------------------


class SchemaExporter:
    """
    Writes rendered schema modules under one schemas directory.

    Usage::

        exporter = SchemaExporter(Path("./generated/schemas"))
        result = exporter.export(files)
        print(result.manifest.to_json())

    Thread-safety: NOT thread-safe.  Use one exporter per output directory.
    """

    def __init__(
        self,
        output_dir: Path,
        *,
        clean_before_export: bool = False,
        atomic_writes: bool = True,
        write_manifest: bool = False,
    ) -> None:
        self._output_dir: Path = output_dir.resolve()
        self._clean_before_export: bool = clean_before_export
        self._atomic_writes: bool = atomic_writes
        self._write_manifest: bool = write_manifest

        self._errors: List[str] = []
        self._warnings: List[str] = []
        self._file_records: List[FileRecord] = []

        logger.debug(
            "SchemaExporter initialised: output_dir=%s, atomic=%s.",
            self._output_dir,
            self._atomic_writes,
        )

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(self, files: Sequence[GeneratedFile]) -> ExportResult:
        """
        Write every file in *files* below the output directory.

        Returns:
            ExportResult with success flag, manifest, and error details.
        """
        with Timer("export") as timer:
            try:
                self._pre_export_cleanup()
                ensure_directory(self._output_dir)
                self._write_generated_files(files)
                if self._write_manifest:
                    self._write_manifest_file()
            except OSError as exc:
                error_msg: str = f"Fatal export error: {type(exc).__name__}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

        manifest: ExportManifest = self._build_manifest()
        success: bool = len(self._errors) == 0

        if success:
            logger.info(
                "Export completed successfully: %d files, %d bytes, %.3fs.",
                manifest.total_files,
                manifest.total_bytes,
                timer.elapsed,
            )
        else:
            logger.error(
                "Export completed with %d error(s) in %.3fs.",
                len(self._errors),
                timer.elapsed,
            )

        return ExportResult(
            success=success,
            manifest=manifest,
            errors=tuple(self._errors),
            warnings=tuple(self._warnings),
            elapsed_seconds=timer.elapsed,
        )

    # -----------------------------------------------------------------
    # Internal: directory management
    # -----------------------------------------------------------------

    def _pre_export_cleanup(self) -> None:
        if not self._clean_before_export:
            return
        logger.info("Cleaning output directory: %s", self._output_dir)
        for failure in clean_directory(self._output_dir):
            self._warnings.append(failure)
            logger.warning(failure)

    # -----------------------------------------------------------------
    # Internal: file writing
    # -----------------------------------------------------------------

    def _write_generated_files(self, files: Sequence[GeneratedFile]) -> None:
        for generated in files:
            full_path: Path = self._output_dir / generated.path
            try:
                record: FileRecord = self._write_single_file(
                    full_path, generated.content, generated.path
                )
                self._file_records.append(record)
            except OSError as exc:
                error_msg: str = (
                    f"Failed to write {generated.path}: {type(exc).__name__}: {exc}"
                )
                self._errors.append(error_msg)
                logger.error(error_msg)

        logger.info(
            "Wrote %d generated files to %s.",
            len(self._file_records),
            self._output_dir,
        )

    def _write_single_file(
        self,
        full_path: Path,
        content: str,
        rel_path: str,
    ) -> FileRecord:
        full_path.parent.mkdir(parents=True, exist_ok=True)

        encoded: bytes = content.encode("utf-8")
        if self._atomic_writes:
            self._atomic_write(full_path, encoded)
        else:
            full_path.write_bytes(encoded)

        record: FileRecord = FileRecord(
            relative_path=rel_path,
            absolute_path=str(full_path),
            size_bytes=len(encoded),
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )
        logger.debug(
            "Wrote file: %s (%d bytes, %d lines).",
            rel_path,
            record.size_bytes,
            record.line_count,
        )
        return record

    @staticmethod
    def _atomic_write(target_path: Path, data: bytes) -> None:
        """
        Write *data* to *target_path* through a temporary file in the same
        directory, then ``os.replace`` it into place.

        If the temporary file cannot be used the target is written directly.
        """
        fd: int = -1
        tmp_path: str = ""
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(target_path.parent),
                prefix=f".{target_path.name}.",
                suffix=".tmp",
            )
            os.write(fd, data)
            os.fsync(fd)
            os.close(fd)
            fd = -1
            os.replace(tmp_path, str(target_path))
        except OSError:
            if fd >= 0:
                with contextlib.suppress(OSError):
                    os.close(fd)
            if tmp_path and os.path.exists(tmp_path):
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
            target_path.write_bytes(data)

    # -----------------------------------------------------------------
    # Internal: manifest
    # -----------------------------------------------------------------

    def _build_manifest(self) -> ExportManifest:
        import zodgen

        return ExportManifest(
            generator_version=zodgen.__version__,
            export_timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            output_directory=str(self._output_dir),
            total_files=len(self._file_records),
            total_bytes=sum(r.size_bytes for r in self._file_records),
            total_lines=sum(r.line_count for r in self._file_records),
            files=list(self._file_records),
        )

    def _write_manifest_file(self) -> None:
        manifest_path: Path = self._output_dir / MANIFEST_FILENAME
        try:
            self._write_single_file(manifest_path, self._build_manifest().to_json(), MANIFEST_FILENAME)
            logger.debug("Wrote manifest to %s.", manifest_path)
        except OSError as exc:
            self._warnings.append(f"Could not write manifest: {exc}")
            logger.warning("Failed to write manifest: %s", exc)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MANIFEST_FILENAME",
    "SchemaExporter",
    "ExportManifest",
    "ExportResult",
    "FileRecord",
]

logger.debug("zodgen.exporters loaded.")
