"""
archivist.engine
──────────────────
归档清单引擎：记录每一次移动，并支持按清单逐条撤销。

- archive：源不存在时跳过；移动成功后追加一条清单记录
- restore_all：按清单正序逐条移回；单条失败只记录，不中断批次
"""

from __future__ import annotations

import logging
import os
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from archivist.config import CleanupContext
from archivist.errors import (
    ArchiveError,
    DestinationConflict,
    IOFailure,
    ManifestCorrupt,
    PermissionDenied,
    SourceNotFound,
)
from archivist.manifest import (
    Manifest,
    ManifestEntry,
    append_entry,
    load_manifest,
    validate_path_field,
)

logger = logging.getLogger(__name__)

ARCHIVED = "archived"
RESTORED = "restored"
SKIPPED = "skipped"
FAILED = "failed"
PLANNED = "planned"


@dataclass(frozen=True)
class MoveResult:
    status: str
    source: Path
    destination: Path
    description: str = ""
    entry: ManifestEntry | None = None
    error: ArchiveError | None = None

    @property
    def ok(self) -> bool:
        return self.status != FAILED


@dataclass
class RestoreReport:
    results: list[MoveResult] = field(default_factory=list)
    parse_errors: list[ManifestCorrupt] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def restored(self) -> int:
        return self._count(RESTORED)

    @property
    def skipped(self) -> int:
        return self._count(SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(FAILED)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and not self.parse_errors


def move_path(source: Path, destination: Path) -> None:
    """建好目标父目录后移动。同卷为 rename，跨卷为先复制后删除。"""
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(destination))
    except PermissionError as exc:
        raise PermissionDenied(f"permission denied: {source} -> {destination}: {exc}") from exc
    except OSError as exc:
        raise IOFailure(f"move failed: {source} -> {destination}: {exc}") from exc


class ArchiveEngine:
    def __init__(
        self,
        context: CleanupContext,
        clock: Callable[[], float] = time.time,
        dry_run: bool = False,
    ) -> None:
        self.context = context
        self.dry_run = dry_run
        self._clock = clock

    # ── 归档 ──────────────────────────────────────────────────────

    def archive(
        self,
        original_path: str | os.PathLike[str],
        archived_path: str | os.PathLike[str],
        description: str = "",
    ) -> MoveResult:
        original = validate_path_field(os.fspath(original_path))
        archived = validate_path_field(os.fspath(archived_path))
        source = self.context.resolve(original)
        destination = self.context.resolve(archived)
        label = description or original

        if not os.path.lexists(source):
            logger.warning("Not found, skipping: %s", original)
            return MoveResult(SKIPPED, source, destination, label, error=SourceNotFound(str(source)))

        if os.path.lexists(destination):
            err = DestinationConflict(f"archive destination already exists: {destination}")
            logger.error("Cannot archive %s: %s", label, err)
            return MoveResult(FAILED, source, destination, label, error=err)

        if self.dry_run:
            logger.info("[dry-run] archive %s -> %s", source, destination)
            return MoveResult(PLANNED, source, destination, label)

        logger.info("Archiving: %s", label)
        logger.info("  From: %s", source)
        logger.info("  To: %s", destination)
        try:
            move_path(source, destination)
        except ArchiveError as exc:
            logger.error("Failed to archive %s: %s", label, exc)
            return MoveResult(FAILED, source, destination, label, error=exc)

        entry = ManifestEntry(original_path=original, archived_path=archived, timestamp=int(self._clock()))
        try:
            append_entry(self.context.manifest_path, entry)
        except (OSError, UnicodeError) as exc:
            return self._revert_unrecorded(source, destination, label, exc)

        logger.info("Archived: %s", label)
        return MoveResult(ARCHIVED, source, destination, label, entry=entry)

    def _revert_unrecorded(self, source: Path, destination: Path, label: str, cause: Exception) -> MoveResult:
        # 没写进清单的移动无法恢复，尽量原地撤回
        err = IOFailure(f"manifest append failed for {label}: {cause}")
        err.__cause__ = cause
        try:
            move_path(destination, source)
            logger.error("%s; move reverted", err)
        except ArchiveError as revert_exc:
            logger.critical("%s; revert failed, item left at %s: %s", err, destination, revert_exc)
        return MoveResult(FAILED, source, destination, label, error=err)

    # ── 恢复 ──────────────────────────────────────────────────────

    def restore_all(self, manifest: Manifest) -> RestoreReport:
        report = RestoreReport(parse_errors=list(manifest.errors))
        for err in manifest.errors:
            logger.error("Corrupt manifest line %d skipped: %s", err.line_no, err.reason)

        for entry in manifest.entries:
            report.results.append(self._restore_entry(entry))

        logger.info(
            "Restore finished: restored=%d skipped=%d failed=%d corrupt_lines=%d",
            report.restored,
            report.skipped,
            report.failed,
            len(report.parse_errors),
        )
        return report

    def restore_from_file(self, path: Path | None = None) -> RestoreReport:
        """读取清单后恢复。清单缺失时抛 ManifestMissing。"""
        return self.restore_all(load_manifest(path or self.context.manifest_path))

    def _restore_entry(self, entry: ManifestEntry) -> MoveResult:
        archived = self.context.resolve(entry.archived_path)
        original = self.context.resolve(entry.original_path)

        if not os.path.lexists(archived):
            logger.debug("Already restored or removed, skipping: %s", archived)
            return MoveResult(SKIPPED, archived, original, entry.original_path, entry=entry,
                              error=SourceNotFound(str(archived)))

        if os.path.lexists(original):
            err = DestinationConflict(f"restore destination already exists: {original}")
            logger.error("Cannot restore %s: %s", entry.original_path, err)
            return MoveResult(FAILED, archived, original, entry.original_path, entry=entry, error=err)

        if self.dry_run:
            logger.info("[dry-run] restore %s -> %s", archived, original)
            return MoveResult(PLANNED, archived, original, entry.original_path, entry=entry)

        try:
            move_path(archived, original)
        except ArchiveError as exc:
            logger.error("Failed to restore %s: %s", entry.original_path, exc)
            return MoveResult(FAILED, archived, original, entry.original_path, entry=entry, error=exc)

        self._prune_empty_parents(archived.parent)
        logger.info("Restored: %s", entry.original_path)
        return MoveResult(RESTORED, archived, original, entry.original_path, entry=entry)

    def _prune_empty_parents(self, directory: Path) -> None:
        """删除恢复后留在归档目录里的空目录，归档根本身保留。"""
        archive_root = self.context.archive_root
        while archive_root in directory.parents:
            try:
                directory.rmdir()
            except OSError:
                return
            directory = directory.parent
