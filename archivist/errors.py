"""
archivist.errors
──────────────────
归档/恢复的错误分类。单条失败只影响单条记录，只有清单缺失才会中断整个恢复。
"""

from __future__ import annotations


class ArchiveError(RuntimeError):
    """Base class for archive and restore failures."""


class SourceNotFound(ArchiveError):
    """归档源不存在。不是致命错误，按跳过处理。"""


class DestinationConflict(ArchiveError):
    pass


class PermissionDenied(ArchiveError):
    pass


class IOFailure(ArchiveError):
    pass


class ManifestMissing(ArchiveError):
    """清单文件不存在或不可读，恢复无法进行。"""


class PreflightError(ArchiveError):
    pass


class ManifestCorrupt(ArchiveError):
    """清单中某一行无法解析。"""

    def __init__(self, line_no: int, line: str, reason: str) -> None:
        super().__init__(f"manifest line {line_no}: {reason}: {line!r}")
        self.line_no = line_no
        self.line = line
        self.reason = reason
