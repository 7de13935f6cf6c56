"""
archivist.manifest
──────────────────
归档清单的读写。每行一条记录：

    <original_path>|<archived_path>|<unix_timestamp>

只追加，不改写。报告生成只读取这里暴露的条目，不直接解析文件。

文件按 UTF-8 + surrogateescape 读写，和 os.fsdecode 的约定一致：
文件名里不是合法 UTF-8 的字节原样写入、原样读回。
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from archivist.errors import ManifestCorrupt, ManifestMissing

SEPARATOR = "|"
MANIFEST_FILENAME = "archive_manifest.txt"

ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"

_FORBIDDEN = (SEPARATOR, "\n", "\r")
_TIMESTAMP_RE = re.compile(r"[0-9]+")


def validate_path_field(value: str) -> str:
    """路径字段不能为空，不能包含分隔符或换行，并且必须能写进清单文件。"""
    if not value:
        raise ValueError("manifest path must not be empty")
    for ch in _FORBIDDEN:
        if ch in value:
            raise ValueError(f"manifest path contains reserved character {ch!r}: {value!r}")
    try:
        value.encode(ENCODING, ENCODING_ERRORS)
    except UnicodeEncodeError as exc:
        raise ValueError(f"manifest path cannot be encoded: {value!r}") from exc
    return value


@dataclass(frozen=True)
class ManifestEntry:
    original_path: str
    archived_path: str
    timestamp: int

    def __post_init__(self) -> None:
        validate_path_field(self.original_path)
        validate_path_field(self.archived_path)


@dataclass
class Manifest:
    path: Path
    entries: list[ManifestEntry] = field(default_factory=list)
    errors: list[ManifestCorrupt] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def original_paths(self) -> list[str]:
        return [entry.original_path for entry in self.entries]


def serialize_entry(entry: ManifestEntry) -> str:
    return SEPARATOR.join((entry.original_path, entry.archived_path, str(entry.timestamp)))


def parse_entry(line: str, line_no: int) -> ManifestEntry:
    raw = line.rstrip("\r\n")
    fields = raw.split(SEPARATOR)
    if len(fields) != 3:
        raise ManifestCorrupt(line_no, raw, f"expected 3 fields, got {len(fields)}")

    original, archived, ts_raw = fields
    if not original or not archived:
        raise ManifestCorrupt(line_no, raw, "empty path field")

    if not _TIMESTAMP_RE.fullmatch(ts_raw):
        raise ManifestCorrupt(line_no, raw, f"timestamp is not a base-10 integer: {ts_raw!r}")

    return ManifestEntry(original_path=original, archived_path=archived, timestamp=int(ts_raw))


def append_entry(path: Path, entry: ManifestEntry) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding=ENCODING, errors=ENCODING_ERRORS) as handle:
        handle.write(serialize_entry(entry) + "\n")
        handle.flush()
        os.fsync(handle.fileno())


def load_manifest(path: Path) -> Manifest:
    """
    读取清单。

    逐行解码、逐行解析，坏行收集进 Manifest.errors，不影响前后正常行。
    只有文件不存在或读不出来时才抛 ManifestMissing。
    """
    if not path.is_file():
        raise ManifestMissing(f"manifest not found: {path}")
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ManifestMissing(f"manifest unreadable: {path}") from exc

    manifest = Manifest(path=path)
    # 只按 \n 切分，与写入端保持一致
    for line_no, raw in enumerate(data.split(b"\n"), start=1):
        line = raw.decode(ENCODING, ENCODING_ERRORS)
        if not line.strip():
            continue
        try:
            manifest.entries.append(parse_entry(line, line_no))
        except ManifestCorrupt as exc:
            manifest.errors.append(exc)
    return manifest
