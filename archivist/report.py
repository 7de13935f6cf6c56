"""
archivist.report
──────────────────
清理报告（Markdown）。只读取清单条目，不参与清单格式的读写。

用法：
  python -m archivist report              # 按当前清单重新生成
  python -m archivist report --out /tmp/CLEANUP_REPORT.md
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from archivist.config import CleanupContext
from archivist.logs import printable
from archivist.manifest import Manifest
from archivist.restore_script import RESTORE_SCRIPT_NAME

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SizeSummary:
    archive_bytes: int
    repo_bytes: int

    @property
    def reduction_pct(self) -> float:
        total = self.archive_bytes + self.repo_bytes
        if total <= 0:
            return 0.0
        return self.archive_bytes / total * 100.0


def tree_size(path: Path, exclude: Path | None = None) -> int:
    """目录总字节数（不跟随符号链接）。exclude 目录整体跳过。"""
    if not os.path.lexists(path):
        return 0
    if not path.is_dir() or path.is_symlink():
        return path.lstat().st_size

    total = 0
    for dirpath, dirnames, filenames in os.walk(path):
        if exclude is not None:
            dirnames[:] = [d for d in dirnames if Path(dirpath, d) != exclude]
        for name in filenames:
            try:
                total += Path(dirpath, name).lstat().st_size
            except OSError:
                continue
    return total


def human_size(num: float) -> str:
    for unit in ("B", "KB", "MB", "GB"):
        if abs(num) < 1024:
            return f"{num:.0f} {unit}" if unit == "B" else f"{num:.1f} {unit}"
        num /= 1024
    return f"{num:.1f} TB"


def measure(context: CleanupContext) -> SizeSummary:
    return SizeSummary(
        archive_bytes=tree_size(context.archive_root),
        repo_bytes=tree_size(context.root, exclude=context.archive_root),
    )


def render_report(
    context: CleanupContext,
    manifest: Manifest,
    sizes: SizeSummary,
    regenerate: list[str],
    generated_at: datetime | None = None,
) -> str:
    ts = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")

    items = "\n".join(f"- {path}" for path in manifest.original_paths()) or "_Nothing was archived._"
    regen = "\n".join(regenerate) if regenerate else "# nothing to regenerate"

    corrupt = ""
    if manifest.errors:
        lines = "\n".join(f"- line {err.line_no}: {err.reason}" for err in manifest.errors)
        corrupt = f"\n## Manifest Problems\n\n{lines}\n"

    restore_path = context.archive_root / RESTORE_SCRIPT_NAME

    return f"""# Repository Cleanup Report

**Date:** {ts}
**Log File:** {context.log_file.name}

## Summary

- **Archived Size:** {human_size(sizes.archive_bytes)}
- **Repository Size (excluding archive):** {human_size(sizes.repo_bytes)}
- **Reduction:** {sizes.reduction_pct:.1f}%
- **Archived Items:** {len(manifest)}

## Archived Items

{items}
{corrupt}
## Archive Location

```
{context.archive_root}
```

## Restore Instructions

To restore all archived files:

```bash
{restore_path}
# or
python -m archivist restore --root {context.root}
```

## Regenerate Dependencies

```bash
{regen}
```

---
*Generated by archivist on {ts}*
"""


def write_report(
    context: CleanupContext,
    manifest: Manifest,
    regenerate: list[str],
    out: Path | None = None,
) -> Path:
    path = out or context.report_path
    path.parent.mkdir(parents=True, exist_ok=True)
    text = render_report(context, manifest, measure(context), regenerate)
    path.write_text(printable(text), encoding="utf-8")
    logger.info("Report generated: %s", path)
    return path
