"""
archivist.summary
──────────────────
终端输出：运行结果表、清单表、收尾汇总面板。全部是纯函数，便于测试时录制渲染结果。
"""

from __future__ import annotations

from rich import box
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from archivist.config import CleanupContext
from archivist.engine import ARCHIVED, FAILED, PLANNED, RESTORED, SKIPPED, MoveResult
from archivist.logs import printable
from archivist.manifest import Manifest
from archivist.report import SizeSummary, human_size
from archivist.restore_script import RESTORE_SCRIPT_NAME

_STATUS_STYLE = {
    ARCHIVED: "green",
    RESTORED: "green",
    PLANNED: "cyan",
    SKIPPED: "yellow",
    FAILED: "red",
}


def build_results_table(results: list[MoveResult], title: str = "Results") -> Table:
    tbl = Table(title=title, box=box.SIMPLE, expand=True)
    tbl.add_column("Status", style="bold")
    tbl.add_column("Item")
    tbl.add_column("Detail", style="dim")

    for r in results:
        style = _STATUS_STYLE.get(r.status, "white")
        detail = str(r.error) if r.status == FAILED and r.error else str(r.destination)
        item = printable(r.description or str(r.source))
        tbl.add_row(Text(r.status, style=style), Text(item), Text(printable(detail)))
    return tbl


def build_manifest_table(manifest: Manifest) -> Table:
    tbl = Table(title=f"Manifest: {manifest.path}", box=box.SIMPLE, expand=True)
    tbl.add_column("#", justify="right")
    tbl.add_column("Original")
    tbl.add_column("Archived")
    tbl.add_column("Timestamp", justify="right")

    for idx, entry in enumerate(manifest.entries, start=1):
        tbl.add_row(
            str(idx),
            Text(printable(entry.original_path)),
            Text(printable(entry.archived_path)),
            str(entry.timestamp),
        )
    for err in manifest.errors:
        tbl.add_row(Text(str(err.line_no), style="red"), Text(f"corrupt: {err.reason}", style="red"), "", "")
    return tbl


def build_summary_panel(
    context: CleanupContext,
    results: list[MoveResult],
    sizes: SizeSummary,
) -> Panel:
    counts = {status: 0 for status in _STATUS_STYLE}
    for r in results:
        counts[r.status] = counts.get(r.status, 0) + 1

    text = Text()
    text.append(f"📦 Archived: {human_size(sizes.archive_bytes)}\n")
    text.append(f"📁 Repository: {human_size(sizes.repo_bytes)} (excluding archive)\n\n")
    text.append(f"  archived={counts[ARCHIVED]} ", style="green")
    text.append(f"skipped={counts[SKIPPED]} ", style="yellow")
    text.append(f"failed={counts[FAILED]}", style="red" if counts[FAILED] else "dim")
    if counts[PLANNED]:
        text.append(f" planned={counts[PLANNED]}", style="cyan")
    text.append("\n\n")
    text.append(f"📋 Report: {context.report_path.name}\n", style="dim")
    text.append(f"📄 Log: {context.log_file.name}\n", style="dim")
    text.append(f"🔄 Restore: {context.archive_root / RESTORE_SCRIPT_NAME}", style="dim")

    border = "red" if counts[FAILED] else "green"
    return Panel(text, title="[bold]CLEANUP SUMMARY[/bold]", border_style=border, expand=True)
