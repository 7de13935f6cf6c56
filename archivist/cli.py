"""
cli.py ── 仓库清理命令行

用法：
  python -m archivist archive            # 按计划归档（会先确认）
  python -m archivist archive --dry-run  # 只列出将要归档的内容
  python -m archivist restore            # 按清单恢复
  python -m archivist list               # 查看清单
  python -m archivist report             # 重新生成 CLEANUP_REPORT.md
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.prompt import Confirm
from rich.text import Text

from archivist.config import CleanupContext
from archivist.engine import FAILED, ArchiveEngine
from archivist.errors import ManifestMissing, PreflightError
from archivist.gitignore import update_gitignore
from archivist.logs import setup_logging
from archivist.manifest import Manifest, load_manifest
from archivist.plan import PlanError, create_archive_structure, load_plan, run_plan
from archivist.preflight import check_root, has_uncommitted_changes
from archivist.report import measure, write_report
from archivist.restore_script import write_restore_script
from archivist.summary import build_manifest_table, build_results_table, build_summary_panel

logger = logging.getLogger("archivist.cli")

console = Console()


def _confirm(question: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    return Confirm.ask(question, default=False, console=console)


def _current_manifest(context: CleanupContext) -> Manifest:
    try:
        return load_manifest(context.manifest_path)
    except ManifestMissing:
        return Manifest(path=context.manifest_path)


def _cmd_archive(args: argparse.Namespace) -> int:
    context = CleanupContext.from_env(root=args.root, plan=args.plan)
    setup_logging(None if args.dry_run else context.log_file, verbose=args.verbose, console=console)

    console.rule("[bold cyan]Repository Cleanup[/bold cyan]")
    logger.info("Repository: %s", context.root)
    logger.info("Archive destination: %s", context.archive_root)
    if not args.dry_run:
        logger.info("Log file: %s", context.log_file)

    try:
        plan = load_plan(context.plan_file)
    except PlanError as exc:
        logger.error("%s", exc)
        return 2

    if not args.dry_run and not _confirm("This will archive regeneratable files. Continue?", args.yes):
        logger.error("Cleanup aborted by user")
        return 2

    logger.info("Running pre-flight checks...")
    try:
        check_root(context)
    except PreflightError as exc:
        logger.error("%s", exc)
        return 2
    if has_uncommitted_changes(context.root):
        logger.warning("You have uncommitted changes. Consider committing first.")
        if not args.dry_run and not _confirm("Continue anyway?", args.yes):
            logger.error("Cleanup aborted by user")
            return 2
    logger.info("Pre-flight checks passed")

    engine = ArchiveEngine(context, dry_run=args.dry_run)
    if not args.dry_run:
        create_archive_structure(context, plan)
        write_restore_script(context, plan.regenerate)

    results = run_plan(engine, plan)

    if not args.dry_run:
        if not args.no_gitignore:
            update_gitignore(context.root / ".gitignore", plan.gitignore, context.gitignore_marker)
        if not args.no_report:
            write_report(context, _current_manifest(context), plan.regenerate)

    console.print(build_results_table(results, title="Archive"))
    console.print(build_summary_panel(context, results, measure(context)))

    if any(r.status == FAILED for r in results):
        logger.error("Cleanup finished with failures")
        return 1
    logger.info("All operations completed!")
    return 0


def _cmd_restore(args: argparse.Namespace) -> int:
    context = CleanupContext.from_env(root=args.root, archive_root=args.archive_root, manifest_path=args.manifest)
    setup_logging(verbose=args.verbose, console=console)

    engine = ArchiveEngine(context, dry_run=args.dry_run)
    try:
        report = engine.restore_from_file()
    except ManifestMissing as exc:
        logger.error("%s", exc)
        return 1

    console.print(build_results_table(report.results, title="Restore"))
    for err in report.parse_errors:
        console.print(Text(f"corrupt manifest line {err.line_no}: {err.reason}", style="red"))
    return 0 if report.ok else 1


def _cmd_list(args: argparse.Namespace) -> int:
    context = CleanupContext.from_env(root=args.root, manifest_path=args.manifest)
    setup_logging(verbose=args.verbose, console=console)
    try:
        manifest = load_manifest(context.manifest_path)
    except ManifestMissing as exc:
        logger.error("%s", exc)
        return 1
    console.print(build_manifest_table(manifest))
    return 0


def _cmd_report(args: argparse.Namespace) -> int:
    context = CleanupContext.from_env(root=args.root, manifest_path=args.manifest, plan=args.plan)
    setup_logging(verbose=args.verbose, console=console)
    try:
        manifest = load_manifest(context.manifest_path)
        plan = load_plan(context.plan_file)
    except ManifestMissing as exc:
        logger.error("%s", exc)
        return 1
    except PlanError as exc:
        logger.error("%s", exc)
        return 2
    write_report(context, manifest, plan.regenerate, out=args.out)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Archive regeneratable files out of a repository, reversibly.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug output.")
    sub = parser.add_subparsers(dest="command", required=True)

    archive = sub.add_parser("archive", help="Archive items listed in the cleanup plan")
    archive.add_argument("--root", type=Path, default=None, help="Repository root. Default: $ARCHIVIST_ROOT or cwd.")
    archive.add_argument("--plan", type=Path, default=None, help="YAML cleanup plan. Default: built-in plan.")
    archive.add_argument("--dry-run", action="store_true", help="Only show what would be archived.")
    archive.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation.")
    archive.add_argument("--no-gitignore", action="store_true", help="Leave .gitignore untouched.")
    archive.add_argument("--no-report", action="store_true", help="Skip CLEANUP_REPORT.md.")

    restore = sub.add_parser("restore", help="Move archived items back using the manifest")
    restore.add_argument("--root", type=Path, default=None)
    restore.add_argument("--archive-root", type=Path, default=None)
    restore.add_argument("--manifest", type=Path, default=None)
    restore.add_argument("--dry-run", action="store_true")

    list_parser = sub.add_parser("list", help="Show manifest entries")
    list_parser.add_argument("--root", type=Path, default=None)
    list_parser.add_argument("--manifest", type=Path, default=None)

    report = sub.add_parser("report", help="Regenerate the cleanup report from the manifest")
    report.add_argument("--root", type=Path, default=None)
    report.add_argument("--manifest", type=Path, default=None)
    report.add_argument("--plan", type=Path, default=None)
    report.add_argument("--out", type=Path, default=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "archive":
        return _cmd_archive(args)
    if args.command == "restore":
        return _cmd_restore(args)
    if args.command == "list":
        return _cmd_list(args)
    if args.command == "report":
        return _cmd_report(args)
    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
