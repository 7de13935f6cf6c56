"""
archivist.preflight
──────────────────
运行前检查：确认在仓库根目录，提示未提交的改动。
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from archivist.config import CleanupContext
from archivist.errors import PreflightError

logger = logging.getLogger(__name__)


def check_root(context: CleanupContext) -> None:
    if not context.root.is_dir():
        raise PreflightError(f"repository root not found: {context.root}")
    if context.root_marker and not (context.root / context.root_marker).exists():
        raise PreflightError(f"{context.root_marker} not found in {context.root}; not a repository root?")


def has_uncommitted_changes(root: Path) -> bool:
    """git 仓库里有未提交改动时返回 True。不是 git 仓库或没装 git 时返回 False。"""
    if not (root / ".git").exists():
        return False
    try:
        result = subprocess.run(
            ["git", "diff-index", "--quiet", "HEAD", "--"],
            cwd=root,
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        logger.warning("git not available, skipping uncommitted-change check")
        return False
    return result.returncode != 0
