"""
archivist.restore_script
──────────────────
在归档目录里生成 restore.sh。脚本只是 `python -m archivist restore` 的包装，
恢复逻辑只有 engine 一份实现。
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from archivist.config import CleanupContext

logger = logging.getLogger(__name__)

RESTORE_SCRIPT_NAME = "restore.sh"


def render_restore_script(context: CleanupContext, regenerate: list[str]) -> str:
    # 默认布局下脚本按自身位置定位仓库，清单里也是相对路径，整个仓库搬走后仍可恢复
    if context.manifest_path.parent == context.archive_root:
        manifest = '"$ARCHIVE_ROOT/"' + shlex.quote(context.manifest_path.name)
    else:
        manifest = shlex.quote(str(context.manifest_path))
    if context.archive_root.parent == context.root:
        repo_root = '"$(dirname "$ARCHIVE_ROOT")"'
    else:
        repo_root = shlex.quote(str(context.root))
    hints = "\n".join(f"echo {shlex.quote('  - ' + cmd)}" for cmd in regenerate)
    if hints:
        hints = 'echo "You may need to run:"\n' + hints + "\n"

    return f"""#!/bin/bash
# Restores every item recorded in the archive manifest.
# Generated by archivist; re-running is safe, already restored items are skipped.

set -e
ARCHIVE_ROOT="$(cd "$(dirname "$0")" && pwd)"
REPO_ROOT={repo_root}
MANIFEST={manifest}

echo "Restoring files from archive..."
echo "Archive: $ARCHIVE_ROOT"
echo "Target: $REPO_ROOT"

if [ ! -f "$MANIFEST" ]; then
    echo "ERROR: No manifest file found!"
    exit 1
fi

"${{PYTHON_BIN:-python}}" -m archivist restore \\
    --root "$REPO_ROOT" \\
    --archive-root "$ARCHIVE_ROOT" \\
    --manifest "$MANIFEST" "$@"

echo "Restore completed!"
{hints}"""


def write_restore_script(context: CleanupContext, regenerate: list[str]) -> Path:
    context.archive_root.mkdir(parents=True, exist_ok=True)
    path = context.archive_root / RESTORE_SCRIPT_NAME
    path.write_text(render_restore_script(context, regenerate), encoding="utf-8")
    path.chmod(0o755)
    logger.info("Restore script created: %s", path)
    return path
