from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def update_gitignore(path: Path, entries: list[str], marker: str) -> bool:
    """追加一段带标记的忽略规则。标记已存在时不重复写入，返回是否写入。"""
    if not entries:
        return False

    existing = path.read_text(encoding="utf-8") if path.exists() else ""
    if marker in existing.splitlines():
        logger.info(".gitignore already contains cleanup entries")
        return False

    prefix = "" if not existing or existing.endswith("\n") else "\n"
    block = "\n".join([marker, *entries])
    with path.open("a", encoding="utf-8") as handle:
        handle.write(f"{prefix}\n{block}\n")
    logger.info(".gitignore updated: %s", path)
    return True
