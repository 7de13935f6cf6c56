"""
archivist.config
──────────────────
统一配置中心。所有路径都从这里得到，再通过 CleanupContext 显式传给各模块，
不使用进程级全局变量。

读取优先级：环境变量 > .env 文件 > 默认值
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from archivist.manifest import MANIFEST_FILENAME

# ── .env 加载（仅执行一次）─────────────────────────────────────────
load_dotenv(Path.cwd() / ".env", override=False)


# ── 路径 ──────────────────────────────────────────────────────────

def repo_root() -> Path:
    """仓库根目录。环境变量 ARCHIVIST_ROOT 可覆盖，默认当前目录。"""
    raw = os.getenv("ARCHIVIST_ROOT", "").strip()
    return Path(raw).expanduser().resolve() if raw else Path.cwd().resolve()


def archive_dir_name() -> str:
    """归档目录，相对仓库根或绝对路径。"""
    return os.getenv("ARCHIVIST_ARCHIVE_DIR", "archive").strip() or "archive"


def manifest_name() -> str:
    return os.getenv("ARCHIVIST_MANIFEST_NAME", MANIFEST_FILENAME).strip() or MANIFEST_FILENAME


def plan_file() -> Path | None:
    """YAML 归档计划。未配置时使用内置计划。"""
    raw = os.getenv("ARCHIVIST_PLAN", "").strip()
    return Path(raw).expanduser() if raw else None


def root_marker() -> str:
    """仓库根必须存在的文件。设为空字符串关闭检查。"""
    return os.getenv("ARCHIVIST_ROOT_MARKER", "pyproject.toml").strip()


def log_dir(root: Path) -> Path:
    raw = os.getenv("ARCHIVIST_LOG_DIR", "").strip()
    return Path(raw).expanduser() if raw else root


def report_name() -> str:
    return os.getenv("ARCHIVIST_REPORT_NAME", "CLEANUP_REPORT.md").strip() or "CLEANUP_REPORT.md"


def gitignore_marker() -> str:
    return (
        os.getenv("ARCHIVIST_GITIGNORE_MARKER", "# Repository Cleanup - Regeneratable files").strip()
        or "# Repository Cleanup - Regeneratable files"
    )


def run_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime("%Y%m%d_%H%M%S")


# ── 运行上下文 ────────────────────────────────────────────────────

@dataclass(frozen=True)
class CleanupContext:
    root: Path
    archive_root: Path
    manifest_path: Path
    log_file: Path
    report_path: Path
    plan_file: Path | None = None
    root_marker: str = "pyproject.toml"
    gitignore_marker: str = "# Repository Cleanup - Regeneratable files"

    @classmethod
    def from_env(
        cls,
        root: Path | None = None,
        archive_root: Path | None = None,
        manifest_path: Path | None = None,
        plan: Path | None = None,
        now: datetime | None = None,
    ) -> "CleanupContext":
        base = root.expanduser().resolve() if root else repo_root()

        if archive_root is None:
            archive_root = Path(archive_dir_name())
        if not archive_root.is_absolute():
            archive_root = base / archive_root
        archive_root = archive_root.expanduser().resolve()

        manifest = manifest_path.expanduser().resolve() if manifest_path else archive_root / manifest_name()

        return cls(
            root=base,
            archive_root=archive_root,
            manifest_path=manifest,
            log_file=log_dir(base) / f"cleanup_{run_timestamp(now)}.log",
            report_path=base / report_name(),
            plan_file=plan or plan_file(),
            root_marker=root_marker(),
            gitignore_marker=gitignore_marker(),
        )

    def resolve(self, raw: str | os.PathLike[str]) -> Path:
        """相对路径按仓库根解析，绝对路径原样返回。"""
        path = Path(raw)
        return path if path.is_absolute() else self.root / path
