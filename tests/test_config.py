"""archivist.config 单元测试。"""

from datetime import datetime
from pathlib import Path

from archivist.config import (
    CleanupContext,
    archive_dir_name,
    gitignore_marker,
    manifest_name,
    plan_file,
    repo_root,
    root_marker,
    run_timestamp,
)


class TestAccessors:
    def test_repo_root_from_env(self, tmp_repo):
        assert repo_root() == tmp_repo

    def test_repo_root_defaults_to_cwd(self, monkeypatch, tmp_path):
        monkeypatch.delenv("ARCHIVIST_ROOT", raising=False)
        monkeypatch.chdir(tmp_path)
        assert repo_root() == tmp_path

    def test_defaults(self):
        assert archive_dir_name() == "archive"
        assert manifest_name() == "archive_manifest.txt"
        assert plan_file() is None
        assert root_marker() == "pyproject.toml"
        assert gitignore_marker().startswith("#")

    def test_root_marker_can_be_disabled(self, monkeypatch):
        monkeypatch.setenv("ARCHIVIST_ROOT_MARKER", "")
        assert root_marker() == ""

    def test_blank_archive_dir_falls_back(self, monkeypatch):
        monkeypatch.setenv("ARCHIVIST_ARCHIVE_DIR", "   ")
        assert archive_dir_name() == "archive"

    def test_run_timestamp(self):
        assert run_timestamp(datetime(2025, 11, 9, 8, 5, 3)) == "20251109_080503"


class TestContext:
    def test_from_env_defaults(self, tmp_repo):
        ctx = CleanupContext.from_env(now=datetime(2025, 11, 9, 8, 5, 3))
        assert ctx.root == tmp_repo
        assert ctx.archive_root == tmp_repo / "archive"
        assert ctx.manifest_path == tmp_repo / "archive" / "archive_manifest.txt"
        assert ctx.log_file == tmp_repo / "cleanup_20251109_080503.log"
        assert ctx.report_path == tmp_repo / "CLEANUP_REPORT.md"

    def test_env_overrides(self, monkeypatch, tmp_repo, tmp_path):
        elsewhere = tmp_path / "holding"
        monkeypatch.setenv("ARCHIVIST_ARCHIVE_DIR", str(elsewhere))
        monkeypatch.setenv("ARCHIVIST_MANIFEST_NAME", "moves.txt")
        monkeypatch.setenv("ARCHIVIST_PLAN", str(tmp_path / "plan.yaml"))
        ctx = CleanupContext.from_env()
        assert ctx.archive_root == elsewhere
        assert ctx.manifest_path == elsewhere / "moves.txt"
        assert ctx.plan_file == tmp_path / "plan.yaml"

    def test_explicit_arguments_win(self, tmp_path):
        root = tmp_path / "other"
        root.mkdir()
        ctx = CleanupContext.from_env(root=root, archive_root=Path("stash"))
        assert ctx.root == root
        assert ctx.archive_root == root / "stash"

    def test_resolve(self, tmp_repo):
        ctx = CleanupContext.from_env()
        assert ctx.resolve(".venv") == tmp_repo / ".venv"
        assert ctx.resolve("/abs/path") == Path("/abs/path")
