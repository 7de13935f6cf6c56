from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from archivist.config import CleanupContext
from archivist.engine import ARCHIVED, PLANNED, SKIPPED, ArchiveEngine
from archivist.manifest import load_manifest
from archivist.plan import (
    DiscoveryRule,
    PlanError,
    create_archive_structure,
    discover_matches,
    load_plan,
    parse_plan,
    run_plan,
)


@pytest.fixture
def context(tmp_repo: Path) -> CleanupContext:
    return CleanupContext.from_env(root=tmp_repo)


class TestParsePlan:
    def test_default_plan(self):
        plan = load_plan()
        assert "virtual-envs" in plan.categories
        assert [t.source for t in plan.targets] == ["node_modules", ".venv", ".agent", "assets/images"]
        assert [r.pattern for r in plan.discover] == ["__pycache__", "*.egg-info"]
        assert "archive/" in plan.gitignore
        assert plan.regenerate == ["uv sync"]

    def test_plan_from_file(self, tmp_path: Path):
        plan_file = tmp_path / "plan.yaml"
        plan_file.write_text(
            "targets:\n"
            "  - source: docs/NOTES.md\n"
            "    dest: development-docs/NOTES.md\n"
            "regenerate:\n"
            "  - npm install\n",
            encoding="utf-8",
        )
        plan = load_plan(plan_file)
        assert plan.targets[0].dest == "development-docs/NOTES.md"
        assert plan.discover == []
        assert plan.regenerate == ["npm install"]

    def test_missing_dest(self):
        with pytest.raises(PlanError):
            parse_plan("targets:\n  - source: .venv\n")

    def test_absolute_paths_rejected(self):
        with pytest.raises(PlanError):
            parse_plan("targets:\n  - {source: /etc, dest: x}\n")

    def test_broken_yaml(self):
        with pytest.raises(PlanError):
            parse_plan("targets: [unclosed\n")

    def test_not_a_mapping(self):
        with pytest.raises(PlanError):
            parse_plan("- just\n- a list\n")

    def test_unreadable_file(self, tmp_path: Path):
        with pytest.raises(PlanError):
            load_plan(tmp_path / "missing.yaml")


class TestDiscovery:
    def test_skips_archive_root_and_nested_matches(self, context, tmp_repo):
        (context.archive_root / "build-artifacts" / "old" / "__pycache__").mkdir(parents=True)
        (tmp_repo / "src" / "demo" / "__pycache__" / "__pycache__").mkdir()

        found = discover_matches(context, DiscoveryRule("__pycache__", "build-artifacts/pycache"))

        assert [p.as_posix() for p in found] == [
            ".venv/lib/__pycache__",
            "src/demo/__pycache__",
            "tests/__pycache__",
        ]

    def test_glob_pattern(self, context):
        found = discover_matches(context, DiscoveryRule("*.egg-info", "build-artifacts"))
        assert [p.as_posix() for p in found] == ["demo.egg-info"]

    def test_skip_prunes_listed_dirs(self, context, tmp_repo):
        found = discover_matches(
            context, DiscoveryRule("__pycache__", "build-artifacts/pycache"), skip=[tmp_repo / ".venv"]
        )
        assert [p.as_posix() for p in found] == ["src/demo/__pycache__", "tests/__pycache__"]


def test_create_archive_structure(context):
    created = create_archive_structure(context, load_plan())
    assert all(p.is_dir() for p in created)
    assert (context.archive_root / "development-docs").is_dir()


def test_run_plan_archives_fixed_targets_before_discovery(context, tmp_repo):
    engine = ArchiveEngine(context, clock=lambda: 1)
    results = run_plan(engine, load_plan())

    statuses = {r.description: r.status for r in results}
    assert statuses["Python virtual environment"] == ARCHIVED
    assert statuses["Runtime state directory"] == SKIPPED
    assert statuses["Python cache: src/demo/__pycache__"] == ARCHIVED
    assert statuses["Build artifact: demo.egg-info"] == ARCHIVED

    manifest = load_manifest(context.manifest_path)
    # .venv 里的 __pycache__ 随 .venv 一起移走，不单独记录
    assert manifest.original_paths() == [
        "node_modules",
        ".venv",
        "src/demo/__pycache__",
        "tests/__pycache__",
        "demo.egg-info",
    ]
    pycache = context.archive_root / "build-artifacts" / "pycache" / "src" / "demo" / "__pycache__"
    assert (pycache / "__init__.cpython-312.pyc").exists()
    assert manifest.entries[1].archived_path == "archive/virtual-envs/.venv"
    assert manifest.entries[2].archived_path == "archive/build-artifacts/pycache/src/demo/__pycache__"


def test_external_archive_root_recorded_absolute(tmp_repo, tmp_path):
    ctx = CleanupContext.from_env(root=tmp_repo, archive_root=tmp_path / "holding")
    run_plan(ArchiveEngine(ctx, clock=lambda: 1), load_plan())

    manifest = load_manifest(ctx.manifest_path)
    assert manifest.entries[1].archived_path == str(tmp_path / "holding" / "virtual-envs" / ".venv")


def test_restore_after_moving_repository(context, tmp_repo, tmp_path):
    run_plan(ArchiveEngine(context, clock=lambda: 1), load_plan())
    moved = tmp_path / "moved"
    shutil.move(str(tmp_repo), str(moved))

    report = ArchiveEngine(CleanupContext.from_env(root=moved)).restore_from_file()

    assert report.ok
    assert report.restored == 5
    assert (moved / ".venv" / "pyvenv.cfg").exists()
    assert (moved / "src" / "demo" / "__pycache__" / "__init__.cpython-312.pyc").exists()


def test_dry_run_does_not_list_contents_of_planned_targets(context, tmp_repo, tree_snapshot):
    before = tree_snapshot(tmp_repo)
    results = run_plan(ArchiveEngine(context, dry_run=True), load_plan())

    labels = [r.description for r in results if r.status == PLANNED]
    assert labels == [
        "Node.js dependencies",
        "Python virtual environment",
        "Python cache: src/demo/__pycache__",
        "Python cache: tests/__pycache__",
        "Build artifact: demo.egg-info",
    ]
    assert tree_snapshot(tmp_repo) == before
