"""
archivist.plan
──────────────────
归档计划：哪些东西要归档、放到归档目录的哪里。

计划来自 YAML 文件，未配置时用内置默认计划。固定目标先按顺序归档，
之后再扫描目录名匹配的目标（__pycache__、*.egg-info 等），
这样已经随固定目标移走的子目录不会被重复处理。
"""

from __future__ import annotations

import fnmatch
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

import yaml

from archivist.config import CleanupContext
from archivist.engine import PLANNED, ArchiveEngine, MoveResult

logger = logging.getLogger(__name__)

DEFAULT_PLAN_YAML = """\
categories:
  - dependencies
  - virtual-envs
  - runtime-state
  - build-artifacts
  - development-docs
  - assets
targets:
  - source: node_modules
    dest: dependencies/node_modules
    description: Node.js dependencies
  - source: .venv
    dest: virtual-envs/.venv
    description: Python virtual environment
  - source: .agent
    dest: runtime-state/.agent
    description: Runtime state directory
  - source: assets/images
    dest: assets/images
    description: Development screenshots
discover:
  - pattern: __pycache__
    dest_prefix: build-artifacts/pycache
    description: Python cache
  - pattern: "*.egg-info"
    dest_prefix: build-artifacts
    description: Build artifact
gitignore:
  - node_modules/
  - .venv/
  - __pycache__/
  - "*.egg-info/"
  - .agent/
  - archive/
regenerate:
  - uv sync
"""


class PlanError(ValueError):
    pass


@dataclass(frozen=True)
class ArchiveTarget:
    source: str
    dest: str
    description: str = ""


@dataclass(frozen=True)
class DiscoveryRule:
    pattern: str
    dest_prefix: str
    description: str = ""


@dataclass
class CleanupPlan:
    categories: list[str] = field(default_factory=list)
    targets: list[ArchiveTarget] = field(default_factory=list)
    discover: list[DiscoveryRule] = field(default_factory=list)
    gitignore: list[str] = field(default_factory=list)
    regenerate: list[str] = field(default_factory=list)


# ── 解析 ──────────────────────────────────────────────────────────

def _str_list(data: dict, key: str) -> list[str]:
    raw = data.get(key) or []
    if not isinstance(raw, list):
        raise PlanError(f"plan field '{key}' must be a list")
    return [str(item).strip() for item in raw if str(item).strip()]


def _require(item: object, key: str, section: str) -> str:
    if not isinstance(item, dict):
        raise PlanError(f"plan '{section}' entries must be mappings, got: {item!r}")
    value = str(item.get(key) or "").strip()
    if not value:
        raise PlanError(f"plan '{section}' entry missing '{key}': {item!r}")
    return value


def parse_plan(text: str) -> CleanupPlan:
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise PlanError(f"invalid plan yaml: {exc}") from exc
    if not isinstance(data, dict):
        raise PlanError("plan must be a mapping")

    targets = []
    for item in data.get("targets") or []:
        source = _require(item, "source", "targets")
        dest = _require(item, "dest", "targets")
        if Path(source).is_absolute() or Path(dest).is_absolute():
            raise PlanError(f"plan paths must be relative: {item!r}")
        targets.append(ArchiveTarget(source=source, dest=dest, description=str(item.get("description") or "")))

    rules = []
    for item in data.get("discover") or []:
        rules.append(
            DiscoveryRule(
                pattern=_require(item, "pattern", "discover"),
                dest_prefix=_require(item, "dest_prefix", "discover"),
                description=str(item.get("description") or ""),
            )
        )

    return CleanupPlan(
        categories=_str_list(data, "categories"),
        targets=targets,
        discover=rules,
        gitignore=_str_list(data, "gitignore"),
        regenerate=_str_list(data, "regenerate"),
    )


def load_plan(path: Path | None = None) -> CleanupPlan:
    if path is None:
        return parse_plan(DEFAULT_PLAN_YAML)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PlanError(f"cannot read plan file: {path}") from exc
    return parse_plan(text)


# ── 执行 ──────────────────────────────────────────────────────────

def create_archive_structure(context: CleanupContext, plan: CleanupPlan) -> list[Path]:
    created = []
    context.archive_root.mkdir(parents=True, exist_ok=True)
    for category in plan.categories:
        path = context.archive_root / category
        path.mkdir(parents=True, exist_ok=True)
        created.append(path)
    logger.info("Archive structure created at %s", context.archive_root)
    return created


def discover_matches(
    context: CleanupContext,
    rule: DiscoveryRule,
    skip: Iterable[Path] = (),
) -> list[Path]:
    """按目录名匹配，跳过归档目录和 skip 里的目录，命中的目录不再往下扫。返回相对根目录的路径。"""
    matches: list[Path] = []
    pruned = {context.archive_root, *skip}
    for dirpath, dirnames, _ in os.walk(context.root):
        current = Path(dirpath)
        keep = []
        for name in sorted(dirnames):
            child = current / name
            if child in pruned:
                continue
            if fnmatch.fnmatch(name, rule.pattern):
                matches.append(child.relative_to(context.root))
                continue
            keep.append(name)
        dirnames[:] = keep
    return matches


def _manifest_path(context: CleanupContext, destination: Path) -> str:
    # 归档目录在仓库内时记相对路径，仓库整体搬走后清单仍然有效
    if context.root in destination.parents:
        return destination.relative_to(context.root).as_posix()
    return str(destination)


def run_plan(engine: ArchiveEngine, plan: CleanupPlan) -> list[MoveResult]:
    context = engine.context
    results: list[MoveResult] = []
    # dry-run 下目标还在原处，扫描时要绕开，免得把其中的内容再列一遍
    planned: list[Path] = []

    for target in plan.targets:
        result = engine.archive(
            target.source,
            _manifest_path(context, context.archive_root / target.dest),
            target.description,
        )
        results.append(result)
        if result.status == PLANNED:
            planned.append(result.source)

    for rule in plan.discover:
        logger.info("Finding and archiving '%s' directories...", rule.pattern)
        for rel in discover_matches(context, rule, skip=planned):
            label = f"{rule.description}: {rel.as_posix()}" if rule.description else rel.as_posix()
            result = engine.archive(
                rel.as_posix(),
                _manifest_path(context, context.archive_root / rule.dest_prefix / rel),
                label,
            )
            results.append(result)
            if result.status == PLANNED:
                planned.append(result.source)

    return results
