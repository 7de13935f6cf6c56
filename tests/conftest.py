"""测试共享 fixtures。"""

import logging

import pytest


def _write(path, content: str = "x") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.fixture
def tmp_repo(tmp_path_factory):
    """创建一个带有可再生目录的临时仓库。"""
    root = tmp_path_factory.mktemp("repo")

    _write(root / "pyproject.toml", "[project]\nname = \"demo\"\n")
    _write(root / "README.md", "# demo\n")
    _write(root / "src" / "demo" / "__init__.py", "VERSION = '1.0'\n")
    _write(root / "src" / "demo" / "__pycache__" / "__init__.cpython-312.pyc", "bytecode")
    _write(root / "tests" / "__pycache__" / "test_demo.cpython-312.pyc", "bytecode")
    _write(root / "demo.egg-info" / "PKG-INFO", "Name: demo\n")
    _write(root / ".venv" / "pyvenv.cfg", "home = /usr/bin\n")
    _write(root / ".venv" / "lib" / "__pycache__" / "site.cpython-312.pyc", "bytecode")
    _write(root / "node_modules" / "left-pad" / "index.js", "module.exports = 1;\n")

    return root


@pytest.fixture(autouse=True)
def env_override(tmp_repo, monkeypatch):
    """测试时自动将 ARCHIVIST_ROOT 指向临时仓库，清掉其他配置。"""
    for key in (
        "ARCHIVIST_ARCHIVE_DIR",
        "ARCHIVIST_MANIFEST_NAME",
        "ARCHIVIST_PLAN",
        "ARCHIVIST_ROOT_MARKER",
        "ARCHIVIST_LOG_DIR",
        "ARCHIVIST_REPORT_NAME",
        "ARCHIVIST_GITIGNORE_MARKER",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ARCHIVIST_ROOT", str(tmp_repo))


@pytest.fixture(autouse=True)
def reset_archivist_logger():
    """CLI 会给 archivist logger 挂 handler，测试之间要复原，caplog 才能收到日志。"""
    yield
    logger = logging.getLogger("archivist")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def _snapshot(root, exclude=None) -> dict:
    result = {}
    for path in sorted(root.rglob("*")):
        if exclude is not None and (path == exclude or exclude in path.parents):
            continue
        rel = path.relative_to(root).as_posix()
        result[rel] = path.read_bytes() if path.is_file() else None
    return result


@pytest.fixture
def tree_snapshot():
    """目录树快照：相对路径 -> 文件内容（目录为 None）。"""
    return _snapshot
