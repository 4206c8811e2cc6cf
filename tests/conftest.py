"""Shared test fixtures for backmeup."""

from __future__ import annotations

import os
import shutil
import stat
import tempfile
from datetime import datetime
from pathlib import Path

import pytest


def is_root() -> bool:
    """Permission bits are not enforced for root."""
    return hasattr(os, "geteuid") and os.geteuid() == 0


skip_as_root = pytest.mark.skipif(
    is_root() or os.name == "nt", reason="needs POSIX permission enforcement"
)


@pytest.fixture
def tmp_dir():
    """Create a temporary directory for tests."""
    d = tempfile.mkdtemp(prefix="backmeup-test-")
    yield Path(d)

    # Restore permissions a test may have removed so cleanup succeeds
    for dirpath, dirnames, filenames in os.walk(d):
        for name in dirnames:
            os.chmod(os.path.join(dirpath, name), stat.S_IRWXU)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def source_dir(tmp_dir):
    d = tmp_dir / "src"
    d.mkdir()
    return d


@pytest.fixture
def backup_dir(tmp_dir):
    return tmp_dir / "backup"


@pytest.fixture
def create_file(source_dir):
    """Factory fixture to create files under source_dir."""

    def _create(
        relpath: str,
        content: bytes = b"",
        mode: int | None = None,
        mtime: datetime | None = None,
    ) -> Path:
        filepath = source_dir / relpath
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_bytes(content or relpath.encode())

        if mtime:
            ts = mtime.timestamp()
            os.utime(str(filepath), (ts, ts))
        if mode is not None:
            os.chmod(filepath, mode)
        return filepath

    return _create


def tree_files(root: Path) -> dict[str, bytes]:
    """Map each file's path relative to root to its content."""
    result = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in filenames:
            full = Path(dirpath) / name
            result[full.relative_to(root).as_posix()] = full.read_bytes()
    return result
